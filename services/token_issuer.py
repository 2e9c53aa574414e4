"""Access and refresh token issuing.

Access tokens are minted by flask-jwt-extended so ``jwt_required`` protects
routes with them. Refresh tokens carry only the user id and are signed with a
separate secret through PyJWT, because flask-jwt-extended signs every token
type with the same key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from models.user import User
from stores.abstract_store import IdentityStore, ProfileStore

from .errors import AccountInactiveError, AccountSuspendedError, TokenInvalidError

logger = logging.getLogger(__name__)


class TokenSigner:
    """Sign and verify HS256 tokens with an explicit secret and lifetime."""

    algorithm = "HS256"

    def sign(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        return jwt.decode(token, secret, algorithms=[self.algorithm])


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "Bearer",
            "expires_in": self.expires_in,
        }


class TokenIssuer:
    """Issue token pairs and mint new access tokens from refresh tokens."""

    def __init__(
        self,
        identities: IdentityStore,
        profiles: ProfileStore,
        signer: TokenSigner,
        *,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
    ):
        self.identities = identities
        self.profiles = profiles
        self.signer = signer
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @staticmethod
    def access_claims(user: User) -> dict[str, Any]:
        return {
            "userId": user.id,
            "email": user.email,
            "role": user.role,
            "accountStatus": user.account_status,
            "emailVerified": user.email_verified,
        }

    def _mint_access(self, user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims=self.access_claims(user),
            expires_delta=self.access_ttl,
        )

    def issue(self, user: User) -> TokenPair:
        access_token = self._mint_access(user)
        refresh_token = self.signer.sign(
            {"userId": user.id, "type": "refresh"}, self.refresh_secret, self.refresh_ttl
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def verify_access(self, token: str) -> dict[str, Any]:
        try:
            claims = decode_token(token)
        except (jwt.PyJWTError, JWTExtendedException) as exc:
            raise TokenInvalidError() from exc
        if claims.get("type") != "access" or "userId" not in claims:
            raise TokenInvalidError()
        return claims

    def verify_refresh(self, token: str) -> dict[str, Any]:
        try:
            claims = self.signer.verify(token, self.refresh_secret)
        except jwt.PyJWTError as exc:
            raise TokenInvalidError() from exc
        if claims.get("type") != "refresh" or "userId" not in claims:
            raise TokenInvalidError()
        return claims

    def refresh(self, refresh_token: str) -> str:
        """Return a new access token; the refresh token itself is not rotated."""

        claims = self.verify_refresh(refresh_token)
        user = self.identities.find_by_id(claims["userId"])
        if user is None or user.is_deleted:
            raise TokenInvalidError()

        if user.account_status == "suspended":
            raise AccountSuspendedError()
        if user.account_status != "active":
            raise AccountInactiveError()

        if user.role == "agent":
            profile = self.profiles.find_agent_profile(user.id)
            if profile is None or not profile.is_active:
                raise AccountInactiveError("Agent account is not active.")

        logger.info("Refreshed access token for user %s", user.id)
        return self._mint_access(user)
