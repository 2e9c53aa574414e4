"""Referral code parsing, validation, and generation."""

from __future__ import annotations

import logging
import re
import secrets
import string
from dataclasses import dataclass
from typing import Optional

from models.user import User
from stores.abstract_store import IdentityStore

from .errors import InvalidFormatError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

NORMAL = "normal"
AGENT_REFERRAL = "agent_referral"
ADMIN_REFERRAL = "admin_referral"

PREFIX_KINDS = {"AGT": AGENT_REFERRAL, "ADM": ADMIN_REFERRAL}
PREFIX_ROLES = {"AGT": "agent", "ADM": "admin"}
ROLE_PREFIXES = {role: prefix for prefix, role in PREFIX_ROLES.items()}

SUFFIX_LENGTH = 8
CODE_PATTERN = re.compile(r"^(AGT|ADM)-[A-Z0-9]{8}$")
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class ParsedReferral:
    kind: str
    prefix: Optional[str] = None
    code: Optional[str] = None

    @property
    def is_referral(self) -> bool:
        return self.kind != NORMAL

    @property
    def referrer_role(self) -> Optional[str]:
        return PREFIX_ROLES.get(self.prefix) if self.prefix else None


class ReferralCodec:
    """Classify referral codes and resolve them to their owners."""

    def __init__(self, identities: IdentityStore):
        self.identities = identities

    def parse(self, raw: Optional[str]) -> ParsedReferral:
        """Classify a referral code.

        ``None`` and the empty string mean no code was supplied and yield a
        normal registration. Any other string must match ``PREFIX-XXXXXXXX``
        exactly, otherwise :class:`InvalidFormatError` is raised.
        """

        if raw is None or raw == "":
            return ParsedReferral(kind=NORMAL)

        match = CODE_PATTERN.fullmatch(raw)
        if match is None:
            logger.warning("Rejected malformed referral code %r", raw)
            raise InvalidFormatError(
                f"Invalid referral code format. Expected AGT-XXXXXXXX or ADM-XXXXXXXX "
                f"with {SUFFIX_LENGTH} uppercase letters or digits."
            )

        prefix = match.group(1)
        return ParsedReferral(kind=PREFIX_KINDS[prefix], prefix=prefix, code=raw)

    def validate(self, code: str) -> User:
        """Return the identity that owns ``code`` if it may still refer renters."""

        referrer = self.identities.find_by_referral_code(code)
        if referrer is None:
            raise NotFoundError("Referral code not found.")
        if referrer.is_deleted:
            raise InvalidRequestError("Referral code is no longer valid.")
        if referrer.account_status in ("suspended", "inactive"):
            raise InvalidRequestError("Referral code is inactive.")
        if not referrer.can_refer:
            raise InvalidRequestError("Invalid referrer role.")
        return referrer

    def resolve(self, parsed: ParsedReferral) -> User:
        """Validate a parsed code and check its owner's role matches the prefix."""

        referrer = self.validate(parsed.code)
        if referrer.role != parsed.referrer_role:
            logger.warning(
                "Referral code %s belongs to a %s, expected %s",
                parsed.code,
                referrer.role,
                parsed.referrer_role,
            )
            raise InvalidRequestError(
                f"Referral code does not belong to an {parsed.referrer_role}."
            )
        return referrer

    def generate(self, role: str, *, max_tries: int = 10) -> str:
        """Return a new code for an admin or agent that no identity holds yet."""

        prefix = ROLE_PREFIXES.get(role)
        if prefix is None:
            raise ValueError(f"Role {role!r} cannot hold a referral code.")

        for _ in range(max_tries):
            suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
            code = f"{prefix}-{suffix}"
            if self.identities.find_by_referral_code(code) is None:
                return code
        raise RuntimeError("Could not generate a unique referral code.")


def referral_link(client_url: str, code: str) -> str:
    return f"{client_url.rstrip('/')}/signup?ref={code}"
