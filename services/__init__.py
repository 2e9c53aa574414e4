"""Admission services wired together for one application instance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from celery import Celery
from flask import current_app

from stores.sql_store import SqlIdentityStore, SqlOtpStore, SqlProfileStore

from .account_service import AccountService
from .email_dispatcher import EmailDispatcher, build_transport
from .login import LoginController
from .otp_manager import EMAIL_VERIFICATION, PASSWORD_RESET, OtpManager, OtpPolicy
from .referral_codec import ReferralCodec
from .registration import RegistrationOrchestrator
from .token_issuer import TokenIssuer, TokenSigner


@dataclass
class AdmissionServices:
    identities: SqlIdentityStore
    profiles: SqlProfileStore
    otp_store: SqlOtpStore
    celery: Celery
    transport: Any
    dispatcher: EmailDispatcher
    codec: ReferralCodec
    otp: OtpManager
    tokens: TokenIssuer
    registration: RegistrationOrchestrator
    login: LoginController
    accounts: AccountService


def current_services() -> AdmissionServices:
    """Return the services bound to the active Flask application."""

    return current_app.extensions["admission"]


def build_services(config: Mapping[str, Any], celery_app: Celery) -> AdmissionServices:
    """Construct every service from the Flask config."""

    identities = SqlIdentityStore()
    profiles = SqlProfileStore()
    otp_store = SqlOtpStore()
    client_url = config.get("CLIENT_URL", "http://localhost:3000")

    transport = build_transport(config)
    dispatcher = EmailDispatcher(
        celery_app,
        client_url=client_url,
        brand=config.get("MAIL_SENDER_NAME", "RentConnect"),
    )

    codec = ReferralCodec(identities)
    otp = OtpManager(
        otp_store,
        {
            EMAIL_VERIFICATION: OtpPolicy.from_mapping(config.get("EMAIL_VERIFICATION_OTP", {})),
            PASSWORD_RESET: OtpPolicy.from_mapping(config.get("PASSWORD_RESET_OTP", {})),
        },
        dispatcher,
    )
    tokens = TokenIssuer(
        identities,
        profiles,
        TokenSigner(),
        refresh_secret=config["JWT_REFRESH_SECRET_KEY"],
        access_ttl=config["JWT_ACCESS_TOKEN_EXPIRES"],
        refresh_ttl=config["JWT_REFRESH_TOKEN_EXPIRES"],
    )
    registration = RegistrationOrchestrator(
        identities,
        profiles,
        codec,
        otp,
        tokens,
        dispatcher,
        client_url=client_url,
        temporary_password_length=int(config.get("TEMPORARY_PASSWORD_LENGTH", 12)),
    )
    login = LoginController(
        identities,
        profiles,
        codec,
        tokens,
        client_url=client_url,
        default_agent_email=config.get("DEFAULT_REFERRAL_AGENT_EMAIL"),
    )
    accounts = AccountService(
        identities,
        profiles,
        otp,
        tokens,
        dispatcher,
        admin_notification_email=config.get("ADMIN_NOTIFICATION_EMAIL"),
    )
    return AdmissionServices(
        identities=identities,
        profiles=profiles,
        otp_store=otp_store,
        celery=celery_app,
        transport=transport,
        dispatcher=dispatcher,
        codec=codec,
        otp=otp,
        tokens=tokens,
        registration=registration,
        login=login,
        accounts=accounts,
    )
