"""Persistence backends for identities, role profiles, and passcodes."""

from .abstract_store import IdentityStore, OtpStore, ProfileStore
from .sql_store import SqlIdentityStore, SqlOtpStore, SqlProfileStore

__all__ = [
    "IdentityStore",
    "OtpStore",
    "ProfileStore",
    "SqlIdentityStore",
    "SqlOtpStore",
    "SqlProfileStore",
]
