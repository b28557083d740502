"""Account sign-up, login and snapshot ownership."""

from hypetrad.account.session import AccountSession, hash_password, normalize_email

__all__ = [
    "AccountSession",
    "hash_password",
    "normalize_email",
]
