"""Account authentication and snapshot ownership."""

import hashlib
import hmac
import logging
import re
import secrets
from decimal import Decimal

from hypetrad.config import AccountConfig
from hypetrad.errors import (
    AccountExistsError,
    InvalidCredentialsError,
    NotAuthenticatedError,
)
from hypetrad.events import AccountAction, AccountEvent, EventBus
from hypetrad.ledger.types import AccountSnapshot
from hypetrad.persistence.repository import Repository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
HASH_ITERATIONS = 200_000


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str, salt: str) -> str:
    """Derive a PBKDF2-SHA256 hash for a password."""
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        HASH_ITERATIONS,
    )
    return digest.hex()


class AccountSession:
    """The logged-in account and its snapshot.

    The core reads and writes whole snapshots through this class only;
    every write replaces the stored snapshot in one transaction.
    """

    def __init__(
        self,
        repository: Repository,
        config: AccountConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._repo = repository
        self._config = config or AccountConfig()
        self._event_bus = event_bus
        self._email: str | None = None
        self._snapshot: AccountSnapshot | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._email is not None

    async def restore(self) -> str | None:
        """Resume the session stored by a previous run, if any."""
        email = await self._repo.get_session_email()
        if email and await self._repo.get_account(email):
            self._email = email
            self._snapshot = None
            logger.debug("Session restored for %s", email)
        else:
            self._email = None
        return self._email

    def current_email(self) -> str:
        """Get the logged-in email."""
        if self._email is None:
            raise NotAuthenticatedError("Not authenticated")
        return self._email

    # --- Authentication ---

    async def sign_up(self, email: str, password: str) -> AccountSnapshot:
        """
        Register an account with a fresh snapshot and log it in.

        Raises:
            InvalidCredentialsError: if the email or password is malformed
            AccountExistsError: if the email is already registered
        """
        email = normalize_email(email)
        self._validate_credentials(email, password)

        if await self._repo.get_account(email):
            raise AccountExistsError(f"An account already exists for {email}")

        salt = secrets.token_hex(16)
        snapshot = AccountSnapshot.initial(self._config.initial_cash)
        await self._repo.create_account(email, hash_password(password, salt), salt, snapshot)
        await self._open(email, snapshot)

        logger.info("Account created: %s", email)
        await self._publish(email, "signup")
        return snapshot

    async def log_in(self, email: str, password: str) -> AccountSnapshot:
        """
        Log in with email and password.

        Raises:
            InvalidCredentialsError: on unknown email or wrong password
        """
        email = normalize_email(email)
        account = await self._repo.get_account(email)
        if account is None:
            raise InvalidCredentialsError("Invalid credentials")

        candidate = hash_password(password or "", account["salt"])
        if not hmac.compare_digest(candidate, account["password_hash"]):
            logger.warning("Failed login for %s", email)
            raise InvalidCredentialsError("Invalid credentials")

        snapshot = await self._load(email)
        await self._open(email, snapshot)

        logger.info("Logged in: %s", email)
        await self._publish(email, "login")
        return snapshot

    async def log_out(self) -> None:
        """End the session; the account snapshot is kept."""
        email = self._email
        await self._repo.close_session()
        self._email = None
        self._snapshot = None
        if email:
            logger.info("Logged out: %s", email)
            await self._publish(email, "logout")

    # --- Snapshot seam ---

    async def current_snapshot(self) -> AccountSnapshot:
        """Get the snapshot of the logged-in account."""
        email = self.current_email()
        if self._snapshot is None:
            self._snapshot = await self._load(email)
        return self._snapshot

    async def current_cash_balance(self) -> Decimal:
        snapshot = await self.current_snapshot()
        return snapshot.cash_balance

    async def persist(self, snapshot: AccountSnapshot) -> None:
        """Replace the stored snapshot of the logged-in account."""
        email = self.current_email()
        await self._repo.save_snapshot(email, snapshot)
        self._snapshot = snapshot

    async def reset_snapshot(self) -> AccountSnapshot:
        """Replace the account's snapshot with a fresh one."""
        email = self.current_email()
        snapshot = AccountSnapshot.initial(self._config.initial_cash)
        await self._repo.save_snapshot(email, snapshot)
        self._snapshot = snapshot

        logger.warning("Account reset: %s", email)
        await self._publish(email, "reset")
        return snapshot

    # --- Internals ---

    def _validate_credentials(self, email: str, password: str) -> None:
        if not email:
            raise InvalidCredentialsError("Email is required")
        if not EMAIL_PATTERN.fullmatch(email):
            raise InvalidCredentialsError("Email is invalid")
        if not password:
            raise InvalidCredentialsError("Password is required")
        if len(password) < self._config.min_password_length:
            raise InvalidCredentialsError(
                f"Password must be at least {self._config.min_password_length} characters"
            )

    async def _load(self, email: str) -> AccountSnapshot:
        snapshot = await self._repo.load_snapshot(email)
        if snapshot is None:
            # Account without a stored snapshot: start it fresh
            snapshot = AccountSnapshot.initial(self._config.initial_cash)
            await self._repo.save_snapshot(email, snapshot)
        return snapshot

    async def _open(self, email: str, snapshot: AccountSnapshot) -> None:
        await self._repo.open_session(email)
        self._email = email
        self._snapshot = snapshot

    async def _publish(self, email: str, action: AccountAction) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(AccountEvent(email=email, action=action))
