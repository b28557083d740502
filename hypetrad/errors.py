"""Normalized error types for trading, journal and account operations."""


class HypetradError(Exception):
    """Base class for all user-facing errors."""

    code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class TradingError(HypetradError):
    """A buy or sell command was rejected."""

    code = "trading_error"


class InsufficientFundsError(TradingError):
    """Cash balance does not cover the order."""

    code = "insufficient_funds"

    def __init__(
        self,
        message: str,
        required: object = None,
        available: object = None,
    ) -> None:
        super().__init__(message)
        self.required = required
        self.available = available


class InsufficientSharesError(TradingError):
    """Sell quantity exceeds the shares remaining in the lot."""

    code = "insufficient_shares"

    def __init__(
        self,
        message: str,
        requested: int | None = None,
        remaining: int | None = None,
    ) -> None:
        super().__init__(message)
        self.requested = requested
        self.remaining = remaining


class InvalidLotError(TradingError):
    """Sell target is a sell row, fully sold, or unknown."""

    code = "invalid_lot"


class InvalidQuantityError(TradingError):
    """Quantity is not a positive integer."""

    code = "invalid_quantity"


class InvalidPriceError(TradingError):
    """Price is missing or not positive."""

    code = "invalid_price"


class InvalidTickerError(TradingError):
    """Ticker symbol is empty."""

    code = "invalid_ticker"


class JournalError(HypetradError):
    """A journal operation was rejected."""

    code = "journal_error"


class TradeNotFoundError(JournalError):
    """Journal target trade does not exist."""

    code = "trade_not_found"

    def __init__(self, message: str, trade_id: str | None = None) -> None:
        super().__init__(message)
        self.trade_id = trade_id


class InvalidJournalEntryError(JournalError):
    """Journal entry has neither sources nor rationale."""

    code = "invalid_journal_entry"


class AccountError(HypetradError):
    """An account or session operation was rejected."""

    code = "account_error"


class NotAuthenticatedError(AccountError):
    """No account is logged in."""

    code = "not_authenticated"


class InvalidCredentialsError(AccountError):
    """Email or password is invalid."""

    code = "invalid_credentials"


class AccountExistsError(AccountError):
    """An account is already registered for this email."""

    code = "account_exists"
