"""Structured logging configuration."""

import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

TRADE_LOGGER_NAME = "hypetrad.trades"

# Extra attributes a trade record may carry, in output order
TRADE_FIELDS = (
    "trade_id",
    "position_id",
    "parent_position_id",
    "ticker",
    "action",
    "quantity",
    "price",
    "cash_balance",
)

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _json_default(value: Any) -> str:
    # Money stays exact as a string
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _created_at(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat()


def _account_of(record: logging.LogRecord) -> str | None:
    return getattr(record, "email", None) or getattr(record, "account", None)


def trade_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the trade attributes present on a record, skipping None."""
    fields: dict[str, Any] = {}
    for attr in TRADE_FIELDS:
        value = getattr(record, attr, None)
        if value is not None:
            fields[attr] = value
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per application log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": _created_at(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        account = _account_of(record)
        if account:
            log_data["account"] = account

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


class TradeFormatter(logging.Formatter):
    """One JSON object per ledger change: the event name, the account and the trade."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": _created_at(record),
            "event": record.getMessage(),
            "account": _account_of(record),
            "trade": trade_fields(record),
        }
        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


class TradeTextFormatter(logging.Formatter):
    """Plain-text trade lines: `event key=value ...`."""

    def __init__(self) -> None:
        super().__init__(datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        parts = [self.formatTime(record, self.datefmt), record.getMessage()]
        account = _account_of(record)
        if account:
            parts.append(f"account={account}")
        parts.extend(f"{key}={value}" for key, value in trade_fields(record).items())
        return " ".join(parts)


def _reset_handlers(target: logging.Logger) -> None:
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_dir: Path,
    level: str = "INFO",
    json_format: bool = True,
    console_level: str = "WARNING",
) -> None:
    """
    Configure logging for the application.

    Log files written under log_dir:
    - app.log: everything at or above `level`
    - errors.log: errors only
    - trades.log: executed trades and journal entries, one record per change

    Console output goes to stderr so it never mixes with command output.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    _reset_handlers(root_logger)

    if json_format:
        app_formatter: logging.Formatter = JsonFormatter()
        trade_formatter: logging.Formatter = TradeFormatter()
    else:
        app_formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
        trade_formatter = TradeTextFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, console_level))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_file_handler(log_dir / "app.log", logging.DEBUG, app_formatter))
    root_logger.addHandler(_file_handler(log_dir / "errors.log", logging.ERROR, app_formatter))

    trade_logger = logging.getLogger(TRADE_LOGGER_NAME)
    trade_logger.setLevel(logging.INFO)
    trade_logger.propagate = False
    _reset_handlers(trade_logger)
    trade_logger.addHandler(_file_handler(log_dir / "trades.log", logging.INFO, trade_formatter))

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_trade_logger() -> logging.Logger:
    """Get the trade-specific logger."""
    return logging.getLogger(TRADE_LOGGER_NAME)


class LogContext:
    """Tags every record created inside the block with the acting account."""

    def __init__(self, account: str) -> None:
        self.account = account
        self._old_factory: Any = None

    def __enter__(self) -> "LogContext":
        self._old_factory = logging.getLogRecordFactory()
        old_factory = self._old_factory
        account = self.account

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            record.account = account
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)
