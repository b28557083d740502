"""Identifier generation for ledger rows."""

import hashlib
import uuid
from datetime import datetime


def _digest(*parts: str, length: int = 16) -> str:
    key_string = "|".join(parts)
    return hashlib.sha256(key_string.encode()).hexdigest()[:length]


def generate_position_id(
    ticker: str,
    quantity: int,
    timestamp: datetime | None = None,
) -> str:
    """
    Generate a unique position row ID.

    The key combines ticker, signed quantity, millisecond timestamp and a
    random nonce, so two rows created within the same millisecond still
    get distinct IDs.

    Args:
        ticker: Row ticker
        quantity: Signed row quantity
        timestamp: Creation time (defaults to now)

    Returns:
        A unique position ID string
    """
    if timestamp is None:
        timestamp = datetime.now()

    return "POS-" + _digest(
        ticker,
        str(quantity),
        str(int(timestamp.timestamp() * 1000)),
        uuid.uuid4().hex,
    )


def generate_trade_id(position_id: str) -> str:
    """
    Generate the trade ID for a position row.

    Args:
        position_id: ID of the row the trade records

    Returns:
        A unique trade ID string
    """
    return "TRD-" + _digest(position_id, uuid.uuid4().hex)
