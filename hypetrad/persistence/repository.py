"""Data access layer for accounts, snapshots, session and prices."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from hypetrad.ledger.types import (
    AccountSnapshot,
    JournalEntry,
    Position,
    Sentiment,
    Trade,
)
from hypetrad.persistence.database import Database

logger = logging.getLogger(__name__)


class Repository:
    """Data access layer for account records."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # --- Account operations ---

    async def create_account(
        self,
        email: str,
        password_hash: str,
        salt: str,
        snapshot: AccountSnapshot,
    ) -> None:
        """Register an account together with its initial snapshot."""
        now = _now_ts()
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO accounts (email, password_hash, salt, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (email, password_hash, salt, now),
            )
            await conn.execute(
                "INSERT INTO snapshots (email, payload, updated_at) VALUES (?, ?, ?)",
                (email, json.dumps(snapshot_to_payload(snapshot)), now),
            )

    async def get_account(self, email: str) -> dict | None:
        """Get an account record by email."""
        row = await self._db.fetchone(
            "SELECT * FROM accounts WHERE email = ?",
            (email,),
        )
        return dict(row) if row else None

    # --- Snapshot operations ---

    async def save_snapshot(self, email: str, snapshot: AccountSnapshot) -> None:
        """Overwrite the stored snapshot of an account in one transaction."""
        payload = json.dumps(snapshot_to_payload(snapshot))
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO snapshots (email, payload, updated_at)
                VALUES (?, ?, ?)
                """,
                (email, payload, _now_ts()),
            )
        logger.debug(
            "Snapshot saved for %s (%d positions, %d trades)",
            email,
            len(snapshot.positions),
            len(snapshot.trades),
        )

    async def load_snapshot(self, email: str) -> AccountSnapshot | None:
        """Load the stored snapshot of an account."""
        row = await self._db.fetchone(
            "SELECT payload FROM snapshots WHERE email = ?",
            (email,),
        )
        if row is None:
            return None
        return snapshot_from_payload(json.loads(row["payload"]))

    # --- Session operations ---

    async def open_session(self, email: str) -> None:
        """Mark an account as logged in."""
        async with self._db.transaction() as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO session (slot, email, opened_at) VALUES (1, ?, ?)",
                (email, _now_ts()),
            )

    async def close_session(self) -> None:
        """Clear the logged-in account."""
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM session WHERE slot = 1")

    async def get_session_email(self) -> str | None:
        """Get the logged-in account email."""
        row = await self._db.fetchone("SELECT email FROM session WHERE slot = 1")
        return row["email"] if row else None

    # --- Price operations ---

    async def save_prices(self, prices: dict[str, Decimal]) -> None:
        """Store the current simulated quotes."""
        now = _now_ts()
        async with self._db.transaction() as conn:
            await conn.executemany(
                "INSERT OR REPLACE INTO prices (ticker, price, updated_at) VALUES (?, ?, ?)",
                [(ticker, str(price), now) for ticker, price in prices.items()],
            )

    async def load_prices(self) -> dict[str, Decimal]:
        """Load stored simulated quotes."""
        rows = await self._db.fetchall("SELECT ticker, price FROM prices")
        return {row["ticker"]: Decimal(row["price"]) for row in rows}


def _now_ts() -> int:
    return int(datetime.now().timestamp())


# --- Snapshot payload codec ---


def snapshot_to_payload(snapshot: AccountSnapshot) -> dict[str, Any]:
    """Convert a snapshot to its persisted JSON layout."""
    return {
        "cashBalance": str(snapshot.cash_balance),
        "positions": [_position_to_dict(p) for p in snapshot.positions],
        "trades": [_trade_to_dict(t) for t in snapshot.trades],
    }


def snapshot_from_payload(payload: dict[str, Any]) -> AccountSnapshot:
    """
    Read a persisted snapshot.

    Accepts records written by older versions: numeric money fields, no
    parent link on sell rows, no position link on trades.
    """
    positions = payload.get("positions")
    trades = payload.get("trades")
    return AccountSnapshot(
        cash_balance=_to_decimal(payload.get("cashBalance", "0")),
        positions=[_position_from_dict(p) for p in positions] if isinstance(positions, list) else [],
        trades=[_trade_from_dict(t) for t in trades] if isinstance(trades, list) else [],
    )


def _position_to_dict(position: Position) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": position.id,
        "ticker": position.ticker,
        "quantity": position.quantity,
        "purchasePrice": str(position.purchase_price),
        "purchaseDate": position.purchase_date.isoformat(),
    }
    if position.parent_position_id is not None:
        data["parentPositionId"] = position.parent_position_id
    return data


def _position_from_dict(data: dict[str, Any]) -> Position:
    return Position(
        id=str(data["id"]),
        ticker=str(data["ticker"]).upper(),
        quantity=int(data["quantity"]),
        purchase_price=_to_decimal(data["purchasePrice"]),
        purchase_date=_parse_date(data.get("purchaseDate")),
        parent_position_id=data.get("parentPositionId") or None,
    )


def _trade_to_dict(trade: Trade) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": trade.id,
        "ticker": trade.ticker,
        "action": trade.action,
        "quantity": trade.quantity,
        "price": str(trade.price),
        "date": trade.date.isoformat(),
        "positionId": trade.position_id,
    }
    if trade.journal_entry is not None:
        data["journalEntry"] = _entry_to_dict(trade.journal_entry)
    return data


def _trade_from_dict(data: dict[str, Any]) -> Trade:
    entry = data.get("journalEntry")
    return Trade(
        id=str(data["id"]),
        ticker=str(data["ticker"]).upper(),
        action=data["action"],
        quantity=int(data["quantity"]),
        price=_to_decimal(data["price"]),
        position_id=str(data.get("positionId") or ""),
        date=_parse_date(data.get("date")),
        journal_entry=_entry_from_dict(entry) if entry else None,
    )


def _entry_to_dict(entry: JournalEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "sources": sorted(entry.sources),
        "rationale": entry.rationale,
    }
    if entry.sentiment is not None:
        data["sentiment"] = entry.sentiment.value
    return data


def _entry_from_dict(data: dict[str, Any]) -> JournalEntry:
    sentiment = data.get("sentiment")
    return JournalEntry(
        sources=frozenset(data.get("sources") or ()),
        rationale=data.get("rationale") or "",
        sentiment=Sentiment(sentiment) if sentiment else None,
    )


def _to_decimal(value: Any) -> Decimal:
    # str() first so floats from older records keep their printed value
    return Decimal(str(value))


def _parse_date(value: Any) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
