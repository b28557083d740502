"""Append-only ledger of position rows and trade records."""

import logging
from decimal import Decimal

from hypetrad.ledger.types import AccountSnapshot, Position, Trade

logger = logging.getLogger(__name__)


class LedgerStore:
    """Query and append surface over one account's position and trade rows.

    Holds no derived indices: every query scans the rows, so remaining
    shares are always consistent with what has been appended.
    """

    def __init__(
        self,
        positions: list[Position] | None = None,
        trades: list[Trade] | None = None,
    ) -> None:
        self._positions = positions if positions is not None else []
        self._trades = trades if trades is not None else []
        self._ambiguous_lots_reported: set[str] = set()

    @classmethod
    def from_snapshot(cls, snapshot: AccountSnapshot) -> "LedgerStore":
        """Create a store sharing the snapshot's row lists."""
        return cls(snapshot.positions, snapshot.trades)

    @property
    def positions(self) -> list[Position]:
        """Position rows in append order."""
        return self._positions

    @property
    def trades(self) -> list[Trade]:
        """Trade records, newest first."""
        return self._trades

    # --- Writes ---

    def append_position(self, row: Position) -> None:
        """Append a position row. Callers validate before writing."""
        self._positions.append(row)

    def append_trade(self, row: Trade) -> None:
        """Record a trade at the front of the history."""
        self._trades.insert(0, row)

    # --- Lookups ---

    def get_position(self, position_id: str) -> Position | None:
        """Get a position row by ID."""
        for row in self._positions:
            if row.id == position_id:
                return row
        return None

    def get_trade(self, trade_id: str) -> Trade | None:
        """Get a trade by ID."""
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        return None

    def trade_for_position(self, position_id: str) -> Trade | None:
        """Get the trade that recorded a position row."""
        for trade in self._trades:
            if trade.position_id == position_id:
                return trade
        return None

    def lots_for_ticker(self, ticker: str) -> list[Position]:
        """Get buy lots for a ticker in ledger order."""
        ticker = ticker.upper()
        return [p for p in self._positions if p.is_lot and p.ticker == ticker]

    def open_lots(self) -> list[Position]:
        """Get buy lots that still have shares to sell."""
        return [p for p in self._positions if p.is_lot and self.remaining_shares(p) > 0]

    def latest_trade_price(self, ticker: str) -> Decimal | None:
        """Get the price of the most recent trade in a ticker."""
        ticker = ticker.upper()
        for trade in self._trades:
            if trade.ticker == ticker:
                return trade.price
        return None

    def shares_held(self, ticker: str) -> int:
        """Get total remaining shares across all lots of a ticker."""
        return sum(self.remaining_shares(lot) for lot in self.lots_for_ticker(ticker))

    # --- Lot lineage ---

    def sells_for_lot(self, lot: Position) -> list[Position]:
        """
        Get the sell rows that reduce a lot, newest first.

        Sells are matched through ``parent_position_id``. When no sell row
        links to the lot at all, unlinked sell rows with the same ticker and
        purchase price are attributed to it instead.
        """
        if not lot.is_lot:
            return []

        linked = [
            p for p in self._positions
            if p.is_sell and p.parent_position_id == lot.id
        ]
        sells = linked if linked else self._legacy_sells_for(lot)
        return sorted(sells, key=lambda p: p.purchase_date, reverse=True)

    def sold_against(self, lot: Position) -> int:
        """Get the number of shares sold out of a lot."""
        return sum(abs(p.quantity) for p in self.sells_for_lot(lot))

    def remaining_shares(self, lot: Position) -> int:
        """Get shares still held in a lot (0 for sell rows)."""
        if lot.quantity <= 0:
            return 0
        return max(0, lot.quantity - self.sold_against(lot))

    def _legacy_sells_for(self, lot: Position) -> list[Position]:
        legacy = [
            p for p in self._positions
            if p.is_sell
            and p.parent_position_id is None
            and p.ticker == lot.ticker
            and p.purchase_price == lot.purchase_price
        ]
        if not legacy:
            return legacy

        logger.debug(
            "Lot %s matched %d unlinked sell rows by ticker and price",
            lot.id,
            len(legacy),
        )
        twins = [
            p for p in self.lots_for_ticker(lot.ticker)
            if p.purchase_price == lot.purchase_price
        ]
        if len(twins) > 1 and lot.id not in self._ambiguous_lots_reported:
            self._ambiguous_lots_reported.add(lot.id)
            logger.warning(
                "Ambiguous legacy sell matching: %d %s lots bought at %s",
                len(twins),
                lot.ticker,
                lot.purchase_price,
            )
        return legacy
