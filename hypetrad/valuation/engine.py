"""Portfolio value, gain/loss and allocation derived from the ledger."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from hypetrad.ledger.store import LedgerStore
from hypetrad.ledger.types import AccountSnapshot, Position
from hypetrad.valuation.types import (
    CASH_LABEL,
    PALETTE,
    AllocationSlice,
    LotView,
    PortfolioSummary,
)

logger = logging.getLogger(__name__)

PriceLookup = Callable[[str], Decimal]

ZERO = Decimal("0")
ONE_DECIMAL = Decimal("0.1")
HUNDRED = Decimal("100")


def _percent(value: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return Decimal("0.0")
    return (value / total * HUNDRED).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


class ValuationEngine:
    """Read-only valuation over account snapshots.

    Value and P&L sum over every position row: sell rows carry negative
    quantities and net out the shares they removed from their lot.
    """

    def __init__(self, price: PriceLookup) -> None:
        self._price = price

    def price(self, ticker: str) -> Decimal:
        return self._price(ticker)

    def holdings_value(self, snapshot: AccountSnapshot) -> Decimal:
        """Market value of all rows, net of sells."""
        return sum(
            (self._price(p.ticker) * p.quantity for p in snapshot.positions),
            ZERO,
        )

    def portfolio_value(self, snapshot: AccountSnapshot) -> Decimal:
        """Cash plus net market value of all rows."""
        return snapshot.cash_balance + self.holdings_value(snapshot)

    def row_pnl(self, position: Position) -> Decimal:
        """Unrealized P&L of one row against its cost basis."""
        return (self._price(position.ticker) - position.purchase_price) * position.quantity

    def total_pnl(self, snapshot: AccountSnapshot) -> Decimal:
        """Sum of P&L over every row."""
        return sum((self.row_pnl(p) for p in snapshot.positions), ZERO)

    def allocation(self, snapshot: AccountSnapshot) -> list[AllocationSlice]:
        """
        Break the portfolio into cash and per-ticker slices.

        Only buy rows are aggregated. Cash comes first, tickers follow in
        descending value. Percentages are of the portfolio value, rounded
        to one decimal, and all zero when the portfolio value is not
        positive.

        Sell rows reduce the portfolio value but are not subtracted from
        the ticker slices, so after a partial sell the slices can sum to
        more than 100. Dividing by cash plus the slice values instead
        would always sum to 100.
        """
        ticker_values: dict[str, Decimal] = {}
        for position in snapshot.positions:
            if position.quantity <= 0:
                continue
            value = self._price(position.ticker) * position.quantity
            ticker_values[position.ticker] = ticker_values.get(position.ticker, ZERO) + value

        total = self.portfolio_value(snapshot)

        slices = [
            AllocationSlice(
                label=CASH_LABEL,
                percent=_percent(snapshot.cash_balance, total),
                color_index=0,
                value=snapshot.cash_balance,
            )
        ]
        ranked = sorted(ticker_values.items(), key=lambda item: item[1], reverse=True)
        for index, (ticker, value) in enumerate(ranked):
            slices.append(
                AllocationSlice(
                    label=ticker,
                    percent=_percent(value, total),
                    color_index=(index + 1) % len(PALETTE),
                    value=value,
                )
            )
        return slices

    def position_views(self, snapshot: AccountSnapshot) -> list[LotView]:
        """Buy lots, newest first, each with its remaining shares and sells."""
        ledger = LedgerStore.from_snapshot(snapshot)
        views = [
            LotView(
                lot=lot,
                remaining_shares=ledger.remaining_shares(lot),
                current_price=self._price(lot.ticker),
                pnl=self.row_pnl(lot),
                sells=ledger.sells_for_lot(lot),
                trade=ledger.trade_for_position(lot.id),
            )
            for lot in snapshot.positions
            if lot.is_lot
        ]
        views.sort(key=lambda v: v.lot.purchase_date, reverse=True)
        return views

    def summarize(self, snapshot: AccountSnapshot) -> PortfolioSummary:
        """Compute the headline figures and allocation."""
        holdings = self.holdings_value(snapshot)
        summary = PortfolioSummary(
            cash_balance=snapshot.cash_balance,
            holdings_value=holdings,
            total_value=snapshot.cash_balance + holdings,
            total_pnl=self.total_pnl(snapshot),
            allocation=self.allocation(snapshot),
        )
        logger.debug(
            "Valuation: value=%s pnl=%s slices=%d",
            summary.total_value,
            summary.total_pnl,
            len(summary.allocation),
        )
        return summary
