"""Markdown rendering of the trade journal."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from hypetrad.ledger.types import Trade
from hypetrad.valuation.types import AllocationSlice, PortfolioSummary


class JournalWriter:
    """Renders trade history and journal entries to a markdown file."""

    def write(
        self,
        trades: list[Trade],
        summary: PortfolioSummary,
        output_path: Path,
        email: str = "",
        generated_at: datetime | None = None,
    ) -> Path:
        """Write the journal to a markdown file, return the path."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        content = self.render(trades, summary, email, generated_at or datetime.now())
        output_path.write_text(content, encoding="utf-8")
        return output_path

    def render(
        self,
        trades: list[Trade],
        summary: PortfolioSummary,
        email: str,
        generated_at: datetime,
    ) -> str:
        parts: list[str] = []
        title = f"# Trading Journal - {generated_at:%Y-%m-%d}"
        if email:
            title += f" ({email})"
        parts.append(title + "\n")
        parts.append(self._render_summary(trades))

        for idx, trade in enumerate(trades, 1):
            parts.append("---\n")
            parts.append(self._render_trade(idx, trade))

        parts.append("---\n")
        parts.append(self._render_portfolio(summary))
        return "\n".join(parts)

    def _render_summary(self, trades: list[Trade]) -> str:
        buy_count = sum(1 for t in trades if t.action == "buy")
        sell_count = len(trades) - buy_count
        journaled = sum(1 for t in trades if t.has_journal)
        tickers = list(dict.fromkeys(t.ticker for t in trades))

        lines = [
            "## Summary",
            "| Item | Value |",
            "|------|-------|",
            f"| Trades | {len(trades)} (buy {buy_count}, sell {sell_count}) |",
            f"| Journaled | {journaled} of {len(trades)} |",
            f"| Tickers | {', '.join(tickers) if tickers else '-'} |",
            "",
        ]
        return "\n".join(lines)

    def _render_trade(self, idx: int, trade: Trade) -> str:
        lines = [
            f"## Trade #{idx}: {trade.action.upper()} {trade.quantity} {trade.ticker}",
            f"**Date:** {trade.date:%b %d, %Y %I:%M %p} | "
            f"**Price:** {format_usd(trade.price)} | "
            f"**Total:** {format_usd(trade.total_value)}",
            "",
        ]

        entry = trade.journal_entry
        if entry is None:
            lines.append("_No journal entry._")
            lines.append("")
            return "\n".join(lines)

        if entry.sources:
            lines.append("### Information Sources")
            lines.extend(f"- {source}" for source in sorted(entry.sources))
            lines.append("")
        if entry.rationale:
            lines.append("### Rationale")
            lines.append(f"> {entry.rationale}")
            lines.append("")
        if entry.sentiment is not None:
            lines.append(f"**Sentiment:** {entry.sentiment.value}")
            lines.append("")

        return "\n".join(lines)

    def _render_portfolio(self, summary: PortfolioSummary) -> str:
        lines = [
            "## Portfolio",
            f"- Cash: {format_usd(summary.cash_balance)}",
            f"- Total value: {format_usd(summary.total_value)}",
            f"- {summary.gain_loss_label}: {format_usd(summary.total_pnl)}",
            "",
            self._render_allocation(summary.allocation),
            "",
        ]
        return "\n".join(lines)

    def _render_allocation(self, slices: list[AllocationSlice]) -> str:
        lines = [
            "| Slice | % |",
            "|-------|---|",
        ]
        lines.extend(f"| {s.label} | {s.percent}% |" for s in slices)
        return "\n".join(lines)


def format_usd(value: Decimal) -> str:
    """Format a decimal value as US dollars, rounded to cents."""
    rounded = Decimal(value).quantize(Decimal("0.01"))
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"
