"""Hypetrad - Paper-Trading Simulator Entry Point."""

import argparse
import asyncio
import getpass
import sys
from pathlib import Path
from typing import Awaitable, Callable

from hypetrad.app import Application
from hypetrad.config import Settings, load_settings
from hypetrad.errors import HypetradError
from hypetrad.journal import build_entry, format_usd
from hypetrad.ledger.types import INFORMATION_SOURCES, JournalEntry, Sentiment
from hypetrad.trading import PendingTrade

CommandHandler = Callable[[Application, argparse.Namespace], Awaitable[int]]


def _add_journal_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        help=f"Information source, repeatable (e.g. {', '.join(INFORMATION_SOURCES)})",
    )

    parser.add_argument(
        "--rationale",
        type=str,
        default="",
        help="Why you made the trade",
    )

    parser.add_argument(
        "--sentiment",
        choices=[s.value for s in Sentiment],
        default=None,
        help="Market sentiment",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="hypetrad",
        description="Hypetrad - paper-trading simulator with a trade journal",
    )

    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Database path (default: from config)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: from config)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    signup = sub.add_parser("signup", help="Create an account and log in")
    signup.add_argument("email")
    signup.add_argument("--password", default=None, help="Prompted when omitted")

    login = sub.add_parser("login", help="Log in to an existing account")
    login.add_argument("email")
    login.add_argument("--password", default=None, help="Prompted when omitted")

    sub.add_parser("logout", help="Log out (account data is kept)")
    sub.add_parser("whoami", help="Show the logged-in account")

    quote = sub.add_parser("quote", help="Search tickers and show prices")
    quote.add_argument("query")

    buy = sub.add_parser("buy", help="Buy shares")
    buy.add_argument("ticker")
    buy.add_argument("quantity")
    buy.add_argument("--price", default=None, help="Execution price (default: market)")
    _add_journal_args(buy)

    sell = sub.add_parser("sell", help="Sell shares out of a lot")
    sell.add_argument("position_id", help="Buy lot id, see 'positions'")
    sell.add_argument("quantity")
    sell.add_argument("--price", default=None, help="Execution price (default: market)")
    _add_journal_args(sell)

    journal = sub.add_parser("journal", help="Attach a journal entry to a trade")
    journal.add_argument("trade_id")
    _add_journal_args(journal)

    sub.add_parser("positions", help="List buy lots with remaining shares and P&L")
    sub.add_parser("history", help="List trades, newest first")
    sub.add_parser("portfolio", help="Show value, gain/loss and allocation")

    export = sub.add_parser("export", help="Write the trade journal as markdown")
    export.add_argument("--output", type=str, default=None, help="Output file")

    reset = sub.add_parser("reset", help="Reset the account to its initial cash")
    reset.add_argument("--yes", action="store_true", help="Skip confirmation")

    tick = sub.add_parser("tick", help="Advance simulated prices")
    tick.add_argument("--count", type=int, default=1, help="Number of ticks")

    return parser


def apply_args_to_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    """Apply command line arguments to settings."""
    if args.db:
        settings.database.path = Path(args.db)

    if args.log_level:
        settings.logging.level = args.log_level

    return settings


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


def _has_journal_input(args: argparse.Namespace) -> bool:
    return bool(args.source or args.rationale.strip() or args.sentiment)


def _print_trade(pending: PendingTrade) -> None:
    trade = pending.trade
    print(
        f"{trade.action.upper()} {trade.quantity} {trade.ticker} @ {format_usd(trade.price)}"
        f" = {format_usd(trade.total_value)}"
    )
    print(f"  trade:    {trade.id}")
    print(f"  position: {trade.position_id}")
    print(f"  cash:     {format_usd(pending.cash_balance)}")


def _journal_entry(args: argparse.Namespace) -> JournalEntry | None:
    """Journal flags as an entry, None when none were given."""
    if not _has_journal_input(args):
        return None
    return build_entry(args.source, args.rationale, args.sentiment)


async def _finish_trade(app: Application, pending: PendingTrade, entry: JournalEntry | None) -> None:
    _print_trade(pending)
    if entry is not None:
        await app.trading.attach_journal(pending.trade_id, entry, pending)
        print("  journal:  saved")
    else:
        await app.trading.skip_journal(pending)


# --- Command handlers ---


async def cmd_signup(app: Application, args: argparse.Namespace) -> int:
    snapshot = await app.session.sign_up(args.email, _password(args))
    print(f"Signed up as {app.session.current_email()} with {format_usd(snapshot.cash_balance)}")
    return 0


async def cmd_login(app: Application, args: argparse.Namespace) -> int:
    snapshot = await app.session.log_in(args.email, _password(args))
    print(f"Logged in as {app.session.current_email()} (cash {format_usd(snapshot.cash_balance)})")
    return 0


async def cmd_logout(app: Application, args: argparse.Namespace) -> int:
    await app.session.log_out()
    print("Logged out")
    return 0


async def cmd_whoami(app: Application, args: argparse.Namespace) -> int:
    print(app.session.current_email())
    return 0


async def cmd_quote(app: Application, args: argparse.Namespace) -> int:
    quotes = await app.search_quotes(args.query)
    if not quotes:
        print("No matches")
        return 0
    for quote in quotes:
        print(f"{quote.ticker:<8} {format_usd(quote.price):>12}  {quote.company_name}")
    return 0


async def cmd_buy(app: Application, args: argparse.Namespace) -> int:
    entry = _journal_entry(args)
    pending = await app.trading.buy(args.ticker, args.quantity, args.price)
    await _finish_trade(app, pending, entry)
    return 0


async def cmd_sell(app: Application, args: argparse.Namespace) -> int:
    entry = _journal_entry(args)
    pending = await app.trading.sell(args.position_id, args.quantity, args.price)
    await _finish_trade(app, pending, entry)
    return 0


async def cmd_journal(app: Application, args: argparse.Namespace) -> int:
    entry = build_entry(args.source, args.rationale, args.sentiment)
    trade = await app.trading.attach_journal(args.trade_id, entry)
    print(f"Journal saved for {trade.action.upper()} {trade.quantity} {trade.ticker}")
    return 0


async def cmd_positions(app: Application, args: argparse.Namespace) -> int:
    views = await app.trading.positions()
    if not views:
        print("No positions")
        return 0
    for view in views:
        lot = view.lot
        status = "closed" if view.is_closed else f"{view.remaining_shares}/{lot.quantity} held"
        journal = " [journal]" if view.journal_entry else ""
        print(
            f"{lot.id}  {lot.ticker:<6} {status:<14} cost {format_usd(lot.purchase_price)}"
            f"  now {format_usd(view.current_price)}  P&L {format_usd(view.pnl)}{journal}"
        )
        for sell in view.sells:
            print(f"    sold {-sell.quantity} on {sell.purchase_date:%Y-%m-%d %H:%M}  ({sell.id})")
    return 0


async def cmd_history(app: Application, args: argparse.Namespace) -> int:
    trades = await app.trading.history()
    if not trades:
        print("No trades")
        return 0
    for trade in trades:
        journal = " [journal]" if trade.has_journal else ""
        print(
            f"{trade.date:%Y-%m-%d %H:%M}  {trade.action.upper():<4} {trade.quantity:>6}"
            f" {trade.ticker:<6} @ {format_usd(trade.price):>12}  {trade.id}{journal}"
        )
    return 0


async def cmd_portfolio(app: Application, args: argparse.Namespace) -> int:
    summary = await app.trading.portfolio()
    print(f"Portfolio value: {format_usd(summary.total_value)}")
    print(f"Cash balance:    {format_usd(summary.cash_balance)}")
    print(f"{summary.gain_loss_label + ':':<16} {format_usd(summary.total_pnl)}")
    print("Allocation:")
    for slice_ in summary.allocation:
        print(f"  {slice_.label:<8} {slice_.percent:>6}%  {slice_.color}")
    return 0


async def cmd_export(app: Application, args: argparse.Namespace) -> int:
    output = Path(args.output) if args.output else None
    path = await app.trading.export_journal(output)
    print(f"Journal written to {path}")
    return 0


async def cmd_reset(app: Application, args: argparse.Namespace) -> int:
    email = app.session.current_email()
    if not args.yes:
        answer = input(f"Reset {email}? All positions and trades are deleted [y/N]: ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled")
            return 0
    snapshot = await app.trading.reset()
    print(f"Account reset to {format_usd(snapshot.cash_balance)}")
    return 0


async def cmd_tick(app: Application, args: argparse.Namespace) -> int:
    ticks = await app.tick(max(1, args.count))
    for tick in ticks:
        print(f"{tick.ticker:<8} {format_usd(tick.price):>12}  ({format_usd(tick.change)})")
    return 0


COMMANDS: dict[str, CommandHandler] = {
    "signup": cmd_signup,
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "quote": cmd_quote,
    "buy": cmd_buy,
    "sell": cmd_sell,
    "journal": cmd_journal,
    "positions": cmd_positions,
    "history": cmd_history,
    "portfolio": cmd_portfolio,
    "export": cmd_export,
    "reset": cmd_reset,
    "tick": cmd_tick,
}


async def async_main(args: argparse.Namespace, settings: Settings) -> int:
    """Async main entry point."""
    async with Application(settings) as app:
        try:
            return await COMMANDS[args.command](app, args)
        except HypetradError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = load_settings()
    settings = apply_args_to_settings(args, settings)

    try:
        return asyncio.run(async_main(args, settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
