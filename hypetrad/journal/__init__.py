"""Trading journal: rationale on trades and markdown export."""

from hypetrad.journal.service import JournalService, build_entry
from hypetrad.journal.writer import JournalWriter, format_usd

__all__ = [
    "JournalService",
    "JournalWriter",
    "build_entry",
    "format_usd",
]
