"""Persistence layer for SQLite storage."""

from hypetrad.persistence.database import Database
from hypetrad.persistence.repository import (
    Repository,
    snapshot_from_payload,
    snapshot_to_payload,
)

__all__ = [
    "Database",
    "Repository",
    "snapshot_from_payload",
    "snapshot_to_payload",
]
