"""Test fixtures for Hypetrad."""

from tests.fixtures.ledger_data import (
    BASE_DATE,
    SnapshotBuilder,
    legacy_payload,
    make_lot,
    make_sell,
)

__all__ = [
    "BASE_DATE",
    "SnapshotBuilder",
    "legacy_payload",
    "make_lot",
    "make_sell",
]
