"""Database schema definitions."""

SCHEMA_VERSION = 1

SCHEMA = [
    # Registered accounts
    """
    CREATE TABLE IF NOT EXISTS accounts (
        email TEXT PRIMARY KEY,
        password_hash TEXT NOT NULL,
        salt TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """,
    # One JSON snapshot per account, overwritten wholesale
    """
    CREATE TABLE IF NOT EXISTS snapshots (
        email TEXT PRIMARY KEY REFERENCES accounts(email) ON DELETE CASCADE,
        payload TEXT NOT NULL,
        updated_at INTEGER NOT NULL
    )
    """,
    # Logged-in account (single slot)
    """
    CREATE TABLE IF NOT EXISTS session (
        slot INTEGER PRIMARY KEY CHECK (slot = 1),
        email TEXT NOT NULL REFERENCES accounts(email) ON DELETE CASCADE,
        opened_at INTEGER NOT NULL
    )
    """,
    # Simulated quotes, carried between runs
    """
    CREATE TABLE IF NOT EXISTS prices (
        ticker TEXT PRIMARY KEY,
        price TEXT NOT NULL,
        updated_at INTEGER NOT NULL
    )
    """,
]
