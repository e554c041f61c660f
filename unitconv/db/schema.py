"""Database schema DDL definitions and initialization utilities.

Tables:
  - exchange_rates: one row per quote currency of the current snapshot
  - metadata: key/value store (snapshot fetch time, schema version)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

EXCHANGE_RATES_DDL = f"""
CREATE TABLE IF NOT EXISTS exchange_rates (
    base_currency TEXT NOT NULL, -- 'USD'
    quote_currency TEXT NOT NULL,
    rate REAL NOT NULL CHECK (rate > 0),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    PRIMARY KEY (base_currency, quote_currency)
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

DDL_ORDER: Sequence[str] = (
    EXCHANGE_RATES_DDL,
    METADATA_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently and stamp the schema version.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(
            f"""
            INSERT INTO metadata (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                updated_at = ({BASIC_UTC_NOW})
            """,
            (SCHEMA_VERSION_KEY, str(SCHEMA_VERSION)),
        )
        conn.commit()
    finally:
        conn.close()
