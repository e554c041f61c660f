"""Data Access Layer for the persisted rate snapshot.

Responsibilities
----------------
- Load the single rate snapshot of this installation (or ``None`` when the
  database holds no snapshot yet).
- Overwrite the snapshot wholesale in one transaction.
- Offer small metadata helpers used for the snapshot timestamp.

All ``sqlite3`` failures are re-raised as ``PersistenceError`` so callers only
deal with the domain taxonomy.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from unitconv.core.errors import PersistenceError
from unitconv.models.constants import BASE_CURRENCY
from unitconv.models.rates import RateSnapshot

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
RATES_FETCHED_AT_KEY = "rates_fetched_at"
RATES_BASE_KEY = "rates_base_currency"

logger = logging.getLogger("unitconv.db")


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _get_metadata_value(self, cur: sqlite3.Cursor, key: str) -> Optional[str]:
        cur.execute("SELECT value FROM metadata WHERE key = ?", (key,))
        row = cur.fetchone()
        return row[0] if row else None

    def _set_metadata_value(self, cur: sqlite3.Cursor, key: str, value: str) -> None:
        cur.execute(
            f"""
            INSERT INTO metadata (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = ({UTC_NOW_SQL})
            """,
            (key, value),
        )

    # ------------------------------------------------------------------
    # Rate snapshot
    def load_rate_snapshot(self) -> Optional[RateSnapshot]:
        """Return the stored snapshot, or None if nothing was ever saved."""
        try:
            conn = self._connect()
            try:
                cur = conn.cursor()
                fetched_at = self._get_metadata_value(cur, RATES_FETCHED_AT_KEY)
                if fetched_at is None:
                    return None
                base = self._get_metadata_value(cur, RATES_BASE_KEY) or BASE_CURRENCY
                cur.execute(
                    "SELECT quote_currency, rate FROM exchange_rates WHERE base_currency = ?",
                    (base,),
                )
                rates = {row["quote_currency"]: row["rate"] for row in cur.fetchall()}
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load rates from {self.db_path}: {e}") from e
        try:
            return RateSnapshot(
                base_currency=base,
                rates=rates,
                fetched_at=datetime.fromisoformat(fetched_at),
            )
        except ValueError as e:  # pydantic ValidationError is a ValueError
            raise PersistenceError(f"Stored rate snapshot is invalid: {e}") from e

    def save_rate_snapshot(self, snapshot: RateSnapshot) -> None:
        """Replace the stored snapshot (rates and timestamp) atomically."""
        try:
            conn = self._connect()
            try:
                cur = conn.cursor()
                cur.execute("DELETE FROM exchange_rates")
                cur.executemany(
                    f"""
                    INSERT INTO exchange_rates (base_currency, quote_currency, rate, updated_at)
                    VALUES (?, ?, ?, ({UTC_NOW_SQL}))
                    """,
                    [
                        (snapshot.base_currency, code, rate)
                        for code, rate in sorted(snapshot.rates.items())
                    ],
                )
                self._set_metadata_value(cur, RATES_BASE_KEY, snapshot.base_currency)
                self._set_metadata_value(
                    cur, RATES_FETCHED_AT_KEY, snapshot.fetched_at.isoformat()
                )
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save rates to {self.db_path}: {e}") from e
        logger.debug(
            "saved %d rates fetched at %s", len(snapshot.rates), snapshot.fetched_at.isoformat()
        )

