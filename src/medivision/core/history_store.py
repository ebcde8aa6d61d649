# ============================================================================
# src/medivision/core/history_store.py
# ============================================================================
"""
History / Audit Store

Append-only storage of approved schedules (HistoryRecord).

- append(record): store an independent copy
- list(): all records, newest first regardless of insertion order
- get(id): one record, HistoryRecordNotFound if absent

No update or delete. Records handed out are copies, so callers can never
reach the stored snapshot.

Two implementations:
- InMemoryHistoryStore (tests, single process sessions)
- SQLiteHistoryStore (raw sqlite3, JSON payload column)
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..config.base_config import base_settings
from ..utils.exceptions import HistoryRecordNotFound, PersistenceError
from ..utils.metrics import increment
from .context.analysis import HistoryRecord

logger = logging.getLogger(__name__)


def _sort_key(record: HistoryRecord) -> float:
    date = record.date
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.timestamp()


class HistoryStore(ABC):
    """Contract shared by all history stores."""

    @abstractmethod
    def append(self, record: HistoryRecord) -> None:
        pass

    @abstractmethod
    def list(self) -> List[HistoryRecord]:
        pass

    @abstractmethod
    def get(self, record_id: str) -> HistoryRecord:
        pass

    def count(self) -> int:
        return len(self.list())


class InMemoryHistoryStore(HistoryStore):

    def __init__(self):
        self._records: Dict[str, HistoryRecord] = {}

    def append(self, record: HistoryRecord) -> None:
        if record.id in self._records:
            raise PersistenceError(f"History record {record.id} already exists")
        self._records[record.id] = record.detached()
        increment("history.appended")
        logger.info(f"Appended history record {record.id} ({record.schedule_name})")

    def list(self) -> List[HistoryRecord]:
        # dict preserves insertion order; reverse it so equal timestamps list newest-inserted first
        records = list(self._records.values())[::-1]
        return [r.detached() for r in sorted(records, key=_sort_key, reverse=True)]

    def get(self, record_id: str) -> HistoryRecord:
        record = self._records.get(record_id)
        if record is None:
            raise HistoryRecordNotFound(record_id)
        return record.detached()

    def count(self) -> int:
        return len(self._records)


class SQLiteHistoryStore(HistoryStore):
    """
    SQLite-backed history.

    The full record is kept as JSON; ``created_ts`` (epoch seconds) exists
    only for ordering.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or base_settings.HISTORY_DB_PATH)
        self._init_database()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS history (
                record_id       TEXT PRIMARY KEY,
                schedule_name   TEXT NOT NULL,
                created_at      TEXT NOT NULL,
                created_ts      REAL NOT NULL,
                record_data     TEXT NOT NULL
            )
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_history_created
            ON history (created_ts DESC)
        """)

        conn.commit()
        conn.close()
        logger.info(f"History store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def append(self, record: HistoryRecord) -> None:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("""
                INSERT INTO history
                    (record_id, schedule_name, created_at, created_ts, record_data)
                VALUES (?, ?, ?, ?, ?)
            """, (
                record.id,
                record.schedule_name,
                record.date.isoformat(),
                _sort_key(record),
                json.dumps(record.to_dict()),
            ))
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise PersistenceError(f"History record {record.id} already exists") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to append history record {record.id}: {e}") from e
        finally:
            conn.close()

        increment("history.appended")
        logger.info(f"Appended history record {record.id} ({record.schedule_name})")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def list(self) -> List[HistoryRecord]:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("SELECT record_data FROM history ORDER BY created_ts DESC, rowid DESC")
        rows = cur.fetchall()
        conn.close()
        return [HistoryRecord.from_dict(json.loads(row[0])) for row in rows]

    def get(self, record_id: str) -> HistoryRecord:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("SELECT record_data FROM history WHERE record_id = ?", (record_id,))
        row = cur.fetchone()
        conn.close()
        if row is None:
            raise HistoryRecordNotFound(record_id)
        return HistoryRecord.from_dict(json.loads(row[0]))

    def count(self) -> int:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("SELECT COUNT(*) FROM history")
        total = cur.fetchone()[0]
        conn.close()
        return total
