"""SQLite report store.

Stores reports in a single SQLite database file using the standard library
``sqlite3`` module, so reports survive across CLI invocations.

Classes
-------
- SQLiteReportStore  - SQLite-backed, append-only report store
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing
from pathlib import Path

from pydantic import ValidationError

from agent_session_handoff.errors import (
    DuplicateReportError,
    ReportNotFoundError,
    ReportStoreError,
)
from agent_session_handoff.report.models import HandoffReport, ReportSummary
from agent_session_handoff.storage.base import ReportStore

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH: Path = Path.home() / ".agent-handoff" / "reports.db"
_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS handoff_reports (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
    handoff_id  TEXT NOT NULL UNIQUE,
    session_id  TEXT NOT NULL,
    created_at  REAL NOT NULL,
    payload     TEXT NOT NULL
)
"""
_INSERT_SQL = """
INSERT INTO handoff_reports (handoff_id, session_id, created_at, payload)
VALUES (?, ?, ?, ?)
"""
_PRUNE_SQL = """
DELETE FROM handoff_reports
WHERE seq NOT IN (SELECT seq FROM handoff_reports ORDER BY seq DESC LIMIT ?)
"""


class SQLiteReportStore(ReportStore):
    """Persist handoff reports in a local SQLite database.

    Each report occupies one row keyed by its id, with the full report JSON
    stored as TEXT.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Defaults to ``~/.agent-handoff/reports.db``.
        The parent directory and table are created on first use.
    max_reports:
        Optional retention cap; the oldest stored rows beyond it are pruned
        after each write.  ``None`` keeps everything.
    """

    def __init__(self, db_path: str | Path | None = None, max_reports: int | None = None) -> None:
        self._db_path: Path = Path(db_path) if db_path is not None else _DEFAULT_DB_PATH
        self._max_reports = max_reports
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_connection(self) -> sqlite3.Connection:
        """Open a connection and ensure the table exists."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
        except (OSError, sqlite3.Error) as exc:
            raise ReportStoreError(f"Cannot open report database {str(self._db_path)!r}: {exc}") from exc
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(_CREATE_TABLE_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            conn.close()
            raise ReportStoreError(f"Cannot open report database {str(self._db_path)!r}: {exc}") from exc
        return conn

    def _decode(self, payload: str) -> HandoffReport:
        try:
            return HandoffReport.from_json(payload)
        except ValidationError as exc:
            raise ReportStoreError(f"Stored report payload is corrupt: {exc}") from exc

    # ------------------------------------------------------------------
    # ReportStore interface
    # ------------------------------------------------------------------

    def put(self, report: HandoffReport) -> str:
        row = (
            report.id,
            report.previous_session_id,
            report.timestamp.timestamp(),
            report.to_json(),
        )
        with self._write_lock, closing(self._get_connection()) as conn:
            try:
                with conn:
                    conn.execute(_INSERT_SQL, row)
                    if self._max_reports is not None:
                        conn.execute(_PRUNE_SQL, (self._max_reports,))
            except sqlite3.IntegrityError as exc:
                raise DuplicateReportError(report.id) from exc
            except sqlite3.Error as exc:
                raise ReportStoreError(f"Failed to store report {report.id!r}: {exc}") from exc
        logger.debug("SQLiteReportStore: stored report %r", report.id)
        return report.id

    def get(self, handoff_id: str) -> HandoffReport:
        with closing(self._get_connection()) as conn:
            try:
                row = conn.execute(
                    "SELECT payload FROM handoff_reports WHERE handoff_id = ?", (handoff_id,)
                ).fetchone()
            except sqlite3.Error as exc:
                raise ReportStoreError(f"Failed to read report {handoff_id!r}: {exc}") from exc
        if row is None:
            raise ReportNotFoundError(handoff_id)
        return self._decode(str(row["payload"]))

    def list_recent(self, limit: int = 10) -> list[ReportSummary]:
        if limit <= 0:
            return []
        with closing(self._get_connection()) as conn:
            try:
                rows = conn.execute(
                    "SELECT payload FROM handoff_reports "
                    "ORDER BY created_at DESC, seq DESC LIMIT ?",
                    (limit,),
                ).fetchall()
            except sqlite3.Error as exc:
                raise ReportStoreError(f"Failed to list reports: {exc}") from exc
        return [self._decode(str(row["payload"])).summary() for row in rows]

    def exists(self, handoff_id: str) -> bool:
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                "SELECT 1 FROM handoff_reports WHERE handoff_id = ?", (handoff_id,)
            ).fetchone()
        return row is not None

    def __len__(self) -> int:
        with closing(self._get_connection()) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM handoff_reports").fetchone()
        return int(row["n"])

    def __repr__(self) -> str:
        return f"SQLiteReportStore(db_path={str(self._db_path)!r})"
