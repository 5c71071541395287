"""In-memory report store.

Keeps reports in a bounded ring buffer.  When the buffer is full the oldest
stored report is evicted and can no longer be fetched.  All data is lost
when the process exits.  Reports are deep-copied on ``put`` and ``get``, so
callers never hold the stored instance.

Classes
-------
- InMemoryReportStore  - deque-backed ephemeral store
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque

from agent_session_handoff.errors import DuplicateReportError, ReportNotFoundError
from agent_session_handoff.report.models import HandoffReport, ReportSummary
from agent_session_handoff.storage.base import ReportStore

logger = logging.getLogger(__name__)


class InMemoryReportStore(ReportStore):
    """Ephemeral, in-process report store with bounded retention.

    Parameters
    ----------
    max_reports:
        Maximum number of reports retained.  Default: 1000.
    """

    def __init__(self, max_reports: int = 1000) -> None:
        if max_reports < 1:
            raise ValueError(f"max_reports must be >= 1, got {max_reports!r}.")
        self._max_reports = max_reports
        self._buffer: deque[tuple[int, HandoffReport]] = deque()
        self._index: dict[str, tuple[int, HandoffReport]] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # ReportStore interface
    # ------------------------------------------------------------------

    def put(self, report: HandoffReport) -> str:
        with self._lock:
            if report.id in self._index:
                raise DuplicateReportError(report.id)
            if len(self._buffer) >= self._max_reports:
                _, evicted = self._buffer.popleft()
                del self._index[evicted.id]
                logger.debug("InMemoryReportStore: evicted report %r", evicted.id)
            entry = (next(self._counter), report.model_copy(deep=True))
            self._buffer.append(entry)
            self._index[report.id] = entry
        logger.debug("InMemoryReportStore: stored report %r", report.id)
        return report.id

    def get(self, handoff_id: str) -> HandoffReport:
        with self._lock:
            entry = self._index.get(handoff_id)
        if entry is None:
            raise ReportNotFoundError(handoff_id)
        return entry[1].model_copy(deep=True)

    def list_recent(self, limit: int = 10) -> list[ReportSummary]:
        if limit <= 0:
            return []
        with self._lock:
            entries = list(self._buffer)
        entries.sort(key=lambda e: (e[1].timestamp, e[0]), reverse=True)
        return [report.summary() for _, report in entries[:limit]]

    def exists(self, handoff_id: str) -> bool:
        with self._lock:
            return handoff_id in self._index

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def max_reports(self) -> int:
        return self._max_reports

    def clear(self) -> None:
        """Remove all stored reports."""
        with self._lock:
            self._buffer.clear()
            self._index.clear()

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        return f"InMemoryReportStore(reports={len(self._buffer)}, max_reports={self._max_reports})"
