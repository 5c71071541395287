"""Abstract base class for handoff report stores.

Stores are append-only: a report is written once under its id and never
modified.  Reads are idempotent.

Classes
-------
- ReportStore  - abstract base for all report stores
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from agent_session_handoff.report.models import HandoffReport, ReportSummary


class ReportStore(ABC):
    """Protocol for persisting and reading handoff reports.

    Implementations must be safe to call from several threads or tasks at
    once; concurrent ``put`` calls are linearizable.
    """

    @abstractmethod
    def put(self, report: HandoffReport) -> str:
        """Persist ``report`` and return its id.

        Parameters
        ----------
        report:
            The report to store.

        Returns
        -------
        str
            ``report.id``.

        Raises
        ------
        DuplicateReportError
            If a report with the same id is already stored.
        ReportStoreError
            If the underlying storage fails.
        """

    @abstractmethod
    def get(self, handoff_id: str) -> HandoffReport:
        """Return the report stored under ``handoff_id``.

        Raises
        ------
        ReportNotFoundError
            If no report exists for ``handoff_id``.
        """

    @abstractmethod
    def list_recent(self, limit: int = 10) -> list[ReportSummary]:
        """Return summaries of the newest reports.

        Ordered by report timestamp, newest first.  Reports with equal
        timestamps are ordered by most recently stored first.

        Parameters
        ----------
        limit:
            Maximum number of summaries.  Zero or negative yields ``[]``.
        """

    @abstractmethod
    def exists(self, handoff_id: str) -> bool:
        """Return True if a report for ``handoff_id`` is stored."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of reports currently retained."""
