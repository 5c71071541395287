"""Report stores.

Public surface
--------------
- ReportStore          - abstract append-only store
- InMemoryReportStore  - bounded ring buffer
- SQLiteReportStore    - file-backed store used by the CLI
"""
from __future__ import annotations

from agent_session_handoff.storage.base import ReportStore
from agent_session_handoff.storage.memory import InMemoryReportStore
from agent_session_handoff.storage.sqlite import SQLiteReportStore

__all__ = [
    "InMemoryReportStore",
    "ReportStore",
    "SQLiteReportStore",
]
