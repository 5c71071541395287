"""Exception hierarchy for agent-session-handoff.

Every error raised deliberately by this package derives from
``HandoffError`` so callers can catch the whole family in one clause.
Not-found outcomes also derive from ``KeyError`` to keep mapping-style
``except KeyError`` handlers working.

Classes
-------
- HandoffError            - base class
- ReportNotFoundError     - a handoff id is not present in the store
- DuplicateReportError    - an append-only store received a known id
- ReportStoreError        - the store itself failed (I/O, corruption)
- IllegalTransitionError  - a lifecycle transition is not permitted
- ConfigurationError      - settings could not be loaded or validated
- SessionNotTrackedError  - the engine has no state for a session id
"""
from __future__ import annotations


class HandoffError(Exception):
    """Base class for all agent-session-handoff errors."""


class ReportNotFoundError(HandoffError, KeyError):
    """Raised when a requested handoff report does not exist."""

    def __init__(self, handoff_id: str) -> None:
        self.handoff_id = handoff_id
        super().__init__(f"Handoff report {handoff_id!r} not found.")

    def __str__(self) -> str:
        # KeyError.__str__ would wrap the message in quotes.
        return str(self.args[0])


class DuplicateReportError(HandoffError):
    """Raised when a report id is stored twice."""

    def __init__(self, handoff_id: str) -> None:
        self.handoff_id = handoff_id
        super().__init__(
            f"Handoff report {handoff_id!r} already stored; reports are append-only."
        )


class ReportStoreError(HandoffError):
    """Raised when the report store cannot complete an operation."""


class IllegalTransitionError(HandoffError):
    """Raised when a lifecycle transition is not allowed from the current stage."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Illegal handoff transition {current!r} -> {target!r}."
        )


class ConfigurationError(HandoffError, ValueError):
    """Raised when handoff settings are invalid or unreadable."""


class SessionNotTrackedError(HandoffError, KeyError):
    """Raised when the engine is asked about a session it has never seen."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id!r} is not tracked by this engine.")

    def __str__(self) -> str:
        return str(self.args[0])
