"""Context usage metrics and handoff trigger models.

Classes
-------
- TriggerType     - why a handoff was signalled
- Urgency         - how soon the handoff must happen (ordered by severity)
- ContextMetrics  - usage snapshot for one session
- HandoffTrigger  - a detected threshold crossing
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class TriggerType(str, Enum):
    """Reason category for a handoff trigger."""

    CONTEXT_LIMIT = "context_limit"
    SESSION_LENGTH = "session_length"
    USER_REQUEST = "user_request"
    SYSTEM_OPTIMIZATION = "system_optimization"


_URGENCY_RANK: dict[str, int] = {"planned": 0, "soon": 1, "immediate": 2}


class Urgency(str, Enum):
    """Handoff urgency.  Compares by severity: ``IMMEDIATE > SOON > PLANNED``."""

    IMMEDIATE = "immediate"
    SOON = "soon"
    PLANNED = "planned"

    @property
    def rank(self) -> int:
        """Integer severity; higher is more urgent."""
        return _URGENCY_RANK[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Urgency):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Urgency):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Urgency):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Urgency):
            return NotImplemented
        return self.rank >= other.rank


class ContextMetrics(BaseModel):
    """Snapshot of how much of a session's context budget is consumed.

    Parameters
    ----------
    token_usage:
        Tokens consumed so far, as reported by the caller.
    max_tokens:
        Total context budget.  Default: 128000.
    conversation_length:
        Number of messages exchanged in the session.
    session_duration:
        Milliseconds elapsed since the session started.
    """

    model_config = {"frozen": True}

    token_usage: int = Field(default=0, ge=0)
    max_tokens: int = Field(default=128_000, gt=0)
    conversation_length: int = Field(default=0, ge=0)
    session_duration: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fill_percentage(self) -> float:
        """Ratio of consumed budget; not clamped, so over-budget exceeds 1.0."""
        return self.token_usage / self.max_tokens

    def fill_label(self) -> str:
        """Return the fill ratio as a percentage string, e.g. ``"75.0%"``."""
        return f"{self.fill_percentage * 100:.1f}%"


class HandoffTrigger(BaseModel):
    """A detected condition signalling that a handoff should begin.

    Parameters
    ----------
    trigger_type:
        Category of the crossing.
    threshold_reached:
        Ratio that crossed the threshold: the fill ratio for context limits,
        or actual / cap for session length triggers.
    urgency:
        How soon the handoff must happen.
    notification_required:
        Whether the user should be told a transition is coming.
    """

    model_config = {"frozen": True}

    trigger_type: TriggerType
    threshold_reached: float
    urgency: Urgency
    notification_required: bool

    @property
    def starts_preparation(self) -> bool:
        """True when the trigger is urgent enough to begin preparing a handoff."""
        return self.urgency >= Urgency.SOON
