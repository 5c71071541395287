"""Records describing the external state a handoff report is built from.

These models mirror what the collaborators (project ledger, wisdom memory,
technical health, user settings) hand over.  They are deliberately lenient:
alternate key names are accepted, enum-like strings are lower-cased, and
unknown preference values fall back to the documented defaults instead of
failing validation.

Classes
-------
- Mission, LedgerEntry, ProjectState        - project ledger snapshot
- WisdomInsight, WisdomState                - wisdom memory snapshot
- TechnicalSnapshot                         - opaque health pass-through
- CommunicationStyle, DetailLevel, LearningPace,
  AttentionSpan, InformationProcessing      - preference enums
- UserPreferences                           - flat preference record
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)

_CONTENT_KEYS: tuple[str, ...] = ("content", "text", "title", "statement")


def _lift_content(data: object) -> object:
    """Copy the first available text-like key into ``content``."""
    if isinstance(data, str):
        return {"content": data}
    if isinstance(data, dict) and "content" not in data:
        for key in _CONTENT_KEYS[1:]:
            if key in data:
                return {**data, "content": data[key]}
    return data


def _keep_valid_items(
    value: object,
    handler: ValidatorFunctionWrapHandler,
    info: ValidationInfo,
) -> list[Any]:
    """Validate list items one at a time, dropping those that fail.

    Dropped field names are appended to ``info.context["dropped"]`` when the
    caller passes a validation context.
    """
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else None
    kept: list[Any] = []
    dropped = items is None
    for item in items or ():
        try:
            kept.extend(handler([item]))
        except ValidationError:
            dropped = True
    if dropped and isinstance(info.context, dict):
        info.context.setdefault("dropped", []).append(info.field_name)
    return kept


# ---------------------------------------------------------------------------
# Project ledger
# ---------------------------------------------------------------------------


class Mission(BaseModel):
    """The project's mission statement."""

    model_config = {"frozen": True, "extra": "allow"}

    content: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: object) -> object:
        return _lift_content(data)

    @field_validator("content", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> str:
        return "" if value is None else str(value)


class LedgerEntry(BaseModel):
    """A ledger item: a pillar, epic, saga, probe, or plain entry.

    Parameters
    ----------
    entry_id:
        Identifier in the ledger (``id`` is accepted on input).
    content:
        Item text (``text`` or ``title`` are accepted on input).
    status:
        Lower-cased status such as ``"active"`` or ``"blocked"``.
    priority:
        Lower-cased priority such as ``"critical"``, ``"high"``, ``"medium"``.
    entry_type:
        Ledger category, if the ledger supplies one.
    expiration:
        Optional expiry; used to filter out stale probes.
    """

    model_config = {"frozen": True, "extra": "allow"}

    entry_id: str = ""
    content: str = ""
    status: str = ""
    priority: str = ""
    entry_type: str = ""
    expiration: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: object) -> object:
        data = _lift_content(data)
        if isinstance(data, dict):
            if "entry_id" not in data and "id" in data:
                data = {**data, "entry_id": data["id"]}
            if "entry_type" not in data and "type" in data:
                data = {**data, "entry_type": data["type"]}
        return data

    @field_validator("entry_id", "content", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("status", "priority", "entry_type", mode="before")
    @classmethod
    def _lower(cls, value: object) -> str:
        return "" if value is None else str(value).strip().lower()

    @field_validator("expiration", mode="wrap")
    @classmethod
    def _unparseable_means_none(
        cls, value: object, handler: ValidatorFunctionWrapHandler
    ) -> datetime | None:
        try:
            return handler(value)
        except ValidationError:
            return None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True when ``expiration`` lies in the past."""
        if self.expiration is None:
            return False
        current = now or datetime.now(timezone.utc)
        expiration = self.expiration
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        return expiration < current


class ProjectState(BaseModel):
    """Snapshot of the project ledger."""

    model_config = {"frozen": True}

    mission: Mission | None = None
    pillars: list[LedgerEntry] = Field(default_factory=list)
    epics: list[LedgerEntry] = Field(default_factory=list)
    sagas: list[LedgerEntry] = Field(default_factory=list)
    entries: list[LedgerEntry] = Field(default_factory=list)
    probes: list[LedgerEntry] = Field(default_factory=list)

    @field_validator("pillars", "epics", "sagas", "entries", "probes", mode="wrap")
    @classmethod
    def _drop_malformed_entries(
        cls, value: object, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> list[LedgerEntry]:
        return _keep_valid_items(value, handler, info)


# ---------------------------------------------------------------------------
# Wisdom memory
# ---------------------------------------------------------------------------


class WisdomInsight(BaseModel):
    """One insight record kept by the wisdom-memory collaborator."""

    model_config = {"frozen": True, "extra": "allow"}

    text: str = ""
    relevance_score: float = 0.0
    triggers: list[str] = Field(default_factory=list)
    usage: int = 0


class WisdomState(BaseModel):
    """Snapshot of wisdom memory."""

    model_config = {"frozen": True}

    patterns: list[Any] = Field(default_factory=list)
    successful_interactions: list[Any] = Field(default_factory=list)
    learning_preferences: list[Any] = Field(default_factory=list)
    effective_strategies: list[Any] = Field(default_factory=list)
    trigger_contexts: dict[str, Any] = Field(default_factory=dict)
    insights: list[WisdomInsight] = Field(default_factory=list)

    @field_validator("insights", mode="wrap")
    @classmethod
    def _drop_malformed_insights(
        cls, value: object, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> list[WisdomInsight]:
        return _keep_valid_items(value, handler, info)


# ---------------------------------------------------------------------------
# Technical health
# ---------------------------------------------------------------------------


class TechnicalSnapshot(BaseModel):
    """Opaque health, error and performance data from the system monitor."""

    model_config = {"frozen": True}

    system_health: dict[str, Any] = Field(default_factory=dict)
    recent_errors: list[Any] = Field(default_factory=list)
    performance_metrics: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# User preferences
# ---------------------------------------------------------------------------


class CommunicationStyle(str, Enum):
    VISUAL = "visual"
    TEXT = "text"
    VOICE = "voice"
    MIXED = "mixed"


class DetailLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LearningPace(str, Enum):
    FAST = "fast"
    MODERATE = "moderate"
    SLOW = "slow"


class AttentionSpan(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class InformationProcessing(str, Enum):
    SEQUENTIAL = "sequential"
    SIMULTANEOUS = "simultaneous"
    MIXED = "mixed"


_PREFERENCE_DEFAULTS: dict[str, Enum] = {
    "communication_style": CommunicationStyle.MIXED,
    "detail_level": DetailLevel.MEDIUM,
    "learning_pace": LearningPace.MODERATE,
    "attention_span": AttentionSpan.MEDIUM,
    "information_processing": InformationProcessing.MIXED,
}


class UserPreferences(BaseModel):
    """Flat user preference record as stored by the user-settings service.

    Unknown values for the enum fields fall back to the field default rather
    than failing, and ``None`` booleans fall back to True.
    """

    model_config = {"frozen": True}

    communication_style: CommunicationStyle = CommunicationStyle.MIXED
    detail_level: DetailLevel = DetailLevel.MEDIUM
    learning_pace: LearningPace = LearningPace.MODERATE
    accessibility_needs: list[str] = Field(default_factory=list)
    preferred_feedback: list[str] = Field(default_factory=list)
    attention_span: AttentionSpan = AttentionSpan.MEDIUM
    information_processing: InformationProcessing = InformationProcessing.MIXED
    working_memory_support: bool = True
    visual_processing_preference: bool = True

    @model_validator(mode="before")
    @classmethod
    def _flatten_cognitive_patterns(cls, data: object) -> object:
        if isinstance(data, dict) and isinstance(data.get("cognitive_patterns"), dict):
            nested = data["cognitive_patterns"]
            data = {k: v for k, v in data.items() if k != "cognitive_patterns"}
            for key, value in nested.items():
                data.setdefault(key, value)
        return data

    @field_validator(*_PREFERENCE_DEFAULTS, mode="before")
    @classmethod
    def _default_unknown(cls, value: object, info: ValidationInfo) -> object:
        default = _PREFERENCE_DEFAULTS[info.field_name]
        if value is None:
            return default
        candidate = str(getattr(value, "value", value)).strip().lower()
        allowed = {member.value for member in type(default)}
        return candidate if candidate in allowed else default

    @field_validator("working_memory_support", "visual_processing_preference", mode="before")
    @classmethod
    def _default_true(cls, value: object) -> object:
        return True if value is None else value

    @field_validator("accessibility_needs", "preferred_feedback", mode="before")
    @classmethod
    def _listify(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value
