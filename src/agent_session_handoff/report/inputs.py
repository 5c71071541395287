"""Input normalisation boundary for report aggregation.

This is the only place where raw caller or collaborator data is validated
and where missing or malformed sections are replaced by defaults.  Every
substitution is logged and recorded in ``NormalizedInputs.degraded``, which
the aggregator copies onto the report as ``degraded_sections``.

Rules
-----
- ``None`` for a section -> default value, section marked degraded.
- A section of the wrong shape -> default value, section marked degraded.
- A list with some malformed items (the conversation history, or the
  ledger and insight lists inside project and wisdom state) -> malformed
  items dropped, section marked degraded, valid items kept.  An unparseable
  ledger expiration becomes ``None``.
- Already-validated model instances pass through unchanged.

Classes / functions
-------------------
- NormalizedInputs  - validated inputs plus the degraded section names
- normalize_inputs  - build ``NormalizedInputs`` from raw values
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from agent_session_handoff.conversation import ConversationMessage
from agent_session_handoff.report.records import (
    ProjectState,
    TechnicalSnapshot,
    UserPreferences,
    WisdomState,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

PROJECT_STATE = "project_state"
WISDOM_STATE = "wisdom_state"
CONVERSATION_HISTORY = "conversation_history"
USER_PREFERENCES = "user_preferences"
TECHNICAL_STATE = "technical_state"


@dataclass
class NormalizedInputs:
    """Validated aggregation inputs.

    Parameters
    ----------
    project:
        Ledger snapshot.
    wisdom:
        Wisdom-memory snapshot.
    messages:
        Conversation messages, oldest first.
    preferences:
        User preferences.
    technical:
        Health pass-through.
    degraded:
        Section names that were substituted, in input order.
    """

    project: ProjectState = field(default_factory=ProjectState)
    wisdom: WisdomState = field(default_factory=WisdomState)
    messages: list[ConversationMessage] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    technical: TechnicalSnapshot = field(default_factory=TechnicalSnapshot)
    degraded: list[str] = field(default_factory=list)

    def mark_degraded(self, section: str) -> None:
        if section not in self.degraded:
            self.degraded.append(section)


def normalize_inputs(
    project_state: Any = None,
    wisdom_state: Any = None,
    conversation_history: Any = None,
    user_preferences: Any = None,
    technical_state: Any = None,
) -> NormalizedInputs:
    """Validate raw aggregation inputs, substituting defaults where needed.

    Never raises for bad input; see the module docstring for the rules.

    Returns
    -------
    NormalizedInputs
    """
    result = NormalizedInputs()

    project = _coerce_model(ProjectState, project_state, PROJECT_STATE, result)
    if project is not None:
        result.project = project

    wisdom = _coerce_model(WisdomState, wisdom_state, WISDOM_STATE, result)
    if wisdom is not None:
        result.wisdom = wisdom

    messages, clean = _coerce_messages(conversation_history)
    result.messages = messages
    if not clean:
        result.mark_degraded(CONVERSATION_HISTORY)

    preferences = _coerce_model(UserPreferences, user_preferences, USER_PREFERENCES, result)
    if preferences is not None:
        result.preferences = preferences

    technical = _coerce_model(TechnicalSnapshot, technical_state, TECHNICAL_STATE, result)
    if technical is not None:
        result.technical = technical

    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _coerce_model(
    model: type[ModelT],
    raw: Any,
    section: str,
    result: NormalizedInputs,
) -> ModelT | None:
    """Return ``raw`` validated as ``model`` or None when it must be defaulted.

    Marks ``section`` degraded on ``result`` when it is defaulted or when
    malformed list items were dropped from it.
    """
    if isinstance(raw, model):
        return raw
    if raw is None:
        logger.debug("normalize_inputs: %s missing, using defaults", section)
        result.mark_degraded(section)
        return None
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        logger.warning(
            "normalize_inputs: %s has unexpected type %s, using defaults",
            section,
            type(raw).__name__,
        )
        result.mark_degraded(section)
        return None

    context: dict[str, list[str]] = {}
    try:
        validated = model.model_validate(raw, context=context)
    except ValidationError as exc:
        logger.warning("normalize_inputs: %s is malformed, using defaults: %s", section, exc)
        result.mark_degraded(section)
        return None
    if context.get("dropped"):
        logger.warning(
            "normalize_inputs: %s had malformed items in %s, dropped them",
            section,
            ", ".join(context["dropped"]),
        )
        result.mark_degraded(section)
    return validated


def _coerce_messages(raw: Any) -> tuple[list[ConversationMessage], bool]:
    """Validate a message list item by item.

    Returns
    -------
    tuple[list[ConversationMessage], bool]
        The valid messages and whether the input was clean.
    """
    if raw is None:
        logger.debug("normalize_inputs: conversation history missing")
        return [], False
    if isinstance(raw, (str, bytes, dict)) or not isinstance(raw, Iterable):
        logger.warning(
            "normalize_inputs: conversation history has unexpected type %s",
            type(raw).__name__,
        )
        return [], False

    messages: list[ConversationMessage] = []
    dropped = 0
    for item in raw:
        if isinstance(item, ConversationMessage):
            messages.append(item)
            continue
        try:
            messages.append(ConversationMessage.model_validate(item))
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("normalize_inputs: dropped %d malformed conversation messages", dropped)
    return messages, dropped == 0
