"""Handoff engine settings.

All thresholds, caps and timeouts used by the engine live on a single
validated ``HandoffSettings`` model.  Every field has a documented default,
so constructing ``HandoffSettings()`` with no arguments yields the standard
policy.  Deployments may override values from a YAML file via
``load_settings``.

Example YAML
------------
::

    handoff:
      max_tokens: 200000
      context_critical: 0.9
      source_timeout_seconds: 2.5

Classes / functions
-------------------
- HandoffSettings  - pydantic model holding every tunable value
- load_settings    - read settings from a YAML (or JSON) file
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from agent_session_handoff.errors import ConfigurationError

_SETTINGS_SECTION = "handoff"


class HandoffSettings(BaseModel):
    """Configuration parameters for the handoff engine.

    Parameters
    ----------
    max_tokens:
        Context budget used for new session monitors.  Default: 128000.
    context_warning:
        Fill ratio at which a *planned* handoff is suggested.  Default: 0.80.
    context_critical:
        Fill ratio at which a handoff should happen *soon*.  Default: 0.85.
    context_emergency:
        Fill ratio that forces an *immediate* handoff.  Default: 0.95.
    session_duration_max_ms:
        Session age in milliseconds after which a fresh context is
        recommended.  Default: 3,600,000 (one hour).
    conversation_length_max:
        Message count after which a planned handoff is suggested.
        Default: 100.
    summary_window:
        Number of trailing messages fed to the conversation summary.
    topic_window:
        Number of trailing messages searched for the current topic.
    extraction_window:
        Number of trailing messages scanned for questions, commitments and
        next-step requests.
    theme_window:
        Number of trailing messages scanned for conversation themes.
    message_char_budget:
        Each message is truncated to this many characters before being
        concatenated into the summary.
    summary_char_cap:
        Hard upper bound on the length of the summary string.
    topic_char_cap:
        Truncation length for the current topic text.
    request_char_cap:
        Truncation length for the last user request.
    source_timeout_seconds:
        Timeout applied to each external collaborator call.
    reset_delay_seconds:
        Delay after which a completed handoff returns to monitoring.
    max_reports:
        Retention cap for the in-memory report store (ring buffer).
    knowledge_base_location:
        Human-readable location of the knowledge-retrieval service, quoted
        in onboarding prompts.
    """

    max_tokens: int = Field(default=128_000, gt=0)
    context_warning: float = Field(default=0.80, gt=0.0, le=1.0)
    context_critical: float = Field(default=0.85, gt=0.0, le=1.0)
    context_emergency: float = Field(default=0.95, gt=0.0, le=1.0)
    session_duration_max_ms: int = Field(default=3_600_000, gt=0)
    conversation_length_max: int = Field(default=100, gt=0)

    summary_window: int = Field(default=10, ge=1)
    topic_window: int = Field(default=5, ge=1)
    extraction_window: int = Field(default=5, ge=1)
    theme_window: int = Field(default=20, ge=1)
    message_char_budget: int = Field(default=80, ge=1)
    summary_char_cap: int = Field(default=500, ge=20)
    topic_char_cap: int = Field(default=100, ge=1)
    request_char_cap: int = Field(default=200, ge=1)

    source_timeout_seconds: float = Field(default=5.0, gt=0.0)
    reset_delay_seconds: float = Field(default=3.0, ge=0.0)
    max_reports: int = Field(default=1000, ge=1)
    knowledge_base_location: str = "the knowledge-base search service"

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "HandoffSettings":
        if not (self.context_warning <= self.context_critical <= self.context_emergency):
            raise ValueError(
                "context thresholds must satisfy warning <= critical <= emergency, "
                f"got {self.context_warning!r}, {self.context_critical!r}, "
                f"{self.context_emergency!r}."
            )
        return self


def load_settings(path: str | Path | None = None) -> HandoffSettings:
    """Load ``HandoffSettings`` from a YAML file.

    The file may hold the settings at top level or nested under a
    ``handoff:`` key.  JSON files are accepted too since JSON is a subset
    of YAML.

    Parameters
    ----------
    path:
        File to read.  ``None`` or a non-existent path yields the defaults.

    Returns
    -------
    HandoffSettings

    Raises
    ------
    ConfigurationError
        If the file cannot be parsed or contains invalid values.
    """
    if path is None:
        return HandoffSettings()
    settings_path = Path(path)
    if not settings_path.exists():
        return HandoffSettings()

    try:
        data = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse settings file {settings_path}: {exc}") from exc

    if data is None:
        return HandoffSettings()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file {settings_path} must contain a mapping, got {type(data).__name__}."
        )
    if isinstance(data.get(_SETTINGS_SECTION), dict):
        data = data[_SETTINGS_SECTION]

    try:
        return HandoffSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings in {settings_path}: {exc}") from exc
