"""Context usage monitoring with threshold-based handoff triggers.

One ``ContextMonitor`` tracks a single session.  Callers feed it usage
samples via ``update()`` and ask ``evaluate_trigger()`` whether a handoff
should begin.  Both operations are synchronous and side-effect free beyond
the monitor's own metric state.

Classes / functions
-------------------
- ContextMonitor       - per-session usage tracker and trigger policy
- recommendations_for  - advice lines for a trigger's urgency
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from agent_session_handoff.config import HandoffSettings
from agent_session_handoff.monitor.metrics import (
    ContextMetrics,
    HandoffTrigger,
    TriggerType,
    Urgency,
)

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def _to_epoch_ms(value: float | int | datetime) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000.0
    return float(value)


class ContextMonitor:
    """Track context usage for one session and evaluate the trigger policy.

    The policy is evaluated in strict priority order and the first match
    wins:

    1. fill >= ``context_emergency``  -> context_limit / immediate / notify
    2. fill >= ``context_critical``   -> context_limit / soon / notify
    3. fill >= ``context_warning``    -> context_limit / planned / silent
    4. duration >= ``session_duration_max_ms`` -> session_length / soon / notify
    5. messages >= ``conversation_length_max`` -> session_length / planned / silent

    Parameters
    ----------
    settings:
        Thresholds and default ``max_tokens``.  Defaults to
        ``HandoffSettings()``.
    max_tokens:
        Override the context budget for this session only.
    clock:
        Callable returning the current time in epoch milliseconds.  Tests
        inject a fixed clock to make session durations deterministic.
    """

    def __init__(
        self,
        settings: HandoffSettings | None = None,
        max_tokens: int | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._settings = settings or HandoffSettings()
        self._clock = clock or _now_ms
        budget = max_tokens if max_tokens is not None else self._settings.max_tokens
        if budget < 1:
            raise ValueError(f"max_tokens must be >= 1, got {budget!r}.")
        self._metrics = ContextMetrics(max_tokens=budget)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def metrics(self) -> ContextMetrics:
        """The most recent metrics snapshot (immutable)."""
        return self._metrics

    @property
    def settings(self) -> HandoffSettings:
        return self._settings

    def update(
        self,
        token_usage: int,
        conversation_length: int,
        session_start: float | int | datetime,
    ) -> ContextMetrics:
        """Record a usage sample and return the resulting metrics.

        Parameters
        ----------
        token_usage:
            Tokens consumed so far.  Must be non-negative; fractional
            values are truncated.
        conversation_length:
            Messages exchanged so far.  Must be non-negative; fractional
            values are truncated.
        session_start:
            When the session began, as epoch milliseconds or a datetime.
            A start time in the future yields a duration of zero.

        Returns
        -------
        ContextMetrics

        Raises
        ------
        ValueError
            If ``token_usage`` or ``conversation_length`` is negative or not
            a number.
        """
        try:
            token_usage = int(token_usage)
            conversation_length = int(conversation_length)
        except (TypeError, OverflowError) as exc:
            raise ValueError(f"usage values must be numbers: {exc}") from exc
        if token_usage < 0:
            raise ValueError(f"token_usage must be >= 0, got {token_usage!r}.")
        if conversation_length < 0:
            raise ValueError(
                f"conversation_length must be >= 0, got {conversation_length!r}."
            )

        duration = max(0, int(self._clock() - _to_epoch_ms(session_start)))
        self._metrics = ContextMetrics(
            token_usage=token_usage,
            max_tokens=self._metrics.max_tokens,
            conversation_length=conversation_length,
            session_duration=duration,
        )
        return self._metrics

    def evaluate_trigger(self) -> HandoffTrigger | None:
        """Apply the trigger policy to the current metrics.

        Returns
        -------
        HandoffTrigger | None
            The first matching trigger, or None when no threshold is crossed.
        """
        cfg = self._settings
        metrics = self._metrics
        fill = metrics.fill_percentage

        trigger: HandoffTrigger | None = None
        if fill >= cfg.context_emergency:
            trigger = HandoffTrigger(
                trigger_type=TriggerType.CONTEXT_LIMIT,
                threshold_reached=fill,
                urgency=Urgency.IMMEDIATE,
                notification_required=True,
            )
        elif fill >= cfg.context_critical:
            trigger = HandoffTrigger(
                trigger_type=TriggerType.CONTEXT_LIMIT,
                threshold_reached=fill,
                urgency=Urgency.SOON,
                notification_required=True,
            )
        elif fill >= cfg.context_warning:
            trigger = HandoffTrigger(
                trigger_type=TriggerType.CONTEXT_LIMIT,
                threshold_reached=fill,
                urgency=Urgency.PLANNED,
                notification_required=False,
            )
        elif metrics.session_duration >= cfg.session_duration_max_ms:
            trigger = HandoffTrigger(
                trigger_type=TriggerType.SESSION_LENGTH,
                threshold_reached=metrics.session_duration / cfg.session_duration_max_ms,
                urgency=Urgency.SOON,
                notification_required=True,
            )
        elif metrics.conversation_length >= cfg.conversation_length_max:
            trigger = HandoffTrigger(
                trigger_type=TriggerType.SESSION_LENGTH,
                threshold_reached=metrics.conversation_length / cfg.conversation_length_max,
                urgency=Urgency.PLANNED,
                notification_required=False,
            )

        if trigger is not None:
            logger.debug(
                "ContextMonitor: %s trigger (%s) at %.3f",
                trigger.trigger_type.value,
                trigger.urgency.value,
                trigger.threshold_reached,
            )
        return trigger

    def reset(self) -> None:
        """Clear usage metrics while keeping the session's context budget."""
        self._metrics = ContextMetrics(max_tokens=self._metrics.max_tokens)

    def __repr__(self) -> str:
        return (
            f"ContextMonitor("
            f"tokens={self._metrics.token_usage}/{self._metrics.max_tokens}, "
            f"fill={self._metrics.fill_label()})"
        )


_RECOMMENDATIONS: dict[Urgency, tuple[str, ...]] = {
    Urgency.IMMEDIATE: (
        "Immediate handoff required - context limit critically reached",
        "Prepare handoff report now to maintain conversation continuity",
        "Notify user of seamless transition in progress",
    ),
    Urgency.SOON: (
        "Handoff should happen soon - prepare transition",
        "Begin generating comprehensive handoff report",
        "Consider natural conversation breakpoint for handoff",
    ),
    Urgency.PLANNED: (
        "Plan handoff for optimal user experience",
        "Monitor for natural transition opportunity",
        "Begin light preparation for context transfer",
    ),
}


def recommendations_for(trigger: HandoffTrigger | None) -> list[str]:
    """Return operator advice for ``trigger``; empty when there is no trigger."""
    if trigger is None:
        return []
    return list(_RECOMMENDATIONS[trigger.urgency])
