"""Handoff lifecycle state machine.

One ``HandoffLifecycle`` exists per session.  Stages advance strictly in
order::

    monitoring -> preparing -> generating -> ready -> transitioning -> complete
        ^                                                                 |
        +-----------------------------------------------------------------+

``complete`` returns to ``monitoring`` by itself once the reset delay has
elapsed.  The check happens lazily whenever the lifecycle is read, against an
injectable monotonic clock, so no timer threads are involved.  ``fail()``
returns any stage to ``monitoring``.

Classes
-------
- HandoffStage      - lifecycle stages
- LifecycleStatus   - immutable snapshot of a lifecycle
- HandoffLifecycle  - the state machine
"""
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from agent_session_handoff.errors import IllegalTransitionError
from agent_session_handoff.monitor.metrics import HandoffTrigger

logger = logging.getLogger(__name__)


class HandoffStage(str, Enum):
    """Stages of a handoff."""

    MONITORING = "monitoring"
    PREPARING = "preparing"
    GENERATING = "generating"
    READY = "ready"
    TRANSITIONING = "transitioning"
    COMPLETE = "complete"


_ALLOWED: dict[HandoffStage, HandoffStage] = {
    HandoffStage.MONITORING: HandoffStage.PREPARING,
    HandoffStage.PREPARING: HandoffStage.GENERATING,
    HandoffStage.GENERATING: HandoffStage.READY,
    HandoffStage.READY: HandoffStage.TRANSITIONING,
    HandoffStage.TRANSITIONING: HandoffStage.COMPLETE,
    HandoffStage.COMPLETE: HandoffStage.MONITORING,
}

PROGRESS_PREPARING = 10
PROGRESS_COLLECTED = 30
PROGRESS_GENERATING = 60
PROGRESS_DONE = 100


class LifecycleStatus(BaseModel):
    """Point-in-time view of a session's handoff lifecycle."""

    stage: HandoffStage
    progress: int
    handoff_id: str | None = None
    trigger: HandoffTrigger | None = None

    model_config = {"frozen": True}


class HandoffLifecycle:
    """Explicit handoff state machine for one session.

    Parameters
    ----------
    reset_delay_seconds:
        Time spent in ``complete`` before returning to ``monitoring``.
        Default: 3.0.
    clock:
        Monotonic clock in seconds.  Default: ``time.monotonic``.
    """

    def __init__(
        self,
        reset_delay_seconds: float = 3.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if reset_delay_seconds < 0:
            raise ValueError(f"reset_delay_seconds must be >= 0, got {reset_delay_seconds!r}.")
        self._reset_delay = reset_delay_seconds
        self._clock = clock or time.monotonic
        self._lock = threading.RLock()
        self._stage = HandoffStage.MONITORING
        self._progress = 0
        self._handoff_id: str | None = None
        self._trigger: HandoffTrigger | None = None
        self._completed_at: float | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def stage(self) -> HandoffStage:
        with self._lock:
            self._maybe_auto_reset()
            return self._stage

    @property
    def progress(self) -> int:
        with self._lock:
            self._maybe_auto_reset()
            return self._progress

    @property
    def handoff_id(self) -> str | None:
        with self._lock:
            self._maybe_auto_reset()
            return self._handoff_id

    @property
    def trigger(self) -> HandoffTrigger | None:
        with self._lock:
            self._maybe_auto_reset()
            return self._trigger

    def status(self) -> LifecycleStatus:
        """Return an immutable snapshot of the current state."""
        with self._lock:
            self._maybe_auto_reset()
            return LifecycleStatus(
                stage=self._stage,
                progress=self._progress,
                handoff_id=self._handoff_id,
                trigger=self._trigger,
            )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_preparation(self, trigger: HandoffTrigger | None = None) -> None:
        """monitoring -> preparing."""
        with self._lock:
            self._advance(HandoffStage.PREPARING, PROGRESS_PREPARING)
            self._trigger = trigger
            self._handoff_id = None

    def mark_collected(self) -> None:
        """Record that external state has been gathered (stays in preparing)."""
        with self._lock:
            self._maybe_auto_reset()
            if self._stage is not HandoffStage.PREPARING:
                raise IllegalTransitionError(self._stage.value, HandoffStage.PREPARING.value)
            self._progress = PROGRESS_COLLECTED

    def begin_generation(self) -> None:
        """preparing -> generating."""
        with self._lock:
            self._advance(HandoffStage.GENERATING, PROGRESS_GENERATING)

    def mark_ready(self, handoff_id: str) -> None:
        """generating -> ready, remembering the stored report id."""
        with self._lock:
            self._advance(HandoffStage.READY, PROGRESS_DONE)
            self._handoff_id = handoff_id

    def begin_transition(self) -> None:
        """ready -> transitioning."""
        with self._lock:
            self._advance(HandoffStage.TRANSITIONING, PROGRESS_DONE)

    def complete(self) -> None:
        """transitioning -> complete; starts the reset delay."""
        with self._lock:
            self._advance(HandoffStage.COMPLETE, PROGRESS_DONE)
            self._completed_at = self._clock()

    def reset(self) -> None:
        """complete -> monitoring without waiting for the delay.

        A no-op when the lifecycle is already monitoring.
        """
        with self._lock:
            self._maybe_auto_reset()
            if self._stage is HandoffStage.MONITORING:
                return
            self._advance(HandoffStage.MONITORING, 0)
            self._clear()

    def fail(self) -> None:
        """Return to monitoring from any stage, discarding in-flight state."""
        with self._lock:
            if self._stage is not HandoffStage.MONITORING:
                logger.warning(
                    "HandoffLifecycle: handoff failed in stage %r, returning to monitoring",
                    self._stage.value,
                )
            self._stage = HandoffStage.MONITORING
            self._clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _advance(self, target: HandoffStage, progress: int) -> None:
        self._maybe_auto_reset()
        if _ALLOWED[self._stage] is not target:
            raise IllegalTransitionError(self._stage.value, target.value)
        logger.debug("HandoffLifecycle: %s -> %s", self._stage.value, target.value)
        self._stage = target
        self._progress = progress

    def _maybe_auto_reset(self) -> None:
        if self._stage is not HandoffStage.COMPLETE or self._completed_at is None:
            return
        if self._clock() - self._completed_at >= self._reset_delay:
            logger.debug("HandoffLifecycle: reset delay elapsed, returning to monitoring")
            self._stage = HandoffStage.MONITORING
            self._clear()

    def _clear(self) -> None:
        self._progress = 0
        self._handoff_id = None
        self._trigger = None
        self._completed_at = None

    def __repr__(self) -> str:
        return f"HandoffLifecycle(stage={self.stage.value!r}, progress={self.progress})"
