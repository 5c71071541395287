"""Per-session handoff lifecycle."""
from __future__ import annotations

from agent_session_handoff.lifecycle.state_machine import (
    HandoffLifecycle,
    HandoffStage,
    LifecycleStatus,
)

__all__ = ["HandoffLifecycle", "HandoffStage", "LifecycleStatus"]
