"""Context usage monitoring.

Public surface
--------------
- ContextMonitor       - per-session usage tracker and trigger policy
- ContextMetrics       - usage snapshot
- HandoffTrigger       - detected threshold crossing
- TriggerType          - trigger category enum
- Urgency              - trigger urgency enum, ordered by severity
- recommendations_for  - advice lines for a trigger
"""
from __future__ import annotations

from agent_session_handoff.monitor.context_monitor import ContextMonitor, recommendations_for
from agent_session_handoff.monitor.metrics import (
    ContextMetrics,
    HandoffTrigger,
    TriggerType,
    Urgency,
)

__all__ = [
    "ContextMetrics",
    "ContextMonitor",
    "HandoffTrigger",
    "TriggerType",
    "Urgency",
    "recommendations_for",
]
