"""Handoff report models and aggregation.

Public surface
--------------
- HandoffReport       - complete immutable report
- ReportSummary       - recent-listing projection
- SnapshotAggregator  - builds reports from session state
- StateCollector      - concurrent collaborator reads with timeouts
- normalize_inputs    - default-substitution boundary
"""
from __future__ import annotations

from agent_session_handoff.report.aggregator import DEFAULT_PHASE, SnapshotAggregator
from agent_session_handoff.report.collector import CollectedState, StateCollector
from agent_session_handoff.report.inputs import NormalizedInputs, normalize_inputs
from agent_session_handoff.report.models import (
    CognitivePatterns,
    ConversationSummary,
    ExecutiveSummary,
    HandoffReport,
    ProjectContext,
    ReportSummary,
    TechnicalState,
    TransitionNotes,
    UserProfile,
    WisdomInsights,
)
from agent_session_handoff.report.records import (
    LedgerEntry,
    Mission,
    ProjectState,
    TechnicalSnapshot,
    UserPreferences,
    WisdomInsight,
    WisdomState,
)

__all__ = [
    "DEFAULT_PHASE",
    "CognitivePatterns",
    "CollectedState",
    "ConversationSummary",
    "ExecutiveSummary",
    "HandoffReport",
    "LedgerEntry",
    "Mission",
    "NormalizedInputs",
    "ProjectContext",
    "ProjectState",
    "ReportSummary",
    "SnapshotAggregator",
    "StateCollector",
    "TechnicalSnapshot",
    "TechnicalState",
    "TransitionNotes",
    "UserPreferences",
    "UserProfile",
    "WisdomInsight",
    "WisdomInsights",
    "WisdomState",
    "normalize_inputs",
]
