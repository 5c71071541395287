"""agent-session-handoff - Context handoff between conversational agent sessions.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agent_session_handoff
>>> agent_session_handoff.__version__
'0.1.0'
"""
from __future__ import annotations

# Configuration and errors
from agent_session_handoff.config import HandoffSettings, load_settings
from agent_session_handoff.errors import (
    ConfigurationError,
    DuplicateReportError,
    HandoffError,
    IllegalTransitionError,
    ReportNotFoundError,
    ReportStoreError,
    SessionNotTrackedError,
)

# Monitoring
from agent_session_handoff.monitor.context_monitor import ContextMonitor, recommendations_for
from agent_session_handoff.monitor.metrics import ContextMetrics, HandoffTrigger, TriggerType, Urgency

# Conversation and extraction
from agent_session_handoff.conversation import ConversationMessage, MessageRole
from agent_session_handoff.extraction.base import TextExtractor
from agent_session_handoff.extraction.keyword import KeywordExtractor

# Reports
from agent_session_handoff.report.aggregator import SnapshotAggregator
from agent_session_handoff.report.collector import StateCollector
from agent_session_handoff.report.models import HandoffReport, ReportSummary
from agent_session_handoff.report.records import ProjectState, UserPreferences, WisdomState

# Storage
from agent_session_handoff.storage.base import ReportStore
from agent_session_handoff.storage.memory import InMemoryReportStore
from agent_session_handoff.storage.sqlite import SQLiteReportStore

# Prompt, lifecycle and collaborators
from agent_session_handoff.prompt.synthesizer import OnboardingPrompt, OnboardingPromptSynthesizer
from agent_session_handoff.lifecycle.state_machine import HandoffLifecycle, HandoffStage
from agent_session_handoff.providers.base import (
    KnowledgeHit,
    KnowledgeSearchProvider,
    ProjectStateProvider,
    TechnicalHealthProvider,
    TextGenerationProvider,
    WisdomMemoryProvider,
)
from agent_session_handoff.providers.static import StaticKnowledgeSearch, StaticStateProvider

# Facade
from agent_session_handoff.engine import (
    GeneratedReport,
    HandoffEngine,
    KnowledgeContext,
    StateSnapshot,
    UsageSampleResult,
)

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Configuration and errors
    "ConfigurationError",
    "DuplicateReportError",
    "HandoffError",
    "HandoffSettings",
    "IllegalTransitionError",
    "ReportNotFoundError",
    "ReportStoreError",
    "SessionNotTrackedError",
    "load_settings",
    # Monitoring
    "ContextMetrics",
    "ContextMonitor",
    "HandoffTrigger",
    "TriggerType",
    "Urgency",
    "recommendations_for",
    # Conversation and extraction
    "ConversationMessage",
    "KeywordExtractor",
    "MessageRole",
    "TextExtractor",
    # Reports
    "HandoffReport",
    "ProjectState",
    "ReportSummary",
    "SnapshotAggregator",
    "StateCollector",
    "UserPreferences",
    "WisdomState",
    # Storage
    "InMemoryReportStore",
    "ReportStore",
    "SQLiteReportStore",
    # Prompt, lifecycle and collaborators
    "HandoffLifecycle",
    "HandoffStage",
    "KnowledgeHit",
    "KnowledgeSearchProvider",
    "OnboardingPrompt",
    "OnboardingPromptSynthesizer",
    "ProjectStateProvider",
    "StaticKnowledgeSearch",
    "StaticStateProvider",
    "TechnicalHealthProvider",
    "TextGenerationProvider",
    "WisdomMemoryProvider",
    # Facade
    "GeneratedReport",
    "HandoffEngine",
    "KnowledgeContext",
    "StateSnapshot",
    "UsageSampleResult",
]
