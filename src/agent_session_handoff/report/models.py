"""Handoff report domain models.

A ``HandoffReport`` is the bounded artifact passed from one agent instance
to its successor.  It is created once by ``SnapshotAggregator`` and never
modified afterwards, so every model here is frozen.  Reports serialise to
JSON for transport and storage.

Classes
-------
- CognitivePatterns    - attention / processing profile
- UserProfile          - accessibility-oriented user profile
- ExecutiveSummary     - phase, priorities, urgent items, next steps
- ProjectContext       - ledger state relevant to the handoff
- ConversationSummary  - minimal conversation fields (never a transcript)
- WisdomInsights       - learned user patterns and strategies
- TechnicalState       - health pass-through plus context metrics
- TransitionNotes      - reason and guidance for the successor
- HandoffReport        - the complete report
- ReportSummary        - projection used by recent-report listings
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from agent_session_handoff.monitor.metrics import ContextMetrics, HandoffTrigger
from agent_session_handoff.report.records import (
    AttentionSpan,
    CommunicationStyle,
    DetailLevel,
    InformationProcessing,
    LearningPace,
    LedgerEntry,
    Mission,
    WisdomInsight,
)

_SUMMARY_PRIORITY_COUNT = 3


class CognitivePatterns(BaseModel):
    """How the user prefers to take in information."""

    model_config = {"frozen": True}

    attention_span: AttentionSpan = AttentionSpan.MEDIUM
    information_processing: InformationProcessing = InformationProcessing.MIXED
    working_memory_support: bool = True
    visual_processing_preference: bool = True


class UserProfile(BaseModel):
    """Accessibility-oriented user profile carried across the handoff."""

    model_config = {"frozen": True}

    communication_style: CommunicationStyle = CommunicationStyle.MIXED
    detail_level: DetailLevel = DetailLevel.MEDIUM
    learning_pace: LearningPace = LearningPace.MODERATE
    accessibility_needs: list[str] = Field(default_factory=list)
    preferred_feedback: list[str] = Field(default_factory=list)
    cognitive_patterns: CognitivePatterns = Field(default_factory=CognitivePatterns)


class ExecutiveSummary(BaseModel):
    """Top-of-report summary the successor reads first.

    Parameters
    ----------
    current_phase:
        ``"Mission: <statement>"`` or the initialisation label.
    immediate_priorities:
        ``"SAGA: ..."`` and ``"BLOCKED: ..."`` lines, sagas first.
    urgent_items:
        Critical entries and high-priority blocked entries.
    next_steps:
        Requested next steps followed by sagas to continue.
    """

    model_config = {"frozen": True}

    current_phase: str
    immediate_priorities: list[str] = Field(default_factory=list)
    urgent_items: list[LedgerEntry] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class ProjectContext(BaseModel):
    """Ledger state relevant to the successor."""

    model_config = {"frozen": True}

    current_mission: Mission | None = None
    active_pillars: list[LedgerEntry] = Field(default_factory=list)
    current_epics: list[LedgerEntry] = Field(default_factory=list)
    active_sagas: list[LedgerEntry] = Field(default_factory=list)
    recent_probes: list[LedgerEntry] = Field(default_factory=list)
    recent_decisions: list[str] = Field(default_factory=list)
    current_blockers: list[LedgerEntry] = Field(default_factory=list)


class ConversationSummary(BaseModel):
    """Minimal conversation context.

    Only derived fields are kept; the transcript itself stays with the
    knowledge-retrieval service and is fetched on demand.
    """

    model_config = {"frozen": True}

    recent_summary: str = ""
    current_topic: str = "General conversation"
    last_user_request: str = "No recent request"
    pending_questions: list[str] = Field(default_factory=list)
    ai_commitments: list[str] = Field(default_factory=list)
    conversation_themes: list[str] = Field(default_factory=list)


class WisdomInsights(BaseModel):
    """Patterns and strategies learned about the user."""

    model_config = {"frozen": True}

    user_patterns: list[Any] = Field(default_factory=list)
    successful_interactions: list[Any] = Field(default_factory=list)
    learning_preferences: list[Any] = Field(default_factory=list)
    effective_strategies: list[Any] = Field(default_factory=list)
    trigger_contexts: dict[str, Any] = Field(default_factory=dict)
    top_insights: list[WisdomInsight] = Field(default_factory=list)


class TechnicalState(BaseModel):
    """System health pass-through merged with the session's context metrics."""

    model_config = {"frozen": True}

    system_health: dict[str, Any] = Field(default_factory=dict)
    recent_errors: list[Any] = Field(default_factory=list)
    performance_metrics: dict[str, Any] = Field(default_factory=dict)
    context_metrics: ContextMetrics = Field(default_factory=ContextMetrics)


class TransitionNotes(BaseModel):
    """Why the handoff happened and how the successor should proceed."""

    model_config = {"frozen": True}

    handoff_reason: str
    preservation_priorities: list[str] = Field(default_factory=list)
    ux_notes: list[str] = Field(default_factory=list)
    continuation_guidance: list[str] = Field(default_factory=list)


class ReportSummary(BaseModel):
    """Projection of a report used by recent-report listings."""

    model_config = {"frozen": True}

    id: str
    timestamp: datetime
    handoff_reason: str
    fill_percentage: float
    immediate_priorities: list[str] = Field(default_factory=list)


class HandoffReport(BaseModel):
    """Complete, immutable handoff report.

    Parameters
    ----------
    id:
        Unique handoff identifier.
    timestamp:
        UTC creation time.
    previous_session_id:
        Session the report was generated from.
    context_metrics:
        Usage snapshot at generation time.
    executive_summary, user_profile, project_context, conversation_history,
    wisdom_insights, technical_state, transition_notes:
        Report sections; every one is always present.
    trigger:
        The trigger that started the handoff, if any.
    degraded_sections:
        Names of sections that fell back to defaults because their input was
        missing, malformed, failed or timed out.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    previous_session_id: str
    context_metrics: ContextMetrics = Field(default_factory=ContextMetrics)
    executive_summary: ExecutiveSummary
    user_profile: UserProfile = Field(default_factory=UserProfile)
    project_context: ProjectContext = Field(default_factory=ProjectContext)
    conversation_history: ConversationSummary = Field(default_factory=ConversationSummary)
    wisdom_insights: WisdomInsights = Field(default_factory=WisdomInsights)
    technical_state: TechnicalState = Field(default_factory=TechnicalState)
    transition_notes: TransitionNotes
    trigger: HandoffTrigger | None = None
    degraded_sections: list[str] = Field(default_factory=list)

    def to_json(self) -> str:
        """Serialise the report to a JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, json_str: str) -> "HandoffReport":
        """Deserialise from a JSON string produced by :meth:`to_json`."""
        return cls.model_validate_json(json_str)

    def summary(self) -> ReportSummary:
        """Project the report onto a :class:`ReportSummary`."""
        return ReportSummary(
            id=self.id,
            timestamp=self.timestamp,
            handoff_reason=self.transition_notes.handoff_reason,
            fill_percentage=self.context_metrics.fill_percentage,
            immediate_priorities=list(
                self.executive_summary.immediate_priorities[:_SUMMARY_PRIORITY_COUNT]
            ),
        )

    def summary_line(self) -> str:
        """Return a one-line human-readable description."""
        return (
            f"HandoffReport {self.id[:8]} | session={self.previous_session_id} | "
            f"fill={self.context_metrics.fill_label()} | "
            f"{len(self.executive_summary.immediate_priorities)} priorities | "
            f"reason={self.transition_notes.handoff_reason!r}"
        )
