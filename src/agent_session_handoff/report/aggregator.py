"""Handoff report aggregation.

``SnapshotAggregator`` turns the current session state into a bounded
``HandoffReport``.  The conversation is never copied into the report: only a
capped summary string and a handful of derived fields are kept, so the report
size does not grow with conversation length.  Full detail stays with the
knowledge-retrieval service and is fetched by the successor on demand.

Usage
-----
::

    aggregator = SnapshotAggregator()
    report = aggregator.generate(
        "session-42",
        project_state={"mission": {"content": "Ship accessible chat"}},
        conversation_history=[{"type": "user", "content": "What is next?"}],
    )

Classes
-------
- SnapshotAggregator  - builds ``HandoffReport`` objects
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from agent_session_handoff.config import HandoffSettings
from agent_session_handoff.conversation import (
    ConversationMessage,
    last_user_message,
    tail,
    truncate,
)
from agent_session_handoff.extraction.base import TextExtractor
from agent_session_handoff.extraction.keyword import KeywordExtractor
from agent_session_handoff.monitor.metrics import ContextMetrics, HandoffTrigger, TriggerType
from agent_session_handoff.providers.base import TextGenerationProvider
from agent_session_handoff.report.collector import StateCollector
from agent_session_handoff.report.inputs import NormalizedInputs, normalize_inputs
from agent_session_handoff.report.models import (
    CognitivePatterns,
    ConversationSummary,
    ExecutiveSummary,
    HandoffReport,
    ProjectContext,
    TechnicalState,
    TransitionNotes,
    UserProfile,
    WisdomInsights,
)
from agent_session_handoff.report.records import (
    CommunicationStyle,
    DetailLevel,
    LearningPace,
    LedgerEntry,
    ProjectState,
    UserPreferences,
)

logger = logging.getLogger(__name__)

DEFAULT_PHASE = "Project initialization phase"
_MISSION_FALLBACK = "Active operational phase"
NO_RECENT_CONVERSATION = "No recent conversation"
RECENT_SUMMARY_SECTION = "recent_summary"

_MAX_NEXT_STEP_SAGAS = 3
_MAX_TOP_INSIGHTS = 5

PRESERVATION_PRIORITIES: tuple[str, ...] = (
    "Current user request and context",
    "Active project priorities",
    "User communication preferences",
    "Recent decisions and commitments",
    "Accessibility accommodations",
)

UX_NOTES: tuple[str, ...] = (
    "User has dyslexia - use clear, visual communication",
    "User has ADHD - maintain focus and minimize overwhelm",
    "Preserve sense of continuity and control",
    "Respect established communication patterns",
)

_CLOSING_GUIDANCE: tuple[str, ...] = (
    "Maintain the same helpful, empathetic tone",
    "Acknowledge the seamless transition to build trust",
    "Use knowledge base to retrieve relevant conversation history when needed",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotAggregator:
    """Assemble bounded handoff reports from session state.

    ``generate`` never raises because of missing or malformed optional
    inputs; every section degrades to an empty or default value and its
    name is listed in ``HandoffReport.degraded_sections``.

    Parameters
    ----------
    settings:
        Window sizes, caps and thresholds.  Defaults to ``HandoffSettings()``.
    extractor:
        Text extraction strategy.  Defaults to ``KeywordExtractor()``.
    clock:
        Returns the current UTC time; used for report timestamps and probe
        expiry.  Tests inject a fixed clock.
    """

    def __init__(
        self,
        settings: HandoffSettings | None = None,
        extractor: TextExtractor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or HandoffSettings()
        self._extractor = extractor or KeywordExtractor()
        self._clock = clock or _utcnow

    @property
    def extractor(self) -> TextExtractor:
        return self._extractor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(
        self,
        session_id: str,
        project_state: Any = None,
        wisdom_state: Any = None,
        conversation_history: Any = None,
        user_preferences: Any = None,
        technical_state: Any = None,
        *,
        metrics: ContextMetrics | None = None,
        trigger: HandoffTrigger | None = None,
        recent_summary: str | None = None,
        degraded_sections: Sequence[str] = (),
    ) -> HandoffReport:
        """Build a :class:`HandoffReport` from already-fetched state.

        Parameters
        ----------
        session_id:
            Session the report describes.
        project_state, wisdom_state, conversation_history, user_preferences,
        technical_state:
            Raw or typed inputs; see :mod:`agent_session_handoff.report.inputs`.
        metrics:
            Context metrics at handoff time.  Defaults to empty metrics.
        trigger:
            Trigger that started the handoff, if any.
        recent_summary:
            Pre-computed summary (e.g. from text generation).  It is still
            capped.  When None the template summary is used.
        degraded_sections:
            Extra section names already known to be degraded (for example
            sources that failed during collection).

        Returns
        -------
        HandoffReport
        """
        inputs = normalize_inputs(
            project_state=project_state,
            wisdom_state=wisdom_state,
            conversation_history=conversation_history,
            user_preferences=user_preferences,
            technical_state=technical_state,
        )
        for section in degraded_sections:
            inputs.mark_degraded(section)

        current_metrics = metrics or ContextMetrics(max_tokens=self._settings.max_tokens)
        now = self._clock()

        report = HandoffReport(
            timestamp=now,
            previous_session_id=session_id,
            context_metrics=current_metrics,
            executive_summary=self._executive_summary(inputs),
            user_profile=_user_profile(inputs.preferences),
            project_context=self._project_context(inputs, now),
            conversation_history=self._conversation_summary(inputs.messages, recent_summary),
            wisdom_insights=_wisdom_insights(inputs),
            technical_state=TechnicalState(
                system_health=dict(inputs.technical.system_health),
                recent_errors=list(inputs.technical.recent_errors),
                performance_metrics=dict(inputs.technical.performance_metrics),
                context_metrics=current_metrics,
            ),
            transition_notes=TransitionNotes(
                handoff_reason=self.handoff_reason(current_metrics, trigger),
                preservation_priorities=list(PRESERVATION_PRIORITIES),
                ux_notes=list(UX_NOTES),
                continuation_guidance=self._continuation_guidance(
                    inputs.messages, inputs.preferences
                ),
            ),
            trigger=trigger,
            degraded_sections=list(inputs.degraded),
        )
        logger.debug(
            "SnapshotAggregator: built report %s for session %r (degraded=%s)",
            report.id,
            session_id,
            report.degraded_sections,
        )
        return report

    async def agenerate(
        self,
        session_id: str,
        collector: StateCollector,
        conversation_history: Any = None,
        user_preferences: Any = None,
        *,
        metrics: ContextMetrics | None = None,
        trigger: HandoffTrigger | None = None,
        text_generator: TextGenerationProvider | None = None,
        on_collected: Callable[[], None] | None = None,
    ) -> HandoffReport:
        """Collect external state concurrently, then build the report.

        The executive summary is composed only after every read has resolved.
        When ``text_generator`` is given it is asked for the conversation
        summary; on failure or timeout the template summary is used and the
        ``recent_summary`` section is marked degraded.

        Parameters
        ----------
        on_collected:
            Called once all reads have resolved and before composition
            starts.  Exceptions it raises propagate.
        """
        collected = await collector.collect()
        if on_collected is not None:
            on_collected()
        recent_summary, enrichment_failed = await self._enriched_summary(
            conversation_history, text_generator, collector.timeout
        )
        degraded = list(collected.failed)
        if enrichment_failed:
            degraded.append(RECENT_SUMMARY_SECTION)

        return self.generate(
            session_id,
            project_state=collected.project_state,
            wisdom_state=collected.wisdom_state,
            conversation_history=conversation_history,
            user_preferences=user_preferences,
            technical_state=collected.technical_state,
            metrics=metrics,
            trigger=trigger,
            recent_summary=recent_summary,
            degraded_sections=degraded,
        )

    def handoff_reason(
        self,
        metrics: ContextMetrics,
        trigger: HandoffTrigger | None = None,
    ) -> str:
        """Describe why the handoff is happening."""
        if trigger is not None and trigger.trigger_type is TriggerType.USER_REQUEST:
            return "User requested a fresh assistant session"
        if trigger is not None and trigger.trigger_type is TriggerType.SYSTEM_OPTIMIZATION:
            return "System optimization handoff"

        cfg = self._settings
        if metrics.fill_percentage >= cfg.context_emergency:
            return "Emergency context limit reached - immediate handoff required"
        if metrics.fill_percentage >= cfg.context_critical:
            return "Context limit approaching - planned handoff for optimal performance"
        if metrics.session_duration >= cfg.session_duration_max_ms:
            return "Session duration limit reached - fresh context recommended"
        return "Proactive handoff for optimal user experience"

    def summarize_conversation(self, messages: Sequence[ConversationMessage]) -> str:
        """Template summary over the trailing ``summary_window`` messages.

        Each message is clipped to ``message_char_budget`` before joining and
        the result never exceeds ``summary_char_cap`` characters.
        """
        cfg = self._settings
        window = tail(messages, cfg.summary_window)
        if not window:
            return NO_RECENT_CONVERSATION

        budget = cfg.message_char_budget
        user_parts = [truncate(m.content, budget) for m in window if m.is_user]
        ai_parts = [truncate(m.content, budget) for m in window if m.is_assistant]
        text = (
            f"Recent conversation: User topics: {' | '.join(user_parts) or 'none'}. "
            f"AI responses: {' | '.join(ai_parts) or 'none'}."
        )
        return truncate(text, cfg.summary_char_cap, suffix="...")

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _executive_summary(self, inputs: NormalizedInputs) -> ExecutiveSummary:
        project = inputs.project
        return ExecutiveSummary(
            current_phase=_current_phase(project),
            immediate_priorities=_immediate_priorities(project),
            urgent_items=_urgent_items(project),
            next_steps=self._next_steps(project, inputs.messages),
        )

    def _next_steps(
        self,
        project: ProjectState,
        messages: Sequence[ConversationMessage],
    ) -> list[str]:
        cfg = self._settings
        window = tail(messages, cfg.extraction_window)
        steps = [
            f"User requested: {truncate(text, cfg.request_char_cap, suffix='...')}"
            for text in self._extractor.extract_next_step_requests(window)
        ]
        steps.extend(
            f"Continue: {saga.content}"
            for saga in _active(project.sagas)[:_MAX_NEXT_STEP_SAGAS]
        )
        return steps

    def _project_context(self, inputs: NormalizedInputs, now: datetime) -> ProjectContext:
        project = inputs.project
        cap = self._settings.request_char_cap
        return ProjectContext(
            current_mission=project.mission,
            active_pillars=list(project.pillars),
            current_epics=list(project.epics),
            active_sagas=_active(project.sagas),
            recent_probes=[p for p in project.probes if not p.is_expired(now)],
            recent_decisions=[
                truncate(text, cap, suffix="...")
                for text in self._extractor.extract_decisions(inputs.messages)
            ],
            current_blockers=[
                e for e in project.entries
                if e.status == "blocked" or "blocker" in e.content.lower()
            ],
        )

    def _conversation_summary(
        self,
        messages: Sequence[ConversationMessage],
        recent_summary: str | None,
    ) -> ConversationSummary:
        cfg = self._settings
        if recent_summary is None:
            summary = self.summarize_conversation(messages)
        else:
            summary = truncate(recent_summary, cfg.summary_char_cap, suffix="...")

        topic_message = last_user_message(tail(messages, cfg.topic_window))
        if topic_message is not None:
            current_topic = "User is currently discussing: " + truncate(
                topic_message.content, cfg.topic_char_cap, suffix="..."
            )
        else:
            current_topic = "General conversation"

        last_request = last_user_message(messages)
        extraction_window = tail(messages, cfg.extraction_window)

        return ConversationSummary(
            recent_summary=summary,
            current_topic=current_topic,
            last_user_request=(
                truncate(last_request.content, cfg.request_char_cap)
                if last_request is not None
                else "No recent request"
            ),
            pending_questions=[
                truncate(q, cfg.request_char_cap, suffix="...")
                for q in self._extractor.extract_pending_questions(extraction_window)
            ],
            ai_commitments=[
                truncate(c, cfg.request_char_cap, suffix="...")
                for c in self._extractor.extract_commitments(extraction_window)
            ],
            conversation_themes=self._extractor.extract_themes(
                tail(messages, cfg.theme_window)
            ),
        )

    def _continuation_guidance(
        self,
        messages: Sequence[ConversationMessage],
        preferences: UserPreferences,
    ) -> list[str]:
        guidance: list[str] = []
        if preferences.communication_style is CommunicationStyle.VISUAL:
            guidance.append("Use visual descriptions and structure responses clearly")
        if preferences.detail_level is DetailLevel.LOW:
            guidance.append("Keep responses concise and focused")
        if preferences.learning_pace is LearningPace.SLOW:
            guidance.append("Allow time for processing and confirmation")

        last_request = last_user_message(messages)
        if last_request is not None:
            excerpt = truncate(last_request.content, self._settings.topic_char_cap)
            guidance.append(f'Continue from user\'s last request: "{excerpt}"')

        guidance.extend(_CLOSING_GUIDANCE)
        return guidance

    async def _enriched_summary(
        self,
        conversation_history: Any,
        text_generator: TextGenerationProvider | None,
        timeout: float,
    ) -> tuple[str | None, bool]:
        if text_generator is None:
            return None, False
        messages = normalize_inputs(conversation_history=conversation_history).messages
        window = tail(messages, self._settings.summary_window)
        if not window:
            return None, False
        try:
            text = await asyncio.wait_for(
                text_generator.summarize(window, self._settings.summary_char_cap),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("SnapshotAggregator: summary enrichment timed out, using template")
            return None, True
        except Exception as exc:  # noqa: BLE001 - enrichment is optional
            logger.warning("SnapshotAggregator: summary enrichment failed, using template: %s", exc)
            return None, True
        if not isinstance(text, str) or not text.strip():
            logger.warning("SnapshotAggregator: summary enrichment returned no text, using template")
            return None, True
        return text.strip(), False

    def __repr__(self) -> str:
        return f"SnapshotAggregator(extractor={self._extractor!r})"


# ---------------------------------------------------------------------------
# Module-level section helpers
# ---------------------------------------------------------------------------


def _active(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    return [e for e in entries if e.status == "active"]


def _current_phase(project: ProjectState) -> str:
    if project.mission is None:
        return DEFAULT_PHASE
    return f"Mission: {project.mission.content or _MISSION_FALLBACK}"


def _immediate_priorities(project: ProjectState) -> list[str]:
    priorities = [
        f"SAGA: {saga.content}"
        for saga in project.sagas
        if saga.status == "active" and saga.priority == "high"
    ]
    priorities.extend(
        f"BLOCKED: {entry.content}" for entry in project.entries if entry.status == "blocked"
    )
    return priorities


def _urgent_items(project: ProjectState) -> list[LedgerEntry]:
    return [
        entry
        for entry in project.entries
        if entry.priority == "critical"
        or (entry.priority == "high" and entry.status == "blocked")
    ]


def _user_profile(preferences: UserPreferences) -> UserProfile:
    return UserProfile(
        communication_style=preferences.communication_style,
        detail_level=preferences.detail_level,
        learning_pace=preferences.learning_pace,
        accessibility_needs=list(preferences.accessibility_needs),
        preferred_feedback=list(preferences.preferred_feedback),
        cognitive_patterns=CognitivePatterns(
            attention_span=preferences.attention_span,
            information_processing=preferences.information_processing,
            working_memory_support=preferences.working_memory_support,
            visual_processing_preference=preferences.visual_processing_preference,
        ),
    )


def _wisdom_insights(inputs: NormalizedInputs) -> WisdomInsights:
    wisdom = inputs.wisdom
    ranked = sorted(wisdom.insights, key=lambda i: i.relevance_score, reverse=True)
    return WisdomInsights(
        user_patterns=list(wisdom.patterns),
        successful_interactions=list(wisdom.successful_interactions),
        learning_preferences=list(wisdom.learning_preferences),
        effective_strategies=list(wisdom.effective_strategies),
        trigger_contexts=dict(wisdom.trigger_contexts),
        top_insights=ranked[:_MAX_TOP_INSIGHTS],
    )
