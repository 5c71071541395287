"""Handoff engine facade.

``HandoffEngine`` is the primary entry point.  It owns one
``ContextMonitor`` and one ``HandoffLifecycle`` per session, a shared
``ReportStore`` and the external collaborators, and drives a session from
usage monitoring through report generation to the onboarding prompt handed
to the successor agent.

Usage
-----
::

    engine = HandoffEngine()
    result = engine.submit_usage_sample("s1", 122_880, 40, session_start)
    if result.trigger is not None and result.trigger.starts_preparation:
        generated = await engine.generate_report("s1", StateSnapshot(...))
        prompt = engine.execute_handoff("s1")

Classes
-------
- StateSnapshot      - caller-supplied state for one report
- UsageSampleResult  - outcome of one usage sample
- GeneratedReport    - stored report plus its id
- KnowledgeContext   - knowledge-retrieval result
- HandoffEngine      - the facade
"""
from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, Field

from agent_session_handoff.config import HandoffSettings
from agent_session_handoff.errors import IllegalTransitionError, SessionNotTrackedError
from agent_session_handoff.extraction.base import TextExtractor
from agent_session_handoff.lifecycle.state_machine import (
    HandoffLifecycle,
    HandoffStage,
    LifecycleStatus,
)
from agent_session_handoff.monitor.context_monitor import ContextMonitor, recommendations_for
from agent_session_handoff.monitor.metrics import (
    ContextMetrics,
    HandoffTrigger,
    TriggerType,
    Urgency,
)
from agent_session_handoff.prompt.synthesizer import OnboardingPrompt, OnboardingPromptSynthesizer
from agent_session_handoff.providers.base import (
    KnowledgeHit,
    KnowledgeSearchProvider,
    ProjectStateProvider,
    TechnicalHealthProvider,
    TextGenerationProvider,
    WisdomMemoryProvider,
)
from agent_session_handoff.providers.static import StaticStateProvider
from agent_session_handoff.report.aggregator import SnapshotAggregator
from agent_session_handoff.report.collector import StateCollector
from agent_session_handoff.report.models import HandoffReport, ReportSummary
from agent_session_handoff.storage.base import ReportStore
from agent_session_handoff.storage.memory import InMemoryReportStore

logger = logging.getLogger(__name__)

_DEFAULT_KNOWLEDGE_LIMIT = 3


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class StateSnapshot(BaseModel):
    """State supplied by the caller for one report.

    Any section left as ``None`` is read from the engine's configured
    provider instead (project, wisdom and technical state) or treated as
    missing (conversation history and user preferences).
    """

    project_state: Any = None
    wisdom_state: Any = None
    conversation_history: Any = None
    user_preferences: Any = None
    technical_state: Any = None


class UsageSampleResult(BaseModel):
    """Outcome of :meth:`HandoffEngine.submit_usage_sample`."""

    metrics: ContextMetrics
    trigger: HandoffTrigger | None = None
    recommendations: list[str] = Field(default_factory=list)
    stage: HandoffStage

    model_config = {"frozen": True}


class GeneratedReport(BaseModel):
    """A report that has been stored, with the id it was stored under."""

    handoff_id: str
    report: HandoffReport

    model_config = {"frozen": True}


class KnowledgeContext(BaseModel):
    """Prior-session summaries returned by a knowledge query."""

    relevant_sessions: list[KnowledgeHit] = Field(default_factory=list)
    total_relevant_sessions: int = 0

    model_config = {"frozen": True}


@dataclass
class _SessionHandoffState:
    monitor: ContextMonitor
    lifecycle: HandoffLifecycle
    generating: bool = False


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class HandoffEngine:
    """Monitor sessions, generate handoff reports and onboard successors.

    Parameters
    ----------
    settings:
        Thresholds, windows and caps.  Defaults to ``HandoffSettings()``.
    store:
        Report store.  Defaults to an ``InMemoryReportStore`` bounded by
        ``settings.max_reports``.
    project_provider, wisdom_provider, technical_provider:
        External state readers used when a snapshot omits a section.
    knowledge_search:
        Knowledge-retrieval collaborator for :meth:`retrieve_context`.
    text_generator:
        Optional summary enrichment.
    extractor:
        Text extraction strategy passed to the default aggregator.
    aggregator:
        Pre-built aggregator; overrides ``extractor`` when given.
    monitor_clock:
        Epoch-millisecond clock for session monitors.
    lifecycle_clock:
        Monotonic-seconds clock for lifecycle auto-reset.
    """

    def __init__(
        self,
        settings: HandoffSettings | None = None,
        store: ReportStore | None = None,
        *,
        project_provider: ProjectStateProvider | None = None,
        wisdom_provider: WisdomMemoryProvider | None = None,
        technical_provider: TechnicalHealthProvider | None = None,
        knowledge_search: KnowledgeSearchProvider | None = None,
        text_generator: TextGenerationProvider | None = None,
        extractor: TextExtractor | None = None,
        aggregator: SnapshotAggregator | None = None,
        monitor_clock: Callable[[], float] | None = None,
        lifecycle_clock: Callable[[], float] | None = None,
    ) -> None:
        self._settings = settings or HandoffSettings()
        self._store = store if store is not None else InMemoryReportStore(self._settings.max_reports)
        self._project_provider = project_provider
        self._wisdom_provider = wisdom_provider
        self._technical_provider = technical_provider
        self._knowledge_search = knowledge_search
        self._text_generator = text_generator
        self._aggregator = aggregator or SnapshotAggregator(self._settings, extractor)
        self._synthesizer = OnboardingPromptSynthesizer(self._settings.knowledge_base_location)
        self._monitor_clock = monitor_clock
        self._lifecycle_clock = lifecycle_clock
        self._sessions: dict[str, _SessionHandoffState] = {}
        self._sessions_lock = threading.Lock()

    @property
    def settings(self) -> HandoffSettings:
        return self._settings

    @property
    def store(self) -> ReportStore:
        return self._store

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def submit_usage_sample(
        self,
        session_id: str,
        token_usage: int,
        conversation_length: int,
        session_start: float | int | datetime,
    ) -> UsageSampleResult:
        """Record a usage sample and evaluate the trigger policy.

        A trigger of urgency ``immediate`` or ``soon`` moves a monitoring
        session into ``preparing``.

        Parameters
        ----------
        session_id:
            Session the sample belongs to.  Unknown sessions are created.
        token_usage:
            Tokens consumed so far.
        conversation_length:
            Number of messages so far.
        session_start:
            Session start as epoch milliseconds or a ``datetime``.

        Returns
        -------
        UsageSampleResult

        Raises
        ------
        ValueError
            If ``token_usage`` or ``conversation_length`` is negative.
        """
        state = self._session(session_id, create=True)
        metrics = state.monitor.update(token_usage, conversation_length, session_start)
        trigger = state.monitor.evaluate_trigger()

        if (
            trigger is not None
            and trigger.starts_preparation
            and state.lifecycle.stage is HandoffStage.MONITORING
        ):
            state.lifecycle.begin_preparation(trigger)
            logger.info(
                "HandoffEngine: session %r preparing handoff (%s, %s)",
                session_id,
                trigger.trigger_type.value,
                trigger.urgency.value,
            )

        return UsageSampleResult(
            metrics=metrics,
            trigger=trigger,
            recommendations=recommendations_for(trigger),
            stage=state.lifecycle.stage,
        )

    def request_handoff(self, session_id: str) -> HandoffTrigger:
        """Start a user-requested handoff for ``session_id``.

        Returns
        -------
        HandoffTrigger
            A ``user_request`` trigger of urgency ``immediate``.

        Raises
        ------
        IllegalTransitionError
            If the session is already past ``preparing``.
        """
        state = self._session(session_id, create=True)
        trigger = HandoffTrigger(
            trigger_type=TriggerType.USER_REQUEST,
            threshold_reached=state.monitor.metrics.fill_percentage,
            urgency=Urgency.IMMEDIATE,
            notification_required=True,
        )
        stage = state.lifecycle.stage
        if stage is HandoffStage.MONITORING:
            state.lifecycle.begin_preparation(trigger)
        elif stage is not HandoffStage.PREPARING:
            raise IllegalTransitionError(stage.value, HandoffStage.PREPARING.value)
        return trigger

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------

    async def generate_report(
        self,
        session_id: str,
        snapshot: StateSnapshot | None = None,
    ) -> GeneratedReport:
        """Collect state, build a report and store it.

        A session still in ``monitoring`` is moved into ``preparing`` with a
        user-request trigger first.  On any failure the lifecycle returns to
        ``monitoring`` and nothing is stored.  A second call made while a
        generation for the session is in flight is rejected without touching
        the lifecycle.

        Parameters
        ----------
        session_id:
            Session to hand off.
        snapshot:
            Caller-supplied state.  Omitted sections are read from the
            configured providers.

        Returns
        -------
        GeneratedReport

        Raises
        ------
        IllegalTransitionError
            If the session is generating, ready, transitioning or complete.
        ReportStoreError
            If the store write fails.
        """
        snapshot = snapshot or StateSnapshot()
        state = self._session(session_id, create=True)
        lifecycle = state.lifecycle

        stage = lifecycle.stage
        if stage is HandoffStage.MONITORING:
            self.request_handoff(session_id)
        elif stage is not HandoffStage.PREPARING:
            raise IllegalTransitionError(stage.value, HandoffStage.GENERATING.value)

        # Claimed before the first await; only the owner may fail the cycle.
        with self._sessions_lock:
            if state.generating:
                raise IllegalTransitionError(
                    HandoffStage.PREPARING.value, HandoffStage.GENERATING.value
                )
            state.generating = True

        def _collected() -> None:
            lifecycle.mark_collected()
            lifecycle.begin_generation()

        try:
            report = await self._aggregator.agenerate(
                session_id,
                self._collector_for(snapshot),
                snapshot.conversation_history,
                snapshot.user_preferences,
                metrics=state.monitor.metrics,
                trigger=lifecycle.trigger,
                text_generator=self._text_generator,
                on_collected=_collected,
            )
            handoff_id = self._store.put(report)
            lifecycle.mark_ready(handoff_id)
        except BaseException:
            lifecycle.fail()
            raise
        finally:
            state.generating = False

        logger.info("HandoffEngine: report %s ready for session %r", handoff_id, session_id)
        return GeneratedReport(handoff_id=handoff_id, report=report)

    def get_report(self, handoff_id: str) -> HandoffReport:
        """Return a stored report.

        Raises
        ------
        ReportNotFoundError
            If ``handoff_id`` is unknown.
        """
        return self._store.get(handoff_id)

    def list_recent_reports(self, limit: int = 10) -> list[ReportSummary]:
        """Return summaries of the newest stored reports, newest first."""
        return self._store.list_recent(limit)

    def synthesize_onboarding_prompt(self, handoff_id: str) -> OnboardingPrompt:
        """Render the onboarding prompt for a stored report.

        Raises
        ------
        ReportNotFoundError
            If ``handoff_id`` is unknown.
        """
        return self._synthesizer.render(self._store.get(handoff_id))

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    def execute_handoff(self, session_id: str) -> OnboardingPrompt:
        """Hand the session over to its successor.

        Moves ``ready -> transitioning -> complete``, renders the onboarding
        prompt for the prepared report and resets the session monitor.

        Raises
        ------
        SessionNotTrackedError
            If the session is unknown.
        IllegalTransitionError
            If no report is ready for the session.
        """
        state = self._session(session_id)
        lifecycle = state.lifecycle
        lifecycle.begin_transition()
        try:
            handoff_id = lifecycle.handoff_id
            if handoff_id is None:
                raise IllegalTransitionError(HandoffStage.TRANSITIONING.value, HandoffStage.COMPLETE.value)
            prompt = self.synthesize_onboarding_prompt(handoff_id)
            lifecycle.complete()
        except BaseException:
            lifecycle.fail()
            raise
        state.monitor.reset()
        logger.info("HandoffEngine: session %r handed off with report %s", session_id, handoff_id)
        return prompt

    # ------------------------------------------------------------------
    # Knowledge retrieval
    # ------------------------------------------------------------------

    async def retrieve_context(
        self,
        query: str,
        limit: int = _DEFAULT_KNOWLEDGE_LIMIT,
    ) -> KnowledgeContext:
        """Query the knowledge-retrieval collaborator for prior sessions.

        Failures and timeouts degrade to an empty result.
        """
        if self._knowledge_search is None or limit <= 0:
            return KnowledgeContext()
        try:
            hits = await asyncio.wait_for(
                self._knowledge_search.search(query, limit),
                timeout=self._settings.source_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("HandoffEngine: knowledge search timed out for %r", query)
            return KnowledgeContext()
        except Exception as exc:  # noqa: BLE001 - retrieval is best effort
            logger.warning("HandoffEngine: knowledge search failed for %r: %s", query, exc)
            return KnowledgeContext()

        sessions = list(hits)[:limit]
        return KnowledgeContext(relevant_sessions=sessions, total_relevant_sessions=len(sessions))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stage(self, session_id: str) -> HandoffStage:
        """Return the lifecycle stage of ``session_id``.

        Raises
        ------
        SessionNotTrackedError
            If the session is unknown.
        """
        return self._session(session_id).lifecycle.stage

    def status(self, session_id: str) -> LifecycleStatus:
        """Return the full lifecycle snapshot of ``session_id``."""
        return self._session(session_id).lifecycle.status()

    def metrics(self, session_id: str) -> ContextMetrics:
        """Return the latest metrics recorded for ``session_id``."""
        return self._session(session_id).monitor.metrics

    def tracked_sessions(self) -> list[str]:
        with self._sessions_lock:
            return list(self._sessions)

    def health(self) -> dict[str, Any]:
        """Return a small health summary."""
        with self._sessions_lock:
            tracked = len(self._sessions)
        return {
            "status": "healthy",
            "stored_reports": len(self._store),
            "tracked_sessions": tracked,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _session(self, session_id: str, create: bool = False) -> _SessionHandoffState:
        with self._sessions_lock:
            state = self._sessions.get(session_id)
            if state is None:
                if not create:
                    raise SessionNotTrackedError(session_id)
                state = _SessionHandoffState(
                    monitor=ContextMonitor(self._settings, clock=self._monitor_clock),
                    lifecycle=HandoffLifecycle(
                        self._settings.reset_delay_seconds, clock=self._lifecycle_clock
                    ),
                )
                self._sessions[session_id] = state
                logger.debug("HandoffEngine: tracking session %r", session_id)
            return state

    def _collector_for(self, snapshot: StateSnapshot) -> StateCollector:
        supplied = StaticStateProvider(
            project_state=snapshot.project_state,
            wisdom_state=snapshot.wisdom_state,
            technical_state=snapshot.technical_state,
        )
        return StateCollector(
            project_provider=supplied if snapshot.project_state is not None else self._project_provider,
            wisdom_provider=supplied if snapshot.wisdom_state is not None else self._wisdom_provider,
            technical_provider=(
                supplied if snapshot.technical_state is not None else self._technical_provider
            ),
            timeout=self._settings.source_timeout_seconds,
        )

    def __repr__(self) -> str:
        return f"HandoffEngine(sessions={len(self._sessions)}, store={self._store!r})"
