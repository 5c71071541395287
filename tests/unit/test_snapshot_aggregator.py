"""Unit tests for agent_session_handoff.report.aggregator.SnapshotAggregator."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from agent_session_handoff.config import HandoffSettings
from agent_session_handoff.monitor.metrics import (
    ContextMetrics,
    HandoffTrigger,
    TriggerType,
    Urgency,
)
from agent_session_handoff.report.aggregator import (
    DEFAULT_PHASE,
    NO_RECENT_CONVERSATION,
    PRESERVATION_PRIORITIES,
    UX_NOTES,
    SnapshotAggregator,
)
from agent_session_handoff.report.inputs import CONVERSATION_HISTORY, PROJECT_STATE
from agent_session_handoff.report.models import HandoffReport

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def aggregator() -> SnapshotAggregator:
    return SnapshotAggregator(clock=lambda: FIXED_NOW)


@pytest.fixture()
def project_state() -> dict[str, Any]:
    return {
        "mission": {"statement": "Build accessible tools"},
        "pillars": [{"content": "Clarity", "status": "active"}],
        "epics": [{"content": "Onboarding", "status": "active"}],
        "sagas": [
            {"content": "Ship v2", "status": "active", "priority": "high"},
            {"content": "Low saga", "status": "active", "priority": "low"},
            {"content": "Done saga", "status": "completed", "priority": "high"},
        ],
        "entries": [
            {"content": "Deploy pipeline", "status": "blocked", "priority": "high"},
            {"content": "Security review", "status": "active", "priority": "critical"},
            {"content": "Docs blocker noted", "status": "active", "priority": "low"},
            {"content": "Minor polish", "status": "blocked", "priority": "low"},
        ],
        "probes": [
            {"content": "Stale probe", "expiration": (FIXED_NOW - timedelta(hours=1)).isoformat()},
            {"content": "Live probe", "expiration": (FIXED_NOW + timedelta(hours=1)).isoformat()},
            {"content": "Open probe"},
        ],
    }


def _conversation(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"type": role, "content": text} for role, text in pairs]


# ---------------------------------------------------------------------------
# Degradation and completeness
# ---------------------------------------------------------------------------


class TestCompleteness:
    def test_empty_inputs_produce_complete_report(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate("session-1")
        dumped = report.model_dump()
        for key in (
            "id",
            "timestamp",
            "previous_session_id",
            "context_metrics",
            "executive_summary",
            "user_profile",
            "project_context",
            "conversation_history",
            "wisdom_insights",
            "technical_state",
            "transition_notes",
        ):
            assert dumped[key] is not None, key
        assert report.conversation_history.last_user_request == "No recent request"
        assert report.conversation_history.current_topic == "General conversation"
        assert report.conversation_history.recent_summary == NO_RECENT_CONVERSATION
        assert len(report.degraded_sections) == 5

    def test_empty_history_and_project(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate("session-1", project_state={}, conversation_history=[])
        summary = report.executive_summary
        assert summary.current_phase == DEFAULT_PHASE
        assert summary.immediate_priorities == []
        assert summary.urgent_items == []
        assert summary.next_steps == []
        assert PROJECT_STATE not in report.degraded_sections
        assert CONVERSATION_HISTORY not in report.degraded_sections

    def test_malformed_inputs_do_not_raise(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate(
            "session-1",
            project_state=42,
            wisdom_state="bad",
            conversation_history={"not": "a list"},
            user_preferences=["x"],
            technical_state=object(),
        )
        assert report.executive_summary.current_phase == DEFAULT_PHASE

    def test_bad_ledger_item_keeps_rest_of_project(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate(
            "s1",
            project_state={
                "mission": {"content": "Ship accessible chat"},
                "sagas": [{"content": "Voice input", "status": "active", "priority": "high"}, 42],
                "probes": [{"content": "Font trial", "expiration": "next week"}],
            },
            conversation_history=[],
        )
        summary = report.executive_summary
        assert summary.current_phase == "Mission: Ship accessible chat"
        assert summary.immediate_priorities == ["SAGA: Voice input"]
        assert [p.content for p in report.project_context.recent_probes] == ["Font trial"]
        assert PROJECT_STATE in report.degraded_sections

    def test_report_fields(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate("session-9")
        assert report.previous_session_id == "session-9"
        assert report.timestamp == FIXED_NOW
        assert report.id

    def test_extra_degraded_sections_recorded(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate(
            "s", project_state={}, conversation_history=[], degraded_sections=["wisdom_state"]
        )
        assert "wisdom_state" in report.degraded_sections


# ---------------------------------------------------------------------------
# Executive summary and project context
# ---------------------------------------------------------------------------


class TestExecutiveSummary:
    def test_mission_phase(self, aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
        report = aggregator.generate("s", project_state=project_state)
        assert report.executive_summary.current_phase == "Mission: Build accessible tools"

    def test_empty_mission_statement(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate("s", project_state={"mission": {}})
        assert report.executive_summary.current_phase == "Mission: Active operational phase"

    def test_priorities(self, aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
        report = aggregator.generate("s", project_state=project_state)
        assert report.executive_summary.immediate_priorities == [
            "SAGA: Ship v2",
            "BLOCKED: Deploy pipeline",
            "BLOCKED: Minor polish",
        ]

    def test_urgent_items(self, aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
        report = aggregator.generate("s", project_state=project_state)
        assert [e.content for e in report.executive_summary.urgent_items] == [
            "Deploy pipeline",
            "Security review",
        ]

    def test_next_steps(self, aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
        history = _conversation(("user", "Next, fix the login page"), ("ai", "Sure."))
        report = aggregator.generate("s", project_state=project_state, conversation_history=history)
        assert report.executive_summary.next_steps == [
            "User requested: Next, fix the login page",
            "Continue: Ship v2",
            "Continue: Low saga",
        ]

    def test_next_steps_cap_active_sagas(self, aggregator: SnapshotAggregator) -> None:
        sagas = [{"content": f"Saga {i}", "status": "active"} for i in range(6)]
        report = aggregator.generate("s", project_state={"sagas": sagas})
        assert report.executive_summary.next_steps == [
            "Continue: Saga 0",
            "Continue: Saga 1",
            "Continue: Saga 2",
        ]

    def test_project_context(self, aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
        context = aggregator.generate("s", project_state=project_state).project_context
        assert context.current_mission is not None
        assert [s.content for s in context.active_sagas] == ["Ship v2", "Low saga"]
        assert [p.content for p in context.recent_probes] == ["Live probe", "Open probe"]
        assert [b.content for b in context.current_blockers] == [
            "Deploy pipeline",
            "Docs blocker noted",
            "Minor polish",
        ]
        assert len(context.active_pillars) == 1
        assert len(context.current_epics) == 1

    def test_recent_decisions_keep_last_five(self, aggregator: SnapshotAggregator) -> None:
        history = _conversation(*[("ai", f"We decided option {i}") for i in range(8)])
        decisions = aggregator.generate("s", conversation_history=history).project_context.recent_decisions
        assert decisions == [f"We decided option {i}" for i in range(3, 8)]


# ---------------------------------------------------------------------------
# Conversation summary
# ---------------------------------------------------------------------------


class TestConversationSummary:
    def test_minimal_fields(self, aggregator: SnapshotAggregator) -> None:
        history = _conversation(
            ("user", "Can we talk about accessibility?"),
            ("ai", "Absolutely. I will outline the options."),
            ("user", "Please focus on dyslexia support. What about fonts?"),
        )
        conversation = aggregator.generate("s", conversation_history=history).conversation_history
        assert conversation.current_topic == (
            "User is currently discussing: Please focus on dyslexia support. What about fonts?"
        )
        assert conversation.last_user_request == "Please focus on dyslexia support. What about fonts?"
        assert conversation.pending_questions == ["What about fonts?"]
        assert conversation.ai_commitments == ["Absolutely. I will outline the options."]
        assert conversation.conversation_themes == ["accessibility", "dyslexia"]
        assert conversation.recent_summary.startswith("Recent conversation: User topics: ")

    def test_messages_clipped_in_summary(self) -> None:
        aggregator = SnapshotAggregator(HandoffSettings(message_char_budget=10))
        history = _conversation(("user", "abcdefghijklmnopqrstuvwxyz"))
        summary = aggregator.generate("s", conversation_history=history).conversation_history.recent_summary
        assert "abcdefghij" in summary
        assert "abcdefghijk" not in summary

    def test_summary_bounded_for_long_conversations(self, aggregator: SnapshotAggregator) -> None:
        history = [
            {"type": "user" if i % 2 == 0 else "ai", "content": f"message {i} " + "x" * 1_000}
            for i in range(500)
        ]
        report = aggregator.generate("s", conversation_history=history)
        assert len(report.conversation_history.recent_summary) <= 500
        assert len(report.conversation_history.current_topic) <= len("User is currently discussing: ") + 100
        assert len(report.conversation_history.last_user_request) <= 200

    def test_last_request_truncated(self, aggregator: SnapshotAggregator) -> None:
        history = _conversation(("user", "y" * 1_000))
        conversation = aggregator.generate("s", conversation_history=history).conversation_history
        assert conversation.last_user_request == "y" * 200

    def test_supplied_summary_is_capped(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate("s", recent_summary="z" * 2_000)
        assert len(report.conversation_history.recent_summary) == 500
        assert report.conversation_history.recent_summary.endswith("...")

    def test_topic_only_from_recent_window(self, aggregator: SnapshotAggregator) -> None:
        history = _conversation(("user", "old topic"), *[("ai", f"reply {i}") for i in range(6)])
        conversation = aggregator.generate("s", conversation_history=history).conversation_history
        assert conversation.current_topic == "General conversation"
        assert conversation.last_user_request == "old topic"


# ---------------------------------------------------------------------------
# Wisdom, technical state and transition notes
# ---------------------------------------------------------------------------


class TestOtherSections:
    def test_top_insights_ranked(self, aggregator: SnapshotAggregator) -> None:
        insights = [{"text": f"insight {i}", "relevance_score": i / 10} for i in range(8)]
        report = aggregator.generate("s", wisdom_state={"insights": insights, "patterns": ["p"]})
        top = report.wisdom_insights.top_insights
        assert [i.text for i in top] == ["insight 7", "insight 6", "insight 5", "insight 4", "insight 3"]
        assert report.wisdom_insights.user_patterns == ["p"]

    def test_technical_state_merged_with_metrics(self, aggregator: SnapshotAggregator) -> None:
        metrics = ContextMetrics(token_usage=1_000, max_tokens=2_000)
        report = aggregator.generate(
            "s",
            technical_state={"system_health": {"db": "ok"}, "recent_errors": ["timeout"]},
            metrics=metrics,
        )
        assert report.technical_state.system_health == {"db": "ok"}
        assert report.technical_state.recent_errors == ["timeout"]
        assert report.technical_state.context_metrics == metrics
        assert report.context_metrics == metrics

    def test_fixed_transition_notes(self, aggregator: SnapshotAggregator) -> None:
        notes = aggregator.generate("s").transition_notes
        assert notes.preservation_priorities == list(PRESERVATION_PRIORITIES)
        assert notes.ux_notes == list(UX_NOTES)

    def test_guidance_from_preferences(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate(
            "s",
            user_preferences={"communication_style": "visual", "detail_level": "low", "learning_pace": "slow"},
            conversation_history=_conversation(("user", "Show me the chart")),
        )
        guidance = report.transition_notes.continuation_guidance
        assert guidance[:4] == [
            "Use visual descriptions and structure responses clearly",
            "Keep responses concise and focused",
            "Allow time for processing and confirmation",
            'Continue from user\'s last request: "Show me the chart"',
        ]
        assert len(guidance) == 7

    def test_default_guidance(self, aggregator: SnapshotAggregator) -> None:
        guidance = aggregator.generate("s").transition_notes.continuation_guidance
        assert guidance == [
            "Maintain the same helpful, empathetic tone",
            "Acknowledge the seamless transition to build trust",
            "Use knowledge base to retrieve relevant conversation history when needed",
        ]

    def test_user_profile_from_preferences(self, aggregator: SnapshotAggregator) -> None:
        report = aggregator.generate(
            "s", user_preferences={"accessibility_needs": ["dyslexia"], "attention_span": "short"}
        )
        assert report.user_profile.accessibility_needs == ["dyslexia"]
        assert report.user_profile.cognitive_patterns.attention_span.value == "short"


# ---------------------------------------------------------------------------
# Handoff reason
# ---------------------------------------------------------------------------


def _trigger(kind: TriggerType) -> HandoffTrigger:
    return HandoffTrigger(
        trigger_type=kind, threshold_reached=0.0, urgency=Urgency.IMMEDIATE, notification_required=True
    )


class TestHandoffReason:
    @pytest.mark.parametrize(
        ("metrics", "trigger", "expected"),
        [
            (ContextMetrics(), _trigger(TriggerType.USER_REQUEST), "User requested a fresh assistant session"),
            (ContextMetrics(), _trigger(TriggerType.SYSTEM_OPTIMIZATION), "System optimization handoff"),
            (
                ContextMetrics(token_usage=122_880),
                None,
                "Emergency context limit reached - immediate handoff required",
            ),
            (
                ContextMetrics(token_usage=110_000),
                None,
                "Context limit approaching - planned handoff for optimal performance",
            ),
            (
                ContextMetrics(session_duration=3_600_000),
                None,
                "Session duration limit reached - fresh context recommended",
            ),
            (ContextMetrics(token_usage=10), None, "Proactive handoff for optimal user experience"),
        ],
    )
    def test_reason(
        self,
        aggregator: SnapshotAggregator,
        metrics: ContextMetrics,
        trigger: HandoffTrigger | None,
        expected: str,
    ) -> None:
        assert aggregator.handoff_reason(metrics, trigger) == expected
        report = aggregator.generate("s", metrics=metrics, trigger=trigger)
        assert report.transition_notes.handoff_reason == expected
        assert report.trigger == trigger


def test_report_json_round_trip(aggregator: SnapshotAggregator, project_state: dict[str, Any]) -> None:
    report = aggregator.generate("s", project_state=project_state)
    assert HandoffReport.from_json(report.to_json()) == report
