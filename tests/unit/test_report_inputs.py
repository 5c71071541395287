"""Unit tests for agent_session_handoff.report.inputs and report.records."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from agent_session_handoff.report.inputs import (
    CONVERSATION_HISTORY,
    PROJECT_STATE,
    TECHNICAL_STATE,
    USER_PREFERENCES,
    WISDOM_STATE,
    normalize_inputs,
)
from agent_session_handoff.report.records import (
    CommunicationStyle,
    DetailLevel,
    LedgerEntry,
    Mission,
    ProjectState,
    UserPreferences,
)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class TestRecords:
    def test_mission_accepts_statement_key(self) -> None:
        assert Mission.model_validate({"statement": "Help people"}).content == "Help people"

    def test_mission_accepts_plain_string(self) -> None:
        assert Mission.model_validate("Help people").content == "Help people"

    def test_ledger_entry_aliases_and_case(self) -> None:
        entry = LedgerEntry.model_validate(
            {"id": 7, "title": "Refactor", "status": "BLOCKED", "priority": " High ", "type": "Saga"}
        )
        assert entry.entry_id == "7"
        assert entry.content == "Refactor"
        assert entry.status == "blocked"
        assert entry.priority == "high"
        assert entry.entry_type == "saga"

    def test_ledger_entry_expiry(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        stale = LedgerEntry(content="old", expiration=now - timedelta(days=1))
        fresh = LedgerEntry(content="new", expiration=now + timedelta(days=1))
        assert stale.is_expired(now)
        assert not fresh.is_expired(now)
        assert not LedgerEntry(content="forever").is_expired(now)

    def test_unparseable_expiration_never_expires(self) -> None:
        entry = LedgerEntry.model_validate({"content": "trial", "expiration": "next week"})
        assert entry.expiration is None
        assert not entry.is_expired()

    def test_preferences_unknown_enum_falls_back(self) -> None:
        prefs = UserPreferences.model_validate(
            {"communication_style": "telepathy", "detail_level": "LOW"}
        )
        assert prefs.communication_style is CommunicationStyle.MIXED
        assert prefs.detail_level is DetailLevel.LOW

    def test_preferences_flatten_cognitive_patterns(self) -> None:
        prefs = UserPreferences.model_validate(
            {"cognitive_patterns": {"attention_span": "short", "visual_processing_preference": False}}
        )
        assert prefs.attention_span.value == "short"
        assert prefs.visual_processing_preference is False

    def test_preferences_missing_booleans_default_true(self) -> None:
        prefs = UserPreferences.model_validate({"working_memory_support": None})
        assert prefs.working_memory_support is True
        assert prefs.visual_processing_preference is True

    def test_preferences_string_list_coerced(self) -> None:
        prefs = UserPreferences.model_validate({"accessibility_needs": "dyslexia"})
        assert prefs.accessibility_needs == ["dyslexia"]


# ---------------------------------------------------------------------------
# normalize_inputs
# ---------------------------------------------------------------------------


class TestNormalizeInputs:
    def test_all_missing_marks_every_section(self) -> None:
        inputs = normalize_inputs()
        assert inputs.degraded == [
            PROJECT_STATE,
            WISDOM_STATE,
            CONVERSATION_HISTORY,
            USER_PREFERENCES,
            TECHNICAL_STATE,
        ]
        assert inputs.project == ProjectState()
        assert inputs.messages == []

    def test_clean_inputs_not_degraded(self) -> None:
        inputs = normalize_inputs(
            project_state={"mission": {"content": "m"}},
            wisdom_state={"patterns": ["short answers"]},
            conversation_history=[{"type": "user", "content": "hello"}],
            user_preferences={"detail_level": "high"},
            technical_state={"system_health": {"db": "ok"}},
        )
        assert inputs.degraded == []
        assert inputs.project.mission is not None
        assert inputs.messages[0].content == "hello"

    def test_typed_models_pass_through(self) -> None:
        project = ProjectState(mission=Mission(content="typed"))
        inputs = normalize_inputs(project_state=project, conversation_history=[])
        assert inputs.project is project
        assert PROJECT_STATE not in inputs.degraded
        assert CONVERSATION_HISTORY not in inputs.degraded

    def test_wrong_type_defaults(self) -> None:
        inputs = normalize_inputs(project_state=["not", "a", "mapping"])
        assert inputs.project == ProjectState()
        assert PROJECT_STATE in inputs.degraded

    def test_malformed_section_defaults(self) -> None:
        inputs = normalize_inputs(project_state={"sagas": "not-a-list"})
        assert inputs.project == ProjectState()
        assert PROJECT_STATE in inputs.degraded

    def test_malformed_ledger_items_dropped(self) -> None:
        inputs = normalize_inputs(
            project_state={
                "mission": "Keep going",
                "sagas": [{"content": "kept", "status": "active"}, 42, None],
                "entries": "not-a-list",
            }
        )
        assert inputs.project.mission is not None
        assert inputs.project.mission.content == "Keep going"
        assert [s.content for s in inputs.project.sagas] == ["kept"]
        assert inputs.project.entries == []
        assert PROJECT_STATE in inputs.degraded

    def test_malformed_insight_dropped(self) -> None:
        inputs = normalize_inputs(
            wisdom_state={"insights": [{"text": "chunk replies", "relevance_score": 0.9}, "x"]}
        )
        assert [i.text for i in inputs.wisdom.insights] == ["chunk replies"]
        assert WISDOM_STATE in inputs.degraded

    def test_clean_ledger_not_degraded(self) -> None:
        inputs = normalize_inputs(project_state={"sagas": [{"content": "a"}]})
        assert PROJECT_STATE not in inputs.degraded

    def test_malformed_messages_dropped(self) -> None:
        inputs = normalize_inputs(
            conversation_history=[
                {"type": "user", "content": "kept"},
                {"content": "no role"},
                "not a message",
                {"role": "assistant", "content": "also kept"},
            ]
        )
        assert [m.content for m in inputs.messages] == ["kept", "also kept"]
        assert CONVERSATION_HISTORY in inputs.degraded

    def test_string_history_rejected(self) -> None:
        inputs = normalize_inputs(conversation_history="hello")
        assert inputs.messages == []
        assert CONVERSATION_HISTORY in inputs.degraded
