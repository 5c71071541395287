"""Unit tests for conversation helpers and agent_session_handoff.extraction."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from agent_session_handoff.conversation import (
    ConversationMessage,
    MessageRole,
    last_user_message,
    tail,
    truncate,
)
from agent_session_handoff.extraction import DEFAULT_THEME_KEYWORDS, KeywordExtractor, TextExtractor


def user(text: str) -> ConversationMessage:
    return ConversationMessage(role=MessageRole.USER, content=text)


def assistant(text: str) -> ConversationMessage:
    return ConversationMessage(role=MessageRole.ASSISTANT, content=text)


# ---------------------------------------------------------------------------
# ConversationMessage
# ---------------------------------------------------------------------------


class TestConversationMessage:
    def test_type_key_accepted_as_role(self) -> None:
        message = ConversationMessage.model_validate({"type": "user", "content": "hi"})
        assert message.is_user

    @pytest.mark.parametrize("alias", ["ai", "bot", "model", "Assistant"])
    def test_assistant_aliases(self, alias: str) -> None:
        assert ConversationMessage.model_validate({"role": alias}).is_assistant

    def test_human_alias(self) -> None:
        assert ConversationMessage.model_validate({"role": "human"}).role is MessageRole.USER

    def test_content_coerced_to_string(self) -> None:
        assert ConversationMessage.model_validate({"role": "user", "content": 42}).content == "42"

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConversationMessage.model_validate({"role": "narrator", "content": "x"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_truncate_short_text_unchanged(self) -> None:
        assert truncate("abc", 5) == "abc"

    def test_truncate_without_suffix(self) -> None:
        assert truncate("abcdef", 3) == "abc"

    def test_truncate_suffix_counts_toward_limit(self) -> None:
        clipped = truncate("abcdefghij", 6, suffix="...")
        assert clipped == "abc..."
        assert len(clipped) == 6

    def test_last_user_message(self) -> None:
        messages = [user("first"), assistant("reply"), user("second"), assistant("again")]
        found = last_user_message(messages)
        assert found is not None
        assert found.content == "second"

    def test_last_user_message_none(self) -> None:
        assert last_user_message([assistant("only me")]) is None

    def test_tail(self) -> None:
        messages = [user(str(i)) for i in range(10)]
        assert [m.content for m in tail(messages, 3)] == ["7", "8", "9"]
        assert tail(messages, 0) == []
        assert len(tail(messages, 50)) == 10


# ---------------------------------------------------------------------------
# KeywordExtractor
# ---------------------------------------------------------------------------


class TestKeywordExtractor:
    def test_is_text_extractor(self) -> None:
        assert isinstance(KeywordExtractor(), TextExtractor)

    def test_commitments_from_assistant_only(self) -> None:
        messages = [
            user("I will be out tomorrow"),
            assistant("I'll draft the outline tonight."),
            assistant("Here is a summary."),
            assistant("I am going to check the logs."),
        ]
        assert KeywordExtractor().extract_commitments(messages) == [
            "I'll draft the outline tonight.",
            "I am going to check the logs.",
        ]

    def test_commitments_capped_to_most_recent(self) -> None:
        messages = [assistant(f"I will do task {i}") for i in range(5)]
        found = KeywordExtractor(max_commitments=2).extract_commitments(messages)
        assert found == ["I will do task 3", "I will do task 4"]

    def test_decisions(self) -> None:
        messages = [
            assistant("We decided to use SQLite."),
            user("I decided nothing."),
            assistant("The chosen layout is a grid."),
            assistant("No choice here."),
        ]
        assert KeywordExtractor().extract_decisions(messages) == [
            "We decided to use SQLite.",
            "The chosen layout is a grid.",
        ]

    def test_pending_user_questions_after_last_reply(self) -> None:
        messages = [
            user("What is the plan?"),
            assistant("The plan is ready."),
            user("Thanks. Can you share it? And the timeline?"),
        ]
        assert KeywordExtractor().extract_pending_questions(messages) == [
            "Can you share it?",
            "And the timeline?",
        ]

    def test_answered_questions_are_not_pending(self) -> None:
        messages = [user("Is it done?"), assistant("Yes, it is done.")]
        assert KeywordExtractor().extract_pending_questions(messages) == []

    def test_assistant_question_in_final_message_is_pending(self) -> None:
        messages = [user("Help me plan."), assistant("Sure. Which day works for you?")]
        assert KeywordExtractor().extract_pending_questions(messages) == ["Which day works for you?"]

    def test_themes_in_keyword_order(self) -> None:
        messages = [
            user("The frontend needs work"),
            assistant("Accessibility first, then the backend."),
            user("We discussed the handoff and ADHD support"),
        ]
        assert KeywordExtractor().extract_themes(messages) == [
            "accessibility",
            "adhd",
            "handoff",
            "backend",
            "frontend",
        ]

    def test_themes_match_whole_words(self) -> None:
        messages = [user("I said it again and again")]
        assert "ai" not in KeywordExtractor().extract_themes(messages)

    def test_multi_word_theme(self) -> None:
        messages = [user("The user   interface is confusing")]
        assert KeywordExtractor().extract_themes(messages) == ["user interface"]

    def test_custom_theme_keywords(self) -> None:
        extractor = KeywordExtractor(theme_keywords=["Billing"])
        assert extractor.extract_themes([user("billing is broken")]) == ["billing"]

    def test_next_step_requests(self) -> None:
        messages = [
            user("Next, add tests"),
            assistant("Next I will add tests"),
            user("After that, ship it"),
            user("Nothing else"),
        ]
        assert KeywordExtractor().extract_next_step_requests(messages) == [
            "Next, add tests",
            "After that, ship it",
        ]

    def test_default_keywords_exposed(self) -> None:
        assert "accessibility" in DEFAULT_THEME_KEYWORDS
