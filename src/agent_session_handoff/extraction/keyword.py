"""Keyword and phrase-pattern extraction.

Approximates commitments, decisions, questions and themes with handcrafted
patterns.  No NLP libraries are required and results are deterministic.

Patterns
--------
- Commitment  - first-person future intent ("I will", "I'll", "next, I",
  "I'm going to") in assistant messages
- Decision    - "decision", "decided", "chosen" in assistant messages
- Question    - sentences ending in "?" not yet followed by a reply
- Next step   - "next" or "after that" in user messages
- Theme       - whole-word match against a fixed keyword list

Classes
-------
- KeywordExtractor  - default ``TextExtractor`` implementation
"""
from __future__ import annotations

import re
from typing import Sequence

from agent_session_handoff.conversation import ConversationMessage
from agent_session_handoff.extraction.base import TextExtractor

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_COMMITMENT_RE = re.compile(
    r"\b(?:i\s+will|i['’]ll|next,\s*i|i\s+am\s+going\s+to|i['’]m\s+going\s+to)\b",
    re.IGNORECASE,
)

_DECISION_RE = re.compile(r"\b(?:decision|decided|chosen)\b", re.IGNORECASE)

_NEXT_INTENT_RE = re.compile(r"\b(?:next|after\s+that)\b", re.IGNORECASE)

# Sentence ending in a question mark, up to the previous boundary.
_QUESTION_RE = re.compile(r"[^.!?\n]*\?")

DEFAULT_THEME_KEYWORDS: tuple[str, ...] = (
    "accessibility",
    "dyslexia",
    "adhd",
    "vision holder",
    "systemic",
    "handoff",
    "ai",
    "user interface",
    "backend",
    "frontend",
)


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    words = [re.escape(part) for part in keyword.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class KeywordExtractor(TextExtractor):
    """Extract conversation signals with fixed keyword patterns.

    Parameters
    ----------
    theme_keywords:
        Keywords recognised as themes.  Multi-word keywords match across
        any whitespace.  Defaults to ``DEFAULT_THEME_KEYWORDS``.
    max_commitments:
        Keep at most this many (most recent) commitments.  Default: 10.
    max_decisions:
        Keep at most this many (most recent) decisions.  Default: 5.
    """

    def __init__(
        self,
        theme_keywords: Sequence[str] = DEFAULT_THEME_KEYWORDS,
        max_commitments: int = 10,
        max_decisions: int = 5,
    ) -> None:
        self.theme_keywords: tuple[str, ...] = tuple(k.lower() for k in theme_keywords)
        self.max_commitments = max_commitments
        self.max_decisions = max_decisions
        self._theme_patterns = [(k, _keyword_pattern(k)) for k in self.theme_keywords]

    # ------------------------------------------------------------------
    # TextExtractor interface
    # ------------------------------------------------------------------

    def extract_commitments(self, messages: Sequence[ConversationMessage]) -> list[str]:
        found = [
            m.content
            for m in messages
            if m.is_assistant and _COMMITMENT_RE.search(m.content)
        ]
        return found[-self.max_commitments:] if self.max_commitments else []

    def extract_decisions(self, messages: Sequence[ConversationMessage]) -> list[str]:
        found = [
            m.content
            for m in messages
            if m.is_assistant and _DECISION_RE.search(m.content)
        ]
        return found[-self.max_decisions:] if self.max_decisions else []

    def extract_pending_questions(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return unanswered questions.

        A user question is pending when no assistant message follows it in
        the window.  A question the assistant asked in the final message is
        pending too, since the user has not replied yet.
        """
        questions: list[str] = []
        last_index = len(messages) - 1
        last_assistant_index = max(
            (i for i, m in enumerate(messages) if m.is_assistant), default=-1
        )
        for index, message in enumerate(messages):
            if message.is_user and index > last_assistant_index:
                questions.extend(_questions_in(message.content))
            elif message.is_assistant and index == last_index:
                questions.extend(_questions_in(message.content))
        return questions

    def extract_themes(self, messages: Sequence[ConversationMessage]) -> list[str]:
        seen: set[str] = set()
        for message in messages:
            for keyword, pattern in self._theme_patterns:
                if keyword not in seen and pattern.search(message.content):
                    seen.add(keyword)
        return [k for k in self.theme_keywords if k in seen]

    def extract_next_step_requests(self, messages: Sequence[ConversationMessage]) -> list[str]:
        return [
            m.content
            for m in messages
            if m.is_user and _NEXT_INTENT_RE.search(m.content)
        ]

    def __repr__(self) -> str:
        return f"KeywordExtractor(themes={len(self.theme_keywords)})"


def _questions_in(text: str) -> list[str]:
    return [q.strip() for q in _QUESTION_RE.findall(text) if q.strip() != "?"]
