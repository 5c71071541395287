"""Abstract base class for conversation text extractors.

The aggregator never inspects message text directly; it asks a
``TextExtractor`` for commitments, decisions, open questions, themes and
next-step requests.  The default implementation is keyword based
(``KeywordExtractor``); a model-backed extractor can replace it without any
change to the aggregator.

Classes
-------
- TextExtractor  - abstract base for all extractors
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from agent_session_handoff.conversation import ConversationMessage


class TextExtractor(ABC):
    """Protocol for heuristic or model-based conversation extraction.

    Every method receives an ordered window of messages (oldest first) and
    must return plain strings.  Implementations must not raise on empty
    input; they return an empty list instead.
    """

    @abstractmethod
    def extract_commitments(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return assistant statements promising future work.

        Parameters
        ----------
        messages:
            Message window to scan.

        Returns
        -------
        list[str]
            Commitment texts, oldest first.
        """

    @abstractmethod
    def extract_decisions(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return assistant statements recording a decision."""

    @abstractmethod
    def extract_pending_questions(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return questions that have not yet been answered in the window."""

    @abstractmethod
    def extract_themes(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return the set of conversation themes, in a stable order."""

    @abstractmethod
    def extract_next_step_requests(self, messages: Sequence[ConversationMessage]) -> list[str]:
        """Return user messages that ask for a next step."""
