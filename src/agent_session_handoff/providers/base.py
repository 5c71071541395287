"""Abstract base classes for the external collaborators.

The engine reads from these collaborators but never writes to them.  All
methods are coroutines so that network-backed implementations can be awaited
concurrently; the engine wraps each call in its own timeout.

Raw return values (plain dicts) are accepted as well as the typed records
from :mod:`agent_session_handoff.report.records`; the normalisation
boundary validates both.

Classes
-------
- ProjectStateProvider     - project ledger snapshot
- WisdomMemoryProvider     - wisdom-memory snapshot
- TechnicalHealthProvider  - health / error / performance pass-through
- KnowledgeSearchProvider  - ranked prior-session summaries by query
- TextGenerationProvider   - optional summary enrichment
- KnowledgeHit             - one ranked knowledge search result
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from pydantic import BaseModel, Field

from agent_session_handoff.conversation import ConversationMessage


class KnowledgeHit(BaseModel):
    """A prior-session summary returned by knowledge search.

    Parameters
    ----------
    summary:
        Short description of the matching session or document.
    key_points:
        Up to a handful of salient points.
    relevance_score:
        Search relevance; higher is better.
    """

    model_config = {"frozen": True, "extra": "allow"}

    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    relevance_score: float = 0.0


class ProjectStateProvider(ABC):
    """Read access to the project ledger."""

    @abstractmethod
    async def fetch_project_state(self) -> Any:
        """Return the current ledger snapshot (``ProjectState`` or a dict)."""


class WisdomMemoryProvider(ABC):
    """Read access to wisdom memory."""

    @abstractmethod
    async def fetch_wisdom_state(self) -> Any:
        """Return the current wisdom snapshot (``WisdomState`` or a dict)."""


class TechnicalHealthProvider(ABC):
    """Read access to system health."""

    @abstractmethod
    async def fetch_technical_state(self) -> Any:
        """Return health data (``TechnicalSnapshot`` or a dict)."""


class KnowledgeSearchProvider(ABC):
    """Semantic search over stored prior sessions."""

    @abstractmethod
    async def search(self, query: str, limit: int) -> Sequence[KnowledgeHit | dict[str, Any]]:
        """Return at most ``limit`` hits for ``query``, best first.

        Parameters
        ----------
        query:
            Free-text query.
        limit:
            Maximum number of hits.
        """


class TextGenerationProvider(ABC):
    """Optional text generation used to enrich the conversation summary."""

    @abstractmethod
    async def summarize(self, messages: Sequence[ConversationMessage], max_chars: int) -> str:
        """Return a summary of ``messages`` of at most ``max_chars`` characters.

        Implementations may return longer text; the caller truncates.
        """
