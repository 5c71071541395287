"""Static, in-process collaborator implementations.

Useful for tests, the CLI (which loads state from a file) and local
prototyping.  Each provider simply returns the value it was constructed with.

Classes
-------
- StaticStateProvider      - project, wisdom and technical state from values
- StaticKnowledgeSearch    - keyword-overlap search over fixed documents
"""
from __future__ import annotations

import re
from typing import Any, Sequence

from agent_session_handoff.providers.base import (
    KnowledgeHit,
    KnowledgeSearchProvider,
    ProjectStateProvider,
    TechnicalHealthProvider,
    WisdomMemoryProvider,
)


class StaticStateProvider(ProjectStateProvider, WisdomMemoryProvider, TechnicalHealthProvider):
    """Serve fixed project, wisdom and technical snapshots.

    Parameters
    ----------
    project_state:
        Value returned by ``fetch_project_state``.
    wisdom_state:
        Value returned by ``fetch_wisdom_state``.
    technical_state:
        Value returned by ``fetch_technical_state``.
    """

    def __init__(
        self,
        project_state: Any = None,
        wisdom_state: Any = None,
        technical_state: Any = None,
    ) -> None:
        self._project_state = project_state
        self._wisdom_state = wisdom_state
        self._technical_state = technical_state

    async def fetch_project_state(self) -> Any:
        return self._project_state

    async def fetch_wisdom_state(self) -> Any:
        return self._wisdom_state

    async def fetch_technical_state(self) -> Any:
        return self._technical_state

    def __repr__(self) -> str:
        return "StaticStateProvider()"


def _terms(text: str) -> set[str]:
    return {t for t in re.findall(r"[a-z0-9]+", text.lower()) if len(t) > 2}


class StaticKnowledgeSearch(KnowledgeSearchProvider):
    """Rank a fixed list of hits by term overlap with the query.

    Parameters
    ----------
    documents:
        Candidate hits.  Each document's own ``relevance_score`` is replaced
        by the overlap ratio computed for the query.
    """

    def __init__(self, documents: Sequence[KnowledgeHit | dict[str, Any]] = ()) -> None:
        self._documents = [
            d if isinstance(d, KnowledgeHit) else KnowledgeHit.model_validate(d)
            for d in documents
        ]

    async def search(self, query: str, limit: int) -> list[KnowledgeHit]:
        query_terms = _terms(query)
        if not query_terms or limit <= 0:
            return []

        scored: list[tuple[float, int, KnowledgeHit]] = []
        for index, doc in enumerate(self._documents):
            doc_terms = _terms(" ".join([doc.summary, *doc.key_points]))
            overlap = len(query_terms & doc_terms)
            if overlap:
                score = overlap / len(query_terms)
                scored.append((score, index, doc))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [
            doc.model_copy(update={"relevance_score": round(score, 4)})
            for score, _, doc in scored[:limit]
        ]

    def __len__(self) -> int:
        return len(self._documents)
