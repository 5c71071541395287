"""External collaborator interfaces.

Public surface
--------------
- ProjectStateProvider     - abstract ledger reader
- WisdomMemoryProvider     - abstract wisdom-memory reader
- TechnicalHealthProvider  - abstract health reader
- KnowledgeSearchProvider  - abstract knowledge search
- TextGenerationProvider   - abstract optional summariser
- KnowledgeHit             - knowledge search result record
- StaticStateProvider      - fixed-value state provider
- StaticKnowledgeSearch    - term-overlap search over fixed documents
"""
from __future__ import annotations

from agent_session_handoff.providers.base import (
    KnowledgeHit,
    KnowledgeSearchProvider,
    ProjectStateProvider,
    TechnicalHealthProvider,
    TextGenerationProvider,
    WisdomMemoryProvider,
)
from agent_session_handoff.providers.static import StaticKnowledgeSearch, StaticStateProvider

__all__ = [
    "KnowledgeHit",
    "KnowledgeSearchProvider",
    "ProjectStateProvider",
    "StaticKnowledgeSearch",
    "StaticStateProvider",
    "TechnicalHealthProvider",
    "TextGenerationProvider",
    "WisdomMemoryProvider",
]
