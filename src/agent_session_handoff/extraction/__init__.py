"""Pluggable conversation text extraction.

Public surface
--------------
- TextExtractor           - abstract base class
- KeywordExtractor        - default keyword / phrase-pattern implementation
- DEFAULT_THEME_KEYWORDS  - theme keyword list used by default
"""
from __future__ import annotations

from agent_session_handoff.extraction.base import TextExtractor
from agent_session_handoff.extraction.keyword import DEFAULT_THEME_KEYWORDS, KeywordExtractor

__all__ = [
    "DEFAULT_THEME_KEYWORDS",
    "KeywordExtractor",
    "TextExtractor",
]
