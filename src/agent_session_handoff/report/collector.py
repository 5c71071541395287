"""Concurrent reads from the external state collaborators.

``StateCollector`` issues the project, wisdom and technical reads together
with ``asyncio.gather``.  Each read carries its own timeout.  A read that
raises or times out yields ``None`` for its section and is listed in
``CollectedState.failed``; the collection as a whole never fails.

Classes
-------
- CollectedState  - raw section values plus failed section names
- StateCollector  - gathers the three reads concurrently
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from agent_session_handoff.providers.base import (
    ProjectStateProvider,
    TechnicalHealthProvider,
    WisdomMemoryProvider,
)
from agent_session_handoff.report.inputs import PROJECT_STATE, TECHNICAL_STATE, WISDOM_STATE

logger = logging.getLogger(__name__)


@dataclass
class CollectedState:
    """Raw results of one collection round."""

    project_state: Any = None
    wisdom_state: Any = None
    technical_state: Any = None
    failed: list[str] = field(default_factory=list)


class StateCollector:
    """Read project, wisdom and technical state concurrently.

    Parameters
    ----------
    project_provider:
        Ledger reader.  ``None`` leaves the section empty.
    wisdom_provider:
        Wisdom-memory reader.  ``None`` leaves the section empty.
    technical_provider:
        Health reader.  ``None`` leaves the section empty.
    timeout:
        Per-read timeout in seconds.  Default: 5.0.
    """

    def __init__(
        self,
        project_provider: ProjectStateProvider | None = None,
        wisdom_provider: WisdomMemoryProvider | None = None,
        technical_provider: TechnicalHealthProvider | None = None,
        timeout: float = 5.0,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout!r}.")
        self._project_provider = project_provider
        self._wisdom_provider = wisdom_provider
        self._technical_provider = technical_provider
        self.timeout = timeout

    async def collect(self) -> CollectedState:
        """Run all configured reads concurrently and wait for every one.

        Returns
        -------
        CollectedState
        """
        state = CollectedState()
        project, wisdom, technical = await asyncio.gather(
            self._read(
                PROJECT_STATE,
                self._project_provider.fetch_project_state if self._project_provider else None,
                state,
            ),
            self._read(
                WISDOM_STATE,
                self._wisdom_provider.fetch_wisdom_state if self._wisdom_provider else None,
                state,
            ),
            self._read(
                TECHNICAL_STATE,
                self._technical_provider.fetch_technical_state if self._technical_provider else None,
                state,
            ),
        )
        state.project_state = project
        state.wisdom_state = wisdom
        state.technical_state = technical
        return state

    async def _read(
        self,
        section: str,
        fetch: Callable[[], Awaitable[Any]] | None,
        state: CollectedState,
    ) -> Any:
        if fetch is None:
            return None
        try:
            return await asyncio.wait_for(fetch(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "StateCollector: %s read timed out after %.2fs, using defaults",
                section,
                self.timeout,
            )
        except Exception as exc:  # noqa: BLE001 - any collaborator fault degrades the section
            logger.warning("StateCollector: %s read failed, using defaults: %s", section, exc)
        state.failed.append(section)
        return None

    def __repr__(self) -> str:
        return f"StateCollector(timeout={self.timeout})"
