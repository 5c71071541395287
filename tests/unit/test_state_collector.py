"""Async tests for StateCollector and SnapshotAggregator.agenerate."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import pytest

from agent_session_handoff.conversation import ConversationMessage
from agent_session_handoff.providers import (
    ProjectStateProvider,
    StaticStateProvider,
    TechnicalHealthProvider,
    TextGenerationProvider,
    WisdomMemoryProvider,
)
from agent_session_handoff.report.aggregator import RECENT_SUMMARY_SECTION, SnapshotAggregator
from agent_session_handoff.report.collector import StateCollector
from agent_session_handoff.report.inputs import PROJECT_STATE, TECHNICAL_STATE, WISDOM_STATE


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class SlowProject(ProjectStateProvider):
    async def fetch_project_state(self) -> Any:
        await asyncio.sleep(5)
        return {"mission": {"content": "too late"}}


class BrokenWisdom(WisdomMemoryProvider):
    async def fetch_wisdom_state(self) -> Any:
        raise ConnectionError("wisdom memory unreachable")


class RecordingTechnical(TechnicalHealthProvider):
    def __init__(self) -> None:
        self.calls = 0

    async def fetch_technical_state(self) -> Any:
        self.calls += 1
        return {"system_health": {"api": "up"}}


class FixedSummary(TextGenerationProvider):
    def __init__(self, text: str) -> None:
        self.text = text
        self.received: list[ConversationMessage] = []

    async def summarize(self, messages: Sequence[ConversationMessage], max_chars: int) -> str:
        self.received = list(messages)
        return self.text


class FailingSummary(TextGenerationProvider):
    async def summarize(self, messages: Sequence[ConversationMessage], max_chars: int) -> str:
        raise RuntimeError("model offline")


# ---------------------------------------------------------------------------
# StateCollector
# ---------------------------------------------------------------------------


class TestStateCollector:
    @pytest.mark.asyncio
    async def test_collects_all_sections(self) -> None:
        provider = StaticStateProvider(
            project_state={"mission": {"content": "m"}},
            wisdom_state={"patterns": ["p"]},
            technical_state={"system_health": {}},
        )
        collected = await StateCollector(provider, provider, provider).collect()
        assert collected.project_state == {"mission": {"content": "m"}}
        assert collected.wisdom_state == {"patterns": ["p"]}
        assert collected.failed == []

    @pytest.mark.asyncio
    async def test_missing_providers_yield_none_without_failure(self) -> None:
        collected = await StateCollector().collect()
        assert collected.project_state is None
        assert collected.failed == []

    @pytest.mark.asyncio
    async def test_timeout_and_error_degrade(self, caplog: pytest.LogCaptureFixture) -> None:
        technical = RecordingTechnical()
        collector = StateCollector(SlowProject(), BrokenWisdom(), technical, timeout=0.05)
        with caplog.at_level(logging.WARNING):
            collected = await collector.collect()
        assert collected.project_state is None
        assert collected.wisdom_state is None
        assert collected.technical_state == {"system_health": {"api": "up"}}
        assert sorted(collected.failed) == sorted([PROJECT_STATE, WISDOM_STATE])
        assert technical.calls == 1
        assert "timed out" in caplog.text
        assert "wisdom memory unreachable" in caplog.text

    @pytest.mark.asyncio
    async def test_reads_run_concurrently(self) -> None:
        class Sleepy(ProjectStateProvider, WisdomMemoryProvider, TechnicalHealthProvider):
            async def fetch_project_state(self) -> Any:
                await asyncio.sleep(0.2)
                return {}

            async def fetch_wisdom_state(self) -> Any:
                await asyncio.sleep(0.2)
                return {}

            async def fetch_technical_state(self) -> Any:
                await asyncio.sleep(0.2)
                return {}

        sleepy = Sleepy()
        loop = asyncio.get_running_loop()
        started = loop.time()
        await StateCollector(sleepy, sleepy, sleepy, timeout=2.0).collect()
        assert loop.time() - started < 0.5

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            StateCollector(timeout=0)


# ---------------------------------------------------------------------------
# SnapshotAggregator.agenerate
# ---------------------------------------------------------------------------


class TestAgenerate:
    @pytest.mark.asyncio
    async def test_failed_sources_listed_as_degraded(self) -> None:
        collector = StateCollector(SlowProject(), BrokenWisdom(), RecordingTechnical(), timeout=0.05)
        report = await SnapshotAggregator().agenerate(
            "s", collector, conversation_history=[], user_preferences={}
        )
        assert PROJECT_STATE in report.degraded_sections
        assert WISDOM_STATE in report.degraded_sections
        assert TECHNICAL_STATE not in report.degraded_sections
        assert report.technical_state.system_health == {"api": "up"}
        assert report.executive_summary.current_phase == "Project initialization phase"

    @pytest.mark.asyncio
    async def test_on_collected_runs_before_composition(self) -> None:
        calls: list[str] = []
        report = await SnapshotAggregator().agenerate(
            "s", StateCollector(), on_collected=lambda: calls.append("collected")
        )
        assert calls == ["collected"]
        assert report.previous_session_id == "s"

    @pytest.mark.asyncio
    async def test_on_collected_error_propagates(self) -> None:
        def boom() -> None:
            raise RuntimeError("stop")

        with pytest.raises(RuntimeError):
            await SnapshotAggregator().agenerate("s", StateCollector(), on_collected=boom)

    @pytest.mark.asyncio
    async def test_text_generation_summary_used(self) -> None:
        generator = FixedSummary("  User is planning the v2 launch.  ")
        history = [{"type": "user", "content": f"m{i}"} for i in range(15)]
        report = await SnapshotAggregator().agenerate(
            "s", StateCollector(), conversation_history=history, text_generator=generator
        )
        assert report.conversation_history.recent_summary == "User is planning the v2 launch."
        assert len(generator.received) == 10
        assert RECENT_SUMMARY_SECTION not in report.degraded_sections

    @pytest.mark.asyncio
    async def test_text_generation_summary_capped(self) -> None:
        generator = FixedSummary("w" * 5_000)
        report = await SnapshotAggregator().agenerate(
            "s",
            StateCollector(),
            conversation_history=[{"type": "user", "content": "hi"}],
            text_generator=generator,
        )
        assert len(report.conversation_history.recent_summary) <= 500

    @pytest.mark.asyncio
    async def test_text_generation_failure_falls_back(self) -> None:
        report = await SnapshotAggregator().agenerate(
            "s",
            StateCollector(),
            conversation_history=[{"type": "user", "content": "hello there"}],
            text_generator=FailingSummary(),
        )
        assert report.conversation_history.recent_summary.startswith("Recent conversation:")
        assert RECENT_SUMMARY_SECTION in report.degraded_sections

    @pytest.mark.asyncio
    async def test_text_generation_skipped_for_empty_history(self) -> None:
        generator = FixedSummary("unused")
        report = await SnapshotAggregator().agenerate(
            "s", StateCollector(), conversation_history=[], text_generator=generator
        )
        assert generator.received == []
        assert RECENT_SUMMARY_SECTION not in report.degraded_sections
