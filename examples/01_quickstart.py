#!/usr/bin/env python3
"""Example: Quickstart - agent-session-handoff

Minimal working example: feed usage samples to the engine until a handoff
is triggered, generate a report, and render the onboarding prompt for the
successor session.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agent-session-handoff
"""
from __future__ import annotations

import asyncio
import time

import agent_session_handoff
from agent_session_handoff import (
    HandoffEngine,
    StateSnapshot,
    StaticKnowledgeSearch,
)


async def main() -> None:
    print(f"agent-session-handoff version: {agent_session_handoff.__version__}")

    engine = HandoffEngine(
        knowledge_search=StaticKnowledgeSearch(
            [{"summary": "Calendar sync kickoff", "key_points": ["oauth scopes agreed"]}]
        )
    )
    session_start = int(time.time() * 1000)

    # Step 1: Usage samples; the last one crosses the emergency threshold
    for tokens in (40_000, 104_000, 122_880):
        result = engine.submit_usage_sample("session-001", tokens, 42, session_start)
        trigger = result.trigger.urgency.value if result.trigger else "none"
        print(f"  {result.metrics.fill_label():>6} trigger={trigger} stage={result.stage.value}")

    # Step 2: Generate and store the report
    snapshot = StateSnapshot(
        project_state={
            "mission": {"content": "Ship calendar sync for the planner app"},
            "sagas": [{"content": "OAuth flow", "status": "active", "priority": "high"}],
        },
        conversation_history=[
            {"type": "user", "content": "Where did we land on the OAuth scopes?"},
            {"type": "ai", "content": "I will list the scopes we agreed on."},
            {"type": "user", "content": "Next, draft the token refresh logic"},
        ],
        user_preferences={"communication_style": "visual", "accessibility_needs": ["dyslexia"]},
    )
    generated = await engine.generate_report("session-001", snapshot)
    print(f"\nReport {generated.handoff_id}")
    print(f"  Reason: {generated.report.transition_notes.handoff_reason}")

    # Step 3: Hand off and print the onboarding prompt
    prompt = engine.execute_handoff("session-001")
    print(f"  Stage after handoff: {engine.stage('session-001').value}")
    print("\n" + prompt.prompt)

    # Step 4: Prior-session lookup for the successor
    context = await engine.retrieve_context("calendar oauth")
    print(f"\nRelevant prior sessions: {context.total_relevant_sessions}")


if __name__ == "__main__":
    asyncio.run(main())
