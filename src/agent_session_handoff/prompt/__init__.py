"""Onboarding prompt rendering."""
from __future__ import annotations

from agent_session_handoff.prompt.synthesizer import OnboardingPrompt, OnboardingPromptSynthesizer

__all__ = ["OnboardingPrompt", "OnboardingPromptSynthesizer"]
