"""Onboarding prompt synthesis.

Turns a stored ``HandoffReport`` into the instruction text handed to the
successor agent.  Rendering is deterministic: the same report always yields
the same prompt, with sections in a fixed order.

Classes
-------
- OnboardingPrompt               - rendered prompt plus a compact context summary
- OnboardingPromptSynthesizer    - renders prompts from reports
"""
from __future__ import annotations

from typing import Any, Sequence

from pydantic import BaseModel, Field

from agent_session_handoff.report.models import HandoffReport

_NONE = "None"
_RECENT_ITEM_COUNT = 2

_CLOSING_DIRECTIVES: tuple[str, ...] = (
    "**Acknowledge continuity**: Briefly mention you're continuing the conversation seamlessly",
    "**Maintain communication style**: Follow the user's established preferences",
    "**Address immediate priorities**: Focus on what the user was working on",
    "**Respect accessibility needs**: Use clear, visual communication as appropriate",
    "**Use knowledge base intelligently**: Only search for additional context when needed",
    "**Keep responses focused**: Don't overwhelm with unnecessary historical context",
)


class OnboardingPrompt(BaseModel):
    """Rendered onboarding prompt.

    Attributes
    ----------
    prompt:
        Full instruction text for the successor agent.
    context_summary:
        Structured subset of the report: ``user_profile``,
        ``immediate_priorities`` and ``continuation_guidance``.
    """

    prompt: str
    context_summary: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


def _bullets(items: Sequence[str]) -> str:
    if not items:
        return _NONE
    return "\n".join(f"- {item}" for item in items)


def _joined(items: Sequence[str], sep: str = ", ") -> str:
    return sep.join(items) if items else _NONE


class OnboardingPromptSynthesizer:
    """Render onboarding prompts from handoff reports.

    Parameters
    ----------
    knowledge_base_location:
        Where the successor can query the full conversation history.
        Quoted verbatim in the knowledge-base section.
    """

    def __init__(self, knowledge_base_location: str = "the knowledge-base search service") -> None:
        self.knowledge_base_location = knowledge_base_location

    def render(self, report: HandoffReport) -> OnboardingPrompt:
        """Render ``report`` into an :class:`OnboardingPrompt`.

        Parameters
        ----------
        report:
            The report to render.  It is not modified.

        Returns
        -------
        OnboardingPrompt
        """
        sections = [
            self._header(),
            self._executive_summary(report),
            self._user_profile(report),
            "### Immediate Priorities\n" + _bullets(report.executive_summary.immediate_priorities),
            self._conversation(report),
            self._project_state(report),
            self._knowledge_base(),
            "### Continuation Guidance\n" + _bullets(report.transition_notes.continuation_guidance),
            "### User Experience Notes\n" + _bullets(report.transition_notes.ux_notes),
            self._closing(),
        ]
        return OnboardingPrompt(
            prompt="\n\n".join(sections),
            context_summary={
                "user_profile": report.user_profile.model_dump(mode="json"),
                "immediate_priorities": list(report.executive_summary.immediate_priorities),
                "continuation_guidance": list(report.transition_notes.continuation_guidance),
            },
        )

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    @staticmethod
    def _header() -> str:
        return (
            "# AI Session Handoff - Seamless Context Transfer\n\n"
            "## CRITICAL: You are continuing an ongoing conversation with a user "
            "who has dyslexia and ADHD"
        )

    @staticmethod
    def _executive_summary(report: HandoffReport) -> str:
        summary = report.executive_summary
        parts = [
            "### Executive Summary",
            f"- **Current Phase**: {summary.current_phase}",
            f"- **Handoff Reason**: {report.transition_notes.handoff_reason}",
            f"- **Context Fill**: {report.context_metrics.fill_label()}",
        ]
        if summary.urgent_items:
            parts.append(
                "- **Urgent Items**: " + "; ".join(item.content for item in summary.urgent_items)
            )
        if summary.next_steps:
            parts.append("- **Next Steps**: " + "; ".join(summary.next_steps))
        return "\n".join(parts)

    @staticmethod
    def _user_profile(report: HandoffReport) -> str:
        profile = report.user_profile
        patterns = profile.cognitive_patterns
        return "\n".join(
            [
                "### User Profile (ESSENTIAL for accessibility)",
                f"- **Communication Style**: {profile.communication_style.value}",
                f"- **Detail Level**: {profile.detail_level.value}",
                f"- **Learning Pace**: {profile.learning_pace.value}",
                f"- **Accessibility Needs**: {_joined(profile.accessibility_needs)}",
                "- **Cognitive Patterns**:",
                f"  - Attention span: {patterns.attention_span.value}",
                f"  - Processing: {patterns.information_processing.value}",
                f"  - Visual preference: {str(patterns.visual_processing_preference).lower()}",
            ]
        )

    @staticmethod
    def _conversation(report: HandoffReport) -> str:
        history = report.conversation_history
        questions = history.pending_questions[-_RECENT_ITEM_COUNT:]
        commitments = history.ai_commitments[-_RECENT_ITEM_COUNT:]
        return "\n".join(
            [
                "### Recent Conversation Context (MINIMAL - Full History in Knowledge Base)",
                f"**Current Topic**: {history.current_topic or 'General discussion'}",
                f"**Last User Request**: {history.last_user_request or _NONE}",
                f"**Recent Summary**: {history.recent_summary or 'No recent conversation'}",
                f"**Pending Questions**: {_joined(questions, '; ')}",
                f"**AI Commitments**: {_joined(commitments, '; ')}",
                f"**Themes**: {_joined(history.conversation_themes)}",
            ]
        )

    @staticmethod
    def _project_state(report: HandoffReport) -> str:
        project = report.project_context
        mission = project.current_mission.content if project.current_mission else ""
        return "\n".join(
            [
                "### Project State",
                f"- **Mission**: {mission or 'Operational phase'}",
                f"- **Active Sagas**: {len(project.active_sagas)} in progress",
                f"- **Current Blockers**: {len(project.current_blockers)} items blocked",
                f"- **Recent Decisions**: {_joined(project.recent_decisions, '; ')}",
            ]
        )

    def _knowledge_base(self) -> str:
        return "\n".join(
            [
                "### Knowledge Base Access Instructions",
                "**IMPORTANT**: Full conversation history is stored in the knowledge base "
                f"at {self.knowledge_base_location}",
                "- Use knowledge base search when you need more context about previous conversations",
                "- Search for relevant topics, decisions, or user requests using semantic search",
                "- Only retrieve what's immediately relevant to avoid context overload",
                "- Focus on continuing the conversation naturally with minimal context",
            ]
        )

    @staticmethod
    def _closing() -> str:
        steps = "\n".join(f"{n}. {text}" for n, text in enumerate(_CLOSING_DIRECTIVES, start=1))
        return (
            "## HANDOFF INSTRUCTIONS\n"
            f"{steps}\n\n"
            "**Start your first response by acknowledging the seamless transition and "
            "immediately addressing the user's most recent context.**"
        )

    def __repr__(self) -> str:
        return f"OnboardingPromptSynthesizer(knowledge_base_location={self.knowledge_base_location!r})"
