"""Question generation for feedback conversations.

Verbatim questionnaires reuse the theme's first example phrasing exactly.
Everything else is rephrased by the LLM from the theme's intent and goal.
"""

from feedloop.config.models.providers import UnavailablePolicy
from feedloop.conversation.messages import (
    GENERIC_QUESTION,
    get_interaction_label,
    strip_control_chars,
)
from feedloop.conversation.models import TranscriptMessage
from feedloop.observability.logging import get_logger
from feedloop.observability.metrics import LLM_FALLBACKS
from feedloop.org_data.models import InteractionType, Theme
from feedloop.providers.llm.base import LLMMessage, LLMProvider, ProviderError

logger = get_logger(__name__)

QUESTION_TIER = "standard"
QUESTION_MAX_TOKENS = 150
QUESTION_TEMPERATURE = 0.7


class QuestionGenerator:
    """Produces the next question text for a conversation."""

    def __init__(
        self,
        llm: LLMProvider,
        unavailable_policy: UnavailablePolicy = "raise",
    ) -> None:
        """Initialize generator.

        Args:
            llm: Completion provider
            unavailable_policy: "raise" propagates ProviderError so the job
                is retried; "fallback" returns a canned question instead
        """
        self._llm = llm
        self._unavailable_policy = unavailable_policy

    async def generate(
        self,
        theme: Theme | None,
        *,
        verbatim: bool,
        reviewer_name: str,
        subject_name: str,
        interaction_type: InteractionType,
        is_opening: bool,
        prior_messages: list[TranscriptMessage] | None = None,
    ) -> str:
        """Generate one question.

        Returns the generic question when no theme is left, the first
        example phrasing unchanged for verbatim questionnaires, and the
        trimmed LLM output otherwise.
        """
        if theme is None:
            return GENERIC_QUESTION

        if verbatim and theme.example_phrasings:
            return theme.example_phrasings[0]

        system_prompt = build_system_prompt(
            theme,
            reviewer_name=reviewer_name,
            subject_name=subject_name,
            interaction_type=interaction_type,
            is_opening=is_opening,
        )
        messages = [LLMMessage(role="system", content=system_prompt)]
        if not is_opening and prior_messages:
            messages.extend(
                LLMMessage(role=m.role, content=m.content) for m in prior_messages
            )

        try:
            response = await self._llm.complete(
                messages,
                tier=QUESTION_TIER,
                max_tokens=QUESTION_MAX_TOKENS,
                temperature=QUESTION_TEMPERATURE,
            )
        except ProviderError as e:
            if self._unavailable_policy != "fallback":
                raise
            logger.warning(
                "question_generation_fallback",
                theme_id=str(theme.id),
                error=str(e),
            )
            LLM_FALLBACKS.labels(component="question_generator").inc()
            if theme.example_phrasings:
                return theme.example_phrasings[0]
            return GENERIC_QUESTION

        return response.content.strip()


def build_system_prompt(
    theme: Theme,
    *,
    reviewer_name: str,
    subject_name: str,
    interaction_type: InteractionType,
    is_opening: bool,
) -> str:
    """Build the coaching instruction for one question."""
    label = get_interaction_label(interaction_type)
    safe_reviewer = strip_control_chars(reviewer_name)
    safe_subject = strip_control_chars(subject_name)

    if is_opening:
        address_rule = f'- This is the opening message: address {safe_reviewer} by name ("Hi {safe_reviewer}")'
    else:
        address_rule = "- Build on what they just shared"

    lines = [
        f"You are a warm, professional AI coach conducting a {label} conversation.",
        "",
        f"Your goal: {theme.data_goal}",
        f"Theme intent: {theme.intent}",
    ]
    if theme.example_phrasings:
        lines.append(
            "Example phrasings (for inspiration, don't copy verbatim): "
            + " | ".join(theme.example_phrasings)
        )
    lines += [
        "",
        "Rules:",
        "- Ask ONE focused question at a time",
        "- Be conversational and warm, not robotic",
        "- Keep it under 2 sentences",
        address_rule,
        f"- Reference {safe_subject} naturally when relevant",
        "- Never reveal you're following a questionnaire",
    ]
    return "\n".join(lines)
