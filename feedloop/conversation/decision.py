"""Next-action decision after a user reply.

Two budget rules are checked before the LLM is consulted. The LLM is only
asked to classify the reply when neither rule fires, and its answer is
parsed by substring so malformed output falls through to next_theme.
"""

from feedloop.config.models.providers import UnavailablePolicy
from feedloop.conversation.models import ConversationPhase, ConversationState, Decision
from feedloop.observability.logging import get_logger
from feedloop.observability.metrics import DECISIONS, LLM_FALLBACKS
from feedloop.providers.llm.base import LLMMessage, LLMProvider, ProviderError

logger = get_logger(__name__)

DECISION_TIER = "fast"
DECISION_MAX_TOKENS = 10
DECISION_TEMPERATURE = 0.0

DECISION_PROMPT = """You are analyzing a conversation reply to decide the next action.

Evaluate:
1. Is the reply substantive and specific?
2. Is there a clear opportunity for a follow-up question?

Respond with exactly ONE word: "follow_up" if the reply is vague or invites \
a deeper question, "next_theme" if it is complete and specific, or "close" \
if it is natural to end the conversation here."""


def parse_decision(raw: str) -> Decision:
    """Map free-form LLM output onto a Decision."""
    text = raw.strip().lower()
    if "follow_up" in text:
        return Decision.FOLLOW_UP
    if "close" in text:
        return Decision.CLOSE
    return Decision.NEXT_THEME


class DecisionEngine:
    """Decides whether to follow up, move on, or close."""

    def __init__(
        self,
        llm: LLMProvider,
        unavailable_policy: UnavailablePolicy = "raise",
    ) -> None:
        self._llm = llm
        self._unavailable_policy = unavailable_policy

    def rule_decision(self, state: ConversationState) -> Decision | None:
        """Deterministic budget checks. None means the LLM decides."""
        themes_exhausted = state.current_theme_index >= len(state.selected_themes) - 1
        if themes_exhausted and state.phase != ConversationPhase.OPENING:
            return Decision.CLOSE
        if state.message_count >= state.max_messages - 1:
            return Decision.CLOSE
        return None

    async def decide(self, state: ConversationState, last_reply: str) -> Decision:
        decision = self.rule_decision(state)
        if decision is not None:
            logger.debug(
                "decision_by_rule",
                conversation_id=str(state.conversation_id),
                decision=decision.value,
                message_count=state.message_count,
                theme_index=state.current_theme_index,
            )
            DECISIONS.labels(decision=decision.value, source="rule").inc()
            return decision

        messages = [
            LLMMessage(role="system", content=DECISION_PROMPT),
            LLMMessage(role="user", content=last_reply),
        ]
        try:
            response = await self._llm.complete(
                messages,
                tier=DECISION_TIER,
                max_tokens=DECISION_MAX_TOKENS,
                temperature=DECISION_TEMPERATURE,
            )
        except ProviderError as e:
            if self._unavailable_policy != "fallback":
                raise
            logger.warning(
                "decision_fallback",
                conversation_id=str(state.conversation_id),
                error=str(e),
            )
            LLM_FALLBACKS.labels(component="decision_engine").inc()
            DECISIONS.labels(decision=Decision.NEXT_THEME.value, source="fallback").inc()
            return Decision.NEXT_THEME

        decision = parse_decision(response.content)
        logger.debug(
            "decision_by_llm",
            conversation_id=str(state.conversation_id),
            decision=decision.value,
        )
        DECISIONS.labels(decision=decision.value, source="llm").inc()
        return decision
