"""Scripted LLMProvider for tests and offline runs."""

from collections import deque
from typing import Any

from feedloop.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ProviderError,
    TokenUsage,
)


class MockLLMProvider(LLMProvider):
    """Answers from a script instead of a model.

    Each call returns the oldest queued response if any, else the tier's
    response, else default_response. Every call is recorded in
    `call_history`, including calls made while failing.
    """

    def __init__(
        self,
        default_response: str = "Mock response",
        default_model: str = "mock-model",
        tier_responses: dict[str, str] | None = None,
    ) -> None:
        self.default_response = default_response
        self.model = default_model
        self.tier_responses = dict(tier_responses or {})
        self.call_history: list[dict[str, Any]] = []
        self._script: deque[str] = deque()
        self._failing = False

    def queue_response(self, *responses: str) -> None:
        self._script.extend(responses)

    def set_tier_response(self, tier: str, response: str) -> None:
        self.tier_responses[tier] = response

    def fail(self, failing: bool = True) -> None:
        """Raise ProviderError from every call until switched off."""
        self._failing = failing

    def clear_history(self) -> None:
        self.call_history.clear()

    def _next_content(self, tier: str) -> str:
        if self._script:
            return self._script.popleft()
        return self.tier_responses.get(tier, self.default_response)

    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        tier: str = "standard",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        self.call_history.append(
            {"messages": messages, "tier": tier, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self._failing:
            raise ProviderError("Mock provider unavailable")

        content = self._next_content(tier)
        # Rough four-characters-per-token estimate
        prompt = sum(len(m.content) for m in messages) // 4
        completion = len(content) // 4
        return LLMResponse(
            content=content,
            model=self.model,
            finish_reason="stop",
            usage=TokenUsage(
                prompt_tokens=prompt,
                completion_tokens=completion,
                total_tokens=prompt + completion,
            ),
        )
