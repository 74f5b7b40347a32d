"""Completion contract shared by the gateway, the executor and the mock.

Ordered role/content messages go in and free text comes out. Callers
treat the text as unreliable prose and parse it themselves.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class LLMMessage(BaseModel):
    role: Role
    content: str


class TokenUsage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class LLMResponse(BaseModel):
    """Completion text plus whatever the backend reported about the call."""

    content: str
    model: str
    finish_reason: str | None = None
    usage: TokenUsage | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class LLMProvider(ABC):
    """Anything that completes a message list for a named tier.

    The "fast" tier serves one-word classification; "standard" writes
    questions.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        tier: str = "standard",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Return generated text, raising ProviderError when no model answers."""


class ProviderError(Exception):
    """No usable completion could be obtained."""


class RateLimitError(ProviderError):
    pass


class ModelError(ProviderError):
    """Unknown tier or model."""
