"""Agno-backed execution of one LLM tier.

A tier is a primary model string plus optional fallbacks, tried in order.
The prefix of a model string picks the Agno model class:

    anthropic/claude-3-5-haiku-latest    -> Claude(id="claude-3-5-haiku-latest")
    openai/gpt-4o-mini                   -> OpenAIChat(id="gpt-4o-mini")
    groq/llama-3.1-70b                   -> Groq(id="llama-3.1-70b")
    openrouter/anthropic/claude-3-haiku  -> OpenRouter(id="anthropic/claude-3-haiku")
    mock/anything                        -> canned text, no network

Agno is imported on first real call so mock tiers work without provider SDKs.
"""

from __future__ import annotations

import importlib
import time
from typing import TYPE_CHECKING, Any

from feedloop.observability.logging import get_logger
from feedloop.providers.llm.base import (
    LLMMessage,
    LLMResponse,
    ProviderError,
    RateLimitError,
    TokenUsage,
)

if TYPE_CHECKING:
    from agno.agent import Agent

logger = get_logger(__name__)

MOCK_PROVIDER = "mock"

# prefix -> (module, class)
AGNO_MODELS: dict[str, tuple[str, str]] = {
    "anthropic": ("agno.models.anthropic", "Claude"),
    "openai": ("agno.models.openai", "OpenAIChat"),
    "groq": ("agno.models.groq", "Groq"),
    "openrouter": ("agno.models.openrouter", "OpenRouter"),
}

# Claude takes no request timeout argument
NO_TIMEOUT_PROVIDERS = frozenset({"anthropic"})


def parse_model(model: str) -> tuple[str, str]:
    """Split a model string into (provider, provider-side model id).

    A string without a prefix is treated as a mock model.
    """
    provider, sep, rest = model.partition("/")
    if not sep:
        return MOCK_PROVIDER, model
    return provider, rest


def render_prompt(messages: list[LLMMessage]) -> tuple[str | None, str]:
    """Turn chat messages into Agno's (instructions, input) pair.

    The first system message becomes the instructions. A single remaining
    turn is passed as is; longer histories are labelled by speaker.
    """
    system = next((m.content for m in messages if m.role == "system"), None)
    turns = [m for m in messages if m.role != "system"]

    if not turns:
        return system, "Begin."
    if len(turns) == 1:
        return system, turns[0].content

    labelled = (
        f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in turns
    )
    return system, "\n\n".join(labelled)


class LLMExecutor:
    """Runs completions for one tier, walking the fallback chain on failure."""

    def __init__(
        self,
        model: str,
        fallback_models: list[str] | None = None,
        timeout: float = 60.0,
        tier: str | None = None,
    ) -> None:
        self._model = model
        self._fallback_models = list(fallback_models or [])
        self._timeout = timeout
        self._tier = tier
        # Sampling parameters are fixed when an Agno model is built
        self._models: dict[tuple[str, int, float], Any] = {}

    @property
    def model(self) -> str:
        return self._model

    @property
    def models(self) -> list[str]:
        return [self._model, *self._fallback_models]

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Return the first successful completion in the chain.

        Raises:
            ProviderError: If every model failed
        """
        failures: list[str] = []

        for model in self.models:
            try:
                return await self._call(model, messages, max_tokens, temperature)
            except ProviderError as e:
                logger.warning(
                    "llm_model_failed",
                    model=model,
                    tier=self._tier,
                    rate_limited=isinstance(e, RateLimitError),
                    error=str(e),
                )
                failures.append(f"{model}: {e}")

        raise ProviderError(
            f"All models failed for tier {self._tier}: " + "; ".join(failures)
        )

    async def _call(
        self,
        model: str,
        messages: list[LLMMessage],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        provider, _ = parse_model(model)
        if provider == MOCK_PROVIDER:
            return LLMResponse(
                content=f"Mock response for {model}",
                model=model,
                finish_reason="stop",
                usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            )

        instructions, prompt = render_prompt(messages)
        agent = self._agent_for(model, max_tokens, temperature, instructions)

        started = time.perf_counter()
        try:
            result = await agent.arun(prompt)
        except Exception as e:
            text = str(e).lower()
            if "rate" in text and "limit" in text:
                raise RateLimitError(f"Rate limited by {provider}: {e}") from e
            raise ProviderError(f"{provider} call failed: {e}") from e
        latency_ms = (time.perf_counter() - started) * 1000

        content = str(result.content or "")
        logger.debug(
            "llm_call_complete",
            model=model,
            tier=self._tier,
            latency_ms=round(latency_ms, 2),
            content_length=len(content),
        )
        return LLMResponse(
            content=content,
            model=model,
            finish_reason="stop",
            metadata={"latency_ms": latency_ms, "provider": provider, "tier": self._tier},
        )

    def _agent_for(
        self, model: str, max_tokens: int, temperature: float, instructions: str | None
    ) -> Agent:
        """Fresh agent per call; only the underlying model is reused."""
        from agno.agent import Agent

        key = (model, max_tokens, temperature)
        if key not in self._models:
            self._models[key] = self._build_model(model, max_tokens, temperature)
        return Agent(
            model=self._models[key],
            instructions=[instructions] if instructions else None,
            markdown=False,
        )

    def _build_model(self, model: str, max_tokens: int, temperature: float) -> Any:
        provider, model_id = parse_model(model)
        if provider not in AGNO_MODELS:
            # Unknown prefixes are routed through OpenRouter with the full string
            logger.warning("llm_provider_unknown", model=model, provider=provider)
            provider, model_id = "openrouter", model

        module_name, class_name = AGNO_MODELS[provider]
        model_cls = getattr(importlib.import_module(module_name), class_name)

        params: dict[str, Any] = {"max_tokens": max_tokens, "temperature": temperature}
        if provider not in NO_TIMEOUT_PROVIDERS:
            params["timeout"] = self._timeout
        return model_cls(id=model_id, **params)
