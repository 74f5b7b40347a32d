"""LLM provider configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

UnavailablePolicy = Literal["raise", "fallback"]


class LLMTierConfig(BaseModel):
    """Model routing for one completion tier.

    Model strings carry a provider prefix, e.g. 'anthropic/claude-3-5-haiku-latest',
    'openrouter/anthropic/claude-3-haiku' or 'mock/test'.
    """

    model: str = Field(..., description="Primary model string")
    fallback_models: list[str] = Field(
        default_factory=list,
        description="Models tried in order when the primary fails",
    )


def _default_tiers() -> dict[str, LLMTierConfig]:
    return {
        "fast": LLMTierConfig(model="anthropic/claude-3-5-haiku-latest"),
        "standard": LLMTierConfig(model="anthropic/claude-sonnet-4-0"),
    }


class LLMConfig(BaseModel):
    """LLM completion configuration."""

    tiers: dict[str, LLMTierConfig] = Field(
        default_factory=_default_tiers,
        description="Tier name -> model routing",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )
    unavailable_policy: UnavailablePolicy = Field(
        default="raise",
        description=(
            "What to do when every model in a tier fails: 'raise' fails the job "
            "so the queue retries it, 'fallback' continues with canned output"
        ),
    )


class ProvidersConfig(BaseModel):
    """Configuration for AI providers."""

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM completion settings",
    )
