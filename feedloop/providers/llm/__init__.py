"""Text completion for question writing and reply classification.

Callers depend on LLMProvider. LLMGateway is the production provider: it
routes each tier to an LLMExecutor that calls Agno models with fallbacks.
"""

from feedloop.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ModelError,
    ProviderError,
    RateLimitError,
    TokenUsage,
)
from feedloop.providers.llm.executor import LLMExecutor
from feedloop.providers.llm.gateway import LLMGateway, create_gateway
from feedloop.providers.llm.mock import MockLLMProvider

__all__ = [
    "LLMExecutor",
    "LLMGateway",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "MockLLMProvider",
    "ModelError",
    "ProviderError",
    "RateLimitError",
    "TokenUsage",
    "create_gateway",
]
