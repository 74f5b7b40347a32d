"""Tier-routing completion gateway."""

from feedloop.config.models.providers import LLMConfig
from feedloop.observability.logging import get_logger
from feedloop.providers.llm.base import LLMMessage, LLMProvider, LLMResponse, ModelError
from feedloop.providers.llm.executor import LLMExecutor

logger = get_logger(__name__)


class LLMGateway(LLMProvider):
    """Routes completion requests to the executor configured for a tier."""

    def __init__(self, executors: dict[str, LLMExecutor]) -> None:
        self._executors = executors

    @property
    def tiers(self) -> list[str]:
        return list(self._executors)

    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        tier: str = "standard",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        executor = self._executors.get(tier)
        if executor is None:
            raise ModelError(f"No LLM executor registered for tier: {tier}")

        return await executor.generate(
            messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )


def create_gateway(config: LLMConfig) -> LLMGateway:
    """Build a gateway with one executor per configured tier."""
    executors = {
        tier: LLMExecutor(
            model=tier_config.model,
            fallback_models=tier_config.fallback_models,
            timeout=config.timeout,
            tier=tier,
        )
        for tier, tier_config in config.tiers.items()
    }
    logger.info("llm_gateway_created", tiers=list(executors))
    return LLMGateway(executors)
