"""Chat gateway routing outbound messages to platform adapters."""

import asyncio

from feedloop.channels.adapter import ChatAdapter
from feedloop.channels.models import DeliveryResult, OutboundMessage
from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


class ChatGateway:
    """Registry of chat adapters keyed by platform.

    Delivery is fire-and-forget from the caller's point of view: a
    platform with no adapter is skipped silently, and adapter failures
    are retried with exponential backoff and then reported in the
    DeliveryResult instead of raised.
    """

    def __init__(self, attempts: int = 3, base_delay: float = 0.5) -> None:
        self._adapters: dict[str, ChatAdapter] = {}
        self._attempts = attempts
        self._base_delay = base_delay

    def register_adapter(self, adapter: ChatAdapter) -> None:
        if adapter.platform in self._adapters:
            logger.warning("chat_adapter_overridden", platform=adapter.platform)
        self._adapters[adapter.platform] = adapter
        logger.info("chat_adapter_registered", platform=adapter.platform)

    def has_platform(self, platform: str) -> bool:
        return platform in self._adapters

    def list_platforms(self) -> list[str]:
        return list(self._adapters.keys())

    async def send(self, message: OutboundMessage) -> DeliveryResult:
        """Send a message to the adapter registered for its platform."""
        adapter = self._adapters.get(message.platform)
        if adapter is None:
            logger.debug(
                "chat_delivery_skipped",
                platform=message.platform,
                channel_id=message.channel_id,
            )
            return DeliveryResult(success=False, skipped=True)

        last_error: Exception | None = None
        for attempt in range(self._attempts):
            try:
                provider_message_id = await adapter.send_message(message)
            except Exception as e:
                last_error = e
                logger.warning(
                    "chat_delivery_attempt_failed",
                    platform=message.platform,
                    channel_id=message.channel_id,
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt < self._attempts - 1:
                    await asyncio.sleep(self._base_delay * 2**attempt)
                continue

            logger.info(
                "chat_message_sent",
                platform=message.platform,
                channel_id=message.channel_id,
                provider_message_id=provider_message_id,
            )
            return DeliveryResult(
                success=True, provider_message_id=provider_message_id
            )

        logger.error(
            "chat_delivery_failed",
            platform=message.platform,
            channel_id=message.channel_id,
            error=str(last_error),
        )
        return DeliveryResult(success=False, error_message=str(last_error))
