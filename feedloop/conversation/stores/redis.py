"""Conversation state in Redis.

One key per conversation, `{prefix}:{conversation_id}`, holding the state
as JSON. Every write refreshes the TTL so abandoned conversations expire.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

import redis.asyncio as redis

from feedloop.config.models.storage import StateStoreConfig
from feedloop.conversation.models import ConversationState
from feedloop.conversation.store import ConversationStateStore
from feedloop.db.errors import ConnectionError
from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def _redis_errors(operation: str, conversation_id: UUID) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as e:
        logger.error(
            "conversation_state_redis_error",
            operation=operation,
            conversation_id=str(conversation_id),
            error=str(e),
        )
        raise ConnectionError(f"Redis {operation} failed for {conversation_id}: {e}", cause=e) from e


class RedisConversationStateStore(ConversationStateStore):
    """State store sharing its Redis client with the conversation mutex."""

    def __init__(self, client: redis.Redis, config: StateStoreConfig | None = None) -> None:
        self._client = client
        self._config = config or StateStoreConfig()

    def _key(self, conversation_id: UUID) -> str:
        return f"{self._config.key_prefix}:{conversation_id}"

    async def get(self, conversation_id: UUID) -> ConversationState | None:
        with _redis_errors("get", conversation_id):
            raw = await self._client.get(self._key(conversation_id))
        if not raw:
            return None
        return ConversationState.model_validate_json(raw)

    async def set(self, state: ConversationState, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds or self._config.ttl_seconds
        with _redis_errors("set", state.conversation_id):
            await self._client.set(self._key(state.conversation_id), state.model_dump_json(), ex=ttl)

        logger.debug(
            "conversation_state_saved",
            conversation_id=str(state.conversation_id),
            phase=state.phase.value,
            ttl_seconds=ttl,
        )

    async def delete(self, conversation_id: UUID) -> bool:
        with _redis_errors("delete", conversation_id):
            removed = await self._client.delete(self._key(conversation_id))
        return removed > 0
