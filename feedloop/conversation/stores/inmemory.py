"""In-memory implementation of ConversationStateStore."""

import time
from collections.abc import Callable
from uuid import UUID

from feedloop.conversation.models import ConversationState
from feedloop.conversation.store import ConversationStateStore

DEFAULT_TTL_SECONDS = 86400


class InMemoryConversationStateStore(ConversationStateStore):
    """In-memory implementation for testing and development.

    Stores serialized JSON so callers never share a live object with the
    cache. Expired entries are dropped lazily on read.
    """

    def __init__(
        self,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: dict[UUID, tuple[str, float]] = {}

    async def get(self, conversation_id: UUID) -> ConversationState | None:
        entry = self._entries.get(conversation_id)
        if entry is None:
            return None
        data, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[conversation_id]
            return None
        return ConversationState.model_validate_json(data)

    async def set(self, state: ConversationState, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds or self._default_ttl
        self._entries[state.conversation_id] = (
            state.model_dump_json(),
            self._clock() + ttl,
        )

    async def delete(self, conversation_id: UUID) -> bool:
        return self._entries.pop(conversation_id, None) is not None

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._entries.clear()
