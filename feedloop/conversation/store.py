"""ConversationStateStore abstract interface.

A passive key/value cache for in-flight conversation state. Every write
refreshes the entry's TTL; expiry is the only cleanup for conversations
the reviewer abandons.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from feedloop.conversation.models import ConversationState


class ConversationStateStore(ABC):
    """Abstract interface for conversation state storage."""

    @abstractmethod
    async def get(self, conversation_id: UUID) -> ConversationState | None:
        """Get state by conversation ID, or None if missing or expired."""
        pass

    @abstractmethod
    async def set(self, state: ConversationState, ttl_seconds: int | None = None) -> None:
        """Write state, replacing any previous value and resetting its TTL."""
        pass

    @abstractmethod
    async def delete(self, conversation_id: UUID) -> bool:
        """Delete state. Returns True if an entry was removed."""
        pass
