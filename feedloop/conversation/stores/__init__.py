"""Conversation state store implementations."""

from feedloop.conversation.stores.inmemory import InMemoryConversationStateStore
from feedloop.conversation.stores.redis import RedisConversationStateStore

__all__ = [
    "InMemoryConversationStateStore",
    "RedisConversationStateStore",
]
