"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

StateBackendType = Literal["inmemory", "redis"]


class StateStoreConfig(BaseModel):
    """Conversation state store configuration.

    The state store is a TTL-bounded cache of in-flight conversations.
    Expiry is the only cleanup mechanism for abandoned conversations.
    """

    backend: StateBackendType = Field(
        default="redis",
        description="Backend type",
    )
    connection_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    key_prefix: str = Field(
        default="conversation",
        description="Redis key prefix for conversation state keys",
    )
    ttl_seconds: int = Field(
        default=86400,  # 24 hours
        gt=0,
        description="TTL applied on every write (seconds)",
    )


class MutexConfig(BaseModel):
    """Per-conversation lock configuration."""

    lock_timeout: int = Field(
        default=120,
        gt=0,
        description="How long a lock is held before auto-release (seconds)",
    )
    blocking_timeout: float = Field(
        default=10.0,
        gt=0,
        description="How long to wait when acquiring a lock (seconds)",
    )


class StorageConfig(BaseModel):
    """Configuration for all storage backends."""

    state: StateStoreConfig = Field(
        default_factory=StateStoreConfig,
        description="ConversationStateStore backend",
    )
    mutex: MutexConfig = Field(
        default_factory=MutexConfig,
        description="ConversationMutex settings",
    )
