"""Per-conversation mutual exclusion.

Two replies to the same conversation must never run the
read-decide-generate-write cycle concurrently. The Redis lock covers
multiple worker processes; the in-process lock covers a single process
(tests, development).

Lock key format: convlock:{conversation_id}
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import LockError

from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


class ConversationBusyError(Exception):
    """Raised when the conversation lock could not be acquired in time."""

    def __init__(self, conversation_id: UUID) -> None:
        super().__init__(f"Conversation {conversation_id} is busy")
        self.conversation_id = conversation_id


def lock_key(conversation_id: UUID) -> str:
    """Build the lock key for a conversation."""
    return f"convlock:{conversation_id}"


class ConversationLock(Protocol):
    """Anything that can serialize work on one conversation."""

    def acquire(
        self, conversation_id: UUID, blocking_timeout: float | None = None
    ) -> AbstractAsyncContextManager[bool]: ...


class ConversationMutex:
    """Lock shared by every worker process through Redis.

    The lock expires after lock_timeout seconds so a crashed worker cannot
    wedge a conversation; callers wait at most blocking_timeout seconds.
    """

    def __init__(
        self,
        redis: Redis,
        lock_timeout: int = 120,
        blocking_timeout: float = 10.0,
    ) -> None:
        self._redis = redis
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def acquire(
        self,
        conversation_id: UUID,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        """Yield whether the conversation lock was obtained in time."""
        lock = self._redis.lock(
            lock_key(conversation_id),
            timeout=self._lock_timeout,
            blocking_timeout=blocking_timeout or self._blocking_timeout,
        )

        acquired = await lock.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockError:
                    # Expired while held; another worker may own it now
                    logger.warning(
                        "conversation_lock_expired",
                        conversation_id=str(conversation_id),
                    )

    async def is_locked(self, conversation_id: UUID) -> bool:
        """Check if a conversation is currently locked."""
        return await self._redis.exists(lock_key(conversation_id)) > 0


class InProcessConversationMutex:
    """asyncio-based lock keyed by conversation, for single-process use."""

    def __init__(self, blocking_timeout: float = 10.0) -> None:
        self._blocking_timeout = blocking_timeout
        self._locks: dict[UUID, asyncio.Lock] = {}
        # Holders plus waiters per conversation; the lock is dropped at zero
        self._users: dict[UUID, int] = {}

    @asynccontextmanager
    async def acquire(
        self,
        conversation_id: UUID,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        timeout = blocking_timeout or self._blocking_timeout
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._users[conversation_id] = self._users.get(conversation_id, 0) + 1

        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
                acquired = True
            except TimeoutError:
                acquired = False

            try:
                yield acquired
            finally:
                if acquired:
                    lock.release()
        finally:
            self._users[conversation_id] -= 1
            if self._users[conversation_id] == 0:
                del self._users[conversation_id]
                del self._locks[conversation_id]

    async def is_locked(self, conversation_id: UUID) -> bool:
        lock = self._locks.get(conversation_id)
        return lock is not None and lock.locked()


@asynccontextmanager
async def hold_conversation(
    mutex: ConversationLock, conversation_id: UUID
) -> AsyncGenerator[None, None]:
    """Hold the conversation lock or raise ConversationBusyError."""
    async with mutex.acquire(conversation_id) as acquired:
        if not acquired:
            logger.warning("conversation_lock_timeout", conversation_id=str(conversation_id))
            raise ConversationBusyError(conversation_id)
        yield
