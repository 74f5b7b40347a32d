"""Store error types shared by every backend."""

from feedloop.db.errors import ConnectionError, NotFoundError, StoreError

__all__ = ["StoreError", "ConnectionError", "NotFoundError"]
