"""Errors raised by storage backends.

Backends translate driver exceptions into these so callers never import
redis (or a database driver) just to catch a failure.
"""


class StoreError(Exception):
    """A storage backend failed; `cause` holds the driver exception."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """The backend could not be reached."""


class NotFoundError(StoreError):
    """An update targeted a record that does not exist.

    Reads of missing records return None instead.
    """
