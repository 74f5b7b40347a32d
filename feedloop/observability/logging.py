"""Structured logging configuration using structlog.

Events are snake_case names with keyword context. Job handlers bind
conversation and org identifiers once with `job_context` so every line a
run emits carries them.

Feedback text is personal by nature: transcript fields are masked along
with credentials, and e-mail addresses and phone numbers are masked inside
any other string value.
"""

import re
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.contextvars import bind_contextvars, reset_contextvars
from structlog.types import EventDict, WrappedLogger

REDACTED = "[REDACTED]"

# Credentials and contact details
SECRET_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "credentials",
    "access_token",
    "refresh_token",
    "bearer",
    "email",
    "phone",
})

# What reviewers write and what the coach asks them
FEEDBACK_KEYS: frozenset[str] = frozenset({
    "user_message",
    "content",
    "text",
    "messages",
    "transcript",
    "question",
})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-\(\)]{9,}\d")

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


def _is_identifier(key: str) -> bool:
    # UUIDs and platform IDs can look like phone numbers
    return key == "id" or key.endswith("_id") or key.endswith("_ids")


class PIIRedactor:
    """structlog processor masking feedback text and contact details."""

    def __init__(self, masked_keys: frozenset[str] = SECRET_KEYS | FEEDBACK_KEYS) -> None:
        self._masked_keys = masked_keys

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact_mapping(event_dict))

    def _redact_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        redacted: dict[str, Any] = {}
        for key, value in data.items():
            if key.lower() in self._masked_keys:
                redacted[key] = REDACTED
            elif _is_identifier(key):
                redacted[key] = value
            else:
                redacted[key] = self._redact(value)
        return redacted

    def _redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return PHONE_PATTERN.sub("[PHONE]", EMAIL_PATTERN.sub("[EMAIL]", value))
        if isinstance(value, Mapping):
            return self._redact_mapping(value)
        if isinstance(value, list | tuple):
            return [self._redact(item) for item in value]
        return value


@contextmanager
def job_context(**context: Any) -> Iterator[None]:
    """Bind identifiers to every log line emitted inside the block.

    None values are skipped and UUIDs are rendered as strings.
    """
    tokens = bind_contextvars(
        **{key: str(value) for key, value in context.items() if value is not None}
    )
    try:
        yield
    finally:
        reset_contextvars(**tokens)


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structlog for the worker process.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        format: "json" for production, "console" for development
        redact_pii: Mask feedback text, credentials and contact details
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if redact_pii:
        processors.append(PIIRedactor())
    processors.append(
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LEVELS.get(level.upper(), 20)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
