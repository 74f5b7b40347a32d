"""Conversation domain models."""

from feedloop.conversation.models.enums import (
    ALLOWED_TRANSITIONS,
    ConversationPhase,
    Decision,
)
from feedloop.conversation.models.state import (
    ConversationState,
    InvalidTransitionError,
    TranscriptMessage,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ConversationPhase",
    "ConversationState",
    "Decision",
    "InvalidTransitionError",
    "TranscriptMessage",
]
