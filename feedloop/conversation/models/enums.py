"""Conversation enums."""

from enum import Enum


class ConversationPhase(str, Enum):
    """Where a conversation is in its lifecycle.

    opening -> {exploring | follow_up}* -> closing. closing is terminal.
    """

    OPENING = "opening"
    EXPLORING = "exploring"
    FOLLOW_UP = "follow_up"
    CLOSING = "closing"


class Decision(str, Enum):
    """Next action after a user reply."""

    FOLLOW_UP = "follow_up"
    NEXT_THEME = "next_theme"
    CLOSE = "close"


ALLOWED_TRANSITIONS: dict[ConversationPhase, frozenset[ConversationPhase]] = {
    ConversationPhase.OPENING: frozenset({
        ConversationPhase.EXPLORING,
        ConversationPhase.FOLLOW_UP,
        ConversationPhase.CLOSING,
    }),
    ConversationPhase.EXPLORING: frozenset({
        ConversationPhase.EXPLORING,
        ConversationPhase.FOLLOW_UP,
        ConversationPhase.CLOSING,
    }),
    ConversationPhase.FOLLOW_UP: frozenset({
        ConversationPhase.EXPLORING,
        ConversationPhase.FOLLOW_UP,
        ConversationPhase.CLOSING,
    }),
    ConversationPhase.CLOSING: frozenset(),
}
