"""Conversation orchestration.

ConversationOrchestrator runs the per-conversation state machine using
QuestionGenerator and DecisionEngine. In-flight state lives in a
ConversationStateStore and is serialized per conversation by a mutex.
"""

from feedloop.conversation.decision import DecisionEngine, parse_decision
from feedloop.conversation.messages import (
    GENERIC_QUESTION,
    get_closing_message,
    get_max_messages,
    strip_control_chars,
)
from feedloop.conversation.models import (
    ConversationPhase,
    ConversationState,
    Decision,
    InvalidTransitionError,
    TranscriptMessage,
)
from feedloop.conversation.mutex import (
    ConversationBusyError,
    ConversationMutex,
    InProcessConversationMutex,
    hold_conversation,
)
from feedloop.conversation.orchestrator import ConversationOrchestrator, ReplyResult
from feedloop.conversation.questions import QuestionGenerator
from feedloop.conversation.store import ConversationStateStore

__all__ = [
    "ConversationBusyError",
    "ConversationMutex",
    "ConversationOrchestrator",
    "ConversationPhase",
    "ConversationState",
    "ConversationStateStore",
    "Decision",
    "DecisionEngine",
    "GENERIC_QUESTION",
    "InProcessConversationMutex",
    "InvalidTransitionError",
    "QuestionGenerator",
    "ReplyResult",
    "TranscriptMessage",
    "get_closing_message",
    "get_max_messages",
    "hold_conversation",
    "parse_decision",
    "strip_control_chars",
]
