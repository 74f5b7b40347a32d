"""In-flight conversation state."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from feedloop.conversation.models.enums import ALLOWED_TRANSITIONS, ConversationPhase
from feedloop.org_data.models import InteractionType, utc_now
from feedloop.providers.llm.base import Role


class InvalidTransitionError(Exception):
    """Raised when a phase change is not allowed from the current phase."""

    def __init__(self, current: ConversationPhase, target: ConversationPhase) -> None:
        super().__init__(f"Cannot move conversation from {current.value} to {target.value}")
        self.current = current
        self.target = target


class TranscriptMessage(BaseModel):
    """One transcript line kept as LLM context."""

    role: Role
    content: str


class ConversationState(BaseModel):
    """The mutable aggregate that drives one conversation.

    Created by the orchestrator on initiate, mutated on every reply and
    dropped from the state store once the conversation closes or expires.
    """

    model_config = ConfigDict(validate_assignment=True)

    # Identity
    conversation_id: UUID = Field(..., description="Conversation record ID")
    org_id: UUID = Field(..., description="Owning organization")
    reviewer_id: UUID = Field(..., description="Person being asked")
    subject_id: UUID = Field(..., description="Person being discussed")
    interaction_type: InteractionType = Field(..., description="Feedback category")
    questionnaire_id: UUID = Field(..., description="Questionnaire in use")

    # Channel
    platform: str = Field(..., description="Chat platform identifier")
    channel_id: str = Field(..., description="Platform channel ID")
    thread_id: str | None = Field(default=None, description="Platform thread ID")

    # Plan
    selected_themes: list[UUID] = Field(
        default_factory=list, description="Ordered theme IDs for this conversation"
    )
    current_theme_index: int = Field(default=0, ge=0)

    # Progress
    message_count: int = Field(default=0, ge=0)
    max_messages: int = Field(..., gt=0, description="Fixed at creation")
    phase: ConversationPhase = Field(default=ConversationPhase.OPENING)

    messages: list[TranscriptMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_closed(self) -> bool:
        return self.phase == ConversationPhase.CLOSING

    @property
    def current_theme_id(self) -> UUID | None:
        if self.current_theme_index < len(self.selected_themes):
            return self.selected_themes[self.current_theme_index]
        return None

    @property
    def has_next_theme(self) -> bool:
        return self.current_theme_index + 1 < len(self.selected_themes)

    def transition_to(self, target: ConversationPhase) -> None:
        """Move to a new phase, enforcing the allowed transition table."""
        if target not in ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidTransitionError(self.phase, target)
        self.phase = target

    def append_message(self, role: Role, content: str) -> None:
        """Add a transcript line and count it."""
        self.messages.append(TranscriptMessage(role=role, content=content))
        self.message_count += 1
