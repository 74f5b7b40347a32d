"""Organization data models.

Read-mostly records owned by the relational store: people, the
relationship graph, questionnaires, the interaction schedule and
conversation records.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class InteractionType(str, Enum):
    """Category of feedback exchange."""

    PEER_REVIEW = "peer_review"
    SELF_REFLECTION = "self_reflection"
    THREE_SIXTY = "three_sixty"
    PULSE_CHECK = "pulse_check"


class QuestionnaireSource(str, Enum):
    """Where a questionnaire came from."""

    BUILT_IN = "built_in"
    CUSTOM = "custom"
    IMPORTED = "imported"


class ScheduleStatus(str, Enum):
    """Lifecycle of a planned interaction."""

    PENDING = "pending"
    SENT = "sent"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ConversationStatus(str, Enum):
    """Lifecycle of a persisted conversation record."""

    INITIATED = "initiated"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class UserPreferences(BaseModel):
    """Per-user scheduling preferences. Unset fields use org defaults."""

    weekly_interaction_target: int | None = Field(default=None, ge=0)
    preferred_interaction_time: str | None = Field(
        default=None, description="Local time, HH:mm"
    )
    quiet_days: list[int] | None = Field(
        default=None, description="0=Sunday ... 6=Saturday"
    )


class User(BaseModel):
    """An employee who can review or be reviewed."""

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    name: str
    email: str | None = None
    team_id: UUID | None = None
    timezone: str = Field(default="UTC", description="IANA zone name")
    is_active: bool = True
    onboarding_completed: bool = True
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class Relationship(BaseModel):
    """Directed collaboration edge. Strength is authored externally."""

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    from_user_id: UUID
    to_user_id: UUID
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    label: str = ""
    is_active: bool = True

    def other_party(self, user_id: UUID) -> UUID:
        """Return the end of the edge that is not user_id."""
        return self.to_user_id if self.from_user_id == user_id else self.from_user_id


class Theme(BaseModel):
    """A data-collection direction within a questionnaire."""

    id: UUID = Field(default_factory=uuid4)
    questionnaire_id: UUID
    intent: str
    data_goal: str
    example_phrasings: list[str] = Field(default_factory=list)
    sort_order: int = 0


class Questionnaire(BaseModel):
    """A themed question set for one interaction category."""

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    name: str = ""
    category: str = Field(..., description="Matches an interaction type")
    source: str = Field(default=QuestionnaireSource.BUILT_IN.value)
    verbatim: bool = Field(
        default=False,
        description="Ask the first example phrasing exactly instead of adapting it",
    )
    is_active: bool = True


class InteractionScheduleEntry(BaseModel):
    """Durable record of one planned interaction."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    user_id: UUID = Field(..., description="Reviewer")
    subject_id: UUID | None = None
    interaction_type: InteractionType
    scheduled_at: datetime
    status: ScheduleStatus = ScheduleStatus.PENDING
    conversation_id: UUID | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ConversationRecord(BaseModel):
    """Persisted summary of a conversation."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    reviewer_id: UUID
    subject_id: UUID
    interaction_type: InteractionType
    platform: str
    channel_id: str
    status: ConversationStatus = ConversationStatus.INITIATED
    message_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    initiated_at: datetime | None = None
    closed_at: datetime | None = None
    schedule_entry_id: UUID | None = Field(
        default=None, description="Schedule entry that started this conversation"
    )


class ConversationMessage(BaseModel):
    """One persisted transcript line.

    sequence is the 1-based position in the transcript; a conversation
    holds at most one line per sequence.
    """

    id: UUID = Field(default_factory=uuid4)
    org_id: UUID
    conversation_id: UUID
    sequence: int = Field(..., ge=1)
    role: str
    content: str
    created_at: datetime = Field(default_factory=utc_now)
