"""Organization data: people, relationships, questionnaires, schedule, conversations."""

from feedloop.org_data.models import (
    ConversationMessage,
    ConversationRecord,
    ConversationStatus,
    InteractionScheduleEntry,
    InteractionType,
    Questionnaire,
    QuestionnaireSource,
    Relationship,
    ScheduleStatus,
    Theme,
    User,
    UserPreferences,
)
from feedloop.org_data.store import OrgDataStore

__all__ = [
    "ConversationMessage",
    "ConversationRecord",
    "ConversationStatus",
    "InteractionScheduleEntry",
    "InteractionType",
    "OrgDataStore",
    "Questionnaire",
    "QuestionnaireSource",
    "Relationship",
    "ScheduleStatus",
    "Theme",
    "User",
    "UserPreferences",
]
