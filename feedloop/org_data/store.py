"""OrgDataStore abstract interface.

Contract for the relational store the conversation and scheduling
components read from and write to. Every call is scoped to one org.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from feedloop.org_data.models import (
    ConversationMessage,
    ConversationRecord,
    InteractionScheduleEntry,
    Questionnaire,
    Relationship,
    Theme,
    User,
)


class OrgDataStore(ABC):
    """Abstract interface for organization data."""

    # Organizations

    @abstractmethod
    async def list_org_ids(self) -> list[UUID]:
        """List organizations that have at least one active user."""
        pass

    # Users

    @abstractmethod
    async def get_user(self, org_id: UUID, user_id: UUID) -> User | None:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def list_schedulable_users(self, org_id: UUID) -> list[User]:
        """List users that are active and have completed onboarding."""
        pass

    @abstractmethod
    async def list_active_users(
        self,
        org_id: UUID,
        *,
        team_id: UUID | None = None,
    ) -> list[User]:
        """List active users, restricted to a team when team_id is given."""
        pass

    @abstractmethod
    async def get_channel_id(
        self, org_id: UUID, user_id: UUID, platform: str
    ) -> str | None:
        """Get the direct-message channel for a user on a chat platform."""
        pass

    # Relationship graph

    @abstractmethod
    async def list_relationships(
        self, org_id: UUID, user_id: UUID
    ) -> list[Relationship]:
        """List active relationships where user_id is either end."""
        pass

    # Questionnaires

    @abstractmethod
    async def list_active_questionnaires(self, org_id: UUID) -> list[Questionnaire]:
        """List active questionnaires in stable (creation) order."""
        pass

    @abstractmethod
    async def get_questionnaire(
        self, org_id: UUID, questionnaire_id: UUID
    ) -> Questionnaire | None:
        """Get a questionnaire by ID."""
        pass

    @abstractmethod
    async def list_themes(self, org_id: UUID, questionnaire_id: UUID) -> list[Theme]:
        """List a questionnaire's themes ordered by sort_order."""
        pass

    @abstractmethod
    async def get_theme(self, org_id: UUID, theme_id: UUID) -> Theme | None:
        """Get a theme by ID."""
        pass

    # Interaction schedule

    @abstractmethod
    async def list_schedule_entries(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[InteractionScheduleEntry]:
        """List schedule entries with start <= scheduled_at <= end."""
        pass

    @abstractmethod
    async def save_schedule_entry(self, entry: InteractionScheduleEntry) -> UUID:
        """Create or replace a schedule entry, returning its ID."""
        pass

    @abstractmethod
    async def update_schedule_entry(
        self,
        org_id: UUID,
        entry_id: UUID,
        **fields: Any,
    ) -> None:
        """Update fields (status, conversation_id) on a schedule entry."""
        pass

    @abstractmethod
    async def delete_schedule_entry(self, org_id: UUID, entry_id: UUID) -> bool:
        """Remove a schedule entry. Returns False if it did not exist."""
        pass

    # Conversations

    @abstractmethod
    async def create_conversation(self, record: ConversationRecord) -> UUID:
        """Persist a new conversation record, returning its ID."""
        pass

    @abstractmethod
    async def get_conversation(
        self, org_id: UUID, conversation_id: UUID
    ) -> ConversationRecord | None:
        """Get a conversation record by ID."""
        pass

    @abstractmethod
    async def update_conversation(
        self,
        org_id: UUID,
        conversation_id: UUID,
        **fields: Any,
    ) -> None:
        """Update fields (status, message_count, closed_at) on a conversation."""
        pass

    @abstractmethod
    async def list_recent_conversations(
        self,
        org_id: UUID,
        reviewer_id: UUID,
        *,
        limit: int = 5,
    ) -> list[ConversationRecord]:
        """List a reviewer's conversations, newest first."""
        pass

    @abstractmethod
    async def find_conversation_for_schedule_entry(
        self, org_id: UUID, schedule_entry_id: UUID
    ) -> ConversationRecord | None:
        """Get the conversation a schedule entry already started, if any."""
        pass

    @abstractmethod
    async def save_message(self, message: ConversationMessage) -> None:
        """Store a transcript line, replacing any line at the same sequence.

        Rerunning a failed job therefore rewrites its lines instead of
        appending duplicates.
        """
        pass
