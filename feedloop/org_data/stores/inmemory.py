"""In-memory implementation of OrgDataStore."""

from datetime import datetime
from typing import Any
from uuid import UUID

from feedloop.db.errors import NotFoundError
from feedloop.org_data.models import (
    ConversationMessage,
    ConversationRecord,
    InteractionScheduleEntry,
    Questionnaire,
    Relationship,
    Theme,
    User,
)
from feedloop.org_data.store import OrgDataStore


class InMemoryOrgDataStore(OrgDataStore):
    """In-memory implementation of OrgDataStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}
        self._channels: dict[tuple[UUID, str], str] = {}
        self._relationships: dict[UUID, Relationship] = {}
        self._questionnaires: dict[UUID, Questionnaire] = {}
        self._themes: dict[UUID, Theme] = {}
        self._schedule: dict[UUID, InteractionScheduleEntry] = {}
        self._conversations: dict[UUID, ConversationRecord] = {}
        self._messages: dict[tuple[UUID, int], ConversationMessage] = {}

    # Seeding helpers (not part of the interface)

    def add_user(self, user: User, channels: dict[str, str] | None = None) -> User:
        self._users[user.id] = user
        for platform, channel_id in (channels or {}).items():
            self._channels[(user.id, platform)] = channel_id
        return user

    def add_relationship(self, relationship: Relationship) -> Relationship:
        self._relationships[relationship.id] = relationship
        return relationship

    def add_questionnaire(
        self, questionnaire: Questionnaire, themes: list[Theme] | None = None
    ) -> Questionnaire:
        self._questionnaires[questionnaire.id] = questionnaire
        for theme in themes or []:
            self._themes[theme.id] = theme
        return questionnaire

    def messages_for(self, conversation_id: UUID) -> list[ConversationMessage]:
        lines = [m for m in self._messages.values() if m.conversation_id == conversation_id]
        return sorted(lines, key=lambda m: m.sequence)

    # Organizations

    async def list_org_ids(self) -> list[UUID]:
        seen: dict[UUID, None] = {}
        for user in self._users.values():
            if user.is_active:
                seen.setdefault(user.org_id, None)
        return list(seen)

    # Users

    async def get_user(self, org_id: UUID, user_id: UUID) -> User | None:
        user = self._users.get(user_id)
        if user is None or user.org_id != org_id:
            return None
        return user

    async def list_schedulable_users(self, org_id: UUID) -> list[User]:
        return [
            u
            for u in self._users.values()
            if u.org_id == org_id and u.is_active and u.onboarding_completed
        ]

    async def list_active_users(
        self,
        org_id: UUID,
        *,
        team_id: UUID | None = None,
    ) -> list[User]:
        results = []
        for user in self._users.values():
            if user.org_id != org_id or not user.is_active:
                continue
            if team_id is not None and user.team_id != team_id:
                continue
            results.append(user)
        return results

    async def get_channel_id(
        self, org_id: UUID, user_id: UUID, platform: str
    ) -> str | None:
        if await self.get_user(org_id, user_id) is None:
            return None
        return self._channels.get((user_id, platform))

    # Relationship graph

    async def list_relationships(
        self, org_id: UUID, user_id: UUID
    ) -> list[Relationship]:
        return [
            r
            for r in self._relationships.values()
            if r.org_id == org_id
            and r.is_active
            and user_id in (r.from_user_id, r.to_user_id)
        ]

    # Questionnaires

    async def list_active_questionnaires(self, org_id: UUID) -> list[Questionnaire]:
        return [
            q
            for q in self._questionnaires.values()
            if q.org_id == org_id and q.is_active
        ]

    async def get_questionnaire(
        self, org_id: UUID, questionnaire_id: UUID
    ) -> Questionnaire | None:
        questionnaire = self._questionnaires.get(questionnaire_id)
        if questionnaire is None or questionnaire.org_id != org_id:
            return None
        return questionnaire

    async def list_themes(self, org_id: UUID, questionnaire_id: UUID) -> list[Theme]:
        if await self.get_questionnaire(org_id, questionnaire_id) is None:
            return []
        themes = [
            t for t in self._themes.values() if t.questionnaire_id == questionnaire_id
        ]
        themes.sort(key=lambda t: t.sort_order)
        return themes

    async def get_theme(self, org_id: UUID, theme_id: UUID) -> Theme | None:
        theme = self._themes.get(theme_id)
        if theme is None:
            return None
        if await self.get_questionnaire(org_id, theme.questionnaire_id) is None:
            return None
        return theme

    # Interaction schedule

    async def list_schedule_entries(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[InteractionScheduleEntry]:
        return [
            e
            for e in self._schedule.values()
            if e.org_id == org_id and start <= e.scheduled_at <= end
        ]

    async def save_schedule_entry(self, entry: InteractionScheduleEntry) -> UUID:
        self._schedule[entry.id] = entry
        return entry.id

    async def update_schedule_entry(
        self,
        org_id: UUID,
        entry_id: UUID,
        **fields: Any,
    ) -> None:
        entry = self._schedule.get(entry_id)
        if entry is None or entry.org_id != org_id:
            raise NotFoundError(f"Schedule entry not found: {entry_id}")
        for key, value in fields.items():
            setattr(entry, key, value)

    async def delete_schedule_entry(self, org_id: UUID, entry_id: UUID) -> bool:
        entry = self._schedule.get(entry_id)
        if entry is None or entry.org_id != org_id:
            return False
        del self._schedule[entry_id]
        return True

    # Conversations

    async def create_conversation(self, record: ConversationRecord) -> UUID:
        self._conversations[record.id] = record
        return record.id

    async def get_conversation(
        self, org_id: UUID, conversation_id: UUID
    ) -> ConversationRecord | None:
        record = self._conversations.get(conversation_id)
        if record is None or record.org_id != org_id:
            return None
        return record

    async def update_conversation(
        self,
        org_id: UUID,
        conversation_id: UUID,
        **fields: Any,
    ) -> None:
        record = await self.get_conversation(org_id, conversation_id)
        if record is None:
            raise NotFoundError(f"Conversation not found: {conversation_id}")
        for key, value in fields.items():
            setattr(record, key, value)

    async def list_recent_conversations(
        self,
        org_id: UUID,
        reviewer_id: UUID,
        *,
        limit: int = 5,
    ) -> list[ConversationRecord]:
        results = [
            c
            for c in self._conversations.values()
            if c.org_id == org_id and c.reviewer_id == reviewer_id
        ]
        results.sort(key=lambda c: c.created_at, reverse=True)
        return results[:limit]

    async def find_conversation_for_schedule_entry(
        self, org_id: UUID, schedule_entry_id: UUID
    ) -> ConversationRecord | None:
        for record in self._conversations.values():
            if record.org_id == org_id and record.schedule_entry_id == schedule_entry_id:
                return record
        return None

    async def save_message(self, message: ConversationMessage) -> None:
        self._messages[(message.conversation_id, message.sequence)] = message
