"""Unit tests for InMemoryOrgDataStore."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from feedloop.db.errors import NotFoundError
from feedloop.org_data.models import (
    ConversationMessage,
    ConversationRecord,
    ConversationStatus,
    InteractionScheduleEntry,
    InteractionType,
    ScheduleStatus,
)
from feedloop.org_data.stores import InMemoryOrgDataStore
from tests.factories import QuestionnaireFactory, RelationshipFactory, UserFactory

NOW = datetime(2025, 3, 5, 9, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryOrgDataStore:
    return InMemoryOrgDataStore()


@pytest.fixture
def org_id():
    return uuid4()


def make_record(org_id, reviewer_id, subject_id, created_at=NOW) -> ConversationRecord:
    return ConversationRecord(
        org_id=org_id,
        reviewer_id=reviewer_id,
        subject_id=subject_id,
        interaction_type=InteractionType.PEER_REVIEW,
        platform="slack",
        channel_id="D1",
        created_at=created_at,
    )


# =============================================================================
# Users
# =============================================================================


class TestUsers:
    """Tests for user queries."""

    @pytest.mark.asyncio
    async def test_get_user_scoped_to_org(self, store, org_id) -> None:
        user = store.add_user(UserFactory.create(org_id=org_id))

        assert await store.get_user(org_id, user.id) == user
        assert await store.get_user(uuid4(), user.id) is None

    @pytest.mark.asyncio
    async def test_schedulable_requires_active_and_onboarded(self, store, org_id) -> None:
        ready = store.add_user(UserFactory.create(org_id=org_id, name="Ready"))
        store.add_user(UserFactory.create(org_id=org_id, name="Gone", is_active=False))
        store.add_user(
            UserFactory.create(org_id=org_id, name="New", onboarding_completed=False)
        )

        users = await store.list_schedulable_users(org_id)

        assert [u.id for u in users] == [ready.id]

    @pytest.mark.asyncio
    async def test_list_active_users_by_team(self, store, org_id) -> None:
        team = uuid4()
        a = store.add_user(UserFactory.create(org_id=org_id, name="A", team_id=team))
        b = store.add_user(UserFactory.create(org_id=org_id, name="B"))

        assert [u.id for u in await store.list_active_users(org_id, team_id=team)] == [a.id]
        assert {u.id for u in await store.list_active_users(org_id)} == {a.id, b.id}

    @pytest.mark.asyncio
    async def test_channel_lookup(self, store, org_id) -> None:
        user = store.add_user(UserFactory.create(org_id=org_id), channels={"slack": "D42"})

        assert await store.get_channel_id(org_id, user.id, "slack") == "D42"
        assert await store.get_channel_id(org_id, user.id, "teams") is None
        assert await store.get_channel_id(uuid4(), user.id, "slack") is None

    @pytest.mark.asyncio
    async def test_list_org_ids_ignores_inactive_orgs(self, store) -> None:
        first, second, dormant = uuid4(), uuid4(), uuid4()
        store.add_user(UserFactory.create(org_id=first))
        store.add_user(UserFactory.create(org_id=second))
        store.add_user(UserFactory.create(org_id=first))
        store.add_user(UserFactory.create(org_id=dormant, is_active=False))

        assert await store.list_org_ids() == [first, second]


# =============================================================================
# Relationships and questionnaires
# =============================================================================


class TestRelationships:
    """Tests for the relationship graph."""

    @pytest.mark.asyncio
    async def test_either_direction_and_active_only(self, store, org_id) -> None:
        me, a, b, c = uuid4(), uuid4(), uuid4(), uuid4()
        outgoing = store.add_relationship(
            RelationshipFactory.create(org_id=org_id, from_user_id=me, to_user_id=a)
        )
        incoming = store.add_relationship(
            RelationshipFactory.create(org_id=org_id, from_user_id=b, to_user_id=me)
        )
        store.add_relationship(
            RelationshipFactory.create(
                org_id=org_id, from_user_id=me, to_user_id=c, is_active=False
            )
        )

        result = await store.list_relationships(org_id, me)

        assert {r.id for r in result} == {outgoing.id, incoming.id}
        assert incoming.other_party(me) == b


class TestQuestionnaires:
    """Tests for questionnaires and themes."""

    @pytest.mark.asyncio
    async def test_themes_sorted_by_sort_order(self, store, org_id) -> None:
        questionnaire = QuestionnaireFactory.create(org_id=org_id)
        themes = QuestionnaireFactory.themes(questionnaire, 3)
        store.add_questionnaire(questionnaire, list(reversed(themes)))

        result = await store.list_themes(org_id, questionnaire.id)

        assert [t.sort_order for t in result] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_theme_access_scoped_to_org(self, store, org_id) -> None:
        questionnaire = QuestionnaireFactory.create(org_id=org_id)
        theme = QuestionnaireFactory.themes(questionnaire, 1)[0]
        store.add_questionnaire(questionnaire, [theme])

        assert await store.get_theme(org_id, theme.id) == theme
        assert await store.get_theme(uuid4(), theme.id) is None
        assert await store.list_themes(uuid4(), questionnaire.id) == []

    @pytest.mark.asyncio
    async def test_inactive_excluded(self, store, org_id) -> None:
        active = store.add_questionnaire(QuestionnaireFactory.create(org_id=org_id))
        store.add_questionnaire(QuestionnaireFactory.create(org_id=org_id, is_active=False))

        result = await store.list_active_questionnaires(org_id)

        assert [q.id for q in result] == [active.id]


# =============================================================================
# Schedule and conversations
# =============================================================================


class TestSchedule:
    """Tests for interaction schedule entries."""

    @pytest.mark.asyncio
    async def test_list_by_window_inclusive(self, store, org_id) -> None:
        start, end = NOW, NOW + timedelta(days=1)
        inside = [
            InteractionScheduleEntry(
                org_id=org_id,
                user_id=uuid4(),
                interaction_type=InteractionType.PEER_REVIEW,
                scheduled_at=at,
            )
            for at in (start, end)
        ]
        outside = InteractionScheduleEntry(
            org_id=org_id,
            user_id=uuid4(),
            interaction_type=InteractionType.PEER_REVIEW,
            scheduled_at=end + timedelta(seconds=1),
        )
        for entry in [*inside, outside]:
            await store.save_schedule_entry(entry)

        result = await store.list_schedule_entries(org_id, start, end)

        assert {e.id for e in result} == {e.id for e in inside}

    @pytest.mark.asyncio
    async def test_update_entry(self, store, org_id) -> None:
        entry = InteractionScheduleEntry(
            org_id=org_id,
            user_id=uuid4(),
            interaction_type=InteractionType.SELF_REFLECTION,
            scheduled_at=NOW,
        )
        await store.save_schedule_entry(entry)
        conversation_id = uuid4()

        await store.update_schedule_entry(
            org_id, entry.id, status=ScheduleStatus.SENT, conversation_id=conversation_id
        )

        assert entry.status == ScheduleStatus.SENT
        assert entry.conversation_id == conversation_id

    @pytest.mark.asyncio
    async def test_update_missing_entry_raises(self, store, org_id) -> None:
        with pytest.raises(NotFoundError):
            await store.update_schedule_entry(org_id, uuid4(), status=ScheduleStatus.SENT)

    @pytest.mark.asyncio
    async def test_delete_entry(self, store, org_id) -> None:
        entry = InteractionScheduleEntry(
            org_id=org_id,
            user_id=uuid4(),
            interaction_type=InteractionType.PEER_REVIEW,
            scheduled_at=NOW,
        )
        await store.save_schedule_entry(entry)

        assert await store.delete_schedule_entry(uuid4(), entry.id) is False
        assert await store.delete_schedule_entry(org_id, entry.id) is True
        assert await store.delete_schedule_entry(org_id, entry.id) is False
        assert await store.list_schedule_entries(org_id, NOW, NOW) == []


class TestConversations:
    """Tests for conversation records and transcript lines."""

    @pytest.mark.asyncio
    async def test_create_and_update(self, store, org_id) -> None:
        record = make_record(org_id, uuid4(), uuid4())
        await store.create_conversation(record)

        await store.update_conversation(
            org_id, record.id, status=ConversationStatus.CLOSED, message_count=4
        )

        stored = await store.get_conversation(org_id, record.id)
        assert stored.status == ConversationStatus.CLOSED
        assert stored.message_count == 4

    @pytest.mark.asyncio
    async def test_update_missing_conversation_raises(self, store, org_id) -> None:
        with pytest.raises(NotFoundError):
            await store.update_conversation(org_id, uuid4(), message_count=1)

    @pytest.mark.asyncio
    async def test_recent_newest_first_with_limit(self, store, org_id) -> None:
        reviewer = uuid4()
        records = [
            make_record(org_id, reviewer, uuid4(), created_at=NOW + timedelta(hours=i))
            for i in range(4)
        ]
        for record in records:
            await store.create_conversation(record)
        await store.create_conversation(make_record(org_id, uuid4(), uuid4()))

        recent = await store.list_recent_conversations(org_id, reviewer, limit=2)

        assert [r.id for r in recent] == [records[3].id, records[2].id]

    @pytest.mark.asyncio
    async def test_find_by_schedule_entry(self, store, org_id) -> None:
        entry_id = uuid4()
        record = make_record(org_id, uuid4(), uuid4())
        record.schedule_entry_id = entry_id
        await store.create_conversation(record)
        await store.create_conversation(make_record(org_id, uuid4(), uuid4()))

        found = await store.find_conversation_for_schedule_entry(org_id, entry_id)

        assert found is not None
        assert found.id == record.id
        assert await store.find_conversation_for_schedule_entry(uuid4(), entry_id) is None
        assert await store.find_conversation_for_schedule_entry(org_id, uuid4()) is None

    @pytest.mark.asyncio
    async def test_messages_for_conversation_in_sequence(self, store, org_id) -> None:
        conversation_id = uuid4()
        for sequence, role, content in [(2, "user", "Fine"), (1, "assistant", "Hi")]:
            await store.save_message(
                ConversationMessage(
                    org_id=org_id,
                    conversation_id=conversation_id,
                    sequence=sequence,
                    role=role,
                    content=content,
                )
            )
        await store.save_message(
            ConversationMessage(
                org_id=org_id, conversation_id=uuid4(), sequence=1, role="user", content="Other"
            )
        )

        assert [m.content for m in store.messages_for(conversation_id)] == ["Hi", "Fine"]

    @pytest.mark.asyncio
    async def test_same_sequence_replaces_line(self, store, org_id) -> None:
        conversation_id = uuid4()
        for content in ("first attempt", "second attempt"):
            await store.save_message(
                ConversationMessage(
                    org_id=org_id,
                    conversation_id=conversation_id,
                    sequence=3,
                    role="assistant",
                    content=content,
                )
            )

        assert [m.content for m in store.messages_for(conversation_id)] == ["second attempt"]
