"""Unit tests for the initiate, reply and close workflows."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from feedloop.channels.gateway import ChatGateway
from feedloop.channels.models import OutboundMessage
from feedloop.conversation.decision import DecisionEngine
from feedloop.conversation.messages import get_closing_message
from feedloop.conversation.models import ConversationPhase, ConversationState
from feedloop.conversation.mutex import ConversationBusyError, InProcessConversationMutex
from feedloop.conversation.orchestrator import ConversationOrchestrator
from feedloop.conversation.questions import QuestionGenerator
from feedloop.conversation.stores import InMemoryConversationStateStore
from feedloop.db.errors import ConnectionError
from feedloop.jobs.payloads import (
    ANALYZE_JOB,
    ClosePayload,
    InitiatePayload,
    ReplyPayload,
)
from feedloop.jobs.queue import InMemoryJobQueue
from feedloop.jobs.workflows import (
    CloseConversationWorkflow,
    HandleReplyWorkflow,
    InitiateConversationWorkflow,
)
from feedloop.org_data.models import (
    ConversationStatus,
    InteractionScheduleEntry,
    InteractionType,
    ScheduleStatus,
)
from feedloop.org_data.stores import InMemoryOrgDataStore
from feedloop.providers.llm.base import ProviderError
from feedloop.providers.llm.mock import MockLLMProvider
from tests.factories import QuestionnaireFactory, UserFactory

FIXED_NOW = datetime(2025, 3, 5, 10, 0, tzinfo=UTC)


class RecordingAdapter:
    """Chat adapter that keeps every message it is asked to send."""

    platform = "slack"

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []

    async def send_message(self, message: OutboundMessage) -> str | None:
        self.sent.append(message)
        return "ts-1"


class BrokenAdapter:
    """Chat adapter whose platform is always down."""

    platform = "slack"

    async def send_message(self, message: OutboundMessage) -> str | None:
        raise RuntimeError("slack is down")


@pytest.fixture
def org_store() -> InMemoryOrgDataStore:
    return InMemoryOrgDataStore()


@pytest.fixture
def org_id() -> UUID:
    return uuid4()


@pytest.fixture
def llm() -> MockLLMProvider:
    return MockLLMProvider(
        tier_responses={"standard": "What stood out?", "fast": "next_theme"}
    )


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def chat(adapter) -> ChatGateway:
    gateway = ChatGateway(attempts=1)
    gateway.register_adapter(adapter)
    return gateway


@pytest.fixture
def state_store() -> InMemoryConversationStateStore:
    return InMemoryConversationStateStore()


@pytest.fixture
def mutex() -> InProcessConversationMutex:
    return InProcessConversationMutex(blocking_timeout=0.05)


@pytest.fixture
def queue() -> InMemoryJobQueue:
    return InMemoryJobQueue(clock=lambda: FIXED_NOW)


@pytest.fixture
def orchestrator(org_store, llm) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        org_store=org_store,
        question_generator=QuestionGenerator(llm),
        decision_engine=DecisionEngine(llm),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def initiate_workflow(orchestrator, state_store, org_store, chat):
    return InitiateConversationWorkflow(
        orchestrator, state_store, org_store, chat, state_ttl_seconds=3600
    )


@pytest.fixture
def reply_workflow(orchestrator, state_store, mutex, chat, queue):
    return HandleReplyWorkflow(
        orchestrator, state_store, mutex, chat, queue, state_ttl_seconds=3600
    )


@pytest.fixture
def close_workflow(orchestrator, state_store, mutex, chat, queue):
    return CloseConversationWorkflow(orchestrator, state_store, mutex, chat, queue)


@pytest.fixture
def initiate_payload(org_store, org_id) -> InitiatePayload:
    reviewer = org_store.add_user(
        UserFactory.create(org_id=org_id, name="Ada"), channels={"slack": "D-ADA"}
    )
    subject = org_store.add_user(UserFactory.create(org_id=org_id, name="Grace"))
    questionnaire = QuestionnaireFactory.create(org_id=org_id)
    org_store.add_questionnaire(questionnaire, QuestionnaireFactory.themes(questionnaire, 2))
    return InitiatePayload(
        org_id=org_id,
        reviewer_id=reviewer.id,
        subject_id=subject.id,
        interaction_type=InteractionType.PEER_REVIEW,
        platform="slack",
        questionnaire_id=questionnaire.id,
    )


@pytest_asyncio.fixture
async def started(initiate_workflow, state_store, initiate_payload) -> ConversationState:
    output = await initiate_workflow.run(initiate_payload)
    return await state_store.get(UUID(output.conversation_id))


def reply(state: ConversationState, text: str) -> ReplyPayload:
    return ReplyPayload(
        conversation_id=state.conversation_id, org_id=state.org_id, user_message=text
    )


def fail_once(method: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Wrap an async method so its first call raises ConnectionError."""
    calls = 0

    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ConnectionError("backend unavailable")
        return await method(*args, **kwargs)

    return wrapper


# =============================================================================
# Initiate
# =============================================================================


class TestInitiateWorkflow:
    """Tests for InitiateConversationWorkflow."""

    @pytest.mark.asyncio
    async def test_starts_and_delivers_opening(
        self, initiate_workflow, state_store, adapter, initiate_payload
    ) -> None:
        output = await initiate_workflow.run(initiate_payload)

        assert output.status == "started"
        state = await state_store.get(UUID(output.conversation_id))
        assert state is not None
        assert state.phase == ConversationPhase.OPENING
        assert state.channel_id == "D-ADA"
        assert [m.text for m in adapter.sent] == ["What stood out?"]
        assert adapter.sent[0].channel_id == "D-ADA"
        assert adapter.sent[0].metadata == {"conversation_id": output.conversation_id}

    @pytest.mark.asyncio
    async def test_marks_schedule_entry_sent(
        self, initiate_workflow, org_store, initiate_payload
    ) -> None:
        entry = InteractionScheduleEntry(
            org_id=initiate_payload.org_id,
            user_id=initiate_payload.reviewer_id,
            subject_id=initiate_payload.subject_id,
            interaction_type=InteractionType.PEER_REVIEW,
            scheduled_at=FIXED_NOW,
        )
        await org_store.save_schedule_entry(entry)
        payload = initiate_payload.model_copy(update={"schedule_entry_id": entry.id})

        output = await initiate_workflow.run(payload)

        assert entry.status == ScheduleStatus.SENT
        assert entry.conversation_id == UUID(output.conversation_id)

    @pytest.mark.asyncio
    async def test_explicit_channel_wins(
        self, initiate_workflow, adapter, initiate_payload
    ) -> None:
        payload = initiate_payload.model_copy(update={"channel_id": "C-GENERAL"})

        await initiate_workflow.run(payload)

        assert adapter.sent[0].channel_id == "C-GENERAL"

    @pytest.mark.asyncio
    async def test_no_channel_skips(
        self, initiate_workflow, org_store, state_store, adapter, initiate_payload
    ) -> None:
        entry = InteractionScheduleEntry(
            org_id=initiate_payload.org_id,
            user_id=initiate_payload.reviewer_id,
            interaction_type=InteractionType.PEER_REVIEW,
            scheduled_at=FIXED_NOW,
        )
        await org_store.save_schedule_entry(entry)
        payload = initiate_payload.model_copy(
            update={"platform": "teams", "schedule_entry_id": entry.id}
        )

        output = await initiate_workflow.run(payload)

        assert output.status == "skipped"
        assert output.reason == "no_channel"
        assert entry.status == ScheduleStatus.SKIPPED
        assert adapter.sent == []

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_fail_run(
        self, orchestrator, state_store, org_store, initiate_payload
    ) -> None:
        chat = ChatGateway(attempts=1)
        chat.register_adapter(BrokenAdapter())
        workflow = InitiateConversationWorkflow(orchestrator, state_store, org_store, chat)

        output = await workflow.run(initiate_payload)

        assert output.status == "started"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("store_name", "method"),
        [("state_store", "set"), ("org_store", "update_schedule_entry")],
    )
    async def test_rerun_after_storage_failure_reuses_conversation(
        self, initiate_workflow, state_store, org_store, adapter, initiate_payload,
        store_name, method,
    ) -> None:
        entry = InteractionScheduleEntry(
            org_id=initiate_payload.org_id,
            user_id=initiate_payload.reviewer_id,
            subject_id=initiate_payload.subject_id,
            interaction_type=InteractionType.PEER_REVIEW,
            scheduled_at=FIXED_NOW,
        )
        await org_store.save_schedule_entry(entry)
        payload = initiate_payload.model_copy(update={"schedule_entry_id": entry.id})
        store = {"state_store": state_store, "org_store": org_store}[store_name]

        with patch.object(store, method, fail_once(getattr(store, method))):
            with pytest.raises(ConnectionError):
                await initiate_workflow.run(payload)
            assert adapter.sent == []

            output = await initiate_workflow.run(payload)

        conversations = await org_store.list_recent_conversations(
            payload.org_id, payload.reviewer_id
        )
        assert [c.id for c in conversations] == [UUID(output.conversation_id)]
        assert conversations[0].schedule_entry_id == entry.id
        transcript = org_store.messages_for(UUID(output.conversation_id))
        assert [(m.sequence, m.role) for m in transcript] == [(1, "assistant")]
        assert [m.text for m in adapter.sent] == ["What stood out?"]
        assert entry.status == ScheduleStatus.SENT
        assert entry.conversation_id == UUID(output.conversation_id)


# =============================================================================
# Reply
# =============================================================================


class TestHandleReplyWorkflow:
    """Tests for HandleReplyWorkflow."""

    @pytest.mark.asyncio
    async def test_unknown_conversation_ignored(self, reply_workflow, adapter) -> None:
        payload = ReplyPayload(conversation_id=uuid4(), org_id=uuid4(), user_message="hi")

        output = await reply_workflow.run(payload)

        assert output.status == "ignored"
        assert adapter.sent == []

    @pytest.mark.asyncio
    async def test_advances_and_persists(
        self, reply_workflow, started, state_store, adapter, queue
    ) -> None:
        output = await reply_workflow.run(reply(started, "They ran a great retro"))

        assert output.status == "advanced"
        assert output.phase == "exploring"
        assert output.message_count == 3

        stored = await state_store.get(started.conversation_id)
        assert stored.message_count == 3
        assert stored.current_theme_index == 1
        assert [m.role for m in stored.messages] == ["assistant", "user", "assistant"]
        assert len(adapter.sent) == 2
        assert queue.jobs == []

    @pytest.mark.asyncio
    async def test_close_deletes_state_and_enqueues_analysis(
        self, reply_workflow, started, state_store, org_store, adapter, queue
    ) -> None:
        await reply_workflow.run(reply(started, "They ran a great retro"))

        output = await reply_workflow.run(reply(started, "And they mentor juniors"))

        assert output.status == "closed"
        assert output.phase == "closing"
        assert output.message_count == 5
        assert await state_store.get(started.conversation_id) is None
        assert adapter.sent[-1].text == get_closing_message(InteractionType.PEER_REVIEW)

        jobs = queue.by_name(ANALYZE_JOB)
        assert [j.payload for j in jobs] == [
            {"conversationId": str(started.conversation_id), "orgId": str(started.org_id)}
        ]
        record = await org_store.get_conversation(started.org_id, started.conversation_id)
        assert record.status == ConversationStatus.CLOSED

    @pytest.mark.asyncio
    async def test_reply_after_close_ignored(
        self, reply_workflow, started, llm, adapter
    ) -> None:
        llm.set_tier_response("fast", "close")
        await reply_workflow.run(reply(started, "That's all"))
        sent = len(adapter.sent)

        output = await reply_workflow.run(reply(started, "One more thing"))

        assert output.status == "ignored"
        assert len(adapter.sent) == sent

    @pytest.mark.asyncio
    async def test_busy_conversation_raises(self, reply_workflow, started, mutex) -> None:
        async with mutex.acquire(started.conversation_id) as acquired:
            assert acquired
            with pytest.raises(ConversationBusyError):
                await reply_workflow.run(reply(started, "Hello?"))

    @pytest.mark.asyncio
    async def test_rerun_after_llm_failure_keeps_one_user_line(
        self, reply_workflow, started, state_store, org_store, llm, adapter
    ) -> None:
        llm.fail()
        with pytest.raises(ProviderError):
            await reply_workflow.run(reply(started, "They ran a great retro"))
        llm.fail(False)

        output = await reply_workflow.run(reply(started, "They ran a great retro"))

        assert output.status == "advanced"
        transcript = org_store.messages_for(started.conversation_id)
        assert [(m.sequence, m.role) for m in transcript] == [
            (1, "assistant"),
            (2, "user"),
            (3, "assistant"),
        ]
        assert [m.content for m in transcript if m.role == "user"] == ["They ran a great retro"]
        stored = await state_store.get(started.conversation_id)
        assert stored.message_count == 3
        assert len(adapter.sent) == 2

    @pytest.mark.asyncio
    async def test_failed_analysis_enqueue_keeps_state_for_rerun(
        self, reply_workflow, started, state_store, llm, adapter, queue
    ) -> None:
        llm.set_tier_response("fast", "close")

        with patch.object(queue, "enqueue", fail_once(queue.enqueue)):
            with pytest.raises(ConnectionError):
                await reply_workflow.run(reply(started, "That's all"))

            kept = await state_store.get(started.conversation_id)
            assert kept is not None
            assert kept.phase == ConversationPhase.OPENING
            assert queue.jobs == []

            output = await reply_workflow.run(reply(started, "That's all"))

        assert output.status == "closed"
        assert len(queue.by_name(ANALYZE_JOB)) == 1
        assert await state_store.get(started.conversation_id) is None
        assert adapter.sent[-1].text == get_closing_message(InteractionType.PEER_REVIEW)


# =============================================================================
# Close
# =============================================================================


class TestCloseWorkflow:
    """Tests for CloseConversationWorkflow."""

    @pytest.mark.asyncio
    async def test_close_in_progress_conversation(
        self, close_workflow, started, state_store, adapter, queue
    ) -> None:
        output = await close_workflow.run(ClosePayload(conversation_id=started.conversation_id))

        assert output.status == "closed"
        assert await state_store.get(started.conversation_id) is None
        assert adapter.sent[-1].text == get_closing_message(InteractionType.PEER_REVIEW)
        assert len(queue.by_name(ANALYZE_JOB)) == 1

    @pytest.mark.asyncio
    async def test_close_unknown_is_noop(self, close_workflow, queue, adapter) -> None:
        output = await close_workflow.run(ClosePayload(conversation_id=uuid4()))

        assert output.status == "ignored"
        assert queue.jobs == []
        assert adapter.sent == []
