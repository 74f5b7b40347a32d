"""Conversation reply workflow.

Handles one inbound reply under the conversation lock: load state,
advance the conversation, persist or finalize, deliver the response.
Replies for unknown or expired conversations are dropped.
"""

from dataclasses import asdict, dataclass
from typing import Any

from hatchet_sdk import ConcurrencyExpression, ConcurrencyLimitStrategy, Context, Hatchet

from feedloop.channels.gateway import ChatGateway
from feedloop.conversation.mutex import ConversationLock, hold_conversation
from feedloop.conversation.orchestrator import ConversationOrchestrator
from feedloop.conversation.store import ConversationStateStore
from feedloop.jobs.payloads import REPLY_JOB, ReplyPayload
from feedloop.jobs.queue import JobQueue
from feedloop.jobs.workflows.common import (
    deliver,
    finalize_closed_conversation,
    track_workflow,
)
from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReplyOutput:
    """Output from the reply workflow."""

    status: str  # "advanced", "closed", "ignored"
    conversation_id: str
    phase: str | None = None
    message_count: int = 0


class HandleReplyWorkflow:
    """Advances a conversation by one user reply."""

    WORKFLOW_NAME = REPLY_JOB

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        state_store: ConversationStateStore,
        mutex: ConversationLock,
        chat: ChatGateway,
        queue: JobQueue,
        state_ttl_seconds: int | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._state_store = state_store
        self._mutex = mutex
        self._chat = chat
        self._queue = queue
        self._ttl = state_ttl_seconds

    async def run(self, payload: ReplyPayload) -> ReplyOutput:
        conversation_id = payload.conversation_id

        async with hold_conversation(self._mutex, conversation_id):
            state = await self._state_store.get(conversation_id)
            if state is None:
                logger.info(
                    "reply_for_unknown_conversation",
                    conversation_id=str(conversation_id),
                    org_id=str(payload.org_id),
                )
                return ReplyOutput(status="ignored", conversation_id=str(conversation_id))

            result = await self._orchestrator.handle_reply(state, payload.user_message)

            if result.closed:
                await finalize_closed_conversation(result.state, self._state_store, self._queue)
            else:
                await self._state_store.set(result.state, self._ttl)

        await deliver(self._chat, result.state, result.outgoing_message)

        return ReplyOutput(
            status="closed" if result.closed else "advanced",
            conversation_id=str(conversation_id),
            phase=result.state.phase.value,
            message_count=result.state.message_count,
        )


def register_workflow(
    hatchet: Hatchet,
    workflow: HandleReplyWorkflow,
    retries: int = 3,
) -> Any:
    """Register the reply workflow with Hatchet.

    At most one run per conversation executes at a time; further replies
    for the same conversation wait their turn.
    """
    hatchet_workflow = hatchet.workflow(
        name=HandleReplyWorkflow.WORKFLOW_NAME,
        input_validator=ReplyPayload,
        concurrency=ConcurrencyExpression(
            expression="input.conversationId",
            max_runs=1,
            limit_strategy=ConcurrencyLimitStrategy.GROUP_ROUND_ROBIN,
        ),
    )

    @hatchet_workflow.task(retries=retries, backoff_factor=2.0, backoff_max_seconds=30)
    async def handle_reply(input: ReplyPayload, ctx: Context) -> dict:
        with track_workflow(
            HandleReplyWorkflow.WORKFLOW_NAME,
            conversation_id=input.conversation_id,
            org_id=input.org_id,
        ):
            result = await workflow.run(input)
        return asdict(result)

    return hatchet_workflow
