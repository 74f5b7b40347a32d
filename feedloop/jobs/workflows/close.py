"""Conversation close workflow.

Closes a conversation on request, for example when a reviewer ends it
early. Unknown or expired conversations are a no-op.
"""

from dataclasses import asdict, dataclass
from typing import Any

from hatchet_sdk import ConcurrencyExpression, ConcurrencyLimitStrategy, Context, Hatchet

from feedloop.channels.gateway import ChatGateway
from feedloop.conversation.mutex import ConversationLock, hold_conversation
from feedloop.conversation.orchestrator import ConversationOrchestrator
from feedloop.conversation.store import ConversationStateStore
from feedloop.jobs.payloads import CLOSE_JOB, ClosePayload
from feedloop.jobs.queue import JobQueue
from feedloop.jobs.workflows.common import (
    deliver,
    finalize_closed_conversation,
    track_workflow,
)
from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CloseOutput:
    """Output from the close workflow."""

    status: str  # "closed", "ignored"
    conversation_id: str


class CloseConversationWorkflow:
    """Ends a conversation with its closing message."""

    WORKFLOW_NAME = CLOSE_JOB

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        state_store: ConversationStateStore,
        mutex: ConversationLock,
        chat: ChatGateway,
        queue: JobQueue,
    ) -> None:
        self._orchestrator = orchestrator
        self._state_store = state_store
        self._mutex = mutex
        self._chat = chat
        self._queue = queue

    async def run(self, payload: ClosePayload) -> CloseOutput:
        conversation_id = payload.conversation_id

        async with hold_conversation(self._mutex, conversation_id):
            state = await self._state_store.get(conversation_id)
            if state is None:
                logger.info("close_for_unknown_conversation", conversation_id=str(conversation_id))
                return CloseOutput(status="ignored", conversation_id=str(conversation_id))

            result = await self._orchestrator.close(state)
            await finalize_closed_conversation(result.state, self._state_store, self._queue)

        await deliver(self._chat, result.state, result.outgoing_message)
        return CloseOutput(status="closed", conversation_id=str(conversation_id))


def register_workflow(
    hatchet: Hatchet,
    workflow: CloseConversationWorkflow,
    retries: int = 3,
) -> Any:
    """Register the close workflow with Hatchet."""
    hatchet_workflow = hatchet.workflow(
        name=CloseConversationWorkflow.WORKFLOW_NAME,
        input_validator=ClosePayload,
        concurrency=ConcurrencyExpression(
            expression="input.conversationId",
            max_runs=1,
            limit_strategy=ConcurrencyLimitStrategy.GROUP_ROUND_ROBIN,
        ),
    )

    @hatchet_workflow.task(retries=retries, backoff_factor=2.0, backoff_max_seconds=30)
    async def close_conversation(input: ClosePayload, ctx: Context) -> dict:
        with track_workflow(
            CloseConversationWorkflow.WORKFLOW_NAME, conversation_id=input.conversation_id
        ):
            result = await workflow.run(input)
        return asdict(result)

    return hatchet_workflow
