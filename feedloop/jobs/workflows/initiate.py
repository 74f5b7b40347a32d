"""Conversation initiate workflow.

Runs at the scheduled send time: starts the conversation, stores its
state, marks the schedule entry sent and delivers the opening question.
"""

from dataclasses import asdict, dataclass
from typing import Any

from hatchet_sdk import Context, Hatchet

from feedloop.channels.gateway import ChatGateway
from feedloop.conversation.orchestrator import ConversationOrchestrator
from feedloop.conversation.store import ConversationStateStore
from feedloop.jobs.payloads import INITIATE_JOB, InitiatePayload
from feedloop.jobs.workflows.common import deliver, track_workflow
from feedloop.observability.logging import get_logger
from feedloop.org_data.models import ScheduleStatus
from feedloop.org_data.store import OrgDataStore

logger = get_logger(__name__)


@dataclass
class InitiateOutput:
    """Output from the initiate workflow."""

    status: str  # "started", "skipped"
    conversation_id: str | None = None
    reason: str | None = None


class InitiateConversationWorkflow:
    """Starts a scheduled conversation."""

    WORKFLOW_NAME = INITIATE_JOB

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        state_store: ConversationStateStore,
        org_store: OrgDataStore,
        chat: ChatGateway,
        state_ttl_seconds: int | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._state_store = state_store
        self._org_store = org_store
        self._chat = chat
        self._ttl = state_ttl_seconds

    async def run(self, payload: InitiatePayload) -> InitiateOutput:
        channel_id = payload.channel_id or await self._org_store.get_channel_id(
            payload.org_id, payload.reviewer_id, payload.platform
        )
        if not channel_id:
            logger.warning(
                "reviewer_channel_not_found",
                org_id=str(payload.org_id),
                reviewer_id=str(payload.reviewer_id),
                platform=payload.platform,
            )
            if payload.schedule_entry_id:
                await self._org_store.update_schedule_entry(
                    payload.org_id,
                    payload.schedule_entry_id,
                    status=ScheduleStatus.SKIPPED,
                )
            return InitiateOutput(status="skipped", reason="no_channel")

        state = await self._orchestrator.initiate(
            org_id=payload.org_id,
            reviewer_id=payload.reviewer_id,
            subject_id=payload.subject_id,
            interaction_type=payload.interaction_type,
            platform=payload.platform,
            channel_id=channel_id,
            questionnaire_id=payload.questionnaire_id,
            schedule_entry_id=payload.schedule_entry_id,
        )
        await self._state_store.set(state, self._ttl)

        if payload.schedule_entry_id:
            await self._org_store.update_schedule_entry(
                payload.org_id,
                payload.schedule_entry_id,
                status=ScheduleStatus.SENT,
                conversation_id=state.conversation_id,
            )

        # Sent last; delivery failures are reported, never raised
        await deliver(self._chat, state, state.messages[-1].content)

        return InitiateOutput(status="started", conversation_id=str(state.conversation_id))


def register_workflow(
    hatchet: Hatchet,
    workflow: InitiateConversationWorkflow,
    retries: int = 3,
) -> Any:
    """Register the initiate workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        workflow: Configured workflow instance
        retries: Retry attempts for failed runs

    Returns:
        Registered Hatchet workflow
    """
    hatchet_workflow = hatchet.workflow(
        name=InitiateConversationWorkflow.WORKFLOW_NAME,
        input_validator=InitiatePayload,
    )

    @hatchet_workflow.task(retries=retries, backoff_factor=2.0, backoff_max_seconds=60)
    async def initiate(input: InitiatePayload, ctx: Context) -> dict:
        with track_workflow(
            InitiateConversationWorkflow.WORKFLOW_NAME,
            org_id=input.org_id,
            reviewer_id=input.reviewer_id,
        ):
            result = await workflow.run(input)
        return asdict(result)

    return hatchet_workflow
