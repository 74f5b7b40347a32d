"""Shared workflow helpers."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from feedloop.channels.gateway import ChatGateway
from feedloop.channels.models import DeliveryResult, OutboundMessage
from feedloop.conversation.models import ConversationState
from feedloop.conversation.store import ConversationStateStore
from feedloop.jobs.payloads import ANALYZE_JOB, AnalyzePayload
from feedloop.jobs.queue import JobQueue
from feedloop.observability.logging import get_logger, job_context
from feedloop.observability.metrics import WORKFLOW_EXECUTIONS, WORKFLOW_LATENCY

logger = get_logger(__name__)


@contextmanager
def track_workflow(workflow_name: str, **context: Any) -> Iterator[None]:
    """Record execution count and latency for one workflow run.

    Keyword context (conversation_id, org_id) is bound to every log line
    emitted during the run.
    """
    start = time.perf_counter()
    try:
        with job_context(workflow=workflow_name, **context):
            yield
    except Exception:
        WORKFLOW_EXECUTIONS.labels(workflow_name=workflow_name, status="failure").inc()
        raise
    else:
        WORKFLOW_EXECUTIONS.labels(workflow_name=workflow_name, status="success").inc()
    finally:
        WORKFLOW_LATENCY.labels(workflow_name=workflow_name).observe(
            time.perf_counter() - start
        )


async def deliver(
    chat: ChatGateway, state: ConversationState, text: str
) -> DeliveryResult:
    """Send one message into the conversation's channel."""
    return await chat.send(
        OutboundMessage(
            platform=state.platform,
            channel_id=state.channel_id,
            thread_id=state.thread_id,
            text=text,
            metadata={"conversation_id": str(state.conversation_id)},
        )
    )


async def finalize_closed_conversation(
    state: ConversationState,
    state_store: ConversationStateStore,
    queue: JobQueue,
) -> None:
    """Hand the conversation to analysis, then drop its state.

    The state is deleted only once the analysis job is enqueued, so a
    failed enqueue leaves the conversation in place for the retried run.
    """
    await queue.enqueue(
        ANALYZE_JOB,
        AnalyzePayload(conversation_id=state.conversation_id, org_id=state.org_id),
    )
    logger.info(
        "analysis_enqueued",
        conversation_id=str(state.conversation_id),
        org_id=str(state.org_id),
    )
    await state_store.delete(state.conversation_id)
