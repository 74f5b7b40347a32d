"""Hatchet worker entrypoint.

Builds every component once, wires them into the workflows and starts a
Hatchet worker that serves the initiate, reply, close and scheduling
queues.

Usage:
    # CLI command (defined in pyproject.toml)
    feedloop-worker
"""

import random
import sys
from dataclasses import dataclass
from typing import Any

from redis.asyncio import Redis
from structlog.contextvars import bind_contextvars

from feedloop.channels.gateway import ChatGateway
from feedloop.config import Settings, get_settings
from feedloop.conversation.decision import DecisionEngine
from feedloop.conversation.mutex import (
    ConversationLock,
    ConversationMutex,
    InProcessConversationMutex,
)
from feedloop.conversation.orchestrator import ConversationOrchestrator
from feedloop.conversation.questions import QuestionGenerator
from feedloop.conversation.store import ConversationStateStore
from feedloop.conversation.stores import (
    InMemoryConversationStateStore,
    RedisConversationStateStore,
)
from feedloop.jobs.client import create_hatchet_client
from feedloop.jobs.queue import HatchetJobQueue, JobQueue
from feedloop.jobs.workflows import close, initiate, reply, scheduling
from feedloop.observability.logging import get_logger, setup_logging
from feedloop.observability.metrics import setup_metrics
from feedloop.org_data.store import OrgDataStore
from feedloop.org_data.stores import InMemoryOrgDataStore
from feedloop.providers.llm.base import LLMProvider
from feedloop.providers.llm.gateway import create_gateway
from feedloop.scheduling.scheduler import InteractionScheduler

logger = get_logger(__name__)


@dataclass
class Components:
    """Everything the workflows depend on."""

    org_store: OrgDataStore
    state_store: ConversationStateStore
    mutex: ConversationLock
    llm: LLMProvider
    chat: ChatGateway
    queue: JobQueue


def create_redis_client(settings: Settings) -> Redis:
    """Create the single Redis client shared by the state store and mutex."""
    url = settings.storage.state.connection_url
    client = Redis.from_url(url, decode_responses=False)
    logger.info(
        "redis_client_created",
        url=url.split("@")[-1] if "@" in url else url,  # Redact auth
    )
    return client


def create_state_backend(
    settings: Settings,
) -> tuple[ConversationStateStore, ConversationLock]:
    """Create the state store and its matching conversation lock."""
    state_config = settings.storage.state
    mutex_config = settings.storage.mutex

    if state_config.backend == "redis":
        client = create_redis_client(settings)
        store: ConversationStateStore = RedisConversationStateStore(client, state_config)
        mutex: ConversationLock = ConversationMutex(
            client,
            lock_timeout=mutex_config.lock_timeout,
            blocking_timeout=mutex_config.blocking_timeout,
        )
    else:
        store = InMemoryConversationStateStore(default_ttl_seconds=state_config.ttl_seconds)
        mutex = InProcessConversationMutex(blocking_timeout=mutex_config.blocking_timeout)

    logger.info("state_store_created", backend=state_config.backend)
    return store, mutex


def create_components(settings: Settings, hatchet: Any) -> Components:
    """Create store, provider and delivery instances from configuration."""
    state_store, mutex = create_state_backend(settings)

    # The relational store is provided by the host application; the
    # in-memory store stands in until one is wired here.
    org_store = InMemoryOrgDataStore()
    logger.info("org_store_created", backend="inmemory")

    llm = create_gateway(settings.providers.llm)

    chat = ChatGateway()
    logger.info("chat_gateway_created", platforms=chat.list_platforms())

    return Components(
        org_store=org_store,
        state_store=state_store,
        mutex=mutex,
        llm=llm,
        chat=chat,
        queue=HatchetJobQueue(hatchet),
    )


def register_workflows(hatchet: Any, settings: Settings, components: Components) -> list[Any]:
    """Build workflow instances and register them with Hatchet."""
    llm_config = settings.providers.llm
    hatchet_config = settings.jobs.hatchet
    ttl = settings.storage.state.ttl_seconds
    retries = hatchet_config.retry_max_attempts

    orchestrator = ConversationOrchestrator(
        org_store=components.org_store,
        question_generator=QuestionGenerator(components.llm, llm_config.unavailable_policy),
        decision_engine=DecisionEngine(components.llm, llm_config.unavailable_policy),
    )
    scheduler = InteractionScheduler(
        org_store=components.org_store,
        queue=components.queue,
        config=settings.scheduling,
        rng=random.Random(),
    )

    registered = [
        initiate.register_workflow(
            hatchet,
            initiate.InitiateConversationWorkflow(
                orchestrator,
                components.state_store,
                components.org_store,
                components.chat,
                state_ttl_seconds=ttl,
            ),
            retries=retries,
        ),
        reply.register_workflow(
            hatchet,
            reply.HandleReplyWorkflow(
                orchestrator,
                components.state_store,
                components.mutex,
                components.chat,
                components.queue,
                state_ttl_seconds=ttl,
            ),
            retries=retries,
        ),
        close.register_workflow(
            hatchet,
            close.CloseConversationWorkflow(
                orchestrator,
                components.state_store,
                components.mutex,
                components.chat,
                components.queue,
            ),
            retries=retries,
        ),
        scheduling.register_workflow(
            hatchet,
            scheduling.InteractionSchedulingWorkflow(scheduler, components.org_store),
            cron=hatchet_config.cron_scheduling,
            retries=retries,
        ),
    ]

    logger.info("workflows_registered", workflow_count=len(registered))
    return registered


def create_worker(settings: Settings) -> Any:
    """Create a Hatchet worker serving every workflow.

    Raises:
        RuntimeError: If Hatchet is disabled or unavailable
    """
    hatchet_config = settings.jobs.hatchet
    if not hatchet_config.enabled:
        raise RuntimeError("Hatchet is disabled in configuration")

    hatchet = create_hatchet_client(hatchet_config)
    if hatchet is None:
        raise RuntimeError("Failed to create Hatchet client")

    components = create_components(settings, hatchet)
    workflows = register_workflows(hatchet, settings, components)

    return hatchet.worker(
        hatchet_config.worker_name,
        slots=hatchet_config.worker_concurrency,
        workflows=workflows,
    )


def main() -> None:
    """CLI entrypoint for the worker.

    Registered as a console script in pyproject.toml:
        [project.scripts]
        feedloop-worker = "feedloop.jobs.worker:main"
    """
    settings = get_settings()
    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_pii=logging_config.redact_pii,
    )
    bind_contextvars(app=settings.app_name)
    metrics_config = settings.observability.metrics
    setup_metrics(metrics_config.port, enabled=metrics_config.enabled)

    logger.info(
        "worker_starting",
        server_url=settings.jobs.hatchet.server_url,
        concurrency=settings.jobs.hatchet.worker_concurrency,
    )

    try:
        worker = create_worker(settings)
    except RuntimeError as e:
        logger.error("worker_startup_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    # Blocks until SIGINT/SIGTERM
    worker.start()
    logger.info("worker_stopped")


if __name__ == "__main__":
    main()
