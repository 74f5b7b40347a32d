"""Interaction scheduling workflow.

Daily cron job running the scheduling pass. A run with an org ID covers
that organization; a cron-triggered run (no input) covers every
organization in turn, and a failing organization does not stop the rest.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from hatchet_sdk import Context, Hatchet

from feedloop.jobs.payloads import SCHEDULING_JOB, SchedulingPayload
from feedloop.jobs.workflows.common import track_workflow
from feedloop.observability.logging import get_logger
from feedloop.org_data.store import OrgDataStore
from feedloop.scheduling.scheduler import InteractionScheduler

logger = get_logger(__name__)


@dataclass
class SchedulingOutput:
    """Output from the scheduling workflow."""

    scheduled: int = 0
    skipped: int = 0
    org_count: int = 0
    failed_orgs: list[str] = field(default_factory=list)


class InteractionSchedulingWorkflow:
    """Runs InteractionScheduler for one or all organizations."""

    WORKFLOW_NAME = SCHEDULING_JOB
    CRON_SCHEDULE = "0 6 * * *"  # Daily at 6 AM UTC

    def __init__(self, scheduler: InteractionScheduler, org_store: OrgDataStore) -> None:
        self._scheduler = scheduler
        self._org_store = org_store

    async def run(self, payload: SchedulingPayload) -> SchedulingOutput:
        if payload.org_id is not None:
            result = await self._scheduler.run(payload.org_id)
            return SchedulingOutput(
                scheduled=result.scheduled, skipped=result.skipped, org_count=1
            )

        output = SchedulingOutput()
        for org_id in await self._org_store.list_org_ids():
            try:
                result = await self._scheduler.run(org_id)
            except Exception as e:
                logger.error(
                    "org_scheduling_failed",
                    org_id=str(org_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                output.failed_orgs.append(str(org_id))
                continue
            output.scheduled += result.scheduled
            output.skipped += result.skipped
            output.org_count += 1

        logger.info(
            "scheduling_run_completed",
            org_count=output.org_count,
            failed_orgs=len(output.failed_orgs),
            scheduled=output.scheduled,
            skipped=output.skipped,
        )
        return output


def register_workflow(
    hatchet: Hatchet,
    workflow: InteractionSchedulingWorkflow,
    cron: str | None = None,
    retries: int = 3,
) -> Any:
    """Register the scheduling workflow with Hatchet on a daily cron."""
    hatchet_workflow = hatchet.workflow(
        name=InteractionSchedulingWorkflow.WORKFLOW_NAME,
        on_crons=[cron or InteractionSchedulingWorkflow.CRON_SCHEDULE],
        input_validator=SchedulingPayload,
    )

    @hatchet_workflow.task(retries=retries, backoff_factor=2.0, backoff_max_seconds=300)
    async def run_scheduling(input: SchedulingPayload, ctx: Context) -> dict:
        with track_workflow(
            InteractionSchedulingWorkflow.WORKFLOW_NAME, org_id=input.org_id
        ):
            result = await workflow.run(input)
        return asdict(result)

    return hatchet_workflow
