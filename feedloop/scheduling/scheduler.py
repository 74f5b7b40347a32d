"""Interaction scheduler.

One pass per organization per day. For each active, onboarded user the
pass decides whether another interaction fits this week, what kind, about
whom, with which questionnaire and when, then persists a pending schedule
entry and enqueues a delayed initiate job.
"""

import random
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from feedloop.config.models.scheduling import SchedulingConfig
from feedloop.jobs.payloads import INITIATE_JOB, InitiatePayload
from feedloop.jobs.queue import JobQueue
from feedloop.observability.logging import get_logger
from feedloop.observability.metrics import SCHEDULER_OUTCOMES
from feedloop.org_data.models import (
    InteractionScheduleEntry,
    InteractionType,
    Questionnaire,
    ScheduleStatus,
    User,
    utc_now,
)
from feedloop.org_data.store import OrgDataStore
from feedloop.scheduling.questionnaires import select_questionnaire
from feedloop.scheduling.send_time import compute_send_time, is_quiet_day, week_window
from feedloop.scheduling.subjects import SubjectSelector

logger = get_logger(__name__)


@dataclass
class SchedulingResult:
    """Aggregate counters for one pass."""

    scheduled: int = 0
    skipped: int = 0


class SkipUser(Exception):
    """A user gets nothing scheduled in this pass."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def select_interaction_type(entries: list[InteractionScheduleEntry]) -> InteractionType:
    """Alternate toward self-reflection once peer reviews exist this week."""
    peer_reviews = sum(1 for e in entries if e.interaction_type == InteractionType.PEER_REVIEW)
    reflections = sum(1 for e in entries if e.interaction_type == InteractionType.SELF_REFLECTION)
    if reflections == 0 and peer_reviews > 0:
        return InteractionType.SELF_REFLECTION
    return InteractionType.PEER_REVIEW


class InteractionScheduler:
    """Daily batch planner for one organization at a time."""

    def __init__(
        self,
        org_store: OrgDataStore,
        queue: JobQueue,
        config: SchedulingConfig | None = None,
        subject_selector: SubjectSelector | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize scheduler.

        Args:
            org_store: Users, relationships, questionnaires and schedule entries
            queue: Receives delayed initiate jobs
            config: Scheduling defaults
            subject_selector: Picks review subjects (built from org_store if omitted)
            rng: Random source for send-time jitter and subject fallback
            clock: Returns the current UTC time
        """
        self._org_store = org_store
        self._queue = queue
        self._config = config or SchedulingConfig()
        self._rng = rng or random.Random()
        self._subjects = subject_selector or SubjectSelector(
            org_store, rng=self._rng, recent_window=self._config.recent_subject_window
        )
        self._clock = clock

    async def run(self, org_id: UUID) -> SchedulingResult:
        """Schedule this week's remaining interactions for an org."""
        now = self._clock()
        users = await self._org_store.list_schedulable_users(org_id)
        week_start, week_end = week_window(now)

        entries = await self._org_store.list_schedule_entries(org_id, week_start, week_end)
        entries_by_user: dict[UUID, list[InteractionScheduleEntry]] = defaultdict(list)
        for entry in entries:
            entries_by_user[entry.user_id].append(entry)

        questionnaires = await self._org_store.list_active_questionnaires(org_id)

        result = SchedulingResult()
        for user in users:
            try:
                await self._schedule_user(
                    org_id, user, entries_by_user[user.id], questionnaires, now
                )
            except SkipUser as skip:
                result.skipped += 1
                SCHEDULER_OUTCOMES.labels(outcome="skipped", reason=skip.reason).inc()
                logger.debug(
                    "user_skipped",
                    org_id=str(org_id),
                    user_id=str(user.id),
                    reason=skip.reason,
                )
            except Exception as e:
                result.skipped += 1
                SCHEDULER_OUTCOMES.labels(outcome="skipped", reason="error").inc()
                logger.error(
                    "user_scheduling_failed",
                    org_id=str(org_id),
                    user_id=str(user.id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
            else:
                result.scheduled += 1
                SCHEDULER_OUTCOMES.labels(outcome="scheduled", reason="ok").inc()

        logger.info(
            "scheduling_pass_completed",
            org_id=str(org_id),
            users=len(users),
            scheduled=result.scheduled,
            skipped=result.skipped,
        )
        return result

    async def _schedule_user(
        self,
        org_id: UUID,
        user: User,
        entries: list[InteractionScheduleEntry],
        questionnaires: list[Questionnaire],
        now: datetime,
    ) -> None:
        prefs = user.preferences
        target = prefs.weekly_interaction_target
        if target is None:
            target = self._config.default_weekly_target
        if target - len(entries) <= 0:
            raise SkipUser("quota_met")

        quiet_days = prefs.quiet_days
        if quiet_days is None:
            quiet_days = self._config.default_quiet_days
        if is_quiet_day(now, quiet_days):
            raise SkipUser("quiet_day")

        interaction_type = select_interaction_type(entries)

        if interaction_type == InteractionType.SELF_REFLECTION:
            subject_id: UUID | None = user.id
        else:
            subject_id = await self._subjects.select(org_id, user.id)
        if subject_id is None:
            raise SkipUser("no_subject")

        questionnaire = select_questionnaire(questionnaires, interaction_type)
        if questionnaire is None:
            raise SkipUser("no_questionnaire")

        send_at = compute_send_time(
            now,
            timezone=user.timezone,
            preferred_time=prefs.preferred_interaction_time
            or self._config.default_interaction_time,
            rng=self._rng,
            jitter_minutes=self._config.jitter_minutes,
        )

        platform = self._config.default_platform
        channel_id = await self._org_store.get_channel_id(org_id, user.id, platform)

        entry = InteractionScheduleEntry(
            org_id=org_id,
            user_id=user.id,
            subject_id=subject_id,
            interaction_type=interaction_type,
            scheduled_at=send_at,
            status=ScheduleStatus.PENDING,
        )
        await self._org_store.save_schedule_entry(entry)

        payload = InitiatePayload(
            org_id=org_id,
            reviewer_id=user.id,
            subject_id=subject_id,
            interaction_type=interaction_type,
            platform=platform,
            channel_id=channel_id,
            questionnaire_id=questionnaire.id,
            schedule_entry_id=entry.id,
        )
        try:
            await self._queue.enqueue(
                INITIATE_JOB, payload, delay=max(timedelta(0), send_at - now)
            )
        except Exception:
            # No job will ever act on the entry, so it must not hold quota
            await self._org_store.delete_schedule_entry(org_id, entry.id)
            raise

        logger.info(
            "interaction_scheduled",
            org_id=str(org_id),
            user_id=str(user.id),
            interaction_type=interaction_type.value,
            questionnaire_id=str(questionnaire.id),
            send_at=send_at.isoformat(),
        )
