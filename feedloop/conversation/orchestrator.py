"""Conversation orchestrator.

Drives one feedback conversation through its phases:

    opening -> {exploring | follow_up}* -> closing

The orchestrator owns ConversationState and mirrors every transcript line
into the org data store, one line per transcript position. Persisting
state, delivering messages and enqueueing analysis are left to the caller
(the job workflows).
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from feedloop.conversation.decision import DecisionEngine
from feedloop.conversation.messages import (
    REVIEWER_NAME_FALLBACK,
    SUBJECT_NAME_FALLBACK,
    get_closing_message,
    get_max_messages,
)
from feedloop.conversation.models import (
    ConversationPhase,
    ConversationState,
    Decision,
    InvalidTransitionError,
)
from feedloop.conversation.questions import QuestionGenerator
from feedloop.observability.logging import get_logger
from feedloop.observability.metrics import (
    CONVERSATIONS_CLOSED,
    CONVERSATIONS_INITIATED,
)
from feedloop.org_data.models import (
    ConversationMessage,
    ConversationRecord,
    ConversationStatus,
    InteractionType,
    Theme,
    utc_now,
)
from feedloop.org_data.store import OrgDataStore
from feedloop.providers.llm.base import Role

logger = get_logger(__name__)

SELF_REFLECTION_THEMES = 3
DEFAULT_THEMES = 2


@dataclass
class ReplyResult:
    """Outcome of handling one user reply."""

    state: ConversationState
    closed: bool
    outgoing_message: str


class ConversationOrchestrator:
    """State machine for a single feedback conversation."""

    def __init__(
        self,
        org_store: OrgDataStore,
        question_generator: QuestionGenerator,
        decision_engine: DecisionEngine,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize orchestrator.

        Args:
            org_store: Source of users, questionnaires and themes, and sink
                for conversation records and transcript lines
            question_generator: Produces question text
            decision_engine: Chooses the next action after a reply
            clock: Returns the current UTC time
        """
        self._org_store = org_store
        self._questions = question_generator
        self._decisions = decision_engine
        self._clock = clock

    async def initiate(
        self,
        *,
        org_id: UUID,
        reviewer_id: UUID,
        subject_id: UUID,
        interaction_type: InteractionType,
        platform: str,
        channel_id: str,
        questionnaire_id: UUID,
        thread_id: str | None = None,
        schedule_entry_id: UUID | None = None,
    ) -> ConversationState:
        """Start a conversation and produce its opening question.

        The opening question is the last transcript message of the
        returned state. When schedule_entry_id names an entry that already
        started a conversation (a retried job), that conversation record is
        reused instead of creating a second one.
        """
        questionnaire = await self._org_store.get_questionnaire(org_id, questionnaire_id)
        if questionnaire is None:
            logger.warning(
                "questionnaire_not_found",
                org_id=str(org_id),
                questionnaire_id=str(questionnaire_id),
            )
            themes: list[Theme] = []
            verbatim = False
        else:
            themes = await self._org_store.list_themes(org_id, questionnaire_id)
            verbatim = questionnaire.verbatim

        theme_limit = (
            SELF_REFLECTION_THEMES
            if interaction_type == InteractionType.SELF_REFLECTION
            else DEFAULT_THEMES
        )
        selected = themes[:theme_limit]

        reviewer_name = await self._display_name(org_id, reviewer_id, REVIEWER_NAME_FALLBACK)
        subject_name = await self._display_name(org_id, subject_id, SUBJECT_NAME_FALLBACK)

        opening = await self._questions.generate(
            selected[0] if selected else None,
            verbatim=verbatim,
            reviewer_name=reviewer_name,
            subject_name=subject_name,
            interaction_type=interaction_type,
            is_opening=True,
        )

        now = self._clock()
        existing = None
        if schedule_entry_id is not None:
            existing = await self._org_store.find_conversation_for_schedule_entry(
                org_id, schedule_entry_id
            )
        if existing is not None:
            conversation_id = existing.id
            now = existing.created_at
            logger.info(
                "conversation_record_reused",
                conversation_id=str(conversation_id),
                schedule_entry_id=str(schedule_entry_id),
            )
        else:
            record = ConversationRecord(
                org_id=org_id,
                reviewer_id=reviewer_id,
                subject_id=subject_id,
                interaction_type=interaction_type,
                platform=platform,
                channel_id=channel_id,
                status=ConversationStatus.INITIATED,
                message_count=1,
                created_at=now,
                initiated_at=now,
                schedule_entry_id=schedule_entry_id,
            )
            conversation_id = await self._org_store.create_conversation(record)

        state = ConversationState(
            conversation_id=conversation_id,
            org_id=org_id,
            reviewer_id=reviewer_id,
            subject_id=subject_id,
            interaction_type=interaction_type,
            questionnaire_id=questionnaire_id,
            platform=platform,
            channel_id=channel_id,
            thread_id=thread_id,
            selected_themes=[t.id for t in selected],
            max_messages=get_max_messages(interaction_type),
            created_at=now,
        )
        await self._record_message(state, "assistant", opening)

        logger.info(
            "conversation_initiated",
            conversation_id=str(conversation_id),
            org_id=str(org_id),
            interaction_type=interaction_type.value,
            theme_count=len(selected),
            verbatim=verbatim,
        )
        CONVERSATIONS_INITIATED.labels(interaction_type=interaction_type.value).inc()
        return state

    async def handle_reply(self, state: ConversationState, user_message: str) -> ReplyResult:
        """Record a reply and either ask the next question or close."""
        if state.is_closed:
            raise InvalidTransitionError(state.phase, ConversationPhase.CLOSING)

        await self._record_message(state, "user", user_message)
        await self._org_store.update_conversation(
            state.org_id,
            state.conversation_id,
            status=ConversationStatus.IN_PROGRESS,
            message_count=state.message_count,
        )

        decision = await self._decisions.decide(state, user_message)

        if decision == Decision.CLOSE or state.message_count >= state.max_messages:
            return await self.close(state)

        if decision == Decision.NEXT_THEME:
            if not state.has_next_theme:
                # Only reachable from the opening phase with a single theme
                return await self.close(state)
            state.current_theme_index += 1
            state.transition_to(ConversationPhase.EXPLORING)
        else:
            state.transition_to(ConversationPhase.FOLLOW_UP)

        theme = None
        if state.current_theme_id is not None:
            theme = await self._org_store.get_theme(state.org_id, state.current_theme_id)
        questionnaire = await self._org_store.get_questionnaire(
            state.org_id, state.questionnaire_id
        )
        subject_name = await self._display_name(
            state.org_id, state.subject_id, SUBJECT_NAME_FALLBACK
        )

        question = await self._questions.generate(
            theme,
            verbatim=questionnaire.verbatim if questionnaire else False,
            reviewer_name="",
            subject_name=subject_name,
            interaction_type=state.interaction_type,
            is_opening=False,
            prior_messages=list(state.messages),
        )
        await self._record_message(state, "assistant", question)
        await self._org_store.update_conversation(
            state.org_id,
            state.conversation_id,
            message_count=state.message_count,
        )

        logger.info(
            "conversation_advanced",
            conversation_id=str(state.conversation_id),
            decision=decision.value,
            phase=state.phase.value,
            theme_index=state.current_theme_index,
            message_count=state.message_count,
        )
        return ReplyResult(state=state, closed=False, outgoing_message=question)

    async def close(self, state: ConversationState) -> ReplyResult:
        """Append the closing message and move to the terminal phase.

        The caller is responsible for deleting the stored state and
        enqueueing analysis.
        """
        state.transition_to(ConversationPhase.CLOSING)
        closing = get_closing_message(state.interaction_type)
        await self._record_message(state, "assistant", closing)
        await self._org_store.update_conversation(
            state.org_id,
            state.conversation_id,
            status=ConversationStatus.CLOSED,
            message_count=state.message_count,
            closed_at=self._clock(),
        )

        logger.info(
            "conversation_closed",
            conversation_id=str(state.conversation_id),
            interaction_type=state.interaction_type.value,
            message_count=state.message_count,
        )
        CONVERSATIONS_CLOSED.labels(interaction_type=state.interaction_type.value).inc()
        return ReplyResult(state=state, closed=True, outgoing_message=closing)

    async def _record_message(
        self, state: ConversationState, role: Role, content: str
    ) -> None:
        state.append_message(role, content)
        # Keyed by position so a retried job overwrites its own lines
        await self._org_store.save_message(
            ConversationMessage(
                org_id=state.org_id,
                conversation_id=state.conversation_id,
                sequence=state.message_count,
                role=role,
                content=content,
                created_at=self._clock(),
            )
        )

    async def _display_name(self, org_id: UUID, user_id: UUID, fallback: str) -> str:
        user = await self._org_store.get_user(org_id, user_id)
        if user is None or not user.name:
            return fallback
        return user.name
