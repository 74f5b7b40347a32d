"""Job payloads.

Payloads travel as JSON with camelCase keys. Models accept either the
camelCase alias or the Python field name.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from feedloop.org_data.models import InteractionType

INITIATE_JOB = "conversation-initiate"
REPLY_JOB = "conversation-reply"
CLOSE_JOB = "conversation-close"
ANALYZE_JOB = "conversation-analyze"
SCHEDULING_JOB = "interaction-scheduling"


class JobPayload(BaseModel):
    """Base for queue payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_message(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class InitiatePayload(JobPayload):
    org_id: UUID
    reviewer_id: UUID
    subject_id: UUID
    interaction_type: InteractionType
    platform: str
    channel_id: str | None = Field(
        default=None,
        description="Resolved from the reviewer's chat account when absent",
    )
    questionnaire_id: UUID
    schedule_entry_id: UUID | None = None


class ReplyPayload(JobPayload):
    conversation_id: UUID
    org_id: UUID
    user_message: str


class ClosePayload(JobPayload):
    conversation_id: UUID


class AnalyzePayload(JobPayload):
    conversation_id: UUID
    org_id: UUID


class SchedulingPayload(JobPayload):
    org_id: UUID | None = Field(
        default=None, description="None runs the pass for every organization"
    )
