"""Hatchet workflow definitions.

- InitiateConversationWorkflow: starts a scheduled conversation
- HandleReplyWorkflow: advances a conversation by one reply
- CloseConversationWorkflow: ends a conversation on request
- InteractionSchedulingWorkflow: daily scheduling pass
"""

from feedloop.jobs.workflows.close import CloseConversationWorkflow, CloseOutput
from feedloop.jobs.workflows.initiate import InitiateConversationWorkflow, InitiateOutput
from feedloop.jobs.workflows.reply import HandleReplyWorkflow, ReplyOutput
from feedloop.jobs.workflows.scheduling import (
    InteractionSchedulingWorkflow,
    SchedulingOutput,
)

__all__ = [
    "CloseConversationWorkflow",
    "CloseOutput",
    "HandleReplyWorkflow",
    "InitiateConversationWorkflow",
    "InitiateOutput",
    "InteractionSchedulingWorkflow",
    "ReplyOutput",
    "SchedulingOutput",
]
