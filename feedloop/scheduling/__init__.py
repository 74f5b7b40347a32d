"""Interaction scheduling.

InteractionScheduler runs the daily per-organization pass, composing
SubjectSelector, questionnaire selection and send-time computation.
"""

from feedloop.scheduling.questionnaires import select_questionnaire
from feedloop.scheduling.scheduler import (
    InteractionScheduler,
    SchedulingResult,
    select_interaction_type,
)
from feedloop.scheduling.send_time import compute_send_time, week_window
from feedloop.scheduling.subjects import SubjectSelector

__all__ = [
    "InteractionScheduler",
    "SchedulingResult",
    "SubjectSelector",
    "compute_send_time",
    "select_interaction_type",
    "select_questionnaire",
    "week_window",
]
