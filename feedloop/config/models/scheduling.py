"""Interaction scheduler configuration."""

import re

from pydantic import BaseModel, Field, field_validator

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SchedulingConfig(BaseModel):
    """Defaults applied when a user has no explicit preference."""

    default_weekly_target: int = Field(
        default=2,
        ge=0,
        description="Interactions per user per ISO week",
    )
    default_quiet_days: list[int] = Field(
        default_factory=lambda: [0, 6],
        description="Weekdays without prompts (0=Sunday ... 6=Saturday)",
    )
    default_interaction_time: str = Field(
        default="10:00",
        description="Preferred local send time, HH:mm",
    )
    jitter_minutes: int = Field(
        default=15,
        ge=1,
        le=60,
        description="Send times get a random offset in [0, jitter_minutes) minutes",
    )
    default_platform: str = Field(
        default="slack",
        description="Chat platform used for scheduled interactions",
    )
    recent_subject_window: int = Field(
        default=5,
        ge=1,
        description="Recent conversations consulted to avoid repeat subjects",
    )

    @field_validator("default_interaction_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not _HH_MM.match(value):
            raise ValueError(f"Expected HH:mm, got {value!r}")
        return value

    @field_validator("default_quiet_days")
    @classmethod
    def _check_days(cls, value: list[int]) -> list[int]:
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError(f"Quiet day out of range 0-6: {day}")
        return value
