"""Fixed conversation text and per-type limits.

None of these go through the LLM: closing messages and the generic
question are sent as-is.
"""

import re

from feedloop.org_data.models import InteractionType

MAX_MESSAGES: dict[InteractionType, int] = {
    InteractionType.PEER_REVIEW: 5,
    InteractionType.SELF_REFLECTION: 4,
    InteractionType.THREE_SIXTY: 5,
    InteractionType.PULSE_CHECK: 3,
}
DEFAULT_MAX_MESSAGES = 4

CLOSING_MESSAGES: dict[InteractionType, str] = {
    InteractionType.PEER_REVIEW: (
        "Thanks so much for sharing your thoughts! Your feedback makes a real "
        "difference. Have a great rest of your day."
    ),
    InteractionType.SELF_REFLECTION: (
        "Great reflection session! Taking time to think about your week is a "
        "real strength. Keep it up!"
    ),
    InteractionType.THREE_SIXTY: (
        "Really appreciate your candid feedback. This kind of input is "
        "invaluable for growth. Thank you!"
    ),
    InteractionType.PULSE_CHECK: (
        "Thanks for the quick check-in! Your input helps us keep a pulse on "
        "how things are going."
    ),
}
DEFAULT_CLOSING_MESSAGE = "Thanks for your time! Your input is really valuable."

# Asked when there is no theme left to explore
GENERIC_QUESTION = "Thanks for your time! Is there anything else you'd like to share?"

INTERACTION_LABELS: dict[InteractionType, str] = {
    InteractionType.PEER_REVIEW: "peer review",
    InteractionType.SELF_REFLECTION: "self-reflection",
    InteractionType.THREE_SIXTY: "360 review",
    InteractionType.PULSE_CHECK: "pulse check",
}

REVIEWER_NAME_FALLBACK = "there"
SUBJECT_NAME_FALLBACK = "your colleague"

MAX_NAME_LENGTH = 200
_UNSAFE_CHARS = re.compile(r'[\x00-\x1f\x7f`"\\]')


def get_max_messages(interaction_type: InteractionType | str) -> int:
    """Message budget for an interaction type."""
    return MAX_MESSAGES.get(_coerce(interaction_type), DEFAULT_MAX_MESSAGES)


def get_closing_message(interaction_type: InteractionType | str) -> str:
    return CLOSING_MESSAGES.get(_coerce(interaction_type), DEFAULT_CLOSING_MESSAGE)


def get_interaction_label(interaction_type: InteractionType | str) -> str:
    coerced = _coerce(interaction_type)
    if coerced in INTERACTION_LABELS:
        return INTERACTION_LABELS[coerced]
    raw = interaction_type.value if isinstance(interaction_type, InteractionType) else interaction_type
    return raw.replace("_", " ")


def strip_control_chars(value: str) -> str:
    """Make a display name safe to interpolate into a prompt.

    Removes ASCII control characters, backticks, double quotes and
    backslashes, then truncates.
    """
    return _UNSAFE_CHARS.sub("", value)[:MAX_NAME_LENGTH]


def _coerce(interaction_type: InteractionType | str) -> InteractionType | None:
    if isinstance(interaction_type, InteractionType):
        return interaction_type
    try:
        return InteractionType(interaction_type)
    except ValueError:
        return None
