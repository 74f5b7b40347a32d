"""Questionnaire selection by interaction type."""

from collections.abc import Sequence

from feedloop.org_data.models import InteractionType, Questionnaire, QuestionnaireSource

SOURCE_PRIORITY: dict[str, int] = {
    QuestionnaireSource.BUILT_IN.value: 0,
    QuestionnaireSource.CUSTOM.value: 1,
    QuestionnaireSource.IMPORTED.value: 2,
}
UNKNOWN_SOURCE_PRIORITY = 3


def source_priority(questionnaire: Questionnaire) -> int:
    return SOURCE_PRIORITY.get(questionnaire.source, UNKNOWN_SOURCE_PRIORITY)


def select_questionnaire(
    questionnaires: Sequence[Questionnaire],
    interaction_type: InteractionType,
) -> Questionnaire | None:
    """Pick the questionnaire to use for an interaction type.

    Matches on category, preferring built-in over custom over imported.
    With no category match, falls back to the first active questionnaire.
    Ties keep input order.
    """
    active = [q for q in questionnaires if q.is_active]
    matches = [q for q in active if q.category == interaction_type.value]
    if not matches:
        return active[0] if active else None
    return min(matches, key=source_priority)
