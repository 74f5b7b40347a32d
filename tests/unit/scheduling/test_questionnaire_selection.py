"""Unit tests for questionnaire selection."""

from uuid import uuid4

from feedloop.org_data.models import InteractionType
from feedloop.scheduling.questionnaires import select_questionnaire, source_priority
from tests.factories import QuestionnaireFactory

ORG_ID = uuid4()


def make(category: str = "peer_review", source: str = "built_in", **kwargs):
    return QuestionnaireFactory.create(org_id=ORG_ID, category=category, source=source, **kwargs)


class TestSelectQuestionnaire:
    """Tests for category matching and source priority."""

    def test_prefers_built_in_over_custom_and_imported(self) -> None:
        imported = make(source="imported")
        custom = make(source="custom")
        built_in = make(source="built_in")

        result = select_questionnaire([imported, custom, built_in], InteractionType.PEER_REVIEW)

        assert result is built_in

    def test_custom_beats_imported(self) -> None:
        imported = make(source="imported")
        custom = make(source="custom")

        assert select_questionnaire([imported, custom], InteractionType.PEER_REVIEW) is custom

    def test_ties_keep_input_order(self) -> None:
        first = make(name="First")
        second = make(name="Second")

        assert select_questionnaire([first, second], InteractionType.PEER_REVIEW) is first

    def test_category_must_match(self) -> None:
        peer = make(category="peer_review")
        reflection = make(category="self_reflection", source="imported")

        result = select_questionnaire([peer, reflection], InteractionType.SELF_REFLECTION)

        assert result is reflection

    def test_falls_back_to_first_active(self) -> None:
        inactive = make(category="pulse_check", is_active=False)
        fallback = make(category="pulse_check", source="imported")

        result = select_questionnaire([inactive, fallback], InteractionType.SELF_REFLECTION)

        assert result is fallback

    def test_inactive_matches_ignored(self) -> None:
        inactive = make(is_active=False)
        active = make(source="custom")

        assert select_questionnaire([inactive, active], InteractionType.PEER_REVIEW) is active

    def test_none_when_nothing_active(self) -> None:
        assert select_questionnaire([], InteractionType.PEER_REVIEW) is None
        assert select_questionnaire([make(is_active=False)], InteractionType.PEER_REVIEW) is None

    def test_unknown_source_ranks_last(self) -> None:
        assert source_priority(make(source="partner")) == 3
        assert source_priority(make(source="imported")) == 2
