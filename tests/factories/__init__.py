"""Test factories for creating test data."""

from tests.factories.org_data import (
    ConversationStateFactory,
    QuestionnaireFactory,
    RelationshipFactory,
    UserFactory,
)

__all__ = [
    "ConversationStateFactory",
    "QuestionnaireFactory",
    "RelationshipFactory",
    "UserFactory",
]
