"""Review subject selection.

Relationships are walked strongest first, skipping people the reviewer
talked about recently. If everyone was recent the strongest connection is
returned anyway so a reviewer with relationships is never left without a
subject.
"""

import random
from uuid import UUID

from feedloop.observability.logging import get_logger
from feedloop.org_data.store import OrgDataStore

logger = get_logger(__name__)


class SubjectSelector:
    """Chooses whom a reviewer should give feedback about."""

    def __init__(
        self,
        org_store: OrgDataStore,
        rng: random.Random | None = None,
        recent_window: int = 5,
    ) -> None:
        """Initialize selector.

        Args:
            org_store: Source of relationships, users and conversations
            rng: Random source for the no-relationship fallback
            recent_window: Number of recent conversations treated as recent
        """
        self._org_store = org_store
        self._rng = rng or random.Random()
        self._recent_window = recent_window

    async def select(self, org_id: UUID, user_id: UUID) -> UUID | None:
        relationships = await self._org_store.list_relationships(org_id, user_id)
        relationships = [r for r in relationships if r.is_active]
        if not relationships:
            return await self._random_teammate(org_id, user_id)

        ranked = sorted(relationships, key=lambda r: r.strength, reverse=True)

        recent = await self._org_store.list_recent_conversations(
            org_id, user_id, limit=self._recent_window
        )
        recent_subjects = {c.subject_id for c in recent}

        for relationship in ranked:
            other = relationship.other_party(user_id)
            if other not in recent_subjects:
                return other

        logger.debug(
            "all_subjects_recent",
            org_id=str(org_id),
            user_id=str(user_id),
            relationship_count=len(ranked),
        )
        return ranked[0].other_party(user_id)

    async def _random_teammate(self, org_id: UUID, user_id: UUID) -> UUID | None:
        """Random active user from the same team (or org), excluding self."""
        user = await self._org_store.get_user(org_id, user_id)
        if user is None:
            return None

        candidates = await self._org_store.list_active_users(org_id, team_id=user.team_id)
        candidates = [c for c in candidates if c.id != user_id]
        if not candidates:
            return None

        return self._rng.choice(candidates).id
