"""Voting ledger — toggle votes, live tallies, and feature suggestions.

Every operation runs inside a single store transaction. Tallies are always
aggregated from live ``feature_votes`` rows in the same transaction that
wrote them; nothing is cached.

Vote state for one (feature, voter) pair::

    [none] --up--> [up] --up--> [none]
    [none] --down--> [down] --down--> [none]
    [up] --down--> [down]       [down] --up--> [up]

Mutual exclusion lives in the store: the partial unique index on live votes
rejects a duplicate insert, and updates are conditional on the row still
looking the way we read it. Either failure rolls back and the whole
read-modify-write is retried, up to ``max_attempts`` times.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar

from sqlalchemy import Select, and_, case, func, null, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from backend.app.models.feature import Feature, Vote
from backend.app.models.user import User
from backend.app.services.errors import (
    ConstraintConflict,
    FeatureDeleted,
    FeatureForbidden,
    FeatureNotFound,
    InvalidRequest,
    NotAuthenticated,
    StoreUnavailable,
    VoteConflict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DIRECTIONS = ("up", "down")
NO_VOTE = "none"
CATEGORIES = ("ai", "productivity", "integration", "ui", "business")
STATUSES = ("voting", "planned", "in_progress", "completed")
SORT_MOST_VOTED = "most_voted"
SORT_MOST_RECENT = "most_recent"
SORTS = (SORT_MOST_VOTED, SORT_MOST_RECENT)
# Client spellings used by the mobile app
SORT_ALIASES = {"mostVoted": SORT_MOST_VOTED, "mostRecent": SORT_MOST_RECENT}
DEFAULT_ICON = "💡"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class VoteTally:
    """Live up/down counts for one feature, plus the viewer's own vote."""

    feature_id: str
    up_count: int
    down_count: int
    user_vote: str | None = None

    @property
    def net_score(self) -> int:
        return self.up_count - self.down_count


@dataclass(frozen=True)
class FeatureStanding:
    feature: Feature
    tally: VoteTally


@dataclass(frozen=True)
class VoteOutcome:
    feature_id: str
    direction: str  # "up", "down" or "none"
    tally: VoteTally
    attempts: int


class VotingLedger:
    """Enforces one live vote per voter per feature over an async session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = 3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self.max_attempts = max_attempts

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def cast_vote(self, voter_id: str | None, feature_id: str, direction: str) -> VoteOutcome:
        """Cast, change or retract ``voter_id``'s vote on a feature.

        Same direction as the live vote retracts it, the opposite direction
        flips it in place, and no live vote inserts one. Raises
        ``VoteConflict`` once every attempt lost to a concurrent writer.
        """
        if not voter_id:
            raise NotAuthenticated("Sign in to vote on features")
        if direction not in DIRECTIONS:
            raise InvalidRequest("Vote direction must be 'up' or 'down'")

        for attempt in range(1, self.max_attempts + 1):
            try:
                effective, tally = await self._run(
                    lambda session: self._toggle(session, voter_id, feature_id, direction)
                )
            except ConstraintConflict:
                logger.info(
                    "Vote conflict voter=%s feature=%s (attempt %d/%d)",
                    voter_id,
                    feature_id,
                    attempt,
                    self.max_attempts,
                )
                continue
            logger.debug(
                "Vote applied voter=%s feature=%s direction=%s -> %s",
                voter_id,
                feature_id,
                direction,
                effective,
            )
            return VoteOutcome(
                feature_id=feature_id, direction=effective, tally=tally, attempts=attempt
            )

        logger.warning(
            "Giving up on vote voter=%s feature=%s after %d attempts",
            voter_id,
            feature_id,
            self.max_attempts,
        )
        raise VoteConflict()

    async def get_feature_rankings(
        self,
        sort: str = SORT_MOST_VOTED,
        category: str | None = None,
        viewer_id: str | None = None,
    ) -> list[FeatureStanding]:
        """Rank live features, optionally filtered by category.

        ``most_voted`` orders by net score, oldest first on ties;
        ``most_recent`` orders newest first.
        """
        sort = SORT_ALIASES.get(sort, sort)
        if sort not in SORTS:
            raise InvalidRequest(f"Sort must be one of: {', '.join(SORTS)}")
        if category is not None and category not in CATEGORIES:
            raise InvalidRequest(f"Category must be one of: {', '.join(CATEGORIES)}")

        query = _standings_query(viewer_id).where(Feature.deleted_at.is_(None))
        if category:
            query = query.where(Feature.category == category)

        net_score = _UP_COUNT - _DOWN_COUNT
        if sort == SORT_MOST_VOTED:
            query = query.order_by(net_score.desc(), Feature.created_at.asc(), Feature.id.asc())
        else:
            query = query.order_by(Feature.created_at.desc(), Feature.id.asc())

        async def _read(session: AsyncSession) -> list[FeatureStanding]:
            result = await session.execute(query)
            return [_standing(row) for row in result.all()]

        return await self._run(_read)

    async def get_feature(self, feature_id: str, viewer_id: str | None = None) -> FeatureStanding:
        async def _read(session: AsyncSession) -> FeatureStanding:
            feature = await self._load_live_feature(session, feature_id)
            return FeatureStanding(feature, await self._tally(session, feature_id, viewer_id))

        return await self._run(_read)

    async def suggest_feature(
        self,
        creator_id: str | None,
        title: str,
        description: str,
        category: str,
        icon: str | None = None,
    ) -> FeatureStanding:
        """Create a feature in ``voting`` status with no votes."""
        if not creator_id:
            raise NotAuthenticated("Sign in to suggest a feature")
        title = (title or "").strip()
        description = (description or "").strip()
        if not title or not description:
            raise InvalidRequest("Title and description are required")
        if category not in CATEGORIES:
            raise InvalidRequest(f"Category must be one of: {', '.join(CATEGORIES)}")

        async def _create(session: AsyncSession) -> FeatureStanding:
            await self._require_user(session, creator_id)
            feature = Feature(
                id=str(uuid.uuid4()),
                title=title,
                description=description,
                category=category,
                icon=icon or DEFAULT_ICON,
                status="voting",
                created_by=creator_id,
                created_at=_now(),
            )
            session.add(feature)
            await session.flush()
            return FeatureStanding(feature, VoteTally(feature.id, 0, 0))

        standing = await self._run(_create)
        logger.info("Feature suggested id=%s by=%s", standing.feature.id, creator_id)
        return standing

    async def set_status(
        self, actor_id: str | None, feature_id: str, status: str
    ) -> FeatureStanding:
        """Move a feature along the roadmap (voting -> planned -> ...)."""
        if not actor_id:
            raise NotAuthenticated()
        if status not in STATUSES:
            raise InvalidRequest(f"Status must be one of: {', '.join(STATUSES)}")

        async def _update(session: AsyncSession) -> FeatureStanding:
            feature = await self._load_live_feature(session, feature_id)
            if feature.created_by != actor_id:
                raise FeatureForbidden()
            feature.status = status
            await session.flush()
            return FeatureStanding(feature, await self._tally(session, feature_id, actor_id))

        return await self._run(_update)

    async def delete_feature(self, actor_id: str | None, feature_id: str) -> None:
        """Soft-delete a feature. Its votes stay as they are, frozen."""
        if not actor_id:
            raise NotAuthenticated()

        async def _delete(session: AsyncSession) -> None:
            feature = await self._load_live_feature(session, feature_id)
            if feature.created_by != actor_id:
                raise FeatureForbidden()
            feature.deleted_at = _now()

        await self._run(_delete)
        logger.info("Feature soft-deleted id=%s by=%s", feature_id, actor_id)

    async def user_exists(self, user_id: str) -> bool:
        async def _read(session: AsyncSession) -> bool:
            result = await session.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None

        return await self._run(_read)

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    async def _run(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``work`` in one transaction; commit on success, roll back otherwise.

        The transaction is shielded from caller cancellation: it always runs to
        commit or rollback so no connection is left holding the write lock.
        A cancelled caller just never sees the result.
        """

        async def _transaction() -> T:
            async with self._session_factory() as session, session.begin():
                return await work(session)

        try:
            return await asyncio.shield(_transaction())
        except (OperationalError, InterfaceError) as exc:
            logger.exception("Store failure during ledger operation")
            raise StoreUnavailable() from exc

    async def _toggle(
        self, session: AsyncSession, voter_id: str, feature_id: str, direction: str
    ) -> tuple[str, VoteTally]:
        await self._require_user(session, voter_id)
        await self._load_live_feature(session, feature_id)
        existing = await self._find_live_vote(session, voter_id, feature_id)
        now = _now()

        if existing is None:
            session.add(
                Vote(
                    id=str(uuid.uuid4()),
                    feature_id=feature_id,
                    voter_id=voter_id,
                    direction=direction,
                    created_at=now,
                    updated_at=now,
                )
            )
            try:
                await session.flush()
            except IntegrityError as exc:
                raise ConstraintConflict() from exc
            effective = direction
        else:
            # Only touch the row if it is still live with the direction we read
            guarded = (
                update(Vote)
                .where(
                    Vote.id == existing.id,
                    Vote.deleted_at.is_(None),
                    Vote.direction == existing.direction,
                )
                .execution_options(synchronize_session=False)
            )
            if existing.direction == direction:
                stmt = guarded.values(deleted_at=now, updated_at=now)
                effective = NO_VOTE
            else:
                stmt = guarded.values(direction=direction, updated_at=now)
                effective = direction
            result = await session.execute(stmt)
            if result.rowcount != 1:
                raise ConstraintConflict()

        return effective, await self._tally(session, feature_id, voter_id)

    async def _find_live_vote(
        self, session: AsyncSession, voter_id: str, feature_id: str
    ) -> Vote | None:
        result = await session.execute(
            select(Vote).where(
                Vote.feature_id == feature_id,
                Vote.voter_id == voter_id,
                Vote.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def _load_live_feature(self, session: AsyncSession, feature_id: str) -> Feature:
        feature = await session.get(Feature, feature_id)
        if feature is None:
            raise FeatureNotFound()
        if feature.deleted_at is not None:
            raise FeatureDeleted()
        return feature

    async def _require_user(self, session: AsyncSession, user_id: str) -> None:
        result = await session.execute(select(User.id).where(User.id == user_id))
        if result.scalar_one_or_none() is None:
            raise NotAuthenticated()

    async def _tally(
        self, session: AsyncSession, feature_id: str, viewer_id: str | None
    ) -> VoteTally:
        result = await session.execute(
            _standings_query(viewer_id).where(Feature.id == feature_id)
        )
        return _standing(result.one()).tally


_UP_COUNT = func.coalesce(func.sum(case((Vote.direction == "up", 1), else_=0)), 0)
_DOWN_COUNT = func.coalesce(func.sum(case((Vote.direction == "down", 1), else_=0)), 0)


def _standings_query(viewer_id: str | None) -> Select:
    """Features joined to their live votes, one row per feature."""
    if viewer_id:
        mine = aliased(Vote)
        user_vote = (
            select(mine.direction)
            .where(
                mine.feature_id == Feature.id,
                mine.voter_id == viewer_id,
                mine.deleted_at.is_(None),
            )
            .correlate(Feature)
            .scalar_subquery()
        )
    else:
        user_vote = null()

    return (
        select(
            Feature,
            _UP_COUNT.label("up_count"),
            _DOWN_COUNT.label("down_count"),
            user_vote.label("user_vote"),
        )
        .outerjoin(Vote, and_(Vote.feature_id == Feature.id, Vote.deleted_at.is_(None)))
        .group_by(Feature.id)
    )


def _standing(row) -> FeatureStanding:
    feature, up_count, down_count, user_vote = row
    return FeatureStanding(
        feature,
        VoteTally(
            feature_id=feature.id,
            up_count=int(up_count),
            down_count=int(down_count),
            user_vote=user_vote,
        ),
    )
