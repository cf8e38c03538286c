"""ReputationApplicationService — read side of the Reputation Ledger.

Every figure is recomputed from the ledger per call; nothing here writes.
Leaderboard pages batch their follow-up reads (creator counts, streak
outcomes) into one query each rather than one per row.
"""

import logging
from datetime import datetime, timedelta
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import ReputationOutcome
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_reputation.application.schemas import (
    LeaderboardEntryOut,
    LeaderboardOut,
    LeaderboardSummaryOut,
)
from src.pm_reputation.domain.aggregation import compute_streak, win_rate
from src.pm_reputation.domain.models import UserReputation
from src.pm_reputation.domain.repository import ReputationRepositoryProtocol
from src.pm_reputation.infrastructure.persistence import ReputationRepository

logger = logging.getLogger(__name__)

LeaderboardPeriod = Literal["all", "week"]


def period_start(period: LeaderboardPeriod, now: datetime | None = None) -> datetime | None:
    if period == "week":
        return (now or utc_now()) - timedelta(days=7)
    return None


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.LEADERBOARD_DEFAULT_LIMIT
    return max(1, min(limit, settings.LEADERBOARD_MAX_LIMIT))


class ReputationApplicationService:
    def __init__(
        self,
        repo: ReputationRepositoryProtocol | None = None,
        prediction_repo: PredictionRepositoryProtocol | None = None,
    ) -> None:
        self._repo: ReputationRepositoryProtocol = repo or ReputationRepository()
        self._predictions: PredictionRepositoryProtocol = (
            prediction_repo or PredictionRepository()
        )

    async def reputation_for(
        self, db: AsyncSession, user_id: str, since: datetime | None = None
    ) -> UserReputation:
        events = await self._repo.list_for_user(db, user_id, since)
        wins = sum(1 for e in events if e.outcome == ReputationOutcome.WIN.value)
        losses = sum(1 for e in events if e.outcome == ReputationOutcome.LOSS.value)
        total_predictions = await self._predictions.count_by_creator(db, user_id)
        return UserReputation(
            user_id=user_id,
            total_predictions=total_predictions,
            settled_predictions=wins + losses,
            wins=wins,
            losses=losses,
            win_rate=win_rate(wins, losses),
            reputation_score=sum(e.delta_score for e in events),
            streak=compute_streak(e.outcome for e in events),
        )

    async def outcomes_for_predictions(
        self, db: AsyncSession, user_id: str, prediction_ids: list[int]
    ) -> dict[int, str]:
        return await self._repo.outcomes_for_predictions(db, user_id, prediction_ids)

    async def leaderboard(
        self,
        db: AsyncSession,
        limit: int | None = None,
        since: datetime | None = None,
        user_ids: list[str] | None = None,
    ) -> list[UserReputation]:
        """Ranked by score descending, ties by user_id ascending.

        An explicitly empty user_ids filter yields [] without touching the store.
        """
        if user_ids is not None and not user_ids:
            return []
        rows = await self._repo.leaderboard(db, clamp_limit(limit), since, user_ids)
        if not rows:
            return []

        ids = [row.user_id for row in rows]
        created = await self._predictions.count_by_creators(db, ids)
        outcomes = await self._repo.outcomes_for_users(db, ids, since)
        return [
            UserReputation(
                user_id=row.user_id,
                total_predictions=created.get(row.user_id, 0),
                settled_predictions=row.wins + row.losses,
                wins=row.wins,
                losses=row.losses,
                win_rate=win_rate(row.wins, row.losses),
                reputation_score=row.reputation_score,
                streak=compute_streak(outcomes.get(row.user_id, [])),
            )
            for row in rows
        ]

    async def leaderboard_page(
        self,
        db: AsyncSession,
        limit: int | None = None,
        period: LeaderboardPeriod = "all",
        user_ids: list[str] | None = None,
    ) -> LeaderboardOut:
        since = period_start(period)
        entries = await self.leaderboard(db, limit, since, user_ids)
        if user_ids is not None and not user_ids:
            predictors, settled = 0, 0
        else:
            predictors, settled = await self._repo.totals(db, since, user_ids)
        logger.debug(
            "Leaderboard period=%s entries=%d predictors=%d", period, len(entries), predictors
        )
        return LeaderboardOut(
            entries=[LeaderboardEntryOut.ranked(i, r) for i, r in enumerate(entries, start=1)],
            summary=LeaderboardSummaryOut(
                total_predictors=predictors,
                total_settled_predictions=settled,
                period=period,
            ),
        )
