"""PredictionApplicationService — create, read, list and cancel predictions.

Settlement is not here: only pm_settlement moves a prediction to settled.
Cancellation is the one other terminal transition and has no payout or
reputation side effects.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.enums import PredictionStatus
from src.pm_common.errors import (
    PredictionAlreadySettledError,
    PredictionNotFoundError,
    PredictionNotOpenError,
)
from src.pm_prediction.application.schemas import (
    CreatePredictionRequest,
    PredictionDetailOut,
    PredictionListItemOut,
    PredictionListOut,
    PredictionOut,
)
from src.pm_prediction.domain.models import Prediction
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_reputation.application.schemas import UserReputationOut
from src.pm_reputation.application.service import ReputationApplicationService
from src.pm_stake.application.schemas import StakeSummaryOut
from src.pm_stake.domain.models import StakeSummary
from src.pm_stake.domain.repository import StakeRepositoryProtocol
from src.pm_stake.infrastructure.persistence import StakeRepository

logger = logging.getLogger(__name__)


def clamp_list_limit(limit: int | None, default: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, settings.PREDICTION_LIST_MAX_LIMIT))


class PredictionApplicationService:
    def __init__(
        self,
        repo: PredictionRepositoryProtocol | None = None,
        stake_repo: StakeRepositoryProtocol | None = None,
        reputation_service: ReputationApplicationService | None = None,
    ) -> None:
        self._repo: PredictionRepositoryProtocol = repo or PredictionRepository()
        self._stakes: StakeRepositoryProtocol = stake_repo or StakeRepository()
        self._reputation = reputation_service or ReputationApplicationService(
            prediction_repo=self._repo
        )

    async def create_prediction(
        self, db: AsyncSession, creator_user_id: str, req: CreatePredictionRequest
    ) -> PredictionOut:
        try:
            prediction = await self._repo.create(
                db,
                creator_user_id,
                req.asset_symbol,
                req.direction.value,
                req.confidence,
                req.timeframe_end_at,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Prediction created: id=%s creator=%s %s %s confidence=%s ends=%s",
            prediction.id, creator_user_id, prediction.asset_symbol,
            prediction.direction, prediction.confidence,
            prediction.timeframe_end.isoformat(),
        )
        return PredictionOut.from_domain(prediction)

    async def get_detail(self, db: AsyncSession, prediction_id: int) -> PredictionDetailOut:
        prediction = await self._repo.get_by_id(db, prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        summary = await self._stakes.summarize(db, prediction_id)
        reputation = await self._reputation.reputation_for(db, prediction.creator_user_id)
        return PredictionDetailOut(
            prediction=PredictionOut.from_domain(prediction),
            stakes=StakeSummaryOut.from_domain(prediction_id, summary),
            creator_reputation=UserReputationOut.from_domain(reputation),
        )

    async def list_predictions(
        self, db: AsyncSession, status: str | None = None, limit: int | None = None
    ) -> PredictionListOut:
        """Newest first, optionally narrowed to one status."""
        predictions = await self._repo.list_recent(
            db, clamp_list_limit(limit, settings.PREDICTION_LIST_DEFAULT_LIMIT), status
        )
        return await self._with_stakes(db, predictions)

    async def list_for_creator(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None = None,
        limit: int | None = None,
    ) -> PredictionListOut:
        """A creator's track record: their predictions newest first, with outcomes."""
        predictions = await self._repo.list_recent(
            db,
            clamp_list_limit(limit, settings.USER_PREDICTIONS_DEFAULT_LIMIT),
            status,
            user_id,
        )
        outcomes = await self._reputation.outcomes_for_predictions(
            db, user_id, [p.id for p in predictions]
        )
        return await self._with_stakes(db, predictions, outcomes)

    async def _with_stakes(
        self,
        db: AsyncSession,
        predictions: list[Prediction],
        outcomes: dict[int, str] | None = None,
    ) -> PredictionListOut:
        summaries = await self._stakes.summarize_many(db, [p.id for p in predictions])
        outcomes = outcomes or {}
        return PredictionListOut(
            predictions=[
                PredictionListItemOut(
                    prediction=PredictionOut.from_domain(p),
                    stakes=StakeSummaryOut.from_domain(
                        p.id, summaries.get(p.id, StakeSummary())
                    ),
                    outcome=outcomes.get(p.id),
                )
                for p in predictions
            ]
        )

    async def cancel(self, db: AsyncSession, prediction_id: int) -> PredictionOut:
        """open -> cancelled. Stakes are left as they are; nothing is refunded."""
        try:
            prediction = await self._repo.get_by_id(db, prediction_id)
            if prediction is None:
                raise PredictionNotFoundError(prediction_id)
            if prediction.status == PredictionStatus.SETTLED.value:
                raise PredictionAlreadySettledError(prediction_id)
            if prediction.status != PredictionStatus.OPEN.value:
                raise PredictionNotOpenError(prediction_id, prediction.status)
            if not await self._repo.mark_cancelled(db, prediction_id):
                # Lost a race with a settler or another cancel
                current = await self._repo.get_by_id(db, prediction_id)
                status = current.status if current else "unknown"
                raise PredictionNotOpenError(prediction_id, status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        prediction.status = PredictionStatus.CANCELLED.value
        logger.info("Prediction cancelled: id=%s", prediction_id)
        return PredictionOut.from_domain(prediction)
