"""StakeApplicationService — caller side of the Stake Ledger.

record_stake is where the open/expiry preconditions live; the repository
write itself trusts its inputs. Mutations commit here and roll back on any
error. summarize is a point-in-time read with no locks.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.amounts import to_base_units
from src.pm_common.datetime_utils import ensure_utc, utc_now
from src.pm_common.enums import Currency, PaymentStatus, PredictionStatus
from src.pm_common.errors import (
    DuplicateStakeError,
    InvalidFieldError,
    InvalidPaymentTransitionError,
    PredictionExpiredError,
    PredictionNotFoundError,
    PredictionNotOpenError,
    StakeNotFoundError,
)
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_stake.application.schemas import CreateStakeRequest, StakeOut, StakeSummaryOut
from src.pm_stake.domain.repository import StakeRepositoryProtocol
from src.pm_stake.infrastructure.persistence import StakeRepository

logger = logging.getLogger(__name__)


class StakeApplicationService:
    def __init__(
        self,
        repo: StakeRepositoryProtocol | None = None,
        prediction_repo: PredictionRepositoryProtocol | None = None,
    ) -> None:
        self._repo: StakeRepositoryProtocol = repo or StakeRepository()
        self._predictions: PredictionRepositoryProtocol = (
            prediction_repo or PredictionRepository()
        )

    async def record_stake(
        self,
        db: AsyncSession,
        prediction_id: int,
        user_id: str,
        req: CreateStakeRequest,
    ) -> StakeOut:
        if req.currency == Currency.DEMO and not settings.DEMO_STAKES_ENABLED:
            raise InvalidFieldError("currency", "DEMO stakes are disabled")
        # DEMO stakes have no payment leg, so they land completed
        payment_status = (
            PaymentStatus.COMPLETED if req.currency == Currency.DEMO else PaymentStatus.PENDING
        )
        try:
            amount = to_base_units(req.amount, req.currency.value)
        except ValueError as e:
            raise InvalidFieldError("amount", str(e)) from None

        try:
            prediction = await self._predictions.get_by_id(db, prediction_id)
            if prediction is None:
                raise PredictionNotFoundError(prediction_id)
            if prediction.status != PredictionStatus.OPEN.value:
                raise PredictionNotOpenError(prediction_id, prediction.status)
            if ensure_utc(prediction.timeframe_end) <= utc_now():
                raise PredictionExpiredError(prediction_id)

            stake = await self._repo.insert(
                db,
                prediction_id,
                user_id,
                req.side.value,
                amount,
                req.currency.value,
                payment_status.value,
            )
            if stake is None:
                raise DuplicateStakeError(prediction_id, req.side.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Stake recorded: id=%s prediction=%s side=%s amount=%s %s status=%s",
            stake.id, prediction_id, stake.side, stake.amount, stake.currency,
            stake.payment_status,
        )
        return StakeOut.from_domain(stake)

    async def summarize(self, db: AsyncSession, prediction_id: int) -> StakeSummaryOut:
        summary = await self._repo.summarize(db, prediction_id)
        return StakeSummaryOut.from_domain(prediction_id, summary)

    async def get_stake(self, db: AsyncSession, stake_id: int) -> StakeOut:
        stake = await self._repo.get_by_id(db, stake_id)
        if stake is None:
            raise StakeNotFoundError(stake_id)
        return StakeOut.from_domain(stake)

    async def mark_payment(
        self, db: AsyncSession, stake_id: int, target: str
    ) -> StakeOut:
        """pending -> completed|failed; repeating the same terminal status is a no-op."""
        try:
            stake = await self._repo.transition_payment(db, stake_id, target)
            if stake is None:
                existing = await self._repo.get_by_id(db, stake_id)
                if existing is None:
                    raise StakeNotFoundError(stake_id)
                if existing.payment_status != target:
                    raise InvalidPaymentTransitionError(
                        stake_id, existing.payment_status, target
                    )
                logger.info("Stake %s already %s, skipping", stake_id, target)
                stake = existing
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return StakeOut.from_domain(stake)
