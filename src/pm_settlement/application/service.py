"""SettlementApplicationService — transaction owner around SettlementEngine.

The engine does the work inside the session; this layer commits on success
and rolls back on any error, so a failed settlement leaves the prediction
open and writes no reputation events.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_price.domain.provider import PriceProviderProtocol
from src.pm_price.infrastructure.provider_factory import get_price_provider
from src.pm_reputation.infrastructure.persistence import ReputationRepository
from src.pm_settlement.application.schemas import SettlementResponse
from src.pm_settlement.domain.engine import SettlementEngine
from src.pm_stake.infrastructure.persistence import StakeRepository

logger = logging.getLogger(__name__)


class SettlementApplicationService:
    def __init__(
        self,
        engine: SettlementEngine | None = None,
        price_provider: PriceProviderProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._price_provider = price_provider

    def _get_engine(self) -> SettlementEngine:
        # Built on first use so the price provider is created inside the running app
        if self._engine is None:
            self._engine = SettlementEngine(
                PredictionRepository(),
                StakeRepository(),
                ReputationRepository(),
                self._price_provider or get_price_provider(),
            )
        return self._engine

    async def settle(self, db: AsyncSession, prediction_id: int) -> SettlementResponse:
        engine = self._get_engine()
        try:
            result = await engine.settle(db, prediction_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Prediction %s settled: price=%s reference=%s outcome=%s winners=%d losers=%d events=%d",
            prediction_id, result.settlement_price, result.reference_price, result.outcome,
            len(result.winners), len(result.losers), result.reputation_events_written,
        )
        return SettlementResponse.from_domain(result)
