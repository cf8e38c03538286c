"""SettlementEngine — moves one prediction from open to settled, exactly once.

Order of work:
    1. load + status check            (no writes)
    2. settlement price at timeframe_end
    3. reference price at created_at
    4. outcome
    5. completed stakes               (NoStakesError if none)
    6-8. payouts and reputation deltas (pure)
    9. guarded status UPDATE, then one reputation event per participant

Nothing is written before step 9, so any earlier failure leaves the
prediction open. Step 9 runs inside the caller's transaction; the caller
commits or rolls back. A concurrent settler loses at the guarded UPDATE.
A retry after a crash is absorbed by the (user_id, prediction_id) unique
index on reputation_events.

The engine never looks at who is calling; authorization is the router's job.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import PredictionStatus, ReputationOutcome
from src.pm_common.errors import (
    NoStakesError,
    PredictionAlreadySettledError,
    PredictionNotFoundError,
    PredictionNotOpenError,
    PriceUnavailableError,
)
from src.pm_prediction.domain.models import Prediction
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_price.domain.provider import PriceProviderProtocol
from src.pm_reputation.domain.models import NewReputationEvent
from src.pm_reputation.domain.repository import ReputationRepositoryProtocol
from src.pm_settlement.domain.models import LoserEntry, SettlementResult, WinnerPayout
from src.pm_settlement.domain.payout import (
    creator_delta,
    creator_event_outcome,
    determine_outcome,
    split_payouts,
    winning_side,
)
from src.pm_stake.domain.repository import StakeRepositoryProtocol

logger = logging.getLogger(__name__)


def participant_events(
    prediction: Prediction,
    creator_outcome: ReputationOutcome,
    creator_reputation_delta: int,
    winners: list[WinnerPayout],
    losers: list[LoserEntry],
) -> list[NewReputationEvent]:
    """Creator first, then winners, then losers; one event per user, first wins."""
    candidates = [
        NewReputationEvent(
            prediction.creator_user_id, creator_outcome.value, creator_reputation_delta
        )
    ]
    candidates += [
        NewReputationEvent(w.user_id, ReputationOutcome.WIN.value, w.reputation_delta)
        for w in winners
    ]
    candidates += [
        NewReputationEvent(loser.user_id, ReputationOutcome.LOSS.value, loser.reputation_delta)
        for loser in losers
    ]

    seen: set[str] = set()
    events: list[NewReputationEvent] = []
    for event in candidates:
        if event.user_id in seen:
            continue
        seen.add(event.user_id)
        events.append(event)
    return events


class SettlementEngine:
    def __init__(
        self,
        prediction_repo: PredictionRepositoryProtocol,
        stake_repo: StakeRepositoryProtocol,
        reputation_repo: ReputationRepositoryProtocol,
        price_provider: PriceProviderProtocol,
        price_timeout: float | None = None,
    ) -> None:
        self._predictions = prediction_repo
        self._stakes = stake_repo
        self._reputation = reputation_repo
        self._prices = price_provider
        self._price_timeout = price_timeout or settings.PRICE_FEED_TIMEOUT_SECONDS

    async def settle(
        self,
        db: AsyncSession,
        prediction_id: int,
        settled_at: datetime | None = None,
    ) -> SettlementResult:
        # 1. Load + status check
        prediction = await self._predictions.get_by_id(db, prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        if prediction.status == PredictionStatus.SETTLED.value:
            raise PredictionAlreadySettledError(prediction_id)
        if prediction.status != PredictionStatus.OPEN.value:
            raise PredictionNotOpenError(prediction_id, prediction.status)

        # 2-3. Prices
        settlement_price = await self._resolve_price(
            prediction.asset_symbol, prediction.timeframe_end
        )
        reference_price = await self._resolve_price(
            prediction.asset_symbol, prediction.created_at
        )

        # 4. Outcome
        outcome = determine_outcome(prediction.direction, reference_price, settlement_price)

        # 5. Stakes
        stakes = await self._stakes.list_completed(db, prediction_id)
        if not stakes:
            raise NoStakesError(prediction_id)

        # 6-8. Payouts and deltas
        winners, losers = split_payouts(stakes, winning_side(outcome), prediction.confidence)
        creator_reputation_delta = creator_delta(outcome, prediction.confidence)

        # 9. Persist
        settled_at = settled_at or utc_now()
        if not await self._predictions.mark_settled(
            db, prediction_id, str(settlement_price), settled_at
        ):
            raise PredictionAlreadySettledError(prediction_id)

        written = 0
        for event in participant_events(
            prediction,
            creator_event_outcome(outcome),
            creator_reputation_delta,
            winners,
            losers,
        ):
            if await self._reputation.insert_if_absent(
                db,
                prediction_id,
                event.user_id,
                event.outcome,
                event.delta_score,
                settled_at,
            ):
                written += 1

        return SettlementResult(
            prediction_id=prediction_id,
            settlement_price=settlement_price,
            reference_price=reference_price,
            outcome=outcome.value,
            creator_reputation_delta=creator_reputation_delta,
            settled_at=settled_at,
            winners=winners,
            losers=losers,
            reputation_events_written=written,
        )

    async def _resolve_price(self, symbol: str, at: datetime) -> Decimal:
        try:
            price = await asyncio.wait_for(
                self._prices.get_price_at(symbol, at), timeout=self._price_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Price lookup timed out after %ss: %s at %s",
                self._price_timeout, symbol, at.isoformat(),
            )
            raise PriceUnavailableError(symbol, at.isoformat()) from None
        if price is None:
            raise PriceUnavailableError(symbol, at.isoformat())
        return price
