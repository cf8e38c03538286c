"""Outcome and pari-mutuel payout math.

Pools are kept per currency: a WLD winner is only paid out of the WLD
losing pool. Within a currency every winner gets the stake back plus

    stake * losing_pool // winning_pool

Integer floor division leaves at most (winners - 1) base units of dust in
the pool; the sum of payouts never exceeds the total staked in that
currency. A winning pool of zero cannot happen for a non-empty winner list,
but if it does the payout falls back to the stake alone.
"""

from collections import defaultdict
from decimal import Decimal

from src.pm_common.enums import (
    PredictionDirection,
    ReputationOutcome,
    SettlementOutcome,
    StakeSide,
)
from src.pm_settlement.domain.models import LoserEntry, WinnerPayout
from src.pm_stake.domain.models import Stake


def determine_outcome(
    direction: str, reference_price: Decimal, settlement_price: Decimal
) -> SettlementOutcome:
    """An unchanged price counts as "not up", so a flat market is a win for "down"."""
    went_up = settlement_price > reference_price
    if direction == PredictionDirection.UP.value:
        correct = went_up
    else:
        correct = not went_up
    return SettlementOutcome.CREATOR_CORRECT if correct else SettlementOutcome.CREATOR_WRONG


def winning_side(outcome: SettlementOutcome) -> StakeSide:
    return StakeSide.FOR if outcome == SettlementOutcome.CREATOR_CORRECT else StakeSide.AGAINST


def creator_delta(outcome: SettlementOutcome, confidence: int) -> int:
    return confidence if outcome == SettlementOutcome.CREATOR_CORRECT else -confidence


def creator_event_outcome(outcome: SettlementOutcome) -> ReputationOutcome:
    if outcome == SettlementOutcome.CREATOR_CORRECT:
        return ReputationOutcome.WIN
    return ReputationOutcome.LOSS


def pools_by_currency(stakes: list[Stake], side: str) -> dict[str, int]:
    pools: dict[str, int] = defaultdict(int)
    for stake in stakes:
        if stake.side == side:
            pools[stake.currency] += stake.amount
    return dict(pools)


def payout_for(stake_amount: int, winning_pool: int, losing_pool: int) -> int:
    if winning_pool <= 0:
        return stake_amount
    return stake_amount + stake_amount * losing_pool // winning_pool


def split_payouts(
    stakes: list[Stake], win_side: StakeSide, confidence: int
) -> tuple[list[WinnerPayout], list[LoserEntry]]:
    """Partition stakes into paid winners and losers, preserving input order."""
    lose_side = StakeSide.AGAINST if win_side == StakeSide.FOR else StakeSide.FOR
    winning_pools = pools_by_currency(stakes, win_side.value)
    losing_pools = pools_by_currency(stakes, lose_side.value)

    winners: list[WinnerPayout] = []
    losers: list[LoserEntry] = []
    for stake in stakes:
        if stake.side == win_side.value:
            winners.append(
                WinnerPayout(
                    user_id=stake.user_id,
                    side=stake.side,
                    stake_amount=stake.amount,
                    currency=stake.currency,
                    payout=payout_for(
                        stake.amount,
                        winning_pools.get(stake.currency, 0),
                        losing_pools.get(stake.currency, 0),
                    ),
                    reputation_delta=confidence,
                )
            )
        else:
            losers.append(
                LoserEntry(
                    user_id=stake.user_id,
                    side=stake.side,
                    stake_amount=stake.amount,
                    currency=stake.currency,
                    reputation_delta=-confidence,
                )
            )
    return winners, losers
