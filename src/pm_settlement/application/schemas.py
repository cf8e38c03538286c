"""Pydantic schemas for the settlement response.

Amounts are base-unit strings; `*_display` fields are human decimals and
`payout_compact` is the short form shown on result cards.
"""

from pydantic import BaseModel

from src.pm_common.amounts import format_compact, from_base_units
from src.pm_settlement.domain.models import LoserEntry, SettlementResult, WinnerPayout


class WinnerOut(BaseModel):
    user_id: str
    side: str
    stake_amount: str
    stake_amount_display: str
    currency: str
    payout: str
    payout_display: str
    payout_compact: str
    reputation_delta: int

    @classmethod
    def from_domain(cls, w: WinnerPayout) -> "WinnerOut":
        payout_display = from_base_units(w.payout, w.currency)
        return cls(
            user_id=w.user_id,
            side=w.side,
            stake_amount=str(w.stake_amount),
            stake_amount_display=from_base_units(w.stake_amount, w.currency),
            currency=w.currency,
            payout=str(w.payout),
            payout_display=payout_display,
            payout_compact=format_compact(payout_display),
            reputation_delta=w.reputation_delta,
        )


class LoserOut(BaseModel):
    user_id: str
    side: str
    stake_amount: str
    stake_amount_display: str
    currency: str
    reputation_delta: int

    @classmethod
    def from_domain(cls, entry: LoserEntry) -> "LoserOut":
        return cls(
            user_id=entry.user_id,
            side=entry.side,
            stake_amount=str(entry.stake_amount),
            stake_amount_display=from_base_units(entry.stake_amount, entry.currency),
            currency=entry.currency,
            reputation_delta=entry.reputation_delta,
        )


class SettlementResponse(BaseModel):
    prediction_id: int
    status: str = "settled"
    settlement_price: str
    reference_price: str
    outcome: str
    creator_reputation_delta: int
    winners_count: int
    losers_count: int
    winners: list[WinnerOut]
    losers: list[LoserOut]
    reputation_events_written: int
    settled_at: str

    @classmethod
    def from_domain(cls, r: SettlementResult) -> "SettlementResponse":
        return cls(
            prediction_id=r.prediction_id,
            settlement_price=str(r.settlement_price),
            reference_price=str(r.reference_price),
            outcome=r.outcome,
            creator_reputation_delta=r.creator_reputation_delta,
            winners_count=len(r.winners),
            losers_count=len(r.losers),
            winners=[WinnerOut.from_domain(w) for w in r.winners],
            losers=[LoserOut.from_domain(entry) for entry in r.losers],
            reputation_events_written=r.reputation_events_written,
            settled_at=r.settled_at.isoformat(),
        )
