"""Settlement result types — pure dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class WinnerPayout:
    user_id: str
    side: str
    stake_amount: int       # base units
    currency: str
    payout: int             # base units, stake returned plus share of the losing pool
    reputation_delta: int


@dataclass
class LoserEntry:
    user_id: str
    side: str
    stake_amount: int
    currency: str
    reputation_delta: int


@dataclass
class SettlementResult:
    prediction_id: int
    settlement_price: Decimal
    reference_price: Decimal
    outcome: str            # SettlementOutcome value
    creator_reputation_delta: int
    settled_at: datetime
    winners: list[WinnerPayout] = field(default_factory=list)
    losers: list[LoserEntry] = field(default_factory=list)
    reputation_events_written: int = 0
