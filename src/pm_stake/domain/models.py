"""Domain models for pm_stake — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import PaymentStatus, StakeSide


@dataclass
class Stake:
    id: int
    prediction_id: int
    user_id: str
    side: str               # StakeSide value
    amount: int             # base units
    currency: str
    payment_status: str     # PaymentStatus value
    created_at: datetime


@dataclass
class StakeSummary:
    """Point-in-time totals over completed stakes of one prediction."""

    total_for: int = 0
    total_against: int = 0
    stake_count: int = 0

    @property
    def total(self) -> int:
        return self.total_for + self.total_against

    @classmethod
    def from_side_totals(cls, rows: list[tuple[str, str, int, int]]) -> "StakeSummary":
        """Build from (side, payment_status, total_amount, count) aggregates.

        Only completed stakes count; pending and failed groups are skipped.
        """
        summary = cls()
        for side, payment_status, total, count in rows:
            if payment_status != PaymentStatus.COMPLETED.value:
                continue
            if side == StakeSide.FOR.value:
                summary.total_for += int(total)
            else:
                summary.total_against += int(total)
            summary.stake_count += int(count)
        return summary
