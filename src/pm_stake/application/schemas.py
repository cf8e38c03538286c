"""Pydantic schemas for pm_stake API requests/responses.

Amounts leave the service as base-unit decimal strings plus a human display
string; request amounts arrive as human decimal strings ("10.5").
"""

from decimal import Decimal, InvalidOperation
from typing import Literal

from pydantic import BaseModel, field_validator

from config.settings import settings
from src.pm_common.amounts import from_base_units, share_pct
from src.pm_common.enums import Currency, StakeSide
from src.pm_stake.domain.models import Stake, StakeSummary


class CreateStakeRequest(BaseModel):
    side: StakeSide
    amount: str
    currency: Currency

    @field_validator("amount")
    @classmethod
    def amount_positive_decimal(cls, v: str) -> str:
        try:
            value = Decimal(v.strip())
        except InvalidOperation:
            raise ValueError("amount must be a decimal string") from None
        if not value.is_finite() or value <= 0:
            raise ValueError("amount must be a positive number")
        if value < Decimal(settings.MIN_STAKE_AMOUNT):
            raise ValueError(f"amount must be at least {settings.MIN_STAKE_AMOUNT}")
        return v.strip()


class PaymentStatusRequest(BaseModel):
    status: Literal["completed", "failed"]


class StakeOut(BaseModel):
    id: int
    prediction_id: int
    user_id: str
    side: str
    amount: str
    amount_display: str
    currency: str
    payment_status: str
    created_at: str

    @classmethod
    def from_domain(cls, s: Stake) -> "StakeOut":
        return cls(
            id=s.id,
            prediction_id=s.prediction_id,
            user_id=s.user_id,
            side=s.side,
            amount=str(s.amount),
            amount_display=from_base_units(s.amount, s.currency),
            currency=s.currency,
            payment_status=s.payment_status,
            created_at=s.created_at.isoformat(),
        )


class StakeSummaryOut(BaseModel):
    prediction_id: int
    total_for: str
    total_against: str
    stake_count: int
    # Pool shares drive the odds bar
    for_share_pct: float
    against_share_pct: float

    @classmethod
    def from_domain(cls, prediction_id: int, s: StakeSummary) -> "StakeSummaryOut":
        return cls(
            prediction_id=prediction_id,
            total_for=str(s.total_for),
            total_against=str(s.total_against),
            stake_count=s.stake_count,
            for_share_pct=share_pct(s.total_for, s.total),
            against_share_pct=share_pct(s.total_against, s.total),
        )
