"""Pydantic schemas for pm_prediction API requests/responses."""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field, field_validator

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import PredictionDirection
from src.pm_prediction.domain.models import Prediction
from src.pm_reputation.application.schemas import UserReputationOut
from src.pm_stake.application.schemas import StakeSummaryOut


class CreatePredictionRequest(BaseModel):
    asset_symbol: str = Field(..., pattern=r"^[A-Z0-9]{1,10}$")
    direction: PredictionDirection
    timeframe_end: int = Field(..., description="Unix seconds, UTC")
    confidence: int = Field(..., ge=1, le=100)

    @field_validator("timeframe_end")
    @classmethod
    def timeframe_end_in_window(cls, v: int) -> int:
        now = utc_now()
        try:
            end = datetime.fromtimestamp(v, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValueError("timeframe_end is not a valid timestamp") from None
        if end <= now:
            raise ValueError("timeframe_end must be in the future")
        if end > now + timedelta(days=settings.PREDICTION_MAX_HORIZON_DAYS):
            raise ValueError(
                f"timeframe_end must be within {settings.PREDICTION_MAX_HORIZON_DAYS} days"
            )
        return v

    @property
    def timeframe_end_at(self) -> datetime:
        return datetime.fromtimestamp(self.timeframe_end, tz=timezone.utc)


class PredictionOut(BaseModel):
    id: int
    creator_user_id: str
    asset_symbol: str
    direction: str
    confidence: int
    timeframe_end: str
    status: str
    settlement_price: str | None
    settlement_timestamp: str | None
    created_at: str

    @classmethod
    def from_domain(cls, p: Prediction) -> "PredictionOut":
        return cls(
            id=p.id,
            creator_user_id=p.creator_user_id,
            asset_symbol=p.asset_symbol,
            direction=p.direction,
            confidence=p.confidence,
            timeframe_end=p.timeframe_end.isoformat(),
            status=p.status,
            settlement_price=p.settlement_price,
            settlement_timestamp=(
                p.settlement_timestamp.isoformat() if p.settlement_timestamp else None
            ),
            created_at=p.created_at.isoformat(),
        )


class PredictionDetailOut(BaseModel):
    prediction: PredictionOut
    stakes: StakeSummaryOut
    creator_reputation: UserReputationOut


class PredictionListItemOut(BaseModel):
    prediction: PredictionOut
    stakes: StakeSummaryOut
    # Creator's settled outcome; only filled on a creator's track record
    outcome: str | None = None


class PredictionListOut(BaseModel):
    predictions: list[PredictionListItemOut]
