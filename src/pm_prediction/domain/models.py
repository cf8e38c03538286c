"""Domain models for pm_prediction — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Prediction:
    id: int
    creator_user_id: str
    asset_symbol: str
    direction: str                        # PredictionDirection value
    confidence: int                       # 1-100
    timeframe_end: datetime
    status: str                           # PredictionStatus value
    settlement_price: str | None          # decimal string, USD
    settlement_timestamp: datetime | None
    created_at: datetime
