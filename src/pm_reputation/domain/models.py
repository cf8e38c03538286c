"""Domain models for pm_reputation — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ReputationEvent:
    id: int
    user_id: str
    prediction_id: int
    outcome: str            # ReputationOutcome value
    delta_score: int
    created_at: datetime


@dataclass
class NewReputationEvent:
    """An event the settlement engine wants written; id/created_at come from the store."""

    user_id: str
    outcome: str
    delta_score: int


@dataclass
class UserReputation:
    user_id: str
    total_predictions: int = 0
    settled_predictions: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    reputation_score: int = 0
    streak: int = 0


@dataclass
class LeaderboardRow:
    """Per-user event aggregate as grouped by the store."""

    user_id: str
    reputation_score: int
    wins: int
    losses: int
