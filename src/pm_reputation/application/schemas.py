"""Pydantic schemas for pm_reputation API responses."""

from typing import Literal

from pydantic import BaseModel

from src.pm_reputation.domain.models import UserReputation


class UserReputationOut(BaseModel):
    user_id: str
    total_predictions: int
    settled_predictions: int
    wins: int
    losses: int
    win_rate: float
    reputation_score: int
    streak: int

    @classmethod
    def from_domain(cls, r: UserReputation) -> "UserReputationOut":
        return cls(
            user_id=r.user_id,
            total_predictions=r.total_predictions,
            settled_predictions=r.settled_predictions,
            wins=r.wins,
            losses=r.losses,
            win_rate=r.win_rate,
            reputation_score=r.reputation_score,
            streak=r.streak,
        )


class LeaderboardEntryOut(UserReputationOut):
    rank: int

    @classmethod
    def ranked(cls, rank: int, r: UserReputation) -> "LeaderboardEntryOut":
        return cls(rank=rank, **UserReputationOut.from_domain(r).model_dump())


class LeaderboardSummaryOut(BaseModel):
    total_predictors: int
    total_settled_predictions: int
    period: Literal["all", "week"]


class LeaderboardOut(BaseModel):
    entries: list[LeaderboardEntryOut]
    summary: LeaderboardSummaryOut
