"""Repository Protocol for the Reputation Ledger.

The ledger is append-only: there is no update or delete. Unit tests inject a
mock conforming to this Protocol.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_reputation.domain.models import LeaderboardRow, ReputationEvent


class ReputationRepositoryProtocol(Protocol):
    async def insert_if_absent(
        self,
        db: AsyncSession,
        prediction_id: int,
        user_id: str,
        outcome: str,
        delta_score: int,
        created_at: datetime,
    ) -> bool:
        """True when a row was written, False when (user, prediction) already had one."""
        ...

    async def list_for_user(
        self, db: AsyncSession, user_id: str, since: datetime | None = None
    ) -> list[ReputationEvent]:
        """Events newest first."""
        ...

    async def leaderboard(
        self,
        db: AsyncSession,
        limit: int,
        since: datetime | None = None,
        user_ids: list[str] | None = None,
    ) -> list[LeaderboardRow]: ...

    async def outcomes_for_users(
        self, db: AsyncSession, user_ids: list[str], since: datetime | None = None
    ) -> dict[str, list[str]]:
        """user_id -> outcomes newest first."""
        ...

    async def outcomes_for_predictions(
        self, db: AsyncSession, user_id: str, prediction_ids: list[int]
    ) -> dict[int, str]:
        """prediction_id -> this user's outcome, for predictions that have one."""
        ...

    async def totals(
        self,
        db: AsyncSession,
        since: datetime | None = None,
        user_ids: list[str] | None = None,
    ) -> tuple[int, int]:
        """(distinct users, distinct predictions) with at least one event."""
        ...
