"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prediction.domain.models import Prediction


class PredictionRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        creator_user_id: str,
        asset_symbol: str,
        direction: str,
        confidence: int,
        timeframe_end: datetime,
    ) -> Prediction: ...

    async def get_by_id(
        self, db: AsyncSession, prediction_id: int
    ) -> Prediction | None: ...

    async def mark_settled(
        self,
        db: AsyncSession,
        prediction_id: int,
        settlement_price: str,
        settled_at: datetime,
    ) -> bool:
        """open -> settled. False when the row was no longer open."""
        ...

    async def mark_cancelled(self, db: AsyncSession, prediction_id: int) -> bool:
        """open -> cancelled. False when the row was no longer open."""
        ...

    async def count_by_creator(self, db: AsyncSession, user_id: str) -> int: ...

    async def count_by_creators(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, int]: ...

    async def list_recent(
        self,
        db: AsyncSession,
        limit: int,
        status: str | None = None,
        creator_user_id: str | None = None,
    ) -> list[Prediction]:
        """Newest first; None filters match every row."""
        ...
