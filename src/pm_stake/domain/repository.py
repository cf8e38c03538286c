"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_stake.domain.models import Stake, StakeSummary


class StakeRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        prediction_id: int,
        user_id: str,
        side: str,
        amount: int,
        currency: str,
        payment_status: str,
    ) -> Stake | None:
        """None when (user, prediction, side) already holds a stake."""
        ...

    async def get_by_id(self, db: AsyncSession, stake_id: int) -> Stake | None: ...

    async def list_completed(
        self, db: AsyncSession, prediction_id: int
    ) -> list[Stake]: ...

    async def summarize(
        self, db: AsyncSession, prediction_id: int
    ) -> StakeSummary: ...

    async def summarize_many(
        self, db: AsyncSession, prediction_ids: list[int]
    ) -> dict[int, StakeSummary]:
        """prediction_id -> summary; ids without stakes get an empty summary."""
        ...

    async def transition_payment(
        self, db: AsyncSession, stake_id: int, target: str
    ) -> Stake | None:
        """pending -> target. None when the stake was not pending."""
        ...
