"""StakeRepository — the Stake Ledger's storage side.

Amounts are NUMERIC(78,0): asyncpg hands back Decimal, mapped to int here so
the domain only ever sees arbitrary-precision integers. Inserts go through
ON CONFLICT DO NOTHING on (user_id, prediction_id, side); an empty RETURNING
means the user already holds that side.

The ledger trusts its inputs — open/expiry checks belong to the caller.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_stake.domain.models import Stake, StakeSummary

_COLUMNS = """
    id, prediction_id, user_id, side, amount, currency, payment_status, created_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO stakes
        (prediction_id, user_id, side, amount, currency, payment_status)
    VALUES
        (:prediction_id, :user_id, :side, :amount, :currency, :payment_status)
    ON CONFLICT (user_id, prediction_id, side) DO NOTHING
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM stakes
    WHERE id = :stake_id
""")

_LIST_COMPLETED_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM stakes
    WHERE prediction_id = :prediction_id AND payment_status = 'completed'
    ORDER BY id ASC
""")

_SUMMARY_SQL = text("""
    SELECT side, payment_status, COALESCE(SUM(amount), 0) AS total, COUNT(*) AS cnt
    FROM stakes
    WHERE prediction_id = :prediction_id
    GROUP BY side, payment_status
""")

_SUMMARY_MANY_SQL = text("""
    SELECT prediction_id, side, payment_status,
           COALESCE(SUM(amount), 0) AS total, COUNT(*) AS cnt
    FROM stakes
    WHERE prediction_id = ANY(:prediction_ids)
    GROUP BY prediction_id, side, payment_status
""")

_TRANSITION_SQL = text(f"""
    UPDATE stakes
    SET payment_status = :target
    WHERE id = :stake_id AND payment_status = 'pending'
    RETURNING {_COLUMNS}
""")


def _row_to_stake(row: object) -> Stake:
    return Stake(
        id=row.id,  # type: ignore[attr-defined]
        prediction_id=row.prediction_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        side=row.side,  # type: ignore[attr-defined]
        amount=int(row.amount),  # type: ignore[attr-defined]
        currency=row.currency,  # type: ignore[attr-defined]
        payment_status=row.payment_status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class StakeRepository:
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
        result = await db.execute(
            _INSERT_SQL,
            {
                "prediction_id": prediction_id,
                "user_id": user_id,
                "side": side,
                "amount": amount,
                "currency": currency,
                "payment_status": payment_status,
            },
        )
        row = result.fetchone()
        return _row_to_stake(row) if row else None

    async def get_by_id(self, db: AsyncSession, stake_id: int) -> Stake | None:
        result = await db.execute(_GET_SQL, {"stake_id": stake_id})
        row = result.fetchone()
        return _row_to_stake(row) if row else None

    async def list_completed(
        self, db: AsyncSession, prediction_id: int
    ) -> list[Stake]:
        result = await db.execute(_LIST_COMPLETED_SQL, {"prediction_id": prediction_id})
        return [_row_to_stake(row) for row in result.fetchall()]

    async def summarize(
        self, db: AsyncSession, prediction_id: int
    ) -> StakeSummary:
        result = await db.execute(_SUMMARY_SQL, {"prediction_id": prediction_id})
        return StakeSummary.from_side_totals(
            [
                (row.side, row.payment_status, row.total, row.cnt)
                for row in result.fetchall()
            ]
        )

    async def summarize_many(
        self, db: AsyncSession, prediction_ids: list[int]
    ) -> dict[int, StakeSummary]:
        if not prediction_ids:
            return {}
        result = await db.execute(_SUMMARY_MANY_SQL, {"prediction_ids": prediction_ids})
        grouped: dict[int, list[tuple[str, str, int, int]]] = {
            pid: [] for pid in prediction_ids
        }
        for row in result.fetchall():
            grouped.setdefault(row.prediction_id, []).append(
                (row.side, row.payment_status, row.total, row.cnt)
            )
        return {pid: StakeSummary.from_side_totals(rows) for pid, rows in grouped.items()}

    async def transition_payment(
        self, db: AsyncSession, stake_id: int, target: str
    ) -> Stake | None:
        result = await db.execute(_TRANSITION_SQL, {"stake_id": stake_id, "target": target})
        row = result.fetchone()
        return _row_to_stake(row) if row else None
