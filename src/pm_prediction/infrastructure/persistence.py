"""PredictionRepository — concrete implementation of PredictionRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Status transitions are guarded in the WHERE clause (`status = 'open'`) so two
concurrent settlers cannot both move the same row; RETURNING tells the caller
whether it won.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import InternalError
from src.pm_prediction.domain.models import Prediction

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, creator_user_id, asset_symbol, direction, confidence,
    timeframe_end, status, settlement_price, settlement_timestamp, created_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO predictions
        (creator_user_id, asset_symbol, direction, confidence, timeframe_end, status)
    VALUES
        (:creator_user_id, :asset_symbol, :direction, :confidence, :timeframe_end, 'open')
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM predictions
    WHERE id = :prediction_id
""")

_MARK_SETTLED_SQL = text("""
    UPDATE predictions
    SET status = 'settled',
        settlement_price = :settlement_price,
        settlement_timestamp = :settled_at
    WHERE id = :prediction_id AND status = 'open'
    RETURNING id
""")

_MARK_CANCELLED_SQL = text("""
    UPDATE predictions
    SET status = 'cancelled'
    WHERE id = :prediction_id AND status = 'open'
    RETURNING id
""")

_LIST_RECENT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM predictions
    WHERE (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:creator_user_id AS TEXT) IS NULL OR creator_user_id = CAST(:creator_user_id AS TEXT))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_COUNT_BY_CREATOR_SQL = text("""
    SELECT COUNT(*) FROM predictions WHERE creator_user_id = :user_id
""")

_COUNT_BY_CREATORS_SQL = text("""
    SELECT creator_user_id, COUNT(*) AS total
    FROM predictions
    WHERE creator_user_id = ANY(:user_ids)
    GROUP BY creator_user_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_prediction(row: object) -> Prediction:
    return Prediction(
        id=row.id,  # type: ignore[attr-defined]
        creator_user_id=row.creator_user_id,  # type: ignore[attr-defined]
        asset_symbol=row.asset_symbol,  # type: ignore[attr-defined]
        direction=row.direction,  # type: ignore[attr-defined]
        confidence=row.confidence,  # type: ignore[attr-defined]
        timeframe_end=row.timeframe_end,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        settlement_price=row.settlement_price,  # type: ignore[attr-defined]
        settlement_timestamp=row.settlement_timestamp,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PredictionRepository:
    async def create(
        self,
        db: AsyncSession,
        creator_user_id: str,
        asset_symbol: str,
        direction: str,
        confidence: int,
        timeframe_end: datetime,
    ) -> Prediction:
        result = await db.execute(
            _INSERT_SQL,
            {
                "creator_user_id": creator_user_id,
                "asset_symbol": asset_symbol,
                "direction": direction,
                "confidence": confidence,
                "timeframe_end": timeframe_end,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Prediction insert returned no rows")
        return _row_to_prediction(row)

    async def get_by_id(
        self, db: AsyncSession, prediction_id: int
    ) -> Prediction | None:
        result = await db.execute(_GET_SQL, {"prediction_id": prediction_id})
        row = result.fetchone()
        return _row_to_prediction(row) if row else None

    async def mark_settled(
        self,
        db: AsyncSession,
        prediction_id: int,
        settlement_price: str,
        settled_at: datetime,
    ) -> bool:
        result = await db.execute(
            _MARK_SETTLED_SQL,
            {
                "prediction_id": prediction_id,
                "settlement_price": settlement_price,
                "settled_at": settled_at,
            },
        )
        return result.fetchone() is not None

    async def mark_cancelled(self, db: AsyncSession, prediction_id: int) -> bool:
        result = await db.execute(_MARK_CANCELLED_SQL, {"prediction_id": prediction_id})
        return result.fetchone() is not None

    async def list_recent(
        self,
        db: AsyncSession,
        limit: int,
        status: str | None = None,
        creator_user_id: str | None = None,
    ) -> list[Prediction]:
        result = await db.execute(
            _LIST_RECENT_SQL,
            {"limit": limit, "status": status, "creator_user_id": creator_user_id},
        )
        return [_row_to_prediction(row) for row in result.fetchall()]

    async def count_by_creator(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_COUNT_BY_CREATOR_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def count_by_creators(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, int]:
        if not user_ids:
            return {}
        result = await db.execute(_COUNT_BY_CREATORS_SQL, {"user_ids": user_ids})
        return {row.creator_user_id: int(row.total) for row in result.fetchall()}
