"""ReputationRepository — concrete implementation of ReputationRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Inserts rely on the uq_reputation_events_user_prediction unique index:
ON CONFLICT DO NOTHING turns a duplicate settlement write into a no-op, and
RETURNING tells the caller whether this call wrote the row.

Optional filters use the NULL-parameter pattern so one statement serves
both the filtered and the unfiltered read.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import logging
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_reputation.domain.models import LeaderboardRow, ReputationEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_INSERT_SQL = text("""
    INSERT INTO reputation_events
        (user_id, prediction_id, outcome, delta_score, created_at)
    VALUES
        (:user_id, :prediction_id, :outcome, :delta_score, :created_at)
    ON CONFLICT (user_id, prediction_id) DO NOTHING
    RETURNING id
""")

_LIST_FOR_USER_SQL = text("""
    SELECT id, user_id, prediction_id, outcome, delta_score, created_at
    FROM reputation_events
    WHERE user_id = :user_id
      AND (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:since AS TIMESTAMPTZ))
    ORDER BY created_at DESC, id DESC
""")

_LEADERBOARD_SQL = text("""
    SELECT user_id,
           COALESCE(SUM(delta_score), 0) AS score,
           COUNT(*) FILTER (WHERE outcome = 'win') AS wins,
           COUNT(*) FILTER (WHERE outcome = 'loss') AS losses
    FROM reputation_events
    WHERE (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:since AS TIMESTAMPTZ))
      AND (CAST(:user_ids AS VARCHAR[]) IS NULL OR user_id = ANY(CAST(:user_ids AS VARCHAR[])))
    GROUP BY user_id
    ORDER BY score DESC, user_id ASC
    LIMIT :limit
""")

_OUTCOMES_FOR_USERS_SQL = text("""
    SELECT user_id, outcome
    FROM reputation_events
    WHERE user_id = ANY(:user_ids)
      AND (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:since AS TIMESTAMPTZ))
    ORDER BY user_id, created_at DESC, id DESC
""")

_OUTCOMES_FOR_PREDICTIONS_SQL = text("""
    SELECT prediction_id, outcome
    FROM reputation_events
    WHERE user_id = :user_id AND prediction_id = ANY(:prediction_ids)
""")

_TOTALS_SQL = text("""
    SELECT COUNT(DISTINCT user_id) AS predictors,
           COUNT(DISTINCT prediction_id) AS predictions
    FROM reputation_events
    WHERE (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:since AS TIMESTAMPTZ))
      AND (CAST(:user_ids AS VARCHAR[]) IS NULL OR user_id = ANY(CAST(:user_ids AS VARCHAR[])))
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_event(row: object) -> ReputationEvent:
    return ReputationEvent(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        prediction_id=row.prediction_id,  # type: ignore[attr-defined]
        outcome=row.outcome,  # type: ignore[attr-defined]
        delta_score=int(row.delta_score),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_leaderboard(row: object) -> LeaderboardRow:
    return LeaderboardRow(
        user_id=row.user_id,  # type: ignore[attr-defined]
        reputation_score=int(row.score),  # type: ignore[attr-defined]
        wins=int(row.wins),  # type: ignore[attr-defined]
        losses=int(row.losses),  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ReputationRepository:
    async def insert_if_absent(
        self,
        db: AsyncSession,
        prediction_id: int,
        user_id: str,
        outcome: str,
        delta_score: int,
        created_at: datetime,
    ) -> bool:
        result = await db.execute(
            _INSERT_SQL,
            {
                "user_id": user_id,
                "prediction_id": prediction_id,
                "outcome": outcome,
                "delta_score": delta_score,
                "created_at": created_at,
            },
        )
        written = result.fetchone() is not None
        if not written:
            logger.debug(
                "Reputation event already present: user=%s prediction=%s",
                user_id, prediction_id,
            )
        return written

    async def list_for_user(
        self, db: AsyncSession, user_id: str, since: datetime | None = None
    ) -> list[ReputationEvent]:
        result = await db.execute(
            _LIST_FOR_USER_SQL, {"user_id": user_id, "since": since}
        )
        return [_row_to_event(row) for row in result.fetchall()]

    async def leaderboard(
        self,
        db: AsyncSession,
        limit: int,
        since: datetime | None = None,
        user_ids: list[str] | None = None,
    ) -> list[LeaderboardRow]:
        if user_ids is not None and not user_ids:
            return []
        result = await db.execute(
            _LEADERBOARD_SQL,
            {"limit": limit, "since": since, "user_ids": user_ids},
        )
        return [_row_to_leaderboard(row) for row in result.fetchall()]

    async def outcomes_for_users(
        self, db: AsyncSession, user_ids: list[str], since: datetime | None = None
    ) -> dict[str, list[str]]:
        if not user_ids:
            return {}
        result = await db.execute(
            _OUTCOMES_FOR_USERS_SQL, {"user_ids": user_ids, "since": since}
        )
        outcomes: dict[str, list[str]] = {}
        for row in result.fetchall():
            outcomes.setdefault(row.user_id, []).append(row.outcome)
        return outcomes

    async def outcomes_for_predictions(
        self, db: AsyncSession, user_id: str, prediction_ids: list[int]
    ) -> dict[int, str]:
        if not prediction_ids:
            return {}
        result = await db.execute(
            _OUTCOMES_FOR_PREDICTIONS_SQL,
            {"user_id": user_id, "prediction_ids": prediction_ids},
        )
        return {row.prediction_id: row.outcome for row in result.fetchall()}

    async def totals(
        self,
        db: AsyncSession,
        since: datetime | None = None,
        user_ids: list[str] | None = None,
    ) -> tuple[int, int]:
        if user_ids is not None and not user_ids:
            return 0, 0
        result = await db.execute(_TOTALS_SQL, {"since": since, "user_ids": user_ids})
        row = result.fetchone()
        if row is None:
            return 0, 0
        return int(row.predictors), int(row.predictions)
