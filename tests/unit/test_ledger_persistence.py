"""Unit tests for the stake, prediction and reputation repositories using MagicMock AsyncSession."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_reputation.infrastructure.persistence import ReputationRepository
from src.pm_stake.domain.models import StakeSummary
from src.pm_stake.infrastructure.persistence import StakeRepository


def _result(rows=None, one=None):
    result = MagicMock()
    result.fetchall.return_value = rows or []
    result.fetchone.return_value = one
    return result


def _summary_row(side: str, total, cnt: int, payment_status: str = "completed"):
    row = MagicMock()
    row.side = side
    row.payment_status = payment_status
    row.total = total
    row.cnt = cnt
    return row


def _stake_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.prediction_id = kwargs.get("prediction_id", 1)
    row.user_id = kwargs.get("user_id", "alice")
    row.side = kwargs.get("side", "for")
    row.amount = kwargs.get("amount", Decimal("1000"))
    row.currency = kwargs.get("currency", "USDC")
    row.payment_status = kwargs.get("payment_status", "completed")
    row.created_at = datetime.now(UTC)
    return row


@pytest.fixture
def db():
    return MagicMock()


class TestStakeSummary:
    def test_from_side_totals(self) -> None:
        summary = StakeSummary.from_side_totals(
            [("for", "completed", 1000, 2), ("against", "completed", 500, 1)]
        )
        assert summary.total_for == 1000
        assert summary.total_against == 500
        assert summary.stake_count == 3
        assert summary.total == 1500

    def test_no_rows_is_zero(self) -> None:
        summary = StakeSummary.from_side_totals([])
        assert (summary.total_for, summary.total_against, summary.stake_count) == (0, 0, 0)

    def test_pending_and_failed_excluded(self) -> None:
        rows = [
            ("for", "completed", 1000, 2),
            ("for", "pending", 700, 1),
            ("against", "completed", 500, 1),
            ("against", "failed", 300, 4),
        ]
        completed = [r for r in rows if r[1] == "completed"]

        summary = StakeSummary.from_side_totals(rows)

        assert summary.total_for + summary.total_against == sum(r[2] for r in completed)
        assert summary.total_for == 1000
        assert summary.stake_count == 3

    def test_only_pending_is_zero(self) -> None:
        summary = StakeSummary.from_side_totals([("for", "pending", 1000, 1)])
        assert (summary.total, summary.stake_count) == (0, 0)


class TestStakeRepository:
    @pytest.mark.asyncio
    async def test_summarize_maps_numeric_to_int(self, db):
        db.execute = AsyncMock(return_value=_result(rows=[
            _summary_row("for", Decimal("123456789012345678901234567890"), 3),
            _summary_row("against", Decimal("500"), 1),
        ]))

        summary = await StakeRepository().summarize(db, 1)

        assert summary.total_for == 123456789012345678901234567890
        assert isinstance(summary.total_for, int)
        assert summary.total_against == 500
        assert summary.stake_count == 4

    @pytest.mark.asyncio
    async def test_summarize_counts_only_completed(self, db):
        db.execute = AsyncMock(return_value=_result(rows=[
            _summary_row("for", Decimal("1000"), 2),
            _summary_row("for", Decimal("400"), 1, payment_status="pending"),
            _summary_row("against", Decimal("250"), 3, payment_status="failed"),
            _summary_row("against", Decimal("500"), 1),
        ]))

        summary = await StakeRepository().summarize(db, 1)

        assert db.execute.call_args.args[1] == {"prediction_id": 1}
        assert (summary.total_for, summary.total_against) == (1000, 500)
        assert summary.stake_count == 3

    @pytest.mark.asyncio
    async def test_insert_conflict_returns_none(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))

        stake = await StakeRepository().insert(db, 1, "alice", "for", 10, "USDC", "pending")

        assert stake is None
        assert "ON CONFLICT (user_id, prediction_id, side) DO NOTHING" in str(
            db.execute.call_args.args[0]
        )

    @pytest.mark.asyncio
    async def test_list_completed(self, db):
        db.execute = AsyncMock(return_value=_result(rows=[_stake_row(id=1), _stake_row(id=2)]))

        stakes = await StakeRepository().list_completed(db, 1)

        assert [s.id for s in stakes] == [1, 2]
        assert stakes[0].amount == 1000

    @pytest.mark.asyncio
    async def test_transition_guarded_on_pending(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))

        assert await StakeRepository().transition_payment(db, 1, "completed") is None
        assert "payment_status = 'pending'" in str(db.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_summarize_many_groups_by_prediction(self, db):
        rows = [
            MagicMock(prediction_id=1, side="for", payment_status="completed", total=Decimal("900"), cnt=2),
            MagicMock(prediction_id=1, side="against", payment_status="pending", total=Decimal("50"), cnt=1),
            MagicMock(prediction_id=2, side="against", payment_status="completed", total=Decimal("40"), cnt=1),
        ]
        db.execute = AsyncMock(return_value=_result(rows=rows))

        summaries = await StakeRepository().summarize_many(db, [1, 2, 3])

        assert (summaries[1].total_for, summaries[1].total_against, summaries[1].stake_count) == (900, 0, 2)
        assert summaries[2].total_against == 40
        assert summaries[3].stake_count == 0
        assert db.execute.call_args.args[1] == {"prediction_ids": [1, 2, 3]}

    @pytest.mark.asyncio
    async def test_summarize_many_empty_skips_query(self, db):
        db.execute = AsyncMock()
        assert await StakeRepository().summarize_many(db, []) == {}
        db.execute.assert_not_called()


class TestPredictionRepository:
    @pytest.mark.asyncio
    async def test_mark_settled_true_when_row_returned(self, db):
        db.execute = AsyncMock(return_value=_result(one=MagicMock(id=1)))
        ok = await PredictionRepository().mark_settled(db, 1, "110", datetime.now(UTC))
        assert ok is True
        assert "status = 'open'" in str(db.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_mark_settled_false_when_not_open(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await PredictionRepository().mark_settled(db, 1, "110", datetime.now(UTC)) is False

    @pytest.mark.asyncio
    async def test_count_by_creators_empty_skips_query(self, db):
        db.execute = AsyncMock()
        assert await PredictionRepository().count_by_creators(db, []) == {}
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_recent_passes_null_filters(self, db):
        now = datetime.now(UTC)
        row = MagicMock(
            id=3, creator_user_id="alice", asset_symbol="ETH", direction="down",
            confidence=40, timeframe_end=now, status="open", settlement_price=None,
            settlement_timestamp=None, created_at=now,
        )
        db.execute = AsyncMock(return_value=_result(rows=[row]))

        predictions = await PredictionRepository().list_recent(db, 20)

        assert [p.id for p in predictions] == [3]
        assert db.execute.call_args.args[1] == {
            "limit": 20, "status": None, "creator_user_id": None,
        }
        assert "ORDER BY created_at DESC" in str(db.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_list_recent_by_creator_and_status(self, db):
        db.execute = AsyncMock(return_value=_result(rows=[]))

        assert await PredictionRepository().list_recent(db, 5, "settled", "alice") == []
        assert db.execute.call_args.args[1] == {
            "limit": 5, "status": "settled", "creator_user_id": "alice",
        }


class TestReputationRepository:
    @pytest.mark.asyncio
    async def test_insert_written(self, db):
        db.execute = AsyncMock(return_value=_result(one=MagicMock(id=5)))
        written = await ReputationRepository().insert_if_absent(
            db, 1, "alice", "win", 70, datetime.now(UTC)
        )
        assert written is True
        assert "ON CONFLICT (user_id, prediction_id) DO NOTHING" in str(
            db.execute.call_args.args[0]
        )

    @pytest.mark.asyncio
    async def test_insert_conflict_is_noop(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        written = await ReputationRepository().insert_if_absent(
            db, 1, "alice", "win", 70, datetime.now(UTC)
        )
        assert written is False

    @pytest.mark.asyncio
    async def test_leaderboard_empty_user_ids_skips_query(self, db):
        db.execute = AsyncMock()
        assert await ReputationRepository().leaderboard(db, 10, None, []) == []
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_leaderboard_orders_with_tiebreak(self, db):
        row = MagicMock(user_id="bob", score=140, wins=2, losses=0)
        db.execute = AsyncMock(return_value=_result(rows=[row]))

        rows = await ReputationRepository().leaderboard(db, 10)

        assert rows[0].user_id == "bob"
        assert rows[0].reputation_score == 140
        assert "ORDER BY score DESC, user_id ASC" in str(db.execute.call_args.args[0])
        assert db.execute.call_args.args[1] == {"limit": 10, "since": None, "user_ids": None}

    @pytest.mark.asyncio
    async def test_outcomes_grouped_per_user(self, db):
        rows = [
            MagicMock(user_id="a", outcome="win"),
            MagicMock(user_id="a", outcome="loss"),
            MagicMock(user_id="b", outcome="loss"),
        ]
        db.execute = AsyncMock(return_value=_result(rows=rows))

        outcomes = await ReputationRepository().outcomes_for_users(db, ["a", "b"])

        assert outcomes == {"a": ["win", "loss"], "b": ["loss"]}

    @pytest.mark.asyncio
    async def test_outcomes_for_predictions(self, db):
        rows = [MagicMock(prediction_id=7, outcome="loss"), MagicMock(prediction_id=9, outcome="win")]
        db.execute = AsyncMock(return_value=_result(rows=rows))

        outcomes = await ReputationRepository().outcomes_for_predictions(db, "alice", [7, 8, 9])

        assert outcomes == {7: "loss", 9: "win"}
        assert db.execute.call_args.args[1] == {"user_id": "alice", "prediction_ids": [7, 8, 9]}

    @pytest.mark.asyncio
    async def test_outcomes_for_no_predictions_skips_query(self, db):
        db.execute = AsyncMock()
        assert await ReputationRepository().outcomes_for_predictions(db, "alice", []) == {}
        db.execute.assert_not_called()
