"""002: create predictions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE predictions (
            id                      BIGSERIAL       PRIMARY KEY,
            creator_user_id         VARCHAR(64)     NOT NULL,
            asset_symbol            VARCHAR(10)     NOT NULL,
            direction               VARCHAR(10)     NOT NULL,
            confidence              SMALLINT        NOT NULL,
            timeframe_end           TIMESTAMPTZ     NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'open',
            settlement_price        TEXT,
            settlement_timestamp    TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_predictions_symbol        CHECK (asset_symbol ~ '^[A-Z0-9]{1,10}$'),
            CONSTRAINT ck_predictions_direction     CHECK (direction IN ('up', 'down')),
            CONSTRAINT ck_predictions_confidence    CHECK (confidence BETWEEN 1 AND 100),
            CONSTRAINT ck_predictions_status        CHECK (status IN ('open', 'settled', 'cancelled')),
            CONSTRAINT ck_predictions_settled_fields CHECK (
                (status = 'settled') = (settlement_price IS NOT NULL AND settlement_timestamp IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_predictions_creator ON predictions (creator_user_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_predictions_open_due
        ON predictions (timeframe_end)
        WHERE status = 'open';
    """)
    op.execute("""
        CREATE TRIGGER trg_predictions_updated_at
            BEFORE UPDATE ON predictions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS predictions CASCADE;")
