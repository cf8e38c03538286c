"""003: create stakes table

Amounts are base units of the stake currency (WLD/DEMO 18 decimals,
USDC 6), so NUMERIC(78,0) rather than BIGINT.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE stakes (
            id                  BIGSERIAL       PRIMARY KEY,
            prediction_id       BIGINT          NOT NULL REFERENCES predictions(id),
            user_id             VARCHAR(64)     NOT NULL,
            side                VARCHAR(10)     NOT NULL,
            amount              NUMERIC(78, 0)  NOT NULL,
            currency            VARCHAR(10)     NOT NULL,
            payment_status      VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_stakes_user_prediction_side UNIQUE (user_id, prediction_id, side),
            CONSTRAINT ck_stakes_side           CHECK (side IN ('for', 'against')),
            CONSTRAINT ck_stakes_amount_gt_0    CHECK (amount > 0),
            CONSTRAINT ck_stakes_currency       CHECK (currency IN ('WLD', 'USDC', 'DEMO')),
            CONSTRAINT ck_stakes_payment_status CHECK (payment_status IN ('pending', 'completed', 'failed'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_stakes_prediction_completed
        ON stakes (prediction_id, side)
        WHERE payment_status = 'completed';
    """)
    op.execute("""
        CREATE TRIGGER trg_stakes_updated_at
            BEFORE UPDATE ON stakes
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stakes CASCADE;")
