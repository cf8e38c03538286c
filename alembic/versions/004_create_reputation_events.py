"""004: create reputation_events table

One row per (user, prediction). The unique constraint is what makes a
repeated settlement a no-op; the triggers make the table append-only.

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE reputation_events (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            prediction_id       BIGINT          NOT NULL REFERENCES predictions(id),
            outcome             VARCHAR(10)     NOT NULL,
            delta_score         INT             NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_reputation_events_user_prediction UNIQUE (user_id, prediction_id),
            CONSTRAINT ck_reputation_events_outcome CHECK (outcome IN ('win', 'loss', 'neutral'))
        );
    """)
    op.execute("CREATE INDEX idx_reputation_events_user ON reputation_events (user_id, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_reputation_events_created ON reputation_events (created_at);")
    op.execute("""
        CREATE TRIGGER trg_reputation_events_append_only
            BEFORE UPDATE OR DELETE ON reputation_events
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reputation_events CASCADE;")
