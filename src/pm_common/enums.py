"""Global enums — must match DB CHECK constraints exactly (see alembic 002-004)."""

from enum import Enum


class PredictionStatus(str, Enum):
    OPEN = "open"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class PredictionDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class StakeSide(str, Enum):
    """for = creator is right, against = creator is wrong"""
    FOR = "for"
    AGAINST = "against"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Currency(str, Enum):
    WLD = "WLD"
    USDC = "USDC"
    DEMO = "DEMO"


class ReputationOutcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    NEUTRAL = "neutral"


class SettlementOutcome(str, Enum):
    CREATOR_CORRECT = "creator_correct"
    CREATOR_WRONG = "creator_wrong"


class Capability(str, Enum):
    """Scopes carried in the bearer token; checked by routers, never by engines."""
    SETTLE_PREDICTIONS = "predictions:settle"
    CONFIRM_STAKES = "stakes:confirm"
