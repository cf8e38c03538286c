"""Pure reputation aggregates: win rate and streak.

No I/O here; the application service feeds in rows read from the ledger.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from src.pm_common.enums import ReputationOutcome


def win_rate(wins: int, losses: int) -> float:
    """wins / (wins + losses) * 100, rounded half-up to 1 decimal; 0.0 with nothing settled."""
    settled = wins + losses
    if settled <= 0:
        return 0.0
    rate = (Decimal(wins) * 100 / Decimal(settled)).quantize(Decimal("0.1"), ROUND_HALF_UP)
    return float(rate)


def compute_streak(outcomes_newest_first: Iterable[str]) -> int:
    """Signed length of the run of identical outcomes ending at the newest event.

    Neutral outcomes are skipped. Positive for a win streak, negative for a
    loss streak, 0 when there is no win or loss at all.
    """
    first: str | None = None
    count = 0
    for outcome in outcomes_newest_first:
        if outcome == ReputationOutcome.NEUTRAL.value:
            continue
        if first is None:
            first = outcome
        elif outcome != first:
            break
        count += 1
    if first is None:
        return 0
    return count if first == ReputationOutcome.WIN.value else -count
