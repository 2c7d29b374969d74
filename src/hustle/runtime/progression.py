"""Cash-driven rank progression.  Ranks only ever go up."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from hustle.state import PlayerState, Rank

# Cash must be strictly above the threshold to reach the rank.
RANK_THRESHOLDS: Tuple[Tuple[Rank, int], ...] = (
    (Rank.KINGPIN, 100_000),
    (Rank.BARON, 50_000),
    (Rank.DISTRIBUTOR, 20_000),
    (Rank.SUPPLIER, 10_000),
    (Rank.DEALER, 5_000),
    (Rank.PEDDLER, 2_000),
)


def rank_for_cash(cash: int, thresholds: Sequence[Tuple[Rank, int]] = RANK_THRESHOLDS) -> Rank:
    for rank, threshold in thresholds:
        if cash > threshold:
            return rank
    return Rank.ROOKIE


def promoted_rank(player: PlayerState) -> Optional[Rank]:
    """The new rank if the player earned a promotion, else ``None``."""

    candidate = rank_for_cash(player.cash)
    if candidate.order > player.rank.order:
        return candidate
    return None


__all__ = ["RANK_THRESHOLDS", "promoted_rank", "rank_for_cash"]
