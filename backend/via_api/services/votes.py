"""
VIA Backend — Vote Aggregator
===============================

What:  Reduces a route's votes to counts and an average rating.
Who:   Shared by the feed listing, the single-route fetch and vote casting.
How:   Pure function over an already-fetched collection; never queries storage.

    avg_rating = round_half_away_from_zero((up - down) / total, 2)   if total > 0
               = 0                                                   otherwise

The rating is always within [-1, 1].
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

VOTE_TYPES = ("up", "down")
VOTE_CONTEXTS = ("safety", "efficiency", "scenery")

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class VoteSummary:
    upvotes: int = 0
    downvotes: int = 0
    total: int = 0
    avg_rating: float = 0.0


def _vote_type(vote: Any) -> Any:
    if isinstance(vote, dict):
        return vote.get("vote_type")
    return getattr(vote, "vote_type", None)


def aggregate(votes: Iterable[Any]) -> VoteSummary:
    """
    Count up/down votes and compute the rounded average rating.

    Accepts vote records or plain dicts carrying `vote_type`. Votes with any
    other type value are ignored.
    """
    upvotes = 0
    downvotes = 0
    for vote in votes:
        vote_type = _vote_type(vote)
        if vote_type == "up":
            upvotes += 1
        elif vote_type == "down":
            downvotes += 1

    total = upvotes + downvotes
    if total == 0:
        return VoteSummary()

    # Decimal ROUND_HALF_UP rounds ties away from zero (0.125 → 0.13, -0.125 → -0.13)
    ratio = Decimal(upvotes - downvotes) / Decimal(total)
    avg_rating = float(ratio.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
    return VoteSummary(
        upvotes=upvotes,
        downvotes=downvotes,
        total=total,
        avg_rating=avg_rating,
    )
