import random
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar, Union

T = TypeVar("T")


class RandomSource(Protocol):
    def random(self) -> float: ...


def candidate_weight(item: Any) -> float:
    """Default weight key: ``total_tickets`` attribute or a mapping's ticket/weight key."""
    if isinstance(item, dict):
        value = item.get("totalTickets", item.get("total_tickets", item.get("weight", 0)))
    else:
        value = getattr(item, "total_tickets", getattr(item, "weight", 0))
    try:
        value = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return value if value > 0 else 0.0


def resolve_rng(rng: Union[RandomSource, int, None]) -> RandomSource:
    if rng is None:
        return random.Random()
    if isinstance(rng, int):
        return random.Random(rng)
    return rng


def weighted_sample(
    pool: Sequence[T],
    k: int,
    rng: Union[RandomSource, int, None] = None,
    weight: Callable[[T], float] = candidate_weight,
) -> List[T]:
    """Draw up to ``k`` distinct items from ``pool`` without replacement.

    Each step picks from the remaining items with probability proportional
    to weight (roulette wheel), so later ranks renormalize over what is left.
    The returned order is the winner rank. ``pool`` is not modified.

    When every remaining weight is zero the first remaining item is taken.
    """
    if k <= 0 or not pool:
        return []
    source = resolve_rng(rng)
    available = list(pool)
    weights = [max(0.0, float(weight(item))) for item in available]
    winners: List[T] = []

    while len(winners) < k and available:
        total = sum(weights)
        selected = 0
        if total > 0:
            r = source.random() * total
            last_positive: Optional[int] = None
            picked: Optional[int] = None
            for j, w in enumerate(weights):
                if w <= 0:
                    continue
                last_positive = j
                r -= w
                if r <= 0:
                    picked = j
                    break
            # float drift can leave r slightly above zero after the walk
            selected = picked if picked is not None else last_positive
        winners.append(available.pop(selected))
        weights.pop(selected)
    return winners
