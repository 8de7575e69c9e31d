import logging
import math

import numpy as np

from infra_sizing.errors import ArithmeticDegeneracy
from infra_sizing.errors import InvalidInput

logger = logging.getLogger(__name__)


def ensure_finite(value: float, what: str) -> float:
    if not np.isfinite(value):
        raise ArithmeticDegeneracy(f"{what} is not finite ({value})")
    return value


def nodes_for(required: float, capacity_per_node: float, what: str) -> int:
    """Whole nodes needed to hold ``required`` units at ``capacity_per_node``

    Nothing required needs no nodes, even on a zero capacity shape. Requiring
    something of a shape that offers none of it cannot be satisfied.
    """
    if required < 0:
        raise InvalidInput(f"{what} requirement must not be negative: {required}")
    if required == 0:
        return 0
    if capacity_per_node <= 0 or not np.isfinite(capacity_per_node):
        raise ArithmeticDegeneracy(
            f"Cannot place {required} {what} on nodes offering "
            f"{capacity_per_node} {what} each"
        )
    return math.ceil(ensure_finite(required / capacity_per_node, what))


def apply_headroom(count: int, headroom_percent: float) -> int:
    """Grow a node count by a headroom percentage, 0 leaves it untouched"""
    if headroom_percent <= 0:
        return count
    return math.ceil(count * (1 + headroom_percent / 100))


def inflate(value: float, percent: float) -> int:
    """Whole units after adding ``percent`` on top, rounded up"""
    return math.ceil(value * (1 + percent / 100))


def share(part: float, whole: float) -> float:
    """``part / whole`` or 0 when there is nothing to divide"""
    if whole <= 0:
        return 0.0
    return part / whole


def percent_change(new: float, old: float) -> float:
    return share(new - old, old) * 100
