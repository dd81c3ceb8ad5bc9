from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Sequence

from libs.core.models import RubricCriterion

DEFAULT_WEIGHT = 0.2
WEIGHT_SUM_TOLERANCE = 0.01
_HUNDREDTH = Decimal("0.01")


def clamp_weight(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_WEIGHT
    number = float(value)
    if not math.isfinite(number):
        return DEFAULT_WEIGHT
    return max(0.0, min(1.0, number))


def normalize_weights(weights: Sequence[Any]) -> List[float]:
    """Repair rubric weights so each lies in [0, 1] and they sum to 1.00.

    Non-numeric weights count as 0.2, an all-zero list is split evenly, and
    anything else is rescaled by 1 / sum. Weights are rounded to hundredths
    with the rounding slack assigned to the last weight.
    """
    clamped = [clamp_weight(weight) for weight in weights]
    if not clamped:
        return []
    total = sum(clamped)
    if total == 0:
        scaled = [1.0 / len(clamped)] * len(clamped)
    else:
        factor = 1.0 / total
        scaled = [weight * factor for weight in clamped]
    return _round_to_hundredths(scaled)


def normalize_rubric(criteria: Sequence[RubricCriterion]) -> List[RubricCriterion]:
    weights = normalize_weights([criterion.weight for criterion in criteria])
    return [
        criterion.model_copy(update={"weight": weight})
        for criterion, weight in zip(criteria, weights)
    ]


def weights_sum_to_one(weights: Sequence[float]) -> bool:
    if not weights:
        return True
    return abs(sum(weights) - 1.0) <= WEIGHT_SUM_TOLERANCE


def _round_to_hundredths(weights: Sequence[float]) -> List[float]:
    rounded: List[float] = []
    running = 0.0
    for weight in weights[:-1]:
        value = _to_hundredths(weight)
        rounded.append(value)
        running += value
    if running > 1.0 + WEIGHT_SUM_TOLERANCE / 2:
        # Rounding many small weights up overshoots 1.0; the last weight cannot absorb it.
        return _largest_remainder(weights)
    rounded.append(_to_hundredths(max(0.0, 1.0 - running)))
    return rounded


def _to_hundredths(value: float) -> float:
    # Halves round up, not to even.
    return float(Decimal(value).quantize(_HUNDREDTH, rounding=ROUND_HALF_UP))


def _largest_remainder(weights: Sequence[float]) -> List[float]:
    cents = [weight * 100 for weight in weights]
    floors = [math.floor(value + 1e-9) for value in cents]
    missing = max(0, 100 - sum(floors))
    order = sorted(range(len(weights)), key=lambda idx: (-(cents[idx] - floors[idx]), idx))
    for idx in order[:missing]:
        floors[idx] += 1
    return [value / 100 for value in floors]
