from __future__ import annotations

from typing import Any

from ..utils import num

MAX_MARGIN_PERCENT = 99.9


def clamp_margin(value: Any) -> float:
    """Coerce a margin percentage into [0, 99.9]."""
    return min(max(num(value), 0.0), MAX_MARGIN_PERCENT)


def markup_from_margin(margin_percent: Any) -> float:
    margin = num(margin_percent)
    if not margin:
        return 1.0
    return 1.0 / (1.0 - margin / 100.0)


def price_from_cost(cost: Any, margin_percent: Any) -> float:
    """Price that yields ``margin_percent`` of the price as profit.

    Precondition: the caller clamps the margin with ``clamp_margin`` first.
    A margin of 100 or more gives a non-finite or negative markup and is not
    guarded here.
    """
    cost = num(cost)
    margin = num(margin_percent)
    if not margin:
        return cost
    return cost * markup_from_margin(margin)


def margin_from_markup(markup: Any) -> float:
    markup = num(markup)
    if markup <= 1:
        return 0.0
    return (markup - 1.0) / markup * 100.0
