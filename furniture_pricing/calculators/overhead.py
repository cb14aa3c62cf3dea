from __future__ import annotations

from typing import Any, Dict

from ..models import OverheadCost
from ..utils import as_dict, num


def rate(overhead: Dict[str, Any]) -> float:
    """Hourly overhead recovery rate over employee plus CNC capacity."""
    oh = as_dict(overhead)
    capacity = num(oh.get("employees")) * num(oh.get("monthlyProdHours")) + num(oh.get("monthlyCNCHours"))
    if capacity <= 0:
        return 0.0
    return num(oh.get("monthlyOverhead")) / capacity


def allocate(labor_hours: float, cnc_runtime: float, overhead: Dict[str, Any]) -> OverheadCost:
    oh_rate = rate(overhead)
    hours = float(labor_hours) + float(cnc_runtime)
    return OverheadCost(rate=oh_rate, hours=hours, cost=max(oh_rate * hours, 0.0))
