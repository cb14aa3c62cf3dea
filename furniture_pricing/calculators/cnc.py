from __future__ import annotations

from typing import Any, Dict

from ..models import CncCost
from ..utils import as_dict, as_settings, num


def compute(cnc: Dict[str, Any], settings: Any = None) -> CncCost:
    """CNC machine cost: runtime hours x rate.

    A rate saved on the item overrides the shop rate from settings.
    """
    cnc = as_dict(cnc)
    runtime = num(cnc.get("runtime"))
    rate = num(cnc.get("rate")) or num(as_dict(as_settings(settings).get("cnc")).get("rate"))
    return CncCost(runtime=runtime, rate=rate, cost=max(runtime * rate, 0.0))
