from __future__ import annotations

from typing import Any, Dict, List

from ..utils import as_dict, num, to_array


def from_item(item: Dict[str, Any]) -> List[Any]:
    # Calculator submissions use selectedComponents, saved items keep them under details
    item = as_dict(item)
    for found in (item.get("components"), item.get("selectedComponents"), as_dict(item.get("details")).get("components")):
        if found is not None:
            return to_array(found)
    return []


def compute(components: Any) -> float:
    """Roll up sub-assembly costs; a missing or zero quantity counts once."""
    total = 0.0
    for comp in to_array(components):
        comp = as_dict(comp)
        total += max(num(comp.get("cost")) * (num(comp.get("quantity")) or 1.0), 0.0)
    return total
