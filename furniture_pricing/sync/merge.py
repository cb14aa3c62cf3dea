"""Reconcile previously saved cost details with a freshly recomputed payload.

A recomputation can come back partial: a block may be missing, a list may be
empty because nothing was recomputed for it, or a number may be 0 because the
step was skipped. A plain ``{**prev, **next}`` would erase good data in all of
those cases, so each block below has its own rules about which side wins.

Throughout, a numerically zero incoming value for a guarded field means "not
recomputed" and the previous value is kept.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from ..utils import as_dict, num, to_array

logger = logging.getLogger(__name__)

OVERHEAD_GUARDED = ("rate", "hours", "cost")
CNC_GUARDED = ("runtime", "cost", "rate")
LABOR_ENTRY_GUARDED = ("rate", "hours")

_MISSING = object()


def _any_positive(rows: Any, *fields: str) -> bool:
    if not isinstance(rows, list):
        return False
    return any(num(as_dict(r).get(f)) > 0 for r in rows for f in fields)


def _has_cost_or_items(block: Any) -> bool:
    if not block:
        return False
    block = as_dict(block)
    return num(block.get("cost")) > 0 or isinstance(block.get("items"), list)


def is_meaningful_materials(materials: Any) -> bool:
    """True when a materials payload carries any real recomputed cost."""
    if not isinstance(materials, dict):
        return False
    if num(materials.get("totalCost")) > 0:
        return True
    computed_wood = as_dict(materials.get("computedWood"))
    return (
        _any_positive(materials.get("wood"), "totalCost")
        or _any_positive(materials.get("sheet"), "cost")
        or _any_positive(materials.get("hardware"), "pricePerPack", "cost")
        or _has_cost_or_items(materials.get("finishing"))
        or _has_cost_or_items(materials.get("upholstery"))
        or num(computed_wood.get("totalCost")) > 0
        or num(computed_wood.get("baseCost")) > 0
    )


def _guard_zeros(merged: Dict[str, Any], prev: Dict[str, Any], nxt: Dict[str, Any], fields: Iterable[str]) -> None:
    for field in fields:
        if num(nxt.get(field)) == 0 and field in prev:
            merged[field] = prev[field]


def merge_materials(prev: Any, nxt: Any = _MISSING) -> Dict[str, Any]:
    prev = as_dict(prev)
    if nxt is _MISSING or nxt is None:
        return dict(prev)
    nxt = as_dict(nxt)
    has_explicit_clear = any(v is None for v in nxt.values())
    if not is_meaningful_materials(nxt) and not has_explicit_clear:
        if nxt:
            logger.debug("materials update carries no costs, keeping previous materials")
        return dict(prev)

    merged = dict(prev)
    for key, value in nxt.items():
        if value is None:
            merged[key] = None
        elif isinstance(value, list):
            if value:
                merged[key] = value
        elif isinstance(value, dict):
            if value:
                merged[key] = {**as_dict(prev.get(key)), **value}
        else:
            merged[key] = value
    return merged


def _entry_key(entry: Dict[str, Any]) -> Any:
    # saved types are labels; anything else is keyed by its text so it stays hashable
    label = entry.get("type")
    if label is None or isinstance(label, str):
        return label
    return str(label)


def merge_labor_breakdown(prev: Any, nxt: Any) -> List[Dict[str, Any]]:
    if isinstance(nxt, list) and not nxt:
        return []
    by_type: Dict[Any, Dict[str, Any]] = {}
    for entry in to_array(prev):
        entry = as_dict(entry)
        by_type[_entry_key(entry)] = dict(entry)
    for entry in to_array(nxt):
        entry = as_dict(entry)
        existing = by_type.get(_entry_key(entry), {})
        merged = {**existing, **entry}
        _guard_zeros(merged, existing, entry, LABOR_ENTRY_GUARDED)
        by_type[_entry_key(entry)] = merged
    return list(by_type.values())


def merge_labor(prev: Any, nxt: Any = _MISSING) -> Dict[str, Any]:
    prev = as_dict(prev)
    if nxt is _MISSING or nxt is None:
        return dict(prev)
    nxt = as_dict(nxt)
    merged = {**prev, **nxt}
    if nxt.get("breakdown") is None:
        merged["breakdown"] = to_array(prev.get("breakdown"))
    else:
        merged["breakdown"] = merge_labor_breakdown(prev.get("breakdown"), nxt.get("breakdown"))
    return merged


def _merge_guarded(prev: Any, nxt: Any, fields: Iterable[str]) -> Dict[str, Any]:
    prev = as_dict(prev)
    if nxt is _MISSING or nxt is None:
        return dict(prev)
    nxt = as_dict(nxt)
    merged = {**prev, **nxt}
    _guard_zeros(merged, prev, nxt, fields)
    return merged


def merge_overhead(prev: Any, nxt: Any = _MISSING) -> Dict[str, Any]:
    return _merge_guarded(prev, nxt, OVERHEAD_GUARDED)


def merge_cnc(prev: Any, nxt: Any = _MISSING) -> Dict[str, Any]:
    return _merge_guarded(prev, nxt, CNC_GUARDED)


def component_id(component: Dict[str, Any]) -> Any:
    cid = component.get("id")
    return component.get("_id") if cid is None else cid


def merge_components(prev: Any, nxt: Any = _MISSING) -> List[Any]:
    """Union of components by id; incoming fields win, previous-only components are kept."""
    prev_list = to_array(prev)
    if not isinstance(nxt, list):
        return list(prev_list)

    merged = []
    for comp in nxt:
        comp = as_dict(comp)
        cid = component_id(comp)
        match = next((p for p in prev_list if component_id(as_dict(p)) == cid), {})
        merged.append({**as_dict(match), **comp})
    seen = [component_id(c) for c in merged]
    for comp in prev_list:
        if component_id(as_dict(comp)) not in seen:
            merged.append(comp)
    return merged


def merge_details(prev: Any = None, nxt: Any = None) -> Dict[str, Any]:
    """Merge recomputed ``nxt`` details onto saved ``prev`` details.

    Neither argument is modified. Keys other than materials, labor, overhead,
    cnc and components follow ``{**prev, **nxt}``.
    """
    prev = as_dict(prev)
    nxt = as_dict(nxt)
    merged = {**prev, **nxt}
    merged["materials"] = merge_materials(prev.get("materials"), nxt.get("materials", _MISSING))
    merged["labor"] = merge_labor(prev.get("labor"), nxt.get("labor", _MISSING))
    merged["overhead"] = merge_overhead(prev.get("overhead"), nxt.get("overhead", _MISSING))
    merged["cnc"] = merge_cnc(prev.get("cnc"), nxt.get("cnc", _MISSING))
    merged["components"] = merge_components(prev.get("components"), nxt.get("components", _MISSING))
    return merged
