from __future__ import annotations

from typing import Any, Dict, List

from ..models import LaborCost, LaborEntry
from ..utils import as_dict, as_settings, num

SURCHARGE_TYPE = "Labor Surcharge"

# Internal category keys whose display label is not a plain capitalization
LABOR_LABELS = {
    "stockProduction": "Stock Production",
    "cncOperator": "CNC Operator",
}
_LABEL_KEYS = {label: key for key, label in LABOR_LABELS.items()}


def labor_label(key: str) -> str:
    if key in LABOR_LABELS:
        return LABOR_LABELS[key]
    return key[:1].upper() + key[1:]


def labor_key_for(label: str) -> str:
    """Inverse of ``labor_label``, used to rebuild inputs from a saved breakdown."""
    label = (label or "").strip()
    if label in _LABEL_KEYS:
        return _LABEL_KEYS[label]
    key = label.replace(" ", "")
    return key[:1].lower() + key[1:]


def compute(labor: Dict[str, Any], settings: Any = None) -> LaborCost:
    """Cost each labor category as hours x rate and add the shop surcharge.

    Categories with no hours are dropped from the breakdown. A category
    without its own rate is charged at the shop rate from ``settings.labor``,
    and a negative rate costs nothing. When ``labor.extraFee`` is set in the
    settings the surcharge is appended as a synthetic entry with zero hours,
    so it never inflates overhead hours.
    """
    labor_settings = as_dict(as_settings(settings).get("labor"))
    entries: List[LaborEntry] = []
    for key, value in as_dict(labor).items():
        if key == "surcharge":
            continue
        value = as_dict(value)
        hours = num(value.get("hours"))
        if hours <= 0:
            continue
        # a rate on the line item wins over the shop rate for the category
        rate = num(value.get("rate")) or num(as_dict(labor_settings.get(str(key))).get("rate"))
        entries.append(LaborEntry(type=labor_label(str(key)), hours=hours, rate=rate, cost=max(hours * rate, 0.0)))

    base_cost = sum(e.cost for e in entries)
    hours = sum(e.hours for e in entries)
    fee = num(labor_settings.get("extraFee"))
    surcharge_cost = 0.0
    if fee > 0:
        surcharge_cost = base_cost * fee / 100.0
        entries.append(
            LaborEntry(
                type=SURCHARGE_TYPE,
                hours=0.0,
                rate=0.0,
                cost=surcharge_cost,
                detail=f"{fee:g}% surcharge",
            )
        )
    return LaborCost(
        breakdown=entries,
        base_cost=base_cost,
        surcharge_cost=surcharge_cost,
        cost=base_cost + surcharge_cost,
        hours=hours,
    )
