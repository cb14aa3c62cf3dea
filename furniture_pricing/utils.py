from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional


def num(x: Any) -> float:
    """Coerce ``x`` to a finite float; anything else (None, junk, NaN, inf) is 0."""
    if x is None or isinstance(x, bool):
        return 0.0
    if isinstance(x, str):
        x = x.strip().replace(",", "")
        if not x:
            return 0.0
    try:
        val = float(x)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(val):
        return 0.0
    return val


def as_dict(x: Any) -> Dict[str, Any]:
    return x if isinstance(x, dict) else {}


def to_array(value: Any) -> List[Any]:
    """Lists pass through, dicts keyed by index become their values, anything else is []."""
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, dict):
        return list(value.values())
    return []


def same_id(a: Any, b: Any) -> bool:
    # Catalog ids are numbers, stored references are often strings
    if a is None or b is None:
        return False
    if a == b:
        return True
    try:
        return float(a) == float(b)
    except (TypeError, ValueError):
        return str(a) == str(b)


def find_by_id(entries: Iterable[Any], ref: Any) -> Optional[Dict[str, Any]]:
    if ref is None or ref == "":
        return None
    for entry in entries or []:
        if isinstance(entry, dict) and same_id(entry.get("id"), ref):
            return entry
    return None


def to_decimal(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(num(x)))


def money(amount, symbol: str = "$", places: int = 2) -> str:
    q = Decimal(10) ** -places
    val = to_decimal(amount).quantize(q, rounding=ROUND_HALF_UP)
    sign = "-" if val < 0 else ""
    return f"{sign}{symbol}{abs(val):,.{places}f}"


def as_settings(settings: Any) -> Dict[str, Any]:
    """Plain camelCase dict for a RateSettings model, a mapping or None."""
    if settings is None:
        return {}
    if hasattr(settings, "model_dump"):
        return settings.model_dump(by_alias=True)
    return settings if isinstance(settings, dict) else {}
