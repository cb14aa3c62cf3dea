from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models import WoodCost
from ..utils import as_dict, as_settings, find_by_id, num, to_array

logger = logging.getLogger(__name__)

FINISHING_WASTE = 1.1
SQ_IN_PER_SQ_FT = 144.0


def _catalog(settings: Dict[str, Any], key: str) -> List[Any]:
    return to_array(as_dict(settings.get("materials")).get(key))


# ---------------------------------------------------------------------------
# Wood
# ---------------------------------------------------------------------------


def _wood_catalog_cost(row: Dict[str, Any], settings: Dict[str, Any]) -> Optional[float]:
    species, thickness = row.get("species"), row.get("thickness")
    if not isinstance(species, (str, int, float)) or not species or not thickness:
        return None
    by_species = as_dict(as_dict(settings.get("materials")).get("wood")).get(str(species))
    entry = as_dict(by_species).get(str(thickness))
    if not isinstance(entry, dict):
        return None
    return num(entry.get("cost"))


def compute_wood(rows: Any, settings: Any = None, preserve_overrides: bool = False) -> WoodCost:
    """Board-foot cost of the wood rows plus the shop waste factor.

    Catalog prices (species -> thickness) replace whatever cost the row was
    saved with, unless ``preserve_overrides`` keeps hand-entered costs.
    """
    settings = as_settings(settings)
    entries: List[Dict[str, Any]] = []
    for row in to_array(rows):
        row = dict(as_dict(row))
        if not preserve_overrides or not num(row.get("cost")):
            catalog_cost = _wood_catalog_cost(row, settings)
            if catalog_cost is not None:
                row["cost"] = catalog_cost
        entries.append(row)

    base_cost = sum(max(num(r.get("boardFeet")) * num(r.get("cost")), 0.0) for r in entries)
    waste_factor = max(num(as_dict(settings.get("materials")).get("woodWasteFactor")), 0.0)
    waste_cost = base_cost * waste_factor / 100.0
    return WoodCost(base_cost=base_cost, waste_cost=waste_cost, total_cost=base_cost + waste_cost, entries=entries)


# ---------------------------------------------------------------------------
# Sheet goods
# ---------------------------------------------------------------------------


def resolve_sheet_rows(rows: Any, settings: Any = None) -> List[Dict[str, Any]]:
    settings = as_settings(settings)
    out = []
    for row in to_array(rows):
        row = dict(as_dict(row))
        qty = num(row.get("quantity")) or 1.0
        cat = find_by_id(_catalog(settings, "sheet"), row.get("sheetId"))
        price = num(cat.get("pricePerSheet")) if cat else num(row.get("pricePerSheet"))
        row["pricePerSheet"] = price
        row["cost"] = max(qty * price, 0.0)
        out.append(row)
    return out


def compute_sheet(rows: Any, settings: Any = None) -> float:
    return sum(r["cost"] for r in resolve_sheet_rows(rows, settings))


# ---------------------------------------------------------------------------
# Hardware
# ---------------------------------------------------------------------------


def _catalog_pack_price(row: Dict[str, Any], settings: Dict[str, Any], qty: float) -> Optional[float]:
    cat = find_by_id(_catalog(settings, "hardware"), row.get("hardwareId"))
    if not cat:
        return None
    units = num(cat.get("unitsPerPack"))
    if units <= 0:
        units = 1.0
    return num(cat.get("pricePerPack")) / units


def _field_price(field: str) -> Callable[[Dict[str, Any], Dict[str, Any], float], Optional[float]]:
    def resolve(row, settings, qty):
        if row.get(field) is None:
            return None
        return num(row.get(field))

    return resolve


def _lump_sum_price(row: Dict[str, Any], settings: Dict[str, Any], qty: float) -> Optional[float]:
    if row.get("cost") is None or qty <= 0:
        return None
    return num(row.get("cost")) / qty


# Older records stored the unit price under different names; first hit wins.
HARDWARE_UNIT_PRICE_SOURCES: Tuple[Tuple[str, Callable[..., Optional[float]]], ...] = (
    ("catalog", _catalog_pack_price),
    ("pricePerUnit", _field_price("pricePerUnit")),
    ("costPerUnit", _field_price("costPerUnit")),
    ("cost", _lump_sum_price),
)


def hardware_unit_price(row: Dict[str, Any], settings: Any = None) -> Tuple[str, float]:
    """Return ``(source, unit_price)`` for one hardware row, ``("none", 0.0)`` if nothing applies."""
    settings = as_settings(settings)
    row = as_dict(row)
    qty = num(row.get("quantity"))
    for source, resolve in HARDWARE_UNIT_PRICE_SOURCES:
        price = resolve(row, settings, qty)
        if price is not None:
            return source, price
    return "none", 0.0


def resolve_hardware_rows(rows: Any, settings: Any = None) -> List[Dict[str, Any]]:
    settings = as_settings(settings)
    out = []
    for row in to_array(rows):
        row = dict(as_dict(row))
        qty = num(row.get("quantity"))
        source, unit = hardware_unit_price(row, settings)
        if source != "catalog" and row.get("hardwareId") is not None:
            logger.debug("hardware %r not in catalog, using stored %s", row.get("hardwareId"), source)
        row["pricePerUnit"] = unit
        row["cost"] = max(qty * unit, 0.0)
        out.append(row)
    return out


def compute_hardware(rows: Any, settings: Any = None) -> float:
    return sum(r["cost"] for r in resolve_hardware_rows(rows, settings))


# ---------------------------------------------------------------------------
# Upholstery
# ---------------------------------------------------------------------------


def resolve_upholstery_items(upholstery: Any, settings: Any = None) -> List[Dict[str, Any]]:
    settings = as_settings(settings)
    out = []
    for item in to_array(as_dict(upholstery).get("items")):
        item = dict(as_dict(item))
        cat = find_by_id(_catalog(settings, "upholsteryMaterials"), item.get("materialId"))
        per_sq_ft = num(cat.get("costPerSqFt")) if cat else num(item.get("costPerSqFt"))
        item["costPerSqFt"] = per_sq_ft
        item["cost"] = max(num(item.get("squareFeet")) * per_sq_ft, 0.0)
        out.append(item)
    return out


def compute_upholstery(upholstery: Any, settings: Any = None) -> float:
    return sum(i["cost"] for i in resolve_upholstery_items(upholstery, settings))


# ---------------------------------------------------------------------------
# Finishing
# ---------------------------------------------------------------------------


def resolve_finishing(finishing: Any, settings: Any = None) -> Dict[str, Any]:
    """Finishing block with resolved coverage, cost per liter and cost.

    Surface area is entered in square inches, coverage is sq ft per liter,
    and a flat 10% is added for waste.
    """
    settings = as_settings(settings)
    fin = dict(as_dict(finishing))
    cat = find_by_id(_catalog(settings, "finishing"), fin.get("materialId"))
    if cat:
        size = num(cat.get("containerSize")) or 1.0
        fin["costPerLiter"] = num(cat.get("containerCost")) / size
        if num(cat.get("coverage")):
            fin["coverage"] = num(cat.get("coverage"))

    area, coats, coverage = num(fin.get("surfaceArea")), num(fin.get("coats")), num(fin.get("coverage"))
    if not fin.get("materialId") or not area or not coats or not coverage:
        fin["cost"] = 0.0
        return fin

    area_sq_ft = area / SQ_IN_PER_SQ_FT
    liters = area_sq_ft * coats / coverage
    fin["cost"] = max(liters * FINISHING_WASTE * num(fin.get("costPerLiter")), 0.0)
    return fin


def compute_finishing(finishing: Any, settings: Any = None) -> float:
    return resolve_finishing(finishing, settings)["cost"]
