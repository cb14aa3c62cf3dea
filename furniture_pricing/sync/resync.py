from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Tuple, Union

from ..calculators import materials as calc_materials
from ..calculators.labor import SURCHARGE_TYPE, labor_key_for
from ..calculators.pricing import compute_pricing
from ..models import CostBreakdown, PriceSheetItem
from ..utils import as_dict, as_settings, to_array
from .merge import merge_details

logger = logging.getLogger(__name__)


def _wood_rows(wood: Any) -> List[Any]:
    # Some saved items wrapped the rows as {entries: [...]}
    if isinstance(wood, list):
        return wood
    if isinstance(wood, dict) and isinstance(wood.get("entries"), list):
        return wood["entries"]
    return []


def line_item_from_details(details: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuild calculator input from saved details.

    Labor hours and rates are read back from the saved breakdown; the
    surcharge entry is skipped because it is derived from settings.
    """
    details = as_dict(details)
    labor: Dict[str, Dict[str, Any]] = {}
    for entry in to_array(as_dict(details.get("labor")).get("breakdown")):
        entry = as_dict(entry)
        label = entry.get("type")
        if not label or label == SURCHARGE_TYPE:
            continue
        labor[labor_key_for(str(label))] = {"hours": entry.get("hours"), "rate": entry.get("rate")}

    materials = dict(as_dict(details.get("materials")))
    materials["wood"] = _wood_rows(materials.get("wood"))
    return {
        "labor": labor,
        "materials": materials,
        "cnc": as_dict(details.get("cnc")),
        "components": to_array(details.get("components")),
    }


def _materials_payload(materials: Dict[str, Any], breakdown: CostBreakdown, settings: Dict[str, Any]) -> Dict[str, Any]:
    wood = breakdown.materials.wood
    out: Dict[str, Any] = {
        "computedWood": {"baseCost": wood.base_cost, "wasteCost": wood.waste_cost, "totalCost": wood.total_cost},
        "total": breakdown.materials.total,
    }
    if wood.entries:
        out["wood"] = wood.entries
    if to_array(materials.get("sheet")):
        out["sheet"] = calc_materials.resolve_sheet_rows(materials.get("sheet"), settings)
    if to_array(materials.get("hardware")):
        out["hardware"] = calc_materials.resolve_hardware_rows(materials.get("hardware"), settings)
    upholstery = as_dict(materials.get("upholstery"))
    if upholstery:
        out["upholstery"] = {
            **upholstery,
            "items": calc_materials.resolve_upholstery_items(upholstery, settings),
            "cost": breakdown.materials.upholstery.cost,
        }
    if as_dict(materials.get("finishing")):
        out["finishing"] = calc_materials.resolve_finishing(materials.get("finishing"), settings)
    return out


def recompute_details(
    details: Dict[str, Any], settings: Any, preserve_wood_overrides: bool = False
) -> Tuple[CostBreakdown, Dict[str, Any]]:
    """Price saved details against ``settings``; return the breakdown and a details-shaped payload."""
    settings = as_settings(settings)
    item = line_item_from_details(details)
    breakdown = compute_pricing(item, settings, preserve_wood_overrides=preserve_wood_overrides)
    labor = breakdown.labor.model_dump(by_alias=True, exclude_none=True)
    payload = {
        "labor": labor,
        "materials": _materials_payload(item["materials"], breakdown, settings),
        "cnc": breakdown.cnc.model_dump(),
        "overhead": breakdown.overhead.model_dump(),
        "componentsCost": breakdown.components_cost,
    }
    return breakdown, payload


def _drop_legacy_total(details: Dict[str, Any]) -> None:
    materials = details.get("materials")
    if isinstance(materials, dict) and "totalCost" in materials:
        materials.setdefault("total", materials["totalCost"])
        del materials["totalCost"]


def sync_item(
    item: Union[PriceSheetItem, Dict[str, Any]], settings: Any, preserve_wood_overrides: bool = False
) -> PriceSheetItem:
    """Re-price a saved item against current settings without losing saved detail."""
    if not isinstance(item, PriceSheetItem):
        item = PriceSheetItem.model_validate(item)
    snapshot = settings.snapshot() if hasattr(settings, "snapshot") else copy.deepcopy(as_settings(settings))
    prev = copy.deepcopy(item.details)
    breakdown, payload = recompute_details(prev, snapshot, preserve_wood_overrides=preserve_wood_overrides)
    merged = merge_details(prev, payload)
    _drop_legacy_total(merged)
    logger.info("synced %s: cost %.2f -> %.2f", item.display_name, item.cost, breakdown.grand_total)
    return item.model_copy(
        update={"details": merged, "cost": breakdown.grand_total, "last_synced_settings": snapshot}
    )
