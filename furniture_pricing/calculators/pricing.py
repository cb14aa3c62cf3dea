from __future__ import annotations

from typing import Any, Dict, Union

from . import cnc, components, labor, materials, overhead
from .margins import price_from_cost
from ..models import CategoryCost, CostBreakdown, MaterialsCost, PriceSummary
from ..utils import as_dict, as_settings, num


def compute_pricing(item: Dict[str, Any], settings: Any = None, preserve_wood_overrides: bool = False) -> CostBreakdown:
    """Itemized cost of a piece, component or custom project.

    ``item`` is the raw calculator input (labor, materials, cnc, components);
    ``settings`` is a RateSettings snapshot or the same shape as a plain dict.
    Bad numbers count as zero and unknown catalog ids fall back to the prices
    stored on the item, so this always returns a breakdown.
    """
    item = as_dict(item)
    settings = as_settings(settings)
    mats = as_dict(item.get("materials"))

    labor_cost = labor.compute(as_dict(item.get("labor")), settings)
    cnc_cost = cnc.compute(as_dict(item.get("cnc")), settings)
    # overhead needs labor and cnc hours
    overhead_cost = overhead.allocate(labor_cost.hours, cnc_cost.runtime, as_dict(settings.get("overhead")))

    wood = materials.compute_wood(mats.get("wood"), settings, preserve_overrides=preserve_wood_overrides)
    sheet = materials.compute_sheet(mats.get("sheet"), settings)
    hardware = materials.compute_hardware(mats.get("hardware"), settings)
    upholstery = materials.compute_upholstery(mats.get("upholstery"), settings)
    finishing = materials.compute_finishing(mats.get("finishing"), settings)
    materials_total = wood.total_cost + sheet + hardware + upholstery + finishing

    components_cost = components.compute(components.from_item(item))

    grand_total = labor_cost.cost + materials_total + cnc_cost.cost + overhead_cost.cost + components_cost
    return CostBreakdown(
        labor=labor_cost,
        materials=MaterialsCost(
            wood=wood,
            sheet=CategoryCost(cost=sheet),
            hardware=CategoryCost(cost=hardware),
            upholstery=CategoryCost(cost=upholstery),
            finishing=CategoryCost(cost=finishing),
            total=materials_total,
        ),
        cnc=cnc_cost,
        overhead=overhead_cost,
        components_cost=components_cost,
        grand_total=grand_total,
    )


def price_summary(cost: Union[CostBreakdown, float], settings: Any = None) -> PriceSummary:
    """Wholesale and MSRP prices; the MSRP margin is taken on top of wholesale."""
    total = cost.grand_total if isinstance(cost, CostBreakdown) else num(cost)
    margins = as_dict(as_settings(settings).get("margins"))
    wholesale = price_from_cost(total, margins.get("wholesale"))
    msrp = price_from_cost(wholesale, margins.get("msrp"))
    return PriceSummary(cost=total, wholesale=wholesale, msrp=msrp)
