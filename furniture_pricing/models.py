from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .calculators.margins import clamp_margin
from .utils import num


def _label(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def _optional_number(v: Any) -> Optional[float]:
    # a cleared price field is saved as null or ""
    if v is None or v == "":
        return None
    return num(v)


# Junk numbers in settings documents degrade to 0 instead of failing the load
Number = Annotated[float, BeforeValidator(num)]
Margin = Annotated[float, BeforeValidator(clamp_margin)]
Label = Annotated[Optional[str], BeforeValidator(_label)]
OptionalNumber = Annotated[Optional[float], BeforeValidator(_optional_number)]
# YAML reads thickness keys such as 8 as ints; the wood catalog is looked up by text
CatalogKey = Annotated[str, BeforeValidator(str)]
CatalogId = Optional[Union[int, str]]


class _Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# ---------------------------------------------------------------------------
# Rate settings
# ---------------------------------------------------------------------------


class LaborSettings(_Snapshot):
    """Per-category rates live as extra keys, e.g. ``stockProduction: {rate: 32}``."""

    extra_fee: Number = Field(0.0, alias="extraFee")

    def rate_for(self, category: str) -> float:
        entry = (self.model_extra or {}).get(category)
        if isinstance(entry, dict):
            return num(entry.get("rate"))
        return num(getattr(entry, "rate", 0))


class WoodPrice(_Snapshot):
    cost: Number = 0.0


class SheetMaterial(_Snapshot):
    id: CatalogId = None
    name: Optional[str] = None
    price_per_sheet: Number = Field(0.0, alias="pricePerSheet")


class HardwareItem(_Snapshot):
    id: CatalogId = None
    name: Optional[str] = None
    price_per_pack: Number = Field(0.0, alias="pricePerPack")
    units_per_pack: Number = Field(1.0, alias="unitsPerPack")


class UpholsteryMaterial(_Snapshot):
    id: CatalogId = None
    name: Optional[str] = None
    cost_per_sq_ft: Number = Field(0.0, alias="costPerSqFt")


class FinishingMaterial(_Snapshot):
    id: CatalogId = None
    name: Optional[str] = None
    container_cost: Number = Field(0.0, alias="containerCost")
    container_size: Number = Field(0.0, alias="containerSize")
    coverage: Number = 0.0


def _wood_catalog(v: Any) -> Dict[Any, Any]:
    # species or thickness entries that are not mappings are dropped
    if not isinstance(v, dict):
        return {}
    return {
        species: {thickness: price for thickness, price in prices.items() if isinstance(price, (dict, WoodPrice))}
        for species, prices in v.items()
        if isinstance(prices, dict)
    }


class MaterialSettings(_Snapshot):
    wood: Annotated[Dict[CatalogKey, Dict[CatalogKey, WoodPrice]], BeforeValidator(_wood_catalog)] = Field(
        default_factory=dict
    )
    wood_waste_factor: Number = Field(0.0, alias="woodWasteFactor")
    sheet: List[SheetMaterial] = Field(default_factory=list)
    hardware: List[HardwareItem] = Field(default_factory=list)
    upholstery_materials: List[UpholsteryMaterial] = Field(default_factory=list, alias="upholsteryMaterials")
    finishing: List[FinishingMaterial] = Field(default_factory=list)


class CncSettings(_Snapshot):
    rate: Number = 0.0


class OverheadSettings(_Snapshot):
    monthly_overhead: Number = Field(0.0, alias="monthlyOverhead")
    employees: Number = 0.0
    monthly_prod_hours: Number = Field(0.0, alias="monthlyProdHours")
    monthly_cnc_hours: Number = Field(0.0, alias="monthlyCNCHours")


class MarginSettings(_Snapshot):
    wholesale: Margin = 0.0
    msrp: Margin = 0.0


class RateSettings(_Snapshot):
    """Immutable snapshot of the shop's current rates, handed to every pricing call."""

    labor: LaborSettings = Field(default_factory=LaborSettings)
    materials: MaterialSettings = Field(default_factory=MaterialSettings)
    cnc: CncSettings = Field(default_factory=CncSettings)
    overhead: OverheadSettings = Field(default_factory=OverheadSettings)
    margins: MarginSettings = Field(default_factory=MarginSettings)

    def snapshot(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Cost breakdown (engine output)
# ---------------------------------------------------------------------------


class LaborEntry(_Snapshot):
    type: str
    hours: float = 0.0
    rate: float = 0.0
    cost: float = 0.0
    detail: Optional[str] = None


class LaborCost(_Snapshot):
    breakdown: List[LaborEntry] = Field(default_factory=list)
    base_cost: float = Field(0.0, alias="baseCost")
    surcharge_cost: float = Field(0.0, alias="surchargeCost")
    cost: float = 0.0
    hours: float = 0.0


class WoodCost(_Snapshot):
    base_cost: float = Field(0.0, alias="baseCost")
    waste_cost: float = Field(0.0, alias="wasteCost")
    total_cost: float = Field(0.0, alias="totalCost")
    entries: List[Dict[str, Any]] = Field(default_factory=list)


class CategoryCost(_Snapshot):
    cost: float = 0.0


class MaterialsCost(_Snapshot):
    wood: WoodCost = Field(default_factory=WoodCost)
    sheet: CategoryCost = Field(default_factory=CategoryCost)
    hardware: CategoryCost = Field(default_factory=CategoryCost)
    upholstery: CategoryCost = Field(default_factory=CategoryCost)
    finishing: CategoryCost = Field(default_factory=CategoryCost)
    total: float = 0.0


class CncCost(_Snapshot):
    runtime: float = 0.0
    rate: float = 0.0
    cost: float = 0.0


class OverheadCost(_Snapshot):
    rate: float = 0.0
    hours: float = 0.0
    cost: float = 0.0


class CostBreakdown(_Snapshot):
    labor: LaborCost = Field(default_factory=LaborCost)
    materials: MaterialsCost = Field(default_factory=MaterialsCost)
    cnc: CncCost = Field(default_factory=CncCost)
    overhead: OverheadCost = Field(default_factory=OverheadCost)
    components_cost: float = Field(0.0, alias="componentsCost")
    grand_total: float = Field(0.0, alias="grandTotal")

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PriceSummary(_Snapshot):
    cost: float = 0.0
    wholesale: float = 0.0
    msrp: float = 0.0


# ---------------------------------------------------------------------------
# Persisted price sheet items
# ---------------------------------------------------------------------------


class PriceSheetItem(_Record):
    id: Label = None
    is_component: bool = Field(False, alias="isComponent")
    is_custom: bool = Field(False, alias="isCustom")
    collection: Label = None
    piece_number: Label = Field(None, alias="pieceNumber")
    variation: Label = None
    component_name: Label = Field(None, alias="componentName")
    component_type: Label = Field(None, alias="componentType")
    cost: Number = 0.0
    manual_price: OptionalNumber = Field(None, alias="manualPrice")
    details: Dict[str, Any] = Field(default_factory=dict)
    last_synced_settings: Optional[Dict[str, Any]] = Field(None, alias="lastSyncedSettings")
    version: int = 0

    @property
    def display_name(self) -> str:
        if self.is_component:
            return self.component_name or "Unnamed component"
        name = " ".join(p for p in (self.collection, self.piece_number) if p)
        if self.variation:
            name = f"{name}-{self.variation}"
        return name or "Custom project"

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
