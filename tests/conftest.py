from __future__ import annotations

import copy

import pytest

from furniture_pricing.models import RateSettings


SHOP_SETTINGS = {
    "labor": {"stockProduction": {"rate": 20}, "assembly": {"rate": 30}, "extraFee": 8},
    "materials": {
        "wood": {"walnut": {"4/4": {"cost": 12}}},
        "woodWasteFactor": 20,
        "sheet": [{"id": 1, "name": "Baltic birch", "pricePerSheet": 90}],
        "hardware": [{"id": 7, "name": "Hinge", "pricePerPack": 40, "unitsPerPack": 8}],
        "upholsteryMaterials": [{"id": 3, "name": "Wool", "costPerSqFt": 6}],
        "finishing": [{"id": 2, "name": "Oil", "containerCost": 50, "containerSize": 2.5, "coverage": 100}],
    },
    "cnc": {"rate": 80},
    "overhead": {"monthlyOverhead": 10000, "employees": 4, "monthlyProdHours": 100, "monthlyCNCHours": 100},
    "margins": {"wholesale": 40, "msrp": 50},
}


FULL_ITEM = {
    "labor": {
        "stockProduction": {"hours": 10, "rate": 20},
        "assembly": {"hours": 5, "rate": 30},
        "upholstery": {"hours": 0, "rate": 30},
    },
    "materials": {
        "wood": [{"species": "walnut", "thickness": "4/4", "boardFeet": 10, "cost": 5}],
        "sheet": [{"sheetId": 1, "quantity": 2, "pricePerSheet": 50}],
        "hardware": [{"hardwareId": 7, "quantity": 4}],
        "upholstery": {"items": [{"materialId": 3, "squareFeet": 10, "costPerSqFt": 2}]},
        "finishing": {"materialId": 2, "surfaceArea": 288, "coats": 2},
    },
    "cnc": {"runtime": 2},
    "components": [{"id": "c1", "cost": 100, "quantity": 2}, {"id": "c2", "cost": 50}],
}


@pytest.fixture
def shop_settings():
    return copy.deepcopy(SHOP_SETTINGS)


@pytest.fixture
def rate_settings():
    return RateSettings.model_validate(copy.deepcopy(SHOP_SETTINGS))


@pytest.fixture
def full_item():
    return copy.deepcopy(FULL_ITEM)
