from __future__ import annotations

import json

import pytest
import yaml
from typer.testing import CliRunner

from furniture_pricing.cli import app
from furniture_pricing.store import PriceSheetStore

runner = CliRunner()


@pytest.fixture
def settings_file(tmp_path, shop_settings):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(shop_settings), encoding="utf-8")
    return path


@pytest.fixture
def item_file(tmp_path, full_item):
    path = tmp_path / "item.json"
    path.write_text(json.dumps(full_item), encoding="utf-8")
    return path


class TestPriceCommand:
    def test_text_output(self, item_file, settings_file):
        result = runner.invoke(app, ["price", str(item_file), "--settings", str(settings_file)])
        assert result.exit_code == 0, result.output
        assert "Stock Production" in result.output
        assert "Labor Surcharge (8% surcharge): $28.00" in result.output
        assert "Cost: $1,532.88" in result.output

    def test_json_output(self, item_file, settings_file):
        result = runner.invoke(app, ["price", str(item_file), "--settings", str(settings_file), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["grandTotal"] == pytest.approx(1532.88)
        assert data["totals"]["wholesale"] == pytest.approx(1532.88 / 0.6)

    def test_missing_input(self, tmp_path, settings_file):
        result = runner.invoke(app, ["price", str(tmp_path / "none.yaml"), "--settings", str(settings_file)])
        assert result.exit_code == 2


class TestMarginCommand:
    def test_wholesale_and_msrp(self):
        result = runner.invoke(app, ["margin", "60", "--margin", "40", "--msrp", "50"])
        assert result.exit_code == 0, result.output
        assert "Wholesale: $100.00" in result.output
        assert "margin 40.0%" in result.output
        assert "MSRP: $200.00" in result.output

    def test_margin_clamped(self):
        result = runner.invoke(app, ["margin", "10", "--margin", "150"])
        assert result.exit_code == 0, result.output
        assert "clamped to 99.9%" in result.output


class TestSheetCommands:
    def test_list_empty(self, tmp_path):
        result = runner.invoke(app, ["list", "--sheet", str(tmp_path / "sheet.yaml")])
        assert result.exit_code == 0
        assert "Price sheet is empty." in result.output

    def test_sync(self, tmp_path, settings_file):
        sheet = tmp_path / "sheet.yaml"
        item = PriceSheetStore(sheet).add(
            {
                "isComponent": True,
                "componentName": "Arm",
                "cost": 100,
                "details": {"labor": {"breakdown": [{"type": "Assembly", "hours": 5, "rate": 40}]}},
            }
        )
        result = runner.invoke(
            app, ["sync", item.id, "--sheet", str(sheet), "--settings", str(settings_file), "--expected-version", "1"]
        )
        assert result.exit_code == 0, result.output
        assert "Synced Arm: $100.00 -> $316.00 (v2)" in result.output

        listed = runner.invoke(app, ["list", "--sheet", str(sheet)])
        assert "Arm [component] v2: $316.00" in listed.output

    def test_list_shows_manual_price(self, tmp_path):
        sheet = tmp_path / "sheet.yaml"
        PriceSheetStore(sheet).add({"collection": "Ridge", "pieceNumber": "101", "cost": 420, "manualPrice": 899})
        PriceSheetStore(sheet).add({"collection": "Ridge", "pieceNumber": "102", "cost": 300, "manualPrice": ""})
        result = runner.invoke(app, ["list", "--sheet", str(sheet)])
        assert result.exit_code == 0, result.output
        assert "Ridge 101 [piece] v1: $420.00 (manual price $899.00)" in result.output
        assert "Ridge 102 [piece] v1: $300.00\n" in result.output

    def test_list_rejects_non_mapping_sheet(self, tmp_path):
        sheet = tmp_path / "sheet.yaml"
        sheet.write_text("- a\n- b\n", encoding="utf-8")
        result = runner.invoke(app, ["list", "--sheet", str(sheet)])
        assert result.exit_code == 2
        assert "Expected a mapping" in result.output

    def test_sync_unknown_item(self, tmp_path, settings_file):
        result = runner.invoke(
            app, ["sync", "missing", "--sheet", str(tmp_path / "sheet.yaml"), "--settings", str(settings_file)]
        )
        assert result.exit_code == 2
        assert "Entry not found: missing" in result.output
