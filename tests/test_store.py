from __future__ import annotations

import pytest
import yaml

from furniture_pricing.models import RateSettings
from furniture_pricing.store import (
    ItemNotFoundError,
    PriceSheetError,
    PriceSheetStore,
    SettingsStore,
    StaleItemError,
)


PIECE = {
    "id": "client-supplied",
    "_id": "mongo-ish",
    "collection": "Ridge",
    "pieceNumber": "101",
    "cost": 200,
    "details": {
        "labor": {"breakdown": [{"type": "Assembly", "hours": 5, "rate": 40, "cost": 200}]},
        "materials": {},
    },
}


@pytest.fixture
def store(tmp_path):
    return PriceSheetStore(tmp_path / "sheet.yaml")


class TestPriceSheetStore:
    def test_empty_sheet(self, store):
        assert store.list() == []

    def test_add_assigns_id_and_version(self, store):
        item = store.add(PIECE)
        assert item.id not in ("client-supplied", "mongo-ish")
        assert item.version == 1
        assert store.get(item.id).display_name == "Ridge 101"

    def test_round_trip_through_yaml(self, store):
        item = store.add(PIECE)
        raw = yaml.safe_load(store.path.read_text(encoding="utf-8"))
        assert raw["items"][0]["pieceNumber"] == "101"
        assert raw["items"][0]["id"] == item.id

    def test_update_bumps_version(self, store):
        item = store.add(PIECE)
        updated = store.update(item.id, {"variation": "B", "id": "ignored"})
        assert updated.version == 2
        assert updated.id == item.id
        assert updated.display_name == "Ridge 101-B"

    def test_stale_update_rejected(self, store):
        item = store.add(PIECE)
        store.update(item.id, {"variation": "B"})
        with pytest.raises(StaleItemError) as exc:
            store.update(item.id, {"variation": "C"}, expected_version=1)
        assert exc.value.actual == 2
        assert store.get(item.id).variation == "B"

    def test_missing_item(self, store):
        with pytest.raises(ItemNotFoundError):
            store.get("nope")
        with pytest.raises(PriceSheetError):
            store.delete("nope")

    def test_delete(self, store):
        item = store.add(PIECE)
        store.delete(item.id)
        assert store.list() == []

    def test_sync(self, store, rate_settings):
        item = store.add(PIECE)
        synced = store.sync(item.id, rate_settings, expected_version=1)
        # 200 labor + 8% surcharge + 5 h overhead at 20/h
        assert synced.cost == pytest.approx(316)
        assert synced.version == 2
        assert store.get(item.id).last_synced_settings["cnc"]["rate"] == 80

    def test_stale_sync_rejected(self, store, rate_settings):
        item = store.add(PIECE)
        store.update(item.id, {"cost": 1})
        with pytest.raises(StaleItemError):
            store.sync(item.id, rate_settings, expected_version=1)

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "sheet.yaml"
        path.write_text("items: [unclosed", encoding="utf-8")
        with pytest.raises(PriceSheetError):
            PriceSheetStore(path).list()

    @pytest.mark.parametrize("text", ["- a\n- b\n", "just text\n", "items: 5\n"])
    def test_unexpected_document_shape(self, tmp_path, text):
        path = tmp_path / "sheet.yaml"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(PriceSheetError):
            PriceSheetStore(path).list()

    def test_manual_price_survives_sync(self, store, rate_settings):
        item = store.add({**PIECE, "manualPrice": 650})
        synced = store.sync(item.id, rate_settings)
        assert synced.manual_price == 650
        assert store.get(item.id).manual_price == 650


class TestSettingsStore:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert SettingsStore(tmp_path / "settings.yaml").load() == RateSettings()

    def test_save_and_load(self, tmp_path, rate_settings):
        settings_store = SettingsStore(tmp_path / "nested" / "settings.yaml")
        settings_store.save(rate_settings)
        assert settings_store.load() == rate_settings

    def test_invalid_settings(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("materials:\n  sheet: 12\n", encoding="utf-8")
        with pytest.raises(PriceSheetError):
            SettingsStore(path).load()
