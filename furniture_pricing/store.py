from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import PriceSheetItem, RateSettings
from .sync.resync import sync_item

logger = logging.getLogger(__name__)


class PriceSheetError(Exception):
    """Base error for price sheet and settings persistence."""


class ItemNotFoundError(PriceSheetError):
    def __init__(self, item_id: str):
        super().__init__(f"Entry not found: {item_id}")
        self.item_id = item_id


class StaleItemError(PriceSheetError):
    def __init__(self, item_id: str, expected: int, actual: int):
        super().__init__(f"Entry {item_id} is at version {actual}, expected {expected}")
        self.item_id = item_id
        self.expected = expected
        self.actual = actual


def _load_yaml(path: Path) -> Dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise PriceSheetError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise PriceSheetError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def _save_yaml(path: Path, data: Dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    tmp.replace(path)


class SettingsStore:
    """Single rate-settings document on disk."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> RateSettings:
        if not self.path.exists():
            return RateSettings()
        try:
            return RateSettings.model_validate(_load_yaml(self.path))
        except ValidationError as e:
            raise PriceSheetError(f"Invalid settings in {self.path}: {e}") from e

    def save(self, settings: RateSettings) -> None:
        _save_yaml(self.path, settings.snapshot())
        logger.info("saved rate settings to %s", self.path)


class PriceSheetStore:
    """Price sheet kept as a YAML document ``{items: [...]}``.

    Every write bumps the item's ``version``. Passing ``expected_version`` to
    ``update`` or ``sync`` rejects the write if someone else saved first.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> List[PriceSheetItem]:
        if not self.path.exists():
            return []
        raw = _load_yaml(self.path).get("items") or []
        if not isinstance(raw, list):
            raise PriceSheetError(f"Invalid price sheet in {self.path}: items must be a list")
        try:
            return [PriceSheetItem.model_validate(r) for r in raw]
        except ValidationError as e:
            raise PriceSheetError(f"Invalid price sheet in {self.path}: {e}") from e

    def _write(self, items: List[PriceSheetItem]) -> None:
        _save_yaml(self.path, {"items": [i.as_dict() for i in items]})

    def _index(self, items: List[PriceSheetItem], item_id: str) -> int:
        for n, item in enumerate(items):
            if item.id == str(item_id):
                return n
        raise ItemNotFoundError(item_id)

    def list(self) -> List[PriceSheetItem]:
        return self._read()

    def get(self, item_id: str) -> PriceSheetItem:
        items = self._read()
        return items[self._index(items, item_id)]

    def add(self, data: Dict[str, Any]) -> PriceSheetItem:
        data = {k: v for k, v in dict(data).items() if k not in ("id", "_id", "version")}
        item = PriceSheetItem.model_validate(data).model_copy(update={"id": uuid.uuid4().hex, "version": 1})
        items = self._read()
        items.append(item)
        self._write(items)
        logger.info("added %s (%s)", item.display_name, item.id)
        return item

    def _replace(self, item_id: str, new: PriceSheetItem, expected_version: Optional[int]) -> PriceSheetItem:
        items = self._read()
        n = self._index(items, item_id)
        current = items[n]
        if expected_version is not None and current.version != expected_version:
            raise StaleItemError(item_id, expected_version, current.version)
        items[n] = new.model_copy(update={"id": current.id, "version": current.version + 1})
        self._write(items)
        return items[n]

    def update(self, item_id: str, data: Dict[str, Any], expected_version: Optional[int] = None) -> PriceSheetItem:
        data = {k: v for k, v in dict(data).items() if k not in ("id", "_id", "version")}
        current = self.get(item_id)
        merged = PriceSheetItem.model_validate({**current.as_dict(), **data})
        updated = self._replace(item_id, merged, expected_version)
        logger.info("updated %s (%s)", updated.display_name, updated.id)
        return updated

    def delete(self, item_id: str) -> None:
        items = self._read()
        del items[self._index(items, item_id)]
        self._write(items)
        logger.info("deleted %s", item_id)

    def sync(
        self,
        item_id: str,
        settings: RateSettings,
        expected_version: Optional[int] = None,
        preserve_wood_overrides: bool = False,
    ) -> PriceSheetItem:
        current = self.get(item_id)
        if expected_version is not None and current.version != expected_version:
            raise StaleItemError(item_id, expected_version, current.version)
        synced = sync_item(current, settings, preserve_wood_overrides=preserve_wood_overrides)
        return self._replace(item_id, synced, current.version if expected_version is None else expected_version)
