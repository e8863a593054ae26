import logging
import os
import yaml
from typing import Any, Optional

from vms.config import settings

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Key/value state kept on the contractor's machine between runs,
    the way the browser flow keeps `contractorId` and `lastScore` in local storage.
    An in-memory store is used when no path is given.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._items = self._load()

    def _load(self) -> dict:
        if not self.path or not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed state file {self.path}")
            return {}
        return data

    def _save(self):
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as file:
            yaml.safe_dump(self._items, file, default_flow_style=False)

    def get_item(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def set_item(self, key: str, value: Any):
        self._items[key] = value
        self._save()

    def remove_item(self, key: str):
        if self._items.pop(key, None) is not None:
            self._save()

    def clear(self):
        self._items = {}
        self._save()

    @property
    def contractor_id(self) -> Optional[str]:
        value = self.get_item(settings.CONTRACTOR_ID_KEY)
        return str(value) if value not in (None, "") else None

    @contractor_id.setter
    def contractor_id(self, value: Optional[str]):
        if value:
            self.set_item(settings.CONTRACTOR_ID_KEY, str(value))
        else:
            self.remove_item(settings.CONTRACTOR_ID_KEY)

    @property
    def last_score(self) -> Optional[int]:
        value = self.get_item(settings.LAST_SCORE_KEY)
        return int(value) if value is not None else None

    @last_score.setter
    def last_score(self, value: Optional[int]):
        if value is None:
            self.remove_item(settings.LAST_SCORE_KEY)
        else:
            self.set_item(settings.LAST_SCORE_KEY, int(value))


def default_store() -> LocalStore:
    return LocalStore(settings.STATE_FILE)
