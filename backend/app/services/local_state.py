"""Device-local bookkeeping of row ids (opened quotes, hidden and read emails).

Nothing here is mirrored to the database. When a path is given the sets are
persisted as a JSON object of ``key -> [ids]``; unreadable or malformed
storage is treated as empty.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from backend.app.core.constants import EMAIL_READ_STATUS_PREFIX

logger = logging.getLogger(__name__)


def email_read_status_key(user_id: str) -> str:
    return f"{EMAIL_READ_STATUS_PREFIX}{user_id}"


class LocalStateStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, Set[str]] = self._load()

    def _load(self) -> Dict[str, Set[str]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"[LOCAL_STATE] Ignoring unreadable store {self.path}: {exc}")
            return {}
        if not isinstance(raw, dict):
            return {}
        data: Dict[str, Set[str]] = {}
        for key, ids in raw.items():
            if isinstance(ids, list):
                data[key] = {str(item) for item in ids}
        return data

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {key: sorted(ids) for key, ids in self._data.items()}
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def keys(self):
        return list(self._data.keys())

    def get(self, key: str) -> Set[str]:
        return set(self._data.get(key, set()))

    def set(self, key: str, ids: Iterable[str]) -> None:
        self._data[key] = {str(item) for item in ids}
        self._save()

    def add(self, key: str, item_id: str) -> None:
        self._data.setdefault(key, set()).add(str(item_id))
        self._save()

    def discard(self, key: str, item_id: str) -> bool:
        ids = self._data.get(key)
        if not ids or str(item_id) not in ids:
            return False
        ids.discard(str(item_id))
        self._save()
        return True

    def discard_everywhere(self, item_id: str) -> None:
        """Remove an id from every tracked set."""
        changed = False
        for ids in self._data.values():
            if str(item_id) in ids:
                ids.discard(str(item_id))
                changed = True
        if changed:
            self._save()
