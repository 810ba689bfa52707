# glossary_bot/glossary_store.py

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from glossary_bot.models import AddResult, GlossaryValue
from glossary_bot.normalizer import (
    is_valid_key,
    is_valid_value,
    normalize_key,
    normalize_value,
)
from glossary_bot.persistence import Persistence

logger = logging.getLogger("glossary_bot")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class GlossaryStore:
    """
    CRUD over the key -> value-list mapping.

    Every mutation is read-modify-write of the whole list: load, change in
    memory, write the full list back (or delete the key when it ends up empty).
    Nothing here serializes concurrent writers on the same key, so two
    overlapping mutations can lose an update.

    Back-end faults never escape: reads degrade to "absent", writes to
    False / AddResult.ERROR, and the fault goes to the log.
    """

    def __init__(self, persistence: Persistence, clock: Callable[[], str] = _utc_now_iso):
        self.persistence = persistence
        self.clock = clock

    # -----------------------
    # Reads
    # -----------------------

    def get_values(self, key: str) -> Optional[List[GlossaryValue]]:
        if not is_valid_key(key):
            return None

        try:
            entry = self.persistence.read_entry(normalize_key(key))
        except Exception as e:
            logger.error("Error reading glossary entry key=%r: %s", key, e)
            return None

        if not entry:
            return None

        values = entry.get("values")
        if not isinstance(values, list) or len(values) == 0:
            return None

        return [GlossaryValue.from_dict(item) for item in values if isinstance(item, dict)]

    def get_display_values(self, key: str) -> Optional[List[str]]:
        entry = self.get_values(key)
        if not entry:
            return None
        return [item.value for item in entry if item.value]

    # -----------------------
    # Writes
    # -----------------------

    def _save_values(self, key: str, values: List[GlossaryValue]) -> None:
        if not is_valid_key(key):
            raise ValueError("Cannot save values: invalid key")
        self.persistence.replace_entry(
            normalize_key(key),
            {"values": [item.to_dict() for item in values]},
        )

    def add_value(self, key: str, value: str, author: str) -> AddResult:
        if not is_valid_key(key) or not is_valid_value(value):
            return AddResult.ERROR

        try:
            clean_value = value.strip()
            target = normalize_value(clean_value)
            existing = self.get_values(key) or []

            if any(normalize_value(item.value) == target for item in existing):
                return AddResult.DUPLICATE

            new_values = existing + [
                GlossaryValue(
                    value=clean_value,
                    created_at=self.clock(),
                    created_by=author,
                )
            ]
            self._save_values(key, new_values)
            return AddResult.ADDED
        except Exception as e:
            logger.error("Error adding value key=%r: %s", key, e)
            return AddResult.ERROR

    def remove_key(self, key: str) -> bool:
        if not is_valid_key(key):
            return False

        if not self.get_values(key):
            return False

        try:
            self.persistence.delete_entry(normalize_key(key))
            logger.debug("Key removed from DB key=%r", normalize_key(key))
            return True
        except Exception as e:
            logger.error("Error removing key=%r: %s", key, e)
            return False

    def remove_value(self, key: str, value: str) -> bool:
        if not is_valid_key(key) or not is_valid_value(value):
            return False

        entry = self.get_values(key)
        if not entry:
            return False

        target = normalize_value(value)
        # records without a value are never matched
        filtered = [item for item in entry if not item.value or normalize_value(item.value) != target]

        if len(filtered) == len(entry):
            return False

        try:
            if len(filtered) == 0:
                self.persistence.delete_entry(normalize_key(key))
            else:
                self._save_values(key, filtered)

            logger.debug("Value removed from DB key=%r value=%r", normalize_key(key), value)
            return True
        except Exception as e:
            logger.error("Error removing value key=%r value=%r: %s", key, value, e)
            return False
