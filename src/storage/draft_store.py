# src/storage/draft_store.py

"""Autosaved product-creation form, restored after an interrupted session."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from src.storage.local_store import STORAGE_ERRORS, KeyValueStore

logger = logging.getLogger("shoplink.storage")


class ProductDraftStore:
    """One draft per user under ``productDraft_<userId>``."""

    def __init__(self, storage: KeyValueStore, user_id: str | None) -> None:
        self._storage = storage
        self.key = f"productDraft_{user_id or 'anon'}"

    def save(self, form: Mapping[str, Any]) -> None:
        try:
            payload = json.dumps(dict(form), default=str)
            self._storage.set(self.key, payload)
        except STORAGE_ERRORS:
            logger.warning("Could not save draft %s", self.key, exc_info=True)

    def load(self) -> dict[str, Any] | None:
        """The saved form, or None; a corrupt draft is removed."""
        try:
            raw = self._storage.get(self.key)
        except STORAGE_ERRORS:
            logger.warning("Could not read draft %s", self.key, exc_info=True)
            return None
        if raw is None:
            return None

        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value

        logger.warning("Discarding corrupt draft under %s", self.key)
        self.clear()
        return None

    def clear(self) -> None:
        try:
            self._storage.remove(self.key)
        except STORAGE_ERRORS:
            logger.warning("Could not clear draft %s", self.key, exc_info=True)
