# src/storage/favorites_store.py

"""Per-seller favourite product ids, persisted on the viewer's device."""

import json
import logging

from src.models.events import EVENT_FAVORITE_ADD, EVENT_FAVORITE_REMOVE
from src.services.interaction_tracker import InteractionTracker
from src.storage.local_store import STORAGE_ERRORS, KeyValueStore

logger = logging.getLogger("shoplink.storage")


class FavoritesStore:
    """The set of favourite product ids for one seller.

    Stored as a sorted JSON list under ``<namespace>_<sellerId>``.
    A persistence fault never undoes an in-memory toggle.
    """

    def __init__(
        self,
        seller_id: str,
        storage: KeyValueStore,
        tracker: InteractionTracker | None = None,
        namespace: str = "favorites",
    ) -> None:
        self.seller_id = seller_id
        self.key = f"{namespace}_{seller_id}"
        self._storage = storage
        self._tracker = tracker
        self._ids: set[str] = set()

    def load(self) -> frozenset[str]:
        """Read the persisted set; a corrupt value resets it to empty."""
        try:
            raw = self._storage.get(self.key)
        except STORAGE_ERRORS:
            logger.warning(
                "Could not read favourites for %s",
                self.seller_id,
                exc_info=True,
            )
            self._ids = set()
            return self.ids

        self._ids = self._parse(raw)
        return self.ids

    def _parse(self, raw: str | None) -> set[str]:
        if raw is None:
            return set()
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return set(value)

        logger.warning(
            "Discarding corrupt favourites under %s: %r", self.key, raw[:80],
        )
        try:
            self._storage.remove(self.key)
        except STORAGE_ERRORS:
            logger.warning("Could not clear %s", self.key, exc_info=True)
        return set()

    def _persist(self) -> None:
        try:
            self._storage.set(self.key, json.dumps(sorted(self._ids)))
        except STORAGE_ERRORS:
            logger.warning(
                "Could not persist favourites for %s",
                self.seller_id,
                exc_info=True,
            )

    def toggle(self, product_id: str) -> bool:
        """Flip membership; returns True when *product_id* is now a favourite."""
        if product_id in self._ids:
            self._ids.discard(product_id)
            added = False
        else:
            self._ids.add(product_id)
            added = True
        self._persist()

        if self._tracker is not None:
            self._tracker.track(
                EVENT_FAVORITE_ADD if added else EVENT_FAVORITE_REMOVE,
                self.seller_id,
                product_id=product_id,
            )
        return added

    def contains(self, product_id: str) -> bool:
        return product_id in self._ids

    __contains__ = contains

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)
