# src/storage/catalog_cache.py

"""In-memory catalog for the mounted seller, swapped atomically."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from src.models.events import (
    CatalogCleared,
    CatalogEvent,
    CatalogLoaded,
    CatalogReplaced,
    SellerUpdated,
)
from src.models.product import STATUS_ARCHIVED, Product
from src.models.seller import Seller
from src.remote.store_adapter import CatalogPayload

logger = logging.getLogger("shoplink.cache")

Listener = Callable[["CatalogSnapshot"], None]


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the cache at one version."""

    seller: Seller | None = None
    products: tuple[Product, ...] = ()
    version: int = 0
    loaded: bool = False


class CatalogCache:
    """Holds the latest full product collection for one seller.

    Every mutation goes through :meth:`dispatch`, which builds a new
    :class:`CatalogSnapshot` and swaps it in with a single assignment.
    Readers therefore see either the old or the new collection, never a
    mixture.
    """

    def __init__(self) -> None:
        self._snapshot = CatalogSnapshot()
        self._listeners: list[Listener] = []

    # ── Mutation ─────────────────────────────────────────

    def dispatch(self, event: CatalogEvent) -> CatalogSnapshot:
        current = self._snapshot
        version = current.version + 1
        if isinstance(event, CatalogReplaced):
            new = replace(
                current,
                products=tuple(event.products),
                version=version,
                loaded=True,
            )
        elif isinstance(event, SellerUpdated):
            new = replace(current, seller=event.seller, version=version)
        elif isinstance(event, CatalogLoaded):
            new = replace(
                current,
                seller=event.seller,
                products=tuple(event.products),
                version=version,
                loaded=True,
            )
        elif isinstance(event, CatalogCleared):
            new = CatalogSnapshot(version=version)
        else:
            raise TypeError(f"Unknown catalog event: {event!r}")

        self._snapshot = new
        logger.debug(
            "Catalog v%d: %s (%d products)",
            new.version,
            type(event).__name__,
            len(new.products),
        )
        self._notify(new)
        return new

    def replace_products(self, products: list[Product]) -> CatalogSnapshot:
        return self.dispatch(CatalogReplaced(products=tuple(products)))

    def update_seller(self, seller: Seller) -> CatalogSnapshot:
        return self.dispatch(SellerUpdated(seller=seller))

    def apply_payload(self, payload: CatalogPayload) -> CatalogSnapshot:
        """Seller and products in one swap; listeners are told once."""
        return self.dispatch(
            CatalogLoaded(seller=payload.seller, products=payload.products)
        )

    def clear(self) -> CatalogSnapshot:
        return self.dispatch(CatalogCleared())

    # ── Reads ────────────────────────────────────────────

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def seller(self) -> Seller | None:
        return self._snapshot.seller

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.loaded

    def get_all(self) -> list[Product]:
        return list(self._snapshot.products)

    def get_visible(self) -> list[Product]:
        """Every product a buyer may see (archived ones are hidden)."""
        return [
            p for p in self._snapshot.products if p.status != STATUS_ARCHIVED
        ]

    # ── Listeners ────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: CatalogSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.error("Catalog listener failed", exc_info=True)
