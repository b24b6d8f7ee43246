# src/models/events.py

"""Event types: outbound interaction signals and catalog cache inputs."""

from dataclasses import dataclass, field
from typing import Any

from src.models.product import Product
from src.models.seller import Seller

EVENT_VIEW = "view"
EVENT_CONTACT = "contact"
EVENT_FAVORITE_ADD = "favorite_add"
EVENT_FAVORITE_REMOVE = "favorite_remove"
EVENT_STORE_VIEW = "store_view"
INTERACTION_TYPES: frozenset[str] = frozenset({
    EVENT_VIEW,
    EVENT_CONTACT,
    EVENT_FAVORITE_ADD,
    EVENT_FAVORITE_REMOVE,
    EVENT_STORE_VIEW,
})


@dataclass(frozen=True)
class InteractionEvent:
    """A write-once signal sent to the external analytics sink."""

    type: str
    seller_id: str
    timestamp: int
    product_id: str | None = None
    metadata: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )

    def to_record(self) -> dict[str, Any]:
        """Serialise for the sink; ``productId`` only when present."""
        record: dict[str, Any] = {
            "type": self.type,
            "sellerId": self.seller_id,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
        }
        if self.product_id:
            record["productId"] = self.product_id
        return record


# ── Catalog cache inputs ─────────────────────────────────


@dataclass(frozen=True)
class CatalogReplaced:
    """A full product snapshot; the latest one always wins."""

    products: tuple[Product, ...]


@dataclass(frozen=True)
class SellerUpdated:
    """A fresh copy of the seller profile."""

    seller: Seller


@dataclass(frozen=True)
class CatalogLoaded:
    """Seller and products from one delivery, applied together."""

    seller: Seller
    products: tuple[Product, ...]


@dataclass(frozen=True)
class CatalogCleared:
    """Drop everything (seller removed or session torn down)."""


CatalogEvent = (
    CatalogReplaced | SellerUpdated | CatalogLoaded | CatalogCleared
)
