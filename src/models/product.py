# src/models/product.py

"""Canonical product model shared by every catalog component."""

from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings

STATUS_ACTIVE = "active"
STATUS_OUT_OF_STOCK = "out-of-stock"
STATUS_ARCHIVED = "archived"
PRODUCT_STATUSES: frozenset[str] = frozenset(
    {STATUS_ACTIVE, STATUS_OUT_OF_STOCK, STATUS_ARCHIVED}
)

INVALID_PRODUCT_NAME = "Invalid product"

SPECIFICATION_DEFAULTS: dict[str, str] = {
    "dimensions": "",
    "weight": "",
    "materials": "",
    "care": "",
    "condition": "New",
    "origin": "",
}


@dataclass
class ProductImages:
    """Primary image plus an ordered gallery of secondary images."""

    primary: str = ""
    gallery: list[str] = field(default_factory=lambda: list[str]())


@dataclass
class ProductAnalytics:
    """Engagement counters; always present, zero by default."""

    views: int = 0
    contacts: int = 0
    orders: int = 0
    favorites: int = 0


@dataclass
class Product:
    """A single listing in a seller's catalog, in canonical shape."""

    id: str
    name: str
    price: float = 0.0
    quantity: int = 0
    category: str = Settings.DEFAULT_CATEGORY
    subcategory: str = ""
    description: str = ""
    short_description: str = ""
    images: ProductImages = field(default_factory=ProductImages)
    specifications: dict[str, str] = field(
        default_factory=lambda: dict(SPECIFICATION_DEFAULTS)
    )
    features: list[str] = field(default_factory=lambda: list[str]())
    tags: list[str] = field(default_factory=lambda: list[str]())
    brand: str = ""
    material: str = ""
    color: str = ""
    sku: str = ""
    status: str = STATUS_ACTIVE
    featured: bool = False
    analytics: ProductAnalytics = field(default_factory=ProductAnalytics)
    created_at: int = 0
    updated_at: int = 0

    @property
    def image_url(self) -> str:
        """Primary image, or the placeholder when none was uploaded."""
        return self.images.primary or Settings.PLACEHOLDER_IMAGE

    @property
    def all_images(self) -> list[str]:
        """Primary + gallery, falling back to a single placeholder."""
        images = [self.images.primary] if self.images.primary else []
        images.extend(self.images.gallery)
        return images or [Settings.PLACEHOLDER_IMAGE]

    @property
    def display_name(self) -> str:
        return self.name.strip() or INVALID_PRODUCT_NAME

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < Settings.LOW_STOCK_THRESHOLD

    @property
    def is_sellable(self) -> bool:
        """True when the listing satisfies the price/quantity invariant."""
        return (
            bool(self.name.strip())
            and self.price > 0
            and self.quantity >= 0
        )

    @property
    def popularity(self) -> int:
        return self.analytics.views + self.analytics.favorites

    @property
    def has_specs(self) -> bool:
        return any(v for v in self.specifications.values())

    @property
    def has_features(self) -> bool:
        return bool(self.features)

    def to_record(self) -> dict[str, Any]:
        """Serialise to the remote store's camelCase record shape."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "category": self.category,
            "subcategory": self.subcategory,
            "description": {
                "short": self.short_description,
                "full": self.description,
            },
            "images": {
                "primary": self.images.primary,
                "gallery": list(self.images.gallery),
            },
            "specifications": dict(self.specifications),
            "features": list(self.features),
            "tags": list(self.tags),
            "brand": self.brand,
            "material": self.material,
            "color": self.color,
            "sku": self.sku,
            "status": self.status,
            "featured": self.featured,
            "analytics": {
                "views": self.analytics.views,
                "contacts": self.analytics.contacts,
                "orders": self.analytics.orders,
                "favorites": self.analytics.favorites,
            },
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
