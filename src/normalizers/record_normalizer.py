# src/normalizers/record_normalizer.py

"""Single entry point that routes any raw record to its normaliser."""

from collections.abc import Mapping
from typing import Any

from src.models.product import Product
from src.models.seller import Seller
from src.normalizers.product_normalizer import normalize_product
from src.normalizers.seller_normalizer import normalize_seller

_SELLER_KEYS: frozenset[str] = frozenset({
    "storeName",
    "whatsappNumber",
    "userProfile",
    "sellerData",
    "profile",
    "paymentMethods",
    "deliveryOptions",
    "businessType",
})


def looks_like_seller(raw: Mapping[str, Any]) -> bool:
    """Seller profiles carry store keys and never a price."""
    return "price" not in raw and not _SELLER_KEYS.isdisjoint(raw.keys())


def normalize(
    raw: Any,
    kind: str | None = None,
    now: int | None = None,
) -> Product | Seller:
    """Normalise a product or seller record of any historical shape.

    ``normalize(normalize(x)) == normalize(x)`` for every input.
    """
    if isinstance(raw, Seller) or kind == "seller":
        return normalize_seller(raw, now=now)
    if isinstance(raw, Product) or kind == "product":
        return normalize_product(raw, now=now)
    if isinstance(raw, Mapping) and looks_like_seller(raw):
        return normalize_seller(raw, now=now)
    return normalize_product(raw, now=now)


def normalize_products(
    collection: Any,
    now: int | None = None,
) -> list[Product]:
    """Normalise a remote products collection keyed by product id.

    Lists (sparse arrays from the REST API) are accepted as well; ``None``
    entries are holes left by deletions and are skipped.
    """
    if isinstance(collection, Mapping):
        items = [(str(key), value) for key, value in collection.items()]
    elif isinstance(collection, list):
        items = [(str(idx), value) for idx, value in enumerate(collection)]
    else:
        return []
    return [
        normalize_product(value, product_id=key, now=now)
        for key, value in items
        if value is not None
    ]
