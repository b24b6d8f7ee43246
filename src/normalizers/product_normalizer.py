# src/normalizers/product_normalizer.py

"""Turn any historical product record shape into a canonical Product.

Three generations of product records live side by side in the remote
store:

* v1, flat: ``imageUrl`` string, ``description`` string, no status.
* v2, ``images`` array (of URLs, or of upload objects carrying
  ``url``/``downloadURL``), ``isActive`` flag.
* v3, ``images: {primary, gallery}``, ``description: {short, full}``,
  ``status`` enum, nested ``specifications`` and ``analytics``.

Every shape is parsed once, here, at the boundary. Downstream code only
ever sees :class:`~src.models.product.Product`.
"""

import logging
from collections.abc import Mapping
from typing import Any

from src.config.settings import Settings
from src.models.product import (
    PRODUCT_STATUSES,
    SPECIFICATION_DEFAULTS,
    STATUS_ACTIVE,
    STATUS_ARCHIVED,
    STATUS_OUT_OF_STOCK,
    Product,
    ProductAnalytics,
    ProductImages,
)
from src.normalizers.coercion import (
    first_present,
    now_ms,
    to_bool,
    to_int,
    to_number,
    to_text,
    to_text_list,
    to_text_map,
    to_timestamp,
)

logger = logging.getLogger("shoplink.normalizers")

_URL_KEYS: tuple[str, ...] = ("url", "downloadURL", "src", "href", "link")
_LEGACY_IMAGE_KEYS: tuple[str, ...] = (
    "imageUrl",
    "image",
    "productImage",
    "photoURL",
)

_STATUS_ALIASES: dict[str, str] = {
    "out_of_stock": STATUS_OUT_OF_STOCK,
    "outofstock": STATUS_OUT_OF_STOCK,
    "sold-out": STATUS_OUT_OF_STOCK,
    "sold_out": STATUS_OUT_OF_STOCK,
    "soldout": STATUS_OUT_OF_STOCK,
    "deleted": STATUS_ARCHIVED,
    "inactive": STATUS_ARCHIVED,
    "hidden": STATUS_ARCHIVED,
    "draft": STATUS_ARCHIVED,
}

_ELLIPSIS = "..."


def shorten(text: str, limit: int | None = None) -> str:
    """Cut *text* to at most *limit* characters, ellipsized if cut."""
    limit = limit or Settings.SHORT_DESCRIPTION_LIMIT
    if len(text) <= limit:
        return text
    return text[: limit - len(_ELLIPSIS)].rstrip() + _ELLIPSIS


# ── Field parsers ────────────────────────────────────────


def _image_ref(value: Any) -> str:
    """A single image reference from a URL string or upload object."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return to_text(first_present(value, *_URL_KEYS))
    return ""


def _dedupe(refs: list[str]) -> list[str]:
    seen: set[str] = set()
    kept: list[str] = []
    for ref in refs:
        if ref and ref not in seen:
            seen.add(ref)
            kept.append(ref)
    return kept


def parse_images(raw: Mapping[str, Any]) -> ProductImages:
    """Resolve every historical ``images`` shape to primary + gallery."""
    value = raw.get("images")
    refs: list[str]

    if isinstance(value, Mapping) and (
        "primary" in value or "gallery" in value
    ):
        gallery = value.get("gallery")
        gallery_items = gallery if isinstance(gallery, list) else [gallery]
        refs = [_image_ref(value.get("primary"))]
        refs.extend(_image_ref(item) for item in gallery_items)
        if not refs[0]:
            refs = refs[1:]
    elif isinstance(value, Mapping):
        refs = [_image_ref(item) for item in value.values()]
    elif isinstance(value, (list, tuple)):
        refs = [_image_ref(item) for item in value]
    else:
        refs = [_image_ref(value)]

    refs = _dedupe(refs)
    if not refs:
        legacy = _image_ref(first_present(raw, *_LEGACY_IMAGE_KEYS))
        refs = [legacy] if legacy else []

    if not refs:
        return ProductImages()
    return ProductImages(primary=refs[0], gallery=refs[1:])


def parse_description(raw: Mapping[str, Any]) -> tuple[str, str]:
    """Return ``(full, short)``; *short* is always derived from *full*."""
    value = raw.get("description")
    if isinstance(value, Mapping):
        full = to_text(value.get("full")) or to_text(value.get("short"))
    else:
        full = to_text(value)
    return full, shorten(full)


def parse_name(raw: Mapping[str, Any]) -> str:
    value = raw.get("name")
    if isinstance(value, Mapping):
        return to_text(value.get("full")) or to_text(value.get("short"))
    return to_text(first_present(raw, "name", "title"))


def parse_status(raw: Mapping[str, Any], quantity: int) -> str:
    status = to_text(raw.get("status")).lower()
    if status in PRODUCT_STATUSES:
        return status
    if status in _STATUS_ALIASES:
        return _STATUS_ALIASES[status]
    if "isActive" in raw and not to_bool(raw.get("isActive")):
        return STATUS_ARCHIVED
    return STATUS_ACTIVE if quantity > 0 else STATUS_OUT_OF_STOCK


def parse_specifications(raw: Mapping[str, Any]) -> dict[str, str]:
    specs = dict(SPECIFICATION_DEFAULTS)
    specs.update(to_text_map(raw.get("specifications")))
    return specs


def parse_analytics(raw: Mapping[str, Any]) -> ProductAnalytics:
    value = raw.get("analytics")
    if not isinstance(value, Mapping):
        return ProductAnalytics()
    return ProductAnalytics(
        views=to_int(value.get("views")),
        contacts=to_int(value.get("contacts")),
        orders=to_int(value.get("orders")),
        favorites=to_int(value.get("favorites")),
    )


# ── Entry point ──────────────────────────────────────────


def normalize_product(
    raw: Any,
    product_id: str | None = None,
    now: int | None = None,
) -> Product:
    """Build a canonical :class:`Product` from any record shape.

    *product_id* overrides the id embedded in the record (remote
    collections key products by id rather than storing it inline).
    *now* is the fallback for missing timestamps. Never raises.
    """
    if isinstance(raw, Product):
        raw = raw.to_record()
    if not isinstance(raw, Mapping):
        logger.debug(
            "Product record is %s, using empty defaults",
            type(raw).__name__,
        )
        raw = {}

    fallback_time = now if now is not None else now_ms()
    created_at = to_timestamp(
        first_present(raw, "createdAt", "created_at"), fallback_time
    )
    updated_at = to_timestamp(
        first_present(raw, "updatedAt", "lastUpdated", "updated_at"),
        created_at,
    )

    quantity = to_int(first_present(raw, "quantity", "stock"))
    full, short = parse_description(raw)
    specs = parse_specifications(raw)

    product = Product(
        id=product_id or to_text(first_present(raw, "id", "productId")),
        name=parse_name(raw),
        price=to_number(raw.get("price")),
        quantity=quantity,
        category=to_text(raw.get("category")) or Settings.DEFAULT_CATEGORY,
        subcategory=to_text(raw.get("subcategory")),
        description=full,
        short_description=short,
        images=parse_images(raw),
        specifications=specs,
        features=to_text_list(raw.get("features")),
        tags=to_text_list(raw.get("tags")),
        brand=to_text(raw.get("brand")),
        material=to_text(raw.get("material")),
        color=to_text(first_present(raw, "color", "colour")),
        sku=to_text(raw.get("sku")),
        status=parse_status(raw, quantity),
        featured=to_bool(raw.get("featured")),
        analytics=parse_analytics(raw),
        created_at=created_at,
        updated_at=updated_at,
    )

    if not product.is_sellable:
        logger.debug(
            "Product %r is not sellable (name=%r, price=%s)",
            product.id,
            product.name,
            product.price,
        )
    return product
