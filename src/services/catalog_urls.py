# src/services/catalog_urls.py

"""Public catalog URLs: ``<origin>/store/<sellerId>#<productId>``."""

from dataclasses import dataclass
from urllib.parse import quote, unquote, urlsplit

from src.config.settings import Settings


@dataclass(frozen=True)
class CatalogLocation:
    seller_id: str
    product_id: str | None = None


def _origin(origin: str | None) -> str:
    return (origin or Settings.PUBLIC_ORIGIN).rstrip("/")


def store_url(seller_id: str, origin: str | None = None) -> str:
    return f"{_origin(origin)}/store/{quote(seller_id, safe='')}"


def product_url(
    seller_id: str,
    product_id: str,
    origin: str | None = None,
) -> str:
    return f"{store_url(seller_id, origin)}#{quote(product_id, safe='')}"


def parse_catalog_url(url: str) -> CatalogLocation | None:
    """Seller and optional product from a catalog URL; None if not one."""
    parts = urlsplit(url.strip())
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) < 2 or segments[-2] != "store":
        return None
    product_id = unquote(parts.fragment) if parts.fragment else None
    return CatalogLocation(
        seller_id=unquote(segments[-1]),
        product_id=product_id or None,
    )
