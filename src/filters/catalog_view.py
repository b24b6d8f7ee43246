# src/filters/catalog_view.py

"""Search, category, favourites filtering and sorting of a catalog."""

import logging
from collections import Counter
from dataclasses import dataclass, field

from src.models.product import Product

logger = logging.getLogger("shoplink.filters")

SORT_NEWEST = "newest"
SORT_PRICE_LOW = "price-low"
SORT_PRICE_HIGH = "price-high"
SORT_NAME = "name"
SORT_POPULAR = "popular"
SORT_KEYS: tuple[str, ...] = (
    SORT_NEWEST,
    SORT_PRICE_LOW,
    SORT_PRICE_HIGH,
    SORT_NAME,
    SORT_POPULAR,
)

ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class ViewQuery:
    """The buyer's current browse state."""

    query: str = ""
    category: str = ALL_CATEGORIES
    favorites_only: bool = False
    favorites: frozenset[str] = field(default_factory=frozenset)
    sort_key: str = SORT_NEWEST


class CatalogView:
    """Derive the visible product list from a catalog and a query."""

    @staticmethod
    def haystack(product: Product) -> str:
        """Lower-cased text every search term is matched against."""
        material = product.material or product.specifications.get(
            "materials", ""
        )
        return " ".join((
            product.name,
            product.description,
            product.category,
            product.brand,
            material,
            product.color,
        )).lower()

    @staticmethod
    def matches_search(product: Product, terms: list[str]) -> bool:
        if not terms:
            return True
        text = CatalogView.haystack(product)
        return all(term in text for term in terms)

    @staticmethod
    def matches_category(product: Product, category: str) -> bool:
        if not category or category.lower() == ALL_CATEGORIES:
            return True
        return product.category == category

    @staticmethod
    def sort(products: list[Product], sort_key: str) -> list[Product]:
        """Stable sort; unknown keys fall back to newest first."""
        if sort_key == SORT_PRICE_LOW:
            return sorted(products, key=lambda p: p.price)
        if sort_key == SORT_PRICE_HIGH:
            return sorted(products, key=lambda p: p.price, reverse=True)
        if sort_key == SORT_NAME:
            return sorted(products, key=lambda p: p.display_name.casefold())
        if sort_key == SORT_POPULAR:
            return sorted(
                products,
                key=lambda p: (p.popularity, p.created_at),
                reverse=True,
            )
        if sort_key != SORT_NEWEST:
            logger.debug("Unknown sort key %r, using newest", sort_key)
        return sorted(products, key=lambda p: p.created_at, reverse=True)

    @staticmethod
    def derive(
        products: list[Product],
        query: ViewQuery | None = None,
    ) -> list[Product]:
        """Apply search, category and favourites filters, then sort.

        The filters are a conjunction, so their order does not matter.
        The input list is never modified.
        """
        query = query or ViewQuery()
        terms = query.query.lower().split()

        kept = [
            p for p in products
            if CatalogView.matches_search(p, terms)
            and CatalogView.matches_category(p, query.category)
            and (not query.favorites_only or p.id in query.favorites)
        ]
        return CatalogView.sort(kept, query.sort_key)

    @staticmethod
    def categories(products: list[Product]) -> list[tuple[str, int]]:
        """Category names with product counts, most populated first."""
        counts = Counter(p.category for p in products)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    @staticmethod
    def find(products: list[Product], product_id: str) -> Product | None:
        for product in products:
            if product.id == product_id:
                return product
        return None


derive_view = CatalogView.derive
