# src/filters/deduplicator.py

"""Collapse repeated listings of the same product in a storefront."""

import logging
import re

from src.models.product import Product

logger = logging.getLogger("shoplink.filters")


class ListingDeduplicator:
    """Keep one listing per product name, preferring the newest."""

    _NON_ALNUM_RE = re.compile(r"[^\w\s]")

    @staticmethod
    def _normalise_name(name: str) -> str:
        """Case-folded name with punctuation dropped and spaces collapsed."""
        folded = ListingDeduplicator._NON_ALNUM_RE.sub("", name.casefold())
        return " ".join(folded.split())

    @staticmethod
    def deduplicate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Remove same-name listings.

        A duplicate replaces the kept listing in place when it was created
        later, so the surrounding order is preserved. Unnamed products are
        never merged. Returns the kept list and the count removed.
        """
        if not products:
            return [], 0

        seen: dict[str, int] = {}
        kept: list[Product] = []
        removed = 0

        for product in products:
            key = ListingDeduplicator._normalise_name(product.name)
            if not key:
                kept.append(product)
                continue

            if key in seen:
                idx = seen[key]
                if product.created_at > kept[idx].created_at:
                    kept[idx] = product
                removed += 1
                continue

            seen[key] = len(kept)
            kept.append(product)

        if removed:
            logger.debug(
                "Collapsed %d duplicate listings",
                removed,
            )

        return kept, removed
