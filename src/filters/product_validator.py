# src/filters/product_validator.py

"""Product validation: field errors on create, display fallback on read."""

import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from src.models.product import (
    STATUS_ACTIVE,
    STATUS_OUT_OF_STOCK,
    Product,
)
from src.normalizers.coercion import to_number, to_text
from src.normalizers.product_normalizer import normalize_product, parse_images

logger = logging.getLogger("shoplink.filters")

_WHOLE_NUMBER_RE = re.compile(r"^\d+$")

ERROR_NAME = "Product name is required"
ERROR_PRICE = "Price must be greater than 0"
ERROR_QUANTITY = "Quantity must be a whole number, 0 or more"
ERROR_CATEGORY = "Category is required"
ERROR_IMAGE = "At least one product image is required"


class ProductValidationError(ValueError):
    """Raised before any write when a product form is invalid."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(
            "Invalid product: " + ", ".join(sorted(errors))
        )
        self.errors = dict(errors)


def parse_quantity(value: Any) -> int | None:
    """Whole, non-negative quantity or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    text = to_text(value)
    return int(text) if _WHOLE_NUMBER_RE.match(text) else None


class ProductValidator:
    """Validate product forms and catalog entries."""

    @staticmethod
    def validate_input(form: Mapping[str, Any]) -> dict[str, str]:
        """Field name → error message; empty when the form is valid."""
        errors: dict[str, str] = {}
        if not to_text(form.get("name")):
            errors["name"] = ERROR_NAME
        if to_number(form.get("price")) <= 0:
            errors["price"] = ERROR_PRICE
        if parse_quantity(form.get("quantity")) is None:
            errors["quantity"] = ERROR_QUANTITY
        if not to_text(form.get("category")):
            errors["category"] = ERROR_CATEGORY
        if not parse_images(form).primary:
            errors["images"] = ERROR_IMAGE
        return errors

    @staticmethod
    def build_product(
        form: Mapping[str, Any],
        now: int | None = None,
    ) -> Product:
        """Canonical product from a valid form.

        Raises :class:`ProductValidationError` listing every bad field.
        """
        errors = ProductValidator.validate_input(form)
        if errors:
            logger.info("Rejected product form: %s", sorted(errors))
            raise ProductValidationError(errors)

        record = dict(form)
        record.pop("id", None)
        record.pop("status", None)
        record.pop("createdAt", None)
        record.pop("updatedAt", None)
        return normalize_product(record, now=now)

    @staticmethod
    def validate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Keep every product but stop invalid ones from being bought.

        Invalid entries render as "Invalid product" and are marked out of
        stock. Returns the list and the count of invalid items.
        """
        checked: list[Product] = []
        invalid = 0

        for product in products:
            if product.is_sellable:
                checked.append(product)
                continue
            invalid += 1
            logger.debug(
                "Invalid product %s (name=%r, price=%s)",
                product.id,
                product.name,
                product.price,
            )
            if product.status == STATUS_ACTIVE:
                product = replace(product, status=STATUS_OUT_OF_STOCK)
            checked.append(product)

        if invalid:
            logger.info(
                "Validation flagged %d invalid products",
                invalid,
            )

        return checked, invalid
