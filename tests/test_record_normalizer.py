# tests/test_record_normalizer.py

"""Tests for record dispatch and collection normalisation."""

import unittest
from typing import Any

from src.models.product import Product
from src.models.seller import Seller
from src.normalizers.record_normalizer import (
    looks_like_seller,
    normalize,
    normalize_products,
)

NOW = 1_700_000_000_000


class TestDispatch(unittest.TestCase):
    def test_product_record(self) -> None:
        result = normalize({"name": "Bag", "price": 10}, now=NOW)
        self.assertIsInstance(result, Product)

    def test_seller_record(self) -> None:
        result = normalize({"storeName": "Shop", "whatsappNumber": "x"}, now=NOW)
        self.assertIsInstance(result, Seller)

    def test_price_forces_product(self) -> None:
        self.assertFalse(looks_like_seller({"storeName": "x", "price": 2}))

    def test_explicit_kind(self) -> None:
        self.assertIsInstance(normalize({}, kind="seller", now=NOW), Seller)
        self.assertIsInstance(normalize({}, kind="product", now=NOW), Product)

    def test_unknown_input_is_product(self) -> None:
        self.assertIsInstance(normalize(None, now=NOW), Product)

    def test_idempotent_for_both_kinds(self) -> None:
        records: list[Any] = [
            {"name": "Bag", "price": "10", "images": ["a.jpg"]},
            {"userProfile": {"storeName": "Shop"}},
            {"storeName": "Shop", "paymentMethods": {"cash": True}},
            "not a record",
        ]
        for raw in records:
            with self.subTest(raw=raw):
                once = normalize(raw, now=NOW)
                self.assertEqual(normalize(once, now=NOW + 1), once)


class TestNormalizeProducts(unittest.TestCase):
    def test_keyed_collection_uses_keys_as_ids(self) -> None:
        products = normalize_products(
            {"-Na": {"name": "A", "price": 1}, "-Nb": {"name": "B", "price": 2}},
            now=NOW,
        )
        self.assertEqual([p.id for p in products], ["-Na", "-Nb"])

    def test_sparse_list_skips_holes(self) -> None:
        products = normalize_products([None, {"name": "A"}, None], now=NOW)
        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].id, "1")

    def test_non_collection_is_empty(self) -> None:
        self.assertEqual(normalize_products(None), [])
        self.assertEqual(normalize_products("junk"), [])
