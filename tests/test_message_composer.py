# tests/test_message_composer.py

"""Tests for WhatsApp message composition and deep links."""

import unittest
from urllib.parse import parse_qs, unquote, urlsplit

from src.models.product import Product
from src.models.seller import Seller
from src.normalizers.seller_normalizer import normalize_seller
from src.services import message_composer as composer
from src.services.message_composer import (
    CustomerInfo,
    OrderDetails,
    format_price,
)


def _seller(**overrides: object) -> Seller:
    fields: dict[str, object] = {
        "id": "s1",
        "store_name": "Ama's Closet",
        "whatsapp_number": "+233241234567",
        "currency": "GHS",
    }
    fields.update(overrides)
    return Seller(**fields)  # type: ignore[arg-type]


def _product() -> Product:
    return Product(
        id="-NabcXYZ123", name="Kente Scarf", price=1250.5, quantity=2,
        category="Fashion",
    )


class TestFormatPrice(unittest.TestCase):
    def test_cases(self) -> None:
        cases = [
            (45.5, "GHS", "₵45.50"),
            (1250.5, "NGN", "₦1,250.50"),
            (10, "USD", "$10.00"),
            (1999.6, "JPY", "¥2,000"),
            (5, "XYZ", "XYZ5.00"),
            (5, None, "₵5.00"),
            (0, "ghs", "₵0.00"),
        ]
        for amount, currency, expected in cases:
            with self.subTest(amount=amount, currency=currency):
                self.assertEqual(format_price(amount, currency), expected)


class TestComposers(unittest.TestCase):
    def test_product_ref(self) -> None:
        self.assertEqual(composer.product_ref(_product()), "XYZ123")
        self.assertEqual(composer.product_ref(Product(id="", name="x")), "REF")

    def test_product_inquiry(self) -> None:
        url = "https://shoplink.app/store/s1#-NabcXYZ123"
        message = composer.product_inquiry(_product(), _seller(), url)
        self.assertTrue(message.startswith(
            "Hi! I'm interested in your Kente Scarf for ₵1,250.50."
        ))
        self.assertIn("🔗 Ref: #XYZ123 (Kente Scarf - Fashion)", message)
        self.assertIn(url, message)
        self.assertTrue(message.endswith("Is it still available?"))

    def test_composition_is_deterministic(self) -> None:
        url = "https://shoplink.app/store/s1"
        first = composer.product_inquiry(_product(), _seller(), url)
        second = composer.product_inquiry(_product(), _seller(), url)
        self.assertEqual(first, second)
        self.assertEqual(
            composer.whatsapp_link("+233241234567", first),
            composer.whatsapp_link("+233241234567", second),
        )

    def test_order_placement(self) -> None:
        order = OrderDetails(
            product=_product(),
            quantity=2,
            customer=CustomerInfo(
                name="Kofi", phone="0201234567", notes="Gift wrap",
            ),
            total_price=2501.0,
            order_id="XYZ123-000042",
        )
        message = composer.order_placement(order, _seller())
        self.assertIn("📦 PRODUCT: Kente Scarf x 2", message)
        self.assertIn("💰 TOTAL: ₵2,501.00", message)
        self.assertIn("🆔 ORDER ID: #XYZ123-000042", message)
        self.assertIn("Delivery: To be discussed", message)
        self.assertIn("Payment: To be discussed", message)
        self.assertIn("📝 SPECIAL NOTES:\nGift wrap\n", message)
        self.assertIn("🏪 FROM: Ama's Closet", message)

    def test_store_share_includes_display_phone(self) -> None:
        message = composer.store_share(_seller(), "https://x/store/s1")
        self.assertIn("📱 WhatsApp: +233 24 123 4567", message)
        bare = composer.store_share(
            _seller(whatsapp_number=""), "https://x/store/s1"
        )
        self.assertNotIn("WhatsApp", bare)

    def test_status_and_store_inquiry(self) -> None:
        self.assertIn(
            "My Ama's Closet is now open!",
            composer.status_update(_seller(), "u"),
        )
        self.assertTrue(
            composer.store_inquiry(_seller(), "u").startswith(
                "Hi Ama's Closet!"
            )
        )


class TestLinks(unittest.TestCase):
    def test_wa_link_round_trips_message(self) -> None:
        message = composer.product_inquiry(
            _product(), _seller(), "https://shoplink.app/store/s1#p?a=1&b=2",
        )
        link = composer.whatsapp_link("+233241234567", message)
        self.assertIsNotNone(link)
        parts = urlsplit(link or "")
        self.assertEqual(parts.netloc, "wa.me")
        self.assertEqual(parts.path, "/233241234567")
        self.assertEqual(unquote(parts.query.removeprefix("text=")), message)

    def test_encode_component_matches_uri_component(self) -> None:
        self.assertEqual(
            composer.encode_component("a b&c/d'(e)!"), "a%20b%26c%2Fd'(e)!"
        )

    def test_native_link(self) -> None:
        link = composer.native_link("+233241234567", "Hi there")
        self.assertEqual(
            link, "whatsapp://send?phone=233241234567&text=Hi%20there"
        )
        query = parse_qs(urlsplit(link or "").query)
        self.assertEqual(query["text"], ["Hi there"])

    def test_undialable_number_has_no_link(self) -> None:
        self.assertIsNone(composer.whatsapp_link("12345", "hi"))
        self.assertIsNone(composer.native_link("", "hi"))

    def test_raw_national_number_is_not_dialable(self) -> None:
        for raw in ("241234567", "0241234567", "233241234567"):
            with self.subTest(raw=raw):
                self.assertIsNone(composer.whatsapp_link(raw, "hi"))
                self.assertIsNone(composer.native_link(raw, "hi"))

    def test_foreign_seller_number_keeps_its_country(self) -> None:
        seller = normalize_seller(
            {"country": "NG", "whatsappNumber": "08031234567"}, seller_id="n1",
        )
        link = composer.whatsapp_link(seller.whatsapp_number, "hi")
        self.assertEqual(urlsplit(link or "").path, "/2348031234567")

    def test_contact_link_picks_variant(self) -> None:
        self.assertTrue(
            (composer.contact_link("+233241234567", "x", mobile=True) or "")
            .startswith("whatsapp://")
        )
        self.assertTrue(
            (composer.contact_link("+233241234567", "x", mobile=False) or "")
            .startswith("https://wa.me/")
        )

    def test_mobile_user_agent(self) -> None:
        iphone = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"
        desktop = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
        self.assertTrue(composer.is_mobile_user_agent(iphone))
        self.assertFalse(composer.is_mobile_user_agent(desktop))
        self.assertFalse(composer.is_mobile_user_agent(None))


class TestOrderForm(unittest.TestCase):
    def test_valid(self) -> None:
        customer = CustomerInfo(name="Kofi", phone="020 123 4567")
        self.assertEqual(composer.validate_order_form(customer), {})

    def test_invalid(self) -> None:
        errors = composer.validate_order_form(CustomerInfo(name=" K", phone="123"))
        self.assertEqual(set(errors), {"name", "phone"})
