# src/services/message_composer.py

"""Deterministic WhatsApp messages and deep links.

Every composer is a pure function: identical inputs give a byte-identical
message, which in turn gives an identical ``wa.me`` URL.
"""

import re
from dataclasses import dataclass
from urllib.parse import quote

from src.models.product import Product
from src.models.seller import Seller
from src.normalizers import phone_normalizer

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$", "CAD": "C$", "EUR": "€", "GBP": "£", "JPY": "¥",
    "AUD": "A$", "CHF": "CHF", "CNY": "¥", "INR": "₹", "KRW": "₩",
    "GHS": "₵", "NGN": "₦", "ZAR": "R", "AED": "د.إ", "SAR": "ر.س",
    "BRL": "R$", "MXN": "$", "SGD": "S$", "HKD": "HK$", "NOK": "kr",
    "SEK": "kr", "DKK": "kr", "PLN": "zł", "CZK": "Kč", "ILS": "₪",
    "TRY": "₺", "RUB": "₽", "THB": "฿", "MYR": "RM", "IDR": "Rp",
    "PHP": "₱", "VND": "₫", "KES": "KSh", "UGX": "USh", "TZS": "TSh",
    "EGP": "E£", "MAD": "د.م.", "COP": "$", "CLP": "$", "ARS": "$",
}
_WHOLE_UNIT_CURRENCIES: frozenset[str] = frozenset({"JPY", "KRW"})

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"

_MOBILE_UA_RE = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini",
    re.IGNORECASE,
)

ERROR_CUSTOMER_NAME = "Name must be at least 2 characters"
ERROR_CUSTOMER_PHONE = "Valid phone number is required"
ERROR_PRODUCT_UNAVAILABLE = "This product cannot be ordered right now"


class OrderFormError(ValueError):
    """Raised when an order form is missing required customer details."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("Invalid order form: " + ", ".join(sorted(errors)))
        self.errors = dict(errors)


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    delivery_address: str = ""
    preferred_payment: str = ""
    notes: str = ""


@dataclass(frozen=True)
class OrderDetails:
    product: Product
    quantity: int
    customer: CustomerInfo
    total_price: float
    order_id: str


# ── Formatting ───────────────────────────────────────────


def format_price(amount: float, currency: str | None = None) -> str:
    code = (currency or "GHS").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code)
    if code in _WHOLE_UNIT_CURRENCIES:
        return f"{symbol}{int(amount + 0.5):,}"
    return f"{symbol}{amount:,.2f}"


def product_ref(product: Product) -> str:
    """Short human reference: last six id characters, upper-cased."""
    return product.id[-6:].upper() or "REF"


# ── Message composers ────────────────────────────────────


def product_inquiry(
    product: Product,
    seller: Seller,
    product_url: str,
) -> str:
    price = format_price(product.price, seller.currency)
    name = product.display_name
    label = f"{name} - {product.category}" if product.category else name
    return (
        f"Hi! I'm interested in your {name} for {price}.\n"
        "\n"
        f"📦 Product: {name}\n"
        f"💰 Price: {price}\n"
        f"🔗 Ref: #{product_ref(product)} ({label})\n"
        "\n"
        f"{product_url}\n"
        "\n"
        "Is it still available?"
    )


def order_placement(order: OrderDetails, seller: Seller) -> str:
    customer = order.customer
    delivery = (
        f"Delivery: {customer.delivery_address}"
        if customer.delivery_address
        else "Delivery: To be discussed"
    )
    payment = (
        f"Preferred Payment: {customer.preferred_payment}"
        if customer.preferred_payment
        else "Payment: To be discussed"
    )
    notes = f"📝 SPECIAL NOTES:\n{customer.notes}\n" if customer.notes else ""
    return (
        "Hi! I'd like to order:\n"
        "\n"
        f"📦 PRODUCT: {order.product.display_name} x {order.quantity}\n"
        f"💰 TOTAL: {format_price(order.total_price, seller.currency)}\n"
        f"🆔 ORDER ID: #{order.order_id}\n"
        "\n"
        "👤 CUSTOMER INFO:\n"
        f"Name: {customer.name}\n"
        f"Phone: {customer.phone}\n"
        f"{delivery}\n"
        f"{payment}\n"
        "\n"
        f"{notes}"
        f"🏪 FROM: {seller.store_name or 'Your Store'}\n"
        "\n"
        "Please confirm availability and payment details. Thank you!"
    )


def store_share(seller: Seller, store_url: str) -> str:
    display_phone = (
        phone_normalizer.format_for_display(seller.whatsapp_number)
        if seller.whatsapp_number
        else ""
    )
    message = (
        f"🛍️ Check out my store: {seller.store_name or 'My Store'}\n"
        "\n"
        f"{store_url}"
    )
    if display_phone:
        message += f"\n\n📱 WhatsApp: {display_phone}"
    return message


def status_update(seller: Seller, store_url: str) -> str:
    return (
        f"🛍️ My {seller.store_name or 'store'} is now open! "
        f"Check out what I'm selling: {store_url}"
    )


def store_inquiry(seller: Seller, store_url: str) -> str:
    """Opening line for the storefront's floating chat button."""
    return (
        f"Hi {seller.store_name or 'there'}! I found your store and "
        "I'd like to know more about your products.\n"
        "\n"
        f"{store_url}"
    )


# ── Deep links ───────────────────────────────────────────


def encode_component(text: str) -> str:
    """Percent-encode like JavaScript's ``encodeURIComponent``."""
    return quote(text, safe=_URI_COMPONENT_SAFE)


def _dial_digits(phone: str) -> str | None:
    # No country is known here, so raw national numbers are not guessed at
    if not phone_normalizer.is_valid_e164(phone):
        return None
    return phone[1:]


def whatsapp_link(phone: str, message: str) -> str | None:
    """``https://wa.me/<digits>?text=<message>``; None when not dialable."""
    digits = _dial_digits(phone)
    if digits is None:
        return None
    return f"https://wa.me/{digits}?text={encode_component(message)}"


def native_link(phone: str, message: str) -> str | None:
    """App-scheme variant used on mobile devices."""
    digits = _dial_digits(phone)
    if digits is None:
        return None
    return (
        f"whatsapp://send?phone={digits}&text={encode_component(message)}"
    )


def contact_link(phone: str, message: str, mobile: bool) -> str | None:
    if mobile:
        return native_link(phone, message)
    return whatsapp_link(phone, message)


def is_mobile_user_agent(user_agent: str | None) -> bool:
    return bool(user_agent) and bool(_MOBILE_UA_RE.search(user_agent or ""))


def validate_order_form(customer: CustomerInfo) -> dict[str, str]:
    """Field errors for the order form; empty when it can be sent."""
    errors: dict[str, str] = {}
    if len(customer.name.strip()) < 2:
        errors["name"] = ERROR_CUSTOMER_NAME
    if len(re.sub(r"\D", "", customer.phone)) < 10:
        errors["phone"] = ERROR_CUSTOMER_PHONE
    return errors
