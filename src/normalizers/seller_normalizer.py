# src/normalizers/seller_normalizer.py

"""Standardise seller profile records into a canonical Seller."""

import logging
from collections.abc import Mapping
from typing import Any

from src.config.settings import Settings
from src.models.seller import BUSINESS_TYPES, Seller
from src.normalizers import phone_normalizer
from src.normalizers.coercion import (
    first_present,
    now_ms,
    to_bool,
    to_text,
    to_text_list,
    to_text_map,
    to_timestamp,
)

logger = logging.getLogger("shoplink.normalizers")

# Older clients nested the profile one level down
_PROFILE_WRAPPERS: tuple[str, ...] = ("userProfile", "sellerData", "profile")

_CURRENCY_BY_COUNTRY: dict[str, str] = {
    "GH": "GHS",
    "NG": "NGN",
    "KE": "KES",
    "ZA": "ZAR",
    "US": "USD",
    "UG": "UGX",
}

_SOCIAL_URL_TEMPLATES: dict[str, str] = {
    "instagram": "https://instagram.com/{handle}",
    "facebook": "https://facebook.com/{handle}",
    "tiktok": "https://tiktok.com/@{handle}",
}


def unwrap_profile(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a nested profile wrapper over the record's own fields."""
    merged = {
        key: value
        for key, value in raw.items()
        if key not in _PROFILE_WRAPPERS and key != "products"
    }
    for wrapper in _PROFILE_WRAPPERS:
        nested = raw.get(wrapper)
        if isinstance(nested, Mapping):
            merged.update(nested)
            break
    return merged


def _options(value: Any, defaults: list[str]) -> list[str]:
    """Option lists arrive as arrays or legacy ``{name: enabled}`` maps."""
    if isinstance(value, Mapping):
        chosen = [str(key) for key, on in value.items() if to_bool(on)]
    else:
        chosen = to_text_list(value)
    return chosen or list(defaults)


def _location(value: Any, record: Mapping[str, Any]) -> str:
    if isinstance(value, Mapping):
        parts = [to_text(value.get("city")), to_text(value.get("country"))]
    elif value:
        return to_text(value)
    else:
        parts = [to_text(record.get("city"))]
    return ", ".join(part for part in parts if part)


def _social_url(network: str, value: Any) -> str:
    text = to_text(value)
    if not text or text.startswith(("https://", "http://")):
        return text
    template = _SOCIAL_URL_TEMPLATES.get(network)
    if template is None:
        return text
    return template.format(handle=text.lstrip("@"))


def _social_media(value: Any) -> dict[str, str]:
    links = {
        network: _social_url(network, url)
        for network, url in to_text_map(value).items()
    }
    return {network: url for network, url in links.items() if url}


def _policies(record: Mapping[str, Any]) -> dict[str, str]:
    policies = {
        key: text
        for key, text in to_text_map(record.get("policies")).items()
        if text
    }
    legacy_returns = to_text(record.get("returnPolicy"))
    if legacy_returns and "returns" not in policies:
        policies["returns"] = legacy_returns
    return policies


def _whatsapp(raw_number: str, country: str) -> str:
    """Dialable number when one can be derived, else the trimmed input."""
    result = phone_normalizer.validate(raw_number, country)
    if result.normalized:
        return result.normalized
    if raw_number:
        logger.debug(
            "Seller WhatsApp number %r kept as-is: %s",
            raw_number,
            result.error,
        )
    return raw_number


def normalize_seller(
    raw: Any,
    seller_id: str | None = None,
    now: int | None = None,
) -> Seller:
    """Build a canonical :class:`Seller`; idempotent and never raises."""
    if isinstance(raw, Seller):
        raw = raw.to_record()
    if not isinstance(raw, Mapping):
        logger.debug(
            "Seller record is %s, using empty defaults",
            type(raw).__name__,
        )
        raw = {}

    record = unwrap_profile(raw)
    fallback_time = now if now is not None else now_ms()

    country = phone_normalizer.resolve_country(
        to_text(record.get("country"))
    ) or Settings.DEFAULT_COUNTRY
    currency = to_text(record.get("currency")).upper() or (
        _CURRENCY_BY_COUNTRY.get(country, Settings.DEFAULT_CURRENCY)
    )
    business_type = to_text(record.get("businessType")).lower()
    created_at = to_timestamp(record.get("createdAt"), fallback_time)

    return Seller(
        id=seller_id or to_text(first_present(record, "id", "uid")),
        store_name=(
            to_text(record.get("storeName")) or Settings.DEFAULT_STORE_NAME
        ),
        store_description=to_text(record.get("storeDescription")),
        location=_location(record.get("location"), record),
        country=country,
        whatsapp_number=_whatsapp(
            to_text(first_present(record, "whatsappNumber", "phone")),
            country,
        ),
        currency=currency,
        business_type=(
            business_type if business_type in BUSINESS_TYPES else "individual"
        ),
        category=to_text(
            first_present(record, "category", "businessCategory")
        ),
        payment_methods=_options(
            record.get("paymentMethods"), Settings.DEFAULT_PAYMENT_METHODS
        ),
        delivery_options=_options(
            record.get("deliveryOptions"), Settings.DEFAULT_DELIVERY_OPTIONS
        ),
        social_media=_social_media(record.get("socialMedia")),
        policies=_policies(record),
        logo_url=to_text(record.get("logoUrl")),
        banner_url=to_text(
            first_present(record, "bannerUrl", "coverImage", "coverUrl")
        ),
        created_at=created_at,
        updated_at=to_timestamp(record.get("updatedAt"), created_at),
    )


standardize = normalize_seller
