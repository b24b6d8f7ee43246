# src/models/seller.py

"""Canonical seller (store profile) model."""

from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.normalizers.phone_normalizer import needs_update

BUSINESS_TYPES: frozenset[str] = frozenset({"individual", "business"})


@dataclass
class Seller:
    """A seller's public store profile."""

    id: str
    store_name: str = Settings.DEFAULT_STORE_NAME
    store_description: str = ""
    location: str = ""
    country: str = Settings.DEFAULT_COUNTRY
    whatsapp_number: str = ""
    currency: str = Settings.DEFAULT_CURRENCY
    business_type: str = "individual"
    category: str = ""
    payment_methods: list[str] = field(
        default_factory=lambda: list(Settings.DEFAULT_PAYMENT_METHODS)
    )
    delivery_options: list[str] = field(
        default_factory=lambda: list(Settings.DEFAULT_DELIVERY_OPTIONS)
    )
    social_media: dict[str, str] = field(
        default_factory=lambda: dict[str, str]()
    )
    policies: dict[str, str] = field(
        default_factory=lambda: dict[str, str]()
    )
    logo_url: str = ""
    banner_url: str = ""
    created_at: int = 0
    updated_at: int = 0

    @property
    def phone_needs_update(self) -> bool:
        """Legacy profiles whose WhatsApp number is not dialable."""
        return needs_update(self.whatsapp_number)

    def to_record(self) -> dict[str, Any]:
        """Serialise to the remote store's camelCase record shape."""
        return {
            "id": self.id,
            "storeName": self.store_name,
            "storeDescription": self.store_description,
            "location": self.location,
            "country": self.country,
            "whatsappNumber": self.whatsapp_number,
            "currency": self.currency,
            "businessType": self.business_type,
            "category": self.category,
            "paymentMethods": list(self.payment_methods),
            "deliveryOptions": list(self.delivery_options),
            "socialMedia": dict(self.social_media),
            "policies": dict(self.policies),
            "logoUrl": self.logo_url,
            "bannerUrl": self.banner_url,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
