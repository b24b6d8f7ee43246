# src/config/settings.py

"""Central configuration for the shoplink catalog engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the shoplink catalog engine."""

    # --- Remote store ---
    DATABASE_URL: str = os.getenv("SHOPLINK_DATABASE_URL", "")
    DATABASE_AUTH: str = os.getenv("SHOPLINK_DATABASE_AUTH", "")
    SELLERS_PATH: str = "users"         # users/<sellerId>/products/<id>
    EVENTS_PATH: str = "events"         # events/<sellerId>/<pushId>

    # --- Resilience ---
    FETCH_TIMEOUT: float = 10.0         # Seconds each discrete fetch may take
    MAX_RETRIES: int = 3                # Retries after the first failed attempt
    RETRY_BACKOFF: float = 1.0          # Linear step: 1s, 2s, 3s
    STREAM_RECONNECT_DELAY: float = 2.0 # Linear step between stream reconnects
    STREAM_READ_TIMEOUT: float = 60.0   # Firebase sends keep-alive every ~30s

    # --- Catalog ---
    SHORT_DESCRIPTION_LIMIT: int = 100
    PLACEHOLDER_IMAGE: str = "https://via.placeholder.com/300x200"
    DEFAULT_CATEGORY: str = "Uncategorized"
    DEFAULT_STORE_NAME: str = "Store"
    DEFAULT_COUNTRY: str = os.getenv("SHOPLINK_DEFAULT_COUNTRY", "GH")
    DEFAULT_CURRENCY: str = "GHS"
    DEFAULT_PAYMENT_METHODS: list[str] = [
        "Mobile money",
        "Cash on delivery",
        "Bank transfer",
    ]
    DEFAULT_DELIVERY_OPTIONS: list[str] = [
        "Pickup",
        "Local delivery",
    ]
    LOW_STOCK_THRESHOLD: int = 5
    COLLAPSE_DUPLICATE_LISTINGS: bool = True

    # --- Tracking ---
    VIEW_DEBOUNCE_SECONDS: float = 0.5  # Coalesce repeated view events

    # --- Links ---
    PUBLIC_ORIGIN: str = os.getenv(
        "SHOPLINK_PUBLIC_ORIGIN", "https://shoplink.app"
    )

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    LOCAL_STORE_PATH: Path = DATA_DIR / "local_store.db"
