# src/services/storefront_session.py

"""One buyer's session on one seller's storefront."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from src.config.settings import Settings
from src.filters.catalog_view import CatalogView, ViewQuery
from src.filters.deduplicator import ListingDeduplicator
from src.filters.product_validator import ProductValidator
from src.models.events import EVENT_CONTACT, EVENT_STORE_VIEW, EVENT_VIEW
from src.models.product import STATUS_ACTIVE, Product
from src.models.seller import Seller
from src.normalizers.coercion import now_ms
from src.remote.errors import (
    RemoteStoreError,
    StoreNotFoundError,
    TransientStoreError,
)
from src.remote.store_adapter import (
    CatalogPayload,
    RemoteStoreAdapter,
    Subscription,
)
from src.services import catalog_urls, message_composer
from src.services.interaction_tracker import InteractionTracker
from src.services.message_composer import (
    CustomerInfo,
    OrderDetails,
    OrderFormError,
)
from src.storage.catalog_cache import CatalogCache, CatalogSnapshot
from src.storage.favorites_store import FavoritesStore
from src.storage.local_store import KeyValueStore, MemoryKeyValueStore

logger = logging.getLogger("shoplink.session")

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_NOT_FOUND = "not_found"
STATUS_NETWORK_ERROR = "network_error"

BANNER_NETWORK = (
    "Couldn't load the latest products. "
    "Check your connection and try again."
)
BANNER_LIVE_LOST = "Live updates paused. Showing the last loaded catalog."


@dataclass(frozen=True)
class ContactLink:
    """A ready-to-open WhatsApp link and the message it carries."""

    url: str
    message: str
    native: bool


class StorefrontSession:
    """Wires fetch, live updates, cache, view, favourites and contact.

    The derived view is recomputed synchronously on every cache or query
    change, so :meth:`view` is always consistent with both. After
    :meth:`close` nothing can mutate the cache again.
    """

    def __init__(
        self,
        seller_id: str,
        adapter: RemoteStoreAdapter | None = None,
        storage: KeyValueStore | None = None,
        tracker: InteractionTracker | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.seller_id = seller_id
        self.settings = settings or Settings()
        self.adapter = adapter or RemoteStoreAdapter()
        self.tracker = tracker or InteractionTracker()
        self.cache = CatalogCache()
        self.favorites = FavoritesStore(
            seller_id, storage or MemoryKeyValueStore(), self.tracker,
        )
        self.status = STATUS_IDLE
        self.error: str | None = None
        self.selected_id: str | None = None
        self._query = ViewQuery()
        self._view: list[Product] = []
        self._subscription: Subscription | None = None
        self._closed = False
        self._listeners: list[Callable[["StorefrontSession"], None]] = []
        self._unsubscribe_cache = self.cache.subscribe(self._on_cache_change)
        self.favorites.load()

    # ── Change notification ──────────────────────────────

    def on_change(
        self,
        listener: Callable[["StorefrontSession"], None],
    ) -> Callable[[], None]:
        """Call *listener* after every state change; returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.error("Session listener failed", exc_info=True)

    def _on_cache_change(self, snapshot: CatalogSnapshot) -> None:
        self._recompute()

    # ── Loading ──────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def seller(self) -> Seller | None:
        return self.cache.seller

    def _apply(self, payload: CatalogPayload) -> None:
        if self._closed:
            return
        self.status = STATUS_READY
        self.cache.apply_payload(payload)

    async def _fetch(self, initial: bool) -> None:
        if self._closed:
            return
        if initial:
            self.status = STATUS_LOADING
            self._notify()

        try:
            payload = await self.adapter.fetch_once(self.seller_id)
        except StoreNotFoundError:
            if self._closed:
                return
            logger.info("Store %s not found", self.seller_id)
            self.status = STATUS_NOT_FOUND
            self.cache.clear()
            return
        except RemoteStoreError as exc:
            if self._closed:
                return
            logger.warning(
                "Loading %s failed: %s", self.seller_id, exc, exc_info=True,
            )
            if not self.cache.is_loaded:
                self.status = STATUS_NETWORK_ERROR
            self.error = BANNER_NETWORK
            self._notify()
            return

        if self._closed:
            return
        self.error = None
        self._apply(payload)
        if initial:
            self.tracker.track(EVENT_STORE_VIEW, self.seller_id)

    async def load(self) -> None:
        """First load: shows ``loading`` until the catalog arrives."""
        await self._fetch(initial=not self.cache.is_loaded)

    async def refresh(self) -> None:
        """Re-fetch while the current catalog stays on screen."""
        await self._fetch(initial=False)

    def start_live(self) -> None:
        """Subscribe to live updates; needs a running event loop."""
        if self._closed or self._subscription is not None:
            return
        self._subscription = self.adapter.subscribe(
            self.seller_id, self._on_payload, self._on_stream_error,
        )

    def _on_payload(self, payload: CatalogPayload) -> None:
        if self._closed:
            return
        self.error = None
        self._apply(payload)

    def _on_stream_error(self, exc: RemoteStoreError) -> None:
        if self._closed:
            return
        if isinstance(exc, StoreNotFoundError):
            self.status = STATUS_NOT_FOUND
            self.cache.clear()
            return
        if isinstance(exc, TransientStoreError) and not self.cache.is_loaded:
            self.status = STATUS_NETWORK_ERROR
            self.error = BANNER_NETWORK
        else:
            self.error = BANNER_LIVE_LOST
        self._notify()

    def dismiss_error(self) -> None:
        self.error = None
        self._notify()

    def close(self) -> None:
        """Stop live updates and detach from the cache; idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
        self._unsubscribe_cache()
        logger.debug("Session for %s closed", self.seller_id)

    async def aclose(self) -> None:
        self.close()
        await self.tracker.drain()

    # ── Query state ──────────────────────────────────────

    @property
    def query(self) -> ViewQuery:
        return self._query

    def _set_query(self, query: ViewQuery) -> None:
        self._query = query
        self._recompute()

    def set_query(self, text: str) -> None:
        self._set_query(replace(self._query, query=text))

    def set_category(self, category: str) -> None:
        self._set_query(replace(self._query, category=category))

    def set_sort(self, sort_key: str) -> None:
        self._set_query(replace(self._query, sort_key=sort_key))

    def set_favorites_only(self, enabled: bool) -> None:
        self._set_query(replace(self._query, favorites_only=enabled))

    def _recompute(self) -> None:
        products, _ = ProductValidator.validate(self.cache.get_visible())
        if self.settings.COLLAPSE_DUPLICATE_LISTINGS:
            products, _ = ListingDeduplicator.deduplicate(products)
        query = replace(self._query, favorites=self.favorites.ids)
        self._view = CatalogView.derive(products, query)
        if self.selected_id is not None and CatalogView.find(
            self._view, self.selected_id
        ) is None:
            self.selected_id = None
        self._notify()

    def view(self) -> list[Product]:
        return list(self._view)

    def categories(self) -> list[tuple[str, int]]:
        return CatalogView.categories(self.cache.get_visible())

    @property
    def selected(self) -> Product | None:
        if self.selected_id is None:
            return None
        return CatalogView.find(self._view, self.selected_id)

    # ── Buyer actions ────────────────────────────────────

    def open_product(self, product_id: str) -> Product | None:
        product = CatalogView.find(self._view, product_id)
        if product is None:
            return None
        self.selected_id = product_id
        self.tracker.track(EVENT_VIEW, self.seller_id, product_id=product_id)
        self._notify()
        return product

    def close_product(self) -> None:
        self.selected_id = None
        self._notify()

    def select_from_url(self, url: str) -> Product | None:
        """Open the product named by a catalog URL's fragment.

        Only products in the current filtered view can be selected.
        """
        location = catalog_urls.parse_catalog_url(url)
        if (
            location is None
            or location.seller_id != self.seller_id
            or location.product_id is None
        ):
            return None
        return self.open_product(location.product_id)

    def toggle_favorite(self, product_id: str) -> bool:
        added = self.favorites.toggle(product_id)
        self._recompute()
        return added

    def _link(
        self,
        message: str,
        user_agent: str | None,
    ) -> ContactLink | None:
        seller = self.seller
        if seller is None:
            return None
        native = message_composer.is_mobile_user_agent(user_agent)
        url = message_composer.contact_link(
            seller.whatsapp_number, message, native,
        )
        if url is None:
            logger.warning(
                "Store %s has no dialable WhatsApp number (%r)",
                self.seller_id,
                seller.whatsapp_number,
            )
            return None
        return ContactLink(url=url, message=message, native=native)

    def contact_product(
        self,
        product_id: str,
        user_agent: str | None = None,
        customer: CustomerInfo | None = None,
        quantity: int = 1,
    ) -> ContactLink | None:
        """Inquiry link, or an order link when *customer* is given.

        Only products in the current filtered view can be contacted.
        Raises :class:`OrderFormError` for an incomplete order form or a
        product that is not active and sellable.
        """
        seller = self.seller
        product = CatalogView.find(self._view, product_id)
        if seller is None or product is None:
            return None

        if customer is None:
            kind = "inquiry"
            message = message_composer.product_inquiry(
                product,
                seller,
                catalog_urls.product_url(self.seller_id, product.id),
            )
        else:
            errors = message_composer.validate_order_form(customer)
            if not product.is_sellable or product.status != STATUS_ACTIVE:
                errors["product"] = message_composer.ERROR_PRODUCT_UNAVAILABLE
            if errors:
                raise OrderFormError(errors)
            kind = "order"
            order = OrderDetails(
                product=product,
                quantity=quantity,
                customer=customer,
                total_price=product.price * quantity,
                order_id=f"{message_composer.product_ref(product)}-"
                         f"{now_ms() % 1_000_000:06d}",
            )
            message = message_composer.order_placement(order, seller)

        link = self._link(message, user_agent)
        if link is not None:
            self.tracker.track(
                EVENT_CONTACT,
                self.seller_id,
                product_id=product.id,
                metadata={"kind": kind, "native": link.native},
            )
        return link

    def contact_store(self, user_agent: str | None = None) -> ContactLink | None:
        seller = self.seller
        if seller is None:
            return None
        message = message_composer.store_inquiry(
            seller, catalog_urls.store_url(self.seller_id),
        )
        link = self._link(message, user_agent)
        if link is not None:
            self.tracker.track(
                EVENT_CONTACT,
                self.seller_id,
                metadata={"kind": "store", "native": link.native},
            )
        return link

    def share_message(self) -> str | None:
        seller = self.seller
        if seller is None:
            return None
        return message_composer.store_share(
            seller, catalog_urls.store_url(self.seller_id),
        )
