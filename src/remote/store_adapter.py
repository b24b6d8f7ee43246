# src/remote/store_adapter.py

"""Seller catalog access: one-shot fetch with retries and live subscription."""

import asyncio
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from src.config.settings import Settings
from src.models.product import Product
from src.models.seller import Seller
from src.normalizers.record_normalizer import normalize_products
from src.normalizers.seller_normalizer import normalize_seller
from src.remote.errors import (
    RemoteStoreError,
    StoreNotFoundError,
    TransientStoreError,
)
from src.remote.realtime_db import RealtimeDatabaseClient, apply_event

logger = logging.getLogger("shoplink.remote")

# Characters the database refuses inside a key
_INVALID_KEY_RE = re.compile(r"[.#$\[\]/]")


@dataclass(frozen=True)
class CatalogPayload:
    """Everything one delivery knows about a seller."""

    seller: Seller
    products: tuple[Product, ...]


UpdateCallback = Callable[[CatalogPayload], None]
ErrorCallback = Callable[[RemoteStoreError], None]


def payload_from_tree(
    seller_id: str,
    tree: Any,
    now: int | None = None,
) -> CatalogPayload:
    """Normalise a raw seller subtree; a null tree means no such seller."""
    if not isinstance(tree, Mapping):
        raise StoreNotFoundError(seller_id)
    return CatalogPayload(
        seller=normalize_seller(tree, seller_id=seller_id, now=now),
        products=tuple(normalize_products(tree.get("products"), now=now)),
    )


class Subscription:
    """Handle for a live subscription; calling it unsubscribes.

    Cancelling is idempotent. Once cancelled, :attr:`active` is False and
    no further payload reaches the callback, even one already in flight.
    """

    def __init__(self) -> None:
        self._active = True
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._active

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Subscription cancelled")

    __call__ = cancel


class RemoteStoreAdapter:
    """Reads and watches ``users/<sellerId>`` in the remote store."""

    def __init__(
        self,
        client: RealtimeDatabaseClient | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff: float | None = None,
        reconnect_delay: float | None = None,
    ) -> None:
        self.client = client or RealtimeDatabaseClient()
        self.timeout = timeout if timeout is not None else (
            Settings.FETCH_TIMEOUT
        )
        self.max_retries = max_retries if max_retries is not None else (
            Settings.MAX_RETRIES
        )
        self.backoff = backoff if backoff is not None else (
            Settings.RETRY_BACKOFF
        )
        self.reconnect_delay = (
            reconnect_delay if reconnect_delay is not None
            else Settings.STREAM_RECONNECT_DELAY
        )

    # ── Private helpers ──────────────────────────────────

    @staticmethod
    def _seller_path(seller_id: str) -> str:
        if not seller_id.strip() or _INVALID_KEY_RE.search(seller_id):
            raise StoreNotFoundError(seller_id)
        return f"{Settings.SELLERS_PATH}/{seller_id}"

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking client call off-loop, raced by the timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args), timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TransientStoreError(
                f"Timed out after {self.timeout:.0f}s"
            ) from exc

    # ── One-shot fetch ───────────────────────────────────

    def backoff_delays(self) -> list[float]:
        """Delays slept between attempts, in order."""
        return [
            self.backoff * attempt
            for attempt in range(1, self.max_retries + 1)
        ]

    async def fetch_once(self, seller_id: str) -> CatalogPayload:
        """Fetch the seller tree once, retrying transient failures.

        Raises :class:`StoreNotFoundError` straight away when the seller
        does not exist, and :class:`TransientStoreError` once every retry
        is spent.
        """
        path = self._seller_path(seller_id)
        delays = self.backoff_delays()
        attempt = 0
        while True:
            try:
                tree = await self._call(self.client.get, path)
            except TransientStoreError as exc:
                if attempt >= len(delays):
                    logger.error(
                        "Fetch for %s failed after %d attempts: %s",
                        seller_id,
                        attempt + 1,
                        exc,
                        exc_info=True,
                    )
                    raise TransientStoreError(
                        f"Could not load store {seller_id}: {exc}"
                    ) from exc
                delay = delays[attempt]
                attempt += 1
                logger.warning(
                    "Fetch attempt %d for %s failed (%s); retrying in %.1fs",
                    attempt,
                    seller_id,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
                continue
            payload = payload_from_tree(seller_id, tree)
            logger.info(
                "Fetched %s: %d products",
                seller_id,
                len(payload.products),
            )
            return payload

    # ── Live subscription ────────────────────────────────

    def subscribe(
        self,
        seller_id: str,
        on_update: UpdateCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Start streaming the seller tree; must be called inside a loop."""
        loop = asyncio.get_running_loop()
        subscription = Subscription()
        task = loop.create_task(
            self._pump(seller_id, subscription, on_update, on_error)
        )
        subscription.attach(task)
        return subscription

    @staticmethod
    def _report(
        subscription: Subscription,
        on_error: ErrorCallback | None,
        error: RemoteStoreError,
    ) -> None:
        if not subscription.active or on_error is None:
            return
        try:
            on_error(error)
        except Exception:
            logger.error("Subscription error callback failed", exc_info=True)

    @staticmethod
    def _deliver(
        seller_id: str,
        tree: Any,
        subscription: Subscription,
        on_update: UpdateCallback,
        on_error: ErrorCallback | None,
    ) -> None:
        if not subscription.active:
            return
        try:
            payload = payload_from_tree(seller_id, tree)
        except StoreNotFoundError as exc:
            RemoteStoreAdapter._report(subscription, on_error, exc)
            return
        except Exception:
            logger.error(
                "Could not normalise live tree for %s; skipping",
                seller_id,
                exc_info=True,
            )
            return
        try:
            on_update(payload)
        except Exception:
            logger.error(
                "Subscription update callback failed for %s",
                seller_id,
                exc_info=True,
            )

    async def _pump(
        self,
        seller_id: str,
        subscription: Subscription,
        on_update: UpdateCallback,
        on_error: ErrorCallback | None,
    ) -> None:
        try:
            path = self._seller_path(seller_id)
        except StoreNotFoundError as exc:
            self._report(subscription, on_error, exc)
            return

        failures = 0
        while subscription.active:
            tree: Any = None
            try:
                async for event in self.client.stream(path):
                    if not subscription.active:
                        return
                    tree = apply_event(
                        tree,
                        event.path,
                        event.data,
                        merge=event.event == "patch",
                    )
                    failures = 0
                    self._deliver(
                        seller_id, tree, subscription, on_update, on_error,
                    )
                logger.info("Stream for %s ended, reconnecting", seller_id)
            except TransientStoreError as exc:
                logger.warning("Stream for %s failed: %s", seller_id, exc)
                self._report(subscription, on_error, exc)
            except RemoteStoreError as exc:
                logger.error(
                    "Stream for %s closed: %s", seller_id, exc, exc_info=True,
                )
                self._report(subscription, on_error, exc)
                return

            failures += 1
            if failures > self.max_retries:
                logger.error(
                    "Giving up on live updates for %s after %d failures",
                    seller_id,
                    failures,
                )
                return
            await asyncio.sleep(self.reconnect_delay * failures)

    # ── Writes ───────────────────────────────────────────

    async def create_product(self, seller_id: str, product: Product) -> str:
        """Push a validated product under the seller; returns its new id."""
        path = f"{self._seller_path(seller_id)}/products"
        record = product.to_record()
        record.pop("id", None)
        product_id: str = await self._call(self.client.post, path, record)
        logger.info("Created product %s for %s", product_id, seller_id)
        return product_id
