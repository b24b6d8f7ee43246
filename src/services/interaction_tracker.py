# src/services/interaction_tracker.py

"""Fire-and-forget interaction events (views, contacts, favourites)."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from src.config.settings import Settings
from src.models.events import (
    EVENT_STORE_VIEW,
    EVENT_VIEW,
    INTERACTION_TYPES,
    InteractionEvent,
)
from src.normalizers.coercion import now_ms
from src.remote.realtime_db import RealtimeDatabaseClient

logger = logging.getLogger("shoplink.tracking")

_DEBOUNCED_TYPES: frozenset[str] = frozenset({EVENT_VIEW, EVENT_STORE_VIEW})


class EventSink(Protocol):
    def send(self, event: InteractionEvent) -> None: ...


class LoggingEventSink:
    """Writes events to the log only; used when no database is configured."""

    def send(self, event: InteractionEvent) -> None:
        logger.info(
            "Interaction %s seller=%s product=%s",
            event.type,
            event.seller_id,
            event.product_id or "-",
        )


class RealtimeDatabaseEventSink:
    """Appends each event under ``events/<sellerId>``."""

    def __init__(self, client: RealtimeDatabaseClient | None = None) -> None:
        self.client = client or RealtimeDatabaseClient()

    def send(self, event: InteractionEvent) -> None:
        self.client.post(
            f"{Settings.EVENTS_PATH}/{event.seller_id}", event.to_record(),
        )


def default_sink() -> EventSink:
    if Settings.DATABASE_URL:
        return RealtimeDatabaseEventSink()
    return LoggingEventSink()


class InteractionTracker:
    """Emit interaction events without ever blocking or failing the caller.

    Inside a running event loop the sink call is pushed to a worker
    thread and tracked until :meth:`drain`; outside one it runs inline.
    Repeated view events for the same product inside the debounce
    window are dropped.
    """

    def __init__(
        self,
        sink: EventSink | None = None,
        debounce: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sink = sink or default_sink()
        self.debounce = debounce if debounce is not None else (
            Settings.VIEW_DEBOUNCE_SECONDS
        )
        self._clock = clock
        self._last_seen: dict[tuple[str, str, str | None], float] = {}
        self._pending: set[asyncio.Task[None]] = set()

    def _is_repeat(
        self,
        event_type: str,
        seller_id: str,
        product_id: str | None,
    ) -> bool:
        if event_type not in _DEBOUNCED_TYPES or self.debounce <= 0:
            return False
        key = (event_type, seller_id, product_id)
        now = self._clock()
        last = self._last_seen.get(key)
        # Expired keys cannot coalesce anything; drop them
        self._last_seen = {
            seen: at
            for seen, at in self._last_seen.items()
            if now - at < self.debounce
        }
        self._last_seen[key] = now
        return last is not None and now - last < self.debounce

    def track(
        self,
        event_type: str,
        seller_id: str,
        product_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> InteractionEvent | None:
        """Record one interaction; returns the event, or None if coalesced.

        Raises ``ValueError`` for an unknown event type.
        """
        if event_type not in INTERACTION_TYPES:
            raise ValueError(f"Unknown interaction type: {event_type!r}")
        if self._is_repeat(event_type, seller_id, product_id):
            logger.debug(
                "Coalesced repeated %s for %s/%s",
                event_type,
                seller_id,
                product_id,
            )
            return None

        event = InteractionEvent(
            type=event_type,
            seller_id=seller_id,
            timestamp=now_ms(),
            product_id=product_id,
            metadata=dict(metadata or {}),
        )
        self._emit(event)
        return event

    def _emit(self, event: InteractionEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send(event)
            return
        task = loop.create_task(asyncio.to_thread(self._send, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _send(self, event: InteractionEvent) -> None:
        try:
            self.sink.send(event)
        except Exception:
            logger.warning(
                "Dropped %s event for %s",
                event.type,
                event.seller_id,
                exc_info=True,
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight emission to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
