# src/ui/app.py

"""Terminal storefront browser built on the catalog engine."""

import logging
import webbrowser
from collections.abc import Callable
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
)

from src.config.settings import Settings
from src.filters.catalog_view import ALL_CATEGORIES, SORT_KEYS, SORT_NEWEST
from src.models.product import Product
from src.services.catalog_urls import parse_catalog_url
from src.services.message_composer import format_price
from src.services.storefront_session import (
    STATUS_LOADING,
    STATUS_NETWORK_ERROR,
    STATUS_NOT_FOUND,
    STATUS_READY,
    StorefrontSession,
)
from src.storage.local_store import KeyValueStore, SQLiteKeyValueStore

logger = logging.getLogger("shoplink.ui")

SessionFactory = Callable[[str, KeyValueStore], StorefrontSession]

_SORT_LABELS: dict[str, str] = {
    "newest": "Newest",
    "price-low": "Price: low to high",
    "price-high": "Price: high to low",
    "name": "Name",
    "popular": "Most popular",
}


def _default_session(seller_id: str, storage: KeyValueStore) -> StorefrontSession:
    return StorefrontSession(seller_id, storage=storage)


class ShoplinkApp(App[object]):
    """Browse one seller's storefront from the terminal."""

    CSS = """
    #store_bar, #filter_bar { height: auto; }
    #store_input { width: 1fr; }
    #search_input { width: 2fr; }
    #category_select, #sort_select { width: 1fr; }
    #status { padding: 0 1; }
    #detail { padding: 0 1; height: auto; color: $text-muted; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("f", "toggle_favorite", "Favourite"),
        Binding("c", "contact", "WhatsApp"),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        seller_id: str | None = None,
        storage: KeyValueStore | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        self.initial_seller_id = seller_id
        self.storage: KeyValueStore = storage or SQLiteKeyValueStore()
        self._session_factory = session_factory or _default_session
        self.session: StorefrontSession | None = None
        self.products: list[Product] = []
        self._category_values: list[str] = []

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        sort_options = [(_SORT_LABELS[key], key) for key in SORT_KEYS]

        yield Header()
        yield Container(
            Static("🛍️ ShopLink storefront browser", id="title"),
            Horizontal(
                Input(
                    value=self.initial_seller_id or "",
                    placeholder="Seller ID or store link...",
                    id="store_input",
                ),
                Button("Open", variant="primary", id="open_btn"),
                id="store_bar",
            ),
            Horizontal(
                Input(placeholder="Search products...", id="search_input"),
                Select(
                    [("All categories", ALL_CATEGORIES)],
                    value=ALL_CATEGORIES,
                    allow_blank=False,
                    id="category_select",
                ),
                Select(
                    sort_options,
                    value=SORT_NEWEST,
                    allow_blank=False,
                    id="sort_select",
                ),
                Checkbox("Favourites", value=False, id="favorites_only"),
                id="filter_bar",
            ),
            Static("Enter a seller ID to open a store", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="catalog_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            Static("", id="detail"),
            id="main_container",
        )
        yield Footer()

    async def on_mount(self) -> None:
        """Configure the catalog table and open the initial store."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#catalog_table", DataTable),
        )
        table.add_columns("★", "Name", "Price", "Stock", "Category")
        if self.initial_seller_id:
            await self.open_store(self.initial_seller_id)

    async def on_unmount(self) -> None:
        if self.session is not None:
            await self.session.aclose()
        close = getattr(self.storage, "close", None)
        if callable(close):
            close()

    # ── Store lifecycle ──────────────────────────────────

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "open_btn":
            await self._open_from_input()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "store_input":
            await self._open_from_input()

    async def _open_from_input(self) -> None:
        raw = self.query_one("#store_input", Input).value.strip()
        if not raw:
            self.notify("Please enter a seller ID", severity="warning")
            return
        await self.open_store(raw)

    async def open_store(self, target: str) -> None:
        """Open a store by seller id or by public catalog URL."""
        location = parse_catalog_url(target)
        seller_id = location.seller_id if location else target

        if self.session is not None:
            await self.session.aclose()

        session = self._session_factory(seller_id, self.storage)
        self.session = session
        self._category_values = []
        session.on_change(lambda _s: self.render_session())
        self._sync_filters(session)

        await session.load()
        if session.status == STATUS_READY:
            session.start_live()
            if location is not None and location.product_id:
                session.select_from_url(target)

    def _sync_filters(self, session: StorefrontSession) -> None:
        """Carry the on-screen filter state over to a fresh session."""
        session.set_query(self.query_one("#search_input", Input).value)
        session.set_sort(str(self.query_one("#sort_select", Select).value))
        session.set_favorites_only(
            self.query_one("#favorites_only", Checkbox).value
        )

    # ── Rendering ────────────────────────────────────────

    def render_session(self) -> None:
        session = self.session
        if session is None:
            return
        status = self.query_one("#status", Static)
        seller = session.seller
        currency = seller.currency if seller else Settings.DEFAULT_CURRENCY

        if session.status == STATUS_LOADING and not session.cache.is_loaded:
            status.update(f"⏳ Loading {session.seller_id}...")
        elif session.status == STATUS_NOT_FOUND:
            status.update(f"❌ Store not found: {session.seller_id}")
        elif session.status == STATUS_NETWORK_ERROR:
            status.update(f"⚠️ {session.error}")
        else:
            name = seller.store_name if seller else session.seller_id
            line = f"✅ {name}: {len(session.view())} products"
            if session.error:
                line += f"  ⚠️ {session.error}"
            status.update(line)

        self._update_categories(session)
        self.products = session.view()
        self.populate_table(currency)

        selected = session.selected
        detail = self.query_one("#detail", Static)
        if selected is None:
            detail.update("")
        else:
            detail.update(
                f"{selected.display_name} · "
                f"{format_price(selected.price, currency)}\n"
                f"{selected.short_description}"
            )

    def _update_categories(self, session: StorefrontSession) -> None:
        select = cast(Select[str], self.query_one("#category_select", Select))
        options = [("All categories", ALL_CATEGORIES)] + [
            (f"{name} ({count})", name)
            for name, count in session.categories()
        ]
        values = [value for _label, value in options]
        if values == self._category_values:
            return
        self._category_values = values
        current = session.query.category
        with select.prevent(Select.Changed):
            select.set_options(options)
            select.value = current if current in values else ALL_CATEGORIES

    def populate_table(self, currency: str) -> None:
        """Fill the DataTable with the session's current view."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#catalog_table", DataTable),
        )
        table.clear()
        favorites = self.session.favorites if self.session else None

        for p in self.products:
            star = "★" if favorites is not None and p.id in favorites else ""
            if p.quantity == 0:
                stock = Text("sold out", style="red")
            elif p.is_low_stock:
                stock = Text(str(p.quantity), style="yellow")
            else:
                stock = Text(str(p.quantity))
            table.add_row(
                star,
                p.display_name[:50],
                Text(format_price(p.price, currency), style="green"),
                stock,
                p.category,
                key=p.id,
            )

    # ── Filters ──────────────────────────────────────────

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search_input" and self.session is not None:
            self.session.set_query(event.value)

    def on_select_changed(self, event: Select.Changed) -> None:
        if self.session is None or event.value is Select.BLANK:
            return
        if event.select.id == "category_select":
            self.session.set_category(str(event.value))
        elif event.select.id == "sort_select":
            self.session.set_sort(str(event.value))

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if event.checkbox.id == "favorites_only" and self.session is not None:
            self.session.set_favorites_only(event.value)

    def on_data_table_row_selected(
        self, event: DataTable.RowSelected
    ) -> None:
        if self.session is not None and event.row_key.value is not None:
            self.session.open_product(str(event.row_key.value))

    # ── Actions ──────────────────────────────────────────

    def _cursor_product(self) -> Product | None:
        table = cast(
            DataTable[str | Text],
            self.query_one("#catalog_table", DataTable),
        )
        row = table.cursor_row
        if 0 <= row < len(self.products):
            return self.products[row]
        return None

    def action_toggle_favorite(self) -> None:
        product = self._cursor_product()
        if self.session is None or product is None:
            return
        added = self.session.toggle_favorite(product.id)
        verb = "Added to" if added else "Removed from"
        self.notify(f"{verb} favourites: {product.display_name}")

    def action_contact(self) -> None:
        """Open a WhatsApp chat about the highlighted product."""
        if self.session is None:
            return
        product = self._cursor_product()
        if product is None:
            link = self.session.contact_store()
        else:
            link = self.session.contact_product(product.id)
        if link is None:
            self.notify(
                "This store has no valid WhatsApp number",
                severity="error",
            )
            return
        try:
            webbrowser.open(link.url)
        except Exception:
            logger.error("Failed to open %s", link.url, exc_info=True)
            self.notify(link.url)

    async def action_refresh(self) -> None:
        if self.session is None:
            self.notify("No store open", severity="warning")
            return
        await self.session.refresh()
        if self.session.error:
            self.notify(self.session.error, severity="warning")
