# tests/test_app.py

"""Smoke tests for the TUI application using Textual's Pilot."""

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from textual.widgets import Checkbox, DataTable, Input, Select, Static

from src.remote.errors import StoreNotFoundError
from src.remote.store_adapter import (
    CatalogPayload,
    Subscription,
    payload_from_tree,
)
from src.services.interaction_tracker import InteractionTracker
from src.services.storefront_session import (
    STATUS_NOT_FOUND,
    STATUS_READY,
    StorefrontSession,
)
from src.storage.local_store import KeyValueStore, MemoryKeyValueStore
from src.ui.app import ShoplinkApp

TREE: dict[str, Any] = {
    "storeName": "Ama's Closet",
    "whatsappNumber": "0241234567",
    "products": {
        "p1": {"name": "Scarf", "price": 20, "quantity": 2,
               "category": "Fashion", "createdAt": 2},
        "p2": {"name": "Shea Butter", "price": 10, "quantity": 5,
               "category": "Beauty", "createdAt": 1},
    },
}


class FakeAdapter:
    def __init__(self, result: Any) -> None:
        self.result = result

    async def fetch_once(self, seller_id: str) -> CatalogPayload:
        if isinstance(self.result, Exception):
            raise self.result
        return payload_from_tree(seller_id, self.result, now=1)

    def subscribe(self, seller_id: str, on_update: Any, on_error: Any) -> Subscription:
        return Subscription()


def _factory(result: Any = TREE) -> Any:
    def build(seller_id: str, storage: KeyValueStore) -> StorefrontSession:
        return StorefrontSession(
            seller_id,
            adapter=FakeAdapter(result),  # type: ignore[arg-type]
            storage=storage,
            tracker=MagicMock(spec=InteractionTracker),
        )
    return build


def _make_app(seller_id: str | None = "s1", result: Any = TREE) -> ShoplinkApp:
    return ShoplinkApp(
        seller_id=seller_id,
        storage=MemoryKeyValueStore(),
        session_factory=_factory(result),
    )


class TestShoplinkApp(unittest.IsolatedAsyncioTestCase):
    """Smoke tests for the Textual TUI."""

    async def test_app_composes_without_crash(self) -> None:
        """Verify the app starts and renders all widgets."""
        app = _make_app(seller_id=None)
        async with app.run_test() as pilot:
            app.query_one("#store_input", Input)
            app.query_one("#open_btn")
            app.query_one("#search_input", Input)
            app.query_one("#category_select", Select)
            app.query_one("#sort_select", Select)
            app.query_one("#favorites_only", Checkbox)
            app.query_one("#catalog_table", DataTable)
            app.query_one("#status", Static)
            await pilot.pause()
            self.assertIsNone(app.session)

    async def test_initial_store_populates_table(self) -> None:
        app = _make_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertIsNotNone(app.session)
            self.assertEqual(app.session.status, STATUS_READY)
            table = app.query_one("#catalog_table", DataTable)
            self.assertEqual(table.row_count, 2)
            self.assertEqual([p.id for p in app.products], ["p1", "p2"])

    async def test_empty_store_input_warns(self) -> None:
        app = _make_app(seller_id=None)
        async with app.run_test(notifications=True) as pilot:
            await pilot.click("#open_btn")
            await pilot.pause()
            self.assertIsNone(app.session)

    async def test_store_not_found(self) -> None:
        app = _make_app(result=StoreNotFoundError("ghost"))
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(app.session.status, STATUS_NOT_FOUND)
            self.assertEqual(app.products, [])

    async def test_open_store_from_link_selects_product(self) -> None:
        app = _make_app(seller_id=None)
        async with app.run_test() as pilot:
            await app.open_store("https://shoplink.app/store/s1#p2")
            await pilot.pause()
            self.assertEqual(app.session.seller_id, "s1")
            self.assertEqual(app.session.selected_id, "p2")

    async def test_search_filters_table(self) -> None:
        app = _make_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            app.query_one("#search_input", Input).value = "shea"
            await pilot.pause()
            self.assertEqual([p.id for p in app.products], ["p2"])
            table = app.query_one("#catalog_table", DataTable)
            self.assertEqual(table.row_count, 1)

    async def test_category_options_follow_catalog(self) -> None:
        app = _make_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(
                app._category_values, ["all", "Beauty", "Fashion"]
            )

    async def test_toggle_favorite_action(self) -> None:
        app = _make_app()
        async with app.run_test(notifications=True) as pilot:
            await pilot.pause()
            app.action_toggle_favorite()
            await pilot.pause()
            self.assertIn("p1", app.session.favorites)
            app.query_one("#favorites_only", Checkbox).value = True
            await pilot.pause()
            self.assertEqual([p.id for p in app.products], ["p1"])

    async def test_contact_opens_whatsapp(self) -> None:
        app = _make_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            with patch("src.ui.app.webbrowser.open") as mock_open:
                app.action_contact()
            url = mock_open.call_args.args[0]
            self.assertTrue(url.startswith("https://wa.me/233241234567"))

    async def test_refresh_without_store_warns(self) -> None:
        app = _make_app(seller_id=None)
        async with app.run_test(notifications=True) as pilot:
            await app.action_refresh()
            await pilot.pause()
            self.assertIsNone(app.session)


if __name__ == "__main__":
    unittest.main()
