# src/cli/runner.py

"""Headless CLI: print a seller's derived catalog view or check a phone."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.filters.catalog_view import SORT_KEYS, ViewQuery
from src.models.product import Product
from src.normalizers import phone_normalizer
from src.services.message_composer import format_price
from src.services.storefront_session import (
    STATUS_NETWORK_ERROR,
    STATUS_NOT_FOUND,
    StorefrontSession,
)
from src.storage.local_store import SQLiteKeyValueStore

logger = logging.getLogger("shoplink.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _products_to_dicts(
    products: list[Product],
    currency: str,
) -> list[dict[str, object]]:
    """Serialise a product list to plain dicts for JSON output."""
    return [
        {
            "id": p.id,
            "name": p.display_name,
            "price": p.price,
            "currency": currency,
            "quantity": p.quantity,
            "category": p.category,
            "status": p.status,
            "image": p.image_url,
            "description": p.short_description,
            "createdAt": p.created_at,
        }
        for p in products
    ]


def _print_table(products: list[Product], title: str, currency: str) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=40)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Stock", justify="right")
    table.add_column("Category", style="magenta")
    table.add_column("ID", overflow="fold", style="dim")

    for idx, p in enumerate(products, 1):
        stock = str(p.quantity)
        if p.quantity == 0:
            stock = "[red]sold out[/red]"
        elif p.is_low_stock:
            stock = f"[yellow]{p.quantity}[/yellow]"
        table.add_row(
            str(idx),
            p.display_name[:40],
            format_price(p.price, currency),
            stock,
            p.category,
            p.id,
        )

    Console().print(table)


async def cli_browse(
    seller_id: str,
    query: ViewQuery,
    output_format: str,
    contact_id: str | None = None,
    share: bool = False,
) -> int:
    """Load one storefront and print its view; returns an exit code."""
    if query.sort_key not in SORT_KEYS:
        _err.print(f"[red]Unknown sort key: {query.sort_key}[/red]")
        _err.print(f"[dim]Available: {', '.join(SORT_KEYS)}[/dim]")
        return 2

    storage = SQLiteKeyValueStore()
    session = StorefrontSession(seller_id, storage=storage)
    _err.print(f"[bold]Loading store:[/bold] {seller_id}")
    try:
        await session.load()
    finally:
        await session.aclose()
        storage.close()

    if session.status == STATUS_NOT_FOUND:
        _err.print(f"[red]Store not found: {seller_id}[/red]")
        return 1
    if session.status == STATUS_NETWORK_ERROR:
        _err.print(f"[red]{session.error}[/red]")
        return 1
    if session.error:
        _err.print(f"[yellow]{session.error}[/yellow]")

    session.set_query(query.query)
    session.set_category(query.category)
    session.set_sort(query.sort_key)
    session.set_favorites_only(query.favorites_only)

    seller = session.seller
    currency = seller.currency if seller else Settings.DEFAULT_CURRENCY
    store_name = seller.store_name if seller else seller_id

    if seller is not None and seller.phone_needs_update:
        _err.print(
            "[yellow]Store WhatsApp number is not dialable: "
            f"{seller.whatsapp_number or '(missing)'}[/yellow]"
        )

    if share:
        sys.stdout.write(f"{session.share_message()}\n")
        return 0

    if contact_id is not None:
        link = session.contact_product(contact_id)
        if link is None:
            _err.print(f"[red]Cannot contact about product {contact_id}[/red]")
            return 1
        sys.stdout.write(f"{link.url}\n")
        return 0

    products = session.view()
    total = len(session.cache.get_visible())
    _err.print(f"[green]✓ {len(products)} of {total} products[/green]")
    if not products:
        _err.print("[yellow]No products match.[/yellow]")

    if output_format == "table":
        _print_table(products, store_name, currency)
    else:
        json.dump(
            _products_to_dicts(products, currency),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


def run_phone_check(raw: str, country: str) -> int:
    """Validate one phone number and print the dialable form."""
    result = phone_normalizer.validate(raw, country)
    if not result.is_valid or result.normalized is None:
        _err.print(f"[red]✗ {result.error}[/red]")
        _err.print(f"[dim]{phone_normalizer.phone_hint(country)}[/dim]")
        return 1

    _err.print(
        "[green]✓ "
        f"{phone_normalizer.format_for_display(result.normalized)}[/green]"
    )
    sys.stdout.write(f"{result.normalized}\n")
    return 0
