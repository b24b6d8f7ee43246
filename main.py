# main.py

"""Entry point for the shoplink catalog browser (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings
from src.filters.catalog_view import (
    ALL_CATEGORIES,
    SORT_KEYS,
    SORT_NEWEST,
    ViewQuery,
)

logger = logging.getLogger("shoplink.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="shoplink",
        description="Browse a ShopLink seller catalog.",
        epilog=f"Sort keys: {', '.join(SORT_KEYS)}",
    )
    parser.add_argument(
        "seller_id",
        nargs="?",
        default=None,
        help="Seller ID or store link. Omit to launch the interactive TUI.",
    )
    parser.add_argument(
        "-q",
        "--query",
        default="",
        help="Search terms; every term must match.",
    )
    parser.add_argument(
        "-c",
        "--category",
        default=ALL_CATEGORIES,
        help="Only show this category (default: all).",
    )
    parser.add_argument(
        "-s",
        "--sort",
        default=SORT_NEWEST,
        dest="sort_key",
        help="Sort order (default: newest).",
    )
    parser.add_argument(
        "--favorites-only",
        action="store_true",
        default=False,
        dest="favorites_only",
        help="Only show products saved as favourites on this device.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--contact",
        default=None,
        metavar="PRODUCT_ID",
        help="Print the WhatsApp link for one product instead.",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=False,
        help="Print the store share message instead.",
    )
    parser.add_argument(
        "--check-phone",
        default=None,
        metavar="NUMBER",
        dest="check_phone",
        help="Validate a phone number and print its dialable form.",
    )
    parser.add_argument(
        "--country",
        default=Settings.DEFAULT_COUNTRY,
        help="Country hint for --check-phone (default: %(default)s).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo debug logs to stderr.",
    )
    return parser


def _run_tui(seller_id: str | None) -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import ShoplinkApp

    try:
        app = ShoplinkApp(seller_id=seller_id)
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("shoplink TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Load one store headlessly, print it and exit."""
    from src.cli.runner import cli_browse
    from src.services.catalog_urls import parse_catalog_url

    location = parse_catalog_url(args.seller_id)
    seller_id = location.seller_id if location else args.seller_id
    contact_id = args.contact
    if contact_id is None and location is not None:
        contact_id = location.product_id

    exit_code = asyncio.run(
        cli_browse(
            seller_id=seller_id,
            query=ViewQuery(
                query=args.query,
                category=args.category,
                favorites_only=args.favorites_only,
                sort_key=args.sort_key,
            ),
            output_format=args.output_format,
            contact_id=contact_id,
            share=args.share,
        )
    )
    sys.exit(exit_code)


def _run_phone_check(number: str, country: str) -> None:
    from src.cli.runner import run_phone_check

    sys.exit(run_phone_check(number, country))


def main() -> None:
    """Route to the phone check, TUI (no seller) or headless CLI."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("shoplink starting, log file: %s", log_file)

    if args.check_phone is not None:
        _run_phone_check(args.check_phone, args.country)
    elif args.seller_id is None:
        _run_tui(None)
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
