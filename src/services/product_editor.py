# src/services/product_editor.py

"""Seller-side product creation with draft autosave."""

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from src.filters.product_validator import ProductValidator
from src.models.product import Product
from src.remote.store_adapter import RemoteStoreAdapter
from src.storage.draft_store import ProductDraftStore

logger = logging.getLogger("shoplink.editor")


class ProductEditor:
    """Create products for one seller.

    Validation happens before anything touches the remote store, and the
    draft survives until the write has succeeded.
    """

    def __init__(
        self,
        adapter: RemoteStoreAdapter,
        drafts: ProductDraftStore,
        seller_id: str,
    ) -> None:
        self.adapter = adapter
        self.drafts = drafts
        self.seller_id = seller_id

    def autosave(self, form: Mapping[str, Any]) -> None:
        self.drafts.save(form)

    def restore_draft(self) -> dict[str, Any] | None:
        draft = self.drafts.load()
        if draft is not None:
            logger.info("Restored product draft (%d fields)", len(draft))
        return draft

    def discard_draft(self) -> None:
        self.drafts.clear()

    async def submit(self, form: Mapping[str, Any]) -> Product:
        """Validate, write and return the stored product.

        Raises ``ProductValidationError`` without writing, or a
        ``RemoteStoreError`` from the write (the draft is kept).
        """
        product = ProductValidator.build_product(form)
        product_id = await self.adapter.create_product(self.seller_id, product)
        self.drafts.clear()
        return replace(product, id=product_id)
