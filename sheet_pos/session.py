from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .cart import Cart
from .catalog import Catalog
from .config import Config
from .errors import EmptyCart, InvalidSource
from .fetch import CatalogFetcher
from .http import HttpClient
from .normalize import normalize
from .report import Receipt
from .sheet import check_excel_filename, read_rows
from .storage import SettingsStore, load_source_url, save_source_url

logger = logging.getLogger(__name__)


class PointOfSale:
    """Owns the catalog and the cart for one till session.

    Loads never partially apply: the catalog is only replaced after the
    whole sheet has been read and normalized.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        store: SettingsStore | None = None,
        fetcher: CatalogFetcher | None = None,
    ):
        self.config = config or Config()
        self.store = store or SettingsStore(self.config.settings_path)
        self.fetcher = fetcher or CatalogFetcher(
            HttpClient(),
            attempt_timeout_s=self.config.attempt_timeout_s,
            single_timeout_s=self.config.fetch_timeout_s,
            deadline_s=self.config.deadline_s,
        )
        self.catalog = Catalog()
        self.cart = Cart(self.catalog, tax_rate=self.config.tax_rate)

    @property
    def source_url(self) -> str:
        return load_source_url(self.store, self.config.default_catalog_url)

    async def load_url(self, url: str | None = None) -> Catalog:
        url = (self.source_url if url is None else url).strip()
        if not url:
            raise InvalidSource("Please enter an Excel file URL")
        save_source_url(self.store, url)

        data = await self.fetcher.load(url)
        return self._install(data, source=url)

    async def load_file(self, path: str | Path) -> Catalog:
        path = Path(path)
        check_excel_filename(path.name)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise InvalidSource(f"Failed to read file {path}: {e}") from e
        return self._install(data, source=str(path))

    def load_bytes(self, data: bytes, filename: str) -> Catalog:
        check_excel_filename(filename)
        return self._install(data, source=filename)

    def _install(self, data: bytes, *, source: str) -> Catalog:
        rows = read_rows(data)
        products, rejected = normalize(rows)
        self.catalog.replace(products, rejected_count=rejected, source=source)
        return self.catalog

    def checkout(self, language: str | None = None) -> Receipt:
        if not len(self.cart):
            raise EmptyCart("Cart is empty")
        receipt = self.cart.build_receipt(language or self.config.receipt_language)
        self.cart.clear()
        logger.info("Checkout complete: %d lines, total %.2f", len(receipt.lines), receipt.total)
        return receipt
