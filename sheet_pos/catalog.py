from __future__ import annotations

import logging
from typing import Iterable

from .errors import UnknownProduct
from .models import PRICE_TIERS, PriceOption, Product

logger = logging.getLogger(__name__)


class Catalog:
    """The product list currently in use.

    A reload swaps the whole tuple in one assignment, so readers see either
    the old catalog or the new one.
    """

    def __init__(self, products: Iterable[Product] = (), *, rejected_count: int = 0, source: str | None = None):
        self._products: tuple[Product, ...] = tuple(products)
        self.rejected_count = rejected_count
        self.source = source

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self):
        return iter(self._products)

    def replace(self, products: Iterable[Product], *, rejected_count: int = 0, source: str | None = None) -> None:
        new = tuple(products)
        self._products = new
        self.rejected_count = rejected_count
        self.source = source
        logger.info("Catalog replaced: %d products from %s", len(new), source or "memory")

    def find(self, product_id: int) -> Product | None:
        for p in self._products:
            if p.id == product_id:
                return p
        return None

    def get(self, product_id: int) -> Product:
        product = self.find(product_id)
        if product is None:
            raise UnknownProduct(f"Product not found: {product_id}")
        return product

    def search(self, term: str) -> list[Product]:
        needle = (term or "").strip().lower()
        if not needle:
            return list(self._products)
        return [
            p for p in self._products
            if any(needle in field.lower() for field in (p.name, p.name_localized, p.category, p.barcode))
        ]

    def price_options(self, product_id: int) -> list[PriceOption]:
        product = self.get(product_id)
        return [
            PriceOption(tier=tier, label=label, price=product.tier_price(tier))
            for tier, label in PRICE_TIERS.items()
            if product.tier_price(tier) > 0
        ]
