from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# Stock value used when the sheet has no stock column.
UNLIMITED_STOCK = 999

# Two prices closer than this are the same price.
PRICE_EPSILON = 0.01

UNKNOWN_NAME = "Unknown"


class UnitClass(str, Enum):
    WEIGHT = "weight"
    VOLUME = "volume"
    COUNT = "count"
    OTHER = "other"


# Tier key -> display label, in default-price priority order.
PRICE_TIERS: dict[str, str] = {
    "parchon": "Parchon Price",
    "gatta": "Gatta Price",
    "wholesale": "Wholesale Price",
}


@dataclass(frozen=True)
class Product:
    """One catalog entry, built by the normalizer and never mutated."""

    id: int
    name: str

    # Secondary-language (Urdu) name, shown on localized receipts.
    name_localized: str = ""

    category: str = "General"
    barcode: str = ""
    description: str = ""

    unit: UnitClass = UnitClass.WEIGHT
    unit_label: str = "Kg"   # as written in the sheet, e.g. "Liter", "Pack"

    # Only tiers with a positive amount are present.
    price_tiers: dict[str, float] = field(default_factory=dict)

    stock: int = UNLIMITED_STOCK

    # Legacy columns, kept for old sheets; never used for pricing.
    min_price: float = 0.0
    max_price: float = 0.0

    @property
    def default_price(self) -> float:
        for tier in PRICE_TIERS:
            price = self.price_tiers.get(tier, 0.0)
            if price > 0:
                return price
        return 0.0

    def tier_price(self, tier: str) -> float:
        return self.price_tiers.get(tier, 0.0)

    @property
    def is_valid(self) -> bool:
        return bool(self.name) and self.name != UNKNOWN_NAME and self.default_price > 0

    @property
    def stock_limited(self) -> bool:
        return self.stock > 0


@dataclass(frozen=True)
class PriceOption:
    tier: str
    label: str
    price: float


@dataclass
class CartLine:
    product: Product
    quantity: float
    unit_price: float

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def is_custom_price(self) -> bool:
        return abs(self.unit_price - self.product.default_price) >= PRICE_EPSILON

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity
