from __future__ import annotations

import logging
import math
from typing import Callable

from .catalog import Catalog
from .errors import (
    InsufficientStock,
    InvalidPrice,
    InvalidQuantity,
    LineNotFound,
    OutOfStock,
)
from .models import PRICE_EPSILON, CartLine, PriceOption, Product
from .report import Receipt, build_receipt
from .units import format_quantity, parse_quantity, step_for

logger = logging.getLogger(__name__)

# Quantities are kept at gram / millilitre precision.
QTY_DECIMALS = 3


class Cart:
    """Cart lines priced and sized against a catalog.

    Every operation either applies completely or raises a ``CartError``
    with the cart left as it was.

    Listeners are called after a change is committed. An exception from a
    listener reaches the caller, but the change it was notified about stays.
    """

    def __init__(self, catalog: Catalog, *, tax_rate: float = 0.0):
        self.catalog = catalog
        self.tax_rate = tax_rate
        self._lines: list[CartLine] = []
        self._listeners: list[Callable[["Cart"], None]] = []

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def subscribe(self, callback: Callable[["Cart"], None]) -> None:
        self._listeners.append(callback)

    def _changed(self) -> None:
        # state is already updated here
        for cb in self._listeners:
            cb(self)

    def _line(self, index: int) -> CartLine:
        if not 0 <= index < len(self._lines):
            raise LineNotFound(f"No cart line at position {index}")
        return self._lines[index]

    def _current(self, line: CartLine) -> Product:
        # the catalog may have been reloaded since the line was added
        return self.catalog.find(line.product_id) or line.product

    # -- adding -------------------------------------------------------------

    def add_to_cart(self, product_id: int) -> list[PriceOption]:
        """Start adding a product: returns the price choices, adds nothing.

        The caller picks a tier (or types a price) and then calls
        ``add_to_cart_with_price``.
        """
        product = self.catalog.get(product_id)
        if product.stock == 0:
            raise OutOfStock(f"{product.name} is out of stock")
        return self.catalog.price_options(product_id)

    def add_to_cart_with_price(self, product_id: int, price: float, *, quantity: float = 1.0) -> CartLine:
        """Add ``quantity`` of a product at ``price``.

        A line with the same product and an equal price (within 0.01) is
        grown instead of adding a second line; stock is checked against the
        merged quantity.
        """
        product = self.catalog.get(product_id)
        price = _check_price(price)
        quantity = _check_quantity(quantity)

        if product.stock == 0:
            raise OutOfStock(f"{product.name} is out of stock")

        for line in self._lines:
            if line.product_id == product_id and abs(line.unit_price - price) < PRICE_EPSILON:
                new_qty = round(line.quantity + quantity, QTY_DECIMALS)
                if product.stock_limited and new_qty > product.stock:
                    raise InsufficientStock(f"Not enough stock available for {product.name}")
                line.quantity = new_qty
                logger.info("%s: quantity now %s", product.name, format_quantity(new_qty, product.unit, product.unit_label))
                self._changed()
                return line

        if product.stock_limited and quantity > product.stock:
            raise InsufficientStock(f"Not enough stock available for {product.name}")
        line = CartLine(product=product, quantity=quantity, unit_price=price)
        self._lines.append(line)
        logger.info("%s added at Rs.%.2f%s", product.name, price, " (custom)" if line.is_custom_price else "")
        self._changed()
        return line

    # -- editing ------------------------------------------------------------

    def update_quantity_by_index(self, index: int, direction: int) -> CartLine | None:
        """Step a line up or down by one pack or 100 g / 100 ml.

        Returns the line, or None when the step removed it.
        """
        line = self._line(index)
        if not direction:
            raise InvalidQuantity("Direction must be positive or negative")

        step = step_for(line.product.unit)
        delta = step if direction > 0 else -step
        new_qty = round(max(0.0, line.quantity + delta), QTY_DECIMALS)

        if new_qty <= 0:
            del self._lines[index]
            self._changed()
            return None

        product = self._current(line)
        if product.stock_limited and new_qty > product.stock:
            raise InsufficientStock(f"Not enough stock available for {product.name}")

        line.quantity = new_qty
        self._changed()
        return line

    def set_quantity_by_index(self, index: int, raw: object) -> CartLine:
        line = self._line(index)
        product = self._current(line)

        qty = round(parse_quantity(raw, line.product.unit, line.product.unit_label), QTY_DECIMALS)
        if qty <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")
        if product.stock_limited and qty > product.stock:
            raise InsufficientStock(f"Not enough stock available for {product.name}")

        line.quantity = qty
        self._changed()
        return line

    def edit_price(self, index: int, new_price: float) -> CartLine:
        line = self._line(index)
        line.unit_price = _check_price(new_price)
        self._changed()
        return line

    def remove_by_index(self, index: int) -> CartLine:
        line = self._line(index)
        del self._lines[index]
        self._changed()
        return line

    def clear(self) -> None:
        self._lines.clear()
        self._changed()

    # -- totals -------------------------------------------------------------

    def compute_total(self) -> float:
        return sum(line.unit_price * line.quantity for line in self._lines)

    def build_receipt(self, language: str = "english") -> Receipt:
        return build_receipt(self._lines, language=language, tax_rate=self.tax_rate)


def _check_price(price: object) -> float:
    try:
        value = float(price)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidPrice(f"Please enter a valid price: {price!r}") from None
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidPrice(f"Please enter a valid price: {price!r}")
    return value


def _check_quantity(quantity: object) -> float:
    try:
        value = round(float(quantity), QTY_DECIMALS)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidQuantity(f"Please enter a valid quantity: {quantity!r}") from None
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise InvalidQuantity("Quantity must be greater than 0")
    return value
