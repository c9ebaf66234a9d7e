from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Sequence

from .columns import ColumnMap, map_columns
from .errors import EmptyCatalog, NoValidProducts
from .models import PRICE_TIERS, UNLIMITED_STOCK, Product
from .units import unit_class_for

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)")
_INT_RE = re.compile(r"^\s*([-+]?\d+)")


def cell_text(value: Any) -> str:
    """Cell as trimmed text; whole floats lose their '.0' (barcodes, ids)."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def parse_number(value: Any) -> float:
    """Leading number of a cell, 0 when there is none."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        m = _NUMBER_RE.match(str(value))
        if not m:
            return 0.0
        num = float(m.group(1))
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def parse_stock(value: Any) -> int:
    if isinstance(value, bool):
        return UNLIMITED_STOCK
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return UNLIMITED_STOCK
        return max(0, int(value))
    m = _INT_RE.match(str(value))
    if not m:
        return UNLIMITED_STOCK
    return max(0, int(m.group(1)))


def build_product(row: Mapping[str, Any], product_id: int, columns: ColumnMap) -> Product:
    unit_label = cell_text(columns.value(row, "unit")) or "Kg"

    tiers: dict[str, float] = {}
    for tier in PRICE_TIERS:
        price = parse_number(columns.value(row, tier))
        if price > 0:
            tiers[tier] = price

    return Product(
        id=product_id,
        name=cell_text(columns.value(row, "name")),
        name_localized=cell_text(columns.value(row, "name_localized")),
        category=cell_text(columns.value(row, "category")) or "General",
        barcode=cell_text(columns.value(row, "barcode")),
        description=cell_text(columns.value(row, "description")),
        unit=unit_class_for(unit_label),
        unit_label=unit_label,
        price_tiers=tiers,
        stock=parse_stock(columns.value(row, "stock")),
        min_price=parse_number(columns.value(row, "min_price")),
        max_price=parse_number(columns.value(row, "max_price")),
    )


def normalize(rows: Sequence[Mapping[str, Any]]) -> tuple[list[Product], int]:
    """Turn raw header-keyed rows into valid products.

    Ids are the 1-based row positions, so a rejected row leaves a gap.
    Returns (products in row order, number of rejected rows).
    """
    if not rows:
        raise EmptyCatalog("Excel file is empty or contains no data rows")

    headers = [str(h) for h in rows[0].keys()]
    columns = map_columns(headers)
    logger.info("Columns: %s", ", ".join(headers) or "none")
    logger.debug("Resolved columns: %s", columns.describe())

    products: list[Product] = []
    rejected = 0
    for index, row in enumerate(rows):
        product = build_product(row, index + 1, columns)
        if not product.is_valid:
            rejected += 1
            logger.debug("Rejected row %d: name=%r price=%s", index + 1, product.name, product.default_price)
            continue
        products.append(product)

    if not products:
        raise NoValidProducts(headers, len(rows))

    logger.info("Normalized %d products (%d rows rejected)", len(products), rejected)
    return products, rejected
