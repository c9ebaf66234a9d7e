from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .models import UNKNOWN_NAME, UNLIMITED_STOCK


@dataclass(frozen=True)
class HeaderRule:
    pattern: re.Pattern[str]
    exclude: re.Pattern[str] | None = None

    def matches(self, header: str) -> bool:
        if not self.pattern.search(header):
            return False
        return not (self.exclude and self.exclude.search(header))


def _rule(pattern: str, *, exclude: str | None = None) -> HeaderRule:
    return HeaderRule(
        pattern=re.compile(pattern, re.IGNORECASE),
        exclude=re.compile(exclude, re.IGNORECASE) if exclude else None,
    )


@dataclass(frozen=True)
class FieldSpec:
    """How one logical product field is found in an arbitrary sheet.

    Lookup order for a row:
    1. ``rules``: the first header (in column order) matching the first rule
       that matches anything, chosen once per sheet.
    2. ``literals``: exact header spellings, tried in order.
    3. ``late_rules``: broad sheet-level rules for legacy layouts, switched
       off for the whole sheet when any header in ``late_unless`` exists.
    4. ``default``.

    A blank cell at any step falls through to the next one.
    """

    name: str
    literals: tuple[str, ...]
    default: Any = ""
    rules: tuple[HeaderRule, ...] = ()
    late_rules: tuple[HeaderRule, ...] = ()
    late_unless: tuple[str, ...] = ()


def _spellings(*names: str) -> tuple[str, ...]:
    # each header as written plus its lowercase form
    out: list[str] = []
    for n in names:
        for v in (n, n.lower()):
            if v not in out:
                out.append(v)
    return tuple(out)


def _price_spellings(label: str) -> tuple[str, ...]:
    spaced = f"{label} Price"
    return _spellings(spaced, spaced.replace(" ", ""))


# Any of these marks a tiered sheet.
_TIER_HEADERS = _price_spellings("Parchon") + _price_spellings("Gatta") + _price_spellings("Wholesale")


FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec(
            name="name",
            rules=(
                _rule(r"name.*english|english.*name"),
                # pandas labels blank header cells "Unnamed: N"
                _rule(r"name", exclude=r"urdu|^unnamed"),
                _rule(r"^name$"),
            ),
            literals=_spellings("Name (English)", "Name(English)", "Name", "Product", "Product Name", "Item"),
            default=UNKNOWN_NAME,
        ),
        FieldSpec(
            name="name_localized",
            rules=(
                _rule(r"name.*urdu|urdu.*name"),
                _rule(r"urdu"),
            ),
            literals=_spellings("Name (Urdu)", "Name(Urdu)", "Urdu Name"),
        ),
        FieldSpec(name="barcode", literals=_spellings("Barcode", "SKU", "Product Code")),
        FieldSpec(name="unit", literals=_spellings("Unit", "Unit Type", "Type"), default="Kg"),
        FieldSpec(name="stock", literals=_spellings("Stock", "Quantity", "In Stock"), default=UNLIMITED_STOCK),
        FieldSpec(name="category", literals=_spellings("Category", "Product Category"), default="General"),
        FieldSpec(name="description", literals=_spellings("Description")),
        FieldSpec(
            name="parchon",
            literals=_price_spellings("Parchon"),
            default=0,
            # single-price sheets only: a bare "Price"/"Rate" column feeds the first tier
            late_rules=(_rule(r"price|rate", exclude=r"min|max|gatta|wholesale|parchon"),),
            late_unless=_TIER_HEADERS,
        ),
        FieldSpec(name="gatta", literals=_price_spellings("Gatta"), default=0),
        FieldSpec(name="wholesale", literals=_price_spellings("Wholesale"), default=0),
        FieldSpec(name="min_price", literals=_price_spellings("Min"), default=0),
        FieldSpec(name="max_price", literals=_price_spellings("Max"), default=0),
    )
}


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _first_match(rules: Iterable[HeaderRule], headers: tuple[str, ...]) -> str | None:
    for rule in rules:
        for h in headers:
            if rule.matches(h):
                return h
    return None


@dataclass(frozen=True)
class ColumnMap:
    headers: tuple[str, ...]
    early: dict[str, str | None] = field(default_factory=dict)
    late: dict[str, str | None] = field(default_factory=dict)

    def value(self, row: Mapping[str, Any], name: str) -> Any:
        spec = FIELDS[name]

        header = self.early.get(name)
        if header is not None and not is_blank(row.get(header)):
            return row[header]

        for literal in spec.literals:
            if literal in row and not is_blank(row[literal]):
                return row[literal]

        header = self.late.get(name)
        if header is not None and not is_blank(row.get(header)):
            return row[header]

        return spec.default

    def describe(self) -> dict[str, str | None]:
        return {name: self.early.get(name) or self.late.get(name) for name in FIELDS}


def map_columns(headers: Iterable[str]) -> ColumnMap:
    hdrs = tuple(str(h) for h in headers)
    return ColumnMap(
        headers=hdrs,
        early={name: _first_match(spec.rules, hdrs) for name, spec in FIELDS.items() if spec.rules},
        late={
            name: _first_match(spec.late_rules, hdrs)
            for name, spec in FIELDS.items()
            if spec.late_rules and not any(h in spec.late_unless for h in hdrs)
        },
    )
