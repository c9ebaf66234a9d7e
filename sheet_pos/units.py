from __future__ import annotations

import math
import re

from .models import UnitClass


_LEADING_NUMBER_RE = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)")

_UNIT_ALIASES: dict[str, UnitClass] = {
    "kg": UnitClass.WEIGHT,
    "kgs": UnitClass.WEIGHT,
    "kilogram": UnitClass.WEIGHT,
    "kilograms": UnitClass.WEIGHT,
    "l": UnitClass.VOLUME,
    "liter": UnitClass.VOLUME,
    "litre": UnitClass.VOLUME,
    "liters": UnitClass.VOLUME,
    "litres": UnitClass.VOLUME,
    "pack": UnitClass.COUNT,
    "packs": UnitClass.COUNT,
    "pcs": UnitClass.COUNT,
    "piece": UnitClass.COUNT,
    "pieces": UnitClass.COUNT,
}

_DEFAULT_LABELS: dict[UnitClass, str] = {
    UnitClass.WEIGHT: "kg",
    UnitClass.VOLUME: "Liter",
    UnitClass.COUNT: "Pack",
    UnitClass.OTHER: "",
}


def unit_class_for(label: str | None) -> UnitClass:
    """Map a sheet unit label ("Kg", "Liter", "Pack", ...) to its unit class."""
    text = str(label or "").strip().lower()
    if not text:
        return UnitClass.WEIGHT
    return _UNIT_ALIASES.get(text, UnitClass.OTHER)


def _resolve(unit: UnitClass | str | None, label: str | None) -> tuple[UnitClass, str]:
    if isinstance(unit, UnitClass):
        return unit, label if label is not None else _DEFAULT_LABELS[unit]
    cls = unit_class_for(unit)
    text = str(unit or "").strip()
    return cls, label if label is not None else (text or _DEFAULT_LABELS[cls])


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _fixed(value: float) -> str:
    # whole numbers without decimals, everything else with two
    if value % 1 == 0:
        return f"{value:.0f}"
    return f"{value:.2f}"


def format_quantity(value: float, unit: UnitClass | str | None = UnitClass.WEIGHT, label: str | None = None) -> str:
    """Render a canonical quantity for display.

    Weight and volume switch to grams / millilitres below one unit:
    - 2.5 kg    -> "2.50 kg"
    - 0.25 kg   -> "250 gm"
    - 0.1 Liter -> "100 ml"
    - 3 Pack    -> "3 Pack"
    """
    cls, label = _resolve(unit, label)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return "0"
    if math.isnan(value) or value <= 0:
        return "0"

    if cls is UnitClass.WEIGHT:
        if value >= 1:
            return f"{_fixed(value)} kg"
        return f"{round_half_up(value * 1000)} gm"

    if cls is UnitClass.VOLUME:
        if value >= 1:
            return f"{_fixed(value)} Liter"
        return f"{round_half_up(value * 1000)} ml"

    if cls is UnitClass.COUNT:
        return f"{round_half_up(value)} {label}".strip()

    return f"{_fixed(value)} {label}".strip()


def parse_quantity(
    text: object,
    unit: UnitClass | str | None = UnitClass.WEIGHT,
    label: str | None = None,
) -> float:
    """Parse operator input like '2.5 kg', '500 gm', '500 ml' or '3 Pack'.

    For other-class units the product's own label is not a conversion
    keyword: '2 Gram' on a "Gram" product is 2, not 0.002.

    Never raises: anything without a leading number parses as 0.
    """
    cls, label = _resolve(unit, label)

    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
        if math.isnan(value) or math.isinf(value):
            return 0.0
        return float(round_half_up(value)) if cls is UnitClass.COUNT else value

    if not isinstance(text, str):
        return 0.0

    trimmed = text.strip().lower()
    m = _LEADING_NUMBER_RE.match(trimmed)
    if not m:
        return 0.0
    value = float(m.group(1))

    if cls is UnitClass.OTHER and label and trimmed[m.end():].strip() == label.strip().lower():
        return value

    if "kg" in trimmed or "kilogram" in trimmed:
        qty = value
    elif "gm" in trimmed or "gram" in trimmed:
        qty = value / 1000
    elif "ml" in trimmed or "millilit" in trimmed:
        qty = value / 1000
    elif "liter" in trimmed or "litre" in trimmed or re.search(r"\d\s*l\b", trimmed):
        qty = value
    elif "pack" in trimmed or "pcs" in trimmed or "piece" in trimmed:
        qty = float(round_half_up(value))
    else:
        qty = value

    if cls is UnitClass.COUNT:
        return float(round_half_up(qty))
    return qty


def step_for(unit: UnitClass | str | None) -> float:
    """Increment used by the +/- controls: one pack, or 100 g / 100 ml."""
    cls, _ = _resolve(unit, None)
    return 1.0 if cls is UnitClass.COUNT else 0.1
