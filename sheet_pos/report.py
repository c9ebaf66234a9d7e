from __future__ import annotations

import html
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .models import CartLine
from .units import format_quantity

CURRENCY = "Rs."

DEFAULT_LANGUAGE = "english"
RTL_LANGUAGES = {"urdu"}

LANGUAGE_ALIASES = {
    "english": "english",
    "en": "english",
    "urdu": "urdu",
    "ur": "urdu",
}

TRANSLATIONS: dict[str, dict[str, str]] = {
    "english": {
        "receipt": "Receipt",
        "date": "Date",
        "item": "Item",
        "quantity": "Quantity",
        "price": "Price",
        "total": "Total",
        "subtotal": "Subtotal",
        "tax": "Tax",
        "thank_you": "Thank you for your purchase!",
    },
    "urdu": {
        "receipt": "رسید",
        "date": "تاریخ",
        "item": "آئٹم",
        "quantity": "مقدار",
        "price": "قیمت",
        "total": "کل",
        "subtotal": "ذیلی کل",
        "tax": "ٹیکس",
        "thank_you": "آپ کی خریداری کا شکریہ!",
    },
}


def resolve_language(language: str | None) -> str:
    key = (language or "").strip().lower()
    return LANGUAGE_ALIASES.get(key, DEFAULT_LANGUAGE)


def money(amount: float) -> str:
    return f"{CURRENCY}{amount:.2f}"


@dataclass
class ReceiptLine:
    display_name: str
    quantity_text: str
    unit_price: float
    line_total: float


@dataclass
class Receipt:
    created_at: str
    language: str
    direction: str   # "ltr" or "rtl"
    labels: dict[str, str]
    lines: list[ReceiptLine]
    subtotal: float
    tax_rate: float
    tax: float
    total: float
    date_text: str = field(default="")

    def summary_text(self) -> str:
        t = self.labels
        out = [
            f"{t['receipt']}  {t['date']}: {self.date_text or self.created_at}",
            "",
        ]
        for i, ln in enumerate(self.lines, 1):
            out.append(f"  {i}. {ln.display_name}")
            out.append(f"     {ln.quantity_text} x {money(ln.unit_price)} = {money(ln.line_total)}")
        out.append("")
        if self.tax:
            out.append(f"{t['subtotal']}: {money(self.subtotal)}")
            out.append(f"{t['tax']} ({self.tax_rate:.0%}): {money(self.tax)}")
        out.append(f"{t['total']}: {money(self.total)}")
        return "\n".join(out)

    def to_html(self) -> str:
        t = {k: html.escape(v) for k, v in self.labels.items()}
        rtl = self.direction == "rtl"
        font = 'Arial, "Noto Nastaliq Urdu", "Al Qalam Taj Nastaliq", sans-serif' if rtl else "Arial, sans-serif"
        align = "right" if rtl else "left"
        far = "left" if rtl else "right"

        rows = "\n".join(
            "<tr>"
            f"<td>{html.escape(ln.display_name)}</td>"
            f"<td>{html.escape(ln.quantity_text)}</td>"
            f"<td>{money(ln.unit_price)}</td>"
            f"<td>{money(ln.line_total)}</td>"
            "</tr>"
            for ln in self.lines
        )

        tax_rows = ""
        if self.tax:
            tax_rows = (
                f'<tr><td colspan="3" class="far">{t["subtotal"]}:</td><td>{money(self.subtotal)}</td></tr>\n'
                f'<tr><td colspan="3" class="far">{t["tax"]} ({self.tax_rate:.0%}):</td><td>{money(self.tax)}</td></tr>\n'
            )

        return f"""<!DOCTYPE html>
<html dir="{self.direction}" lang="{'ur' if rtl else 'en'}">
<head>
<meta charset="UTF-8">
<title>{t['receipt']}</title>
<style>
body {{ font-family: {font}; padding: 20px; direction: {self.direction}; }}
h1 {{ text-align: center; }}
table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
th, td {{ padding: 8px; text-align: {align}; border-bottom: 1px solid #ddd; }}
th {{ background-color: #f2f2f2; }}
.total {{ font-weight: bold; font-size: 1.2em; }}
.far {{ text-align: {far}; }}
</style>
</head>
<body>
<h1>{t['receipt']}</h1>
<p><strong>{t['date']}:</strong> {html.escape(self.date_text or self.created_at)}</p>
<table>
<thead>
<tr><th>{t['item']}</th><th>{t['quantity']}</th><th>{t['price']}</th><th>{t['total']}</th></tr>
</thead>
<tbody>
{rows}
</tbody>
<tfoot>
{tax_rows}<tr class="total"><td colspan="3" class="far">{t['total']}:</td><td>{money(self.total)}</td></tr>
</tfoot>
</table>
<p style="text-align: center; margin-top: 30px;">{t['thank_you']}</p>
</body>
</html>
"""

    def write_html(self, path: str = "artifacts/receipt.html") -> str:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.to_html(), encoding="utf-8")
        return str(out)

    def write_json(self, path: str = "artifacts/receipt.json") -> str:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(asdict(self), indent=2, ensure_ascii=False), encoding="utf-8")
        return str(out)


def build_receipt(
    lines: Iterable[CartLine],
    *,
    language: str | None = DEFAULT_LANGUAGE,
    tax_rate: float = 0.0,
    now: datetime | None = None,
) -> Receipt:
    lang = resolve_language(language)
    localized = lang != DEFAULT_LANGUAGE
    now = now or datetime.now()

    items: list[ReceiptLine] = []
    for ln in lines:
        p = ln.product
        name = p.name_localized if localized and p.name_localized else p.name
        items.append(ReceiptLine(
            display_name=name,
            quantity_text=format_quantity(ln.quantity, p.unit, p.unit_label),
            unit_price=ln.unit_price,
            line_total=ln.line_total,
        ))

    subtotal = sum(i.line_total for i in items)
    tax = subtotal * tax_rate
    return Receipt(
        created_at=now.isoformat(timespec="seconds"),
        language=lang,
        direction="rtl" if lang in RTL_LANGUAGES else "ltr",
        labels=dict(TRANSLATIONS[lang]),
        lines=items,
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax=tax,
        total=subtotal + tax,
        date_text=now.strftime("%Y-%m-%d %H:%M"),
    )
