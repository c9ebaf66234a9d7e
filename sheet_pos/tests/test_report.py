import json
from datetime import datetime

from sheet_pos.models import CartLine, Product, UnitClass
from sheet_pos.report import build_receipt, money, resolve_language

NOW = datetime(2024, 5, 1, 14, 30, 0)


def _lines():
    milk = Product(id=1, name="Milk", name_localized="دودھ", unit=UnitClass.VOLUME, unit_label="Liter",
                   price_tiers={"parchon": 120.0})
    tea = Product(id=2, name="Tea <loose>", unit=UnitClass.WEIGHT, unit_label="Kg", price_tiers={"parchon": 800.0})
    return [
        CartLine(product=milk, quantity=0.5, unit_price=120.0),
        CartLine(product=tea, quantity=2.5, unit_price=800.0),
    ]


def test_english_receipt_lines_and_total():
    receipt = build_receipt(_lines(), language="english", now=NOW)

    assert receipt.direction == "ltr"
    assert [ln.display_name for ln in receipt.lines] == ["Milk", "Tea <loose>"]
    assert [ln.quantity_text for ln in receipt.lines] == ["500 ml", "2.50 kg"]
    assert receipt.total == 60 + 2000
    assert receipt.tax == 0
    assert receipt.date_text == "2024-05-01 14:30"


def test_urdu_receipt_is_rtl_and_localized():
    receipt = build_receipt(_lines(), language="ur", now=NOW)

    assert receipt.language == "urdu"
    assert receipt.direction == "rtl"
    assert receipt.lines[0].display_name == "دودھ"
    # no localized name: falls back to the English one
    assert receipt.lines[1].display_name == "Tea <loose>"
    assert receipt.labels["total"] == "کل"

    page = receipt.to_html()
    assert 'dir="rtl"' in page
    assert "Noto Nastaliq Urdu" in page


def test_html_escapes_names():
    page = build_receipt(_lines(), now=NOW).to_html()
    assert "Tea &lt;loose&gt;" in page
    assert "<loose>" not in page
    assert 'dir="ltr"' in page


def test_tax_rows_only_when_taxed():
    untaxed = build_receipt(_lines(), now=NOW)
    assert "Subtotal" not in untaxed.summary_text()

    taxed = build_receipt(_lines(), tax_rate=0.05, now=NOW)
    assert abs(taxed.tax - 103.0) < 1e-9
    assert abs(taxed.total - 2163.0) < 1e-9
    assert "Tax (5%): Rs.103.00" in taxed.summary_text()


def test_unknown_language_falls_back_to_english():
    assert resolve_language("klingon") == "english"
    assert resolve_language(None) == "english"
    assert resolve_language(" Urdu ") == "urdu"


def test_money_format():
    assert money(60) == "Rs.60.00"
    assert money(2.5) == "Rs.2.50"


def test_write_html_and_json(tmp_path):
    receipt = build_receipt(_lines(), language="urdu", now=NOW)

    html_path = receipt.write_html(str(tmp_path / "out" / "receipt.html"))
    json_path = receipt.write_json(str(tmp_path / "out" / "receipt.json"))

    assert "رسید" in (tmp_path / "out" / "receipt.html").read_text(encoding="utf-8")
    data = json.loads((tmp_path / "out" / "receipt.json").read_text(encoding="utf-8"))
    assert html_path.endswith("receipt.html")
    assert json_path.endswith("receipt.json")
    assert data["lines"][0]["display_name"] == "دودھ"
    assert data["direction"] == "rtl"
