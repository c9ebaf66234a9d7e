import pytest

from sheet_pos.columns import map_columns
from sheet_pos.errors import EmptyCatalog, NoValidProducts
from sheet_pos.models import UNLIMITED_STOCK, UnitClass
from sheet_pos.normalize import cell_text, normalize, parse_number, parse_stock


def _row(**cells):
    return {k.replace("_", " "): v for k, v in cells.items()}


def test_milk_row_from_current_layout():
    rows = [{"Name(English)": "Milk", "Parchon Price": 120, "Unit": "Liter", "Stock": 10}]
    products, rejected = normalize(rows)

    assert rejected == 0
    milk = products[0]
    assert milk.id == 1
    assert milk.name == "Milk"
    assert milk.default_price == 120
    assert milk.unit is UnitClass.VOLUME
    assert milk.unit_label == "Liter"
    assert milk.stock == 10


def test_three_tiers_and_default_priority():
    rows = [
        {"Name (English)": "Rice", "Name (Urdu)": "چاول", "Parchon Price": 0,
         "Gatta Price": 240, "Wholesale Price": 220, "Unit": "Kg"},
    ]
    products, _ = normalize(rows)
    rice = products[0]

    assert rice.name_localized == "چاول"
    assert rice.price_tiers == {"gatta": 240.0, "wholesale": 220.0}
    assert rice.default_price == 240
    assert rice.tier_price("parchon") == 0


def test_defaults_when_optional_columns_missing():
    products, _ = normalize([{"Name": "Sugar", "Parchon Price": "150"}])
    sugar = products[0]

    assert sugar.category == "General"
    assert sugar.barcode == ""
    assert sugar.unit is UnitClass.WEIGHT
    assert sugar.unit_label == "Kg"
    assert sugar.stock == UNLIMITED_STOCK
    assert sugar.name_localized == ""


def test_invalid_rows_dropped_but_ids_keep_row_positions():
    rows = [
        {"Name": "Tea", "Parchon Price": 500},
        {"Name": "", "Parchon Price": 100},
        {"Name": "Salt", "Parchon Price": 0},
        {"Name": "Ghee", "Parchon Price": 900},
    ]
    products, rejected = normalize(rows)

    assert [p.name for p in products] == ["Tea", "Ghee"]
    assert [p.id for p in products] == [1, 4]
    assert rejected == 2


def test_empty_rows_raise_empty_catalog():
    with pytest.raises(EmptyCatalog):
        normalize([])


def test_all_zero_prices_raise_no_valid_products():
    rows = [{"Name": "A", "Parchon Price": 0}, {"Name": "B", "Parchon Price": ""}]
    with pytest.raises(NoValidProducts) as exc:
        normalize(rows)
    assert exc.value.row_count == 2
    assert exc.value.headers == ["Name", "Parchon Price"]
    assert "Parchon Price" in str(exc.value)


def test_regex_name_columns_are_case_insensitive():
    rows = [{"PRODUCT NAME in english": "Flour", "urdu": "آٹا", "parchonprice": 95}]
    products, _ = normalize(rows)
    assert products[0].name == "Flour"
    assert products[0].name_localized == "آٹا"
    assert products[0].default_price == 95


def test_legacy_header_fallbacks():
    rows = [{
        "Item": "Soap", "SKU": 8964000123456.0, "Type": "Pack", "Quantity": 25,
        "Product Category": "Household", "WholesalePrice": "80", "Min Price": 70, "Max Price": 90,
    }]
    products, _ = normalize(rows)
    soap = products[0]

    assert soap.name == "Soap"
    assert soap.barcode == "8964000123456"
    assert soap.unit is UnitClass.COUNT
    assert soap.stock == 25
    assert soap.category == "Household"
    assert soap.default_price == 80
    assert (soap.min_price, soap.max_price) == (70, 90)


def test_single_price_sheet_feeds_first_tier():
    products, _ = normalize([{"Product": "Eggs", "Price": 300, "Unit": "Pack"}])
    assert products[0].price_tiers == {"parchon": 300.0}


def test_extra_price_column_on_tiered_sheet_is_ignored():
    rows = [{"Name": "Rice", "Parchon Price": "", "Gatta Price": 240,
             "Wholesale Price": 220, "Purchase Price": 180}]
    products, _ = normalize(rows)
    rice = products[0]

    assert rice.price_tiers == {"gatta": 240.0, "wholesale": 220.0}
    assert rice.default_price == 240
    assert map_columns(list(rows[0])).describe()["parchon"] is None


def test_blank_matched_cell_falls_back_to_literal_header():
    cols = map_columns(["English Name", "Name"])
    assert cols.value({"English Name": "", "Name": "Dal"}, "name") == "Dal"


def test_blank_name_defaults_to_sentinel():
    cols = map_columns(["Barcode"])
    assert cols.value({"Barcode": "1"}, "name") == "Unknown"


def test_pandas_unnamed_column_is_not_a_name():
    cols = map_columns(["Unnamed: 0", "Name", "Parchon Price"])
    assert cols.describe()["name"] == "Name"


def test_zero_stock_is_kept_as_out_of_stock():
    products, _ = normalize([{"Name": "Oil", "Parchon Price": 400, "Stock": 0}])
    assert products[0].stock == 0


def test_parse_helpers():
    assert parse_number("120") == 120
    assert parse_number("99.5 per kg") == 99.5
    assert parse_number("Rs. 50") == 0
    assert parse_number(float("nan")) == 0
    assert parse_stock("12 bags") == 12
    assert parse_stock("n/a") == UNLIMITED_STOCK
    assert parse_stock(-3) == 0
    assert cell_text(12.0) == "12"
    assert cell_text("  Tea ") == "Tea"
