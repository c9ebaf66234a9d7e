import asyncio
import io

import pandas as pd
import pytest

from sheet_pos.config import Config
from sheet_pos.errors import EmptyCart, FetchAuthRequired, InvalidSource, NoValidProducts
from sheet_pos.session import PointOfSale
from sheet_pos.storage import SOURCE_URL_KEY, SettingsStore


def _xlsx(data):
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(data).to_excel(writer, index=False)
    return buf.getvalue()


CATALOG = _xlsx({
    "Name (English)": ["Milk", "Rice", "Eggs"],
    "Name (Urdu)": ["دودھ", "چاول", ""],
    "Parchon Price": [120, 250, 300],
    "Gatta Price": [None, 240, None],
    "Unit": ["Liter", "Kg", "Pack"],
    "Stock": [10, None, 3],
})


class _FakeFetcher:
    def __init__(self, result):
        self.result = result
        self.urls = []

    async def load(self, url):
        self.urls.append(url)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _pos(tmp_path, fetcher=None, **cfg):
    config = Config(settings_path=str(tmp_path / "settings.json"), **cfg)
    return PointOfSale(config, fetcher=fetcher or _FakeFetcher(CATALOG))


def test_load_url_installs_catalog_and_saves_source(tmp_path):
    fetcher = _FakeFetcher(CATALOG)
    pos = _pos(tmp_path, fetcher)

    catalog = asyncio.run(pos.load_url("https://example.com/products.xlsx"))

    assert [p.name for p in catalog] == ["Milk", "Rice", "Eggs"]
    assert catalog.source == "https://example.com/products.xlsx"
    assert fetcher.urls == ["https://example.com/products.xlsx"]
    assert SettingsStore(tmp_path / "settings.json").get(SOURCE_URL_KEY) == "https://example.com/products.xlsx"


def test_load_url_defaults_to_saved_source(tmp_path):
    fetcher = _FakeFetcher(CATALOG)
    pos = _pos(tmp_path, fetcher, default_catalog_url="https://example.com/default.xlsx")

    asyncio.run(pos.load_url())
    assert fetcher.urls == ["https://example.com/default.xlsx"]


def test_blank_url_is_rejected(tmp_path):
    with pytest.raises(InvalidSource):
        asyncio.run(_pos(tmp_path).load_url("  "))


def test_failed_load_keeps_previous_catalog(tmp_path):
    pos = _pos(tmp_path)
    asyncio.run(pos.load_url("https://example.com/products.xlsx"))

    pos.fetcher = _FakeFetcher(FetchAuthRequired("Access denied"))
    with pytest.raises(FetchAuthRequired):
        asyncio.run(pos.load_url("https://example.com/other.xlsx"))
    assert len(pos.catalog) == 3

    bad = _xlsx({"Name": ["A"], "Parchon Price": [0]})
    with pytest.raises(NoValidProducts):
        pos.load_bytes(bad, "bad.xlsx")
    assert len(pos.catalog) == 3


def test_load_file(tmp_path):
    path = tmp_path / "products.xlsx"
    path.write_bytes(CATALOG)
    pos = _pos(tmp_path)

    asyncio.run(pos.load_file(path))
    assert pos.catalog.get(2).price_tiers == {"parchon": 250.0, "gatta": 240.0}
    assert pos.catalog.get(2).stock == 999


def test_load_file_rejects_bad_extension_and_missing_file(tmp_path):
    pos = _pos(tmp_path)
    with pytest.raises(InvalidSource):
        asyncio.run(pos.load_file(tmp_path / "products.csv"))
    with pytest.raises(InvalidSource):
        asyncio.run(pos.load_file(tmp_path / "missing.xlsx"))


def test_checkout_builds_receipt_and_clears_cart(tmp_path):
    pos = _pos(tmp_path, tax_rate=0.1, receipt_language="urdu")
    pos.load_bytes(CATALOG, "products.xlsx")

    pos.cart.add_to_cart_with_price(1, 120)
    pos.cart.add_to_cart_with_price(2, 240)

    receipt = pos.checkout()
    assert receipt.direction == "rtl"
    assert [ln.display_name for ln in receipt.lines] == ["دودھ", "چاول"]
    assert abs(receipt.total - 396.0) < 1e-9
    assert len(pos.cart) == 0

    with pytest.raises(EmptyCart):
        pos.checkout()


def test_search(tmp_path):
    pos = _pos(tmp_path)
    pos.load_bytes(CATALOG, "products.xlsx")

    assert [p.name for p in pos.catalog.search("ric")] == ["Rice"]
    assert [p.name for p in pos.catalog.search("دودھ")] == ["Milk"]
    assert len(pos.catalog.search("")) == 3
