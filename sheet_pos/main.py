from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys

from .config import ENV_KEYS, Config
from .errors import InvalidPrice, PosError
from .models import PRICE_TIERS
from .session import PointOfSale
from .storage import SOURCE_URL_KEY, save_source_url
from .units import format_quantity, parse_quantity
from .urls import classify, resolve_candidates

__version__ = "0.1.0"

_ITEM_RE = re.compile(r"^(\d+)(?:@([^=]+))?(?:=(.+))?$")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sheet-pos")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)
    sub_config.add_parser("keys", help="List supported environment variables")
    sub_config.add_parser("show", help="Print the effective configuration")

    p_source = sub.add_parser("source", help="Saved catalog URL")
    sub_source = p_source.add_subparsers(dest="source_cmd", required=True)
    sub_source.add_parser("show", help="Print the catalog URL that will be loaded")
    p_set = sub_source.add_parser("set", help="Save a new catalog URL")
    p_set.add_argument("url")
    sub_source.add_parser("reset", help="Forget the saved URL and use the default")

    p_resolve = sub.add_parser("resolve", help="Show the download URLs tried for a share link")
    p_resolve.add_argument("url")

    p_catalog = sub.add_parser("catalog", help="Load the catalog and list products")
    _add_source_args(p_catalog)
    p_catalog.add_argument("--search", default="", help="Filter by name, Urdu name, category or barcode")
    p_catalog.add_argument("--limit", type=int, default=0, help="Max products (0=all)")

    p_checkout = sub.add_parser("checkout", help="Ring up items and write a receipt")
    _add_source_args(p_checkout)
    p_checkout.add_argument(
        "items", nargs="+",
        help="ID[@PRICE|@TIER][=QTY], e.g. 3  3@gatta  5@115=500gm  7=2 Pack",
    )
    p_checkout.add_argument("--lang", default=None, help="Receipt language (english, urdu)")
    p_checkout.add_argument("--out", default="artifacts/receipt.html", help="Receipt HTML path")
    p_checkout.add_argument("--json", default=None, help="Also write the receipt as JSON")

    return p


def _add_source_args(p: argparse.ArgumentParser) -> None:
    src = p.add_mutually_exclusive_group()
    src.add_argument("--url", default=None, help="Catalog URL (default: saved URL)")
    src.add_argument("--file", default=None, help="Local .xlsx/.xls file")


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    cfg = Config.load_from_env()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO if args.verbose else getattr(logging, cfg.log_level, logging.WARNING),
    )

    try:
        return _dispatch(args, cfg)
    except PosError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def _dispatch(args, cfg: Config) -> int:
    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k in ENV_KEYS:
                print(k)
            return 0

        if args.config_cmd == "show":
            for name, value in vars(cfg).items():
                print(f"{name} = {value}")
            return 0

    if args.cmd == "resolve":
        print(f"kind: {classify(args.url).value}")
        for i, c in enumerate(resolve_candidates(args.url), 1):
            print(f"{i}. [{c.name}] {c.url}")
        return 0

    pos = PointOfSale(cfg)

    if args.cmd == "source":
        if args.source_cmd == "show":
            print(pos.source_url)
            return 0
        if args.source_cmd == "set":
            save_source_url(pos.store, args.url.strip())
            print(f"OK: saved {args.url.strip()}")
            return 0
        if args.source_cmd == "reset":
            pos.store.remove(SOURCE_URL_KEY)
            print(f"OK: using default {pos.source_url}")
            return 0

    if args.cmd == "catalog":
        _load(pos, args)
        products = pos.catalog.search(args.search)
        if args.limit > 0:
            products = products[: args.limit]
        for prod in products:
            name = prod.name + (f" / {prod.name_localized}" if prod.name_localized else "")
            tiers = "  ".join(f"{PRICE_TIERS[t].split()[0]}: Rs.{v:.2f}" for t, v in prod.price_tiers.items())
            print(f"{prod.id:>4}. {name}  [{prod.category}]  unit={prod.unit_label}  stock={prod.stock}")
            print(f"      {tiers}")
        print(f"\n{len(products)} shown, {len(pos.catalog)} loaded, {pos.catalog.rejected_count} rows rejected.")
        return 0

    if args.cmd == "checkout":
        return _run_checkout(pos, args)

    raise RuntimeError("unreachable")


def _load(pos: PointOfSale, args) -> None:
    if args.file:
        asyncio.run(pos.load_file(args.file))
    else:
        asyncio.run(pos.load_url(args.url))


def parse_item(spec: str) -> tuple[int, str | None, str | None]:
    m = _ITEM_RE.match(spec.strip())
    if not m:
        raise PosError(f"Bad item {spec!r}; expected ID[@PRICE|@TIER][=QTY]")
    pid, price, qty = m.groups()
    return int(pid), (price.strip() if price else None), (qty.strip() if qty else None)


def _choose_price(pos: PointOfSale, product_id: int, price_spec: str | None) -> float | str:
    options = pos.cart.add_to_cart(product_id)
    if price_spec is None:
        return options[0].price
    tier = price_spec.lower()
    if tier in PRICE_TIERS:
        for opt in options:
            if opt.tier == tier:
                return opt.price
        raise InvalidPrice(f"Product {product_id} has no {PRICE_TIERS[tier]}")
    return price_spec  # validated by the cart


def _run_checkout(pos: PointOfSale, args) -> int:
    _load(pos, args)

    for spec in args.items:
        pid, price_spec, qty = parse_item(spec)
        price = _choose_price(pos, pid, price_spec)
        quantity = 1.0
        if qty is not None:
            prod = pos.catalog.get(pid)
            quantity = parse_quantity(qty, prod.unit, prod.unit_label)
        # a repeated item grows its existing line by QTY
        line = pos.cart.add_to_cart_with_price(pid, price, quantity=quantity)
        prod = line.product
        print(f"+ {prod.name}: {format_quantity(line.quantity, prod.unit, prod.unit_label)} @ Rs.{line.unit_price:.2f}")

    receipt = pos.checkout(args.lang)
    print("\n" + receipt.summary_text())
    print(f"\nReceipt written to {receipt.write_html(args.out)}")
    if args.json:
        print(f"Receipt JSON written to {receipt.write_json(args.json)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
