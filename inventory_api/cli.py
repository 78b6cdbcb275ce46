import argparse
import json
import logging
import sys
from pathlib import Path

from .barcode_resolver import resolve
from .barcodes import BarcodeError
from .catalogue import load_catalogue
from .core.config import settings


def _resolve_row(raw: str, catalogue) -> dict:
    try:
        item = resolve(raw, catalogue.lookup)
    except BarcodeError as exc:
        return {"input": raw, "error": str(exc)}
    entry = item.entry
    return {
        "input": raw,
        "code": item.code,
        "found": item.found,
        "scale": item.scale,
        "brand": entry.brand if entry else "",
        "description": entry.description if entry else "",
        "price": str(item.price) if item.price is not None else None,
    }


def _cmd_resolve(args) -> int:
    catalogue = load_catalogue(args.catalogue)
    rows = [_resolve_row(raw, catalogue) for raw in args.codes]
    if args.json:
        print(json.dumps(rows, indent=2))
    else:
        for r in rows:
            if "error" in r:
                print(f"{r['input']:<16} ERROR {r['error']}")
                continue
            tag = "scale" if r["scale"] else ("found" if r["found"] else "unknown")
            price = r["price"] if r["price"] is not None else "-"
            print(f"{r['input']:<16} {r['code']}  {tag:<7} {price:>8}  {r['brand']} {r['description']}".rstrip())
    return 1 if any("error" in r for r in rows) else 0


def _cmd_check(args) -> int:
    if not Path(args.catalogue).exists():
        print(f"Catalogue not found: {args.catalogue}", file=sys.stderr)
        return 1
    catalogue = load_catalogue(args.catalogue)
    print(f"OK | items={len(catalogue)} | file={args.catalogue}")
    return 0 if len(catalogue) else 1


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="inventory-counts", description="Barcode lookups against the master item list")
    ap.add_argument("--catalogue", default=settings.CATALOGUE_PATH, help="master item CSV")
    ap.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = ap.add_subparsers(dest="command", required=True)

    rp = sub.add_parser("resolve", help="resolve scanned codes")
    rp.add_argument("--catalogue", default=argparse.SUPPRESS, help="master item CSV")
    rp.add_argument("codes", nargs="+")
    rp.add_argument("--json", action="store_true")
    rp.set_defaults(func=_cmd_resolve)

    cp = sub.add_parser("check-catalogue", help="load and validate the master item list")
    cp.add_argument("--catalogue", default=argparse.SUPPRESS, help="master item CSV")
    cp.set_defaults(func=_cmd_check)

    args = ap.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
