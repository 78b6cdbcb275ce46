import logging
from collections.abc import Iterator, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType

import pandas as pd
from pydantic import ValidationError

from .barcode_resolver import canonicalize
from .barcodes import BarcodeError
from .schemas import CatalogueEntry

LOGGER = logging.getLogger("inventory-api")

CODE_COLUMN = "Item Code"
COLUMNS = {
    "brand": "Brand",
    "description": "Description",
    "price": "Price",
    "subdept": "Sub Dept",
}


class Catalogue:
    """Read-only master item lookup keyed by canonical code."""

    def __init__(self, entries: Mapping[str, CatalogueEntry] | None = None) -> None:
        self._entries = MappingProxyType(dict(entries or {}))

    def get(self, code: str) -> CatalogueEntry | None:
        return self._entries.get(code)

    # The resolver takes a plain callable
    lookup = get

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogueEntry]:
        return iter(self._entries.values())

    def as_dict(self) -> dict[str, dict]:
        return {code: entry.model_dump(mode="json") for code, entry in self._entries.items()}


def _parse_price(value) -> Decimal:
    text = _cell(value).lstrip("$").replace(",", "")
    if not text:
        return Decimal("0.00")
    try:
        return Decimal(text).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"invalid price {value!r}") from exc


def _cell(value) -> str:
    return "" if value is None else str(value).strip()


def _entry_from_row(row: dict) -> CatalogueEntry:
    # same key a scan of this code canonicalizes to
    code = canonicalize(_cell(row.get(CODE_COLUMN)))
    if not code:
        raise ValueError("missing item code")
    return CatalogueEntry(
        code=code,
        brand=_cell(row.get(COLUMNS["brand"])),
        description=_cell(row.get(COLUMNS["description"])),
        price=_parse_price(row.get(COLUMNS["price"])),
        subdept=_cell(row.get(COLUMNS["subdept"])),
    )


def build_catalogue(df: pd.DataFrame) -> Catalogue:
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    if CODE_COLUMN not in df.columns:
        raise ValueError(f"Catalogue is missing the '{CODE_COLUMN}' column")

    entries: dict[str, CatalogueEntry] = {}
    skipped = 0
    for line, record in enumerate(df.to_dict(orient="records"), start=2):
        try:
            entry = _entry_from_row(record)
        except (BarcodeError, ValueError, ValidationError) as exc:
            skipped += 1
            LOGGER.warning("Skipping catalogue row %d: %s", line, exc)
            continue
        if entry.code in entries:
            LOGGER.warning("Duplicate catalogue code %s on row %d, keeping the last one", entry.code, line)
        entries[entry.code] = entry
    if skipped:
        LOGGER.warning("Skipped %d invalid catalogue rows", skipped)
    return Catalogue(entries)


def load_catalogue(path: str | Path) -> Catalogue:
    """Load the master item list from CSV.

    A missing file yields an empty catalogue so the service still starts;
    every scan then falls back to user-entered details.
    """
    file_path = Path(path)
    if not file_path.exists():
        LOGGER.error("Failed to load catalogue: %s not found", file_path)
        return Catalogue()
    df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    catalogue = build_catalogue(df)
    LOGGER.info("Loaded %d master items.", len(catalogue))
    return catalogue
