"""Barcode canonicalization and variable-weight label decoding.

Every scan ends up as a 13-digit code, the key shared by the catalogue and the
inventory lists:

* 12 digits are UPC-A with the check digit still attached; it is dropped and
  the remaining 11 digits are left-padded.
* 13 digits are EAN-13 or internal codes and pass through untouched.
* 11 or 12 digits starting with ``2`` are scale labels. The payload carries a
  PLU and the sticker price in cents; the catalogue keys for these items are
  the payload prefix filled with zeros on the right.
"""

import logging
from decimal import Decimal
from typing import Callable, Optional

from .barcodes import (
    CODE_LENGTH,
    EmptyCodeError,
    fill_right,
    pad_left,
    strip_digits,
)
from .schemas import CatalogueEntry, ResolvedItem, ScaleLabel

LOGGER = logging.getLogger("inventory-api")

CatalogueLookup = Callable[[str], Optional[CatalogueEntry]]

SCALE_FLAG = "2"
SCALE_PAYLOAD_LENGTH = 11
UPC_A_LENGTH = 12
_CENTS = Decimal("0.01")


def decode_scale_label(raw: str) -> ScaleLabel | None:
    digits = strip_digits(raw)
    if len(digits) not in (SCALE_PAYLOAD_LENGTH, UPC_A_LENGTH) or not digits.startswith(SCALE_FLAG):
        return None
    # 12 digits still carry the check digit
    payload = digits[:SCALE_PAYLOAD_LENGTH]
    try:
        cents = int(payload[7:11])
    except ValueError:
        return None
    price = (Decimal(cents) / 100).quantize(_CENTS)
    return ScaleLabel(
        plu=payload[1:6],
        price=price,
        candidate_codes=(fill_right(payload[:7]), fill_right(payload[:6])),
    )


def canonicalize(raw: str) -> str:
    """Return the 13-digit code for a scan, or "" when it holds no digits.

    Raises CodeTooLongError for more than 13 digits.
    """
    digits = strip_digits(raw)
    if not digits:
        return ""
    label = decode_scale_label(digits)
    if label is not None:
        return label.candidate_codes[0]
    if len(digits) == UPC_A_LENGTH:
        return pad_left(digits[:-1])
    if len(digits) == CODE_LENGTH:
        return digits
    code = pad_left(digits)
    LOGGER.warning("Ambiguous code length %d for %s, padded to %s", len(digits), digits, code)
    return code


def resolve(raw: str, lookup: CatalogueLookup) -> ResolvedItem:
    digits = strip_digits(raw)
    if not digits:
        raise EmptyCodeError("Missing itemCode")

    label = decode_scale_label(digits)
    if label is not None:
        for candidate in label.candidate_codes:
            entry = lookup(candidate)
            if entry is not None:
                return ResolvedItem(
                    code=candidate,
                    entry=entry,
                    override_price=label.price,
                    candidate_codes=label.candidate_codes,
                )
        return ResolvedItem(
            code=label.candidate_codes[0],
            override_price=label.price,
            candidate_codes=label.candidate_codes,
        )

    code = canonicalize(digits)
    return ResolvedItem(code=code, entry=lookup(code))


def storage_key(item: ResolvedItem, token: int | None = None) -> str:
    """Key of the list line a resolved scan is stored under.

    Plain items share one line per code. Each scale sticker gets its own line,
    made unique by ``token``.
    """
    if not item.scale:
        return item.code
    if token is None:
        raise ValueError("scale items need a line token")
    cents = int((item.override_price * 100).to_integral_value())
    return f"{item.code}-{cents:04d}-{token}"
