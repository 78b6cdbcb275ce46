import re

CODE_LENGTH = 13

_NON_DIGIT_RE = re.compile(r"\D")


class BarcodeError(ValueError):
    """Errors raised while turning a scan into a catalogue code."""


class EmptyCodeError(BarcodeError):
    """The scan contains no digits at all."""


class CodeTooLongError(BarcodeError):
    """The scan has more digits than a canonical code can hold."""


def strip_digits(raw: str | None) -> str:
    return _NON_DIGIT_RE.sub("", raw or "")


def pad_left(digits: str) -> str:
    if len(digits) > CODE_LENGTH:
        raise CodeTooLongError(f"Code too long: {len(digits)} digits")
    return digits.rjust(CODE_LENGTH, "0")


def fill_right(prefix: str) -> str:
    return prefix.ljust(CODE_LENGTH, "0")
