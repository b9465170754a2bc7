# secureqr/generation/barcode.py

"""
Barcode content validation per symbology.

    validate_barcode_content(format_key, raw) -> BarcodeValidationResult

Shape checks (charset / non_numeric) always run before length, range and
checksum checks. EAN-13 and EAN-8 accept the payload without its check
digit and return it with the computed digit appended.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, Dict, Optional

from ..models import BarcodeValidationResult

logger = logging.getLogger("secureqr.barcode")

DEFAULT_FORMAT = "CODE128"

PHARMACODE_MIN = 3
PHARMACODE_MAX = 131070

_NUMERIC = re.compile(r"^[0-9]+$")
_CODE39 = re.compile(r"^[0-9A-Z\-. $/+%]+$")
_CODABAR = re.compile(r"^[0-9\-$:./+ABCD]+$")
_CODE128A = re.compile(r"^[\x20-\x5F]+$")
_CODE128B = re.compile(r"^[\x20-\x7E]+$")
_CODABAR_GUARDS = set("ABCD")


def _ok(value: str) -> BarcodeValidationResult:
    return BarcodeValidationResult(ok=True, value=value)


def _fail(reason: str) -> BarcodeValidationResult:
    return BarcodeValidationResult(ok=False, reason=reason)


def is_numeric(value: str) -> bool:
    return bool(_NUMERIC.match(value))


# ---------------------------------------------------------
# CHECK DIGITS
# ---------------------------------------------------------

def ean13_check_digit(digits12: str) -> int:
    """Weights 1,3,1,3... from the left (0-indexed even positions weigh 1)."""
    if len(digits12) != 12 or not is_numeric(digits12):
        raise ValueError("EAN-13 check digit needs exactly 12 digits")
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits12))
    return (10 - total % 10) % 10


def ean8_check_digit(digits7: str) -> int:
    """Weights 1,3,1,3... by 1-indexed position: odd positions weigh 1, even weigh 3."""
    if len(digits7) != 7 or not is_numeric(digits7):
        raise ValueError("EAN-8 check digit needs exactly 7 digits")
    odd = sum(int(d) for i, d in enumerate(digits7) if (i + 1) % 2 == 1)
    even = sum(int(d) for i, d in enumerate(digits7) if (i + 1) % 2 == 0)
    return (10 - (odd + even * 3) % 10) % 10


def _validate_check_digit(
    content: str, base_len: int, compute: Callable[[str], int]
) -> BarcodeValidationResult:
    if not is_numeric(content):
        return _fail("non_numeric")
    if len(content) == base_len:
        return _ok(content + str(compute(content)))
    if len(content) == base_len + 1:
        if str(compute(content[:base_len])) != content[base_len]:
            return _fail("checksum")
        return _ok(content)
    return _fail("length")


# ---------------------------------------------------------
# PER-SYMBOLOGY RULES
# ---------------------------------------------------------

def _ean13(content: str) -> BarcodeValidationResult:
    return _validate_check_digit(content, 12, ean13_check_digit)


def _ean8(content: str) -> BarcodeValidationResult:
    return _validate_check_digit(content, 7, ean8_check_digit)


def _exact_digits(length: int) -> Callable[[str], BarcodeValidationResult]:
    def rule(content: str) -> BarcodeValidationResult:
        if not is_numeric(content):
            return _fail("non_numeric")
        if len(content) != length:
            return _fail("length")
        return _ok(content)
    return rule


def _upce(content: str) -> BarcodeValidationResult:
    if not is_numeric(content):
        return _fail("non_numeric")
    if len(content) not in (6, 8):
        return _fail("length")
    return _ok(content)


def _even_digits(content: str) -> BarcodeValidationResult:
    if not is_numeric(content):
        return _fail("non_numeric")
    if len(content) % 2:
        return _fail("length")
    return _ok(content)


def _any_digits(content: str) -> BarcodeValidationResult:
    if not is_numeric(content):
        return _fail("non_numeric")
    return _ok(content)


def _pharmacode(content: str) -> BarcodeValidationResult:
    if not is_numeric(content):
        return _fail("non_numeric")
    value = int(content)
    if not PHARMACODE_MIN <= value <= PHARMACODE_MAX:
        return _fail("range")
    return _ok(str(value))


def _codabar(content: str) -> BarcodeValidationResult:
    if not _CODABAR.match(content):
        return _fail("charset")
    if len(content) < 2:
        return _fail("length")
    if content[0] not in _CODABAR_GUARDS or content[-1] not in _CODABAR_GUARDS:
        return _fail("charset")
    return _ok(content)


def _charset(pattern: "re.Pattern[str]") -> Callable[[str], BarcodeValidationResult]:
    def rule(content: str) -> BarcodeValidationResult:
        if not pattern.match(content):
            return _fail("charset")
        return _ok(content)
    return rule


RULES: Dict[str, Callable[[str], BarcodeValidationResult]] = {
    "EAN13": _ean13,
    "EAN8": _ean8,
    "EAN5": _exact_digits(5),
    "EAN2": _exact_digits(2),
    "UPC": _exact_digits(12),
    "UPCE": _upce,
    "ITF14": _exact_digits(14),
    "ITF": _even_digits,
    "MSI": _any_digits,
    "MSI10": _any_digits,
    "MSI11": _any_digits,
    "MSI1010": _any_digits,
    "MSI1110": _any_digits,
    "pharmacode": _pharmacode,
    "codabar": _codabar,
    "CODE128A": _charset(_CODE128A),
    "CODE128B": _charset(_CODE128B),
    "CODE128C": _even_digits,
    "CODE39": _charset(_CODE39),
}

SUPPORTED_FORMATS = (DEFAULT_FORMAT,) + tuple(RULES)


def validate_barcode_content(
    format_key: Optional[str], raw: Optional[str]
) -> BarcodeValidationResult:
    content = (raw or "").strip()
    fmt = format_key or DEFAULT_FORMAT

    if not content:
        result = _fail("empty")
    else:
        # CODE128 and unknown keys pass anything non-empty through.
        rule = RULES.get(fmt)
        result = rule(content) if rule else _ok(content)

    if not result.ok:
        logger.debug(
            json.dumps(
                {
                    "event": "barcode_invalid",
                    "format": fmt,
                    "reason": result.reason,
                    "length": len(content),
                }
            )
        )
    return result
