# secureqr/qr_scanner/qr_utils.py

"""
Utility helpers for scanned-payload parsing: input cleanup, the
backslash-escaped field tokenizer shared by WIFI:/MATMSG:/MECARD:, and the
shape predicates used to keep the heuristic grammars apart.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Dict, Iterator, List, Optional, Tuple

import validators

from ..url_scanner import has_scheme

# BOM, zero-width and bidi control marks that scanners and chat apps leave behind.
_INVISIBLE = re.compile(
    "[\ufeff\u00ad\u200b-\u200f\u202a-\u202e\u2060-\u2064\u2066-\u2069]"
)
_KEEP_CONTROLS = {"\n", "\t"}

_PHONE_CHARS = re.compile(r"^[0-9+()\- ]+$")
_DOMAIN_LIKE = re.compile(
    r"^[^\s@/:]+\.[a-z]{2,}\.?(?::\d+)?(?:[/?#]\S*)?$", re.IGNORECASE
)
MIN_PHONE_DIGITS = 6

# Scanner-reported symbologies that are linear (1D) barcodes.
ONE_D_SYMBOLOGIES = {
    "ean13", "ean8", "ean5", "ean2", "upc", "upca", "upce",
    "code39", "code93", "code128", "codabar",
    "itf", "itf14", "interleaved2of5", "i2of5",
    "msi", "pharmacode", "databar", "rss14", "gs1databar",
}


# ---------------------------------------------------------
# INPUT CLEANUP
# ---------------------------------------------------------

def sanitize(raw: Optional[str]) -> str:
    """Drop BOM / invisible marks / control characters, unify newlines, trim."""
    text = (raw or "").replace("\r\n", "\n").replace("\r", "\n")
    text = _INVISIBLE.sub("", text)
    text = "".join(
        c for c in text if c in _KEEP_CONTROLS or unicodedata.category(c) != "Cc"
    )
    return text.strip()


def normalize_hint(hint: Optional[str]) -> str:
    """'org.gs1.EAN-13', 'ean_13' and 'EAN13' all become 'ean13'."""
    if not hint:
        return ""
    tail = str(hint).strip().lower().rsplit(".", 1)[-1]
    return re.sub(r"[^a-z0-9]", "", tail)


def is_linear_barcode_hint(hint: Optional[str]) -> bool:
    return normalize_hint(hint) in ONE_D_SYMBOLOGIES


# ---------------------------------------------------------
# ESCAPED FIELD TOKENIZER
# ---------------------------------------------------------

def split_unescaped(text: str, sep: str, maxsplit: int = -1) -> List[str]:
    """Split on `sep` unless it is preceded by a backslash. Escapes are kept."""
    parts: List[str] = []
    buf: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            buf.append(text[i:i + 2])
            i += 2
            continue
        if ch == sep and maxsplit != 0:
            parts.append("".join(buf))
            buf = []
            maxsplit -= 1
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return parts


def unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value, flags=re.DOTALL)


def iter_fields(body: str) -> Iterator[Tuple[str, str]]:
    """Yield (KEY, unescaped value) for each `KEY:value` segment of a ;-list."""
    for segment in split_unescaped(body, ";"):
        if not segment:
            continue
        pieces = split_unescaped(segment, ":", maxsplit=1)
        if len(pieces) != 2:
            continue
        key = pieces[0].strip().upper()
        if key:
            yield key, unescape(pieces[1])


def parse_fields(body: str) -> Dict[str, str]:
    """Key/value map of a ;-list. The first occurrence of a key wins."""
    fields: Dict[str, str] = {}
    for key, value in iter_fields(body):
        fields.setdefault(key, value)
    return fields


# ---------------------------------------------------------
# SHAPE PREDICATES
# ---------------------------------------------------------

def digit_count(text: str) -> int:
    return sum(1 for c in text if c.isdigit())


def is_phone_like(text: str) -> bool:
    return bool(_PHONE_CHARS.fullmatch(text)) and digit_count(text) >= MIN_PHONE_DIGITS


def looks_like_email(text: str) -> bool:
    return bool(validators.email(text))


def looks_like_url(text: str) -> bool:
    lowered = text.strip().lower()
    if not lowered:
        return False
    if has_scheme(lowered) or lowered.startswith("www."):
        return True
    return bool(_DOMAIN_LIKE.fullmatch(lowered))
