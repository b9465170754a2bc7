# secureqr/qr_scanner/grammars.py

"""
One parse function per scanned-payload grammar.

Every function takes the sanitized text (and the scanner's format hint)
and returns a ClassificationResult, or None when the text is not a valid
instance of its grammar. Dispatch order lives in qr_engine.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional
from urllib.parse import quote, unquote, unquote_plus

from ..generation.builder import build_mailto, build_smsto, build_wifi_payload, normalize_security
from ..models import (
    ClassificationResult,
    EmailRecord,
    EventRecord,
    GeoRecord,
    SmsRecord,
    TelRecord,
    VCardRecord,
    WifiRecord,
)
from ..url_scanner import has_scheme
from .qr_utils import (
    is_linear_barcode_hint,
    is_phone_like,
    iter_fields,
    looks_like_email,
    looks_like_url,
    parse_fields,
    split_unescaped,
)

TRUTHY = {"true", "1", "yes"}


def _starts_with(text: str, prefix: str) -> bool:
    return text[: len(prefix)].upper() == prefix.upper()


def _query_params(query: str) -> Dict[str, str]:
    """mailto:/sms: query strings. '+' stays literal, first key wins."""
    params: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params.setdefault(unquote(key).strip().lower(), unquote(value))
    return params


# ---------------------------------------------------------
# WIFI
# ---------------------------------------------------------

def _wifi_result(fields: Dict[str, str]) -> Optional[ClassificationResult]:
    if "S" not in fields:
        return None
    record = WifiRecord(
        ssid=fields["S"],
        password=fields.get("P", ""),
        security=normalize_security(fields.get("T")),
        hidden=fields.get("H", "").strip().lower() in TRUTHY,
    )
    return ClassificationResult(type="wifi", normalized=build_wifi_payload(record), wifi=record)


def parse_wifi(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """WIFI:T:WPA;S:name;P:secret;H:true;;"""
    if not _starts_with(text, "WIFI:"):
        return None
    return _wifi_result(parse_fields(text[5:]))


_FALLBACK_KEYS = {
    "S": "S", "SSID": "S", "NETWORK": "S",
    "T": "T", "TYPE": "T", "SECURITY": "T", "AUTH": "T", "ENCRYPTION": "T",
    "P": "P", "PASS": "P", "PASSWORD": "P", "PWD": "P", "KEY": "P",
    "H": "H", "HIDDEN": "H",
}

SSID_MAX_LENGTH = 32


def parse_wifi_fallback(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """
    Rebuild WiFi credentials from scanners that drop the WIFI: prefix or
    only hand back "SSID password" / "ssid:x;password:y".

    Best effort: plain two-word text can come out as a network. Links,
    addresses and phone numbers are never considered.
    """
    if looks_like_url(text) or looks_like_email(text) or is_phone_like(text):
        return None

    if ":" in text:
        fields: Dict[str, str] = {}
        for key, value in iter_fields(text.replace("\n", ";")):
            mapped = _FALLBACK_KEYS.get(key)
            if mapped:
                fields.setdefault(mapped, value.strip())
        if fields.get("S") and ("P" in fields or "T" in fields):
            return _wifi_result(fields)
        return None

    tokens = text.split()
    if len(tokens) != 2 or len(tokens[0]) > SSID_MAX_LENGTH:
        return None
    if any(looks_like_url(t) or looks_like_email(t) or is_phone_like(t) for t in tokens):
        return None
    return _wifi_result({"S": tokens[0], "P": tokens[1]})


# ---------------------------------------------------------
# TEL / EMAIL / SMS
# ---------------------------------------------------------

def _tel_result(number: str) -> ClassificationResult:
    compact = re.sub(r"\s+", "", number)
    return ClassificationResult(
        type="tel", normalized=f"tel:{compact}", tel=TelRecord(number=number)
    )


def parse_tel(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    if not _starts_with(text, "tel:"):
        return None
    number = unquote(text[4:]).strip()
    if not number:
        return None
    return _tel_result(number)


def _email_result(to: str, subject: str, body: str, fallback: str) -> ClassificationResult:
    return ClassificationResult(
        type="email",
        normalized=build_mailto(to, subject, body) or fallback,
        email=EmailRecord(to=to, subject=subject, body=body),
    )


def parse_email(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """mailto:to?subject=..&body=.. or a bare address."""
    if _starts_with(text, "mailto:"):
        address, _, query = text[7:].partition("?")
        params = _query_params(query)
        return _email_result(
            unquote(address).strip(), params.get("subject", ""), params.get("body", ""), text
        )
    if looks_like_email(text):
        return _email_result(text, "", "", text)
    return None


def parse_matmsg(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """MATMSG:TO:a@b.c;SUB:subject;BODY:text;;"""
    if not _starts_with(text, "MATMSG:"):
        return None
    fields = parse_fields(text[7:])
    to, subject, body = fields.get("TO", "").strip(), fields.get("SUB", ""), fields.get("BODY", "")
    if not (to or subject or body):
        return None
    return _email_result(to, subject, body, text)


def _sms_result(number: str, body: str, fallback: str) -> Optional[ClassificationResult]:
    if not number and not body:
        return None
    return ClassificationResult(
        type="sms",
        normalized=build_smsto(number, body) or fallback,
        sms=SmsRecord(number=number, body=body),
    )


def parse_sms(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """SMSTO:number:body, sms:number?body=.., or "number\\nbody"."""
    if _starts_with(text, "SMSTO:"):
        number, _, body = text[6:].partition(":")
        return _sms_result(number.strip(), body.strip(), text)

    if _starts_with(text, "sms:"):
        number, _, query = text[4:].partition("?")
        body = _query_params(query).get("body", "")
        return _sms_result(unquote(number).strip(), body.strip(), text)

    first, sep, rest = text.partition("\n")
    if sep and is_phone_like(first.strip()) and rest.strip():
        return _sms_result(first.strip(), rest.strip(), text)
    return None


# ---------------------------------------------------------
# GEO
# ---------------------------------------------------------

_GEO = re.compile(
    r"^geo:\s*([-+]?\d+(?:\.\d+)?)\s*,\s*([-+]?\d+(?:\.\d+)?)"
    r"(?:,[-+]?\d+(?:\.\d+)?)?(?:;[^?]*)?(?:\?(.*))?$",
    re.IGNORECASE | re.DOTALL,
)


def parse_geo(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """geo:lat,lon[,alt][?q=query]"""
    m = _GEO.match(text)
    if not m:
        return None
    lat, lon = float(m.group(1)), float(m.group(2))
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None

    query = None
    for pair in (m.group(3) or "").split("&"):
        key, _, value = pair.partition("=")
        if key.lower() == "q" and value:
            query = unquote_plus(value)
            break

    normalized = f"geo:{m.group(1)},{m.group(2)}"
    if query:
        normalized += "?q=" + quote(query)
    return ClassificationResult(
        type="geo", normalized=normalized, geo=GeoRecord(lat=lat, lon=lon, query=query)
    )


# ---------------------------------------------------------
# VCARD / MECARD / VEVENT
# ---------------------------------------------------------

_VCARD_MARKER = re.compile(r"^BEGIN:VCARD\b", re.IGNORECASE | re.MULTILINE)
_EVENT_MARKER = re.compile(r"^BEGIN:(VEVENT|VCALENDAR)\b", re.IGNORECASE | re.MULTILINE)


def _ical_unescape(value: str) -> str:
    return re.sub(
        r"\\([nN,;\\])",
        lambda m: "\n" if m.group(1) in "nN" else m.group(1),
        value,
    )


def _content_lines(text: str) -> Dict[str, str]:
    """NAME -> raw value for the first occurrence of each property line."""
    unfolded = re.sub(r"\n[ \t]", "", text)
    props: Dict[str, str] = {}
    for line in unfolded.split("\n"):
        name, sep, value = line.partition(":")
        if not sep:
            continue
        # TEL;TYPE=CELL / item1.EMAIL
        name = name.split(";")[0].strip().upper().rsplit(".", 1)[-1]
        if name:
            props.setdefault(name, value.strip())
    return props


def _components(value: str) -> List[str]:
    return [_ical_unescape(p).strip() for p in split_unescaped(value, ";")]


def _joined(value: str, sep: str) -> str:
    return sep.join(p for p in _components(value) if p)


def parse_vcard(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    if not _VCARD_MARKER.search(text):
        return None
    props = _content_lines(text)

    n_parts = _components(props.get("N", ""))
    fn = _ical_unescape(props.get("FN", "")).strip()
    if not fn and n_parts:
        # family;given;additional;prefix;suffix
        given = n_parts[1] if len(n_parts) > 1 else ""
        fn = " ".join(p for p in (given, n_parts[0]) if p)

    record = VCardRecord(
        fn=fn,
        n=" ".join(p for p in n_parts if p),
        tel=_ical_unescape(props.get("TEL", "")).strip(),
        email=_ical_unescape(props.get("EMAIL", "")).strip(),
        org=_joined(props.get("ORG", ""), " "),
        title=_ical_unescape(props.get("TITLE", "")).strip(),
        adr=_joined(props.get("ADR", ""), ", "),
        url=_ical_unescape(props.get("URL", "")).strip(),
    )
    return ClassificationResult(type="vcard", normalized=text, vcard=record)


def parse_mecard(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """MECARD:N:Doe,John;TEL:..;EMAIL:..;ORG:..;ADR:..;URL:..;;"""
    if not _starts_with(text, "MECARD:"):
        return None
    fields = parse_fields(text[7:])
    if not fields:
        return None
    n = fields.get("N", "").strip()
    family, _, given = n.partition(",")
    record = VCardRecord(
        fn=" ".join(p.strip() for p in (given, family) if p.strip()),
        n=n,
        tel=fields.get("TEL", "").strip(),
        email=fields.get("EMAIL", "").strip(),
        org=fields.get("ORG", "").strip(),
        title=fields.get("TITLE", "").strip(),
        adr=fields.get("ADR", "").strip(),
        url=fields.get("URL", "").strip(),
    )
    return ClassificationResult(type="vcard", normalized=text, vcard=record)


def parse_event(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    if not _EVENT_MARKER.search(text):
        return None
    props = _content_lines(text)
    record = EventRecord(
        summary=_ical_unescape(props.get("SUMMARY", "")).strip(),
        location=_ical_unescape(props.get("LOCATION", "")).strip(),
        description=_ical_unescape(props.get("DESCRIPTION", "")).strip(),
        dtstart=props.get("DTSTART", ""),
        dtend=props.get("DTEND", ""),
    )
    return ClassificationResult(type="event", normalized=text, event=record)


# ---------------------------------------------------------
# BARE PHONE NUMBERS
# ---------------------------------------------------------

def parse_phone(text: str, hint: Optional[str] = None) -> Optional[ClassificationResult]:
    """
    Digits with phone punctuation only. A 1D product code (EAN, UPC, ...)
    with no scheme or dot is left alone so it is not offered as a call.
    """
    if not is_phone_like(text):
        return None
    if is_linear_barcode_hint(hint) and not has_scheme(text) and "." not in text:
        return None
    return _tel_result(text)
