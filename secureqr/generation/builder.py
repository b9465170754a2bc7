# secureqr/generation/builder.py

"""
Payload builders for code generation.

These are the inverse of the WiFi / tel / mailto / SMSTO grammars in
qr_scanner.grammars and share their escaping rules, so a built WiFi
payload scans back to the same ssid, password, security and hidden flag.
"""

from __future__ import annotations

import re
from typing import Optional, Union
from urllib.parse import quote

from ..models import ContactInfo, WifiRecord

_WIFI_SPECIALS = re.compile(r"([\\;,:])")

# Characters encodeURIComponent leaves alone besides alphanumerics and -_.~
_URI_COMPONENT_SAFE = "!*'()"

_NOPASS_ALIASES = {"NOPASS", "NO", "NONE", "OPEN"}


def escape_field(value: Optional[str]) -> str:
    return _WIFI_SPECIALS.sub(r"\\\1", value or "")


def normalize_security(value: Optional[str]) -> str:
    """WEP stays WEP, the open-network spellings become nopass, everything else is WPA."""
    upper = (value or "").strip().upper()
    if upper == "WEP":
        return "WEP"
    if upper in _NOPASS_ALIASES:
        return "nopass"
    return "WPA"


def build_wifi_payload(wifi: Union[WifiRecord, dict]) -> str:
    if isinstance(wifi, dict):
        wifi = WifiRecord(**wifi)
    security = normalize_security(wifi.security)

    parts = [f"T:{security}", f"S:{escape_field(wifi.ssid)}"]
    if security != "nopass":
        parts.append(f"P:{escape_field(wifi.password)}")
    if wifi.hidden:
        parts.append("H:true")
    return "WIFI:" + ";".join(parts) + ";"


def build_mailto(to: str, subject: str = "", body: str = "") -> str:
    to = (to or "").strip()
    if not to:
        return ""
    query = []
    if subject:
        query.append("subject=" + quote(subject, safe=_URI_COMPONENT_SAFE))
    if body:
        query.append("body=" + quote(body, safe=_URI_COMPONENT_SAFE))
    return f"mailto:{to}" + (f"?{'&'.join(query)}" if query else "")


def build_smsto(number: str, body: str = "") -> str:
    number = (number or "").strip()
    body = (body or "").strip()
    if not number and not body:
        return ""
    return f"SMSTO:{number}:{body}" if body else f"SMSTO:{number}"


def build_contact_payload(kind: str, contact: Union[ContactInfo, dict]) -> str:
    if isinstance(contact, dict):
        contact = ContactInfo(**contact)

    if kind == "tel":
        phone = contact.phone.strip()
        return f"tel:{phone}" if phone else ""
    if kind == "email":
        return build_mailto(contact.email, contact.subject, contact.body)
    if kind == "sms":
        return build_smsto(contact.sms_number, contact.sms_body)
    return ""


def build_payload(
    kind: str,
    input: Optional[str] = None,
    wifi: Union[WifiRecord, dict, None] = None,
    contact: Union[ContactInfo, dict, None] = None,
) -> str:
    """Build the string to encode for a generation request. Unknown kinds give ''."""
    if kind in ("url", "text"):
        return (input or "").strip()
    if kind == "wifi":
        return build_wifi_payload(wifi or WifiRecord(ssid=""))
    if kind in ("tel", "email", "sms"):
        return build_contact_payload(kind, contact or ContactInfo())
    return ""
