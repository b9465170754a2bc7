# secureqr/oracle/usom_types.py

"""
USOM (Turkish national CERT) blacklist categories.

The oracle forwards USOM's own category code, or sometimes only the
category title in Turkish or English. `resolve_usom_type` maps either back
to the canonical code so callers can localize it.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

USOM_TYPES: Dict[str, Dict[str, str]] = {
    "BP": {
        "en_title": "Financial Phishing",
        "tr_title": "Bankacılık - Oltalama",
        "en_desc": "Malicious domains, IP addresses or links for social engineering attacks targeting the finance sector.",
    },
    "PH": {
        "en_title": "Phishing",
        "tr_title": "Oltalama",
        "en_desc": "Malicious domains, IP addresses or links for social engineering attacks outside the finance sector.",
    },
    "MD": {
        "en_title": "Malware Distribution Domain",
        "tr_title": "Zararlı Yazılım Barındıran / Yayan Alan Adı",
        "en_desc": "Domains where part or all of a malicious program is downloaded for execution.",
    },
    "MI": {
        "en_title": "Malware Distribution IP",
        "tr_title": "Zararlı Yazılım Barındıran / Yayan IP",
        "en_desc": "IP addresses where part or all of a malicious program is downloaded for execution.",
    },
    "MU": {
        "en_title": "Malware Distribution URL",
        "tr_title": "Zararlı Yazılım Barındıran / Yayan URL",
        "en_desc": "Links where part or all of a malicious program is downloaded for execution.",
    },
    "MC": {
        "en_title": "Malware Command Center",
        "tr_title": "Zararlı Yazılım - Komuta Kontrol Merkezi",
        "en_desc": "Domains, IP addresses or links used to command malicious operations.",
    },
    "CA": {
        "en_title": "Cyber Attack (Port Scan, Brute Force etc.)",
        "tr_title": "Siber Saldırı (Port Tarama, Kaba Kuvvet vb.)",
        "en_desc": "Domains, IP addresses or links that regularly perform malicious activities.",
    },
}


def _match(value: str) -> Optional[str]:
    needle = value.strip().lower()
    if not needle:
        return None
    for code, entry in USOM_TYPES.items():
        if needle in (code.lower(), entry["en_title"].lower(), entry["tr_title"].lower()):
            return code
    return None


def resolve_usom_type(
    type_code: Optional[str], description: Optional[str] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Return (canonical code, English title).

    The generic "domain" type carries no category, so the description is
    tried instead. Unknown values come back as-is with no title.
    """
    raw = str(type_code or "").strip()
    candidates = [raw] if raw.lower() != "domain" else []
    if description:
        candidates.append(str(description))

    for candidate in candidates:
        code = _match(candidate)
        if code:
            return code, USOM_TYPES[code]["en_title"]

    if raw.lower() == "domain" and description:
        return None, str(description)
    return (raw or None), None
