# secureqr/utils/reason_cleaner.py

"""
Plain-English fallback text for reason codes, structured oracle reasons,
barcode failures and oracle errors.

Clients normally localize the opaque keys themselves; this is the default
rendering used by the HTTP surface.
"""

import re
from typing import List, Optional, Union

from ..models import (
    GithubReason,
    Reason,
    ReasonCode,
    RemoteRiskResult,
    UsomReason,
)

FRIENDLY_MAP = {

    # ------------------ URL reasons ------------------
    ReasonCode.BLACKLIST:
        "This address is on a list of known malicious sites.",
    ReasonCode.HTTP:
        "The website does not use secure HTTPS encryption.",
    ReasonCode.HOMOGLYPH:
        "The address uses look-alike characters that can imitate a trusted site.",
    ReasonCode.USERINFO:
        "The link hides a username or password before the real address, a common way to disguise the destination.",
    ReasonCode.IP_HOST:
        "The link points to a bare IP address instead of a named website.",
    ReasonCode.KEYWORD:
        "The content uses words commonly seen in phishing attempts.",
    ReasonCode.TLD:
        "The website ending or shape of the address is often used by scammers.",
    ReasonCode.SHORTENER:
        "The link uses a URL shortener, which hides the real destination.",
    ReasonCode.PORT:
        "The link uses an unusual network port.",
    ReasonCode.PATH_ENTROPY:
        "The link contains long, scrambled data that may hide its real purpose.",
    ReasonCode.EXECUTABLE:
        "The link downloads an app or program from an unofficial source.",
    ReasonCode.BRAND_MISMATCH:
        "This website mentions a well-known brand but is not hosted on that brand's domain.",

    # ------------------ Oracle sources ------------------
    ReasonCode.USOM:
        "The national cyber-security centre (USOM) lists this address as harmful.",
    ReasonCode.GITHUB:
        "This address appears in public threat-intelligence blocklists.",
}

BARCODE_FAILURES = {
    "empty": "Enter some content to generate a barcode.",
    "non_numeric": "This barcode type only accepts digits.",
    "length": "The content has the wrong number of characters for this barcode type.",
    "charset": "The content contains characters this barcode type cannot encode.",
    "range": "The value is outside the range this barcode type allows.",
    "checksum": "The check digit does not match the rest of the number.",
}

REMOTE_UNVERIFIED = "Could not verify this link online. The result is based on local checks only."
REMOTE_RISKY = "The online threat check reported this link as dangerous."
REMOTE_CLEAN = "The online threat check found no reports for this link."

_HTTP_ERROR = re.compile(r"http_(\d{3})")


def _usom_text(reason: UsomReason) -> str:
    label = reason.title or reason.type_code or "harmful content"
    where = f" ({reason.domain})" if reason.domain else ""
    text = f"Listed by USOM as: {label}{where}."
    if reason.date:
        text += f" Reported on {reason.date}."
    return text


def _github_text(reason: GithubReason) -> str:
    sources = ", ".join(reason.files) if reason.files else "public blocklists"
    where = f"{reason.domain} " if reason.domain else "This address "
    return f"{where}was found in: {sources}."


def clean_reason(reason: Union[Reason, str]) -> str:
    """Return a human-friendly explanation for a single reason."""
    if isinstance(reason, UsomReason):
        return _usom_text(reason)
    if isinstance(reason, GithubReason):
        return _github_text(reason)
    try:
        return FRIENDLY_MAP[ReasonCode(reason)]
    except ValueError:
        # unknown code: return unchanged
        return str(reason)


def clean_reasons(reasons) -> List[str]:
    """Clean entire list of reasons."""
    return [clean_reason(r) for r in reasons]


def describe_barcode_failure(reason: Optional[str]) -> Optional[str]:
    if reason is None:
        return None
    return BARCODE_FAILURES.get(reason, reason)


def describe_remote(remote: Optional[RemoteRiskResult]) -> Optional[str]:
    """An errored check reads as unverified, never as safe."""
    if remote is None:
        return None
    if remote.error:
        m = _HTTP_ERROR.fullmatch(remote.error)
        if m:
            return f"{REMOTE_UNVERIFIED} (server answered {m.group(1)})"
        if remote.error == "timeout":
            return f"{REMOTE_UNVERIFIED} (the check timed out)"
        return REMOTE_UNVERIFIED
    return REMOTE_RISKY if remote.is_risky else REMOTE_CLEAN
