# ---------------------------------------------------------
# URL Scanner: weighted heuristic rules for scanned links
# ---------------------------------------------------------

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, List, Optional
from urllib.parse import urlsplit

import idna
import tldextract
import validators

from . import config
from .models import ReasonCode, RiskAssessment, RiskLevel

logger = logging.getLogger("secureqr.url_scanner")


# ---------------------------------------------------------
# TRUST LISTS
# ---------------------------------------------------------

SUSPICIOUS_KEYWORDS = (
    "login", "verify", "free", "gift", "claim", "freegift", "update",
    "wallet", "signin", "bank", "confirm", "secure", "account",
    "password", "bonus", "promo", "win", "offer", "credit", "prize",
    "urgent", "suspended", "locked", "unusual", "activity",
)

LOW_TRUST_TLDS = {
    "xyz", "top", "click", "work", "info", "zip", "country",
    "tk", "ga", "ml", "gq", "biz", "kim", "loan", "club",
    "date", "men", "online", "site", "website",
}

URL_SHORTENERS = (
    "bit.ly", "tinyurl.com", "t.co", "goo.gl", "ow.ly",
    "is.gd", "buff.ly", "rebrand.ly", "s.id", "cutt.ly",
)

# Insertion order matters: only the first mismatching brand is reported.
BRAND_DOMAINS = {
    "paypal": "paypal.com",
    "facebook": "facebook.com",
    "instagram": "instagram.com",
    "google": "google.com",
    "gmail": "google.com",
    "apple": "apple.com",
    "microsoft": "microsoft.com",
    "outlook": "outlook.com",
    "amazon": "amazon.com",
    "netflix": "netflix.com",
    "twitter": "twitter.com",
    "whatsapp": "whatsapp.com",
    "linkedin": "linkedin.com",
}

SAFE_EXECUTABLE_HOSTS = ("play.google.com", "dl.google.com")

SCORE_WEIGHTS = {
    "blacklist": 10,
    "http": 2,
    "homoglyph": 2,
    "userinfo": 3,
    "ip_host": 3,
    "keyword": 1,
    "tld": 1,
    "shortener": 2,
    "port": 1,
    "path_entropy": 2,
    "brand_mismatch": 3,
    "executable": 3,
}

THRESHOLDS = {"unsafe": 4, "suspicious": 2}

KEYWORD_HIT_CAP = 3

EXECUTABLE_EXTS = re.compile(
    r"\.(apk|exe|msi|dmg|pkg|deb|rpm|appx|ipa)(?:[?#]|$)", re.IGNORECASE
)
_PERCENT_ENCODED = re.compile(r"%[0-9A-Fa-f]{2}")
_NON_WORD = re.compile(r"[^A-Za-z0-9_/.\-?=&]")
_BASE64_RUN = re.compile(r"[A-Za-z0-9+/=]{40}")
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*://")
_HOST_CHARS = re.compile(r"^[^\s!\"#$%&'()*+,/:;<=>?@\[\\\]^`{|}~]+$")

# Bundled public-suffix snapshot only; never fetched at runtime.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


# ---------------------------------------------------------
# URL PARSING
# ---------------------------------------------------------

@dataclass(frozen=True)
class ParsedUrl:
    scheme: str
    host: str
    username: str
    password: str
    port: Optional[int]
    path: str  # path + ?query + #fragment
    normalized: str

    @property
    def has_userinfo(self) -> bool:
        return bool(self.username or self.password)


def has_scheme(text: str) -> bool:
    return bool(_SCHEME.match(text))


def _valid_host(host: str) -> bool:
    if not host:
        return False
    if is_ip(host):
        return True
    if not _HOST_CHARS.fullmatch(host):
        return False
    labels = host.rstrip(".").split(".")
    if any(not label for label in labels):
        return False
    return len(labels) > 1 or host == "localhost"


def _ascii_host(host: str) -> str:
    if host.isascii():
        return host
    try:
        return idna.encode(host, uts46=True).decode("ascii")
    except idna.IDNAError:
        return host


def parse_url(raw: str) -> ParsedUrl:
    """
    Parse a scanned string as a URL, prepending http:// when no scheme is
    present. Raises ValueError when the result has no usable host.
    """
    candidate = raw.strip()
    if not candidate:
        raise ValueError("empty url")
    if not has_scheme(candidate):
        candidate = "http://" + candidate

    parts = urlsplit(candidate)
    host = parts.hostname or ""
    if not _valid_host(host):
        raise ValueError(f"invalid host: {host!r}")

    port = parts.port  # raises ValueError on junk ports
    scheme = parts.scheme.lower()
    username = parts.username or ""
    password = parts.password or ""

    path = parts.path or "/"
    tail = path
    if parts.query:
        tail += "?" + parts.query
    if parts.fragment:
        tail += "#" + parts.fragment

    netloc_host = _ascii_host(host)
    if ":" in netloc_host:
        netloc_host = f"[{netloc_host}]"
    default_port = {"http": 80, "https": 443}.get(scheme)
    if port is not None and port != default_port:
        netloc_host += f":{port}"
    if username or password:
        userinfo = username + (f":{password}" if password else "")
        netloc_host = f"{userinfo}@{netloc_host}"

    normalized = f"{scheme}://{netloc_host}{tail}".replace(" ", "%20")

    return ParsedUrl(
        scheme=scheme,
        host=host,
        username=username,
        password=password,
        port=port if port != default_port else None,
        path=tail,
        normalized=normalized,
    )


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------

def is_ip(host: str) -> bool:
    return bool(validators.ipv4(host)) or (
        ":" in host and bool(validators.ipv6(host))
    )


def normalize_host(host: str) -> str:
    lower = host.lower()
    return lower[4:] if lower.startswith("www.") else lower


def base_domain(host: str) -> str:
    """Registrable domain of a host, honouring multi-label suffixes like co.uk."""
    host = normalize_host(host)
    if is_ip(host):
        return host
    ext = _EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def count_keywords(lowered: str) -> int:
    return sum(1 for kw in SUSPICIOUS_KEYWORDS if kw in lowered)


def keyword_weight(hits: int) -> int:
    return SCORE_WEIGHTS["keyword"] * min(hits, KEYWORD_HIT_CAP)


def level_for_score(score: int) -> RiskLevel:
    if score >= THRESHOLDS["unsafe"]:
        return "unsafe"
    if score >= THRESHOLDS["suspicious"]:
        return "suspicious"
    return "secure"


# ---------------------------------------------------------
# LOCAL BLACKLIST
# ---------------------------------------------------------

def parse_blacklist(text: str) -> FrozenSet[str]:
    entries = set()
    for line in text.splitlines():
        item = line.strip().lower()
        if not item or item.startswith("#"):
            continue
        item = re.sub(r"^https?://", "", item)
        item = normalize_host(item).split("/")[0]
        if item:
            entries.add(item)
    return frozenset(entries)


@lru_cache(maxsize=4)
def load_blacklist(path: Optional[str] = None) -> FrozenSet[str]:
    """Read the domain blacklist once per path. Unreadable files yield an empty set."""
    path = path or config.BLACKLIST_PATH
    if not path:
        return frozenset()
    try:
        entries = parse_blacklist(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        logger.warning(json.dumps({"event": "blacklist_unreadable", "path": path, "error": str(exc)}))
        return frozenset()
    logger.info(json.dumps({"event": "blacklist_loaded", "path": path, "domains": len(entries)}))
    return entries


def is_blacklisted(host: str, blacklist: FrozenSet[str]) -> bool:
    if not host or not blacklist:
        return False
    lower = host.lower()
    normalized = normalize_host(lower)
    return (
        lower in blacklist
        or normalized in blacklist
        or base_domain(normalized) in blacklist
    )


# ---------------------------------------------------------
# MAIN SCORER
# ---------------------------------------------------------

def _is_brand_mismatch(host: str, lower_all: str) -> bool:
    normalized = normalize_host(host)
    base = base_domain(normalized)
    for brand, expected in BRAND_DOMAINS.items():
        if brand not in lower_all:
            continue
        if base == expected or normalized == expected or normalized.endswith("." + expected):
            continue
        return True
    return False


def score_url(
    parsed: ParsedUrl, blacklist: Optional[FrozenSet[str]] = None
) -> RiskAssessment:
    """
    Evaluate every rule against a parsed URL. Reasons come out in rule order,
    one code per triggered rule.
    """
    if blacklist is None:
        blacklist = load_blacklist()

    host = parsed.host.lower()
    path = parsed.path
    lower_all = (host + path).lower()

    reasons: List[ReasonCode] = []
    score = 0

    def hit(code: ReasonCode, weight: int) -> None:
        nonlocal score
        reasons.append(code)
        score += weight

    # -------------------------
    # Blacklist
    # -------------------------
    if is_blacklisted(host, blacklist):
        hit(ReasonCode.BLACKLIST, SCORE_WEIGHTS["blacklist"])

    # -------------------------
    # Plain HTTP
    # -------------------------
    if parsed.scheme == "http":
        hit(ReasonCode.HTTP, SCORE_WEIGHTS["http"])

    # -------------------------
    # IDN / homoglyph host
    # -------------------------
    if not host.isascii() or "xn--" in host:
        hit(ReasonCode.HOMOGLYPH, SCORE_WEIGHTS["homoglyph"])

    # -------------------------
    # user:pass@ prefix
    # -------------------------
    if parsed.has_userinfo:
        hit(ReasonCode.USERINFO, SCORE_WEIGHTS["userinfo"])

    # -------------------------
    # Raw IP host
    # -------------------------
    if is_ip(host):
        hit(ReasonCode.IP_HOST, SCORE_WEIGHTS["ip_host"])

    # -------------------------
    # Phishing vocabulary
    # -------------------------
    hits = count_keywords(lower_all)
    if hits:
        hit(ReasonCode.KEYWORD, keyword_weight(hits))

    # -------------------------
    # TLD / host shape
    # -------------------------
    labels = host.rstrip(".").split(".")
    tld = labels[-1]
    subdomains = len(labels) - 2
    if tld in LOW_TRUST_TLDS or len(host) > 40 or subdomains > 4:
        hit(ReasonCode.TLD, SCORE_WEIGHTS["tld"])

    # -------------------------
    # Shorteners
    # -------------------------
    if any(host == d or host.endswith("." + d) for d in URL_SHORTENERS):
        hit(ReasonCode.SHORTENER, SCORE_WEIGHTS["shortener"])

    # -------------------------
    # Unusual port
    # -------------------------
    if parsed.port is not None and parsed.port not in (80, 443):
        hit(ReasonCode.PORT, SCORE_WEIGHTS["port"])

    # -------------------------
    # Obfuscated path
    # -------------------------
    if len(path) > 90:
        encoded = len(_PERCENT_ENCODED.findall(path))
        non_words = len(_NON_WORD.findall(path))
        long_base64 = bool(_BASE64_RUN.search(path[:300]))
        if encoded >= 10 or non_words >= 25 or long_base64:
            hit(ReasonCode.PATH_ENTROPY, SCORE_WEIGHTS["path_entropy"])

    # -------------------------
    # Executable downloads
    # -------------------------
    if EXECUTABLE_EXTS.search(path):
        normalized = normalize_host(host)
        official = any(
            normalized == d or normalized.endswith("." + d) for d in SAFE_EXECUTABLE_HOSTS
        )
        if not official:
            hit(ReasonCode.EXECUTABLE, SCORE_WEIGHTS["executable"])

    # -------------------------
    # Brand impersonation
    # -------------------------
    if _is_brand_mismatch(host, lower_all):
        hit(ReasonCode.BRAND_MISMATCH, SCORE_WEIGHTS["brand_mismatch"])

    return RiskAssessment(score=score, level=level_for_score(score), reasons=reasons)


def analyze_url(url_raw: str, blacklist: Optional[FrozenSet[str]] = None) -> RiskAssessment:
    """Parse and score in one step. Raises ValueError for unparseable input."""
    return score_url(parse_url(url_raw), blacklist=blacklist)
