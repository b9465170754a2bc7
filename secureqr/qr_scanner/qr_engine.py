# secureqr/qr_scanner/qr_engine.py

from __future__ import annotations

import json
import logging
from typing import Awaitable, Callable, FrozenSet, List, Optional, Tuple

from ..models import ClassificationResult, ReasonCode, RemoteRiskResult
from ..oracle.riskcheck import attribution_reasons, check_risk
from ..text_scanner import analyze_text
from ..url_scanner import SCORE_WEIGHTS, parse_url, score_url
from . import grammars
from .qr_utils import sanitize

logger = logging.getLogger("secureqr.engine")

Predicate = Callable[[str, Optional[str]], bool]
Parser = Callable[[str, Optional[str]], Optional[ClassificationResult]]
RiskChecker = Callable[[str], Awaitable[RemoteRiskResult]]


def _prefix(*prefixes: str) -> Predicate:
    upper = tuple(p.upper() for p in prefixes)
    return lambda text, hint: text.upper().startswith(upper)


def _always(text: str, hint: Optional[str]) -> bool:
    return True


# ---------------------------------------------------------
# DISPATCH TABLE (first match wins, in this order)
# ---------------------------------------------------------

GRAMMARS: List[Tuple[str, Predicate, Parser]] = [
    ("wifi", _prefix("WIFI:"), grammars.parse_wifi),
    ("tel", _prefix("TEL:"), grammars.parse_tel),
    ("email", lambda text, hint: text.upper().startswith("MAILTO:") or "@" in text, grammars.parse_email),
    ("matmsg", _prefix("MATMSG:"), grammars.parse_matmsg),
    ("sms", _always, grammars.parse_sms),
    ("geo", _prefix("GEO:"), grammars.parse_geo),
    ("vcard", lambda text, hint: "BEGIN:VCARD" in text.upper(), grammars.parse_vcard),
    ("mecard", _prefix("MECARD:"), grammars.parse_mecard),
    (
        "event",
        lambda text, hint: any(m in text.upper() for m in ("BEGIN:VEVENT", "BEGIN:VCALENDAR")),
        grammars.parse_event,
    ),
    ("wifi_fallback", _always, grammars.parse_wifi_fallback),
    ("phone", _always, grammars.parse_phone),
]


def _text_result(text: str) -> ClassificationResult:
    assessment = analyze_text(text)
    return ClassificationResult(
        type="text",
        normalized=text,
        is_url=False,
        level=assessment.level,
        reasons=list(assessment.reasons),
        score=assessment.score,
    )


def classify_url_or_text(
    text: str, blacklist: Optional[FrozenSet[str]] = None
) -> ClassificationResult:
    """Last resort: a link when it parses as one, otherwise keyword-scored text."""
    try:
        parsed = parse_url(text)
    except ValueError:
        return _text_result(text)

    assessment = score_url(parsed, blacklist=blacklist)
    return ClassificationResult(
        type="url",
        normalized=parsed.normalized,
        is_url=True,
        level=assessment.level,
        reasons=list(assessment.reasons),
        score=assessment.score,
    )


def _log_item(result: ClassificationResult) -> ClassificationResult:
    logger.debug(
        json.dumps(
            {
                "event": "classified",
                "type": result.type,
                "level": result.level,
                "score": result.score,
                "content_preview": result.normalized[:120],
            }
        )
    )
    return result


def _classify_local(
    raw: Optional[str], hint: Optional[str], blacklist: Optional[FrozenSet[str]]
) -> ClassificationResult:
    text = sanitize(raw)
    for name, matches, parse in GRAMMARS:
        try:
            if not matches(text, hint):
                continue
            result = parse(text, hint)
        except Exception as exc:
            logger.debug(json.dumps({"event": "grammar_failed", "grammar": name, "error": str(exc)}))
            continue
        if result is not None:
            return result

    try:
        return classify_url_or_text(text, blacklist)
    except Exception as exc:
        logger.warning(json.dumps({"event": "url_scoring_failed", "error": str(exc)}))
        return _text_result(text)


# ---------------------------------------------------------
# REMOTE MERGE
# ---------------------------------------------------------

def merge_remote(result: ClassificationResult, remote: RemoteRiskResult) -> ClassificationResult:
    """
    Fold an oracle verdict into a local result. A risky verdict forces
    `unsafe`; an errored one only records itself under `remote`.
    """
    update = {"remote": remote}
    if remote.is_risky and remote.error is None:
        reasons = list(result.reasons)
        score = result.score
        if ReasonCode.BLACKLIST not in reasons:
            reasons.append(ReasonCode.BLACKLIST)
            score += SCORE_WEIGHTS["blacklist"]
        reasons.extend(attribution_reasons(remote))
        update.update(level="unsafe", reasons=reasons, score=score)
    return result.model_copy(update=update)


# ---------------------------------------------------------
# MAIN ENTRY
# ---------------------------------------------------------

def classify(
    raw: Optional[str],
    hint: Optional[str] = None,
    blacklist: Optional[FrozenSet[str]] = None,
) -> ClassificationResult:
    """
    Classify a scanned string with local rules only. No network access,
    never raises.
    """
    try:
        result = _classify_local(raw, hint, blacklist)
    except Exception as exc:
        logger.error(json.dumps({"event": "classify_failed", "error": str(exc)}))
        result = ClassificationResult(
            type="text", normalized=(raw or "").strip(), level="secure"
        )
    return _log_item(result)


async def classify_async(
    raw: Optional[str],
    hint: Optional[str] = None,
    blacklist: Optional[FrozenSet[str]] = None,
    remote: bool = True,
    checker: Optional[RiskChecker] = None,
) -> ClassificationResult:
    """
    Same local classification as `classify`, then, for links, one oracle
    round-trip whose verdict is merged in. Oracle failures never raise.
    """
    result = classify(raw, hint, blacklist)
    if not remote or not result.is_url:
        return result

    check = checker or check_risk
    try:
        verdict = await check(result.normalized)
    except Exception as exc:
        logger.warning(json.dumps({"event": "riskcheck_failed", "error": str(exc)}))
        verdict = RemoteRiskResult(is_risky=False, error="network_error")
    return _log_item(merge_remote(result, verdict))
