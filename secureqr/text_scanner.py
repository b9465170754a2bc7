# secureqr/text_scanner.py

"""
Keyword-only scoring for scanned free text.

Text that cannot be read as a link only gets the phishing-vocabulary rule,
with the same weight and cap the URL scorer uses, so a message like
"claim your free gift now" still surfaces as suspicious.
"""

from __future__ import annotations

from .models import ReasonCode, RiskAssessment
from .url_scanner import count_keywords, keyword_weight, level_for_score


def analyze_text(text: str) -> RiskAssessment:
    hits = count_keywords((text or "").lower())
    if not hits:
        return RiskAssessment(score=0, level="secure", reasons=[])

    score = keyword_weight(hits)
    return RiskAssessment(
        score=score,
        level=level_for_score(score),
        reasons=[ReasonCode.KEYWORD],
    )
