# secureqr/qr_scanner/__init__.py

"""
Scanned-payload classifier.

Exposes:

    classify(raw, hint=None) -> ClassificationResult
    classify_async(raw, hint=None) -> ClassificationResult   (awaits the oracle)

which:
- Strips invisible and control characters from the scanned string
- Tries each payload grammar in a fixed order (WiFi, tel, email, SMS, geo,
  vCard, event, WiFi fallback, bare phone number)
- Falls back to URL risk scoring, or keyword scoring for plain text
"""

from .qr_engine import GRAMMARS, classify, classify_async, merge_remote
