# secureqr/__init__.py

"""
SecureQR: classify scanned QR / barcode payloads, score links for phishing
risk, and validate content for barcode generation.
"""

from .generation.barcode import validate_barcode_content
from .generation.builder import build_contact_payload, build_payload, build_wifi_payload
from .gs1 import detect_gs1_country
from .history import push_history, to_history_entry
from .oracle.riskcheck import check_risk
from .qr_scanner.qr_engine import classify, classify_async
from .url_scanner import score_url

__version__ = "1.0.0"
