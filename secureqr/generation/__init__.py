# secureqr/generation/__init__.py

"""
Content generation: payload builders and per-symbology barcode validation.
"""

from .barcode import SUPPORTED_FORMATS, validate_barcode_content
from .builder import build_contact_payload, build_payload, build_wifi_payload
