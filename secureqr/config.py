# secureqr/config.py

import os


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# Threat oracle. Unset base URL is a valid, degraded state.
RISKCHECK_BASE_URL = (
    os.getenv("RISKCHECK_BASE_URL") or os.getenv("EXPO_PUBLIC_API_BASE_URL") or None
)
RISKCHECK_TIMEOUT = _float_env("RISKCHECK_TIMEOUT", 10.0)

# Optional newline-separated domain list used by the scorer.
BLACKLIST_PATH = os.getenv("BLACKLIST_PATH") or None

HISTORY_MIN_CAPACITY = 50
HISTORY_MAX_CAPACITY = 200
HISTORY_CAPACITY = _int_env("HISTORY_CAPACITY", HISTORY_MIN_CAPACITY)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SENTRY_DSN = os.getenv("SENTRY_DSN", "")

# Comma-separated CORS origins for the HTTP surface.
ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()
]
