"""
Shared fixtures: every test starts with no oracle base URL and no local
blacklist, whatever the developer's environment says.
"""

import pytest

from secureqr import config
from secureqr.url_scanner import load_blacklist


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    monkeypatch.setattr(config, "RISKCHECK_BASE_URL", None)
    monkeypatch.setattr(config, "BLACKLIST_PATH", None)
    load_blacklist.cache_clear()
    yield
    load_blacklist.cache_clear()
