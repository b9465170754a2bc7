"""
GS1 country lookup and scan-history projection tests.
"""

import pytest

from secureqr import config
from secureqr.gs1 import detect_gs1_country
from secureqr.history import clamp_capacity, push_history, to_history_entry
from secureqr.models import HistoryEntry
from secureqr.qr_scanner.qr_engine import classify


class TestGs1Country:

    @pytest.mark.parametrize(
        "raw, country",
        [
            ("4006381333931", "Germany"),
            ("8690000000000", "Turkey"),
            ("5012345678900", "United Kingdom"),
            ("0012345678905", "United States"),
            ("7612345678900", "Switzerland & Liechtenstein"),
            ("400-638 133", "Germany"),
        ],
    )
    def test_known_prefixes(self, raw, country):
        assert detect_gs1_country(raw) == country

    @pytest.mark.parametrize("raw", [None, "", "4006381", "0001234567890", "9781234567897", "hello"])
    def test_unknown_or_too_short(self, raw):
        assert detect_gs1_country(raw) is None


class TestHistoryEntry:

    def test_product_code_entry(self):
        result = classify("4006381333931", hint="EAN13")
        entry = to_history_entry(result, raw="4006381333931", timestamp=1700000000000)

        assert entry.content == "4006381333931"
        assert entry.type == "text"
        assert entry.level == "secure"
        assert entry.country == "Germany"
        assert entry.timestamp == 1700000000000

    def test_wifi_entry_keeps_record(self):
        result = classify("WIFI:S:Net;P:pw;;")
        entry = to_history_entry(result)

        assert entry.type == "wifi"
        assert entry.wifi.ssid == "Net"
        assert entry.level is None
        assert entry.country is None
        assert entry.timestamp > 0


class TestPushHistory:

    def test_most_recent_first(self):
        old = [HistoryEntry(content="a"), HistoryEntry(content="b")]
        rows = push_history(old, HistoryEntry(content="c"))

        assert [r.content for r in rows] == ["c", "a", "b"]

    def test_duplicate_content_moves_to_front(self):
        old = [HistoryEntry(content="a", timestamp=1), HistoryEntry(content="b", timestamp=2)]
        rows = push_history(old, HistoryEntry(content="b", timestamp=3))

        assert [r.content for r in rows] == ["b", "a"]
        assert rows[0].timestamp == 3

    def test_accepts_plain_dicts(self):
        rows = push_history([{"content": "a", "type": "url"}], {"content": "b", "level": "unsafe"})

        assert rows[0].level == "unsafe"
        assert rows[1].type == "url"

    def test_capacity_is_clamped(self):
        old = [HistoryEntry(content=str(i)) for i in range(300)]

        assert len(push_history(old, HistoryEntry(content="new"), capacity=10)) == 50
        assert len(push_history(old, HistoryEntry(content="new"), capacity=1000)) == 200
        assert len(push_history(old, HistoryEntry(content="new"), capacity=120)) == 120

    def test_default_capacity_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "HISTORY_CAPACITY", 75)

        assert clamp_capacity(None) == 75

    def test_input_list_is_not_modified(self):
        old = [HistoryEntry(content="a")]
        push_history(old, HistoryEntry(content="b"))

        assert [r.content for r in old] == ["a"]
