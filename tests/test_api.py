"""
HTTP surface tests (FastAPI TestClient) and the default English rendering
used by it.
"""

import pytest
from fastapi.testclient import TestClient

from secureqr.main import app
from secureqr.models import GithubReason, ReasonCode, RemoteRiskResult, UsomReason
from secureqr.utils.reason_cleaner import (
    BARCODE_FAILURES,
    FRIENDLY_MAP,
    clean_reason,
    clean_reasons,
    describe_barcode_failure,
    describe_remote,
)


@pytest.fixture
def client():
    """Create test client"""
    return TestClient(app)


class TestReasonCleaner:

    def test_every_code_has_text(self):
        assert set(FRIENDLY_MAP) == set(ReasonCode)

    def test_code_and_plain_string_render_the_same(self):
        assert clean_reason(ReasonCode.HTTP) == clean_reason("classifier.httpWarning")
        assert "HTTPS" in clean_reason(ReasonCode.HTTP)

    def test_unknown_code_passes_through(self):
        assert clean_reason("classifier.somethingNew") == "classifier.somethingNew"

    def test_structured_reasons(self):
        usom = UsomReason(domain="evil.com", type_code="PH", title="Phishing", date="2024-05-01")
        github = GithubReason(domain="evil.com", files=["a.txt"])

        texts = clean_reasons([ReasonCode.USOM, usom, github])

        assert "Phishing" in texts[1] and "evil.com" in texts[1]
        assert "a.txt" in texts[2]

    def test_every_barcode_failure_has_text(self):
        for reason in ("empty", "non_numeric", "length", "charset", "range", "checksum"):
            assert describe_barcode_failure(reason) == BARCODE_FAILURES[reason]
        assert describe_barcode_failure(None) is None

    def test_errored_remote_is_unverified_not_safe(self):
        for error in ("missing_base_url", "timeout", "http_502", "network_error"):
            text = describe_remote(RemoteRiskResult(is_risky=False, error=error))
            assert text.startswith("Could not verify")

        assert "no reports" in describe_remote(RemoteRiskResult(is_risky=False))
        assert "dangerous" in describe_remote(RemoteRiskResult(is_risky=True))
        assert describe_remote(None) is None


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers.get("X-Request-ID")

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestClassifyEndpoint:
    """Test POST /classify"""

    def test_url(self, client):
        response = client.post("/classify", json={"content": "http://example.com/login"})

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "url"
        assert data["is_url"] is True
        assert "classifier.httpWarning" in data["reasons"]
        assert "classifier.keywordWarning" in data["reasons"]
        assert len(data["explanations"]) == len(data["reasons"])
        assert data["remote"] is None

    def test_wifi(self, client):
        response = client.post("/classify", json={"content": "WIFI:T:WEP;S:Net;P:pw;;"})

        data = response.json()
        assert data["type"] == "wifi"
        assert data["wifi"] == {"ssid": "Net", "password": "pw", "security": "WEP", "hidden": False}

    def test_hint_is_forwarded(self, client):
        response = client.post("/classify", json={"content": "4006381333931", "hint": "EAN_13"})

        assert response.json()["type"] == "text"

    def test_remote_without_base_url(self, client):
        response = client.post(
            "/classify", json={"content": "https://example.com", "remote": True}
        )

        data = response.json()
        assert data["remote"]["error"] == "missing_base_url"
        assert data["level"] == "secure"
        assert data["remote_message"].startswith("Could not verify")

    def test_empty_content(self, client):
        response = client.post("/classify", json={"content": "   "})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_content(self, client):
        response = client.post("/classify", json={})

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request."


class TestBarcodeEndpoint:
    """Test POST /barcode/validate"""

    def test_valid(self, client):
        response = client.post("/barcode/validate", json={"format": "EAN13", "content": "123456789012"})

        data = response.json()
        assert data["ok"] is True
        assert data["value"] == "1234567890128"
        assert "message" not in data

    def test_invalid_has_message(self, client):
        response = client.post("/barcode/validate", json={"format": "pharmacode", "content": "2"})

        data = response.json()
        assert data["ok"] is False
        assert data["reason"] == "range"
        assert data["message"]


class TestPayloadEndpoint:
    """Test POST /payload/build"""

    def test_wifi(self, client):
        response = client.post(
            "/payload/build", json={"type": "wifi", "wifi": {"ssid": "Net", "password": "pw"}}
        )

        assert response.json() == {"payload": "WIFI:T:WPA;S:Net;P:pw;"}

    def test_sms(self, client):
        response = client.post(
            "/payload/build",
            json={"type": "sms", "contact": {"sms_number": "+1555", "sms_body": "hi"}},
        )

        assert response.json() == {"payload": "SMSTO:+1555:hi"}

    def test_unknown_type(self, client):
        response = client.post("/payload/build", json={"type": "fax"})

        assert response.status_code == 422


class TestHistoryEndpoint:
    """Test POST /history/push"""

    def test_push(self, client):
        response = client.post(
            "/history/push",
            json={
                "entries": [{"content": "a", "type": "url"}, {"content": "b"}],
                "entry": {"content": "b", "level": "unsafe", "timestamp": 5},
            },
        )

        assert response.status_code == 200
        entries = response.json()["entries"]
        assert [e["content"] for e in entries] == ["b", "a"]
        assert entries[0]["level"] == "unsafe"
