# tests/test_gateway.py
"""
Tests for the TLS gateway application (run in-process, backend faked with httpx.MockTransport).
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from fileexp.config.settings import GatewaySettings
from fileexp.services.exceptions import CertificateError, ValidationError
from fileexp.services.gateway import create_app, load_certificate_pair, parse_translate_request


def _settings(tmp_path: Path | None = None) -> GatewaySettings:
    settings = GatewaySettings(backend_url="http://backend.test", model="test-model")
    if tmp_path is not None:
        settings.cert_path = tmp_path / "cert.pem"
        settings.key_path = tmp_path / "key.pem"
    return settings


def _client(handler, substitutions=None) -> TestClient:
    app = create_app(_settings(), substitutions, transport=httpx.MockTransport(handler))
    return TestClient(app)


class BackendRecorder:
    """Fake generation backend"""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.requests: list[dict] = []
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        self.requests.append(json.loads(request.content))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_health():
    with _client(BackendRecorder(httpx.Response(200, json={}))) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "model": "test-model"}


def test_translate_success():
    backend = BackendRecorder(httpx.Response(200, json={"response": "  Japanese\n"}))
    with _client(backend) as client:
        response = client.post("/translate", json={"text": "日本語", "target": "en"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "translated": "Japanese"}
    assert backend.paths == ["/api/generate"]
    sent = backend.requests[0]
    assert sent["model"] == "test-model"
    assert sent["stream"] is False
    assert "into en" in sent["prompt"]
    assert sent["prompt"].endswith("日本語")


def test_target_defaults_to_en():
    backend = BackendRecorder(httpx.Response(200, json={"response": "Photo"}))
    with _client(backend) as client:
        response = client.post("/translate", json={"text": "写真"})
    assert response.status_code == 200
    assert "into en" in backend.requests[0]["prompt"]


def test_substitutions_applied_before_prompt():
    backend = BackendRecorder(httpx.Response(200, json={"response": "ok"}))
    with _client(backend, substitutions={"AB": "X", "A": "Y"}) as client:
        client.post("/translate", json={"text": "ABC", "target": "ja"})
    assert backend.requests[0]["prompt"].endswith("XC")


@pytest.mark.parametrize(
    "body",
    [{}, {"text": ""}, {"text": 5}, {"target": "en"}, ["日本語"]],
)
def test_missing_text_is_400(body):
    backend = BackendRecorder(httpx.Response(200, json={"response": "x"}))
    with _client(backend) as client:
        response = client.post("/translate", json=body)
    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "text is required"}
    assert backend.requests == []


def test_malformed_json_is_400():
    with _client(BackendRecorder(httpx.Response(200, json={}))) as client:
        response = client.post(
            "/translate",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
    assert response.status_code == 400
    assert response.json()["message"] == "text is required"


def test_backend_500_is_propagated():
    backend = BackendRecorder(httpx.Response(500, json={"error": "Boom"}))
    with _client(backend) as client:
        response = client.post("/translate", json={"text": "日本語"})

    assert response.status_code == 500
    body = response.json()
    assert body["ok"] is False
    assert body["status"] == 500
    assert "Boom" in body["body"]
    assert body["message"]


def test_backend_429_is_propagated():
    with _client(BackendRecorder(httpx.Response(429, text="busy"))) as client:
        response = client.post("/translate", json={"text": "日本語"})
    assert response.status_code == 429
    assert response.json()["status"] == 429


def test_backend_invalid_json_is_distinct_failure():
    with _client(BackendRecorder(httpx.Response(200, text="not json"))) as client:
        response = client.post("/translate", json={"text": "日本語"})
    assert response.status_code == 502
    body = response.json()
    assert body["ok"] is False
    assert body["body"] == "not json"
    assert "not valid JSON" in body["message"]


def test_unreachable_backend_is_500_and_server_keeps_serving():
    backend = BackendRecorder(httpx.ConnectError("connection refused"))
    with _client(backend) as client:
        failed = client.post("/translate", json={"text": "日本語"})
        health = client.get("/health")

    assert failed.status_code == 500
    assert failed.json()["ok"] is False
    assert "status" not in failed.json()
    assert health.status_code == 200


class TestParseTranslateRequest:

    def test_valid(self):
        assert parse_translate_request({"text": "写真", "target": " fr "}) == ("写真", "fr")

    def test_blank_target_defaults(self):
        assert parse_translate_request({"text": "写真", "target": ""}) == ("写真", "en")

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_translate_request(None)


class TestCertificates:

    def test_missing_files(self, tmp_path: Path):
        with pytest.raises(CertificateError):
            load_certificate_pair(_settings(tmp_path))

    def test_invalid_pair(self, tmp_path: Path):
        (tmp_path / "cert.pem").write_text("not a certificate", encoding="utf-8")
        (tmp_path / "key.pem").write_text("not a key", encoding="utf-8")
        with pytest.raises(CertificateError):
            load_certificate_pair(_settings(tmp_path))
