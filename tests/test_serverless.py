"""Tests for the serverless function handler."""
from __future__ import annotations

import base64
import json

import pytest

from conftest import FAKE_MP3_B64, google_ok, post_body
from tts_proxy import serverless
from tts_proxy.services.proxy_service import RESPONSE_HEADERS


@pytest.fixture
def upstream(monkeypatch, make_proxy):
    proxy, recording = make_proxy(google_ok)
    monkeypatch.setattr(serverless, "get_proxy", lambda settings: proxy)
    return recording


class TestHandler:
    """handler(event, context) round trips."""

    def test_success(self, google_env, upstream):
        result = serverless.handler({"httpMethod": "POST", "body": post_body().decode("utf-8")}, None)

        assert result["statusCode"] == 200
        assert result["headers"] == RESPONSE_HEADERS
        body = json.loads(result["body"])
        assert body["audioContent"] == FAKE_MP3_B64
        assert body["success"] is True
        assert upstream.calls == 1

    def test_base64_encoded_body(self, google_env, upstream):
        event = {
            "httpMethod": "POST",
            "body": base64.b64encode(post_body()).decode("ascii"),
            "isBase64Encoded": True,
        }
        assert serverless.handler(event)["statusCode"] == 200

    def test_get_is_rejected(self, google_env, upstream):
        result = serverless.handler({"httpMethod": "GET", "body": None})
        assert result["statusCode"] == 405
        assert json.loads(result["body"])["code"] == "METHOD_NOT_ALLOWED"
        assert upstream.calls == 0

    def test_missing_method_is_rejected(self, google_env, upstream):
        assert serverless.handler({})["statusCode"] == 405

    def test_missing_body(self, google_env, upstream):
        result = serverless.handler({"httpMethod": "POST"})
        assert result["statusCode"] == 400
        assert json.loads(result["body"])["code"] == "BAD_REQUEST"

    def test_body_is_json_string(self, upstream):
        result = serverless.handler({"httpMethod": "POST", "body": post_body(text="¿Qué?").decode("utf-8")})
        assert isinstance(result["body"], str)
        assert result["statusCode"] == 500
        assert json.loads(result["body"])["code"] == "SERVER_MISCONFIGURED"

    def test_headers_are_a_copy(self, google_env, upstream):
        result = serverless.handler({"httpMethod": "GET"})
        result["headers"]["X-Test"] = "1"
        assert "X-Test" not in RESPONSE_HEADERS


class TestInvalidSettings:
    """Settings that fail validation still produce a JSON response."""

    def test_timeout_above_ceiling(self, monkeypatch, google_env):
        from tts_proxy.services.proxy_service import reset_proxy

        monkeypatch.setenv("TTS_PROXY_TIMEOUT_S", "12")
        reset_proxy()
        try:
            result = serverless.handler({"httpMethod": "POST", "body": post_body().decode("utf-8")})
        finally:
            reset_proxy()

        assert result["statusCode"] == 500
        assert result["headers"] == RESPONSE_HEADERS
        body = json.loads(result["body"])
        assert body["error"] == "Server configuration incomplete"
        assert body["code"] == "SERVER_MISCONFIGURED"
        assert "upstream_timeout_s" in body["details"]


class TestToEventResponse:
    """to_event_response() keeps non-ASCII text readable."""

    def test_unicode_not_escaped(self):
        from tts_proxy.services.proxy_service import ProxyResponse

        result = serverless.to_event_response(ProxyResponse(400, {"error": "Texto vacío", "code": "EMPTY_TEXT"}))
        assert "vacío" in result["body"]
