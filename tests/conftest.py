"""Shared fixtures: isolated environment and proxies wired to a mock upstream."""
from __future__ import annotations

import base64
import json
from typing import Callable, List, Optional

import httpx
import pytest

from tts_proxy.core.config import Settings
from tts_proxy.services.proxy_service import SynthesisProxy

FAKE_MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00fake-mp3-frames"
FAKE_MP3_B64 = base64.b64encode(FAKE_MP3).decode("ascii")

_ENV_VARS = (
    "GOOGLE_TTS_API_KEY",
    "AZURE_SPEECH_KEY",
    "AZURE_REGION",
    "TTS_PROXY_PROVIDER",
    "TTS_PROXY_MAX_TEXT_LENGTH",
    "TTS_PROXY_TIMEOUT_S",
    "TTS_PROXY_SETTINGS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without credentials or proxy overrides."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def google_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_TTS_API_KEY", "test-google-key")


@pytest.fixture
def azure_env(monkeypatch):
    monkeypatch.setenv("AZURE_SPEECH_KEY", "test-azure-key")
    monkeypatch.setenv("AZURE_REGION", "westeurope")


class RecordingUpstream:
    """
    httpx.MockTransport handler that records every request it receives.

    `respond` is called with the request and returns the httpx.Response;
    it may be a coroutine function.
    """

    def __init__(self, respond: Callable):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.respond(request)
        if hasattr(result, "__await__"):
            result = await result
        return result

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def google_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"audioContent": FAKE_MP3_B64})


def azure_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=FAKE_MP3, headers={"Content-Type": "audio/mpeg"})


@pytest.fixture
def make_proxy():
    """Build a SynthesisProxy whose upstream is a RecordingUpstream."""

    def _make(respond: Callable = google_ok, proxy_cfg: Optional[dict] = None):
        upstream = RecordingUpstream(respond)
        raw = {"proxy": dict(proxy_cfg or {})}
        proxy = SynthesisProxy(Settings(raw=raw), transport=upstream.transport())
        return proxy, upstream

    return _make


def post_body(text="Hola mundo", voice="es-ES-Neural2-A", **extra) -> bytes:
    body = {"text": text, "voiceName": voice}
    body.update(extra)
    return json.dumps(body, ensure_ascii=False).encode("utf-8")
