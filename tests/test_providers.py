"""
Tests for upstream providers.

Tests cover:
- get_provider() factory and credential lookup
- Google payload shape, API key placement, audio pass-through
- Azure SSML document, headers, base64 encoding of raw MP3
- Non-2xx answers raise UpstreamHTTPError with the provider's message
- Exactly one request per synthesize() call
"""
from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import FAKE_MP3, FAKE_MP3_B64, RecordingUpstream, azure_ok, google_ok
from tts_proxy.core.config import ProxyConfig, Settings
from tts_proxy.tts.provider import (
    MissingCredentialsError,
    UpstreamHTTPError,
    extract_error_message,
    get_provider,
    provider_class,
)
from tts_proxy.tts.providers import AzureTTSProvider, GoogleTTSProvider


def _config(provider: str = "google") -> ProxyConfig:
    return ProxyConfig.from_settings(Settings(raw={"proxy": {"provider": provider}}))


class TestProviderFactory:
    """Tests for get_provider() and provider_class()."""

    def test_provider_class_lookup(self):
        assert provider_class("google") is GoogleTTSProvider
        assert provider_class("azure") is AzureTTSProvider

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            provider_class("polly")

    def test_google_missing_key(self):
        with pytest.raises(MissingCredentialsError) as exc_info:
            get_provider(_config("google"))
        assert exc_info.value.missing == ["GOOGLE_TTS_API_KEY"]

    def test_azure_missing_both(self):
        with pytest.raises(MissingCredentialsError) as exc_info:
            get_provider(_config("azure"))
        assert exc_info.value.missing == ["AZURE_SPEECH_KEY", "AZURE_REGION"]

    def test_azure_missing_region(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_KEY", "k")
        with pytest.raises(MissingCredentialsError) as exc_info:
            get_provider(_config("azure"))
        assert exc_info.value.missing == ["AZURE_REGION"]

    def test_blank_key_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_TTS_API_KEY", "   ")
        with pytest.raises(MissingCredentialsError):
            get_provider(_config("google"))

    def test_google_built_with_credentials(self, google_env):
        provider = get_provider(_config("google"))
        assert isinstance(provider, GoogleTTSProvider)
        assert provider.credentials == {"GOOGLE_TTS_API_KEY": "test-google-key"}

    def test_credentials_read_per_call(self, monkeypatch):
        """A rotated key is picked up without rebuilding the config."""
        config = _config("google")
        monkeypatch.setenv("GOOGLE_TTS_API_KEY", "first")
        assert get_provider(config).credentials["GOOGLE_TTS_API_KEY"] == "first"
        monkeypatch.setenv("GOOGLE_TTS_API_KEY", "second")
        assert get_provider(config).credentials["GOOGLE_TTS_API_KEY"] == "second"


class TestGoogleProvider:
    """Tests for GoogleTTSProvider."""

    def test_payload_shape(self):
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "k"})
        payload = provider.build_payload("Hola mundo", "es-ES-Neural2-A", "es-ES")
        assert payload == {
            "input": {"text": "Hola mundo"},
            "voice": {"languageCode": "es-ES", "name": "es-ES-Neural2-A"},
            "audioConfig": {
                "audioEncoding": "MP3",
                "speakingRate": 1.0,
                "pitch": 0.0,
                "volumeGainDb": 0.0,
                "sampleRateHertz": 24000,
            },
        }

    def test_request_sent_once_with_key(self):
        upstream = RecordingUpstream(google_ok)
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "secret"}, transport=upstream.transport())

        audio = asyncio.run(provider.synthesize("Hola mundo", "es-ES-Neural2-A", "es-ES", 5.0))

        assert upstream.calls == 1
        request = upstream.requests[0]
        assert request.method == "POST"
        assert request.url.host == "texttospeech.googleapis.com"
        assert request.url.path == "/v1/text:synthesize"
        assert request.url.params["key"] == "secret"
        assert upstream.last_json()["input"] == {"text": "Hola mundo"}
        assert audio.audio_base64 == FAKE_MP3_B64
        assert audio.provider == "google"

    def test_missing_audio_content_is_empty(self):
        upstream = RecordingUpstream(lambda r: httpx.Response(200, json={"something": "else"}))
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "k"}, transport=upstream.transport())
        audio = asyncio.run(provider.synthesize("Hola", "es-ES-Neural2-A", "es-ES", 5.0))
        assert audio.audio_base64 == ""

    def test_non_json_success_is_empty(self):
        upstream = RecordingUpstream(lambda r: httpx.Response(200, content=b"<html>"))
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "k"}, transport=upstream.transport())
        audio = asyncio.run(provider.synthesize("Hola", "es-ES-Neural2-A", "es-ES", 5.0))
        assert audio.audio_base64 == ""

    def test_error_status_raises(self):
        def respond(request):
            return httpx.Response(403, json={"error": {"code": 403, "message": "API key not valid"}})

        upstream = RecordingUpstream(respond)
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "bad"}, transport=upstream.transport())

        with pytest.raises(UpstreamHTTPError) as exc_info:
            asyncio.run(provider.synthesize("Hola", "es-ES-Neural2-A", "es-ES", 5.0))
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "API key not valid"
        assert upstream.calls == 1

    def test_redacted_request_hides_key(self):
        provider = GoogleTTSProvider(_config(), {"GOOGLE_TTS_API_KEY": "secret"})
        redacted = provider.build_request("Hola", "es-ES-Neural2-A", "es-ES").redacted()
        assert "secret" not in str(redacted)
        assert redacted["json"]["voice"]["name"] == "es-ES-Neural2-A"


class TestAzureProvider:
    """Tests for AzureTTSProvider."""

    def _provider(self, transport=None) -> AzureTTSProvider:
        credentials = {"AZURE_SPEECH_KEY": "azure-secret", "AZURE_REGION": "westeurope"}
        return AzureTTSProvider(_config("azure"), credentials, transport=transport)

    def test_ssml_document(self):
        ssml = self._provider().build_ssml("Hola mundo", "es-ES-ElviraNeural", "es-ES")
        assert ssml == (
            "<speak version='1.0' xml:lang='es-ES'>"
            "<voice name='es-ES-ElviraNeural'>Hola mundo</voice>"
            "</speak>"
        )

    def test_ssml_escapes_text(self):
        ssml = self._provider().build_ssml("a < b & 'c'", "es-ES-ElviraNeural", "es-ES")
        assert "a &lt; b &amp; &apos;c&apos;" in ssml

    def test_request_headers_and_audio(self):
        upstream = RecordingUpstream(azure_ok)
        provider = self._provider(transport=upstream.transport())

        audio = asyncio.run(provider.synthesize("Hola mundo", "es-ES-ElviraNeural", "es-ES", 5.0))

        assert upstream.calls == 1
        request = upstream.requests[0]
        assert request.url.host == "westeurope.tts.speech.microsoft.com"
        assert request.url.path == "/cognitiveservices/v1"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "azure-secret"
        assert request.headers["Content-Type"] == "application/ssml+xml"
        assert request.headers["X-Microsoft-OutputFormat"] == "audio-16khz-32kbitrate-mono-mp3"
        assert b"<voice name='es-ES-ElviraNeural'>Hola mundo</voice>" in request.content
        assert audio.audio_base64 == FAKE_MP3_B64
        assert audio.provider == "azure"

    def test_empty_body_is_empty_audio(self):
        upstream = RecordingUpstream(lambda r: httpx.Response(200, content=b""))
        audio = asyncio.run(
            self._provider(transport=upstream.transport()).synthesize("Hola", "es-ES-ElviraNeural", "es-ES", 5.0)
        )
        assert audio.audio_base64 == ""

    def test_error_without_json_body(self):
        upstream = RecordingUpstream(lambda r: httpx.Response(401, content=b""))
        with pytest.raises(UpstreamHTTPError) as exc_info:
            asyncio.run(
                self._provider(transport=upstream.transport()).synthesize("Hola", "es-ES-ElviraNeural", "es-ES", 5.0)
            )
        assert exc_info.value.status_code == 401
        assert exc_info.value.message is None

    def test_redacted_request_hides_key(self):
        redacted = self._provider().build_request("Hola", "es-ES-ElviraNeural", "es-ES").redacted()
        assert "azure-secret" not in str(redacted)
        assert redacted["content"].startswith("<speak")


class TestExtractErrorMessage:
    """Tests for extract_error_message()."""

    @pytest.mark.parametrize("body, expected", [
        ({"error": {"message": "Invalid voice"}}, "Invalid voice"),
        ({"error": "quota exceeded"}, "quota exceeded"),
        ({"message": "Bad request"}, "Bad request"),
        ({"error": {"code": 400}}, None),
        ([1, 2], None),
    ])
    def test_json_bodies(self, body, expected):
        assert extract_error_message(httpx.Response(400, json=body)) == expected

    def test_non_json_body(self):
        assert extract_error_message(httpx.Response(500, content=b"oops")) is None
