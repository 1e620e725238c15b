"""
Google Cloud Text-to-Speech Provider.

Calls the v1 REST endpoint with an API key:

    POST https://texttospeech.googleapis.com/v1/text:synthesize?key=<GOOGLE_TTS_API_KEY>
    {
        "input": {"text": "Hola mundo"},
        "voice": {"languageCode": "es-ES", "name": "es-ES-Neural2-A"},
        "audioConfig": {
            "audioEncoding": "MP3",
            "speakingRate": 1.0,
            "pitch": 0.0,
            "volumeGainDb": 0.0,
            "sampleRateHertz": 24000
        }
    }

The success body is `{"audioContent": "<base64 MP3>"}`, already base64,
so it is passed through untouched.
"""
from __future__ import annotations

from typing import Any, Dict

import httpx

from tts_proxy.tts.provider import BaseTTSProvider, UpstreamAudio, UpstreamRequest

GOOGLE_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


class GoogleTTSProvider(BaseTTSProvider):
    """Google Cloud TTS over plain HTTPS with an API key."""
    name = "google"
    credential_env = ("GOOGLE_TTS_API_KEY",)

    def build_payload(self, text: str, voice_name: str, language_code: str) -> Dict[str, Any]:
        """Build the synthesize payload; audio parameters come from config only."""
        audio = self.config.audio
        return {
            "input": {"text": text},
            "voice": {
                "languageCode": language_code,
                "name": voice_name,
            },
            "audioConfig": {
                "audioEncoding": audio.encoding,
                "speakingRate": audio.speaking_rate,
                "pitch": audio.pitch,
                "volumeGainDb": audio.volume_gain_db,
                "sampleRateHertz": audio.sample_rate_hertz,
            },
        }

    def build_request(self, text: str, voice_name: str, language_code: str) -> UpstreamRequest:
        return UpstreamRequest(
            url=GOOGLE_TTS_URL,
            params={"key": self.credentials["GOOGLE_TTS_API_KEY"]},
            headers={"Content-Type": "application/json"},
            json=self.build_payload(text, voice_name, language_code),
        )

    def parse_response(self, response: httpx.Response) -> UpstreamAudio:
        try:
            data = response.json()
        except ValueError:
            data = None

        audio = data.get("audioContent") if isinstance(data, dict) else None
        return UpstreamAudio(
            audio_base64=audio if isinstance(audio, str) else "",
            provider=self.name,
            status_code=response.status_code,
        )
