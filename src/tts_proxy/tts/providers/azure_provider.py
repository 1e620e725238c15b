"""
Azure Speech Provider.

Calls the Azure Speech REST endpoint of the configured region with an SSML
document and a subscription key:

    POST https://<AZURE_REGION>.tts.speech.microsoft.com/cognitiveservices/v1
    Ocp-Apim-Subscription-Key: <AZURE_SPEECH_KEY>
    X-Microsoft-OutputFormat: audio-16khz-32kbitrate-mono-mp3

    <speak version='1.0' xml:lang='es-ES'>
        <voice name='es-ES-ElviraNeural'>Hola mundo</voice>
    </speak>

Azure answers with raw MP3 bytes, which are base64-encoded here so the
caller sees the same shape as with Google.
"""
from __future__ import annotations

import base64

import httpx

from tts_proxy.tts.provider import BaseTTSProvider, UpstreamAudio, UpstreamRequest
from tts_proxy.utils.text import escape_ssml

AZURE_TTS_URL = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"


class AzureTTSProvider(BaseTTSProvider):
    """Azure Speech text-to-speech over REST."""
    name = "azure"
    credential_env = ("AZURE_SPEECH_KEY", "AZURE_REGION")

    def build_ssml(self, text: str, voice_name: str, language_code: str) -> str:
        return (
            f"<speak version='1.0' xml:lang='{escape_ssml(language_code)}'>"
            f"<voice name='{escape_ssml(voice_name)}'>{escape_ssml(text)}</voice>"
            "</speak>"
        )

    def build_request(self, text: str, voice_name: str, language_code: str) -> UpstreamRequest:
        return UpstreamRequest(
            url=AZURE_TTS_URL.format(region=self.credentials["AZURE_REGION"]),
            headers={
                "Ocp-Apim-Subscription-Key": self.credentials["AZURE_SPEECH_KEY"],
                "Content-Type": "application/ssml+xml",
                "X-Microsoft-OutputFormat": self.config.audio.azure_output_format,
                "User-Agent": "tts-proxy",
            },
            content=self.build_ssml(text, voice_name, language_code).encode("utf-8"),
        )

    def parse_response(self, response: httpx.Response) -> UpstreamAudio:
        audio = response.content
        return UpstreamAudio(
            audio_base64=base64.b64encode(audio).decode("ascii") if audio else "",
            provider=self.name,
            status_code=response.status_code,
        )
