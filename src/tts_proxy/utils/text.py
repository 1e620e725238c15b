"""
Text Helpers for Voice Names and Log Previews.

Voice identifiers follow the provider naming scheme
`<language>-<REGION>-<family>-<variant>`, e.g. "es-ES-Neural2-A" or
"en-US-JennyNeural". The locale is always the first five characters.
"""
from __future__ import annotations

from xml.sax.saxutils import escape

# Length of the "ll-RR" locale prefix in a voice name
LANGUAGE_CODE_LENGTH = 5


def language_code_from_voice(voice_name: str) -> str:
    """
    Derive the locale code from a voice name.

    This is a fixed-width prefix, not a split on "-": a voice name shorter
    than five characters yields itself.

    Examples:
        >>> language_code_from_voice("es-ES-Neural2-A")
        'es-ES'
        >>> language_code_from_voice("en-US-Wavenet-D")
        'en-US'
    """
    return voice_name[:LANGUAGE_CODE_LENGTH]


def text_preview(text: str, max_chars: int) -> str:
    """Shorten text for log lines; 0 disables the preview."""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "…"


def escape_ssml(text: str) -> str:
    """Escape text for embedding inside an SSML element."""
    return escape(text, {'"': "&quot;", "'": "&apos;"})
