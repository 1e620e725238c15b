"""
Command-Line Interface for tts-proxy.

Runs one synthesis through the same SynthesisProxy the HTTP server uses,
without starting the server, and writes the decoded MP3 to disk.

Usage Examples:
    # Synthesize and save
    tts-proxy "Hola mundo" --voice es-ES-Neural2-A --out hola.mp3

    # Use Azure instead of the configured provider
    tts-proxy --text "Hola mundo" --voice es-ES-ElviraNeural --provider azure

    # Dry-run: validate and print the upstream request (credentials redacted)
    tts-proxy "Hola mundo" --voice es-ES-Neural2-A --dry-run --json

Exit Codes:
    0: Success
    1: Validation, configuration or upstream error

Environment Variables:
    TTS_PROXY_SETTINGS: Settings file (default: config/settings.yaml)
    TTS_PROXY_PROVIDER: Provider override (google, azure)
    GOOGLE_TTS_API_KEY / AZURE_SPEECH_KEY / AZURE_REGION: Credentials
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from tts_proxy.core.config import ConfigValidationError, Settings, load_settings, settings_path
from tts_proxy.core.logging import configure_logging, fail, get_logger, info, set_request_id
from tts_proxy.services.proxy_service import SynthesisProxy, SynthesisRequest
from tts_proxy.services.validators import ValidationError, validate_text, validate_voice_name
from tts_proxy.tts.provider import MissingCredentialsError, provider_class
from tts_proxy.utils.text import language_code_from_voice


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-proxy CLI (single-shot synthesis)")

    parser.add_argument("text_pos", nargs="?", help="Text to synthesize (positional)")
    parser.add_argument("--text", help="Text to synthesize")
    parser.add_argument("--voice", help="Voice name, e.g. es-ES-Neural2-A")
    parser.add_argument("--out", default="out.mp3", help="Output MP3 path (default: out.mp3)")

    parser.add_argument("--provider", help="Provider override (google, azure)")
    parser.add_argument("--settings", help="Settings file path")

    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and show the upstream request without calling it")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON summary")

    return parser.parse_args(argv)


def _load_settings(path: str) -> Settings:
    try:
        return load_settings(path)
    except FileNotFoundError:
        return Settings(raw={})


def _dry_run_summary(proxy: SynthesisProxy, request: SynthesisRequest) -> Dict[str, Any]:
    """
    Validate the request and build the upstream call without sending it.

    Missing credentials do not fail a dry run; placeholders are used and
    reported through `credentials_configured`.
    """
    cfg = proxy.config
    text = validate_text(request.text, max_length=cfg.proxy.max_text_length)
    voice_name = validate_voice_name(
        request.voice_name,
        required=cfg.proxy.require_voice_name,
        default=cfg.proxy.default_voice,
    )

    cls = provider_class(cfg.proxy.provider)
    try:
        credentials = cls.read_credentials()
        configured = True
    except MissingCredentialsError:
        credentials = {name: f"<{name}>" for name in cls.credential_env}
        configured = False

    provider = cls(cfg, credentials)
    language_code = language_code_from_voice(voice_name)
    upstream = provider.build_request(text, voice_name, language_code)

    return {
        "provider": provider.name,
        "chars": len(text),
        "voice": voice_name,
        "language": language_code,
        "credentials_configured": configured,
        "upstream_timeout_s": cfg.proxy.upstream_timeout_s,
        "request": upstream.redacted(),
    }


def _print(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    args = _parse_args(argv)

    if args.provider:
        os.environ["TTS_PROXY_PROVIDER"] = args.provider

    configure_logging()
    log = get_logger("tts-proxy.cli")
    rid = str(uuid4())[:12]
    set_request_id(rid)

    text = args.text or args.text_pos
    if not text:
        raise SystemExit("Provide --text or a positional text.")

    try:
        proxy = SynthesisProxy(_load_settings(args.settings or settings_path()))
    except ConfigValidationError as e:
        fail(log, "config_invalid", error=str(e))
        _print({"ok": False, "error": str(e), "code": "SERVER_MISCONFIGURED"}, args.json)
        return 1

    request = SynthesisRequest(text=text, voice_name=args.voice)

    if args.dry_run:
        try:
            summary = _dry_run_summary(proxy, request)
        except ValidationError as e:
            _print({"ok": False, "error": e.message, "code": e.code}, args.json)
            return 1
        _print({"ok": True, "dry_run": True, **summary}, args.json)
        print("DRY_RUN_OK")
        return 0

    body = json.dumps({"text": request.text, "voiceName": request.voice_name}, ensure_ascii=False)
    result = asyncio.run(proxy.handle("POST", body, request_id=rid))

    if result.status_code != 200:
        _print({"ok": False, "status": result.status_code, **result.body}, args.json)
        return 1

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    audio = base64.b64decode(result.body["audioContent"])
    out_path.write_bytes(audio)
    info(log, "saved", out=str(out_path), bytes=len(audio))

    _print({
        "ok": True,
        "out": str(out_path),
        "bytes": len(audio),
        "characterCount": result.body["characterCount"],
        "voiceUsed": result.body["voiceUsed"],
    }, args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
