"""
Configuration Management for tts-proxy.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (TTS_PROXY_PROVIDER, TTS_PROXY_TIMEOUT_S, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Provider credentials are NOT part of the settings file. They are read from
the process environment on every invocation (see tts/provider.py).

Example settings.yaml:
    proxy:
      provider: google
      max_text_length: 5000
      upstream_timeout_s: 9.0
      require_voice_name: true

    audio:
      sample_rate_hertz: 24000

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict
import os
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


# Providers with a concrete implementation in tts/providers/
KNOWN_PROVIDERS = ("google", "azure")

# Hard execution ceiling of the serverless host; the upstream deadline must stay below it
HOST_EXECUTION_CEILING_S = 10.0


class Defaults:
    """
    Centralized default configuration values.

    The proxy values mirror the most permissive of the deployed function
    variants (Google provider, 5000 characters, 9 second deadline).
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Proxy Settings
    # ─────────────────────────────────────────────────────────────────────────
    PROXY_PROVIDER = "google"           # Upstream TTS provider
    PROXY_MAX_TEXT_LENGTH = 5000        # Max characters per request
    PROXY_UPSTREAM_TIMEOUT_S = 9.0      # Deadline for the single upstream call
    PROXY_REQUIRE_VOICE_NAME = True     # Reject requests without voiceName
    PROXY_DEFAULT_VOICE = "es-ES-Neural2-A"

    # ─────────────────────────────────────────────────────────────────────────
    # Audio Settings (constants sent upstream, never taken from the request)
    # ─────────────────────────────────────────────────────────────────────────
    AUDIO_ENCODING = "MP3"
    AUDIO_SPEAKING_RATE = 1.0
    AUDIO_PITCH = 0.0
    AUDIO_VOLUME_GAIN_DB = 0.0
    AUDIO_SAMPLE_RATE_HERTZ = 24000
    AUDIO_AZURE_OUTPUT_FORMAT = "audio-16khz-32kbitrate-mono-mp3"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 60     # Characters to show in text preview
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class ProxySection:
    """
    Request handling configuration.

    Collapses the per-variant constants (length limit, deadline, provider,
    voice policy) into one structure.
    """
    provider: str = Defaults.PROXY_PROVIDER
    max_text_length: int = Defaults.PROXY_MAX_TEXT_LENGTH
    upstream_timeout_s: float = Defaults.PROXY_UPSTREAM_TIMEOUT_S
    require_voice_name: bool = Defaults.PROXY_REQUIRE_VOICE_NAME
    default_voice: str = Defaults.PROXY_DEFAULT_VOICE


@dataclass
class AudioSection:
    """Fixed audio parameters sent to the provider."""
    encoding: str = Defaults.AUDIO_ENCODING
    speaking_rate: float = Defaults.AUDIO_SPEAKING_RATE
    pitch: float = Defaults.AUDIO_PITCH
    volume_gain_db: float = Defaults.AUDIO_VOLUME_GAIN_DB
    sample_rate_hertz: int = Defaults.AUDIO_SAMPLE_RATE_HERTZ
    azure_output_format: str = Defaults.AUDIO_AZURE_OUTPUT_FORMAT


@dataclass
class LoggingSection:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle, upstream status (default)
        3 = VERBOSE: Per-stage timing, payload shape
        4 = DEBUG: Full text, raw upstream error bodies
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ProxyConfig:
    """
    Validated configuration for SynthesisProxy.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ProxyConfig.from_settings(settings)
        print(config.proxy.max_text_length)
    """
    proxy: ProxySection = field(default_factory=ProxySection)
    audio: AudioSection = field(default_factory=AudioSection)
    logging: LoggingSection = field(default_factory=LoggingSection)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ProxyConfig":
        """
        Create ProxyConfig from Settings with validation.

        Reads the raw configuration dictionary, applies defaults for missing
        values and environment overrides, validates constraints, and returns
        typed configuration.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Proxy configuration (environment variables take precedence)
        # ─────────────────────────────────────────────────────────────────────
        proxy_raw = dict(raw.get("proxy", {}) or {})
        if os.getenv("TTS_PROXY_PROVIDER"):
            proxy_raw["provider"] = os.environ["TTS_PROXY_PROVIDER"]
        if os.getenv("TTS_PROXY_MAX_TEXT_LENGTH"):
            proxy_raw["max_text_length"] = os.environ["TTS_PROXY_MAX_TEXT_LENGTH"]
        if os.getenv("TTS_PROXY_TIMEOUT_S"):
            proxy_raw["upstream_timeout_s"] = os.environ["TTS_PROXY_TIMEOUT_S"]

        try:
            proxy = ProxySection(
                provider=str(proxy_raw.get("provider", Defaults.PROXY_PROVIDER)).strip().lower(),
                max_text_length=int(proxy_raw.get("max_text_length", Defaults.PROXY_MAX_TEXT_LENGTH)),
                upstream_timeout_s=float(proxy_raw.get("upstream_timeout_s", Defaults.PROXY_UPSTREAM_TIMEOUT_S)),
                require_voice_name=cls._coerce_bool(
                    proxy_raw.get("require_voice_name", Defaults.PROXY_REQUIRE_VOICE_NAME)
                ),
                default_voice=str(proxy_raw.get("default_voice", Defaults.PROXY_DEFAULT_VOICE)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"invalid proxy section: {e}") from e

        if proxy.provider not in KNOWN_PROVIDERS:
            raise ConfigValidationError(
                f"proxy.provider must be one of {', '.join(KNOWN_PROVIDERS)}, got {proxy.provider!r}"
            )
        cls._validate_positive("proxy.max_text_length", proxy.max_text_length)
        cls._validate_positive("proxy.upstream_timeout_s", proxy.upstream_timeout_s)
        if proxy.upstream_timeout_s >= HOST_EXECUTION_CEILING_S:
            raise ConfigValidationError(
                f"proxy.upstream_timeout_s must stay below {HOST_EXECUTION_CEILING_S}s, "
                f"got {proxy.upstream_timeout_s}"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Audio configuration
        # ─────────────────────────────────────────────────────────────────────
        audio_raw = raw.get("audio", {}) or {}
        try:
            audio = AudioSection(
                encoding=str(audio_raw.get("encoding", Defaults.AUDIO_ENCODING)),
                speaking_rate=float(audio_raw.get("speaking_rate", Defaults.AUDIO_SPEAKING_RATE)),
                pitch=float(audio_raw.get("pitch", Defaults.AUDIO_PITCH)),
                volume_gain_db=float(audio_raw.get("volume_gain_db", Defaults.AUDIO_VOLUME_GAIN_DB)),
                sample_rate_hertz=int(audio_raw.get("sample_rate_hertz", Defaults.AUDIO_SAMPLE_RATE_HERTZ)),
                azure_output_format=str(audio_raw.get("azure_output_format", Defaults.AUDIO_AZURE_OUTPUT_FORMAT)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"invalid audio section: {e}") from e
        cls._validate_positive("audio.speaking_rate", audio.speaking_rate)
        cls._validate_positive("audio.sample_rate_hertz", audio.sample_rate_hertz)

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = log_level_raw

        try:
            logging_cfg = LoggingSection(
                text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
                level=int(log_level),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"invalid logging section: {e}") from e
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(proxy=proxy, audio=audio, logging=logging_cfg)

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        """Accept YAML booleans as well as "0"/"false"/"no" strings."""
        if isinstance(value, str):
            return value.strip().lower() not in ("0", "false", "no", "off", "")
        return bool(value)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_proxy_config() to get a validated ProxyConfig.
    """
    raw: Dict[str, Any]

    def get_proxy_config(self) -> ProxyConfig:
        """
        Get validated ProxyConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ProxyConfig.from_settings(self)


def load_settings(path: str = "config/settings.yaml") -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=raw)


def settings_path() -> str:
    """Resolve the settings file path (TTS_PROXY_SETTINGS or the default)."""
    return os.getenv("TTS_PROXY_SETTINGS", "config/settings.yaml")
