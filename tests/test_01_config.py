"""
Tests for configuration validation and defaults.

Tests cover:
- ProxyConfig.from_settings() - all sections
- Defaults class values
- Environment overrides (provider, max length, timeout)
- ConfigValidationError on invalid values
- Upstream deadline kept below the host ceiling
- String log level coercion ("DEBUG" -> 4)
- load_settings() file handling
"""

import pytest

from tts_proxy.core.config import (
    HOST_EXECUTION_CEILING_S,
    ConfigValidationError,
    Defaults,
    ProxyConfig,
    Settings,
    load_settings,
    settings_path,
)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_proxy_defaults(self):
        assert Defaults.PROXY_PROVIDER == "google"
        assert Defaults.PROXY_MAX_TEXT_LENGTH == 5000
        assert Defaults.PROXY_UPSTREAM_TIMEOUT_S == 9.0
        assert Defaults.PROXY_REQUIRE_VOICE_NAME is True

    def test_deadline_below_host_ceiling(self):
        assert Defaults.PROXY_UPSTREAM_TIMEOUT_S < HOST_EXECUTION_CEILING_S

    def test_audio_defaults(self):
        assert Defaults.AUDIO_ENCODING == "MP3"
        assert Defaults.AUDIO_SPEAKING_RATE == 1.0
        assert Defaults.AUDIO_PITCH == 0.0
        assert Defaults.AUDIO_VOLUME_GAIN_DB == 0.0
        assert Defaults.AUDIO_SAMPLE_RATE_HERTZ == 24000

    def test_logging_defaults(self):
        assert Defaults.LOGGING_LEVEL == 2


class TestProxyConfigFromSettings:
    """Tests for ProxyConfig.from_settings()."""

    def test_empty_settings_use_defaults(self):
        config = ProxyConfig.from_settings(Settings(raw={}))
        assert config.proxy.provider == "google"
        assert config.proxy.max_text_length == 5000
        assert config.proxy.upstream_timeout_s == 9.0
        assert config.proxy.require_voice_name is True
        assert config.audio.sample_rate_hertz == 24000
        assert config.logging.level == 2

    def test_none_sections_use_defaults(self):
        config = ProxyConfig.from_settings(Settings(raw={"proxy": None, "audio": None, "logging": None}))
        assert config.proxy.provider == "google"

    def test_values_from_file(self):
        raw = {
            "proxy": {
                "provider": "Azure",
                "max_text_length": 2000,
                "upstream_timeout_s": 8,
                "require_voice_name": "false",
                "default_voice": "es-ES-ElviraNeural",
            },
            "audio": {"azure_output_format": "audio-24khz-48kbitrate-mono-mp3"},
        }
        config = ProxyConfig.from_settings(Settings(raw=raw))
        assert config.proxy.provider == "azure"
        assert config.proxy.max_text_length == 2000
        assert config.proxy.upstream_timeout_s == 8.0
        assert config.proxy.require_voice_name is False
        assert config.proxy.default_voice == "es-ES-ElviraNeural"
        assert config.audio.azure_output_format == "audio-24khz-48kbitrate-mono-mp3"

    def test_string_log_level(self):
        config = ProxyConfig.from_settings(Settings(raw={"logging": {"level": "debug"}}))
        assert config.logging.level == 4


class TestEnvironmentOverrides:
    """Environment variables take precedence over the file."""

    def test_provider_override(self, monkeypatch):
        monkeypatch.setenv("TTS_PROXY_PROVIDER", "azure")
        config = ProxyConfig.from_settings(Settings(raw={"proxy": {"provider": "google"}}))
        assert config.proxy.provider == "azure"

    def test_max_length_override(self, monkeypatch):
        monkeypatch.setenv("TTS_PROXY_MAX_TEXT_LENGTH", "2000")
        config = ProxyConfig.from_settings(Settings(raw={}))
        assert config.proxy.max_text_length == 2000

    def test_timeout_override(self, monkeypatch):
        monkeypatch.setenv("TTS_PROXY_TIMEOUT_S", "8.5")
        config = ProxyConfig.from_settings(Settings(raw={}))
        assert config.proxy.upstream_timeout_s == 8.5


class TestValidation:
    """Invalid values raise ConfigValidationError."""

    def test_unknown_provider(self):
        with pytest.raises(ConfigValidationError, match="provider"):
            ProxyConfig.from_settings(Settings(raw={"proxy": {"provider": "polly"}}))

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_max_length(self, value):
        with pytest.raises(ConfigValidationError):
            ProxyConfig.from_settings(Settings(raw={"proxy": {"max_text_length": value}}))

    @pytest.mark.parametrize("value", [0, -2.0])
    def test_non_positive_timeout(self, value):
        with pytest.raises(ConfigValidationError):
            ProxyConfig.from_settings(Settings(raw={"proxy": {"upstream_timeout_s": value}}))

    @pytest.mark.parametrize("value", [10, 10.0, 30])
    def test_timeout_at_or_above_ceiling(self, value):
        with pytest.raises(ConfigValidationError, match="below"):
            ProxyConfig.from_settings(Settings(raw={"proxy": {"upstream_timeout_s": value}}))

    def test_non_numeric_max_length(self):
        with pytest.raises(ConfigValidationError):
            ProxyConfig.from_settings(Settings(raw={"proxy": {"max_text_length": "lots"}}))

    def test_log_level_out_of_range(self):
        with pytest.raises(ConfigValidationError):
            ProxyConfig.from_settings(Settings(raw={"logging": {"level": 7}}))

    def test_non_numeric_speaking_rate(self):
        with pytest.raises(ConfigValidationError, match="audio"):
            ProxyConfig.from_settings(Settings(raw={"audio": {"speaking_rate": "fast"}}))

    def test_non_numeric_preview_chars(self):
        with pytest.raises(ConfigValidationError, match="logging"):
            ProxyConfig.from_settings(Settings(raw={"logging": {"text_preview_chars": "x"}}))


class TestSettings:
    """Tests for Settings and load_settings()."""

    def test_get_proxy_config(self):
        settings = Settings(raw={"proxy": {"provider": "azure", "max_text_length": 2000}})
        config = settings.get_proxy_config()
        assert config.proxy.provider == "azure"
        assert config.proxy.max_text_length == 2000

    def test_settings_is_frozen(self):
        settings = Settings(raw={})
        with pytest.raises(Exception):
            settings.raw = {"proxy": {}}

    def test_load_settings_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_load_settings_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("proxy:\n  provider: azure\n  max_text_length: 2000\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.get_proxy_config().proxy.provider == "azure"

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_repo_settings_file_is_valid(self):
        config = load_settings("config/settings.yaml").get_proxy_config()
        assert config.proxy.upstream_timeout_s < HOST_EXECUTION_CEILING_S

    def test_settings_path_env(self, monkeypatch):
        monkeypatch.setenv("TTS_PROXY_SETTINGS", "/etc/tts-proxy.yaml")
        assert settings_path() == "/etc/tts-proxy.yaml"

    def test_settings_path_default(self):
        assert settings_path() == "config/settings.yaml"
