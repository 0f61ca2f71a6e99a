"""Tests for engine configuration loading."""

import logging
from pathlib import Path

import pytest

from promptweave_core.config import (
    DEFAULT_CONFIG,
    EngineConfig,
    EngineConfigLoader,
    create_example_config,
    load_engine_config,
    write_engine_config,
)
from promptweave_core.errors import ConfigError
from promptweave_core.models import SerializationFormat

try:
    import tomllib
except ImportError:  # pragma: no cover
    import tomli as tomllib  # type: ignore


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.max_template_bytes == 102400
        assert config.max_nesting_depth == 64
        assert config.default_format == "comma"
        assert config.fallback_on_error is True
        assert config.serialization_format == SerializationFormat.COMMA

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"max_template_bytes": 0}, "max_template_bytes"),
            ({"max_template_bytes": True}, "max_template_bytes"),
            ({"max_nesting_depth": -1}, "max_nesting_depth"),
            ({"default_format": "semicolon"}, "default_format"),
            ({"fallback_on_error": "yes"}, "fallback_on_error"),
        ],
    )
    def test_invalid_values(self, kwargs, message):
        with pytest.raises(ConfigError, match=message):
            EngineConfig(**kwargs)

    def test_round_trip_through_dict(self):
        config = EngineConfig(max_nesting_depth=8, default_format="bullet")
        assert EngineConfig.from_dict(config.to_dict()) == config

    def test_unknown_keys_ignored_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="promptweave_core.config"):
            config = EngineConfig.from_dict({"max_nesting_depth": 4, "colour": "red"})
        assert config.max_nesting_depth == 4
        assert "colour" in caplog.text


class TestLoadFromFile:
    def test_engine_table(self, tmp_path: Path):
        path = tmp_path / "promptweave.toml"
        path.write_text('[engine]\nmax_template_bytes = 2048\ndefault_format = "numbered"\n', encoding="utf-8")
        config = load_engine_config(config_path=path)
        assert config.max_template_bytes == 2048
        assert config.default_format == "numbered"
        assert config.max_nesting_depth == DEFAULT_CONFIG["max_nesting_depth"]

    def test_top_level_keys_without_table(self, tmp_path: Path):
        path = tmp_path / "flat.toml"
        path.write_text("max_nesting_depth = 5\n", encoding="utf-8")
        assert load_engine_config(config_path=path).max_nesting_depth == 5

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_engine_config(config_path=tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("[engine\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to load TOML"):
            load_engine_config(config_path=path)

    def test_invalid_value_in_file(self, tmp_path: Path):
        path = tmp_path / "bad-value.toml"
        path.write_text("[engine]\nmax_nesting_depth = 0\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_engine_config(config_path=path)

    def test_path_and_dict_are_exclusive(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="both"):
            load_engine_config(config_path=tmp_path / "x.toml", config_dict={})


class TestEnvironmentOverrides:
    def test_overrides_apply(self, monkeypatch):
        monkeypatch.setenv("PROMPTWEAVE_MAX_TEMPLATE_BYTES", "512")
        monkeypatch.setenv("PROMPTWEAVE_MAX_NESTING_DEPTH", "3")
        monkeypatch.setenv("PROMPTWEAVE_DEFAULT_FORMAT", " Bullet ")
        monkeypatch.setenv("PROMPTWEAVE_FALLBACK_ON_ERROR", "off")
        config = load_engine_config()
        assert config.max_template_bytes == 512
        assert config.max_nesting_depth == 3
        assert config.default_format == "bullet"
        assert config.fallback_on_error is False

    def test_environment_beats_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "promptweave.toml"
        path.write_text("[engine]\nmax_nesting_depth = 10\n", encoding="utf-8")
        monkeypatch.setenv("PROMPTWEAVE_MAX_NESTING_DEPTH", "2")
        assert load_engine_config(config_path=path).max_nesting_depth == 2

    def test_unparseable_values_are_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("PROMPTWEAVE_MAX_NESTING_DEPTH", "deep")
        monkeypatch.setenv("PROMPTWEAVE_FALLBACK_ON_ERROR", "maybe")
        with caplog.at_level(logging.WARNING, logger="promptweave_core.config"):
            config = EngineConfigLoader.create_default_config()
        assert config == EngineConfig()
        assert "PROMPTWEAVE_MAX_NESTING_DEPTH" in caplog.text
        assert "PROMPTWEAVE_FALLBACK_ON_ERROR" in caplog.text

    def test_invalid_format_override_fails_validation(self, monkeypatch):
        monkeypatch.setenv("PROMPTWEAVE_DEFAULT_FORMAT", "csv")
        with pytest.raises(ConfigError, match="default_format"):
            load_engine_config(config_dict={})


class TestWriteConfig:
    def test_write_then_load(self, tmp_path: Path):
        config = EngineConfig(max_template_bytes=4096, fallback_on_error=False)
        path = tmp_path / "nested" / "promptweave.toml"
        write_engine_config(config, path)

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert data["engine"]["max_template_bytes"] == 4096
        assert load_engine_config(config_path=path) == config

    def test_example_config_parses(self):
        data = tomllib.loads(create_example_config())
        assert EngineConfig.from_dict(data["engine"]) == EngineConfig()
