"""Engine configuration.

TOML-based configuration with environment variable overrides for the
template engine limits and defaults.

Features:
- ``[engine]`` table in a TOML file (stdlib tomllib, or tomli before 3.11)
- Environment variable overrides for runtime configuration
- Validation with sensible defaults
- TOML writing through tomli_w
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError
from .models import SerializationFormat

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

logger = logging.getLogger(__name__)

# Environment variable names for engine configuration
ENV_PREFIX = "PROMPTWEAVE_"
ENV_MAX_TEMPLATE_BYTES = f"{ENV_PREFIX}MAX_TEMPLATE_BYTES"
ENV_MAX_NESTING_DEPTH = f"{ENV_PREFIX}MAX_NESTING_DEPTH"
ENV_DEFAULT_FORMAT = f"{ENV_PREFIX}DEFAULT_FORMAT"
ENV_FALLBACK_ON_ERROR = f"{ENV_PREFIX}FALLBACK_ON_ERROR"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "max_template_bytes": 100 * 1024,
    "max_nesting_depth": 64,
    "default_format": SerializationFormat.COMMA.value,
    "fallback_on_error": True,
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass(frozen=True)
class EngineConfig:
    """Limits and defaults applied by :class:`promptweave_core.TemplateEngine`."""

    max_template_bytes: int = DEFAULT_CONFIG["max_template_bytes"]
    max_nesting_depth: int = DEFAULT_CONFIG["max_nesting_depth"]
    default_format: str = DEFAULT_CONFIG["default_format"]
    fallback_on_error: bool = DEFAULT_CONFIG["fallback_on_error"]

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if (
            not isinstance(self.max_template_bytes, int)
            or isinstance(self.max_template_bytes, bool)
            or self.max_template_bytes <= 0
        ):
            raise ConfigError("max_template_bytes must be a positive integer")

        if (
            not isinstance(self.max_nesting_depth, int)
            or isinstance(self.max_nesting_depth, bool)
            or self.max_nesting_depth <= 0
        ):
            raise ConfigError("max_nesting_depth must be a positive integer")

        valid_formats = [fmt.value for fmt in SerializationFormat]
        if self.default_format not in valid_formats:
            raise ConfigError(
                f"default_format must be one of: {', '.join(valid_formats)} (got {self.default_format!r})"
            )

        if not isinstance(self.fallback_on_error, bool):
            raise ConfigError("fallback_on_error must be a boolean")

    @property
    def serialization_format(self) -> SerializationFormat:
        return SerializationFormat(self.default_format)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "max_template_bytes": self.max_template_bytes,
            "max_nesting_depth": self.max_nesting_depth,
            "default_format": self.default_format,
            "fallback_on_error": self.fallback_on_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create configuration from dictionary, ignoring unknown keys."""
        unknown = set(data) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning("Ignoring unknown engine config keys: %s", ", ".join(sorted(unknown)))
        merged = {**DEFAULT_CONFIG, **{k: v for k, v in data.items() if k in DEFAULT_CONFIG}}
        return cls(**merged)


class EngineConfigLoader:
    """Loader for engine configuration with TOML support and environment overrides."""

    @staticmethod
    def _read_toml_file(path: Path) -> Dict[str, Any]:
        """Read TOML configuration file."""
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}") from e

        return data

    @staticmethod
    def _apply_environment_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        result = config.copy()

        for env_key, config_key in (
            (ENV_MAX_TEMPLATE_BYTES, "max_template_bytes"),
            (ENV_MAX_NESTING_DEPTH, "max_nesting_depth"),
        ):
            if env_key in os.environ:
                try:
                    result[config_key] = int(os.environ[env_key])
                except ValueError:
                    logger.warning("Invalid %s value: %s", env_key, os.environ[env_key])

        if ENV_DEFAULT_FORMAT in os.environ:
            result["default_format"] = os.environ[ENV_DEFAULT_FORMAT].strip().lower()

        if ENV_FALLBACK_ON_ERROR in os.environ:
            raw = os.environ[ENV_FALLBACK_ON_ERROR].strip().lower()
            if raw in _TRUE_VALUES:
                result["fallback_on_error"] = True
            elif raw in _FALSE_VALUES:
                result["fallback_on_error"] = False
            else:
                logger.warning("Invalid %s value: %s", ENV_FALLBACK_ON_ERROR, raw)

        return result

    @staticmethod
    def load_from_file(config_path: Path) -> EngineConfig:
        """Load engine configuration from a TOML file with environment overrides."""
        config_data = EngineConfigLoader._read_toml_file(Path(config_path))

        # Extract engine section if it exists
        if "engine" in config_data:
            config_data = config_data["engine"]
        if not isinstance(config_data, dict):
            raise ConfigError(f"[engine] must be a table in {config_path}")

        config_data = EngineConfigLoader._apply_environment_overrides(config_data)
        return EngineConfig.from_dict(config_data)

    @staticmethod
    def load_from_dict(config_data: Dict[str, Any]) -> EngineConfig:
        """Load engine configuration from dictionary with environment overrides."""
        config_data = EngineConfigLoader._apply_environment_overrides(config_data)
        return EngineConfig.from_dict(config_data)

    @staticmethod
    def create_default_config() -> EngineConfig:
        """Create default engine configuration with environment overrides."""
        return EngineConfigLoader.load_from_dict(DEFAULT_CONFIG.copy())


def load_engine_config(
    config_path: Optional[Path] = None,
    config_dict: Optional[Dict[str, Any]] = None,
) -> EngineConfig:
    """Load engine configuration from file or dictionary.

    Args:
        config_path: Path to a TOML configuration file
        config_dict: Configuration dictionary (alternative to file)

    Returns:
        EngineConfig instance with validation and environment overrides applied

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    if config_path is not None and config_dict is not None:
        raise ConfigError("Cannot specify both config_path and config_dict")

    if config_path is not None:
        return EngineConfigLoader.load_from_file(config_path)
    elif config_dict is not None:
        return EngineConfigLoader.load_from_dict(config_dict)
    else:
        return EngineConfigLoader.create_default_config()


def write_engine_config(config: EngineConfig, output_path: Path) -> None:
    """Write engine configuration to a TOML file under an ``[engine]`` table."""
    import tomli_w

    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(output_path, "wb") as f:
            tomli_w.dump({"engine": config.to_dict()}, f)
    except OSError as e:
        raise ConfigError(f"Failed to write TOML config to {output_path}: {e}") from e

    logger.info("Wrote engine configuration to %s", output_path)


def create_example_config() -> str:
    """Create an example TOML configuration file content."""
    return '''# promptweave engine configuration

[engine]
# Templates larger than this many bytes (UTF-8) are not evaluated.
# render() returns them unchanged; annotate() raises TemplateTooLargeError.
max_template_bytes = 102400

# Maximum nesting depth of {{#if}} / {{#unless}} / {{#each}} / {{#with}} blocks
max_nesting_depth = 64

# Serialization format for sequence values whose variable sets no format
# (comma, newline, numbered, bullet)
default_format = "comma"

# When true, render() returns the template verbatim on a parse error
fallback_on_error = true

# Environment overrides:
#   PROMPTWEAVE_MAX_TEMPLATE_BYTES, PROMPTWEAVE_MAX_NESTING_DEPTH,
#   PROMPTWEAVE_DEFAULT_FORMAT, PROMPTWEAVE_FALLBACK_ON_ERROR
'''
