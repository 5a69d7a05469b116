"""
Configuration module for srccat.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.

Built-in exclusion lists and the file size limit are constants in
srccat.core.exclusion and srccat.core.safety, not configuration.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_defaults_cache: dict[str, Any] | None = None

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    return section_defaults.get(key, fallback)


@dataclass
class ScanConfig:
    """Configuration for the traversal and worker pool."""

    max_workers: int = field(default_factory=lambda: _get_default("scan", "max_workers", 8))
    max_in_flight: int = field(
        default_factory=lambda: _get_default("scan", "max_in_flight", 256)
    )
    progress_interval: int = field(
        default_factory=lambda: _get_default("scan", "progress_interval", 100)
    )
    follow_symlinks: bool = field(
        default_factory=lambda: _get_default("scan", "follow_symlinks", False)
    )

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check that the settings are usable.

        Raises:
            ValueError: If a setting is out of range
        """
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.max_in_flight < self.max_workers:
            raise ValueError(
                f"max_in_flight ({self.max_in_flight}) must be >= max_workers ({self.max_workers})"
            )
        if self.progress_interval < 1:
            raise ValueError(
                f"progress_interval must be at least 1, got {self.progress_interval}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "WARNING"))
    format: str = field(
        default_factory=lambda: _get_default("logging", "format", "%(message)s")
    )

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Normalize the level name and reject unknown ones.

        Raises:
            ValueError: If the level is not a standard logging level
        """
        self.level = str(self.level).upper()
        if self.level not in _LOG_LEVELS:
            raise ValueError(
                f"Unknown logging level '{self.level}', expected one of {', '.join(_LOG_LEVELS)}"
            )


@dataclass
class SrccatConfig:
    """Main configuration class for srccat."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "SrccatConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            SrccatConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "SrccatConfig":
        """Create SrccatConfig from a dictionary."""
        config = cls()

        if "scan" in data:
            config.scan = ScanConfig(**data["scan"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def apply_env_overrides(self) -> "SrccatConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: SRCCAT_<SECTION>_<KEY>
        Examples:
            - SRCCAT_SCAN_MAX_WORKERS
            - SRCCAT_SCAN_FOLLOW_SYMLINKS
            - SRCCAT_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied

        Raises:
            ValueError: If an override is malformed or out of range
        """
        env_mappings = {
            "SRCCAT_SCAN_MAX_WORKERS": ("scan", "max_workers", int),
            "SRCCAT_SCAN_MAX_IN_FLIGHT": ("scan", "max_in_flight", int),
            "SRCCAT_SCAN_PROGRESS_INTERVAL": ("scan", "progress_interval", int),
            "SRCCAT_SCAN_FOLLOW_SYMLINKS": ("scan", "follow_symlinks", _parse_bool),
            "SRCCAT_LOGGING_LEVEL": ("logging", "level", str),
            "SRCCAT_LOGGING_FORMAT": ("logging", "format", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        self.scan.validate()
        self.logging.validate()

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> SrccatConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        SrccatConfig instance
    """
    if config_path:
        config = SrccatConfig.from_file(config_path)
    else:
        config = SrccatConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
