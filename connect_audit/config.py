"""
Configuration file parsing and management.

Supports YAML configuration files (JSON for files ending in .json).
Merges configurations from multiple sources (custom → project → user → system → defaults).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import vlog
from .environment import MIN_OS_VERSION
from .paths import InstallPaths
from .versions import THRESHOLD_VERSION, compare_versions


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".connect-audit.yml",                                      # Project/working directory
    ".connect-audit.yaml",
    os.path.expanduser("~/.config/connect-audit/config.yml"),  # User global
    os.path.expanduser("~/.config/connect-audit/config.yaml"),
    "/etc/connect-audit/config.yml",                           # System global
    "/etc/connect-audit/config.yaml",
]

DEFAULT_GRACE_DAYS = 14
DEFAULT_TIMEOUT_SECONDS = 5

# Settings that a config file can set explicitly
SETTING_KEYS = ("threshold_version", "min_os_version", "license_grace_days", "timeout_seconds")


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for connect-audit.

    Attributes:
        version: Config schema version
        threshold_version: Last classic release; newer bundles are modern
        min_os_version: Minimum supported macOS version
        license_grace_days: Days an expired license keeps working
        timeout_seconds: Timeout for OS query utilities
        paths: Overrides for well-known install locations
        source: Path to the configuration file that was loaded
        explicit: Settings present in the file, even when equal to the default
    """
    version: int = 1
    threshold_version: str = THRESHOLD_VERSION
    min_os_version: str = MIN_OS_VERSION
    license_grace_days: int = DEFAULT_GRACE_DAYS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    paths: dict[str, str] = field(default_factory=dict)
    source: str = ""
    explicit: frozenset[str] = field(default_factory=frozenset, compare=False)

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

        for name in ("threshold_version", "min_os_version"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Invalid {name}: {value!r}. Must be a non-empty version string")

        if not isinstance(self.license_grace_days, int) or not 0 <= self.license_grace_days <= 90:
            raise ValueError(
                f"Invalid license_grace_days: {self.license_grace_days}. "
                "Must be between 0 and 90"
            )

        if not isinstance(self.timeout_seconds, int) or not 1 <= self.timeout_seconds <= 60:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 60"
            )

        if not isinstance(self.paths, dict):
            raise ValueError("Invalid paths: must be a mapping of location name to path")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        return Config(
            version=data.get("version", 1),
            threshold_version=str(data.get("threshold_version", THRESHOLD_VERSION)),
            min_os_version=str(data.get("min_os_version", MIN_OS_VERSION)),
            license_grace_days=data.get("license_grace_days", DEFAULT_GRACE_DAYS),
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            paths=dict(data.get("paths") or {}),
            source=source,
            explicit=frozenset(key for key in SETTING_KEYS if key in data),
        )

    @property
    def install_paths(self) -> InstallPaths:
        """Well-known locations with configured overrides applied."""
        return InstallPaths.from_dict(self.paths)

    def is_set(self, name: str) -> bool:
        """Whether a setting was given explicitly or differs from its default."""
        return name in self.explicit or getattr(self, name) != getattr(Config, name)

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        A setting in this config wins when it was set explicitly, even to the
        default value.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_paths = dict(other.paths)
        merged_paths.update(self.paths)

        return Config(
            version=self.version,
            threshold_version=self.threshold_version if self.is_set("threshold_version") else other.threshold_version,
            min_os_version=self.min_os_version if self.is_set("min_os_version") else other.min_os_version,
            license_grace_days=self.license_grace_days if self.is_set("license_grace_days") else other.license_grace_days,
            timeout_seconds=self.timeout_seconds if self.is_set("timeout_seconds") else other.timeout_seconds,
            paths=merged_paths,
            source=self.source or other.source,
            explicit=self.explicit | other.explicit,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file (.yml/.yaml, or .json)
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. ./.connect-audit.yml
    3. User ~/.config/connect-audit/config.yml
    4. System /etc/connect-audit/config.yml
    5. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)
        vlog(f"Using custom config: {custom_path}", verbose)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    # First config has highest priority
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    known = set(InstallPaths.field_names())
    for name, path in sorted(config.paths.items()):
        if name not in known:
            warnings.append(f"Unknown path override '{name}' (ignored)")
        elif not os.path.isabs(str(path)):
            warnings.append(f"Path override '{name}' is not absolute: {path}")

    if compare_versions(config.threshold_version, THRESHOLD_VERSION) != 0:
        warnings.append(
            f"threshold_version overridden to {config.threshold_version} "
            f"(default {THRESHOLD_VERSION})"
        )

    return warnings
