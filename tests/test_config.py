"""
Tests for configuration parsing (connect_audit/config.py).

Target coverage: 85%+
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from connect_audit.config import (
    DEFAULT_GRACE_DAYS,
    Config,
    _load_json,
    _load_yaml,
    load_config,
    load_config_file,
    validate_config,
)
from connect_audit.paths import InstallPaths
from connect_audit.versions import THRESHOLD_VERSION


# Fixture paths
FIXTURES_DIR = Path(__file__).parent / "fixtures"
CONFIG_VALID = str(FIXTURES_DIR / "config_valid.yml")
CONFIG_MINIMAL = str(FIXTURES_DIR / "config_minimal.yml")
CONFIG_INVALID_VERSION = str(FIXTURES_DIR / "config_invalid_version.yml")
CONFIG_PROJECT = str(FIXTURES_DIR / "config_project.yml")
CONFIG_USER = str(FIXTURES_DIR / "config_user.yml")
CONFIG_PINNED = str(FIXTURES_DIR / "config_pinned.yml")
CONFIG_OVERRIDE = str(FIXTURES_DIR / "config_override.yml")


class TestConfig:
    """Tests for Config dataclass."""

    def test_config_defaults(self):
        """Test Config with default values."""
        config = Config()
        assert config.version == 1
        assert config.threshold_version == THRESHOLD_VERSION
        assert config.min_os_version == "13.0"
        assert config.license_grace_days == 14
        assert config.timeout_seconds == 5
        assert config.paths == {}
        assert config.install_paths == InstallPaths()

    def test_config_invalid_version(self):
        """Test Config rejects unsupported schema versions."""
        with pytest.raises(ValueError, match="Unsupported config version"):
            Config(version=2)

    def test_config_invalid_threshold(self):
        """Test Config rejects an empty threshold."""
        with pytest.raises(ValueError, match="threshold_version"):
            Config(threshold_version="  ")

    @pytest.mark.parametrize("days", [-1, 91])
    def test_config_invalid_grace_days(self, days):
        """Test grace days must be within 0-90."""
        with pytest.raises(ValueError, match="license_grace_days"):
            Config(license_grace_days=days)

    @pytest.mark.parametrize("timeout", [0, 61])
    def test_config_invalid_timeout(self, timeout):
        """Test timeout must be within 1-60."""
        with pytest.raises(ValueError, match="timeout_seconds"):
            Config(timeout_seconds=timeout)

    def test_config_invalid_paths(self):
        """Test paths must be a mapping."""
        with pytest.raises(ValueError, match="paths"):
            Config(paths=["/tmp"])

    def test_config_from_dict(self):
        """Test creating Config from dictionary."""
        data = {
            "version": 1,
            "threshold_version": 3.0,
            "license_grace_days": 0,
            "paths": {"pam_module": "/opt/pam_saml.so.2"},
        }
        config = Config.from_dict(data, source="/tmp/c.yml")
        assert config.threshold_version == "3.0"
        assert config.license_grace_days == 0
        assert config.install_paths.pam_module == "/opt/pam_saml.so.2"
        assert config.source == "/tmp/c.yml"

    def test_install_paths_ignore_unknown(self):
        """Test unknown path keys do not break InstallPaths."""
        config = Config(paths={"bogus": "/x", "legacy_app": "/y/Info.plist"})
        assert config.install_paths.legacy_app == "/y/Info.plist"

    def test_config_immutable(self):
        """Test that Config is immutable."""
        config = Config()
        with pytest.raises(AttributeError):
            config.timeout_seconds = 10


class TestConfigMerging:
    """Tests for Config.merge_with()."""

    def test_merge_with_empty(self):
        """Test merging with defaults keeps explicit values."""
        config = Config(timeout_seconds=10)
        merged = config.merge_with(Config())
        assert merged.timeout_seconds == 10

    def test_merge_defaults_take_other(self):
        """Test default values fall through to the lower-priority config."""
        merged = Config().merge_with(Config(license_grace_days=30, min_os_version="14.0"))
        assert merged.license_grace_days == 30
        assert merged.min_os_version == "14.0"

    def test_merge_paths_override(self):
        """Test path overrides merge key by key, higher priority winning."""
        high = Config(paths={"menu_prefs": "/high.plist"})
        low = Config(paths={"menu_prefs": "/low.plist", "login_prefs": "/low-login.plist"})
        merged = high.merge_with(low)
        assert merged.paths == {"menu_prefs": "/high.plist", "login_prefs": "/low-login.plist"}

    def test_merge_source(self):
        """Test the higher-priority source is kept."""
        merged = Config(source="a.yml").merge_with(Config(source="b.yml"))
        assert merged.source == "a.yml"

    def test_explicit_default_wins(self):
        """Test an explicitly set default value beats a lower-priority override."""
        high = Config.from_dict({"threshold_version": THRESHOLD_VERSION})
        low = Config.from_dict({"threshold_version": "3.0"})
        assert high.merge_with(low).threshold_version == THRESHOLD_VERSION

    def test_from_dict_records_explicit_keys(self):
        """Test from_dict remembers which settings the file contained."""
        config = Config.from_dict({"version": 1, "timeout_seconds": 5, "paths": {}})
        assert config.explicit == frozenset({"timeout_seconds"})
        assert config.is_set("timeout_seconds")
        assert not config.is_set("license_grace_days")

    def test_explicit_keys_carry_through_merges(self):
        """Test a pinned value survives a chain of merges."""
        high = Config.from_dict({"license_grace_days": DEFAULT_GRACE_DAYS})
        middle = Config.from_dict({"timeout_seconds": 10})
        low = Config.from_dict({"license_grace_days": 30, "timeout_seconds": 20})
        merged = high.merge_with(middle).merge_with(low)
        assert merged.license_grace_days == DEFAULT_GRACE_DAYS
        assert merged.timeout_seconds == 10

    def test_explicit_ignored_in_equality(self):
        """Test configs with equal values compare equal however they were built."""
        assert Config.from_dict({"timeout_seconds": 5}) == Config()


class TestLoadYAML:
    """Tests for YAML loading."""

    def test_load_yaml_valid(self):
        """Test loading a valid YAML file."""
        data = _load_yaml(CONFIG_VALID)
        assert data["version"] == 1
        assert data["paths"]["authchanger"] == "/opt/jamf/bin/authchanger"

    def test_load_yaml_not_found(self):
        """Test loading a missing YAML file."""
        assert _load_yaml("/nonexistent/config.yml") is None

    def test_load_yaml_invalid(self, tmp_path):
        """Test loading malformed YAML."""
        path = tmp_path / "bad.yml"
        path.write_text("version: [1\n")
        assert _load_yaml(str(path)) is None

    def test_load_yaml_empty(self, tmp_path):
        """Test an empty YAML file yields an empty mapping."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert _load_yaml(str(path)) == {}


class TestLoadJSON:
    """Tests for JSON loading."""

    def test_load_json_valid(self, tmp_path):
        """Test loading a valid JSON file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"version": 1, "timeout_seconds": 9}))
        assert _load_json(str(path)) == {"version": 1, "timeout_seconds": 9}

    def test_load_json_invalid(self, tmp_path):
        """Test loading malformed JSON."""
        path = tmp_path / "config.json"
        path.write_text("{ invalid json }")
        assert _load_json(str(path)) is None

    def test_load_json_not_found(self):
        """Test loading a missing JSON file."""
        assert _load_json("/nonexistent/config.json") is None


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_load_config_file_valid(self):
        """Test loading a complete configuration."""
        config = load_config_file(CONFIG_VALID)
        assert config is not None
        assert config.min_os_version == "14.0"
        assert config.license_grace_days == 30
        assert config.timeout_seconds == 10
        assert config.install_paths.legacy_app == "/opt/jamf/Jamf Connect.app/Contents/Info.plist"
        assert config.source == CONFIG_VALID

    def test_load_config_file_minimal(self):
        """Test loading a minimal configuration."""
        config = load_config_file(CONFIG_MINIMAL)
        assert config is not None
        assert config.threshold_version == THRESHOLD_VERSION
        assert config.paths == {}

    def test_load_config_file_invalid_version(self):
        """Test an invalid schema version is rejected."""
        assert load_config_file(CONFIG_INVALID_VERSION) is None

    def test_load_config_file_json(self, tmp_path):
        """Test JSON files are picked by extension."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"version": 1, "license_grace_days": 3}))
        config = load_config_file(str(path))
        assert config.license_grace_days == 3

    def test_load_config_file_not_found(self):
        """Test a missing file returns None."""
        assert load_config_file("/nonexistent/config.yml") is None


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_config_defaults(self):
        """Test defaults when no configuration file exists."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", []):
            config = load_config()
        assert config == Config()

    def test_load_config_custom_path(self):
        """Test a custom configuration path."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", []):
            config = load_config(CONFIG_VALID)
        assert config.timeout_seconds == 10

    def test_load_config_custom_path_not_found(self):
        """Test a missing custom path raises."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", []):
            with pytest.raises(ValueError, match="Could not load config"):
                load_config("/nonexistent/config.yml")

    def test_load_config_custom_path_invalid(self):
        """Test an invalid custom configuration raises."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", []):
            with pytest.raises(ValueError):
                load_config(CONFIG_INVALID_VERSION)

    def test_load_config_merging(self):
        """Test project settings override user settings."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", [CONFIG_PROJECT, CONFIG_USER]):
            config = load_config()
        assert config.timeout_seconds == 15
        assert config.license_grace_days == 7
        assert config.min_os_version == "14.0"
        assert config.paths["menu_prefs"] == "/tmp/project/com.jamf.connect.plist"
        assert config.paths["login_prefs"] == "/tmp/user/com.jamf.connect.login.plist"

    def test_load_config_pinned_defaults(self):
        """Test a higher-priority file can pin a default over a lower-priority override."""
        with patch("connect_audit.config.CONFIG_LOCATIONS", [CONFIG_PINNED, CONFIG_OVERRIDE]):
            config = load_config()
        assert config.threshold_version == THRESHOLD_VERSION
        assert config.license_grace_days == 14
        assert config.timeout_seconds == 20


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_validate_config_valid(self):
        """Test a default configuration has no warnings."""
        assert validate_config(Config()) == []

    def test_validate_config_unknown_path(self):
        """Test unknown path overrides are reported."""
        warnings = validate_config(Config(paths={"bogus": "/x"}))
        assert any("Unknown path override 'bogus'" in w for w in warnings)

    def test_validate_config_relative_path(self):
        """Test relative path overrides are reported."""
        warnings = validate_config(Config(paths={"pam_module": "lib/pam_saml.so.2"}))
        assert any("not absolute" in w for w in warnings)

    def test_validate_config_threshold_override(self):
        """Test a changed threshold is reported."""
        warnings = validate_config(Config(threshold_version="3.0"))
        assert any("threshold_version overridden" in w for w in warnings)

    def test_validate_config_equivalent_threshold(self):
        """Test an equivalent spelling of the threshold is not reported."""
        assert validate_config(Config(threshold_version="2.45.1.0")) == []
