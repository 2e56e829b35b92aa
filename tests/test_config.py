"""
Tests for loading and validating settings.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from progression.config import CONFIG_ENV_VAR, DEFAULT_SETTINGS, load_settings, validate_settings
from progression.errors import ConfigurationError


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestLoadSettings:
    """Tests for merging YAML settings over the defaults."""

    def test_defaults_without_file(self):
        """Test defaults are returned when no file is configured."""
        assert load_settings() == DEFAULT_SETTINGS

    def test_missing_file_means_defaults(self, tmp_path):
        """Test a path that does not exist falls back to defaults."""
        assert load_settings(str(tmp_path / "absent.yaml")) == DEFAULT_SETTINGS

    def test_defaults_are_copied(self):
        """Test callers cannot mutate the module defaults."""
        settings = load_settings()
        settings['min_group_size'] = 99
        assert DEFAULT_SETTINGS['min_group_size'] == 3

    def test_merge(self, tmp_path):
        """Test file values override defaults and the rest are kept."""
        path = tmp_path / "settings.yaml"
        path.write_text("max_group_size: 4\nbracket_size: 8\n")
        settings = load_settings(str(path))
        assert settings['max_group_size'] == 4
        assert settings['bracket_size'] == 8
        assert settings['min_group_size'] == 3

    def test_env_var(self, tmp_path, monkeypatch):
        """Test the environment variable names the settings file."""
        path = tmp_path / "settings.yaml"
        path.write_text("third_place: false\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings()['third_place'] is False

    def test_empty_file(self, tmp_path):
        """Test an empty file means defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_settings(str(path)) == DEFAULT_SETTINGS

    def test_bad_yaml(self, tmp_path):
        """Test unparsable YAML is a configuration error."""
        path = tmp_path / "settings.yaml"
        path.write_text("min_group_size: [3\n")
        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "settings.yaml"
        path.write_text("- 3\n- 6\n")
        with pytest.raises(ConfigurationError):
            load_settings(str(path))


class TestValidateSettings:
    """Tests for range checks."""

    def _settings(self, **overrides):
        settings = dict(DEFAULT_SETTINGS)
        settings.update(overrides)
        return settings

    def test_defaults_valid(self):
        """Test the defaults pass validation."""
        validate_settings(self._settings())

    def test_group_size_bounds(self):
        """Test group sizes below 2 or inverted are rejected."""
        with pytest.raises(ConfigurationError):
            validate_settings(self._settings(min_group_size=1))
        with pytest.raises(ConfigurationError):
            validate_settings(self._settings(min_group_size=5, max_group_size=4))

    def test_bracket_size(self):
        """Test only supported bracket sizes are accepted."""
        with pytest.raises(ConfigurationError):
            validate_settings(self._settings(bracket_size=6))

    def test_points(self):
        """Test points must be integers."""
        with pytest.raises(ConfigurationError):
            validate_settings(self._settings(group_points_per_win="two"))

    def test_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ConfigurationError):
            validate_settings(self._settings(log_level="CHATTY"))
        validate_settings(self._settings(log_level="debug"))
