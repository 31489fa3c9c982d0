"""Unit tests for sqlitelib configuration module."""

import pytest
from pathlib import Path
from pydantic import ValidationError

from sqlitelib.config import (
    DatabaseProfile,
    get_config_dir,
    get_default_config_path,
    get_example_config_path,
    list_profiles,
    load_profile,
    resolve_config_path,
    resolve_profile,
)


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary TOML config file for testing."""
    config_content = """
[default]
filename = ":memory:"

[dev]
filename = "~/data/dev.db"
timeout = 10.0

[prod]
filename = "/srv/prod.db"
readonly = true

[prod.pragmas]
query_only = true
"""
    config_path = tmp_path / "databases.toml"
    config_path.write_text(config_content)
    return config_path


class TestLoadProfile:
    """Tests for load_profile function."""

    def test_load_default_profile(self, temp_config_file):
        """Test loading the default profile."""
        config = load_profile("default", path=temp_config_file)

        assert config == {"filename": ":memory:"}

    def test_load_dev_profile(self, temp_config_file):
        """Test loading a non-default profile."""
        config = load_profile("dev", path=temp_config_file)

        assert config["filename"] == "~/data/dev.db"
        assert config["timeout"] == 10.0

    def test_load_nested_pragmas(self, temp_config_file):
        config = load_profile("prod", path=temp_config_file)

        assert config["readonly"] is True
        assert config["pragmas"] == {"query_only": True}

    def test_missing_profile_raises_error(self, temp_config_file):
        """Test that requesting a non-existent profile raises KeyError."""
        with pytest.raises(KeyError) as exc_info:
            load_profile("nonexistent", path=temp_config_file)

        assert "Profile 'nonexistent' not found" in str(exc_info.value)
        assert "Available profiles: default, dev, prod" in str(exc_info.value)

    def test_missing_file_raises_error(self, tmp_path):
        """Test that a missing config file raises FileNotFoundError."""
        nonexistent_path = tmp_path / "does_not_exist.toml"

        with pytest.raises(FileNotFoundError) as exc_info:
            load_profile("default", path=nonexistent_path)

        assert "not found" in str(exc_info.value).lower()


class TestListProfiles:
    """Tests for list_profiles function."""

    def test_list_all_profiles(self, temp_config_file):
        """Test listing all available profiles in file order."""
        assert list_profiles(path=temp_config_file) == ["default", "dev", "prod"]

    def test_list_profiles_missing_file(self, tmp_path):
        """Test listing profiles when file doesn't exist returns empty list."""
        assert list_profiles(path=tmp_path / "does_not_exist.toml") == []


class TestResolveProfile:
    """Tests for validated profiles."""

    def test_defaults(self, temp_config_file):
        profile = resolve_profile("default", path=temp_config_file)

        assert isinstance(profile, DatabaseProfile)
        assert profile.filename == ":memory:"
        assert profile.readonly is False
        assert profile.timeout == 5.0
        assert profile.cached_statements == 128
        assert profile.pragmas == {}

    def test_overrides_win(self, temp_config_file):
        """Test that keyword overrides replace profile values."""
        profile = resolve_profile("dev", path=temp_config_file, timeout=1.0, readonly=True)

        assert profile.filename == "~/data/dev.db"
        assert profile.timeout == 1.0
        assert profile.readonly is True

    def test_without_profile(self):
        """Test that overrides alone describe a database."""
        profile = resolve_profile(filename="local.db")

        assert profile.filename == "local.db"

    def test_missing_filename_rejected(self):
        with pytest.raises(ValidationError):
            resolve_profile()

    def test_unknown_setting_rejected(self, temp_config_file):
        """Test that misspelled settings are reported rather than ignored."""
        with pytest.raises(ValidationError):
            resolve_profile("default", path=temp_config_file, timout=3)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseProfile(filename="x.db", timeout=-1)


class TestResolveConfigPath:
    """Tests for path resolution functions."""

    def test_explicit_path_takes_precedence(self, tmp_path):
        """Test that an explicit path is used when provided."""
        explicit_path = tmp_path / "my_config.toml"

        assert resolve_config_path(path=explicit_path) == explicit_path

    def test_string_path_converted_to_path_object(self):
        """Test that string paths are converted to Path objects."""
        resolved = resolve_config_path(path="some/path/config.toml")

        assert isinstance(resolved, Path)
        assert resolved.name == "config.toml"

    def test_config_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SQLITELIB_CONFIG_DIR", str(tmp_path))

        assert get_config_dir() == tmp_path

    def test_config_dir_defaults_to_home(self, monkeypatch):
        monkeypatch.delenv("SQLITELIB_CONFIG_DIR", raising=False)

        assert get_config_dir() == Path.home() / ".sqlitelib"

    def test_default_config_path(self, config_dir):
        """Test that the default path points into the configuration directory."""
        path = get_default_config_path()

        assert path == config_dir / "databases.toml"

    def test_default_config_path_missing(self, tmp_path, monkeypatch):
        """Test that a missing default file explains how to create one."""
        monkeypatch.setenv("SQLITELIB_CONFIG_DIR", str(tmp_path))

        with pytest.raises(FileNotFoundError, match="databases.toml.example"):
            get_default_config_path()

    def test_default_path_used_by_load_profile(self, config_dir):
        assert load_profile("default") == {"filename": ":memory:"}
        assert "app" in list_profiles()


def test_example_config_is_valid():
    """Test that every profile in the packaged example validates."""
    example = get_example_config_path()

    for name in list_profiles(path=example):
        assert resolve_profile(name, path=example).filename


def test_example_config_missing():
    with pytest.raises(FileNotFoundError, match="Example file not found"):
        get_example_config_path("nope.example")
