"""Unit tests for mediaopt CLI configuration management.

This module tests the configuration system including file discovery, loading,
validation, and priority handling.
"""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from mediaopt.cli.config import (
    discover_config_file,
    find_config_in_parents,
    load_config_file,
    load_config_with_priority,
    merge_configs,
    validate_config,
)
from mediaopt.exceptions import ConfigError


@pytest.fixture
def empty_home(tmp_path):
    """Provide an empty directory standing in for the home directory."""
    home = tmp_path / "home"
    home.mkdir()
    with patch("pathlib.Path.home", return_value=home):
        yield home


@pytest.mark.unit
@pytest.mark.cli
class TestConfigDiscovery:
    """Test configuration file discovery functionality."""

    def test_discover_config_in_cwd(self, tmp_path, empty_home):
        """Test discovering config file in current working directory."""
        config_file = tmp_path / ".mediaopt.toml"
        config_file.write_text('log_level = "debug"')

        with patch("pathlib.Path.cwd", return_value=tmp_path):
            discovered = discover_config_file()

        assert discovered is not None
        assert discovered.resolve() == config_file.resolve()

    def test_discover_config_in_home(self, tmp_path, empty_home):
        """Test discovering config file in home directory."""
        work = tmp_path / "work"
        work.mkdir()
        config_file = empty_home / ".mediaopt.json"
        config_file.write_text('{"hide_banner": true}')

        with patch("pathlib.Path.cwd", return_value=work):
            discovered = discover_config_file()

        assert discovered == config_file

    def test_discover_config_prefers_toml_over_json(self, tmp_path, empty_home):
        """Test that TOML is preferred when several dedicated files exist."""
        (tmp_path / ".mediaopt.json").write_text("{}")
        toml_file = tmp_path / ".mediaopt.toml"
        toml_file.write_text("")

        with patch("pathlib.Path.cwd", return_value=tmp_path):
            assert discover_config_file().resolve() == toml_file.resolve()

    def test_discover_config_prefers_cwd_over_home(self, tmp_path, empty_home):
        """Test that the working tree wins over the home directory."""
        work = tmp_path / "work"
        work.mkdir()
        (empty_home / ".mediaopt.toml").write_text("")
        local = work / ".mediaopt.yaml"
        local.write_text("trace: true")

        with patch("pathlib.Path.cwd", return_value=work):
            assert discover_config_file().resolve() == local.resolve()

    def test_discover_config_returns_none_when_not_found(self, tmp_path, empty_home):
        """Test discovery returns None when no config files exist."""
        work = tmp_path / "work"
        work.mkdir()
        with patch("pathlib.Path.cwd", return_value=work):
            assert discover_config_file() is None


@pytest.mark.unit
@pytest.mark.cli
class TestPyprojectTomlSupport:
    """Test the [tool.mediaopt] table of pyproject.toml."""

    def test_load_config_file_pyproject(self, tmp_path):
        """Test that only the tool section is returned."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nname = "demo"\n\n[tool.mediaopt]\nlog_level = "warning"\n')
        assert load_config_file(pyproject) == {"log_level": "warning"}

    def test_load_pyproject_without_tool_section(self, tmp_path):
        """Test that a pyproject without the section yields an empty config."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nname = "demo"\n')
        assert load_config_file(pyproject) == {}

    def test_section_must_be_a_table(self, tmp_path):
        """Test that a scalar section is rejected."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[tool]\nmediaopt = "yes"\n')
        with pytest.raises(ConfigError, match="must be a table"):
            load_config_file(pyproject)

    def test_find_config_in_parent_directory(self, tmp_path):
        """Test that the search walks up to a parent's pyproject."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.mediaopt]\nhide_banner = true\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_in_parents(nested) == pyproject.resolve()

    def test_dedicated_config_takes_precedence_over_pyproject(self, tmp_path):
        """Test that a dedicated file in the same directory wins."""
        (tmp_path / "pyproject.toml").write_text("[tool.mediaopt]\nhide_banner = true\n")
        dedicated = tmp_path / ".mediaopt.yml"
        dedicated.write_text("hide_banner: false\n")
        assert find_config_in_parents(tmp_path) == dedicated.resolve()

    def test_search_stops_at_first_match(self, tmp_path):
        """Test that the nearest directory wins."""
        (tmp_path / ".mediaopt.toml").write_text("")
        nested = tmp_path / "nested"
        nested.mkdir()
        near = nested / ".mediaopt.json"
        near.write_text("{}")
        assert find_config_in_parents(nested) == near.resolve()

    def test_pyproject_without_section_is_skipped(self, tmp_path):
        """Test that a pyproject without the section does not stop the search."""
        (tmp_path / ".mediaopt.toml").write_text("")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "pyproject.toml").write_text('[project]\nname = "demo"\n')
        assert find_config_in_parents(nested) == (tmp_path / ".mediaopt.toml").resolve()

    def test_invalid_pyproject_is_skipped(self, tmp_path):
        """Test that an unreadable pyproject does not stop the search."""
        (tmp_path / ".mediaopt.toml").write_text("")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "pyproject.toml").write_text("[tool.mediaopt\n")
        assert find_config_in_parents(nested) == (tmp_path / ".mediaopt.toml").resolve()


@pytest.mark.unit
@pytest.mark.cli
class TestConfigLoading:
    """Test loading each supported format."""

    def test_load_toml_config(self, tmp_path):
        """Test loading a TOML file."""
        config_file = tmp_path / "conf.toml"
        config_file.write_text('log_level = "debug"\ndefault_args = ["-hide_banner", "-y"]\n')
        assert load_config_file(config_file) == {"log_level": "debug", "default_args": ["-hide_banner", "-y"]}

    def test_load_json_config(self, tmp_path):
        """Test loading a JSON file."""
        config_file = tmp_path / "conf.json"
        config_file.write_text(json.dumps({"trace": True}))
        assert load_config_file(str(config_file)) == {"trace": True}

    def test_load_yaml_config(self, tmp_path):
        """Test loading a YAML file."""
        config_file = tmp_path / "conf.yaml"
        config_file.write_text("log_file: run.log\nhide_banner: true\n")
        assert load_config_file(config_file) == {"log_file": "run.log", "hide_banner": True}

    def test_load_config_missing_file_raises_error(self, tmp_path):
        """Test that a missing file is reported."""
        with pytest.raises(ConfigError, match="does not exist"):
            load_config_file(tmp_path / "missing.toml")

    def test_load_config_directory_raises_error(self, tmp_path):
        """Test that a directory is not a config file."""
        with pytest.raises(ConfigError, match="not a file"):
            load_config_file(tmp_path)

    @pytest.mark.parametrize(
        "name,content,message",
        [
            ("bad.toml", "log_level = ", "Invalid TOML"),
            ("bad.json", "{not json", "Invalid JSON"),
            ("bad.yaml", "key: [unclosed", "Invalid YAML"),
            ("list.yaml", "- a\n- b\n", "must contain a mapping"),
            ("conf.ini", "[x]", "Unsupported config file format: .ini"),
        ],
    )
    def test_load_config_invalid_file_raises_error(self, tmp_path, name, content, message):
        """Test that malformed files raise ConfigError with the path attached."""
        config_file = tmp_path / name
        config_file.write_text(content)
        with pytest.raises(ConfigError, match=message) as exc_info:
            load_config_file(config_file)
        assert exc_info.value.config_path == str(config_file)


@pytest.mark.unit
@pytest.mark.cli
class TestConfigValidation:
    """Test type checking of known keys."""

    def test_known_keys_pass(self):
        """Test a fully valid configuration."""
        config = {"log_level": 10, "log_file": "x.log", "trace": False, "default_args": ["-y"], "hide_banner": True}
        assert validate_config(config) == config

    def test_unknown_keys_are_dropped(self, caplog):
        """Test that unknown keys are ignored with a warning."""
        with caplog.at_level(logging.WARNING):
            assert validate_config({"colour": "blue", "trace": True}) == {"trace": True}
        assert "Ignoring unknown configuration key 'colour'" in caplog.text

    @pytest.mark.parametrize(
        "config,message",
        [
            ({"trace": "yes"}, "'trace' must be bool, got str"),
            ({"log_level": 1.5}, "'log_level' must be str or int, got float"),
            ({"default_args": "-y"}, "'default_args' must be list, got str"),
            ({"default_args": ["-t", 10]}, "must be a list of strings"),
        ],
    )
    def test_wrong_types(self, config, message):
        """Test that mistyped values are rejected."""
        with pytest.raises(ConfigError, match=message):
            validate_config(config, "conf.toml")


@pytest.mark.unit
@pytest.mark.cli
class TestConfigMerging:
    """Test configuration merging functionality."""

    def test_merge_configs_simple(self):
        """Test that override values replace base values."""
        assert merge_configs({"log_level": "info", "trace": False}, {"trace": True}) == {
            "log_level": "info",
            "trace": True,
        }

    def test_merge_configs_nested(self):
        """Test that nested tables are merged key by key."""
        merged = merge_configs({"x": {"a": 1, "b": 1}}, {"x": {"b": 2}})
        assert merged == {"x": {"a": 1, "b": 2}}

    def test_merge_configs_override_replaces_non_dicts(self):
        """Test that lists are replaced rather than merged."""
        merged = merge_configs({"default_args": ["-y"]}, {"default_args": ["-n"]})
        assert merged == {"default_args": ["-n"]}

    def test_merge_configs_does_not_modify_base(self):
        """Test that the base mapping is left untouched."""
        base = {"x": {"a": 1}}
        merge_configs(base, {"x": {"a": 2}})
        assert base == {"x": {"a": 1}}


@pytest.mark.unit
@pytest.mark.cli
class TestConfigPriority:
    """Test the order in which configuration sources are consulted."""

    def test_explicit_path_wins(self, tmp_path):
        """Test that an explicit path beats the environment path."""
        explicit = tmp_path / "explicit.toml"
        explicit.write_text('log_level = "debug"')
        env = tmp_path / "env.toml"
        env.write_text('log_level = "error"')
        assert load_config_with_priority(str(explicit), str(env)) == {"log_level": "debug"}

    def test_env_path_beats_discovery(self, tmp_path, empty_home):
        """Test that the environment path beats discovered files."""
        (tmp_path / ".mediaopt.toml").write_text('log_level = "info"')
        env = tmp_path / "env.json"
        env.write_text('{"log_level": "error"}')
        with patch("pathlib.Path.cwd", return_value=tmp_path):
            assert load_config_with_priority(env_var_path=str(env)) == {"log_level": "error"}

    def test_discovered_file_is_validated(self, tmp_path, empty_home):
        """Test that discovered files go through validation."""
        (tmp_path / ".mediaopt.toml").write_text("trace = 1")
        with patch("pathlib.Path.cwd", return_value=tmp_path):
            with pytest.raises(ConfigError, match="'trace' must be bool"):
                load_config_with_priority()

    def test_project_config_is_layered_over_home(self, tmp_path, empty_home):
        """Test that home values survive unless the project file overrides them."""
        (empty_home / ".mediaopt.toml").write_text('log_level = "error"\nhide_banner = true\n')
        work = tmp_path / "work"
        work.mkdir()
        (work / ".mediaopt.json").write_text('{"log_level": "debug"}')
        with patch("pathlib.Path.cwd", return_value=work):
            assert load_config_with_priority() == {"log_level": "debug", "hide_banner": True}

    def test_home_config_alone(self, tmp_path, empty_home):
        """Test that the home file is used once when nothing else is found."""
        (empty_home / ".mediaopt.yaml").write_text("trace: true\n")
        work = tmp_path / "work"
        work.mkdir()
        with patch("pathlib.Path.cwd", return_value=work):
            assert load_config_with_priority() == {"trace": True}

    def test_named_file_is_not_layered(self, tmp_path, empty_home):
        """Test that an explicit file replaces discovered configuration."""
        (empty_home / ".mediaopt.toml").write_text("hide_banner = true\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text('log_level = "debug"')
        assert load_config_with_priority(str(explicit)) == {"log_level": "debug"}

    def test_invalid_home_config_is_reported(self, tmp_path, empty_home):
        """Test that a broken home file fails even under a project file."""
        (empty_home / ".mediaopt.toml").write_text("trace = 1\n")
        work = tmp_path / "work"
        work.mkdir()
        (work / ".mediaopt.toml").write_text('log_level = "debug"')
        with patch("pathlib.Path.cwd", return_value=work):
            with pytest.raises(ConfigError, match="'trace' must be bool"):
                load_config_with_priority()

    def test_nothing_found(self, tmp_path, empty_home):
        """Test that an empty config is returned when no source exists."""
        work = tmp_path / "work"
        work.mkdir()
        with patch("pathlib.Path.cwd", return_value=work):
            assert load_config_with_priority() == {}
