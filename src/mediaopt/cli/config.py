#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for the mediaopt CLI.

A configuration file supplies defaults the command line does not carry:
logging setup and a list of default arguments prepended to every
invocation. TOML, YAML and JSON files are accepted, as is a
``[tool.mediaopt]`` table in ``pyproject.toml``.
"""

import json
import logging
import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
from typing import Any, Dict, Optional

import yaml

from mediaopt.constants import CONFIG_BASENAME, CONFIG_EXTENSIONS, PYPROJECT_SECTION
from mediaopt.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = [f"{CONFIG_BASENAME}{ext}" for ext in CONFIG_EXTENSIONS]

# key -> accepted types
CONFIG_SCHEMA: Dict[str, tuple[type, ...]] = {
    "log_level": (str, int),
    "log_file": (str,),
    "trace": (bool,),
    "default_args": (list,),
    "hide_banner": (bool,),
}


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load the ``[tool.mediaopt]`` table of a pyproject.toml file.

    Returns
    -------
    dict
        The table, or an empty dict when the file has none

    Raises
    ------
    ConfigError
        If the file cannot be parsed or the section is not a table

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in pyproject.toml {pyproject_path}: {e}", str(pyproject_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading pyproject.toml {pyproject_path}: {e}", str(pyproject_path), e) from e

    section = data.get("tool", {}).get(PYPROJECT_SECTION)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"[tool.{PYPROJECT_SECTION}] section in {pyproject_path} must be a table, got {type(section).__name__}",
            str(pyproject_path),
        )
    return section


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file in ``start_dir`` or one of its parents.

    Each directory is checked for the dedicated files first (``.mediaopt.toml``,
    ``.mediaopt.yaml``, ``.mediaopt.yml``, ``.mediaopt.json``) and then for a
    ``pyproject.toml`` carrying a ``[tool.mediaopt]`` table.

    Parameters
    ----------
    start_dir : Path, optional
        Directory to start from, defaults to the current working directory

    Returns
    -------
    Path or None
        The first file found

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                return candidate

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigError as e:
                logger.debug("Skipping unreadable %s: %s", pyproject_path, e)

        parent = current.parent
        if parent == current:
            return None
        current = parent


def find_home_config() -> Optional[Path]:
    """Return the first dedicated configuration file in the home directory."""
    home = Path.home()
    for filename in CONFIG_FILENAMES:
        candidate = home / filename
        if candidate.is_file():
            return candidate
    return None


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Discover a configuration file in the standard locations.

    The directory tree is searched upward from ``start_dir`` (see
    ``find_config_in_parents``); the home directory's dedicated files are
    the fallback.
    """
    found = find_config_in_parents(start_dir)
    if found:
        return found
    return find_home_config()


def _expect_mapping(config: Any, config_path: Path, kind: str) -> Dict[str, Any]:
    if not isinstance(config, dict):
        raise ConfigError(
            f"{kind} config file must contain a mapping at root level, got {type(config).__name__}",
            str(config_path),
        )
    return config


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load a configuration file, choosing the parser from its name.

    Parameters
    ----------
    config_path : Path or str
        ``pyproject.toml``, or a file ending in .toml, .yaml, .yml or .json

    Returns
    -------
    dict
        Configuration dictionary loaded from file

    Raises
    ------
    ConfigError
        If the file does not exist or cannot be parsed

    Examples
    --------
    >>> config = load_config_file(".mediaopt.toml")
    >>> config.get("log_level")
    'warning'

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file does not exist: {config_path}", str(config_path))
    if not config_path.is_file():
        raise ConfigError(f"Configuration path is not a file: {config_path}", str(config_path))

    ext = config_path.suffix.lower()
    if config_path.name.lower() == "pyproject.toml":
        return _load_pyproject_section(config_path)

    try:
        if ext == ".toml":
            with open(config_path, "rb") as f:
                return _expect_mapping(tomllib.load(f), config_path, "TOML")
        if ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                return _expect_mapping(yaml.safe_load(f), config_path, "YAML")
        if ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                return _expect_mapping(json.load(f), config_path, "JSON")
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {config_path}: {e}", str(config_path), e) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}", str(config_path), e) from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading config file {config_path}: {e}", str(config_path), e) from e

    raise ConfigError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml", str(config_path))


def validate_config(config: Dict[str, Any], config_path: Optional[str] = None) -> Dict[str, Any]:
    """Check value types of known keys and drop unknown keys with a warning.

    Raises
    ------
    ConfigError
        If a known key has a value of the wrong type, or ``default_args``
        holds anything but strings

    """
    validated: Dict[str, Any] = {}
    for key, value in config.items():
        accepted = CONFIG_SCHEMA.get(key)
        if accepted is None:
            logger.warning("Ignoring unknown configuration key '%s'", key)
            continue
        if not isinstance(value, accepted):
            names = " or ".join(t.__name__ for t in accepted)
            raise ConfigError(f"Configuration key '{key}' must be {names}, got {type(value).__name__}", config_path)
        if key == "default_args" and not all(isinstance(item, str) for item in value):
            raise ConfigError("Configuration key 'default_args' must be a list of strings", config_path)
        validated[key] = value
    return validated


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Examples
    --------
    >>> merge_configs({"log_level": "info", "x": {"a": 1}}, {"x": {"b": 2}})
    {'log_level': 'info', 'x': {'a': 1, 'b': 2}}

    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_priority(
    explicit_path: Optional[str] = None, env_var_path: Optional[str] = None
) -> Dict[str, Any]:
    """Load configuration from the highest-priority source available.

    Priority order (highest to lowest):

    1. Explicit config file path
    2. Path from the ``MEDIAOPT_CONFIG`` environment variable
    3. Auto-discovered file (see ``discover_config_file``)

    A discovered project file is layered over the home directory's file:
    keys the project file leaves out keep their home values.

    Returns
    -------
    dict
        Validated configuration (empty when no file is found)

    Raises
    ------
    ConfigError
        If a file is named or found but cannot be loaded

    """
    named = explicit_path or env_var_path
    if named:
        logger.debug("Loading configuration from %s", named)
        return validate_config(load_config_file(named), str(named))

    path = discover_config_file()
    if path is None:
        return {}

    logger.debug("Loading configuration from %s", path)
    config = validate_config(load_config_file(path), str(path))

    home_path = find_home_config()
    if home_path is not None and home_path.resolve() != path.resolve():
        logger.debug("Layering configuration over %s", home_path)
        config = merge_configs(validate_config(load_config_file(home_path), str(home_path)), config)
    return config
