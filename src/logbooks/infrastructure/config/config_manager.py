"""Configuration discovery, loading and validation.

Candidate files are searched in each directory from the start directory up
to the filesystem root. The first candidate that yields a configuration
object wins and is validated against ``LogbookConfig``.
"""

import copy
import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from logbooks.domain.config import LogbookConfig
from logbooks.domain.errors import LogbooksError, field_errors, format_validation_error
from logbooks.infrastructure.environment import Environment

logger = logging.getLogger(__name__)

MODULE_NAME = "logbooks"

# Init-time defaults written by ``logbooks init``
DEFAULT_CONFIG = {
    "version": "1.0.0",
    "cli": {
        "richOutput": True,
    },
    "database": {
        "backup": {
            "enabled": True,
            "interval": "daily",
            "retention": 7,
        },
    },
}


@dataclass(frozen=True)
class LoadedConfig:
    """A validated configuration and the file it was read from"""

    config: LogbookConfig
    filepath: Path


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text)


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


def _parse_rc(text: str) -> Any:
    """Extensionless rc file: JSON first, YAML otherwise"""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return yaml.safe_load(text)


def _package_field(text: str) -> Any:
    manifest = json.loads(text)
    return manifest.get(MODULE_NAME) if isinstance(manifest, dict) else None


def _pyproject_table(text: str) -> Any:
    return tomllib.loads(text).get("tool", {}).get(MODULE_NAME)


# (relative path, parser) in search order
SEARCH_PLACES: Tuple[Tuple[str, Callable[[str], Any]], ...] = (
    ("package.json", _package_field),
    ("pyproject.toml", _pyproject_table),
    (f".{MODULE_NAME}rc", _parse_rc),
    (f".{MODULE_NAME}rc.json", _parse_json),
    (f".{MODULE_NAME}rc.yaml", _parse_yaml),
    (f".{MODULE_NAME}rc.yml", _parse_yaml),
    (f".{MODULE_NAME}rc.toml", _parse_toml),
    ("config.json", _parse_json),
    ("config.local.json", _parse_json),
    (".logbook/config.json", _parse_json),
)

LOCAL_OVERRIDE_NAME = "config.local.json"


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge configuration dictionaries

    Args:
        base: Base configuration
        override: Override configuration

    Returns:
        Merged configuration
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """Finds and parses raw configuration objects

    Searches ``SEARCH_PLACES`` in the start directory, then in each parent.
    Manifest files without a ``logbooks`` section and empty files are
    skipped.
    """

    def __init__(self, search_places=SEARCH_PLACES, stop_dir: Optional[Path] = None):
        """Initialize config loader

        Args:
            search_places: (relative path, parser) pairs tried in order
            stop_dir: Last directory searched (filesystem root if None)
        """
        self.search_places = search_places
        self.stop_dir = Path(stop_dir).absolute() if stop_dir else None

    @classmethod
    def for_environment(cls, env: Environment) -> "ConfigLoader":
        """Loader that stops at the home directory when searching inside it"""
        stop_dir = env.home if env.cwd.is_relative_to(env.home) else None
        return cls(stop_dir=stop_dir)

    def search(self, start: Path) -> Optional[Tuple[Path, Dict[str, Any]]]:
        """Return (filepath, raw config) for the first usable candidate

        Raises:
            LogbooksError: If a candidate exists but cannot be parsed
        """
        start = Path(start).absolute()
        for directory in (start, *start.parents):
            for relative, parser in self.search_places:
                candidate = directory / relative
                if not candidate.is_file():
                    continue
                raw = self._read(candidate, parser)
                if raw is None:
                    logger.debug(f"Skipping empty config candidate: {candidate}")
                    continue
                logger.info(f"Found config file: {candidate}")
                return candidate, raw
            if self.stop_dir is not None and directory == self.stop_dir:
                break
        logger.debug("No logbooks config found, using defaults")
        return None

    def _read(self, path: Path, parser: Callable[[str], Any]) -> Optional[Dict[str, Any]]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise LogbooksError.validation(f"Failed to read config file {path}: {e}", cause=e) from e
        if not text.strip():
            return None
        try:
            raw = parser(text)
        except (ValueError, yaml.YAMLError) as e:
            raise LogbooksError.validation(f"Failed to parse config file {path}: {e}", cause=e) from e
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise LogbooksError.validation(
                f"Config file {path} must contain a mapping, got {type(raw).__name__}"
            )
        return raw

    def with_local_override(self, filepath: Path, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Merge a sibling ``config.local.json`` over a ``config.json``"""
        if filepath.name != "config.json":
            return raw
        local = filepath.with_name(LOCAL_OVERRIDE_NAME)
        if not local.is_file():
            return raw
        override = self._read(local, _parse_json)
        if not override:
            return raw
        logger.info(f"Applying local overrides from {local}")
        return merge_config(raw, override)


def _known_keys() -> set:
    keys = set()
    for name, field in LogbookConfig.model_fields.items():
        keys.update({name, field.alias or name})
    return keys


def validate_config(raw: Dict[str, Any], source: Optional[Path] = None) -> LogbookConfig:
    """Validate a raw configuration object

    Raises:
        LogbooksError: validation kind; the message lists every failing field
    """
    ignored = sorted(set(raw) - _known_keys())
    if ignored:
        logger.debug(f"Ignoring unknown config keys in {source or 'config'}: {', '.join(ignored)}")
    try:
        return LogbookConfig.model_validate(raw)
    except ValidationError as e:
        where = f" at {source}" if source else ""
        message = format_validation_error(e, title=f"Configuration file validation failed{where}")
        raise LogbooksError.validation(message, field_errors(e), cause=e) from e


def load_config(cwd: Optional[Path] = None, loader: Optional[ConfigLoader] = None) -> Optional[LoadedConfig]:
    """Load, parse and validate the logbooks configuration

    Args:
        cwd: Directory to start searching from (current directory if None)
        loader: Config loader (default search places if None)

    Returns:
        Loaded configuration, or None when no config file exists

    Raises:
        LogbooksError: If a config file is unreadable or fails validation
    """
    loader = loader or ConfigLoader()
    found = loader.search(Path(cwd) if cwd else Path.cwd())
    if found is None:
        return None

    filepath, raw = found
    raw = loader.with_local_override(filepath, raw)
    config = validate_config(raw, filepath)
    logger.info(f"Loaded configuration from {filepath}")
    return LoadedConfig(config=config, filepath=filepath)


def write_default_config(root: Path) -> Path:
    """Write the default ``config.json`` into ``root``

    Raises:
        FileExistsError: If the config file already exists
    """
    config_path = Path(root) / "config.json"
    if config_path.exists():
        raise FileExistsError(f"Logbook already initialized at {config_path}")

    # Validate before writing so a bad default never reaches disk
    validate_config(DEFAULT_CONFIG)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n", encoding="utf-8")
    return config_path
