"""Configuration loading for storylint (.story-linter.yml)."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = (
    ".story-linter.yml",
    ".story-linter.yaml",
    ".story-linter.json",
)

DEFAULT_INCLUDE = ["**/*.md", "**/*.txt"]
DEFAULT_EXCLUDE = ["**/node_modules/**", "**/.*"]
DEFAULT_SMALL_FILE_THRESHOLD = 100 * 1024

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass
class FilesConfig:
    """Include/exclude globs used for discovery."""

    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))


@dataclass
class ReaderConfig:
    """File reader strategy settings."""

    small_file_threshold: int = DEFAULT_SMALL_FILE_THRESHOLD
    cache_enabled: bool = True


@dataclass
class ValidatorConfig:
    """Per-plugin enablement plus plugin-specific options."""

    enabled: bool = True
    options: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@dataclass
class StoryLintConfig:
    """Resolved settings consumed by the validation core."""

    root: Path
    files: FilesConfig = field(default_factory=FilesConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    validators: Dict[str, ValidatorConfig] = field(default_factory=dict)

    def validator_config(self, name: str) -> ValidatorConfig:
        """Return the config for ``name``; unknown plugins are enabled with no options."""
        return self.validators.get(name) or ValidatorConfig()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, root: Path | None = None) -> "StoryLintConfig":
        """Build a config from an already-parsed mapping."""
        if not isinstance(data, Mapping):
            raise ConfigError("Configuration must be a mapping at the root")
        resolved_root = (root or Path.cwd()).resolve()

        files = FilesConfig()
        files_data = _as_dict(data.get("files"))
        if "include" in files_data:
            files.include = _as_str_list(files_data.get("include"))
        if "exclude" in files_data:
            files.exclude = _as_str_list(files_data.get("exclude"))

        reader = ReaderConfig()
        reader_data = _normalise_keys(_as_dict(data.get("reader")))
        threshold = _as_int(reader_data.get("small_file_threshold"))
        if threshold is not None:
            if threshold < 0:
                raise ConfigError("reader.small_file_threshold must not be negative")
            reader.small_file_threshold = threshold
        cache_enabled = _as_bool(reader_data.get("cache_enabled"))
        if cache_enabled is not None:
            reader.cache_enabled = cache_enabled

        validators: Dict[str, ValidatorConfig] = {}
        # "plugins" is accepted as an alias section; "validators" wins on conflicts.
        for section in ("plugins", "validators"):
            section_data = data.get(section)
            if section_data is None:
                continue
            if not isinstance(section_data, Mapping):
                raise ConfigError(f"'{section}' must be a mapping of plugin names to settings")
            for name, raw in section_data.items():
                validators[str(name)] = _parse_validator_config(str(name), raw)

        return cls(root=resolved_root, files=files, reader=reader, validators=validators)


def load_config(path: Path) -> StoryLintConfig:
    """Locate and load configuration starting at ``path``.

    ``path`` may be a config file or a directory; directories are searched
    upwards for the first known config filename. Defaults are returned when
    nothing is found.
    """
    config_file = find_config_file(path)
    if config_file is None:
        start = path.expanduser().resolve()
        return StoryLintConfig(root=start if start.is_dir() else start.parent)

    data = _read_config(config_file)
    return StoryLintConfig.from_mapping(data, root=config_file.parent)


def find_config_file(path: Path) -> Optional[Path]:
    """Return the nearest config file at or above ``path``."""
    start = path.expanduser().resolve()
    if start.is_file():
        return start
    current = start
    while True:
        for name in CONFIG_FILENAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        if current.parent == current:
            return None
        current = current.parent


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}

    if path.suffix == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    elif path.suffix in {".yml", ".yaml"}:
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    else:
        raise ConfigError(f"Unsupported config file format: {path.name}")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _parse_validator_config(name: str, raw: Any) -> ValidatorConfig:
    if raw is None:
        return ValidatorConfig()
    if isinstance(raw, bool):
        return ValidatorConfig(enabled=raw)
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Settings for validator '{name}' must be a mapping or boolean")
    options = _normalise_keys(dict(raw))
    enabled = _as_bool(options.pop("enabled", None))
    return ValidatorConfig(enabled=True if enabled is None else enabled, options=options)


def _normalise_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert camelCase keys to snake_case; nested values are left untouched."""
    return {_snake_case(str(key)): value for key, value in data.items()}


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAMES",
    "ConfigError",
    "FilesConfig",
    "ReaderConfig",
    "StoryLintConfig",
    "ValidatorConfig",
    "find_config_file",
    "load_config",
]
