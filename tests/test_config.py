"""Tests for storylint.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from storylint.config import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    StoryLintConfig,
    ValidatorConfig,
    find_config_file,
    load_config,
)
from storylint.errors import ConfigError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, StoryLintConfig)
    assert config.root == tmp_path.resolve()
    assert config.files.include == DEFAULT_INCLUDE
    assert config.files.exclude == DEFAULT_EXCLUDE
    assert config.reader.small_file_threshold == 100 * 1024
    assert config.reader.cache_enabled is True
    assert config.validators == {}


def test_load_config_parses_yaml(tmp_path: Path) -> None:
    (tmp_path / ".story-linter.yml").write_text(
        """
files:
  include: ["chapters/**/*.md"]
  exclude:
    - "drafts/**"
reader:
  smallFileThreshold: 2048
  cache_enabled: false
validators:
  character-consistency:
    aliases:
      Elizabeth: [Liz, Beth]
    ordering: input
  link-graph:
    enabled: true
    entryPoints: [index.md]
    checkOrphans: false
plugins:
  custom: false
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.files.include == ["chapters/**/*.md"]
    assert config.files.exclude == ["drafts/**"]
    assert config.reader.small_file_threshold == 2048
    assert config.reader.cache_enabled is False

    characters = config.validator_config("character-consistency")
    assert characters.enabled is True
    assert characters.get("aliases") == {"Elizabeth": ["Liz", "Beth"]}
    assert characters.get("ordering") == "input"

    links = config.validator_config("link-graph")
    assert links.get("entry_points") == ["index.md"]
    assert links.get("check_orphans") is False

    assert config.validator_config("custom").enabled is False
    assert config.validator_config("unknown") == ValidatorConfig()


def test_load_config_searches_parent_directories(tmp_path: Path) -> None:
    (tmp_path / ".story-linter.json").write_text(
        json.dumps({"validators": {"link-graph": {"enabled": False}}}), encoding="utf-8"
    )
    nested = tmp_path / "book" / "part1"
    nested.mkdir(parents=True)

    assert find_config_file(nested) == (tmp_path / ".story-linter.json").resolve()
    config = load_config(nested)

    assert config.root == tmp_path.resolve()
    assert config.validator_config("link-graph").enabled is False


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".story-linter.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".story-linter.yml").write_text("files: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_from_mapping_rejects_bad_validator_settings(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        StoryLintConfig.from_mapping({"validators": {"link-graph": "yes"}}, root=tmp_path)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".story-linter.yaml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.files.include == DEFAULT_INCLUDE
