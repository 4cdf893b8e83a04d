"""Tests for projector.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from projector.config import (
    DEFAULT_ROOT_MARKERS,
    ConfigError,
    DiscoveryConfig,
    IgnoreConfig,
    default_config_path,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, DiscoveryConfig)
    assert config.max_depth == 10
    assert config.root_markers == DEFAULT_ROOT_MARKERS
    assert "node_modules" in config.ignore_patterns
    assert config.denylist_paths == []
    assert config.lockfiles_as_strong is True
    assert config.min_code_files_to_consider == 5
    assert config.stop_at_vcs_root is True
    assert config.include_nested_packages == "when-monorepo"
    assert config.stop_at_node_package_root is True
    assert config.leaf_code_directories is True
    assert config.concurrency == 8
    assert config.ignore == IgnoreConfig()


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".projector.yml"
    config_file.write_text(
        """
max_depth: 4
ignore_patterns: [node_modules, "*.egg-info"]
denylist_paths:
  - "/srv/secrets"
root_markers: [package.json, deno.json]
monorepo_markers: [pnpm-workspace.yaml]
lockfiles_as_strong: "no"
min_code_files_to_consider: "3"
code_file_extensions: [".PY", ".ts"]
stop_at_vcs_root: false
include_nested_packages: always
stop_at_node_package_root: false
leaf_code_directories: false
skip_hidden_directories: false
concurrency: 2
ignore:
  patterns: ["apps/legacy", "!apps/legacy/keep"]
  directories: [sandbox]
  use_ignore_files: false
  ignore_file_name: .scanignore
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.max_depth == 4
    assert config.ignore_patterns == ["node_modules", "*.egg-info"]
    assert config.denylist_paths == ["/srv/secrets"]
    assert config.root_markers == ["package.json", "deno.json"]
    assert config.monorepo_markers == ["pnpm-workspace.yaml"]
    assert config.lockfiles_as_strong is False
    assert config.min_code_files_to_consider == 3
    assert config.code_file_extensions == [".py", ".ts"]
    assert config.stop_at_vcs_root is False
    assert config.include_nested_packages == "always"
    assert config.stop_at_node_package_root is False
    assert config.leaf_code_directories is False
    assert config.skip_hidden_directories is False
    assert config.concurrency == 2
    assert config.ignore.patterns == ["apps/legacy", "!apps/legacy/keep"]
    assert config.ignore.directories == ["sandbox"]
    assert config.ignore.use_ignore_files is False
    assert config.ignore.ignore_file_name == ".scanignore"


def test_load_config_accepts_explicit_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("max_depth: 2\n", encoding="utf-8")

    assert load_config(config_file).max_depth == 2


def test_wrongly_typed_values_fall_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / ".projector.yml").write_text(
        "max_depth: deep\nstop_at_vcs_root: maybe\nroot_markers: {a: 1}\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.max_depth == 10
    assert config.stop_at_vcs_root is True
    assert config.root_markers == DEFAULT_ROOT_MARKERS


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".projector.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path) == DiscoveryConfig()


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".projector.yml").write_text("max_depth: [1\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".projector.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_invalid_nested_package_mode_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".projector.yml").write_text("include_nested_packages: sometimes\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="include_nested_packages"):
        load_config(tmp_path)


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ConfigError):
        DiscoveryConfig(concurrency=0)


def test_default_config_path_honours_xdg(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_config_path() == tmp_path / "projector" / "config.yml"
