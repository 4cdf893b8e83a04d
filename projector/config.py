"""Configuration loading for projector discovery (.projector.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".projector.yml"

VCS_MARKER = ".git"

NESTED_PACKAGE_MODES = ("never", "when-monorepo", "always")

DEFAULT_IGNORE_PATTERNS: List[str] = [
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "dist",
    "build",
    "target",
    "__pycache__",
    ".pytest_cache",
    ".venv",
    "venv",
    ".env",
    "tmp",
    "temp",
    "logs",
    ".DS_Store",
    ".vscode",
    ".idea",
    "coverage",
    ".nyc_output",
    ".cache",
]

DEFAULT_ROOT_MARKERS: List[str] = [
    "package.json",
    "Cargo.toml",
    "go.mod",
    "requirements.txt",
    "setup.py",
    "pyproject.toml",
    "composer.json",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "Makefile",
    "CMakeLists.txt",
]

DEFAULT_MONOREPO_MARKERS: List[str] = [
    "pnpm-workspace.yaml",
    "lerna.json",
    "go.work",
    "settings.gradle",
    "settings.gradle.kts",
]

DEFAULT_CODE_FILE_EXTENSIONS: List[str] = [
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".pyx", ".pyi",
    ".php", ".phtml",
    ".go",
    ".rs",
    ".java", ".kt", ".kts",
    ".c", ".cpp", ".cc", ".cxx", ".h", ".hpp",
    ".cs",
    ".rb",
    ".swift",
    ".dart",
    ".vue",
    ".svelte",
    ".html", ".htm",
    ".css", ".scss", ".sass", ".less",
    ".sh", ".bash", ".zsh", ".fish",
    ".ps1", ".psm1",
    ".bat", ".cmd",
]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class IgnoreConfig:
    """User-supplied ignore rules applied during traversal."""

    patterns: List[str] = field(default_factory=list)
    directories: List[str] = field(default_factory=list)
    use_ignore_files: bool = True
    ignore_file_name: str = ".projectorignore"


@dataclass
class DiscoveryConfig:
    """Settings consumed by the signal collector, scorer and traversal."""

    max_depth: int = 10
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    denylist_paths: List[str] = field(default_factory=list)
    root_markers: List[str] = field(default_factory=lambda: list(DEFAULT_ROOT_MARKERS))
    monorepo_markers: List[str] = field(default_factory=lambda: list(DEFAULT_MONOREPO_MARKERS))
    lockfiles_as_strong: bool = True
    min_code_files_to_consider: int = 5
    code_file_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_CODE_FILE_EXTENSIONS)
    )
    stop_at_vcs_root: bool = True
    include_nested_packages: str = "when-monorepo"
    stop_at_node_package_root: bool = True
    leaf_code_directories: bool = True
    skip_hidden_directories: bool = True
    concurrency: int = 8
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)

    def __post_init__(self) -> None:
        if self.include_nested_packages not in NESTED_PACKAGE_MODES:
            choices = ", ".join(NESTED_PACKAGE_MODES)
            raise ConfigError(
                f"include_nested_packages must be one of {choices}, "
                f"got {self.include_nested_packages!r}"
            )
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")


def default_config_path() -> Path:
    """Return the per-user configuration file location."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "projector" / "config.yml"


def load_config(config_path: Path) -> DiscoveryConfig:
    """Load configuration from disk, falling back to defaults for missing keys."""
    config_file = _resolve_config_path(config_path)

    if not config_file.exists():
        return DiscoveryConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    defaults = DiscoveryConfig()

    ignore_data = _as_dict(data.get("ignore"))
    ignore = IgnoreConfig()
    if ignore_data:
        ignore.patterns = _as_str_list(ignore_data.get("patterns"))
        ignore.directories = _as_str_list(ignore_data.get("directories"))
        use_files = _as_bool(ignore_data.get("use_ignore_files"))
        if use_files is not None:
            ignore.use_ignore_files = use_files
        ignore.ignore_file_name = (
            _as_str(ignore_data.get("ignore_file_name")) or ignore.ignore_file_name
        )

    include_nested = _as_str(data.get("include_nested_packages"))

    return DiscoveryConfig(
        max_depth=_as_int(data.get("max_depth"), defaults.max_depth),
        ignore_patterns=_as_str_list(data.get("ignore_patterns"), defaults.ignore_patterns),
        denylist_paths=_as_str_list(data.get("denylist_paths")),
        root_markers=_as_str_list(data.get("root_markers"), defaults.root_markers),
        monorepo_markers=_as_str_list(data.get("monorepo_markers"), defaults.monorepo_markers),
        lockfiles_as_strong=_bool_or(data.get("lockfiles_as_strong"), defaults.lockfiles_as_strong),
        min_code_files_to_consider=_as_int(
            data.get("min_code_files_to_consider"), defaults.min_code_files_to_consider
        ),
        code_file_extensions=[
            ext.lower()
            for ext in _as_str_list(data.get("code_file_extensions"), defaults.code_file_extensions)
        ],
        stop_at_vcs_root=_bool_or(data.get("stop_at_vcs_root"), defaults.stop_at_vcs_root),
        include_nested_packages=include_nested or defaults.include_nested_packages,
        stop_at_node_package_root=_bool_or(
            data.get("stop_at_node_package_root"), defaults.stop_at_node_package_root
        ),
        leaf_code_directories=_bool_or(
            data.get("leaf_code_directories"), defaults.leaf_code_directories
        ),
        skip_hidden_directories=_bool_or(
            data.get("skip_hidden_directories"), defaults.skip_hidden_directories
        ),
        concurrency=_as_int(data.get("concurrency"), defaults.concurrency),
        ignore=ignore,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


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


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any, default: Sequence[str] | None = None) -> List[str]:
    if value is None:
        return list(default or [])
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return list(default or [])
