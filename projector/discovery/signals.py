"""Per-directory evidence collection for root classification."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import VCS_MARKER, DiscoveryConfig
from ..logging import get_logger
from ..models import PathSignals
from .workspaces import WorkspaceGlobResolver

LOCKFILES = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "poetry.lock",
        "Pipfile.lock",
        "uv.lock",
        "Cargo.lock",
        "composer.lock",
        "Gemfile.lock",
    }
)

DOCS_DIRECTORY = "docs"
DOCS_SUFFIXES = (".md", ".mdx")
STRUCTURE_DIRECTORIES = frozenset({"src", "app", "lib", "tests"})

# Vendored, generated and example content that never makes a project on its own.
NEGATIVE_NAMES = frozenset(
    {
        "node_modules",
        "vendor",
        "Pods",
        ".gradle",
        ".terraform",
        ".m2",
        "dist",
        "build",
        "coverage",
        ".nyc_output",
        ".cache",
        ".next",
        ".parcel-cache",
        "out",
        "bin",
        "examples",
        "fixtures",
        "samples",
    }
)

logger = get_logger("discovery.signals")


def _entry_is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def list_directory(dir_path: Path) -> Tuple[List[str], List[str]]:
    """Return sorted ``(files, subdirectories)`` names from one shallow listing."""
    files: List[str] = []
    subdirectories: List[str] = []
    with os.scandir(dir_path) as iterator:
        for entry in iterator:
            if _entry_is_dir(entry):
                subdirectories.append(entry.name)
            else:
                files.append(entry.name)
    return sorted(files), sorted(subdirectories)


class SignalCollector:
    """Gathers root evidence from a single listing of one directory."""

    def __init__(
        self,
        config: DiscoveryConfig,
        resolver: Optional[WorkspaceGlobResolver] = None,
    ) -> None:
        self.config = config
        self.resolver = resolver or WorkspaceGlobResolver()
        self._root_markers = frozenset(config.root_markers)
        self._monorepo_markers = frozenset(config.monorepo_markers)
        self._code_extensions = frozenset(ext.lower() for ext in config.code_file_extensions)
        self._workspace_manifests = frozenset(self.resolver.workspace_manifests())

    def collect(self, dir_path: Path) -> PathSignals:
        try:
            files, subdirectories = list_directory(dir_path)
        except OSError as exc:
            logger.debug("Cannot list %s: %s", dir_path, exc)
            return PathSignals.unreadable(exc.strerror or str(exc))

        entries = sorted(files + subdirectories)
        names = set(entries)

        manifests = {name for name in files if name in self._root_markers}
        lockfiles = {name for name in files if name in LOCKFILES}
        monorepo_markers = {name for name in files if name in self._monorepo_markers}
        for name in self._workspace_manifests.intersection(files) - monorepo_markers:
            if self.resolver.declares_workspace(dir_path, name):
                monorepo_markers.add(name)

        has_docs_first = DOCS_DIRECTORY in subdirectories and self._docs_has_markdown(
            dir_path / DOCS_DIRECTORY
        )
        code_file_count = sum(
            1 for name in files if os.path.splitext(name)[1].lower() in self._code_extensions
        )
        has_vcs_marker = VCS_MARKER in names

        positive = bool(manifests or lockfiles or monorepo_markers or has_docs_first or has_vcs_marker)
        is_negative_only = bool(entries) and not positive and names <= NEGATIVE_NAMES

        return PathSignals(
            has_manifest=bool(manifests),
            matched_manifests=manifests,
            has_lockfile=bool(lockfiles),
            matched_lockfiles=lockfiles,
            has_vcs_marker=has_vcs_marker,
            has_monorepo_marker=bool(monorepo_markers),
            matched_monorepo_markers=monorepo_markers,
            has_docs_first=has_docs_first,
            has_structure_hints=bool(STRUCTURE_DIRECTORIES.intersection(subdirectories)),
            code_file_count=code_file_count,
            is_negative_only=is_negative_only,
            entries=entries,
            files=files,
            subdirectories=subdirectories,
        )

    @staticmethod
    def _docs_has_markdown(docs_path: Path) -> bool:
        try:
            with os.scandir(docs_path) as iterator:
                return any(entry.name.lower().endswith(DOCS_SUFFIXES) for entry in iterator)
        except OSError:
            return False


__all__ = ["LOCKFILES", "NEGATIVE_NAMES", "SignalCollector", "list_directory"]
