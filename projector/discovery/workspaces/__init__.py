"""Workspace declaration parsers and member resolution for monorepo roots."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from importlib import metadata
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence

from .base import WorkspaceParseError, WorkspaceParser
from .cargo import CargoWorkspaceParser
from .go import GoWorkParser
from .jvm import GradleSettingsParser, MavenModulesParser
from .node import LernaParser, PackageJsonWorkspaceParser, PnpmWorkspaceParser
from ...config import VCS_MARKER
from ...logging import get_logger
from ...models import PathSignals, WorkspaceGlob
from ..ignore import compile_glob, has_magic

_ENTRY_POINT_GROUP = "projector.workspaces"

_BUILTIN_FACTORIES: List[Callable[[], WorkspaceParser]] = [
    PnpmWorkspaceParser,
    PackageJsonWorkspaceParser,
    LernaParser,
    GoWorkParser,
    CargoWorkspaceParser,
    MavenModulesParser,
    lambda: GradleSettingsParser("settings.gradle"),
    lambda: GradleSettingsParser("settings.gradle.kts"),
]

logger = get_logger("discovery.workspaces")


def discover_parsers() -> Dict[str, WorkspaceParser]:
    """Return workspace parsers keyed by marker file name.

    Built-in parsers come first; parsers registered under the
    ``projector.workspaces`` entry point group are added for markers the
    built-ins do not claim.
    """
    parsers: Dict[str, WorkspaceParser] = {}
    for factory in _BUILTIN_FACTORIES:
        parser = factory()
        parsers.setdefault(parser.marker, parser)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to load workspace parser '{entry.name}': {exc}") from exc
        parser = _coerce_parser(loaded)
        parsers.setdefault(parser.marker, parser)
    return parsers


def _coerce_parser(obj: object) -> WorkspaceParser:
    if isinstance(obj, WorkspaceParser):
        return obj
    if isinstance(obj, type) and issubclass(obj, WorkspaceParser):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, WorkspaceParser):
            return instance
    raise TypeError("Workspace parser entry point must be a WorkspaceParser subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class WorkspaceGlobResolver:
    """Turns a monorepo's marker files into member globs relative to it."""

    def __init__(self, parsers: Optional[Dict[str, WorkspaceParser]] = None) -> None:
        self.parsers = parsers if parsers is not None else discover_parsers()

    def workspace_manifests(self) -> List[str]:
        """Marker names whose content must be read to know if they declare members."""
        return sorted(name for name, parser in self.parsers.items() if not parser.implicit)

    def declares_workspace(self, dir_path: Path, marker: str) -> bool:
        """Return True when ``marker`` in ``dir_path`` carries a workspace declaration."""
        parser = self.parsers.get(marker)
        if parser is None:
            return False
        try:
            return parser.parse(_read_text(dir_path / marker)) is not None
        except (OSError, UnicodeDecodeError, WorkspaceParseError) as exc:
            logger.warning(
                "Ignoring malformed workspace declaration %s: %s",
                dir_path / marker,
                exc,
            )
            return False

    def resolve_globs(self, dir_path: Path, signals: PathSignals) -> List[WorkspaceGlob]:
        """Collect member globs from every monorepo marker found in ``dir_path``.

        Malformed declarations contribute nothing and are reported as
        warnings; the remaining markers are still honoured.
        """
        globs: List[WorkspaceGlob] = []
        seen: set[WorkspaceGlob] = set()
        for marker in sorted(signals.matched_monorepo_markers):
            parser = self.parsers.get(marker)
            if parser is None:
                logger.debug("No workspace parser for marker %s in %s", marker, dir_path)
                continue
            try:
                declared = parser.parse(_read_text(dir_path / marker))
            except (OSError, UnicodeDecodeError, WorkspaceParseError) as exc:
                logger.warning(
                    "Ignoring malformed workspace declaration %s: %s",
                    dir_path / marker,
                    exc,
                )
                continue
            for glob in declared or []:
                if glob not in seen:
                    seen.add(glob)
                    globs.append(glob)
        return globs


MemberFilter = Callable[[Path], bool]


def expand_members(
    dir_path: Path,
    globs: Sequence[WorkspaceGlob],
    prune: Optional[MemberFilter] = None,
) -> List[Path]:
    """Resolve member globs to existing directories inside ``dir_path``.

    Exact entries name one directory. Glob entries are matched while walking
    the monorepo's subtree; ``prune`` returns True for directories that must
    be neither matched nor entered, and directories holding a ``.git`` marker
    are matched but never entered. A recursive (``**``) match nested beneath
    another member is dropped. Negated entries remove matches. Members that
    would leave ``dir_path`` and the directory itself are dropped.
    """
    exclusions = [glob.pattern for glob in globs if glob.negated]
    members: Dict[str, Path] = {}
    recursive: set[str] = set()

    for glob in globs:
        if glob.negated:
            continue
        relative = _contained(glob.pattern)
        if relative is None:
            logger.debug("Skipping workspace member %r outside %s", glob.pattern, dir_path)
            continue
        if relative == ".":
            continue

        if glob.exact or not has_magic(relative):
            candidate = dir_path / relative
            if candidate.is_dir():
                members.setdefault(relative, candidate)
            continue

        pattern = compile_glob(relative)
        if pattern is None:
            logger.warning("Ignoring invalid workspace glob %r in %s", glob.pattern, dir_path)
            continue
        is_recursive = "**" in relative
        for rel in _walk_matches(dir_path, relative, pattern, prune):
            members.setdefault(rel, dir_path / rel)
            if is_recursive:
                recursive.add(rel)

    return [
        path
        for rel, path in sorted(members.items(), key=lambda item: PurePosixPath(item[0]).parts)
        if not _excluded(rel, exclusions)
        and not (rel in recursive and _nested_in(rel, members))
    ]


def _walk_matches(
    dir_path: Path,
    relative: str,
    pattern: Pattern[str],
    prune: Optional[MemberFilter],
) -> List[str]:
    segments = PurePosixPath(relative).parts
    literal: List[str] = []
    for segment in segments:
        if has_magic(segment):
            break
        literal.append(segment)
    max_depth = None if "**" in relative else len(segments)

    start_rel = "/".join(literal)
    start = dir_path.joinpath(*literal)
    if not start.is_dir() or (start_rel and _vcs_boundary(start)):
        return []

    matches: List[str] = []
    pending = [(start_rel, start)]
    while pending:
        rel, current = pending.pop()
        try:
            with os.scandir(current) as iterator:
                children = sorted(
                    (entry.name, entry.is_symlink())
                    for entry in iterator
                    if _entry_is_dir(entry)
                )
        except OSError as exc:
            logger.debug("Cannot list %s while expanding %r: %s", current, relative, exc)
            continue
        for name, is_symlink in children:
            child_rel = f"{rel}/{name}" if rel else name
            child = current / name
            if prune is not None and prune(child):
                continue
            if pattern.fullmatch(child_rel):
                matches.append(child_rel)
            depth = len(PurePosixPath(child_rel).parts)
            if is_symlink or (max_depth is not None and depth >= max_depth):
                continue
            if _vcs_boundary(child):
                continue
            pending.append((child_rel, child))
    return matches


def _entry_is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _vcs_boundary(path: Path) -> bool:
    return os.path.lexists(path / VCS_MARKER)


def _nested_in(rel_path: str, members: Dict[str, Path]) -> bool:
    parents = PurePosixPath(rel_path).parents
    return any(parent.as_posix() in members for parent in parents if parent.as_posix() != ".")


def _contained(pattern: str) -> Optional[str]:
    if not pattern or pattern.startswith("/") or os.path.isabs(pattern):
        return None
    normalised = PurePosixPath(os.path.normpath(pattern).replace(os.sep, "/")).as_posix()
    if normalised == ".." or normalised.startswith("../"):
        return None
    return normalised


def _excluded(rel_path: str, exclusions: Sequence[str]) -> bool:
    for pattern in exclusions:
        if fnmatchcase(rel_path, pattern) or PurePosixPath(rel_path).match(pattern):
            return True
        if not has_magic(pattern) and rel_path.startswith(f"{pattern}/"):
            return True
    return False


__all__ = [
    "WorkspaceGlobResolver",
    "WorkspaceParseError",
    "WorkspaceParser",
    "discover_parsers",
    "expand_members",
]
