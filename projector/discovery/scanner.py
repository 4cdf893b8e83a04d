"""Project root discovery across a directory tree."""

from __future__ import annotations

import asyncio
import functools
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..config import DiscoveryConfig
from ..logging import get_logger
from ..models import PathSignals, ProjectDirectory, ScanOptions, ScoreResult
from .ignore import IgnoreMatcher
from .scoring import RootScoringEngine
from .signals import NEGATIVE_NAMES, SignalCollector
from .workspaces import WorkspaceGlobResolver, expand_members

logger = get_logger("discovery.scanner")


class ScanError(RuntimeError):
    """Raised when the scan root itself cannot be read."""


@dataclass
class _Visit:
    path: Path
    depth: int
    is_scan_root: bool = False


@dataclass
class _TraversalState:
    """Mutable state owned by one ``scan`` call."""

    visited_real_paths: Set[str] = field(default_factory=set)
    results: List[ProjectDirectory] = field(default_factory=list)

    def claim(self, real_path: str) -> bool:
        """Mark ``real_path`` visited, returning False if another branch got there first."""
        if real_path in self.visited_real_paths:
            return False
        self.visited_real_paths.add(real_path)
        return True


@dataclass
class _ScanContext:
    root: Path
    max_depth: int
    follow_symlinks: bool
    matcher: IgnoreMatcher
    semaphore: asyncio.Semaphore
    state: _TraversalState = field(default_factory=_TraversalState)


def _resolve(path: Path) -> Tuple[bool, str]:
    return os.path.islink(path), os.path.realpath(path)


class ProjectScanner:
    """Walks a tree top-down and emits one record per project root.

    Directories are processed shallowest depth first. Every directory at the
    current depth is resolved and claimed against the visited set in sorted
    order before its listing is awaited, so the set of emitted paths does not
    depend on how the concurrent filesystem calls interleave.
    """

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        *,
        resolver: Optional[WorkspaceGlobResolver] = None,
    ) -> None:
        self.config = config or DiscoveryConfig()
        self.resolver = resolver or WorkspaceGlobResolver()
        self.collector = SignalCollector(self.config, self.resolver)
        self.scorer = RootScoringEngine(self.config)

    async def scan(
        self, root: str | Path, options: Optional[ScanOptions] = None
    ) -> List[ProjectDirectory]:
        """Return the project roots found under ``root``.

        Raises ScanError when ``root`` cannot be listed. Every other failure
        only removes the affected directory and its subtree from the result.
        """
        options = options or ScanOptions()
        root_path = Path(os.path.abspath(os.path.expanduser(str(root))))
        max_depth = self.config.max_depth if options.max_depth is None else options.max_depth

        matcher = IgnoreMatcher(self.config, options.ignore_patterns)
        context = _ScanContext(
            root=root_path,
            max_depth=max_depth,
            follow_symlinks=options.follow_symlinks,
            matcher=matcher,
            semaphore=asyncio.Semaphore(self.config.concurrency),
        )
        await self._io(context, matcher.load_ignore_file, root_path)
        logger.debug("Scanning %s (max_depth=%d)", root_path, max_depth)

        pending: Dict[int, List[_Visit]] = {0: [_Visit(root_path, 0, is_scan_root=True)]}
        while pending:
            depth = min(pending)
            batch = sorted(pending.pop(depth), key=lambda visit: visit.path.parts)
            admitted = await self._admit(context, batch)
            outcomes = await asyncio.gather(*(self._visit(context, visit) for visit in admitted))
            for record, follow_ups in outcomes:
                if record is not None:
                    context.state.results.append(record)
                for follow_up in follow_ups:
                    pending.setdefault(follow_up.depth, []).append(follow_up)

        projects = [
            project
            for project in context.state.results
            if not matcher.should_ignore_project(project)
        ]
        projects.sort(key=functools.partial(_result_order, root_path))
        logger.debug("Discovered %d project roots under %s", len(projects), root_path)
        return projects

    def explain(self, path: str | Path) -> Tuple[PathSignals, ScoreResult]:
        """Collect and score a single directory without traversing."""
        signals = self.collector.collect(Path(path))
        return signals, self.scorer.score(signals)

    async def _admit(self, context: _ScanContext, batch: List[_Visit]) -> List[_Visit]:
        resolved = await asyncio.gather(*(self._io(context, _resolve, visit.path) for visit in batch))
        admitted: List[_Visit] = []
        for visit, (is_symlink, real_path) in zip(batch, resolved):
            if is_symlink and not context.follow_symlinks and not visit.is_scan_root:
                logger.debug("Skipping symlink %s", visit.path)
                continue
            if not context.state.claim(real_path):
                logger.debug("Skipping %s: %s already visited", visit.path, real_path)
                continue
            if not visit.is_scan_root and context.matcher.should_ignore_directory(
                visit.path.name, _relative(context.root, visit.path)
            ):
                logger.debug("Ignoring %s", visit.path)
                continue
            denylist = context.matcher.denylist
            if denylist and (denylist.matches(real_path) or denylist.matches(str(visit.path))):
                logger.debug("Denylisted %s", visit.path)
                continue
            if visit.depth > context.max_depth:
                logger.debug("Depth limit reached at %s", visit.path)
                continue
            admitted.append(visit)
        return admitted

    async def _visit(
        self, context: _ScanContext, visit: _Visit
    ) -> Tuple[Optional[ProjectDirectory], List[_Visit]]:
        signals = await self._io(context, self.collector.collect, visit.path)
        if not signals.readable:
            if visit.is_scan_root:
                raise ScanError(f"Failed to scan directory {visit.path}: {signals.error}")
            logger.warning("Skipping unreadable directory %s: %s", visit.path, signals.error)
            return None, []

        result = self.scorer.score(signals)
        logger.debug(
            "Classified %s: score=%d root=%s monorepo=%s via=%s",
            visit.path,
            result.score,
            result.is_root,
            result.is_monorepo,
            result.accepted_by,
        )

        if not result.is_root:
            if signals.has_vcs_marker and self.config.stop_at_vcs_root:
                logger.debug("Stopping at VCS boundary %s", visit.path)
                return None, []
            return None, _children(visit, signals)

        record = await self._io(context, _build_record, visit.path, signals)
        mode = self.config.include_nested_packages
        if result.is_monorepo and mode != "never":
            return record, await self._expand_workspace(context, visit, signals)
        if mode == "always" and not self._is_boundary(signals):
            return record, _children(visit, signals)
        return record, []

    async def _expand_workspace(
        self, context: _ScanContext, visit: _Visit, signals: PathSignals
    ) -> List[_Visit]:
        globs = await self._io(context, self.resolver.resolve_globs, visit.path, signals)
        if not globs:
            logger.debug("Monorepo %s declares no usable members", visit.path)
            return []
        prune = functools.partial(_prune_member, context)
        members = await self._io(context, expand_members, visit.path, globs, prune)
        return [
            _Visit(member, visit.depth + len(member.relative_to(visit.path).parts))
            for member in members
        ]

    def _is_boundary(self, signals: PathSignals) -> bool:
        if signals.has_vcs_marker and self.config.stop_at_vcs_root:
            return True
        return self.scorer.node_package_override(signals)

    @staticmethod
    async def _io(context: _ScanContext, func: Callable[..., Any], *args: Any) -> Any:
        async with context.semaphore:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, functools.partial(func, *args))


def _children(visit: _Visit, signals: PathSignals) -> List[_Visit]:
    return [_Visit(visit.path / name, visit.depth + 1) for name in signals.subdirectories]


def _prune_member(context: _ScanContext, path: Path) -> bool:
    """True for directories a workspace glob must neither match nor enter."""
    if path.name in NEGATIVE_NAMES:
        return True
    if context.matcher.should_ignore_directory(path.name, _relative(context.root, path)):
        return True
    denylist = context.matcher.denylist
    return bool(denylist) and denylist.matches(str(path))


def _build_record(path: Path, signals: PathSignals) -> ProjectDirectory:
    try:
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    except OSError as exc:
        logger.warning("Could not stat %s: %s", path, exc)
        modified = datetime.fromtimestamp(0, tz=timezone.utc)
    return ProjectDirectory(
        name=path.name,
        path=str(path),
        has_git_marker=signals.has_vcs_marker,
        last_modified_at=modified,
        entries=list(signals.entries),
    )


def _relative(root: Path, path: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _result_order(root: Path, project: ProjectDirectory) -> Tuple[int, Tuple[str, ...]]:
    path = Path(project.path)
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return len(parts), parts


async def scan(
    root: str | Path,
    options: Optional[ScanOptions] = None,
    config: Optional[DiscoveryConfig] = None,
) -> List[ProjectDirectory]:
    """Discover project roots under ``root`` with a one-off scanner."""
    return await ProjectScanner(config).scan(root, options)


__all__ = ["ProjectScanner", "ScanError", "scan"]
