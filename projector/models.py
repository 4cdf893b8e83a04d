"""Core data models shared across projector discovery components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set


@dataclass
class PathSignals:
    """Evidence gathered from one shallow listing of a directory.

    Computed fresh for every visit and never persisted. ``entries``, ``files``
    and ``subdirectories`` keep the raw listing so the traversal can descend
    without listing the directory a second time.
    """

    has_manifest: bool = False
    matched_manifests: Set[str] = field(default_factory=set)
    has_lockfile: bool = False
    matched_lockfiles: Set[str] = field(default_factory=set)
    has_vcs_marker: bool = False
    has_monorepo_marker: bool = False
    matched_monorepo_markers: Set[str] = field(default_factory=set)
    has_docs_first: bool = False
    has_structure_hints: bool = False
    code_file_count: int = 0
    is_negative_only: bool = False
    entries: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    subdirectories: List[str] = field(default_factory=list)
    readable: bool = True
    error: Optional[str] = None

    @classmethod
    def unreadable(cls, reason: str) -> "PathSignals":
        """Return the all-false record used for directories that cannot be listed."""
        return cls(readable=False, error=reason)


@dataclass
class ScoreResult:
    """Outcome of classifying a directory from its signals."""

    score: int
    is_root: bool
    is_monorepo: bool
    accepted_by: Optional[str] = None


@dataclass(frozen=True)
class WorkspaceGlob:
    """Member pattern declared by a monorepo marker, relative to the monorepo directory."""

    pattern: str
    exact: bool = False
    negated: bool = False
    source: str = ""


@dataclass
class ProjectDirectory:
    """A discovered project root handed to type detection and analysis."""

    name: str
    path: str
    has_git_marker: bool
    last_modified_at: datetime
    entries: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "has_git_marker": self.has_git_marker,
            "last_modified_at": self.last_modified_at.isoformat(),
            "entries": list(self.entries),
        }


@dataclass
class ScanOptions:
    """Per-call traversal options layered over the discovery configuration."""

    max_depth: Optional[int] = None
    ignore_patterns: List[str] = field(default_factory=list)
    follow_symlinks: bool = False
