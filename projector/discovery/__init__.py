"""Project root discovery: signals, scoring, workspace expansion and traversal."""

from __future__ import annotations

from .ignore import Denylist, IgnoreMatcher
from .scanner import ProjectScanner, ScanError, scan
from .scoring import RootScoringEngine
from .signals import SignalCollector
from .workspaces import WorkspaceGlobResolver, expand_members

__all__ = [
    "Denylist",
    "IgnoreMatcher",
    "ProjectScanner",
    "RootScoringEngine",
    "ScanError",
    "SignalCollector",
    "WorkspaceGlobResolver",
    "expand_members",
    "scan",
]
