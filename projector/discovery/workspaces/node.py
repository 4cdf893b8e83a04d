"""Workspace parsers for the JavaScript package managers."""

from __future__ import annotations

import json
from typing import Any, List, Optional

import yaml

from .base import WorkspaceParseError, WorkspaceParser
from ...models import WorkspaceGlob

_LERNA_DEFAULT_PACKAGES = ["packages/*"]


def _load_json(text: str, marker: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise WorkspaceParseError(f"{marker}: {exc}") from exc


def _string_items(value: Any) -> List[str]:
    return [item for item in value if isinstance(item, str) and item.strip()]


class PnpmWorkspaceParser(WorkspaceParser):
    """Reads the ``packages:`` sequence from pnpm-workspace.yaml."""

    marker = "pnpm-workspace.yaml"

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise WorkspaceParseError(f"{self.marker}: {exc}") from exc
        if data is None:
            return []
        if not isinstance(data, dict):
            raise WorkspaceParseError(f"{self.marker} must contain a mapping")
        packages = data.get("packages")
        if packages is None:
            return []
        if not isinstance(packages, list):
            raise WorkspaceParseError(f"{self.marker}: packages must be a list")
        return [self.glob(item) for item in _string_items(packages)]


class PackageJsonWorkspaceParser(WorkspaceParser):
    """Reads the npm/yarn ``workspaces`` field (list or ``{packages: [...]}``)."""

    marker = "package.json"
    implicit = False

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        data = _load_json(text, self.marker)
        if not isinstance(data, dict):
            raise WorkspaceParseError(f"{self.marker} must contain an object")
        workspaces = data.get("workspaces")
        if isinstance(workspaces, list):
            return [self.glob(item) for item in _string_items(workspaces)]
        if isinstance(workspaces, dict) and isinstance(workspaces.get("packages"), list):
            return [self.glob(item) for item in _string_items(workspaces["packages"])]
        return None


class LernaParser(WorkspaceParser):
    """Reads lerna.json ``packages``, defaulting to ``packages/*``."""

    marker = "lerna.json"

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        data = _load_json(text, self.marker) if text.strip() else {}
        if not isinstance(data, dict):
            raise WorkspaceParseError(f"{self.marker} must contain an object")
        packages = data.get("packages")
        if not isinstance(packages, list):
            packages = _LERNA_DEFAULT_PACKAGES
        return [self.glob(item) for item in _string_items(packages)]
