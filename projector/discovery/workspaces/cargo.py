"""Workspace parser for Cargo ``[workspace]`` tables."""

from __future__ import annotations

import tomllib
from typing import List, Optional

from .base import WorkspaceParseError, WorkspaceParser
from ...models import WorkspaceGlob


class CargoWorkspaceParser(WorkspaceParser):
    """Reads ``[workspace].members`` globs and ``exclude`` paths from Cargo.toml."""

    marker = "Cargo.toml"
    implicit = False

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise WorkspaceParseError(f"{self.marker}: {exc}") from exc

        workspace = data.get("workspace")
        if not isinstance(workspace, dict):
            return None

        members = workspace.get("members") or []
        excluded = workspace.get("exclude") or []
        if not isinstance(members, list) or not isinstance(excluded, list):
            raise WorkspaceParseError(f"{self.marker}: workspace members must be arrays")

        globs = [self.glob(item) for item in members if isinstance(item, str) and item.strip()]
        for item in excluded:
            if isinstance(item, str) and item.strip():
                globs.append(self.glob(f"!{item}"))
        return globs
