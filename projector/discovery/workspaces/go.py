"""Workspace parser for Go ``go.work`` files."""

from __future__ import annotations

import re
from typing import List, Optional

from .base import WorkspaceParser
from ...models import WorkspaceGlob

_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_USE_BLOCK = re.compile(r"^[ \t]*use[ \t]*\(([^)]*)\)", re.MULTILINE)
_USE_LINE = re.compile(r"^[ \t]*use[ \t]+([^\s(]\S*)", re.MULTILINE)
_MODULE_VERSION = re.compile(r"^[\w.\-/]+@")


class GoWorkParser(WorkspaceParser):
    """Reads ``use`` directives; each entry is a literal module directory."""

    marker = "go.work"

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        content = _LINE_COMMENT.sub("", text)
        paths: List[str] = []
        for block in _USE_BLOCK.findall(content):
            paths.extend(line.strip() for line in block.splitlines())
        paths.extend(_USE_LINE.findall(content))

        globs: List[WorkspaceGlob] = []
        for raw in paths:
            path = raw.strip().strip("\"`")
            if not path or _MODULE_VERSION.match(path):
                continue
            globs.append(self.glob(path, exact=True))
        return globs
