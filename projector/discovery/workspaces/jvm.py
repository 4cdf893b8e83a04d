"""Workspace parsers for Maven and Gradle multi-module builds."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import List, Optional

from .base import WorkspaceParseError, WorkspaceParser
from ...models import WorkspaceGlob

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_INCLUDE = re.compile(r"\binclude\b\s*(\([^)]*\)|[^\n]+)")


def _detect_xml_namespace(element: ET.Element) -> str | None:
    match = re.match(r"\{(.+)}", element.tag)
    return match.group(1) if match else None


class MavenModulesParser(WorkspaceParser):
    """Reads ``<modules><module>`` entries from pom.xml as literal paths."""

    marker = "pom.xml"
    implicit = False

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise WorkspaceParseError(f"{self.marker}: {exc}") from exc

        namespace = _detect_xml_namespace(root)
        modules_tag = f"{{{namespace}}}modules" if namespace else "modules"
        module_tag = f"{{{namespace}}}module" if namespace else "module"

        blocks = list(root.iter(modules_tag))
        if not blocks:
            return None

        globs: List[WorkspaceGlob] = []
        for block in blocks:
            for module in block.findall(module_tag):
                value = (module.text or "").strip()
                if value:
                    globs.append(self.glob(value, exact=True))
        return globs


class GradleSettingsParser(WorkspaceParser):
    """Reads ``include`` statements, mapping ``:app:core`` to ``app/core``."""

    def __init__(self, marker: str = "settings.gradle") -> None:
        self.marker = marker

    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        content = _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", text))
        globs: List[WorkspaceGlob] = []
        for arguments in _INCLUDE.findall(content):
            for part in arguments.split(","):
                project_path = re.sub(r"[\s'\"()]", "", part)
                directory = project_path.lstrip(":").replace(":", "/")
                if directory:
                    globs.append(self.glob(directory, exact=True))
        return globs
