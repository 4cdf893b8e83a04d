"""Base classes for workspace declaration parsers."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ...models import WorkspaceGlob


class WorkspaceParseError(ValueError):
    """Raised when a workspace declaration file cannot be parsed."""


class WorkspaceParser(ABC):
    """Contract for parsers that read member globs from one marker file.

    ``implicit`` parsers own a file whose mere presence declares a workspace
    (``go.work``, ``pnpm-workspace.yaml``). Non-implicit parsers own an
    ordinary manifest that only sometimes declares one (``package.json``,
    ``Cargo.toml``), so the signal collector reads it before flagging a
    monorepo.
    """

    marker: str = ""
    implicit: bool = True

    @abstractmethod
    def parse(self, text: str) -> Optional[List[WorkspaceGlob]]:
        """Return declared members, or None when the file declares no workspace.

        Raises WorkspaceParseError for content that is not valid in the
        marker's format.
        """

    def glob(self, pattern: str, *, exact: bool = False) -> WorkspaceGlob:
        negated = not exact and pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        return WorkspaceGlob(
            pattern=_normalise(pattern),
            exact=exact,
            negated=negated,
            source=self.marker,
        )


def _normalise(pattern: str) -> str:
    pattern = pattern.strip().replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.rstrip("/") or "."
