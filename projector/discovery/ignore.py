"""Ignore rules and denylist matching applied during directory traversal."""

from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Pattern, Sequence

from ..config import DiscoveryConfig
from ..logging import get_logger
from ..models import ProjectDirectory

_GLOB_CHARS = frozenset("*?[")

logger = get_logger("discovery.ignore")


def has_magic(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from configuration or a .projectorignore file."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool = True) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        target = rel_path
        if self.anchored or self.has_slash:
            if fnmatchcase(target, self.pattern):
                return True
            if "**" in self.pattern and PurePosixPath(target).match(self.pattern):
                return True
            return target.startswith(f"{self.pattern}/")

        for part in target.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    if pattern.startswith("./"):
        pattern = pattern[2:]
    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    has_slash = "/" in pattern
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash=has_slash,
    )


def parse_ignore_file(text: str) -> List[IgnoreRule]:
    """Parse .projectorignore content: comments, blank lines and ``!`` negation."""
    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, rules: Sequence[IgnoreRule], is_dir: bool = True) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def glob_to_regex(pattern: str) -> str:
    """Translate a path glob into an unanchored regex body.

    ``**/`` matches zero or more whole segments, a bare ``**`` crosses path
    separators, ``*`` and ``?`` stay within one segment and ``[...]`` classes
    pass through. An unterminated class is left raw so ``re`` rejects it.
    """
    parts: List[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            end = pattern.find("]", index + 1)
            if end == -1:
                parts.append(pattern[index:])
                break
            body = pattern[index + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            index = end + 1
            continue
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


def compile_glob(pattern: str) -> Optional[Pattern[str]]:
    """Compile a relative path glob for ``fullmatch`` against POSIX paths."""
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error:
        return None


def compile_denylist_pattern(pattern: str) -> Optional[Pattern[str]]:
    """Compile a denylist glob into a regex for ``match`` against full paths.

    Absolute patterns are anchored at the start of the path; relative ones
    may begin at any segment boundary. Either must end on a segment boundary,
    so ``**/cache`` denies ``/work/cache`` but not ``/work/cache_old``.
    Returns None when the result is not a valid regex.
    """
    body = glob_to_regex(pattern)
    prefix = "" if pattern.startswith("/") else "(?:.*/)?"
    try:
        return re.compile(f"{prefix}{body}(?:/|$)")
    except re.error:
        return None


class Denylist:
    """Path patterns that always exclude a directory, failing open on bad entries."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self._substrings: List[str] = []
        self._regexes: List[Pattern[str]] = []
        for raw in patterns:
            pattern = raw.strip()
            if not pattern:
                continue
            if not has_magic(pattern):
                self._substrings.append(pattern)
                continue
            compiled = compile_denylist_pattern(pattern)
            if compiled is None:
                logger.warning("Ignoring malformed denylist pattern %r", raw)
                continue
            self._regexes.append(compiled)

    def __bool__(self) -> bool:
        return bool(self._substrings or self._regexes)

    def matches(self, path: str) -> bool:
        normalised = path.replace("\\", "/")
        if any(fragment in normalised for fragment in self._substrings):
            return True
        return any(regex.match(normalised) for regex in self._regexes)


class IgnoreMatcher:
    """Decides which directories are skipped and which projects are hidden."""

    def __init__(
        self,
        config: DiscoveryConfig,
        extra_patterns: Sequence[str] = (),
    ) -> None:
        self._config = config
        self._name_patterns = list(config.ignore_patterns) + list(extra_patterns)
        self._directory_names = set(config.ignore.directories)
        self._rules: List[IgnoreRule] = []
        for pattern in config.ignore.patterns:
            negate = pattern.startswith("!")
            rule = build_ignore_rule(pattern[1:] if negate else pattern, negate=negate)
            if rule is not None:
                self._rules.append(rule)
        self.denylist = Denylist(config.denylist_paths)

    def load_ignore_file(self, root: Path) -> None:
        """Append rules from the ignore file at the scan root, if enabled and present."""
        if not self._config.ignore.use_ignore_files:
            return
        path = root / self._config.ignore.ignore_file_name
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read ignore file %s: %s", path, exc)
            return
        self._rules.extend(parse_ignore_file(text))

    def should_ignore_directory(self, name: str, rel_path: str) -> bool:
        if self._config.skip_hidden_directories and name.startswith("."):
            return True
        if name in self._directory_names:
            return True
        for pattern in self._name_patterns:
            if name == pattern or (has_magic(pattern) and fnmatchcase(name, pattern)):
                return True
        return should_ignore(rel_path, self._rules, is_dir=True)

    def should_ignore_project(self, project: ProjectDirectory) -> bool:
        ignored = False
        for pattern in self._config.ignore.patterns:
            negate = pattern.startswith("!")
            body = pattern[1:] if negate else pattern
            if not body:
                continue
            if has_magic(body):
                matched = fnmatchcase(project.name, body) or fnmatchcase(project.path, body)
            else:
                matched = project.name == body or project.path == body
            if matched:
                ignored = not negate
        return ignored


__all__ = [
    "Denylist",
    "IgnoreMatcher",
    "IgnoreRule",
    "build_ignore_rule",
    "compile_glob",
    "compile_denylist_pattern",
    "glob_to_regex",
    "has_magic",
    "parse_ignore_file",
    "should_ignore",
]
