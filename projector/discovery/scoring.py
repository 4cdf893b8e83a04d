"""Root classification from collected directory signals."""

from __future__ import annotations

from typing import Optional

from ..config import DiscoveryConfig
from ..models import PathSignals, ScoreResult

ROOT_THRESHOLD = 60

MANIFEST_WEIGHT = 100
MONOREPO_WEIGHT = 100
VCS_WITH_MANIFEST_WEIGHT = 50
LOCKFILE_WITH_MANIFEST_WEIGHT = 60
DOCS_FIRST_WEIGHT = 50
STRUCTURE_WITH_CODE_WEIGHT = 30
NEGATIVE_ONLY_WEIGHT = -50

NODE_PACKAGE_MANIFEST = "package.json"

ACCEPTED_BY_SCORE = "score"
ACCEPTED_BY_NODE_PACKAGE = "node-package"
ACCEPTED_BY_DOCS_FIRST = "docs-first"
ACCEPTED_BY_LEAF_CODE = "leaf-code"


class RootScoringEngine:
    """Pure classifier: weighted score OR'd with the explicit acceptance paths.

    The weighted score decides most directories. Three further paths accept a
    directory independently of the score, and ``accepted_by`` records which
    one fired first:

    * ``node-package``: any directory holding a ``package.json`` when
      ``stop_at_node_package_root`` is enabled, whatever the root markers say.
    * ``docs-first``: a top-level ``docs/`` with markdown and nothing else
      needed.
    * ``leaf-code``: a directory without subdirectories that holds at least
      one code file, when ``leaf_code_directories`` is enabled.
    """

    def __init__(self, config: DiscoveryConfig) -> None:
        self.config = config

    def score(self, signals: PathSignals) -> ScoreResult:
        if not signals.readable:
            return ScoreResult(score=0, is_root=False, is_monorepo=False)

        value = self.weighted_score(signals)
        accepted_by = self._accepted_by(signals, value)
        return ScoreResult(
            score=value,
            is_root=accepted_by is not None,
            is_monorepo=signals.has_monorepo_marker,
            accepted_by=accepted_by,
        )

    def weighted_score(self, signals: PathSignals) -> int:
        value = 0
        if signals.has_manifest:
            value += MANIFEST_WEIGHT
        if signals.has_monorepo_marker:
            value += MONOREPO_WEIGHT
        if signals.has_vcs_marker and signals.has_manifest:
            value += VCS_WITH_MANIFEST_WEIGHT
        if signals.has_lockfile and signals.has_manifest and self.config.lockfiles_as_strong:
            value += LOCKFILE_WITH_MANIFEST_WEIGHT
        if signals.has_docs_first:
            value += DOCS_FIRST_WEIGHT
        if (
            signals.has_structure_hints
            and signals.code_file_count >= self.config.min_code_files_to_consider
        ):
            value += STRUCTURE_WITH_CODE_WEIGHT
        if signals.is_negative_only:
            value += NEGATIVE_ONLY_WEIGHT
        return value

    def node_package_override(self, signals: PathSignals) -> bool:
        return self.config.stop_at_node_package_root and NODE_PACKAGE_MANIFEST in signals.files

    def docs_first(self, signals: PathSignals) -> bool:
        return signals.has_docs_first

    def leaf_code(self, signals: PathSignals) -> bool:
        return (
            self.config.leaf_code_directories
            and not signals.subdirectories
            and signals.code_file_count > 0
            and not signals.is_negative_only
        )

    def _accepted_by(self, signals: PathSignals, value: int) -> Optional[str]:
        if value >= ROOT_THRESHOLD:
            return ACCEPTED_BY_SCORE
        if self.node_package_override(signals):
            return ACCEPTED_BY_NODE_PACKAGE
        if self.docs_first(signals):
            return ACCEPTED_BY_DOCS_FIRST
        if self.leaf_code(signals):
            return ACCEPTED_BY_LEAF_CODE
        return None


__all__ = [
    "ACCEPTED_BY_DOCS_FIRST",
    "ACCEPTED_BY_LEAF_CODE",
    "ACCEPTED_BY_NODE_PACKAGE",
    "ACCEPTED_BY_SCORE",
    "ROOT_THRESHOLD",
    "RootScoringEngine",
]
