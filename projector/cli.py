"""CLI entrypoints for projector commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, ConfigError, DiscoveryConfig, default_config_path, load_config
from .discovery import ProjectScanner, ScanError
from .logging import configure_logging, get_logger
from .models import ScanOptions

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help=(
            f"Configuration file or directory holding {CONFIG_FILENAME} "
            "(defaults to the scanned directory, then the user config)."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projector",
        description="Discover project roots and monorepo members under a directory.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="List project roots found under a directory.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_config_option(scan_parser)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to scan (defaults to current directory).",
    )
    scan_parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum depth below the scanned directory to inspect.",
    )
    scan_parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Additional directory name pattern to skip (repeatable).",
    )
    scan_parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Descend into symlinked directories (cycles are still detected).",
    )
    scan_parser.add_argument(
        "--json",
        action="store_true",
        help="Print discovered projects as JSON records.",
    )

    explain_parser = subparsers.add_parser(
        "explain",
        help="Show the signals and score behind one directory's classification.",
    )
    _add_verbose_option(explain_parser, suppress_default=True)
    _add_config_option(explain_parser)
    explain_parser.add_argument("path", help="Directory to classify.")

    return parser


def _load_config(config: str | None, target: Path) -> DiscoveryConfig:
    if config is not None:
        return load_config(Path(config))
    if (target / CONFIG_FILENAME).is_file():
        return load_config(target)
    return load_config(default_config_path())


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for projector commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    target = Path(args.path).expanduser()
    try:
        config = _load_config(args.config, target)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    scanner = ProjectScanner(config)

    if args.command == "scan":
        options = ScanOptions(
            max_depth=args.max_depth,
            ignore_patterns=list(args.ignore),
            follow_symlinks=bool(args.follow_symlinks),
        )
        try:
            projects = asyncio.run(scanner.scan(target, options))
        except ScanError as exc:
            parser.exit(1, f"projector scan failed: {exc}\n")
        logger.info("Found %d project(s) under %s", len(projects), target)
        if args.json:
            print(json.dumps([project.to_dict() for project in projects], indent=2))
        else:
            for project in projects:
                print(_relativize(Path(project.path)))
    elif args.command == "explain":
        if not target.is_dir():
            parser.exit(1, f"{target} is not a directory\n")
        signals, result = scanner.explain(target)
        if not signals.readable:
            parser.exit(1, f"Cannot read {target}: {signals.error}\n")
        print(f"path: {target.resolve()}")
        print(f"root: {result.is_root} ({result.accepted_by or 'rejected'})")
        print(f"score: {result.score}")
        print(f"monorepo: {result.is_monorepo}")
        print(f"manifests: {', '.join(sorted(signals.matched_manifests)) or '-'}")
        print(f"lockfiles: {', '.join(sorted(signals.matched_lockfiles)) or '-'}")
        print(f"monorepo markers: {', '.join(sorted(signals.matched_monorepo_markers)) or '-'}")
        print(f"vcs marker: {signals.has_vcs_marker}")
        print(f"docs first: {signals.has_docs_first}")
        print(f"structure hints: {signals.has_structure_hints}")
        print(f"code files: {signals.code_file_count}")
        print(f"negative only: {signals.is_negative_only}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
