"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json

import pytest

from projector.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "scan"])
    assert args.verbose is True
    assert args.command == "scan"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["scan", "--verbose"])
    assert args.verbose is True
    assert args.command == "scan"


def test_cli_scan_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        [
            "scan",
            "work",
            "--max-depth",
            "3",
            "--ignore",
            "legacy*",
            "--ignore",
            "tmp",
            "--follow-symlinks",
            "--json",
        ]
    )
    assert args.path == "work"
    assert args.max_depth == 3
    assert args.ignore == ["legacy*", "tmp"]
    assert args.follow_symlinks is True
    assert args.json is True


def test_cli_explain_requires_path() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["explain"])


def test_scan_prints_json_records(tree_builder, capsys) -> None:
    tree_builder.write({"svc/package.json": "{}"})

    main(["scan", str(tree_builder.path()), "--json", "--config", str(tree_builder.path())])

    records = json.loads(capsys.readouterr().out)
    assert [record["name"] for record in records] == ["svc"]
    assert records[0]["path"] == str(tree_builder.path("svc"))
    assert records[0]["entries"] == ["package.json"]


def test_scan_reads_config_from_scanned_directory(tree_builder, capsys) -> None:
    tree_builder.write(
        {
            ".projector.yml": "include_nested_packages: never\n",
            "mono/package.json": '{"workspaces": ["packages/*"]}',
            "mono/packages/a/package.json": "{}",
        }
    )

    main(["scan", str(tree_builder.path()), "--json"])

    records = json.loads(capsys.readouterr().out)
    assert [record["name"] for record in records] == ["mono"]


def test_scan_missing_directory_exits_with_error(tree_builder, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["scan", str(tree_builder.path("missing")), "--config", str(tree_builder.path())])

    assert excinfo.value.code == 1
    assert "projector scan failed" in capsys.readouterr().err


def test_invalid_config_exits_with_error(tree_builder, capsys) -> None:
    tree_builder.write({"bad.yml": "include_nested_packages: sometimes\n"})

    with pytest.raises(SystemExit) as excinfo:
        main(["scan", str(tree_builder.path()), "--config", str(tree_builder.path("bad.yml"))])

    assert excinfo.value.code == 1
    assert "include_nested_packages" in capsys.readouterr().err


def test_explain_reports_classification(tree_builder, capsys) -> None:
    tree_builder.write({"docs/index.md": "# Docs\n"})

    main(["explain", str(tree_builder.path()), "--config", str(tree_builder.path())])

    out = capsys.readouterr().out
    assert "root: True (docs-first)" in out
    assert "score: 50" in out
    assert "docs first: True" in out
