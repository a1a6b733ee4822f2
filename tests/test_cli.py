from __future__ import annotations

import json
from pathlib import Path

import pytest

from tutorial2site import cli
from tutorial2site.config import DEFAULT_OUTPUT_DIR, DEFAULT_SOURCE_DIR


def test_parse_args_defaults_to_convention_paths() -> None:
    args = cli.parse_args([])

    assert args.source_root == DEFAULT_SOURCE_DIR
    assert args.dest_root == DEFAULT_OUTPUT_DIR
    assert args.strict_sources is False
    assert args.prune is False
    assert args.watch is False
    assert args.port == 8000


def test_help_states_defaults_are_relative_to_working_directory(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.parse_args(["--help"])

    assert exc.value.code == 0
    assert capsys.readouterr().out.count("カレントディレクトリ基準") == 2


def test_parse_args_collects_flags(tmp_path: Path) -> None:
    args = cli.parse_args(
        [
            "--src",
            str(tmp_path / "in"),
            "--out",
            str(tmp_path / "out"),
            "--strict-sources",
            "--prune",
            "--watch",
            "--port",
            "9001",
        ]
    )

    assert args.source_root == tmp_path / "in"
    assert args.dest_root == tmp_path / "out"
    assert args.strict_sources is True
    assert args.prune is True
    assert args.watch is True
    assert args.port == 9001


def test_main_builds_and_prints_summary(site: tuple[Path, Path], capsys) -> None:
    source, dest = site

    cli.main(["--src", str(source), "--out", str(dest)])

    summary = json.loads(capsys.readouterr().out)
    assert summary["rendered"] == 1
    assert summary["failed"] == 0
    assert summary["index_written"] is True
    assert summary["output"] == str(dest.resolve())
    assert "pruned" not in summary
    assert (dest / "foo" / "index.html").exists()


def test_main_uses_working_directory_conventions(site: tuple[Path, Path], monkeypatch, capsys) -> None:
    source, _ = site
    monkeypatch.chdir(source.parent)
    source.rename(source.parent / "src")

    cli.main([])

    summary = json.loads(capsys.readouterr().out)
    assert summary["rendered"] == 1
    assert (source.parent / "docs" / "foo" / "index.html").exists()


def test_main_exits_with_error_for_missing_template(site: tuple[Path, Path], capsys) -> None:
    source, dest = site
    (source / "template.html").unlink()

    with pytest.raises(SystemExit) as exc:
        cli.main(["--src", str(source), "--out", str(dest)])

    assert exc.value.code == 1
    assert capsys.readouterr().out == ""


def test_main_watch_exits_with_error_for_missing_stylesheet(site: tuple[Path, Path]) -> None:
    source, dest = site
    (source / "shared.css").unlink()

    with pytest.raises(SystemExit) as exc:
        cli.main(["--src", str(source), "--out", str(dest), "--watch", "--port", "8765"])

    assert exc.value.code == 1


def test_main_rejects_missing_source_directory(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--src", str(tmp_path / "missing"), "--out", str(tmp_path / "out")])

    assert exc.value.code == 2
    assert "ソースディレクトリ" in capsys.readouterr().err


def test_main_rejects_invalid_port(site: tuple[Path, Path]) -> None:
    source, dest = site

    with pytest.raises(SystemExit) as exc:
        cli.main(["--src", str(source), "--out", str(dest), "--port", "0"])

    assert exc.value.code == 2
