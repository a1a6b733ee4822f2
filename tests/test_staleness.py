from __future__ import annotations

import os
from pathlib import Path

import pytest

from tutorial2site.staleness import MissingSourceError, any_stale, is_stale

BASE_NS = 1_700_000_000 * 10**9


def _write(path: Path, offset_seconds: int) -> Path:
    path.write_text("x", encoding="utf-8")
    stamp = BASE_NS + offset_seconds * 10**9
    os.utime(path, ns=(stamp, stamp))
    return path


def test_missing_destination_is_stale(tmp_path: Path) -> None:
    source = _write(tmp_path / "a.md", 0)

    assert is_stale(source, tmp_path / "a.html") is True


def test_missing_source_is_not_stale_by_default(tmp_path: Path) -> None:
    assert is_stale(tmp_path / "missing.md", tmp_path / "a.html") is False


def test_missing_source_raises_in_strict_mode(tmp_path: Path) -> None:
    missing = tmp_path / "missing.md"

    with pytest.raises(MissingSourceError) as exc:
        is_stale(missing, tmp_path / "a.html", missing_ok=False)

    assert exc.value.source == missing
    assert isinstance(exc.value, FileNotFoundError)


@pytest.mark.parametrize(
    ("source_offset", "dest_offset", "expected"),
    [(10, 0, True), (0, 10, False), (5, 5, False)],
)
def test_compares_modification_times_strictly(
    tmp_path: Path, source_offset: int, dest_offset: int, expected: bool
) -> None:
    source = _write(tmp_path / "a.md", source_offset)
    dest = _write(tmp_path / "a.html", dest_offset)

    assert is_stale(source, dest) is expected


def test_any_stale_checks_each_dependency(tmp_path: Path) -> None:
    dest = _write(tmp_path / "out.html", 10)
    older = _write(tmp_path / "older.md", 0)
    newer = _write(tmp_path / "newer.md", 20)

    assert any_stale([older, tmp_path / "missing.json"], dest) is False
    assert any_stale([older, newer], dest) is True
