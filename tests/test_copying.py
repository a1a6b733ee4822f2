from __future__ import annotations

import os
from pathlib import Path

from tutorial2site.copying import copy_tree, prune_tree


def _make_tree(root: Path) -> None:
    (root / "nested").mkdir(parents=True)
    (root / "a.png").write_bytes(b"\x89PNG\x00\x01")
    (root / "nested" / "b.svg").write_text("<svg></svg>", encoding="utf-8")


def test_copy_tree_mirrors_files_and_is_idempotent(tmp_path: Path) -> None:
    source = tmp_path / "img"
    dest = tmp_path / "out" / "img"
    _make_tree(source)

    first = copy_tree(source, dest)
    second = copy_tree(source, dest)

    assert first == 2
    assert second == 0
    assert (dest / "a.png").read_bytes() == b"\x89PNG\x00\x01"
    assert (dest / "nested" / "b.svg").read_text(encoding="utf-8") == "<svg></svg>"


def test_copy_tree_recopies_only_newer_files(tmp_path: Path) -> None:
    source = tmp_path / "img"
    dest = tmp_path / "out"
    _make_tree(source)
    copy_tree(source, dest)

    past = 1_600_000_000 * 10**9
    for path in (dest / "a.png", dest / "nested" / "b.svg"):
        os.utime(path, ns=(past, past))
    (source / "a.png").write_bytes(b"changed")
    os.utime(source / "nested" / "b.svg", ns=(past - 10**9, past - 10**9))

    assert copy_tree(source, dest) == 1
    assert (dest / "a.png").read_bytes() == b"changed"


def test_copy_tree_keeps_orphaned_destination_files(tmp_path: Path) -> None:
    source = tmp_path / "img"
    dest = tmp_path / "out"
    _make_tree(source)
    dest.mkdir()
    (dest / "orphan.png").write_bytes(b"old")

    copy_tree(source, dest)

    assert (dest / "orphan.png").exists()


def test_prune_tree_removes_entries_without_source(tmp_path: Path) -> None:
    source = tmp_path / "img"
    dest = tmp_path / "out"
    _make_tree(source)
    copy_tree(source, dest)
    (dest / "orphan.png").write_bytes(b"old")
    (dest / "gone").mkdir()
    (dest / "gone" / "c.png").write_bytes(b"old")
    (dest / "nested" / "stale.svg").write_text("<svg/>", encoding="utf-8")

    removed = prune_tree(source, dest)

    assert set(removed) == {dest / "orphan.png", dest / "gone", dest / "nested" / "stale.svg"}
    assert (dest / "a.png").exists()
    assert (dest / "nested" / "b.svg").exists()
