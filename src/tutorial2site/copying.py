"""ディレクトリツリーを差分コピー・整理するユーティリティ。"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .staleness import is_stale

logger = logging.getLogger(__name__)


def copy_tree(source_dir: Path, dest_dir: Path) -> int:
    """``source_dir`` 以下を ``dest_dir`` へ再帰的にミラーします。

    更新の無いファイルはスキップし、コピーしたファイル数を返します。
    出力側にだけ存在するファイルは削除しません (:func:`prune_tree` を参照)。
    """

    dest_dir.mkdir(parents=True, exist_ok=True)
    copied = 0
    for child in sorted(source_dir.iterdir()):
        target = dest_dir / child.name
        if child.is_dir():
            copied += copy_tree(child, target)
            continue
        if not is_stale(child, target):
            continue
        shutil.copyfile(child, target)
        logger.debug("コピーしました: %s -> %s", child, target)
        copied += 1
    return copied


def prune_tree(source_dir: Path, dest_dir: Path) -> list[Path]:
    """入力側に対応するエントリが無い出力ファイル・ディレクトリを削除します。"""

    if not dest_dir.is_dir():
        return []
    removed: list[Path] = []
    for target in sorted(dest_dir.iterdir()):
        counterpart = source_dir / target.name
        if target.is_dir() and not target.is_symlink():
            if counterpart.is_dir():
                removed.extend(prune_tree(counterpart, target))
                continue
            shutil.rmtree(target)
        elif counterpart.is_file():
            continue
        else:
            target.unlink()
        logger.info("対応する入力が無いため削除しました: %s", target)
        removed.append(target)
    return removed
