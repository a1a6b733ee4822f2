"""生成物の再ビルド要否を更新日時から判定するユーティリティ。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class MissingSourceError(FileNotFoundError):
    """厳格モードで入力ファイルが存在しない場合に送出される例外。"""

    def __init__(self, source: Path) -> None:
        self.source = source
        super().__init__(f"入力ファイルが見つかりません: {source}")


def is_stale(source: Path, destination: Path, *, missing_ok: bool = True) -> bool:
    """出力ファイルを (再) 生成すべきかどうかを返します。

    入力が存在しない場合、``missing_ok`` が真なら何もしない (False)、
    偽なら :class:`MissingSourceError` を送出します。出力が存在しなければ
    常に True、両方存在する場合は入力の更新日時が出力より厳密に新しいときのみ
    True になります。
    """

    if not source.exists():
        if missing_ok:
            return False
        raise MissingSourceError(source)
    if not destination.exists():
        return True
    return source.stat().st_mtime_ns > destination.stat().st_mtime_ns


def any_stale(sources: Iterable[Path], destination: Path, *, missing_ok: bool = True) -> bool:
    return any(is_stale(source, destination, missing_ok=missing_ok) for source in sources)
