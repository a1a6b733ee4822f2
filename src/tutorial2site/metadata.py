"""チュートリアルごとのメタデータ (meta.json) を読み込むユーティリティ。"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def load_metadata(path: Path, *, default_title: str, default_subtitle: str) -> dict[str, Any]:
    """メタデータを読み込みます。

    ファイルが無い・JSON として解釈できない・オブジェクトでない場合は
    既定のタイトルとサブタイトルを持つレコードを返し、警告を出力します。
    """

    try:
        raw = path.read_text(encoding="utf-8")
        parsed = json.loads(raw)
    except FileNotFoundError:
        logger.warning("メタデータが見つからないため既定値を使用します: %s", path)
        return {"title": default_title, "subtitle": default_subtitle}
    except (OSError, ValueError) as exc:
        logger.warning("メタデータの読み込みに失敗したため既定値を使用します: %s (%s)", path, exc)
        return {"title": default_title, "subtitle": default_subtitle}
    if not isinstance(parsed, dict):
        logger.warning("メタデータが JSON オブジェクトではないため既定値を使用します: %s", path)
        return {"title": default_title, "subtitle": default_subtitle}
    return parsed


def apply_default_author(metadata: dict[str, Any], default_author: Mapping[str, str]) -> None:
    if not metadata.get("author"):
        metadata["author"] = deepcopy(dict(default_author))


def format_last_edited(path: Path) -> str:
    """ファイルの更新日時を "October 18, 2026" 形式の表示用文字列にします。"""

    modified = datetime.fromtimestamp(path.stat().st_mtime)
    return f"{modified:%B} {modified.day}, {modified.year}"
