"""チュートリアル群を静的サイトへ変換する中核オーケストレーター。"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from jinja2 import TemplateError

from .config import BuildConfig
from .copying import copy_tree, prune_tree
from .rendering import (
    IndexRenderer,
    PageRenderer,
    RenderToolkit,
    load_shared_resources,
)


@dataclass(slots=True)
class BuildResult:
    rendered: list[str] = field(default_factory=list)
    fresh: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    copied_files: int = 0
    index_written: bool = False
    index_error: str | None = None
    pruned: list[Path] = field(default_factory=list)

    @property
    def writes(self) -> int:
        """このビルドで書き込んだファイル数。"""

        return len(self.rendered) + self.copied_files + (1 if self.index_written else 0)


class TutorialSiteBuilder:
    """目次・共有アセット・各チュートリアルの生成を統括する高レベルパイプライン。"""

    def __init__(self, config: BuildConfig, toolkit: RenderToolkit | None = None) -> None:
        self.config = config
        self.toolkit = toolkit or RenderToolkit.from_config(config)
        self._logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    def build(self) -> BuildResult:
        config = self.config
        result = BuildResult()
        shared = load_shared_resources(config, self.toolkit)
        config.dest_root.mkdir(parents=True, exist_ok=True)

        self._render_index(IndexRenderer(config, self.toolkit, shared), result)

        for name in config.layout.reserved_dirs:
            asset_dir = config.source_root / name
            if asset_dir.is_dir():
                result.copied_files += copy_tree(asset_dir, config.dest_root / name)

        pages = PageRenderer(config, self.toolkit, shared)
        units = list(self._discover_unit_dirs(config.source_root))
        self._logger.info("チュートリアル候補を %d 件検出しました。", len(units))
        for index, unit_dir in enumerate(units, start=1):
            name = unit_dir.name
            try:
                outcome = pages.render(unit_dir, config.dest_root / name)
            except (OSError, ValueError, TemplateError) as exc:
                result.failed[name] = str(exc)
                self._logger.error(
                    "チュートリアルの生成に失敗しました (%d/%d): %s (%s)",
                    index,
                    len(units),
                    name,
                    exc,
                    exc_info=exc,
                )
                continue
            if outcome == "rendered":
                result.rendered.append(name)
            elif outcome == "fresh":
                result.fresh.append(name)
            else:
                result.skipped.append(name)
            self._logger.debug("処理済み (%d/%d): %s -> %s", index, len(units), name, outcome)

        if config.prune:
            result.pruned = self._prune()

        if result.failed:
            samples = ", ".join(sorted(result.failed)[:3])
            self._logger.warning(
                "生成に失敗したチュートリアルが %d 件あります。サンプル: %s",
                len(result.failed),
                samples,
            )
        self._logger.info(
            "ビルド完了: 生成 %d 件 / 最新 %d 件 / スキップ %d 件 / コピー %d 件",
            len(result.rendered),
            len(result.fresh),
            len(result.skipped),
            result.copied_files,
        )
        return result

    def _render_index(self, renderer: IndexRenderer, result: BuildResult) -> None:
        try:
            result.index_written = renderer.render(self.config.index_source, self.config.index_dest)
        except (OSError, ValueError, TemplateError) as exc:
            result.index_error = str(exc)
            self._logger.error("目次ページの生成に失敗しました: %s", exc, exc_info=exc)

    def _discover_unit_dirs(self, directory: Path) -> Iterable[Path]:
        for path in sorted(directory.iterdir()):
            if path.is_dir() and not self.config.layout.is_reserved(path.name):
                yield path

    def _prune(self) -> list[Path]:
        config = self.config
        layout = config.layout
        removed: list[Path] = []
        for name in layout.reserved_dirs:
            removed.extend(prune_tree(config.source_root / name, config.dest_root / name))
        for target in sorted(config.dest_root.iterdir()):
            if not target.is_dir() or layout.is_reserved(target.name):
                continue
            source_dir = config.source_root / target.name
            if (source_dir / layout.content_file).is_file():
                removed.extend(
                    prune_tree(source_dir / layout.image_dir, target / layout.image_dir)
                )
                continue
            shutil.rmtree(target)
            self._logger.info("入力が無くなったチュートリアルを削除しました: %s", target)
            removed.append(target)
        return removed


def build_site(config: BuildConfig) -> BuildResult:
    builder = TutorialSiteBuilder(config)
    return builder.build()
