"""Markdown・テンプレート・ハイライト・圧縮を組み合わせてページを生成するレンダラー。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from jinja2 import ChainableUndefined, Environment, Template
from markupsafe import Markup

from .config import BuildConfig
from .conversion import MarkdownConverter
from .copying import copy_tree
from .highlighting import CodeBlockHighlighter
from .metadata import apply_default_author, format_last_edited, load_metadata
from .minify import HtmlMinifier
from .staleness import any_stale, is_stale

logger = logging.getLogger(__name__)


UnitOutcome = Literal["rendered", "fresh", "skipped"]


class SharedResourceError(RuntimeError):
    """共有テンプレートやスタイルシートを読み込めない場合に送出される例外。"""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"共有リソースを読み込めません: {path} ({reason})")


@dataclass(slots=True)
class RenderToolkit:
    """ビルド中に使い回す変換器群。プロセス全体で一度だけ構築します。"""

    converter: MarkdownConverter
    highlighter: CodeBlockHighlighter
    minifier: HtmlMinifier
    templates: Environment

    @classmethod
    def from_config(cls, config: BuildConfig) -> "RenderToolkit":
        return cls(
            converter=MarkdownConverter(config.markdown),
            highlighter=CodeBlockHighlighter(config.highlight),
            minifier=HtmlMinifier(config.minify),
            templates=Environment(autoescape=True, undefined=ChainableUndefined),
        )


@dataclass(slots=True)
class SharedResources:
    """全ページで共有するテンプレートとスタイルシート。"""

    template_path: Path
    template: Template
    stylesheet_path: Path
    stylesheet: str
    highlight_css: str

    @property
    def dependencies(self) -> tuple[Path, Path]:
        return (self.template_path, self.stylesheet_path)

    def base_context(self) -> dict[str, Any]:
        return {
            "sharedCSS": Markup(self.stylesheet),
            "highlightCSS": Markup(self.highlight_css),
        }


def load_shared_resources(config: BuildConfig, toolkit: RenderToolkit) -> SharedResources:
    """共有テンプレートとスタイルシートを読み込みます。失敗はビルド全体で致命的です。"""

    template_text = _read_shared(config.template_path)
    stylesheet = _read_shared(config.stylesheet_path)
    return SharedResources(
        template_path=config.template_path,
        template=toolkit.templates.from_string(template_text),
        stylesheet_path=config.stylesheet_path,
        stylesheet=stylesheet,
        highlight_css=toolkit.highlighter.stylesheet(),
    )


def _read_shared(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SharedResourceError(path, str(exc)) from exc


class IndexRenderer:
    """目次ページ (index.html) をテンプレートとして処理し圧縮します。"""

    def __init__(self, config: BuildConfig, toolkit: RenderToolkit, shared: SharedResources) -> None:
        self._config = config
        self._toolkit = toolkit
        self._shared = shared

    def render(self, source: Path, destination: Path) -> bool:
        """出力を書き込んだ場合に True を返します。"""

        stale = is_stale(source, destination, missing_ok=not self._config.strict_sources)
        if not stale and source.exists():
            # 共有スタイルシートはページ内に埋め込まれるため依存に含める
            stale = is_stale(self._shared.stylesheet_path, destination)
        if not stale:
            return False
        template = self._toolkit.templates.from_string(source.read_text(encoding="utf-8"))
        merged = template.render(self._shared.base_context())
        destination.write_text(self._toolkit.minifier.minify(merged), encoding="utf-8")
        logger.info("目次ページを出力しました: %s", destination)
        return True


class PageRenderer:
    """チュートリアル 1 件分の Markdown からページを生成します。"""

    def __init__(self, config: BuildConfig, toolkit: RenderToolkit, shared: SharedResources) -> None:
        self._config = config
        self._layout = config.layout
        self._toolkit = toolkit
        self._shared = shared
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def render(self, source_dir: Path, dest_dir: Path) -> UnitOutcome:
        content_path = source_dir / self._layout.content_file
        if not content_path.is_file():
            # コンテンツの無いディレクトリはチュートリアルではない
            return "skipped"

        dest_dir.mkdir(parents=True, exist_ok=True)
        image_dir = source_dir / self._layout.image_dir
        if image_dir.is_dir():
            copy_tree(image_dir, dest_dir / self._layout.image_dir)

        metadata_path = source_dir / self._layout.metadata_file
        output_path = dest_dir / self._layout.output_file
        missing_ok = not self._config.strict_sources
        if not (
            is_stale(content_path, output_path)
            or is_stale(metadata_path, output_path)
            or any_stale(self._shared.dependencies, output_path, missing_ok=missing_ok)
        ):
            return "fresh"

        metadata = load_metadata(
            metadata_path,
            default_title=self._config.default_title,
            default_subtitle=self._config.default_subtitle,
        )
        apply_default_author(metadata, self._config.default_author)
        metadata["lastEdited"] = format_last_edited(content_path)
        metadata["unit"] = source_dir.name

        html = self._toolkit.converter.convert(content_path.read_text(encoding="utf-8"))
        html = self._toolkit.highlighter.highlight_html(html)

        context = dict(metadata)
        context.update(self._shared.base_context())
        context["content"] = Markup(html)
        merged = self._shared.template.render(context)
        output_path.write_text(self._toolkit.minifier.minify(merged), encoding="utf-8")
        self._logger.info("ページを出力しました: %s", output_path)
        return "rendered"
