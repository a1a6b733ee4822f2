"""tutorial2site ビルドパイプラインの設定モデル群。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

DEFAULT_SOURCE_DIR = Path("src")
DEFAULT_OUTPUT_DIR = Path("docs")


def _default_author() -> dict[str, str]:
    return {"name": "Anonymous", "url": ""}


@dataclass(slots=True)
class SiteLayout:
    """ソースツリー内のファイル名・ディレクトリ名の規約。"""

    content_file: str = "index.md"
    metadata_file: str = "meta.json"
    output_file: str = "index.html"
    image_dir: str = "img"
    index_file: str = "index.html"
    template_file: str = "template.html"
    stylesheet_file: str = "shared.css"
    reserved_dirs: Sequence[str] = ("img", "lib")

    def is_reserved(self, name: str) -> bool:
        return name in self.reserved_dirs


@dataclass(slots=True)
class MarkdownConfig:
    """Markdown 変換の設定。"""

    header_id_prefix: str = "sec-"
    parse_image_dimensions: bool = True
    autolink_bare_urls: bool = True
    strikethrough: bool = True
    tables: bool = True
    table_class: str = "table"


@dataclass(slots=True)
class HighlightConfig:
    """コードブロックのシンタックスハイライト設定。"""

    no_highlight: str = "nohighlight"
    fallback_language: str = "markup"
    style: str = "default"
    css_selector: str = 'pre[class*="language-"]'


@dataclass(slots=True)
class MinifyConfig:
    """HTML 圧縮の設定。"""

    collapse_whitespace: bool = True
    minify_css: bool = True
    minify_js: bool = True
    remove_comments: bool = True


@dataclass(slots=True)
class BuildConfig:
    """サイト生成全体を束ねる設定。"""

    source_root: Path
    dest_root: Path
    layout: SiteLayout = field(default_factory=SiteLayout)
    markdown: MarkdownConfig = field(default_factory=MarkdownConfig)
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    minify: MinifyConfig = field(default_factory=MinifyConfig)
    default_title: str = "Untitled"
    default_subtitle: str = (
        "Add a meta.json file to this tutorial to set its title and subtitle"
    )
    default_author: Mapping[str, str] = field(default_factory=_default_author)
    strict_sources: bool = False
    prune: bool = False

    @property
    def template_path(self) -> Path:
        return self.source_root / self.layout.template_file

    @property
    def stylesheet_path(self) -> Path:
        return self.source_root / self.layout.stylesheet_file

    @property
    def index_source(self) -> Path:
        return self.source_root / self.layout.index_file

    @property
    def index_dest(self) -> Path:
        return self.dest_root / self.layout.index_file

    @classmethod
    def from_args(
        cls,
        source_root: Path | None = None,
        dest_root: Path | None = None,
        *,
        strict_sources: bool = False,
        prune: bool = False,
        markdown_overrides: Mapping[str, Any] | None = None,
        highlight_overrides: Mapping[str, Any] | None = None,
    ) -> "BuildConfig":
        markdown_config = MarkdownConfig(**(dict(markdown_overrides) if markdown_overrides else {}))
        highlight_config = HighlightConfig(**(dict(highlight_overrides) if highlight_overrides else {}))
        return cls(
            source_root=source_root if source_root is not None else DEFAULT_SOURCE_DIR,
            dest_root=dest_root if dest_root is not None else DEFAULT_OUTPUT_DIR,
            markdown=markdown_config,
            highlight=highlight_config,
            strict_sources=strict_sources,
            prune=prune,
        )
