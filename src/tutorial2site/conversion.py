"""チュートリアル用 Markdown を HTML へ変換するコンバーター。"""

from __future__ import annotations

import xml.etree.ElementTree as etree
from typing import Any, Callable

import markdown
from markdown.extensions import Extension
from markdown.extensions.toc import TocExtension, slugify
from markdown.inlinepatterns import InlineProcessor, SimpleTagInlineProcessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import AtomicString

from .config import MarkdownConfig

# ![alt](src =100x80 "title")  幅・高さは片方を * で省略可能
IMAGE_DIMENSION_RE = (
    r'!\[([^\]]*)\]\(\s*<?([^\s)>]+)>?\s+=([0-9]+(?:px|%|em)?|\*)?x([0-9]+(?:px|%|em)?|\*)?'
    r'(?:\s+(["\'])(.*?)\5)?\s*\)'
)
BARE_URL_RE = r'(?<![\w"\'(<\[=/])((?:https?|ftp)://[^\s<>]*[^\s<>.,;:!?)\]\'"])'
STRIKETHROUGH_RE = r"(~~)(.+?)~~"


class ImageDimensionInlineProcessor(InlineProcessor):
    """``=WxH`` 付きの画像記法を幅・高さ属性付きの ``<img>`` に変換します。"""

    def handleMatch(self, m, data):  # type: ignore[override]
        el = etree.Element("img")
        el.set("src", m.group(2))
        el.set("alt", m.group(1))
        width, height = m.group(3), m.group(4)
        if width and width != "*":
            el.set("width", width)
        if height and height != "*":
            el.set("height", height)
        if m.group(6):
            el.set("title", m.group(6))
        return el, m.start(0), m.end(0)


class BareUrlInlineProcessor(InlineProcessor):
    """本文中に裸で書かれた URL をリンクにします。"""

    # リンク文字列の中では二重リンクにしない
    ANCESTOR_EXCLUDES = ("a",)

    def handleMatch(self, m, data):  # type: ignore[override]
        url = m.group(1)
        el = etree.Element("a")
        el.set("href", url)
        el.text = AtomicString(url)
        return el, m.start(0), m.end(0)


class TableClassTreeprocessor(Treeprocessor):
    """生成されたすべての ``<table>`` にスタイル用クラスを付与します。"""

    def __init__(self, md: markdown.Markdown, css_class: str) -> None:
        super().__init__(md)
        self._css_class = css_class

    def run(self, root: etree.Element) -> None:
        for table in root.iter("table"):
            existing = table.get("class")
            table.set("class", f"{existing} {self._css_class}" if existing else self._css_class)


class TutorialExtension(Extension):
    """チュートリアル固有の記法をまとめた Markdown 拡張。"""

    def __init__(self, **kwargs: Any) -> None:
        self.config = {
            "image_dimensions": [True, "画像記法の =WxH を解釈する"],
            "bare_urls": [True, "裸の URL を自動リンクする"],
            "strikethrough": [True, "~~text~~ を <del> にする"],
            "table_class": ["table", "<table> に付与するクラス (空なら付与しない)"],
        }
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        if self.getConfig("image_dimensions"):
            # 通常の画像記法 (150) より先に評価する
            md.inlinePatterns.register(
                ImageDimensionInlineProcessor(IMAGE_DIMENSION_RE, md), "image_dimensions", 155
            )
        if self.getConfig("bare_urls"):
            # 生 HTML (90) や <url> 記法 (110) の後に評価する
            md.inlinePatterns.register(BareUrlInlineProcessor(BARE_URL_RE, md), "bare_url", 85)
        if self.getConfig("strikethrough"):
            md.inlinePatterns.register(SimpleTagInlineProcessor(STRIKETHROUGH_RE, "del"), "strikethrough", 65)
        table_class = self.getConfig("table_class")
        if table_class:
            md.treeprocessors.register(TableClassTreeprocessor(md, table_class), "table_class", 4)


def prefixed_slugify(prefix: str) -> Callable[[str, str], str]:
    """見出し ID に接頭辞を付ける slugify 関数を返します。"""

    def _slugify(value: str, separator: str) -> str:
        return prefix + slugify(value, separator)

    return _slugify


class MarkdownConverter:
    """設定済みの ``markdown.Markdown`` を保持し、繰り返し変換に再利用します。"""

    def __init__(self, config: MarkdownConfig) -> None:
        self._config = config
        extensions: list[Any] = [
            "fenced_code",
            TocExtension(slugify=prefixed_slugify(config.header_id_prefix)),
            TutorialExtension(
                image_dimensions=config.parse_image_dimensions,
                bare_urls=config.autolink_bare_urls,
                strikethrough=config.strikethrough,
                table_class=config.table_class if config.tables else "",
            ),
        ]
        if config.tables:
            extensions.append("tables")
        self._md = markdown.Markdown(
            extensions=extensions,
            extension_configs={"fenced_code": {"lang_prefix": ""}},
            output_format="html",
        )

    def convert(self, text: str) -> str:
        return self._md.reset().convert(text)
