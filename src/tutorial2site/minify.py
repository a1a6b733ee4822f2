"""生成 HTML の空白・コメント・埋め込み CSS/JS を圧縮するユーティリティ。"""

from __future__ import annotations

import re

import csscompressor
import rjsmin
from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, PageElement, Script, Stylesheet, Tag

from .config import MinifyConfig

# HTML の空白文字のみ。&nbsp; (U+00A0) や全角空白は本文として残す
_HTML_WHITESPACE = " \t\n\r\f"
_WHITESPACE_RE = re.compile(r"[ \t\n\r\f]+")

# 中の空白をそのまま残す要素
_PRESERVE_TAGS = frozenset({"pre", "textarea", "script", "style"})

# 前後の空白が表示に影響しないブロックレベル要素
_BLOCK_TAGS = frozenset(
    {
        "[document]",
        "address", "article", "aside", "base", "blockquote", "body", "caption",
        "col", "colgroup", "dd", "details", "dialog", "div", "dl", "dt",
        "fieldset", "figcaption", "figure", "footer", "form",
        "h1", "h2", "h3", "h4", "h5", "h6", "head", "header", "hgroup", "hr",
        "html", "li", "link", "main", "meta", "nav", "noscript", "ol",
        "optgroup", "option", "p", "pre", "script", "section", "style",
        "summary", "table", "tbody", "td", "tfoot", "th", "thead", "title",
        "tr", "ul",
    }
)

_JS_TYPES = frozenset({"", "text/javascript", "application/javascript", "module"})


def _is_block(node: PageElement | None) -> bool:
    return isinstance(node, Tag) and node.name in _BLOCK_TAGS


class HtmlMinifier:
    """BeautifulSoup で HTML を走査し、html-minifier 相当の圧縮を行います。"""

    def __init__(self, config: MinifyConfig) -> None:
        self._config = config

    def minify(self, html: str) -> str:
        soup = BeautifulSoup(html, "lxml")
        if self._config.remove_comments:
            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()
        if self._config.minify_css:
            for tag in soup.find_all("style"):
                if tag.string:
                    tag.string = Stylesheet(csscompressor.compress(str(tag.string)))
        if self._config.minify_js:
            for tag in soup.find_all("script"):
                script_type = str(tag.get("type", "")).strip().lower()
                if tag.string and script_type in _JS_TYPES:
                    tag.string = Script(rjsmin.jsmin(str(tag.string)))
        if self._config.collapse_whitespace:
            self._collapse_whitespace(soup)
        return str(soup)

    # Internal helpers -------------------------------------------------

    def _collapse_whitespace(self, soup: BeautifulSoup) -> None:
        for node in list(soup.find_all(string=True)):
            # Comment / Doctype / Script などのサブクラスは対象外
            if type(node) is not NavigableString:
                continue
            if any(parent.name in _PRESERVE_TAGS for parent in node.parents):
                continue
            text = _WHITESPACE_RE.sub(" ", str(node))
            parent_is_block = _is_block(node.parent)
            previous, following = node.previous_sibling, node.next_sibling
            strip_start = _is_block(previous) or (previous is None and parent_is_block)
            strip_end = _is_block(following) or (following is None and parent_is_block)
            if strip_start:
                text = text.lstrip(_HTML_WHITESPACE)
            if strip_end:
                text = text.rstrip(_HTML_WHITESPACE)
            if not text:
                node.extract()
            elif text != str(node):
                node.replace_with(NavigableString(text))
