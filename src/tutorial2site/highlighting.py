"""変換済み HTML 内のコードブロックを Pygments でハイライトするユーティリティ。"""

from __future__ import annotations

import logging
import re
from typing import Mapping

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import (
    BashLexer,
    CLexer,
    CssLexer,
    DockerLexer,
    GoLexer,
    HtmlLexer,
    HttpLexer,
    JavascriptLexer,
    JsonLexer,
    SqlLexer,
    YamlLexer,
)

from .config import HighlightConfig

logger = logging.getLogger(__name__)

# Markdown コンバーターが出力する ``<pre><code class="LANG">`` 形式を前提にした構造マッチ
CODE_BLOCK_RE = re.compile(r'<pre><code class="([^"]*)">(.*?)</code></pre>', re.DOTALL)

DEFAULT_GRAMMARS: Mapping[str, type[Lexer]] = {
    "markup": HtmlLexer,
    "html": HtmlLexer,
    "xml": HtmlLexer,
    "svg": HtmlLexer,
    "clike": CLexer,
    "c": CLexer,
    "css": CssLexer,
    "javascript": JavascriptLexer,
    "js": JavascriptLexer,
    "http": HttpLexer,
    "shell": BashLexer,
    "bash": BashLexer,
    "sh": BashLexer,
    "json": JsonLexer,
    "go": GoLexer,
    "golang": GoLexer,
    "docker": DockerLexer,
    "dockerfile": DockerLexer,
    "yaml": YamlLexer,
    "yml": YamlLexer,
    "sql": SqlLexer,
}


class GrammarRegistry:
    """言語識別子から Pygments レキサーを引くためのレジストリ。"""

    def __init__(self, grammars: Mapping[str, type[Lexer]] | None = None) -> None:
        self._grammars: dict[str, type[Lexer]] = dict(DEFAULT_GRAMMARS if grammars is None else grammars)
        self._instances: dict[str, Lexer] = {}

    def register(self, language: str, lexer_class: type[Lexer]) -> None:
        self._grammars[language.lower()] = lexer_class
        self._instances.pop(language.lower(), None)

    def get(self, language: str) -> Lexer | None:
        key = language.lower()
        lexer_class = self._grammars.get(key)
        if lexer_class is None:
            return None
        lexer = self._instances.get(key)
        if lexer is None:
            lexer = lexer_class(stripnl=False, ensurenl=False)
            self._instances[key] = lexer
        return lexer

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and language.lower() in self._grammars


def unescape_code(text: str) -> str:
    """コンバーターがエスケープしたエンティティを元の文字へ戻します。"""

    # &amp; は最後に戻さないと "&amp;lt;" が "<" になってしまう
    return (
        text.replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&amp;", "&")
    )


class CodeBlockHighlighter:
    """HTML 中のフェンス付きコードブロックへシンタックスハイライトを適用します。"""

    def __init__(self, config: HighlightConfig, registry: GrammarRegistry | None = None) -> None:
        self._config = config
        self.registry = registry or GrammarRegistry()
        self._formatter = HtmlFormatter(nowrap=True)
        self._style_formatter = HtmlFormatter(style=config.style)
        if config.fallback_language not in self.registry:
            raise ValueError(f"フォールバック言語が登録されていません: {config.fallback_language}")

    def stylesheet(self) -> str:
        """ハイライト結果に対応する CSS を返します。"""

        return self._style_formatter.get_style_defs(self._config.css_selector)

    def highlight_html(self, html: str) -> str:
        return CODE_BLOCK_RE.sub(self._replace_block, html)

    def highlight_code(self, code: str, language: str) -> str:
        lexer = self.registry.get(language)
        if lexer is None:
            logger.warning(
                "ハイライト用の文法が登録されていない言語です (%s)。%s として処理します。",
                language,
                self._config.fallback_language,
            )
            lexer = self.registry.get(self._config.fallback_language)
        return highlight(code, lexer, self._formatter)

    def _replace_block(self, match: re.Match[str]) -> str:
        tokens = match.group(1).split()
        language = tokens[0] if tokens else ""
        if not language or language == self._config.no_highlight:
            return match.group(0)
        highlighted = self.highlight_code(unescape_code(match.group(2)), language)
        return (
            f'<pre class="language-{language}"><code class="language-{language}">'
            f"{highlighted}</code></pre>"
        )
