from __future__ import annotations

from pathlib import Path

import pytest

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <title>{{ title }}</title>
    <style>
      {{ sharedCSS }}
    </style>
  </head>
  <body>
    <!-- page header -->
    <header>
      <h1>{{ title }}</h1>
      <p class="subtitle">{{ subtitle }}</p>
      <p class="author"><a href="{{ author.url }}">{{ author.name }}</a></p>
      <p class="edited">{{ lastEdited }}</p>
    </header>
    <main>
      {{ content }}
    </main>
  </body>
</html>
"""

INDEX_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>Tutorials</title>
    <style>{{ sharedCSS }}</style>
  </head>
  <body>
    <!-- listing -->
    <ul>
      <li><a href="foo/">Foo</a></li>
    </ul>
  </body>
</html>
"""

SHARED_CSS = """body {
  margin: 0;
}
"""


@pytest.fixture
def site(tmp_path: Path) -> tuple[Path, Path]:
    """最小構成のソースツリーを作成し (source, dest) を返します。"""

    source = tmp_path / "source"
    dest = tmp_path / "dest"
    (source / "foo").mkdir(parents=True)
    (source / "template.html").write_text(PAGE_TEMPLATE, encoding="utf-8")
    (source / "shared.css").write_text(SHARED_CSS, encoding="utf-8")
    (source / "index.html").write_text(INDEX_PAGE, encoding="utf-8")
    (source / "foo" / "index.md").write_text("# Title\n\nSome text.\n", encoding="utf-8")
    (source / "foo" / "meta.json").write_text('{"title":"Foo"}', encoding="utf-8")
    return source, dest
