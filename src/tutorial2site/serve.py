"""開発用: ソース変更を監視して再ビルドし、出力をライブリロード付きで配信します。"""

from __future__ import annotations

import logging
import threading
import time
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .builder import TutorialSiteBuilder
from .config import BuildConfig
from .rendering import SharedResourceError

logger = logging.getLogger(__name__)

RELOAD_PATH = "/__reload__"

_RELOAD_SNIPPET = (
    "<script>(function(){var g=null;setInterval(function(){"
    "fetch('" + RELOAD_PATH + "').then(function(r){return r.text()}).then(function(t){"
    "if(g!==null&&g!==t){location.reload()}g=t}).catch(function(){})},1000)})();</script>"
)


def inject_reload_script(html: str) -> str:
    """``</body>`` の直前 (無ければ末尾) にリロード用スクリプトを挿入します。"""

    marker = html.lower().rfind("</body>")
    if marker == -1:
        return html + _RELOAD_SNIPPET
    return html[:marker] + _RELOAD_SNIPPET + html[marker:]


class BuildGeneration:
    """再ビルドの回数をスレッド安全に保持するカウンター。"""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def bump(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class RebuildHandler(FileSystemEventHandler):
    """ファイル変更イベントをまとめ、一定時間静かになったら再ビルドします。"""

    def __init__(self, rebuild: Callable[[], None], debounce: float = 0.3) -> None:
        super().__init__()
        self._rebuild = rebuild
        self._debounce = debounce
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self._rebuild)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class LiveReloadRequestHandler(SimpleHTTPRequestHandler):
    """出力ディレクトリを配信し、HTML にリロード用スクリプトを差し込みます。"""

    generation: BuildGeneration

    def __init__(self, *args, generation: BuildGeneration, **kwargs) -> None:
        self.generation = generation
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:
        if self.path == RELOAD_PATH:
            self._send_text(str(self.generation.value), "text/plain; charset=utf-8")
            return
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            if not self.path.split("?", 1)[0].endswith("/"):
                # 末尾スラッシュへのリダイレクトは標準ハンドラーに任せる
                super().do_GET()
                return
            path = path / "index.html"
        if path.suffix.lower() in {".html", ".htm"} and path.is_file():
            self._send_text(
                inject_reload_script(path.read_text(encoding="utf-8")),
                "text/html; charset=utf-8",
            )
            return
        super().do_GET()

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def _send_text(self, body: str, content_type: str) -> None:
        payload = body.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(payload)


def watch_and_serve(
    config: BuildConfig,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    debounce: float = 0.3,
) -> None:
    """初回ビルド後にソースを監視し、出力ディレクトリを HTTP で配信します。

    初回ビルドで共有テンプレートまたはスタイルシートが読めない場合は
    ``SharedResourceError`` をそのまま送出します。監視開始後の再ビルドでの失敗は
    ログに残して次の変更を待ちます。
    """

    builder = TutorialSiteBuilder(config)
    generation = BuildGeneration()
    build_lock = threading.Lock()

    def rebuild() -> None:
        with build_lock:
            try:
                result = builder.build()
            except SharedResourceError as exc:
                logger.error("再ビルドに失敗しました: %s", exc)
                return
            generation.bump()
            logger.info("再ビルドしました (生成 %d 件)。", len(result.rendered))

    # 共有テンプレート・スタイルシートが読めなければ監視を始めずに終了する
    result = builder.build()
    generation.bump()
    logger.info("初回ビルドが完了しました (生成 %d 件)。", len(result.rendered))

    handler = RebuildHandler(rebuild, debounce=debounce)
    observer = Observer()
    observer.schedule(handler, str(config.source_root), recursive=True)
    observer.start()

    request_handler = partial(
        LiveReloadRequestHandler,
        directory=str(config.dest_root.resolve()),
        generation=generation,
    )
    httpd = ThreadingHTTPServer((host, port), request_handler)
    threading.Thread(target=httpd.serve_forever, daemon=True).start()
    logger.warning("%s を監視しています。http://%s:%d/ で配信中 (Ctrl+C で終了)", config.source_root, host, port)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        handler.cancel()
        observer.stop()
        observer.join()
        httpd.shutdown()
        httpd.server_close()
