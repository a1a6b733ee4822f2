"""tutorial2site のコマンドラインインターフェース。"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable

from .builder import BuildResult, build_site
from .config import DEFAULT_OUTPUT_DIR, DEFAULT_SOURCE_DIR, BuildConfig
from .rendering import SharedResourceError
from .serve import watch_and_serve


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Markdown のチュートリアル群から静的サイトを生成します")
    parser.add_argument(
        "--src",
        dest="source_root",
        type=Path,
        default=DEFAULT_SOURCE_DIR,
        help="チュートリアルのソースディレクトリ (既定: カレントディレクトリ基準の ./src)",
    )
    parser.add_argument(
        "--out",
        dest="dest_root",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="生成したサイトを書き出すディレクトリ (既定: カレントディレクトリ基準の ./docs)",
    )
    parser.add_argument(
        "--strict-sources",
        dest="strict_sources",
        action="store_true",
        help="入力ファイルが存在しない場合にスキップせずエラーとする",
    )
    parser.add_argument(
        "--prune",
        dest="prune",
        action="store_true",
        help="入力に対応しない出力ファイル・ディレクトリを削除する",
    )
    parser.add_argument("--verbose", dest="verbose", action="store_true", help="進捗ログを表示")

    watch_group = parser.add_argument_group("監視モード")
    watch_group.add_argument(
        "--watch",
        dest="watch",
        action="store_true",
        help="ソースを監視して再ビルドし、出力をライブリロード付きで配信する",
    )
    watch_group.add_argument("--host", dest="host", type=str, default="127.0.0.1", help="配信するアドレス")
    watch_group.add_argument("--port", dest="port", type=int, default=8000, help="配信するポート")
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    _validate_args(args)
    _configure_logging(args.verbose)
    config = BuildConfig.from_args(
        args.source_root,
        args.dest_root,
        strict_sources=args.strict_sources,
        prune=args.prune,
    )
    try:
        if args.watch:
            watch_and_serve(config, host=args.host, port=args.port)
            return
        result = build_site(config)
    except SharedResourceError as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1)
    print(json.dumps(_summarize(result, config), ensure_ascii=False))


def _validate_args(args: argparse.Namespace) -> None:
    errors: list[str] = []
    if not args.source_root.exists():
        errors.append(f"[エラー] ソースディレクトリが見つかりません: {args.source_root}")
    elif not args.source_root.is_dir():
        errors.append(f"[エラー] ソースパスはディレクトリではありません: {args.source_root}")

    if args.dest_root.exists() and not args.dest_root.is_dir():
        errors.append(f"[エラー] 出力パスがディレクトリではありません: {args.dest_root}")

    if not 0 < args.port < 65536:
        errors.append("[エラー] --port には 1 から 65535 の整数を指定してください。")

    if errors:
        for message in errors:
            print(message, file=sys.stderr)
        raise SystemExit(2)

    args.source_root = args.source_root.resolve()
    args.dest_root = args.dest_root.resolve()


def _summarize(result: BuildResult, config: BuildConfig) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "rendered": len(result.rendered),
        "fresh": len(result.fresh),
        "skipped": len(result.skipped),
        "failed": len(result.failed),
        "copied": result.copied_files,
        "index_written": result.index_written,
        "output": str(config.dest_root),
    }
    if config.prune:
        summary["pruned"] = len(result.pruned)
    if result.failed:
        summary["failed_units"] = sorted(result.failed)
    return summary


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


if __name__ == "__main__":
    main()
