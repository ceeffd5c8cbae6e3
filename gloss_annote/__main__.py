# gloss_annote/__main__.py
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from . import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gloss-annote",
        description="Gloss annotation tool: desktop client and reference annotation store.",
    )
    parser.add_argument("--version", "-V", action="store_true", help="show version and exit")
    parser.add_argument("--api-url", type=str, default=None, help="Store base URL (without /api)")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--no-log-file", action="store_true", help="log to stderr only")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the reference annotation store")
    serve.add_argument("--data-dir", type=str, default=None, help="Directory with tasks.json and videos/")
    serve.add_argument("--port", type=int, default=None, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    return parser


def serve(args: argparse.Namespace) -> int:
    from .config import ServerConfig, describe
    from .logger import logger
    from .server import create_app

    config = ServerConfig.from_env(data_dir=args.data_dir, port=args.port)
    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("Store config: %s", describe(config))
    app = create_app(config)
    print(f"Gloss annotation store: http://{args.host}:{config.port}/api")
    app.run(host=args.host, port=config.port, debug=False, threaded=True)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if args.command == "serve":
        return serve(args)

    from .app import run_app
    from .config import ClientConfig

    config = ClientConfig.from_env(api_url=args.api_url, timeout_s=args.timeout)
    if args.no_log_file:
        config.log_to_file = False
    return run_app(config)


if __name__ == "__main__":
    raise SystemExit(main())
