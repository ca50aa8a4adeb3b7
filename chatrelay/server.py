"""Entry point for the chatrelay-server console script.

Usage:
  chatrelay-server [--host HOST] [--port PORT] [--reload]

Host and port default to CHATRELAY_HOST / CHATRELAY_PORT, falling back to
127.0.0.1:8000.
"""

import argparse
import os

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _default_port() -> int:
    raw = os.environ.get("CHATRELAY_PORT", "").strip()
    try:
        return int(raw) if raw else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT


def parse_serve_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse serve-mode arguments (host, port, reload)."""
    parser = argparse.ArgumentParser(description='ChatRelay server')
    parser.add_argument(
        '--host',
        default=os.environ.get("CHATRELAY_HOST", "").strip() or DEFAULT_HOST,
        help='Bind address',
    )
    parser.add_argument('--port', type=int, default=_default_port(), help='Bind port')
    parser.add_argument('--reload', action='store_true', help='Reload on code changes')
    return parser.parse_args(args)


def main(argv: list[str] | None = None) -> None:
    serve_args = parse_serve_args(argv)
    import uvicorn

    # --reload needs uvicorn.run(); Server.run() has no reload supervisor.
    uvicorn.run(
        "chatrelay.api.main:app",
        host=serve_args.host,
        port=serve_args.port,
        reload=serve_args.reload,
        log_level="info",
    )


if __name__ == '__main__':
    main()
