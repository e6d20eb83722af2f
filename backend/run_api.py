#!/usr/bin/env python
"""
Start the Portcullis API under uvicorn.

Flags override the HOST, PORT, RELOAD and LOG_LEVEL settings.

Usage:
    python run_api.py
    python run_api.py --reload --log-level debug
"""

import argparse
from typing import Optional, Sequence

import uvicorn

from shared.config import get_settings

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Start the Portcullis API server")
    parser.add_argument("--host", help="Interface to bind (default: HOST)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: PORT)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        help="uvicorn log level (default: LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = get_settings()

    uvicorn.run(
        "api:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload or settings.reload,
        log_level=args.log_level or settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
