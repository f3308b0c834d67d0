"""
Command-line entry point: run the Notes API under uvicorn.

Environment variables (see notehub.config) provide the defaults; flags override
them. uvicorn handles SIGINT/SIGTERM and runs the app lifespan shutdown, which
closes the repository.

    notehub --storage postgres --port 8000
"""

import argparse
import os
import sys
from typing import List, Optional

import uvicorn

from notehub.config import get_settings, normalize_storage_type
from notehub.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

_FLAG_ENV = {
    "host": "HOST",
    "port": "PORT",
    "storage": "STORAGE_TYPE",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notehub", description="Run the Notes API server")
    parser.add_argument("--host", help="Bind address (env HOST)")
    parser.add_argument("--port", type=int, help="Listen port (env PORT)")
    parser.add_argument("--storage", help="Storage backend: memory or postgres (env STORAGE_TYPE)")
    parser.add_argument("--log-level", help="Log level (env LOG_LEVEL)")
    parser.add_argument(
        "--log-format", choices=["json", "console"], help="Log format (env LOG_FORMAT)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    for flag, env in _FLAG_ENV.items():
        value = getattr(args, flag)
        if value is not None:
            os.environ[env] = str(value)
    get_settings.cache_clear()
    settings = get_settings()

    configure_logging(settings.log_level, settings.log_format)

    if normalize_storage_type(settings.storage_type) is None:
        logger.error("unknown_storage_type", storage_type=settings.storage_type)
        return 2

    # imported here so the app is built from the settings above
    from notehub.main import app

    logger.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep the structlog handler installed above
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
