import argparse
import logging
import sys
from typing import List, Optional

import structlog

from config import Settings, get_settings
from errors import ReplayError
from replay import replay_file

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Configure structured logging to stderr; stdout is reserved for the report."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(message)s",
        force=True,
    )

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-replay",
        description="Replay a CSV transaction feed and print the final balance of every account",
    )
    parser.add_argument("path", help="CSV file with columns: type, client, tx, amount")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        replay_file(args.path, sys.stdout, encoding=settings.input_encoding)
    except ReplayError as e:
        logger.error("Replay aborted", path=args.path, error_code=e.code, error=e.message)
        print(f"Error running replay: {e.message}")
        return 1

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
