"""Command-line entry point: render a Bitrix BBCode body as Telegram HTML."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from taskgram import __version__
from taskgram.bitrix.client import BitrixClient
from taskgram.config.settings import Settings
from taskgram.exceptions import ConfigurationError
from taskgram.formatting.description import DescriptionRenderer, build_transpiler


def setup_logging(debug: bool = False, level_name: str = "INFO") -> None:
    """Configure structured logging.

    Logs go to stderr so rendered output on stdout stays clean.
    """
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )

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
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Render Bitrix24 BBCode as Telegram HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"Taskgram {__version__}"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not call Bitrix24; disk files render as not found",
    )
    parser.add_argument(
        "--max-length",
        type=_positive_int,
        default=None,
        help="Visible characters to keep (default: DESCRIPTION_MAX_LENGTH)",
    )
    parser.add_argument(
        "file", nargs="?", type=Path, help="BBCode file to read (default: stdin)"
    )

    return parser.parse_args(argv)


async def render(bbcode: str, settings: Settings, max_length: int, offline: bool) -> str:
    """Render ``bbcode`` using Bitrix lookups when they are available."""
    if offline or not settings.bitrix_configured:
        renderer = DescriptionRenderer(build_transpiler(), max_length)
        return await renderer.render(bbcode)

    async with BitrixClient(settings) as client:
        renderer = DescriptionRenderer(build_transpiler(client), max_length)
        return await renderer.render(bbcode)


def main(argv: Optional[list] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging(debug=args.debug)
        structlog.get_logger().error("Configuration error", error=str(e))
        return 1

    setup_logging(debug=args.debug or settings.debug, level_name=settings.log_level)
    logger = structlog.get_logger()

    max_length = (
        args.max_length
        if args.max_length is not None
        else settings.description_max_length
    )
    bbcode = args.file.read_text(encoding="utf-8") if args.file else sys.stdin.read()

    try:
        output = asyncio.run(render(bbcode, settings, max_length, args.offline))
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
