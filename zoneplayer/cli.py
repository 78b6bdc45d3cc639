"""Command line entry point of zpinfo."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence

from . import __version__, const
from .error import UsageError, ZonePlayerError, format_error
from .options import PROG, parse_args
from .tool import ShutdownToken, ZpInfo

_LOGGER = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_format(mode: str | None) -> str:
    """Returns log format for mode; only daemon mode logs timestamps."""
    if mode == const.MODE_DAEMON:
        return "[%(asctime)s] %(message)s"
    return "%(message)s"


def log_formatter(mode: str | None) -> logging.Formatter:
    """Returns the formatter for log lines in mode."""
    return logging.Formatter(log_format(mode), DATE_FORMAT)


def main(argv: Sequence[str] | None = None) -> int:
    """Runs zpinfo, returning the process exit status."""
    try:
        options = parse_args(argv, version=__version__)
    except UsageError as err:
        sys.stderr.write(err.usage)
        sys.stderr.write(f"{PROG}: error: {err}\n")
        return const.EXIT_USAGE

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(log_formatter(options.mode))
    logging.basicConfig(level=logging.INFO, handlers=[handler])

    try:
        asyncio.run(ZpInfo(options, token=ShutdownToken()).run())
    except ZonePlayerError as err:
        _LOGGER.error("%s: error: %s", PROG, format_error(err))
        return const.EXIT_ERROR
    except KeyboardInterrupt:
        _LOGGER.error("%s: interrupted", PROG)
        return const.EXIT_ERROR

    return const.EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
