"""Command line parsing into an immutable set of options."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass

from . import const
from .error import UsageError

PROG = "zpinfo"

DESCRIPTION = """Sonos ZonePlayer information.

Print the device description of a Sonos ZonePlayer as JSON.
When run as daemon or service, log Sonos ZonePlayer events as JSON."""


@dataclass(frozen=True)
class Options:
    """Options for a single run of the tool."""

    address: str
    timeout: int = const.DEFAULT_TIMEOUT
    no_white_space: bool = False
    scdp: bool = False
    mode: str | None = None

    def __post_init__(self):
        if not const.MIN_TIMEOUT <= self.timeout <= const.MAX_TIMEOUT:
            raise UsageError(
                f"timeout: {self.timeout}: not between "
                f"{const.MIN_TIMEOUT} and {const.MAX_TIMEOUT}"
            )
        if self.mode not in (None, const.MODE_DAEMON, const.MODE_SERVICE):
            raise UsageError(f"mode: {self.mode}: invalid mode")

    @property
    def is_monitor(self) -> bool:
        """Returns if events are to be logged until terminated."""
        return self.mode is not None


class ArgumentParser(argparse.ArgumentParser):
    """Parser raising UsageError instead of exiting on bad input."""

    def error(self, message: str):
        raise UsageError(message, self.format_usage())


def timeout_type(value: str) -> int:
    """Converts a timeout argument to an integer in the allowed range."""
    try:
        timeout = int(value, 10)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"{value}: not an integer") from err
    if not const.MIN_TIMEOUT <= timeout <= const.MAX_TIMEOUT:
        raise argparse.ArgumentTypeError(
            f"{value}: not between {const.MIN_TIMEOUT} and {const.MAX_TIMEOUT}"
        )
    return timeout


def build_parser(version: str) -> ArgumentParser:
    """Returns the command line parser."""
    parser = ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {version}"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-d",
        "--daemon",
        dest="mode",
        action="store_const",
        const=const.MODE_DAEMON,
        help="Run as daemon. Log ZonePlayer events.",
    )
    mode.add_argument(
        "-s",
        "--service",
        dest="mode",
        action="store_const",
        const=const.MODE_SERVICE,
        help="Run as service. Log ZonePlayer events, without timestamps.",
    )
    parser.add_argument(
        "-n",
        "--noWhiteSpace",
        dest="no_white_space",
        action="store_true",
        help="Do not include spaces nor newlines in JSON output.",
    )
    parser.add_argument(
        "-S",
        "--scdp",
        action="store_true",
        help="Include service control point definitions in device description.",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=timeout_type,
        default=const.DEFAULT_TIMEOUT,
        metavar="timeout",
        help=f"Wait for timeout seconds instead of default {const.DEFAULT_TIMEOUT}.",
    )
    parser.add_argument("ip", help="IPv4 address of the zoneplayer.")
    return parser


def parse_args(argv: Sequence[str] | None = None, version: str = "unknown") -> Options:
    """Parses command line arguments into Options.

    Raises UsageError on malformed input. Help and version requests print and
    exit the process.
    """
    args = build_parser(version).parse_args(argv)
    return Options(
        address=args.ip,
        timeout=args.timeout,
        no_white_space=args.no_white_space,
        scdp=args.scdp,
        mode=args.mode,
    )
