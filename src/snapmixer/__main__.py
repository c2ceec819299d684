"""Main entry point for snapmixer."""

import argparse
import asyncio
import logging
import os
import sys

from snapmixer import __version__
from snapmixer.api.client import SnapcastConnection
from snapmixer.core.config import AppConfig, configure_logging
from snapmixer.core.discovery import discover_server
from snapmixer.core.loop import ControlLoop
from snapmixer.ui.keys import KEY_HELP
from snapmixer.ui.render import Dashboard
from snapmixer.ui.terminal import TerminalInput

logger = logging.getLogger(__name__)


def _keys_epilog() -> str:
    width = max(len(keys) for keys, _ in KEY_HELP)
    lines = ["Keys:"]
    lines.extend(f"  {keys:<{width}}  {description}" for keys, description in KEY_HELP)
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser."""
    parser = argparse.ArgumentParser(
        prog="snapmixer",
        description="Control Snapcast volumes from the terminal.",
        epilog=_keys_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-s",
        "--server",
        metavar="HOST[:PORT]",
        default=None,
        help="Snapcast server (default: $SNAPMIXER_SERVER or localhost:1705)",
    )
    parser.add_argument(
        "--discover",
        action="store_true",
        help="find the server via mDNS instead of --server",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="log to stderr at this level (default: $SNAPMIXER_LOG or off)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def run(config: AppConfig) -> int:
    """Connect and run the dashboard until the user quits.

    Returns:
        Exit code (0 for success).
    """
    connection = SnapcastConnection(config.host, config.port)
    logger.debug("Connecting to Snapcast server at %s", config.address)
    try:
        await connection.connect()
    except ConnectionError as e:
        print(f"Couldn't connect to Snapcast server: {e}", file=sys.stderr)
        return 1

    try:
        async with TerminalInput() as events:
            with Dashboard() as dashboard:
                loop = ControlLoop(connection, events, dashboard.draw, config.timings)
                await loop.run()
    finally:
        await connection.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run snapmixer.

    Returns:
        Exit code (0 for success).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = AppConfig.from_args(args, os.environ)
    except ValueError as e:
        parser.error(str(e))

    configure_logging(config.log_level)

    if config.discover:
        server = discover_server()
        if server is None:
            print(
                "Could not find a Snapcast server on the network.\n"
                "Please specify a server address: snapmixer -s HOST[:PORT]",
                file=sys.stderr,
            )
            return 1
        config = AppConfig(
            host=server.host,
            port=server.port,
            log_level=config.log_level,
            timings=config.timings,
        )

    if not sys.stdin.isatty():
        print("snapmixer needs an interactive terminal", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
