"""Runtime configuration for the mixer.

Preferences are not persisted; configuration comes from the command line
and the environment each run.
"""

import argparse
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "localhost:1705"
DEFAULT_PORT = 1705

_ENV_SERVER = "SNAPMIXER_SERVER"
_ENV_LOG = "SNAPMIXER_LOG"

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def parse_server(value: str) -> tuple[str, int]:
    """Split ``HOST[:PORT]`` into host and port.

    Args:
        value: Server address, port optional (default 1705).

    Returns:
        Tuple of (host, port).

    Raises:
        ValueError: If the port is not a valid TCP port number.
    """
    host, sep, port = value.rpartition(":")
    if not sep or not port:
        return (host if sep else value), DEFAULT_PORT
    try:
        number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port number {port}") from None
    if not 0 <= number <= 65535:  # noqa: PLR2004
        raise ValueError(f"Invalid port number {port}")
    return host, number


@dataclass(frozen=True, slots=True)
class Timings:
    """Watchdog intervals in seconds.

    Attributes:
        expected_response: How long a command may go unanswered before the
            connection is considered stale.
        quiet: How long the server may stay silent before it is probed.
        suspend_tick: Interval of the suspend detector.
        suspend_threshold: Wall-clock gap between two ticks that indicates
            the host was suspended.
    """

    expected_response: float = 0.2
    quiet: float = 300.0
    suspend_tick: float = 1.0
    suspend_threshold: float = 10.0

    def __post_init__(self) -> None:
        """Reject intervals that would break the watchdog ordering."""
        for name in ("expected_response", "quiet", "suspend_tick", "suspend_threshold"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.quiet <= self.expected_response:
            raise ValueError("quiet must be longer than expected_response")
        if self.suspend_threshold <= self.suspend_tick:
            raise ValueError("suspend_threshold must be longer than suspend_tick")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Settings for one run of the mixer.

    Attributes:
        host: Server hostname or IP address.
        port: Server control port.
        discover: Find the server via mDNS instead of using host/port.
        log_level: Logging level name, or None to keep logging off.
        timings: Watchdog intervals.
    """

    host: str = "localhost"
    port: int = DEFAULT_PORT
    discover: bool = False
    log_level: str | None = None
    timings: Timings = field(default_factory=Timings)

    @classmethod
    def from_args(
        cls,
        args: argparse.Namespace,
        environ: Mapping[str, str] | None = None,
    ) -> "AppConfig":
        """Build the configuration from parsed arguments and the environment.

        Command-line values win over environment variables.

        Raises:
            ValueError: If the server address or log level is invalid.
        """
        environ = environ or {}
        server = args.server or environ.get(_ENV_SERVER) or DEFAULT_SERVER
        host, port = parse_server(server)

        log_level = args.log_level or environ.get(_ENV_LOG) or None
        if log_level is not None:
            log_level = log_level.lower()
            if log_level == "off":
                log_level = None
            elif log_level not in _LOG_LEVELS:
                raise ValueError(f"Invalid log level {log_level}")

        return cls(
            host=host,
            port=port,
            discover=bool(args.discover),
            log_level=log_level,
        )

    @property
    def address(self) -> str:
        """Return the server address (host:port)."""
        return f"{self.host}:{self.port}"


def configure_logging(level: str | None) -> None:
    """Send log records to stderr, or disable logging when level is None.

    Stdout belongs to the dashboard, so logging stays off by default.
    """
    if level is None:
        logging.disable(logging.CRITICAL)
        return
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
