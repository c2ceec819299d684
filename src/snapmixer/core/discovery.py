"""mDNS/Zeroconf lookup of a Snapcast server for ``--discover``."""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass

from zeroconf import ServiceBrowser, ServiceListener, Zeroconf

logger = logging.getLogger(__name__)

# Service advertised by snapserver
SNAPCAST_SERVICE_TYPE = "_snapcast._tcp.local."

# The advertised port streams audio; JSON-RPC control listens one above it
CONTROL_PORT_OFFSET = 1
DEFAULT_STREAM_PORT = 1704


@dataclass(frozen=True)
class DiscoveredServer:
    """A Snapcast server found on the local network.

    Attributes:
        name: Service instance name.
        host: First resolved address.
        port: JSON-RPC control port.
        hostname: FQDN from mDNS without the trailing dot.
    """

    name: str
    host: str
    port: int
    hostname: str = ""

    @property
    def address(self) -> str:
        """Return the control address (host:port)."""
        return f"{self.host}:{self.port}"


def _decode_address(raw: bytes) -> str | None:
    family = socket.AF_INET6 if len(raw) == 16 else socket.AF_INET  # noqa: PLR2004
    try:
        return socket.inet_ntop(family, raw)
    except (OSError, ValueError):
        return None


class _FirstServerListener(ServiceListener):
    """Records the first resolvable Snapcast service."""

    def __init__(self) -> None:
        self.server: DiscoveredServer | None = None
        self.found = threading.Event()

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        if self.found.is_set():
            return
        info = zc.get_service_info(type_, name)
        if info is None:
            logger.debug("Could not get info for service: %s", name)
            return

        addresses = [a for a in (_decode_address(raw) for raw in info.addresses) if a]
        if not addresses:
            logger.debug("No addresses found for service: %s", name)
            return

        self.server = DiscoveredServer(
            name=name.removesuffix(f".{SNAPCAST_SERVICE_TYPE}"),
            host=addresses[0],
            port=(info.port or DEFAULT_STREAM_PORT) + CONTROL_PORT_OFFSET,
            hostname=info.server.rstrip(".") if info.server else "",
        )
        logger.info("Discovered Snapcast server %s at %s", self.server.name, self.server.address)
        self.found.set()

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:  # noqa: ARG002
        logger.debug("Snapcast service removed: %s", name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.add_service(zc, type_, name)


def discover_server(timeout: float = 5.0) -> DiscoveredServer | None:
    """Browse for a Snapcast server and return the first one found.

    Args:
        timeout: Maximum time to wait in seconds.

    Returns:
        The discovered server, or None if nothing answered in time.
    """
    logger.info("Searching for Snapcast servers via mDNS...")
    zeroconf = Zeroconf()
    listener = _FirstServerListener()
    browser = ServiceBrowser(zeroconf, SNAPCAST_SERVICE_TYPE, listener)
    try:
        listener.found.wait(timeout=timeout)
    finally:
        browser.cancel()
        zeroconf.close()

    if listener.server is None:
        logger.warning("No Snapcast servers found via mDNS")
    return listener.server
