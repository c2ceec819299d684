"""Client model representing a Snapcast audio endpoint."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Client:
    """A Snapcast client (audio endpoint/speaker).

    Attributes:
        id: Unique client identifier from server.
        host: Client's IP address.
        name: Configured name (empty string if unset).
        host_name: Hostname of the client device.
        mac: MAC address (empty string if unavailable).
        volume: Volume level 0-100.
        muted: Whether audio is muted.
        connected: Whether client is connected to server.
        latency: Configured latency offset in milliseconds.
        snapclient_version: Version of snapclient running on client.
    """

    id: str
    host: str = ""
    name: str = ""
    host_name: str = ""
    mac: str = ""
    volume: int = 50
    muted: bool = False
    connected: bool = True
    latency: int = 0
    snapclient_version: str = ""

    def __post_init__(self) -> None:
        """Validate and clamp volume to 0-100 range."""
        if self.volume < 0 or self.volume > 100:  # noqa: PLR2004
            clamped = max(0, min(100, self.volume))
            logger.warning(
                "Client %s volume %d out of range, clamped to %d",
                self.id,
                self.volume,
                clamped,
            )
            object.__setattr__(self, "volume", clamped)

    @property
    def display_name(self) -> str:
        """Return configured name, else a host- or id-derived label."""
        if self.name:
            return self.name
        if self.host_name:
            return f"Client on host {self.host_name}"
        return f"Client with ID {self.id}"
