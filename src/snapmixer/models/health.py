"""Connection health as seen by the dashboard."""

from dataclasses import dataclass


@dataclass(slots=True)
class ConnectionHealth:
    """Connection flags shown to the user.

    Attributes:
        connected: Whether the session to the server is up.
        stale: Connected, but no traffic within the expected response window.
        reconnect_attempts: Reconnection attempt number while disconnected.
    """

    connected: bool = False
    stale: bool = False
    reconnect_attempts: int = 0

    @property
    def blocked(self) -> bool:
        """Return True if volume actions must wait for the connection."""
        return not self.connected or self.stale
