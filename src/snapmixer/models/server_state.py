"""ServerState model representing a complete server snapshot."""

from dataclasses import dataclass, field

from snapmixer.models.client import Client
from snapmixer.models.group import Group


@dataclass(frozen=True, slots=True)
class ServerState:
    """Snapshot of server state, handed to the core for a single event.

    Snapshots are never mutated; the connection replaces its current
    snapshot whenever the server reports a change.

    Attributes:
        groups: Groups on the server, in server order.
        clients: All clients across all groups.
        version: Snapserver version string.
        host: Server's hostname (as reported by server).
    """

    groups: list[Group] = field(default_factory=list)
    clients: list[Client] = field(default_factory=list)
    version: str = ""
    host: str = ""

    def get_client(self, client_id: str) -> Client | None:
        """Return client by ID or None if not found."""
        for client in self.clients:
            if client.id == client_id:
                return client
        return None

    def get_group(self, group_id: str) -> Group | None:
        """Return group by ID or None if not found."""
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def get_group_for_client(self, client_id: str) -> Group | None:
        """Return the group containing a client, or None."""
        for group in self.groups:
            if client_id in group.client_ids:
                return group
        return None

    def get_clients_for_group(self, group: Group) -> list[Client]:
        """Return the group's clients that are present in this snapshot."""
        result: list[Client] = []
        for cid in group.client_ids:
            client = self.get_client(cid)
            if client:
                result.append(client)
        return result
