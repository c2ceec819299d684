"""Group model for clients sharing an audio source."""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Group:
    """A group of clients sharing an audio source and a mute flag.

    Attributes:
        id: Unique group identifier from server.
        name: Human-readable group name (empty string if unset).
        stream_id: ID of the current audio source/stream.
        muted: Whether group audio is muted.
        client_ids: IDs of the clients in this group, in server order.
    """

    id: str
    name: str = ""
    stream_id: str = ""
    muted: bool = False
    client_ids: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        """Return configured name, else an id-derived label."""
        return self.name or f"Group with ID {self.id}"

    @property
    def is_empty(self) -> bool:
        """Return True if group has no clients."""
        return len(self.client_ids) == 0
