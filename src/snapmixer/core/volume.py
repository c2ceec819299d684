"""Proportional volume control for clients and groups.

The server reports integer percentages. Scaling a group repeatedly with
integers would let rounding error pile up and flatten the balance between
its members, so the engine keeps a fractional shadow volume per client and
only rounds when building the command. The shadow is resynchronised from
the server on every successful update.
"""

import logging
import math
from typing import Protocol

from snapmixer.models.client import Client
from snapmixer.models.server_state import ServerState

logger = logging.getLogger(__name__)

MIN_VOLUME = 0.0
MAX_VOLUME = 100.0


class VolumeCommands(Protocol):
    """Commands the engine issues to the server connection."""

    def set_client_volume(self, client_id: str, percent: int, muted: bool) -> bool: ...

    def set_group_mute(self, group_id: str, muted: bool) -> bool: ...


def _clamp(value: float) -> float:
    return max(MIN_VOLUME, min(MAX_VOLUME, value))


def round_percent(value: float) -> int:
    """Round a fractional volume to the nearest percent, halves away from zero."""
    return int(math.floor(value + 0.5))


class VolumeEngine:
    """Absolute and relative volume changes with fractional bookkeeping.

    Example:
        engine = VolumeEngine()
        engine.reconcile(state)
        engine.set_absolute(60, "group-1", state, connection)
    """

    def __init__(self) -> None:
        """Initialize with an empty shadow map."""
        self._shadow: dict[str, float] = {}

    def shadow(self, client: Client) -> float:
        """Return the client's fractional volume, falling back to the server's."""
        return self._shadow.get(client.id, float(client.volume))

    def reconcile(self, state: ServerState) -> None:
        """Overwrite shadow volumes that disagree with the server.

        Args:
            state: Snapshot after a successful update.
        """
        for client in state.clients:
            fractional = self._shadow.get(client.id)
            if fractional is None or round_percent(fractional) != client.volume:
                self._shadow[client.id] = float(client.volume)

    def _loudest(self, clients: list[Client]) -> float:
        return max(self.shadow(client) for client in clients)

    def _send(self, client: Client, fractional: float, commands: VolumeCommands) -> None:
        self._shadow[client.id] = fractional
        commands.set_client_volume(client.id, round_percent(fractional), client.muted)

    def set_absolute(
        self,
        target: float,
        focus: str | None,
        state: ServerState,
        commands: VolumeCommands,
    ) -> bool:
        """Set the focused client's volume, or scale the focused group.

        A group is scaled so that its loudest member reaches the target while
        every member keeps its ratio to the loudest one. A group that is
        entirely silent has every member set to the target directly.

        Args:
            target: Desired volume in percent; clamped to 0-100.
            focus: Focused group or client id.
            state: Current server snapshot.
            commands: Connection receiving the volume commands.

        Returns:
            True if at least one command was sent.
        """
        target = _clamp(target)
        if focus is None:
            return False

        group = state.get_group(focus)
        if group is not None:
            members = state.get_clients_for_group(group)
            if not members:
                return False
            loudest = self._loudest(members)
            if loudest == 0:
                for client in members:
                    self._send(client, target, commands)
            else:
                factor = target / loudest
                for client in members:
                    self._send(client, _clamp(self.shadow(client) * factor), commands)
            logger.debug("Scaled group %s to %.2f%% (%d clients)", focus, target, len(members))
            return True

        client = state.get_client(focus)
        if client is not None:
            self._send(client, target, commands)
            logger.debug("Set client %s to %.2f%%", focus, target)
            return True

        return False

    def set_relative(
        self,
        delta: float,
        focus: str | None,
        state: ServerState,
        commands: VolumeCommands,
    ) -> bool:
        """Nudge the focused client, or the focused group's loudest member.

        Args:
            delta: Change in percent; negative lowers the volume.
            focus: Focused group or client id.
            state: Current server snapshot.
            commands: Connection receiving the volume commands.

        Returns:
            True if at least one command was sent.
        """
        if focus is None:
            return False

        current: float | None = None
        group = state.get_group(focus)
        if group is not None:
            members = state.get_clients_for_group(group)
            if members:
                current = self._loudest(members)
        else:
            client = state.get_client(focus)
            if client is not None:
                current = self.shadow(client)

        if current is None:
            return False
        return self.set_absolute(_clamp(current + delta), focus, state, commands)


def toggle_mute(focus: str | None, state: ServerState, commands: VolumeCommands) -> bool:
    """Flip the mute flag of the focused group or client.

    A client keeps its volume percent; only the mute flag changes.

    Returns:
        True if a command was sent.
    """
    if focus is None:
        return False
    group = state.get_group(focus)
    if group is not None:
        commands.set_group_mute(group.id, not group.muted)
        return True
    client = state.get_client(focus)
    if client is not None:
        commands.set_client_volume(client.id, client.volume, not client.muted)
        return True
    return False
