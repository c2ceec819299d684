"""Sorted, flattened view of the focusable groups and clients.

The order is recomputed from the snapshot on every call; group membership
and names can change between any two events.
"""

from snapmixer.models.client import Client
from snapmixer.models.group import Group
from snapmixer.models.server_state import ServerState


def sorted_groups(state: ServerState) -> list[Group]:
    """Return groups sorted by display name (ties broken by id)."""
    return sorted(state.groups, key=lambda g: (g.display_name, g.id))


def sorted_clients(group: Group, state: ServerState) -> list[Client]:
    """Return the group's resolvable clients sorted by display name."""
    return sorted(
        state.get_clients_for_group(group),
        key=lambda c: (c.display_name, c.id),
    )


def flatten(state: ServerState) -> list[str]:
    """Return every focusable id: each group followed by its clients.

    Args:
        state: Current server snapshot.

    Returns:
        Group and client ids in display order.
    """
    ids: list[str] = []
    for group in sorted_groups(state):
        ids.append(group.id)
        ids.extend(client.id for client in sorted_clients(group, state))
    return ids


def group_sequence(state: ServerState) -> list[str]:
    """Return group ids in display order."""
    return [group.id for group in sorted_groups(state)]
