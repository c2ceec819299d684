"""Focus movement over the sorted group/client topology.

Navigation is clamped and never wraps. Both movements report either the new
focus or :data:`UNCHANGED`; the latter lets the control loop skip a redraw.
"""

from dataclasses import dataclass

from snapmixer.core.topology import flatten, group_sequence
from snapmixer.models.server_state import ServerState


@dataclass(frozen=True, slots=True)
class Changed:
    """Focus moved to a new id."""

    focus: str


@dataclass(frozen=True, slots=True)
class Unchanged:
    """Focus stays where it is."""


UNCHANGED = Unchanged()

FocusMove = Changed | Unchanged


def _entry_point(delta: int, ids: list[str]) -> str:
    """Return where focus enters the sequence when travelling by delta."""
    return ids[0] if delta > 0 else ids[-1]


def _step(delta: int, index: int, ids: list[str]) -> str | None:
    """Move from index by delta, snapping to the ends; None if already there."""
    target = index + delta
    last = len(ids) - 1
    if target < 0:
        return ids[0] if index > 0 else None
    if target > last:
        return ids[last] if index < last else None
    return ids[target]


def _result(new_focus: str | None, focus: str | None) -> FocusMove:
    if new_focus is None or new_focus == focus:
        return UNCHANGED
    return Changed(new_focus)


def move_row(delta: int, focus: str | None, state: ServerState) -> FocusMove:
    """Move focus by delta rows over groups interleaved with their clients.

    Args:
        delta: Rows to move; negative moves up.
        focus: Currently focused group or client id, if any.
        state: Current server snapshot.

    Returns:
        Changed with the new focus, or UNCHANGED.
    """
    ids = flatten(state)
    if not ids:
        return UNCHANGED
    if focus is None or focus not in ids:
        return _result(_entry_point(delta, ids), focus)
    return _result(_step(delta, ids.index(focus), ids), focus)


def move_group(delta: int, focus: str | None, state: ServerState) -> FocusMove:
    """Move focus by delta groups.

    From a client, moving up lands on the client's own group and moving
    down lands on the group after it.

    Args:
        delta: Groups to move; negative moves up.
        focus: Currently focused group or client id, if any.
        state: Current server snapshot.

    Returns:
        Changed with the new focus, or UNCHANGED.
    """
    ids = group_sequence(state)
    if not ids:
        return UNCHANGED
    if focus is not None and focus in ids:
        return _result(_step(delta, ids.index(focus), ids), focus)

    parent = state.get_group_for_client(focus) if focus is not None else None
    if parent is None or parent.id not in ids:
        return _result(_entry_point(delta, ids), focus)

    parent_index = ids.index(parent.id)
    target = parent_index + delta + (1 if delta < 0 else 0)
    target = max(0, min(len(ids) - 1, target))
    return _result(ids[target], focus)
