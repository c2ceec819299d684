"""Tests for focus navigation."""

import pytest

from snapmixer.core.navigation import UNCHANGED, Changed, move_group, move_row
from snapmixer.core.topology import flatten, group_sequence
from snapmixer.models.client import Client
from snapmixer.models.server_state import ServerState

from conftest import make_state


class TestMoveRow:
    """Tests for move_row()."""

    def test_unset_focus_enters_at_first_when_moving_down(self, nav_state: ServerState) -> None:
        """Test moving down without focus selects the first row."""
        assert move_row(1, None, nav_state) == Changed("G1")

    def test_unset_focus_enters_at_last_when_moving_up(self, nav_state: ServerState) -> None:
        """Test moving up without focus selects the last row."""
        assert move_row(-1, None, nav_state) == Changed("c3")

    def test_zero_delta_enters_at_last(self, nav_state: ServerState) -> None:
        """Test a non-positive delta uses the last row as entry point."""
        assert move_row(0, None, nav_state) == Changed("c3")

    def test_vanished_focus_uses_entry_point(self, nav_state: ServerState) -> None:
        """Test a focus no longer in the topology falls back like unset."""
        assert move_row(1, "gone", nav_state) == Changed("G1")
        assert move_row(-1, "gone", nav_state) == Changed("c3")

    def test_moves_across_group_boundary(self, nav_state: ServerState) -> None:
        """Test moving down from the last client of a group reaches the next group."""
        assert move_row(1, "c2", nav_state) == Changed("G2")

    def test_last_row_is_unchanged(self, nav_state: ServerState) -> None:
        """Test moving down from the last row reports no change."""
        assert move_row(1, "c3", nav_state) is UNCHANGED

    def test_first_row_is_unchanged(self, nav_state: ServerState) -> None:
        """Test moving up from the first row reports no change."""
        assert move_row(-1, "G1", nav_state) is UNCHANGED

    def test_overshoot_snaps_to_ends(self, nav_state: ServerState) -> None:
        """Test large moves clamp to the first/last row instead of wrapping."""
        assert move_row(-10, "c2", nav_state) == Changed("G1")
        assert move_row(10, "c1", nav_state) == Changed("c3")

    def test_repeated_up_is_idempotent_at_start(self, nav_state: ServerState) -> None:
        """Test repeated moves up settle on the first row."""
        focus = "c1"
        result = move_row(-1, focus, nav_state)
        assert result == Changed("G1")
        for _ in range(3):
            assert move_row(-1, "G1", nav_state) is UNCHANGED

    def test_example_walk(self, nav_state: ServerState) -> None:
        """Test walking the whole sequence top to bottom."""
        focus = None
        visited = []
        while True:
            result = move_row(1, focus, nav_state)
            if not isinstance(result, Changed):
                break
            focus = result.focus
            visited.append(focus)
        assert visited == flatten(nav_state)

    def test_empty_topology(self) -> None:
        """Test nothing to focus reports no change."""
        assert move_row(1, None, ServerState()) is UNCHANGED
        assert move_row(-1, "x", ServerState()) is UNCHANGED


class TestMoveGroup:
    """Tests for move_group()."""

    @pytest.fixture
    def three_groups(self) -> ServerState:
        return make_state(
            {
                ("g1", "A"): [Client(id="a1", name="a1"), Client(id="a2", name="a2")],
                ("g2", "B"): [Client(id="b1", name="b1")],
                ("g3", "C"): [Client(id="c1", name="c1")],
            }
        )

    def test_unset_focus_entry_points(self, three_groups: ServerState) -> None:
        """Test entering the groups sequence without focus."""
        assert move_group(1, None, three_groups) == Changed("g1")
        assert move_group(-1, None, three_groups) == Changed("g3")

    def test_group_to_group(self, three_groups: ServerState) -> None:
        """Test moving between groups."""
        assert move_group(1, "g1", three_groups) == Changed("g2")
        assert move_group(-1, "g3", three_groups) == Changed("g2")

    def test_group_bounds_unchanged(self, three_groups: ServerState) -> None:
        """Test moving past the first/last group reports no change."""
        assert move_group(-1, "g1", three_groups) is UNCHANGED
        assert move_group(1, "g3", three_groups) is UNCHANGED

    def test_up_from_client_lands_on_own_group(self, three_groups: ServerState) -> None:
        """Test jumping up from a client surfaces its parent group first."""
        assert move_group(-1, "b1", three_groups) == Changed("g2")
        assert move_group(-1, "a2", three_groups) == Changed("g1")

    def test_down_from_client_lands_on_next_group(self, three_groups: ServerState) -> None:
        """Test jumping down from a client skips to the following group."""
        assert move_group(1, "a1", three_groups) == Changed("g2")

    def test_down_from_client_in_last_group_clamps(self, three_groups: ServerState) -> None:
        """Test jumping down from the last group's client lands on that group."""
        assert move_group(1, "c1", three_groups) == Changed("g3")

    def test_group_jump_property_for_every_client(self, three_groups: ServerState) -> None:
        """Test the parent/next-group property holds for all clients."""
        groups = group_sequence(three_groups)
        for client in three_groups.clients:
            parent = three_groups.get_group_for_client(client.id)
            assert parent is not None
            p = groups.index(parent.id)
            assert move_group(-1, client.id, three_groups) == Changed(groups[p])
            expected = groups[min(p + 1, len(groups) - 1)]
            assert move_group(1, client.id, three_groups) == Changed(expected)

    def test_unknown_focus_uses_entry_point(self, three_groups: ServerState) -> None:
        """Test a focus that is neither group nor client falls back."""
        assert move_group(1, "ghost", three_groups) == Changed("g1")
        assert move_group(-1, "ghost", three_groups) == Changed("g3")

    def test_empty_topology(self) -> None:
        """Test no groups reports no change."""
        assert move_group(1, None, ServerState()) is UNCHANGED
