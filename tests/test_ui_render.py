"""Tests for the rich dashboard renderer."""

from io import StringIO

from rich.console import Console

from snapmixer.core.loop import DashboardView
from snapmixer.models.client import Client
from snapmixer.models.health import ConnectionHealth
from snapmixer.models.server_state import ServerState
from snapmixer.ui.render import Dashboard, render_dashboard, volume_symbol

from conftest import make_state

HEALTHY = ConnectionHealth(connected=True)


def _render(view: DashboardView, unicode: bool = True) -> str:
    console = Console(file=StringIO(), width=80, record=True, color_system=None)
    console.print(render_dashboard(view, unicode))
    return console.export_text()


class TestVolumeSymbol:
    """Tests for volume_symbol()."""

    def test_unicode(self) -> None:
        """Test speaker symbols."""
        assert volume_symbol(False).plain == "🔊"
        assert volume_symbol(True).plain == "🔇"

    def test_ascii_fallback(self) -> None:
        """Test plain letters when the terminal lacks unicode."""
        assert volume_symbol(True, unicode=False).plain == "M"
        assert volume_symbol(False, unicode=False).plain == " "


class TestRenderDashboard:
    """Tests for render_dashboard()."""

    def test_groups_and_clients_in_display_order(self, kitchen_state: ServerState) -> None:
        """Test every group and client is listed, groups sorted by name."""
        text = _render(DashboardView(kitchen_state, focus="A", health=HEALTHY))
        for name in ("Hall", "Kitchen", "Door", "Counter", "Window"):
            assert name in text
        assert text.index("Hall") < text.index("Kitchen")
        assert text.index("Counter") < text.index("Window")

    def test_fallback_names(self) -> None:
        """Test unnamed groups and clients use their fallback names."""
        state = make_state({("g-7", ""): [Client(id="c-9", host_name="pi")]})
        text = _render(DashboardView(state, health=HEALTHY), unicode=False)
        assert "Group with ID g-7" in text
        assert "Client on host pi" in text

    def test_waiting_for_status(self) -> None:
        """Test an empty snapshot shows a placeholder."""
        text = _render(DashboardView(ServerState(), health=HEALTHY))
        assert "Waiting for server status" in text

    def test_disconnected_modal(self, kitchen_state: ServerState) -> None:
        """Test the reconnect modal is drawn over the groups."""
        health = ConnectionHealth(connected=False, reconnect_attempts=3)
        text = _render(DashboardView(kitchen_state, health=health))
        assert "Disconnected. Attempting to reconnect..." in text
        assert "Reconnection attempt: 3" in text
        lines = text.splitlines()
        assert "Hall" in lines[0]
        assert lines[1].startswith("│")
        assert "Connection status" in lines[1]

    def test_stale_modal(self, kitchen_state: ServerState) -> None:
        """Test the stale modal."""
        health = ConnectionHealth(connected=True, stale=True)
        text = _render(DashboardView(kitchen_state, health=health))
        assert "Connection appears to be stale" in text

    def test_error_modal_wins(self, kitchen_state: ServerState) -> None:
        """Test errors are shown before connection problems."""
        view = DashboardView(
            kitchen_state,
            health=ConnectionHealth(connected=False),
            errors=("Client.SetVolume failed: boom", "Group.SetMute failed: nope"),
        )
        text = _render(view)
        assert "Client.SetVolume failed: boom" in text
        assert "Group.SetMute failed: nope" in text
        assert "esc to dismiss" in text
        assert "Disconnected" not in text

    def test_long_name_keeps_volume_bar(self) -> None:
        """Test a long client name is truncated before the bar is squeezed."""
        state = make_state({("G", "Den"): [Client(id="A", name="N" * 100, volume=100)]})
        console = Console(file=StringIO(), width=80, record=True, color_system=None)
        console.print(render_dashboard(DashboardView(state, health=HEALTHY), width=80))
        row = next(line for line in console.export_text().splitlines() if "NNN" in line)
        assert "…" in row
        assert row.count("━") >= 10


class TestDashboard:
    """Tests for the live Dashboard."""

    def test_draw_renders_frame(self, kitchen_state: ServerState) -> None:
        """Test drawing inside the context writes the frame."""
        output = StringIO()
        console = Console(
            file=output, width=80, height=24, color_system=None, force_terminal=True
        )
        with Dashboard(console) as dashboard:
            dashboard.draw(DashboardView(kitchen_state, focus="G", health=HEALTHY))
        assert "Kitchen" in output.getvalue()
