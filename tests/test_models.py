"""Tests for the data models."""

import pytest

from snapmixer.models.client import Client
from snapmixer.models.group import Group
from snapmixer.models.health import ConnectionHealth
from snapmixer.models.server_state import ServerState


class TestClient:
    """Tests for Client dataclass."""

    def test_client_creation_with_defaults(self) -> None:
        """Test creating a client with default values."""
        client = Client(id="client-1")
        assert client.host == ""
        assert client.name == ""
        assert client.volume == 50
        assert client.muted is False
        assert client.connected is True

    def test_display_name_with_name(self) -> None:
        """Test display_name returns the configured name."""
        client = Client(id="client-1", name="Living Room", host_name="pi")
        assert client.display_name == "Living Room"

    def test_display_name_falls_back_to_host_name(self) -> None:
        """Test display_name uses the host name when unnamed."""
        client = Client(id="client-1", host_name="raspberrypi")
        assert client.display_name == "Client on host raspberrypi"

    def test_display_name_falls_back_to_id(self) -> None:
        """Test display_name uses the id without name or host name."""
        client = Client(id="00:11:22:33:44:55", host="10.0.0.2")
        assert client.display_name == "Client with ID 00:11:22:33:44:55"

    @pytest.mark.parametrize(("volume", "expected"), [(-5, 0), (150, 100), (42, 42)])
    def test_volume_clamped(self, volume: int, expected: int) -> None:
        """Test out-of-range volumes are clamped to 0-100."""
        assert Client(id="c", volume=volume).volume == expected

    def test_client_is_frozen(self) -> None:
        """Test clients are immutable."""
        client = Client(id="c")
        with pytest.raises(AttributeError):
            client.volume = 10  # type: ignore[misc]


class TestGroup:
    """Tests for Group dataclass."""

    def test_display_name_with_name(self) -> None:
        """Test display_name returns the configured name."""
        assert Group(id="g1", name="Downstairs").display_name == "Downstairs"

    def test_display_name_falls_back_to_id(self) -> None:
        """Test display_name uses the id when unnamed."""
        assert Group(id="g1").display_name == "Group with ID g1"

    def test_is_empty(self) -> None:
        """Test is_empty reflects membership."""
        assert Group(id="g1").is_empty is True
        assert Group(id="g1", client_ids=["c"]).is_empty is False


class TestServerState:
    """Tests for ServerState lookups."""

    @pytest.fixture
    def state(self) -> ServerState:
        return ServerState(
            groups=[
                Group(id="g1", client_ids=["c1", "missing"]),
                Group(id="g2", client_ids=["c2"]),
            ],
            clients=[Client(id="c1"), Client(id="c2")],
        )

    def test_get_client_and_group(self, state: ServerState) -> None:
        """Test id lookups."""
        assert state.get_client("c2") == Client(id="c2")
        assert state.get_client("nope") is None
        assert state.get_group("g1") is not None
        assert state.get_group("nope") is None

    def test_get_group_for_client(self, state: ServerState) -> None:
        """Test finding a client's group."""
        group = state.get_group_for_client("c2")
        assert group is not None
        assert group.id == "g2"
        assert state.get_group_for_client("nope") is None

    def test_get_clients_for_group_skips_unknown_ids(self, state: ServerState) -> None:
        """Test members missing from the snapshot are skipped."""
        group = state.get_group("g1")
        assert group is not None
        assert [c.id for c in state.get_clients_for_group(group)] == ["c1"]


class TestConnectionHealth:
    """Tests for ConnectionHealth."""

    def test_defaults_are_disconnected(self) -> None:
        """Test a fresh health record blocks actions."""
        health = ConnectionHealth()
        assert health.connected is False
        assert health.blocked is True

    def test_blocked_when_stale(self) -> None:
        """Test stale connections block actions."""
        assert ConnectionHealth(connected=True, stale=True).blocked is True
        assert ConnectionHealth(connected=True).blocked is False
