"""Shared fixtures for snapmixer tests."""

import asyncio
from typing import Any

import pytest

from snapmixer.api.client import ConnectionStatus
from snapmixer.api.protocol import MessageResult
from snapmixer.models.client import Client
from snapmixer.models.group import Group
from snapmixer.models.server_state import ServerState


class FakeConnection:
    """In-memory stand-in for SnapcastConnection recording every command."""

    def __init__(self, state: ServerState | None = None) -> None:
        self.state = state or ServerState()
        self.commands: list[tuple[Any, ...]] = []
        self.batches: asyncio.Queue[list[MessageResult]] = asyncio.Queue()
        self.statuses: asyncio.Queue[ConnectionStatus] = asyncio.Queue()

    def request_status(self) -> bool:
        self.commands.append(("status",))
        return True

    def set_client_volume(self, client_id: str, percent: int, muted: bool) -> bool:
        self.commands.append(("volume", client_id, percent, muted))
        return True

    def set_group_mute(self, group_id: str, muted: bool) -> bool:
        self.commands.append(("group_mute", group_id, muted))
        return True

    async def recv(self) -> list[MessageResult]:
        return await self.batches.get()

    async def next_status(self) -> ConnectionStatus:
        return await self.statuses.get()

    @property
    def volume_commands(self) -> dict[str, int]:
        """Return the last commanded percent per client."""
        return {c[1]: c[2] for c in self.commands if c[0] == "volume"}


def make_state(layout: dict[tuple[str, str], list[Client]]) -> ServerState:
    """Build a snapshot from {(group_id, group_name): [clients]}."""
    groups: list[Group] = []
    clients: list[Client] = []
    for (group_id, name), members in layout.items():
        groups.append(Group(id=group_id, name=name, client_ids=[c.id for c in members]))
        clients.extend(members)
    return ServerState(groups=groups, clients=clients)


@pytest.fixture
def nav_state() -> ServerState:
    """Snapshot flattening to [G1, c1, c2, G2, c3]."""
    return make_state(
        {
            ("G2", "Bedroom"): [Client(id="c3", name="Bed")],
            ("G1", "Attic"): [
                Client(id="c2", name="Right"),
                Client(id="c1", name="Left"),
            ],
        }
    )


@pytest.fixture
def kitchen_state() -> ServerState:
    """Group G with A at 40% and B at 20%."""
    return make_state(
        {
            ("G", "Kitchen"): [
                Client(id="A", name="Counter", volume=40),
                Client(id="B", name="Window", volume=20, muted=True),
            ],
            ("H", "Hall"): [Client(id="C", name="Door", volume=70)],
        }
    )


@pytest.fixture
def fake_connection(kitchen_state: ServerState) -> FakeConnection:
    """Return a FakeConnection holding the kitchen snapshot."""
    return FakeConnection(kitchen_state)
