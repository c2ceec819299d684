"""Data models for Snapcast clients, groups, and server snapshots."""

from snapmixer.models.client import Client
from snapmixer.models.group import Group
from snapmixer.models.health import ConnectionHealth
from snapmixer.models.server_state import ServerState

__all__ = [
    "Client",
    "ConnectionHealth",
    "Group",
    "ServerState",
]
