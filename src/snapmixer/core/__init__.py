"""Core control logic.

Modules:
    topology: Sorted, flattened view of groups and clients.
    navigation: Focus movement over the topology.
    volume: Proportional volume engine with fractional shadow volumes.
    watchdog: Connection health timers and state machine.
    loop: Control loop multiplexing timers, messages, status and input.
    config: Command-line/environment configuration and logging setup.
    discovery: mDNS lookup of a Snapcast server.
"""

from snapmixer.core.config import AppConfig, Timings
from snapmixer.core.loop import ControlLoop, DashboardView
from snapmixer.core.navigation import UNCHANGED, Changed, move_group, move_row
from snapmixer.core.volume import VolumeEngine, toggle_mute
from snapmixer.core.watchdog import Watchdog

__all__ = [
    "AppConfig",
    "Changed",
    "ControlLoop",
    "DashboardView",
    "Timings",
    "UNCHANGED",
    "VolumeEngine",
    "Watchdog",
    "move_group",
    "move_row",
    "toggle_mute",
]
