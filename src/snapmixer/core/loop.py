"""Single-threaded control loop.

The loop waits for whichever source becomes ready first (watchdog timers,
inbound message batches, connection status transitions, terminal input),
handles exactly one event, applies the timer rearming rule, and redraws at
most once. Nothing here blocks: outbound commands are fire-and-forget.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from snapmixer.api.client import ConnectionStatus
from snapmixer.api.protocol import MessageResult
from snapmixer.core.config import Timings
from snapmixer.core.navigation import Changed, FocusMove, move_group, move_row
from snapmixer.core.volume import VolumeCommands, VolumeEngine, toggle_mute
from snapmixer.core.watchdog import Watchdog
from snapmixer.models.health import ConnectionHealth
from snapmixer.models.server_state import ServerState
from snapmixer.ui.keys import Action, InputEvent, KeyPress, map_key

logger = logging.getLogger(__name__)


class Connection(VolumeCommands, Protocol):
    """The parts of the server connection the control loop uses."""

    @property
    def state(self) -> ServerState: ...

    def request_status(self) -> bool: ...

    async def recv(self) -> list[MessageResult]: ...

    async def next_status(self) -> ConnectionStatus: ...


@dataclass(frozen=True, slots=True)
class DashboardView:
    """Everything the renderer needs for one frame.

    Attributes:
        state: Server snapshot.
        focus: Focused group or client id.
        health: Connection health flags.
        errors: Pending error messages, oldest first.
    """

    state: ServerState
    focus: str | None = None
    health: ConnectionHealth = field(default_factory=ConnectionHealth)
    errors: tuple[str, ...] = ()


@dataclass(slots=True)
class Outcome:
    """Side effects accumulated while handling one event."""

    redraw: bool = False
    sent: bool = False
    received: bool = False


_BATCH = "batch"
_STATUS = "status"
_INPUT = "input"


class ControlLoop:
    """Routes events to navigation, volume control and the watchdog.

    Example:
        loop = ControlLoop(connection, TerminalInput(), dashboard.draw)
        await loop.run()
    """

    def __init__(
        self,
        connection: Connection,
        events: AsyncIterator[InputEvent],
        draw: Callable[[DashboardView], None],
        timings: Timings | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the loop.

        Args:
            connection: Server connection (commands, batches, status).
            events: Terminal input events.
            draw: Called with a fresh view whenever a redraw is needed.
            timings: Watchdog intervals.
            clock: Monotonic clock used for timer deadlines.
            wall_clock: Wall clock used by the suspend detector.
        """
        self._connection = connection
        self._events = events
        self._draw = draw
        self._clock = clock
        self._wall_clock = wall_clock
        self.focus: str | None = None
        self.errors: list[str] = []
        self.engine = VolumeEngine()
        self.watchdog = Watchdog(timings or Timings(), clock(), wall_clock())

    @property
    def health(self) -> ConnectionHealth:
        """Return the current connection health."""
        return self.watchdog.health

    def view(self) -> DashboardView:
        """Return a snapshot for the renderer."""
        return DashboardView(
            state=self._connection.state,
            focus=self.focus,
            health=replace(self.watchdog.health),
            errors=tuple(self.errors),
        )

    async def run(self) -> None:
        """Process events until the user quits or input ends."""
        self._draw(self.view())
        tasks: dict[str, asyncio.Task[Any]] = {}
        try:
            while True:
                self._start_sources(tasks)
                outcome = Outcome()
                timeout = self.watchdog.next_deadline() - self._clock()

                done: set[asyncio.Task[Any]] = set()
                if timeout > 0:
                    done, _ = await asyncio.wait(
                        tasks.values(),
                        timeout=timeout,
                        return_when=asyncio.FIRST_COMPLETED,
                    )

                if done:
                    source, task = next((s, t) for s, t in tasks.items() if t in done)
                    del tasks[source]
                    if not self._dispatch(source, task, outcome):
                        return
                else:
                    self._handle_timers(outcome)

                self._finish(outcome)
        finally:
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)

    def _start_sources(self, tasks: dict[str, asyncio.Task[Any]]) -> None:
        sources: dict[str, Callable[[], Awaitable[Any]]] = {
            _BATCH: self._connection.recv,
            _STATUS: self._connection.next_status,
            _INPUT: self._next_input,
        }
        for name, factory in sources.items():
            if name not in tasks:
                tasks[name] = asyncio.ensure_future(factory())

    async def _next_input(self) -> InputEvent | None:
        try:
            return await self._events.__anext__()
        except StopAsyncIteration:
            return None

    def _dispatch(self, source: str, task: asyncio.Task[Any], outcome: Outcome) -> bool:
        """Handle one completed source; return False to stop the loop."""
        if source == _BATCH:
            self.handle_batch(task.result(), outcome)
        elif source == _STATUS:
            self.handle_status(task.result(), outcome)
        else:
            event = task.result()
            if event is None:
                logger.debug("Input stream ended")
                return False
            return self.handle_input(event, outcome)
        return True

    def _finish(self, outcome: Outcome) -> None:
        """Apply the timer rearming rule and redraw if anything changed."""
        now = self._clock()
        if outcome.received and self.watchdog.on_received(now):
            outcome.redraw = True
        if outcome.sent:
            self.watchdog.on_sent(now)
        if outcome.redraw:
            self._draw(self.view())

    def _handle_timers(self, outcome: Outcome) -> None:
        event = self.watchdog.fire_due(self._clock(), self._wall_clock())
        if event.request_status:
            self._connection.request_status()
            outcome.sent = True
        outcome.redraw = outcome.redraw or event.redraw

    def handle_batch(self, batch: list[MessageResult], outcome: Outcome) -> None:
        """Reconcile shadow volumes on success, queue errors on failure."""
        logger.debug("Received %d messages from Snapcast server", len(batch))
        outcome.received = True
        for message in batch:
            if message.is_success:
                self.engine.reconcile(self._connection.state)
            else:
                self.errors.append(message.error or f"{message.method} failed")
            outcome.redraw = True

    def handle_status(self, status: ConnectionStatus, outcome: Outcome) -> None:
        """Update health from a connection status transition."""
        event = self.watchdog.on_status(status)
        if event.request_status:
            self._connection.request_status()
        outcome.redraw = outcome.redraw or event.redraw

    def handle_input(self, event: InputEvent, outcome: Outcome) -> bool:
        """Run the action bound to a key press; return False to quit."""
        if not isinstance(event, KeyPress):
            outcome.redraw = True
            return True

        command = map_key(event, self.health, bool(self.errors))
        action = command.action
        state = self._connection.state

        if action is Action.EXIT:
            return False
        if action is Action.DISMISS:
            if not self.errors:
                return False
            self.errors.clear()
            outcome.redraw = True
        elif action in (Action.PREV, Action.NEXT):
            self._move(move_row(-1 if action is Action.PREV else 1, self.focus, state), outcome)
        elif action in (Action.PREV_GROUP, Action.NEXT_GROUP):
            delta = -1 if action is Action.PREV_GROUP else 1
            self._move(move_group(delta, self.focus, state), outcome)
        elif action in (
            Action.VOLUME_DOWN,
            Action.VOLUME_DOWN_MORE,
            Action.VOLUME_UP,
            Action.VOLUME_UP_MORE,
        ):
            outcome.sent = self.engine.set_relative(
                command.value, self.focus, state, self._connection
            )
        elif action is Action.SET_VOLUME:
            outcome.sent = self.engine.set_absolute(
                command.value, self.focus, state, self._connection
            )
        elif action is Action.TOGGLE_MUTE:
            outcome.sent = toggle_mute(self.focus, state, self._connection)
        return True

    def _move(self, result: FocusMove, outcome: Outcome) -> None:
        if isinstance(result, Changed):
            self.focus = result.focus
            outcome.redraw = True
