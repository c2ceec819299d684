"""Connection health watchdog.

Three timers decide when to probe the server and when to report the
connection as stale:

* quiet timer: rearmed on every inbound batch; when it expires the server
  has been silent for a long time and a status request is sent.
* response timer: armed whenever a command is sent and disarmed by the next
  inbound batch; when it expires the connection is marked stale.
* suspend detector: ticks at a fixed interval and compares the wall-clock
  gap between ticks; a gap far beyond the interval means the host was
  suspended and the connection needs revalidating.

The quiet and response timers only run while connected and not stale.
"""

import logging
from dataclasses import dataclass

from snapmixer.api.client import ConnectionStatus
from snapmixer.core.config import Timings
from snapmixer.models.health import ConnectionHealth

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WatchdogEvent:
    """What happened when the watchdog's timers were serviced.

    Attributes:
        request_status: A status request should be sent now.
        redraw: Health changed and the dashboard needs a redraw.
    """

    request_status: bool = False
    redraw: bool = False


class Watchdog:
    """Timer bookkeeping and health state machine.

    Times are plain floats: ``now`` values come from a monotonic clock and
    ``wall_now`` values from the wall clock.
    """

    def __init__(self, timings: Timings, now: float, wall_now: float) -> None:
        """Initialize the watchdog with the quiet timer armed.

        Args:
            timings: Timer intervals.
            now: Current monotonic time.
            wall_now: Current wall-clock time.
        """
        self._timings = timings
        self.health = ConnectionHealth()
        self.quiet_deadline: float | None = now + timings.quiet
        self.response_deadline: float | None = None
        self._next_tick = now + timings.suspend_tick
        self._last_wall = wall_now

    @property
    def _timers_active(self) -> bool:
        return self.health.connected and not self.health.stale

    def on_status(self, status: ConnectionStatus) -> WatchdogEvent:
        """Apply a connection status transition.

        Returns:
            Always requires a redraw; a new connection also needs a status
            request.
        """
        logger.debug("Connection status changed to %s", status.value)
        if status is ConnectionStatus.CONNECTED:
            self.health.connected = True
            self.health.reconnect_attempts = 0
            return WatchdogEvent(request_status=True, redraw=True)
        if status is ConnectionStatus.DISCONNECTED:
            self.health.connected = False
            self.health.reconnect_attempts = 1
        else:
            self.health.reconnect_attempts += 1
        return WatchdogEvent(redraw=True)

    def on_received(self, now: float) -> bool:
        """Rearm the quiet timer and cancel the response timer.

        Returns:
            True if the connection was stale and no longer is.
        """
        self.quiet_deadline = now + self._timings.quiet
        self.response_deadline = None
        if self.health.stale:
            logger.debug("Traffic resumed; connection no longer stale")
            self.health.stale = False
            return True
        return False

    def on_sent(self, now: float) -> None:
        """Arm the response timer after a command was sent."""
        self.response_deadline = now + self._timings.expected_response

    def next_deadline(self) -> float:
        """Return the earliest time at which a timer needs servicing."""
        deadlines = [self._next_tick]
        if self._timers_active:
            if self.quiet_deadline is not None:
                deadlines.append(self.quiet_deadline)
            if self.response_deadline is not None:
                deadlines.append(self.response_deadline)
        return min(deadlines)

    def fire_due(self, now: float, wall_now: float) -> WatchdogEvent:
        """Service every timer whose deadline has passed.

        Args:
            now: Current monotonic time.
            wall_now: Current wall-clock time.

        Returns:
            The combined outcome of the expired timers.
        """
        event = WatchdogEvent()

        if now >= self._next_tick:
            gap = wall_now - self._last_wall
            if gap >= self._timings.suspend_threshold:
                logger.debug(
                    "Possible system suspend/resume detected: expected ~%.1fs to have "
                    "passed; in fact %.1fs have passed",
                    self._timings.suspend_tick,
                    gap,
                )
                event.request_status = True
            self._last_wall = wall_now
            # Missed ticks are skipped, not replayed
            while self._next_tick <= now:
                self._next_tick += self._timings.suspend_tick

        if self._timers_active and self.quiet_deadline is not None and now >= self.quiet_deadline:
            logger.debug("No messages received for a while; requesting status")
            self.quiet_deadline = None
            event.request_status = True

        if (
            self._timers_active
            and self.response_deadline is not None
            and now >= self.response_deadline
        ):
            logger.debug("No response; marking connection stale")
            self.health.stale = True
            event.redraw = True

        return event
