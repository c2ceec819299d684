"""Rich rendering of the mixer dashboard."""

from types import TracebackType

from rich import box
from rich.cells import cell_len
from rich.console import Console, ConsoleOptions, Group, RenderableType, RenderResult
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.segment import Segment
from rich.table import Table
from rich.text import Text

from snapmixer.core.loop import DashboardView
from snapmixer.core.topology import sorted_clients, sorted_groups
from snapmixer.models.server_state import ServerState

FOCUS_COLOR = "yellow"
IDLE_BORDER_COLOR = "color(236)"
MUTED_BAR_COLOR = "color(238)"
BAR_COLOR = "blue"

MODAL_WIDTH = 72
BAR_MIN_WIDTH = 10
SYMBOL_WIDTH = 2
# Panel borders and padding, symbol column and column gaps around a row
_ROW_CHROME = 8


def volume_symbol(muted: bool, unicode: bool = True) -> Text:
    """Return the mute indicator for a group or client."""
    if unicode:
        symbol = "🔇" if muted else "🔊"
    else:
        symbol = "M" if muted else " "
    return Text(symbol, style="red" if muted else "green")


def _modal(view: DashboardView) -> Panel | None:
    """Return the blocking modal for the current view, if any."""
    if view.errors:
        return Panel(
            Text("\n".join(view.errors)),
            title=Text(" Error ", style="bold"),
            subtitle=" esc to dismiss ",
            subtitle_align="right",
            border_style="red",
            box=box.ROUNDED,
            padding=(0, 1),
        )
    if not view.health.connected:
        message = (
            "Disconnected. Attempting to reconnect...\n"
            f"Reconnection attempt: {view.health.reconnect_attempts}"
        )
    elif view.health.stale:
        message = "Connection appears to be stale. Awaiting response..."
    else:
        return None
    return Panel(
        Text(message),
        title=Text(" Connection status ", style="bold"),
        border_style=FOCUS_COLOR,
        box=box.ROUNDED,
        padding=(0, 1),
    )


class ModalOverlay:
    """Draws a modal panel centred over the dashboard.

    Only the cells under the modal are replaced; the rest of the dashboard
    stays visible around it.
    """

    def __init__(
        self, base: RenderableType, modal: RenderableType, width: int = MODAL_WIDTH
    ) -> None:
        """Initialize the overlay.

        Args:
            base: The dashboard underneath.
            modal: The panel drawn on top.
            width: Modal width in cells (capped to the available width).
        """
        self.base = base
        self.modal = modal
        self.width = width

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        width = options.max_width
        lines = console.render_lines(self.base, options, pad=True)

        modal_width = min(self.width, width)
        modal_lines = console.render_lines(
            self.modal, options.update(width=modal_width, height=None), pad=True
        )
        blank = [Segment(" " * width)]
        while len(lines) < len(modal_lines):
            lines.append(blank)

        top = (len(lines) - len(modal_lines)) // 2
        left = (width - modal_width) // 2
        for offset, modal_line in enumerate(modal_lines):
            cuts = [left, left + modal_width, width]
            before, _, after = Segment.divide(lines[top + offset], cuts)
            lines[top + offset] = [*before, *modal_line, *after]

        new_line = Segment.line()
        for line in lines:
            yield from line
            yield new_line


def _name_width(state: ServerState, width: int | None) -> int:
    """Return the name column width, leaving the volume bar its minimum."""
    longest = max((cell_len(c.display_name) for c in state.clients), default=0)
    if width is None:
        return longest
    return max(1, min(longest, width - _ROW_CHROME - BAR_MIN_WIDTH))


def _groups(view: DashboardView, unicode: bool, width: int | None) -> RenderableType:
    """Render one panel per group, one row per client."""
    state = view.state
    groups = sorted_groups(state)
    if not groups:
        return Text("Waiting for server status...", style="dim")

    name_width = _name_width(state, width)
    panels: list[Panel] = []
    for group in groups:
        rows = Table.grid(padding=(0, 1), expand=True)
        rows.add_column(justify="right", width=name_width, no_wrap=True, overflow="ellipsis")
        rows.add_column(width=SYMBOL_WIDTH)
        rows.add_column(ratio=1, min_width=BAR_MIN_WIDTH)

        for client in sorted_clients(group, state):
            focused = view.focus == client.id
            if focused:
                bar_color = FOCUS_COLOR
            elif group.muted or client.muted:
                bar_color = MUTED_BAR_COLOR
            else:
                bar_color = BAR_COLOR
            rows.add_row(
                Text(client.display_name, style="bold yellow" if focused else ""),
                volume_symbol(client.muted, unicode),
                ProgressBar(
                    total=100,
                    completed=client.volume,
                    complete_style=bar_color,
                    finished_style=bar_color,
                ),
            )

        title = Text.assemble(
            volume_symbol(group.muted, unicode),
            " ",
            (group.display_name, "bold"),
            " ",
        )
        panels.append(
            Panel(
                rows,
                title=title,
                title_align="left",
                border_style=FOCUS_COLOR if view.focus == group.id else IDLE_BORDER_COLOR,
                box=box.ROUNDED,
                padding=(0, 1),
            )
        )
    return Group(*panels)


def render_dashboard(
    view: DashboardView, unicode: bool = True, width: int | None = None
) -> RenderableType:
    """Build the dashboard: one panel per group, one row per client.

    A pending error or connection problem is drawn as a modal on top.

    Args:
        view: Snapshot to render.
        unicode: Whether the terminal can show emoji mute symbols.
        width: Terminal width; caps the name column so the volume bar keeps
            at least its minimum width.

    Returns:
        A renderable for the whole screen.
    """
    dashboard = _groups(view, unicode, width)
    modal = _modal(view)
    if modal is not None:
        return ModalOverlay(dashboard, modal)
    return dashboard


class Dashboard:
    """Full-screen live display in the terminal's alternate screen.

    Example:
        with Dashboard() as dashboard:
            dashboard.draw(view)
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the display on the given console (default stdout)."""
        self._console = console or Console()
        self._unicode = self._console.encoding.lower().startswith("utf")
        self._live = Live(console=self._console, screen=True, auto_refresh=False)

    def __enter__(self) -> "Dashboard":
        """Switch to the alternate screen."""
        self._live.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Restore the main screen."""
        self._live.stop()

    def draw(self, view: DashboardView) -> None:
        """Render a new frame."""
        frame = render_dashboard(view, self._unicode, self._console.width)
        self._live.update(frame, refresh=True)
