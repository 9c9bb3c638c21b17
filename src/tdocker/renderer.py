"""
Rendering of dashboard state into rich renderables.

``render`` is a pure function of (state, theme, keymap); it takes no
decisions and performs no I/O. The Textual host hands the result to a
Static widget, and the ``ps`` subcommand prints it with a plain Console.
"""

from typing import List

from rich import box
from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .config import ColorTheme, KeyBindings
from .model import DashboardState
from .projection import COLUMNS, project

SPINNER_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"

# (binding names, label) in legend order
LEGEND = (
    (("up", "down"), "Navigate"),
    (("focus",), "Focus"),
    (("quit",), "Quit"),
    (("refresh",), "Refresh"),
    (("attach",), "Attach"),
    (("stop",), "Stop"),
    (("restart",), "Restart/Start"),
    (("delete",), "Delete"),
    (("open",), "Open in browser"),
)


def help_legend(keymap: KeyBindings) -> str:
    parts = []
    for names, label in LEGEND:
        keys: List[str] = []
        for name in names:
            keys.extend(keymap.keys(name))
        if keys:
            parts.append(f"{'/'.join(keys)}: {label}")
    return "  " + " • ".join(parts)


def render_loading(state: DashboardState, theme: ColorTheme) -> Text:
    frame = SPINNER_FRAMES[state.spinner_phase % len(SPINNER_FRAMES)]
    text = Text("\n\n ")
    text.append(frame, style=theme.spinner)
    text.append(" Loading...")
    return text


def render_table(state: DashboardState, theme: ColorTheme) -> Table:
    table = Table(
        box=box.SQUARE,
        border_style=theme.border,
        header_style=theme.header,
        show_edge=True,
    )
    for title, width in COLUMNS:
        table.add_column(title, width=width, no_wrap=True, overflow="ellipsis")
    for row in project(state.records, state.selected):
        style = None
        if row.selected and state.focused:
            style = theme.selected
        elif row.muted:
            style = theme.muted
        table.add_row(*row.cells, style=style)
    return table


def render_status(state: DashboardState, theme: ColorTheme) -> Text:
    status = Text()
    if state.error:
        status.append(f"  Error loading data: {state.error}\n", style=theme.error)
    if state.skipped_lines:
        status.append(f"  Skipped {state.skipped_lines} malformed row(s)\n", style=theme.error)
    if state.pending:
        status.append(f"  {len(state.pending)} action(s) running\n", style=theme.message)
    if state.message:
        status.append(f"  {state.message}\n", style=theme.message)
    return status


def render(state: DashboardState, theme: ColorTheme, keymap: KeyBindings) -> RenderableType:
    if state.loading:
        return render_loading(state, theme)
    return Group(
        render_table(state, theme),
        render_status(state, theme),
        Text(help_legend(keymap), style=theme.help),
    )
