from dataclasses import replace

from rich.console import Console

from tdocker.config import ColorTheme, KeyBindings
from tdocker.model import DashboardState, PendingAction, ActionKind, Record
from tdocker.renderer import SPINNER_FRAMES, help_legend, render, render_table

THEME = ColorTheme()
KEYS = KeyBindings()


def to_text(renderable):
    console = Console(record=True, width=200, color_system=None)
    console.print(renderable)
    return console.export_text()


def rec(id, status="Up 2 hours"):
    return Record(id, "nginx", "nginx -g daemon", "2024-01-01", status, "0.0.0.0:8080->80/tcp", f"name-{id}")


def ready(*records, **changes):
    return replace(DashboardState(records=records, loading=False, ready=True), **changes)


def test_loading_renders_single_spinner_line():
    text = to_text(render(DashboardState(spinner_phase=3), THEME, KEYS))
    assert text.strip() == f"{SPINNER_FRAMES[3]} Loading..."


def test_spinner_wraps_around():
    text = to_text(render(DashboardState(spinner_phase=len(SPINNER_FRAMES)), THEME, KEYS))
    assert SPINNER_FRAMES[0] in text


def test_empty_table_has_header_and_legend():
    text = to_text(render(ready(), THEME, KEYS))
    assert "Container ID" in text
    assert "Names" in text
    assert help_legend(KEYS).strip() in text
    assert "name-" not in text


def test_rows_rendered_in_order():
    text = to_text(render(ready(rec("aaa"), rec("bbb")), THEME, KEYS))
    assert text.index("aaa") < text.index("bbb")


def test_muted_row_style():
    table = render_table(ready(rec("a"), rec("b", status="Exited (0) 3 hours ago"), selected=0), THEME)
    assert table.rows[0].style == THEME.selected
    assert table.rows[1].style == THEME.muted


def test_selected_row_not_highlighted_when_unfocused():
    table = render_table(ready(rec("a"), focused=False), THEME)
    assert table.rows[0].style is None


def test_status_lines():
    state = ready(
        error="daemon down",
        message="Stopped web",
        skipped_lines=2,
        pending=frozenset({PendingAction(ActionKind.STOP, "a")}),
    )
    text = to_text(render(state, THEME, KEYS))
    assert "Error loading data: daemon down" in text
    assert "Stopped web" in text
    assert "Skipped 2 malformed row(s)" in text
    assert "1 action(s) running" in text


def test_legend_reflects_bindings():
    assert help_legend(KEYS) == (
        "  up/down: Navigate • escape: Focus • q/ctrl+c: Quit • ctrl+r: Refresh"
        " • e: Attach • s: Stop • r: Restart/Start • d: Delete • o: Open in browser"
    )
    custom = help_legend(KeyBindings(stop="x", open=""))
    assert "x: Stop" in custom
    assert "Open in browser" not in custom
