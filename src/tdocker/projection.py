"""
Projection of parsed records into fixed-width display rows.

Styling is derived from the status text on every call; nothing from a
previous frame is reused, since records are replaced wholesale on refresh.
"""

from typing import List, Sequence, Tuple

from .model import DisplayRow, Record, is_terminal_status

# (title, width)
COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("Container ID", 20),
    ("Image", 20),
    ("Command", 20),
    ("Created", 20),
    ("Status", 20),
    ("Ports", 20),
    ("Names", 15),
)


def fit(text: str, width: int) -> str:
    """Truncate with an ellipsis or pad so the cell is exactly `width` wide."""
    if len(text) > width:
        return text[:width - 1] + "…"
    return text.ljust(width)


def project(records: Sequence[Record], selection: int) -> List[DisplayRow]:
    rows = []
    for index, record in enumerate(records):
        cells = tuple(
            fit(value, width)
            for value, (_, width) in zip(record.fields(), COLUMNS)
        )
        rows.append(DisplayRow(
            cells=cells,
            muted=is_terminal_status(record.status),
            selected=index == selection,
        ))
    return rows
