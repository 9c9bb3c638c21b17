"""
Data models for t-docker.

Everything here is an immutable dataclass (frozen=True). Records are
superseded wholesale on each refresh and the dashboard state is replaced,
never mutated, by each controller transition.

Data Classes:
  - Record: one container row from ``docker ps``
  - DisplayRow: one projected table row (cells + styling flags)
  - PendingAction: in-flight captured action, keyed by (kind, target)
  - Success / Failure: outcome of an external command
  - ParseResult: parsed records plus the number of skipped lines
  - DashboardState: everything the renderer needs to draw a frame
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

TERMINAL_KEYWORDS = ("Exited", "Stopped")


def is_terminal_status(status: str) -> bool:
    return any(keyword in status for keyword in TERMINAL_KEYWORDS)


def classify_status(status: str) -> str:
    """running, stopped or other."""
    if is_terminal_status(status):
        return "stopped"
    if status.startswith("Up"):
        return "running"
    return "other"


class ActionKind(str, Enum):
    ATTACH = "attach"
    STOP = "stop"
    RESTART = "restart"
    DELETE = "delete"
    OPEN = "open"

    @property
    def mutating(self) -> bool:
        return self in (ActionKind.STOP, ActionKind.RESTART, ActionKind.DELETE)


@dataclass(frozen=True)
class Record:
    id: str
    image: str
    command: str
    created: str
    status: str
    ports: str
    names: str

    @property
    def state(self) -> str:
        return classify_status(self.status)

    def fields(self) -> Tuple[str, ...]:
        return (self.id, self.image, self.command, self.created,
                self.status, self.ports, self.names)


@dataclass(frozen=True)
class DisplayRow:
    cells: Tuple[str, ...]
    muted: bool = False
    selected: bool = False


@dataclass(frozen=True)
class PendingAction:
    kind: ActionKind
    target_id: str


@dataclass(frozen=True)
class Success:
    output: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success, Failure]


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[Record, ...] = ()
    skipped: int = 0


@dataclass(frozen=True)
class DashboardState:
    records: Tuple[Record, ...] = ()
    selected: int = 0
    focused: bool = True
    loading: bool = True  # spinner shown instead of the table
    ready: bool = False  # at least one refresh completed
    spinner_phase: int = 0
    pending: FrozenSet[PendingAction] = field(default_factory=frozenset)
    refresh_in_flight: bool = False
    refresh_queued: bool = False
    error: str = ""  # last refresh failure
    message: str = ""  # last action outcome
    skipped_lines: int = 0
    quitting: bool = False

    @property
    def selected_record(self) -> Optional[Record]:
        if 0 <= self.selected < len(self.records):
            return self.records[self.selected]
        return None

    def is_pending(self, kind: ActionKind, target_id: str) -> bool:
        return PendingAction(kind, target_id) in self.pending
