"""
Dashboard controller: the state machine at the heart of t-docker.

Every input (keystroke, refresh completion, action completion, spinner
tick) is an event. ``update`` is a pure function from (state, event) to
(new state, effects); it never touches the terminal or spawns anything.
The host (app.py) executes the returned effects and feeds their outcomes
back in as new events, one at a time, on the event loop.

States:
  - Loading: no refresh completed yet, or an explicit refresh is running
  - Ready: at least one refresh completed (records may be empty)
  Pending actions are a per-target overlay on Ready, not a separate state.

Refreshes are serialised: a refresh requested while another is in flight
is queued (at most one) and issued when the current one completes, so an
older response can never overwrite a newer one.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from .backend import validate_action
from .config import KeyBindings
from .model import (
    ActionKind,
    DashboardState,
    PendingAction,
    Record,
    Result,
)
from .parser import parse

logger = logging.getLogger(__name__)


# --- EVENTS ---

@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class RefreshCompleted:
    result: Result


@dataclass(frozen=True)
class ActionCompleted:
    action: PendingAction
    result: Result


@dataclass(frozen=True)
class Tick:
    pass


Event = Union[KeyPress, RefreshCompleted, ActionCompleted, Tick]


# --- EFFECTS ---

@dataclass(frozen=True)
class RequestRefresh:
    pass


@dataclass(frozen=True)
class DispatchAction:
    action: PendingAction
    record: Record


@dataclass(frozen=True)
class HandOff:
    action: PendingAction
    record: Record


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[RequestRefresh, DispatchAction, HandOff, Quit]
Transition = Tuple[DashboardState, List[Effect]]


def clamp(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(index, count - 1))


def initial() -> Transition:
    return DashboardState(refresh_in_flight=True), [RequestRefresh()]


def request_refresh(state: DashboardState) -> Transition:
    if state.refresh_in_flight:
        return replace(state, refresh_queued=True), []
    return replace(state, refresh_in_flight=True), [RequestRefresh()]


def update(state: DashboardState, event: Event, keymap: KeyBindings) -> Transition:
    if state.quitting:
        return state, []
    if isinstance(event, KeyPress):
        return _on_key(state, event.key, keymap)
    if isinstance(event, RefreshCompleted):
        return _on_refresh(state, event.result)
    if isinstance(event, ActionCompleted):
        return _on_action(state, event.action, event.result)
    if isinstance(event, Tick):
        if state.loading:
            return replace(state, spinner_phase=state.spinner_phase + 1), []
        return state, []
    return state, []


def _on_refresh(state: DashboardState, result: Result) -> Transition:
    if result.ok:
        parsed = parse(result.output)
        new_state = replace(
            state,
            records=parsed.records,
            selected=clamp(state.selected, len(parsed.records)),
            skipped_lines=parsed.skipped,
            error="",
        )
    else:
        new_state = replace(
            state,
            records=(),
            selected=0,
            skipped_lines=0,
            error=result.error,
        )

    new_state = replace(new_state, ready=True, refresh_in_flight=False)
    if state.refresh_queued:
        # Keep the spinner for an explicit refresh that is still queued.
        return replace(new_state, refresh_queued=False, refresh_in_flight=True), [RequestRefresh()]
    return replace(new_state, loading=False), []


def _on_action(state: DashboardState, action: PendingAction, result: Result) -> Transition:
    new_state = replace(
        state,
        pending=state.pending - {action},
        message=result.output if result.ok else result.error,
    )
    if action.kind.mutating or action.kind is ActionKind.ATTACH:
        return request_refresh(new_state)
    return new_state, []


def _on_key(state: DashboardState, key: str, keymap: KeyBindings) -> Transition:
    binding = keymap.action_for(key)
    if binding is None:
        return state, []

    if binding == "quit":
        return replace(state, quitting=True), [Quit()]

    if binding == "focus":
        return replace(state, focused=not state.focused), []

    if binding in ("up", "down"):
        if not state.focused or not state.records:
            return state, []
        delta = -1 if binding == "up" else 1
        return replace(state, selected=clamp(state.selected + delta, len(state.records))), []

    if binding == "refresh":
        return request_refresh(replace(state, loading=True))

    kind = ActionKind(binding)
    record = state.selected_record
    if record is None:
        return state, []

    action = PendingAction(kind, record.id)
    if action in state.pending:
        logger.debug(f"Dropping duplicate {kind.value} for {record.id}")
        return state, []

    rejection = validate_action(kind, record)
    if rejection is not None:
        return replace(state, message=rejection.error), []

    new_state = replace(state, pending=state.pending | {action})
    if kind is ActionKind.ATTACH:
        return new_state, [HandOff(action, record)]
    return new_state, [DispatchAction(action, record)]


class DashboardController:
    """Holds the current state and applies events to it one at a time."""

    def __init__(self, keymap: Optional[KeyBindings] = None):
        self.keymap = keymap or KeyBindings()
        self.state = DashboardState()

    def start(self) -> List[Effect]:
        self.state, effects = initial()
        return effects

    def handle(self, event: Event) -> List[Effect]:
        self.state, effects = update(self.state, event, self.keymap)
        if effects:
            logger.debug(f"{type(event).__name__} -> {[type(e).__name__ for e in effects]}")
        return effects
