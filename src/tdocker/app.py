"""Textual host for the t-docker dashboard."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from textual import events
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.widgets import Header, Static

from .backend import CommandDispatcher
from .config import ConfigManager
from .controller import (
    ActionCompleted,
    DashboardController,
    DispatchAction,
    Effect,
    Event,
    HandOff,
    KeyPress,
    Quit,
    RefreshCompleted,
    RequestRefresh,
    Tick,
)
from .model import Failure
from .renderer import render

logger = logging.getLogger(__name__)


class TDockerApp(App[None], inherit_bindings=False):
    TITLE = "t-docker"
    SUB_TITLE = "docker ps"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
      layout: vertical;
    }

    #dashboard {
      height: 1fr;
      padding: 0 1;
      overflow: auto;
    }
    """

    def __init__(
        self,
        config: ConfigManager,
        dispatcher: Optional[CommandDispatcher] = None,
    ) -> None:
        super().__init__()
        self.config_manager = config
        self.dispatcher = dispatcher or CommandDispatcher(config.docker)
        self.controller = DashboardController(config.keybindings)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("", id="dashboard")

    def on_mount(self) -> None:
        self.set_interval(self.config_manager.get_spinner_interval(), self._tick)
        self._execute(self.controller.start())
        self._render()

    def _render(self) -> None:
        frame = render(
            self.controller.state,
            self.config_manager.theme,
            self.config_manager.keybindings,
        )
        self.query_one("#dashboard", Static).update(frame)

    def _apply(self, event: Event) -> None:
        effects = self.controller.handle(event)
        self._execute(effects)
        self._render()

    def _tick(self) -> None:
        if self.controller.state.loading:
            self._apply(Tick())

    def _execute(self, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, RequestRefresh):
                self.run_worker(self._refresh(), group="refresh", thread=False)
            elif isinstance(effect, DispatchAction):
                self.run_worker(self._dispatch(effect), group="action", thread=False)
            elif isinstance(effect, HandOff):
                self._hand_off(effect)
            elif isinstance(effect, Quit):
                logger.info("Quitting")
                self.exit()

    async def _refresh(self) -> None:
        result = await self.dispatcher.list_units()
        self._apply(RefreshCompleted(result))

    async def _dispatch(self, effect: DispatchAction) -> None:
        result = await self.dispatcher.invoke(effect.action.kind, effect.record)
        self._apply(ActionCompleted(effect.action, result))

    def _hand_off(self, effect: HandOff) -> None:
        # The event loop stays blocked while the child owns the terminal.
        argv = self.dispatcher.attach_command(effect.record)
        if isinstance(argv, Failure):
            result = argv
        else:
            try:
                with self.suspend():
                    result = self.dispatcher.run_interactive(argv)
            except SuspendNotSupported as exc:
                logger.error(f"Cannot suspend for {argv}: {exc}")
                result = Failure(f"Cannot hand over the terminal: {exc}")
        self.call_later(self._apply, ActionCompleted(effect.action, result))

    async def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._apply(KeyPress(event.key))
