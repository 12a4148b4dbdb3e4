"""
Textual runtime: feeds terminal events into the controller, draws the state and
runs background commands as workers on the app's event loop.
"""
import logging

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.timer import Timer
from textual.widgets import Static

from visionterm.db.persistence import HistoryStore
from visionterm.services.gateway import Gateway
from visionterm.ui import events as ev
from visionterm.ui.controller import update
from visionterm.ui.state import AppState
from visionterm.ui.tasks import TaskRunner
from visionterm.ui.view import render

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.1


class Canvas(Static):
    """Full-screen surface the rendered state is drawn on."""

    def on_resize(self, event: events.Resize):
        self.app.apply_event(ev.Resized(width=event.size.width, height=event.size.height))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp):
        event.stop()
        self.app.apply_event(ev.MouseScrolled(delta=-1))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown):
        event.stop()
        self.app.apply_event(ev.MouseScrolled(delta=1))


class VisiontermApp(App):
    CSS = """
    Screen {
        overflow: hidden;
    }
    Canvas {
        width: 100%;
        height: 100%;
    }
    """
    ENABLE_COMMAND_PALETTE = False
    # Keys Textual would otherwise claim for focus handling or quitting
    BINDINGS = [
        Binding("tab", "forward_key('tab')", show=False, priority=True),
        Binding("shift+tab", "forward_key('shift+tab')", show=False, priority=True),
        Binding("ctrl+c", "forward_key('ctrl+c')", show=False, priority=True),
    ]

    def __init__(self, gateway: Gateway, store: HistoryStore):
        super().__init__()
        self.gateway = gateway
        self.tasks = TaskRunner(gateway, store)
        self.ui_state = AppState()
        self._ticker: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Canvas()

    def on_mount(self):
        self.apply_event(ev.Resized(width=self.size.width, height=self.size.height))
        self.apply_event(ev.Started())

    async def on_unmount(self):
        await self.gateway.aclose()

    def on_key(self, event: events.Key):
        event.stop()
        event.prevent_default()
        key = event.character if event.is_printable and event.character else event.key
        self.apply_event(ev.KeyPressed(key=key))

    def action_forward_key(self, key: str):
        self.apply_event(ev.KeyPressed(key=key))

    def apply_event(self, event):
        """Run one event through the controller, redraw, then start its commands."""
        self.ui_state, commands = update(self.ui_state, event)
        self.query_one(Canvas).update(render(self.ui_state))
        for command in commands:
            self._execute(command)

    def _execute(self, command):
        if isinstance(command, ev.Quit):
            self.exit()
        elif isinstance(command, ev.StartTicker):
            if self._ticker is None:
                self._ticker = self.set_interval(TICK_INTERVAL, self._tick)
        else:
            self.run_worker(
                self._run_command(command),
                name=type(command).__name__,
                group="background",
                exit_on_error=False,
            )

    def _tick(self):
        self.apply_event(ev.Tick())

    async def _run_command(self, command: ev.BackgroundCommand):
        result = await self.tasks.run(command)
        self.apply_event(result)
