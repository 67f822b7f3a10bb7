"""Terminal driver: raw key input, resize polling and frame output.

The driver owns the real terminal. Input comes from a prompt_toolkit
``Input`` in raw mode and is read on a daemon thread, then posted to the
event loop as :class:`KeyPressed` events; frames are written through a
``rich.live.Live`` on the alternate screen.
"""

from __future__ import annotations

import logging
import select
import shutil
import threading
from collections.abc import Callable
from contextlib import ExitStack
from typing import Any

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from rich.console import Console, RenderableType
from rich.live import Live

from hardcover_tui.core.events import KeyPressed, Resized, Shutdown
from hardcover_tui.output.console import HC_THEME
from hardcover_tui.output.keys import key_names

logger = logging.getLogger(__name__)


class TerminalDriver:
    """Bridge between the event loop and a TTY.

    Parameters:
        post: Thread-safe event sink (``EventLoop.post``).
        poll_interval: Seconds between input polls; also the resize
            detection granularity and the delay before a lone ESC is
            reported as the escape key.
    """

    def __init__(
        self,
        post: Callable[[Any], None],
        *,
        poll_interval: float = 0.05,
        term_input: Input | None = None,
        console: Console | None = None,
    ) -> None:
        self._post = post
        self._poll_interval = poll_interval
        self._input = term_input or create_input(always_prefer_tty=True)
        self.console = console or Console(theme=HC_THEME, highlight=False)
        self._modes = ExitStack()
        self._live: Live | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._size = shutil.get_terminal_size()

    @property
    def size(self) -> tuple[int, int]:
        return self._size.columns, self._size.lines

    def __enter__(self) -> TerminalDriver:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    def start(self) -> None:
        self._modes.enter_context(self._input.raw_mode())
        self._live = Live(
            console=self.console,
            screen=True,
            auto_refresh=False,
            transient=True,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        self._live.start()
        self._thread = threading.Thread(target=self._read_input, name="terminal-input", daemon=True)
        self._thread.start()
        self._post(Resized(*self.size))

    def stop(self) -> None:
        self._stop.set()
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._modes.close()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

    def paint(self, renderable: RenderableType) -> None:
        if self._live is not None:
            self._live.update(renderable, refresh=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _read_input(self) -> None:
        fd = self._input.fileno()
        while not self._stop.is_set():
            self._check_resize()
            ready, _, _ = select.select([fd], [], [], self._poll_interval)
            # A quiet poll flushes a pending lone ESC the parser held back.
            self._post_keys(self._input.read_keys() if ready else self._input.flush_keys())
            if self._input.closed:
                logger.debug("Input reached EOF")
                self._post(Shutdown())
                return

    def _post_keys(self, presses: list[KeyPress]) -> None:
        for press in presses:
            for key in key_names(press):
                self._post(KeyPressed(key))

    def _check_resize(self) -> None:
        size = shutil.get_terminal_size()
        if size != self._size:
            self._size = size
            self._post(Resized(size.columns, size.lines))
