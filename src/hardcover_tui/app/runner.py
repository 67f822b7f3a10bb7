"""Wire the event loop, root controller and terminal driver together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hardcover_tui.app.controller import RootController
from hardcover_tui.core.loop import EventLoop
from hardcover_tui.output.terminal import TerminalDriver

if TYPE_CHECKING:
    from hardcover_tui.commands._context import AppContext

logger = logging.getLogger(__name__)


def run_tui(app: AppContext) -> None:
    """Run the interactive client until the user quits."""
    settings = app.settings
    loop = EventLoop(sync=settings.sync)
    controller = RootController(
        loop,
        app.client,
        app.store,
        timeouts=settings.timeouts,
        ui=settings.ui,
    )
    logger.debug("Starting TUI (sync=%s)", settings.sync)
    with TerminalDriver(loop.post) as driver:
        controller.width, controller.height = driver.size
        controller.initialize()
        driver.paint(controller.render())
        loop.run(after_batch=lambda: driver.paint(controller.render()))
    logger.debug("TUI stopped")
