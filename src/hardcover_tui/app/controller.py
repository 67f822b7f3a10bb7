"""Root controller: phase, session, tabs, navigation stack and global keys.

The controller is the loop's only event handler. It owns every piece of
application state that is not screen-local and is the only place effects
returned by screens are applied.

Phases::

    BOOTSTRAPPING --load token--> LOADING_PROFILE --get_me--> ACTIVE
          |                        |                        |
          +-------> SETUP <--------+------- logout ---------+

Routing: results and delayed events arrive wrapped in :class:`Routed` with
the issuer's id. Anything addressed to a screen that is no longer on the
stack (or a setup screen that has been replaced) is dropped.
"""

from __future__ import annotations

import logging
import random
from enum import StrEnum
from typing import Any

from rich.console import RenderableType
from rich.text import Text

from hardcover_tui.api import queries
from hardcover_tui.api.client import GraphQLClient
from hardcover_tui.api.errors import TRANSIENT_CODES
from hardcover_tui.api.models import User
from hardcover_tui.app import chrome, keymap
from hardcover_tui.app.session import Session
from hardcover_tui.app.tabs import TABS, next_tab
from hardcover_tui.config.models import TimeoutsConfig, UiConfig
from hardcover_tui.core.commands import Command, CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.effects import (
    CancelDelay,
    Delay,
    GoBack,
    Navigate,
    Notify,
    OpenBook,
    OpenBookFromList,
    OpenJournal,
    OpenProgress,
    OpenReview,
    Quit,
    Schedule,
    ScreenReady,
    SetupComplete,
    Unhandled,
)
from hardcover_tui.core.events import (
    ROOT,
    AnimationTick,
    KeyPressed,
    NotificationExpired,
    NotifyTick,
    Resized,
    Routed,
    Shutdown,
)
from hardcover_tui.core.loop import EventLoop
from hardcover_tui.core.navigation import NavigationStack
from hardcover_tui.core.notify import NotificationChannel, NotificationLevel
from hardcover_tui.core.overlay import Anchor, Loader, composite
from hardcover_tui.core.screen import Capability, Screen
from hardcover_tui.infrastructure.credentials import CredentialStore, CredentialStoreError
from hardcover_tui.output.renderer import Buffer, render_lines
from hardcover_tui.screens.base import ScreenContext, modal_width, truncate
from hardcover_tui.screens.bookdetail import BookDetailScreen
from hardcover_tui.screens.journal import JournalScreen
from hardcover_tui.screens.progress import ProgressScreen
from hardcover_tui.screens.review import ReviewScreen
from hardcover_tui.screens.setup import SetupScreen

logger = logging.getLogger(__name__)

LOADER_KEY = "loader-frame"
DEFAULT_SIZE = (80, 24)
TOAST_WIDTH = 40


class Phase(StrEnum):
    BOOTSTRAPPING = "bootstrapping"
    SETUP = "setup"
    LOADING_PROFILE = "loading-profile"
    ACTIVE = "active"


class RootController:
    """Event handler bound to an :class:`EventLoop`.

    Parameters:
        loop: The loop this controller is bound to.
        client: Shared GraphQL client; its token is the live credential.
        store: Credential store read at startup and written by setup/logout.
        timeouts: Per-command timeouts.
        ui: Debounce, notification and animation settings.
        rng: Random source for loader quotes (tests pass a seeded one).
    """

    def __init__(
        self,
        loop: EventLoop,
        client: GraphQLClient,
        store: CredentialStore,
        *,
        timeouts: TimeoutsConfig | None = None,
        ui: UiConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.loop = loop
        self.client = client
        self.store = store
        self.timeouts = timeouts or TimeoutsConfig()
        self.ui = ui or UiConfig()
        self.phase = Phase.BOOTSTRAPPING
        self.session = Session()
        self.stack = NavigationStack()
        self.tab = 0
        self.setup: SetupScreen | None = None
        self.confirm = ConfirmDialog()
        self.loader = Loader(rng)
        self.notifications = NotificationChannel(
            loop.clock,
            lambda seconds, event, key: loop.delay(seconds, event, origin=ROOT, key=key),
            lifetime=self.ui.notification_seconds,
            max_visible=self.ui.max_notifications,
        )
        self.show_help = False
        self.width, self.height = DEFAULT_SIZE
        self.quitting = False
        self._ctx: ScreenContext | None = None
        self._ticking = False
        loop.bind(self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Read the stored token; the result decides setup vs. profile load."""
        self.phase = Phase.BOOTSTRAPPING
        self._start_loader()
        store = self.store
        self.loop.schedule(Command("root.credentials", store.load, self.timeouts.credentials), ROOT)

    def quit(self) -> None:
        logger.debug("Quitting")
        self.quitting = True
        self.loop.stop()

    @property
    def content_height(self) -> int:
        return max(self.height - chrome.HEADER_HEIGHT - len(self._help_lines()), 1)

    # ------------------------------------------------------------------
    # EventHandler protocol
    # ------------------------------------------------------------------

    def handle(self, event: Any) -> None:
        if isinstance(event, Routed):
            self._route(event)
        elif isinstance(event, KeyPressed):
            self._handle_key(event)
        elif isinstance(event, Resized):
            self.width, self.height = event.width, event.height
        elif isinstance(event, Shutdown):
            self.quit()
        else:
            logger.debug("Ignoring %r", event)
        self._layout()

    def on_error(self, exc: Exception) -> None:
        self.notifications.post(NotificationLevel.ERROR, f"Unexpected error: {exc}")

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _route(self, routed: Routed) -> None:
        origin, inner = routed.origin, routed.event
        if origin == ROOT:
            self._handle_root(inner)
            return
        if self.setup is not None and origin == self.setup.screen_id:
            self._apply(self.setup.handle_event(inner), origin)
            return
        screen = self.stack.find(origin)
        if screen is None:
            logger.debug("Dropping stale %s for %s", type(inner).__name__, origin)
            return
        self._apply(screen.handle_event(inner), origin)

    def _handle_root(self, event: Any) -> None:
        if isinstance(event, AnimationTick):
            self._on_frame()
        elif isinstance(event, NotificationExpired | NotifyTick):
            self.notifications.handle(event)
        elif isinstance(event, CommandResult):
            if event.kind == "root.credentials":
                self._on_stored_token(event)
            elif event.kind == "root.profile":
                self._on_profile(event)

    def _on_stored_token(self, result: CommandResult) -> None:
        if self.phase is not Phase.BOOTSTRAPPING:
            return
        if not result.ok:
            assert result.error is not None
            logger.warning("Could not read stored token: %s", result.error.message)
            self._enter_setup(error=result.error.message)
            return
        if not result.data:
            logger.debug("No stored token")
            self._enter_setup()
            return
        token: str = result.data
        self.client.set_token(token)
        self.session.credential = token
        self.phase = Phase.LOADING_PROFILE
        client = self.client
        self.loop.schedule(
            Command("root.profile", lambda: queries.get_me(client), self.timeouts.primary, token),
            ROOT,
        )

    def _on_profile(self, result: CommandResult) -> None:
        if self.phase is not Phase.LOADING_PROFILE or result.tag != self.session.credential:
            return
        if result.ok:
            self._activate(result.data)
            return
        assert result.error is not None
        error = result.error
        if error.code == "unauthorized":
            logger.info("Stored token rejected")
            self._enter_setup(error=f"Invalid token: {error.message}")
            return
        # The token may still be good; keep it so setup can retry with it.
        if error.code in TRANSIENT_CODES:
            logger.warning("Profile load failed (%s): %s", error.code, error.message)
            message = error.message
        else:
            logger.error("Profile load failed unexpectedly: %s", error.message)
            message = f"Unexpected error: {error.message}"
        self._enter_setup(error=message, saved_token=self.session.credential)

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def _enter_setup(self, *, error: str | None = None, saved_token: str | None = None) -> None:
        self.phase = Phase.SETUP
        self.loader.stop()
        self.stack.clear()
        self._ctx = None
        self.session.reset()
        self.setup = SetupScreen(
            self.client,
            self.store,
            timeout=self.timeouts.primary,
            error=error,
            saved_token=saved_token,
        )
        self.setup.set_size(self.width, self.height)
        self._apply(self.setup.initialize(), self.setup.screen_id)

    def _activate(self, user: User) -> None:
        credential = self.session.credential or self.client.token
        self.session.login(credential, user)
        self.phase = Phase.ACTIVE
        self.setup = None
        self.loader.stop()
        self._ctx = ScreenContext(self.client, user, self.timeouts, self.ui)
        logger.info("Logged in as %s", user.username)
        self._open_tab(0)

    def _logout(self) -> None:
        try:
            self.store.delete()
        except CredentialStoreError as exc:
            logger.warning("Could not delete token: %s", exc)
            self.notifications.post(NotificationLevel.ERROR, str(exc))
        self.client.set_token(None)
        self._enter_setup()

    # ------------------------------------------------------------------
    # Tabs and navigation
    # ------------------------------------------------------------------

    def switch_tab(self, index: int) -> None:
        if index == self.tab and self.stack.depth == 1:
            top = self.stack.top()
            assert top is not None
            logger.debug("Reloading %s", top)
            self._mount(top)
            return
        self._open_tab(index)

    def _open_tab(self, index: int) -> None:
        assert self._ctx is not None
        self.tab = index
        tab = TABS[index]
        screen = tab.factory(self._ctx)
        self.stack.reset(tab.title, screen)
        self._mount(screen)

    def _push(self, title: str, screen: Screen) -> None:
        self.stack.push(title, screen)
        self._mount(screen)

    def _mount(self, screen: Screen) -> None:
        """Size, initialize and (if needed) cover *screen* with the loader."""
        if screen.supports(Capability.SIZE):
            screen.set_size(self.width, self.content_height)
        effects = screen.initialize()
        if not screen.loaded():
            self._start_loader()
        self._apply(effects, screen.screen_id)

    def _pop(self) -> None:
        if self.stack.pop():
            top = self.stack.top()
            if self.loader.active and top is not None and top.loaded():
                self.loader.stop()

    def _navigate(self, request: Any) -> None:
        ctx = self._ctx
        if ctx is None:
            logger.debug("Ignoring navigation %r outside the main UI", request)
            return
        if isinstance(request, GoBack):
            self._pop()
        elif isinstance(request, OpenBookFromList):
            screen = BookDetailScreen(
                ctx,
                request.book_id,
                list_id=request.list_id,
                list_name=request.list_name,
                book_ids=request.book_ids,
            )
            self._push(truncate(request.title or "Book", 30), screen)
        elif isinstance(request, OpenBook):
            self._push(truncate(request.title or "Book", 30), BookDetailScreen(ctx, request.book_id))
        elif isinstance(request, OpenJournal):
            self._push("Journal", JournalScreen(ctx, request.book_id, request.title))
        elif isinstance(request, OpenReview):
            self._push("Review", ReviewScreen(ctx, request.user_book_id, request.title))
        elif isinstance(request, OpenProgress):
            self._push("Progress", ProgressScreen(ctx, request.user_book_id, request.title))
        else:
            logger.warning("Unknown navigation request %r", request)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _apply(self, effects: list[Any], issuer: str) -> bool:
        """Apply *effects* from *issuer*. Returns False if the issuer left a key unhandled."""
        handled = True
        for effect in effects:
            if isinstance(effect, Schedule):
                self.loop.schedule(effect.command, issuer)
            elif isinstance(effect, Delay):
                self.loop.delay(effect.seconds, effect.event, origin=issuer, key=effect.key)
            elif isinstance(effect, CancelDelay):
                self.loop.cancel_delay(effect.key, origin=issuer)
            elif isinstance(effect, Notify):
                self.notifications.post(effect.level, effect.message)
            elif isinstance(effect, Navigate):
                self._navigate(effect.request)
            elif isinstance(effect, ScreenReady):
                top = self.stack.top()
                if top is not None and top.screen_id == issuer:
                    self.loader.stop()
            elif isinstance(effect, SetupComplete):
                if self.phase is Phase.SETUP:
                    self.session.credential = effect.token
                    self._activate(effect.user)
            elif isinstance(effect, Unhandled):
                handled = False
            elif isinstance(effect, Quit):
                self.quit()
            else:
                logger.warning("Unknown effect %r from %s", effect, issuer)
        return handled

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _handle_key(self, event: KeyPressed) -> None:
        key = event.key
        if key == "ctrl+c":
            self.quit()
            return
        if self.confirm.active:
            confirmed, _ = self.confirm.handle_key(key)
            if not self.confirm.active and confirmed and self.confirm.action == "logout":
                self._logout()
            return
        if self.phase is Phase.SETUP:
            if self.setup is not None:
                self._apply(self.setup.handle_event(event), self.setup.screen_id)
            return
        if self.phase is not Phase.ACTIVE:
            if key == "q":
                self.quit()
            return
        if self.loader.active:
            if key == "esc" and self.stack.depth > 1:
                self._pop()
            elif key == "q":
                self.quit()
            return

        top = self.stack.top()
        if top is None:
            return
        delivered = False
        if top.supports(Capability.INPUT_FOCUS) and top.input_focused():
            if self._apply(top.handle_event(event), top.screen_id):
                return
            delivered = True
        if self._global_key(key):
            return
        if not delivered:
            self._apply(top.handle_event(event), top.screen_id)

    def _global_key(self, key: str) -> bool:
        if keymap.QUIT.matches(key):
            self.quit()
        elif keymap.BACK.matches(key):
            if self.stack.depth <= 1:
                return False
            self._pop()
        elif keymap.HELP.matches(key):
            self.show_help = not self.show_help
        elif keymap.LOGOUT.matches(key):
            self.confirm.open("Are you sure you want to logout?", "logout")
        elif key in keymap.TAB_KEYS:
            self.switch_tab(keymap.TAB_KEYS.index(key))
        elif keymap.NEXT_TAB.matches(key):
            self.switch_tab(next_tab(self.tab, 1))
        elif keymap.PREV_TAB.matches(key):
            self.switch_tab(next_tab(self.tab, -1))
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Loader
    # ------------------------------------------------------------------

    def _start_loader(self) -> None:
        self.loader.start()
        if not self._ticking:
            self._ticking = True
            self._arm_frame()

    def _arm_frame(self) -> None:
        self.loop.delay(1.0 / max(self.ui.fps, 1), AnimationTick(self.loader.frame + 1), origin=ROOT, key=LOADER_KEY)

    def _on_frame(self) -> None:
        if self.loader.active and self.phase is Phase.ACTIVE:
            top = self.stack.top()
            if top is not None and top.loaded():
                self.loader.stop()
        if not self.loader.active:
            self._ticking = False
            return
        self.loader.tick()
        self._arm_frame()

    # ------------------------------------------------------------------
    # Layout and rendering
    # ------------------------------------------------------------------

    def _help_lines(self) -> list[Text]:
        top = self.stack.top()
        bindings = top.help_bindings() if top is not None and top.supports(Capability.HELP) else []
        return chrome.help_lines(
            bindings,
            show_all=self.show_help,
            user=self.session.current_user,
            width=self.width,
        )

    def _layout(self) -> None:
        """Give the top screen the rows left over by the chrome."""
        if self.setup is not None:
            self.setup.set_size(self.width, self.height)
        top = self.stack.top()
        if top is not None and top.supports(Capability.SIZE):
            height = self.content_height
            if (top.width, top.height) != (self.width, height):
                top.set_size(self.width, height)

    def render(self) -> RenderableType:
        width, height = self.width, self.height
        top = self.stack.top()
        if self.phase in (Phase.BOOTSTRAPPING, Phase.LOADING_PROFILE) or (
            self.phase is Phase.ACTIVE and self.loader.active
        ):
            buffer = render_lines(self.loader.render(width, height), width, height)
        elif self.phase is Phase.SETUP and self.setup is not None:
            buffer = render_lines(self.setup.render(), width, height)
        elif top is not None:
            buffer = self._render_main(top)
        else:
            buffer = render_lines(Text(""), width, height)

        if self.confirm.active:
            box = modal_width(width)
            buffer = composite(
                render_lines(self.confirm.render(box), box),
                buffer,
                Anchor.CENTER,
                width=width,
                height=height,
            )
        toasts = self.notifications.render(min(TOAST_WIDTH, width))
        if toasts is not None:
            buffer = composite(
                render_lines(toasts, min(TOAST_WIDTH, width)),
                buffer,
                Anchor.TOP_RIGHT,
                width=width,
                height=height,
                margin=1,
            )
        return Text("\n").join(buffer)

    def _render_main(self, top: Screen) -> Buffer:
        width = self.width
        help_lines = self._help_lines()
        content_height = max(self.height - chrome.HEADER_HEIGHT - len(help_lines), 1)
        return [
            chrome.tab_bar(self.tab, width),
            chrome.breadcrumb(self.stack.summary(), width),
            *render_lines(top.render(), width, content_height),
            *help_lines,
        ]
