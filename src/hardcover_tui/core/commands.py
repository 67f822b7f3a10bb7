"""Async command dispatch via ThreadPoolExecutor with timeout-bounded results.

A :class:`Command` is a unit of blocking work (usually one or more GraphQL
requests). The scheduler runs it off the loop thread and posts a completion
event back into the loop's queue. The loop then calls :meth:`resolve`, which
turns the first of {completion, timeout} into exactly one
:class:`CommandResult` and drops whichever arrives second.

INVARIANT: One scheduled command, one result. Actions never touch loop state.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from hardcover_tui.core.events import Routed

if TYPE_CHECKING:
    from hardcover_tui.core.clock import TimerQueue

logger = logging.getLogger(__name__)


class CommandError(BaseModel):
    """Structured error payload within a CommandResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class CommandResult(BaseModel):
    """The single result event produced by a scheduled command.

    Attributes:
        ok: Whether the action returned normally before its timeout.
        kind: Semantic kind of the command (e.g. ``"book.loaded"``).
        command_id: Scheduler-assigned identity.
        tag: Subject the command depends on (book id, list id, generation).
        data: Action return value on success.
        error: Structured error if ``ok`` is False.
        elapsed: Seconds between scheduling and resolution (loop clock).
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    ok: bool
    kind: str
    command_id: int
    tag: Any = None
    data: Any = None
    error: CommandError | None = None
    elapsed: float | None = None


@dataclass(frozen=True)
class Command:
    """Deferred, timeout-bounded work.

    *action* must only capture read-only context: values copied out of the
    screen at scheduling time, plus thread-safe clients.
    """

    kind: str
    action: Callable[[], Any]
    timeout: float
    tag: Any = None


@dataclass
class CommandHandle:
    command_id: int
    command: Command
    origin: str
    scheduled_at: float
    future: Future[None] | None = field(default=None, repr=False)


@dataclass(frozen=True)
class CommandCompleted:
    """Posted from a worker thread when an action finishes (or raises)."""

    command_id: int
    data: Any = None
    exception: BaseException | None = None


@dataclass(frozen=True)
class CommandTimedOut:
    """Released by the timer queue when a command's deadline passes."""

    command_id: int


def error_from_exception(exc: BaseException) -> CommandError:
    """Map an action exception to a CommandError.

    Data source errors carry a ``code`` attribute; anything else is an
    internal error and is logged with its traceback.
    """
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return CommandError(code=code, message=str(exc) or code)
    logger.error("Command action raised %s", type(exc).__name__, exc_info=exc)
    return CommandError(code="internal_error", message=f"{type(exc).__name__}: {exc}")


class CommandScheduler:
    """Fire-and-forget command dispatch.

    Parameters:
        post: Thread-safe callable that enqueues an event on the loop.
        timers: Loop timer queue, used for per-command deadlines.
        sync: Run actions inline (useful for testing / ``--sync``).
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(
        self,
        post: Callable[[Any], None],
        timers: TimerQueue,
        *,
        sync: bool = False,
        max_workers: int = 4,
    ) -> None:
        self._post = post
        self._timers = timers
        self._sync = sync
        self._ids = itertools.count(1)
        self._inflight: dict[int, CommandHandle] = {}
        self._executor: ThreadPoolExecutor | None = (
            None
            if sync
            else ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="command")
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def inflight(self) -> int:
        """Number of commands whose result has not been resolved yet."""
        return len(self._inflight)

    def schedule(self, command: Command, origin: str) -> CommandHandle:
        """Start *command* on behalf of *origin*. Returns immediately."""
        handle = CommandHandle(
            command_id=next(self._ids),
            command=command,
            origin=origin,
            scheduled_at=self._timers.clock.now(),
        )
        self._inflight[handle.command_id] = handle
        self._timers.arm(
            command.timeout,
            CommandTimedOut(handle.command_id),
            key=("command-timeout", handle.command_id),
        )
        logger.debug(
            "Scheduled command %s #%d for %s (timeout %.1fs)",
            command.kind,
            handle.command_id,
            origin,
            command.timeout,
        )

        if self._executor is None:
            self._execute(handle.command_id, command.action)
        else:
            handle.future = self._executor.submit(
                self._execute, handle.command_id, command.action
            )
        return handle

    def resolve(self, event: CommandCompleted | CommandTimedOut) -> Routed | None:
        """Turn a completion or timeout into the command's one result.

        Called on the loop thread only. Returns None when the command was
        already resolved (late completion after a timeout, or a timeout that
        lost the race against a completion already queued).
        """
        handle = self._inflight.pop(event.command_id, None)
        if handle is None:
            logger.debug("Dropping late %s for command #%d", type(event).__name__, event.command_id)
            return None

        elapsed = self._timers.clock.now() - handle.scheduled_at
        command = handle.command
        if isinstance(event, CommandTimedOut):
            logger.warning("Command %s #%d timed out after %.1fs", command.kind, handle.command_id, elapsed)
            result = CommandResult(
                ok=False,
                kind=command.kind,
                command_id=handle.command_id,
                tag=command.tag,
                error=CommandError(
                    code="timeout",
                    message=f"Request timed out after {command.timeout:g}s",
                ),
                elapsed=elapsed,
            )
        else:
            self._timers.cancel(("command-timeout", handle.command_id))
            if event.exception is not None:
                result = CommandResult(
                    ok=False,
                    kind=command.kind,
                    command_id=handle.command_id,
                    tag=command.tag,
                    error=error_from_exception(event.exception),
                    elapsed=elapsed,
                )
            else:
                result = CommandResult(
                    ok=True,
                    kind=command.kind,
                    command_id=handle.command_id,
                    tag=command.tag,
                    data=event.data,
                    elapsed=elapsed,
                )
        return Routed(handle.origin, result)

    def wait(self, timeout: float = 5.0) -> None:
        """Block until every submitted action has finished running.

        Results are still only delivered when the loop drains its queue.
        """
        deadline = time.monotonic() + timeout
        for handle in list(self._inflight.values()):
            if handle.future is None:
                continue
            remaining = max(deadline - time.monotonic(), 0.0)
            try:
                handle.future.result(timeout=remaining)
            except Exception:
                logger.debug("Command #%d still running at wait deadline", handle.command_id)

    def shutdown(self) -> None:
        """Stop accepting work. Running actions are abandoned, not joined."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _execute(self, command_id: int, action: Callable[[], Any]) -> None:
        """Run on a worker thread. Posts exactly one completion event."""
        try:
            data = action()
        except Exception as exc:
            self._post(CommandCompleted(command_id, exception=exc))
        else:
            self._post(CommandCompleted(command_id, data=data))
