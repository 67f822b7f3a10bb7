"""Screen contract and optional capabilities.

A screen is a self-contained state machine occupying one slot of the
navigation stack. The controller only talks to it through this interface:

- ``initialize()`` returns the effects that start its initial load. It is
  called again to reload the screen in place.
- ``handle_event(event)`` mutates the screen's own state and returns effects.
- ``render()`` returns a rich renderable sized to the last ``set_size``.

Optional behaviour is declared in ``capabilities`` and only consulted when
declared. Undeclared capabilities fall back to the defaults below.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from rich.console import RenderableType

_screen_ids = itertools.count(1)


class Capability(StrEnum):
    SIZE = "size"
    INPUT_FOCUS = "input-focus"
    LOADED = "loaded"
    HELP = "help"


@dataclass(frozen=True)
class KeyBinding:
    keys: tuple[str, ...]
    help_key: str
    description: str

    def matches(self, key: str) -> bool:
        return key in self.keys


def binding(*keys: str, help: str, desc: str) -> KeyBinding:  # noqa: A002
    return KeyBinding(keys=keys, help_key=help, description=desc)


class Screen(ABC):
    """Base class for every screen."""

    title: ClassVar[str] = ""
    capabilities: ClassVar[frozenset[Capability]] = frozenset()

    def __init__(self) -> None:
        self.screen_id = f"{type(self).__name__.lower()}-{next(_screen_ids)}"
        self.width = 0
        self.height = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.screen_id}>"

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def initialize(self) -> list[Any]:
        return []

    @abstractmethod
    def handle_event(self, event: Any) -> list[Any]:
        """Apply *event* and return the effects it produces."""

    @abstractmethod
    def render(self) -> RenderableType: ...

    # --- Optional capabilities -------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def input_focused(self) -> bool:
        return False

    def loaded(self) -> bool:
        return True

    def help_bindings(self) -> list[KeyBinding]:
        return []
