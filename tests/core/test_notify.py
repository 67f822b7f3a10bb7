"""Tests for toast notifications and their expiry timers."""

from __future__ import annotations

from typing import Any

from hardcover_tui.core.clock import FakeClock
from hardcover_tui.core.events import NotificationExpired, NotifyTick, Routed
from hardcover_tui.core.loop import EventLoop
from hardcover_tui.core.notify import TICK_KEY, NotificationChannel, NotificationLevel
from hardcover_tui.output.renderer import render_lines, to_plain


class ChannelOwner:
    """Loop handler that feeds every routed event to one channel."""

    def __init__(self, loop: EventLoop, **kwargs: Any) -> None:
        self.channel = NotificationChannel(
            loop.clock,
            lambda seconds, event, key: loop.delay(seconds, event, origin="root", key=key),
            **kwargs,
        )
        loop.bind(self)

    def handle(self, event: Any) -> None:
        assert isinstance(event, Routed)
        assert self.channel.handle(event.event)

    def on_error(self, exc: Exception) -> None:
        raise exc


class TestNotificationChannel:
    def test_expires_after_lifetime(self, loop: EventLoop) -> None:
        owner = ChannelOwner(loop, lifetime=3.0)
        owner.channel.post(NotificationLevel.SUCCESS, "Saved")
        loop.advance(2.5)
        assert len(owner.channel) == 1
        loop.advance(0.5)
        assert len(owner.channel) == 0

    def test_each_toast_expires_independently(self, loop: EventLoop) -> None:
        owner = ChannelOwner(loop, lifetime=3.0)
        owner.channel.post("info", "first")
        loop.advance(2.0)
        owner.channel.post("error", "second")
        loop.advance(1.0)
        assert [n.message for n in owner.channel.visible()] == ["second"]
        loop.advance(2.0)
        assert owner.channel.visible() == []

    def test_tick_stops_when_empty(self, loop: EventLoop) -> None:
        owner = ChannelOwner(loop, lifetime=1.0, tick_interval=0.5)
        owner.channel.post("info", "hello")
        assert owner.channel.ticking
        loop.advance(0.5)
        loop.advance(0.5)
        loop.advance(0.5)
        assert not owner.channel.ticking
        assert not loop.timers.pending(("root", TICK_KEY))

    def test_visible_is_newest_first_and_capped(self) -> None:
        channel = NotificationChannel(FakeClock(), lambda *_: None, max_visible=2)
        for message in ("a", "b", "c"):
            channel.post("info", message)
        assert [n.message for n in channel.visible()] == ["c", "b"]

    def test_ignores_foreign_events(self) -> None:
        channel = NotificationChannel(FakeClock(), lambda *_: None)
        assert channel.handle("nope") is False
        assert channel.handle(NotificationExpired(99)) is True
        assert channel.handle(NotifyTick()) is True

    def test_render(self) -> None:
        channel = NotificationChannel(FakeClock(), lambda *_: None)
        assert channel.render() is None
        channel.post(NotificationLevel.ERROR, "Network down")
        text = to_plain(render_lines(channel.render(30), 30))
        assert "Network down" in text
        assert "✗" in text
