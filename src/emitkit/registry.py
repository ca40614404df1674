"""Listener registry shared by every emitter.

The registry maps a channel key to the ordered list of entries registered
under it. Dispatch never walks the live lists: callers take a ``snapshot()``
first, so listeners may add or remove registrations while a publish is in
flight without changing who receives it.

Usage:
    registry = ListenerRegistry()
    entry = registry.add("file.saved", on_saved)

    for item in registry.snapshot("file.saved"):
        if item.claim():
            item.callback("/path/to/file")

    entry.cancel()
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
import logging
import threading
from typing import Any

LOGGER = logging.getLogger(__name__)


def _is_hashable(channel: object) -> bool:
    try:
        hash(channel)
    except TypeError:
        return False
    return True


class OnceGroup:
    """Shared state of the entries created by a single ``once()`` call."""

    __slots__ = ("entries", "fired")

    def __init__(self) -> None:
        self.entries: list[ListenerEntry] = []
        self.fired = False


@dataclass(eq=False)
class ListenerEntry:
    """One registration. Also serves as the handle returned to callers."""

    channel: Hashable
    callback: Callable[..., Any]
    registry: ListenerRegistry = field(repr=False)
    once: OnceGroup | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self.registry.contains(self)

    def matches(self, callback: Any) -> bool:
        """True for the entry itself or a callback equal to the registered one."""
        return callback is self or self.callback == callback

    def claim(self) -> bool:
        """Prepare the entry for invocation.

        Plain entries can always be invoked. A once entry is consumed here:
        every entry of its group is removed before the caller runs the
        callback, and later claims return False.
        """
        group = self.once
        if group is None:
            return True
        with self.registry.lock:
            if group.fired:
                return False
            group.fired = True
            for entry in group.entries:
                entry.registry.discard(entry)
        return True

    def cancel(self) -> bool:
        """Remove this registration; False if it was already gone."""
        return self.registry.discard(self)


class ListenerRegistry:
    """Ordered channel -> entries mapping with optional parent layering."""

    def __init__(
        self, parent: ListenerRegistry | None = None, *, thread_safe: bool = True
    ) -> None:
        self._channels: dict[Hashable, list[ListenerEntry]] = {}
        self.parent = parent
        self.lock: AbstractContextManager[Any] = (
            threading.RLock() if thread_safe else nullcontext()
        )

    def add(
        self,
        channel: Hashable,
        callback: Callable[..., Any],
        once: OnceGroup | None = None,
    ) -> ListenerEntry:
        """Append a registration to ``channel`` and return its entry."""
        entry = ListenerEntry(channel=channel, callback=callback, registry=self, once=once)
        with self.lock:
            self._channels.setdefault(channel, []).append(entry)
            if once is not None:
                once.entries.append(entry)
        LOGGER.debug("Subscribed to channel: %r", channel)
        return entry

    def remove(self, channel: Hashable, callback: Any) -> ListenerEntry | None:
        """Remove the first entry on ``channel`` matching ``callback``.

        Returns the removed entry, or None when nothing matched.
        """
        if not _is_hashable(channel):
            return None
        with self.lock:
            entries = self._channels.get(channel)
            if not entries:
                return None
            for index, entry in enumerate(entries):
                if entry.matches(callback):
                    del entries[index]
                    if not entries:
                        del self._channels[channel]
                    break
            else:
                return None
        LOGGER.debug("Unsubscribed from channel: %r", channel)
        return entry

    def discard(self, entry: ListenerEntry) -> bool:
        """Remove exactly ``entry`` (identity match)."""
        with self.lock:
            entries = self._channels.get(entry.channel)
            if not entries:
                return False
            for index, candidate in enumerate(entries):
                if candidate is entry:
                    del entries[index]
                    if not entries:
                        del self._channels[entry.channel]
                    return True
        return False

    def clear(self, channel: Hashable | None = None) -> None:
        """Drop every entry of ``channel``, or of all channels when None."""
        if channel is not None and not _is_hashable(channel):
            return
        with self.lock:
            if channel is None:
                self._channels.clear()
            else:
                self._channels.pop(channel, None)
        LOGGER.debug(
            "registry.cleared",
            extra={"event": "registry.cleared", "channel": channel},
        )

    def snapshot(self, channel: Hashable) -> tuple[ListenerEntry, ...]:
        """Frozen copy of the entries for ``channel``, local before parent."""
        if not _is_hashable(channel):
            return ()
        with self.lock:
            local = tuple(self._channels.get(channel, ()))
        if self.parent is None:
            return local
        return local + self.parent.snapshot(channel)

    def callbacks(self, channel: Hashable) -> list[Callable[..., Any]]:
        return [entry.callback for entry in self.snapshot(channel)]

    def has(self, channel: Hashable) -> bool:
        if not _is_hashable(channel):
            return False
        with self.lock:
            if channel in self._channels:
                return True
        return self.parent is not None and self.parent.has(channel)

    def channels(self) -> list[Hashable]:
        """Channel keys with at least one local registration."""
        with self.lock:
            return list(self._channels)

    def contains(self, entry: ListenerEntry) -> bool:
        with self.lock:
            return any(item is entry for item in self._channels.get(entry.channel, ()))

    def __contains__(self, channel: object) -> bool:
        if not _is_hashable(channel):
            return False
        with self.lock:
            return channel in self._channels

    def __len__(self) -> int:
        with self.lock:
            return sum(len(entries) for entries in self._channels.values())
