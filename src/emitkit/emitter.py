"""Emitter base type.

Usage:
    class Document(Emitter):
        def save(self) -> None:
            self.emit("saved", self)

    doc = Document()
    doc.on("saved", lambda d: print("saved", d))
    doc.once("closed", cleanup)
    doc.save()

Every operation works on any host object that carries the emitter state, so
the same functions are reused by :func:`emitkit.mixins.mixin`. The state is
created lazily, which also covers subclasses that never call
``Emitter.__init__``.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
import logging
import threading
from typing import Any

from .config import EmitterConfig, coerce_emitter_config
from .events import enrich_event, is_event_object
from .exceptions import InvalidChannelError, MixinError
from .registry import ListenerEntry, ListenerRegistry, OnceGroup

LOGGER = logging.getLogger(__name__)

REGISTRY_ATTR = "_emitter_registry"
CONFIG_ATTR = "_emitter_config"

_ATTACH_LOCK = threading.Lock()


def config_of(host: Any) -> EmitterConfig:
    """Effective config of ``host``; instance value first, then its class."""
    config = getattr(host, CONFIG_ATTR, None)
    if config is None:
        return coerce_emitter_config(None)
    return config


def registry_of(host: Any) -> ListenerRegistry:
    """Return the registry of ``host``, creating it on first use."""
    registry = getattr(host, REGISTRY_ATTR, None)
    if registry is not None:
        return registry
    with _ATTACH_LOCK:
        registry = getattr(host, REGISTRY_ATTR, None)
        if registry is None:
            registry = ListenerRegistry(thread_safe=config_of(host).thread_safe)
            _set_state(host, REGISTRY_ATTR, registry)
    return registry


def attach(
    host: Any,
    config: EmitterConfig | Mapping[str, Any] | None = None,
    *,
    parent: Any = None,
) -> ListenerRegistry:
    """Give ``host`` a fresh registry (and config when one is provided)."""
    resolved = coerce_emitter_config(config) if config is not None else config_of(host)
    if config is not None:
        _set_state(host, CONFIG_ATTR, resolved)
    parent_registry = _resolve_parent(parent)
    registry = ListenerRegistry(parent_registry, thread_safe=resolved.thread_safe)
    _set_state(host, REGISTRY_ATTR, registry)
    return registry


def _resolve_parent(parent: Any) -> ListenerRegistry | None:
    if parent is None or isinstance(parent, ListenerRegistry):
        return parent
    return registry_of(parent)


def _set_state(host: Any, name: str, value: Any) -> None:
    try:
        setattr(host, name, value)
    except (AttributeError, TypeError) as exc:
        raise MixinError(
            f"Cannot attach emitter state to {type(host).__name__!r} object: {exc}"
        ) from exc


def _require_callable(callback: Any) -> None:
    if not callable(callback):
        raise TypeError(f"Listener must be callable, got {type(callback).__name__}.")


def _channel_keys(channel: Any, config: EmitterConfig) -> list[Hashable]:
    """Expand a channel argument into the individual keys it names."""
    if channel is None:
        raise InvalidChannelError("Channel must not be None.")
    if isinstance(channel, (list, tuple)):
        if any(key is None for key in channel):
            raise InvalidChannelError("Channel must not be None.")
        return list(channel)
    if config.separator and isinstance(channel, str):
        return [key for key in channel.split(config.separator) if key] or [channel]
    return [channel]


def _registration_keys(channel: Any, config: EmitterConfig) -> list[Hashable]:
    """Like _channel_keys, but every key must be usable as a dict key."""
    keys = _channel_keys(channel, config)
    for key in keys:
        try:
            hash(key)
        except TypeError as exc:
            raise InvalidChannelError(
                f"Channel must be hashable, got {type(key).__name__}."
            ) from exc
    return keys


class Emitter:
    """Base type giving instances named-event listeners.

    Args:
        config: EmitterConfig or mapping of its fields.
        parent: Emitter, mixed-in host or ListenerRegistry whose listeners are
            also invoked, after the local ones, on every publish.
    """

    def __init__(
        self,
        config: EmitterConfig | Mapping[str, Any] | None = None,
        *,
        parent: Any = None,
    ) -> None:
        attach(self, config, parent=parent)

    def on(self, channel: Any, callback: Callable[..., Any]) -> Any:
        """Register ``callback`` for ``channel``; returns the emitter."""
        _require_callable(callback)
        registry = registry_of(self)
        for key in _registration_keys(channel, config_of(self)):
            registry.add(key, callback)
        return self

    add_listener = on
    add_event_listener = on

    def once(self, channel: Any, callback: Callable[..., Any]) -> Any:
        """Register ``callback`` to run on the next publish only.

        With several channels the callback still runs once in total: the
        first publish on any of them removes all of the registrations.
        """
        _require_callable(callback)
        registry = registry_of(self)
        group = OnceGroup()
        for key in _registration_keys(channel, config_of(self)):
            registry.add(key, callback, once=group)
        return self

    def subscribe(
        self, channel: Hashable, callback: Callable[..., Any], *, once: bool = False
    ) -> ListenerEntry:
        """Register ``callback`` on a single channel and return its handle.

        ``handle.cancel()`` removes exactly this registration, independently
        of any other registration of the same callback.
        """
        _require_callable(callback)
        (channel,) = _registration_keys([channel], config_of(self))
        return registry_of(self).add(channel, callback, OnceGroup() if once else None)

    def off(self, channel: Any = None, callback: Any = None) -> Any:
        """Remove registrations.

        - ``off()`` removes everything.
        - ``off(channel)`` removes every listener of ``channel``.
        - ``off(channel, callback)`` removes the first registration of
          ``callback`` (or of the handle) on ``channel``.
        - ``off(None, callback)`` removes the first registration of
          ``callback`` on each channel.

        Unknown channels and callbacks are ignored.
        """
        registry = registry_of(self)
        if channel is None:
            if callback is None:
                registry.clear()
            else:
                for key in registry.channels():
                    registry.remove(key, callback)
            return self

        for key in _channel_keys(channel, config_of(self)):
            if callback is None:
                registry.clear(key)
            else:
                registry.remove(key, callback)
        return self

    remove_listener = off
    remove_all_listeners = off
    remove_event_listener = off

    def emit(self, channel: Any, *args: Any, **kwargs: Any) -> Any:
        """Invoke the listeners of ``channel`` with the given arguments.

        The listener lists are copied before the first call, so listeners
        added or removed while dispatching only affect later publishes. An
        exception raised by a listener propagates and stops the dispatch.

        Unlike ``on``, a list is not fanned out here: any unhashable channel
        simply has no listeners, so publishing on it is a no-op.
        """
        config = config_of(self)
        registry = registry_of(self)

        if config.enrich_events and is_event_object(channel):
            event = enrich_event(channel, self, args)
            channel = event.type
            args = (event, *args)

        entries = registry.snapshot(channel)
        wildcard = config.wildcard
        if wildcard is not None and channel != wildcard:
            entries += registry.snapshot(wildcard)

        if not entries:
            LOGGER.debug("No listeners for channel: %r", channel)
            return self

        for entry in entries:
            if entry.claim():
                entry.callback(*args, **kwargs)
        return self

    trigger = emit
    trigger_handler = emit
    dispatch_event = emit

    def listeners(self, channel: Hashable) -> list[Callable[..., Any]]:
        """Callbacks registered for ``channel`` in dispatch order."""
        return registry_of(self).callbacks(channel)

    def has_listeners(self, channel: Hashable) -> bool:
        return registry_of(self).has(channel)

    def event_names(self) -> list[Hashable]:
        """Channels that currently hold at least one local listener."""
        return registry_of(self).channels()


# Public surface copied onto hosts by emitkit.mixins.
OPERATIONS: tuple[str, ...] = (
    "on",
    "add_listener",
    "add_event_listener",
    "once",
    "subscribe",
    "off",
    "remove_listener",
    "remove_all_listeners",
    "remove_event_listener",
    "emit",
    "trigger",
    "trigger_handler",
    "dispatch_event",
    "listeners",
    "has_listeners",
    "event_names",
)
