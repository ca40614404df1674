"""Attach the emitter capability to existing objects.

Usage:
    class Player:
        pass

    player = mixin(Player())
    player.on("scored", print)
    player.emit("scored", 3)

    # Or on a class: every instance gets its own registry on first use.
    mixin(Player)
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from types import MethodType
from typing import Any, TypeVar

from .config import EmitterConfig, coerce_emitter_config
from .emitter import CONFIG_ATTR, OPERATIONS, Emitter, attach
from .exceptions import MixinError

LOGGER = logging.getLogger(__name__)

HostT = TypeVar("HostT")


def mixin(
    host: HostT,
    config: EmitterConfig | Mapping[str, Any] | None = None,
    *,
    parent: Any = None,
) -> HostT:
    """Mix the emitter operations onto ``host`` in place and return it.

    Instances receive a fresh registry immediately and the operations as
    bound methods. Classes receive the operations as plain functions; their
    instances create independent registries lazily. ``parent`` is only
    accepted for instances.
    """
    if host is None:
        raise MixinError("Cannot mix the emitter capability into None.")
    if isinstance(host, type):
        if parent is not None:
            raise MixinError("A parent registry can only be attached to an instance.")
        _mixin_class(host, config)
    else:
        _mixin_instance(host, config, parent)
    LOGGER.debug(
        "emitter.mixin",
        extra={"event": "emitter.mixin", "host": type(host).__name__},
    )
    return host


def _mixin_class(cls: type, config: EmitterConfig | Mapping[str, Any] | None) -> None:
    try:
        if config is not None:
            setattr(cls, CONFIG_ATTR, coerce_emitter_config(config))
        for name in OPERATIONS:
            setattr(cls, name, getattr(Emitter, name))
    except (AttributeError, TypeError) as exc:
        raise MixinError(f"Cannot mix the emitter capability into {cls.__name__!r}: {exc}") from exc


def _mixin_instance(
    host: Any, config: EmitterConfig | Mapping[str, Any] | None, parent: Any
) -> None:
    attach(host, config, parent=parent)
    for name in OPERATIONS:
        try:
            setattr(host, name, MethodType(getattr(Emitter, name), host))
        except (AttributeError, TypeError) as exc:
            raise MixinError(
                f"Cannot mix the emitter capability into {type(host).__name__!r} object: {exc}"
            ) from exc


def is_emitter(host: Any) -> bool:
    """True when ``host`` exposes the emitter operations."""
    if isinstance(host, Emitter):
        return True
    return all(callable(getattr(host, name, None)) for name in ("on", "off", "emit", "once"))
