"""Top-level package for emitkit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import Config, EmitterConfig, load_config
    from .emitter import Emitter
    from .events import Event
    from .exceptions import (
        ConfigValidationError,
        EmitkitError,
        InvalidChannelError,
        MixinError,
    )
    from .logging_utils import configure_logging
    from .mixins import mixin
    from .registry import ListenerEntry, ListenerRegistry

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmitkitError",
    "Emitter",
    "EmitterConfig",
    "Event",
    "InvalidChannelError",
    "ListenerEntry",
    "ListenerRegistry",
    "MixinError",
    "configure_logging",
    "load_config",
    "mixin",
]

_EXPORTS = {
    "Config": ".config",
    "EmitterConfig": ".config",
    "load_config": ".config",
    "Emitter": ".emitter",
    "Event": ".events",
    "ConfigValidationError": ".exceptions",
    "EmitkitError": ".exceptions",
    "InvalidChannelError": ".exceptions",
    "MixinError": ".exceptions",
    "configure_logging": ".logging_utils",
    "mixin": ".mixins",
    "ListenerEntry": ".registry",
    "ListenerRegistry": ".registry",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so ``import emitkit`` stays cheap."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
