"""Structured event objects that can be published directly.

Usage:
    emitter.on("file.changed", lambda event: print(event.data))
    emitter.emit(Event("file.changed"), "/path/to/file")
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


@dataclass
class Event:
    """Event data container.

    ``type`` selects the channel. ``target``, ``data`` and ``extra_params`` are
    filled in by the emitter when left unset.
    """

    type: str
    data: Any = None
    target: Any = None
    extra_params: Any = None


def is_event_object(value: Any) -> bool:
    """True for non-string values carrying a ``type`` attribute."""
    if isinstance(value, (str, bytes)):
        return False
    return getattr(value, "type", None) is not None


def enrich_event(event: Any, target: Any, args: tuple[Any, ...]) -> Any:
    """Attach the publishing target and the remaining arguments to ``event``.

    Only unset (None) fields receive ``args``. Immutable event objects such as
    namedtuples, frozen dataclasses or frozen pydantic models are returned
    untouched.
    """
    try:
        event.target = target
        if getattr(event, "extra_params", None) is None:
            event.extra_params = args
        if getattr(event, "data", None) is None:
            event.data = args
    except (AttributeError, TypeError, ValueError) as exc:
        # FrozenInstanceError is an AttributeError; pydantic raises a ValueError.
        LOGGER.debug("Publishing immutable event object unenriched: %s", exc)
    return event
