"""Domain exception hierarchy for emitkit."""

from __future__ import annotations


class EmitkitError(RuntimeError):
    """Base class for all emitkit errors."""


class InvalidChannelError(EmitkitError, ValueError):
    """Raised when a listener is registered without a usable channel key."""


class MixinError(EmitkitError, TypeError):
    """Raised when a host object cannot receive the emitter capability."""


class ConfigValidationError(EmitkitError):
    """Raised when configuration cannot be validated safely."""
