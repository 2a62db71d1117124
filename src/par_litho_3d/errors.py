"""Exception types raised by the export pipeline."""

from __future__ import annotations


class LithoError(Exception):
    """Base class for all export errors."""


class InputError(LithoError):
    """The pixel buffer has nothing that could be exported."""


class ConfigurationError(LithoError, ValueError):
    """Physical dimensions, pitch or thickness settings are unusable."""


class ResourceExhaustion(LithoError, MemoryError):
    """Packaging ran out of memory.

    Raised in place of the underlying MemoryError so the orchestrator can fall
    back to writing one file per layer.
    """
