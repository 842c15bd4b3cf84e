"""Exception types raised by praxis.

Only configuration mistakes raise. Anything that goes wrong inside a step is
reported as a Diagnostic instead.
"""

from __future__ import annotations


class PraxisError(ValueError):
    """Base class for praxis errors."""


class DuplicateIdError(PraxisError):
    """A rule or constraint id was registered twice."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f'{kind.capitalize()} with id "{item_id}" already registered')


class EngineOptionsError(PraxisError):
    """Engine options could not be turned into an initial state."""


class SnapshotError(PraxisError):
    """A persisted state snapshot is malformed."""


class ConfigError(PraxisError):
    """A step profile file is malformed or a profile is unknown."""


class ActorError(PraxisError):
    """Actor lifecycle misuse (unknown id, double start, no engine)."""
