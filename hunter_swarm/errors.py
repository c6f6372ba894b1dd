"""Exception taxonomy shared by hunters, engines, sinks and the orchestrator."""

from __future__ import annotations

from typing import Any


class SwarmError(Exception):
    """Base class for every error raised by hunter-swarm."""


class ConfigurationError(SwarmError):
    """Invalid configuration detected before any phase starts. Fatal."""


class SourceUnavailable(SwarmError):
    """A hunter could not reach or read its source."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class CandidateValidationError(SwarmError):
    """A single candidate failed schema validation and must be dropped."""

    def __init__(self, payload: Any, reason: str) -> None:
        super().__init__(reason)
        self.payload = payload
        self.reason = reason


class PersistenceError(SwarmError):
    """A whole batch could not be written to the sink."""


class EnrichmentServiceError(SwarmError):
    """The optional insight service failed or timed out."""


__all__ = [
    "CandidateValidationError",
    "ConfigurationError",
    "EnrichmentServiceError",
    "PersistenceError",
    "SourceUnavailable",
    "SwarmError",
]
