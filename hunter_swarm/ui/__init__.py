"""User interaction helpers."""

from .progress import PhaseProgress, PhaseState

__all__ = ["PhaseProgress", "PhaseState"]
