"""Collector agents ("hunters")."""

from __future__ import annotations

from ..config import SwarmConfig
from .base import BaseHunter, HuntQuery, HuntResult
from .directory import DirectoryHunter
from .government import GovernmentHunter
from .yellowpages import YellowPagesHunter

HUNTERS: dict[str, type[BaseHunter]] = {
    DirectoryHunter.name: DirectoryHunter,
    GovernmentHunter.name: GovernmentHunter,
    YellowPagesHunter.name: YellowPagesHunter,
}


def build_hunter(name: str, config: SwarmConfig) -> BaseHunter:
    try:
        hunter_cls = HUNTERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown hunter: {name}") from exc
    return hunter_cls(config.source(name))


__all__ = [
    "BaseHunter",
    "DirectoryHunter",
    "GovernmentHunter",
    "HUNTERS",
    "HuntQuery",
    "HuntResult",
    "YellowPagesHunter",
    "build_hunter",
]
