"""User-Agent pool shared by hunters that talk to live sites."""

from __future__ import annotations

import random
from pathlib import Path
from threading import Lock
from typing import Iterable, List, Optional

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
)


class UserAgentPool:
    """Hand out user agents; a source-specific override always wins."""

    def __init__(self, user_agents: Iterable[str] | None = None, file_path: Path | None = None) -> None:
        self._lock = Lock()
        self._uas: List[str] = []
        if user_agents:
            self._uas.extend(ua.strip() for ua in user_agents if ua.strip())
        if file_path and file_path.exists():
            lines = file_path.read_text(encoding="utf-8").splitlines()
            self._uas.extend(line.strip() for line in lines if line.strip())
        if not self._uas:
            self._uas.extend(DEFAULT_USER_AGENTS)

    def get(self, override: str | None = None) -> Optional[str]:
        if override:
            return override
        with self._lock:
            if not self._uas:
                return None
            return random.choice(self._uas)

    def refresh(self, user_agents: Iterable[str]) -> None:
        with self._lock:
            self._uas = [ua.strip() for ua in user_agents if ua.strip()]


__all__ = ["DEFAULT_USER_AGENTS", "UserAgentPool"]
