"""Bounded worker pools shared by the tasks of an orchestration run."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Dict


class ThreadPoolManager:
    """Manage the shared task pool and named auxiliary pools.

    Work submitted beyond ``max_workers`` waits in the executor queue; nothing
    is dropped.
    """

    def __init__(self, default_workers: int = 10) -> None:
        self.default_workers = default_workers
        self._default_executor = ThreadPoolExecutor(
            max_workers=default_workers, thread_name_prefix="hunter"
        )
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, pool_name: str | None = None, max_workers: int | None = None) -> ThreadPoolExecutor:
        if pool_name is None:
            return self._default_executor
        with self._lock:
            if pool_name not in self._executors:
                workers = max_workers or self.default_workers
                self._executors[pool_name] = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix=f"hunter-{pool_name}"
                )
            return self._executors[pool_name]

    def shutdown(self, wait: bool = True) -> None:
        self._default_executor.shutdown(wait=wait)
        with self._lock:
            for executor in self._executors.values():
                executor.shutdown(wait=wait)
            self._executors.clear()


__all__ = ["ThreadPoolManager"]
