"""Terminal progress for orchestration phases, rendered with Rich."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass
class PhaseState:
    name: str
    total: int
    success: int = 0
    failed: int = 0


class PhaseProgress:
    """One progress row per phase; silently disabled off-terminal."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: PhaseState | None = None
        self.history: list[PhaseState] = []

    def start_phase(self, name: str, total: int) -> None:
        self.finish_phase()
        self.state = PhaseState(name=name, total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # Non-interactive output: keep counters only.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[phase]:<18}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]✓{task.fields[success]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>4}", justify="right"),
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            name, total=total or None, phase=name, success=0, failed=0
        )

    def advance(self, success: bool = True) -> None:
        if self.state is None:
            raise RuntimeError("PhaseProgress.start_phase must be called before advance")
        if success:
            self.state.success += 1
        else:
            self.state.failed += 1
        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id,
                advance=1,
                success=self.state.success,
                failed=self.state.failed,
            )

    def finish_phase(self) -> None:
        if self.state is not None:
            self.history.append(self.state)
            self.state = None
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def close(self) -> None:
        self.finish_phase()


__all__ = ["PhaseProgress", "PhaseState"]
