"""Typer CLI entrypoint for hunter-swarm."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from threading import Event, Thread
from typing import Any, Iterable, List, Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, SwarmConfig
from .engine import DeduplicationEngine
from .engine.sink import BaseSink, build_sink
from .errors import CandidateValidationError, ConfigurationError, SwarmError
from .logging_conf import available_logs, configure_logging, log_file, tail_log
from .orchestrator import PHASES, Orchestrator
from .records import CandidateRecord
from .stats import RunStatistics
from .ui import PhaseProgress

app = typer.Typer(
    help="hunter-swarm: multi-source business collection pipeline",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands", no_args_is_help=True)
records_app = typer.Typer(name="records", help="Inspect stored records", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log viewing commands", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False

    def load_config(self, path: Path | None = None) -> SwarmConfig:
        try:
            return self.repository.load(path)
        except (ConfigurationError, FileNotFoundError) as exc:
            console.print(f"Configuration error: {exc}", style="red")
            raise typer.Exit(code=2) from exc

    def open_sink(self, config: SwarmConfig) -> BaseSink:
        try:
            return build_sink(config.database, self.repository.database_path(config))
        except SwarmError as exc:
            console.print(f"Cannot open sink: {exc}", style="red")
            raise typer.Exit(code=1) from exc


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(repository=ConfigRepository(), verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _render_statistics(stats: RunStatistics) -> Table:
    table = Table(title="Run statistics", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key in (
        "total_collected",
        "duplicates_removed",
        "validation_dropped",
        "synthetic_records",
        "persisted",
        "enriched",
        "scored",
        "insight_failures",
        "cancelled",
        "errors",
    ):
        table.add_row(key, str(getattr(stats, key)))
    for name, count in sorted(stats.category_counts.items()):
        table.add_row(f"category:{name}", str(count))
    for name, count in stats.phase_counts.items():
        table.add_row(f"phase:{name}", str(count))
    table.add_row("duration_seconds", f"{stats.duration_seconds:.1f}")
    return table


def _render_records(rows: Iterable[dict[str, Any]], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", overflow="fold")
    table.add_column("City", style="magenta")
    table.add_column("Prov", style="magenta")
    table.add_column("Score", style="green", justify="right")
    table.add_column("Category", style="yellow")
    table.add_column("Priority", justify="center")
    table.add_column("Sources", style="dim")
    for row in rows:
        table.add_row(
            str(row.get("name", "-")),
            str(row.get("city") or "-"),
            str(row.get("province") or "-"),
            str(row.get("priority_score", 0)),
            str(row.get("priority_category") or "-"),
            "!" if row.get("requires_priority_handling") else "",
            ", ".join(row.get("sources") or []),
        )
    return table


def _read_candidates(path: Path) -> list[dict[str, Any]]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        return [json.loads(line) for line in text.splitlines() if line.strip()]
    payload = json.loads(text)
    if isinstance(payload, dict):
        payload = payload.get("records", [])
    if not isinstance(payload, list):
        raise typer.BadParameter("expected a JSON list of candidate objects")
    return payload


app.add_typer(config_app, name="config", help="Write or display the swarm configuration")
app.add_typer(records_app, name="records", help="Query records in the sink")
app.add_typer(log_app, name="log", help="View log files")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Run the sourcing, enrichment and scoring campaign.")
def run(
    ctx: typer.Context,
    phase: Optional[List[str]] = typer.Option(
        None, "--phase", help=f"Run only these phases ({', '.join(PHASES)}); repeatable."
    ),
    backend: Optional[str] = typer.Option(None, "--backend", help="Override sink backend: sqlite or mongodb."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Explicit configuration file."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line summary only.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    config = state.load_config(config_path)
    if backend:
        if backend not in ("sqlite", "mongodb"):
            raise typer.BadParameter("backend must be sqlite or mongodb", param_hint="--backend")
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"backend": backend})}
        )
    sink = state.open_sink(config)
    progress = PhaseProgress(enabled=_progress_default_enabled() and not quiet, console=console)
    orchestrator = Orchestrator(config, sink, progress=progress)

    cancel = Event()
    outcome: dict[str, Any] = {}

    def _target() -> None:
        try:
            outcome["stats"] = orchestrator.run(cancel, phases=phase or None)
        except SwarmError as exc:
            outcome["error"] = exc

    worker = Thread(target=_target, name="hunter-swarm-run")
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.5)
    except KeyboardInterrupt:
        console.print("Cancelling: waiting for in-flight tasks to drain...", style="yellow")
        cancel.set()
        worker.join()
    finally:
        orchestrator.close()

    error = outcome.get("error")
    if error is not None:
        console.print(f"Run aborted: {error}", style="red")
        raise typer.Exit(code=2)
    stats: RunStatistics | None = outcome.get("stats")
    if stats is None:
        raise typer.Exit(code=1)
    if quiet:
        console.print(
            f"collected {stats.total_collected}, duplicates {stats.duplicates_removed}, "
            f"enriched {stats.enriched}, scored {stats.scored}, errors {stats.errors}"
        )
        return
    console.print(_render_statistics(stats))


@config_app.command("init", help="Write the default configuration file.")
def config_init(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(None, "--path", help="Target file (yaml or json)."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    target = path or state.repository.locator.config_path()
    if target.exists() and not force:
        console.print(f"{target} already exists; use --force to overwrite.", style="yellow")
        raise typer.Exit(code=1)
    written = state.repository.save(SwarmConfig(), target)
    console.print(f"Configuration written to {written}", style="green")


@config_app.command("show", help="Display the effective configuration.")
def config_show(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(None, "--path", help="Explicit configuration file."),
) -> None:
    state = _get_state(ctx)
    config = state.load_config(path)
    console.print(
        yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False, allow_unicode=True),
        markup=False,
        highlight=False,
    )


@records_app.command("top", help="List the highest-priority stored records.")
def records_top(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", min=1, help="How many records to show."),
) -> None:
    state = _get_state(ctx)
    config = state.load_config()
    sink = state.open_sink(config)
    try:
        rows = sink.top(limit)
        total = sink.count()
    finally:
        sink.close()
    if not rows:
        console.print("No records stored yet. Run `hunter-swarm run` first.", style="dim")
        return
    console.print(_render_records(rows, f"Top {len(rows)} of {total} records"))


@app.command("dedup", help="Deduplicate a JSON/JSONL file of candidates offline.")
def dedup(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Candidates file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write canonical records as JSONL."),
) -> None:
    candidates: list[CandidateRecord] = []
    dropped = 0
    for payload in _read_candidates(file):
        try:
            candidates.append(CandidateRecord.from_raw(payload))
        except CandidateValidationError as exc:
            dropped += 1
            console.print(f"dropped {payload.get('name')!r}: {exc.reason}", style="dim")
    engine = DeduplicationEngine()
    canonical = engine.deduplicate(candidates)
    report = engine.last_report
    console.print(
        f"{report.input_count} candidates -> {report.output_count} canonical "
        f"({report.duplicates} duplicates, {dropped} invalid)",
        style="cyan",
    )
    if output:
        with output.open("w", encoding="utf-8") as stream:
            for record in canonical:
                stream.write(json.dumps(record.to_row(), ensure_ascii=False))
                stream.write("\n")
        console.print(f"Wrote {len(canonical)} records to {output}", style="green")
        return
    console.print(_render_records((record.to_row() for record in canonical), "Canonical records"))


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of the swarm log or a hunter log.")
def log_show(
    hunter: Optional[str] = typer.Option(None, "--hunter", help="Hunter name (default: swarm log)."),
    tail: int = typer.Option(100, "--tail", min=1, help="Show the last N lines."),
    errors: bool = typer.Option(False, "--errors", help="Show error.log instead.", is_flag=True),
) -> None:
    path = log_file(hunter, errors=errors)
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
