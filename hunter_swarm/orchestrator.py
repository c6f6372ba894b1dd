"""Phased campaign orchestrator wiring hunters, dedup, enrichment, scoring and sinks."""

from __future__ import annotations

from concurrent.futures import Future, as_completed
from dataclasses import dataclass, field
from threading import Event
from typing import Any, Callable, Iterable, Mapping, Sequence

import structlog

from .config import FailurePolicy, SwarmConfig
from .engine import (
    DeduplicationEngine,
    EnrichmentEngine,
    PriorityScorer,
    RateLimiter,
    ThreadPoolManager,
    build_insight_provider,
)
from .engine.sink import BaseSink
from .errors import CandidateValidationError, ConfigurationError, PersistenceError
from .hunters import BaseHunter, HuntQuery, HuntResult, build_hunter
from .logging_conf import configure_logging
from .records import CandidateRecord, CanonicalRecord, EnrichedRecord
from .stats import RunStatistics, StatisticsAccumulator
from .ui import PhaseProgress

COLLECTION_PHASES = (
    "priority_sourcing",
    "mandated_sourcing",
    "industry_sourcing",
    "general_sourcing",
)
PHASES = COLLECTION_PHASES + ("enrichment", "scoring")

PHASE_HUNTERS = {
    "priority_sourcing": "directory",
    "mandated_sourcing": "government",
    "industry_sourcing": "yellowpages",
    "general_sourcing": "yellowpages",
}


@dataclass(slots=True)
class CollectionTask:
    """One hunter invocation inside a collection phase."""

    phase: str
    hunter: str
    query: HuntQuery
    annotations: dict[str, bool] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"{self.phase}:{self.hunter}:{self.query.kind}:{self.query.value or self.query.offset}"


class Orchestrator:
    """Run sourcing, enrichment and scoring phases strictly in order.

    Tasks within a phase fan out over a bounded pool and are throttled by a
    rolling-window rate limiter; a failing task is logged, counted and never
    aborts its phase.
    """

    def __init__(
        self,
        config: SwarmConfig,
        sink: BaseSink,
        *,
        hunter_factory: Callable[[str], BaseHunter] | None = None,
        enrichment: EnrichmentEngine | None = None,
        scorer: PriorityScorer | None = None,
        thread_pool: ThreadPoolManager | None = None,
        rate_limiter: RateLimiter | None = None,
        progress: PhaseProgress | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.sink = sink
        self.hunter_factory = hunter_factory or (lambda name: build_hunter(name, config))
        self.logger = (logger or configure_logging()).bind(component="orchestrator")
        self.enrichment = enrichment or EnrichmentEngine(
            config.classification,
            build_insight_provider(config.insight),
            logger=self.logger,
        )
        self.scorer = scorer or PriorityScorer(config.scoring)
        self.thread_pool = thread_pool or ThreadPoolManager(config.concurrency.workers)
        self.rate_limiter = rate_limiter or RateLimiter(
            config.concurrency.rate_limit, config.concurrency.rate_window_seconds
        )
        self._source_limiters = {
            name: RateLimiter(settings.rate_limit, config.concurrency.rate_window_seconds)
            for name, settings in config.sources.items()
            if settings.rate_limit
        }
        self.progress = progress or PhaseProgress(enabled=False)

    # ------------------------------------------------------------------
    def preflight(self) -> None:
        """Re-validate the configuration; raise ``ConfigurationError`` if unusable."""

        try:
            SwarmConfig.model_validate(self.config.model_dump())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid swarm configuration: {exc}") from exc
        for phase in COLLECTION_PHASES:
            if getattr(self.config.phases, phase) and PHASE_HUNTERS[phase] not in self.config.sources:
                raise ConfigurationError(f"Phase {phase} needs source '{PHASE_HUNTERS[phase]}'")

    def run(
        self,
        cancel_event: Event | None = None,
        phases: Iterable[str] | None = None,
    ) -> RunStatistics:
        """Execute every enabled phase and return the run's statistics."""

        self.preflight()
        selected = set(phases) if phases is not None else None
        if selected is not None and not selected <= set(PHASES):
            raise ConfigurationError(f"Unknown phases: {sorted(selected - set(PHASES))}")
        cancel = cancel_event or Event()
        stats = StatisticsAccumulator()
        stats.start()
        insight_baseline = self.enrichment.insight_failures
        self.logger.info("run_started", phases=sorted(selected) if selected else list(PHASES))
        try:
            for phase in PHASES:
                if selected is not None and phase not in selected:
                    continue
                if not getattr(self.config.phases, phase):
                    self.logger.info("phase_disabled", phase=phase)
                    continue
                if cancel.is_set():
                    self.logger.warning("phase_cancelled", phase=phase)
                    break
                self.logger.info("phase_started", phase=phase)
                if phase in COLLECTION_PHASES:
                    self._run_collection_phase(phase, self.build_tasks(phase), stats, cancel)
                elif phase == "enrichment":
                    self._run_enrichment_phase(stats, cancel)
                else:
                    self._run_scoring_phase(stats, cancel)
                stats.complete_phase(phase)
                self.logger.info("phase_finished", phase=phase)
        finally:
            self.progress.close()
            stats.add("insight_failures", self.enrichment.insight_failures - insight_baseline)
        result = stats.finish()
        self.logger.info("run_finished", **_summary(result))
        return result

    def close(self) -> None:
        self.thread_pool.shutdown(wait=True)
        self.enrichment.insight.close()
        self.sink.close()

    # ------------------------------------------------------------------
    # Task planning
    # ------------------------------------------------------------------
    def build_tasks(self, phase: str) -> list[CollectionTask]:
        hunter = PHASE_HUNTERS[phase]
        settings = self.config.source(hunter)
        if not settings.enabled:
            self.logger.info("source_disabled", phase=phase, source=hunter)
            return []
        targets = self.config.targets
        target = {
            "priority_sourcing": targets.priority,
            "mandated_sourcing": targets.government,
            "industry_sourcing": targets.per_industry,
            "general_sourcing": targets.general,
        }[phase]
        if target == 0:
            self.logger.info("phase_target_zero", phase=phase)
            return []
        if phase == "priority_sourcing":
            return [CollectionTask(phase, hunter, HuntQuery(limit=targets.priority))]
        if phase == "mandated_sourcing":
            return [
                CollectionTask(
                    phase,
                    hunter,
                    HuntQuery(limit=targets.government),
                    {"government_contractor": True, "mandatory_industry": True},
                )
            ]
        if phase == "industry_sourcing":
            return [
                CollectionTask(
                    phase,
                    hunter,
                    HuntQuery(kind="industry", value=industry, limit=targets.per_industry),
                    {"mandatory_industry": True},
                )
                for industry in self.config.mandated_industries
            ]
        chunk = self.config.general_chunk_size
        return [
            CollectionTask(
                phase,
                hunter,
                HuntQuery(kind="general", limit=min(chunk, targets.general - start), offset=start),
            )
            for start in range(0, targets.general, chunk)
        ]

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------
    def _run_collection_phase(
        self,
        phase: str,
        tasks: Sequence[CollectionTask],
        stats: StatisticsAccumulator,
        cancel: Event,
    ) -> None:
        self.progress.start_phase(phase, len(tasks))
        executor = self.thread_pool.get()
        futures: dict[Future, CollectionTask] = {
            executor.submit(self._run_task, task, stats, cancel): task for task in tasks
        }
        persistence: list[Future] = []
        for future in as_completed(futures):
            task = futures[future]
            try:
                persistence.extend(future.result())
            except Exception as exc:  # noqa: BLE001
                stats.add("errors")
                self.logger.error("task_failed", task=task.label, error=str(exc), exc_info=True)
                self.progress.advance(success=False)
            else:
                self.progress.advance(success=True)
        # A phase settles only once its batches are written.
        self._drain(persistence, stats, "batch_crashed")
        self.progress.finish_phase()

    def _run_task(
        self, task: CollectionTask, stats: StatisticsAccumulator, cancel: Event
    ) -> list[Future]:
        if cancel.is_set() or not self._acquire(task.hunter, cancel):
            stats.add("cancelled")
            self.logger.info("task_cancelled", task=task.label)
            return []
        hunter = self.hunter_factory(task.hunter)
        result = self._collect_with_policy(hunter, task, stats, cancel)
        if result is None:
            return []

        candidates = self._validate(result.records, task, stats)
        candidates = [self._annotate(candidate, task.annotations) for candidate in candidates]
        dedup = DeduplicationEngine(logger=self.logger)
        canonical = dedup.deduplicate(candidates)
        stats.add("duplicates_removed", dedup.last_report.duplicates)
        fresh = stats.register_collected(record.record_key for record in canonical)
        stats.add_phase(task.phase, fresh)
        stats.add("synthetic_records", sum(1 for record in canonical if record.synthetic))
        for record in canonical:
            for category in _categories(record):
                stats.add_category(category)
        self.logger.info(
            "task_collected",
            task=task.label,
            raw=len(result.records),
            valid=len(candidates),
            canonical=len(canonical),
            synthetic=result.synthetic,
        )
        return self._submit_batches([record.to_row() for record in canonical], stats, "persisted")

    def _acquire(self, source: str, cancel: Event) -> bool:
        if not self.rate_limiter.acquire(cancel):
            return False
        limiter = self._source_limiters.get(source)
        return limiter.acquire(cancel) if limiter is not None else True

    def _collect_with_policy(
        self,
        hunter: BaseHunter,
        task: CollectionTask,
        stats: StatisticsAccumulator,
        cancel: Event,
    ) -> HuntResult | None:
        settings = self.config.source(task.hunter)
        result = hunter.collect(task.query)
        attempt = 0
        while (
            not result.ok
            and settings.failure_policy is FailurePolicy.RETRY
            and attempt < settings.max_retries
        ):
            delay = settings.retry_backoff * 2**attempt
            attempt += 1
            self.logger.warning(
                "source_retry", task=task.label, attempt=attempt, delay=delay, error=str(result.error)
            )
            if cancel.wait(delay):
                break
            result = hunter.collect(task.query)
        if result.ok:
            return result
        if settings.failure_policy is FailurePolicy.SKIP:
            stats.add("errors")
            self.logger.error("source_skipped", task=task.label, error=str(result.error))
            return None
        self.logger.warning(
            "source_substituted",
            task=task.label,
            error=str(result.error),
            placeholders=len(result.records),
        )
        return result

    def _validate(
        self,
        payloads: Iterable[Mapping[str, Any]],
        task: CollectionTask,
        stats: StatisticsAccumulator,
    ) -> list[CandidateRecord]:
        candidates: list[CandidateRecord] = []
        for payload in payloads:
            try:
                candidates.append(CandidateRecord.from_raw(payload))
            except CandidateValidationError as exc:
                stats.add("validation_dropped")
                self.logger.info(
                    "candidate_dropped", task=task.label, name=payload.get("name"), reason=exc.reason
                )
        return candidates

    @staticmethod
    def _annotate(candidate: CandidateRecord, annotations: Mapping[str, bool]) -> CandidateRecord:
        update = {flag: True for flag, value in annotations.items() if value}
        return candidate.model_copy(update=update) if update else candidate

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _submit_batches(
        self, rows: Sequence[dict[str, Any]], stats: StatisticsAccumulator, counter: str
    ) -> list[Future]:
        pool = self.thread_pool.get(
            "persistence", max_workers=self.config.concurrency.persistence_workers
        )
        size = self.config.database.batch_size
        return [
            pool.submit(self._persist_batch, rows[start : start + size], stats, counter)
            for start in range(0, len(rows), size)
        ]

    def _persist_batch(
        self, rows: Sequence[dict[str, Any]], stats: StatisticsAccumulator, counter: str
    ) -> int:
        try:
            result = self.sink.upsert_batch(rows)
        except PersistenceError as exc:
            stats.add("errors")
            self.logger.error("batch_failed", rows=len(rows), error=str(exc))
            return 0
        stats.add(counter, result.written)
        for failure in result.failures:
            stats.add("errors")
            self.logger.warning("row_failed", record=failure.record_key, error=failure.error)
        self.logger.debug("batch_persisted", rows=len(rows), written=result.written)
        return result.written

    def _drain(self, futures: Iterable[Future], stats: StatisticsAccumulator, event: str) -> None:
        for future in as_completed(list(futures)):
            try:
                future.result()
            except Exception as exc:  # noqa: BLE001
                stats.add("errors")
                self.logger.error(event, error=str(exc), exc_info=True)

    # ------------------------------------------------------------------
    # Enrichment and scoring
    # ------------------------------------------------------------------
    def _run_enrichment_phase(self, stats: StatisticsAccumulator, cancel: Event) -> None:
        self._run_paged_phase(
            "enrichment",
            lambda row: self.enrichment.enrich(CanonicalRecord.from_row(row)).to_row(),
            "enriched",
            stats,
            cancel,
        )

    def _run_scoring_phase(self, stats: StatisticsAccumulator, cancel: Event) -> None:
        self._run_paged_phase(
            "scoring",
            lambda row: self.scorer.score(EnrichedRecord.from_row(row)).to_row(),
            "scored",
            stats,
            cancel,
        )

    def _run_paged_phase(
        self,
        stage: str,
        transform: Callable[[dict[str, Any]], dict[str, Any]],
        counter: str,
        stats: StatisticsAccumulator,
        cancel: Event,
    ) -> None:
        """Pull pending rows page by page (keyset on record_key) until exhausted."""

        self.progress.start_phase(stage, 0)
        executor = self.thread_pool.get()
        page_size = self.config.database.page_size
        after_key: str | None = None
        pages = 0
        while not cancel.is_set():
            rows = self.sink.fetch_pending(stage, page_size, after_key)
            if not rows:
                break
            pages += 1
            after_key = rows[-1]["record_key"]
            futures = {executor.submit(transform, row): row for row in rows}
            processed: list[dict[str, Any]] = []
            for future in as_completed(futures):
                row = futures[future]
                try:
                    processed.append(future.result())
                except Exception as exc:  # noqa: BLE001
                    stats.add("errors")
                    self.logger.error(
                        f"{stage}_failed", record=row.get("record_key"), error=str(exc)
                    )
                    self.progress.advance(success=False)
                else:
                    self.progress.advance(success=True)
            processed.sort(key=lambda item: item["record_key"])
            self._drain(self._submit_batches(processed, stats, counter), stats, "batch_crashed")
            self.logger.info(f"{stage}_page", page=pages, rows=len(rows), processed=len(processed))
        if cancel.is_set():
            self.logger.warning("phase_interrupted", phase=stage, pages=pages)
        self.progress.finish_phase()


def _categories(record: CanonicalRecord) -> list[str]:
    categories = []
    if record.indigenous_owned or record.indigenous_verified:
        categories.append("indigenous")
    if record.mandatory_industry:
        categories.append("mandated")
    if record.government_contractor:
        categories.append("government_contractor")
    return categories


def _summary(stats: RunStatistics) -> dict[str, Any]:
    data = stats.to_dict()
    data.pop("started_at", None)
    data.pop("finished_at", None)
    return data


__all__ = ["COLLECTION_PHASES", "CollectionTask", "Orchestrator", "PHASES", "PHASE_HUNTERS"]
