"""Lifecycle orchestration: fetch, normalize, dedup, resolve, score, persist, expire."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from app.adapters.factory import get_adapter
from app.analytics import get_ingestion_stats, record_ingestion_stats
from app.companies import CompanyResolver, normalize_company_name
from app.config.environment import EnvironmentConfig
from app.config.exceptions import ConfigurationError
from app.config.models import AppConfig, SourceConfig
from app.dedup import DedupAction, Deduplicator, prune_audit_log
from app.domain.models import CandidateJob, Job, RawJob
from app.logging import get_logger
from app.logging.context import log_context
from app.matching import RelevanceFilter
from app.normalization import JobNormalizer, NormalizationError
from app.persistence import JobRepository, PersistenceError, get_session
from app.scoring import score_candidate
from app.utils.hashing import compute_apply_url_hash
from app.utils.timestamps import utc_now

from .expiry import cleanup_expired_jobs
from .models import PipelineRunResult, RunState, SourceRunStats, SourceState

logger = get_logger(__name__, component="pipeline")


def build_job(
    candidate: CandidateJob,
    dedup_key: str,
    quality_score: int,
    now: datetime,
    expiry_days: int,
) -> Job:
    """Assemble the Job row for a candidate seen for the first time."""
    return Job(
        id=uuid4().hex,
        external_id=candidate.external_id,
        source_provider=candidate.source_provider,
        title=candidate.title,
        employer=candidate.employer,
        location=candidate.location,
        city=candidate.city,
        state=candidate.state,
        state_code=candidate.state_code,
        is_remote=candidate.is_remote,
        job_type=candidate.job_type,
        mode=candidate.mode,
        description=candidate.description,
        description_summary=candidate.description_summary,
        apply_link=candidate.apply_url,
        salary_range=candidate.salary_range,
        min_salary=candidate.min_salary,
        max_salary=candidate.max_salary,
        salary_period=candidate.salary_period,
        normalized_min_salary=candidate.normalized_min_salary,
        normalized_max_salary=candidate.normalized_max_salary,
        display_salary=candidate.display_salary,
        salary_is_estimated=candidate.salary_is_estimated,
        quality_score=quality_score,
        is_published=True,
        dedup_key=dedup_key,
        apply_url_hash=compute_apply_url_hash(candidate.apply_url),
        created_at=now,
        updated_at=now,
        expires_at=candidate.expires_at or now + timedelta(days=expiry_days),
        original_posted_at=candidate.posted_at,
    )


class LifecycleManager:
    """
    Orchestrates one ingestion run across all configured sources.

    Providers are processed concurrently on a thread pool; the sources of
    one provider run serially. Each source owns its SourceRunStats and each
    posting is written in its own transaction, so a failure loses at most
    that posting. After every source finishes the manager runs the expiry
    sweep, prunes the duplicate audit log and records daily source stats.
    """

    def __init__(
        self,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        normalizer: Optional[JobNormalizer] = None,
    ):
        """
        Initialize the lifecycle manager.

        Args:
            app_config: Application configuration
            env_config: Provider credentials
            normalizer: Job normalizer (defaults to one using lifecycle.summary_length)
        """
        self.app_config = app_config
        self.env_config = env_config
        self.normalizer = normalizer or JobNormalizer(
            summary_length=app_config.lifecycle.summary_length
        )
        self.relevance = RelevanceFilter(app_config.relevance)
        self.state = RunState.IDLE
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_once(self, source_ids: Optional[Iterable[str]] = None) -> PipelineRunResult:
        """
        Execute a complete ingestion run.

        Args:
            source_ids: Restrict the run to sources whose identifier or
                provider type is listed (default: every enabled source)

        Returns:
            PipelineRunResult; ``skipped=True`` if another run holds the lock

        Raises:
            ConfigurationError: If no selected source can be called with the
                available credentials. Raised before any fetch.
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Run skipped: previous run still in progress",
                    extra={"event": "lifecycle.run.skipped", "reason": "lock_held"},
                )
            return PipelineRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                run_id=run_id,
                state=self.state,
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                sources = self._select_sources(source_ids)

                self.state = RunState.RUNNING
                logger.info(
                    "Run started",
                    extra={
                        "event": "lifecycle.run.started",
                        "source_count": len(sources),
                        "sources": [s.identifier for s in sources],
                    },
                )

                source_stats = self._run_sources(sources, run_id)

                self.state = RunState.CLEANUP
                result = PipelineRunResult(
                    run_started_at=run_started_at,
                    run_finished_at=run_started_at,
                    run_id=run_id,
                    state=RunState.CLEANUP,
                    source_stats=source_stats,
                )
                try:
                    self._cleanup(result)
                except PersistenceError as e:
                    logger.error(
                        f"Cleanup failed: {e}",
                        extra={"event": "lifecycle.cleanup.failed"},
                        exc_info=True,
                    )
                    result.error = f"Cleanup failed: {e}"

                self.state = RunState.COMPLETE
                result.state = RunState.COMPLETE
                result.run_finished_at = utc_now()

                logger.info(
                    "Run completed",
                    extra={
                        "event": "lifecycle.run.completed",
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "total_fetched": result.total_fetched,
                        "total_added": result.total_added,
                        "total_updated": result.total_updated,
                        "total_duplicates": result.total_duplicates,
                        "total_errors": result.total_errors,
                        "expired": result.expired_jobs_removed,
                    },
                )
                return result
        finally:
            if self.state != RunState.COMPLETE:
                logger.error(
                    f"Run aborted in state {self.state.value}",
                    extra={"event": "lifecycle.run.aborted", "run_id": run_id},
                )
            self.state = RunState.IDLE
            self._lock.release()

    def _select_sources(self, source_ids: Optional[Iterable[str]]) -> List[SourceConfig]:
        """Enabled sources to run, minus those without credentials.

        Raises:
            ConfigurationError: If nothing is left to run
        """
        sources = self.app_config.get_enabled_sources()
        if source_ids:
            wanted = {s.strip().lower() for s in source_ids}
            sources = [
                s for s in sources if s.identifier.lower() in wanted or s.type in wanted
            ]
            if not sources:
                raise ConfigurationError(
                    f"No enabled source matches: {', '.join(sorted(wanted))}",
                    suggestions=["Use a source identifier or provider type from config.yaml"],
                )

        usable = []
        missing = []
        for source in sources:
            if self.env_config.has_credentials_for(source.type):
                usable.append(source)
            else:
                missing.append(source)
                logger.warning(
                    f"Skipping {source.name}: {source.type} credentials are not set",
                    extra={
                        "event": "lifecycle.source.missing_credentials",
                        "source_id": source.identifier,
                        "source_type": source.type,
                    },
                )

        if not usable:
            raise ConfigurationError(
                "No enabled source has usable credentials",
                errors=[f"{s.identifier} ({s.type}): credentials missing" for s in missing],
                suggestions=[
                    "Set the provider API keys in the environment or .env",
                    "Enable at least one ATS source "
                    "(greenhouse, lever, ashby, workday, smartrecruiters)",
                ],
            )
        return usable

    def _run_sources(self, sources: List[SourceConfig], run_id: str) -> List[SourceRunStats]:
        """Run sources on the pool, one task per provider.

        Sources of the same provider share a task and run one after another
        with ``request_delay_seconds`` between them, so a provider never sees
        concurrent calls from one run. Results keep the order of ``sources``.
        """
        by_provider: Dict[str, List[Tuple[int, SourceConfig]]] = {}
        for index, source in enumerate(sources):
            by_provider.setdefault(source.type, []).append((index, source))

        results: List[Optional[SourceRunStats]] = [None] * len(sources)
        max_workers = min(self.app_config.lifecycle.max_workers, len(by_provider))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="source") as pool:
            futures = [
                pool.submit(self._run_provider, group, run_id) for group in by_provider.values()
            ]
            for future in futures:
                for index, stats in future.result():
                    results[index] = stats
        return results

    def _run_provider(
        self, group: List[Tuple[int, SourceConfig]], run_id: str
    ) -> List[Tuple[int, SourceRunStats]]:
        delay = self.app_config.advanced.request_delay_seconds
        results = []
        for position, (index, source) in enumerate(group):
            if position and delay > 0:
                time.sleep(delay)
            try:
                stats = self._process_source(source, run_id)
            except Exception as e:
                # _process_source catches everything it expects
                logger.error(
                    f"Source task crashed: {source.name}: {e}",
                    extra={"event": "source.run.crashed", "source_id": source.identifier},
                    exc_info=True,
                )
                stats = SourceRunStats(
                    source_id=source.identifier,
                    source_type=source.type,
                    state=SourceState.FAILED,
                    errors=1,
                    error_message=str(e),
                )
            results.append((index, stats))
        return results

    def _process_source(self, source_config: SourceConfig, run_id: str) -> SourceRunStats:
        """
        Fetch one source and persist each relevant posting.

        Args:
            source_config: Configuration for the source to process
            run_id: Run ID for context propagation

        Returns:
            SourceRunStats with metrics for this source
        """
        source_start = time.time()
        stats = SourceRunStats(source_id=source_config.identifier, source_type=source_config.type)

        with log_context(
            run_id=run_id,
            source_id=source_config.identifier,
            source_type=source_config.type,
        ):
            logger.info(
                f"Processing source: {source_config.name}",
                extra={"event": "source.run.started"},
            )

            try:
                stats.state = SourceState.FETCHING
                raw_jobs, fetch_errors = self._fetch(source_config)
                stats.fetched = len(raw_jobs)
                stats.errors += fetch_errors

                if fetch_errors and not raw_jobs:
                    stats.state = SourceState.FAILED
                    stats.error_message = f"{fetch_errors} provider calls failed"
                else:
                    stats.state = SourceState.PROCESSING
                    for raw_job in raw_jobs:
                        self._process_raw_job(raw_job, stats)
                    stats.state = SourceState.DONE

            except Exception as e:
                stats.state = SourceState.FAILED
                stats.errors += 1
                stats.error_message = str(e)
                logger.error(
                    f"Source failed: {source_config.name}: {e}",
                    extra={
                        "event": "source.run.failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )

            finally:
                stats.duration_seconds = time.time() - source_start
                logger.info(
                    f"Source {stats.state.value}: {source_config.name}",
                    extra={
                        "event": "source.run.completed",
                        "state": stats.state.value,
                        "fetched": stats.fetched,
                        "added": stats.added,
                        "updated": stats.updated,
                        "duplicates": stats.duplicates,
                        "errors": stats.errors,
                        "duration_seconds": round(stats.duration_seconds, 3),
                    },
                )

        return stats

    def _fetch(self, source_config: SourceConfig) -> Tuple[List[RawJob], int]:
        adapter = get_adapter(
            source_config,
            self.app_config.advanced,
            env_config=self.env_config,
            relevance=self.relevance,
        )
        raw_jobs = adapter.fetch_jobs(source_config)
        logger.debug(
            f"Fetched {len(raw_jobs)} jobs from {source_config.name}",
            extra={
                "event": "source.fetch.completed",
                "count": len(raw_jobs),
                "fetch_errors": adapter.fetch_errors,
            },
        )
        return raw_jobs, adapter.fetch_errors

    def _process_raw_job(self, raw_job: RawJob, stats: SourceRunStats) -> None:
        """Process one posting and tally it; errors are counted, not raised."""
        try:
            action = self.process_job(raw_job)
        except NormalizationError as e:
            stats.errors += 1
            logger.warning(
                f"Skipping posting {raw_job.external_id}: {e}",
                extra={
                    "event": "job.normalization.failed",
                    "external_id": raw_job.external_id,
                    "field": e.field,
                },
            )
            return
        except Exception as e:
            stats.errors += 1
            logger.error(
                f"Error processing posting {raw_job.external_id}: {e}",
                extra={
                    "event": "job.process.failed",
                    "external_id": raw_job.external_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            return

        if action == DedupAction.NEW:
            stats.added += 1
        elif action == DedupAction.UPDATE:
            stats.updated += 1
        else:
            stats.duplicates += 1

    def process_job(self, raw_job: RawJob, now: Optional[datetime] = None) -> DedupAction:
        """
        Normalize, classify and persist a single posting in one transaction.

        Args:
            raw_job: Posting as returned by an adapter
            now: Processing time (defaults to the current UTC time)

        Returns:
            NEW if a row was inserted, UPDATE if an existing row was
            refreshed, DUPLICATE if the posting was discarded

        Raises:
            NormalizationError: If the posting lacks a title, employer or apply URL
        """
        now = now or utc_now()
        lifecycle = self.app_config.lifecycle
        candidate = self.normalizer.normalize(raw_job)
        normalized_employer = normalize_company_name(candidate.employer)

        with get_session() as session:
            dedup = Deduplicator(session, audit_enabled=self.app_config.dedup.audit_log_enabled)
            decision = dedup.classify(candidate, normalized_employer)
            if decision.action == DedupAction.DUPLICATE:
                dedup.record_duplicate(candidate, decision, now)
                return DedupAction.DUPLICATE

            job = build_job(
                candidate,
                dedup_key=decision.dedup_key,
                quality_score=score_candidate(candidate),
                now=now,
                expiry_days=lifecycle.expiry_days,
            )
            jobs = JobRepository(session)
            job, inserted = jobs.upsert(
                job, renewed_expires_at=now + timedelta(days=lifecycle.renewal_days)
            )
            if not inserted:
                return DedupAction.UPDATE

            company = CompanyResolver(session).resolve(candidate.employer)
            jobs.set_company(job.id, company.id)
            return DedupAction.NEW

    def _cleanup(self, result: PipelineRunResult) -> None:
        """Expiry sweep, audit pruning, daily stats and current counts."""
        now = utc_now()
        dedup_config = self.app_config.dedup

        result.expired_jobs_removed = cleanup_expired_jobs(now)

        with get_session() as session:
            result.duplicate_log_pruned = prune_audit_log(
                session,
                max_rows=dedup_config.audit_log_max_rows,
                retention_days=dedup_config.audit_log_retention_days,
                now=now,
            )

        by_provider = {}
        for stats in result.source_stats:
            totals = by_provider.setdefault(stats.source_type, [0, 0, 0])
            totals[0] += stats.fetched
            totals[1] += stats.added
            totals[2] += stats.duplicates

        for provider, (fetched, added, duplicates) in by_provider.items():
            try:
                with get_session() as session:
                    record_ingestion_stats(session, provider, fetched, added, duplicates, now=now)
            except Exception as e:
                logger.error(
                    f"Failed to record stats for {provider}: {e}",
                    extra={"event": "analytics.stats.failed", "source": provider},
                    exc_info=True,
                )

        with get_session() as session:
            result.current_stats = get_ingestion_stats(session, now=now)
