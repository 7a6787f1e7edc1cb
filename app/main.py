"""Main entry point for the job ingestion service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from app.analytics import get_all_source_performance, get_daily_trends, get_ingestion_stats
from app.companies import CompanyMergeError, CompanyResolver
from app.config.environment import EnvironmentConfig
from app.config.exceptions import ConfigurationError
from app.config.loader import load_config
from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.config import configure_logging
from app.persistence.database import close_database, get_session, init_database
from app.pipeline import LifecycleManager
from app.scheduler import SchedulerService
from app.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI flag, then LOG_LEVEL, then config.yaml.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job ingestion service - fetch, normalize, deduplicate and expire job postings"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--run-once",
        action="store_true",
        help="Run a single ingestion, print the JSON summary and exit",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Serve the HTTP trigger (/api/cron/ingest) instead of scheduling runs",
    )
    mode.add_argument(
        "--merge-companies",
        nargs=2,
        metavar=("KEEP_ID", "MERGE_ID"),
        help="Merge company MERGE_ID into KEEP_ID and exit",
    )
    mode.add_argument(
        "--stats",
        action="store_true",
        help="Print current ingestion stats as JSON and exit",
    )
    parser.add_argument(
        "--sources",
        nargs="+",
        default=None,
        help="Restrict runs to these source identifiers or provider types",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address for --serve (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for --serve (default: 8080)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def run_once(manager: LifecycleManager, sources: Optional[List[str]]) -> int:
    """Run one ingestion and print its summary; exit code 1 if the run failed."""
    logger.info("Executing single run", extra={"event": "service.run_once.starting"})
    try:
        result = manager.run_once(source_ids=sources)
    except Exception as e:
        logger.error(
            f"Run failed: {e}",
            extra={"event": "service.run_once.failed", "error_type": type(e).__name__},
            exc_info=not isinstance(e, ConfigurationError),
        )
        _print_json(
            {"success": False, "error": str(e), "timestamp": format_timestamp(utc_now())}
        )
        return 1

    _print_json(result.to_summary())
    logger.info(
        f"Run completed: {result.total_fetched} fetched, {result.total_added} added, "
        f"{result.total_updated} updated, {result.total_duplicates} duplicates, "
        f"{result.total_errors} errors",
        extra={
            "event": "service.run_once.completed",
            "duration_seconds": result.total_duration_seconds,
            "had_errors": result.had_errors,
        },
    )
    return 0 if result.success else 1


def merge_companies(keep_id: str, merge_id: str) -> int:
    try:
        with get_session() as session:
            company = CompanyResolver(session).merge(keep_id, merge_id)
    except CompanyMergeError as e:
        print(f"Merge failed: {e}", file=sys.stderr)
        return 1
    _print_json(company.model_dump(mode="json"))
    return 0


def print_stats() -> int:
    with get_session() as session:
        _print_json(
            {
                "current_stats": get_ingestion_stats(session),
                "sources": [p.to_dict() for p in get_all_source_performance(session)],
                "daily_trends": get_daily_trends(session, days=7),
            }
        )
    return 0


def serve(manager: LifecycleManager, env_config: EnvironmentConfig, host: str, port: int) -> int:
    from app.api import create_app

    if not env_config.cron_secret:
        logger.warning(
            "CRON_SECRET is not set; the trigger will reject every request",
            extra={"event": "service.serve.no_secret"},
        )

    flask_app = create_app(manager, env_config.cron_secret)
    logger.info(
        f"Serving HTTP trigger on {host}:{port}",
        extra={"event": "service.serve.started", "host": host, "port": port},
    )
    flask_app.run(host=host, port=port, threaded=True)
    return 0


def run_daemon(
    manager: LifecycleManager, interval_seconds: int, sources: Optional[List[str]]
) -> int:
    shutdown_event = threading.Event()

    scheduler_service = SchedulerService(
        run_callable=lambda: manager.run_once(source_ids=sources),
        interval_seconds=interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Scheduler started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        # Configuration first so logging can use its format
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )

        logger.info(
            "Job ingestion service starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config),
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "source_count": len(app_config.sources),
                "enabled_source_count": len(app_config.get_enabled_sources()),
                "scan_interval_seconds": app_config.scan_interval_seconds,
            },
        )

        try:
            if args.merge_companies:
                return merge_companies(*args.merge_companies)
            if args.stats:
                return print_stats()

            manager = LifecycleManager(app_config=app_config, env_config=env_config)
            if args.run_once:
                return run_once(manager, args.sources)
            if args.serve:
                return serve(manager, env_config, args.host, args.port)
            return run_daemon(manager, app_config.scan_interval_seconds, args.sources)
        finally:
            close_database()
            logger.info(
                "Job ingestion service stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.fatal",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
