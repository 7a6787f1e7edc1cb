"""HTTP trigger for ingestion runs (Flask)."""

import functools
import hmac
from typing import Optional

from flask import Flask, jsonify, request

from app.analytics import get_all_source_performance, get_daily_trends, get_ingestion_stats
from app.config.exceptions import ConfigurationError
from app.logging import get_logger
from app.persistence import get_session
from app.pipeline import LifecycleManager
from app.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="api")


def _is_authorized(cron_secret: Optional[str]) -> bool:
    """Check ``Authorization: Bearer <secret>`` in constant time."""
    if not cron_secret:
        logger.error(
            "CRON_SECRET is not configured; rejecting trigger request",
            extra={"event": "api.auth.unconfigured"},
        )
        return False
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header.encode("utf-8"), f"Bearer {cron_secret}".encode("utf-8"))


def require_bearer(cron_secret: Optional[str]):
    """Reject requests without the trigger secret with 401."""

    def decorator(view):
        @functools.wraps(view)
        def wrapped(*args, **kwargs):
            if not _is_authorized(cron_secret):
                logger.warning(
                    "Unauthorized trigger request",
                    extra={
                        "event": "api.auth.rejected",
                        "path": request.path,
                        "remote_addr": request.remote_addr,
                    },
                )
                return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapped

    return decorator


def create_app(manager: LifecycleManager, cron_secret: Optional[str]) -> Flask:
    """Build the Flask app exposing the ingestion trigger.

    Routes:
        GET|POST /api/cron/ingest: run once (bearer protected). ``?source=``
            may be repeated or comma-separated to restrict the run.
        GET /api/health: liveness
        GET /api/stats: current counts, source performance and daily trends
            (bearer protected)

    Args:
        manager: Lifecycle manager that performs runs
        cron_secret: Shared bearer secret; when unset every protected route
            answers 401

    Returns:
        Flask application
    """
    app = Flask(__name__)
    protected = require_bearer(cron_secret)

    @app.route("/api/cron/ingest", methods=["GET", "POST"])
    @protected
    def ingest():
        sources = [
            part.strip()
            for value in request.args.getlist("source")
            for part in value.split(",")
            if part.strip()
        ]
        logger.info(
            "Ingestion triggered over HTTP",
            extra={"event": "api.ingest.triggered", "sources": sources or "all"},
        )
        try:
            result = manager.run_once(source_ids=sources or None)
        except ConfigurationError as e:
            logger.error(
                f"Ingestion configuration error: {e.message}",
                extra={"event": "api.ingest.config_error"},
            )
            return jsonify(
                {
                    "success": False,
                    "error": e.message,
                    "errors": e.errors,
                    "timestamp": format_timestamp(utc_now()),
                }
            ), 500
        except Exception as e:
            logger.error(
                f"Ingestion run failed: {e}",
                extra={"event": "api.ingest.failed", "error_type": type(e).__name__},
                exc_info=True,
            )
            return jsonify(
                {"success": False, "error": str(e), "timestamp": format_timestamp(utc_now())}
            ), 500

        summary = result.to_summary()
        if result.skipped:
            return jsonify(summary), 409
        return jsonify(summary), 200

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "running": manager.is_running})

    @app.route("/api/stats", methods=["GET"])
    @protected
    def stats():
        days = request.args.get("days", default=30, type=int)
        with get_session() as session:
            payload = {
                "current_stats": get_ingestion_stats(session),
                "sources": [p.to_dict() for p in get_all_source_performance(session, days=days)],
                "daily_trends": get_daily_trends(session, days=max(1, min(days, 90))),
            }
        return jsonify(payload), 200

    return app
