"""Base adapter class with shared functionality for all source adapters.

This module provides the abstract base class that all adapters implement,
along with shared utilities for HTTP requests, HTML cleaning, timestamp
parsing, pagination pacing and relevance filtering.
"""

import html
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import requests

from app.config.models import SourceConfig
from app.domain.models import RawJob
from app.logging import get_logger
from app.matching import RelevanceFilter
from app.utils.hashing import compute_url_external_id
from app.utils.timestamps import parse_iso_datetime

from .exceptions import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

logger = get_logger(__name__, component="adapter")


class BaseAdapter(ABC):
    """Base class for all source adapters.

    Subclasses implement ``_fetch_raw_jobs``; ``fetch_jobs`` wraps it with
    id de-duplication, relevance filtering and truncation.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_jobs: Maximum jobs to return per source (0 = unlimited)
        request_delay: Seconds to wait between paginated calls
        relevance: Keyword filter applied before returning
        fetch_errors: Calls that failed during the last fetch_jobs()
    """

    ADAPTER_NAME = "base"

    def __init__(
        self,
        timeout: int = 10,
        user_agent: str = "JobIngestionService/1.0",
        max_jobs: int = 1000,
        request_delay: float = 1.0,
        relevance: Optional[RelevanceFilter] = None,
    ) -> None:
        """Initialize adapter with configuration.

        Args:
            timeout: HTTP request timeout in seconds (default 10, range 5-10)
            user_agent: User-Agent header for requests
            max_jobs: Maximum jobs to return per source (default 1000, 0 = unlimited)
            request_delay: Delay between paginated calls (default 1.0s)
            relevance: Relevance filter (defaults to the built-in criteria)

        Raises:
            AdapterConfigurationError: If timeout is outside valid range or user_agent is empty
        """
        if not 5 <= timeout <= 10:
            raise AdapterConfigurationError(
                f"Timeout must be between 5 and 10 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise AdapterConfigurationError("user_agent cannot be empty")
        if request_delay < 0:
            raise AdapterConfigurationError(
                f"request_delay cannot be negative, got: {request_delay}"
            )

        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_jobs = max_jobs
        self.request_delay = request_delay
        self.relevance = relevance or RelevanceFilter()
        self.fetch_errors = 0

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def fetch_jobs(self, source_config: SourceConfig) -> List[RawJob]:
        """Fetch relevant postings for one configured source.

        Page-level failures are handled inside ``_fetch_raw_jobs``; whatever
        was collected before a failure is still returned.

        Args:
            source_config: Source configuration

        Returns:
            List of RawJob, unique by external_id, relevance-filtered and
            truncated to ``max_jobs``

        Raises:
            AdapterError: Only for failures that leave nothing to return
                (e.g. a 4xx other than 404 on an ATS board)
        """
        self.fetch_errors = 0
        seen_ids = set()
        unique_jobs = []
        for job in self._fetch_raw_jobs(source_config):
            if job.external_id in seen_ids:
                continue
            seen_ids.add(job.external_id)
            unique_jobs.append(job)

        relevant = self._filter_relevant(unique_jobs, source_config)
        return self._truncate_jobs(relevant, self.ADAPTER_NAME, source_config.identifier)

    @abstractmethod
    def _fetch_raw_jobs(self, source_config: SourceConfig) -> Iterable[RawJob]:
        """Yield mapped postings from the provider, unfiltered."""

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make HTTP request with error handling.

        Args:
            url: URL to request
            method: HTTP method (default "GET")
            headers: Additional headers to include (merged with defaults)
            params: Query parameters
            json_data: JSON body for POST requests

        Returns:
            Parsed JSON response (dict or list)

        Raises:
            AdapterHTTPError: On 4xx or 5xx HTTP status, or connection failure (status 0)
            AdapterTimeoutError: On request timeout
            AdapterResponseError: On invalid JSON
        """
        request_headers = self._session.headers.copy()
        if headers:
            request_headers.update(headers)

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "adapter.fetch.request",
                    "method": method,
                    "url": url,
                    "timeout": self.timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                headers=request_headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )

            if response.status_code >= 400:
                is_retryable = response.status_code >= 500
                logger.log(
                    logging.WARNING if is_retryable else logging.ERROR,
                    f"HTTP {response.status_code} error from {url}",
                    extra={
                        "event": "adapter.fetch.retryable_error" if is_retryable else "adapter.fetch.error",
                        "status_code": response.status_code,
                        "url": url,
                    },
                )
                raise AdapterHTTPError(
                    f"HTTP {response.status_code}: {response.reason}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                return response.json()
            except ValueError as e:
                logger.error(
                    f"Failed to parse JSON response from {url}",
                    extra={
                        "event": "adapter.fetch.error",
                        "error_type": "JSONDecodeError",
                        "url": url,
                    },
                )
                raise AdapterResponseError(
                    f"Failed to parse JSON response from {url}: {e}"
                ) from e

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "adapter.fetch.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise AdapterTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "adapter.fetch.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise AdapterHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e

    def _sleep_between_calls(self) -> None:
        if self.request_delay > 0:
            time.sleep(self.request_delay)

    def _filter_relevant(self, jobs: List[RawJob], source_config: SourceConfig) -> List[RawJob]:
        relevant = [job for job in jobs if self.relevance.is_relevant(job.title, job.description)]
        if len(relevant) != len(jobs):
            logger.info(
                "Filtered irrelevant postings",
                extra={
                    "event": "adapter.filter.completed",
                    "adapter": self.ADAPTER_NAME,
                    "source": source_config.identifier,
                    "kept": len(relevant),
                    "dropped": len(jobs) - len(relevant),
                },
            )
        return relevant

    def _external_id(self, native_id: Any, apply_url: Optional[str]) -> str:
        """``<provider>_<native id>``, or a hash of the apply URL when there is no id."""
        if native_id not in (None, ""):
            return f"{self.ADAPTER_NAME}_{native_id}"
        if not apply_url:
            raise ValueError("Posting has neither an id nor an apply URL")
        return compute_url_external_id(self.ADAPTER_NAME, apply_url)

    def _clean_html(self, html_text: Optional[str]) -> str:
        """Clean HTML tags and entities from text.

        Block-level closers become newlines; everything else collapses to
        single spaces with at most one blank line between paragraphs.

        Args:
            html_text: Text containing HTML formatting

        Returns:
            Plain text with whitespace normalized and HTML removed
        """
        if not html_text:
            return ""

        # Greenhouse double-encodes its content
        text = html.unescape(html.unescape(html_text))

        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"</(p|div|h[1-6])>", "\n\n", text, flags=re.IGNORECASE)
        text = re.sub(r"<li[^>]*>", "\n• ", text, flags=re.IGNORECASE)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"[ \t\xa0]+", " ", text)
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)

        return text.strip()

    def _parse_timestamp(self, timestamp_str: Optional[str]) -> Optional[datetime]:
        """Parse an ISO 8601 timestamp or date string to UTC; None on failure."""
        parsed = parse_iso_datetime(timestamp_str) if isinstance(timestamp_str, str) else None
        if timestamp_str and parsed is None:
            logger.warning(
                "Failed to parse timestamp",
                extra={"event": "adapter.parse.timestamp_failed", "timestamp": str(timestamp_str)},
            )
        return parsed

    def _truncate_jobs(self, jobs: list, adapter_name: str, source_identifier: str) -> list:
        """Truncate job list to max_jobs limit if configured.

        Args:
            jobs: List of jobs
            adapter_name: Name of the adapter (for logging)
            source_identifier: Source identifier (for logging)

        Returns:
            Original list if max_jobs is 0, otherwise truncated to max_jobs
        """
        if self.max_jobs > 0 and len(jobs) > self.max_jobs:
            logger.warning(
                "Truncating jobs to max_jobs limit",
                extra={
                    "event": "adapter.fetch.truncated",
                    "adapter": adapter_name,
                    "source": source_identifier,
                    "total": len(jobs),
                    "max": self.max_jobs,
                },
            )
            return jobs[: self.max_jobs]

        return jobs
