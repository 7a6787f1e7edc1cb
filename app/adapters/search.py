"""Shared pagination for keyword-search providers (Adzuna, Jooble, USAJobs)."""

from abc import abstractmethod
from typing import Any, Iterator, List

from pydantic import ValidationError

from app.config.models import SourceConfig
from app.domain.models import RawJob
from app.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterError, AdapterTimeoutError

logger = get_logger(__name__, component="adapter")


class SearchAdapter(BaseAdapter):
    """Runs every configured query for up to ``max_pages`` pages.

    Calls are serialized with ``request_delay`` between them. A timeout
    abandons the rest of the source; any other page failure abandons the
    current query and moves on. Failed calls are counted in ``fetch_errors``.
    """

    PAGE_SIZE = 50
    FIRST_PAGE = 1

    @abstractmethod
    def _fetch_page(self, query: str, page: int, source_config: SourceConfig) -> List[Any]:
        """Return the provider's result items for one page."""

    @abstractmethod
    def _transform_job(self, item: Any, source_config: SourceConfig) -> RawJob:
        """Map one provider item to a RawJob."""

    def _fetch_raw_jobs(self, source_config: SourceConfig) -> Iterator[RawJob]:
        first_call = True
        for query in source_config.get_queries():
            for page in range(self.FIRST_PAGE, self.FIRST_PAGE + source_config.max_pages):
                if not first_call:
                    self._sleep_between_calls()
                first_call = False

                try:
                    items = self._fetch_page(query, page, source_config)
                except AdapterTimeoutError as e:
                    self.fetch_errors += 1
                    logger.warning(
                        "Timeout, abandoning remaining pages for source",
                        extra={
                            "event": "adapter.fetch.abandoned",
                            "adapter": self.ADAPTER_NAME,
                            "source": source_config.identifier,
                            "query": query,
                            "page": page,
                            "error": str(e),
                        },
                    )
                    return
                except AdapterError as e:
                    self.fetch_errors += 1
                    logger.warning(
                        "Page fetch failed, skipping rest of query",
                        extra={
                            "event": "adapter.fetch.page_failed",
                            "adapter": self.ADAPTER_NAME,
                            "source": source_config.identifier,
                            "query": query,
                            "page": page,
                            "error": str(e),
                        },
                    )
                    break

                logger.debug(
                    "Fetched page",
                    extra={
                        "event": "adapter.fetch.page",
                        "adapter": self.ADAPTER_NAME,
                        "query": query,
                        "page": page,
                        "count": len(items),
                    },
                )

                for item in items:
                    try:
                        yield self._transform_job(item, source_config)
                    except (KeyError, ValueError, TypeError, AttributeError, ValidationError) as e:
                        logger.warning(
                            "Skipping malformed posting",
                            extra={
                                "event": "adapter.parse.skipped",
                                "adapter": self.ADAPTER_NAME,
                                "source": source_config.identifier,
                                "error": str(e),
                            },
                        )

                if len(items) < self.PAGE_SIZE:
                    break
