"""Shared fetch logic for per-company ATS job boards."""

from abc import abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from app.config.models import BoardConfig, SourceConfig
from app.domain.models import RawJob
from app.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterHTTPError, AdapterTimeoutError

logger = get_logger(__name__, component="adapter")


class BoardAdapter(BaseAdapter):
    """Reads every board of a source, one after another.

    Boards are fetched serially with ``request_delay`` between them, so one
    source never has two calls to its provider in flight. Each board is
    isolated: 404 means the board does not exist and yields nothing;
    timeouts, 5xx and connection failures yield nothing for that board and
    count as a fetch error. Other 4xx responses and malformed payloads
    propagate.
    """

    @abstractmethod
    def _board_url(self, board: BoardConfig) -> str:
        """URL of the board listing endpoint."""

    def _board_params(self) -> Optional[Dict[str, Any]]:
        return None

    @abstractmethod
    def _extract_postings(self, response: Any) -> List[Dict[str, Any]]:
        """Pull the postings array out of the provider response."""

    @abstractmethod
    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        """Map one posting to a RawJob."""

    def _fetch_postings(self, board: BoardConfig, source_config: SourceConfig) -> List[Dict[str, Any]]:
        """All postings of one board; a single GET unless the provider paginates."""
        response = self._make_request(self._board_url(board), params=self._board_params())
        return self._extract_postings(response)

    def _fetch_raw_jobs(self, source_config: SourceConfig) -> Iterator[RawJob]:
        for index, board in enumerate(source_config.get_boards()):
            if index:
                self._sleep_between_calls()
            yield from self._fetch_board(board, source_config)

    def _fetch_board(self, board: BoardConfig, source_config: SourceConfig) -> Iterator[RawJob]:
        logger.info(
            f"Fetching jobs from {self.ADAPTER_NAME}",
            extra={
                "event": "adapter.fetch.started",
                "adapter": self.ADAPTER_NAME,
                "source": source_config.identifier,
                "board": board.slug,
            },
        )

        try:
            postings = self._fetch_postings(board, source_config)
        except AdapterHTTPError as e:
            if e.status_code == 404:
                logger.warning(
                    "Board not found",
                    extra={
                        "event": "adapter.fetch.board_not_found",
                        "adapter": self.ADAPTER_NAME,
                        "source": source_config.identifier,
                        "board": board.slug,
                        "url": e.url,
                    },
                )
                return
            if e.status_code >= 500 or e.status_code == 0:
                self.fetch_errors += 1
                return
            raise
        except AdapterTimeoutError:
            self.fetch_errors += 1
            return

        for job in postings:
            try:
                yield self._transform_job(job, board)
            except (KeyError, ValueError, TypeError, AttributeError, ValidationError) as e:
                logger.warning(
                    "Skipping malformed posting",
                    extra={
                        "event": "adapter.parse.skipped",
                        "adapter": self.ADAPTER_NAME,
                        "source": source_config.identifier,
                        "board": board.slug,
                        "job_id": job.get("id") if isinstance(job, dict) else None,
                        "error": str(e),
                    },
                )

        logger.info(
            f"Fetched jobs from {self.ADAPTER_NAME}",
            extra={
                "event": "adapter.fetch.completed",
                "adapter": self.ADAPTER_NAME,
                "source": source_config.identifier,
                "board": board.slug,
                "count": len(postings),
            },
        )
