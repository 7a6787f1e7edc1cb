"""Listing quality scoring."""

from .quality import (
    DIRECT_ATS_DOMAINS,
    JOB_BOARD_DOMAINS,
    MAX_SCORE,
    compute_quality_score,
    score_candidate,
)

__all__ = [
    "compute_quality_score",
    "score_candidate",
    "DIRECT_ATS_DOMAINS",
    "JOB_BOARD_DOMAINS",
    "MAX_SCORE",
]
