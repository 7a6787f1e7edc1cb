"""Keyword relevance filtering for ingested postings."""

from .engine import RelevanceFilter
from .models import RelevanceResult

__all__ = ["RelevanceFilter", "RelevanceResult"]
