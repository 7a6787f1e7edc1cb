"""Exact and cross-source duplicate detection."""

from .service import DedupAction, DedupDecision, Deduplicator, prune_audit_log

__all__ = [
    "Deduplicator",
    "DedupAction",
    "DedupDecision",
    "prune_audit_log",
]
