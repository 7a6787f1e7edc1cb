"""Keyword relevance filter applied by adapters before returning postings.

Decision order:
1. At least one allow term must appear in the title or description. A
   title that names an NP role plus psychiatric context anywhere also counts.
2. Generic titles ("Nurse Practitioner - Memphis, TN") must themselves carry
   psychiatric/mental health wording.
3. A title containing an allow term is trusted outright.
4. Otherwise any exclude term in the title rejects the posting. "psychiatrist"
   is tolerated when the text also names an NP credential.
"""

import re
from typing import Dict, List, Optional, Pattern

from app.config.models import RelevanceCriteria
from app.logging import get_logger

from .models import RelevanceResult

logger = get_logger(__name__, component="matching")

MENTAL_HEALTH_CONTEXT = ("mental health", "psychiatric", "behavioral health", "psychiatry")
TITLE_NP_MARKERS = ("nurse practitioner", " np", "aprn", "arnp")
TITLE_PSYCH_MARKERS = ("psych", "mental health", "behavioral health", "pmhnp")
PSYCHIATRIST_EXCEPTION_MARKERS = (
    "pmhnp",
    "nurse practitioner",
    "np-bc",
    "aprn",
    "arnp",
    "psych np",
)

# What may follow a generic title for it to still count as generic
GENERIC_SUFFIXES = (" -", " –", " (", ",", " $", " sign", " travel", " prn", " weekend", " part", " full")


class RelevanceFilter:
    """Evaluates postings against configured allow/exclude terms."""

    def __init__(self, criteria: Optional[RelevanceCriteria] = None):
        self.criteria = criteria or RelevanceCriteria()
        self._exclude_patterns: Dict[str, Pattern[str]] = {
            term: re.compile(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])")
            for term in self.criteria.exclude_terms
        }

    def evaluate(self, title: str, description: str = "") -> RelevanceResult:
        """Decide whether a posting belongs in the catalog.

        Args:
            title: Posting title
            description: Plain-text description (may be empty)

        Returns:
            RelevanceResult with the decision and the terms that drove it
        """
        title_lower = (title or "").lower().strip()
        combined = f"{title_lower} {(description or '').lower()}"

        matched_allow = [term for term in self.criteria.allow_terms if term in combined]
        if not matched_allow and not self._combination_match(title_lower, combined):
            return RelevanceResult(is_relevant=False, reason="no_allow_term")

        if self._is_generic_title(title_lower) and not any(
            marker in title_lower for marker in TITLE_PSYCH_MARKERS
        ):
            return RelevanceResult(
                is_relevant=False,
                matched_allow_terms=matched_allow,
                reason="generic_title",
            )

        if any(term in title_lower for term in self.criteria.allow_terms):
            return RelevanceResult(is_relevant=True, matched_allow_terms=matched_allow)

        matched_exclude = self._matched_exclude_terms(title_lower, combined)
        if matched_exclude:
            return RelevanceResult(
                is_relevant=False,
                matched_allow_terms=matched_allow,
                matched_exclude_terms=matched_exclude,
                reason="excluded_title",
            )

        return RelevanceResult(is_relevant=True, matched_allow_terms=matched_allow)

    def is_relevant(self, title: str, description: str = "") -> bool:
        return self.evaluate(title, description).is_relevant

    @staticmethod
    def _combination_match(title_lower: str, combined: str) -> bool:
        if "pmhnp" in combined:
            return True
        has_context = any(marker in combined for marker in MENTAL_HEALTH_CONTEXT)
        title_has_np = any(marker in f" {title_lower}" for marker in TITLE_NP_MARKERS)
        return has_context and title_has_np

    def _is_generic_title(self, title_lower: str) -> bool:
        for generic in self.criteria.generic_titles:
            if title_lower == generic or title_lower.endswith(" " + generic):
                return True
            if any(title_lower.startswith(generic + suffix) for suffix in GENERIC_SUFFIXES):
                return True
        return False

    def _matched_exclude_terms(self, title_lower: str, combined: str) -> List[str]:
        matched = []
        for term, pattern in self._exclude_patterns.items():
            if not pattern.search(title_lower):
                continue
            if term == "psychiatrist" and any(
                marker in combined for marker in PSYCHIATRIST_EXCEPTION_MARKERS
            ):
                continue
            matched.append(term)
        return matched
