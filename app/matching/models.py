"""Result models for the relevance filter."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RelevanceResult:
    """Outcome of evaluating one posting against RelevanceCriteria.

    Attributes:
        is_relevant: Final keep/drop decision
        matched_allow_terms: Allow terms found in title or description
        matched_exclude_terms: Exclude terms found in the title
        reason: Short machine-readable reason for a rejection (None when kept)
    """

    is_relevant: bool
    matched_allow_terms: List[str] = field(default_factory=list)
    matched_exclude_terms: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_relevant
