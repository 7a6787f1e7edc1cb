"""Salary extraction, validation and annualization.

All functions here are pure. Values are annualized for storage and ranking;
the display string keeps the period the posting used (hourly or annual).
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

HOURS_PER_YEAR = 2080

PERIOD_MULTIPLIERS = {
    "hourly": HOURS_PER_YEAR,
    "weekly": 52,
    "monthly": 12,
    "annual": 1,
}

HOURLY_BOUNDS = (15, 500)
ANNUAL_BOUNDS = (40_000, 500_000)

# Raw amounts under this with no stated period are taken to be hourly
HOURLY_MAGNITUDE_CUTOFF = 500

ESTIMATE_MARKERS = ("estimated", "predicted")

_AMOUNT = r"(?P<{0}>\d{{1,3}}(?:,\d{{3}})+(?:\.\d+)?|\d+(?:\.\d+)?)\s?(?P<{0}_k>[kK])?\b"
_SEPARATOR = r"\s*(?:-|–|—|to)\s*"
_UNIT = (
    r"(?:\s*(?:/\s*|per\s+|an?\s+)?"
    r"(?P<unit>hourly|hours?|hrs?|yearly|years?|yr|annually|annual|monthly|months?|mo|weekly|weeks?|wk)\b)?"
)

SALARY_PATTERN = re.compile(
    r"\$\s?" + _AMOUNT.format("low")
    + r"(?:" + _SEPARATOR + r"\$?\s?" + _AMOUNT.format("high") + r")?"
    + _UNIT,
    re.IGNORECASE,
)

_UNIT_PERIODS = {
    "hourly": "hourly", "hour": "hourly", "hours": "hourly", "hr": "hourly", "hrs": "hourly",
    "yearly": "annual", "year": "annual", "years": "annual", "yr": "annual",
    "annually": "annual", "annual": "annual",
    "monthly": "monthly", "month": "monthly", "months": "monthly", "mo": "monthly",
    "weekly": "weekly", "week": "weekly", "weeks": "weekly", "wk": "weekly",
}


@dataclass
class SalaryParseResult:
    """Raw figures found in free text, before validation."""

    min_value: Optional[float]
    max_value: Optional[float]
    period: Optional[str]
    period_inferred: bool = False
    matched_text: str = ""


@dataclass
class NormalizedSalary:
    """Validated, annualized salary plus its display form."""

    normalized_min: Optional[int] = None
    normalized_max: Optional[int] = None
    period: Optional[str] = None
    display: str = "Competitive"
    is_estimated: bool = False
    rejected: bool = False

    @property
    def has_salary(self) -> bool:
        return self.normalized_min is not None or self.normalized_max is not None


def _to_amount(number: str, thousands: Optional[str]) -> float:
    value = float(number.replace(",", ""))
    if thousands:
        value *= 1000
    return value


def period_from_hint(hint: Optional[str]) -> Optional[str]:
    """Map a provider or suffix period hint to hourly/weekly/monthly/annual.

    Examples:
        >>> period_from_hint("per hour")
        'hourly'
        >>> period_from_hint("PA")
        'annual'
    """
    if not hint:
        return None
    lowered = hint.strip().lower()
    if lowered in ("ph", "hour", "hourly") or "hour" in lowered or lowered.endswith("hr"):
        return "hourly"
    if lowered in ("pa", "py") or "year" in lowered or "annual" in lowered or lowered == "yr":
        return "annual"
    if "month" in lowered or lowered in ("pm", "mo"):
        return "monthly"
    if "week" in lowered or lowered in ("pw", "wk"):
        return "weekly"
    return None


def infer_period(value: Optional[float]) -> str:
    if value is not None and value < HOURLY_MAGNITUDE_CUTOFF:
        return "hourly"
    return "annual"


def parse_salary_text(text: Optional[str]) -> Optional[SalaryParseResult]:
    """Find the first salary figure in free text.

    Recognizes currency-prefixed singles and ranges such as ``$65-$75/hr``,
    ``$150k - $180k``, ``$120,000 to $140,000 annually`` and ``$55 per hour``.

    Args:
        text: Free text (a salary field, title or description)

    Returns:
        SalaryParseResult, or None if no currency amount was found
    """
    if not text:
        return None

    match = SALARY_PATTERN.search(text)
    if not match:
        return None

    low = _to_amount(match.group("low"), match.group("low_k"))
    high = None
    if match.group("high"):
        # "$150-180k" applies the k to both ends
        high_k = match.group("high_k")
        high = _to_amount(match.group("high"), high_k)
        if high_k and not match.group("low_k") and low < 1000:
            low *= 1000

    unit = match.group("unit")
    period = _UNIT_PERIODS.get(unit.lower()) if unit else None
    if period is None and (match.group("low_k") or match.group("high_k")):
        # A "k" amount is always a yearly figure
        period = "annual"
    period_inferred = period is None
    if period is None:
        period = infer_period(low)

    return SalaryParseResult(
        min_value=low,
        max_value=high,
        period=period,
        period_inferred=period_inferred,
        matched_text=match.group(0).strip(),
    )


def _within(value: float, bounds: Tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _validate(value: Optional[float], period: str) -> Tuple[Optional[float], Optional[int]]:
    """Return (raw value, annualized value), both None when out of bounds."""
    if value is None or value <= 0:
        return None, None
    if period == "hourly":
        if not _within(value, HOURLY_BOUNDS):
            return None, None
        return value, round(value * HOURS_PER_YEAR)
    annual = round(value * PERIOD_MULTIPLIERS.get(period, 1))
    if not _within(annual, ANNUAL_BOUNDS):
        return None, None
    return value, annual


def _format_hourly(value: float) -> str:
    return f"${value:.0f}" if float(value).is_integer() else f"${value:.2f}"


def _format_annual(value: int) -> str:
    return f"${round(value / 1000)}k"


def format_display_salary(
    min_value: Optional[float],
    max_value: Optional[float],
    period: Optional[str],
    is_estimated: bool = False,
) -> str:
    """Render a salary for listing cards.

    Hourly figures are shown as hourly; everything else as annual thousands.

    Examples:
        >>> format_display_salary(65, 75, "hourly")
        '$65-$75/hr'
        >>> format_display_salary(150000, None, "annual", is_estimated=True)
        '~$150k/yr'
    """
    if min_value is None and max_value is None:
        return "Competitive"

    if period == "hourly":
        fmt, suffix = _format_hourly, "/hr"
    else:
        fmt, suffix = _format_annual, "/yr"

    if min_value is not None and max_value is not None and min_value != max_value:
        body = f"{fmt(min_value)}-{fmt(max_value)}{suffix}"
    else:
        body = f"{fmt(min_value if min_value is not None else max_value)}{suffix}"

    return f"~{body}" if is_estimated else body


def normalize_salary(
    min_value: Optional[float],
    max_value: Optional[float],
    period: Optional[str],
    is_estimated: bool = False,
) -> NormalizedSalary:
    """Validate and annualize a salary range.

    Each bound is checked on its own; an implausible one is nulled while the
    other is kept. Reversed ranges are swapped. Monthly and weekly figures are
    annualized and reported as annual.

    Args:
        min_value: Lower raw figure in ``period`` units
        max_value: Upper raw figure in ``period`` units
        period: hourly, weekly, monthly or annual (None infers from magnitude)
        is_estimated: Source marked the figure as an estimate

    Returns:
        NormalizedSalary (``display`` is "Competitive" when nothing survives)
    """
    present = [v for v in (min_value, max_value) if v is not None and v > 0]
    if not present:
        return NormalizedSalary()

    if period is None:
        period = infer_period(present[0])
        is_estimated = True

    raw_min, annual_min = _validate(min_value, period)
    raw_max, annual_max = _validate(max_value, period)
    rejected = (raw_min is None and min_value not in (None, 0)) or (
        raw_max is None and max_value not in (None, 0)
    )

    if annual_min is None and annual_max is None:
        return NormalizedSalary(rejected=True)

    if annual_min is not None and annual_max is not None and annual_min > annual_max:
        raw_min, raw_max = raw_max, raw_min
        annual_min, annual_max = annual_max, annual_min

    display_period = "hourly" if period == "hourly" else "annual"
    if display_period == "hourly":
        display = format_display_salary(raw_min, raw_max, "hourly", is_estimated)
    else:
        display = format_display_salary(annual_min, annual_max, "annual", is_estimated)

    return NormalizedSalary(
        normalized_min=annual_min,
        normalized_max=annual_max,
        period=display_period,
        display=display,
        is_estimated=is_estimated,
        rejected=rejected,
    )


def text_marks_estimate(text: Optional[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in ESTIMATE_MARKERS)
