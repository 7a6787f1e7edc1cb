"""Location string parsing into city/state/remote flags."""

import re
from dataclasses import dataclass
from typing import Optional

STATE_CODES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
}

STATE_NAMES = {name.lower(): code for code, name in STATE_CODES.items()}

# Longest first so "West Virginia" wins over "Virginia"
_STATE_NAME_PATTERNS = [
    (re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE), code)
    for name, code in sorted(STATE_NAMES.items(), key=lambda item: -len(item[0]))
]

REMOTE_KEYWORDS = (
    "remote",
    "telehealth",
    "telepsychiatry",
    "virtual",
    "work from home",
    "wfh",
    "anywhere",
    "nationwide",
)
HYBRID_KEYWORDS = ("hybrid", "flexible", "partial remote")

CITY_CODE_PATTERN = re.compile(r"^([^,]+),\s*([A-Za-z]{2})$")
CITY_NAME_PATTERN = re.compile(r"^([^,]+),\s*([A-Za-z\s]+)$")
BARE_CODE_PATTERN = re.compile(r"\b([A-Z]{2})\b")


@dataclass
class ParsedLocation:
    """Structured location.

    ``confidence`` is 1.0 for city+state, 0.8 for state only, 0.7 for a
    remote/hybrid keyword and 0.3 when nothing was recognized.
    """

    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    is_remote: bool = False
    is_hybrid: bool = False
    confidence: float = 0.3

    @property
    def parsed(self) -> bool:
        return self.state_code is not None or self.is_remote or self.is_hybrid


def _has_keyword(lowered: str, keywords) -> bool:
    return any(re.search(rf"\b{re.escape(keyword)}\b", lowered) for keyword in keywords)


def _strip_city(value: str) -> Optional[str]:
    city = value.strip().rstrip(",").strip(" -")
    return city if len(city) > 2 else None


def parse_location(text: Optional[str]) -> ParsedLocation:
    """Parse a provider location string.

    Checks remote/hybrid keywords first; a fully remote posting is not parsed
    further. Then tries, in order: "City, ST", "City, State Name", a bare
    uppercase state code, and a state name anywhere in the string.

    Args:
        text: Raw location (e.g. "Austin, TX", "Remote", "Denver, Colorado")

    Returns:
        ParsedLocation (all fields empty for blank input)
    """
    result = ParsedLocation()
    if not text or not text.strip():
        return result

    normalized = " ".join(text.split())
    lowered = normalized.lower()

    if _has_keyword(lowered, REMOTE_KEYWORDS):
        result.is_remote = True
        result.confidence = 0.7
    if _has_keyword(lowered, HYBRID_KEYWORDS):
        result.is_hybrid = True
        result.confidence = 0.7

    if result.is_remote and not result.is_hybrid:
        return result

    match = CITY_CODE_PATTERN.match(normalized)
    if match and match.group(2).upper() in STATE_CODES:
        code = match.group(2).upper()
        result.city = match.group(1).strip()
        result.state_code = code
        result.state = STATE_CODES[code]
        result.confidence = 1.0
        return result

    match = CITY_NAME_PATTERN.match(normalized)
    if match and match.group(2).strip().lower() in STATE_NAMES:
        code = STATE_NAMES[match.group(2).strip().lower()]
        result.city = match.group(1).strip()
        result.state_code = code
        result.state = STATE_CODES[code]
        result.confidence = 1.0
        return result

    for match in BARE_CODE_PATTERN.finditer(normalized):
        code = match.group(1)
        if code not in STATE_CODES:
            continue
        result.state_code = code
        result.state = STATE_CODES[code]
        result.confidence = 0.8
        city = _strip_city(normalized[: match.start()])
        if city:
            result.city = city
            result.confidence = 1.0
        return result

    for pattern, code in _STATE_NAME_PATTERNS:
        match = pattern.search(normalized)
        if not match:
            continue
        result.state_code = code
        result.state = STATE_CODES[code]
        result.confidence = 0.8
        city = _strip_city(normalized[: match.start()])
        if city:
            result.city = city
            result.confidence = 1.0
        return result

    return result
