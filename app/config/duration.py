"""Duration parsing for the scan interval setting.

Accepts human-readable values ("15m", "6h", "1d", "90s", "1h30m") and the
ISO-8601 subset used in deployment manifests ("PT15M", "PT6H", "P1D",
"P1DT12H").
"""

import re

_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}

_HUMAN_PATTERN = re.compile(r"^(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$")
_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """Parse a duration string to seconds.

    Args:
        duration_str: Duration such as "15m" or "PT15M"

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the string is empty, malformed, or zero

    Examples:
        >>> parse_duration("15m")
        900
        >>> parse_duration("PT1H30M")
        5400
    """
    if not isinstance(duration_str, str) or not duration_str.strip():
        raise DurationParseError("Duration string cannot be empty")

    text = duration_str.strip()
    if text.upper().startswith("P"):
        match = _ISO_PATTERN.match(text.upper())
        if not match or text.upper() in ("P", "PT") or text.upper().endswith("T"):
            raise DurationParseError(
                f"Invalid ISO-8601 duration: '{duration_str}'. Expected e.g. PT15M, PT1H, P1D"
            )
    else:
        match = _HUMAN_PATTERN.match(text.lower().replace(" ", ""))
        if not match:
            raise DurationParseError(
                f"Invalid duration: '{duration_str}'. Expected e.g. 15m, 6h, 1d, 30s"
            )

    days, hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    total = (
        days * _UNIT_SECONDS["d"]
        + hours * _UNIT_SECONDS["h"]
        + minutes * _UNIT_SECONDS["m"]
        + seconds * _UNIT_SECONDS["s"]
    )
    if total <= 0:
        raise DurationParseError(f"Duration must be positive, got: '{duration_str}'")
    return total


def validate_duration_range(seconds: int, min_seconds: int = 60, max_seconds: int = 86400) -> None:
    """Validate that a duration falls in an accepted window.

    Raises:
        DurationParseError: If seconds is outside [min_seconds, max_seconds]
    """
    if seconds < min_seconds:
        raise DurationParseError(
            f"Duration {seconds}s is below the minimum of {min_seconds}s"
        )
    if seconds > max_seconds:
        raise DurationParseError(
            f"Duration {seconds}s exceeds the maximum of {max_seconds}s"
        )
