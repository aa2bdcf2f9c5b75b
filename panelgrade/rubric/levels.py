"""
Scoring band helpers.

Rubric levels describe their point range as text ("30-35 points",
"0-1 point"). Panels can pick a band instead of typing a number, in
which case the band's upper bound is awarded.
"""

import re

from panelgrade.models import RubricItem

RANGE_PATTERN = re.compile(
    r"^\s*"
    r"(\d+(?:\.\d+)?)"  # Lower bound
    r"(?:\s*[-–—]\s*(\d+(?:\.\d+)?))?"  # Optional upper bound
    r"\s*(?:points?|pts?|marks?)?\s*$",
    re.IGNORECASE,
)


class LevelRangeError(ValueError):
    """Raised when a level range string cannot be parsed."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Invalid level range: '{text}'")


def parse_level_range(text: str) -> tuple[float, float]:
    """
    Parse a band like '20-29 points' into (20.0, 29.0).

    A single number ('5 points') is both bounds.

    Raises:
        LevelRangeError: If the text is not a recognizable range.
    """
    match = RANGE_PATTERN.match(text)
    if not match:
        raise LevelRangeError(text)
    low = float(match.group(1))
    high = float(match.group(2)) if match.group(2) is not None else low
    return low, high


def clamp_score(value: float | int | str | None, maximum: float) -> float:
    """
    Clamp a raw score into 0..maximum.

    Unparseable or missing values count as 0.
    """
    if value is None:
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return min(max(score, 0.0), float(maximum))


def score_for_level(item: RubricItem, level_range: str) -> float:
    """
    The score awarded when a panel picks one of an item's bands.

    Args:
        item: The rubric item being scored.
        level_range: The band's range text, e.g. '25-30 points'.

    Returns:
        The band's upper bound, clamped to the item weight.
    """
    _, high = parse_level_range(level_range)
    return clamp_score(high, item.weight)
