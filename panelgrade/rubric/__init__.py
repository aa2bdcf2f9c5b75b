"""
Rubric Module.

Provides the built-in rubric catalogs, scoring band helpers and
catalog validation.
"""

from panelgrade.rubric.catalog import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC
from panelgrade.rubric.levels import (
    LevelRangeError,
    clamp_score,
    parse_level_range,
    score_for_level,
)
from panelgrade.rubric.validator import RubricValidationError, RubricValidator

__all__ = [
    "INDIVIDUAL_GRADE_RUBRIC",
    "TITLE_DEFENSE_RUBRIC",
    "LevelRangeError",
    "RubricValidationError",
    "RubricValidator",
    "clamp_score",
    "parse_level_range",
    "score_for_level",
]
