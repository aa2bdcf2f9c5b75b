"""
Rubric validation module.

Checks that a rubric catalog is complete and consistent before panels
score against it: weights add up, and every scoring band is a readable
range that fits inside its item's weight.
"""

from panelgrade.errors import PanelGradeError
from panelgrade.models import Rubric, RubricItem
from panelgrade.rubric.levels import LevelRangeError, parse_level_range


class RubricValidationError(PanelGradeError):
    """Raised when rubric validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Rubric validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class RubricValidator:
    """
    Validates rubric catalogs.

    Checks:
    1. The catalog has at least one item
    2. Item weights sum to the expected total
    3. Every item has a criteria text and at least one level
    4. Level ranges parse and stay within the item weight
    """

    # Every built-in catalog is scored out of 100 points
    EXPECTED_TOTAL = 100.0

    def __init__(self, expected_total: float | None = EXPECTED_TOTAL):
        self._expected_total = expected_total

    def validate(self, rubric: Rubric) -> tuple[bool, list[str]]:
        """
        Validate a rubric and return any issues found.

        Args:
            rubric: The rubric to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []

        if not rubric.items:
            issues.append(f"Rubric '{rubric.title}' has no items")
            return False, issues

        for item in rubric.items:
            issues.extend(self._validate_item(item))

        issues.extend(self._validate_total_weight(rubric))

        return len(issues) == 0, issues

    def validate_or_raise(self, rubric: Rubric) -> None:
        """
        Validate a rubric and raise if invalid.

        Raises:
            RubricValidationError: If validation fails.
        """
        is_valid, issues = self.validate(rubric)
        if not is_valid:
            raise RubricValidationError(issues)

    def _validate_item(self, item: RubricItem) -> list[str]:
        """Validate a single item and its levels."""
        issues: list[str] = []
        prefix = f"Item {item.id}"

        if not item.criteria.strip():
            issues.append(f"{prefix}: Criteria text is empty")

        if not item.levels:
            issues.append(f"{prefix}: No scoring levels defined")

        for level in item.levels:
            try:
                low, high = parse_level_range(level.range)
            except LevelRangeError as e:
                issues.append(f"{prefix}: {e}")
                continue
            if low > high:
                issues.append(f"{prefix}: Level '{level.range}' has its bounds reversed")
            if high > item.weight:
                issues.append(
                    f"{prefix}: Level '{level.range}' exceeds the item weight ({item.weight:g})"
                )

        return issues

    def _validate_total_weight(self, rubric: Rubric) -> list[str]:
        """Validate the catalog adds up to the expected total."""
        if self._expected_total is None:
            return []
        if abs(rubric.total_weight - self._expected_total) > 1e-9:
            return [
                f"Rubric '{rubric.title}' weights sum to {rubric.total_weight:g}, "
                f"expected {self._expected_total:g}"
            ]
        return []
