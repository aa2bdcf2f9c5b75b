"""
Grade sheet lifecycle status derivation.

The status of a grade sheet is never edited directly: it is recomputed
from the two panels' grade objects every time the sheet is built or
written. The derivation is memoryless, so any status can fall back to
an earlier one when grades are cleared.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from panelgrade.models import PanelGrades


class GradeSheetStatus(str, Enum):
    """Lifecycle state of a whole grade sheet."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    PANEL_1_SUBMITTED = "Panel 1 Submitted"
    PANEL_2_SUBMITTED = "Panel 2 Submitted"
    COMPLETED = "Completed"


class PanelProgress(str, Enum):
    """Progress of a single panel's grading, as shown on the dashboard."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


def is_submitted(grades: "PanelGrades | None") -> bool:
    """Return True when the panel has submitted its grades."""
    return grades is not None and grades.submitted


def has_entries(grades: "PanelGrades | None") -> bool:
    """
    Check whether a panel has recorded anything at all.

    A title-defense score key, an individual score key for any student,
    or a non-empty comments string counts as an entry.
    """
    if grades is None:
        return False
    if grades.title_defense_scores:
        return True
    if any(scores for scores in grades.individual_scores.values()):
        return True
    return bool(grades.comments)


def derive_status(
    panel1_grades: "PanelGrades | None", panel2_grades: "PanelGrades | None"
) -> GradeSheetStatus:
    """
    Derive a grade sheet's status from its two panel grade objects.

    Rules are evaluated in precedence order: both submitted, panel 1
    submitted, panel 2 submitted, anything recorded, nothing recorded.

    Args:
        panel1_grades: Grades of the panel 1 evaluator, if any.
        panel2_grades: Grades of the panel 2 evaluator, if any.

    Returns:
        The derived GradeSheetStatus.
    """
    p1_done = is_submitted(panel1_grades)
    p2_done = is_submitted(panel2_grades)

    if p1_done and p2_done:
        return GradeSheetStatus.COMPLETED
    if p1_done:
        return GradeSheetStatus.PANEL_1_SUBMITTED
    if p2_done:
        return GradeSheetStatus.PANEL_2_SUBMITTED
    if has_entries(panel1_grades) or has_entries(panel2_grades):
        return GradeSheetStatus.IN_PROGRESS
    return GradeSheetStatus.NOT_STARTED


def panel_progress(grades: "PanelGrades | None") -> PanelProgress:
    """Summarize one panel's grading progress."""
    if is_submitted(grades):
        return PanelProgress.COMPLETED
    if has_entries(grades):
        return PanelProgress.IN_PROGRESS
    return PanelProgress.NOT_STARTED
