"""
Pass/fail classification of completed grade sheets.
"""

from panelgrade.grading.aggregator import RubricLike
from panelgrade.grading.finalizer import finalize
from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.models import GradeSheet, Remark
from panelgrade.rubric.catalog import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC
from panelgrade.status import GradeSheetStatus


def remark_for(group_final_score: float, policy: GradingPolicy = DEFAULT_POLICY) -> Remark:
    """Threshold a group final score; the passing score itself passes."""
    if group_final_score < policy.passing_score:
        return Remark.FAILED
    return Remark.PASSED


def classify(
    sheet: GradeSheet,
    *,
    title_rubric: RubricLike = TITLE_DEFENSE_RUBRIC,
    individual_rubric: RubricLike = INDIVIDUAL_GRADE_RUBRIC,
    policy: GradingPolicy = DEFAULT_POLICY,
) -> Remark | None:
    """
    Give a completed sheet its remark.

    Returns:
        Remark.PASSED or Remark.FAILED, or None while the sheet is not
        COMPLETED.
    """
    if sheet.status != GradeSheetStatus.COMPLETED:
        return None

    scores = finalize(
        sheet,
        title_rubric=title_rubric,
        individual_rubric=individual_rubric,
        policy=policy,
    )
    return remark_for(scores.group_final_score, policy)
