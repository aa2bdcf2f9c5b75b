"""
Final score calculation.

Combines both panels' weighted sub-totals into a final score per
proponent (the plain average of the two panel totals) and a group
final score (the mean over proponents).

Scores are computed whether or not the panels have submitted, so they
can be shown as live provisional numbers while grading is under way.
Callers decide whether to surface them before the sheet is COMPLETED.
Nothing is rounded here.
"""

from panelgrade.grading.aggregator import RubricLike, aggregate
from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.models import FinalScores, GradeSheet, StudentScore
from panelgrade.rubric.catalog import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC


def finalize(
    sheet: GradeSheet,
    *,
    title_rubric: RubricLike = TITLE_DEFENSE_RUBRIC,
    individual_rubric: RubricLike = INDIVIDUAL_GRADE_RUBRIC,
    policy: GradingPolicy = DEFAULT_POLICY,
) -> FinalScores:
    """
    Compute per-student and group final scores for a grade sheet.

    Args:
        sheet: The grade sheet to score.
        title_rubric: Catalog for the title-defense score.
        individual_rubric: Catalog for per-student scores.
        policy: Shares applied to each catalog.

    Returns:
        FinalScores keyed by student id, plus the group mean.
    """
    catalogs = {
        "title_rubric": title_rubric,
        "individual_rubric": individual_rubric,
        "policy": policy,
    }
    panel1 = aggregate(sheet.panel1_grades, sheet.proponents, **catalogs)
    panel2 = aggregate(sheet.panel2_grades, sheet.proponents, **catalogs)

    per_student: dict[str, StudentScore] = {}
    for student in sheet.proponents:
        p1_indiv = panel1.individual_weighted.get(student.id, 0.0)
        p2_indiv = panel2.individual_weighted.get(student.id, 0.0)
        p1_total = panel1.title_defense_weighted + p1_indiv
        p2_total = panel2.title_defense_weighted + p2_indiv

        per_student[student.id] = StudentScore(
            p1_title=panel1.title_defense_weighted,
            p1_indiv=p1_indiv,
            p2_title=panel2.title_defense_weighted,
            p2_indiv=p2_indiv,
            final_score=(p1_total + p2_total) / 2,
        )

    group_final_score = sum(s.final_score for s in per_student.values()) / (
        len(per_student) or 1
    )

    return FinalScores(per_student=per_student, group_final_score=group_final_score)
