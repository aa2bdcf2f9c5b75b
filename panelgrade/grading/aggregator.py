"""
Score aggregation.

Reduces one panel's raw per-criterion scores into weighted sub-totals:
the title-defense portion (shared by the whole group) and one
individual-performance portion per proponent.

All functions here are pure. Missing scores count as 0 and an empty
catalog contributes 0, so partially graded sheets always aggregate.
"""

from typing import Iterable, Mapping, Sequence

from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.models import PanelGrades, PanelScores, Rubric, RubricItem, Student
from panelgrade.rubric.catalog import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC

RubricLike = Rubric | Sequence[RubricItem]


def _items(rubric: RubricLike) -> tuple[RubricItem, ...]:
    if isinstance(rubric, Rubric):
        return rubric.items
    return tuple(rubric)


def weighted_portion(
    scores: Mapping[str, float] | None, items: Iterable[RubricItem], share: float
) -> float:
    """
    Scale raw scores against a catalog's total weight.

    Args:
        scores: Raw scores keyed by rubric item id. Missing keys count as 0.
        items: The rubric items to sum over.
        share: Points the catalog is worth (e.g. 70).

    Returns:
        ``sum(scores) / sum(weights) * share``, or 0 when the catalog
        weighs nothing.
    """
    items = tuple(items)
    total_weight = sum(item.weight for item in items)
    if total_weight <= 0:
        return 0.0

    scores = scores or {}
    raw = sum(scores.get(item.id) or 0 for item in items)
    return raw / total_weight * share


def aggregate(
    grades: PanelGrades | None,
    proponents: Sequence[Student] | None,
    *,
    title_rubric: RubricLike = TITLE_DEFENSE_RUBRIC,
    individual_rubric: RubricLike = INDIVIDUAL_GRADE_RUBRIC,
    policy: GradingPolicy = DEFAULT_POLICY,
) -> PanelScores:
    """
    Aggregate one panel's grades for a group.

    Args:
        grades: The panel's grades, or None if it has not graded yet.
        proponents: The group's students; every one gets an entry.
        title_rubric: Catalog for the group-wide title-defense score.
        individual_rubric: Catalog for per-student scores.
        policy: Shares applied to each catalog.

    Returns:
        PanelScores with the weighted title-defense score and a weighted
        individual score per proponent id.
    """
    proponents = proponents or ()

    if grades is None:
        return PanelScores(
            title_defense_weighted=0.0,
            individual_weighted={p.id: 0.0 for p in proponents},
        )

    title_defense_weighted = weighted_portion(
        grades.title_defense_scores, _items(title_rubric), policy.title_defense_share
    )

    individual_items = _items(individual_rubric)
    individual_weighted = {
        p.id: weighted_portion(
            grades.individual_scores.get(p.id), individual_items, policy.individual_share
        )
        for p in proponents
    }

    return PanelScores(
        title_defense_weighted=title_defense_weighted,
        individual_weighted=individual_weighted,
    )
