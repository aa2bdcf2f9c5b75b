"""
Unit tests for the aggregation core.

Tests weighted aggregation, final score calculation, status derivation
and pass/fail classification, including the reference scenarios.
"""

from typing import Callable

import pytest
from pydantic import ValidationError

from panelgrade.config import Settings
from panelgrade.grading import (
    DEFAULT_POLICY,
    GradingPolicy,
    aggregate,
    classify,
    finalize,
    remark_for,
    weighted_portion,
)
from panelgrade.models import (
    GradeSheet,
    PanelGrades,
    Remark,
    Rubric,
    RubricItem,
    Student,
)
from panelgrade.rubric import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC
from panelgrade.status import GradeSheetStatus

# 62.5 / 100 title-defense points and 87.5 / 100 individual points give
# 43.75 + 26.25 = 70.0 with no rounding error.
BOUNDARY_GRADES = PanelGrades(
    title_defense_scores={"td1": 35, "td2": 27.5, "td3": 0, "td4": 0},
    individual_scores={
        sid: {"ig1": 30, "ig2": 30, "ig3": 20, "ig4": 7.5, "ig5": 0}
        for sid in ("s1", "s2", "s3")
    },
    comments="Meets the bar.",
    submitted=True,
)


class TestWeightedPortion:
    """Tests for weighted_portion."""

    def test_full_marks_give_the_share(self) -> None:
        """Test every item at full weight yields exactly the share."""
        scores = {item.id: item.weight for item in TITLE_DEFENSE_RUBRIC.items}
        assert weighted_portion(scores, TITLE_DEFENSE_RUBRIC.items, 70) == 70

    def test_odd_weights_full_marks(self) -> None:
        """Test the share is exact for weights that do not sum to 100."""
        items = [
            RubricItem(id="a", criteria="A", weight=3),
            RubricItem(id="b", criteria="B", weight=7),
            RubricItem(id="c", criteria="C", weight=11),
        ]
        assert weighted_portion({"a": 3, "b": 7, "c": 11}, items, 30) == 30

    def test_missing_scores_count_as_zero(self) -> None:
        """Test absent keys contribute nothing."""
        assert weighted_portion({"td1": 35}, TITLE_DEFENSE_RUBRIC.items, 70) == pytest.approx(24.5)

    def test_none_scores(self) -> None:
        """Test a missing score map is all zeros."""
        assert weighted_portion(None, TITLE_DEFENSE_RUBRIC.items, 70) == 0

    def test_empty_catalog_is_zero(self) -> None:
        """Test a catalog with no weight contributes 0 instead of dividing by zero."""
        assert weighted_portion({"x": 10}, [], 70) == 0

    def test_unknown_keys_ignored(self) -> None:
        """Test scores for items outside the catalog are not summed."""
        scores = {"td1": 35, "bogus": 1000}
        assert weighted_portion(scores, TITLE_DEFENSE_RUBRIC.items, 70) == pytest.approx(24.5)


class TestAggregate:
    """Tests for aggregate."""

    def test_scenario_a_single_item(self, single_item_rubric: Rubric) -> None:
        """Test a single 100-point title item scored 100 gives 70."""
        grades = PanelGrades(title_defense_scores={"only": 100})
        result = aggregate(grades, [], title_rubric=single_item_rubric)

        assert result.title_defense_weighted == 70

    def test_scenario_b_unscored_proponent(self) -> None:
        """Test one proponent at 50/100 and one unscored give 15 and 0."""
        students = [Student(id="p1", name="P One"), Student(id="p2", name="P Two")]
        grades = PanelGrades(individual_scores={"p1": {"ig1": 30, "ig3": 20}})

        result = aggregate(grades, students)

        assert result.individual_weighted == {"p1": 15, "p2": 0}

    def test_one_entry_per_proponent(self, proponents: tuple[Student, ...]) -> None:
        """Test the result has exactly one individual entry per proponent."""
        grades = PanelGrades(individual_scores={"s1": {"ig1": 30}, "ghost": {"ig1": 30}})
        result = aggregate(grades, proponents)

        assert set(result.individual_weighted) == {"s1", "s2", "s3"}
        assert result.individual_weighted["s2"] == 0

    def test_no_grades(self, proponents: tuple[Student, ...]) -> None:
        """Test an ungraded panel aggregates to zeros."""
        result = aggregate(None, proponents)

        assert result.title_defense_weighted == 0
        assert result.individual_weighted == {"s1": 0, "s2": 0, "s3": 0}

    def test_no_proponents(self, make_grades: Callable[..., PanelGrades]) -> None:
        """Test a group without proponents still gets its title score."""
        result = aggregate(make_grades(1.0), None)

        assert result.title_defense_weighted == 70
        assert result.individual_weighted == {}

    def test_full_marks(
        self, proponents: tuple[Student, ...], make_grades: Callable[..., PanelGrades]
    ) -> None:
        """Test full marks give 70 + 30."""
        result = aggregate(make_grades(1.0), proponents)

        assert result.title_defense_weighted == 70
        assert all(v == 30 for v in result.individual_weighted.values())
        assert result.total_for("s1") == 100

    def test_custom_policy(self, proponents: tuple[Student, ...], make_grades) -> None:
        """Test the shares come from the policy."""
        policy = GradingPolicy(title_defense_share=60, individual_share=40)
        result = aggregate(make_grades(1.0), proponents, policy=policy)

        assert result.title_defense_weighted == 60
        assert result.individual_weighted["s1"] == 40


class TestFinalize:
    """Tests for finalize."""

    def test_average_of_panel_totals(self, sample_sheet: GradeSheet) -> None:
        """Test the final score is the mean of the two panel totals."""
        sheet = sample_sheet.evolve(
            panel1_grades=PanelGrades(
                title_defense_scores={item.id: item.weight for item in TITLE_DEFENSE_RUBRIC.items}
            ),
            panel2_grades=PanelGrades(
                individual_scores={
                    "s1": {item.id: item.weight for item in INDIVIDUAL_GRADE_RUBRIC.items}
                }
            ),
        )

        scores = finalize(sheet)
        s1 = scores.per_student["s1"]
        s2 = scores.per_student["s2"]

        assert s1.p1_title == 70
        assert s1.p1_indiv == 0
        assert s1.p2_title == 0
        assert s1.p2_indiv == 30
        assert s1.p1_total == 70
        assert s1.p2_total == 30
        assert s1.final_score == 50
        assert s2.final_score == 35
        assert scores.group_final_score == pytest.approx((50 + 35 + 35) / 3)

    def test_zero_proponents(self) -> None:
        """Test an empty group has a group final of 0."""
        sheet = GradeSheet(group_name="Empty")
        scores = finalize(sheet)

        assert scores.per_student == {}
        assert scores.group_final_score == 0

    def test_idempotent(self, sample_sheet: GradeSheet, make_grades) -> None:
        """Test finalizing an unchanged sheet twice gives identical results."""
        sheet = sample_sheet.evolve(panel1_grades=make_grades(0.8), panel2_grades=make_grades(0.6))

        assert finalize(sheet) == finalize(sheet)

    def test_provisional_scores_before_completion(
        self, sample_sheet: GradeSheet, make_grades
    ) -> None:
        """Test scores are computed while only one panel has graded."""
        sheet = sample_sheet.evolve(panel1_grades=make_grades(1.0, submitted=True))

        scores = finalize(sheet)

        assert sheet.status == GradeSheetStatus.PANEL_1_SUBMITTED
        assert scores.group_final_score == 50

    def test_no_rounding(self, sample_sheet: GradeSheet) -> None:
        """Test fractional results are kept as computed."""
        grades = PanelGrades(title_defense_scores={"td1": 1})
        sheet = sample_sheet.evolve(panel1_grades=grades)

        assert finalize(sheet).per_student["s1"].p1_title == pytest.approx(0.7)
        assert finalize(sheet).per_student["s1"].final_score == pytest.approx(0.35)


class TestClassify:
    """Tests for classify and remark_for."""

    def test_not_completed_has_no_remark(self, sample_sheet: GradeSheet, make_grades) -> None:
        """Test sheets that are not COMPLETED are not classified."""
        assert classify(sample_sheet) is None

        one_panel = sample_sheet.evolve(panel1_grades=make_grades(1.0, submitted=True))
        assert classify(one_panel) is None

    def test_scenario_d_failed(self, sample_sheet: GradeSheet, make_grades) -> None:
        """Test a completed sheet averaging 68.5 fails."""
        sheet = sample_sheet.evolve(
            panel1_grades=make_grades(0.685, submitted=True),
            panel2_grades=make_grades(0.685, submitted=True),
        )

        assert sheet.status == GradeSheetStatus.COMPLETED
        assert finalize(sheet).group_final_score == pytest.approx(68.5)
        assert classify(sheet) == Remark.FAILED

    def test_scenario_e_boundary_passes(self, sample_sheet: GradeSheet) -> None:
        """Test a group final of exactly 70 passes."""
        sheet = sample_sheet.evolve(panel1_grades=BOUNDARY_GRADES, panel2_grades=BOUNDARY_GRADES)

        assert finalize(sheet).group_final_score == 70.0
        assert classify(sheet) == Remark.PASSED

    def test_remark_for(self) -> None:
        """Test the threshold is inclusive."""
        assert remark_for(69.99) == Remark.FAILED
        assert remark_for(70) == Remark.PASSED
        assert remark_for(100) == Remark.PASSED

    def test_custom_passing_score(self, sample_sheet: GradeSheet) -> None:
        """Test the cutoff comes from the policy."""
        sheet = sample_sheet.evolve(panel1_grades=BOUNDARY_GRADES, panel2_grades=BOUNDARY_GRADES)
        strict = GradingPolicy(passing_score=75)

        assert classify(sheet, policy=strict) == Remark.FAILED


class TestGradingPolicy:
    """Tests for GradingPolicy."""

    def test_defaults(self) -> None:
        assert DEFAULT_POLICY.title_defense_share == 70
        assert DEFAULT_POLICY.individual_share == 30
        assert DEFAULT_POLICY.passing_score == 70

    def test_shares_must_sum_to_100(self) -> None:
        """Test an incomplete split is rejected."""
        with pytest.raises(ValidationError, match="sum to 100"):
            GradingPolicy(title_defense_share=70, individual_share=20)

    def test_from_settings(self, temp_dir) -> None:
        """Test the policy mirrors the settings."""
        settings = Settings(
            title_defense_share=80,
            individual_share=20,
            passing_score=75,
            output_directory=temp_dir / "out",
        )
        policy = GradingPolicy.from_settings(settings)

        assert policy.title_defense_share == 80
        assert policy.individual_share == 20
        assert policy.passing_score == 75
