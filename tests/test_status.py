"""
Unit tests for grade sheet status derivation.
"""

import pytest

from panelgrade.models import GradeSheet, PanelGrades
from panelgrade.status import (
    GradeSheetStatus,
    PanelProgress,
    derive_status,
    has_entries,
    panel_progress,
)


@pytest.fixture
def submitted() -> PanelGrades:
    return PanelGrades(title_defense_scores={"td1": 30}, comments="Done", submitted=True)


@pytest.fixture
def draft() -> PanelGrades:
    return PanelGrades(title_defense_scores={"td1": 30})


class TestDeriveStatus:
    """Tests for derive_status."""

    def test_nothing_recorded(self) -> None:
        assert derive_status(None, None) == GradeSheetStatus.NOT_STARTED

    def test_empty_grades_not_started(self) -> None:
        """Test blank grade objects with empty per-student maps are not a start."""
        blank = PanelGrades(individual_scores={"s1": {}, "s2": {}})
        assert derive_status(blank, blank) == GradeSheetStatus.NOT_STARTED

    def test_scenario_c_panel_1_submitted(self, submitted: PanelGrades) -> None:
        """Test panel 1 submitted and panel 2 absent."""
        assert derive_status(submitted, None) == GradeSheetStatus.PANEL_1_SUBMITTED

    def test_panel_2_submitted(self, submitted: PanelGrades, draft: PanelGrades) -> None:
        """Test panel 2 submitted while panel 1 is still drafting."""
        assert derive_status(draft, submitted) == GradeSheetStatus.PANEL_2_SUBMITTED

    def test_panel_1_takes_precedence(self, submitted: PanelGrades, draft: PanelGrades) -> None:
        """Test panel 1 submission outranks panel 2 drafting."""
        assert derive_status(submitted, draft) == GradeSheetStatus.PANEL_1_SUBMITTED

    def test_completed(self, submitted: PanelGrades) -> None:
        assert derive_status(submitted, submitted) == GradeSheetStatus.COMPLETED

    def test_scenario_f_comments_only(self) -> None:
        """Test a comment with no scores counts as in progress."""
        grades = PanelGrades(comments="ok")
        assert derive_status(grades, None) == GradeSheetStatus.IN_PROGRESS

    def test_individual_score_only(self) -> None:
        """Test a single individual score counts as in progress."""
        grades = PanelGrades(individual_scores={"s1": {"ig1": 10}, "s2": {}})
        assert derive_status(None, grades) == GradeSheetStatus.IN_PROGRESS

    def test_zero_score_counts_as_entry(self) -> None:
        """Test a recorded 0 is still an entry."""
        grades = PanelGrades(title_defense_scores={"td1": 0})
        assert derive_status(grades, None) == GradeSheetStatus.IN_PROGRESS

    def test_whitespace_comment_counts_as_entry(self) -> None:
        """Test any non-empty comment string counts."""
        assert has_entries(PanelGrades(comments=" "))

    def test_memoryless(self, submitted: PanelGrades, draft: PanelGrades) -> None:
        """Test the same inputs give the same status whatever came before."""
        first = derive_status(draft, None)
        derive_status(submitted, submitted)
        derive_status(None, None)

        assert derive_status(draft, None) == first


class TestSheetStatus:
    """Tests for status on GradeSheet itself."""

    def test_status_is_derived_on_build(self, submitted: PanelGrades) -> None:
        """Test a status passed in is replaced by the derived one."""
        sheet = GradeSheet(
            group_name="Team",
            panel1_grades=submitted,
            panel2_grades=submitted,
            status=GradeSheetStatus.NOT_STARTED,
        )
        assert sheet.status == GradeSheetStatus.COMPLETED

    def test_status_falls_back_when_grades_cleared(self, submitted: PanelGrades) -> None:
        """Test clearing grades brings a completed sheet back to not started."""
        sheet = GradeSheet(group_name="Team", panel1_grades=submitted, panel2_grades=submitted)
        cleared = sheet.evolve(panel1_grades=None, panel2_grades=None)

        assert cleared.status == GradeSheetStatus.NOT_STARTED

    def test_status_survives_json_round_trip(self, draft: PanelGrades) -> None:
        """Test the stored status is recomputed on load."""
        sheet = GradeSheet(group_name="Team", panel1_grades=draft)
        data = sheet.model_dump(mode="json")
        data["status"] = GradeSheetStatus.COMPLETED.value

        assert GradeSheet.model_validate(data).status == GradeSheetStatus.IN_PROGRESS


class TestPanelProgress:
    """Tests for panel_progress."""

    def test_not_started(self) -> None:
        assert panel_progress(None) == PanelProgress.NOT_STARTED
        assert panel_progress(PanelGrades()) == PanelProgress.NOT_STARTED

    def test_in_progress(self, draft: PanelGrades) -> None:
        assert panel_progress(draft) == PanelProgress.IN_PROGRESS

    def test_completed(self, submitted: PanelGrades) -> None:
        assert panel_progress(submitted) == PanelProgress.COMPLETED
