"""
Tabular views of grade sheets.

Builds the rows behind the masterlist, the dashboard and the grading
statistics. Scores are shown for every sheet, including sheets still in
progress; the remark is only filled once both panels have submitted.
"""

from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from panelgrade.grading.classifier import classify
from panelgrade.grading.finalizer import finalize
from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.models import GradeSheet, Remark, User
from panelgrade.status import GradeSheetStatus, PanelProgress, panel_progress

UNASSIGNED = "N/A"


class SheetFilter(str, Enum):
    """Dashboard filter buttons."""

    ALL = "All"
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class MasterlistRow(BaseModel):
    """One proponent's line on the masterlist."""

    model_config = ConfigDict(frozen=True)

    sheet_id: str
    group_name: str
    proponent: str
    panel1_name: str
    panel2_name: str
    p1_title: float
    p1_indiv: float
    p2_title: float
    p2_indiv: float
    final_score: float
    group_final_score: float
    status: GradeSheetStatus
    remark: Remark | None = None


class DashboardRow(BaseModel):
    """One group's line on the dashboard."""

    model_config = ConfigDict(frozen=True)

    sheet_id: str
    group_name: str
    selected_title: str
    panel1_name: str
    panel1_progress: PanelProgress
    panel2_name: str
    panel2_progress: PanelProgress
    status: GradeSheetStatus


class GradingStats(BaseModel):
    """Counts shown above the masterlist."""

    model_config = ConfigDict(frozen=True)

    graded: int = 0
    incomplete: int = 0
    ungraded: int = 0


def _names(users: Iterable[User]) -> dict[str, str]:
    return {u.id: u.name for u in users}


def masterlist_rows(
    sheets: Sequence[GradeSheet],
    users: Iterable[User],
    policy: GradingPolicy = DEFAULT_POLICY,
) -> list[MasterlistRow]:
    """
    Flatten grade sheets into one row per proponent.

    Args:
        sheets: Grade sheets in display order.
        users: Every known user, to resolve panel names.
        policy: Shares and passing score.

    Returns:
        Rows with the four weighted parts, the student's final score
        and the group final score.
    """
    names = _names(users)
    rows: list[MasterlistRow] = []
    for sheet in sheets:
        scores = finalize(sheet, policy=policy)
        remark = classify(sheet, policy=policy)
        for student in sheet.proponents:
            score = scores.per_student[student.id]
            rows.append(
                MasterlistRow(
                    sheet_id=sheet.id,
                    group_name=sheet.group_name,
                    proponent=student.name,
                    panel1_name=names.get(sheet.panel1_id, UNASSIGNED),
                    panel2_name=names.get(sheet.panel2_id, UNASSIGNED),
                    p1_title=score.p1_title,
                    p1_indiv=score.p1_indiv,
                    p2_title=score.p2_title,
                    p2_indiv=score.p2_indiv,
                    final_score=score.final_score,
                    group_final_score=scores.group_final_score,
                    status=sheet.status,
                    remark=remark,
                )
            )
    return rows


def dashboard_rows(sheets: Sequence[GradeSheet], users: Iterable[User]) -> list[DashboardRow]:
    """One row per group with each panel's name and progress."""
    names = _names(users)
    return [
        DashboardRow(
            sheet_id=sheet.id,
            group_name=sheet.group_name,
            selected_title=sheet.selected_title,
            panel1_name=names.get(sheet.panel1_id, UNASSIGNED),
            panel1_progress=panel_progress(sheet.panel1_grades),
            panel2_name=names.get(sheet.panel2_id, UNASSIGNED),
            panel2_progress=panel_progress(sheet.panel2_grades),
            status=sheet.status,
        )
        for sheet in sheets
    ]


def grading_stats(sheets: Iterable[GradeSheet]) -> GradingStats:
    """Count completed, partially graded and untouched sheets."""
    graded = incomplete = ungraded = 0
    for sheet in sheets:
        if sheet.status == GradeSheetStatus.COMPLETED:
            graded += 1
        elif sheet.status == GradeSheetStatus.NOT_STARTED:
            ungraded += 1
        else:
            incomplete += 1
    return GradingStats(graded=graded, incomplete=incomplete, ungraded=ungraded)


def filter_sheets(
    sheets: Iterable[GradeSheet], sheet_filter: SheetFilter | str = SheetFilter.ALL
) -> list[GradeSheet]:
    """
    Apply a dashboard filter.

    'In Progress' also matches sheets where only one panel has submitted.
    """
    sheet_filter = SheetFilter(sheet_filter)
    if sheet_filter == SheetFilter.ALL:
        return list(sheets)
    if sheet_filter == SheetFilter.COMPLETED:
        return [s for s in sheets if s.status == GradeSheetStatus.COMPLETED]
    if sheet_filter == SheetFilter.NOT_STARTED:
        return [s for s in sheets if s.status == GradeSheetStatus.NOT_STARTED]
    return [
        s
        for s in sheets
        if s.status
        in (
            GradeSheetStatus.IN_PROGRESS,
            GradeSheetStatus.PANEL_1_SUBMITTED,
            GradeSheetStatus.PANEL_2_SUBMITTED,
        )
    ]
