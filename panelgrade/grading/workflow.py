"""
Grading workflow - the orchestrator around the aggregation core.

Handles panel assignment, group details, draft scores, submission with completeness
checks, grade locking and grade resets. Every change goes through the
repository's read-modify-write so the persisted status is derived from
the post-merge grades of both panels.
"""

import structlog

from panelgrade.access import require_manager
from panelgrade.errors import (
    AuthorizationError,
    DetailsLockedError,
    GradesLockedError,
    IncompleteGradesError,
    PanelAssignmentError,
)
from panelgrade.models import (
    NOT_SET,
    UNTITLED_PROJECT,
    GradeSheet,
    PanelGrades,
    Program,
    Rubric,
    User,
)
from panelgrade.rubric.catalog import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC
from panelgrade.rubric.levels import clamp_score, score_for_level
from panelgrade.store.repository import GradeSheetRepository, UserRepository

log = structlog.get_logger(__name__)

PANEL_SLOTS = (1, 2)


def panel_slot(sheet: GradeSheet, user_id: str) -> int | None:
    """The slot (1 or 2) the user holds on the sheet, or None."""
    if not user_id:
        return None
    if sheet.panel1_id == user_id:
        return 1
    if sheet.panel2_id == user_id:
        return 2
    return None


class GradingWorkflow:
    """
    Applies panel actions to stored grade sheets.

    Scores are only accepted for the built-in (or injected) rubric
    items and for the group's own proponents, and are clamped to each
    item's weight.
    """

    def __init__(
        self,
        sheets: GradeSheetRepository,
        users: UserRepository,
        title_rubric: Rubric = TITLE_DEFENSE_RUBRIC,
        individual_rubric: Rubric = INDIVIDUAL_GRADE_RUBRIC,
    ):
        """
        Initialize the workflow.

        Args:
            sheets: Grade sheet repository.
            users: User repository.
            title_rubric: Catalog for group-wide scores.
            individual_rubric: Catalog for per-student scores.
        """
        self._sheets = sheets
        self._users = users
        self._title_rubric = title_rubric
        self._individual_rubric = individual_rubric

    # ==========================================================================
    # Panel assignment
    # ==========================================================================

    def assign_panel(self, sheet_id: str, slot: int, user_id: str, actor: User) -> GradeSheet:
        """
        Put a user in a panel slot, or clear the slot with an empty id.

        Raises:
            AuthorizationError: If the actor may not manage assignments.
            NotFoundError: If the sheet or user does not exist.
            PanelAssignmentError: If the user already holds the other slot.
        """
        require_manager(actor, "assign panels")
        if slot not in PANEL_SLOTS:
            raise ValueError(f"Panel slot must be 1 or 2, got {slot}")
        if user_id:
            self._users.get(user_id)

        other_slot = 2 if slot == 1 else 1

        def change(sheet: GradeSheet) -> GradeSheet:
            if user_id and sheet.panel_id(other_slot) == user_id:
                raise PanelAssignmentError(
                    f"This user is already assigned as Panel {other_slot}. "
                    "Please select a different user."
                )
            return sheet.evolve(**{f"panel{slot}_id": user_id})

        saved = self._sheets.modify(sheet_id, change)
        log.info("panel_assigned", sheet_id=sheet_id, slot=slot, user_id=user_id or None)
        return saved

    # ==========================================================================
    # Group details
    # ==========================================================================

    def save_details(
        self,
        sheet_id: str,
        evaluator_id: str,
        *,
        title: str | None = None,
        program: Program | str | None = None,
        date: str | None = None,
        venue: str | None = None,
    ) -> GradeSheet:
        """
        Let the Panel 1 evaluator fill in the group's defense details.

        Fields left as None are unchanged; blank values reset a field to
        its placeholder. Once title, program, date and venue are all set
        the details are locked. A venue not yet on the venue list is
        added to it.

        Raises:
            AuthorizationError: If the evaluator does not hold Panel 1.
            DetailsLockedError: If all four details were already set.
            ValueError: If the program is unknown.
        """

        def change(sheet: GradeSheet) -> GradeSheet:
            if panel_slot(sheet, evaluator_id) != 1:
                raise AuthorizationError(
                    f"Only the Panel 1 evaluator of {sheet.group_name} can set its details"
                )
            if sheet.details_set:
                raise DetailsLockedError(f"Details of {sheet.group_name} are already set")

            changes: dict = {}
            if title is not None:
                changes["selected_title"] = title.strip() or UNTITLED_PROJECT
            if program is not None:
                changes["program"] = Program(program)
            if date is not None:
                changes["date"] = date.strip() or NOT_SET
            if venue is not None:
                changes["venue"] = venue.strip() or NOT_SET
            return sheet.evolve(**changes)

        saved = self._sheets.modify(sheet_id, change)
        if saved.venue != NOT_SET:
            self._sheets.store.add_venue(saved.venue)
        log.info(
            "details_saved",
            sheet_id=sheet_id,
            evaluator_id=evaluator_id,
            locked=saved.details_set,
        )
        return saved

    # ==========================================================================
    # Grading
    # ==========================================================================

    def save_draft(self, sheet_id: str, evaluator_id: str, grades: PanelGrades) -> GradeSheet:
        """
        Store an evaluator's grades without submitting them.

        Raises:
            NotFoundError: If the sheet does not exist.
            AuthorizationError: If the evaluator holds no slot on the sheet.
            GradesLockedError: If the evaluator already submitted.
        """

        def change(sheet: GradeSheet) -> GradeSheet:
            slot = self._editable_slot(sheet, evaluator_id)
            cleaned = self._clean(sheet, grades).model_copy(update={"submitted": False})
            return sheet.evolve(**{f"panel{slot}_grades": cleaned})

        saved = self._sheets.modify(sheet_id, change)
        log.info("grades_saved", sheet_id=sheet_id, evaluator_id=evaluator_id)
        return saved

    def record_score(
        self,
        sheet_id: str,
        evaluator_id: str,
        item_id: str,
        score: float | None = None,
        *,
        level_range: str | None = None,
        student_id: str | None = None,
    ) -> GradeSheet:
        """
        Set a single score in an evaluator's draft.

        Pass either a numeric ``score`` or the ``level_range`` of one of
        the item's bands (the band's upper bound is awarded). With a
        ``student_id`` the score goes to the individual rubric.

        Raises:
            ValueError: If the item or student is unknown, or neither
                score nor level is given.
            AuthorizationError: If the evaluator holds no slot on the sheet.
            GradesLockedError: If the evaluator already submitted.
        """
        rubric = self._individual_rubric if student_id else self._title_rubric
        item = rubric.get(item_id)
        if item is None:
            raise ValueError(f"Unknown {rubric.title} item: '{item_id}'")
        if level_range is not None:
            value = score_for_level(item, level_range)
        elif score is not None:
            value = clamp_score(score, item.weight)
        else:
            raise ValueError("Either a score or a level range is required")

        def change(sheet: GradeSheet) -> GradeSheet:
            slot = self._editable_slot(sheet, evaluator_id)
            current = sheet.grades(slot) or PanelGrades.empty(sheet.proponents)
            if student_id:
                if sheet.student(student_id) is None:
                    raise ValueError(f"'{student_id}' is not a proponent of {sheet.group_name}")
                individual = {k: dict(v) for k, v in current.individual_scores.items()}
                individual.setdefault(student_id, {})[item.id] = value
                updated = current.model_copy(update={"individual_scores": individual})
            else:
                title = dict(current.title_defense_scores)
                title[item.id] = value
                updated = current.model_copy(update={"title_defense_scores": title})
            return sheet.evolve(**{f"panel{slot}_grades": updated})

        return self._sheets.modify(sheet_id, change)

    def submit(
        self, sheet_id: str, evaluator_id: str, grades: PanelGrades | None = None
    ) -> GradeSheet:
        """
        Submit an evaluator's grades, locking them.

        Args:
            sheet_id: The grade sheet.
            evaluator_id: The submitting panel member.
            grades: Final grades; the stored draft is used when omitted.

        Raises:
            AuthorizationError: If the evaluator holds no slot on the sheet.
            GradesLockedError: If the evaluator already submitted.
            IncompleteGradesError: If any score or the comments are missing.
        """

        def change(sheet: GradeSheet) -> GradeSheet:
            slot = self._editable_slot(sheet, evaluator_id)
            source = grades if grades is not None else sheet.grades(slot)
            cleaned = self._clean(sheet, source or PanelGrades.empty(sheet.proponents))
            missing = self.missing_fields(sheet, cleaned)
            if missing:
                raise IncompleteGradesError(missing)
            final = cleaned.model_copy(update={"submitted": True})
            return sheet.evolve(**{f"panel{slot}_grades": final})

        saved = self._sheets.modify(sheet_id, change)
        log.info(
            "grades_submitted",
            sheet_id=sheet_id,
            evaluator_id=evaluator_id,
            status=saved.status.value,
        )
        return saved

    def missing_fields(self, sheet: GradeSheet, grades: PanelGrades) -> list[str]:
        """List every score or comment a submission still needs."""
        missing: list[str] = []
        for item in self._title_rubric.items:
            if grades.title_defense_scores.get(item.id) is None:
                missing.append(f"- Title Defense: {item.criteria}")
        for student in sheet.proponents:
            scores = grades.individual_scores.get(student.id, {})
            for item in self._individual_rubric.items:
                if scores.get(item.id) is None:
                    missing.append(f"- {student.name}: {item.criteria}")
        if not grades.comments.strip():
            missing.append("- Comments section")
        return missing

    def reset_all_grades(self, actor: User) -> int:
        """
        Remove every score and comment, keeping groups and assignments.

        Returns:
            Number of sheets that had grades.
        """
        require_manager(actor, "reset grades")
        reset = 0
        for sheet in self._sheets.list_all():
            if sheet.panel1_grades is None and sheet.panel2_grades is None:
                continue
            self._sheets.modify(
                sheet.id, lambda s: s.evolve(panel1_grades=None, panel2_grades=None)
            )
            reset += 1
        log.warning("grades_reset", sheets=reset, actor_id=actor.id)
        return reset

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _editable_slot(self, sheet: GradeSheet, evaluator_id: str) -> int:
        slot = panel_slot(sheet, evaluator_id)
        if slot is None:
            raise AuthorizationError(
                f"User '{evaluator_id}' is not a panel evaluator of {sheet.group_name}"
            )
        existing = sheet.grades(slot)
        if existing is not None and existing.submitted:
            raise GradesLockedError(
                f"Panel {slot} grades for {sheet.group_name} were already submitted"
            )
        return slot

    def _clean(self, sheet: GradeSheet, grades: PanelGrades) -> PanelGrades:
        """Keep known items and proponents only, with scores clamped to item weights."""
        title = {
            item.id: clamp_score(grades.title_defense_scores[item.id], item.weight)
            for item in self._title_rubric.items
            if grades.title_defense_scores.get(item.id) is not None
        }

        individual: dict[str, dict[str, float]] = {}
        for student in sheet.proponents:
            scores = grades.individual_scores.get(student.id, {})
            individual[student.id] = {
                item.id: clamp_score(scores[item.id], item.weight)
                for item in self._individual_rubric.items
                if scores.get(item.id) is not None
            }

        dropped = set(grades.individual_scores) - set(individual)
        if dropped:
            log.warning("unknown_students_dropped", sheet_id=sheet.id, student_ids=sorted(dropped))

        return PanelGrades(
            title_defense_scores=title,
            individual_scores=individual,
            comments=grades.comments,
            submitted=grades.submitted,
        )
