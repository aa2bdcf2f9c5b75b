"""
Group and account management.

Managers (admins and course advisers) maintain groups; only admins
maintain accounts. Student ids are kept by position when a group's
proponent list is edited, so scores already recorded for a student
follow them through renames.
"""

from typing import Sequence

import structlog

from panelgrade.access import panel_candidates, require_admin, require_manager
from panelgrade.errors import DuplicateError, GradesLockedError
from panelgrade.models import (
    NOT_SET,
    UNTITLED_PROJECT,
    GradeSheet,
    PanelGrades,
    Program,
    Student,
    User,
    UserRole,
)
from panelgrade.store.repository import GradeSheetRepository, UserRepository, new_id

log = structlog.get_logger(__name__)


def split_names(names: str | Sequence[str]) -> list[str]:
    """Accept 'A, B, C' or a list of names; drop blanks."""
    if isinstance(names, str):
        names = names.split(",")
    return [name.strip() for name in names if name and name.strip()]


def build_proponents(
    names: Sequence[str], existing: Sequence[Student] = ()
) -> tuple[Student, ...]:
    """
    Turn names into students, reusing the id held at the same position.

    Args:
        names: Proponent names in display order.
        existing: The group's current proponents.

    Returns:
        Tuple of Student with stable ids for unchanged positions.
    """
    students = []
    for index, name in enumerate(names):
        student_id = existing[index].id if index < len(existing) else new_id("s")
        students.append(Student(id=student_id, name=name))
    return tuple(students)


def _prune_grades(grades: PanelGrades | None, keep: set[str]) -> PanelGrades | None:
    if grades is None:
        return None
    individual = {sid: scores for sid, scores in grades.individual_scores.items() if sid in keep}
    return grades.model_copy(update={"individual_scores": individual})


def _ensure_no_submission(sheet: GradeSheet) -> None:
    for slot in (1, 2):
        grades = sheet.grades(slot)
        if grades is not None and grades.submitted:
            raise GradesLockedError(
                f"Proponents of {sheet.group_name} cannot be added or removed "
                f"after Panel {slot} submitted"
            )


class Roster:
    """Create, edit and delete groups and accounts."""

    def __init__(self, sheets: GradeSheetRepository, users: UserRepository):
        self._sheets = sheets
        self._users = users

    # ==========================================================================
    # Groups
    # ==========================================================================

    def create_group(
        self,
        actor: User,
        group_name: str,
        proponents: str | Sequence[str],
        *,
        selected_title: str = "",
        program: Program | str = Program.UNSET,
        date: str = "",
        venue: str = "",
        proposed_titles: Sequence[str] = (),
    ) -> GradeSheet:
        """
        Add a group with a fresh, ungraded grade sheet.

        Raises:
            AuthorizationError: If the actor is not a manager.
            DuplicateError: If a group with the same name exists.
        """
        require_manager(actor, "create groups")
        self._ensure_unique_name(group_name)

        sheet = GradeSheet(
            group_name=group_name,
            proponents=build_proponents(split_names(proponents)),
            proposed_titles=tuple(proposed_titles),
            selected_title=selected_title.strip() or UNTITLED_PROJECT,
            program=Program(program),
            date=date.strip() or NOT_SET,
            venue=venue.strip() or NOT_SET,
        )
        return self._sheets.create(sheet)

    def update_group(
        self,
        actor: User,
        sheet_id: str,
        *,
        group_name: str | None = None,
        proponents: str | Sequence[str] | None = None,
        selected_title: str | None = None,
        program: Program | str | None = None,
        date: str | None = None,
        venue: str | None = None,
    ) -> GradeSheet:
        """
        Edit a group's details; fields left as None are unchanged.

        Renaming proponents keeps their scores. Adding or removing
        proponents is refused once either panel has submitted; before
        that, scores of removed students are dropped.

        Raises:
            AuthorizationError: If the actor is not a manager.
            NotFoundError: If the sheet does not exist.
            DuplicateError: If the new name belongs to another group.
            GradesLockedError: If proponents are added or removed after a
                panel submitted.
        """
        require_manager(actor, "edit groups")
        if group_name is not None:
            self._ensure_unique_name(group_name, exclude_id=sheet_id)

        def change(sheet: GradeSheet) -> GradeSheet:
            changes: dict = {}
            if group_name is not None:
                changes["group_name"] = group_name
            if selected_title is not None:
                changes["selected_title"] = selected_title.strip() or UNTITLED_PROJECT
            if program is not None:
                changes["program"] = Program(program)
            if date is not None:
                changes["date"] = date.strip() or NOT_SET
            if venue is not None:
                changes["venue"] = venue.strip() or NOT_SET
            if proponents is not None:
                students = build_proponents(split_names(proponents), sheet.proponents)
                keep = {s.id for s in students}
                if keep != {s.id for s in sheet.proponents}:
                    _ensure_no_submission(sheet)
                changes["proponents"] = students
                changes["panel1_grades"] = _prune_grades(sheet.panel1_grades, keep)
                changes["panel2_grades"] = _prune_grades(sheet.panel2_grades, keep)
            return sheet.evolve(**changes)

        saved = self._sheets.modify(sheet_id, change)
        log.info("group_updated", sheet_id=sheet_id, group=saved.group_name)
        return saved

    def delete_group(self, actor: User, sheet_id: str) -> None:
        """Delete a group and all of its grades."""
        require_manager(actor, "delete groups")
        self._sheets.delete(sheet_id)

    def delete_all_groups(self, actor: User) -> int:
        """Delete every group; returns how many were removed."""
        require_manager(actor, "delete groups")
        return self._sheets.delete_all()

    def group_exists(self, group_name: str) -> bool:
        """Whether a group with this name exists (case-insensitive)."""
        return self._sheets.find_by_group_name(group_name) is not None

    def _ensure_unique_name(self, group_name: str, exclude_id: str | None = None) -> None:
        existing = self._sheets.find_by_group_name(group_name)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateError(f'Group "{existing.group_name}" already exists')

    # ==========================================================================
    # Accounts
    # ==========================================================================

    def add_user(
        self, actor: User, name: str, email: str, role: UserRole | str = UserRole.PANEL
    ) -> User:
        """
        Register an account.

        Raises:
            AuthorizationError: If the actor is not an admin.
            DuplicateError: If the email is taken.
        """
        require_admin(actor, "add users")
        return self._users.create(User(name=name, email=email, role=UserRole(role)))

    def update_user(
        self,
        actor: User,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        role: UserRole | str | None = None,
    ) -> User:
        """Edit an account; fields left as None are unchanged."""
        require_admin(actor, "edit users")
        current = self._users.get(user_id)
        data = current.model_dump(exclude={"is_manager"})
        if name is not None:
            data["name"] = name
        if email is not None:
            data["email"] = email
        if role is not None:
            data["role"] = UserRole(role)
        return self._users.update(User.model_validate(data))

    def delete_user(self, actor: User, user_id: str) -> None:
        """
        Delete an account and clear any panel slot it held.

        Raises:
            AuthorizationError: If the actor is not an admin.
            NotFoundError: If the user does not exist.
        """
        require_admin(actor, "delete users")
        self._users.delete(user_id)
        self._clear_assignments({user_id})

    def delete_non_admin_users(self, actor: User) -> int:
        """Delete every account except admins; returns how many were removed."""
        require_admin(actor, "delete users")
        removed_ids = {u.id for u in self._users.list_all() if u.role != UserRole.ADMIN}
        count = self._users.delete_where(lambda u: u.role != UserRole.ADMIN)
        self._clear_assignments(removed_ids)
        return count

    def panel_candidates(self) -> list[User]:
        """Users that can be assigned to a panel slot."""
        return panel_candidates(self._users.list_all())

    def _clear_assignments(self, user_ids: set[str]) -> None:
        for sheet in self._sheets.list_all():
            changes = {}
            if sheet.panel1_id in user_ids:
                changes["panel1_id"] = ""
            if sheet.panel2_id in user_ids:
                changes["panel2_id"] = ""
            if changes:
                self._sheets.modify(sheet.id, lambda s, c=changes: s.evolve(**c))
                log.info("panel_unassigned", sheet_id=sheet.id, slots=sorted(changes))
