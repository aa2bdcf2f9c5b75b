"""
Repositories for grade sheets and users.

Records are read and written as whole documents keyed by id. Grade
sheet writes carry a version token: a write based on a stale read is
rejected, and the status saved is always the one derived from the
merged grades, so two panels submitting at once cannot leave a stale
status behind.
"""

from typing import Callable
from uuid import uuid4

import structlog

from panelgrade.errors import ConcurrencyError, DuplicateError, NotFoundError
from panelgrade.models import GradeSheet, User
from panelgrade.store.json_store import JsonStore

log = structlog.get_logger(__name__)


def new_id(prefix: str) -> str:
    """Generate a record id such as 'gs_3f2a9c1d0b7e'."""
    return f"{prefix}_{uuid4().hex[:12]}"


class GradeSheetRepository:
    """List, get, create, update and delete grade sheets."""

    def __init__(self, store: JsonStore):
        self._store = store

    @property
    def store(self) -> JsonStore:
        return self._store

    def list_all(self) -> list[GradeSheet]:
        """All grade sheets, ordered by group name."""
        sheets = self._store.read().grade_sheets
        return sorted(sheets, key=lambda s: s.group_name.lower())

    def get(self, sheet_id: str) -> GradeSheet:
        """
        Fetch a grade sheet by id.

        Raises:
            NotFoundError: If no sheet has this id.
        """
        for sheet in self._store.read().grade_sheets:
            if sheet.id == sheet_id:
                return sheet
        raise NotFoundError("Grade sheet", sheet_id)

    def find_by_group_name(self, group_name: str) -> GradeSheet | None:
        """Case-insensitive lookup by group name."""
        wanted = group_name.strip().lower()
        for sheet in self._store.read().grade_sheets:
            if sheet.group_name.lower() == wanted:
                return sheet
        return None

    def for_panel(self, user_id: str) -> list[GradeSheet]:
        """Sheets on which the user holds either panel slot."""
        return [s for s in self.list_all() if user_id in (s.panel1_id, s.panel2_id)]

    def create(self, sheet: GradeSheet) -> GradeSheet:
        """
        Store a new grade sheet.

        The repository assigns the id and the first version; the status
        is derived from whatever grades the sheet carries.
        """
        created = sheet.evolve(id=new_id("gs"), version=1)
        with self._store.transaction() as document:
            document.grade_sheets.append(created)
        log.info("grade_sheet_created", sheet_id=created.id, group=created.group_name)
        return created

    def update(self, sheet: GradeSheet) -> GradeSheet:
        """
        Replace a stored grade sheet with ``sheet``.

        ``sheet.version`` must match the stored version, i.e. the caller
        must have read the latest copy.

        Raises:
            NotFoundError: If the sheet does not exist.
            ConcurrencyError: If the stored sheet changed since it was read.
        """
        with self._store.transaction() as document:
            index, current = self._locate(document.grade_sheets, sheet.id)
            if current.version != sheet.version:
                raise ConcurrencyError(sheet.id, sheet.version, current.version)
            saved = sheet.evolve(version=current.version + 1)
            document.grade_sheets[index] = saved
        self._log_transition(current, saved)
        return saved

    def modify(self, sheet_id: str, change: Callable[[GradeSheet], GradeSheet]) -> GradeSheet:
        """
        Apply ``change`` to the latest stored sheet and save the result.

        The read, the change and the write happen under the store lock,
        so the change always sees the current grades of both panels.

        Raises:
            NotFoundError: If the sheet does not exist.
        """
        with self._store.transaction() as document:
            index, current = self._locate(document.grade_sheets, sheet_id)
            changed = change(current)
            saved = changed.evolve(id=current.id, version=current.version + 1)
            document.grade_sheets[index] = saved
        self._log_transition(current, saved)
        return saved

    def delete(self, sheet_id: str) -> None:
        """
        Delete a grade sheet together with its embedded grades.

        Raises:
            NotFoundError: If the sheet does not exist.
        """
        with self._store.transaction() as document:
            index, _ = self._locate(document.grade_sheets, sheet_id)
            del document.grade_sheets[index]
        log.info("grade_sheet_deleted", sheet_id=sheet_id)

    def delete_all(self) -> int:
        """Delete every grade sheet; returns how many were removed."""
        with self._store.transaction() as document:
            count = len(document.grade_sheets)
            document.grade_sheets.clear()
        log.warning("grade_sheets_deleted", count=count)
        return count

    def _locate(self, sheets: list[GradeSheet], sheet_id: str) -> tuple[int, GradeSheet]:
        for index, sheet in enumerate(sheets):
            if sheet.id == sheet_id:
                return index, sheet
        raise NotFoundError("Grade sheet", sheet_id)

    def _log_transition(self, before: GradeSheet, after: GradeSheet) -> None:
        if before.status != after.status:
            log.info(
                "grade_sheet_status_changed",
                sheet_id=after.id,
                old_status=before.status.value,
                new_status=after.status.value,
            )
        else:
            log.debug("grade_sheet_updated", sheet_id=after.id, version=after.version)


class UserRepository:
    """List, get, create, update and delete users."""

    def __init__(self, store: JsonStore):
        self._store = store

    def list_all(self) -> list[User]:
        """All users, ordered by name."""
        return sorted(self._store.read().users, key=lambda u: u.name.lower())

    def get(self, user_id: str) -> User:
        """
        Fetch a user by id.

        Raises:
            NotFoundError: If no user has this id.
        """
        for user in self._store.read().users:
            if user.id == user_id:
                return user
        raise NotFoundError("User", user_id)

    def find(self, user_id: str) -> User | None:
        """Fetch a user by id, or None."""
        for user in self._store.read().users:
            if user.id == user_id:
                return user
        return None

    def find_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup by email."""
        wanted = email.strip().lower()
        for user in self._store.read().users:
            if user.email == wanted:
                return user
        return None

    def create(self, user: User) -> User:
        """
        Store a new user with a fresh id.

        Raises:
            DuplicateError: If the email is already registered.
        """
        created = user.model_copy(update={"id": new_id("u")})
        with self._store.transaction() as document:
            if any(u.email == created.email for u in document.users):
                raise DuplicateError(f"A user with email '{created.email}' already exists")
            document.users.append(created)
        log.info("user_created", user_id=created.id, role=created.role.value)
        return created

    def update(self, user: User) -> User:
        """
        Replace a stored user.

        Raises:
            NotFoundError: If the user does not exist.
            DuplicateError: If the new email belongs to another user.
        """
        with self._store.transaction() as document:
            index = self._index(document.users, user.id)
            if any(u.email == user.email and u.id != user.id for u in document.users):
                raise DuplicateError(f"A user with email '{user.email}' already exists")
            document.users[index] = user
        log.info("user_updated", user_id=user.id)
        return user

    def delete(self, user_id: str) -> None:
        """
        Delete a user.

        Raises:
            NotFoundError: If the user does not exist.
        """
        with self._store.transaction() as document:
            del document.users[self._index(document.users, user_id)]
        log.info("user_deleted", user_id=user_id)

    def delete_where(self, predicate: Callable[[User], bool]) -> int:
        """Delete every user matching ``predicate``; returns how many were removed."""
        with self._store.transaction() as document:
            keep = [u for u in document.users if not predicate(u)]
            removed = len(document.users) - len(keep)
            document.users[:] = keep
        log.warning("users_deleted", count=removed)
        return removed

    def _index(self, users: list[User], user_id: str) -> int:
        for index, user in enumerate(users):
            if user.id == user_id:
                return index
        raise NotFoundError("User", user_id)
