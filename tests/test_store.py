"""
Tests for the JSON store and the repositories.
"""

import json
import threading
from pathlib import Path

import pytest

from panelgrade.errors import ConcurrencyError, DuplicateError, NotFoundError
from panelgrade.models import DEFAULT_VENUES, GradeSheet, PanelGrades, User, UserRole
from panelgrade.status import GradeSheetStatus
from panelgrade.store import (
    DEFAULT_USERS,
    GradeSheetRepository,
    JsonStore,
    StoreError,
    UserRepository,
)


class TestJsonStore:
    """Tests for JsonStore."""

    def test_new_store_is_seeded(self, store: JsonStore) -> None:
        """Test a missing file reads as the default accounts."""
        document = store.read()

        assert [u.id for u in document.users] == [u.id for u in DEFAULT_USERS]
        assert document.grade_sheets == []
        assert not store.path.exists()

    def test_unseeded_store(self, temp_dir: Path) -> None:
        store = JsonStore(temp_dir / "empty.json", seed_defaults=False)
        assert store.read().users == []

    def test_transaction_persists(self, store: JsonStore) -> None:
        with store.transaction() as document:
            document.grade_sheets.append(GradeSheet(group_name="Team"))

        assert store.path.exists()
        assert JsonStore(store.path).read().grade_sheets[0].group_name == "Team"

    def test_failed_transaction_leaves_file(self, store: JsonStore) -> None:
        """Test an exception inside the block discards the changes."""
        with store.transaction() as document:
            document.grade_sheets.append(GradeSheet(group_name="Kept"))

        with pytest.raises(RuntimeError):
            with store.transaction() as document:
                document.grade_sheets.clear()
                raise RuntimeError("boom")

        assert len(store.read().grade_sheets) == 1

    def test_corrupt_file(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError, match="corrupted"):
            JsonStore(path).read()

    def test_file_is_plain_json(self, store: JsonStore) -> None:
        with store.transaction():
            pass

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert set(data) == {"users", "grade_sheets", "venues"}
        assert not store.path.with_name(store.path.name + ".tmp").exists()

    def test_backup_and_restore(self, store: JsonStore, admin: User) -> None:
        """Test restore replaces the whole document."""
        with store.transaction() as document:
            document.grade_sheets.append(GradeSheet(group_name="Before"))
        snapshot = store.backup()

        with store.transaction() as document:
            document.grade_sheets.append(GradeSheet(group_name="After"))
            document.users = [admin]

        store.restore(snapshot)
        document = store.read()

        assert [s.group_name for s in document.grade_sheets] == ["Before"]
        assert len(document.users) == len(DEFAULT_USERS)

    def test_default_venues(self, store: JsonStore) -> None:
        assert store.venues() == list(DEFAULT_VENUES)

    def test_add_venue(self, store: JsonStore) -> None:
        assert store.add_venue(" Room 301 ")
        assert not store.add_venue("Room 301")
        assert not store.add_venue("   ")

        assert JsonStore(store.path).venues() == [*DEFAULT_VENUES, "Room 301"]

    def test_backup_keeps_venues(self, store: JsonStore) -> None:
        store.add_venue("Room 301")
        snapshot = store.backup()

        with store.transaction() as document:
            document.venues = []
        store.restore(snapshot)

        assert "Room 301" in store.venues()


class TestGradeSheetRepository:
    """Tests for GradeSheetRepository."""

    def test_create_assigns_id_and_version(self, sheet_repo: GradeSheetRepository) -> None:
        created = sheet_repo.create(GradeSheet(group_name="Team"))

        assert created.id.startswith("gs_")
        assert created.version == 1
        assert sheet_repo.get(created.id) == created

    def test_list_all_ordered_by_name(self, sheet_repo: GradeSheetRepository) -> None:
        for name in ("charlie", "Alpha", "bravo"):
            sheet_repo.create(GradeSheet(group_name=name))

        assert [s.group_name for s in sheet_repo.list_all()] == ["Alpha", "bravo", "charlie"]

    def test_get_missing(self, sheet_repo: GradeSheetRepository) -> None:
        with pytest.raises(NotFoundError, match="Grade sheet 'nope' not found"):
            sheet_repo.get("nope")

    def test_find_by_group_name(self, sheet_repo: GradeSheetRepository) -> None:
        created = sheet_repo.create(GradeSheet(group_name="Team Alpha"))

        assert sheet_repo.find_by_group_name("  team ALPHA ") == created
        assert sheet_repo.find_by_group_name("Team Beta") is None

    def test_update_bumps_version(self, sheet_repo: GradeSheetRepository) -> None:
        created = sheet_repo.create(GradeSheet(group_name="Team"))
        updated = sheet_repo.update(created.evolve(venue="Room 1"))

        assert updated.version == 2
        assert sheet_repo.get(created.id).venue == "Room 1"

    def test_stale_update_rejected(self, sheet_repo: GradeSheetRepository) -> None:
        """Test a write based on an old read is refused."""
        created = sheet_repo.create(GradeSheet(group_name="Team"))
        sheet_repo.update(created.evolve(venue="Room 1"))

        with pytest.raises(ConcurrencyError) as exc_info:
            sheet_repo.update(created.evolve(venue="Room 2"))

        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2
        assert sheet_repo.get(created.id).venue == "Room 1"

    def test_update_recomputes_status(self, sheet_repo: GradeSheetRepository) -> None:
        created = sheet_repo.create(GradeSheet(group_name="Team"))
        updated = sheet_repo.update(
            created.evolve(panel1_grades=PanelGrades(comments="x", submitted=True))
        )

        assert updated.status == GradeSheetStatus.PANEL_1_SUBMITTED

    def test_modify_sees_latest_grades(self, sheet_repo: GradeSheetRepository) -> None:
        """Test two panels submitting one after the other end COMPLETED."""
        created = sheet_repo.create(GradeSheet(group_name="Team"))
        done = PanelGrades(comments="x", submitted=True)

        sheet_repo.modify(created.id, lambda s: s.evolve(panel1_grades=done))
        final = sheet_repo.modify(created.id, lambda s: s.evolve(panel2_grades=done))

        assert final.status == GradeSheetStatus.COMPLETED
        assert final.version == 3

    def test_separate_stores_on_one_file(self, store: JsonStore) -> None:
        """Test a write through a second store waits for the first and keeps both panels."""
        repo_a = GradeSheetRepository(store)
        repo_b = GradeSheetRepository(JsonStore(store.path))
        created = repo_a.create(GradeSheet(group_name="Team"))
        done = PanelGrades(comments="x", submitted=True)

        other = threading.Thread(
            target=repo_b.modify,
            args=(created.id, lambda s: s.evolve(panel2_grades=done)),
        )

        def submit_panel1(sheet: GradeSheet) -> GradeSheet:
            other.start()
            other.join(timeout=0.3)
            assert other.is_alive()
            return sheet.evolve(panel1_grades=done)

        repo_a.modify(created.id, submit_panel1)
        other.join(timeout=5)

        stored = repo_a.get(created.id)
        assert not other.is_alive()
        assert stored.status == GradeSheetStatus.COMPLETED
        assert stored.panel1_grades == done
        assert stored.panel2_grades == done
        assert stored.version == 3

    def test_for_panel(self, sheet_repo: GradeSheetRepository) -> None:
        a = sheet_repo.create(GradeSheet(group_name="A", panel1_id="u_p_01"))
        sheet_repo.create(GradeSheet(group_name="B", panel1_id="u_p_02"))
        c = sheet_repo.create(GradeSheet(group_name="C", panel2_id="u_p_01"))

        assert [s.id for s in sheet_repo.for_panel("u_p_01")] == [a.id, c.id]

    def test_delete(self, sheet_repo: GradeSheetRepository) -> None:
        created = sheet_repo.create(GradeSheet(group_name="Team"))
        sheet_repo.delete(created.id)

        with pytest.raises(NotFoundError):
            sheet_repo.get(created.id)
        with pytest.raises(NotFoundError):
            sheet_repo.delete(created.id)

    def test_delete_all(self, sheet_repo: GradeSheetRepository) -> None:
        sheet_repo.create(GradeSheet(group_name="A"))
        sheet_repo.create(GradeSheet(group_name="B"))

        assert sheet_repo.delete_all() == 2
        assert sheet_repo.list_all() == []


class TestUserRepository:
    """Tests for UserRepository."""

    def test_list_all_ordered_by_name(self, user_repo: UserRepository) -> None:
        names = [u.name for u in user_repo.list_all()]
        assert names == sorted(names, key=str.lower)

    def test_create(self, user_repo: UserRepository) -> None:
        created = user_repo.create(User(name="Dana", email="dana@example.com"))

        assert created.id.startswith("u_")
        assert user_repo.find_by_email("DANA@example.com") == created

    def test_duplicate_email(self, user_repo: UserRepository) -> None:
        with pytest.raises(DuplicateError, match="already exists"):
            user_repo.create(User(name="Other", email="Admin@Example.com"))

    def test_update(self, user_repo: UserRepository) -> None:
        user = user_repo.get("u_p_01")
        user_repo.update(user.model_copy(update={"name": "Renamed"}))

        assert user_repo.get("u_p_01").name == "Renamed"

    def test_update_to_taken_email(self, user_repo: UserRepository) -> None:
        user = user_repo.get("u_p_01")
        taken = User(id=user.id, name=user.name, email="panel2@example.com")

        with pytest.raises(DuplicateError):
            user_repo.update(taken)

    def test_get_missing(self, user_repo: UserRepository) -> None:
        with pytest.raises(NotFoundError, match="User 'ghost' not found"):
            user_repo.get("ghost")
        assert user_repo.find("ghost") is None

    def test_delete_where(self, user_repo: UserRepository) -> None:
        removed = user_repo.delete_where(lambda u: u.role == UserRole.PANEL)

        assert removed == 3
        assert {u.role for u in user_repo.list_all()} == {UserRole.ADMIN, UserRole.COURSE_ADVISER}
