"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

from pathlib import Path
from typing import Callable, Generator

import pytest
import structlog

from panelgrade.config import get_settings
from panelgrade.grading import GradingWorkflow
from panelgrade.models import GradeSheet, PanelGrades, Rubric, RubricItem, Student, User
from panelgrade.roster import Roster
from panelgrade.rubric import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC
from panelgrade.store import DEFAULT_USERS, GradeSheetRepository, JsonStore, UserRepository


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo any structlog configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def cli_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point the settings at a temporary store and output directory."""
    data_file = temp_dir / "data" / "panelgrade.json"
    monkeypatch.setenv("DATA_FILE", str(data_file))
    monkeypatch.setenv("OUTPUT_DIRECTORY", str(temp_dir / "output"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.delenv("PANELGRADE_USER", raising=False)
    get_settings.cache_clear()
    yield data_file
    get_settings.cache_clear()


# ==============================================================================
# User Fixtures
# ==============================================================================


def _default_user(user_id: str) -> User:
    return next(u for u in DEFAULT_USERS if u.id == user_id)


@pytest.fixture
def admin() -> User:
    return _default_user("u_admin_01")


@pytest.fixture
def adviser() -> User:
    return _default_user("u_ca_01")


@pytest.fixture
def panel_user_1() -> User:
    return _default_user("u_p_01")


@pytest.fixture
def panel_user_2() -> User:
    return _default_user("u_p_02")


@pytest.fixture
def panel_user_3() -> User:
    return _default_user("u_p_03")


# ==============================================================================
# Store Fixtures
# ==============================================================================


@pytest.fixture
def store(temp_dir: Path) -> JsonStore:
    """A fresh store seeded with the default accounts."""
    return JsonStore(temp_dir / "store.json")


@pytest.fixture
def sheet_repo(store: JsonStore) -> GradeSheetRepository:
    return GradeSheetRepository(store)


@pytest.fixture
def user_repo(store: JsonStore) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def roster(sheet_repo: GradeSheetRepository, user_repo: UserRepository) -> Roster:
    return Roster(sheet_repo, user_repo)


@pytest.fixture
def workflow(sheet_repo: GradeSheetRepository, user_repo: UserRepository) -> GradingWorkflow:
    return GradingWorkflow(sheet_repo, user_repo)


# ==============================================================================
# Grade Sheet Fixtures
# ==============================================================================


@pytest.fixture
def proponents() -> tuple[Student, ...]:
    """Three proponents with fixed ids."""
    return (
        Student(id="s1", name="Ana Reyes"),
        Student(id="s2", name="Ben Cruz"),
        Student(id="s3", name="Carla Santos"),
    )


@pytest.fixture
def sample_sheet(proponents: tuple[Student, ...]) -> GradeSheet:
    """An unsaved, ungraded grade sheet."""
    return GradeSheet(
        group_name="Team Alpha",
        proponents=proponents,
        selected_title="Crop Disease Detection",
    )


@pytest.fixture
def make_grades() -> Callable[..., PanelGrades]:
    """
    Build PanelGrades where every item gets the same fraction of its weight.

    ``make_grades(1.0, comments="ok", submitted=True)`` gives full marks.
    """

    def _make(
        fraction: float = 1.0,
        student_ids: tuple[str, ...] = ("s1", "s2", "s3"),
        comments: str = "Well defended.",
        submitted: bool = False,
    ) -> PanelGrades:
        return PanelGrades(
            title_defense_scores={
                item.id: item.weight * fraction for item in TITLE_DEFENSE_RUBRIC.items
            },
            individual_scores={
                sid: {item.id: item.weight * fraction for item in INDIVIDUAL_GRADE_RUBRIC.items}
                for sid in student_ids
            },
            comments=comments,
            submitted=submitted,
        )

    return _make


@pytest.fixture
def stored_sheet(
    roster: Roster,
    workflow: GradingWorkflow,
    admin: User,
    panel_user_1: User,
    panel_user_2: User,
) -> GradeSheet:
    """A saved three-member group with both panels assigned."""
    sheet = roster.create_group(
        admin,
        "Team Alpha",
        "Ana Reyes, Ben Cruz, Carla Santos",
        selected_title="Crop Disease Detection",
        program="BSCS-AI",
    )
    workflow.assign_panel(sheet.id, 1, panel_user_1.id, admin)
    return workflow.assign_panel(sheet.id, 2, panel_user_2.id, admin)


@pytest.fixture
def single_item_rubric() -> Rubric:
    """A title-defense catalog with one item worth 100 points."""
    return Rubric(title="Single", items=(RubricItem(id="only", criteria="Everything", weight=100),))
