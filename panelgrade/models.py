"""
Pydantic models for the Panel Grader system.

These models define the schemas for:
- Rubric items and their scoring bands
- Panel grades, students and grade sheets
- Users and their roles
- Aggregated score results
- Full-store backups

Models are frozen; changes produce new instances so that a grade sheet's
derived status is recomputed every time one is built.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from panelgrade.status import GradeSheetStatus, derive_status

UNTITLED_PROJECT = "Untitled Project"
NOT_SET = "Not Set"
DEFAULT_VENUES = ("Room 404", "Room 405", "Auditorium")


# ==============================================================================
# Rubric Models
# ==============================================================================


class RubricLevel(BaseModel):
    """A descriptive scoring band of a rubric item (e.g. '30-35 points')."""

    model_config = ConfigDict(frozen=True)

    range: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class RubricItem(BaseModel):
    """
    A single weighted criterion.

    The weight is the maximum number of points a panel can award for it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=50)

    criteria: str = Field(
        ...,
        min_length=1,
        description="What the panel evaluates for this item",
    )

    weight: float = Field(
        ...,
        gt=0,
        description="Maximum points for this item",
    )

    levels: tuple[RubricLevel, ...] = Field(
        default=(),
        description="Scoring bands, highest first",
    )


class Rubric(BaseModel):
    """
    A named catalog of rubric items.

    Item ids must be unique within a catalog.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)

    items: tuple[RubricItem, ...] = Field(default=())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_weight(self) -> float:
        """Sum of all item weights."""
        return sum(item.weight for item in self.items)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "Rubric":
        """Ensure no duplicate item ids."""
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            duplicates = {i for i in ids if ids.count(i) > 1}
            raise ValueError(f"Duplicate rubric item ids found: {duplicates}")
        return self

    def get(self, item_id: str) -> RubricItem | None:
        """Look up an item by id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None


# ==============================================================================
# Grade Sheet Models
# ==============================================================================


class Program(str, Enum):
    """Degree program of a group."""

    UNSET = ""
    BSCS_AI = "BSCS-AI"
    BSCS_DS = "BSCS-DS"
    BSCS_SE = "BSCS-SE"


class Student(BaseModel):
    """A proponent. The id stays stable across group edits."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)


class PanelGrades(BaseModel):
    """
    Everything one panel evaluator recorded on one grade sheet.

    Scores are keyed by rubric item id; individual scores are keyed by
    student id first. Once ``submitted`` is set the grades are read-only.
    """

    model_config = ConfigDict(frozen=True)

    title_defense_scores: dict[str, float] = Field(default_factory=dict)

    individual_scores: dict[str, dict[str, float]] = Field(default_factory=dict)

    comments: str = ""

    submitted: bool = False

    @classmethod
    def empty(cls, proponents: "tuple[Student, ...] | list[Student]" = ()) -> "PanelGrades":
        """Create blank grades with an empty score map per proponent."""
        return cls(individual_scores={p.id: {} for p in proponents})


class GradeSheet(BaseModel):
    """
    A group's defense record: proponents, panel assignment and grades.

    ``status`` is always derived from the two grade objects; any value
    passed in is replaced during validation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Assigned by the repository on create")

    group_name: str = Field(..., min_length=1, max_length=100)

    proponents: tuple[Student, ...] = Field(default=())

    proposed_titles: tuple[str, ...] = Field(default=())

    selected_title: str = Field(default=UNTITLED_PROJECT)

    program: Program = Field(default=Program.UNSET)

    date: str = Field(default=NOT_SET)

    venue: str = Field(default=NOT_SET)

    panel1_id: str = Field(default="", description="User id of panel 1, empty if unassigned")

    panel2_id: str = Field(default="", description="User id of panel 2, empty if unassigned")

    panel1_grades: PanelGrades | None = None

    panel2_grades: PanelGrades | None = None

    status: GradeSheetStatus = Field(default=GradeSheetStatus.NOT_STARTED)

    version: int = Field(default=0, ge=0, description="Optimistic concurrency token")

    @field_validator("group_name")
    @classmethod
    def strip_group_name(cls, v: str) -> str:
        """Group names are compared case-insensitively, so keep them trimmed."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Group name cannot be blank")
        return stripped

    @model_validator(mode="after")
    def validate_distinct_panels(self) -> "GradeSheet":
        """No evaluator may hold both panel slots."""
        if self.panel1_id and self.panel1_id == self.panel2_id:
            raise ValueError(
                f"User '{self.panel1_id}' cannot be assigned as both Panel 1 and Panel 2"
            )
        return self

    @model_validator(mode="after")
    def validate_unique_students(self) -> "GradeSheet":
        """Ensure no duplicate student ids."""
        ids = [student.id for student in self.proponents]
        if len(ids) != len(set(ids)):
            duplicates = {i for i in ids if ids.count(i) > 1}
            raise ValueError(f"Duplicate student ids found: {duplicates}")
        return self

    @model_validator(mode="after")
    def set_status(self) -> "GradeSheet":
        """Recompute status from the current grades."""
        # Use object.__setattr__ because model is frozen
        object.__setattr__(self, "status", derive_status(self.panel1_grades, self.panel2_grades))
        return self

    def evolve(self, **changes: Any) -> "GradeSheet":
        """
        Return a copy with the given fields replaced.

        Unlike ``model_copy`` this re-runs validation, so the status
        and the panel invariant always hold on the result.
        """
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def panel_id(self, slot: int) -> str:
        """User id assigned to panel slot 1 or 2."""
        return self.panel1_id if slot == 1 else self.panel2_id

    def grades(self, slot: int) -> PanelGrades | None:
        """Grades recorded by panel slot 1 or 2."""
        return self.panel1_grades if slot == 1 else self.panel2_grades

    @property
    def details_set(self) -> bool:
        """Whether title, program, date and venue have all been filled in."""
        return (
            self.selected_title not in ("", UNTITLED_PROJECT)
            and self.program != Program.UNSET
            and self.date != NOT_SET
            and self.venue != NOT_SET
        )

    def student(self, student_id: str) -> Student | None:
        """Look up a proponent by id."""
        for student in self.proponents:
            if student.id == student_id:
                return student
        return None


# ==============================================================================
# User Models
# ==============================================================================


class UserRole(str, Enum):
    """Static roles; there is no finer-grained permission model."""

    ADMIN = "Admin"
    COURSE_ADVISER = "Course Adviser"
    PANEL = "Panel"


class User(BaseModel):
    """An account that can manage the system or sit on a panel."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Assigned by the repository on create")

    name: str = Field(..., min_length=1, max_length=100)

    email: str = Field(..., min_length=3, max_length=100)

    role: UserRole = Field(default=UserRole.PANEL)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lowercase the address and require an '@'."""
        email = v.strip().lower()
        if "@" not in email:
            raise ValueError(f"Invalid email address: {v}")
        return email

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_manager(self) -> bool:
        """Whether the user may manage groups, users and assignments."""
        return self.role in (UserRole.ADMIN, UserRole.COURSE_ADVISER)


# ==============================================================================
# Score Result Models
# ==============================================================================


class PanelScores(BaseModel):
    """One panel's weighted sub-totals for a group."""

    model_config = ConfigDict(frozen=True)

    title_defense_weighted: float = 0.0

    individual_weighted: dict[str, float] = Field(default_factory=dict)

    def total_for(self, student_id: str) -> float:
        """The panel's total for one student (title defense plus individual)."""
        return self.title_defense_weighted + self.individual_weighted.get(student_id, 0.0)


class StudentScore(BaseModel):
    """Weighted parts and final score of one proponent."""

    model_config = ConfigDict(frozen=True)

    p1_title: float
    p1_indiv: float
    p2_title: float
    p2_indiv: float
    final_score: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def p1_total(self) -> float:
        """Panel 1 total for the student."""
        return self.p1_title + self.p1_indiv

    @computed_field  # type: ignore[prop-decorator]
    @property
    def p2_total(self) -> float:
        """Panel 2 total for the student."""
        return self.p2_title + self.p2_indiv


class FinalScores(BaseModel):
    """Per-student and group final scores of a grade sheet."""

    model_config = ConfigDict(frozen=True)

    per_student: dict[str, StudentScore] = Field(default_factory=dict)

    group_final_score: float = 0.0


class Remark(str, Enum):
    """Outcome of a completed defense."""

    PASSED = "Passed"
    FAILED = "Failed"


# ==============================================================================
# Backup Models
# ==============================================================================


class Backup(BaseModel):
    """A full snapshot of the store, used for backup and restore."""

    model_config = ConfigDict(frozen=True)

    users: tuple[User, ...] = Field(default=())

    grade_sheets: tuple[GradeSheet, ...] = Field(default=())

    venues: tuple[str, ...] = Field(default=DEFAULT_VENUES)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the snapshot was taken",
    )
