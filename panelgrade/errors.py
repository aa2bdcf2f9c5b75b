"""
Exception hierarchy for the Panel Grader system.

The aggregation core never raises; these errors belong to the layers
around it (storage, workflow, import, rubric checks). Each carries the
structured context a caller needs to report the failure.
"""


class PanelGradeError(Exception):
    """Base class for all Panel Grader errors."""


class NotFoundError(PanelGradeError):
    """Raised when a user or grade sheet id does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")


class ConcurrencyError(PanelGradeError):
    """Raised when a grade sheet was written by someone else since it was read."""

    def __init__(self, record_id: str, expected: int, actual: int):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Grade sheet '{record_id}' changed concurrently "
            f"(expected version {expected}, found {actual})"
        )


class DuplicateError(PanelGradeError):
    """Raised when a unique field (user email, group name) is already taken."""


class AuthorizationError(PanelGradeError):
    """Raised when a user's role does not permit an action."""


class PanelAssignmentError(PanelGradeError):
    """Raised when a panel assignment would break the two-distinct-panels rule."""


class GradesLockedError(PanelGradeError):
    """Raised when an evaluator edits grades that were already submitted."""


class DetailsLockedError(PanelGradeError):
    """Raised when group details are changed after all of them were set."""


class IncompleteGradesError(PanelGradeError):
    """Raised when a submission is missing scores or comments."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        message = "Please complete all required fields:\n" + "\n".join(missing)
        super().__init__(message)
