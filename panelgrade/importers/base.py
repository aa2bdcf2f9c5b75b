"""
Base classes for group spreadsheet readers.

Defines the interface every reader implements: turn a file into a list
of rows of cell strings, the first row being the header.
"""

import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, computed_field

from panelgrade.errors import PanelGradeError


class GroupImportError(PanelGradeError):
    """
    Raised when a group spreadsheet cannot be imported at all.

    Row-level problems do not raise; they are collected in the
    ImportReport instead.
    """

    def __init__(self, message: str, file_path: str | Path, cause: Exception | None = None):
        self.file_path = str(file_path)
        self.cause = cause
        super().__init__(f"Failed to import '{file_path}': {message}")


class ImportReport(BaseModel):
    """Outcome of a group import."""

    added: list[str] = Field(default_factory=list, description="Names of the groups created")

    errors: list[str] = Field(default_factory=list, description="One message per skipped row")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def added_count(self) -> int:
        return len(self.added)

    def summary(self) -> str:
        """Human-readable result, one error per line."""
        message = f"{self.added_count} group(s) added successfully."
        if self.errors:
            message += "\n\nErrors during import:\n" + "\n".join(self.errors)
        return message


class SpreadsheetReader(ABC):
    """
    Abstract base class for spreadsheet readers.

    Subclasses declare the extensions they handle in
    `SUPPORTED_EXTENSIONS` and implement `read_rows`.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def supports(cls, file_path: Path) -> bool:
        """Check whether this reader handles the file's extension."""
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS

    @abstractmethod
    def read_rows(self, file_path: Path) -> list[list[str]]:
        """
        Read the first sheet of the file.

        Args:
            file_path: Path to the spreadsheet.

        Returns:
            Rows of stripped cell strings; empty cells are ''.

        Raises:
            GroupImportError: If the file cannot be read.
        """
        ...

    def _validate_file(self, file_path: Path) -> None:
        if not file_path.exists():
            raise GroupImportError("File does not exist", file_path)

        if not file_path.is_file():
            raise GroupImportError("Path is not a file", file_path)

        if not self.supports(file_path):
            raise GroupImportError(
                f"Unsupported file format. Expected one of: {self.SUPPORTED_EXTENSIONS}",
                file_path,
            )

    @staticmethod
    def _cell_text(value: object) -> str:
        if value is None:
            return ""
        if isinstance(value, float):
            if math.isnan(value):
                return ""
            if value.is_integer():
                return str(int(value))
        return str(value).strip()
