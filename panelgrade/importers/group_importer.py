"""
Bulk group import from a spreadsheet.

The header row must have a 'Group Name' (or 'GroupName') column; the
cells right after it hold the proponents, and an optional 'Program'
column holds the degree program. Bad rows are skipped and reported,
good rows become new grade sheets.
"""

from pathlib import Path
from typing import Sequence

import structlog
from pydantic import ValidationError

from panelgrade.config import get_settings
from panelgrade.errors import DuplicateError
from panelgrade.importers.base import GroupImportError, ImportReport
from panelgrade.importers.factory import create_reader
from panelgrade.models import Program, User
from panelgrade.roster import Roster

log = structlog.get_logger(__name__)


def _normalize_header(text: str) -> str:
    return "".join(text.split()).lower()


class GroupImporter:
    """
    Creates groups from spreadsheet rows.

    Example:
        >>> importer = GroupImporter(roster)
        >>> report = importer.import_file(Path("groups.xlsx"), actor=admin)
        >>> print(report.summary())
    """

    def __init__(
        self,
        roster: Roster,
        min_proponents: int | None = None,
        max_proponents: int | None = None,
    ):
        """
        Initialize the importer.

        Args:
            roster: Roster used to create the groups.
            min_proponents: Smallest accepted group. Defaults to settings.
            max_proponents: Largest accepted group. Defaults to settings.
        """
        self._roster = roster
        if min_proponents is None or max_proponents is None:
            settings = get_settings()
            min_proponents = min_proponents or settings.min_proponents
            max_proponents = max_proponents or settings.max_proponents
        self.min_proponents = min_proponents
        self.max_proponents = max_proponents

    def import_file(self, file_path: Path | str, actor: User) -> ImportReport:
        """
        Import every group in a spreadsheet file.

        Raises:
            GroupImportError: If the file cannot be read, has no data
                rows or lacks the group name column.
            AuthorizationError: If the actor may not create groups.
        """
        path = Path(file_path)
        rows = create_reader(path).read_rows(path)
        try:
            report = self.import_rows(rows, actor)
        except ValueError as e:
            raise GroupImportError(str(e), path) from e
        log.info(
            "groups_imported",
            file=str(path),
            added=report.added_count,
            skipped=len(report.errors),
        )
        return report

    def import_rows(self, rows: Sequence[Sequence[str]], actor: User) -> ImportReport:
        """
        Import groups from already-read rows; ``rows[0]`` is the header.

        Raises:
            ValueError: If there are no data rows or no group name column.
        """
        if len(rows) < 2:
            raise ValueError("Spreadsheet is empty or has no data rows.")

        headers = [_normalize_header(h) for h in rows[0]]
        if "groupname" not in headers:
            raise ValueError("Could not find 'Group Name' or 'GroupName' column header.")
        name_index = headers.index("groupname")
        program_index = headers.index("program") if "program" in headers else None

        report = ImportReport()
        for offset, row in enumerate(rows[1:], start=2):
            if not any(cell for cell in row):
                continue

            group_name = row[name_index] if name_index < len(row) else ""
            if not group_name:
                report.errors.append(f"Row {offset}: Skipped because Group Name is empty.")
                continue

            if self._roster.group_exists(group_name):
                report.errors.append(
                    f'Row {offset}: Skipped because group "{group_name}" already exists.'
                )
                continue

            proponents = self._proponent_cells(row, name_index, program_index)
            if not self.min_proponents <= len(proponents) <= self.max_proponents:
                report.errors.append(
                    f'Row {offset}: Skipped because group "{group_name}" has '
                    f"{len(proponents)} proponents "
                    f"(must be between {self.min_proponents} and {self.max_proponents})."
                )
                continue

            program = self._program(row, program_index, offset)
            try:
                sheet = self._roster.create_group(actor, group_name, proponents, program=program)
            except DuplicateError:
                report.errors.append(
                    f'Row {offset}: Skipped because group "{group_name}" already exists.'
                )
                continue
            except ValidationError as e:
                detail = e.errors()[0]["msg"]
                report.errors.append(
                    f'Row {offset}: Skipped because group "{group_name}" is invalid: {detail}.'
                )
                continue
            report.added.append(sheet.group_name)

        return report

    def _proponent_cells(
        self, row: Sequence[str], name_index: int, program_index: int | None
    ) -> list[str]:
        end = name_index + 1 + self.max_proponents
        return [
            cell
            for index, cell in enumerate(row[name_index + 1 : end], start=name_index + 1)
            if cell and index != program_index
        ]

    def _program(self, row: Sequence[str], program_index: int | None, offset: int) -> Program:
        if program_index is None or program_index >= len(row):
            return Program.UNSET
        value = row[program_index].upper()
        try:
            return Program(value)
        except ValueError:
            log.warning("unknown_program", row=offset, program=row[program_index])
            return Program.UNSET
