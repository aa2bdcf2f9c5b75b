"""
Excel group spreadsheet reader using openpyxl.
"""

from pathlib import Path
from typing import ClassVar
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from panelgrade.importers.base import GroupImportError, SpreadsheetReader


class XlsxReader(SpreadsheetReader):
    """Reads the first worksheet of an .xlsx workbook."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".xlsx",)

    def read_rows(self, file_path: Path) -> list[list[str]]:
        self._validate_file(file_path)

        try:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile) as e:
            raise GroupImportError(
                "File is not a valid Excel document or is corrupted", file_path, cause=e
            ) from e
        except (OSError, KeyError, ValueError) as e:
            raise GroupImportError(f"Cannot open workbook: {e}", file_path, cause=e) from e

        try:
            sheet = workbook.worksheets[0]
            return [
                [self._cell_text(cell) for cell in row]
                for row in sheet.iter_rows(values_only=True)
            ]
        finally:
            workbook.close()
