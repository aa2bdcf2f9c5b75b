"""
CSV group spreadsheet reader using pandas.
"""

from pathlib import Path
from typing import ClassVar

import pandas as pd

from panelgrade.importers.base import GroupImportError, SpreadsheetReader


class CsvReader(SpreadsheetReader):
    """Reads a comma-separated file; every cell is kept as text."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".csv",)

    def read_rows(self, file_path: Path) -> list[list[str]]:
        self._validate_file(file_path)

        try:
            frame = pd.read_csv(
                file_path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                encoding="utf-8-sig",
            )
        except pd.errors.EmptyDataError:
            return []
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise GroupImportError(f"Cannot parse CSV: {e}", file_path, cause=e) from e

        return [[self._cell_text(cell) for cell in row] for row in frame.itertuples(index=False)]
