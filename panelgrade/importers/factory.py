"""
Reader factory module.

Selects the spreadsheet reader for a file based on its extension.
"""

from pathlib import Path

from panelgrade.importers.base import GroupImportError, SpreadsheetReader
from panelgrade.importers.csv_reader import CsvReader
from panelgrade.importers.xlsx_reader import XlsxReader

# Registry of all available readers
_READERS: tuple[type[SpreadsheetReader], ...] = (
    XlsxReader,
    CsvReader,
)


def get_supported_extensions() -> tuple[str, ...]:
    """Get all file extensions a group spreadsheet may have."""
    extensions: list[str] = []
    for reader_cls in _READERS:
        extensions.extend(reader_cls.SUPPORTED_EXTENSIONS)
    return tuple(sorted(set(extensions)))


def create_reader(file_path: Path | str) -> SpreadsheetReader:
    """
    Create the appropriate reader for a given file.

    Raises:
        GroupImportError: If the file format is not supported.
    """
    path = Path(file_path)
    extension = path.suffix.lower()

    for reader_cls in _READERS:
        if extension in reader_cls.SUPPORTED_EXTENSIONS:
            return reader_cls()

    supported = get_supported_extensions()
    raise GroupImportError(
        f"Unsupported file format '{extension}'. Supported formats: {supported}",
        path,
    )
