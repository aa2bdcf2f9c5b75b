"""
Group Import Module.

Reads group spreadsheets (.xlsx, .csv) and creates grade sheets from them.
"""

from panelgrade.importers.base import GroupImportError, ImportReport, SpreadsheetReader
from panelgrade.importers.csv_reader import CsvReader
from panelgrade.importers.factory import create_reader, get_supported_extensions
from panelgrade.importers.group_importer import GroupImporter
from panelgrade.importers.xlsx_reader import XlsxReader

__all__ = [
    "CsvReader",
    "GroupImportError",
    "GroupImporter",
    "ImportReport",
    "SpreadsheetReader",
    "XlsxReader",
    "create_reader",
    "get_supported_extensions",
]
