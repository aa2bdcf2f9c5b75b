"""
Output Module.

Masterlist and dashboard views and their CSV, Word and JSON exports.
"""

from panelgrade.output.report import ReportFormat, ReportGenerator, ReportType
from panelgrade.output.tables import (
    DashboardRow,
    GradingStats,
    MasterlistRow,
    UNASSIGNED,
    SheetFilter,
    dashboard_rows,
    filter_sheets,
    grading_stats,
    masterlist_rows,
)

__all__ = [
    "DashboardRow",
    "GradingStats",
    "MasterlistRow",
    "ReportFormat",
    "ReportGenerator",
    "ReportType",
    "SheetFilter",
    "UNASSIGNED",
    "dashboard_rows",
    "filter_sheets",
    "grading_stats",
    "masterlist_rows",
]
