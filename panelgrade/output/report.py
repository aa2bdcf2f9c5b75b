"""
Report generation.

Renders the masterlist and the dashboard as CSV, as a Word-readable
HTML document, or as JSON.
"""

import html
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd
import structlog

from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.models import GradeSheet, User
from panelgrade.output.tables import (
    DashboardRow,
    MasterlistRow,
    dashboard_rows,
    grading_stats,
    masterlist_rows,
)

log = structlog.get_logger(__name__)


class ReportFormat(str, Enum):
    """Output format for reports."""

    CSV = "csv"
    WORD = "word"
    JSON = "json"


class ReportType(str, Enum):
    """Which view to export."""

    MASTERLIST = "masterlist"
    DASHBOARD = "dashboard"


_EXTENSIONS = {
    ReportFormat.CSV: ".csv",
    ReportFormat.WORD: ".doc",
    ReportFormat.JSON: ".json",
}

_WORD_TEMPLATE = """<html xmlns:w="urn:schemas-microsoft-com:office:word" xmlns="http://www.w3.org/TR/REC-html40">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
{page_style}
table {{ border-collapse: collapse; width: 100%; font-family: sans-serif; }}
th {{ background-color: #2F855A; color: white; font-size: 10pt; padding: 8px; border: 1px solid #ddd; }}
td {{ font-size: 9pt; padding: 8px; border: 1px solid #ddd; }}
</style>
</head>
<body>
<div class="Section1">
<h1>{title}</h1>
{table}
</div>
</body>
</html>
"""

_LANDSCAPE = """@page Section1 { size: 11.0in 8.5in; mso-page-orientation: landscape; margin: 1.0in; }
div.Section1 { page: Section1; }"""


def fmt(value: float) -> str:
    """Two-decimal score text."""
    return f"{value:.2f}"


class ReportGenerator:
    """
    Generates reports from grade sheets.

    Example:
        >>> generator = ReportGenerator()
        >>> text = generator.generate(ReportType.MASTERLIST, sheets, users, ReportFormat.CSV)
    """

    def __init__(self, policy: GradingPolicy = DEFAULT_POLICY):
        self.policy = policy

    def generate(
        self,
        report_type: ReportType,
        sheets: Sequence[GradeSheet],
        users: Iterable[User],
        format: ReportFormat = ReportFormat.CSV,
    ) -> str:
        """
        Render a report.

        Args:
            report_type: Masterlist or dashboard.
            sheets: Grade sheets to include, in display order.
            users: All users, to resolve panel names.
            format: Output format.

        Returns:
            The report text.
        """
        users = list(users)
        if report_type == ReportType.MASTERLIST:
            rows: list = masterlist_rows(sheets, users, self.policy)
            renderers = {
                ReportFormat.CSV: self._masterlist_csv,
                ReportFormat.WORD: self._masterlist_word,
            }
        else:
            rows = dashboard_rows(sheets, users)
            renderers = {
                ReportFormat.CSV: self._dashboard_csv,
                ReportFormat.WORD: self._dashboard_word,
            }

        if format == ReportFormat.JSON:
            return self._json(report_type, rows, sheets)
        return renderers[format](rows)

    def save(
        self,
        report_type: ReportType,
        sheets: Sequence[GradeSheet],
        users: Iterable[User],
        output_path: Path,
        format: ReportFormat = ReportFormat.CSV,
    ) -> Path:
        """
        Render a report and write it to disk.

        The format's extension is added when the path has none.

        Returns:
            Path to the saved file.
        """
        content = self.generate(report_type, sheets, users, format)

        if not output_path.suffix:
            output_path = output_path.with_suffix(_EXTENSIONS[format])

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        log.info(
            "report_saved",
            report=report_type.value,
            format=format.value,
            path=str(output_path),
        )
        return output_path

    # ==========================================================================
    # CSV
    # ==========================================================================

    def _masterlist_csv(self, rows: list[MasterlistRow]) -> str:
        td = f"{self.policy.title_defense_share:g}%"
        ind = f"{self.policy.individual_share:g}%"
        frame = pd.DataFrame(
            [
                [
                    r.group_name,
                    r.proponent,
                    r.panel1_name,
                    r.panel2_name,
                    fmt(r.p1_title),
                    fmt(r.p1_indiv),
                    fmt(r.p2_title),
                    fmt(r.p2_indiv),
                    fmt(r.final_score),
                    fmt(r.group_final_score),
                    r.remark.value if r.remark else "",
                ]
                for r in rows
            ],
            columns=[
                "Group Name",
                "Proponent",
                "Assigned Panel 1",
                "Assigned Panel 2",
                f"Panel 1 Title Defense ({td})",
                f"Panel 1 Individual ({ind})",
                f"Panel 2 Title Defense ({td})",
                f"Panel 2 Individual ({ind})",
                "Proponent Final Score (Total)",
                "Group Final Score",
                "Remarks",
            ],
        )
        return frame.to_csv(index=False, lineterminator="\n")

    def _dashboard_csv(self, rows: list[DashboardRow]) -> str:
        frame = pd.DataFrame(
            [
                [
                    r.group_name,
                    r.panel1_name,
                    r.panel1_progress.value,
                    r.panel2_name,
                    r.panel2_progress.value,
                ]
                for r in rows
            ],
            columns=["Groupname", "Panel 1", "Status", "Panel 2", "Status"],
        )
        return frame.to_csv(index=False, lineterminator="\n")

    # ==========================================================================
    # Word
    # ==========================================================================

    def _masterlist_word(self, rows: list[MasterlistRow]) -> str:
        td = f"{self.policy.title_defense_share:g}%"
        ind = f"{self.policy.individual_share:g}%"
        parts = [
            "<table>",
            "<thead>",
            "<tr>"
            '<th rowspan="2">GROUP NAME</th><th rowspan="2">PROPONENTS</th>'
            '<th rowspan="2">ASSIGN PANEL 1</th><th rowspan="2">ASSIGN PANEL 2</th>'
            '<th colspan="2">PANEL 1 (50%)</th><th colspan="2">PANEL 2 (50%)</th>'
            '<th rowspan="2">TOTAL</th><th rowspan="2">FINAL SCORE</th>'
            '<th rowspan="2">REMARKS</th>'
            "</tr>",
            f"<tr><th>TITLE DEFENSE ({td})</th><th>INDIVIDUAL ({ind})</th>"
            f"<th>TITLE DEFENSE ({td})</th><th>INDIVIDUAL ({ind})</th></tr>",
            "</thead>",
            "<tbody>",
        ]

        for group in _group_rows(rows):
            span = len(group)
            first = group[0]
            for index, row in enumerate(group):
                cells = []
                if index == 0:
                    cells.append(f'<td rowspan="{span}">{html.escape(first.group_name)}</td>')
                cells.append(f"<td>{html.escape(row.proponent)}</td>")
                if index == 0:
                    cells.append(f'<td rowspan="{span}">{html.escape(first.panel1_name)}</td>')
                    cells.append(f'<td rowspan="{span}">{html.escape(first.panel2_name)}</td>')
                    cells.append(f'<td rowspan="{span}">{fmt(first.p1_title)}</td>')
                cells.append(f"<td>{fmt(row.p1_indiv)}</td>")
                if index == 0:
                    cells.append(f'<td rowspan="{span}">{fmt(first.p2_title)}</td>')
                cells.append(f"<td>{fmt(row.p2_indiv)}</td>")
                cells.append(f"<td><b>{fmt(row.final_score)}</b></td>")
                if index == 0:
                    remark = first.remark.value if first.remark else ""
                    cells.append(f'<td rowspan="{span}"><b>{fmt(first.group_final_score)}</b></td>')
                    cells.append(f'<td rowspan="{span}">{remark}</td>')
                parts.append("<tr>" + "".join(cells) + "</tr>")

        parts.append("</tbody></table>")
        return _WORD_TEMPLATE.format(
            title="Masterlist &amp; Panel Assignment",
            page_style=_LANDSCAPE,
            table="\n".join(parts),
        )

    def _dashboard_word(self, rows: list[DashboardRow]) -> str:
        parts = [
            "<table>",
            "<thead><tr><th>Groupname</th><th>Panel 1</th><th>Status</th>"
            "<th>Panel 2</th><th>Status</th></tr></thead>",
            "<tbody>",
        ]
        for r in rows:
            parts.append(
                "<tr>"
                f"<td>{html.escape(r.group_name)}</td>"
                f"<td>{html.escape(r.panel1_name)}</td><td>{r.panel1_progress.value}</td>"
                f"<td>{html.escape(r.panel2_name)}</td><td>{r.panel2_progress.value}</td>"
                "</tr>"
            )
        parts.append("</tbody></table>")
        return _WORD_TEMPLATE.format(
            title="Dashboard Export", page_style="", table="\n".join(parts)
        )

    # ==========================================================================
    # JSON
    # ==========================================================================

    def _json(
        self,
        report_type: ReportType,
        rows: Sequence[MasterlistRow] | Sequence[DashboardRow],
        sheets: Sequence[GradeSheet],
    ) -> str:
        payload = {
            "report": report_type.value,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "stats": grading_stats(sheets).model_dump(),
            "rows": [row.model_dump(mode="json") for row in rows],
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)


def _group_rows(rows: list[MasterlistRow]) -> list[list[MasterlistRow]]:
    groups: dict[str, list[MasterlistRow]] = {}
    for row in rows:
        groups.setdefault(row.sheet_id, []).append(row)
    return list(groups.values())
