"""
Panel Grader CLI Application.

Provides a command-line interface for managing defense groups, assigning
panel evaluators, recording rubric scores and exporting the masterlist.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from panelgrade.config import get_settings
from panelgrade.errors import IncompleteGradesError, NotFoundError, PanelGradeError
from panelgrade.grading import GradingPolicy, GradingWorkflow, classify, finalize
from panelgrade.importers import GroupImporter
from panelgrade.models import NOT_SET, Backup, GradeSheet, PanelGrades, Program, User, UserRole
from panelgrade.observability import configure_logging
from panelgrade.output import (
    ReportFormat,
    ReportGenerator,
    ReportType,
    SheetFilter,
    dashboard_rows,
    filter_sheets,
    grading_stats,
    masterlist_rows,
)
from panelgrade.roster import Roster
from panelgrade.rubric import INDIVIDUAL_GRADE_RUBRIC, TITLE_DEFENSE_RUBRIC, RubricValidator
from panelgrade.store import GradeSheetRepository, JsonStore, UserRepository

# Create Typer app
app = typer.Typer(
    name="panelgrade",
    help="Title defense grading for two-panel evaluations",
    add_completion=False,
)
users_app = typer.Typer(help="Manage user accounts", add_completion=False)
groups_app = typer.Typer(help="Manage defense groups", add_completion=False)
app.add_typer(users_app, name="users")
app.add_typer(groups_app, name="groups")

console = Console()

ActorOption = Annotated[
    str,
    typer.Option(
        "--as",
        "-u",
        envvar="PANELGRADE_USER",
        help="Email or id of the user performing the action",
    ),
]
DEFAULT_ACTOR = "admin@example.com"


@dataclass
class Services:
    """Everything a command needs, wired to the configured store."""

    store: JsonStore
    sheets: GradeSheetRepository
    users: UserRepository
    roster: Roster
    workflow: GradingWorkflow
    policy: GradingPolicy


def _services() -> Services:
    settings = get_settings()
    store = JsonStore(settings.data_file)
    sheets = GradeSheetRepository(store)
    users = UserRepository(store)
    return Services(
        store=store,
        sheets=sheets,
        users=users,
        roster=Roster(sheets, users),
        workflow=GradingWorkflow(sheets, users),
        policy=GradingPolicy.from_settings(settings),
    )


def _resolve_user(users: UserRepository, key: str) -> User:
    user = users.find(key) or users.find_by_email(key)
    if user is None:
        raise NotFoundError("User", key)
    return user


def _resolve_sheet(sheets: GradeSheetRepository, key: str) -> GradeSheet:
    sheet = sheets.find_by_group_name(key)
    return sheet if sheet is not None else sheets.get(key)


def _fail(message: object) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(str(message))}")
    raise typer.Exit(1)


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings())


# ==============================================================================
# Rubric
# ==============================================================================


@app.command()
def rubric() -> None:
    """
    Show the title-defense and individual rubrics.

    Also checks that each catalog's weights add up to 100 points.
    """
    validator = RubricValidator()
    for catalog in (TITLE_DEFENSE_RUBRIC, INDIVIDUAL_GRADE_RUBRIC):
        table = Table(title=catalog.title)
        table.add_column("Id", style="cyan")
        table.add_column("Criteria")
        table.add_column("Weight", justify="right")
        table.add_column("Levels")

        for item in catalog.items:
            levels = "\n".join(f"{lv.range}: {lv.description}" for lv in item.levels)
            table.add_row(item.id, item.criteria, f"{item.weight:g}", levels)

        console.print(table)
        console.print(f"[bold]Total Weight:[/bold] {catalog.total_weight:g}\n")

        is_valid, issues = validator.validate(catalog)
        if not is_valid:
            console.print("[yellow]⚠ Validation issues found:[/yellow]")
            for issue in issues:
                console.print(f"  • {issue}")


# ==============================================================================
# Users
# ==============================================================================


@users_app.command("list")
def users_list() -> None:
    """List all user accounts."""
    services = _services()
    table = Table(title="Users")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    for user in services.users.list_all():
        table.add_row(user.id, user.name, user.email, user.role.value)
    console.print(table)


@users_app.command("add")
def users_add(
    name: Annotated[str, typer.Argument(help="Full name")],
    email: Annotated[str, typer.Argument(help="Email address")],
    role: Annotated[UserRole, typer.Option("--role", "-r", help="Account role")] = UserRole.PANEL,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Create a user account (admins only)."""
    try:
        services = _services()
        created = services.roster.add_user(_resolve_user(services.users, actor), name, email, role)
        console.print(f"[green]✓ User created:[/green] {created.name} ({created.id})")
    except (PanelGradeError, ValidationError) as e:
        _fail(e)


@users_app.command("delete")
def users_delete(
    user: Annotated[Optional[str], typer.Argument(help="Email or id of the user")] = None,
    all_non_admin: Annotated[
        bool, typer.Option("--all-non-admin", help="Delete every account except admins")
    ] = False,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Delete a user account, or every non-admin account."""
    try:
        services = _services()
        acting = _resolve_user(services.users, actor)
        if all_non_admin:
            count = services.roster.delete_non_admin_users(acting)
            console.print(f"[green]✓ Deleted {count} user(s)[/green]")
        elif user:
            target = _resolve_user(services.users, user)
            services.roster.delete_user(acting, target.id)
            console.print(f"[green]✓ User deleted:[/green] {target.name}")
        else:
            _fail("Give a user or --all-non-admin")
    except PanelGradeError as e:
        _fail(e)


# ==============================================================================
# Groups
# ==============================================================================


@groups_app.command("list")
def groups_list(
    status: Annotated[
        SheetFilter, typer.Option("--status", "-s", help="Filter by grading status")
    ] = SheetFilter.ALL,
) -> None:
    """List defense groups."""
    services = _services()
    table = Table(title="Groups")
    table.add_column("Id", style="cyan")
    table.add_column("Group")
    table.add_column("Program")
    table.add_column("Proponents")
    table.add_column("Title")
    table.add_column("Status")
    for sheet in filter_sheets(services.sheets.list_all(), status):
        table.add_row(
            sheet.id,
            sheet.group_name,
            sheet.program.value or "-",
            ", ".join(p.name for p in sheet.proponents),
            sheet.selected_title,
            sheet.status.value,
        )
    console.print(table)


@groups_app.command("add")
def groups_add(
    group_name: Annotated[str, typer.Argument(help="Group name")],
    proponents: Annotated[str, typer.Argument(help="Comma-separated proponent names")],
    title: Annotated[str, typer.Option("--title", "-t", help="Project title")] = "",
    program: Annotated[Program, typer.Option("--program", "-p", help="Degree program")] = (
        Program.UNSET
    ),
    date: Annotated[str, typer.Option("--date", help="Defense date and time")] = "",
    venue: Annotated[str, typer.Option("--venue", help="Defense venue")] = "",
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Add a group manually."""
    try:
        services = _services()
        sheet = services.roster.create_group(
            _resolve_user(services.users, actor),
            group_name,
            proponents,
            selected_title=title,
            program=program,
            date=date,
            venue=venue,
        )
        console.print(f"[green]✓ Group created:[/green] {sheet.group_name} ({sheet.id})")
    except (PanelGradeError, ValidationError) as e:
        _fail(e)


@groups_app.command("delete")
def groups_delete(
    group: Annotated[Optional[str], typer.Argument(help="Group name or sheet id")] = None,
    all_groups: Annotated[bool, typer.Option("--all", help="Delete every group")] = False,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Delete a group with its grades, or every group."""
    try:
        services = _services()
        acting = _resolve_user(services.users, actor)
        if all_groups:
            count = services.roster.delete_all_groups(acting)
            console.print(f"[green]✓ Deleted {count} group(s)[/green]")
        elif group:
            sheet = _resolve_sheet(services.sheets, group)
            services.roster.delete_group(acting, sheet.id)
            console.print(f"[green]✓ Group deleted:[/green] {sheet.group_name}")
        else:
            _fail("Give a group or --all")
    except PanelGradeError as e:
        _fail(e)


@groups_app.command("import")
def groups_import(
    file: Annotated[Path, typer.Argument(help="Spreadsheet (.xlsx or .csv)")],
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """
    Import groups from a spreadsheet.

    Needs a 'Group Name' column followed by 3-4 proponent columns, and
    optionally a 'Program' column.
    """
    try:
        services = _services()
        importer = GroupImporter(services.roster)
        report = importer.import_file(file, _resolve_user(services.users, actor))
    except PanelGradeError as e:
        _fail(e)

    console.print(f"[green]{report.added_count} group(s) added successfully.[/green]")
    if report.errors:
        console.print("\n[yellow]Errors during import:[/yellow]")
        for error in report.errors:
            console.print(f"  • {error}")


# ==============================================================================
# Panels and grading
# ==============================================================================


@app.command()
def assign(
    group: Annotated[str, typer.Argument(help="Group name or sheet id")],
    slot: Annotated[int, typer.Argument(min=1, max=2, help="Panel slot (1 or 2)")],
    user: Annotated[
        Optional[str], typer.Argument(help="Email or id of the evaluator; omit to unassign")
    ] = None,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Assign an evaluator to a panel slot."""
    try:
        services = _services()
        sheet = _resolve_sheet(services.sheets, group)
        user_id = _resolve_user(services.users, user).id if user else ""
        services.workflow.assign_panel(
            sheet.id, slot, user_id, _resolve_user(services.users, actor)
        )
        who = user or "nobody"
        console.print(f"[green]✓ Panel {slot} of {sheet.group_name}:[/green] {who}")
    except PanelGradeError as e:
        _fail(e)


@app.command()
def details(
    group: Annotated[str, typer.Argument(help="Group name or sheet id")],
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Selected title")] = None,
    program: Annotated[
        Optional[str], typer.Option("--program", "-p", help="BSCS-AI, BSCS-DS or BSCS-SE")
    ] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Defense date")] = None,
    venue: Annotated[Optional[str], typer.Option("--venue", "-v", help="Defense venue")] = None,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """
    Set a group's title, program, date and venue as its Panel 1 evaluator.

    The details are locked once all four are set.
    """
    try:
        services = _services()
        sheet = _resolve_sheet(services.sheets, group)
        evaluator = _resolve_user(services.users, actor)
        saved = services.workflow.save_details(
            sheet.id, evaluator.id, title=title, program=program, date=date, venue=venue
        )
    except (PanelGradeError, ValueError) as e:
        _fail(e)

    state = "locked" if saved.details_set else "still editable"
    console.print(f"[green]✓ Details of {saved.group_name} saved[/green] ({state})")
    console.print(
        f"Title: {escape(saved.selected_title)}\n"
        f"Program: {saved.program.value or NOT_SET}\n"
        f"Date: {escape(saved.date)}\n"
        f"Venue: {escape(saved.venue)}"
    )


@app.command()
def venues() -> None:
    """List the known defense venues."""
    try:
        services = _services()
        names = services.store.venues()
    except PanelGradeError as e:
        _fail(e)
    for name in names:
        console.print(f"  {escape(name)}")


@app.command()
def grade(
    group: Annotated[str, typer.Argument(help="Group name or sheet id")],
    scores_file: Annotated[
        Optional[Path],
        typer.Option("--scores", "-s", help="JSON file with scores and comments"),
    ] = None,
    submit: Annotated[
        bool, typer.Option("--submit", help="Submit and lock the grades")
    ] = False,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """
    Record an evaluator's grades for a group.

    The scores file holds 'title_defense_scores' keyed by item id,
    'individual_scores' keyed by student name or id, and 'comments'.
    Without --submit the grades are saved as a draft.
    """
    try:
        services = _services()
        sheet = _resolve_sheet(services.sheets, group)
        evaluator = _resolve_user(services.users, actor)

        grades = _load_scores(scores_file, sheet) if scores_file else None
        if submit:
            saved = services.workflow.submit(sheet.id, evaluator.id, grades)
            console.print(f"[green]✓ Grades submitted.[/green] Status: {saved.status.value}")
        elif grades is not None:
            saved = services.workflow.save_draft(sheet.id, evaluator.id, grades)
            console.print(f"[green]✓ Draft saved.[/green] Status: {saved.status.value}")
        else:
            _fail("Give --scores, --submit or both")
    except IncompleteGradesError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    except PanelGradeError as e:
        _fail(e)

    _display_sheet(saved, services.policy)


@app.command()
def show(
    group: Annotated[str, typer.Argument(help="Group name or sheet id")],
) -> None:
    """Show a group's score breakdown."""
    try:
        services = _services()
        sheet = _resolve_sheet(services.sheets, group)
    except PanelGradeError as e:
        _fail(e)
    _display_sheet(sheet, services.policy)


def _load_scores(path: Path, sheet: GradeSheet) -> PanelGrades:
    """Read a scores file, mapping student names to ids."""
    if not path.exists():
        _fail(f"Scores file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"Invalid scores file: {e}")

    by_name = {p.name.lower(): p.id for p in sheet.proponents}
    individual = {
        by_name.get(key.lower(), key): scores
        for key, scores in data.get("individual_scores", {}).items()
    }
    try:
        return PanelGrades(
            title_defense_scores=data.get("title_defense_scores", {}),
            individual_scores=individual,
            comments=data.get("comments", ""),
        )
    except ValidationError as e:
        _fail(f"Invalid scores file: {e}")


# ==============================================================================
# Views and exports
# ==============================================================================


@app.command()
def dashboard(
    status: Annotated[
        SheetFilter, typer.Option("--status", "-s", help="Filter by grading status")
    ] = SheetFilter.ALL,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Show each group's panels and grading progress."""
    try:
        services = _services()
        viewer = _resolve_user(services.users, actor)
    except PanelGradeError as e:
        _fail(e)

    sheets = services.sheets.list_all()
    if not viewer.is_manager:
        sheets = services.sheets.for_panel(viewer.id)
    sheets = filter_sheets(sheets, status)

    table = Table(title="Dashboard")
    table.add_column("Group", style="cyan")
    table.add_column("Panel 1")
    table.add_column("Status")
    table.add_column("Panel 2")
    table.add_column("Status")
    for row in dashboard_rows(sheets, services.users.list_all()):
        table.add_row(
            row.group_name,
            row.panel1_name,
            row.panel1_progress.value,
            row.panel2_name,
            row.panel2_progress.value,
        )
    console.print(table)
    if not sheets:
        console.print("[dim]No grading sheets found for the selected filter.[/dim]")


@app.command()
def masterlist() -> None:
    """Show every proponent's weighted scores and the group results."""
    services = _services()
    sheets = services.sheets.list_all()
    stats = grading_stats(sheets)
    console.print(
        f"[green]Graded: {stats.graded}[/green]  "
        f"[yellow]Incomplete: {stats.incomplete}[/yellow]  "
        f"[dim]Ungraded: {stats.ungraded}[/dim]"
    )

    td = f"{services.policy.title_defense_share:g}%"
    ind = f"{services.policy.individual_share:g}%"
    table = Table(title="Masterlist")
    table.add_column("Group", style="cyan")
    table.add_column("Proponent")
    table.add_column("Panel 1")
    table.add_column("Panel 2")
    table.add_column(f"P1 TD ({td})", justify="right")
    table.add_column(f"P1 Ind ({ind})", justify="right")
    table.add_column(f"P2 TD ({td})", justify="right")
    table.add_column(f"P2 Ind ({ind})", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Final", justify="right")
    table.add_column("Remarks")

    previous = None
    for row in masterlist_rows(sheets, services.users.list_all(), services.policy):
        first = row.sheet_id != previous
        previous = row.sheet_id
        table.add_row(
            row.group_name if first else "",
            row.proponent,
            row.panel1_name if first else "",
            row.panel2_name if first else "",
            f"{row.p1_title:.2f}",
            f"{row.p1_indiv:.2f}",
            f"{row.p2_title:.2f}",
            f"{row.p2_indiv:.2f}",
            f"{row.final_score:.2f}",
            f"{row.group_final_score:.2f}" if first else "",
            _remark_text(row.remark.value if row.remark else None) if first else "",
        )
    console.print(table)


@app.command()
def export(
    report: Annotated[ReportType, typer.Argument(help="Which view to export")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path for the report"),
    ] = None,
    format: Annotated[
        ReportFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = ReportFormat.CSV,
) -> None:
    """Export the masterlist or the dashboard as CSV, Word or JSON."""
    services = _services()
    generator = ReportGenerator(services.policy)
    sheets = services.sheets.list_all()
    users = services.users.list_all()

    if output:
        saved_path = generator.save(report, sheets, users, output, format)
        console.print(f"[green]Report saved to:[/green] {saved_path}")
    else:
        typer.echo(generator.generate(report, sheets, users, format))


# ==============================================================================
# Maintenance
# ==============================================================================


@app.command()
def backup(
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Backup file path")
    ] = None,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Save every user and grade sheet to a JSON backup file."""
    try:
        services = _services()
        if not _resolve_user(services.users, actor).is_manager:
            _fail("Only admins and course advisers can create backups")
        snapshot = services.store.backup()
    except PanelGradeError as e:
        _fail(e)

    if output is None:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = get_settings().output_directory / f"backup_{stamp}.json"
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    console.print(
        f"[green]✓ Backup saved to:[/green] {output} "
        f"({len(snapshot.users)} users, {len(snapshot.grade_sheets)} groups)"
    )


@app.command()
def restore(
    file: Annotated[Path, typer.Argument(help="Backup file created by 'backup'")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Replace all data with the contents of a backup file."""
    if not file.exists():
        _fail(f"Backup file not found: {file}")
    try:
        snapshot = Backup.model_validate_json(file.read_text(encoding="utf-8"))
    except ValidationError as e:
        _fail(f"Invalid backup file: {e}")

    try:
        services = _services()
        if _resolve_user(services.users, actor).role != UserRole.ADMIN:
            _fail("Only admins can restore backups")
    except PanelGradeError as e:
        _fail(e)

    if not yes:
        typer.confirm("This replaces all users and groups. Continue?", abort=True)
    services.store.restore(snapshot)
    console.print(
        f"[green]✓ Restored[/green] {len(snapshot.users)} users and "
        f"{len(snapshot.grade_sheets)} groups"
    )


@app.command("reset-grades")
def reset_grades(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    actor: ActorOption = DEFAULT_ACTOR,
) -> None:
    """Clear every score and comment, keeping groups and assignments."""
    try:
        services = _services()
        acting = _resolve_user(services.users, actor)
        if not yes:
            typer.confirm("This deletes all grades. Continue?", abort=True)
        count = services.workflow.reset_all_grades(acting)
        console.print(f"[green]✓ Grades cleared on {count} group(s)[/green]")
    except PanelGradeError as e:
        _fail(e)


def _remark_text(remark: str | None) -> str:
    if remark is None:
        return "[dim]-[/dim]"
    color = "green" if remark == "Passed" else "red"
    return f"[{color}]{remark}[/{color}]"


def _display_sheet(sheet: GradeSheet, policy: GradingPolicy) -> None:
    """Display a grade sheet's scores in a formatted table."""
    scores = finalize(sheet, policy=policy)
    remark = classify(sheet, policy=policy)

    console.print(
        Panel(
            f"[bold]{sheet.selected_title}[/bold]\n"
            f"Program: {sheet.program.value or '-'}  Date: {sheet.date}  Venue: {sheet.venue}\n"
            f"Status: {sheet.status.value}",
            title=sheet.group_name,
        )
    )

    table = Table(title="Score Breakdown")
    table.add_column("Proponent", style="cyan")
    table.add_column("Panel 1", justify="right")
    table.add_column("Panel 2", justify="right")
    table.add_column("Final", justify="right")
    for student in sheet.proponents:
        s = scores.per_student[student.id]
        table.add_row(
            student.name,
            f"{s.p1_total:.2f}",
            f"{s.p2_total:.2f}",
            f"{s.final_score:.2f}",
        )
    console.print(table)

    score_color = "green" if remark is not None and remark.value == "Passed" else "yellow"
    label = remark.value if remark is not None else "Provisional"
    console.print(
        Panel(
            f"[{score_color}][bold]{scores.group_final_score:.2f}[/bold] ({label})[/{score_color}]",
            title="Group Final Score",
        )
    )


if __name__ == "__main__":
    app()
