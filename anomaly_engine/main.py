"""
Grading Anomalies CLI Application.

Provides a command-line interface for analyzing a completed grading
round and for reviewing stored anomaly reports.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from anomaly_engine.analysis import AnomalyEngine, InsufficientDataError, MissingRubricError
from anomaly_engine.config import Settings, get_settings
from anomaly_engine.loaders import LoaderError, create_loader
from anomaly_engine.models import AnomalyReport, ReportStatus
from anomaly_engine.output import ReportFormat, ReportGenerator
from anomaly_engine.storage import ReportNotFoundError, ReportStore, ReportStoreError

# Create Typer app
app = typer.Typer(
    name="grading-anomalies",
    help="Detect inconsistent or risky grading in a completed grading round",
    add_completion=False,
)

console = Console()


def _configure_logging(settings: Settings, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _store(settings: Settings, reports_dir: Optional[Path]) -> ReportStore:
    return ReportStore(reports_dir or settings.reports_directory)


@app.command()
def analyze(
    grades_file: Annotated[
        Path, typer.Argument(help="Grade snapshot (.json) or workbook (.xlsx)")
    ],
    assignment_id: Annotated[
        Optional[int],
        typer.Option("--assignment-id", "-a", help="Assignment to analyze (defaults to the file's)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path for the rendered report"),
    ] = None,
    format: Annotated[
        ReportFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = ReportFormat.JSON,
    save: Annotated[
        bool,
        typer.Option("--save/--no-save", help="Store the report in the report store"),
    ] = True,
    reports_dir: Annotated[
        Optional[Path],
        typer.Option("--reports-dir", help="Report store directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """
    Analyze one assignment's grades for anomalies.

    Computes grader severity, outlier scores, criterion inconsistency and
    regrade risk, then stores the report as a new pending version.
    """
    settings = get_settings()
    _configure_logging(settings, verbose)

    try:
        if not grades_file.exists():
            console.print(f"[red]Error:[/red] Grades file not found: {grades_file}")
            raise typer.Exit(1)

        loader = create_loader(grades_file)
        target = assignment_id if assignment_id is not None else loader.assignment_ids()[0]

        engine = AnomalyEngine(loader, settings)
        if save:
            report, _ = engine.analyze_and_save(target, _store(settings, reports_dir))
        else:
            report = engine.analyze(target)

        _display_report(report, verbose)

        if save:
            console.print(f"\n[green]Report stored:[/green] {report.report_id}")

        if output:
            saved_path = ReportGenerator().save(report, output, format)
            console.print(f"[green]Report written to:[/green] {saved_path}")

    except LoaderError as e:
        console.print(f"[red]Loader Error:[/red] {e}")
        raise typer.Exit(1)
    except InsufficientDataError as e:
        console.print(f"[yellow]Not enough data:[/yellow] {e}")
        raise typer.Exit(1)
    except MissingRubricError as e:
        console.print(f"[red]Missing Rubric:[/red] {e}")
        raise typer.Exit(1)
    except ReportStoreError as e:
        console.print(f"[red]Storage Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    assignment_id: Annotated[int, typer.Argument(help="Assignment whose latest report to show")],
    format: Annotated[
        Optional[ReportFormat],
        typer.Option("--format", "-f", help="Print the rendered report instead of tables"),
    ] = None,
    reports_dir: Annotated[
        Optional[Path],
        typer.Option("--reports-dir", help="Report store directory"),
    ] = None,
) -> None:
    """Show the most recent stored report for an assignment."""
    settings = get_settings()
    try:
        report = _store(settings, reports_dir).load_report(assignment_id)
    except ReportStoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if format is None:
        _display_report(report, verbose=True)
    else:
        console.print(ReportGenerator().generate(report, format), markup=False)


@app.command()
def history(
    assignment_id: Annotated[int, typer.Argument(help="Assignment to list reports for")],
    reports_dir: Annotated[
        Optional[Path],
        typer.Option("--reports-dir", help="Report store directory"),
    ] = None,
) -> None:
    """List every stored report version for an assignment."""
    settings = get_settings()
    try:
        reports = _store(settings, reports_dir).list_reports(assignment_id)
    except ReportStoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not reports:
        console.print(f"No reports stored for assignment {assignment_id}")
        return

    table = Table(title=f"Reports for assignment {assignment_id}")
    table.add_column("Report", style="cyan")
    table.add_column("Generated")
    table.add_column("Grades", justify="right")
    table.add_column("Risks", justify="right")
    table.add_column("Status")
    for report in reports:
        table.add_row(
            str(report.report_id),
            report.generated_at.isoformat(timespec="seconds"),
            str(report.total_grades),
            str(len(report.regrade_risks)),
            report.status.value,
        )
    console.print(table)


@app.command("set-status")
def set_status(
    report_id: Annotated[str, typer.Argument(help="Report id")],
    status: Annotated[ReportStatus, typer.Argument(help="New review status")],
    reports_dir: Annotated[
        Optional[Path],
        typer.Option("--reports-dir", help="Report store directory"),
    ] = None,
) -> None:
    """Move a stored report along the review lifecycle."""
    settings = get_settings()
    try:
        report = _store(settings, reports_dir).update_status(report_id, status)
    except ReportNotFoundError as e:
        console.print(f"[red]Not Found:[/red] {e}")
        raise typer.Exit(1)
    except ReportStoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Report {report.report_id} is now {report.status.value}")


@app.command()
def config() -> None:
    """Show the effective thresholds and risk weights."""
    settings = get_settings()

    table = Table(title="Analysis Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


def _display_report(report: AnomalyReport, verbose: bool = False) -> None:
    """Display a report as panels and tables."""
    summary = report.summary

    console.print(
        Panel(
            f"[bold]{summary.total_grades}[/bold] grades  "
            f"mean [bold]{summary.average_score:.2f}[/bold]  "
            f"std-dev [bold]{summary.standard_deviation:.2f}[/bold]",
            title=f"Assignment {report.assignment_id}",
        )
    )

    if report.ta_severity_issues:
        table = Table(title="TA Severity")
        table.add_column("Grader", style="cyan")
        table.add_column("Average", justify="right")
        table.add_column("Grades", justify="right")
        table.add_column("Deviation", justify="right")
        table.add_column("Severity")
        for ta in report.ta_severity_issues:
            color = "red" if ta.severity.value == "too_harsh" else "yellow"
            table.add_row(
                ta.grader_email or str(ta.grader_id),
                f"{ta.average_score:.2f}",
                str(ta.grades_count),
                f"{ta.deviation:+.2f}",
                f"[{color}]{ta.severity.value}[/{color}]",
            )
        console.print(table)

    if report.outlier_grades:
        table = Table(title="Outlier Grades")
        table.add_column("Submission", style="cyan")
        table.add_column("Student")
        table.add_column("Score", justify="right")
        table.add_column("Z-Score", justify="right")
        for o in report.outlier_grades:
            table.add_row(str(o.submission_id), o.student_identifier, f"{o.score:g}", f"{o.z_score:+.2f}")
        console.print(table)

    if report.criterion_issues:
        table = Table(title="Criterion Issues")
        table.add_column("Criterion", style="cyan")
        table.add_column("Average", justify="right")
        table.add_column("Std-Dev", justify="right")
        table.add_column("CV", justify="right")
        table.add_column("Inconsistent")
        for c in report.criterion_issues:
            table.add_row(
                c.criterion_name,
                f"{c.average_score:.2f}",
                f"{c.standard_deviation:.2f}",
                f"{c.coefficient_of_variation:.2f}",
                ", ".join(str(i) for i in c.inconsistent_submission_ids) or "-",
            )
        console.print(table)

    if report.regrade_risks:
        table = Table(title="Regrade Risks")
        table.add_column("Submission", style="cyan")
        table.add_column("Student")
        table.add_column("Score", justify="right")
        table.add_column("Risk", justify="right")
        if verbose:
            table.add_column("Factors")
        for r in report.regrade_risks:
            row = [str(r.submission_id), r.student_identifier, f"{r.score:g}", str(r.risk_score)]
            if verbose:
                row.append(", ".join(r.risk_factors))
            table.add_row(*row)
        console.print(table)
    else:
        console.print("[green]✓ No submissions flagged for regrade[/green]")


if __name__ == "__main__":
    app()
