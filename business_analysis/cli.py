"""Typer CLI application for Business Analysis.

Provides commands to analyze a local business (Google profile, website,
search rankings and reviews), browse stored reports, and check the
configuration.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from business_analysis.errors import BusinessAnalysisError

console = Console()
app = typer.Typer(
    name="bizscan",
    help="Business Analysis -- score a local business's SEO, UX and Google listing.",
    add_completion=False,
    no_args_is_help=True,
)

_SCORE_ROWS = [
    ("Summary", "summary_score", "summary"),
    ("SEO", "seo_score", "seo"),
    ("User Experience", "ux_score", "ux"),
    ("Local Listing", "local_listing_score", "local_listing"),
]
_RICH_COLORS = {
    "green": "green",
    "lightgreen": "bright_green",
    "yellow": "yellow",
    "orange": "dark_orange",
    "red": "red",
}


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_app(config: str):
    """Lazy-import and return an initialised BusinessAnalysisApp."""
    from business_analysis.app import BusinessAnalysisApp
    application = BusinessAnalysisApp(config_path=config)
    application.initialize()
    return application


def _print_report(report: dict) -> None:
    """Pretty-print the headline scores, issues and recommendations."""
    profile = report.get("google_business_profile") or {}
    metadata = report.get("analysis_metadata") or {}
    categories = report.get("score_categories") or {}

    table = Table(title="Scores: " + str(profile.get("name", "")), show_header=True,
                  header_style="bold magenta")
    table.add_column("Category", style="cyan", min_width=18)
    table.add_column("Score", justify="right", min_width=6)
    table.add_column("Rating", min_width=12)
    for label, key, category in _SCORE_ROWS:
        info = categories.get(category) or {}
        color = _RICH_COLORS.get(info.get("color", ""), "white")
        table.add_row(label, "[" + color + "]" + str(report.get(key, 0)) + "[/" + color + "]",
                      info.get("label", ""))
    console.print(table)

    issues = (
        list(report.get("seo_issues") or [])
        + list(report.get("ux_issues") or [])
        + list(report.get("local_listing_issues") or [])
    )
    if issues:
        issue_table = Table(title="Issues", show_header=True, header_style="bold magenta")
        issue_table.add_column("Severity", min_width=9)
        issue_table.add_column("Category", style="cyan")
        issue_table.add_column("Issue", max_width=70)
        for issue in issues:
            issue_table.add_row(issue.get("severity", ""), issue.get("type", ""),
                                issue.get("message", ""))
        console.print(issue_table)

    recommendations = report.get("recommendations") or []
    if recommendations:
        rec_table = Table(title="Recommendations", show_header=True, header_style="bold magenta")
        rec_table.add_column("#", justify="right")
        rec_table.add_column("Priority", min_width=8)
        rec_table.add_column("Recommendation", max_width=60)
        rec_table.add_column("Timeframe")
        for idx, rec in enumerate(recommendations, 1):
            rec_table.add_row(str(idx), rec.get("priority", ""), rec.get("title", ""),
                              rec.get("timeframe", ""))
        console.print(rec_table)

    keywords = ", ".join(metadata.get("keywords_analyzed") or []) or "-"
    inferred = " (AI inferred)" if metadata.get("ai_inferred") else ""
    console.print("Industry: [bold]" + str(metadata.get("industry") or "-") + "[/bold]" + inferred)
    console.print("Keywords: " + keywords)
    console.print("Elapsed: " + str(metadata.get("analysis_duration_ms", 0)) + " ms")


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    place_id: Optional[str] = typer.Option(None, "--place-id", "-p", help="Google place id (ChIJ...)."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Business name."),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="City / address to search in."),
    keyword: Optional[list[str]] = typer.Option(None, "--keyword", "-k", help="Target keyword (repeatable)."),
    industry: Optional[str] = typer.Option(None, "--industry", "-i", help="Industry, e.g. 'restaurant'."),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON report to a file."),
    html_path: Optional[Path] = typer.Option(None, "--html", help="Write an HTML report to a file."),
    save: bool = typer.Option(False, "--save", help="Store the report in the database."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Analyze a business by place id or by name and location."""
    _setup_logging(verbose)
    from business_analysis.modules.analysis import AnalysisRequest
    from business_analysis.modules.reporting import ReportRenderer

    try:
        request = AnalysisRequest.from_dict({
            "place_id": place_id,
            "business_name": name,
            "location": location,
            "keywords": list(keyword or []),
            "industry": industry,
        })
    except ValueError as exc:
        console.print("[red]✘ Invalid request:[/red] " + str(exc))
        raise typer.Exit(code=1)

    label = place_id or (str(name) + ", " + str(location))
    if not as_json:
        console.print(Panel("[bold cyan]Business Analysis: " + label + "[/bold cyan]"))

    application = _get_app(config)
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      console=console, transient=True, disable=as_json) as progress:
            progress.add_task(description="Analyzing profile, website, rankings and reviews...", total=None)
            report = _run_async(application.analyze(request, save=save))
    except BusinessAnalysisError as exc:
        console.print("[red]✘ " + exc.message + "[/red]")
        raise typer.Exit(code=1)

    data = report.to_dict()
    renderer = ReportRenderer()

    if output:
        output.write_text(renderer.render_json(data), encoding="utf-8")
        console.print("JSON report saved to: [bold]" + str(output) + "[/bold]")
    if html_path:
        html_path.write_text(renderer.render_html(data), encoding="utf-8")
        console.print("HTML report saved to: [bold]" + str(html_path) + "[/bold]")

    if as_json:
        typer.echo(renderer.render_json(data))
        return

    _print_report(data)
    console.print("[green]✔[/green] Analysis complete.")


# ------------------------------------------------------------------
# history
# ------------------------------------------------------------------
@app.command()
def history(
    limit: int = typer.Option(20, "--limit", help="Number of reports to show."),
    place_id: Optional[str] = typer.Option(None, "--place-id", "-p", help="Only this place."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """List stored analysis reports, newest first."""
    _setup_logging(verbose)
    records = _get_app(config).history(limit=limit, place_id=place_id)
    if not records:
        console.print("[yellow]No stored reports.[/yellow]")
        return

    table = Table(title="Stored Reports", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Business", style="cyan", max_width=35)
    table.add_column("Summary", justify="right")
    table.add_column("SEO", justify="right")
    table.add_column("UX", justify="right")
    table.add_column("Local", justify="right")
    table.add_column("Created")
    for rec in records:
        table.add_row(
            str(rec["id"]), rec["business_name"], str(rec["summary_score"]),
            str(rec["seo_score"]), str(rec["ux_score"]), str(rec["local_listing_score"]),
            str(rec.get("created_at") or "")[:19],
        )
    console.print(table)


# ------------------------------------------------------------------
# show
# ------------------------------------------------------------------
@app.command()
def show(
    report_id: int = typer.Argument(..., help="Stored report id (see `history`)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON."),
    html_path: Optional[Path] = typer.Option(None, "--html", help="Write an HTML report to a file."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Display a stored analysis report."""
    _setup_logging(verbose)
    from business_analysis.modules.reporting import ReportRenderer

    data = _get_app(config).load_report(report_id)
    if data is None:
        console.print("[red]✘ No stored report with id " + str(report_id) + "[/red]")
        raise typer.Exit(code=1)

    renderer = ReportRenderer()
    if html_path:
        html_path.write_text(renderer.render_html(data), encoding="utf-8")
        console.print("HTML report saved to: [bold]" + str(html_path) + "[/bold]")
    if as_json:
        typer.echo(renderer.render_json(data))
        return
    _print_report(data)


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------
@app.command()
def status(
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show configuration, API key and database status."""
    _setup_logging(verbose)
    console.print(Panel("[bold cyan]System Status[/bold cyan]"))

    table = Table(title="Component Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=20)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=55)

    for component, info in _get_app(config).get_status().items():
        state = info.get("status")
        if state == "ok":
            display = "[green]✔ OK[/green]"
        elif state == "warning":
            display = "[yellow]⚠ Warning[/yellow]"
        else:
            display = "[red]✘ Error[/red]"
        table.add_row(component.replace("_", " ").title(), display, str(info.get("details", "")))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
