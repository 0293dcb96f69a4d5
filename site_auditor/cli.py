"""Typer CLI application for the site audit engine.

Provides commands to audit a batch of sites, inspect the active scoring
weights and list the check catalogue.
"""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from site_auditor.config import DEFAULT_CONFIG_PATH

console = Console()
app = typer.Typer(
    name="seo-audit",
    help="Site Audit Engine -- technical SEO, on-page, entity trust and hygiene audits.",
    add_completion=False,
    no_args_is_help=True,
)

_STATUS_STYLE = {
    "pass": "[green]✔ pass[/green]",
    "warn": "[yellow]⚠ warn[/yellow]",
    "fail": "[red]✘ fail[/red]",
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


def _get_app(config_path: str):
    """Lazy-import and return a SiteAuditApp instance."""
    from site_auditor.app import SiteAuditApp
    return SiteAuditApp(config_path=config_path)


def _print_result(result) -> None:
    """Pretty-print one audited origin using Rich."""
    summary = result.summary
    console.print(
        Panel(
            f"[bold]{result.target}[/bold]\n"
            f"Overall score: [bold]{summary.overall}[/bold]  Grade: [bold]{summary.grade}[/bold]",
            title="Audit Summary",
        )
    )

    cats = Table(title="Category Scores", show_header=True, header_style="bold magenta")
    cats.add_column("Category", style="cyan", min_width=16)
    cats.add_column("Score", justify="right")
    cats.add_column("Weighted", justify="right")
    for cat in result.categories:
        cats.add_row(cat.id.replace("_", " ").title(), str(cat.score), str(cat.weighted))
    console.print(cats)

    problems = [i for i in result.issues if i.status != "pass"]
    if problems:
        table = Table(title="Issues", show_header=True, header_style="bold magenta")
        table.add_column("Check", style="cyan", min_width=22)
        table.add_column("Status", min_width=8)
        table.add_column("Fix", max_width=60)
        for issue in sorted(problems, key=lambda i: i.status != "fail"):
            table.add_row(issue.id, _STATUS_STYLE[issue.status], issue.fix)
        console.print(table)

    psi = result.pagespeed
    if psi.outcome.is_present:
        console.print(f"PageSpeed: mobile={psi.mobile_score} desktop={psi.desktop_score}")
    else:
        console.print(f"PageSpeed: [dim]skipped ({psi.outcome.reason})[/dim]")

    files = ", ".join(f"{k}={'yes' if f.exists else 'no'}" for k, f in result.files.items())
    console.print(f"Core files: {files}")

    if result.best_contact:
        best = result.best_contact
        console.print(
            f"Best contact: [bold]{best.value}[/bold] ({best.type}, "
            f"confidence {best.confidence}) from {best.source_url}"
        )
    else:
        console.print("Best contact: [dim]none found[/dim]")
    for owner in result.owner_candidates:
        console.print(f"Owner candidate: {owner.name} ({owner.title})")


# ------------------------------------------------------------------
# audit
# ------------------------------------------------------------------
@app.command()
def audit(
    urls: list[str] = typer.Argument(..., help="Sites to audit (up to 10, e.g. example.com)."),
    enrichment: bool = typer.Option(
        False, "--enrichment", "-e", help="Look up company officers on Companies House."
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON report here."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON report."),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Settings YAML path."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Audit one or more sites and print scores, issues and contacts."""
    from site_auditor.exceptions import AuditError
    from site_auditor.modules.technical_audit.auditor import AuditOrchestrator

    _setup_logging(verbose)
    audit_app = _get_app(config)

    with Progress(
        SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console
    ) as progress:
        progress.add_task(description=f"Auditing {len(urls)} site(s)...", total=None)
        try:
            entries = _run_async(audit_app.audit(urls, enrichment=enrichment))
        except AuditError as exc:
            console.print(f"[red]✘ {exc}[/red]")
            raise typer.Exit(code=1)

    if output:
        AuditOrchestrator.export_report(entries, output)
        console.print(f"Report written to {output}")

    if as_json:
        payload = [e.to_dict() for e in entries]
        console.print_json(json.dumps(payload[0] if len(payload) == 1 else payload))
        return

    failures = 0
    for entry in entries:
        if entry.ok:
            _print_result(entry)
        else:
            failures += 1
            console.print(
                Panel(f"[red]{entry.error_type}[/red]: {entry.message}", title=entry.target)
            )
    console.print(
        f"[green]✔[/green] Audit complete: {len(entries) - failures} succeeded, "
        f"{failures} failed."
    )


# ------------------------------------------------------------------
# weights
# ------------------------------------------------------------------
@app.command()
def weights(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Settings YAML path."),
) -> None:
    """Show the active category and check weights."""
    from site_auditor.config import load_settings

    settings = load_settings(config)
    table = Table(title="Scoring Weights", show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Share", justify="right")
    table.add_column("Check")
    table.add_column("Weight", justify="right")
    for category, share in settings.weights.category_weights.items():
        table_checks = settings.weights.check_weights.get(category, {})
        first = True
        for check_id, weight in table_checks.items():
            table.add_row(category if first else "", f"{share:g}" if first else "", check_id, f"{weight:g}")
            first = False
    console.print(table)


# ------------------------------------------------------------------
# checks
# ------------------------------------------------------------------
@app.command()
def checks() -> None:
    """List every check in the audit catalogue."""
    from datetime import datetime

    from site_auditor.modules.technical_audit.checks import CHECK_CATALOGUE

    table = Table(title="Check Catalogue", show_header=True, header_style="bold magenta")
    table.add_column("Check", style="cyan", min_width=22)
    table.add_column("Category")
    table.add_column("Fix", max_width=60)
    for check in CHECK_CATALOGUE:
        table.add_row(check.id, check.category, check.fix.format(year=datetime.now().year))
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
