"""
Portal E2E - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--visible, --browser, --report-dir, etc.)
    2. Config file (config.yaml)
    3. Environment variables (PORTAL_E2E__PORTAL__URL, etc.) and .env

Usage:
    portal-e2e list
    portal-e2e check-config
    portal-e2e run login --visible
    portal-e2e run settings_menu --card "International Student" --menu-item "Portal Features"
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from portal_e2e.browsers import context_options_from_settings, launch_from_settings
from portal_e2e.config import Settings, load_config
from portal_e2e.exceptions import BrowserLaunchError, ConfigurationError, TransportError
from portal_e2e.pages import PageSession
from portal_e2e.reporting import ScenarioReport, StepStatus
from portal_e2e.scenarios import SCENARIOS, ScenarioRunner, build_scenario
from portal_e2e.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Create the CLI app
app = typer.Typer(
    name="portal-e2e",
    help="End-to-end checks for the student portal",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    StepStatus.PASSED: "green",
    StepStatus.FAILED: "red",
    StepStatus.WARNING: "yellow",
    StepStatus.SKIPPED: "dim",
}


def _load(config: Optional[Path], env_file: Optional[Path], **overrides: Any) -> Settings:
    try:
        return load_config(config_path=config, env_file=env_file, **overrides)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(2)


@app.command()
def run(
    scenario: str = typer.Argument(..., help="Scenario name (see `portal-e2e list`)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    visible: Optional[bool] = typer.Option(None, "--visible/--headless", help="Show the browser window"),
    browser: Optional[str] = typer.Option(None, "--browser", "-b", help="Browser: chromium, chrome, msedge, firefox, webkit"),
    card: Optional[str] = typer.Option(None, "--card", help="Card to open"),
    button: Optional[str] = typer.Option(None, "--button", help="Button to press on the card"),
    target_card: Optional[str] = typer.Option(None, "--target-card", help="Card to open on the page the button leads to"),
    target_button: Optional[str] = typer.Option(None, "--target-button", help="Button to press on the target card"),
    menu_item: Optional[str] = typer.Option(None, "--menu-item", help="Settings menu entry to open"),
    report_dir: Optional[Path] = typer.Option(None, "--report-dir", "-o", help="Screenshot and report directory"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Run one portal scenario and write a JSON report.

    Browser options:
        --browser chromium  (default, bundled)
        --browser chrome    (Google Chrome)
        --browser msedge    (Microsoft Edge)

    Examples:
        portal-e2e run login --visible
        portal-e2e run card_button --card "International Portal" --button "GO TO DASHBOARD"
    """
    overrides: Dict[str, Any] = {}
    browser_overrides: Dict[str, Any] = {}
    if visible is not None:
        browser_overrides["headless"] = not visible
    if browser in ("chrome", "chrome-beta", "msedge", "msedge-beta"):
        browser_overrides.update(browser_type="chromium", channel=browser)
    elif browser:
        browser_overrides["browser_type"] = browser
    if browser_overrides:
        overrides["browser"] = browser_overrides
    if report_dir:
        overrides["reporting"] = {"output_dir": str(report_dir)}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    settings = _load(config, env_file, **overrides)
    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        json_format=settings.logging.json_format,
    )

    try:
        flow = build_scenario(
            scenario,
            settings,
            card=card,
            button=button,
            target_card=target_card,
            target_button=target_button,
            menu_item=menu_item,
        )
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        for key, value in e.details.items():
            console.print(f"  [dim]{key}:[/dim] {value}")
        raise typer.Exit(2)

    console.print(Panel.fit(
        f"[bold blue]Portal E2E[/bold blue]\n"
        f"[dim]Scenario:[/dim] {flow.name} ({len(flow.steps)} steps)\n"
        f"[dim]Portal:[/dim] {settings.portal.url}\n"
        f"[dim]Browser:[/dim] {settings.browser.channel or settings.browser.browser_type}"
        f"{'' if settings.browser.headless else ' (visible)'}",
        border_style="blue",
    ))

    report = asyncio.run(_run_async(settings, flow))
    _print_report(report)

    if not report.passed:
        raise typer.Exit(1)


async def _run_async(settings: Settings, flow: Any) -> ScenarioReport:
    """Launch, run the scenario, export the report and always close the browser."""
    try:
        browser = await launch_from_settings(settings.browser)
    except BrowserLaunchError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        console.print("Install browsers with: playwright install chromium")
        raise typer.Exit(3)

    session: Optional[PageSession] = None
    try:
        session = await PageSession.open(
            browser,
            settings,
            **context_options_from_settings(settings.browser),
        )
        try:
            report = await ScenarioRunner(session).run(flow)
        except TransportError as e:
            if e.report is not None:
                _export_report(e.report, settings, session.run_id)
                _print_report(e.report)
            console.print(f"[red]Browser connection lost: {e.message}[/red]")
            raise typer.Exit(4)

        _export_report(report, settings, session.run_id)
        return report
    finally:
        if session is not None and not session.context.closed:
            try:
                await session.close()
            except TransportError as e:
                logger.debug(f"Context already gone on close: {e.message}")
        await browser.close()


def _export_report(report: ScenarioReport, settings: Settings, run_id: str) -> None:
    path = Path(settings.reporting.output_dir) / run_id / "report.json"
    report.export_json(path)
    console.print(f"[dim]Report:[/dim] {path}")


def _print_report(report: ScenarioReport) -> None:
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Detail", overflow="fold")

    for step in report.steps:
        style = STATUS_STYLES.get(step.status, "white")
        table.add_row(
            str(step.step_number),
            step.name,
            f"[{style}]{step.status.value}[/{style}]",
            f"{step.duration_ms / 1000:.1f}s",
            step.detail or "",
        )

    console.print(table)
    colour = "green" if report.passed else "red"
    console.print(f"[bold {colour}]{report.summary_line()}[/bold {colour}]")


@app.command("list")
def list_scenarios():
    """List the available scenarios."""
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Scenario")
    table.add_column("Description")

    for name, factory in SCENARIOS.items():
        doc = (factory.__doc__ or "").strip().splitlines()
        table.add_row(name, doc[0] if doc else "")

    console.print(table)


@app.command("check-config")
def check_config(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
):
    """Show the effective configuration and any missing portal values."""
    settings = _load(config, env_file)

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("portal.url", settings.portal.url or "[red]<unset>[/red]")
    table.add_row("portal.username", settings.portal.username or "[red]<unset>[/red]")
    table.add_row("portal.password", "********" if settings.portal.password else "[red]<unset>[/red]")
    table.add_row("browser", f"{settings.browser.browser_type} (channel={settings.browser.channel})")
    table.add_row("browser.headless", str(settings.browser.headless))
    table.add_row("resolver.timeout_ms", str(settings.resolver.timeout_ms))
    table.add_row("waiter.poll_interval_ms", str(settings.waiter.poll_interval_ms))
    table.add_row("reporting.output_dir", settings.reporting.output_dir)
    console.print(table)

    missing = settings.portal.missing()
    if missing:
        console.print(f"[red]Missing: {', '.join(missing)}[/red]")
        console.print("Set via env var, e.g. PORTAL_E2E__PORTAL__URL=https://portal.example.edu/")
        raise typer.Exit(2)

    console.print("[green]Configuration complete[/green]")


if __name__ == "__main__":
    app()
