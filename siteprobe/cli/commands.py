"""CLI commands for siteprobe.

Top-level commands run strategies and single suites, serve the automation
server on stdio and make one-off tool calls; `sites` and `reports` are
registered as command groups.
"""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from siteprobe import __logo__, __version__
from siteprobe.cli.command_groups.reports_command import register_reports_commands
from siteprobe.cli.command_groups.sites_command import register_sites_commands
from siteprobe.config.loader import load_config
from siteprobe.config.schema import Config
from siteprobe.reporting.logger import configure_logging, ensure_rotating_log_file
from siteprobe.utils.exceptions import SiteProbeError

app = typer.Typer(
    name="siteprobe",
    help=f"{__logo__} siteprobe - Browser-driven website checks",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} siteprobe v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """siteprobe - Browser-driven website checks."""
    pass


def _prepare(
    config_path: Path | None,
    site: str | None = None,
    headless: bool | None = None,
    log_name: str | None = None,
) -> Config:
    """Load config, apply command-line overrides and set up logging."""
    try:
        config = load_config(config_path)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    if site:
        config.target_website = site
    if headless is not None:
        config.browser.headless = headless
    configure_logging(config.logging.level, config.logging.colors)
    if log_name and config.logging.file_sink:
        ensure_rotating_log_file(log_name, config.paths.logs_path, config.logging.level)
    return config


def _print_outcomes(outcomes) -> None:
    table = Table(title="Suite Results")
    table.add_column("Suite", style="cyan")
    table.add_column("Status")
    table.add_column("Tests", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Reports / Error")
    for outcome in outcomes:
        status = "[green]PASSED[/green]" if outcome.success else "[red]FAILED[/red]"
        tests = f"{outcome.summary.passed}/{outcome.summary.total}" if outcome.summary else "-"
        detail = outcome.error or str(outcome.reports.get("html", ""))
        table.add_row(outcome.suite, status, tests, f"{outcome.duration_ms / 1000:.1f}s", detail)
    console.print(table)


# ============================================================================
# Test runs
# ============================================================================


@app.command()
def run(
    strategy: str = typer.Argument("smoke", help="smoke | functional | quality | security | comprehensive"),
    site: str = typer.Option(None, "--site", "-s", help="Website key (see `siteprobe sites list`)"),
    headless: bool = typer.Option(None, "--headless/--headed", help="Override browser headless mode"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Run a test strategy (a group of suites)."""
    from siteprobe.suites.registry import run_strategy

    config = _prepare(config_path, site, headless, log_name="run")
    try:
        report = asyncio.run(run_strategy(strategy, config))
    except SiteProbeError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(2)

    _print_outcomes(report.outcomes)
    data = report.to_dict()
    console.print(f"\n[bold]{report.strategy.title}[/bold]: {data['testRun']['successRate']}% suites passed")
    console.print(f"Recommendation: {data['summary']['recommendation']}")
    raise typer.Exit(0 if report.success else 1)


@app.command()
def suite(
    name: str = typer.Argument(..., help="smoke | content | performance | accessibility | security"),
    site: str = typer.Option(None, "--site", "-s", help="Website key"),
    headless: bool = typer.Option(None, "--headless/--headed", help="Override browser headless mode"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Run a single test suite."""
    from siteprobe.suites.registry import run_suite

    config = _prepare(config_path, site, headless, log_name="suite")
    try:
        outcome = asyncio.run(run_suite(name, config))
    except SiteProbeError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(2)
    _print_outcomes([outcome])
    raise typer.Exit(0 if outcome.success else 1)


# ============================================================================
# Automation server
# ============================================================================


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    log_level: str = typer.Option("INFO", "--log-level", help="stderr log level"),
):
    """Run the browser automation server on stdin/stdout."""
    from siteprobe.server.stdio import run_stdio_server

    config = load_config(config_path)
    # stdout is the protocol channel; logs go to stderr only
    configure_logging(log_level, colors=False)
    viewport = config.browser.viewport.model_dump()
    asyncio.run(run_stdio_server(viewport=viewport))


@app.command()
def call(
    tool: str = typer.Argument(..., help="Tool name, e.g. navigate-to"),
    args: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Start a server, make one tool call and print its output."""
    from siteprobe.suites.registry import client_from_config

    try:
        arguments = json.loads(args)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid --args JSON: {e}[/red]")
        raise typer.Exit(2)
    if not isinstance(arguments, dict):
        console.print("[red]--args must be a JSON object[/red]")
        raise typer.Exit(2)

    config = _prepare(config_path)

    async def _call():
        async with client_from_config(config) as client:
            return await client.try_call_tool(tool, arguments)

    result = asyncio.run(_call())
    if not result.success:
        console.print(f"[red]Error: {result.message}[/red]")
        raise typer.Exit(1)
    console.print(result.output)


register_sites_commands(app=app, console=console)
register_reports_commands(app=app, console=console, load=_prepare)


if __name__ == "__main__":
    app()
