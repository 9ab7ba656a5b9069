"""Sites command group: browse the website registry."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from siteprobe.config.sites import get_website, list_websites
from siteprobe.utils.exceptions import ConfigError


def register_sites_commands(app: typer.Typer, console: Console) -> None:
    """Register sites command group."""
    sites_app = typer.Typer(help="Inspect configured websites")
    app.add_typer(sites_app, name="sites")

    @sites_app.command("list")
    def sites_list() -> None:
        """List registered websites."""
        table = Table(title="Websites")
        table.add_column("Key", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Base URL")
        for site in list_websites():
            table.add_row(site.key, site.name, site.type, site.base_url)
        console.print(table)

    @sites_app.command("show")
    def sites_show(key: str = typer.Argument(..., help="Website key")) -> None:
        """Show one website's selectors and keywords."""
        try:
            site = get_website(key)
        except ConfigError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

        console.print(f"[bold]{site.name}[/bold] ({site.type}) {site.base_url}")
        console.print(f"Features: {', '.join(site.features) or '-'}")
        for group, words in site.keywords.items():
            minimum = site.min_keyword_matches.get(group)
            suffix = f" (min {minimum})" if minimum else ""
            console.print(f"Keywords [{group}]{suffix}: {', '.join(words)}")

        table = Table(title="Selectors")
        table.add_column("Group", style="cyan")
        table.add_column("Name")
        table.add_column("Fallbacks")
        for group, items in site.selectors.items():
            for name, selectors in items.items():
                table.add_row(group, name, " | ".join(selectors))
        console.print(table)
