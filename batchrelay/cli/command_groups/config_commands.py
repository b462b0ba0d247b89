"""Config command group."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from batchrelay.config.access import get_config
from batchrelay.config.loader import convert_to_camel, get_config_path, save_config
from batchrelay.config.schema import Config
from batchrelay.utils.exceptions import sanitize_error_message


def register_config_commands(app: typer.Typer, console: Console) -> None:
    """Register config command group."""
    config_app = typer.Typer(help="Config helpers (show/path/init/endpoints)")
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def config_show() -> None:
        """Print the effective configuration (file + environment)."""
        cfg = get_config()
        text = json.dumps(convert_to_camel(cfg.model_dump()), indent=2, ensure_ascii=False)
        console.print(sanitize_error_message(text), markup=False)

    @config_app.command("path")
    def config_path() -> None:
        """Print the configuration file path."""
        console.print(str(get_config_path()))

    @config_app.command("init")
    def config_init(
        force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    ) -> None:
        """Write a config file with default values."""
        path = get_config_path()
        if path.exists() and not force:
            console.print(f"[yellow]Config already exists:[/yellow] {path}")
            raise typer.Exit(1)
        save_config(Config(), path)
        console.print(f"[green]✓[/green] Wrote {path}")

    @config_app.command("endpoints")
    def config_endpoints() -> None:
        """List named RPC endpoints."""
        cfg = get_config()
        if not cfg.endpoints:
            console.print("[yellow]No named endpoints configured[/yellow]")
            return
        table = Table(title="Endpoints")
        table.add_column("Name", style="cyan")
        table.add_column("URL")
        for name, url in sorted(cfg.endpoints.items()):
            table.add_row(name, sanitize_error_message(url))
        console.print(table)
