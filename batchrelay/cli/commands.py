"""CLI commands for batchrelay.

Top-level commands ``call`` and ``batch`` send JSON-RPC requests through a
relay; the ``config`` group inspects and initializes configuration.
"""

import asyncio
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from batchrelay import __logo__, __version__
from batchrelay.cli.command_groups.config_commands import register_config_commands
from batchrelay.cli.shared.io_utils import format_result, load_calls, parse_value
from batchrelay.cli.shared.logging_utils import configure_cli_logging
from batchrelay.config.access import get_config
from batchrelay.middleware import BatchMiddleware
from batchrelay.relay import Relay
from batchrelay.utils.exceptions import BatchRelayError

app = typer.Typer(
    name="batchrelay",
    help=f"{__logo__} batchrelay - batched JSON-RPC 2.0 client",
    no_args_is_help=True,
)

console = Console()

register_config_commands(app=app, console=console)


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} batchrelay v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show batchrelay runtime logs"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Debug logging (ids, batch sizes, transport errors)"),
):
    """batchrelay - batched JSON-RPC 2.0 client."""
    level = "INFO"
    log_file = None
    try:
        cfg = get_config()
        level = cfg.logging.level
        log_file = "batchrelay" if cfg.logging.file else None
    except ValueError as e:
        # config problems surface again in the command that needs the config
        logger.debug(f"config not loaded for logging setup: {e}")
    configure_cli_logging(logs=logs, debug=debug, level=level, log_file=log_file)


def _make_relay(url: str | None, endpoint: str | None) -> Relay:
    if url:
        try:
            return Relay.from_url(url)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--url")
    try:
        return Relay.from_config(get_config(), endpoint)
    except KeyError as e:
        raise typer.BadParameter(str(e), param_hint="--endpoint")
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _fail(exc: BatchRelayError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
    raise typer.Exit(1)


@app.command()
def call(
    method: str = typer.Argument(..., help="JSON-RPC method, e.g. eth_blockNumber"),
    params: str = typer.Argument("", help="Params as JSON, e.g. '[\"0xabc\", \"latest\"]'"),
    url: str = typer.Option(None, "--url", "-u", help="RPC endpoint URL (overrides config)"),
    endpoint: str = typer.Option(None, "--endpoint", "-e", help="Named endpoint from config"),
):
    """Send a single JSON-RPC request and print its result."""
    relay = _make_relay(url, endpoint)

    async def _run() -> Any:
        async with relay:
            return await relay.request(method, parse_value(params))

    try:
        result = asyncio.run(_run())
    except BatchRelayError as e:
        _fail(e)
    console.print(format_result(result), markup=False, highlight=False)


@app.command()
def batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of {method, params}"),
    url: str = typer.Option(None, "--url", "-u", help="RPC endpoint URL (overrides config)"),
    endpoint: str = typer.Option(None, "--endpoint", "-e", help="Named endpoint from config"),
):
    """Send the calls in FILE as one batch and print results in call order."""
    try:
        calls = load_calls(file)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="FILE")
    relay = _make_relay(url, endpoint)
    client = BatchMiddleware(None, relay)

    async def _run():
        async with client:
            return await client.execute_batch(request)

    try:
        request = client.build_batch(calls)
        results = list(asyncio.run(_run()).drain())
    except BatchRelayError as e:
        _fail(e)

    # label rows by id; a server may omit answers
    submitted = request.ids()
    index_by_id = {request_id: index for index, request_id in enumerate(submitted)}
    answered = {result.id: result for result in results}

    table = Table(title=f"Batch ({len(results)}/{len(submitted)} responses)")
    table.add_column("#", style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Method", style="cyan")
    table.add_column("Result")
    failed = 0
    for request_id in sorted(set(submitted) | set(answered)):
        index = index_by_id.get(request_id)
        method = calls[index]["method"] if index is not None else "?"
        result = answered.get(request_id)
        if result is None:
            failed += 1
            shown = "[red]no response[/red]"
        elif result.ok:
            shown = escape(format_result(result.value))
        else:
            failed += 1
            shown = f"[red]{escape(str(result.error))}[/red]"
        table.add_row("-" if index is None else str(index), str(request_id), escape(str(method)), shown)
    console.print(table)
    if failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
