"""CLI principal (Typer).

Comandos:
- `renew`: pide a Tor una identidad nueva (`signal newnym`).
- `send`: envía un lote de comandos crudos al ControlPort.
- `fetch`: petición HTTP por el proxy SOCKS.
- `doctor`: diagnósticos y configuración del ControlPort.
"""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.text import Text

from adapters.control_port import create_control_channel
from adapters.http_client import torfetch
from cli import doctor
from cli.ui_components import (
    build_http_summary,
    build_outcome_panel,
    build_response_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import TorFetchError
from core.domain.models import CommandBatch
from core.log import configure_logging
from core.services.response_classifier import classify, response_lines
from core.services.session_renewal import renew_tor_session

app = typer.Typer(no_args_is_help=True, help="HTTP requests through Tor and ControlPort session renewal.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def _print_error(exc: Exception) -> None:
    message = exc.message if isinstance(exc, TorFetchError) else str(exc)
    _err_console.print(Text.assemble((f"{type(exc).__name__}: ", "bold red"), message))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    banner: bool = typer.Option(False, "--banner", help="Print the banner before running."),
) -> None:
    configure_logging("DEBUG" if verbose else AppSettings().log_level)
    if banner:
        print_banner(_console)


@app.command()
def renew() -> None:
    """Renew the Tor session (new circuit / identity)."""

    outcome = asyncio.run(renew_tor_session(AppSettings()))
    _console.print(build_outcome_panel(outcome))
    if not outcome.ok:
        raise typer.Exit(code=1)


@app.command()
def send(
    commands: list[str] = typer.Argument(..., help='Command lines, e.g. \'authenticate ""\' \'getinfo version\' quit'),
) -> None:
    """Send a raw command batch to the ControlPort and show the reply."""

    settings = AppSettings()
    try:
        batch = CommandBatch(commands)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    channel = create_control_channel(settings.control_endpoint(), timeout=settings.control_timeout_seconds)
    try:
        raw = asyncio.run(channel.send(batch))
    except TorFetchError as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from exc

    _console.print(build_response_table(response_lines(raw)))
    if classify(raw):
        _console.print("[green]All replies succeeded (250).[/green]")
    else:
        _console.print("[red]At least one reply was not 250.[/red]")
        raise typer.Exit(code=1)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        if ":" not in value:
            raise typer.BadParameter(f"header must look like 'Name: value' (got {value!r})")
        name, content = value.split(":", 1)
        headers[name.strip()] = content.strip()
    return headers


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL to request through Tor."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: list[str] = typer.Option([], "--header", "-H", help="Extra header 'Name: value' (repeatable)."),
    data: str | None = typer.Option(None, "--data", "-d", help="Request body."),
    include_body: bool = typer.Option(True, "--body/--no-body", help="Print the response body."),
) -> None:
    """Request a URL through the Tor SOCKS proxy."""

    headers = _parse_headers(header)
    try:
        response = asyncio.run(
            torfetch(url, method=method, headers=headers, content=data, settings=AppSettings())
        )
    except (TorFetchError, httpx.HTTPError) as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from exc

    _console.print(build_http_summary(response))
    if include_body:
        _console.print(response.text, markup=False, highlight=False)


def run() -> None:
    app()
