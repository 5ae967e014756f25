"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.control_port import create_control_channel
from adapters.http_client import torfetch
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import TorFetchError
from core.domain.models import CommandBatch
from core.services.response_classifier import classify
from core.services.session_renewal import authenticate_command
from core.torrc import get_torrc_location

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and ControlPort configuration.")

_console = Console()

TOR_CHECK_URL = "https://check.torproject.org/api/ip"


def _first_line(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else message


async def _check_socks(settings: AppSettings) -> tuple[bool, str]:
    try:
        response = await torfetch(TOR_CHECK_URL, settings=settings)
    except TorFetchError as exc:
        return False, _first_line(exc.message)
    except httpx.HTTPError as exc:
        return False, str(exc) or type(exc).__name__
    if response.status_code != 200:
        return False, f"HTTP {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return True, f"HTTP {response.status_code}"
    if not isinstance(payload, dict):
        return False, "Unexpected reply from the Tor check service"
    if payload.get("IsTor"):
        return True, f"Exit IP {payload.get('IP')}"
    return False, "Traffic is not leaving through Tor"


async def _check_control_port(settings: AppSettings) -> tuple[bool, str]:
    """Autentica y sale; no cambia la identidad."""

    endpoint = settings.control_endpoint()
    channel = create_control_channel(endpoint, timeout=settings.control_timeout_seconds)
    batch = CommandBatch([authenticate_command(endpoint.password), "quit"])
    try:
        raw = await channel.send(batch)
    except TorFetchError as exc:
        return False, _first_line(exc.message)
    if classify(raw):
        return True, "Authenticated"
    return False, _first_line(raw)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    proxy = settings.proxy_settings()
    endpoint = settings.control_endpoint()

    table = Table(title="tor-fetch Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("SOCKS proxy", "OK", proxy.proxy_url)
    table.add_row("ControlPort", "OK", f"{endpoint.host}:{endpoint.port}")
    if endpoint.password:
        table.add_row("Control password", "OK", "Set")
    else:
        table.add_row("Control password", "OPTIONAL", "Empty -> authenticate without credential")
    table.add_row("torrc", "INFO", get_torrc_location())

    # Connectivity (best-effort)
    ok_socks, detail_socks = asyncio.run(_check_socks(settings))
    table.add_row("HTTP over Tor", "OK" if ok_socks else "FAIL", detail_socks)

    ok_control, detail_control = asyncio.run(_check_control_port(settings))
    table.add_row("ControlPort auth", "OK" if ok_control else "FAIL", detail_control)

    _console.print(table)

    if not ok_control:
        _console.print(
            "\n[yellow]Note:[/yellow] `renew` needs `ControlPort` (and usually `HashedControlPassword`) in your torrc. "
            "Run `tor-fetch doctor setup-control` to store the password."
        )


@app.command(name="setup-control")
def setup_control() -> None:
    """Interactive ControlPort setup (stores config in the user config .env)."""

    settings = AppSettings()

    host = typer.prompt("ControlPort host", default=settings.control_host, show_default=True).strip()
    port = typer.prompt("ControlPort port", default=settings.control_port, type=int, show_default=True)
    password = typer.prompt(
        "ControlPort password (empty for none)",
        default="",
        show_default=False,
        hide_input=True,
        confirmation_prompt=False,
    )

    if not host:
        raise typer.BadParameter("host is required")
    if not 1 <= port <= 65535:
        raise typer.BadParameter("port must be between 1 and 65535")

    env_path = write_user_env_vars(
        {
            "TORFETCH_CONTROL_HOST": host,
            "TORFETCH_CONTROL_PORT": str(port),
            "TORFETCH_CONTROL_PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved ControlPort config to:[/green] {env_path}")
