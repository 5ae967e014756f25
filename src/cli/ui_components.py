"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `renew`, `send` y `doctor`.
"""

from __future__ import annotations

import httpx
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Outcome
from core.services.response_classifier import SUCCESS_STATUS


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (solo en modo interactivo)."""

    title = Text("tor-fetch", style="bold magenta")
    subtitle = Text("HTTP over Tor • ControlPort • NEWNYM", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="magenta", padding=(1, 4)))


def build_response_table(lines: list[str]) -> Table:
    """Una fila por línea de respuesta del ControlPort."""

    table = Table(title="ControlPort response")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Line", style="white")
    table.add_column("OK", style="green", no_wrap=True)
    for index, line in enumerate(lines, start=1):
        ok = not line or SUCCESS_STATUS in line
        table.add_row(str(index), Text(line), "yes" if ok else Text("no", style="red"))
    return table


def build_outcome_panel(outcome: Outcome) -> Panel:
    """Panel verde con el mensaje de éxito o rojo con el error completo."""

    if outcome.ok:
        return Panel(Text(outcome.message or "OK"), title="Renewed", border_style="green")

    title = type(outcome.error).__name__ if outcome.error else "Error"
    return Panel(Text(outcome.message or "Unknown error"), title=title, border_style="red")


def build_http_summary(response: httpx.Response) -> Text:
    style = "green" if response.is_success else "yellow"
    text = Text()
    text.append(f"HTTP {response.status_code} {response.reason_phrase}", style=f"bold {style}")
    text.append(f"  {response.url}", style="dim")
    return text
