"""Errores del dominio y pistas de remediación.

Por qué un módulo propio:
- Los adaptadores traducen excepciones de librerías (`OSError`, `httpx`) a
  esta jerarquía en el borde, así el Core y la CLI solo conocen estos tipos.
- El `message` es mutable para poder adjuntar instrucciones al operador sin
  perder el tipo ni la causa encadenada.
"""

from __future__ import annotations

from typing import TypeVar

from core.torrc import get_torrc_location


class TorFetchError(Exception):
    """Base de todos los errores de tor-fetch."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ControlPortError(TorFetchError):
    """Fallo al hablar con el ControlPort de Tor."""


class ControlPortUnavailableError(ControlPortError):
    """El runtime no tiene sockets TCP (p.ej. Python en navegador)."""


class ControlPortTransportError(ControlPortError):
    """Conexión rechazada, reseteada, DNS, etc. Se conserva el mensaje del socket."""


class ControlPortTimeoutError(ControlPortTransportError):
    """El peer no cerró la conexión dentro del plazo configurado."""


class ControlPortProtocolError(ControlPortError):
    """La conexión terminó bien pero alguna línea no trae el status `250`."""

    def __init__(self, message: str = "", *, response: str = "") -> None:
        super().__init__(message)
        self.response = response


class TorProxyError(TorFetchError):
    """No se pudo usar el proxy SOCKS (típicamente Tor no está corriendo)."""


class RequestAbortedError(TorFetchError):
    """El llamador abortó la petición HTTP antes de recibir respuesta."""


CONTROL_PORT_HINT_MARKER = "Have you enabled the ControlPort in your `torrc` file?"
TOR_HINT_MARKER = "Are you running `tor`?"

_CONTROL_PORT_HINT = """ - {marker} ({torrc})

 Sample torrc file:
     ControlPort 9051
     HashedControlPassword 16:AEBC98A67.....E81DF

   Generate HashedControlPassword with (last output line):
     `tor --hash-password my_secret_password`

   Tell tor-fetch the password to use:
     `export TORFETCH_CONTROL_PASSWORD=my_secret_password`
     or run `tor-fetch doctor setup-control`
"""

_TOR_HINT = """ - {marker}

 Quickfixes:
  OSX: `brew install tor && tor`         # installs and runs tor
  Debian/Ubuntu: `apt-get install tor`   # should auto run as daemon after install
  Windows: download the Windows Expert Bundle from `https://www.torproject.org/download/tor/`
           Unzip and run tor.exe inside the Tor/ directory.
"""

E = TypeVar("E", bound=TorFetchError)


def _append_once(err: E, marker: str, attachment: str) -> E:
    if marker not in err.message:
        separator = "\n\n" if err.message and not err.message.endswith("\n") else ""
        err.message = f"{err.message}{separator}{attachment}"
        err.args = (err.message,)
    return err


def attach_control_port_hint(err: E) -> E:
    """Adjunta (una sola vez) cómo habilitar el ControlPort en el torrc."""

    attachment = _CONTROL_PORT_HINT.format(
        marker=CONTROL_PORT_HINT_MARKER,
        torrc=get_torrc_location(),
    )
    return _append_once(err, CONTROL_PORT_HINT_MARKER, attachment)


def attach_tor_hint(err: E) -> E:
    """Adjunta (una sola vez) cómo instalar y arrancar Tor."""

    return _append_once(err, TOR_HINT_MARKER, _TOR_HINT.format(marker=TOR_HINT_MARKER))
