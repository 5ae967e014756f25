"""Cliente del ControlPort de Tor (asyncio streams).

Por qué así:
- Un socket por llamada: se escribe el lote entero en un único write y se
  acumula todo lo recibido hasta que Tor cierra la conexión (tras `quit`).
- Sin parseo por línea ni emparejado petición/respuesta: eso lo decide el
  clasificador sobre el texto final.
- Los errores de socket se traducen aquí a `ControlPortError`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from core import runtime
from core.domain.errors import (
    ControlPortTimeoutError,
    ControlPortTransportError,
    ControlPortUnavailableError,
    attach_control_port_hint,
)
from core.domain.models import CommandBatch, ControlEndpoint
from core.interfaces.control_channel import ControlChannel

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
_READ_CHUNK_SIZE = 4096


class FullControlChannel(ControlChannel):
    """Canal respaldado por un socket TCP real."""

    def __init__(
        self,
        endpoint: ControlEndpoint | None = None,
        *,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._endpoint = endpoint or ControlEndpoint()
        self._timeout = timeout

    @property
    def endpoint(self) -> ControlEndpoint:
        return self._endpoint

    async def send(self, batch: CommandBatch) -> str:
        host, port = self._endpoint.host, self._endpoint.port
        logger.debug("Sending %d command(s) to ControlPort %s:%s", len(batch), host, port)

        try:
            raw = await asyncio.wait_for(self._exchange(batch), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            err = ControlPortTimeoutError(
                f"ControlPort {host}:{port} did not close the connection within {self._timeout}s"
            )
            logger.warning("%s", err.message)
            raise attach_control_port_hint(err) from exc

        logger.debug("ControlPort %s:%s closed after %d byte(s)", host, port, len(raw))
        return raw

    async def _exchange(self, batch: CommandBatch) -> str:
        # Todo OSError (ETIMEDOUT incluido) sale como ControlPortTransportError.
        try:
            reader, writer = await asyncio.open_connection(self._endpoint.host, self._endpoint.port)
        except OSError as exc:
            raise self._transport_error(exc) from exc
        try:
            writer.write(batch.serialize())
            await writer.drain()

            received = bytearray()
            while True:
                chunk = await reader.read(_READ_CHUNK_SIZE)
                if not chunk:
                    break
                received.extend(chunk)
            return received.decode("utf-8", errors="replace")
        except OSError as exc:
            raise self._transport_error(exc) from exc
        finally:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

    def _transport_error(self, exc: OSError) -> ControlPortTransportError:
        logger.warning("ControlPort %s:%s transport error: %s", self._endpoint.host, self._endpoint.port, exc)
        err = ControlPortTransportError(str(exc) or "ControlPort communication error")
        return attach_control_port_hint(err)


class UnavailableControlChannel(ControlChannel):
    """Variante para runtimes sin sockets: siempre falla con Unavailable."""

    def __init__(self, reason: str = "ControlPort is not available in this environment") -> None:
        self._reason = reason

    async def send(self, batch: CommandBatch) -> str:
        raise ControlPortUnavailableError(self._reason)


def create_control_channel(
    endpoint: ControlEndpoint | None = None,
    *,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    sockets_available: bool | None = None,
) -> ControlChannel:
    """Elige la variante según la capacidad del runtime (detectada al importar)."""

    if sockets_available is None:
        sockets_available = runtime.SOCKETS_AVAILABLE
    if not sockets_available:
        return UnavailableControlChannel()
    return FullControlChannel(endpoint, timeout=timeout)
