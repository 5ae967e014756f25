"""Contrato del canal de control de Tor.

Por qué Protocol:
- Hay dos implementaciones intercambiables (socket real / runtime sin
  sockets) y los tests pueden inyectar un doble sin herencia.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CommandBatch


@runtime_checkable
class ControlChannel(Protocol):
    """Contrato mínimo para enviar un lote de comandos al ControlPort.

    Reglas de diseño:
    - `send` es asíncrono: se completa una sola vez, con la respuesta cruda
      acumulada hasta que el peer cierra, o lanzando un `ControlPortError`.
    - No reintenta ni interpreta la respuesta; eso es del clasificador.
    """

    async def send(self, batch: CommandBatch) -> str:
        """Envía el lote y devuelve todo el texto recibido."""

        ...
