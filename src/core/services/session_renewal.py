"""Renovación de sesión de Tor (`signal newnym`).

Orquesta authenticate + signal + quit sobre un `ControlChannel`, clasifica
la respuesta y entrega un `Outcome`. Los fallos de transporte y de protocolo
no se lanzan: viajan dentro del `Outcome`, con la pista de remediación ya
adjunta. No hay reintentos.
"""

from __future__ import annotations

import logging

from adapters.control_port import create_control_channel
from core.config import AppSettings
from core.domain.errors import (
    ControlPortError,
    ControlPortProtocolError,
    attach_control_port_hint,
)
from core.domain.models import LINE_TERMINATOR, CommandBatch, ControlEndpoint, Outcome, quote_string
from core.interfaces.control_channel import ControlChannel
from core.services.response_classifier import classify

logger = logging.getLogger(__name__)

RENEWED_MESSAGE = "Tor session successfully renewed!!"
PROTOCOL_ERROR_PREAMBLE = "Error communicating with Tor ControlPort"


def authenticate_command(password: str = "") -> str:
    return f"authenticate {quote_string(password or '')}"


def build_renewal_batch(password: str = "") -> CommandBatch:
    """authenticate "<password>" / signal newnym / quit."""

    return CommandBatch(
        [
            authenticate_command(password),
            "signal newnym",
            "quit",
        ]
    )


class SessionRenewer:
    """Pide a Tor una identidad nueva a través de un canal de control.

    El endpoint (y por tanto el password) pertenece a esta instancia; el lote
    se construye con un snapshot del password en cada `renew()`.
    """

    def __init__(
        self,
        channel: ControlChannel,
        endpoint: ControlEndpoint | None = None,
        *,
        terminator: str = LINE_TERMINATOR,
    ) -> None:
        self._channel = channel
        self._endpoint = endpoint or ControlEndpoint()
        self._terminator = terminator

    @property
    def endpoint(self) -> ControlEndpoint:
        return self._endpoint

    async def renew(self) -> Outcome:
        batch = build_renewal_batch(self._endpoint.password)

        try:
            raw = await self._channel.send(batch)
        except ControlPortError as exc:
            attach_control_port_hint(exc)
            logger.warning("Tor session renewal failed: %s", type(exc).__name__)
            return Outcome.failure(exc)

        if not classify(raw, self._terminator):
            err = ControlPortProtocolError(f"{PROTOCOL_ERROR_PREAMBLE}\n{raw}", response=raw)
            attach_control_port_hint(err)
            logger.warning("Tor ControlPort rejected renewal: %r", raw)
            return Outcome.failure(err)

        logger.info("Tor session renewed via %s:%s", self._endpoint.host, self._endpoint.port)
        return Outcome.success(RENEWED_MESSAGE)


async def renew_tor_session(
    settings: AppSettings | None = None,
    *,
    channel: ControlChannel | None = None,
) -> Outcome:
    """Atajo: una renovación con la configuración de `AppSettings`."""

    settings = settings or AppSettings()
    endpoint = settings.control_endpoint()
    channel = channel or create_control_channel(endpoint, timeout=settings.control_timeout_seconds)
    return await SessionRenewer(channel, endpoint).renew()
