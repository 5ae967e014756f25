"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta en el borde (host/puerto/tipo de proxy) sin acoplar el
  Core a sockets ni a httpx.
- Valores inmutables: un `ControlEndpoint` o un `CommandBatch` no cambian
  mientras una llamada está en curso.

Nota:
- Estos modelos describen *qué* se envía y *qué* se obtiene, no *cómo*.
"""

from __future__ import annotations

from typing import Iterable, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from core.domain.errors import TorFetchError

LINE_TERMINATOR = "\n"


def ensure_single_line(value: str, what: str = "value") -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{what} must not contain line breaks")
    return value


def quote_string(value: str) -> str:
    """QuotedString del ControlPort: comillas dobles, escapando `\\` y `"`."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


DEFAULT_PROXY_HOST = "127.0.0.1"
DEFAULT_PROXY_PORT = 9050
DEFAULT_PROXY_TYPE = 5


class ControlEndpoint(BaseModel):
    """Dónde escucha el ControlPort de Tor y con qué password autenticarse.

    Es un valor explícito que pertenece a un único canal/renovador; no existe
    un objeto global compartido que alguien pueda mutar a mitad de un envío.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(
        default="localhost",
        min_length=1,
        description="Host del ControlPort.",
    )
    port: int = Field(
        default=9051,
        ge=1,
        le=65535,
        description="Puerto TCP del ControlPort.",
    )
    password: str = Field(
        default="",
        repr=False,
        description="Password en claro para `authenticate` (vacío = sin credencial).",
    )

    @field_validator("password")
    @classmethod
    def _password_single_line(cls, value: str) -> str:
        return ensure_single_line(value, "password")


class ProxySettings(BaseModel):
    """Endpoint SOCKS por el que salen las peticiones HTTP."""

    model_config = ConfigDict(frozen=True)

    ipaddress: str = Field(default=DEFAULT_PROXY_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PROXY_PORT, ge=1, le=65535)
    type: Literal[4, 5] = Field(
        default=DEFAULT_PROXY_TYPE,
        description="Versión SOCKS (4 o 5).",
    )

    @field_validator("ipaddress")
    @classmethod
    def _normalize_localhost(cls, value: str) -> str:
        return DEFAULT_PROXY_HOST if value == "localhost" else value

    @property
    def proxy_url(self) -> str:
        scheme = "socks4" if self.type == 4 else "socks5"
        return f"{scheme}://{self.ipaddress}:{self.port}"


def create_proxy_settings(
    ipaddress: str | None = None,
    port: int | None = None,
    type: int | None = None,
    *,
    defaults: ProxySettings | None = None,
) -> ProxySettings:
    """Completa los campos vacíos con los defaults (`127.0.0.1:9050`, SOCKS5)."""

    defaults = defaults or ProxySettings()
    return ProxySettings(
        ipaddress=ipaddress or defaults.ipaddress,
        port=port or defaults.port,
        type=type or defaults.type,
    )


class CommandBatch(BaseModel):
    """Secuencia ordenada y no vacía de líneas de comando del ControlPort."""

    model_config = ConfigDict(frozen=True)

    commands: tuple[str, ...] = Field(..., min_length=1)

    def __init__(self, commands: Iterable[str], **data: object) -> None:
        super().__init__(commands=tuple(commands), **data)

    @field_validator("commands")
    @classmethod
    def _single_line(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for command in value:
            ensure_single_line(command, "command")
        return value

    def __len__(self) -> int:
        return len(self.commands)

    def serialize(self) -> bytes:
        """Une con `\\n` y añade un terminador final; se envía en un único write."""

        return (LINE_TERMINATOR.join(self.commands) + LINE_TERMINATOR).encode("utf-8")


class Outcome(BaseModel):
    """Resultado terminal de una renovación: éxito con mensaje o fallo con error."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    message: str | None = None
    error: TorFetchError | None = None

    @model_validator(mode="after")
    def _ok_iff_no_error(self) -> "Outcome":
        if self.ok != (self.error is None):
            raise ValueError("ok must be True exactly when error is None")
        return self

    @classmethod
    def success(cls, message: str) -> "Outcome":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, error: TorFetchError) -> "Outcome":
        return cls(ok=False, message=error.message, error=error)
