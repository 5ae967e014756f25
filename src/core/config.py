"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Los adaptadores (ControlPort/HTTP) construyen sus valores de dominio desde
  aquí en lugar de leer un objeto global mutable.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import ControlEndpoint, ProxySettings, ensure_single_line


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "tor-fetch"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "tor-fetch"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "tor-fetch"
    return Path.home() / ".config" / "tor-fetch"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# tor-fetch user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="TORFETCH_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    # Proxy SOCKS (peticiones HTTP)
    proxy_host: str = Field(
        default="127.0.0.1",
        min_length=1,
        description="Host del proxy SOCKS de Tor.",
    )
    proxy_port: int = Field(
        default=9050,
        ge=1,
        le=65535,
        description="Puerto del proxy SOCKS de Tor.",
    )
    proxy_type: int = Field(
        default=5,
        ge=4,
        le=5,
        description="Versión SOCKS (4 o 5).",
    )

    # ControlPort
    control_host: str = Field(
        default="localhost",
        min_length=1,
        description="Host del ControlPort.",
    )
    control_port: int = Field(
        default=9051,
        ge=1,
        le=65535,
        description="Puerto del ControlPort.",
    )
    control_password: str = Field(
        default="",
        repr=False,
        description="Password para `authenticate` (vacío si el torrc no exige).",
    )
    control_timeout_seconds: float | None = Field(
        default=15.0,
        gt=0,
        description="Plazo para conectar y esperar el cierre del ControlPort (None = sin plazo).",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request HTTP (segundos).",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; rv:128.0) Gecko/20100101 Firefox/128.0",
        min_length=1,
        description="User-Agent de las peticiones (el del Tor Browser por defecto).",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )

    @field_validator("control_password")
    @classmethod
    def _control_password_single_line(cls, value: str) -> str:
        return ensure_single_line(value, "control_password")

    def control_endpoint(self) -> ControlEndpoint:
        return ControlEndpoint(
            host=self.control_host,
            port=self.control_port,
            password=self.control_password,
        )

    def proxy_settings(self) -> ProxySettings:
        return ProxySettings(
            ipaddress=self.proxy_host,
            port=self.proxy_port,
            type=self.proxy_type,
        )
