"""Localización del `torrc` para mensajes de diagnóstico.

Solo produce una pista legible ("¿dónde está tu torrc?"); cualquier error de
filesystem se ignora y degrada a un mensaje estático.
"""

from __future__ import annotations

from pathlib import Path

from core import runtime

TORRC_CANDIDATES: tuple[str, ...] = (
    "/usr/local/etc/tor/torrc",
    "/tor/etc/tor/torrc",
    "/etc/tor/torrc",
    "/lib/etc/tor/torrc",
    "~/.torrc",
    "~/Library/Application Support/TorBrowser-Data/torrc",
)
TORRC_SUFFIXES: tuple[str, ...] = ("", ".sample")

TORRC_NOT_FOUND = "torrc not found, specify with `tor --default-torrc <PATH>`"
TORRC_UNAVAILABLE = "torrc not available in this environment"


def get_torrc_location(candidates: tuple[str, ...] = TORRC_CANDIDATES) -> str:
    """Devuelve `"<ruta> ?"` para el primer torrc existente o un texto fijo."""

    if not runtime.SOCKETS_AVAILABLE:
        return TORRC_UNAVAILABLE

    for tor_path in candidates:
        for suffix in TORRC_SUFFIXES:
            try:
                if Path(tor_path + suffix).expanduser().exists():
                    return f"{tor_path} ?"
            except (OSError, RuntimeError):
                # Sin permisos o HOME indefinido: seguimos probando.
                continue

    return TORRC_NOT_FOUND
