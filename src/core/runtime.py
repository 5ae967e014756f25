"""Capacidades del runtime actual.

Por qué aquí:
- Python embebido en navegador (Pyodide = `emscripten`, `wasi`) no tiene
  sockets TCP reales; se detecta una sola vez al importar.
- Los adaptadores eligen su variante a partir de este flag en lugar de
  comprobar la plataforma en cada llamada.
"""

from __future__ import annotations

import sys

_SANDBOXED_PLATFORMS = frozenset({"emscripten", "wasi"})

SOCKETS_AVAILABLE: bool = sys.platform not in _SANDBOXED_PLATFORMS
