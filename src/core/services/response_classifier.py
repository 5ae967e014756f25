"""Clasificación de respuestas del ControlPort.

Convención del protocolo: cada comando produce una línea que empieza con un
status de 3 dígitos; `250` es éxito para el subconjunto que usamos.

Funciones puras: dependen solo del texto recibido.
"""

from __future__ import annotations

from core.domain.models import LINE_TERMINATOR

SUCCESS_STATUS = "250"


def response_lines(raw: str, terminator: str = LINE_TERMINATOR) -> list[str]:
    """Parte `raw` en líneas y descarta el último elemento.

    Asume que la respuesta termina en `terminator`: si la última línea real
    llega sin terminar, se descarta igualmente.
    """

    return raw.split(terminator)[:-1]


def classify(raw: str, terminator: str = LINE_TERMINATOR) -> bool:
    """True si cada línea está vacía o contiene `250` (vacuamente True)."""

    return all(not line or SUCCESS_STATUS in line for line in response_lines(raw, terminator))
