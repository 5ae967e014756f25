"""Modelos, errores y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce sockets, HTTP ni CLI: solo conceptos del problema.
"""
