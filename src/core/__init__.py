"""Core de tor-fetch: dominio, configuración y servicios.

Por qué separado de `adapters`:
- Aquí no hay sockets ni HTTP; solo modelos, reglas y orquestación.
"""
