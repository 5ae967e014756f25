"""Adaptadores de I/O: ControlPort (TCP) y HTTP por SOCKS (httpx)."""
