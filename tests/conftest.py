"""Pytest configuration for tor-fetch."""

from __future__ import annotations

import asyncio
import os
import socket

import pytest
import pytest_asyncio

from core.domain.models import ControlEndpoint


class FakeControlPort:
    """Servidor TCP local que imita al ControlPort de Tor.

    Lee el lote completo, contesta con `reply` (en uno o varios writes) y
    cierra la conexión, salvo que `close=False`: entonces no contesta nada y
    espera a que el cliente se vaya.
    """

    def __init__(self, reply: bytes | list[bytes], *, close: bool = True) -> None:
        self.replies = reply if isinstance(reply, list) else [reply]
        self.close = close
        self.received = bytearray()
        self.connections = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> "FakeControlPort":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self

    @property
    def port(self) -> int:
        assert self._server is not None
        return self._server.sockets[0].getsockname()[1]

    def endpoint(self, password: str = "") -> ControlEndpoint:
        return ControlEndpoint(host="127.0.0.1", port=self.port, password=password)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.append(writer)
        self.received.extend(await reader.read(65536))

        if not self.close:
            await reader.read()
            writer.close()
            return

        for chunk in self.replies:
            writer.write(chunk)
            await writer.drain()
            await asyncio.sleep(0)
        writer.close()

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self._server is not None:
            self._server.close()


@pytest_asyncio.fixture
async def control_port():
    started: list[FakeControlPort] = []

    async def start(reply: bytes | list[bytes] = b"250 OK\n", *, close: bool = True) -> FakeControlPort:
        fake = await FakeControlPort(reply, close=close).start()
        started.append(fake)
        return fake

    yield start

    for fake in started:
        await fake.stop()


@pytest.fixture
def closed_port() -> int:
    """Puerto local sin nadie escuchando (conexión rechazada)."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.upper().startswith("TORFETCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
