"""Wrapper de httpx que sale por el proxy SOCKS de Tor.

Por qué un wrapper:
- Estandariza timeouts, headers y la política de proxy (todo por Tor).
- Traduce fallos de conexión al proxy en `TorProxyError` con la pista de
  "¿está corriendo tor?" y el aborto del llamador en `RequestAbortedError`.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

import httpx
from httpx_socks import AsyncProxyTransport

from core.config import AppSettings
from core.domain.errors import RequestAbortedError, TorProxyError, attach_tor_hint
from core.domain.models import ProxySettings

logger = logging.getLogger(__name__)


def build_tor_client(
    settings: AppSettings | None = None,
    *,
    proxy: ProxySettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` enrutado por SOCKS4/SOCKS5.

    Reglas:
    - El transporte es `httpx_socks.AsyncProxyTransport` construido desde
      `ProxySettings.proxy_url` (`socks4://` o `socks5://`).
    - `trust_env=False`: las variables HTTP(S)_PROXY nunca desvían tráfico
      fuera de Tor.
    - Si se pasa `transport` (tests), se usa tal cual.
    """

    settings = settings or AppSettings()
    proxy = proxy or settings.proxy_settings()

    headers: dict[str, str] = {"User-Agent": settings.user_agent}
    if extra_headers:
        headers.update(extra_headers)

    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        trust_env=False,
        transport=transport or AsyncProxyTransport.from_url(proxy.proxy_url),
    )


async def _await_unless_aborted(
    request: Awaitable[httpx.Response],
    abort: asyncio.Event | None,
) -> httpx.Response:
    if abort is None:
        return await request

    request_task = asyncio.ensure_future(request)
    if abort.is_set():
        request_task.cancel()
        await asyncio.gather(request_task, return_exceptions=True)
        raise RequestAbortedError("Request was aborted")

    abort_task = asyncio.ensure_future(abort.wait())
    try:
        done, _ = await asyncio.wait({request_task, abort_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (request_task, abort_task):
            if not task.done():
                task.cancel()

    if request_task in done:
        return request_task.result()

    await asyncio.gather(request_task, return_exceptions=True)
    raise RequestAbortedError("Request was aborted")


async def torfetch(
    url: str | httpx.URL,
    *,
    method: str = "GET",
    headers: Mapping[str, str] | None = None,
    content: str | bytes | None = None,
    params: Mapping[str, Any] | None = None,
    abort: asyncio.Event | None = None,
    settings: AppSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> httpx.Response:
    """Hace una petición por Tor, al estilo `fetch`.

    - `abort`: si el evento se activa antes de la respuesta, se cancela la
      petición y se lanza `RequestAbortedError`.
    - `client`: cliente ya construido (no se cierra aquí); si falta se crea
      uno con `build_tor_client` y se cierra al terminar.
    """

    owns_client = client is None
    client = client or build_tor_client(settings)
    request_method = method.upper()
    logger.debug("torfetch %s %s", request_method, url)

    try:
        return await _await_unless_aborted(
            client.request(
                request_method,
                url,
                headers=dict(headers) if headers else None,
                content=content,
                params=params,
            ),
            abort,
        )
    except (httpx.ConnectError, httpx.ProxyError) as exc:
        logger.warning("SOCKS proxy request failed: %s", exc)
        err = TorProxyError(str(exc) or f"Could not reach {url} through the SOCKS proxy")
        raise attach_tor_hint(err) from exc
    finally:
        if owns_client:
            await client.aclose()


def _verb_func(verb: str) -> Callable[..., Awaitable[httpx.Response]]:
    method = "DELETE" if verb == "del" else verb.upper()

    async def request(url: str | httpx.URL, **options: Any) -> httpx.Response:
        options.pop("method", None)
        return await torfetch(url, method=method, **options)

    request.__name__ = "delete" if verb == "del" else verb
    request.__doc__ = f"`torfetch` con método {method}."
    return request


get = _verb_func("get")
head = _verb_func("head")
post = _verb_func("post")
put = _verb_func("put")
patch = _verb_func("patch")
delete = _verb_func("del")

torfetch.get = get  # type: ignore[attr-defined]
torfetch.head = head  # type: ignore[attr-defined]
torfetch.post = post  # type: ignore[attr-defined]
torfetch.put = put  # type: ignore[attr-defined]
torfetch.patch = patch  # type: ignore[attr-defined]
torfetch.delete = delete  # type: ignore[attr-defined]
