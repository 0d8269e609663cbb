"""HTTP transport for hub polls and sound asset downloads."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import unquote, urlsplit

import aiohttp

from hubalert._redact import redact_url
from hubalert.exceptions import HubTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HubTransport`) concrete.
    """

    async def get_json(self, url: str) -> Any: ...

    async def get_bytes(self, url: str) -> bytes: ...


def _read_file_url(url: str) -> bytes:
    return Path(unquote(urlsplit(url).path)).read_bytes()


class HubTransport:
    """aiohttp-backed GET transport.

    ``file://`` URLs are read from local disk off the event loop so kiosk
    installs can point sound settings at a local directory.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, tls_insecure: bool = False) -> None:
        self._http = http_session
        self._ssl: bool | None = False if tls_insecure else None

    async def _get(self, url: str) -> bytes:
        safe_url = redact_url(url)
        _logger.debug("GET %s", safe_url)
        try:
            async with self._http.get(url, ssl=self._ssl) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise HubTransportError(
                        f"HTTP {resp.status} from {safe_url}: {body[:200]!r}",
                        status_code=resp.status,
                        url=safe_url,
                    )
        except HubTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise HubTransportError(f"Request to {safe_url} failed: {exc}", url=safe_url) from exc
        return body

    async def get_bytes(self, url: str) -> bytes:
        if urlsplit(url).scheme == "file":
            try:
                return await asyncio.to_thread(_read_file_url, url)
            except OSError as exc:
                raise HubTransportError(f"Could not read {url}: {exc}", url=url) from exc
        return await self._get(url)

    async def get_json(self, url: str) -> Any:
        body = await self._get(url)
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise HubTransportError(
                f"Invalid JSON from {redact_url(url)}: {body[:200]!r}",
                url=redact_url(url),
            ) from exc
