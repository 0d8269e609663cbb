"""Hub polling ingestion.

Owns the periodic full-state read from the Hubitat Maker API.  Each
successful read is handed to ``on_snapshot``; failures are logged
(throttled while the hub stays down) and never end the loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from hubalert._constants import HUBITAT_ERROR_LOG_INTERVAL_S
from hubalert._transport import Transport
from hubalert.exceptions import HubTransportError

_logger = logging.getLogger(__name__)


class HubitatPoller:
    def __init__(
        self,
        *,
        transport: Transport,
        devices_url: str,
        on_snapshot: Callable[[Any], object],
        interval: float,
        error_log_interval: float = HUBITAT_ERROR_LOG_INTERVAL_S,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._devices_url = devices_url
        self._on_snapshot = on_snapshot
        self._interval = interval
        self._error_log_interval = error_log_interval
        self._logger = logger or _logger
        self._last_error: str | None = None
        self._last_error_logged_at: float | None = None

    @property
    def last_error(self) -> str | None:
        return self._last_error

    async def poll_once(self) -> bool:
        """Read all devices once.  Returns whether a snapshot was delivered."""
        try:
            devices = await self._transport.get_json(self._devices_url)
            if not isinstance(devices, list):
                raise HubTransportError("Hubitat API returned non-array payload")
        except HubTransportError as exc:
            self._record_error(str(exc))
            return False

        self._last_error = None
        try:
            self._on_snapshot(devices)
        except Exception:
            self._logger.debug("Snapshot handler failed", exc_info=True)
            return False
        return True

    def _record_error(self, message: str) -> None:
        self._last_error = message
        now = time.monotonic()
        if self._last_error_logged_at is None or now - self._last_error_logged_at >= self._error_log_interval:
            self._last_error_logged_at = now
            self._logger.warning("Hubitat polling error: %s", message)

    async def run(self) -> None:
        """Poll until cancelled."""
        while True:
            await self.poll_once()
            await asyncio.sleep(self._interval)
