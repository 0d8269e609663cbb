"""Audio output engine lifecycle.

One playback handle per session.  It is created lazily by :meth:`unlock`
(which must be driven by an explicit user action) and afterwards only ever
resumed, never recreated.  Backends may suspend themselves at any time, so
:meth:`ensure` requests a resume before every dispatch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from enum import StrEnum

from hubalert.audio.backend import AudioBackend, AudioBuffer, BackendFactory, open_default_backend
from hubalert.exceptions import AudioBackendError

_logger = logging.getLogger(__name__)


class EngineState(StrEnum):
    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    SUSPENDED = "suspended"
    RUNNING = "running"


class AudioEngine:
    """Owns the shared audio backend handle."""

    def __init__(
        self,
        backend_factory: BackendFactory = open_default_backend,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend_factory = backend_factory
        self._logger = logger or _logger
        self._backend: AudioBackend | None = None
        self._resume_requested = False
        self._pending_resume: asyncio.Task[None] | None = None

    @property
    def state(self) -> EngineState:
        backend = self._backend
        if backend is None:
            return EngineState.UNINITIALIZED
        if backend.is_running:
            return EngineState.RUNNING
        if not self._resume_requested:
            return EngineState.CREATED
        return EngineState.SUSPENDED

    @property
    def backend(self) -> AudioBackend | None:
        return self._backend

    def unlock(self) -> AudioBackend | None:
        """Create the handle on first call and resume it.

        Returns ``None`` when the platform has no audio backend; later
        calls try again.
        """
        if self._backend is None:
            try:
                backend = self._backend_factory()
            except Exception:
                self._logger.debug("Audio backend factory failed", exc_info=True)
                backend = None
            if backend is None:
                self._logger.debug("No audio backend available; alerts stay silent")
                return None
            self._backend = backend
            self._logger.debug("Audio engine created (sample_rate=%s)", backend.sample_rate)
        self._request_resume(self._backend)
        return self._backend

    def ensure(self) -> AudioBackend | None:
        """Return the unlocked handle after requesting a resume.

        Returns ``None`` until :meth:`unlock` has succeeded.
        """
        backend = self._backend
        if backend is None:
            return None
        self._request_resume(backend)
        return backend

    def _request_resume(self, backend: AudioBackend) -> None:
        self._resume_requested = True
        if backend.is_running:
            return
        if self._pending_resume is not None and not self._pending_resume.done():
            return
        try:
            result = backend.resume()
        except Exception:
            self._logger.debug("Audio resume failed", exc_info=True)
            return
        if not inspect.isawaitable(result):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("Audio resume needs a running event loop; skipped")
            if inspect.iscoroutine(result):
                result.close()
            return
        self._pending_resume = loop.create_task(self._await_resume(result))

    async def _await_resume(self, pending: Awaitable[None]) -> None:
        try:
            await pending
        except Exception:
            self._logger.debug("Audio resume failed", exc_info=True)

    def decode(self, data: bytes) -> AudioBuffer | Awaitable[AudioBuffer]:
        """Decode a sound asset with the shared handle."""
        backend = self._backend
        if backend is None:
            raise AudioBackendError("Audio engine is not unlocked")
        return backend.decode(data)

    def close(self) -> None:
        """Release the handle at the end of the session."""
        backend = self._backend
        self._backend = None
        self._resume_requested = False
        if backend is None:
            return
        try:
            backend.close()
        except Exception:
            self._logger.debug("Audio backend close failed", exc_info=True)
