"""Sound resource cache.

Resolves the configured :class:`~hubalert.models.sounds.SoundSet` to decoded
buffers.  The whole cache is keyed by the full set: when any URL changes,
all three slots are cleared, not just the one that changed.

Loads run as background tasks.  At most one fetch is in flight per slot;
failed slots stay empty (the synthesizer covers them) and are not retried
until the set changes.  Nothing is ever cancelled: a buffer that arrives
after its triggering dispatch already fell back to synthesis is kept for
later dispatches, as long as the set has not changed in the meantime.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import numpy as np

from hubalert._redact import redact_url
from hubalert.audio.backend import AudioBuffer
from hubalert.exceptions import SoundAssetError
from hubalert.models.sounds import SoundSet
from hubalert.state.events import TransitionKind

_logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[bytes]]
Decoder = Callable[[bytes], AudioBuffer | Awaitable[AudioBuffer]]


@dataclass(frozen=True)
class SoundBuffers:
    """Decoded buffer (or ``None``) per transition kind."""

    motion: AudioBuffer | None = None
    door_open: AudioBuffer | None = None
    door_close: AudioBuffer | None = None

    def for_kind(self, kind: TransitionKind) -> AudioBuffer | None:
        if kind == TransitionKind.MOTION:
            return self.motion
        if kind == TransitionKind.DOOR_OPEN:
            return self.door_open
        return self.door_close


class SoundResourceCache:
    def __init__(
        self,
        *,
        fetch: Fetcher,
        decode: Decoder,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetch = fetch
        self._decode = decode
        self._logger = logger or _logger
        self._sound_set: SoundSet | None = None
        self._generation = 0
        self._buffers: dict[TransitionKind, AudioBuffer] = {}
        self._failed: set[TransitionKind] = set()
        self._inflight: dict[TransitionKind, asyncio.Task[None]] = {}
        # Loads for replaced sets, kept referenced until they finish.
        self._superseded: set[asyncio.Task[None]] = set()

    @property
    def sound_set(self) -> SoundSet | None:
        return self._sound_set

    @property
    def buffers(self) -> SoundBuffers:
        return SoundBuffers(
            motion=self._buffers.get(TransitionKind.MOTION),
            door_open=self._buffers.get(TransitionKind.DOOR_OPEN),
            door_close=self._buffers.get(TransitionKind.DOOR_CLOSE),
        )

    def buffer_for(self, kind: TransitionKind) -> AudioBuffer | None:
        return self._buffers.get(kind)

    def is_loading(self, kind: TransitionKind) -> bool:
        return kind in self._inflight

    def _retire_inflight(self) -> None:
        for task in self._inflight.values():
            if task.done():
                continue
            self._superseded.add(task)
            task.add_done_callback(self._superseded.discard)
        self._inflight = {}

    def ensure_loaded(self, sound_set: SoundSet) -> SoundBuffers:
        """Start any missing loads for *sound_set* and return what is cached now.

        Never waits for a load to finish.
        """
        if sound_set != self._sound_set:
            if self._sound_set is not None:
                self._logger.debug("Sound set changed; clearing cached buffers")
            self._sound_set = sound_set
            self._generation += 1
            self._buffers = {}
            self._failed = set()
            self._retire_inflight()

        for kind in TransitionKind:
            url = sound_set.url_for(kind)
            if url is None or kind in self._buffers or kind in self._failed or kind in self._inflight:
                continue
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._logger.debug("Sound loading needs a running event loop; skipped")
                break
            self._inflight[kind] = loop.create_task(self._load_slot(kind, url, self._generation))

        return self.buffers

    async def load(self, sound_set: SoundSet) -> SoundBuffers:
        """Like :meth:`ensure_loaded`, but wait for pending loads."""
        self.ensure_loaded(sound_set)
        pending = list(self._inflight.values())
        if pending:
            await asyncio.gather(*pending)
        return self.buffers

    async def _fetch_and_decode(self, url: str) -> AudioBuffer:
        safe_url = redact_url(url)
        try:
            data = await self._fetch(url)
            result = self._decode(data)
            if inspect.isawaitable(result):
                result = await result
            buffer = np.asarray(result, dtype=np.float32)
        except Exception as exc:
            raise SoundAssetError(f"Could not load sound {safe_url}: {exc}", url=safe_url) from exc

        if buffer.ndim != 1 or buffer.size == 0:
            raise SoundAssetError(f"Decoded sound {safe_url} is not a non-empty mono buffer", url=safe_url)
        return buffer

    async def _load_slot(self, kind: TransitionKind, url: str, generation: int) -> None:
        try:
            buffer = await self._fetch_and_decode(url)
        except SoundAssetError as exc:
            self._logger.warning("%s; using synthesized tone for %s", exc, kind.value)
            if generation == self._generation:
                self._failed.add(kind)
        else:
            if generation == self._generation:
                self._buffers[kind] = buffer
                self._logger.debug("Loaded sound for %s (%d samples)", kind.value, buffer.size)
        finally:
            if generation == self._generation:
                self._inflight.pop(kind, None)
