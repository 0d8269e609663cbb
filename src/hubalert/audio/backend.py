"""Platform audio backend.

The production backend drives a PortAudio output stream through
``sounddevice`` and mixes any number of overlapping voices in the stream
callback.  Sound assets are WAV files decoded with ``wave`` + numpy.
"""

from __future__ import annotations

import asyncio
import io
import logging
import threading
import wave
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from hubalert._constants import DEFAULT_SAMPLE_RATE
from hubalert.exceptions import AudioBackendError

_logger = logging.getLogger(__name__)

AudioBuffer = np.ndarray
"""Mono float32 samples in [-1.0, 1.0] at the backend's sample rate."""


class AudioBackend(Protocol):
    """Structural interface for the shared playback handle.

    Test doubles implement this directly; the production implementation is
    :class:`SounddeviceBackend`.
    """

    sample_rate: int

    @property
    def is_running(self) -> bool: ...

    def resume(self) -> Awaitable[None] | None:
        """Start (or restart) output.  May return an awaitable."""
        ...

    def suspend(self) -> None: ...

    def submit(self, samples: AudioBuffer, gain: float = 1.0) -> None:
        """Queue *samples* for playback and return immediately."""
        ...

    def decode(self, data: bytes) -> AudioBuffer | Awaitable[AudioBuffer]: ...

    def close(self) -> None: ...


BackendFactory = Callable[[], AudioBackend | None]


def _resample_linear(x: np.ndarray, src_hz: int, dst_hz: int) -> np.ndarray:
    if src_hz == dst_hz or x.size == 0:
        return x.astype(np.float32, copy=False)
    duration = x.size / float(src_hz)
    n_dst = max(1, int(round(duration * dst_hz)))
    t_src = np.arange(x.size, dtype=np.float64) / float(src_hz)
    t_dst = np.arange(n_dst, dtype=np.float64) / float(dst_hz)
    return np.interp(t_dst, t_src, x).astype(np.float32)


def decode_wav(data: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
    """Decode PCM WAV bytes to mono float32 at *sample_rate*.

    Raises
    ------
    ValueError
        If the payload is not a supported PCM WAV file.
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            channels = int(wf.getnchannels())
            src_rate = int(wf.getframerate())
            sampwidth = int(wf.getsampwidth())
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ValueError(f"Not a PCM WAV payload: {exc}") from exc

    if sampwidth == 1:
        pcm = (np.frombuffer(frames, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif sampwidth == 2:
        pcm = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    elif sampwidth == 4:
        pcm = np.frombuffer(frames, dtype="<i4").astype(np.float32) / 2147483648.0
    else:
        raise ValueError(f"Unsupported WAV sample width: {sampwidth} bytes")

    if channels > 1:
        pcm = pcm[: pcm.size - pcm.size % channels].reshape((-1, channels)).mean(axis=1)
    return _resample_linear(pcm, src_rate, sample_rate)


@dataclass
class _Voice:
    samples: np.ndarray
    gain: float
    position: int = 0


class SounddeviceBackend:
    """PortAudio output stream that mixes overlapping voices."""

    def __init__(self, sd: Any, sample_rate: int = DEFAULT_SAMPLE_RATE, *, logger: logging.Logger | None = None) -> None:
        self.sample_rate = sample_rate
        self._logger = logger or _logger
        self._lock = threading.Lock()
        self._voices: list[_Voice] = []
        try:
            self._stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=1,
                dtype="float32",
                callback=self._callback,
            )
        except Exception as exc:
            raise AudioBackendError(f"Could not open output stream: {exc}") from exc

    def _callback(self, outdata: np.ndarray, frames: int, _time: Any, status: Any) -> None:
        if status:
            self._logger.debug("Output stream status: %s", status)
        mix = np.zeros(frames, dtype=np.float32)
        with self._lock:
            alive: list[_Voice] = []
            for voice in self._voices:
                chunk = voice.samples[voice.position : voice.position + frames]
                mix[: chunk.size] += chunk * voice.gain
                voice.position += chunk.size
                if voice.position < voice.samples.size:
                    alive.append(voice)
            self._voices = alive
        np.clip(mix, -1.0, 1.0, out=mix)
        outdata[:, 0] = mix

    @property
    def is_running(self) -> bool:
        return bool(self._stream.active)

    def resume(self) -> None:
        if not self._stream.active:
            self._stream.start()

    def suspend(self) -> None:
        if self._stream.active:
            self._stream.stop()

    def submit(self, samples: AudioBuffer, gain: float = 1.0) -> None:
        voice = _Voice(samples=np.asarray(samples, dtype=np.float32), gain=float(gain))
        with self._lock:
            self._voices.append(voice)

    def decode(self, data: bytes) -> Awaitable[AudioBuffer]:
        return asyncio.to_thread(decode_wav, data, self.sample_rate)

    def close(self) -> None:
        with self._lock:
            self._voices.clear()
        self._stream.close()


def open_default_backend(sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBackend | None:
    """Open the default output device, or ``None`` if there is none."""
    try:
        import sounddevice as sd
    except OSError:
        # sounddevice raises OSError at import when PortAudio is missing.
        _logger.debug("PortAudio library not available", exc_info=True)
        return None

    try:
        sd.query_devices(kind="output")
        return SounddeviceBackend(sd, sample_rate)
    except (sd.PortAudioError, ValueError, AudioBackendError):
        _logger.debug("No usable audio output device", exc_info=True)
        return None
