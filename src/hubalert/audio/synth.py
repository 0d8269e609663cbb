"""Fallback tone synthesis.

Pure and deterministic: each transition kind maps to a fixed two-segment
cue, rendered as mono float32 samples.  Segments play back to back; each
ramps up over ``TONE_ATTACK_MS`` and linearly down to zero at the end of
its duration, followed by a short silent tail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from hubalert._constants import DEFAULT_SAMPLE_RATE, TONE_ATTACK_MS, TONE_TAIL_MS
from hubalert.state.events import TransitionKind

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToneSegment:
    frequency_hz: float
    duration_ms: int
    gain: float


TONE_SEQUENCES: dict[TransitionKind, tuple[ToneSegment, ...]] = {
    # double tap
    TransitionKind.MOTION: (
        ToneSegment(220.0, 90, 0.05),
        ToneSegment(180.0, 90, 0.05),
    ),
    # descending creak
    TransitionKind.DOOR_OPEN: (
        ToneSegment(520.0, 140, 0.045),
        ToneSegment(360.0, 180, 0.045),
    ),
    # short click
    TransitionKind.DOOR_CLOSE: (
        ToneSegment(280.0, 70, 0.05),
        ToneSegment(220.0, 70, 0.05),
    ),
}

CONFIRMATION_SEQUENCE: tuple[ToneSegment, ...] = (
    ToneSegment(440.0, 90, 0.04),
    ToneSegment(660.0, 120, 0.04),
)


class _Sink(Protocol):
    sample_rate: int

    def submit(self, samples: np.ndarray, gain: float = 1.0) -> None: ...


def tone_sequence(kind: TransitionKind) -> tuple[ToneSegment, ...]:
    return TONE_SEQUENCES[TransitionKind(kind)]


def _envelope(segment: ToneSegment, sample_rate: int) -> np.ndarray:
    total = int(sample_rate * (segment.duration_ms + TONE_TAIL_MS) / 1000)
    body = int(sample_rate * segment.duration_ms / 1000)
    attack = min(int(sample_rate * TONE_ATTACK_MS / 1000), body)

    env = np.zeros(total, dtype=np.float32)
    if attack > 0:
        env[:attack] = np.linspace(0.0, segment.gain, attack, endpoint=False, dtype=np.float32)
    if body > attack:
        env[attack:body] = np.linspace(segment.gain, 0.0, body - attack, dtype=np.float32)
    return env


def render_segment(segment: ToneSegment, sample_rate: int = DEFAULT_SAMPLE_RATE) -> np.ndarray:
    """Render one sine segment including its silent tail."""
    env = _envelope(segment, sample_rate)
    t = np.arange(env.size, dtype=np.float32) / sample_rate
    wave = np.sin(2.0 * np.pi * segment.frequency_hz * t).astype(np.float32)
    return wave * env


def render_sequence(segments: tuple[ToneSegment, ...], sample_rate: int = DEFAULT_SAMPLE_RATE) -> np.ndarray:
    if not segments:
        return np.zeros((0,), dtype=np.float32)
    return np.concatenate([render_segment(seg, sample_rate) for seg in segments]).astype(np.float32, copy=False)


class ToneSynthesizer:
    """Renders cues and submits them to an audio sink.

    Rendered cues are memoized per sample rate; the output is deterministic
    so the memo never needs invalidation.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger
        self._rendered: dict[tuple[object, int], np.ndarray] = {}

    def render(self, kind: TransitionKind, sample_rate: int) -> np.ndarray:
        key = (TransitionKind(kind), sample_rate)
        samples = self._rendered.get(key)
        if samples is None:
            samples = render_sequence(tone_sequence(kind), sample_rate)
            self._rendered[key] = samples
        return samples

    def play(self, kind: TransitionKind, sink: _Sink) -> bool:
        """Submit the cue for *kind*; failures are logged and swallowed."""
        try:
            sink.submit(self.render(kind, sink.sample_rate), 1.0)
        except Exception:
            self._logger.debug("Tone synthesis failed for %s", kind, exc_info=True)
            return False
        return True

    def play_confirmation(self, sink: _Sink) -> bool:
        try:
            key = ("confirmation", sink.sample_rate)
            samples = self._rendered.get(key)
            if samples is None:
                samples = render_sequence(CONFIRMATION_SEQUENCE, sink.sample_rate)
                self._rendered[key] = samples
            sink.submit(samples, 1.0)
        except Exception:
            self._logger.debug("Confirmation cue failed", exc_info=True)
            return False
        return True
