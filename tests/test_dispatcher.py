from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import numpy as np
import pytest

from hubalert.audio.cache import SoundResourceCache
from hubalert.audio.engine import AudioEngine
from hubalert.audio.synth import CONFIRMATION_SEQUENCE, render_sequence, tone_sequence
from hubalert.cooldown import CooldownGate
from hubalert.dispatcher import AlertDispatcher
from hubalert.models.sounds import SoundSet
from hubalert.state.events import Transition, TransitionKind, TransitionSource

RATE = 8_000
MOTION_URL = "http://kiosk.local/sounds/motion.wav"


@dataclass
class FakeAudioBackend:
    sample_rate: int = RATE
    running: bool = False
    fail_submit: bool = False
    submitted: list[tuple[np.ndarray, float]] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.running

    def resume(self) -> None:
        self.running = True

    def suspend(self) -> None:
        self.running = False

    def submit(self, samples: np.ndarray, gain: float = 1.0) -> None:
        if self.fail_submit:
            raise RuntimeError("stream closed")
        self.submitted.append((samples, gain))

    def decode(self, data: bytes) -> np.ndarray:
        return np.frombuffer(data, dtype=np.float32)

    def close(self) -> None:
        pass


@dataclass
class FakeFetcher:
    payloads: dict[str, bytes] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        return self.payloads[url]


def _dispatcher(
    backend: FakeAudioBackend | None,
    *,
    fetcher: FakeFetcher | None = None,
    sound_set: SoundSet | None = None,
) -> AlertDispatcher:
    engine = AudioEngine(lambda: backend)
    cache = SoundResourceCache(fetch=fetcher or FakeFetcher(), decode=engine.decode)
    return AlertDispatcher(engine=engine, cache=cache, gate=CooldownGate(), sound_set=sound_set)


def _transition(kind: TransitionKind, at_ms: int, device_id: str = "d1") -> Transition:
    return Transition(device_id=device_id, kind=kind, observed_at_ms=at_ms, source=TransitionSource.POLL)


def test_disabled_dispatch_is_a_no_op() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)

    assert not dispatcher.dispatch(_transition(TransitionKind.DOOR_OPEN, 0))

    assert backend.submitted == []
    assert dispatcher.engine.backend is None


def test_disabled_dispatch_does_not_consume_cooldown() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)

    dispatcher.dispatch(_transition(TransitionKind.DOOR_OPEN, 0))
    dispatcher.enable()

    assert dispatcher.dispatch(_transition(TransitionKind.DOOR_OPEN, 10))


def test_enable_without_backend_keeps_alerts_off() -> None:
    dispatcher = _dispatcher(None)

    assert not dispatcher.enable()
    assert not dispatcher.enabled
    assert not dispatcher.dispatch(_transition(TransitionKind.MOTION, 0))


def test_enable_plays_confirmation_cue() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)

    assert dispatcher.enable()

    assert dispatcher.enabled
    assert len(backend.submitted) == 1
    assert np.array_equal(backend.submitted[0][0], render_sequence(CONFIRMATION_SEQUENCE, RATE))


def test_unconfigured_sound_falls_back_to_same_tone_every_time() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)
    dispatcher.enable()
    backend.submitted.clear()

    assert dispatcher.dispatch(_transition(TransitionKind.DOOR_CLOSE, 0))
    assert dispatcher.dispatch(_transition(TransitionKind.DOOR_CLOSE, 20_000))

    expected = render_sequence(tone_sequence(TransitionKind.DOOR_CLOSE), RATE)
    assert len(backend.submitted) == 2
    for samples, gain in backend.submitted:
        assert gain == 1.0
        assert np.array_equal(samples, expected)


def test_cooldown_denial_plays_nothing() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)
    dispatcher.enable()
    backend.submitted.clear()

    assert dispatcher.dispatch(_transition(TransitionKind.MOTION, 0))
    assert not dispatcher.dispatch(_transition(TransitionKind.MOTION, 5_000))
    assert not dispatcher.dispatch(_transition(TransitionKind.DOOR_OPEN, 500, device_id="d2"))

    assert len(backend.submitted) == 1


def test_dispatch_resumes_a_suspended_backend() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)
    dispatcher.enable()

    backend.suspend()
    dispatcher.dispatch(_transition(TransitionKind.MOTION, 0))

    assert backend.is_running


def test_playback_failure_is_swallowed() -> None:
    backend = FakeAudioBackend()
    dispatcher = _dispatcher(backend)
    dispatcher.enable()
    backend.fail_submit = True

    assert dispatcher.dispatch(_transition(TransitionKind.DOOR_OPEN, 0))


@pytest.mark.asyncio
async def test_loaded_buffer_plays_at_fixed_gain() -> None:
    backend = FakeAudioBackend()
    asset = np.linspace(-0.5, 0.5, 16, dtype=np.float32)
    fetcher = FakeFetcher({MOTION_URL: asset.tobytes()})
    sound_set = SoundSet(motion=MOTION_URL)
    dispatcher = _dispatcher(backend, fetcher=fetcher, sound_set=sound_set)
    dispatcher.enable()

    await dispatcher._cache.load(sound_set)
    backend.submitted.clear()
    dispatcher.dispatch(_transition(TransitionKind.MOTION, 0))

    samples, gain = backend.submitted[0]
    assert gain == pytest.approx(0.6)
    assert np.array_equal(samples, asset)


@pytest.mark.asyncio
async def test_late_buffer_is_used_by_later_dispatches() -> None:
    backend = FakeAudioBackend()
    asset = np.full(8, 0.25, dtype=np.float32)
    fetcher = FakeFetcher({MOTION_URL: asset.tobytes()}, gate=asyncio.Event())
    dispatcher = _dispatcher(backend, fetcher=fetcher, sound_set=SoundSet(motion=MOTION_URL))
    dispatcher.enable()
    backend.submitted.clear()

    dispatcher.dispatch(_transition(TransitionKind.MOTION, 0))
    assert np.array_equal(backend.submitted[-1][0], render_sequence(tone_sequence(TransitionKind.MOTION), RATE))

    fetcher.gate.set()
    for _ in range(10):
        await asyncio.sleep(0)

    dispatcher.dispatch(_transition(TransitionKind.MOTION, 20_000))
    assert np.array_equal(backend.submitted[-1][0], asset)
    assert fetcher.calls == [MOTION_URL]
