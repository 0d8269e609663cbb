from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import numpy as np
import pytest

from hubalert.audio.engine import AudioEngine, EngineState
from hubalert.exceptions import AudioBackendError


@dataclass
class FakeAudioBackend:
    sample_rate: int = 8_000
    start_on_resume: bool = True
    running: bool = False
    resume_calls: int = 0
    closed: bool = False
    submitted: list[tuple[np.ndarray, float]] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.running

    def resume(self) -> None:
        self.resume_calls += 1
        if self.start_on_resume:
            self.running = True

    def suspend(self) -> None:
        self.running = False

    def submit(self, samples: np.ndarray, gain: float = 1.0) -> None:
        self.submitted.append((samples, gain))

    def decode(self, data: bytes) -> np.ndarray:
        return np.frombuffer(data, dtype=np.float32)

    def close(self) -> None:
        self.closed = True


@dataclass
class AsyncResumeBackend(FakeAudioBackend):
    async def _start(self) -> None:
        await asyncio.sleep(0)
        self.running = True

    def resume(self):  # type: ignore[override]
        self.resume_calls += 1
        return self._start()


@dataclass
class CountingFactory:
    backend: FakeAudioBackend | None
    calls: int = 0

    def __call__(self) -> FakeAudioBackend | None:
        self.calls += 1
        return self.backend


def test_ensure_before_unlock_does_not_create_a_handle() -> None:
    factory = CountingFactory(FakeAudioBackend())
    engine = AudioEngine(factory)

    assert engine.ensure() is None
    assert engine.state == EngineState.UNINITIALIZED
    assert factory.calls == 0


def test_unlock_creates_once_and_resumes() -> None:
    backend = FakeAudioBackend()
    factory = CountingFactory(backend)
    engine = AudioEngine(factory)

    assert engine.unlock() is backend
    assert engine.state == EngineState.RUNNING

    assert engine.unlock() is backend
    assert engine.ensure() is backend
    assert factory.calls == 1


def test_created_then_suspended_states() -> None:
    backend = FakeAudioBackend(start_on_resume=False)
    engine = AudioEngine(lambda: backend)
    engine._backend = backend  # handle exists but no resume was requested yet

    assert engine.state == EngineState.CREATED

    engine.ensure()
    assert engine.state == EngineState.SUSPENDED


def test_ensure_resumes_a_suspended_handle() -> None:
    backend = FakeAudioBackend()
    engine = AudioEngine(lambda: backend)
    engine.unlock()

    backend.suspend()
    assert engine.state == EngineState.SUSPENDED

    assert engine.ensure() is backend
    assert engine.state == EngineState.RUNNING
    assert backend.resume_calls == 2


def test_running_handle_is_not_resumed_again() -> None:
    backend = FakeAudioBackend()
    engine = AudioEngine(lambda: backend)
    engine.unlock()

    engine.ensure()
    engine.ensure()

    assert backend.resume_calls == 1


def test_unavailable_backend_is_retried_on_next_unlock() -> None:
    factory = CountingFactory(None)
    engine = AudioEngine(factory)

    assert engine.unlock() is None
    assert engine.state == EngineState.UNINITIALIZED
    assert engine.ensure() is None

    factory.backend = FakeAudioBackend()
    assert engine.unlock() is factory.backend
    assert factory.calls == 2


def test_factory_errors_are_treated_as_unavailable() -> None:
    def _broken() -> FakeAudioBackend:
        raise OSError("no PortAudio")

    engine = AudioEngine(_broken)

    assert engine.unlock() is None
    assert engine.state == EngineState.UNINITIALIZED


@pytest.mark.asyncio
async def test_awaitable_resume_is_scheduled_once() -> None:
    backend = AsyncResumeBackend()
    engine = AudioEngine(lambda: backend)

    engine.unlock()
    engine.ensure()
    assert backend.resume_calls == 1
    assert engine.state == EngineState.SUSPENDED

    for _ in range(5):
        await asyncio.sleep(0)

    assert engine.state == EngineState.RUNNING


def test_decode_requires_unlocked_engine() -> None:
    engine = AudioEngine(lambda: FakeAudioBackend())

    with pytest.raises(AudioBackendError):
        engine.decode(b"\x00\x00\x00\x00")

    engine.unlock()
    assert engine.decode(np.ones(2, dtype=np.float32).tobytes()).tolist() == [1.0, 1.0]


def test_close_releases_the_handle() -> None:
    backend = FakeAudioBackend()
    engine = AudioEngine(lambda: backend)
    engine.unlock()

    engine.close()

    assert backend.closed
    assert engine.state == EngineState.UNINITIALIZED
