"""Alert dispatch.

Turns admitted transitions into sound.  Every step is synchronous and
non-blocking: sound loading runs in background tasks and playback is
submitted to the backend, which mixes overlapping cues itself.  Nothing in
here raises to the caller; every failure degrades to "no sound".
"""

from __future__ import annotations

import logging

from hubalert._constants import BUFFER_PLAYBACK_GAIN
from hubalert.audio.cache import SoundResourceCache
from hubalert.audio.engine import AudioEngine
from hubalert.audio.synth import ToneSynthesizer
from hubalert.cooldown import CooldownGate
from hubalert.models.sounds import SoundSet
from hubalert.state.events import Transition

_logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Exclusive owner of the audio engine and the sound cache."""

    def __init__(
        self,
        *,
        engine: AudioEngine,
        cache: SoundResourceCache,
        gate: CooldownGate,
        synthesizer: ToneSynthesizer | None = None,
        sound_set: SoundSet | None = None,
        buffer_gain: float = BUFFER_PLAYBACK_GAIN,
        logger: logging.Logger | None = None,
    ) -> None:
        self._engine = engine
        self._cache = cache
        self._gate = gate
        self._synth = synthesizer or ToneSynthesizer()
        self._sound_set = sound_set or SoundSet()
        self._buffer_gain = buffer_gain
        self._logger = logger or _logger
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def engine(self) -> AudioEngine:
        return self._engine

    @property
    def sound_set(self) -> SoundSet:
        return self._sound_set

    def enable(self) -> bool:
        """Unlock audio and turn alerts on.

        Must run as the direct result of a user action.  Plays a short
        confirmation cue.  Returns ``False`` (alerts stay off) when no audio
        backend is available.
        """
        backend = self._engine.unlock()
        if backend is None:
            self._logger.debug("Alerts not enabled: no audio backend")
            return False
        self._enabled = True
        self._synth.play_confirmation(backend)
        self._prime_sounds()
        return True

    def disable(self) -> None:
        self._enabled = False

    def set_sound_set(self, sound_set: SoundSet) -> None:
        self._sound_set = sound_set
        if self._enabled and self._engine.backend is not None:
            self._prime_sounds()

    def _prime_sounds(self) -> None:
        try:
            self._cache.ensure_loaded(self._sound_set)
        except Exception:
            self._logger.debug("Sound cache refresh failed", exc_info=True)

    def dispatch(self, transition: Transition) -> bool:
        """Play the cue for *transition* if alerts are on and the gate admits it.

        Returns whether the transition was admitted and submitted for
        playback.
        """
        if not self._enabled:
            return False

        backend = self._engine.ensure()
        if backend is None:
            return False

        self._prime_sounds()

        if not self._gate.allow(transition.device_id, transition.kind, transition.observed_at_ms):
            return False

        self._logger.debug(
            "Alert admitted device=%s kind=%s source=%s",
            transition.device_id,
            transition.kind.value,
            transition.source.value,
        )

        buffer = self._cache.buffer_for(transition.kind)
        if buffer is None:
            self._synth.play(transition.kind, backend)
            return True

        try:
            backend.submit(buffer, self._buffer_gain)
        except Exception:
            self._logger.debug("Sound playback failed for %s", transition.kind.value, exc_info=True)
        return True
