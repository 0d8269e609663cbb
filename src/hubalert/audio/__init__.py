"""Audio output: engine lifecycle, sound asset cache and tone synthesis."""

from hubalert.audio.backend import AudioBackend, SounddeviceBackend, decode_wav, open_default_backend
from hubalert.audio.cache import SoundBuffers, SoundResourceCache
from hubalert.audio.engine import AudioEngine, EngineState
from hubalert.audio.synth import ToneSegment, ToneSynthesizer, tone_sequence

__all__ = [
    "AudioBackend",
    "AudioEngine",
    "EngineState",
    "SoundBuffers",
    "SoundResourceCache",
    "SounddeviceBackend",
    "ToneSegment",
    "ToneSynthesizer",
    "decode_wav",
    "open_default_backend",
    "tone_sequence",
]
