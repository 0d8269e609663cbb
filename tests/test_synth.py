from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from hubalert.audio.synth import (
    CONFIRMATION_SEQUENCE,
    ToneSegment,
    ToneSynthesizer,
    render_segment,
    render_sequence,
    tone_sequence,
)
from hubalert.state.events import TransitionKind

RATE = 8_000


@dataclass
class RecordingSink:
    sample_rate: int = RATE
    submitted: list[tuple[np.ndarray, float]] = field(default_factory=list)

    def submit(self, samples: np.ndarray, gain: float = 1.0) -> None:
        self.submitted.append((samples, gain))


class BrokenSink:
    sample_rate = RATE

    def submit(self, samples: np.ndarray, gain: float = 1.0) -> None:
        raise RuntimeError("device gone")


def test_door_close_is_a_short_click() -> None:
    assert tone_sequence(TransitionKind.DOOR_CLOSE) == (
        ToneSegment(280.0, 70, 0.05),
        ToneSegment(220.0, 70, 0.05),
    )


def test_each_kind_has_two_segments() -> None:
    for kind in TransitionKind:
        assert len(tone_sequence(kind)) == 2


def test_segment_length_includes_tail() -> None:
    samples = render_segment(ToneSegment(280.0, 70, 0.05), RATE)

    # 70 ms body + 20 ms tail at 8 kHz
    assert samples.shape == (720,)
    assert samples.dtype == np.float32


def test_envelope_starts_and_ends_at_zero() -> None:
    samples = render_segment(ToneSegment(520.0, 140, 0.045), RATE)
    body = int(RATE * 140 / 1000)

    assert samples[0] == 0.0
    assert np.all(samples[body - 1 :] == 0.0)
    assert float(np.max(np.abs(samples))) <= 0.045 + 1e-6


def test_sequence_is_segments_back_to_back() -> None:
    segments = tone_sequence(TransitionKind.MOTION)

    sequence = render_sequence(segments, RATE)

    assert sequence.size == sum(render_segment(seg, RATE).size for seg in segments)
    assert render_sequence((), RATE).size == 0


def test_rendering_is_deterministic() -> None:
    first = render_sequence(tone_sequence(TransitionKind.DOOR_CLOSE), RATE)
    second = render_sequence(tone_sequence(TransitionKind.DOOR_CLOSE), RATE)

    assert np.array_equal(first, second)


def test_play_submits_unity_gain_cue() -> None:
    sink = RecordingSink()
    synth = ToneSynthesizer()

    assert synth.play(TransitionKind.DOOR_OPEN, sink)

    samples, gain = sink.submitted[0]
    assert gain == 1.0
    assert np.array_equal(samples, render_sequence(tone_sequence(TransitionKind.DOOR_OPEN), RATE))


def test_confirmation_cue_is_rising_pair() -> None:
    sink = RecordingSink()

    assert ToneSynthesizer().play_confirmation(sink)

    assert [seg.frequency_hz for seg in CONFIRMATION_SEQUENCE] == [440.0, 660.0]
    assert np.array_equal(sink.submitted[0][0], render_sequence(CONFIRMATION_SEQUENCE, RATE))


def test_failures_are_swallowed() -> None:
    synth = ToneSynthesizer()

    assert not synth.play(TransitionKind.MOTION, BrokenSink())
    assert not synth.play_confirmation(BrokenSink())
