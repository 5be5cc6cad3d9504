from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

import numpy as np

from cursed_composer.note_event import Envelope, NoteEvent, Timbre, Voice
from cursed_composer.render_context import StereoAccumulator

LOUDNESS_SCALE = 6000.0
RELEASE_CAP_FRACTION = 0.4

PIANO_HARMONIC_WEIGHTS = (1.0, 0.5, 0.28, 0.14, 0.07)
PIANO_UNISON_DETUNE = 1.003
PIANO_UNISON_WEIGHT = 0.3
PAD_BEAT_DETUNE = 1.004
PAD_BEAT_WEIGHT = 0.6
PAD_SECOND_HARMONIC_WEIGHT = 0.15
BASS_SUB_WEIGHT = 0.5
BASS_HARMONIC_WEIGHTS = (0.2, 0.1)
BASS_DRIVE = 1.6


def pan_gains(pan: float) -> tuple[float, float]:
    """Constant-power pan law: ``(cos(pan*pi/2), sin(pan*pi/2))``."""
    angle = max(0.0, min(1.0, pan)) * math.pi / 2.0
    return math.cos(angle), math.sin(angle)


def _pre_release_level(t: np.ndarray, envelope: Envelope) -> np.ndarray:
    level = np.full(t.shape, envelope.sustain_level, dtype=np.float64)
    attack = t < envelope.attack_s
    level[attack] = t[attack] / envelope.attack_s
    if envelope.decay_s > 0:
        decay = (t >= envelope.attack_s) & (t < envelope.attack_s + envelope.decay_s)
        progress = (t[decay] - envelope.attack_s) / envelope.decay_s
        level[decay] = 1.0 - (1.0 - envelope.sustain_level) * progress
    return level


def envelope_gain(t: np.ndarray, duration_s: float, envelope: Envelope) -> np.ndarray:
    """Four-segment envelope sampled at note-relative times ``t``.

    Release lasts ``min(release_s, 0.4 * duration_s)`` and ramps linearly
    to zero at ``duration_s`` from whatever level the attack/decay/sustain
    curve had reached when it began.
    """
    t = np.asarray(t, dtype=np.float64)
    level = _pre_release_level(t, envelope)
    release_s = min(envelope.release_s, RELEASE_CAP_FRACTION * duration_s)
    if release_s > 0:
        release_start = duration_s - release_s
        start_level = float(_pre_release_level(np.array([release_start]), envelope)[0])
        tail = t >= release_start
        level[tail] = start_level * (duration_s - t[tail]) / release_s
    return np.clip(level, 0.0, 1.0)


def _sine(freq: float, t: np.ndarray) -> np.ndarray:
    return np.sin(2.0 * np.pi * freq * t)


def _piano(freq: float, t: np.ndarray) -> np.ndarray:
    out = np.zeros_like(t)
    for harmonic, weight in enumerate(PIANO_HARMONIC_WEIGHTS, start=1):
        out += weight * _sine(freq * harmonic, t)
    out += PIANO_UNISON_WEIGHT * _sine(freq * PIANO_UNISON_DETUNE, t)
    return out / (sum(PIANO_HARMONIC_WEIGHTS) + PIANO_UNISON_WEIGHT)


def _pad(freq: float, t: np.ndarray) -> np.ndarray:
    out = _sine(freq, t)
    out += PAD_BEAT_WEIGHT * _sine(freq * PAD_BEAT_DETUNE, t)
    out += PAD_SECOND_HARMONIC_WEIGHT * _sine(freq * 2.0, t)
    return out / (1.0 + PAD_BEAT_WEIGHT + PAD_SECOND_HARMONIC_WEIGHT)


def _bass(freq: float, t: np.ndarray) -> np.ndarray:
    out = _sine(freq, t) + BASS_SUB_WEIGHT * _sine(freq / 2.0, t)
    for harmonic, weight in enumerate(BASS_HARMONIC_WEIGHTS, start=2):
        out += weight * _sine(freq * harmonic, t)
    out /= 1.0 + BASS_SUB_WEIGHT + sum(BASS_HARMONIC_WEIGHTS)
    return np.tanh(BASS_DRIVE * out) / math.tanh(BASS_DRIVE)


OSCILLATORS: dict[Timbre, Callable[[float, np.ndarray], np.ndarray]] = {
    Timbre.PIANO: _piano,
    Timbre.PAD: _pad,
    Timbre.BASS: _bass,
}


def oscillate(timbre: Timbre, freq: float, t: np.ndarray) -> np.ndarray:
    return OSCILLATORS[timbre](freq, np.asarray(t, dtype=np.float64))


def render_note(event: NoteEvent, accumulator: StereoAccumulator, sample_rate: int) -> int:
    if event.duration_s <= 0:
        return 0
    start_frame = int(math.floor(event.start_s * sample_rate))
    length = int(event.duration_s * sample_rate)
    first, last = accumulator.writable_range(start_frame, length)
    if last <= first:
        return 0

    t = np.arange(first, last, dtype=np.float64) / float(sample_rate)
    wave = oscillate(event.timbre, event.frequency_hz, t)
    wave *= envelope_gain(t, event.duration_s, event.envelope)
    wave *= event.amplitude * LOUDNESS_SCALE

    left_gain, right_gain = pan_gains(event.pan)
    accumulator.add(
        start_frame + first,
        np.trunc(wave * left_gain).astype(np.int64),
        np.trunc(wave * right_gain).astype(np.int64),
    )
    return last - first


def _render_voice(events: list[NoteEvent], capacity: int, sample_rate: int) -> StereoAccumulator:
    private = StereoAccumulator(capacity)
    for event in events:
        render_note(event, private, sample_rate)
    return private


def render_events(
    events: Iterable[NoteEvent],
    accumulator: StereoAccumulator,
    sample_rate: int,
    workers: int = 1,
) -> None:
    """Render every event into ``accumulator``.

    With ``workers > 1`` each voice is rendered into a private buffer on a
    thread pool and the buffers are summed afterwards. Integer addition
    keeps the result identical to the serial path.
    """
    if workers <= 1:
        for event in events:
            render_note(event, accumulator, sample_rate)
        return

    by_voice: dict[Voice, list[NoteEvent]] = {}
    for event in events:
        by_voice.setdefault(event.voice, []).append(event)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        partials = list(
            pool.map(
                lambda voice_events: _render_voice(voice_events, accumulator.capacity, sample_rate),
                by_voice.values(),
            )
        )
    for partial in partials:
        accumulator.merge(partial)
