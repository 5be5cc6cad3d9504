from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Voice(Enum):
    PAD = "pad"
    BASS = "bass"
    ARPEGGIO = "arpeggio"
    MELODY = "melody"


class Timbre(Enum):
    PIANO = "piano"
    PAD = "pad"
    BASS = "bass"


@dataclass(frozen=True)
class Envelope:
    attack_s: float
    decay_s: float
    sustain_level: float
    release_s: float

    def __post_init__(self) -> None:
        if self.attack_s <= 0:
            raise ValueError("Envelope attack_s must be > 0.")
        if self.decay_s < 0:
            raise ValueError("Envelope decay_s must be >= 0.")
        if not (0.0 <= self.sustain_level <= 1.0):
            raise ValueError("Envelope sustain_level must be in [0,1].")
        if self.release_s < 0:
            raise ValueError("Envelope release_s must be >= 0.")


@dataclass(frozen=True)
class NoteEvent:
    frequency_hz: float
    start_s: float
    duration_s: float
    amplitude: float
    pan: float
    timbre: Timbre
    envelope: Envelope
    voice: Voice

    def __post_init__(self) -> None:
        if self.frequency_hz <= 0:
            raise ValueError("NoteEvent frequency_hz must be > 0.")
        if not (0.0 <= self.amplitude <= 1.0):
            raise ValueError("NoteEvent amplitude must be in [0,1].")
        if not (0.0 <= self.pan <= 1.0):
            raise ValueError("NoteEvent pan must be in [0,1].")

    @property
    def end_s(self) -> float:
        return self.start_s + max(0.0, self.duration_s)
