from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

LETTER_NAMES = ("C", "D", "E", "F", "G", "A", "B")
LETTER_SEMITONES = (0, 2, 4, 5, 7, 9, 11)
MAX_ACCIDENTAL = 2
MAX_OCTAVE = 9


@dataclass(frozen=True)
class Pitch:
    """Spelled pitch, independent of any absolute frequency.

    - ``letter`` is the diatonic letter index, 0 = C through 6 = B.
    - ``accidental`` is the signed number of semitone alterations
      (-1 = flat, +1 = sharp), limited to double flats/sharps.
    - ``octave`` follows scientific pitch notation (C4 = middle C).
    """

    letter: int
    accidental: int = 0
    octave: int = 4

    def __post_init__(self) -> None:
        if not (0 <= self.letter < len(LETTER_NAMES)):
            raise ValueError("Pitch letter must be in [0,6].")
        if not (-MAX_ACCIDENTAL <= self.accidental <= MAX_ACCIDENTAL):
            raise ValueError(f"Pitch accidental must be in [-{MAX_ACCIDENTAL},{MAX_ACCIDENTAL}].")
        if not (0 <= self.octave <= MAX_OCTAVE):
            raise ValueError(f"Pitch octave must be in [0,{MAX_OCTAVE}].")

    def with_octave(self, octave: int) -> Pitch:
        return replace(self, octave=octave)

    def shifted_octaves(self, count: int) -> Pitch:
        return replace(self, octave=self.octave + count)

    def semitone_index(self) -> int:
        return self.octave * 12 + LETTER_SEMITONES[self.letter] + self.accidental


class ScaleKind(Enum):
    MAJOR = "major"
    NATURAL_MINOR = "natural minor"


class ChordKind(Enum):
    MAJOR_TRIAD = "major triad"
    MINOR_TRIAD = "minor triad"
    DIMINISHED_TRIAD = "diminished triad"
    AUGMENTED_TRIAD = "augmented triad"
    MAJOR_SEVENTH = "major seventh"
    MINOR_SEVENTH = "minor seventh"
    DOMINANT_SEVENTH = "dominant seventh"
    HALF_DIMINISHED_SEVENTH = "half-diminished seventh"

    @property
    def symbol(self) -> str:
        return _CHORD_SYMBOLS[self]


class IntervalQuality(Enum):
    DIMINISHED = "d"
    MINOR = "m"
    MAJOR = "M"
    AUGMENTED = "A"
    PERFECT = "P"


class Direction(Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class IntervalError(ValueError):
    """Raised when a step count and quality do not name a valid interval."""

    def __init__(self, step_count: int, quality: IntervalQuality):
        super().__init__(f"No {quality.name.lower()} interval spans {step_count} diatonic steps.")
        self.step_count = step_count
        self.quality = quality


class TonalOracle(Protocol):
    """Pitch-set provider consumed by the arrangement planner."""

    def get_scale(self, root: Pitch, kind: ScaleKind, direction: Direction = Direction.ASCENDING) -> list[Pitch]:
        ...

    def get_chord(self, root: Pitch, kind: ChordKind) -> list[Pitch]:
        ...

    def get_interval(self, root: Pitch, step_count: int, quality: IntervalQuality) -> Pitch:
        ...

    def pitch_to_display(self, pitch: Pitch) -> str:
        ...


# (diatonic letter steps, semitones) above the root for each tone.
_SCALE_SEMITONES: dict[ScaleKind, tuple[int, ...]] = {
    ScaleKind.MAJOR: (0, 2, 4, 5, 7, 9, 11, 12),
    ScaleKind.NATURAL_MINOR: (0, 2, 3, 5, 7, 8, 10, 12),
}

_CHORD_TONES: dict[ChordKind, tuple[tuple[int, int], ...]] = {
    ChordKind.MAJOR_TRIAD: ((0, 0), (2, 4), (4, 7)),
    ChordKind.MINOR_TRIAD: ((0, 0), (2, 3), (4, 7)),
    ChordKind.DIMINISHED_TRIAD: ((0, 0), (2, 3), (4, 6)),
    ChordKind.AUGMENTED_TRIAD: ((0, 0), (2, 4), (4, 8)),
    ChordKind.MAJOR_SEVENTH: ((0, 0), (2, 4), (4, 7), (6, 11)),
    ChordKind.MINOR_SEVENTH: ((0, 0), (2, 3), (4, 7), (6, 10)),
    ChordKind.DOMINANT_SEVENTH: ((0, 0), (2, 4), (4, 7), (6, 10)),
    ChordKind.HALF_DIMINISHED_SEVENTH: ((0, 0), (2, 3), (4, 6), (6, 10)),
}

_CHORD_SYMBOLS: dict[ChordKind, str] = {
    ChordKind.MAJOR_TRIAD: "",
    ChordKind.MINOR_TRIAD: "m",
    ChordKind.DIMINISHED_TRIAD: "dim",
    ChordKind.AUGMENTED_TRIAD: "aug",
    ChordKind.MAJOR_SEVENTH: "maj7",
    ChordKind.MINOR_SEVENTH: "m7",
    ChordKind.DOMINANT_SEVENTH: "7",
    ChordKind.HALF_DIMINISHED_SEVENTH: "m7b5",
}

# Semitones of the perfect (unison, fourth, fifth, octave) or major
# (second, third, sixth, seventh) interval for each simple step count.
_PERFECT_STEPS = {1: 0, 4: 5, 5: 7, 8: 12}
_MAJOR_STEPS = {2: 2, 3: 4, 6: 9, 7: 11}


def _interval_semitones(step_count: int, quality: IntervalQuality) -> int:
    if step_count in _PERFECT_STEPS:
        base = _PERFECT_STEPS[step_count]
        offsets = {
            IntervalQuality.PERFECT: 0,
            IntervalQuality.AUGMENTED: 1,
            IntervalQuality.DIMINISHED: -1,
        }
    elif step_count in _MAJOR_STEPS:
        base = _MAJOR_STEPS[step_count]
        offsets = {
            IntervalQuality.MAJOR: 0,
            IntervalQuality.MINOR: -1,
            IntervalQuality.AUGMENTED: 1,
            IntervalQuality.DIMINISHED: -2,
        }
    else:
        raise IntervalError(step_count, quality)
    if quality not in offsets:
        raise IntervalError(step_count, quality)
    semitones = base + offsets[quality]
    if semitones < 0:
        raise IntervalError(step_count, quality)
    return semitones


def _spell_above(root: Pitch, letter_steps: int, semitones: int) -> Pitch:
    letter_total = root.letter + letter_steps
    letter = letter_total % len(LETTER_NAMES)
    octave = root.octave + letter_total // len(LETTER_NAMES)
    natural = octave * 12 + LETTER_SEMITONES[letter]
    return Pitch(letter=letter, accidental=root.semitone_index() + semitones - natural, octave=octave)


class DiatonicOracle:
    """Reference oracle spelling tones by letter steps over the root.

    Covers major and natural minor scales, the triad and seventh chord
    kinds in :class:`ChordKind`, and simple intervals up to an octave.
    """

    def get_scale(self, root: Pitch, kind: ScaleKind, direction: Direction = Direction.ASCENDING) -> list[Pitch]:
        tones = [_spell_above(root, step, semitones) for step, semitones in enumerate(_SCALE_SEMITONES[kind])]
        if direction is Direction.DESCENDING:
            tones.reverse()
        return tones

    def get_chord(self, root: Pitch, kind: ChordKind) -> list[Pitch]:
        return [_spell_above(root, steps, semitones) for steps, semitones in _CHORD_TONES[kind]]

    def get_interval(self, root: Pitch, step_count: int, quality: IntervalQuality) -> Pitch:
        semitones = _interval_semitones(step_count, quality)
        try:
            return _spell_above(root, step_count - 1, semitones)
        except ValueError as exc:
            raise IntervalError(step_count, quality) from exc

    def pitch_to_display(self, pitch: Pitch) -> str:
        if pitch.accidental >= 0:
            accidental = "#" * pitch.accidental
        else:
            accidental = "b" * -pitch.accidental
        return f"{LETTER_NAMES[pitch.letter]}{accidental}{pitch.octave}"
