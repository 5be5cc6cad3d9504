from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from cursed_composer.note_event import Envelope, Voice
from cursed_composer.tonal import ChordKind, ScaleKind

_MAJ = ChordKind.MAJOR_TRIAD
_MIN = ChordKind.MINOR_TRIAD


@dataclass(frozen=True)
class Progression:
    name: str
    scale_kind: ScaleKind
    chords: tuple[tuple[int, ChordKind], ...]


PROGRESSIONS: tuple[Progression, ...] = (
    Progression("I-IV-V-I", ScaleKind.MAJOR, ((0, _MAJ), (3, _MAJ), (4, _MAJ), (0, _MAJ))),
    Progression("I-vi-IV-V", ScaleKind.MAJOR, ((0, _MAJ), (5, _MIN), (3, _MAJ), (4, _MAJ))),
    Progression("I-V-vi-IV", ScaleKind.MAJOR, ((0, _MAJ), (4, _MAJ), (5, _MIN), (3, _MAJ))),
    Progression("i-iv-V-i", ScaleKind.NATURAL_MINOR, ((0, _MIN), (3, _MIN), (4, _MAJ), (0, _MIN))),
    Progression("i-VI-III-V", ScaleKind.NATURAL_MINOR, ((0, _MIN), (5, _MAJ), (2, _MAJ), (4, _MAJ))),
    Progression(
        "Imaj7-vi7-ii7-V7",
        ScaleKind.MAJOR,
        (
            (0, ChordKind.MAJOR_SEVENTH),
            (5, ChordKind.MINOR_SEVENTH),
            (1, ChordKind.MINOR_SEVENTH),
            (4, ChordKind.DOMINANT_SEVENTH),
        ),
    ),
    Progression(
        "i7-iv7-VII7-IIImaj7",
        ScaleKind.NATURAL_MINOR,
        (
            (0, ChordKind.MINOR_SEVENTH),
            (3, ChordKind.MINOR_SEVENTH),
            (6, ChordKind.DOMINANT_SEVENTH),
            (2, ChordKind.MAJOR_SEVENTH),
        ),
    ),
    Progression(
        "Imaj7-IVmaj7-iii7-vi7",
        ScaleKind.MAJOR,
        (
            (0, ChordKind.MAJOR_SEVENTH),
            (3, ChordKind.MAJOR_SEVENTH),
            (2, ChordKind.MINOR_SEVENTH),
            (5, ChordKind.MINOR_SEVENTH),
        ),
    ),
)

# Chord-tone indices per eighth note; wrapped by the realized chord size.
ARPEGGIO_PATTERNS: tuple[tuple[int, ...], ...] = (
    (0, 1, 2, 1, 0, 1, 2, 1),
    (0, 1, 2, 3, 2, 1, 0, 1),
    (0, 2, 1, 2, 0, 2, 1, 2),
    (2, 1, 0, 1, 2, 1, 0, 1),
    (0, 1, 2, 3, 0, 1, 2, 3),
    (0, 2, 3, 1, 0, 2, 3, 1),
    (0, 0, 2, 1, 0, 0, 2, 3),
    (3, 2, 1, 0, 1, 2, 3, 2),
)

VOICE_ENVELOPES: MappingProxyType[Voice, Envelope] = MappingProxyType(
    {
        Voice.PAD: Envelope(attack_s=0.35, decay_s=0.6, sustain_level=0.75, release_s=0.9),
        Voice.BASS: Envelope(attack_s=0.008, decay_s=0.18, sustain_level=0.65, release_s=0.1),
        Voice.ARPEGGIO: Envelope(attack_s=0.004, decay_s=0.15, sustain_level=0.35, release_s=0.12),
        Voice.MELODY: Envelope(attack_s=0.01, decay_s=0.12, sustain_level=0.6, release_s=0.15),
    }
)

OUTRO_ENVELOPE = Envelope(attack_s=0.05, decay_s=0.8, sustain_level=0.6, release_s=2.5)


def select_progression(index: int) -> Progression:
    return PROGRESSIONS[index % len(PROGRESSIONS)]


def select_arpeggio(index: int) -> tuple[int, ...]:
    return ARPEGGIO_PATTERNS[index % len(ARPEGGIO_PATTERNS)]
