from __future__ import annotations

from dataclasses import dataclass

from cursed_composer.catalog import ARPEGGIO_PATTERNS, PROGRESSIONS

HASH_INITIAL = 5381
HASH_MULTIPLIER = 33
LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
UINT32_MASK = 0xFFFFFFFF

MIN_TEMPO_BPM = 90
TEMPO_SPAN_BPM = 80


def hash_seed(text: str) -> int:
    """djb2 hash of the UTF-8 bytes of ``text``, reduced to 32 bits."""
    h = HASH_INITIAL
    for byte in text.encode("utf-8"):
        h = (h * HASH_MULTIPLIER + byte) & UINT32_MASK
    return h


@dataclass(frozen=True)
class SeedParameters:
    """Musical parameters sliced out of a 32-bit seed.

    Each field reads its own bit window of the seed, so the tuple does not
    depend on the order fields are derived in:

    - ``root_letter``: bits 0-2, letter index 0 (C) to 6 (B).
    - ``root_accidental``: bits 3-4, one of -1, 0, +1.
    - ``progression_index``: bits 5-7, index into the progression catalog.
    - ``arpeggio_index``: bits 8-10, index into the arpeggio catalog.
    - ``tempo_bpm``: bits 11-17, 90 to 169 beats per minute.
    - ``swing``: bit 18.
    """

    seed: int
    root_letter: int
    root_accidental: int
    progression_index: int
    arpeggio_index: int
    tempo_bpm: int
    swing: bool

    def as_tuple(self) -> tuple[int, int, int, int, int, bool]:
        return (
            self.root_letter,
            self.root_accidental,
            self.progression_index,
            self.arpeggio_index,
            self.tempo_bpm,
            self.swing,
        )


def derive_parameters(seed: int) -> SeedParameters:
    h = seed & UINT32_MASK
    return SeedParameters(
        seed=h,
        root_letter=(h & 0x7) % 7,
        root_accidental=((h >> 3) & 0x3) % 3 - 1,
        progression_index=((h >> 5) & 0x7) % len(PROGRESSIONS),
        arpeggio_index=((h >> 8) & 0x7) % len(ARPEGGIO_PATTERNS),
        tempo_bpm=MIN_TEMPO_BPM + ((h >> 11) & 0x7F) % TEMPO_SPAN_BPM,
        swing=bool((h >> 18) & 0x1),
    )


class LcgRandom:
    def __init__(self, seed: int):
        self.state = seed & UINT32_MASK

    def next_u32(self) -> int:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) & UINT32_MASK
        return self.state
