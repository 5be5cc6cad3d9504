from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ReverbTap:
    delay_s: float
    gain: float

    def __post_init__(self) -> None:
        if self.delay_s <= 0:
            raise ValueError("ReverbTap delay_s must be > 0.")
        if not (0.0 < self.gain < 1.0):
            raise ValueError("ReverbTap gain must be in (0,1).")

    def delay_frames(self, sample_rate: int) -> int:
        return int(round(self.delay_s * sample_rate))


REVERB_TAPS: tuple[ReverbTap, ...] = (
    ReverbTap(delay_s=0.100, gain=0.32),
    ReverbTap(delay_s=0.170, gain=0.24),
    ReverbTap(delay_s=0.260, gain=0.18),
    ReverbTap(delay_s=0.380, gain=0.12),
    ReverbTap(delay_s=0.490, gain=0.07),
)


def validate_taps(taps: tuple[ReverbTap, ...]) -> None:
    for prev, curr in zip(taps, taps[1:]):
        if curr.delay_s <= prev.delay_s:
            raise ValueError("Reverb tap delays must strictly increase.")
        if curr.gain >= prev.gain:
            raise ValueError("Reverb tap gains must strictly decrease.")


def apply_tap(buffer: np.ndarray, delay_frames: int, gain: float) -> None:
    """Feedback delay over ``buffer`` in place.

    Equivalent to ``for i in range(delay, n): buffer[i] += trunc(buffer[i - delay] * gain)``:
    every block of ``delay_frames`` reads the block before it, which has
    already been updated.
    """
    n = int(buffer.shape[0])
    if delay_frames <= 0 or delay_frames >= n:
        return
    for block_start in range(delay_frames, n, delay_frames):
        block_end = min(block_start + delay_frames, n)
        source = buffer[block_start - delay_frames : block_end - delay_frames]
        buffer[block_start:block_end] += np.trunc(source * gain).astype(np.int64)


def apply_reverb_channel(buffer: np.ndarray, sample_rate: int, taps: tuple[ReverbTap, ...] = REVERB_TAPS) -> None:
    # Order matters: each tap echoes everything earlier taps added.
    for tap in taps:
        apply_tap(buffer, tap.delay_frames(sample_rate), tap.gain)


def apply_reverb(
    left: np.ndarray,
    right: np.ndarray,
    sample_rate: int,
    taps: tuple[ReverbTap, ...] = REVERB_TAPS,
) -> None:
    validate_taps(taps)
    apply_reverb_channel(left, sample_rate, taps)
    apply_reverb_channel(right, sample_rate, taps)
