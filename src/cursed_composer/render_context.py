from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from cursed_composer.seed import LcgRandom

DEFAULT_SAMPLE_RATE = 44100
DEFAULT_MAX_DURATION_S = 45.0


class StereoAccumulator:
    """Fixed-capacity stereo mix buffer with 64-bit integer headroom.

    Writes past ``capacity`` are dropped, never wrapped; the number of
    dropped frames is kept in ``dropped_frames``. ``frames_written`` is
    the high-water mark of frames that received any write.
    """

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError("capacity must be >= 0.")
        self.left = np.zeros(capacity, dtype=np.int64)
        self.right = np.zeros(capacity, dtype=np.int64)
        self.frames_written = 0
        self.dropped_frames = 0

    @property
    def capacity(self) -> int:
        return int(self.left.shape[0])

    def writable_range(self, start_frame: int, length: int) -> tuple[int, int]:
        """Return the ``[first, last)`` offsets of a span that fit in the buffer.

        Offsets are relative to ``start_frame``. Frames past the end are
        counted as dropped.
        """
        if length <= 0:
            return 0, 0
        first = max(0, -start_frame)
        last = min(length, self.capacity - start_frame)
        if last < length:
            self.dropped_frames += length - max(last, first)
        if last <= first:
            return 0, 0
        return first, last

    def add(self, start_frame: int, left: np.ndarray, right: np.ndarray) -> None:
        if left.shape != right.shape:
            raise ValueError("left and right must have the same shape.")
        first, last = self.writable_range(start_frame, int(left.shape[0]))
        if last <= first:
            return
        lo = start_frame + first
        hi = start_frame + last
        self.left[lo:hi] += left[first:last]
        self.right[lo:hi] += right[first:last]
        self.frames_written = max(self.frames_written, hi)

    def merge(self, other: StereoAccumulator) -> None:
        if other.capacity != self.capacity:
            raise ValueError("Cannot merge accumulators of different capacity.")
        self.left += other.left
        self.right += other.right
        self.frames_written = max(self.frames_written, other.frames_written)
        self.dropped_frames += other.dropped_frames


@dataclass
class GenerationContext:
    sample_rate: int
    accumulator: StereoAccumulator
    rng: LcgRandom

    @classmethod
    def create(
        cls,
        seed: int,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        max_duration_s: float = DEFAULT_MAX_DURATION_S,
    ) -> GenerationContext:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0.")
        if max_duration_s <= 0:
            raise ValueError("max_duration_s must be > 0.")
        capacity = int(math.floor(max_duration_s * sample_rate))
        return cls(sample_rate=int(sample_rate), accumulator=StereoAccumulator(capacity), rng=LcgRandom(seed))
