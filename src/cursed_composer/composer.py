from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from cursed_composer.arrangement import Arrangement, plan_arrangement
from cursed_composer.render_context import DEFAULT_MAX_DURATION_S, DEFAULT_SAMPLE_RATE, GenerationContext
from cursed_composer.reverb import apply_reverb
from cursed_composer.seed import SeedParameters, derive_parameters, hash_seed
from cursed_composer.synth import render_events
from cursed_composer.tonal import DiatonicOracle, TonalOracle
from cursed_composer.wav_file import write_wav


@dataclass(frozen=True)
class CompositionResult:
    """Finished stereo mix of one seed.

    ``left`` / ``right`` hold unclamped 64-bit samples; clamping to 16 bit
    happens only when encoding. ``truncated`` is set when arranged
    material fell beyond the buffer capacity and was dropped.
    """

    parameters: SeedParameters
    arrangement: Arrangement
    left: np.ndarray
    right: np.ndarray
    sample_rate: int
    truncated: bool

    @property
    def frame_count(self) -> int:
        return int(self.left.shape[0])

    @property
    def duration_s(self) -> float:
        return self.frame_count / float(self.sample_rate)


def compose(
    seed_text: str,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    max_duration_s: float = DEFAULT_MAX_DURATION_S,
    reverb: bool = True,
    workers: int = 1,
    oracle: TonalOracle | None = None,
) -> CompositionResult:
    seed = hash_seed(seed_text)
    parameters = derive_parameters(seed)
    # Allocate before planning so an allocation failure aborts early.
    context = GenerationContext.create(seed=seed, sample_rate=sample_rate, max_duration_s=max_duration_s)
    arrangement = plan_arrangement(parameters, context.rng, oracle if oracle is not None else DiatonicOracle())

    accumulator = context.accumulator
    render_events(arrangement.events, accumulator, context.sample_rate, workers=workers)

    end_frame = int(math.ceil(arrangement.end_s * context.sample_rate))
    frame_count = min(accumulator.capacity, max(accumulator.frames_written, end_frame))
    truncated = accumulator.dropped_frames > 0 or end_frame > accumulator.capacity

    left = accumulator.left[:frame_count]
    right = accumulator.right[:frame_count]
    if reverb:
        apply_reverb(left, right, context.sample_rate)

    return CompositionResult(
        parameters=parameters,
        arrangement=arrangement,
        left=left,
        right=right,
        sample_rate=context.sample_rate,
        truncated=truncated,
    )


def compose_to_file(
    seed_text: str,
    output_path: str | Path,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    max_duration_s: float = DEFAULT_MAX_DURATION_S,
    reverb: bool = True,
    workers: int = 1,
    oracle: TonalOracle | None = None,
) -> tuple[Path, CompositionResult]:
    result = compose(
        seed_text,
        sample_rate=sample_rate,
        max_duration_s=max_duration_s,
        reverb=reverb,
        workers=workers,
        oracle=oracle,
    )
    return write_wav(output_path, result.left, result.right, result.sample_rate), result
