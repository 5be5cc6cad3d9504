from __future__ import annotations

from dataclasses import dataclass

from cursed_composer.catalog import OUTRO_ENVELOPE, VOICE_ENVELOPES, Progression, select_arpeggio, select_progression
from cursed_composer.note_event import Envelope, NoteEvent, Timbre, Voice
from cursed_composer.pitch_math import pitch_to_frequency
from cursed_composer.seed import LcgRandom, SeedParameters
from cursed_composer.tonal import ChordKind, IntervalError, IntervalQuality, Pitch, ScaleKind, TonalOracle

BEATS_PER_BAR = 4
EIGHTHS_PER_BAR = 8
INTRO_BARS = 2
MAIN_REPETITIONS = 3

CHORD_OCTAVE = 3
BASS_OCTAVE = 2
ARPEGGIO_OCTAVE = 4
MELODY_OCTAVE_SHIFT = 2

PAD_HOLD_FRACTION = 0.92
PAD_INTRO_LEVELS = (0.22, 0.34)
PAD_LEVEL = 0.42
PAD_FINAL_LEVEL = 0.5
BASS_LEVEL = 0.7
BASS_HOLD_FRACTION = 0.9
ARPEGGIO_LEVEL = 0.32
ARPEGGIO_HOLD_FRACTION = 0.9
SWING_FRACTION = 1.0 / 3.0
MELODY_LEVEL = 0.5
MELODY_ACCENT = 0.15
MELODY_HOLD_FRACTION = 0.85
MELODY_PAN = 0.56

MELODY_REST_PERCENT = 10
MELODY_STEP_PERCENT = 55
MELODY_REPEAT_PERCENT = 20
MAX_LEAP = 3

OUTRO_HOLD_BEATS = 6.0
OUTRO_STAGGER_BEATS = 0.12
OUTRO_TAIL_S = 1.0


class GenerationError(RuntimeError):
    """Fatal failure while planning an arrangement."""


@dataclass(frozen=True)
class Bar:
    chord_root: Pitch
    chord_kind: ChordKind
    start_s: float


@dataclass(frozen=True)
class Section:
    name: str
    bars: tuple[Bar, ...]
    events: tuple[NoteEvent, ...]


@dataclass(frozen=True)
class Arrangement:
    """Fully timed arrangement: intro, main and outro sections in order.

    ``end_s`` is where the timeline cursor stopped, past the outro's
    audible tail.
    """

    parameters: SeedParameters
    progression: Progression
    arpeggio_pattern: tuple[int, ...]
    scale_kind: ScaleKind
    scale: tuple[Pitch, ...]
    sections: tuple[Section, ...]
    end_s: float

    @property
    def events(self) -> list[NoteEvent]:
        return [event for section in self.sections for event in section.events]

    @property
    def bars(self) -> list[Bar]:
        return [bar for section in self.sections for bar in section.bars]

    def section(self, name: str) -> Section:
        for section in self.sections:
            if section.name == name:
                return section
        raise KeyError(name)


class ScaleDegreeCursor:
    """Melody position within the usable degrees of a scale.

    The scale repeats its root an octave up as the final element; that
    duplicate is excluded, so the cursor always lies in
    ``[0, usable_degrees)``.
    """

    def __init__(self, usable_degrees: int, degree: int = 0):
        if usable_degrees <= 0:
            raise ValueError("usable_degrees must be > 0.")
        self.usable_degrees = usable_degrees
        self.degree = degree % usable_degrees

    def move(self, delta: int) -> int:
        self.degree = (self.degree + delta) % self.usable_degrees
        return self.degree


def melody_move(draw: int) -> int | None:
    """Map one 32-bit draw to a melody move; ``None`` means rest."""
    roll = (draw >> 16) % 100
    if roll < MELODY_REST_PERCENT:
        return None
    roll -= MELODY_REST_PERCENT
    if roll < MELODY_STEP_PERCENT:
        return 1 if (draw >> 8) & 0x1 else -1
    roll -= MELODY_STEP_PERCENT
    if roll < MELODY_REPEAT_PERCENT:
        return 0
    return ((draw >> 24) % (2 * MAX_LEAP + 1)) - MAX_LEAP


def _spread_pan(index: int, count: int, low: float = 0.2, high: float = 0.8) -> float:
    if count <= 1:
        return 0.5
    return low + (high - low) * (index / (count - 1))


class ArrangementPlanner:
    def __init__(self, parameters: SeedParameters, rng: LcgRandom, oracle: TonalOracle):
        self.parameters = parameters
        self.rng = rng
        self.oracle = oracle
        self.progression = select_progression(parameters.progression_index)
        self.arpeggio_pattern = select_arpeggio(parameters.arpeggio_index)
        self.scale_kind = self.progression.scale_kind
        self.root = Pitch(letter=parameters.root_letter, accidental=parameters.root_accidental, octave=CHORD_OCTAVE)
        self.scale = tuple(self.oracle.get_scale(self.root, self.scale_kind))
        self.usable_degrees = len(self.scale) - 1
        self.melody_scale = tuple(p.shifted_octaves(MELODY_OCTAVE_SHIFT) for p in self.scale[: self.usable_degrees])
        self.cursor = ScaleDegreeCursor(self.usable_degrees)
        self.beat_s = 60.0 / float(parameters.tempo_bpm)
        self.eighth_s = self.beat_s / 2.0
        self.bar_s = self.beat_s * BEATS_PER_BAR
        self.time_s = 0.0

    def plan(self) -> Arrangement:
        sections = (self._plan_intro(), self._plan_main(), self._plan_outro())
        return Arrangement(
            parameters=self.parameters,
            progression=self.progression,
            arpeggio_pattern=self.arpeggio_pattern,
            scale_kind=self.scale_kind,
            scale=self.scale,
            sections=sections,
            end_s=self.time_s,
        )

    def _chord_root(self, degree: int) -> Pitch:
        return self.scale[degree % self.usable_degrees].with_octave(CHORD_OCTAVE)

    def _event(
        self,
        pitch: Pitch,
        voice: Voice,
        timbre: Timbre,
        start_s: float,
        duration_s: float,
        amplitude: float,
        pan: float,
        envelope: Envelope | None = None,
    ) -> NoteEvent:
        return NoteEvent(
            frequency_hz=pitch_to_frequency(pitch),
            start_s=start_s,
            duration_s=duration_s,
            amplitude=amplitude,
            pan=pan,
            timbre=timbre,
            envelope=envelope if envelope is not None else VOICE_ENVELOPES[voice],
            voice=voice,
        )

    def _pad(self, tones: list[Pitch], start_s: float, level: float) -> list[NoteEvent]:
        return [
            self._event(
                tone,
                Voice.PAD,
                Timbre.PAD,
                start_s=start_s,
                duration_s=self.bar_s * PAD_HOLD_FRACTION,
                amplitude=level,
                pan=_spread_pan(i, len(tones)),
            )
            for i, tone in enumerate(tones)
        ]

    def _plan_intro(self) -> Section:
        bars: list[Bar] = []
        events: list[NoteEvent] = []
        for i in range(INTRO_BARS):
            degree, kind = self.progression.chords[i % len(self.progression.chords)]
            root = self._chord_root(degree)
            tones = self.oracle.get_chord(root, kind)
            bars.append(Bar(chord_root=root, chord_kind=kind, start_s=self.time_s))
            events.extend(self._pad(tones, self.time_s, PAD_INTRO_LEVELS[i % len(PAD_INTRO_LEVELS)]))
            self.time_s += self.bar_s
        return Section(name="intro", bars=tuple(bars), events=tuple(events))

    def _plan_main(self) -> Section:
        bars: list[Bar] = []
        events: list[NoteEvent] = []
        chord_count = len(self.progression.chords)
        for rep in range(MAIN_REPETITIONS):
            for c, (degree, kind) in enumerate(self.progression.chords):
                root = self._chord_root(degree)
                tones = self.oracle.get_chord(root, kind)
                bars.append(Bar(chord_root=root, chord_kind=kind, start_s=self.time_s))

                final_stretch = rep == MAIN_REPETITIONS - 1 and c >= chord_count - 2
                events.extend(self._pad(tones, self.time_s, PAD_FINAL_LEVEL if final_stretch else PAD_LEVEL))
                events.extend(self._bass_bar(root, tones, rep))
                events.extend(self._arpeggio_bar(tones))
                events.extend(self._melody_bar())
                self.time_s += self.bar_s
        return Section(name="main", bars=tuple(bars), events=tuple(events))

    def _perfect_fifth(self, root: Pitch) -> Pitch:
        try:
            return self.oracle.get_interval(root, 5, IntervalQuality.PERFECT)
        except IntervalError as exc:
            raise GenerationError(f"Could not derive the bass fifth above {root}.") from exc

    def _bass_bar(self, chord_root: Pitch, tones: list[Pitch], rep: int) -> list[NoteEvent]:
        bass_root = chord_root.with_octave(BASS_OCTAVE)
        fifth = self._perfect_fifth(bass_root)
        second = bass_root
        if rep >= 1:
            second = tones[1].shifted_octaves(BASS_OCTAVE - chord_root.octave)
        return [
            self._event(
                pitch,
                Voice.BASS,
                Timbre.BASS,
                start_s=self.time_s + beat * self.beat_s,
                duration_s=self.beat_s * BASS_HOLD_FRACTION,
                amplitude=BASS_LEVEL,
                pan=0.5,
            )
            for beat, pitch in enumerate((bass_root, second, fifth, bass_root))
        ]

    def _arpeggio_bar(self, tones: list[Pitch]) -> list[NoteEvent]:
        octave_shift = ARPEGGIO_OCTAVE - CHORD_OCTAVE
        swing_offset = self.eighth_s * SWING_FRACTION if self.parameters.swing else 0.0
        events: list[NoteEvent] = []
        for slot in range(EIGHTHS_PER_BAR):
            tone_index = self.arpeggio_pattern[slot % len(self.arpeggio_pattern)] % len(tones)
            start_s = self.time_s + slot * self.eighth_s
            if slot % 2 == 1:
                start_s += swing_offset
            events.append(
                self._event(
                    tones[tone_index].shifted_octaves(octave_shift),
                    Voice.ARPEGGIO,
                    Timbre.PIANO,
                    start_s=start_s,
                    duration_s=self.eighth_s * ARPEGGIO_HOLD_FRACTION,
                    amplitude=ARPEGGIO_LEVEL,
                    pan=_spread_pan(tone_index, len(tones), low=0.35, high=0.65),
                )
            )
        return events

    def _melody_bar(self) -> list[NoteEvent]:
        events: list[NoteEvent] = []
        for slot in range(EIGHTHS_PER_BAR):
            draw = self.rng.next_u32()
            move = melody_move(draw)
            if move is None:
                continue
            degree = self.cursor.move(move)

            # Slots 0 and 4 fall on beats 1 and 3.
            lengthened = slot % 4 == 0 and ((draw >> 12) & 0x3) == 0
            eighths = 2 if lengthened else 1
            amplitude = MELODY_LEVEL
            if slot == 0 or lengthened:
                amplitude += MELODY_ACCENT
            events.append(
                self._event(
                    self.melody_scale[degree],
                    Voice.MELODY,
                    Timbre.PIANO,
                    start_s=self.time_s + slot * self.eighth_s,
                    duration_s=self.eighth_s * eighths * MELODY_HOLD_FRACTION,
                    amplitude=amplitude,
                    pan=MELODY_PAN,
                )
            )
        return events

    def _plan_outro(self) -> Section:
        root = self.scale[0].with_octave(CHORD_OCTAVE)
        kind = ChordKind.MAJOR_SEVENTH if self.scale_kind is ScaleKind.MAJOR else ChordKind.MINOR_SEVENTH
        tones = self.oracle.get_chord(root, kind)
        start_s = self.time_s
        hold_s = OUTRO_HOLD_BEATS * self.beat_s

        events: list[NoteEvent] = []
        delay_s = 0.0
        for i, tone in enumerate(tones):
            # Gaps between entries grow by one stagger step per tone.
            delay_s += i * OUTRO_STAGGER_BEATS * self.beat_s
            events.append(
                self._event(
                    tone,
                    Voice.PAD,
                    Timbre.PAD,
                    start_s=start_s + delay_s,
                    duration_s=hold_s - delay_s,
                    amplitude=PAD_FINAL_LEVEL,
                    pan=_spread_pan(i, len(tones)),
                    envelope=OUTRO_ENVELOPE,
                )
            )

        high_start_s = start_s + delay_s + self.eighth_s
        events.append(
            self._event(
                root.shifted_octaves(MELODY_OCTAVE_SHIFT),
                Voice.MELODY,
                Timbre.PIANO,
                start_s=high_start_s,
                duration_s=start_s + hold_s - high_start_s,
                amplitude=MELODY_LEVEL,
                pan=MELODY_PAN,
                envelope=OUTRO_ENVELOPE,
            )
        )
        events.append(
            self._event(
                root.with_octave(BASS_OCTAVE),
                Voice.BASS,
                Timbre.BASS,
                start_s=start_s,
                duration_s=hold_s,
                amplitude=BASS_LEVEL,
                pan=0.5,
                envelope=OUTRO_ENVELOPE,
            )
        )

        self.time_s = start_s + hold_s + OUTRO_TAIL_S
        bar = Bar(chord_root=root, chord_kind=kind, start_s=start_s)
        return Section(name="outro", bars=(bar,), events=tuple(events))


def plan_arrangement(parameters: SeedParameters, rng: LcgRandom, oracle: TonalOracle) -> Arrangement:
    return ArrangementPlanner(parameters=parameters, rng=rng, oracle=oracle).plan()
