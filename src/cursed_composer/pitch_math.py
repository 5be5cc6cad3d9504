from __future__ import annotations

from cursed_composer.tonal import LETTER_SEMITONES, Pitch

A4_FREQUENCY_HZ = 440.0
A4_MIDI_NOTE = 69
MIN_MIDI_NOTE = 0
MAX_MIDI_NOTE = 127


def pitch_to_midi_note(pitch: Pitch) -> int:
    midi_note = 12 * (pitch.octave + 1) + LETTER_SEMITONES[pitch.letter] + pitch.accidental
    return max(MIN_MIDI_NOTE, min(MAX_MIDI_NOTE, midi_note))


def midi_note_to_frequency(midi_note: int, a4_hz: float = A4_FREQUENCY_HZ) -> float:
    return float(a4_hz * (2.0 ** ((midi_note - A4_MIDI_NOTE) / 12.0)))


def pitch_to_frequency(pitch: Pitch, a4_hz: float = A4_FREQUENCY_HZ) -> float:
    return midi_note_to_frequency(pitch_to_midi_note(pitch), a4_hz=a4_hz)
