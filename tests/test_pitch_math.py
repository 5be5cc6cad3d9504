import unittest

from cursed_composer.pitch_math import midi_note_to_frequency, pitch_to_frequency, pitch_to_midi_note
from cursed_composer.tonal import Pitch


class TestPitchMath(unittest.TestCase):
    def test_reference_pitches(self) -> None:
        self.assertEqual(pitch_to_midi_note(Pitch(5, 0, 4)), 69)  # A4
        self.assertEqual(pitch_to_midi_note(Pitch(0, 0, 4)), 60)  # C4
        self.assertEqual(pitch_to_midi_note(Pitch(0, -1, 4)), 59)  # Cb4
        self.assertAlmostEqual(pitch_to_frequency(Pitch(5, 0, 4)), 440.0, places=8)

    def test_enharmonic_pitches_share_frequency(self) -> None:
        self.assertAlmostEqual(pitch_to_frequency(Pitch(3, 1, 4)), pitch_to_frequency(Pitch(4, -1, 4)), places=8)

    def test_note_number_is_clamped(self) -> None:
        self.assertEqual(pitch_to_midi_note(Pitch(6, 2, 9)), 127)
        self.assertAlmostEqual(pitch_to_frequency(Pitch(6, 2, 9)), midi_note_to_frequency(127), places=8)

    def test_octave_doubles_frequency(self) -> None:
        self.assertAlmostEqual(midi_note_to_frequency(57) * 2.0, midi_note_to_frequency(69), places=8)


if __name__ == "__main__":
    unittest.main()
