import unittest

from cursed_composer import catalog
from cursed_composer.catalog import ARPEGGIO_PATTERNS, PROGRESSIONS, VOICE_ENVELOPES, select_arpeggio, select_progression
from cursed_composer.note_event import Voice
from cursed_composer.tonal import ChordKind, ScaleKind


class TestCatalog(unittest.TestCase):
    def test_triad_progressions_match_their_roman_numerals(self) -> None:
        for progression in PROGRESSIONS[:5]:
            numerals = progression.name.split("-")
            for numeral, (_, kind) in zip(numerals, progression.chords):
                expected = ChordKind.MINOR_TRIAD if numeral.islower() else ChordKind.MAJOR_TRIAD
                self.assertIs(kind, expected, progression.name)

    def test_scale_kind_follows_tonic_case(self) -> None:
        for progression in PROGRESSIONS:
            expected = ScaleKind.NATURAL_MINOR if progression.name.startswith("i") else ScaleKind.MAJOR
            self.assertIs(progression.scale_kind, expected, progression.name)

    def test_selection_wraps(self) -> None:
        self.assertIs(select_progression(len(PROGRESSIONS) + 2), PROGRESSIONS[2])
        self.assertIs(select_arpeggio(len(ARPEGGIO_PATTERNS) + 5), ARPEGGIO_PATTERNS[5])

    def test_every_voice_has_an_envelope(self) -> None:
        self.assertEqual(set(VOICE_ENVELOPES), set(Voice))
        with self.assertRaises(TypeError):
            VOICE_ENVELOPES[Voice.PAD] = VOICE_ENVELOPES[Voice.BASS]  # type: ignore[index]

    def test_no_single_letter_public_names(self) -> None:
        public = [name for name in vars(catalog) if not name.startswith("_")]
        self.assertEqual([name for name in public if len(name) == 1], [])


if __name__ == "__main__":
    unittest.main()
