import math
import unittest

import numpy as np

from cursed_composer.note_event import Envelope, NoteEvent, Timbre, Voice
from cursed_composer.render_context import StereoAccumulator
from cursed_composer.synth import envelope_gain, oscillate, pan_gains, render_events, render_note

ENV = Envelope(attack_s=0.01, decay_s=0.05, sustain_level=0.6, release_s=0.05)


def _event(start_s: float = 0.0, duration_s: float = 0.1, pan: float = 0.5, voice: Voice = Voice.MELODY) -> NoteEvent:
    return NoteEvent(
        frequency_hz=220.0,
        start_s=start_s,
        duration_s=duration_s,
        amplitude=0.8,
        pan=pan,
        timbre=Timbre.PIANO,
        envelope=ENV,
        voice=voice,
    )


class TestPanLaw(unittest.TestCase):
    def test_center_is_equal_power(self) -> None:
        left, right = pan_gains(0.5)
        self.assertAlmostEqual(left, math.cos(math.pi / 4), places=12)
        self.assertAlmostEqual(right, 0.70710678, places=6)

    def test_hard_left_and_right(self) -> None:
        self.assertEqual(pan_gains(0.0), (1.0, 0.0))
        left, right = pan_gains(1.0)
        self.assertAlmostEqual(left, 0.0, places=12)
        self.assertAlmostEqual(right, 1.0, places=12)

    def test_power_is_constant(self) -> None:
        for pan in np.linspace(0.0, 1.0, 11):
            left, right = pan_gains(float(pan))
            self.assertAlmostEqual(left * left + right * right, 1.0, places=12)

    def test_out_of_range_pan_is_clamped(self) -> None:
        self.assertEqual(pan_gains(-0.3), pan_gains(0.0))
        self.assertEqual(pan_gains(1.7), pan_gains(1.0))


class TestEnvelope(unittest.TestCase):
    def _assert_continuous(self, duration_s: float, envelope: Envelope) -> None:
        t = np.linspace(0.0, duration_s, 20001)
        gain = envelope_gain(t, duration_s, envelope)
        self.assertAlmostEqual(float(gain[0]), 0.0, places=9)
        self.assertAlmostEqual(float(gain[-1]), 0.0, places=9)
        self.assertLess(float(np.max(np.abs(np.diff(gain)))), 0.01)
        self.assertTrue(np.all((gain >= 0.0) & (gain <= 1.0)))

    def test_long_note_is_continuous(self) -> None:
        self._assert_continuous(1.0, Envelope(attack_s=0.1, decay_s=0.2, sustain_level=0.6, release_s=0.3))

    def test_release_is_capped_for_short_notes(self) -> None:
        envelope = Envelope(attack_s=0.01, decay_s=0.2, sustain_level=0.4, release_s=0.5)
        self._assert_continuous(0.05, envelope)
        gain = envelope_gain(np.array([0.0299]), 0.05, envelope)
        self.assertGreater(float(gain[0]), 0.9)

    def test_note_shorter_than_attack(self) -> None:
        self._assert_continuous(0.02, Envelope(attack_s=0.5, decay_s=0.1, sustain_level=0.5, release_s=0.2))

    def test_sustain_plateau(self) -> None:
        envelope = Envelope(attack_s=0.1, decay_s=0.1, sustain_level=0.5, release_s=0.1)
        gain = envelope_gain(np.array([0.1, 0.5]), 1.0, envelope)
        self.assertAlmostEqual(float(gain[0]), 1.0, places=9)
        self.assertAlmostEqual(float(gain[1]), 0.5, places=9)

    def test_attack_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            Envelope(attack_s=0.0, decay_s=0.1, sustain_level=0.5, release_s=0.1)


class TestOscillators(unittest.TestCase):
    def test_timbres_are_normalized(self) -> None:
        t = np.arange(44100, dtype=np.float64) / 44100.0
        for timbre in Timbre:
            wave = oscillate(timbre, 110.0, t)
            self.assertLessEqual(float(np.max(np.abs(wave))), 1.0 + 1e-9)
            self.assertGreater(float(np.max(np.abs(wave))), 0.1)


class TestRenderNote(unittest.TestCase):
    def test_writes_only_inside_note_span(self) -> None:
        acc = StereoAccumulator(1000)
        written = render_note(_event(start_s=0.01, duration_s=0.005), acc, sample_rate=10000)
        self.assertEqual(written, 50)
        self.assertTrue(np.all(acc.left[:100] == 0))
        self.assertTrue(np.all(acc.left[150:] == 0))
        self.assertTrue(np.any(acc.left[100:150] != 0))
        self.assertEqual(acc.frames_written, 150)

    def test_hard_left_leaves_right_channel_silent(self) -> None:
        acc = StereoAccumulator(2000)
        render_note(_event(pan=0.0), acc, sample_rate=10000)
        self.assertTrue(np.any(acc.left != 0))
        self.assertTrue(np.all(acc.right == 0))

    def test_event_at_capacity_contributes_nothing(self) -> None:
        acc = StereoAccumulator(1000)
        self.assertEqual(render_note(_event(start_s=0.1), acc, sample_rate=10000), 0)
        self.assertTrue(np.all(acc.left == 0))
        self.assertEqual(acc.frames_written, 0)
        self.assertEqual(acc.dropped_frames, 1000)

    def test_overhanging_event_is_truncated_not_wrapped(self) -> None:
        acc = StereoAccumulator(1000)
        written = render_note(_event(start_s=0.095, duration_s=0.01), acc, sample_rate=10000)
        self.assertEqual(written, 50)
        self.assertEqual(acc.dropped_frames, 50)
        self.assertTrue(np.all(acc.left[:950] == 0))
        self.assertEqual(acc.frames_written, 1000)

    def test_negative_start_renders_only_the_in_range_tail(self) -> None:
        reference = StereoAccumulator(200)
        render_note(_event(start_s=0.0, duration_s=1.0), reference, sample_rate=100)
        acc = StereoAccumulator(200)
        written = render_note(_event(start_s=-0.5, duration_s=1.0), acc, sample_rate=100)

        self.assertEqual(written, 50)
        self.assertEqual(acc.frames_written, 50)
        self.assertEqual(acc.dropped_frames, 0)
        np.testing.assert_array_equal(acc.left[:50], reference.left[50:100])
        np.testing.assert_array_equal(acc.right[:50], reference.right[50:100])
        self.assertTrue(np.all(acc.left[50:] == 0))

    def test_event_entirely_before_zero_renders_nothing(self) -> None:
        acc = StereoAccumulator(200)
        self.assertEqual(render_note(_event(start_s=-2.0, duration_s=1.0), acc, sample_rate=100), 0)
        self.assertTrue(np.all(acc.left == 0))
        self.assertEqual(acc.frames_written, 0)

    def test_non_positive_duration_renders_nothing(self) -> None:
        acc = StereoAccumulator(1000)
        self.assertEqual(render_note(_event(duration_s=0.0), acc, sample_rate=10000), 0)
        self.assertEqual(render_note(_event(duration_s=-1.0), acc, sample_rate=10000), 0)
        self.assertTrue(np.all(acc.left == 0))

    def test_accumulation_is_additive(self) -> None:
        once = StereoAccumulator(2000)
        render_note(_event(), once, sample_rate=10000)
        twice = StereoAccumulator(2000)
        render_note(_event(), twice, sample_rate=10000)
        render_note(_event(), twice, sample_rate=10000)
        np.testing.assert_array_equal(twice.left, once.left * 2)

    def test_parallel_render_matches_serial(self) -> None:
        events = [
            _event(start_s=0.00, voice=Voice.PAD),
            _event(start_s=0.02, voice=Voice.BASS, pan=0.2),
            _event(start_s=0.04, voice=Voice.ARPEGGIO, pan=0.9),
            _event(start_s=0.05, voice=Voice.MELODY),
            _event(start_s=0.19, voice=Voice.MELODY),
        ]
        serial = StereoAccumulator(2000)
        render_events(events, serial, sample_rate=10000)
        parallel = StereoAccumulator(2000)
        render_events(events, parallel, sample_rate=10000, workers=4)
        np.testing.assert_array_equal(serial.left, parallel.left)
        np.testing.assert_array_equal(serial.right, parallel.right)
        self.assertEqual(serial.frames_written, parallel.frames_written)
        self.assertEqual(serial.dropped_frames, parallel.dropped_frames)


if __name__ == "__main__":
    unittest.main()
