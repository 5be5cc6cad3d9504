import tempfile
import unittest
from pathlib import Path

import numpy as np

from cursed_composer.composer import compose, compose_to_file
from cursed_composer.wav_file import encode_wav, read_wav_header

SAMPLE_RATE = 8000


class TestComposer(unittest.TestCase):
    def test_same_seed_gives_identical_bytes(self) -> None:
        a = compose("Mahler", sample_rate=SAMPLE_RATE)
        b = compose("Mahler", sample_rate=SAMPLE_RATE)
        self.assertEqual(a.parameters.as_tuple(), (6, -1, 2, 6, 166, False))
        self.assertEqual(encode_wav(a.left, a.right, SAMPLE_RATE), encode_wav(b.left, b.right, SAMPLE_RATE))

    def test_different_seed_gives_different_audio(self) -> None:
        a = compose("Mahler", sample_rate=SAMPLE_RATE)
        b = compose("Mahles", sample_rate=SAMPLE_RATE)
        self.assertNotEqual(a.parameters.as_tuple(), b.parameters.as_tuple())
        self.assertFalse(a.frame_count == b.frame_count and np.array_equal(a.left, b.left))

    def test_length_covers_arrangement_tail(self) -> None:
        result = compose("Mahler", sample_rate=SAMPLE_RATE)
        self.assertFalse(result.truncated)
        self.assertGreaterEqual(result.duration_s, result.arrangement.end_s)
        self.assertLess(result.duration_s, result.arrangement.end_s + 1.0)
        self.assertTrue(np.any(result.left != 0))
        self.assertTrue(np.any(result.right != 0))

    def test_capacity_truncates_silently(self) -> None:
        result = compose("Mahler", sample_rate=SAMPLE_RATE, max_duration_s=5.0)
        self.assertTrue(result.truncated)
        self.assertEqual(result.frame_count, 5 * SAMPLE_RATE)

    def test_truncation_does_not_change_audio_inside_the_cap(self) -> None:
        full = compose("Mahler", sample_rate=SAMPLE_RATE, reverb=False)
        capped = compose("Mahler", sample_rate=SAMPLE_RATE, max_duration_s=5.0, reverb=False)
        np.testing.assert_array_equal(capped.left, full.left[: capped.frame_count])

    def test_reverb_changes_the_mix(self) -> None:
        wet = compose("Mahler", sample_rate=SAMPLE_RATE)
        dry = compose("Mahler", sample_rate=SAMPLE_RATE, reverb=False)
        self.assertEqual(wet.frame_count, dry.frame_count)
        self.assertFalse(np.array_equal(wet.left, dry.left))

    def test_parallel_voices_match_serial(self) -> None:
        serial = compose("Debussy", sample_rate=SAMPLE_RATE)
        parallel = compose("Debussy", sample_rate=SAMPLE_RATE, workers=4)
        np.testing.assert_array_equal(serial.left, parallel.left)
        np.testing.assert_array_equal(serial.right, parallel.right)

    def test_compose_to_file_round_trips_header(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path, result = compose_to_file("Mahler", Path(td) / "mahler.wav", sample_rate=SAMPLE_RATE)
            data = path.read_bytes()
        header = read_wav_header(data)
        self.assertEqual(header.sample_rate, SAMPLE_RATE)
        self.assertEqual(header.frame_count, result.frame_count)
        self.assertEqual(header.riff_size, 36 + header.data_size)
        self.assertEqual(len(data), 44 + header.data_size)


if __name__ == "__main__":
    unittest.main()
