"""Tests for immutable data models."""

import time
import unittest
from dataclasses import FrozenInstanceError

from mindwave.models import HeadsetId, Record, SensorState


class TestHeadsetId(unittest.TestCase):
    """Test HeadsetId parsing and formatting."""

    def test_str_is_four_hex_digits(self):
        self.assertEqual(str(HeadsetId(0xF6, 0x4F)), "F64F")
        self.assertEqual(str(HeadsetId(0x01, 0x02)), "0102")

    def test_from_hex(self):
        self.assertEqual(HeadsetId.from_hex("f64f"), HeadsetId(0xF6, 0x4F))
        self.assertEqual(HeadsetId.from_hex(" 0A0B "), HeadsetId(0x0A, 0x0B))

    def test_from_hex_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            HeadsetId.from_hex("F64")
        with self.assertRaises(ValueError):
            HeadsetId.from_hex("XYZW")

    def test_from_hex_rejects_int_literal_forms(self):
        """Prefixes, signs and separators are not hex digits."""
        for text in ("0x12", "1_23", "+123", "-123"):
            with self.assertRaises(ValueError, msg=text):
                HeadsetId.from_hex(text)

    def test_byte_range_checked(self):
        with self.assertRaises(ValueError):
            HeadsetId(0x100, 0)

    def test_is_set(self):
        self.assertFalse(HeadsetId().is_set)
        self.assertTrue(HeadsetId(0, 1).is_set)


class TestSensorState(unittest.TestCase):
    """Test SensorState snapshot."""

    def test_defaults_zero(self):
        state = SensorState()
        self.assertEqual(state.attention, 0)
        self.assertEqual(state.raw_wave, 0)
        self.assertEqual(state.mid_gamma, 0)

    def test_frozen(self):
        state = SensorState()
        with self.assertRaises(FrozenInstanceError):
            state.attention = 5

    def test_staleness(self):
        self.assertTrue(SensorState().is_stale())
        self.assertFalse(SensorState(updated_at=time.time()).is_stale())
        self.assertTrue(SensorState(updated_at=time.time() - 3.0).is_stale())
        self.assertFalse(SensorState(updated_at=time.time() - 3.0).is_stale(threshold=10.0))


class TestRecord(unittest.TestCase):
    """Test Record representation."""

    def test_repr(self):
        record = Record(code=0x90, data=b"\x01\x02", extended_level=1)
        self.assertEqual(repr(record), "Record(code=0x90, extended_level=1, data=01 02)")


if __name__ == '__main__':
    unittest.main()
