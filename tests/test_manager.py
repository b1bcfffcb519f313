"""Tests for the MindWave driver facade against a scripted dongle."""

import threading
import time
import unittest
from unittest.mock import patch

from mindwave.dongle.manager import MindWave
from mindwave.errors import (
    ConnectionBusyError,
    HeadsetNotFoundError,
    NoHeadsetAvailableError,
    RequestDeniedError,
    StreamError,
)
from mindwave.models import ConnectionState, HeadsetId, PollEventKind

from fakes import ScriptedStream, frame, wait_for

CONNECTED_F64F = frame(0xD0, 0x02, 0xF6, 0x4F)


def make_headset(reply: bytes, headset_id=None) -> MindWave:
    stream = ScriptedStream(replies=[b"", reply])
    return MindWave(
        stream=stream,
        headset_id=headset_id,
        settle_interval=0,
        search_interval=0,
        stop_timeout=2.0,
        max_idle_reads=100,
    )


class TestMindWaveInit(unittest.TestCase):
    """Tests for driver construction."""

    def test_defaults(self):
        headset = make_headset(b"")
        self.assertFalse(headset.is_connected())
        self.assertEqual(headset.state, ConnectionState.DISCONNECTED)
        self.assertIsNone(headset.headset_id)
        self.assertEqual(headset.global_headset_id, "0000")
        self.assertEqual(headset.snapshot().attention, 0)

    def test_hex_headset_id(self):
        headset = make_headset(b"", headset_id="F64F")
        self.assertEqual(headset.headset_id, HeadsetId(0xF6, 0x4F))
        self.assertEqual(headset.global_headset_id, "F64F")

    @patch('mindwave.dongle.manager.SerialStream')
    def test_serial_stream_created(self, mock_stream_class):
        """Without a stream, a SerialStream is built from port settings."""
        MindWave(port="/dev/ttyUSB0")
        mock_stream_class.assert_called_once_with(port="/dev/ttyUSB0", baudrate=115200, timeout=0.01)


class TestMindWaveConnect(unittest.TestCase):
    """Tests for connect()."""

    def setUp(self):
        self.headset = None

    def tearDown(self):
        if self.headset is not None:
            self.headset.disconnect()

    def test_autoconnect_learns_id(self):
        self.headset = make_headset(CONNECTED_F64F)
        self.headset.connect()

        self.assertTrue(self.headset.is_connected())
        self.assertEqual(self.headset.state, ConnectionState.CONNECTED)
        self.assertEqual(self.headset.global_headset_id, "F64F")
        self.assertEqual(self.headset._stream.written, [b"\xc1", b"\xc2"])

    def test_pair_by_id(self):
        self.headset = make_headset(CONNECTED_F64F, headset_id=HeadsetId(0xF6, 0x4F))
        self.headset.connect()
        self.assertEqual(self.headset._stream.written[1], b"\xc0\xf6\x4f")

    def test_standby_keeps_configured_id(self):
        """Searching then idle connects without changing the id."""
        reply = frame(0xD4, 0x01, 0x01) + frame(0xD4, 0x01, 0x00)
        self.headset = make_headset(reply, headset_id="1234")
        self.headset.connect()

        self.assertTrue(self.headset.is_connected())
        self.assertEqual(self.headset.global_headset_id, "1234")

    def test_connect_when_connected_is_noop(self):
        self.headset = make_headset(CONNECTED_F64F)
        self.headset.connect()
        written = list(self.headset._stream.written)

        self.headset.connect()

        self.assertEqual(self.headset._stream.written, written)
        self.assertEqual(self.headset._stream.open_count, 1)

    def test_no_headset_available(self):
        self.headset = make_headset(frame(0xD1, 0x00))
        with self.assertRaises(NoHeadsetAvailableError):
            self.headset.connect()
        self.assertFalse(self.headset.is_connected())
        self.assertFalse(self.headset._stream.is_open)

    def test_headset_not_found(self):
        self.headset = make_headset(frame(0xD1, 0x01), headset_id="F64F")
        with self.assertRaises(HeadsetNotFoundError):
            self.headset.connect()
        self.assertEqual(self.headset.state, ConnectionState.DISCONNECTED)

    def test_request_denied(self):
        self.headset = make_headset(frame(0xD3))
        with self.assertRaises(RequestDeniedError):
            self.headset.connect()
        self.assertFalse(self.headset._stream.is_open)

    def test_open_failure(self):
        self.headset = make_headset(CONNECTED_F64F)
        self.headset._stream.fail_open = True
        with self.assertRaises(StreamError):
            self.headset.connect()
        self.assertEqual(self.headset.state, ConnectionState.DISCONNECTED)

    def test_connect_while_handshaking_refused(self):
        self.headset = make_headset(CONNECTED_F64F)
        self.headset._state = ConnectionState.HANDSHAKING
        with self.assertRaises(ConnectionBusyError):
            self.headset.connect()
        self.headset._state = ConnectionState.DISCONNECTED

    def test_concurrent_connects_handshake_once(self):
        """Only one of two racing connect() calls runs the handshake."""
        self.headset = make_headset(CONNECTED_F64F)
        errors = []

        def attempt():
            try:
                self.headset.connect()
            except ConnectionBusyError as e:
                errors.append(e)

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        self.assertTrue(self.headset.is_connected())
        self.assertEqual(self.headset._stream.open_count, 1)
        self.assertLessEqual(len(errors), 1)

    def test_disconnect_on_silent_link(self):
        """With default limits, tear-down waits for the poll thread to leave read()."""
        stream = ScriptedStream(replies=[b"", CONNECTED_F64F], idle_delay=0.01)
        headset = MindWave(stream=stream, settle_interval=0, search_interval=0)
        headset.connect()
        time.sleep(0.1)

        started = time.monotonic()
        headset.disconnect()
        elapsed = time.monotonic() - started

        self.assertLess(elapsed, 1.0)
        self.assertFalse(headset._poller.is_running)
        self.assertEqual(stream.overlapping, [])
        self.assertEqual(stream.written[-1], b"\xc1")
        self.assertFalse(stream.is_open)

    def test_context_manager(self):
        headset = make_headset(CONNECTED_F64F)
        with headset as h:
            self.assertTrue(h.is_connected())
        self.assertFalse(headset.is_connected())


class TestMindWaveStreaming(unittest.TestCase):
    """Tests for decoding while connected and for disconnect()."""

    def setUp(self):
        self.headset = make_headset(CONNECTED_F64F)
        self.headset.connect()
        self.stream = self.headset._stream

    def tearDown(self):
        self.headset.disconnect()

    def test_snapshot_tracks_frames(self):
        self.stream.feed(frame(0x04, 60) + frame(0x80, 0x02, 0xFF, 0xFF))
        self.assertTrue(wait_for(lambda: self.headset.snapshot().raw_wave == -1))
        self.assertEqual(self.headset.snapshot().attention, 60)

    def test_disconnect_stops_and_keeps_values(self):
        self.stream.feed(frame(0x04, 60))
        self.assertTrue(wait_for(lambda: self.headset.snapshot().attention == 60))

        self.headset.disconnect()

        self.assertFalse(self.headset.is_connected())
        self.assertFalse(self.headset._poller.is_running)
        self.assertFalse(self.stream.is_open)
        self.assertEqual(self.stream.written[-1], b"\xc1")
        self.assertEqual(self.headset.snapshot().attention, 60)

    def test_disconnect_twice(self):
        self.headset.disconnect()
        self.headset.disconnect()
        self.assertEqual(self.stream.close_count, 1)

    def test_link_loss_disconnects(self):
        """A mid-stream 0xD2 flips the driver to disconnected."""
        self.stream.feed(frame(0x04, 25) + frame(0xD2, 0x02, 0xF6, 0x4F))

        self.assertTrue(wait_for(lambda: self.headset.state is ConnectionState.DISCONNECTED))
        self.assertFalse(self.stream.is_open)
        self.assertEqual(self.headset.snapshot().attention, 25)

        kinds = [e.kind for e in self.headset.drain_events()]
        self.assertIn(PollEventKind.HEADSET_DISCONNECTED, kinds)

    def test_reconnect_after_link_loss(self):
        self.stream.feed(frame(0xD2, 0x00))
        self.assertTrue(wait_for(lambda: not self.headset._poller.is_running))

        self.stream._replies = [b"", CONNECTED_F64F]
        self.headset.connect()
        self.assertTrue(self.headset.is_connected())

        self.stream.feed(frame(0x05, 9))
        self.assertTrue(wait_for(lambda: self.headset.snapshot().meditation == 9))

    def test_record_subscription(self):
        received = []
        self.headset.subscribe_records(received.append)
        self.stream.feed(frame(0x55, 0x02, 0x01))
        self.assertTrue(wait_for(lambda: len(received) == 1))
        self.assertEqual(received[0].extended_level, 1)

    def test_stats(self):
        self.stream.feed(frame(0x04, 1) + frame(0x04, 2))
        self.assertTrue(wait_for(lambda: self.headset.stats.frames == 2))


if __name__ == '__main__':
    unittest.main()
