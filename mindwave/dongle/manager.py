"""MindWave driver facade.

Ties the stream, handshake, poller and sensor store together behind the
connect / snapshot / disconnect interface callers use.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Union

from ..errors import ConnectionBusyError, StreamError
from ..models import (
    ConnectionState,
    HeadsetId,
    PollEvent,
    PollEventKind,
    PollStats,
    Record,
    ResetCommand,
    SensorState,
)
from ..protocol.framer import MAX_IDLE_READS
from ..protocol.serializer import CommandSerializer
from ..protocol.state_builder import SensorStateStore
from ..transport.base import ByteStream
from ..transport.serial import CONNECTION_BAUD, READ_TIMEOUT, SerialStream
from .handshake import SEARCH_INTERVAL, SETTLE_INTERVAL, Handshake
from .poller import MAX_EVENTS, Poller

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 2.0  # seconds to wait for the poll thread


class MindWave:
    """High-level interface to one headset through the RF dongle.

    This class acts as a facade, managing:
    1. The byte stream (SerialStream unless one is injected)
    2. The pairing handshake (Handshake)
    3. Background decoding (Poller) into a shared SensorStateStore

    State transitions are guarded by one lock, so concurrent connect() and
    disconnect() calls cannot both act on the stream.

    Example:
        >>> headset = MindWave(port="/dev/ttyUSB0", headset_id="F64F")
        >>> headset.connect()
        >>> headset.snapshot().attention
        42
        >>> headset.disconnect()
    """

    def __init__(self,
                 port: Optional[str] = None,
                 headset_id: Optional[Union[HeadsetId, str]] = None,
                 stream: Optional[ByteStream] = None,
                 baudrate: int = CONNECTION_BAUD,
                 timeout: float = READ_TIMEOUT,
                 settle_interval: float = SETTLE_INTERVAL,
                 search_interval: float = SEARCH_INTERVAL,
                 stop_timeout: float = STOP_TIMEOUT,
                 max_idle_reads: int = MAX_IDLE_READS,
                 max_events: int = MAX_EVENTS):
        """Initialize driver.

        Args:
            port: Serial port path, or None to auto-detect (ignored if stream is given)
            headset_id: Global Headset ID to pair with, or None to autoconnect
            stream: Existing ByteStream instance, or None to create a SerialStream
            baudrate: Serial baud rate for a new SerialStream
            timeout: Read timeout in seconds for a new SerialStream
            settle_interval: Pause after each reset command
            search_interval: Pause between "still searching" replies
            stop_timeout: Bound on waiting for the poll thread in disconnect()
            max_idle_reads: Idle read attempts tolerated per framer read
            max_events: Capacity of the poll event queue
        """
        if isinstance(headset_id, str):
            headset_id = HeadsetId.from_hex(headset_id)
        self._headset_id = headset_id

        self._stream = stream or SerialStream(port=port, baudrate=baudrate, timeout=timeout)
        self._settle_interval = settle_interval
        self._search_interval = search_interval
        self._stop_timeout = stop_timeout
        self._max_idle_reads = max_idle_reads

        self._store = SensorStateStore()
        self._poller = Poller(
            self._stream,
            self._store,
            on_link_lost=self._on_link_lost,
            max_events=max_events,
            max_idle_reads=max_idle_reads,
        )

        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()

    def connect(self) -> None:
        """Open the stream, pair with the headset and start polling.

        Does nothing if already connected.

        Raises:
            ConnectionBusyError: A handshake or disconnect is in progress
            ConnectError: The dongle refused or could not find the headset
            StreamError: The stream could not be opened or failed
        """
        with self._state_lock:
            if self._state is ConnectionState.CONNECTED:
                logger.info("Already connected")
                return
            if self._state is not ConnectionState.DISCONNECTED or self._poller.is_running:
                raise ConnectionBusyError(f"Cannot connect while {self._state.value}")
            self._state = ConnectionState.HANDSHAKING

        try:
            self._stream.open()
            handshake = Handshake(
                self._stream,
                settle_interval=self._settle_interval,
                search_interval=self._search_interval,
                max_idle_reads=self._max_idle_reads,
            )
            resolved = handshake.run(self._headset_id)
        except Exception:
            self._stream.close()
            with self._state_lock:
                self._state = ConnectionState.DISCONNECTED
            raise

        with self._state_lock:
            if resolved is not None:
                self._headset_id = resolved
            self._state = ConnectionState.CONNECTED
            self._poller.start()

        logger.info(f"Connected to headset {self.global_headset_id}")

    def disconnect(self) -> None:
        """Stop polling, reset the dongle and close the stream.

        Safe to call when not connected. Snapshot values are kept.

        Raises:
            StreamError: The reset command could not be sent; the stream is
                closed and the driver disconnected regardless
        """
        with self._state_lock:
            if self._state is not ConnectionState.CONNECTED:
                return
            self._state = ConnectionState.DISCONNECTING

        try:
            self._poller.stop(timeout=self._stop_timeout)
            self._reset_and_close()
        finally:
            with self._state_lock:
                self._state = ConnectionState.DISCONNECTED
            logger.info("Disconnected")

    def is_connected(self) -> bool:
        """Check if a headset link is live."""
        with self._state_lock:
            return self._state is ConnectionState.CONNECTED

    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def headset_id(self) -> Optional[HeadsetId]:
        """Configured or learned headset id, None if neither."""
        return self._headset_id

    @property
    def global_headset_id(self) -> str:
        """Headset id as four hex digits, '0000' if unknown."""
        return str(self._headset_id or HeadsetId())

    def snapshot(self) -> SensorState:
        """Latest sensor values, consistent as of one decoded frame."""
        return self._store.snapshot()

    @property
    def stats(self) -> PollStats:
        return self._poller.stats

    def drain_events(self) -> List[PollEvent]:
        """Remove and return the poll loop's queued events, oldest first."""
        return self._poller.drain_events()

    def subscribe_records(self, callback: Callable[[Record], None]) -> Callable[[], None]:
        """Subscribe to records the decoder did not interpret.

        Useful for extended or vendor codes. Callbacks run on the poll thread.

        Returns:
            Unsubscribe function
        """
        return self._poller.subscribe_records(callback)

    def subscribe_state(self, callback: Callable[[SensorState], None]) -> Callable[[], None]:
        """Subscribe to a snapshot after every decoded frame.

        Callbacks run on the poll thread and should be non-blocking.

        Returns:
            Unsubscribe function
        """
        return self._poller.subscribe_state(callback)

    def __enter__(self) -> MindWave:
        """Context manager support - connect on enter."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - disconnect on exit."""
        self.disconnect()

    # Internal methods

    def _reset_and_close(self) -> None:
        """Send reset, flush and close. Always closes the stream."""
        try:
            self._stream.write(CommandSerializer.serialize_command(ResetCommand()))
            time.sleep(self._settle_interval)
            self._stream.flush()
        finally:
            self._stream.close()

    def _on_link_lost(self, poller: Poller) -> None:
        """Called on the poll thread after the dongle reports a disconnect."""
        with self._state_lock:
            if self._state is not ConnectionState.CONNECTED:
                return
            self._state = ConnectionState.DISCONNECTING

        try:
            self._reset_and_close()
        except StreamError as e:
            logger.error(f"Error closing stream after link loss: {e}")
            poller.post(PollEventKind.STREAM_ERROR, e)
        finally:
            with self._state_lock:
                self._state = ConnectionState.DISCONNECTED
            logger.info("Headset link lost")
