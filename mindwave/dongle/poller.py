"""Background poll loop that keeps the sensor store fresh.

The poller owns the stream once the handshake succeeds. Each iteration reads
one frame and decodes it into the store. Recoverable problems are counted and
queued as events instead of escaping the thread.

Shutdown is cooperative: the stop flag is checked between frames and on every
idle read, so stop() waits at most one stream read timeout while the link is
silent.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import replace
from typing import Callable, List, Optional

from ..errors import (
    ChecksumError,
    DisconnectedError,
    MalformedPayloadError,
    ReadCancelledError,
    StreamError,
    ZeroLengthError,
)
from ..models import PollEvent, PollEventKind, PollStats, Record, SensorState
from ..protocol.framer import MAX_IDLE_READS, read_frame
from ..protocol.parser import PayloadParser
from ..protocol.state_builder import SensorStateStore
from ..transport.base import ByteStream

logger = logging.getLogger(__name__)

MAX_EVENTS = 256
ERROR_BACKOFF = 0.1  # seconds after a stream error
STREAM_ERROR_WARN_THRESHOLD = 10


class Poller:
    """Reads and decodes frames on a daemon thread until stopped.

    Callers observe it three ways:
    - the SensorStateStore it writes to
    - drain_events() for errors and link loss
    - subscribe_records() / subscribe_state() callbacks, invoked on the
      poll thread; they should be non-blocking
    """

    def __init__(self,
                 stream: ByteStream,
                 store: SensorStateStore,
                 on_link_lost: Optional[Callable[[Poller], None]] = None,
                 max_events: int = MAX_EVENTS,
                 error_backoff: float = ERROR_BACKOFF,
                 max_idle_reads: int = MAX_IDLE_READS):
        """Initialize poller.

        Args:
            stream: Open stream, already past the handshake
            store: Store to decode into
            on_link_lost: Called on the poll thread when the dongle reports
                the headset disconnected; the loop has already stopped
            max_events: Capacity of the event queue, oldest dropped when full
            error_backoff: Pause after a stream error
            max_idle_reads: Idle read attempts tolerated per framer read
        """
        self._stream = stream
        self._store = store
        self._on_link_lost = on_link_lost
        self._error_backoff = error_backoff
        self._max_idle_reads = max_idle_reads

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._events: queue.Queue[PollEvent] = queue.Queue(maxsize=max_events)

        self._stats = PollStats()
        self._stats_lock = threading.Lock()

        self._record_callbacks: List[Callable[[Record], None]] = []
        self._state_callbacks: List[Callable[[SensorState], None]] = []
        self._callback_lock = threading.Lock()

    def start(self) -> None:
        """Start the poll thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="MindWavePoller"
        )
        self._thread.start()
        logger.debug("Poller started")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the loop to stop and wait up to `timeout` seconds.

        Returns:
            True if the thread has exited
        """
        self._stop.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning(f"Poller did not stop within {timeout}s")
            return False
        logger.debug("Poller stopped")
        return True

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stats(self) -> PollStats:
        with self._stats_lock:
            return self._stats

    def drain_events(self) -> List[PollEvent]:
        """Remove and return every queued event, oldest first."""
        events = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def subscribe_records(self, callback: Callable[[Record], None]) -> Callable[[], None]:
        """Subscribe to records the decoder did not interpret.

        Returns:
            Unsubscribe function
        """
        return self._subscribe(self._record_callbacks, callback)

    def subscribe_state(self, callback: Callable[[SensorState], None]) -> Callable[[], None]:
        """Subscribe to a fresh snapshot after every decoded frame.

        Returns:
            Unsubscribe function
        """
        return self._subscribe(self._state_callbacks, callback)

    def poll_once(self) -> None:
        """Read and decode one frame. Runs on the poll thread."""
        try:
            payload = read_frame(self._stream, self._max_idle_reads, cancel=self._stop)
        except ChecksumError as e:
            logger.debug(f"Checksum error: {e}")
            self._count(checksum_errors=1)
            return
        except ZeroLengthError:
            self._count(zero_length_frames=1)
            return
        except ReadCancelledError:
            logger.debug("Read cancelled by stop request")
            return
        except StreamError as e:
            self._on_stream_error(e)
            return

        try:
            unhandled = PayloadParser.decode(payload, self._store)
        except MalformedPayloadError as e:
            logger.warning(f"Malformed payload: {e}")
            self._count(malformed_payloads=1)
            self.post(PollEventKind.MALFORMED_PAYLOAD, e)
            return
        except DisconnectedError as e:
            logger.warning("Dongle reports the headset disconnected; stopping poller")
            self.post(PollEventKind.HEADSET_DISCONNECTED, e)
            self._stop.set()
            if self._on_link_lost is not None:
                self._on_link_lost(self)
            return

        with self._stats_lock:
            self._stats = replace(self._stats, frames=self._stats.frames + 1,
                                  consecutive_stream_errors=0)

        for record in unhandled:
            self._notify(self._record_callbacks, record)
        if self._state_callbacks:
            self._notify(self._state_callbacks, self._store.snapshot())

    # Internal methods

    def _poll_loop(self) -> None:
        logger.debug("Poll thread started")
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.exception(f"Unexpected error in poll loop: {e}")
                self._stop.wait(self._error_backoff)
        logger.debug("Poll thread exiting")

    def _on_stream_error(self, error: StreamError) -> None:
        with self._stats_lock:
            self._stats = replace(
                self._stats,
                stream_errors=self._stats.stream_errors + 1,
                consecutive_stream_errors=self._stats.consecutive_stream_errors + 1,
            )
            consecutive = self._stats.consecutive_stream_errors

        if self._stop.is_set():
            return

        if consecutive == STREAM_ERROR_WARN_THRESHOLD:
            logger.error(f"{consecutive} consecutive stream errors, last: {error}")
        else:
            logger.warning(f"Stream error: {error}")
        self.post(PollEventKind.STREAM_ERROR, error)
        self._stop.wait(self._error_backoff)

    def _count(self, **deltas) -> None:
        with self._stats_lock:
            self._stats = replace(
                self._stats,
                **{name: getattr(self._stats, name) + n for name, n in deltas.items()}
            )

    def post(self, kind: PollEventKind, error: Optional[Exception] = None) -> None:
        """Queue an event, dropping the oldest if the queue is full."""
        event = PollEvent(kind=kind, timestamp=time.time(), error=error)
        try:
            self._events.put_nowait(event)
        except queue.Full:
            try:
                self._events.get_nowait()
                self._events.put_nowait(event)
                logger.debug("Event queue full, dropped oldest event")
            except (queue.Empty, queue.Full):
                pass

    def _subscribe(self, callbacks: list, callback) -> Callable[[], None]:
        with self._callback_lock:
            callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def _notify(self, callbacks: list, value) -> None:
        with self._callback_lock:
            targets = list(callbacks)

        for callback in targets:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Error in subscriber callback: {e}")
