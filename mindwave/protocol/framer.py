"""Packet framer: pulls checksum-verified payloads out of a byte stream.

The stream may start mid-frame, so the framer hunts for two sync bytes,
then reads the length, payload and checksum. Extra sync bytes in the length
position are skipped; a length at or above the sync value restarts the hunt.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from ..errors import ChecksumError, ReadCancelledError, StreamTimeoutError, ZeroLengthError
from ..transport.base import ByteStream
from .codes import MAX_PAYLOAD_LENGTH, SYNC

logger = logging.getLogger(__name__)

MAX_IDLE_READS = 500


def checksum(payload: bytes) -> int:
    """One's complement of the low byte of the payload sum."""
    return (~(sum(payload) & 0xFF)) & 0xFF


def encode_frame(payload: bytes) -> bytes:
    """Build the wire bytes for one frame.

    Args:
        payload: Payload bytes, 1 to MAX_PAYLOAD_LENGTH long

    Returns:
        SYNC SYNC LENGTH PAYLOAD CHECKSUM
    """
    if not 0 < len(payload) <= MAX_PAYLOAD_LENGTH:
        raise ValueError(
            f"Payload length must be 1-{MAX_PAYLOAD_LENGTH}, got {len(payload)}"
        )
    return bytes([SYNC, SYNC, len(payload)]) + payload + bytes([checksum(payload)])


def read_exact(stream: ByteStream,
               size: int,
               max_idle_reads: int = MAX_IDLE_READS,
               cancel: Optional[threading.Event] = None) -> bytes:
    """Read exactly `size` bytes, tolerating short reads.

    Each read that returns nothing counts as an idle attempt. The counter
    resets whenever data arrives. If `cancel` is set, the next idle read
    gives up instead of waiting for more data.

    Raises:
        ReadCancelledError: `cancel` was set while waiting
        StreamTimeoutError: After `max_idle_reads` consecutive idle attempts
        StreamError: If the stream itself fails
    """
    buf = bytearray()
    idle = 0
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            if cancel is not None and cancel.is_set():
                raise ReadCancelledError(f"Read cancelled ({len(buf)}/{size} bytes received)")
            idle += 1
            if idle >= max_idle_reads:
                raise StreamTimeoutError(
                    f"No data after {max_idle_reads} read attempts "
                    f"({len(buf)}/{size} bytes received)"
                )
            continue
        idle = 0
        buf.extend(chunk)
    return bytes(buf)


def read_frame(stream: ByteStream,
               max_idle_reads: int = MAX_IDLE_READS,
               cancel: Optional[threading.Event] = None) -> bytes:
    """Read one frame and return its payload.

    Args:
        stream: Open byte stream positioned anywhere in the data
        max_idle_reads: Idle read attempts tolerated per read before giving up
        cancel: Event that abandons the read at the next idle attempt

    Returns:
        The payload bytes of a frame whose checksum matched

    Raises:
        ZeroLengthError: Header announced an empty payload
        ChecksumError: Checksum byte did not match the payload
        StreamError: Stream failure, too many idle reads or cancellation
    """
    def next_byte() -> int:
        return read_exact(stream, 1, max_idle_reads, cancel)[0]

    length = None
    while length is None:
        if next_byte() != SYNC:
            continue
        if next_byte() != SYNC:
            continue
        while True:
            candidate = next_byte()
            if candidate == SYNC:
                continue
            if candidate < SYNC:
                length = candidate
            break

    if length == 0:
        raise ZeroLengthError("Frame header announced a zero-length payload")

    payload = read_exact(stream, length, max_idle_reads, cancel)
    received = next_byte()
    expected = checksum(payload)
    if received != expected:
        logger.debug(f"Dropping frame with bad checksum: {payload.hex(' ')}")
        raise ChecksumError(expected, received)

    return payload
