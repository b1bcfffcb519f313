"""Immutable data models for headset state, identity and dongle commands.

Snapshots, records and commands are frozen dataclasses so they can be handed
across threads without copying.
"""
from __future__ import annotations

import string
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Band power fields in wire order (code 0x83)
BAND_NAMES = (
    "delta",
    "theta",
    "low_alpha",
    "high_alpha",
    "low_beta",
    "high_beta",
    "low_gamma",
    "mid_gamma",
)

DEFAULT_STALENESS_THRESHOLD = 2.0  # seconds


@dataclass(frozen=True)
class HeadsetId:
    """Global Headset ID (GHID) printed near the headset battery.

    Attributes:
        high: High byte of the id
        low: Low byte of the id
    """
    high: int = 0
    low: int = 0

    def __post_init__(self):
        for value in (self.high, self.low):
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Headset id bytes must be 0-255, got {value}")

    @property
    def is_set(self) -> bool:
        """An all-zero id means "no id" and selects autoconnect."""
        return self.high != 0 or self.low != 0

    @classmethod
    def from_hex(cls, text: str) -> HeadsetId:
        """Parse a four hex digit id such as 'F64F'."""
        text = text.strip()
        if len(text) != 4 or not all(c in string.hexdigits for c in text):
            raise ValueError(f"Headset id must be 4 hex digits, got {text!r}")
        value = int(text, 16)
        return cls(high=value >> 8, low=value & 0xFF)

    def __str__(self) -> str:
        return f"{self.high:02X}{self.low:02X}"


class ConnectionState(Enum):
    """Lifecycle of a driver instance."""
    DISCONNECTED = "disconnected"
    HANDSHAKING = "handshaking"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


@dataclass(frozen=True)
class SensorState:
    """Complete immutable snapshot of the latest decoded headset values.

    A frame does not need to carry every code, so fields hold the most recent
    value seen for each, possibly from different frames.

    Attributes:
        poor_signal_quality: 0 is best, 200 means no skin contact
        attention: eSense attention 0-100, 0 when unreliable
        meditation: eSense meditation 0-100, 0 when unreliable
        blink_strength: Strength of the last blink, 1-255
        raw_wave: Signed 16-bit raw EEG sample
        delta..mid_gamma: Unsigned 24-bit ASIC band powers
        heart_rate: Heart rate, 0-255
        raw_wave_8bit: 8-bit raw EEG sample
        rr_interval: R-R interval in milliseconds
        updated_at: Unix timestamp of the last applied frame, 0.0 if none
    """
    poor_signal_quality: int = 0
    attention: int = 0
    meditation: int = 0
    blink_strength: int = 0
    raw_wave: int = 0
    delta: int = 0
    theta: int = 0
    low_alpha: int = 0
    high_alpha: int = 0
    low_beta: int = 0
    high_beta: int = 0
    low_gamma: int = 0
    mid_gamma: int = 0
    heart_rate: int = 0
    raw_wave_8bit: int = 0
    rr_interval: int = 0
    updated_at: float = 0.0

    def is_stale(self, threshold: float = DEFAULT_STALENESS_THRESHOLD) -> bool:
        """True if no frame was applied within the last `threshold` seconds."""
        return (time.time() - self.updated_at) > threshold


@dataclass(frozen=True)
class Record:
    """A payload record the decoder did not interpret.

    Attributes:
        code: Record code byte
        data: Raw data bytes of the record
        extended_level: Number of 0x55 bytes preceding the code
    """
    code: int
    data: bytes
    extended_level: int = 0

    def __repr__(self) -> str:
        return (
            f"Record(code=0x{self.code:02X}, extended_level={self.extended_level}, "
            f"data={self.data.hex(' ') if self.data else '(empty)'})"
        )


class PollEventKind(Enum):
    """Kind of problem observed by the poll loop."""
    STREAM_ERROR = "stream_error"
    MALFORMED_PAYLOAD = "malformed_payload"
    HEADSET_DISCONNECTED = "headset_disconnected"


@dataclass(frozen=True)
class PollEvent:
    """Something the poll loop wants the caller to know about.

    Attributes:
        kind: Event kind
        timestamp: Unix timestamp when the event was raised
        error: The exception behind the event, if any
    """
    kind: PollEventKind
    timestamp: float
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PollStats:
    """Counters kept by the poll loop over the life of the driver."""
    frames: int = 0
    checksum_errors: int = 0
    zero_length_frames: int = 0
    stream_errors: int = 0
    malformed_payloads: int = 0
    consecutive_stream_errors: int = 0


# Command types

@dataclass(frozen=True)
class ResetCommand:
    """Drop any headset link and return the dongle to standby."""
    pass


@dataclass(frozen=True)
class PairCommand:
    """Connect to one specific headset.

    Attributes:
        headset_id: Global Headset ID to pair with
    """
    headset_id: HeadsetId


@dataclass(frozen=True)
class AutoConnectCommand:
    """Connect to whichever headset the dongle finds first."""
    pass


# Union type for all commands
Command = Union[
    ResetCommand,
    PairCommand,
    AutoConnectCommand,
]
