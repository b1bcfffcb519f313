"""MindWave driver - ThinkGear protocol over the NeuroSky RF dongle."""

from .models import (
    HeadsetId,
    ConnectionState,
    SensorState,
    Record,
    PollEvent,
    PollEventKind,
    PollStats,
)
from .errors import (
    MindWaveError,
    StreamError,
    StreamTimeoutError,
    ReadCancelledError,
    ChecksumError,
    ZeroLengthError,
    MalformedPayloadError,
    DisconnectedError,
    ConnectError,
    HeadsetNotFoundError,
    NoHeadsetAvailableError,
    HeadsetDisconnectedError,
    RequestDeniedError,
    UnexpectedReplyError,
    ConnectionBusyError,
)
from .transport import ByteStream, SerialStream
from .dongle import MindWave

__all__ = [
    "MindWave",
    "HeadsetId",
    "ConnectionState",
    "SensorState",
    "Record",
    "PollEvent",
    "PollEventKind",
    "PollStats",
    "ByteStream",
    "SerialStream",
    "MindWaveError",
    "StreamError",
    "StreamTimeoutError",
    "ReadCancelledError",
    "ChecksumError",
    "ZeroLengthError",
    "MalformedPayloadError",
    "DisconnectedError",
    "ConnectError",
    "HeadsetNotFoundError",
    "NoHeadsetAvailableError",
    "HeadsetDisconnectedError",
    "RequestDeniedError",
    "UnexpectedReplyError",
    "ConnectionBusyError",
]
