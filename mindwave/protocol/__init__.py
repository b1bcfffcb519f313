"""ThinkGear protocol layer: framing, payload decoding and commands."""

from .codes import DataCode
from .framer import checksum, encode_frame, read_exact, read_frame
from .parser import PayloadParser
from .serializer import CommandSerializer
from .state_builder import SensorStateStore

__all__ = [
    "DataCode",
    "checksum",
    "encode_frame",
    "read_exact",
    "read_frame",
    "PayloadParser",
    "CommandSerializer",
    "SensorStateStore",
]
