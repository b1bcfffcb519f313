"""Byte stream layer between the protocol engine and the dongle."""

from .base import ByteStream
from .dongle_finder import DongleInfo, find_dongles, find_single_dongle, is_matching_dongle
from .serial import SerialStream

__all__ = [
    "ByteStream",
    "SerialStream",
    "DongleInfo",
    "find_dongles",
    "find_single_dongle",
    "is_matching_dongle",
]
