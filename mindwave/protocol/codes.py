"""ThinkGear wire constants.

Frame layout::

    +------+------+--------+-------------------+----------+
    | 0xAA | 0xAA | Length |  Payload (Length) | Checksum |
    +------+------+--------+-------------------+----------+

Each payload is a run of records::

    [0x55 ...] Code [Length if Code >= 0x80] Data...
"""
from enum import IntEnum

SYNC = 0xAA
EXCODE = 0x55
MAX_PAYLOAD_LENGTH = SYNC - 1  # length byte must be below SYNC
MULTI_BYTE_CODE = 0x80  # codes at or above carry an explicit length byte

# Host -> dongle
CMD_PAIR = 0xC0
CMD_RESET = 0xC1
CMD_AUTOCONNECT = 0xC2

# Dongle -> host (first payload byte)
REPLY_HEADSET_CONNECTED = 0xD0
REPLY_HEADSET_NOT_FOUND = 0xD1
REPLY_HEADSET_DISCONNECTED = 0xD2
REPLY_REQUEST_DENIED = 0xD3
REPLY_STANDBY = 0xD4


class DataCode(IntEnum):
    """Extension-level-0 record codes sent by the headset."""
    POOR_SIGNAL = 0x02
    HEART_RATE = 0x03
    ATTENTION = 0x04
    MEDITATION = 0x05
    RAW_WAVE_8BIT = 0x06
    RAW_MARKER = 0x07
    BLINK_STRENGTH = 0x16
    RAW_WAVE = 0x80
    EEG_POWER = 0x81
    ASIC_EEG_POWER = 0x83
    RR_INTERVAL = 0x86
