"""Payload parser for ThinkGear frames.

Splits a verified payload into records and hands them to a SensorStateStore.
Parsing is pure; only `decode` touches shared state.
"""
from __future__ import annotations

import logging
from typing import List, TYPE_CHECKING

from ..errors import DisconnectedError, MalformedPayloadError
from ..models import Record
from .codes import EXCODE, MULTI_BYTE_CODE, REPLY_HEADSET_DISCONNECTED, REPLY_STANDBY

if TYPE_CHECKING:
    from .state_builder import SensorStateStore

logger = logging.getLogger(__name__)


class PayloadParser:
    """Parser for the tagged record format inside a frame payload.

    Two payload shapes are dongle status rather than records:
    - 0xD2 ...: headset disconnected
    - 0xD4 ...: standby keep-alive, carries no sensor data
    """

    @staticmethod
    def parse(payload: bytes) -> List[Record]:
        """Split a payload into records.

        Args:
            payload: Checksum-verified payload bytes

        Returns:
            Records in payload order; empty for a standby keep-alive

        Raises:
            DisconnectedError: Payload is a headset-disconnected notice
            MalformedPayloadError: A record runs past the end of the payload

        Examples:
            >>> PayloadParser.parse(bytes([0x04, 60]))
            [Record(code=0x04, extended_level=0, data=3c)]
        """
        if not payload:
            raise MalformedPayloadError("Empty payload")

        if payload[0] == REPLY_HEADSET_DISCONNECTED:
            raise DisconnectedError("Dongle reports the headset disconnected")
        if payload[0] == REPLY_STANDBY:
            return []

        records = []
        pos = 0
        end = len(payload)
        while pos < end:
            level = 0
            while pos < end and payload[pos] == EXCODE:
                level += 1
                pos += 1
            if pos >= end:
                raise MalformedPayloadError(
                    f"Payload ends after {level} extended code bytes: {payload.hex(' ')}"
                )

            code = payload[pos]
            pos += 1
            if code >= MULTI_BYTE_CODE:
                if pos >= end:
                    raise MalformedPayloadError(
                        f"Missing length byte for code 0x{code:02X}: {payload.hex(' ')}"
                    )
                length = payload[pos]
                pos += 1
            else:
                length = 1

            if pos + length > end:
                raise MalformedPayloadError(
                    f"Code 0x{code:02X} wants {length} bytes, "
                    f"{end - pos} left: {payload.hex(' ')}"
                )
            records.append(Record(code=code, data=bytes(payload[pos:pos + length]), extended_level=level))
            pos += length

        return records

    @staticmethod
    def decode(payload: bytes, store: SensorStateStore) -> List[Record]:
        """Parse a payload and apply it to `store` as one update.

        Nothing is applied if the payload is malformed.

        Returns:
            Records the store did not interpret
        """
        records = PayloadParser.parse(payload)
        if not records:
            return []
        unhandled = store.apply(records)
        for record in unhandled:
            logger.debug(f"Unrecognized record: {record!r}")
        return unhandled
