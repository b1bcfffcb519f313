"""Pairing handshake with the RF dongle.

Sequence:
1. Reset the dongle, let it settle, drop whatever it sent meanwhile.
2. Ask it to pair with a known headset id, or to autoconnect.
3. Read replies until the dongle reports a definite outcome.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from ..errors import (
    FrameError,
    HeadsetDisconnectedError,
    HeadsetNotFoundError,
    NoHeadsetAvailableError,
    RequestDeniedError,
    UnexpectedReplyError,
)
from ..models import AutoConnectCommand, HeadsetId, PairCommand, ResetCommand
from ..protocol.codes import (
    REPLY_HEADSET_CONNECTED,
    REPLY_HEADSET_DISCONNECTED,
    REPLY_HEADSET_NOT_FOUND,
    REPLY_REQUEST_DENIED,
    REPLY_STANDBY,
)
from ..protocol.framer import MAX_IDLE_READS, read_frame
from ..protocol.serializer import CommandSerializer
from ..transport.base import ByteStream

logger = logging.getLogger(__name__)

SETTLE_INTERVAL = 1.0  # seconds after reset
SEARCH_INTERVAL = 1.0  # seconds between "still searching" replies


class Handshake:
    """Drives one pairing attempt over an open stream.

    The handshake owns the stream while it runs. It does not close it;
    that is up to the caller.
    """

    def __init__(self,
                 stream: ByteStream,
                 settle_interval: float = SETTLE_INTERVAL,
                 search_interval: float = SEARCH_INTERVAL,
                 max_idle_reads: int = MAX_IDLE_READS):
        """Initialize handshake.

        Args:
            stream: Open stream to the dongle
            settle_interval: Pause after the reset command
            search_interval: Pause after each "still searching" reply
            max_idle_reads: Idle read attempts tolerated per framer read
        """
        self._stream = stream
        self._settle_interval = settle_interval
        self._search_interval = search_interval
        self._max_idle_reads = max_idle_reads

    def run(self, headset_id: Optional[HeadsetId] = None) -> Optional[HeadsetId]:
        """Pair with `headset_id`, or autoconnect if it is None or unset.

        Returns:
            The id reported by the dongle on connect, or None if the dongle
            went idle without naming one

        Raises:
            ConnectError: The dongle gave a terminal negative answer
            StreamError: The stream failed or went silent
        """
        self._send(ResetCommand())
        time.sleep(self._settle_interval)
        self._stream.flush()

        if headset_id is not None and headset_id.is_set:
            logger.info(f"Pairing with headset {headset_id}")
            self._send(PairCommand(headset_id))
        else:
            logger.info("Searching for a headset (autoconnect)")
            self._send(AutoConnectCommand())

        while True:
            try:
                payload = read_frame(self._stream, self._max_idle_reads)
            except FrameError as e:
                logger.debug(f"Ignoring bad frame during handshake: {e}")
                continue

            done, resolved = self._handle_reply(payload)
            if done:
                return resolved
            time.sleep(self._search_interval)

    def _send(self, command) -> None:
        self._stream.write(CommandSerializer.serialize_command(command))

    @staticmethod
    def _handle_reply(payload: bytes):
        """Interpret one dongle reply.

        Returns:
            (done, headset_id) where done is False while still searching
        """
        reply = payload[0]

        if reply == REPLY_HEADSET_CONNECTED:
            if len(payload) < 4:
                raise UnexpectedReplyError("Truncated headset-connected reply", payload)
            resolved = HeadsetId(payload[2], payload[3])
            logger.info(f"Headset {resolved} connected")
            return True, resolved

        if reply == REPLY_HEADSET_NOT_FOUND:
            if len(payload) < 2:
                raise UnexpectedReplyError("Truncated headset-not-found reply", payload)
            if payload[1] == 0x00:
                raise NoHeadsetAvailableError("No headset available")
            raise HeadsetNotFoundError("Headset not found")

        if reply == REPLY_HEADSET_DISCONNECTED:
            raise HeadsetDisconnectedError("Headset disconnected")

        if reply == REPLY_REQUEST_DENIED:
            raise RequestDeniedError("Request denied")

        if reply == REPLY_STANDBY:
            if len(payload) < 3:
                raise UnexpectedReplyError("Truncated standby reply", payload)
            if payload[2] == 0x00:
                logger.info("Dongle is in standby")
                return True, None
            logger.debug("Dongle still searching")
            return False, None

        raise UnexpectedReplyError(f"Unexpected reply 0x{reply:02X}", payload)
