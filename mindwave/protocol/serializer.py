"""Protocol serializer for dongle commands.

Converts command objects to the bytes the dongle understands.
Pure functions with no side effects.
"""
from __future__ import annotations

from ..models import AutoConnectCommand, Command, PairCommand, ResetCommand
from .codes import CMD_AUTOCONNECT, CMD_PAIR, CMD_RESET


class CommandSerializer:
    """Serializer for dongle commands.

    Commands are raw bytes written straight to the stream, not framed.
    """

    @staticmethod
    def serialize_command(command: Command) -> bytes:
        """Convert a command object to wire bytes.

        Args:
            command: Command object to serialize

        Returns:
            Bytes ready to write to the dongle

        Examples:
            >>> CommandSerializer.serialize_command(PairCommand(HeadsetId(0xF6, 0x4F)))
            b'\\xc0\\xf6O'
        """
        if isinstance(command, ResetCommand):
            return bytes([CMD_RESET])
        elif isinstance(command, AutoConnectCommand):
            return bytes([CMD_AUTOCONNECT])
        elif isinstance(command, PairCommand):
            headset_id = command.headset_id
            return bytes([CMD_PAIR, headset_id.high, headset_id.low])
        else:
            raise ValueError(f"Unknown command type: {type(command)}")
