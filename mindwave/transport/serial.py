"""pyserial-backed byte stream for the MindWave RF dongle.

The dongle enumerates as a USB serial bridge and talks at 115200 baud.
This module only moves bytes; it does not interpret them.
"""
from __future__ import annotations

import logging
from typing import Optional

import serial

from ..errors import DongleNotFoundError, MultipleDonglesError, StreamError
from .base import ByteStream
from .dongle_finder import find_single_dongle

logger = logging.getLogger(__name__)

CONNECTION_BAUD = 115200
READ_TIMEOUT = 0.01  # seconds


class SerialStream(ByteStream):
    """Serial port connection to the RF dongle.

    Example:
        >>> stream = SerialStream(port="/dev/ttyUSB0")
        >>> stream.open()
        >>> stream.write(b"\\xc2")
        >>> stream.read(16)
        >>> stream.close()
    """

    def __init__(self,
                 port: Optional[str] = None,
                 baudrate: int = CONNECTION_BAUD,
                 timeout: float = READ_TIMEOUT):
        """Initialize serial stream.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0'), or None to auto-detect
            baudrate: Serial baud rate (default 115200)
            timeout: Read timeout in seconds
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._serial: Optional[serial.Serial] = None

    @property
    def port(self) -> Optional[str]:
        """Port path, filled in after auto-detection."""
        return self._port

    @property
    def is_open(self) -> bool:
        return self._serial is not None

    def open(self) -> None:
        """Open the serial port.

        If port is None, attempts to auto-detect the dongle by VID/PID.

        Raises:
            StreamError: Port could not be found or opened
        """
        if self._serial is not None:
            logger.warning("Already open")
            return

        if self._port is None:
            try:
                info = find_single_dongle()
            except (DongleNotFoundError, MultipleDonglesError) as e:
                raise StreamError(f"Cannot auto-detect dongle: {e}") from e
            self._port = info.port
            logger.info(f"Auto-detected dongle on {self._port}")

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                timeout=self._timeout,
            )
        except serial.SerialException as e:
            logger.error(f"Failed to open {self._port}: {e}")
            raise StreamError(f"Failed to open {self._port}: {e}") from e

        logger.info(f"Opened {self._port} @ {self._baudrate} baud")

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.error(f"Error closing serial port: {e}")
        finally:
            self._serial = None
        logger.info(f"Closed {self._port}")

    def read(self, size: int) -> bytes:
        try:
            return self._require_open().read(size)
        except serial.SerialException as e:
            raise StreamError(f"Serial read error: {e}") from e

    def write(self, data: bytes) -> None:
        try:
            port = self._require_open()
            port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise StreamError(f"Serial write error: {e}") from e

    def flush(self) -> None:
        try:
            self._require_open().reset_input_buffer()
        except serial.SerialException as e:
            raise StreamError(f"Serial flush error: {e}") from e

    def _require_open(self) -> serial.Serial:
        port = self._serial
        if port is None:
            raise StreamError("Serial port is not open")
        return port
