"""Locate the MindWave RF dongle among the machine's serial ports.

The dongle is a Silicon Labs CP210x USB-UART bridge. Other CP210x devices
share its VID/PID, so callers with several bridges attached should pass an
explicit port instead of relying on detection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from serial.tools import list_ports

from ..errors import DongleNotFoundError, MultipleDonglesError

logger = logging.getLogger(__name__)

DONGLE_VID = 0x10C4
DONGLE_PID = 0xEA60


@dataclass(frozen=True)
class DongleInfo:
    """A serial port that may be the RF dongle.

    Attributes:
        port: Device path to hand to SerialStream (e.g. '/dev/ttyUSB0', 'COM4')
        vid: USB vendor id, None for non-USB ports
        pid: USB product id, None for non-USB ports
        product: USB product string, if the OS reports one
        serial_number: USB serial string, if the OS reports one
    """
    port: str
    vid: Optional[int] = None
    pid: Optional[int] = None
    product: Optional[str] = None
    serial_number: Optional[str] = None

    @classmethod
    def from_port(cls, port) -> DongleInfo:
        """Build from a pyserial ListPortInfo."""
        return cls(
            port=port.device,
            vid=port.vid,
            pid=port.pid,
            product=port.product,
            serial_number=port.serial_number,
        )

    def __str__(self) -> str:
        if self.vid is None or self.pid is None:
            return self.port
        return f"{self.port} ({self.vid:04X}:{self.pid:04X})"


def is_matching_dongle(
    info: DongleInfo,
    *,
    expected_vid: Optional[int] = DONGLE_VID,
    expected_pid: Optional[int] = DONGLE_PID,
    product_substring: Optional[str] = None,
) -> bool:
    """True if `info` passes every criterion that is not None.

    The product check is case-insensitive and fails for ports without a
    product string.
    """
    if expected_vid is not None and info.vid != expected_vid:
        return False
    if expected_pid is not None and info.pid != expected_pid:
        return False
    if product_substring is None:
        return True
    return bool(info.product) and product_substring.lower() in info.product.lower()


def find_dongles(
    *,
    matcher: Optional[Callable[[DongleInfo], bool]] = None,
    expected_vid: Optional[int] = DONGLE_VID,
    expected_pid: Optional[int] = DONGLE_PID,
    product_substring: Optional[str] = None,
) -> List[DongleInfo]:
    """List every attached port that looks like the dongle.

    `matcher`, when given, replaces the VID/PID/product criteria.
    """
    if matcher is None:
        def matcher(info: DongleInfo) -> bool:
            return is_matching_dongle(
                info,
                expected_vid=expected_vid,
                expected_pid=expected_pid,
                product_substring=product_substring,
            )

    ports = [DongleInfo.from_port(p) for p in list_ports.comports()]
    found = [info for info in ports if matcher(info)]
    logger.debug(f"Scanned {len(ports)} serial ports, {len(found)} candidate dongles")
    return found


def find_single_dongle(**criteria) -> DongleInfo:
    """Return the one attached dongle.

    Accepts the keyword arguments of find_dongles().

    Raises:
        DongleNotFoundError: Nothing matched
        MultipleDonglesError: More than one port matched; the caller must pick
    """
    found = find_dongles(**criteria)
    if not found:
        raise DongleNotFoundError("No MindWave dongle found")
    if len(found) > 1:
        names = ", ".join(str(info) for info in found)
        logger.error(f"Several candidate dongles, refusing to guess: {names}")
        raise MultipleDonglesError(f"{len(found)} candidate dongles found: {names}", devices=found)
    return found[0]
