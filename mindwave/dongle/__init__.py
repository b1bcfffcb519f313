"""Dongle layer: pairing handshake, background polling and the driver facade.

This module provides:
- The pairing handshake with the RF dongle (Handshake)
- Background frame decoding (Poller)
- The public driver (MindWave)
"""

from .handshake import Handshake
from .poller import Poller
from .manager import MindWave

__all__ = [
    'Handshake',
    'Poller',
    'MindWave',
]
