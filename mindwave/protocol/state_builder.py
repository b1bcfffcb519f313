"""State store that accumulates decoded records into SensorState snapshots.

Maintains mutable state internally but produces immutable snapshots. Every
access goes through one lock so a snapshot never mixes half of one frame with
another.
"""
from __future__ import annotations

import threading
import time
from dataclasses import fields
from typing import Dict, Iterable, List

from ..models import BAND_NAMES, Record, SensorState
from .codes import DataCode

# Single-byte codes stored as-is
BYTE_FIELDS = {
    DataCode.POOR_SIGNAL: "poor_signal_quality",
    DataCode.HEART_RATE: "heart_rate",
    DataCode.ATTENTION: "attention",
    DataCode.MEDITATION: "meditation",
    DataCode.RAW_WAVE_8BIT: "raw_wave_8bit",
    DataCode.BLINK_STRENGTH: "blink_strength",
}

BAND_BYTES = 3


class SensorStateStore:
    """Mutex-guarded mapping of field name to latest value.

    The poll loop is the only writer; any thread may take snapshots.
    """

    def __init__(self):
        """Initialize with every field at zero."""
        self._values: Dict[str, float] = {f.name: f.default for f in fields(SensorState)}
        self._lock = threading.Lock()

    def apply(self, records: Iterable[Record]) -> List[Record]:
        """Apply one payload's records under a single lock acquisition.

        Args:
            records: Records parsed from one payload

        Returns:
            Records that were not interpreted (extended codes, unknown codes,
            or known codes with too little data)
        """
        unhandled = []
        with self._lock:
            for record in records:
                if record.extended_level != 0 or not self._apply_record(record):
                    unhandled.append(record)
            self._values["updated_at"] = time.time()
        return unhandled

    def snapshot(self) -> SensorState:
        """Create an immutable snapshot of current state."""
        with self._lock:
            return SensorState(**self._values)

    def _apply_record(self, record: Record) -> bool:
        """Apply one extension-level-0 record. Caller holds the lock."""
        code, data = record.code, record.data

        if code in BYTE_FIELDS:
            self._values[BYTE_FIELDS[code]] = data[0]
            return True

        if code == DataCode.RAW_WAVE:
            if len(data) < 2:
                return False
            value = (data[0] << 8) + data[1]
            if value >= 0x8000:
                value -= 0x10000
            self._values["raw_wave"] = value
            return True

        if code == DataCode.ASIC_EEG_POWER:
            if len(data) < BAND_BYTES * len(BAND_NAMES):
                return False
            for i, name in enumerate(BAND_NAMES):
                b0, b1, b2 = data[i * BAND_BYTES:(i + 1) * BAND_BYTES]
                self._values[name] = (b0 << 16) + (b1 << 8) + b2
            return True

        if code == DataCode.RR_INTERVAL:
            if len(data) < 2:
                return False
            self._values["rr_interval"] = (data[0] << 8) + data[1]
            return True

        return False
