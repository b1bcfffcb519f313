#!/usr/bin/env python3
"""
Interactive MindWave Test Script.

Connects to a headset through the RF dongle and prints attention,
meditation and signal quality once a second.

Usage:
    python examples/read_headset.py [PORT] [HEADSET_ID]
"""

import sys
import time
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mindwave import ConnectError, MindWave, StreamError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def main():
    port = sys.argv[1] if len(sys.argv) > 1 else None
    headset_id = sys.argv[2] if len(sys.argv) > 2 else None

    headset = MindWave(port=port, headset_id=headset_id)

    print(f"Connecting ({port or 'auto-detect'})...")
    try:
        headset.connect()
    except (ConnectError, StreamError) as e:
        print(f"Failed to connect: {e}")
        return 1

    print(f"Connected to headset {headset.global_headset_id}")

    try:
        print("\nReading for 30 seconds (Ctrl+C to stop)...")
        for i in range(30):
            if not headset.is_connected():
                print("\nHeadset link lost.")
                break

            state = headset.snapshot()
            print(f"\r[{i+1}/30] "
                  f"Signal: {state.poor_signal_quality:3d} | "
                  f"Attention: {state.attention:3d} | "
                  f"Meditation: {state.meditation:3d} | "
                  f"Raw: {state.raw_wave:6d}", end="")
            if state.is_stale():
                print(" [STALE]", end="")
            sys.stdout.flush()

            for event in headset.drain_events():
                print(f"\n{event.kind.value}: {event.error}")

            time.sleep(1)

        stats = headset.stats
        print(f"\n\nFrames: {stats.frames}, checksum errors: {stats.checksum_errors}, "
              f"stream errors: {stats.stream_errors}")

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("\nDisconnecting...")
        headset.disconnect()
        print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
