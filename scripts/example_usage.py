#!/usr/bin/env python3
"""
Example usage of the traffic-light bridge module

This script demonstrates:
- Connecting to the board
- Reading the latest status record
- Changing the transmitted LED intensities
- Proper cleanup
"""

import sys
import time

# Add src to path so we can import trafficlight_bridge
sys.path.insert(0, "src")

from trafficlight_bridge import get_bridge, indicator_colors


def main():
    """Run example bridge session"""

    print("Traffic-Light Bridge - Example Usage")
    print("=" * 60)

    # Use context manager for automatic connection/disconnection
    with get_bridge("/dev/ttyACM0") as bridge:
        if not bridge.is_connected:
            print(f"Could not connect (state: {bridge.state.name})")
            return

        # Example 1: Wait for the first status line
        print("\nExample 1: Wait for status")
        for _ in range(20):
            if bridge.status is not None:
                break
            time.sleep(0.25)
        status = bridge.status
        if status is None:
            print("  No status received yet")
        else:
            print(f"  {status.describe()}")
            print(f"  LEDs (R, Y, G): {status.led_states}")
            print(f"  Indicator colors: {indicator_colors(status)}")

        # Example 2: Drive all three LEDs at half intensity
        print("\n" + "=" * 60)
        print("Example 2: Send 128,128,128")
        bridge.controls.set(red=128, yellow=128, green=128)
        time.sleep(2)
        print("✓ Sent for 2 s")

        # Example 3: Red only
        print("\n" + "=" * 60)
        print("Example 3: Red only")
        bridge.controls.set(red=255, yellow=0, green=0)
        time.sleep(2)
        print("✓ Sent for 2 s")

        print("\n" + "=" * 60)
        print("Example complete!")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
