#!/usr/bin/env python3
"""
Example usage of the linearlight package

This script demonstrates:
- Opening a session to the fixture
- Reading the current-limit signals
- Calibrating channel limits
- Setting a colour from the calibrated limits
- Turning the fixture off
"""

import sys
import time

# Add src to path so we can import linearlight
sys.path.insert(0, "src")

from linearlight import CalibrationEngine, ColorController, DeviceClient


def main():
    """Run example fixture sequence"""

    print("linearlight - Example Usage")
    print("=" * 60)

    with DeviceClient("http://192.168.68.112") as fixture:
        # Example 1: Read limit signals
        print("\nLimit signals (R, G, B, W):", fixture.get_limit_signals())

        # Example 2: Quick calibration (one run)
        print("\n" + "=" * 60)
        print("Example 2: Calibrate with a single run")
        limits = CalibrationEngine(fixture).calibrate(1, verbose=True)
        print(f"✓ Limits: {limits}")

        # Example 3: Half brightness, warm-ish mix
        print("\n" + "=" * 60)
        print("Example 3: Red and white at half their limits")
        controller = ColorController(fixture, limits)
        values = controller.apply_fractions([0.5, 0.0, 0.0, 0.5])
        print(f"✓ Channels set to {values}")

        time.sleep(2)

        # Example 4: Turn off
        print("\n" + "=" * 60)
        print("Example 4: All channels off")
        controller.off()
        print("✓ Off")

        print("\n" + "=" * 60)
        print("Example complete!")
        print("\nNote: limits are not stored by this example.")
        print("Use scripts/linearlight_cli.py calib to persist them.")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
