#!/usr/bin/env python3
"""
Quick validation script for the flight simulator.

Run this to verify the flight core is working correctly.
"""

import sys

from rotorsim.aircraft import AircraftConfiguration
from rotorsim.main import run_validation_tests


if __name__ == "__main__":
    print("Multirotor Flight Simulator")
    print("Acceptance Scenario Suite")
    print()

    aircraft = AircraftConfiguration(name="Validation Test Quad")
    passed = run_validation_tests(aircraft, verbose=True)
    sys.exit(0 if passed else 1)
