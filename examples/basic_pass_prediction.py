#!/usr/bin/env python3
"""
Basic Pass Prediction Example

This example demonstrates the core workflow of the pass predictor:
TLE download → propagation → next overhead pass for each satellite.
"""

import sys
from pathlib import Path

# Add the src directory to the path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pass_predictor import Observer, PassScheduler, PredictionConfig
from pass_predictor.sources import DEFAULT_SOURCES, export_element_sets, fetch_element_sets
from pass_predictor.utils import format_coordinates, setup_logging


def main():
    """Run basic pass prediction example."""

    setup_logging("INFO")

    print("=== Satellite Pass Predictor - Basic Example ===\n")

    # Step 1: Fetch current element sets for Landsat 7, 8 and 9
    print("Step 1: Fetching TLE data...")
    element_sets, failures = fetch_element_sets(DEFAULT_SOURCES)
    for key, failure in failures.items():
        print(f"  ✗ {key.upper()}: {failure.reason}")
    if not element_sets:
        print("No TLE data available, giving up.")
        return 1
    print(f"✓ Fetched {len(element_sets)} element sets\n")

    tle_file = Path(__file__).parent.parent / "data" / "landsat.tle"
    export_element_sets(element_sets, tle_file)
    print(f"✓ TLE data saved to: {tle_file}\n")

    # Step 2: Define the observer
    observer = Observer(latitude=40.0, longitude=-75.0)
    print(f"Step 2: Observer at {format_coordinates(observer.latitude, observer.longitude)}\n")

    # Step 3: Predict next passes over a 2-hour horizon
    print("Step 3: Predicting next passes...")
    config = PredictionConfig(step_seconds=600, max_steps=12, threshold_km=1000.0)
    scheduler = PassScheduler(config)
    results = scheduler.predict_all(element_sets, observer, parallel=True)

    print()
    for result in results.values():
        print(f"  • {result.describe()}")
        if result.marker():
            marker = result.marker()
            print(f"    Sub-satellite point: "
                  f"{format_coordinates(marker['latitude'], marker['longitude'])}")

    print("\n=== Example completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
