"""
Command line polar alignment.

Reads a YAML session file:

    observer: {latitude: 50.18, longitude: 19.79}   # optional
    samples:
      - {ra: 36.1, dec: 87.9, time: "2026-03-01T21:00:00"}
      - ...
    refresh:                                          # optional
      - {ra: 36.9, dec: 88.0, time: "2026-03-01T21:06:00"}

Coordinates are J2000 degrees, times are UTC.
"""

import argparse
from datetime import datetime
import logging
import sys

import yaml

from .config import deep_merge, load_config, location_from_config
from .polar_align import PolarAlign


def parse_time(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def load_session(path: str) -> dict:
    with open(path, "r") as f:
        session = yaml.safe_load(f) or {}
    if len(session.get("samples", [])) != 3:
        raise ValueError(f"{path}: exactly 3 samples are required")
    return session


def format_error(error) -> str:
    return (
        f"az {error.azimuth * 60:+.1f}' alt {error.altitude * 60:+.1f}' "
        f"(total {error.total * 60:.1f}')"
    )


def run(session: dict, config: dict) -> int:
    if "observer" in session:
        config = deep_merge(config, {"observer": session["observer"]})
    pa = PolarAlign(
        location_from_config(config),
        max_pixel_search_range=config["polar_align"]["max_pixel_search_range"],
    )

    for entry in session["samples"]:
        result = pa.add_sample(float(entry["ra"]), float(entry["dec"]), parse_time(entry["time"]))
        if not result.ok:
            print(f"Error: {result.error}")
            return 1

    axis = pa.find_axis()
    if not axis.ok:
        print(f"Error: {axis.error}. Retake the images with more rotation.")
        return 1
    error = pa.calculate_az_alt_error().unwrap()
    print(f"Axis: az {axis.value.azimuth:.4f} alt {axis.value.altitude:.4f}")
    print(f"Polar alignment error: {format_error(error)}")

    solution = pa.refresh_solution().unwrap()
    print(
        f"Correction target (J2000): RA {solution.solution.ra0:.4f} "
        f"Dec {solution.solution.dec0:.4f}"
    )

    status = 0
    for entry in session.get("refresh", []):
        when = parse_time(entry["time"])
        result = pa.process_refresh_coords(float(entry["ra"]), float(entry["dec"]), when)
        if result.ok:
            print(f"Refresh {when.isoformat()}: {format_error(result.value.error)}")
        else:
            print(f"Refresh {when.isoformat()}: {result.error}")
            status = 1
    return status


def main() -> None:
    """Entry point for the polar-align command."""
    parser = argparse.ArgumentParser(description="Three point polar alignment")
    parser.add_argument("session", help="YAML file with the samples")
    parser.add_argument("-c", "--config", help="Configuration file")
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enable debug logging to stderr"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        session = load_session(args.session)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading session: {e}")
        sys.exit(1)

    sys.exit(run(session, load_config(args.config)))


if __name__ == "__main__":
    main()
