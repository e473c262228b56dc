"""Polar alignment solver for equatorial telescope mounts."""

__version__ = "0.3.0"
