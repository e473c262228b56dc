"""
Polar alignment error of an estimated axis and the pointing correction that
removes it.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .pole_axis import AxisEstimate
from .rotations import rotate_around_y, rotate_around_z


@dataclass(frozen=True)
class PointingError:
    """
    Offset (degrees) of the mount axis from the celestial pole.

    azimuth is in (-180, 180], positive when the axis is east of the pole in
    the north. altitude is positive when the axis is above the pole.
    """

    azimuth: float
    altitude: float

    @property
    def total(self) -> float:
        """Approximate total error, for display."""
        return float(np.hypot(self.azimuth, self.altitude))


def normalize_azimuth_error(az: float) -> float:
    while az > 180.0:
        az -= 360.0
    return az


def axis_to_error(
    axis: AxisEstimate, latitude: float, north: bool = True
) -> PointingError:
    """Computes the azimuth and altitude error of axis for an observer at latitude."""
    if north:
        alt_error = axis.altitude - latitude
        az_error = axis.azimuth
    else:
        alt_error = axis.altitude + latitude
        az_error = axis.azimuth + 180.0
    return PointingError(
        azimuth=normalize_azimuth_error(az_error), altitude=alt_error
    )


def solution_point(third_vec, error: PointingError) -> Tuple[np.ndarray, np.ndarray]:
    """
    Where the mount should point after the knobs are adjusted.

    Rotating the current pointing by the altitude error around Y and then by
    the azimuth error around Z gives the position a pole-aligned mount would
    reach. Returns (solution, alt_only_solution); the second skips the
    azimuth rotation, for workflows that fix altitude first.
    """
    alt_only = rotate_around_y(np.asarray(third_vec, dtype=float), error.altitude)
    solution = rotate_around_z(alt_only, error.azimuth)
    return solution, alt_only
