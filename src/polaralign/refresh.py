"""
Refresh tracking: infer the remaining polar alignment error from a later
image, without repeating the three-image measurement.

The third measurement position is moved forward in time by rotating it
around the originally measured axis at the sidereal rate. Any remaining
difference to the refresh position must come from the user turning the
altitude (Y) and azimuth (Z) knobs, and the same rotation is applied to the
axis.
"""

from dataclasses import dataclass
import logging
from typing import Tuple

import numpy as np

from .correction import PointingError, axis_to_error
from .errors import RotationSearchError
from .pole_axis import AxisEstimate
from .rotations import (
    angle_between,
    rotate_around_axis,
    rotate_around_y,
    rotate_around_z,
    xyz_to_az_alt,
)
from .search import GridPass, coarse_to_fine

logger = logging.getLogger(__name__)

SIDEREAL_RATE = 15.041067  # degrees per hour
MAX_REFRESH_RESIDUAL = 0.5  # degrees

PASS1_RESOLUTION = 1.0 / 60.0
PASS2_RESOLUTION = 5.0 / 3600.0
PASS2_RANGE = 4.0 / 60.0


@dataclass(frozen=True)
class RefreshResult:
    error: PointingError
    axis: AxisEstimate
    az_adjustment: float
    alt_adjustment: float
    residual: float


def sidereal_angle(seconds: float) -> float:
    """Sky rotation (degrees) over an interval; negative as the sky turns west."""
    return -SIDEREAL_RATE * seconds / 3600.0


def project_forward(point, axis, seconds: float) -> np.ndarray:
    """Where a fixed RA/Dec point that was at point will be after seconds."""
    return rotate_around_axis(point, axis, sidereal_angle(seconds))


def rotation_angles(start, goal) -> Tuple[float, float, float]:
    """
    Finds the Y then Z rotation carrying start closest to goal.

    Returns (z_angle, y_angle, residual), all in degrees.
    """
    start = np.asarray(start, dtype=float)
    goal = np.asarray(goal, dtype=float)

    def residual(y_angles, z_angles):
        moved = rotate_around_z(rotate_around_y(start, y_angles)[..., None, :], z_angles)
        return np.abs(angle_between(moved, goal))

    # The great-circle distance bounds how far the knobs can have moved.
    distance = angle_between(start, goal)
    pass1_range = max(1.0, min(10.0, 2.5 * abs(distance)))

    best = coarse_to_fine(
        lambda y, z: residual(y[:, 0], z[0, :]),
        [GridPass(pass1_range, PASS1_RESOLUTION), GridPass(PASS2_RANGE, PASS2_RESOLUTION)],
        inclusive=True,
    )
    return best.b, best.a, best.cost


def process_refresh(
    new_point,
    elapsed_seconds: float,
    third_point,
    axis: AxisEstimate,
    latitude: float,
    north: bool = True,
) -> RefreshResult:
    """
    Computes the new axis and error from a refresh position.

    Args:
        new_point: Unit vector of the refresh image centre.
        elapsed_seconds: Time from the third measurement to the refresh image.
        third_point: Unit vector of the third measurement image centre.
        axis: Axis found from the three measurements.
        latitude: Observer latitude in degrees.
        north: Observer hemisphere.

    Raises:
        RotationSearchError: No knob rotation explains the refresh position.
    """
    axis_point = axis.vector()
    projected = project_forward(third_point, axis_point, elapsed_seconds)

    az_adjustment, alt_adjustment, residual = rotation_angles(projected, new_point)
    if residual > MAX_REFRESH_RESIDUAL:
        logger.info(
            "Refresh: failed to estimate rotation angle (residual %.1f')", residual * 60
        )
        raise RotationSearchError(
            f"Refresh position is inconsistent with a knob adjustment "
            f"(residual {residual * 60:.1f} arcmin)"
        )
    logger.info(
        "Refresh: estimated current adjustment: Az %.1f' Alt %.1f' residual %.0f\"",
        az_adjustment * 60,
        alt_adjustment * 60,
        residual * 3600,
    )

    moved_axis = rotate_around_z(rotate_around_y(axis_point, alt_adjustment), az_adjustment)
    new_az, new_alt = xyz_to_az_alt(moved_axis)
    new_axis = AxisEstimate(azimuth=new_az, altitude=new_alt)
    error = axis_to_error(new_axis, latitude, north)

    logger.info(
        "Refresh: AXIS %.3f %.3f --> %.3f %.3f ERR: az %.1f' alt %.1f'",
        axis.azimuth,
        axis.altitude,
        new_az,
        new_alt,
        error.azimuth * 60,
        error.altitude * 60,
    )
    return RefreshResult(
        error=error,
        axis=new_axis,
        az_adjustment=az_adjustment,
        alt_adjustment=alt_adjustment,
        residual=residual,
    )
