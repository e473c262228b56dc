"""
Mount axis estimation from three sky positions.

Three positions sampled while the mount rotates around its RA axis lie on a
circle around that axis. The normal of the plane through them is the axis.
"""

from dataclasses import dataclass
import logging

import numpy as np

from .errors import DegenerateGeometryError
from .rotations import az_alt_to_xyz, normalize, xyz_to_az_alt

logger = logging.getLogger(__name__)

# A normal shorter than this failed to normalize.
MIN_AXIS_LENGTH = 0.9


@dataclass(frozen=True)
class AxisEstimate:
    """Azimuth and altitude (degrees) of the mount's RA axis."""

    azimuth: float
    altitude: float

    def vector(self) -> np.ndarray:
        return az_alt_to_xyz(self.azimuth, self.altitude)


def plane_normal(p1, p2, p3) -> np.ndarray:
    """Unit normal of the plane through three points (sign undetermined)."""
    p1, p2, p3 = (np.asarray(p, dtype=float) for p in (p1, p2, p3))
    return normalize(np.cross(p2 - p1, p3 - p2))


def estimate_axis(p1, p2, p3, north: bool = True) -> AxisEstimate:
    """
    Finds the rotation axis through three unit vectors.

    The axis is flipped, if needed, to point at the pole of the observer's
    hemisphere.

    Raises:
        DegenerateGeometryError: The points are (nearly) coincident or
            collinear, typically because the mount did not rotate enough
            between samples.
    """
    axis = plane_normal(p1, p2, p3)
    length = float(np.linalg.norm(axis))
    if not length >= MIN_AXIS_LENGTH:
        logger.info("Normal vector too short (%.3g). Axis estimation failed.", length)
        raise DegenerateGeometryError(
            "Insufficient rotation between samples, the axis cannot be estimated"
        )

    if (north and axis[0] < 0) or (not north and axis[0] > 0):
        axis = -axis

    az, alt = xyz_to_az_alt(axis)
    return AxisEstimate(azimuth=az, altitude=alt)
