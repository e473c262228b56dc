"""
Rotation Kernel

Conversions between horizontal (azimuth/altitude) coordinates and 3D unit
vectors, and the rotations used by the polar alignment solver.

Convention: x points to the north horizon (az=0), y to the west horizon
(az=270), z to the zenith. Azimuth grows from north through east.
All angles are in degrees.
"""

import math
import numpy as np
from scipy.spatial.transform import Rotation


def az_alt_to_xyz(az_deg, alt_deg):
    """Converts Az/Alt to a 3D unit vector."""
    az_rad = math.radians(az_deg)
    alt_rad = math.radians(alt_deg)
    return np.array(
        [
            math.cos(az_rad) * math.cos(alt_rad),
            -math.sin(az_rad) * math.cos(alt_rad),
            math.sin(alt_rad),
        ]
    )


def xyz_to_az_alt(vec):
    """Converts a 3D vector to Azimuth and Altitude (degrees)."""
    x, y, z = (float(c) for c in vec)
    horizontal = math.hypot(x, y)
    # Azimuth is undefined at the poles.
    az_rad = 0.0 if horizontal == 0 else math.atan2(-y, x)
    alt_rad = math.atan2(z, horizontal)

    az_deg = math.degrees(az_rad) % 360.0
    if az_deg >= 360.0:
        az_deg = 0.0
    return az_deg, math.degrees(alt_rad)


def normalize(vec, min_length=1e-10):
    """
    Returns vec scaled to unit length.

    Vectors shorter than min_length cannot be normalized reliably and are
    returned unchanged, so callers can detect that by checking the length.
    """
    vec = np.asarray(vec, dtype=float)
    length = np.linalg.norm(vec)
    if not length >= min_length:
        return vec
    return vec / length


def rotate_around_y(vec, degrees):
    """
    Rotates vec around the Y (east-west) axis.

    degrees may be an array; the result then carries the extra leading
    dimensions, with the vector components in the last axis.
    """
    vec = np.asarray(vec, dtype=float)
    rad = np.radians(degrees)
    c, s = np.cos(rad), np.sin(rad)
    x, y, z = vec[..., 0], vec[..., 1], vec[..., 2]
    return np.stack(
        np.broadcast_arrays(x * c + z * s, y, -x * s + z * c), axis=-1
    )


def rotate_around_z(vec, degrees):
    """Rotates vec around the Z (zenith) axis. Broadcasts like rotate_around_y."""
    vec = np.asarray(vec, dtype=float)
    rad = np.radians(degrees)
    c, s = np.cos(rad), np.sin(rad)
    x, y, z = vec[..., 0], vec[..., 1], vec[..., 2]
    return np.stack(
        np.broadcast_arrays(x * c - y * s, x * s + y * c, z), axis=-1
    )


def rotate_around_axis(vec, axis, degrees):
    """Rotates vec around an arbitrary unit axis (Rodrigues' formula)."""
    rotvec = normalize(axis) * math.radians(degrees)
    return Rotation.from_rotvec(rotvec).apply(np.asarray(vec, dtype=float))


def angle_between(v1, v2):
    """
    Great-circle angle between two vectors in degrees, in [0, 180].

    Broadcasts over leading dimensions.
    """
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    cross = np.linalg.norm(np.cross(v1, v2), axis=-1)
    dot = np.sum(v1 * v2, axis=-1)
    angle = np.degrees(np.arctan2(cross, dot))
    if np.ndim(angle) == 0:
        return float(angle)
    return angle


def rotate_ra_axis(az_alt, rotation):
    """
    Rotates an (az, alt) point the way the celestial pole moves when the
    mount's altitude knob turns by rotation[1] and the azimuth knob by
    rotation[0].
    """
    az_rot, alt_rot = rotation
    point = az_alt_to_xyz(*az_alt)
    point = rotate_around_y(point, alt_rot)
    point = rotate_around_z(point, az_rot)
    return xyz_to_az_alt(point)
