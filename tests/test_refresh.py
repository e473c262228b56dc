from datetime import datetime, timedelta
import unittest

from polaralign.correction import axis_to_error
from polaralign.errors import RotationSearchError
from polaralign.pole_axis import AxisEstimate
from polaralign.refresh import (
    SIDEREAL_RATE,
    process_refresh,
    project_forward,
    rotation_angles,
    sidereal_angle,
)
from polaralign.rotations import (
    angle_between,
    az_alt_to_xyz,
    rotate_around_y,
    rotate_around_z,
    xyz_to_az_alt,
)
from polaralign.sky import GeoLocation, horizontal_from_j2000

LAT = 50.1822
FIVE_ARCSEC = 5.0 / 3600.0


class TestSiderealProjection(unittest.TestCase):
    def test_rate(self):
        self.assertEqual(SIDEREAL_RATE, 15.041067)
        self.assertAlmostEqual(sidereal_angle(3600.0), -15.041067)
        self.assertEqual(sidereal_angle(0.0), 0.0)

    def test_matches_sky_motion(self):
        """
        Description:
            Verifies that rotating a position around the true pole reproduces
            the apparent motion of a fixed star.

        Methodology:
            1. Computes the horizontal position of a J2000 star now and one
               hour later.
            2. Projects the first position forward around the pole of date.

        Expected Results:
            - The projection matches the later position within 0.001 degrees.
        """
        location = GeoLocation(LAT, 19.7925)
        t0 = datetime(2026, 3, 1, 21, 0, 0)
        t1 = t0 + timedelta(hours=1)
        before = horizontal_from_j2000(60.0, 70.0, t0, location)
        after = horizontal_from_j2000(60.0, 70.0, t1, location)

        projected = project_forward(
            az_alt_to_xyz(before.az, before.alt), az_alt_to_xyz(0.0, LAT), 3600.0
        )
        self.assertLess(angle_between(projected, az_alt_to_xyz(after.az, after.alt)), 1e-3)


class TestRotationAngles(unittest.TestCase):
    def test_identity(self):
        p = az_alt_to_xyz(25.0, 45.0)
        z, y, residual = rotation_angles(p, p)
        self.assertLess(abs(z), FIVE_ARCSEC)
        self.assertLess(abs(y), FIVE_ARCSEC)
        self.assertLess(residual, 1e-6)

    def test_known_rotation(self):
        start = az_alt_to_xyz(25.0, 45.0)
        goal = rotate_around_z(rotate_around_y(start, 0.35), -0.6)
        z, y, residual = rotation_angles(start, goal)
        self.assertAlmostEqual(z, -0.6, delta=FIVE_ARCSEC)
        self.assertAlmostEqual(y, 0.35, delta=FIVE_ARCSEC)
        self.assertLess(residual, FIVE_ARCSEC)

    def test_large_rotation_widens_search(self):
        start = az_alt_to_xyz(30.0, 40.0)
        goal = rotate_around_z(rotate_around_y(start, -2.5), 3.0)
        z, y, residual = rotation_angles(start, goal)
        self.assertAlmostEqual(z, 3.0, delta=2 * FIVE_ARCSEC)
        self.assertAlmostEqual(y, -2.5, delta=2 * FIVE_ARCSEC)


class TestProcessRefresh(unittest.TestCase):
    """
    Verification of the refresh tracker against synthetic knob adjustments.
    """

    def setUp(self):
        self.axis = AxisEstimate(azimuth=0.4, altitude=LAT + 0.25)
        self.third = az_alt_to_xyz(30.0, 48.0)
        self.elapsed = 300.0
        self.projected = project_forward(self.third, self.axis.vector(), self.elapsed)

    def test_no_adjustment(self):
        """
        Description:
            A refresh image taken without touching the knobs.

        Methodology:
            Uses the time-projected third position as the refresh position.

        Expected Results:
            - Adjustments are (0, 0) within 5 arcseconds.
            - The error equals the original error.
        """
        result = process_refresh(
            self.projected, self.elapsed, self.third, self.axis, LAT, north=True
        )
        self.assertLess(abs(result.az_adjustment), FIVE_ARCSEC)
        self.assertLess(abs(result.alt_adjustment), FIVE_ARCSEC)

        original = axis_to_error(self.axis, LAT, north=True)
        self.assertAlmostEqual(result.error.azimuth, original.azimuth, delta=FIVE_ARCSEC)
        self.assertAlmostEqual(result.error.altitude, original.altitude, delta=FIVE_ARCSEC)

    def test_recovers_adjustment(self):
        """Knob turns applied after tracking are recovered and moved onto the axis."""
        y_adj, z_adj = -0.2, 0.35
        moved = rotate_around_z(rotate_around_y(self.projected, y_adj), z_adj)
        result = process_refresh(moved, self.elapsed, self.third, self.axis, LAT)

        self.assertAlmostEqual(result.alt_adjustment, y_adj, delta=2 * FIVE_ARCSEC)
        self.assertAlmostEqual(result.az_adjustment, z_adj, delta=2 * FIVE_ARCSEC)

        expected_axis = rotate_around_z(rotate_around_y(self.axis.vector(), y_adj), z_adj)
        self.assertLess(angle_between(result.axis.vector(), expected_axis), 3 * FIVE_ARCSEC)
        az, alt = xyz_to_az_alt(expected_axis)
        self.assertAlmostEqual(result.error.altitude, alt - LAT, delta=3 * FIVE_ARCSEC)

    def test_ignoring_time_would_be_wrong(self):
        """Five minutes of tracking alone must not be reported as an adjustment."""
        result = process_refresh(self.projected, self.elapsed, self.third, self.axis, LAT)
        naive = rotation_angles(self.third, self.projected)
        self.assertGreater(abs(naive[0]) + abs(naive[1]), 0.1)
        self.assertLess(abs(result.az_adjustment) + abs(result.alt_adjustment), 2 * FIVE_ARCSEC)

    def test_inconsistent_refresh_fails(self):
        """A position far outside the knob search range cannot be explained."""
        far = az_alt_to_xyz(200.0, 10.0)
        with self.assertRaises(RotationSearchError):
            process_refresh(far, self.elapsed, self.third, self.axis, LAT)

    def test_southern_hemisphere(self):
        lat = -33.9
        axis = AxisEstimate(azimuth=180.3, altitude=34.1)
        third = az_alt_to_xyz(160.0, 45.0)
        projected = project_forward(third, axis.vector(), 120.0)
        result = process_refresh(projected, 120.0, third, axis, lat, north=False)
        self.assertAlmostEqual(result.error.azimuth, 0.3, delta=2 * FIVE_ARCSEC)
        self.assertAlmostEqual(result.error.altitude, 0.2, delta=2 * FIVE_ARCSEC)


if __name__ == "__main__":
    unittest.main()
