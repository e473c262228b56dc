import unittest

from polaralign.correction import (
    PointingError,
    axis_to_error,
    normalize_azimuth_error,
    solution_point,
)
from polaralign.pole_axis import AxisEstimate
from polaralign.rotations import angle_between, az_alt_to_xyz, xyz_to_az_alt

LAT = 50.1822


class TestAxisToError(unittest.TestCase):
    def test_aligned_axis(self):
        error = axis_to_error(AxisEstimate(0.0, LAT), LAT, north=True)
        self.assertAlmostEqual(error.azimuth, 0.0)
        self.assertAlmostEqual(error.altitude, 0.0)

    def test_altitude_error(self):
        error = axis_to_error(AxisEstimate(0.0, LAT + 1.0), LAT, north=True)
        self.assertAlmostEqual(error.azimuth, 0.0)
        self.assertAlmostEqual(error.altitude, 1.0)

    def test_azimuth_normalized(self):
        """An axis west of the pole gives a negative azimuth error."""
        error = axis_to_error(AxisEstimate(359.0, LAT - 0.5), LAT, north=True)
        self.assertAlmostEqual(error.azimuth, -1.0)
        self.assertAlmostEqual(error.altitude, -0.5)

    def test_southern_hemisphere(self):
        lat = -33.9
        error = axis_to_error(AxisEstimate(181.0, 34.4), lat, north=False)
        self.assertAlmostEqual(error.azimuth, 1.0)
        self.assertAlmostEqual(error.altitude, 0.5)

        error = axis_to_error(AxisEstimate(179.0, 33.9), lat, north=False)
        self.assertAlmostEqual(error.azimuth, -1.0)
        self.assertAlmostEqual(error.altitude, 0.0)

    def test_normalize_azimuth_error(self):
        self.assertEqual(normalize_azimuth_error(180.0), 180.0)
        self.assertEqual(normalize_azimuth_error(181.0), -179.0)
        self.assertEqual(normalize_azimuth_error(539.0), 179.0)
        self.assertEqual(normalize_azimuth_error(-10.0), -10.0)

    def test_total(self):
        self.assertAlmostEqual(PointingError(3.0, 4.0).total, 5.0)


class TestSolutionPoint(unittest.TestCase):
    """
    Verification of the pointing correction.

    The correction rotations, applied to the mount axis itself, must bring it
    to the pole.
    """

    def _residual(self, az_error, alt_error):
        axis = AxisEstimate(az_error % 360.0, LAT + alt_error)
        error = axis_to_error(axis, LAT, north=True)
        corrected, _ = solution_point(axis.vector(), error)
        return angle_between(corrected, az_alt_to_xyz(0.0, LAT))

    def test_altitude_only_error(self):
        self.assertLess(self._residual(0.0, 0.7), 1e-9)

    def test_azimuth_only_error(self):
        self.assertLess(self._residual(-0.6, 0.0), 1e-9)

    def test_combined_error(self):
        """
        Description:
            Applies the correction to an axis with both error components.

        Methodology:
            The altitude rotation is not exactly an altitude change away from
            the meridian, so a small second order residual is expected.

        Expected Results:
            - The corrected axis lies within 0.01 degrees of the pole.
        """
        self.assertLess(self._residual(0.5, 0.3), 0.01)
        self.assertLess(self._residual(-0.4, -0.8), 0.01)

    def test_alt_only_variant(self):
        third = az_alt_to_xyz(0.0, 60.0)
        solution, alt_only = solution_point(third, PointingError(2.0, 1.0))
        az, alt = xyz_to_az_alt(alt_only)
        self.assertAlmostEqual(az, 0.0)
        self.assertAlmostEqual(alt, 59.0)
        az, alt = xyz_to_az_alt(solution)
        self.assertAlmostEqual(az, 358.0)
        self.assertAlmostEqual(alt, 59.0)


if __name__ == "__main__":
    unittest.main()
