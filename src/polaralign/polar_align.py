"""
Polar Alignment Session

PolarAlign determines an equatorial mount's axis of rotation from three
plate-solved images taken with RA rotations between them, and reports how
far that axis is from the celestial pole.

add_sample() or add_image() is called after each of the three images is
solved. The positions are converted to what is in the sky at the capture
time, at the observer's location. find_axis() then solves for the mount's
axis, and calculate_az_alt_error() turns it into azimuth and altitude
offsets from the pole.

The user then corrects the alignment with the altitude and azimuth knobs
while "refresh images" are taken, in one of two ways:

1. Move the star: the user picks a star, and find_corrected_pixel() tells
   where that star has to be moved on the image. pixel_error() reports the
   error left while the star is on its way.
2. Plate solving: each refresh image is solved and passed to
   process_refresh_coords(), which infers how far the knobs were already
   turned and returns the new error.

Every fallible operation returns a Result instead of raising.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional

from .correction import PointingError, axis_to_error, solution_point
from .errors import (
    InsufficientSamplesError,
    PolarAlignError,
    Result,
    TooManySamplesError,
)
from .image import Pixel, SolvedImage, image_center
from .pixels import clamp_search_range, find_corrected_pixel, pixel_error, pixel_to_sky, sky_to_pixel
from .pole_axis import AxisEstimate, estimate_axis
from .refresh import RefreshResult, process_refresh
from .rotations import az_alt_to_xyz, xyz_to_az_alt
from .sky import (
    GeoLocation,
    SkyDirection,
    horizontal_from_j2000,
    j2000_from_horizontal,
    seconds_between,
    to_utc,
)

logger = logging.getLogger(__name__)

SAMPLES_NEEDED = 3


@dataclass(frozen=True)
class Sample:
    direction: SkyDirection
    time: datetime

    def vector(self):
        return az_alt_to_xyz(self.direction.az, self.direction.alt)


@dataclass(frozen=True)
class Solution:
    """Targets (J2000, at the third sample's time) that remove the error."""

    solution: SkyDirection
    alt_only: SkyDirection


def _attempt(operation, *args, **kwargs) -> Result:
    try:
        return Result.success(operation(*args, **kwargs))
    except PolarAlignError as e:
        logger.info("PAA: %s failed: %s", operation.__name__.lstrip("_"), e)
        return Result.failure(e)


class PolarAlign:
    """
    One polar alignment session.

    Not thread safe; callers serialize access.
    """

    def __init__(self, location: GeoLocation, max_pixel_search_range: float = 2.0):
        self.location = location
        self.samples: List[Sample] = []
        self._axis: Optional[AxisEstimate] = None
        self.max_pixel_search_range = clamp_search_range(max_pixel_search_range)

    @property
    def northern_hemisphere(self) -> bool:
        return self.location.northern

    @property
    def axis(self) -> Optional[AxisEstimate]:
        """The axis from the last successful find_axis(), if any."""
        return self._axis

    def reset(self) -> None:
        """Clears all samples and the axis."""
        self.samples = []
        self._axis = None

    # --- Sampling ---

    def add_sample(self, ra0: float, dec0: float, time: datetime) -> Result[Sample]:
        """Adds the J2000 centre of a solved image captured at time."""
        return _attempt(self._add_sample, ra0, dec0, time)

    def add_image(self, image: SolvedImage) -> Result[Sample]:
        """Adds a solved image, sampled at its centre pixel."""
        return _attempt(self._add_image, image)

    def _add_image(self, image):
        direction = pixel_to_sky(image, image_center(image), self.location)
        return self._append(direction, image.time)

    def _add_sample(self, ra0, dec0, time):
        direction = horizontal_from_j2000(ra0, dec0, time, self.location)
        return self._append(direction, time)

    def _append(self, direction, time):
        if len(self.samples) >= SAMPLES_NEEDED:
            raise TooManySamplesError("Session already has 3 samples, reset first")
        logger.info(
            "PAA: addPoint ra0 %.4f dec0 %.4f ra %.4f dec %.4f az %.4f alt %.4f",
            direction.ra0,
            direction.dec0,
            direction.ra,
            direction.dec,
            direction.az,
            direction.alt,
        )
        sample = Sample(direction, to_utc(time))
        self.samples.append(sample)
        return sample

    def _require_samples(self):
        if len(self.samples) != SAMPLES_NEEDED:
            raise InsufficientSamplesError(
                f"Need {SAMPLES_NEEDED} samples, have {len(self.samples)}"
            )

    def _require_axis(self):
        self._require_samples()
        if self._axis is None:
            raise InsufficientSamplesError("The axis has not been found yet")
        return self._axis

    # --- Axis and error ---

    def find_axis(self) -> Result[AxisEstimate]:
        """Solves for the mount's RA axis from the three samples."""
        return _attempt(self._find_axis)

    def _find_axis(self):
        self._require_samples()
        p1, p2, p3 = (s.vector() for s in self.samples)
        axis = estimate_axis(p1, p2, p3, self.northern_hemisphere)
        self._axis = axis
        logger.info("PAA: axis az %.4f alt %.4f", axis.azimuth, axis.altitude)
        return axis

    def calculate_az_alt_error(self) -> Result[PointingError]:
        return _attempt(self._error)

    def _error(self):
        axis = self._require_axis()
        return axis_to_error(axis, self.location.latitude, self.northern_hemisphere)

    def refresh_solution(self) -> Result[Solution]:
        """
        Where the mount should point, after knob adjustments, for its axis
        to be on the pole. Also returns the target for an altitude-only
        correction.
        """
        return _attempt(self._refresh_solution)

    def _refresh_solution(self):
        error = self._error()
        third = self.samples[2]
        solution_vec, alt_only_vec = solution_point(third.vector(), error)
        return Solution(
            solution=self._direction_at(solution_vec, third.time),
            alt_only=self._direction_at(alt_only_vec, third.time),
        )

    def _direction_at(self, vec, time):
        az, alt = xyz_to_az_alt(vec)
        return j2000_from_horizontal(az, alt, time, self.location)

    # --- Plate solving refresh ---

    def process_refresh_coords(
        self, ra0: float, dec0: float, time: datetime
    ) -> Result[RefreshResult]:
        """
        The error left after the user's knob adjustments, from the J2000
        centre of a refresh image captured at time.
        """
        return _attempt(self._process_refresh_coords, ra0, dec0, time)

    def _process_refresh_coords(self, ra0, dec0, time):
        axis = self._require_axis()
        point = horizontal_from_j2000(ra0, dec0, time, self.location)
        third = self.samples[2]
        return process_refresh(
            az_alt_to_xyz(point.az, point.alt),
            seconds_between(third.time, time),
            third.vector(),
            axis,
            self.location.latitude,
            self.northern_hemisphere,
        )

    # --- Move the star ---

    def set_max_pixel_search_range(self, degrees: float) -> None:
        """Sets how far pixel_error() searches, limited to [2, 10] degrees."""
        self.max_pixel_search_range = clamp_search_range(degrees)

    def find_az_alt(self, image: SolvedImage, azimuth: float, altitude: float) -> Result[Pixel]:
        """The pixel of image showing azimuth/altitude at its capture time."""
        return _attempt(sky_to_pixel, image, azimuth, altitude, self.location)

    def find_corrected_pixel(
        self,
        image: SolvedImage,
        pixel: Pixel,
        az_offset: Optional[float] = None,
        alt_offset: Optional[float] = None,
        alt_only: bool = False,
    ) -> Result[Pixel]:
        """
        Where to move the star at pixel so the axis ends up on the pole.

        The session's current error is used unless offsets are given;
        alt_only ignores the azimuth part.
        """
        return _attempt(
            self._find_corrected_pixel, image, pixel, az_offset, alt_offset, alt_only
        )

    def _find_corrected_pixel(self, image, pixel, az_offset, alt_offset, alt_only):
        if az_offset is None or alt_offset is None:
            error = self._error()
            az_offset = error.azimuth if az_offset is None else az_offset
            alt_offset = error.altitude if alt_offset is None else alt_offset
        if alt_only:
            az_offset = 0.0
        return find_corrected_pixel(image, pixel, az_offset, alt_offset, self.location)

    def pixel_error(self, image: SolvedImage, pixel: Pixel, pixel2: Pixel) -> Result[PointingError]:
        """
        The error corrected by moving the star at pixel to pixel2.

        pixel is the star's current position and pixel2 the corrected
        position from find_corrected_pixel().
        """
        return _attempt(
            pixel_error, image, pixel, pixel2, self.location, self.max_pixel_search_range
        )
