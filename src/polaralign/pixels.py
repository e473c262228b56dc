"""
Pixel-space guidance for the "move the star" workflow.

A polar alignment error is a rotation of the sky around the observer. How
that rotation moves a star across an image depends on where the star is and
on the image's WCS, so corrections are found by mapping pixels through the
sky and back, and the inverse problem is solved by grid search.
"""

import logging
import math

import numpy as np

from .correction import PointingError
from .errors import MappingUnavailableError, RotationSearchError
from .image import Pixel, SolvedImage
from .rotations import rotate_ra_axis
from .search import GridPass, coarse_to_fine
from .sky import GeoLocation, SkyDirection, horizontal_from_j2000, j2000_from_horizontal

logger = logging.getLogger(__name__)

MAX_PIXEL_DISTANCE = 10.0  # pixels
MIN_SEARCH_RANGE = 2.0
MAX_SEARCH_RANGE = 10.0


def clamp_search_range(degrees: float) -> float:
    """Limits how far pixel_error searches to [2, 10] degrees."""
    return max(MIN_SEARCH_RANGE, min(MAX_SEARCH_RANGE, abs(degrees)))


def pixel_to_sky(image: SolvedImage, pixel: Pixel, location: GeoLocation) -> SkyDirection:
    """
    Horizontal coordinates of a pixel at the image's capture time.

    Raises:
        MappingUnavailableError: The image has no solution for that pixel.
    """
    world = image.pixel_to_world(*pixel)
    if world is None:
        raise MappingUnavailableError(
            f"No sky position for pixel ({pixel[0]:.1f}, {pixel[1]:.1f})"
        )
    return horizontal_from_j2000(world[0], world[1], image.time, location)


def sky_to_pixel(
    image: SolvedImage, az: float, alt: float, location: GeoLocation
) -> Pixel:
    """
    Pixel showing az/alt at the image's capture time.

    Raises:
        MappingUnavailableError: The position is not on the image.
    """
    direction = j2000_from_horizontal(az, alt, image.time, location)
    pixel = image.world_to_pixel(direction.ra0, direction.dec0)
    if pixel is None:
        logger.debug(
            "Couldn't get pixel from WCS for az %s alt %s with J2000 RA %.4f DEC %.4f",
            az,
            alt,
            direction.ra0,
            direction.dec0,
        )
        raise MappingUnavailableError(f"Az {az:.3f} Alt {alt:.3f} is not on the image")
    return pixel


def find_corrected_pixel(
    image: SolvedImage,
    pixel: Pixel,
    az_offset: float,
    alt_offset: float,
    location: GeoLocation,
) -> Pixel:
    """
    Where the star at pixel should be moved to remove the given error.

    The rotation models turning the altitude knob and then the azimuth knob,
    which is not a great circle move, so the pole's offsets cannot simply be
    added to the star's position.

    Raises:
        MappingUnavailableError: pixel or its corrected position is not on the image.
    """
    point = pixel_to_sky(image, pixel, location)
    return _corrected_pixel(image, point, az_offset, alt_offset, location)


def _corrected_pixel(image, point, az_offset, alt_offset, location):
    alt_rotation = alt_offset if location.northern else -alt_offset
    az, alt = rotate_ra_axis((point.az, point.alt), (az_offset, alt_rotation))
    return sky_to_pixel(image, az, alt, location)


def pixel_error(
    image: SolvedImage,
    pixel: Pixel,
    pixel2: Pixel,
    location: GeoLocation,
    search_range: float = MIN_SEARCH_RANGE,
) -> PointingError:
    """
    The error that moving a star from pixel to pixel2 would correct.

    While the user walks the star towards the corrected position this gives
    the error that is left. Searches offsets with find_corrected_pixel in
    three passes of decreasing range and step.

    Raises:
        MappingUnavailableError: No candidate offset maps onto the image.
        RotationSearchError: The best candidate misses pixel2 by more than
            MAX_PIXEL_DISTANCE pixels.
    """
    target = np.array(pixel2, dtype=float)
    point = pixel_to_sky(image, pixel, location)

    def distance_sq(az_offsets, alt_offsets):
        az_offsets, alt_offsets = np.broadcast_arrays(az_offsets, alt_offsets)
        costs = np.full(az_offsets.shape, np.nan)
        for idx in np.ndindex(az_offsets.shape):
            try:
                pix = _corrected_pixel(
                    image, point, az_offsets[idx], alt_offsets[idx], location
                )
            except MappingUnavailableError:
                continue
            costs[idx] = (pix[0] - target[0]) ** 2 + (pix[1] - target[1]) ** 2
        return costs

    passes = [
        GridPass(search_range, 0.2),
        GridPass(0.2, 0.02),
        GridPass(0.02, 0.002),
    ]
    best = coarse_to_fine(distance_sq, passes, inclusive=False)
    if best is None:
        raise MappingUnavailableError("No search candidate maps onto the image")

    pixel_distance = math.sqrt(best.cost)
    if pixel_distance > MAX_PIXEL_DISTANCE:
        logger.info("Pixel search: best match is %.1f pixels away", pixel_distance)
        raise RotationSearchError(
            f"No az/alt offset moves the star to the target ({pixel_distance:.1f} px off)"
        )
    return PointingError(azimuth=best.a, altitude=best.b)
