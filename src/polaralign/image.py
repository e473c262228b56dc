"""
Plate-solved images as seen by the solver.

Plate solving itself happens elsewhere; the solver only needs the capture
time and the pixel <-> J2000 mapping of each image.
"""

from datetime import datetime
import math
from typing import Optional, Protocol, Tuple

import numpy as np
from astropy.wcs import WCS, NoConvergence

Pixel = Tuple[float, float]


class SolvedImage(Protocol):
    """An image with an astrometric solution."""

    width: int
    height: int
    time: datetime

    def pixel_to_world(self, x: float, y: float) -> Optional[Tuple[float, float]]:
        """J2000 (ra, dec) in degrees of a pixel, or None if unavailable."""
        ...

    def world_to_pixel(self, ra: float, dec: float) -> Optional[Pixel]:
        """Pixel of a J2000 (ra, dec) position, or None if unavailable."""
        ...


def image_center(image: SolvedImage) -> Pixel:
    return (image.width / 2, image.height / 2)


class WcsImage:
    """
    SolvedImage backed by an astropy WCS solution.

    Positions that project outside the image, or that the WCS cannot
    invert, map to None.
    """

    def __init__(self, wcs: WCS, width: int, height: int, time: datetime):
        self.wcs = wcs
        self.width = width
        self.height = height
        self.time = time

    @classmethod
    def from_header(cls, header, time: datetime) -> "WcsImage":
        """Builds the image from a FITS header holding NAXIS1/2 and the WCS keywords."""
        wcs = WCS(header).celestial
        return cls(wcs, int(header["NAXIS1"]), int(header["NAXIS2"]), time)

    def _inside(self, x: float, y: float) -> bool:
        return -0.5 <= x <= self.width - 0.5 and -0.5 <= y <= self.height - 0.5

    def pixel_to_world(self, x, y):
        if not self._inside(x, y):
            return None
        ra, dec = self.wcs.all_pix2world(x, y, 0)
        ra, dec = float(ra), float(dec)
        if not (math.isfinite(ra) and math.isfinite(dec)):
            return None
        return ra % 360.0, dec

    def world_to_pixel(self, ra, dec):
        try:
            x, y = self.wcs.all_world2pix(ra, dec, 0)
        except NoConvergence:
            return None
        x, y = float(np.asarray(x)), float(np.asarray(y))
        if not (math.isfinite(x) and math.isfinite(y)) or not self._inside(x, y):
            return None
        return x, y
