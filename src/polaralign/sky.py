"""
Observer location, time handling and conversion between J2000 equatorial
and local horizontal coordinates.

The conversions are done by ephem, so horizontal positions are apparent
places (precession, nutation and aberration applied). Refraction is not
applied: the solver works with geometric positions.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import math

import ephem


@dataclass(frozen=True)
class GeoLocation:
    """Observer position. Longitude is positive east, all values in degrees/meters."""

    latitude: float
    longitude: float
    elevation: float = 0.0

    @property
    def northern(self) -> bool:
        return self.latitude > 0


@dataclass(frozen=True)
class SkyDirection:
    """
    A sky position at a given time and place.

    ra0/dec0 are J2000, ra/dec are the apparent place of date, az/alt are
    local horizontal coordinates, all in degrees.
    """

    ra0: float
    dec0: float
    ra: float
    dec: float
    az: float
    alt: float
    time: datetime


def to_utc(when: datetime) -> datetime:
    """Returns a naive UTC datetime. Naive inputs are taken to be UTC already."""
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def seconds_between(start: datetime, end: datetime) -> float:
    return (to_utc(end) - to_utc(start)).total_seconds()


def make_observer(location: GeoLocation, when: datetime) -> ephem.Observer:
    observer = ephem.Observer()
    observer.lat = str(location.latitude)
    observer.lon = str(location.longitude)
    observer.elevation = float(location.elevation)
    observer.date = ephem.Date(to_utc(when))
    # radec_of() answers in J2000, no refraction
    observer.epoch = ephem.J2000
    observer.pressure = 0
    return observer


def _compute(observer: ephem.Observer, ra0: float, dec0: float) -> ephem.FixedBody:
    body = ephem.FixedBody()
    body._ra = math.radians(ra0)
    body._dec = math.radians(dec0)
    body._epoch = ephem.J2000
    body.compute(observer)
    return body


def _radec_of(observer: ephem.Observer, az: float, alt: float):
    ra, dec = observer.radec_of(math.radians(az), math.radians(alt))
    return math.degrees(float(ra)), math.degrees(float(dec))


def _direction(body, ra0, dec0, when) -> SkyDirection:
    return SkyDirection(
        ra0=ra0 % 360.0,
        dec0=dec0,
        ra=math.degrees(float(body.ra)),
        dec=math.degrees(float(body.dec)),
        az=math.degrees(float(body.az)) % 360.0,
        alt=math.degrees(float(body.alt)),
        time=to_utc(when),
    )


def horizontal_from_j2000(
    ra0: float, dec0: float, when: datetime, location: GeoLocation
) -> SkyDirection:
    """Where a J2000 position appears at the given time and place."""
    body = _compute(make_observer(location, when), ra0, dec0)
    return _direction(body, ra0, dec0, when)


def j2000_from_horizontal(
    az: float, alt: float, when: datetime, location: GeoLocation
) -> SkyDirection:
    """
    The J2000 position seen at az/alt at the given time and place.

    ephem's radec_of() removes nutation and aberration only approximately,
    so its answer is corrected once by its own error at the position it
    points to. This keeps the two conversions inverse to each other.
    """
    observer = make_observer(location, when)
    ra0, dec0 = _radec_of(observer, az, alt)

    seen = _compute(observer, ra0, dec0)
    ra1, dec1 = _radec_of(observer, math.degrees(float(seen.az)), math.degrees(float(seen.alt)))
    ra0 -= (ra1 - ra0 + 180.0) % 360.0 - 180.0
    dec0 -= dec1 - dec0

    return _direction(_compute(observer, ra0, dec0), ra0, dec0, when)
