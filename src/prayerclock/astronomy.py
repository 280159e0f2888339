"""Low-precision solar ephemeris after Meeus, Astronomical Algorithms (2nd ed.)."""

import math
from dataclasses import dataclass
from datetime import date, timedelta

from prayerclock.models import GeoCoordinate

# Geometric altitude of the Sun's centre at rise/set: refraction (34') + radius (16').
SUNRISE_ALTITUDE = -50 / 60


def _sin(deg: float) -> float:
    return math.sin(math.radians(deg))


def _cos(deg: float) -> float:
    return math.cos(math.radians(deg))


def unwind_angle(angle: float) -> float:
    """Normalize to [0, 360)."""
    return angle % 360


def quadrant_shift_angle(angle: float) -> float:
    """Normalize to [-180, 180]."""
    if -180 <= angle <= 180:
        return angle
    return angle - 360 * round(angle / 360)


def julian_day(year: int, month: int, day: int, hours: float = 0.0) -> float:
    """Julian day for a Gregorian calendar date (Meeus 7.1)."""
    y = year if month > 2 else year - 1
    m = month if month > 2 else month + 12
    d = day + hours / 24
    a = int(y / 100)
    b = int(2 - a + int(a / 4))
    i0 = int(365.25 * (y + 4716))
    i1 = int(30.6001 * (m + 1))
    return i0 + i1 + d + b - 1524.5


def julian_century(jd: float) -> float:
    return (jd - 2451545.0) / 36525


def mean_solar_longitude(t: float) -> float:
    return unwind_angle(280.4664567 + 36000.76983 * t + 0.0003032 * t**2)


def mean_lunar_longitude(t: float) -> float:
    return unwind_angle(218.3165 + 481267.8813 * t)


def ascending_lunar_node_longitude(t: float) -> float:
    return unwind_angle(
        125.04452 - 1934.136261 * t + 0.0020708 * t**2 + t**3 / 450000
    )


def mean_solar_anomaly(t: float) -> float:
    return unwind_angle(357.52911 + 35999.05029 * t - 0.0001537 * t**2)


def solar_equation_of_the_center(t: float, mean_anomaly: float) -> float:
    m = mean_anomaly
    return (
        (1.914602 - 0.004817 * t - 0.000014 * t**2) * _sin(m)
        + (0.019993 - 0.000101 * t) * _sin(2 * m)
        + 0.000289 * _sin(3 * m)
    )


def apparent_solar_longitude(t: float, mean_longitude: float) -> float:
    true_longitude = mean_longitude + solar_equation_of_the_center(
        t, mean_solar_anomaly(t)
    )
    omega = 125.04 - 1934.136 * t
    return unwind_angle(true_longitude - 0.00569 - 0.00478 * _sin(omega))


def mean_obliquity_of_the_ecliptic(t: float) -> float:
    return 23.439291 - 0.013004167 * t - 0.0000001639 * t**2 + 0.0000005036 * t**3


def apparent_obliquity_of_the_ecliptic(t: float, mean_obliquity: float) -> float:
    omega = 125.04 - 1934.136 * t
    return mean_obliquity + 0.00256 * _cos(omega)


def mean_sidereal_time(t: float) -> float:
    jd = t * 36525 + 2451545.0
    theta = (
        280.46061837
        + 360.98564736629 * (jd - 2451545)
        + 0.000387933 * t**2
        - t**3 / 38710000
    )
    return unwind_angle(theta)


def nutation_in_longitude(solar_lon: float, lunar_lon: float, node: float) -> float:
    return (
        (-17.2 / 3600) * _sin(node)
        - (1.32 / 3600) * _sin(2 * solar_lon)
        - (0.23 / 3600) * _sin(2 * lunar_lon)
        + (0.21 / 3600) * _sin(2 * node)
    )


def nutation_in_obliquity(solar_lon: float, lunar_lon: float, node: float) -> float:
    return (
        (9.2 / 3600) * _cos(node)
        + (0.57 / 3600) * _cos(2 * solar_lon)
        + (0.10 / 3600) * _cos(2 * lunar_lon)
        - (0.09 / 3600) * _cos(2 * node)
    )


def altitude_of_celestial_body(lat: float, declination: float, hour_angle: float):
    return math.degrees(
        math.asin(
            _sin(lat) * _sin(declination)
            + _cos(lat) * _cos(declination) * _cos(hour_angle)
        )
    )


def interpolate(y2: float, y1: float, y3: float, n: float) -> float:
    """Three-point interpolation around y2 (Meeus 3.3)."""
    a = y2 - y1
    b = y3 - y2
    c = b - a
    return y2 + (n / 2) * (a + b + n * c)


def interpolate_angles(y2: float, y1: float, y3: float, n: float) -> float:
    a = unwind_angle(y2 - y1)
    b = unwind_angle(y3 - y2)
    c = b - a
    return y2 + (n / 2) * (a + b + n * c)


@dataclass(frozen=True)
class SolarCoordinates:
    """Apparent position of the Sun at 0h UT of a Julian day."""

    declination: float  # degrees
    right_ascension: float  # degrees
    apparent_sidereal_time: float  # degrees

    @classmethod
    def at(cls, jd: float) -> "SolarCoordinates":
        t = julian_century(jd)
        l0 = mean_solar_longitude(t)
        lp = mean_lunar_longitude(t)
        omega = ascending_lunar_node_longitude(t)
        lam = math.radians(apparent_solar_longitude(t, l0))
        theta0 = mean_sidereal_time(t)
        d_psi = nutation_in_longitude(l0, lp, omega)
        d_eps = nutation_in_obliquity(l0, lp, omega)
        eps0 = mean_obliquity_of_the_ecliptic(t)
        eps_app = math.radians(apparent_obliquity_of_the_ecliptic(t, eps0))

        return cls(
            declination=math.degrees(math.asin(math.sin(eps_app) * math.sin(lam))),
            right_ascension=unwind_angle(
                math.degrees(
                    math.atan2(math.cos(eps_app) * math.sin(lam), math.cos(lam))
                )
            ),
            apparent_sidereal_time=theta0
            + (d_psi * 3600 * _cos(eps0 + d_eps)) / 3600,
        )


class SolarTime:
    """Sun transit and horizon crossings for one UT calendar day at one place.

    Every time is returned as fractional hours after 0h UT of ``day``; values
    outside 0..24 belong to the neighbouring UT day. A crossing that never
    happens is NaN.
    """

    def __init__(self, day: date, coordinate: GeoCoordinate) -> None:
        jd = julian_day(day.year, day.month, day.day)
        self.day = day
        self.observer = coordinate
        self.solar = SolarCoordinates.at(jd)
        self.prev_solar = SolarCoordinates.at(jd - 1)
        self.next_solar = SolarCoordinates.at(jd + 1)

        self.approx_transit = self._approximate_transit()
        self.transit = self._corrected_transit()
        self.sunrise = self.hour_angle(SUNRISE_ALTITUDE, after_transit=False)
        self.sunset = self.hour_angle(SUNRISE_ALTITUDE, after_transit=True)

    def _approximate_transit(self) -> float:
        lw = -self.observer.lon
        return (
            (self.solar.right_ascension + lw - self.solar.apparent_sidereal_time) / 360
        ) % 1

    def _corrected_transit(self) -> float:
        m0 = self.approx_transit
        lw = -self.observer.lon
        theta = unwind_angle(self.solar.apparent_sidereal_time + 360.985647 * m0)
        alpha = unwind_angle(
            interpolate_angles(
                self.solar.right_ascension,
                self.prev_solar.right_ascension,
                self.next_solar.right_ascension,
                m0,
            )
        )
        h = quadrant_shift_angle(theta - lw - alpha)
        return (m0 - h / 360) * 24

    def hour_angle(self, altitude: float, after_transit: bool) -> float:
        """Hours (UT) at which the Sun's centre sits at ``altitude`` degrees."""
        m0 = self.approx_transit
        lat = self.observer.lat
        lw = -self.observer.lon
        dec = self.solar.declination

        cos_h0 = (_sin(altitude) - _sin(lat) * _sin(dec)) / (_cos(lat) * _cos(dec))
        if not -1 <= cos_h0 <= 1:
            return math.nan
        h0 = math.degrees(math.acos(cos_h0))
        m = m0 + h0 / 360 if after_transit else m0 - h0 / 360

        theta = unwind_angle(self.solar.apparent_sidereal_time + 360.985647 * m)
        alpha = unwind_angle(
            interpolate_angles(
                self.solar.right_ascension,
                self.prev_solar.right_ascension,
                self.next_solar.right_ascension,
                m,
            )
        )
        delta = interpolate(
            dec, self.prev_solar.declination, self.next_solar.declination, m
        )
        h = theta - lw - alpha
        alt = altitude_of_celestial_body(lat, delta, h)
        dm = (alt - altitude) / (360 * _cos(delta) * _cos(lat) * _sin(h))
        return (m + dm) * 24

    def afternoon(self, shadow_ratio: float) -> float:
        """Hours (UT) when a shadow is ``shadow_ratio`` heights longer than at noon."""
        tangent = abs(self.observer.lat - self.solar.declination)
        inverse = shadow_ratio + math.tan(math.radians(tangent))
        angle = math.degrees(math.atan(1 / inverse))
        return self.hour_angle(angle, after_transit=True)


def hours_to_timedelta(hours: float) -> timedelta:
    """Split fractional hours into whole seconds the way a clock reads them."""
    h = math.floor(hours)
    minutes = math.floor((hours - h) * 60)
    seconds = math.floor((hours - (h + minutes / 60)) * 3600)
    return timedelta(hours=h, minutes=minutes, seconds=seconds)
