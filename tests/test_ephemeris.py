from datetime import date

import pytest

from prayerclock import compute, ephemeris
from prayerclock.methods import default_parameters
from prayerclock.models import GeoCoordinate

pytestmark = pytest.mark.skipif(
    not ephemeris.ephemeris_available(),
    reason="de421.bsp not present in resources/",
)


def test_skyfield_backend_agrees_with_formula():
    lahore = GeoCoordinate(lat=31.5204, lon=74.3587)
    day = date(2024, 6, 15)
    params = default_parameters()

    precise = ephemeris.calculate_prayer_times(lahore, day, params)
    approx = compute.calculate_prayer_times(lahore, day, params)

    for kind, instant in approx.items():
        assert abs((precise[kind] - instant).total_seconds()) <= 120, kind
