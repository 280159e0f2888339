"""Exception taxonomy for prayer-time computation and its collaborators."""


class PrayerTimeError(Exception):
    """Base class for all prayerclock errors."""


class InvalidInputError(PrayerTimeError, ValueError):
    """Coordinates, parameters or instants the engine refuses to compute with."""


class NoSolutionError(PrayerTimeError):
    """A prayer time cannot be placed on the requested day.

    Raised for polar day or night (no sunrise, sunset or transit) and when
    offsets and rounding leave the six events out of day order.
    """

    def __init__(
        self, event: str, lat: float, day: object, reason: str | None = None
    ) -> None:
        message = f"No {event} on {day} at latitude {lat:.4f}"
        super().__init__(f"{message}: {reason}" if reason else message)
        self.event = event
        self.lat = lat
        self.day = day


class LocationUnavailableError(PrayerTimeError):
    """Geocoder or timezone lookup could not produce a location."""


class ConfigError(PrayerTimeError):
    """Unrecognized value in the environment configuration."""
