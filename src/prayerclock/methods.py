"""Calculation conventions: twilight angles, Asr school, latitude and rounding rules."""

import math
from dataclasses import dataclass, field, replace
from enum import Enum

from prayerclock.errors import InvalidInputError


class Madhab(str, Enum):
    """School of thought deciding the Asr shadow ratio."""

    SHAFI = "shafi"
    HANAFI = "hanafi"

    @property
    def shadow_ratio(self) -> int:
        return 2 if self is Madhab.HANAFI else 1


class HighLatitudeRule(str, Enum):
    """How much of the night Fajr/Isha may claim when twilight never ends."""

    MIDDLE_OF_THE_NIGHT = "middle_of_the_night"
    SEVENTH_OF_THE_NIGHT = "seventh_of_the_night"
    TWILIGHT_ANGLE = "twilight_angle"


class Rounding(str, Enum):
    NEAREST = "nearest"
    UP = "up"
    NONE = "none"


@dataclass(frozen=True)
class PrayerAdjustments:
    """Per-event offsets in minutes."""

    fajr: int = 0
    sunrise: int = 0
    dhuhr: int = 0
    asr: int = 0
    maghrib: int = 0
    isha: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "fajr": self.fajr,
            "sunrise": self.sunrise,
            "dhuhr": self.dhuhr,
            "asr": self.asr,
            "maghrib": self.maghrib,
            "isha": self.isha,
        }

    def __add__(self, other: "PrayerAdjustments") -> "PrayerAdjustments":
        mine, theirs = self.as_dict(), other.as_dict()
        return PrayerAdjustments(**{k: mine[k] + theirs[k] for k in mine})


@dataclass(frozen=True)
class CalculationParameters:
    """Immutable bundle of everything the formulas need besides place and day."""

    method: str  # Convention name ("MuslimWorldLeague", ...)
    fajr_angle: float  # Sun depression below horizon at Fajr (degrees)
    isha_angle: float  # Sun depression below horizon at Isha (degrees)
    isha_interval: int = 0  # Minutes after Maghrib; 0 = use isha_angle
    maghrib_angle: float | None = None  # Depression for Maghrib, None = sunset
    madhab: Madhab = Madhab.SHAFI
    high_latitude_rule: HighLatitudeRule = HighLatitudeRule.MIDDLE_OF_THE_NIGHT
    method_adjustments: PrayerAdjustments = field(default_factory=PrayerAdjustments)
    adjustments: PrayerAdjustments = field(default_factory=PrayerAdjustments)
    rounding: Rounding = Rounding.NEAREST

    def __post_init__(self) -> None:
        for name in ("fajr_angle", "isha_angle"):
            _check_angle(name, getattr(self, name))
        if self.maghrib_angle is not None:
            _check_angle("maghrib_angle", self.maghrib_angle)
        if self.isha_interval < 0:
            raise InvalidInputError(
                f"isha_interval must be >= 0 minutes, got {self.isha_interval}"
            )
        if self.isha_interval == 0 and self.isha_angle == 0:
            raise InvalidInputError("isha needs either an angle or an interval")
        if self.fajr_angle == 0:
            raise InvalidInputError("fajr_angle must be positive")
        # Enum-typed fields arrive as strings from the environment and the CLI.
        try:
            object.__setattr__(self, "madhab", Madhab(self.madhab))
            object.__setattr__(
                self, "high_latitude_rule", HighLatitudeRule(self.high_latitude_rule)
            )
            object.__setattr__(self, "rounding", Rounding(self.rounding))
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

    def with_madhab(self, madhab: Madhab | str) -> "CalculationParameters":
        return replace(self, madhab=Madhab(madhab))

    def with_rule(self, rule: HighLatitudeRule | str) -> "CalculationParameters":
        return replace(self, high_latitude_rule=HighLatitudeRule(rule))

    def total_adjustments(self) -> PrayerAdjustments:
        return self.method_adjustments + self.adjustments

    def night_portions(self) -> tuple[float, float]:
        """Return the (fajr, isha) fractions of the night used as safe bounds."""
        if self.high_latitude_rule is HighLatitudeRule.SEVENTH_OF_THE_NIGHT:
            return 1 / 7, 1 / 7
        if self.high_latitude_rule is HighLatitudeRule.TWILIGHT_ANGLE:
            return self.fajr_angle / 60, self.isha_angle / 60
        return 1 / 2, 1 / 2

    def fingerprint(self) -> str:
        """Stable text identity used inside cache keys."""
        adj = self.total_adjustments().as_dict()
        return "|".join(
            [
                self.method,
                f"{self.fajr_angle:g}",
                f"{self.isha_angle:g}",
                str(self.isha_interval),
                "-" if self.maghrib_angle is None else f"{self.maghrib_angle:g}",
                self.madhab.value,
                self.high_latitude_rule.value,
                ",".join(str(adj[k]) for k in adj),
                self.rounding.value,
            ]
        )


def _check_angle(name: str, value: float) -> None:
    if not math.isfinite(value) or not 0 <= value < 90:
        raise InvalidInputError(f"{name} must be within [0, 90) degrees, got {value}")


class CalculationMethod(str, Enum):
    """Named conventions published by the bodies that use them."""

    MUSLIM_WORLD_LEAGUE = "MuslimWorldLeague"
    EGYPTIAN = "Egyptian"
    KARACHI = "Karachi"
    UMM_AL_QURA = "UmmAlQura"
    DUBAI = "Dubai"
    QATAR = "Qatar"
    KUWAIT = "Kuwait"
    NORTH_AMERICA = "NorthAmerica"
    SINGAPORE = "Singapore"
    TEHRAN = "Tehran"
    TURKEY = "Turkey"

    @classmethod
    def parse(cls, name: str) -> "CalculationMethod":
        """Look up a method by value or member name, ignoring case and separators."""
        wanted = name.replace("_", "").replace("-", "").replace(" ", "").lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.replace("_", "").lower()):
                return member
        raise InvalidInputError(f"Unknown calculation method: {name}")

    def parameters(
        self,
        madhab: Madhab | str = Madhab.SHAFI,
        high_latitude_rule: HighLatitudeRule | str = "middle_of_the_night",
        adjustments: PrayerAdjustments | None = None,
    ) -> CalculationParameters:
        conf = _METHODS[self]
        return CalculationParameters(
            method=self.value,
            fajr_angle=conf["fajr"],
            isha_angle=conf.get("isha", 0.0),
            isha_interval=conf.get("isha_interval", 0),
            maghrib_angle=conf.get("maghrib"),
            madhab=Madhab(madhab),
            high_latitude_rule=HighLatitudeRule(high_latitude_rule),
            method_adjustments=conf.get("adjust", PrayerAdjustments()),
            adjustments=adjustments or PrayerAdjustments(),
            rounding=conf.get("rounding", Rounding.NEAREST),
        )


_METHODS: dict[CalculationMethod, dict] = {
    CalculationMethod.MUSLIM_WORLD_LEAGUE: {
        "fajr": 18.0,
        "isha": 17.0,
        "adjust": PrayerAdjustments(dhuhr=1),
    },
    CalculationMethod.EGYPTIAN: {
        "fajr": 19.5,
        "isha": 17.5,
        "adjust": PrayerAdjustments(dhuhr=1),
    },
    CalculationMethod.KARACHI: {
        "fajr": 18.0,
        "isha": 18.0,
        "adjust": PrayerAdjustments(dhuhr=1),
    },
    CalculationMethod.UMM_AL_QURA: {"fajr": 18.5, "isha_interval": 90},
    CalculationMethod.DUBAI: {
        "fajr": 18.2,
        "isha": 18.2,
        "adjust": PrayerAdjustments(sunrise=-3, dhuhr=3, asr=3, maghrib=3),
    },
    CalculationMethod.QATAR: {"fajr": 18.0, "isha_interval": 90},
    CalculationMethod.KUWAIT: {"fajr": 18.0, "isha": 17.5},
    CalculationMethod.NORTH_AMERICA: {
        "fajr": 15.0,
        "isha": 15.0,
        "adjust": PrayerAdjustments(dhuhr=1),
    },
    CalculationMethod.SINGAPORE: {
        "fajr": 20.0,
        "isha": 18.0,
        "adjust": PrayerAdjustments(dhuhr=1),
        "rounding": Rounding.UP,
    },
    CalculationMethod.TEHRAN: {"fajr": 17.7, "isha": 14.0, "maghrib": 4.5},
    CalculationMethod.TURKEY: {
        "fajr": 18.0,
        "isha": 17.0,
        "adjust": PrayerAdjustments(sunrise=-7, dhuhr=5, asr=4, maghrib=7),
    },
}


def default_parameters() -> CalculationParameters:
    """Muslim World League angles with the Shafi Asr ratio."""
    return CalculationMethod.MUSLIM_WORLD_LEAGUE.parameters(madhab=Madhab.SHAFI)
