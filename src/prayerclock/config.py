"""Environment-driven settings. Call ``load_dotenv()`` before ``from_env()``."""

import os
from dataclasses import dataclass

from prayerclock.cache import PrayerTimeCache
from prayerclock.engine import BACKENDS, PrayerTimeEngine
from prayerclock.errors import ConfigError, InvalidInputError
from prayerclock.i18n import LANGUAGES
from prayerclock.methods import (
    CalculationMethod,
    CalculationParameters,
    HighLatitudeRule,
    Madhab,
)

_PREFIX = "PRAYERCLOCK_"


@dataclass(frozen=True)
class Settings:
    method: CalculationMethod = CalculationMethod.MUSLIM_WORLD_LEAGUE
    madhab: Madhab = Madhab.SHAFI
    high_latitude_rule: HighLatitudeRule = HighLatitudeRule.MIDDLE_OF_THE_NIGHT
    timezone: str | None = None  # None = look up from coordinates
    lang: str = "en"
    backend: str = "formula"
    cache_size: int | None = None  # None = unbounded
    ephemeris_dir: str | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Read ``PRAYERCLOCK_*`` variables; unset ones keep their defaults.

        Raises:
            ConfigError: A variable holds an unrecognized value.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(_PREFIX + name)
            return value.strip() if value and value.strip() else None

        defaults = cls()
        method = defaults.method
        raw_method = get("METHOD")
        if raw_method is not None:
            try:
                method = CalculationMethod.parse(raw_method)
            except InvalidInputError as exc:
                raise ConfigError(f"{_PREFIX}METHOD: {exc}") from exc
        madhab = _enum(Madhab, "MADHAB", get("MADHAB"), defaults.madhab)
        rule = _enum(
            HighLatitudeRule,
            "HIGH_LATITUDE_RULE",
            get("HIGH_LATITUDE_RULE"),
            defaults.high_latitude_rule,
        )

        lang = get("LANG") or defaults.lang
        if lang not in LANGUAGES:
            raise ConfigError(f"{_PREFIX}LANG must be one of {LANGUAGES}, got {lang!r}")
        backend = get("BACKEND") or defaults.backend
        if backend not in BACKENDS:
            raise ConfigError(
                f"{_PREFIX}BACKEND must be one of {BACKENDS}, got {backend!r}"
            )

        cache_size = defaults.cache_size
        raw_size = get("CACHE_SIZE")
        if raw_size is not None:
            try:
                cache_size = int(raw_size)
            except ValueError as exc:
                raise ConfigError(
                    f"{_PREFIX}CACHE_SIZE is not an integer: {raw_size!r}"
                ) from exc
            if cache_size < 1:
                raise ConfigError(f"{_PREFIX}CACHE_SIZE must be >= 1, got {cache_size}")

        return cls(
            method=method,
            madhab=madhab,
            high_latitude_rule=rule,
            timezone=get("TIMEZONE"),
            lang=lang,
            backend=backend,
            cache_size=cache_size,
            ephemeris_dir=get("EPHEMERIS_DIR"),
        )

    def calculation_parameters(self) -> CalculationParameters:
        return self.method.parameters(
            madhab=self.madhab, high_latitude_rule=self.high_latitude_rule
        )

    def build_engine(self) -> PrayerTimeEngine:
        try:
            return PrayerTimeEngine(
                params=self.calculation_parameters(),
                cache=PrayerTimeCache(max_entries=self.cache_size),
                timezone=self.timezone,
                backend=self.backend,
                lang=self.lang,
                ephemeris_dir=self.ephemeris_dir,
            )
        except InvalidInputError as exc:
            raise ConfigError(str(exc)) from exc


def _enum(enum_cls, name: str, raw: str | None, default):
    if raw is None:
        return default
    try:
        return enum_cls(raw.lower().replace("-", "_"))
    except ValueError as exc:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"{_PREFIX}{name} must be one of: {choices}") from exc
