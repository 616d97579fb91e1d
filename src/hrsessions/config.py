"""Analysis profile: detection thresholds, zone fractions and calorie rates.

Every tunable the engine uses lives in an :class:`AnalysisProfile`, which is
passed explicitly to the pipeline.  Module-level constants only provide the
defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace as dc_replace
from pathlib import Path
from typing import Any, Sequence

from hrsessions.errors import ConfigError


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

MIN_SESSION_MINUTES = 10.0
MAX_GAP_MINUTES = 5.0
MIN_HEART_RATE = 50
MAX_HEART_RATE = 220

# Age-based estimate (220 - 30)
DEFAULT_MAX_HEART_RATE = 190

# Lower bound of Z1..Z5 as a fraction of max HR; Z5 tops out at 1.0
DEFAULT_ZONE_FRACTIONS = (0.50, 0.60, 0.70, 0.80, 0.90)

# kcal per minute spent in Z1..Z5 (rough estimates, not body-mass aware)
DEFAULT_CALORIE_TABLE = (8, 12, 16, 20, 25)

ALLOCATION_MODES = ("uniform", "elapsed")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_number(value: Any, name: str) -> None:
    if not _is_number(value):
        raise ConfigError(f"{name} must be a number, got {value!r}", name)


def _require_numbers(values: Any, name: str) -> tuple[float, ...]:
    # JSON gives lists; strings and mappings are iterable but never valid here
    if not isinstance(values, (list, tuple)):
        raise ConfigError(f"{name} must be a list of numbers, got {values!r}", name)
    if not all(_is_number(v) for v in values):
        raise ConfigError(f"{name} must hold only numbers, got {list(values)}", name)
    return tuple(values)


@dataclass(frozen=True)
class SessionDetectionConfig:
    """Thresholds used to cut a sample stream into sessions."""

    min_session_minutes: float = MIN_SESSION_MINUTES
    max_gap_minutes: float = MAX_GAP_MINUTES
    min_heart_rate: int = MIN_HEART_RATE
    max_heart_rate: int = MAX_HEART_RATE

    def __post_init__(self) -> None:
        for f in fields(self):
            _require_number(getattr(self, f.name), f.name)
        if self.min_session_minutes < 0:
            raise ConfigError(
                f"min_session_minutes must be >= 0, got {self.min_session_minutes}",
                "min_session_minutes",
            )
        if self.max_gap_minutes < 0:
            raise ConfigError(
                f"max_gap_minutes must be >= 0, got {self.max_gap_minutes}",
                "max_gap_minutes",
            )
        if self.min_heart_rate <= 0:
            raise ConfigError(
                f"min_heart_rate must be positive, got {self.min_heart_rate}",
                "min_heart_rate",
            )
        if self.max_heart_rate < self.min_heart_rate:
            raise ConfigError(
                f"max_heart_rate ({self.max_heart_rate}) is below "
                f"min_heart_rate ({self.min_heart_rate})",
                "max_heart_rate",
            )

    @property
    def min_session_ms(self) -> float:
        return self.min_session_minutes * 60_000

    @property
    def max_gap_ms(self) -> float:
        return self.max_gap_minutes * 60_000


def _check_zone_fractions(fractions: Sequence[float]) -> None:
    if len(fractions) != 5:
        raise ConfigError(
            f"zone_fractions needs 5 values, got {len(fractions)}", "zone_fractions"
        )
    prev = 0.0
    for frac in fractions:
        if not prev < frac <= 1.0:
            raise ConfigError(
                f"zone_fractions must be strictly ascending within (0, 1], got {list(fractions)}",
                "zone_fractions",
            )
        prev = frac


def _check_calorie_table(table: Sequence[float]) -> None:
    if len(table) != 5:
        raise ConfigError(
            f"calorie_table needs 5 values, got {len(table)}", "calorie_table"
        )
    if any(rate < 0 for rate in table):
        raise ConfigError(
            f"calorie_table values must be >= 0, got {list(table)}", "calorie_table"
        )


@dataclass(frozen=True)
class AnalysisProfile:
    """Everything the pipeline needs besides the samples themselves.

    Attributes:
        detection: Session detection thresholds.
        zone_fractions: Lower bound of each zone as a fraction of max HR.
        calorie_table: kcal/min credited for each zone.
        zone_max_heart_rate: Max HR the zone model is derived from.  Kept
            separate from ``detection.max_heart_rate``, which only bounds
            which samples are considered plausible.
        allocation: How session time is spread over samples when counting
            zone minutes: ``"uniform"`` divides the duration evenly across
            samples, ``"elapsed"`` credits each sample with the time until
            the next one.
    """

    detection: SessionDetectionConfig = field(default_factory=SessionDetectionConfig)
    zone_fractions: tuple[float, ...] = DEFAULT_ZONE_FRACTIONS
    calorie_table: tuple[float, ...] = DEFAULT_CALORIE_TABLE
    zone_max_heart_rate: int = DEFAULT_MAX_HEART_RATE
    allocation: str = "uniform"

    def __post_init__(self) -> None:
        if not isinstance(self.detection, SessionDetectionConfig):
            raise ConfigError(
                f"detection must be a SessionDetectionConfig, got {self.detection!r}",
                "detection",
            )
        # Accept lists from JSON / callers but store tuples
        object.__setattr__(
            self, "zone_fractions", _require_numbers(self.zone_fractions, "zone_fractions")
        )
        object.__setattr__(
            self, "calorie_table", _require_numbers(self.calorie_table, "calorie_table")
        )
        _check_zone_fractions(self.zone_fractions)
        _check_calorie_table(self.calorie_table)
        _require_number(self.zone_max_heart_rate, "zone_max_heart_rate")
        if self.zone_max_heart_rate <= 0:
            raise ConfigError(
                f"zone_max_heart_rate must be positive, got {self.zone_max_heart_rate}",
                "zone_max_heart_rate",
            )
        if self.allocation not in ALLOCATION_MODES:
            raise ConfigError(
                f"allocation must be one of {ALLOCATION_MODES}, got {self.allocation!r}",
                "allocation",
            )

    def replace(self, **overrides: Any) -> AnalysisProfile:
        """Return a copy with some settings changed.

        Detection thresholds may be given flat (``max_gap_minutes=3``)
        alongside the profile's own fields.
        """
        detection_keys = {f.name for f in fields(SessionDetectionConfig)}
        detection_overrides = {
            k: overrides.pop(k) for k in list(overrides) if k in detection_keys
        }
        profile_keys = {f.name for f in fields(AnalysisProfile)}
        unknown = set(overrides) - profile_keys
        if unknown:
            name = sorted(unknown)[0]
            raise ConfigError(f"unknown setting {name!r}", name)
        if detection_overrides:
            overrides["detection"] = dc_replace(self.detection, **detection_overrides)
        return dc_replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_session_minutes": self.detection.min_session_minutes,
            "max_gap_minutes": self.detection.max_gap_minutes,
            "min_heart_rate": self.detection.min_heart_rate,
            "max_heart_rate": self.detection.max_heart_rate,
            "zone_max_heart_rate": self.zone_max_heart_rate,
            "zone_fractions": list(self.zone_fractions),
            "calorie_table": list(self.calorie_table),
            "allocation": self.allocation,
        }


DEFAULT_PROFILE = AnalysisProfile()


def load_profile(path: str | Path, base: AnalysisProfile = DEFAULT_PROFILE) -> AnalysisProfile:
    """Load profile overrides from a JSON file.

    The file holds a flat object with any subset of the keys produced by
    :meth:`AnalysisProfile.to_dict`; missing keys keep the *base* values.

    Raises:
        ConfigError: The file is unreadable, not a JSON object, or names
            an unknown or invalid setting.
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read profile {p}: {e}", "profile") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Profile {p} must contain a JSON object", "profile")

    return base.replace(**raw)
