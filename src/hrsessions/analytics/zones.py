"""Heart-rate zone model.

Five contiguous bands derived from a maximum heart rate, each bound being a
fixed fraction of max HR rounded to the nearest whole beat.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from hrsessions.config import DEFAULT_ZONE_FRACTIONS


ZONE_KEYS = ("Z1", "Z2", "Z3", "Z4", "Z5")
ZONE_LABELS = ("Recovery", "Aerobic", "Anaerobic", "VO2 Max", "Neuromuscular")


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with ties going up (``round(2.5) == 3``), unlike built-in round."""
    factor = 10 ** ndigits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if ndigits == 0 else rounded


@dataclass(frozen=True)
class ZoneBand:
    """One heart-rate zone, ``lower_bound <= hr < upper_bound``."""

    index: int  # 1..5
    label: str
    lower_bound: int
    upper_bound: int

    @property
    def key(self) -> str:
        return ZONE_KEYS[self.index - 1]


@dataclass(frozen=True)
class ZoneModel:
    """Zones Z1..Z5 for a given max heart rate, lowest first."""

    max_heart_rate: int
    zones: tuple[ZoneBand, ...]

    def __getitem__(self, key: str) -> ZoneBand:
        return self.zones[ZONE_KEYS.index(key)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "maxHeartRate": self.max_heart_rate,
            "zones": {
                z.key: {"min": z.lower_bound, "max": z.upper_bound, "name": z.label}
                for z in self.zones
            },
        }


def zones_for(
    max_heart_rate: int,
    fractions: Sequence[float] = DEFAULT_ZONE_FRACTIONS,
) -> ZoneModel:
    """Build the zone model for *max_heart_rate*.

    Args:
        max_heart_rate: Max HR (bpm) the bands are scaled to.
        fractions: Lower bound of Z1..Z5 as a fraction of max HR.  Each
            zone's upper bound is the next zone's lower bound; Z5 ends at
            max HR.
    """
    uppers = list(fractions[1:]) + [1.0]
    bands = tuple(
        ZoneBand(
            index=i + 1,
            label=ZONE_LABELS[i],
            lower_bound=round_half_up(max_heart_rate * lo),
            upper_bound=round_half_up(max_heart_rate * hi),
        )
        for i, (lo, hi) in enumerate(zip(fractions, uppers))
    )
    return ZoneModel(max_heart_rate=max_heart_rate, zones=bands)


def zone_of(heart_rate: float | None, model: ZoneModel) -> ZoneBand | None:
    """Return the zone *heart_rate* falls in, or None below Z1.

    Bands are checked highest first so a value at or above Z5's lower bound
    (including anything over max HR) lands in Z5.
    """
    if heart_rate is None or heart_rate <= 0:
        return None
    for band in reversed(model.zones):
        if heart_rate >= band.lower_bound:
            return band
    return None
