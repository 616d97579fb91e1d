"""Per-session training metrics.

Turns one :class:`SessionCandidate` into a :class:`SessionRecord`: average
heart rate, time in zone, a zone-based calorie estimate, fat-burn / cardio
split, heart-rate spread and two simple load scores.

Nothing here raises for in-range input.  A metric that cannot be computed
is None.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

import numpy as np

from hrsessions.analytics.segmenter import SessionCandidate
from hrsessions.analytics.zones import ZONE_KEYS, ZoneModel, round_half_up, zone_of
from hrsessions.config import DEFAULT_CALORIE_TABLE


class Unmodeled(Enum):
    """Marker for output fields that have no model behind them yet."""

    NOT_MODELED = "not_modeled"

    def __repr__(self) -> str:
        return "NOT_MODELED"


NOT_MODELED = Unmodeled.NOT_MODELED


@dataclass(frozen=True)
class SessionRecord:
    """Summary of one detected exercise session."""

    activity: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    avg_heart_rate: int | None
    calories_estimate: float | None
    zone_minutes: dict[str, int]  # Z1..Z5 → minutes
    intensity_score: int | None  # avg HR as % of max
    training_load_score: int | None  # duration × relative intensity
    fat_burn_ratio: float  # Z1+Z2 share of active minutes
    cardio_ratio: float  # Z3..Z5 share of active minutes
    heart_rate_std_dev: float | None
    sample_count: int = 0
    recovery_drop: float | Unmodeled = NOT_MODELED
    warmup_duration: float | Unmodeled = NOT_MODELED

    def __repr__(self) -> str:
        avg = f"{self.avg_heart_rate}bpm" if self.avg_heart_rate is not None else "n/a"
        return (
            f"SessionRecord({self.activity}, "
            f"start={self.start_time.isoformat()}, "
            f"dur={self.duration_minutes}min, "
            f"avg={avg}, "
            f"cal≈{self.calories_estimate or 0:.0f})"
        )


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def population_std_dev(values: Sequence[float]) -> float | None:
    """Standard deviation dividing by N (not N-1).

    The session is treated as the whole population of its readings rather
    than a sample drawn from a larger one.  Returns None for fewer than two
    values.
    """
    if len(values) < 2:
        return None
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))


def _per_sample_ms(candidate: SessionCandidate, allocation: str) -> list[float]:
    """Time (ms) credited to each sample when filling zone buckets."""
    samples = candidate.samples
    n = len(samples)
    if n == 0:
        return []

    if allocation == "elapsed":
        stamps = [s.epoch_ms for s in samples]
        # Last sample closes the session and gets no time of its own
        return [float(d) for d in np.diff(stamps)] + [0.0]

    if n == 1:
        # A lone sample is credited one second
        return [1000.0]
    return [candidate.span_ms / n] * n


def zone_minutes(
    candidate: SessionCandidate,
    zone_model: ZoneModel,
    allocation: str = "uniform",
) -> dict[str, int]:
    """Minutes spent in each zone, each total rounded on its own.

    With ``allocation="uniform"`` the session duration is split evenly over
    all samples, which is only accurate for evenly spaced data.
    ``allocation="elapsed"`` credits each sample with the time until the
    next sample instead.
    """
    totals_ms = {key: 0.0 for key in ZONE_KEYS}
    for sample, ms in zip(candidate.samples, _per_sample_ms(candidate, allocation)):
        if not sample.heart_rate:
            continue
        band = zone_of(sample.heart_rate, zone_model)
        if band is not None:
            totals_ms[band.key] += ms
    return {key: round_half_up(ms / 60_000) for key, ms in totals_ms.items()}


def calories_for(
    zone_mins: dict[str, int],
    calorie_table: Sequence[float] = DEFAULT_CALORIE_TABLE,
) -> float:
    """Sum of zone minutes × kcal/min for that zone."""
    return float(sum(
        round_half_up(rate * zone_mins.get(key, 0))
        for key, rate in zip(ZONE_KEYS, calorie_table)
    ))


def intensity_split(zone_mins: dict[str, int]) -> tuple[float, float]:
    """Return ``(fat_burn_ratio, cardio_ratio)`` rounded to 2 dp."""
    fat_burn = zone_mins["Z1"] + zone_mins["Z2"]
    cardio = zone_mins["Z3"] + zone_mins["Z4"] + zone_mins["Z5"]
    total = fat_burn + cardio
    if total <= 0:
        return 0.0, 0.0
    return round_half_up(fat_burn / total, 2), round_half_up(cardio / total, 2)


# ---------------------------------------------------------------------------
# Session summary
# ---------------------------------------------------------------------------


def summarize(
    candidate: SessionCandidate,
    zone_model: ZoneModel,
    calorie_table: Sequence[float] = DEFAULT_CALORIE_TABLE,
    allocation: str = "uniform",
) -> SessionRecord:
    """Compute the metrics for one session.

    Args:
        candidate: A closed candidate from the segmenter.
        zone_model: Zones used for time-in-zone, intensity and load.
        calorie_table: kcal per minute for Z1..Z5.
        allocation: ``"uniform"`` or ``"elapsed"``, see :func:`zone_minutes`.

    Returns:
        A SessionRecord.  ``avg_heart_rate``, ``intensity_score`` and
        ``training_load_score`` are None when no sample has a positive heart
        rate; ``heart_rate_std_dev`` is None with fewer than two such
        samples.
    """
    heart_rates = [s.heart_rate for s in candidate.samples if s.heart_rate and s.heart_rate > 0]
    max_hr = zone_model.max_heart_rate

    avg_hr = round_half_up(float(np.mean(heart_rates))) if heart_rates else None
    duration_min = round_half_up(candidate.span_ms / 60_000)

    zone_mins = zone_minutes(candidate, zone_model, allocation)
    fat_burn_ratio, cardio_ratio = intensity_split(zone_mins)

    std_dev = population_std_dev(heart_rates)

    intensity = round_half_up(avg_hr / max_hr * 100) if avg_hr is not None else None
    # Uncalibrated proxy: minutes weighted by avg HR as a fraction of max
    load = (
        round_half_up(duration_min * (avg_hr / max_hr) * 100)
        if avg_hr is not None and duration_min
        else None
    )

    return SessionRecord(
        activity=candidate.activity,
        start_time=candidate.start_time,
        end_time=candidate.last_sample_time,
        duration_minutes=duration_min,
        avg_heart_rate=avg_hr,
        calories_estimate=calories_for(zone_mins, calorie_table),
        zone_minutes=zone_mins,
        intensity_score=intensity,
        training_load_score=load,
        fat_burn_ratio=fat_burn_ratio,
        cardio_ratio=cardio_ratio,
        heart_rate_std_dev=round_half_up(std_dev, 1) if std_dev is not None else None,
        sample_count=len(candidate.samples),
    )
