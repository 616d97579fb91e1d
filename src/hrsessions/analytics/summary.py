"""Output shapes: per-session wire records and multi-session reports.

Everything produced here is JSON-serializable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from typing import Any, Iterable, Sequence

from hrsessions.analytics.metrics import SessionRecord, Unmodeled
from hrsessions.analytics.zones import ZONE_KEYS, round_half_up
from hrsessions.samples import Sample, format_timestamp


def _modeled(value: Any) -> Any:
    return None if isinstance(value, Unmodeled) else value


def to_wire(record: SessionRecord) -> dict[str, Any]:
    """Map a SessionRecord to the client-facing workout summary shape."""
    return {
        "sport": record.activity,
        "session_start": format_timestamp(record.start_time),
        "session_end": format_timestamp(record.end_time),
        "duration_min": record.duration_minutes,
        "avg_heart_rate": record.avg_heart_rate,
        "calories_burned": record.calories_estimate,
        "zones": {key: record.zone_minutes.get(key, 0) for key in ZONE_KEYS},
        "recovery_drop_bpm": _modeled(record.recovery_drop),
        "intensity_score": record.intensity_score,
        "trimp_score": record.training_load_score,
        "fat_burn_ratio": record.fat_burn_ratio,
        "cardio_ratio": record.cardio_ratio,
        "bpm_std_dev": record.heart_rate_std_dev,
        "warmup_duration_sec": _modeled(record.warmup_duration),
    }


# ---------------------------------------------------------------------------
# Zone report across sessions
# ---------------------------------------------------------------------------


@dataclass
class ZoneReport:
    """Time-in-zone totals over a set of sessions."""

    total_duration_minutes: int = 0
    total_calories: float = 0.0
    zone_distribution: dict[str, int] = field(
        default_factory=lambda: {key: 0 for key in ZONE_KEYS}
    )
    zone_percentages: dict[str, int] = field(
        default_factory=lambda: {key: 0 for key in ZONE_KEYS}
    )
    sessions_analyzed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"ZoneReport(sessions={self.sessions_analyzed}, "
            f"dur={self.total_duration_minutes}min, "
            f"cal≈{self.total_calories:.0f})"
        )


def build_zone_report(records: Iterable[SessionRecord]) -> ZoneReport:
    """Aggregate zone minutes, duration and calories over *records*.

    Percentages are each zone's minutes over total session duration, so
    they need not sum to 100 when some time was spent below Z1.
    """
    report = ZoneReport()
    for rec in records:
        for key in ZONE_KEYS:
            report.zone_distribution[key] += rec.zone_minutes.get(key, 0)
        report.total_duration_minutes += rec.duration_minutes
        report.total_calories += rec.calories_estimate or 0.0
        report.sessions_analyzed += 1

    total = report.total_duration_minutes
    report.zone_percentages = {
        key: round_half_up(mins / total * 100) if total > 0 else 0
        for key, mins in report.zone_distribution.items()
    }
    return report


# ---------------------------------------------------------------------------
# Activity catalogue
# ---------------------------------------------------------------------------


@dataclass
class ActivityStats:
    """Recording statistics for one activity tag."""

    sport: str
    record_count: int
    unique_days: int
    first_recorded: str
    last_recorded: str
    avg_heart_rate: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sport": self.sport,
            "record_count": self.record_count,
            "unique_days": self.unique_days,
            "date_range": {
                "first_recorded": self.first_recorded,
                "last_recorded": self.last_recorded,
            },
            "avg_heart_rate": self.avg_heart_rate,
        }


def catalogue_activities(samples: Sequence[Sample]) -> list[ActivityStats]:
    """Summarise which activity tags appear in *samples*.

    Untagged and blank-tagged samples are skipped.  Sorted by record count,
    most frequent first; ties keep first-seen order.
    """
    groups: dict[str, list[Sample]] = {}
    for s in samples:
        if not s.activity:
            continue
        groups.setdefault(s.activity, []).append(s)

    stats: list[ActivityStats] = []
    for sport, group in groups.items():
        stamps = [s.timestamp for s in group]
        hrs = [s.heart_rate for s in group if s.heart_rate and s.heart_rate > 0]
        stats.append(ActivityStats(
            sport=sport,
            record_count=len(group),
            unique_days=len({format_timestamp(t)[:10] for t in stamps}),
            first_recorded=format_timestamp(min(stamps)),
            last_recorded=format_timestamp(max(stamps)),
            avg_heart_rate=round_half_up(sum(hrs) / len(hrs)) if hrs else None,
        ))

    stats.sort(key=lambda a: a.record_count, reverse=True)
    return stats


@dataclass
class DatasetStats:
    """Totals over a whole telemetry export."""

    total_records: int = 0
    heart_rate_records: int = 0
    unique_sports: int = 0
    unique_days: int = 0
    earliest: str | None = None
    latest: str | None = None
    avg_heart_rate: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "heart_rate_records": self.heart_rate_records,
            "unique_sports": self.unique_sports,
            "unique_days": self.unique_days,
            "date_range": {"earliest": self.earliest, "latest": self.latest},
            "avg_heart_rate": self.avg_heart_rate,
        }


def dataset_stats(samples: Sequence[Sample]) -> DatasetStats:
    """Record counts, date range and mean HR over every sample.

    ``heart_rate_records`` counts samples carrying any heart rate, while the
    average only uses positive readings.  Blank activity tags are not counted
    as a sport.
    """
    if not samples:
        return DatasetStats()

    stamps = [s.timestamp for s in samples]
    hrs = [s.heart_rate for s in samples if s.heart_rate and s.heart_rate > 0]
    return DatasetStats(
        total_records=len(samples),
        heart_rate_records=sum(1 for s in samples if s.heart_rate is not None),
        unique_sports=len({s.activity for s in samples if s.activity}),
        unique_days=len({format_timestamp(t)[:10] for t in stamps}),
        earliest=format_timestamp(min(stamps)),
        latest=format_timestamp(max(stamps)),
        avg_heart_rate=round_half_up(sum(hrs) / len(hrs)) if hrs else None,
    )
