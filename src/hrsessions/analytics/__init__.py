"""Session engine for heart-rate telemetry.

Modules:
    zones     -- Heart-rate zone model (Z1-Z5 from max HR)
    segmenter -- Gap / activity-change session segmentation
    metrics   -- Per-session averages, time in zone, calories, load scores
    summary   -- Wire shape, zone report, activity catalogue, export totals
    pipeline  -- Source → segmenter → metrics orchestration
"""

from hrsessions.analytics.zones import (
    ZoneBand,
    ZoneModel,
    zones_for,
    zone_of,
)
from hrsessions.analytics.segmenter import SessionCandidate, segment, iter_segments
from hrsessions.analytics.metrics import (
    NOT_MODELED,
    SessionRecord,
    Unmodeled,
    population_std_dev,
    summarize,
)
from hrsessions.analytics.summary import (
    ActivityStats,
    DatasetStats,
    ZoneReport,
    build_zone_report,
    catalogue_activities,
    dataset_stats,
    to_wire,
)
from hrsessions.analytics.pipeline import detect_sessions, workout_summary, zone_report

__all__ = [
    # zones
    "ZoneBand",
    "ZoneModel",
    "zones_for",
    "zone_of",
    # segmenter
    "SessionCandidate",
    "segment",
    "iter_segments",
    # metrics
    "NOT_MODELED",
    "SessionRecord",
    "Unmodeled",
    "population_std_dev",
    "summarize",
    # summary
    "ActivityStats",
    "DatasetStats",
    "ZoneReport",
    "build_zone_report",
    "catalogue_activities",
    "dataset_stats",
    "to_wire",
    # pipeline
    "detect_sessions",
    "workout_summary",
    "zone_report",
]
