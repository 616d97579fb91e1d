"""Analytics pipeline: samples → sessions → per-session metrics.

This module wires a :class:`~hrsessions.samples.SampleSource` into the
segmenter and metrics calculator.  Each session is summarised from its own
samples only, so the functions here hold no state between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from hrsessions.analytics.metrics import SessionRecord, summarize
from hrsessions.analytics.segmenter import iter_segments
from hrsessions.analytics.summary import ZoneReport, build_zone_report, to_wire
from hrsessions.analytics.zones import zones_for
from hrsessions.config import DEFAULT_PROFILE, AnalysisProfile
from hrsessions.errors import SampleSourceError
from hrsessions.samples import Sample, SampleQuery, SampleSource

logger = logging.getLogger(__name__)


def detect_sessions(
    samples: Iterable[Sample],
    profile: AnalysisProfile = DEFAULT_PROFILE,
) -> list[SessionRecord]:
    """Segment *samples* and summarise every session found.

    Args:
        samples: Time-ordered samples already restricted to the profile's
            plausible heart-rate range.
        profile: Thresholds, zone fractions and calorie table to use.

    Returns:
        SessionRecords ordered by start time.
    """
    zone_model = zones_for(profile.zone_max_heart_rate, profile.zone_fractions)
    return [
        summarize(candidate, zone_model, profile.calorie_table, profile.allocation)
        for candidate in iter_segments(samples, profile.detection)
    ]


def fetch_session_samples(
    source: SampleSource,
    query: SampleQuery | None = None,
    profile: AnalysisProfile = DEFAULT_PROFILE,
    context: str = "detect workout sessions",
) -> list[Sample]:
    """Read the samples session detection runs on.

    Raises:
        SampleSourceError: The source failed.  Errors of other types are
            wrapped with ``code="FETCH_ERROR"``; nothing is retried.
    """
    detection = profile.detection
    try:
        return source.fetch(
            query,
            min_heart_rate=detection.min_heart_rate,
            max_heart_rate=detection.max_heart_rate,
        )
    except SampleSourceError:
        raise
    except Exception as e:
        raise SampleSourceError(f"Failed to {context}: {e}", code="FETCH_ERROR") from e


def workout_summary(
    source: SampleSource,
    query: SampleQuery | None = None,
    profile: AnalysisProfile = DEFAULT_PROFILE,
) -> list[dict[str, Any]]:
    """Fetch samples, detect sessions and return them in wire shape."""
    samples = fetch_session_samples(source, query, profile, "fetch workout summary")
    records = detect_sessions(samples, profile)
    logger.info("Detected %d session(s) from %d samples", len(records), len(samples))
    return [to_wire(r) for r in records]


def zone_report(
    source: SampleSource,
    query: SampleQuery | None = None,
    profile: AnalysisProfile = DEFAULT_PROFILE,
) -> ZoneReport:
    """Time-in-zone totals over every session in the queried range."""
    samples = fetch_session_samples(source, query, profile, "fetch zone analysis")
    return build_zone_report(detect_sessions(samples, profile))
