"""Session segmentation.

Cuts a time-ordered sample stream into session candidates.  A candidate
ends when the gap to the next sample exceeds ``max_gap_minutes`` or the
activity tag changes; candidates spanning less than
``min_session_minutes`` are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator

from hrsessions.config import SessionDetectionConfig
from hrsessions.samples import Sample

logger = logging.getLogger(__name__)

UNKNOWN_ACTIVITY = "Unknown"


@dataclass
class SessionCandidate:
    """A run of contiguous same-activity samples being accumulated."""

    activity: str
    start_time: datetime
    last_sample_time: datetime
    samples: list[Sample] = field(default_factory=list)

    @classmethod
    def open(cls, sample: Sample) -> SessionCandidate:
        return cls(
            activity=sample.activity or UNKNOWN_ACTIVITY,
            start_time=sample.timestamp,
            last_sample_time=sample.timestamp,
            samples=[sample],
        )

    def append(self, sample: Sample) -> None:
        self.samples.append(sample)
        self.last_sample_time = sample.timestamp

    @property
    def span_ms(self) -> float:
        return (self.last_sample_time - self.start_time).total_seconds() * 1000.0

    def __repr__(self) -> str:
        return (
            f"SessionCandidate({self.activity}, "
            f"start={self.start_time.isoformat()}, "
            f"span={self.span_ms / 60_000:.1f}min, "
            f"n={len(self.samples)})"
        )


def _is_boundary(
    candidate: SessionCandidate,
    sample: Sample,
    max_gap_ms: float,
) -> bool:
    gap_ms = (sample.timestamp - candidate.last_sample_time).total_seconds() * 1000.0
    activity = sample.activity or UNKNOWN_ACTIVITY
    return gap_ms > max_gap_ms or activity != candidate.activity


def _keep(candidate: SessionCandidate, min_session_ms: float) -> bool:
    if candidate.span_ms >= min_session_ms:
        return True
    logger.debug("Discarding %r: shorter than %.0f ms", candidate, min_session_ms)
    return False


def iter_segments(
    samples: Iterable[Sample],
    config: SessionDetectionConfig | None = None,
) -> Iterator[SessionCandidate]:
    """Yield session candidates as soon as each one is closed.

    Works on any iterable, so a large export can be segmented without
    holding every sample in memory.  Input must already be sorted by
    timestamp and restricted to plausible heart rates.
    """
    config = config or SessionDetectionConfig()
    max_gap_ms = config.max_gap_ms
    min_session_ms = config.min_session_ms

    current: SessionCandidate | None = None

    for sample in samples:
        if current is None:
            current = SessionCandidate.open(sample)
        elif _is_boundary(current, sample, max_gap_ms):
            if _keep(current, min_session_ms):
                yield current
            current = SessionCandidate.open(sample)
        else:
            current.append(sample)

    if current is not None and _keep(current, min_session_ms):
        yield current


def segment(
    samples: Iterable[Sample],
    config: SessionDetectionConfig | None = None,
) -> list[SessionCandidate]:
    """Partition *samples* into session candidates ordered by start time.

    Args:
        samples: Samples sorted ascending by timestamp, pre-filtered to the
            plausible heart-rate range.  Not re-sorted or re-filtered here.
        config: Detection thresholds (defaults: 10 min sessions, 5 min gap).

    Returns:
        Candidates spanning at least ``min_session_minutes``.  Empty input
        gives an empty list.
    """
    return list(iter_segments(samples, config))
