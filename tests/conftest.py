"""Shared fixtures and helpers for the hrsessions test suite."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from hrsessions.samples import Sample


T0 = datetime(2024, 2, 13, 8, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Sample-building helpers
# ---------------------------------------------------------------------------


def make_run(
    count: int,
    heart_rate: int | list[int | None] | None = 140,
    activity: str | None = "Run",
    start: datetime = T0,
    step_sec: float = 60.0,
) -> list[Sample]:
    """Build *count* evenly spaced samples.

    *heart_rate* is either a constant or a list cycled over the samples.
    """
    if isinstance(heart_rate, list):
        rates = [heart_rate[i % len(heart_rate)] for i in range(count)]
    else:
        rates = [heart_rate] * count
    return [
        Sample(
            timestamp=start + timedelta(seconds=i * step_sec),
            heart_rate=rates[i],
            activity=activity,
        )
        for i in range(count)
    ]


def after(samples: list[Sample], minutes: float) -> datetime:
    """Timestamp *minutes* after the last sample of *samples*."""
    return samples[-1].timestamp + timedelta(minutes=minutes)


def sample_at(minute: float, heart_rate: int | None = 140, activity: str | None = "Run") -> Sample:
    return Sample(timestamp=T0 + timedelta(minutes=minute), heart_rate=heart_rate, activity=activity)


# ---------------------------------------------------------------------------
# JSONL export helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def make_export_entry(
    minute: float,
    heart_rate: int | None = 140,
    sport: str | None = "Run",
) -> dict:
    """Create a single telemetry export record."""
    ts = T0 + timedelta(minutes=minute)
    return {
        "recorded_time_utc": ts.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "heart_rate": heart_rate,
        "sport": sport,
    }


@pytest.fixture
def export_file(tmp_path: Path) -> Path:
    """Two 12-minute runs 6 minutes apart plus a short ride."""
    entries = [make_export_entry(m) for m in range(13)]
    entries += [make_export_entry(18 + m, heart_rate=160) for m in range(13)]
    entries += [make_export_entry(40 + m, heart_rate=110, sport="Ride") for m in range(3)]
    return write_jsonl(tmp_path / "export.jsonl", entries)
