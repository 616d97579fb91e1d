"""Heart-rate samples and the sources that supply them.

A source hands the engine a time-ordered list of :class:`Sample` objects
selected by a :class:`SampleQuery`.  Two sources ship here: an in-memory
one and one reading JSONL telemetry exports (one JSON object per line).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from hrsessions.errors import SampleSourceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    """One telemetry reading."""

    timestamp: datetime  # tz-aware, UTC
    heart_rate: int | None = None
    activity: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    speed: float | None = None

    @property
    def epoch_ms(self) -> float:
        return self.timestamp.timestamp() * 1000.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "recorded_time_utc": format_timestamp(self.timestamp),
            "heart_rate": self.heart_rate,
            "sport": self.activity,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "speed": self.speed,
        }


@dataclass(frozen=True)
class SampleQuery:
    """Selection applied by a source before samples reach the engine.

    ``start_date`` / ``end_date`` are inclusive and compared against the UTC
    calendar date of each sample.
    """

    start_date: date | None = None
    end_date: date | None = None
    activity: str | None = None
    limit: int | None = None
    offset: int = 0


class SampleSource(Protocol):
    """Anything that can produce an ordered sample list for a query."""

    def fetch(
        self,
        query: SampleQuery | None = None,
        min_heart_rate: int | None = None,
        max_heart_rate: int | None = None,
    ) -> list[Sample]:
        ...


# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into a UTC datetime.

    Naive ISO strings are taken to be UTC.

    Raises:
        ValueError: Unparseable text, an unsupported type, or an epoch
            outside the range ``datetime`` can represent.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"epoch {value!r} out of range: {e}") from e
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"unsupported timestamp {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing ``Z``."""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def parse_sample(entry: Mapping[str, Any]) -> Sample:
    """Build a Sample from a decoded JSON record.

    Accepts ``timestamp`` or ``recorded_time_utc`` for the time and
    ``sport`` or ``activity`` for the tag.
    """
    ts = entry.get("timestamp", entry.get("recorded_time_utc"))
    if ts is None:
        raise ValueError("record has no timestamp")

    hr = entry.get("heart_rate")
    activity = entry.get("sport", entry.get("activity"))

    return Sample(
        timestamp=parse_timestamp(ts),
        heart_rate=None if hr is None else int(round(float(hr))),
        activity=None if activity is None else str(activity),
        latitude=_optional_float(entry.get("latitude")),
        longitude=_optional_float(entry.get("longitude")),
        altitude=_optional_float(entry.get("altitude")),
        speed=_optional_float(entry.get("speed")),
    )


# ---------------------------------------------------------------------------
# Query application
# ---------------------------------------------------------------------------


def select_samples(
    samples: Iterable[Sample],
    query: SampleQuery | None = None,
    min_heart_rate: int | None = None,
    max_heart_rate: int | None = None,
) -> list[Sample]:
    """Filter, sort and page samples the way a source is expected to.

    When either heart-rate bound is given, samples without a heart rate are
    dropped along with those outside ``[min_heart_rate, max_heart_rate]``.
    """
    query = query or SampleQuery()
    hr_filtered = min_heart_rate is not None or max_heart_rate is not None

    selected: list[Sample] = []
    for s in samples:
        day = s.timestamp.astimezone(timezone.utc).date()
        if query.start_date is not None and day < query.start_date:
            continue
        if query.end_date is not None and day > query.end_date:
            continue
        if query.activity is not None and s.activity != query.activity:
            continue
        if hr_filtered:
            if s.heart_rate is None:
                continue
            if min_heart_rate is not None and s.heart_rate < min_heart_rate:
                continue
            if max_heart_rate is not None and s.heart_rate > max_heart_rate:
                continue
        selected.append(s)

    # Stable sort keeps input order for equal timestamps
    selected.sort(key=lambda s: s.timestamp)

    start = max(query.offset, 0)
    if query.limit is not None:
        return selected[start:start + max(query.limit, 0)]
    return selected[start:]


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class MemorySampleSource:
    """Serve samples held in memory."""

    def __init__(self, samples: Iterable[Sample]) -> None:
        self._samples = tuple(samples)

    def __len__(self) -> int:
        return len(self._samples)

    def fetch(
        self,
        query: SampleQuery | None = None,
        min_heart_rate: int | None = None,
        max_heart_rate: int | None = None,
    ) -> list[Sample]:
        return select_samples(self._samples, query, min_heart_rate, max_heart_rate)


class JsonlSampleSource:
    """Serve samples from a JSONL telemetry export.

    The file is re-read on every fetch so that appended lines are picked up.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> list[Sample]:
        try:
            f = open(self.path, "rb")
        except OSError as e:
            raise SampleSourceError(f"Cannot open {self.path}: {e}") from e

        samples: list[Sample] = []
        with f:
            for line_num, raw in enumerate(f, 1):
                try:
                    line = raw.decode("utf-8").strip()
                    if not line:
                        continue
                    entry = json.loads(line)
                    if not isinstance(entry, dict):
                        raise ValueError("expected a JSON object")
                    samples.append(parse_sample(entry))
                except (ValueError, TypeError) as e:
                    raise SampleSourceError(
                        f"{self.path.name} line {line_num}: {e}"
                    ) from e

        logger.info("Read %d samples from %s", len(samples), self.path)
        return samples

    def fetch(
        self,
        query: SampleQuery | None = None,
        min_heart_rate: int | None = None,
        max_heart_rate: int | None = None,
    ) -> list[Sample]:
        return select_samples(self._read(), query, min_heart_rate, max_heart_rate)
