"""Tests for hrsessions.samples -- parsing, query filters and sources."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from hrsessions.errors import SampleSourceError
from hrsessions.samples import (
    JsonlSampleSource,
    MemorySampleSource,
    Sample,
    SampleQuery,
    format_timestamp,
    parse_sample,
    parse_timestamp,
    select_samples,
)

from tests.conftest import T0, make_export_entry, make_run


class TestParseTimestamp:
    def test_iso_with_z(self):
        assert parse_timestamp("2024-02-13T08:00:00Z") == T0

    def test_iso_with_offset(self):
        assert parse_timestamp("2024-02-13T09:00:00+01:00") == T0

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-02-13T08:00:00") == T0

    def test_epoch_ms(self):
        assert parse_timestamp(T0.timestamp() * 1000) == T0

    def test_datetime_passthrough(self):
        assert parse_timestamp(T0) == T0

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")
        with pytest.raises(ValueError):
            parse_timestamp(None)

    def test_epoch_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_timestamp(1e300)


class TestFormatTimestamp:
    def test_millis_and_z(self):
        ts = T0 + timedelta(microseconds=123456)
        assert format_timestamp(ts) == "2024-02-13T08:00:00.123Z"

    def test_converts_to_utc(self):
        cet = timezone(timedelta(hours=1))
        assert format_timestamp(datetime(2024, 2, 13, 9, 0, tzinfo=cet)) == "2024-02-13T08:00:00.000Z"


class TestParseSample:
    def test_export_record(self):
        s = parse_sample({
            "recorded_time_utc": "2024-02-13T08:00:00Z",
            "heart_rate": 142,
            "sport": "Run",
            "latitude": 59.9,
            "longitude": 10.7,
            "speed": 3.2,
        })
        assert s.timestamp == T0
        assert s.heart_rate == 142
        assert s.activity == "Run"
        assert s.latitude == pytest.approx(59.9)
        assert s.altitude is None

    def test_alternate_keys(self):
        s = parse_sample({"timestamp": "2024-02-13T08:00:00Z", "activity": "Ride"})
        assert s.activity == "Ride"
        assert s.heart_rate is None

    def test_missing_timestamp(self):
        with pytest.raises(ValueError):
            parse_sample({"heart_rate": 100})

    def test_to_dict_roundtrip_keys(self):
        s = parse_sample(make_export_entry(0))
        d = s.to_dict()
        assert d["recorded_time_utc"] == "2024-02-13T08:00:00.000Z"
        assert d["sport"] == "Run"


class TestSelectSamples:
    def test_sorts(self):
        samples = make_run(5)
        assert select_samples(list(reversed(samples))) == samples

    def test_heart_rate_bounds_drop_missing(self):
        samples = make_run(4, heart_rate=[40, 60, None, 230])
        selected = select_samples(samples, min_heart_rate=50, max_heart_rate=220)
        assert [s.heart_rate for s in selected] == [60]

    def test_bounds_inclusive(self):
        samples = make_run(2, heart_rate=[50, 220])
        assert len(select_samples(samples, min_heart_rate=50, max_heart_rate=220)) == 2

    def test_no_bounds_keeps_everything(self):
        samples = make_run(3, heart_rate=[None, 10, 300])
        assert len(select_samples(samples)) == 3

    def test_date_range_inclusive(self):
        samples = []
        for d in range(4):
            samples += make_run(2, start=T0 + timedelta(days=d))
        query = SampleQuery(start_date=date(2024, 2, 14), end_date=date(2024, 2, 15))
        selected = select_samples(samples, query)
        assert len(selected) == 4
        assert {s.timestamp.date() for s in selected} == {date(2024, 2, 14), date(2024, 2, 15)}

    def test_activity_exact_match(self):
        samples = make_run(2) + make_run(2, activity="Running")
        assert len(select_samples(samples, SampleQuery(activity="Run"))) == 2

    def test_limit_and_offset(self):
        samples = make_run(10)
        selected = select_samples(samples, SampleQuery(limit=3, offset=2))
        assert selected == samples[2:5]


class TestMemorySampleSource:
    def test_fetch(self):
        source = MemorySampleSource(make_run(5))
        assert len(source) == 5
        assert len(source.fetch(SampleQuery(limit=2))) == 2


class TestJsonlSampleSource:
    def test_reads_export(self, export_file: Path):
        samples = JsonlSampleSource(export_file).fetch()
        assert len(samples) == 29
        assert samples[0].timestamp == T0
        assert samples[-1].activity == "Ride"

    def test_skips_blank_lines(self, tmp_path: Path):
        path = tmp_path / "blank.jsonl"
        path.write_text('\n{"timestamp": "2024-02-13T08:00:00Z", "heart_rate": 90}\n\n')
        assert len(JsonlSampleSource(path).fetch()) == 1

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SampleSourceError) as exc:
            JsonlSampleSource(tmp_path / "nope.jsonl").fetch()
        assert exc.value.code == "FETCH_ERROR"

    def test_malformed_line(self, tmp_path: Path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"timestamp": "2024-02-13T08:00:00Z"}\nnot json\n')
        with pytest.raises(SampleSourceError, match="line 2"):
            JsonlSampleSource(path).fetch()

    def test_non_object_line(self, tmp_path: Path):
        path = tmp_path / "list.jsonl"
        path.write_text("[1, 2]\n")
        with pytest.raises(SampleSourceError):
            JsonlSampleSource(path).fetch()

    def test_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "binary.jsonl"
        path.write_bytes(b'{"timestamp": "2024-02-13T08:00:00Z"}\n\xff\xfe\n')
        with pytest.raises(SampleSourceError, match="line 2") as exc:
            JsonlSampleSource(path).fetch()
        assert exc.value.code == "FETCH_ERROR"

    def test_epoch_out_of_range(self, tmp_path: Path):
        path = tmp_path / "far.jsonl"
        path.write_text('{"timestamp": 1e300, "heart_rate": 90}\n')
        with pytest.raises(SampleSourceError, match="line 1") as exc:
            JsonlSampleSource(path).fetch()
        assert exc.value.code == "FETCH_ERROR"

    def test_sample_is_frozen(self, export_file: Path):
        s = JsonlSampleSource(export_file).fetch()[0]
        assert isinstance(s, Sample)
        with pytest.raises(AttributeError):
            s.heart_rate = 10  # type: ignore[misc]
