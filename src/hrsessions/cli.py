"""CLI for the hrsessions workout session engine."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime

import click

from hrsessions.config import ALLOCATION_MODES, DEFAULT_PROFILE, AnalysisProfile, load_profile
from hrsessions.errors import HRSessionsError
from hrsessions.samples import JsonlSampleSource, SampleQuery


def _parse_date(ctx: click.Context, param: click.Parameter, value: datetime | None) -> date | None:
    return value.date() if value is not None else None


def query_options(f):
    """Shared date / sport / limit filters."""
    f = click.option("--limit", type=int, default=None, help="Max samples to read.")(f)
    f = click.option("--sport", default=None, help="Only samples with this activity tag.")(f)
    f = click.option("--end-date", type=click.DateTime(["%Y-%m-%d"]), callback=_parse_date,
                     default=None, help="Last day to include (YYYY-MM-DD).")(f)
    f = click.option("--start-date", type=click.DateTime(["%Y-%m-%d"]), callback=_parse_date,
                     default=None, help="First day to include (YYYY-MM-DD).")(f)
    return f


def profile_options(f):
    """Overrides applied on top of the default (or --profile) settings."""
    f = click.option("--allocation", type=click.Choice(ALLOCATION_MODES), default=None,
                     help="How session time is spread over samples for zone minutes.")(f)
    f = click.option("--max-gap", type=float, default=None,
                     help="Max minutes between samples within a session.")(f)
    f = click.option("--min-session", type=float, default=None,
                     help="Min session length in minutes.")(f)
    f = click.option("--max-hr", type=int, default=None,
                     help="Max heart rate the zones are derived from.")(f)
    f = click.option("--profile", "profile_path", type=click.Path(exists=True), default=None,
                     help="JSON file with analysis settings.")(f)
    return f


def _build_profile(
    profile_path: str | None,
    max_hr: int | None,
    min_session: float | None,
    max_gap: float | None,
    allocation: str | None,
) -> AnalysisProfile:
    profile = load_profile(profile_path) if profile_path else DEFAULT_PROFILE
    overrides = {
        "zone_max_heart_rate": max_hr,
        "min_session_minutes": min_session,
        "max_gap_minutes": max_gap,
        "allocation": allocation,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return profile.replace(**overrides) if overrides else profile


def _emit(payload: object, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        with open(output, "w") as f:
            f.write(text)
        click.echo(f"Written to {output}")
    else:
        click.echo(text)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug detail to stderr.")
def main(verbose: bool) -> None:
    """hrsessions: workout sessions and training metrics from HR telemetry."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("file", type=click.Path(exists=True))
@query_options
@profile_options
@click.option("--output", "-o", default=None, help="Write sessions JSON to file.")
def sessions(file: str, start_date: date | None, end_date: date | None, sport: str | None,
             limit: int | None, profile_path: str | None, max_hr: int | None,
             min_session: float | None, max_gap: float | None, allocation: str | None,
             output: str | None) -> None:
    """Detect workout sessions in a JSONL telemetry export."""
    from hrsessions.analytics.pipeline import workout_summary

    try:
        profile = _build_profile(profile_path, max_hr, min_session, max_gap, allocation)
        query = SampleQuery(start_date=start_date, end_date=end_date, activity=sport, limit=limit)
        summaries = workout_summary(JsonlSampleSource(file), query, profile)
    except HRSessionsError as e:
        raise click.ClickException(str(e)) from e

    _emit({"data": summaries, "meta": {"count": len(summaries)}}, output)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@query_options
@profile_options
def zones(file: str, start_date: date | None, end_date: date | None, sport: str | None,
          limit: int | None, profile_path: str | None, max_hr: int | None,
          min_session: float | None, max_gap: float | None, allocation: str | None) -> None:
    """Aggregate time in each heart-rate zone across sessions."""
    from hrsessions.analytics.pipeline import zone_report
    from hrsessions.analytics.zones import zones_for

    try:
        profile = _build_profile(profile_path, max_hr, min_session, max_gap, allocation)
        query = SampleQuery(start_date=start_date, end_date=end_date, activity=sport, limit=limit)
        report = zone_report(JsonlSampleSource(file), query, profile)
    except HRSessionsError as e:
        raise click.ClickException(str(e)) from e

    model = zones_for(profile.zone_max_heart_rate, profile.zone_fractions)

    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Zone report ({report.sessions_analyzed} sessions, "
               f"max HR {model.max_heart_rate})")
    click.echo(f"{'=' * 60}")
    for band in model.zones:
        mins = report.zone_distribution[band.key]
        pct = report.zone_percentages[band.key]
        click.echo(f"  {band.key} {band.label:<14} {band.lower_bound:>3}-{band.upper_bound:<3} bpm  "
                   f"{mins:>5} min  {pct:>3}%")
    click.echo(f"  Duration:   {report.total_duration_minutes} min")
    click.echo(f"  Calories:   {report.total_calories:.0f}")
    click.echo(f"{'=' * 60}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
def sports(file: str) -> None:
    """List the activity tags present in a telemetry export."""
    from hrsessions.analytics.summary import catalogue_activities

    try:
        samples = JsonlSampleSource(file).fetch()
    except HRSessionsError as e:
        raise click.ClickException(str(e)) from e

    stats = catalogue_activities(samples)
    _emit({"data": [s.to_dict() for s in stats], "meta": {"total_sports": len(stats)}}, None)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--top", type=int, default=10, help="Sports to list in the breakdown.")
def stats(file: str, top: int) -> None:
    """Record counts, date range and mean HR for a telemetry export."""
    from hrsessions.analytics.summary import catalogue_activities, dataset_stats

    try:
        samples = JsonlSampleSource(file).fetch()
    except HRSessionsError as e:
        raise click.ClickException(str(e)) from e

    breakdown = catalogue_activities(samples)[:max(top, 0)]
    _emit({
        "statistics": dataset_stats(samples).to_dict(),
        "sports_breakdown": [
            {"sport": s.sport, "record_count": s.record_count, "avg_heart_rate": s.avg_heart_rate}
            for s in breakdown
        ],
    }, None)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@query_options
@click.option("--offset", type=int, default=0, help="Samples to skip.")
def raw(file: str, start_date: date | None, end_date: date | None, sport: str | None,
        limit: int | None, offset: int) -> None:
    """Dump raw samples (for debugging)."""
    query = SampleQuery(
        start_date=start_date,
        end_date=end_date,
        activity=sport,
        limit=100 if limit is None else limit,
        offset=offset,
    )
    try:
        samples = JsonlSampleSource(file).fetch(query)
    except HRSessionsError as e:
        raise click.ClickException(str(e)) from e

    _emit({"data": [s.to_dict() for s in samples], "meta": {"count": len(samples)}}, None)


if __name__ == "__main__":
    main()
