"""CLI for the coachscore scoring engine."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any

import click

from coachscore.config import config


def _load_records(path: str) -> list[dict[str, Any]]:
    """Read a JSON array or a JSONL file of objects."""
    text = Path(path).read_text()
    stripped = text.lstrip()
    if not stripped:
        return []
    if stripped.startswith("["):
        data = json.loads(stripped)
    else:
        data = [json.loads(line) for line in text.splitlines() if line.strip()]
    if not all(isinstance(d, dict) for d in data):
        raise click.ClickException(f"{path}: expected a list of JSON objects")
    return data


def _print_composite(result) -> None:
    click.echo(f"\n{'=' * 60}")
    title = "Training Profile" if result.mode == "training" else "Health Balance"
    when = result.generated_at.date().isoformat() if result.generated_at else "n/a"
    click.echo(f"  {title}: {when}")
    click.echo(f"{'=' * 60}")
    click.echo(f"  Overall:      {result.overall}/100 (data quality: {result.data_quality.value})")
    for name, dim in result.dimensions.items():
        click.echo(f"  {name:<14}{dim.score:>3}/100  {dim.trend.value:<10} {dim.suggestion}")
    click.echo(f"{'=' * 60}")


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from COACHSCORE_LOG_LEVEL).")
def main(log_level: str | None) -> None:
    """coachscore: adaptive-baseline recovery and training scores."""
    logging.basicConfig(
        level=getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Day to score (default: latest in the file).")
@click.option("--user", default=None, help="Only use rows for this user id.")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
def recovery(file: str, day: datetime | None, user: str | None, as_json: bool) -> None:
    """Score one day's recovery against its trailing history."""
    from coachscore.models import DailyMetric, DailyReading
    from coachscore.scoring.baseline import trailing_window
    from coachscore.scoring.recovery import score_recovery

    metrics = [DailyMetric.from_dict(d) for d in _load_records(file)]
    if user is not None:
        metrics = [m for m in metrics if m.user_id == user]
    if not metrics:
        raise click.ClickException("No daily metrics found.")

    target = day.date() if day else max(m.date for m in metrics)
    today = [m for m in metrics if m.date == target]
    if not today:
        raise click.ClickException(f"No metrics recorded on {target.isoformat()}.")
    row = today[0]

    history = trailing_window(metrics, target, config.BASELINE_WINDOW_DAYS)
    result = score_recovery(
        DailyReading(
            sleep_minutes=row.sleep_minutes,
            hrv=row.hrv,
            resting_hr=row.resting_hr,
            respiratory_rate=row.respiratory_rate,
        ),
        history,
    )

    if as_json:
        click.echo(json.dumps({"date": target.isoformat(), **asdict(result)}, indent=2))
        return

    click.echo(f"Recovery {target.isoformat()}: {result.score}/100")
    if not result.cold_start:
        click.echo(f"  HRV:        {result.hrv_score:.0f}/100 (baseline {result.baselines.hrv:.1f} ms)")
        click.echo(f"  Resting HR: {result.rhr_score:.0f}/100 "
                   f"(baseline {result.baselines.resting_hr:.1f} bpm)")
        click.echo(f"  Sleep:      {result.sleep_score:.0f}/100")
    click.echo(f"  {result.explanation}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--as-of", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Reference date for the 28-day window.")
@click.option("--outdoor-only", is_flag=True, help="Ignore virtual/indoor rides.")
@click.option("--json", "as_json", is_flag=True, help="Print the composite as JSON.")
def training(file: str, as_of: datetime | None, outdoor_only: bool, as_json: bool) -> None:
    """Activity-only training profile from a list of activities."""
    from coachscore.models import ActivityRecord
    from coachscore.scoring.composite import score_training

    activities = [ActivityRecord.from_dict(d) for d in _load_records(file)]
    result = score_training(
        activities,
        as_of=as_of.date() if as_of else None,
        outdoor_only=outdoor_only,
    )
    if as_json:
        click.echo(result.to_json())
    else:
        _print_composite(result)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--as-of", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Reference date (default: day of the newest activity).")
@click.option("--json", "as_json", is_flag=True, help="Print the composite as JSON.")
def health(file: str, as_of: datetime | None, as_json: bool) -> None:
    """Five-axis health balance from a list of activities."""
    from coachscore.models import ActivityRecord
    from coachscore.scoring.composite import score_health_balance

    activities = [ActivityRecord.from_dict(d) for d in _load_records(file)]
    result = score_health_balance(activities, as_of=as_of.date() if as_of else None)
    if as_json:
        click.echo(result.to_json())
    else:
        _print_composite(result)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--as-of", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Reference date (default: day of the newest activity).")
@click.option("--ftp", type=float, default=None, help="Functional threshold power in watts (default 250).")
@click.option("--best-5min", "best_5min", type=float, default=None,
              help="Best 5-minute power in watts (default 110%% of FTP).")
@click.option("--json", "as_json", is_flag=True, help="Print the profile as JSON.")
def profile(file: str, as_of: datetime | None, ftp: float | None, best_5min: float | None,
            as_json: bool) -> None:
    """Rider profile levels (1-10) from a list of activities."""
    from coachscore.models import ActivityRecord
    from coachscore.scoring.profile import DEFAULT_FTP, score_rider_profile

    activities = [ActivityRecord.from_dict(d) for d in _load_records(file)]
    if as_of is None and not activities:
        raise click.ClickException("No activities found; pass --as-of to score an empty history.")
    day = as_of.date() if as_of else max(a.day for a in activities)

    try:
        result = score_rider_profile(activities, day, ftp=DEFAULT_FTP if ftp is None else ftp,
                                     best_5min_power=best_5min)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--ftp") from e

    if as_json:
        click.echo(result.to_json())
        return

    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Rider Profile: {day.isoformat()}")
    click.echo(f"{'=' * 60}")
    for name, detail in result.to_dict().items():
        click.echo(f"  {name:<12}L{detail['level']:<3} {detail['current_value']:<20} "
                   f"next: {detail['next_level_criteria']}")
        click.echo(f"  {'':<16}{detail['prompt']}")
    click.echo(f"{'=' * 60}")


@main.command()
@click.argument("payload", type=click.Path(exists=True))
@click.option("--api-key", default=None, help="Send as x-api-key (payload must carry user_id).")
@click.option("--token", default=None, help="Send as a Bearer ingest token.")
@click.option("--store", "store_path", default=None, help="JSONL store (default COACHSCORE_STORE_PATH).")
@click.option("--date", "today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Date used when the payload has none.")
def ingest(
    payload: str,
    api_key: str | None,
    token: str | None,
    store_path: str | None,
    today: datetime | None,
) -> None:
    """Run the ingestion handler on a JSON payload file."""
    from coachscore.ingest import handle_ingest
    from coachscore.store import JsonlMetricStore, load_ingest_keys

    if api_key and token:
        raise click.UsageError("Use either --api-key or --token, not both.")

    headers: dict[str, str] = {"Content-Type": "application/json"}
    if api_key:
        headers["x-api-key"] = api_key
    if token:
        headers["Authorization"] = f"Bearer {token}"

    keys = load_ingest_keys(config.INGEST_KEYS_FILE) if config.INGEST_KEYS_FILE else {}
    store = JsonlMetricStore(store_path or config.STORE_PATH, ingest_keys=keys)

    response = handle_ingest(
        "POST",
        headers,
        Path(payload).read_bytes(),
        store,
        api_key=config.INGEST_API_KEY or None,
        today=today.date() if today else date.today(),
        window_days=config.BASELINE_WINDOW_DAYS,
    )
    click.echo(json.dumps(response.body, indent=2))
    if not response.ok:
        raise SystemExit(1)


@main.command()
@click.option("--host", default=None, help="Bind address (default COACHSCORE_HOST).")
@click.option("--port", default=None, type=int, help="Port (default COACHSCORE_PORT).")
def serve(host: str | None, port: int | None) -> None:
    """Serve the ingestion endpoint over HTTP."""
    import uvicorn

    from coachscore.api import create_app

    uvicorn.run(create_app(), host=host or config.HOST, port=port or config.PORT)


if __name__ == "__main__":
    main()
