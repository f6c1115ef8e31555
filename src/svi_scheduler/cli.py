from __future__ import annotations

import logging
import shutil
import tempfile
from datetime import date
from pathlib import Path

import click
import pandas as pd

from svi_scheduler.accession import load_accession
from svi_scheduler.audit import get_logger
from svi_scheduler.config import SchedulerConfig
from svi_scheduler.database import (
    build_database,
    database_to_samples,
    load_database,
    summarize_database,
    write_database,
)
from svi_scheduler.meeting_calendar import (
    CalendarExhaustedError,
    build_exclusions,
    next_meeting_dates,
)
from svi_scheduler.remote import copy_remote_file, list_remote
from svi_scheduler.samples import InputValidationError, load_cancellations, load_hot_list
from svi_scheduler.schedule import build_schedule, load_schedule, write_schedule
from svi_scheduler.sources import (
    load_analyzed_ids,
    load_report_ids,
    parse_report_ids,
    scan_sequencing_dirs,
)

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    metavar="PATH",
    help="Path to YAML config file. Uses built-in defaults if omitted.",
)
@click.option(
    "--reference-year",
    "reference_year",
    default=None,
    type=int,
    metavar="YEAR",
    help="Newest year of the recent-year priority window. Overrides config file.",
)
@click.option(
    "--today",
    "today",
    default=None,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    metavar="YYYY-MM-DD",
    help="Run date used for the meeting calendar. Defaults to the current date.",
)
@click.option(
    "--buffer",
    "buffer",
    default=None,
    type=int,
    metavar="N",
    help="Extra meeting-date candidates drawn to absorb exclusions. Overrides config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    reference_year: int | None,
    today,
    buffer: int | None,
    verbose: bool,
) -> None:
    """svi-scheduler: sample tracking and analysis-meeting scheduler for SVI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        config = SchedulerConfig.from_yaml(config_path) if config_path else SchedulerConfig()
    except (ValueError, TypeError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
    if reference_year is not None:
        config.reference_year = reference_year
    if buffer is not None:
        config.calendar_buffer = buffer
    ctx.obj["config"] = config
    ctx.obj["today"] = today.date() if today is not None else date.today()


# ---------------------------------------------------------------------------
# Pipeline steps shared by the commands
# ---------------------------------------------------------------------------


def _load_accession(config: SchedulerConfig) -> pd.DataFrame:
    if config.accession_file is not None:
        return load_accession(config.accession_file)
    if config.accession_remote is not None:
        with tempfile.TemporaryDirectory() as tmp:
            local = copy_remote_file(config.accession_remote, config.accession_name, tmp)
            return load_accession(local)
    raise click.ClickException("No accessioning source: set accession_file or accession_remote.")


def _load_report_ids(config: SchedulerConfig) -> frozenset[str]:
    if config.reports_remote is not None:
        return parse_report_ids(list_remote(config.reports_remote, include="*.pptx"))
    if config.reports_listing is not None:
        return load_report_ids(config.reports_listing)
    logger.warning("No report source configured; no sample is marked as reported")
    return frozenset()


def _run_database(config: SchedulerConfig) -> pd.DataFrame:
    dirs = scan_sequencing_dirs(config.sequencing_roots)
    try:
        accession = _load_accession(config)
    except (InputValidationError, RuntimeError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc
    report_ids = _load_report_ids(config)
    analyzed_ids = (
        load_analyzed_ids(config.analyzed_file) if config.analyzed_file is not None else frozenset()
    )
    db = build_database(dirs, accession, report_ids, analyzed_ids, classes=config.identifier_classes)
    write_database(db, config.database_file)
    return db


def _run_schedule(config: SchedulerConfig, today: date, dry_run: bool) -> pd.DataFrame:
    audit = get_logger(config)
    try:
        db = load_database(config.database_file)
        hot_list = load_hot_list(config.hotlist_file)
        cancellations = load_cancellations(config.cancellations_file)
        exclusions = build_exclusions(cancellations, config, today)
        schedule = build_schedule(
            database_to_samples(db),
            hot_list,
            exclusions,
            config,
            today=today,
            audit=None if dry_run else audit,
        )
    except FileNotFoundError as exc:
        raise click.ClickException(
            f"Sample database {config.database_file} not found; run 'svi-scheduler database' first."
        ) from exc
    except (InputValidationError, CalendarExhaustedError) as exc:
        audit.log("error", detail=str(exc))
        raise click.ClickException(str(exc)) from exc

    if dry_run:
        audit.log("dry_run", detail=f"{len(schedule)} sample(s) would be scheduled")
    else:
        write_schedule(schedule, config.schedule_file)
        audit.log("run_complete", detail=f"{len(schedule)} sample(s) scheduled", count=len(schedule))
    return schedule


def _format_schedule(schedule: pd.DataFrame) -> str:
    cols = ["priority_rank", "sample_id", "reason_for_priority", "meeting_date"]
    return schedule[cols].to_string(index=False)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command()
@click.pass_context
def database(ctx: click.Context) -> None:
    """Build the sample database from the configured sources."""
    config: SchedulerConfig = ctx.obj["config"]

    click.echo("Building sample database…")
    db = _run_database(config)
    click.echo(f"  Wrote {len(db)} row(s) to {config.database_file}.")


@main.command()
@click.option("--dry-run", is_flag=True, help="Print the schedule without writing it.")
@click.pass_context
def schedule(ctx: click.Context, dry_run: bool) -> None:
    """Prioritize unreported probands and assign meeting dates."""
    config: SchedulerConfig = ctx.obj["config"]

    result = _run_schedule(config, ctx.obj["today"], dry_run)
    if result.empty:
        click.echo("No eligible samples to schedule.")
        return
    if dry_run:
        click.echo(_format_schedule(result))
        click.echo(f"[DRY RUN] Would schedule {len(result)} sample(s).")
    else:
        click.echo(f"Scheduled {len(result)} sample(s). Schedule saved to {config.schedule_file}.")


@main.command()
@click.option("--dry-run", is_flag=True, help="Build everything but do not write the schedule or publish.")
@click.pass_context
def run(ctx: click.Context, dry_run: bool) -> None:
    """Build the database, build the schedule, and publish both."""
    config: SchedulerConfig = ctx.obj["config"]

    click.echo("Building sample database…")
    db = _run_database(config)
    click.echo(f"  Wrote {len(db)} row(s) to {config.database_file}.")

    result = _run_schedule(config, ctx.obj["today"], dry_run)
    if dry_run:
        click.echo(f"[DRY RUN] Would schedule {len(result)} sample(s).")
        return
    click.echo(f"  Scheduled {len(result)} sample(s) to {config.schedule_file}.")

    for target in config.publish_dirs:
        target.mkdir(parents=True, exist_ok=True)
        for artifact in (config.database_file, config.schedule_file):
            shutil.copy2(artifact, target / Path(artifact).name)
        click.echo(f"  Copied outputs to {target}.")


@main.command(name="calendar")
@click.option("-n", "count", default=10, show_default=True, type=int, help="Number of dates to list.")
@click.pass_context
def show_calendar(ctx: click.Context, count: int) -> None:
    """List the next meeting dates after holidays and cancellations."""
    config: SchedulerConfig = ctx.obj["config"]
    today: date = ctx.obj["today"]

    try:
        cancellations = load_cancellations(config.cancellations_file)
        exclusions = build_exclusions(cancellations, config, today)
        dates = next_meeting_dates(config, exclusions, count, today)
    except (InputValidationError, CalendarExhaustedError) as exc:
        raise click.ClickException(str(exc)) from exc

    for d in dates:
        click.echo(f"{d.isoformat()}  {d.strftime('%A')}")


@main.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Show the current published schedule."""
    config: SchedulerConfig = ctx.obj["config"]
    current = load_schedule(config.schedule_file)

    if current.empty:
        click.echo("No schedule written yet.")
        return

    click.echo(current.to_string(index=False))


@main.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show headline counts and the per-identifier proband breakdown."""
    config: SchedulerConfig = ctx.obj["config"]
    try:
        db = load_database(config.database_file)
    except FileNotFoundError as exc:
        raise click.ClickException(
            f"Sample database {config.database_file} not found; run 'svi-scheduler database' first."
        ) from exc

    headline, breakdown = summarize_database(db)
    click.echo(f"Total samples:   {headline['total_samples']}")
    click.echo(f"Probands:        {headline['proband_count']}")
    click.echo(f"Reported:        {headline['reported_count']}")
    click.echo(f"Data processed:  {headline['processed_count']}")
    if not breakdown.empty:
        click.echo("")
        click.echo(breakdown.to_string())
