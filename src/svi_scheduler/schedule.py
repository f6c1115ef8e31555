from __future__ import annotations

__all__ = ["SCHEDULE_COLUMNS", "build_schedule", "write_schedule", "load_schedule"]

import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

import pandas as pd

from svi_scheduler.config import SchedulerConfig
from svi_scheduler.meeting_calendar import next_meeting_dates
from svi_scheduler.priority import build_classifier, prioritize
from svi_scheduler.samples import SAMPLE_COLUMNS, eligible_samples

if TYPE_CHECKING:
    from svi_scheduler.audit import AuditLogger

logger = logging.getLogger(__name__)

# Canonical column → column name in the published schedule CSV
SCHEDULE_COLUMNS: dict[str, str] = {
    "sample_id": "Sample ID",
    "proband": "proband",
    "date_received": "Date Received",
    "identifier": "Identifier",
    "report": "report",
    "analyzed": "geneyx_uploaded",
    "priority_level": "priority_level",
    "priority_rank": "priority_rank",
    "reason_for_priority": "reason_for_priority",
    "meeting_date": "meeting_date",
}


def build_schedule(
    samples: pd.DataFrame,
    hot_list: Iterable[str],
    exclusions: Iterable[date],
    config: SchedulerConfig,
    today: date | None = None,
    reference_year: int | None = None,
    audit: AuditLogger | None = None,
) -> pd.DataFrame:
    """Prioritize eligible samples and assign each a meeting date.

    Steps:

    1. Keep eligible samples (probands not yet reported) and validate them.
    2. Classify and sort them (:func:`~svi_scheduler.priority.prioritize`).
    3. Ask the calendar for enough dates, searching from the day before
       *today*, skipping *exclusions*.
    4. Assign dates positionally: ranks ``1..k`` share the first date,
       ``k+1..2k`` the second, and so on, where ``k`` is
       ``config.slots_per_meeting`` (1 by default, one sample per meeting).

    Parameters
    ----------
    samples:
        Sample table with the canonical columns in
        :data:`~svi_scheduler.samples.SAMPLE_COLUMNS`.
    hot_list:
        Sample IDs that always get tier 0.
    exclusions:
        Dates that may never host a meeting.
    today:
        Run date. Defaults to :func:`datetime.date.today`.
    reference_year:
        Newest year of the recent-year window. Defaults to
        ``config.reference_year``, then to *today*'s year.
    audit:
        Optional audit logger; one ``scheduled`` event is written per entry
        after the whole schedule has been computed.

    Returns
    -------
    pd.DataFrame
        One row per eligible sample in rank order, with the columns of
        :data:`SCHEDULE_COLUMNS` (canonical names).

    Raises
    ------
    InputValidationError
        If an eligible sample is malformed.
    CalendarExhaustedError
        If the exclusions leave too few meeting dates.
    """
    today = today or date.today()
    if reference_year is None:
        reference_year = config.resolve_reference_year(today)

    eligible = eligible_samples(samples)
    eligible = eligible[[c for c in SAMPLE_COLUMNS if c in eligible.columns]]
    classifier = build_classifier(config, hot_list, reference_year)
    ranked = prioritize(eligible, classifier)

    if ranked.empty:
        logger.info("No eligible samples; schedule is empty")
        return pd.DataFrame(columns=list(SCHEDULE_COLUMNS))

    slots = config.slots_per_meeting
    n_meetings = -(-len(ranked) // slots)
    dates = next_meeting_dates(config, exclusions, n_meetings, today)
    ranked["meeting_date"] = [dates[i // slots] for i in range(len(ranked))]

    logger.info(
        "Scheduled %d sample(s) across %d meeting(s), %s to %s",
        len(ranked), n_meetings, dates[0], dates[-1],
    )

    if audit is not None:
        for _, row in ranked.iterrows():
            audit.log(
                "scheduled",
                sample_id=row["sample_id"],
                priority_rank=int(row["priority_rank"]),
                priority_level=int(row["priority_level"]),
                reason=row["reason_for_priority"],
                meeting_date=row["meeting_date"].isoformat(),
            )

    return ranked[list(SCHEDULE_COLUMNS)]


def write_schedule(schedule: pd.DataFrame, path: str | Path) -> None:
    """Write *schedule* as a flat CSV with dashboard column names.

    Dates are written as ``YYYY-MM-DD`` and flags as ``1``/``0``.
    """
    out = schedule[list(SCHEDULE_COLUMNS)].copy()
    for col in ("date_received", "meeting_date"):
        out[col] = out[col].map(lambda d: d.isoformat() if pd.notna(d) else "")
    for col in ("proband", "report", "analyzed"):
        out[col] = out[col].astype(bool).astype(int)
    out = out.rename(columns=SCHEDULE_COLUMNS)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False)


def load_schedule(path: str | Path) -> pd.DataFrame:
    """Read a schedule CSV written by :func:`write_schedule`.

    Returns an empty DataFrame with the dashboard columns if the file does
    not exist.
    """
    if not Path(path).exists():
        return pd.DataFrame(columns=list(SCHEDULE_COLUMNS.values()))
    return pd.read_csv(path, dtype={"Sample ID": str, "Date Received": str, "meeting_date": str})
