from __future__ import annotations

__all__ = [
    "InputValidationError",
    "SampleRecord",
    "SAMPLE_COLUMNS",
    "eligible_samples",
    "records_from_frame",
    "sample_number",
    "load_hot_list",
    "load_cancellations",
]

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

# Canonical columns the scheduling core consumes
SAMPLE_COLUMNS = ["sample_id", "proband", "date_received", "identifier", "report", "analyzed"]

_REQUIRED_COLUMNS = {"sample_id", "proband", "date_received", "identifier", "report"}

_NUMBER_RE = re.compile(r"\d+")

_TRUE_STRINGS = {"1", "1.0", "true", "yes", "y"}


class InputValidationError(ValueError):
    """Raised when run inputs are malformed (missing fields, bad dates, duplicates)."""


@dataclass(frozen=True)
class SampleRecord:
    """One sample as seen by the priority classifier."""

    sample_id: str
    is_proband: bool
    date_received: date
    identifier: str
    is_reported: bool = False
    is_analyzed: bool = False

    @property
    def year_received(self) -> int:
        return self.date_received.year

    @property
    def is_eligible(self) -> bool:
        """A proband that has not been reported yet."""
        return self.is_proband and not self.is_reported


def _as_flag(value: Any) -> bool:
    """Interpret 1/0, True/False, "1"/"0" and NaN (→ False) as a boolean."""
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def sample_number(sample_id: str) -> int | None:
    """Return the first run of digits in *sample_id*, or ``None`` if there is none.

    ``"MCW_SVI_0042_UDD"`` → ``42``.
    """
    match = _NUMBER_RE.search(str(sample_id))
    return int(match.group()) if match else None


def eligible_samples(samples: pd.DataFrame) -> pd.DataFrame:
    """Return the validated subset of *samples* that can be scheduled.

    Eligible rows are probands that are not yet reported. Only eligible rows
    are validated; a reported sample with a blank received date is not an
    error. Received dates may be any ISO 8601 date or datetime, and the
    format may vary from row to row. The returned frame keeps the input order
    (ingestion order) and carries ``date_received`` as ``datetime.date`` values.

    Raises
    ------
    InputValidationError
        If a required column is missing, or an eligible row has no sample ID,
        a missing or unparseable received date, or a duplicate sample ID.
    """
    missing = _REQUIRED_COLUMNS - set(samples.columns)
    if missing:
        raise InputValidationError(
            f"Sample table is missing required column(s): {sorted(missing)}. "
            f"Found: {sorted(samples.columns.tolist())}"
        )

    proband = samples["proband"].map(_as_flag).astype(bool)
    reported = samples["report"].map(_as_flag).astype(bool)
    eligible = samples[proband & ~reported].copy()
    if eligible.empty:
        return eligible.reset_index(drop=True)

    blank_ids = eligible["sample_id"].isna() | (eligible["sample_id"].astype(str).str.strip() == "")
    if blank_ids.any():
        raise InputValidationError(
            f"{int(blank_ids.sum())} eligible row(s) have no sample ID "
            f"(row index: {eligible.index[blank_ids].tolist()})"
        )
    eligible["sample_id"] = eligible["sample_id"].astype(str).str.strip()

    dupes = eligible["sample_id"][eligible["sample_id"].duplicated()].unique().tolist()
    if dupes:
        raise InputValidationError(f"Duplicate eligible sample ID(s): {dupes}")

    parsed = pd.to_datetime(eligible["date_received"], format="ISO8601", errors="coerce")
    bad = parsed.isna()
    if bad.any():
        offenders = {
            sid: raw for sid, raw in zip(eligible.loc[bad, "sample_id"], eligible.loc[bad, "date_received"])
        }
        raise InputValidationError(f"Missing or unparseable date_received for sample(s): {offenders}")
    eligible["date_received"] = parsed.dt.date

    eligible["proband"] = True
    eligible["report"] = False
    if "analyzed" in eligible.columns:
        eligible["analyzed"] = eligible["analyzed"].map(_as_flag)
    else:
        eligible["analyzed"] = False
    return eligible.reset_index(drop=True)


def records_from_frame(samples: pd.DataFrame) -> list[SampleRecord]:
    """Convert a validated sample frame (see :func:`eligible_samples`) to records."""
    return [
        SampleRecord(
            sample_id=str(row["sample_id"]),
            is_proband=_as_flag(row["proband"]),
            date_received=row["date_received"],
            identifier=str(row["identifier"]),
            is_reported=_as_flag(row["report"]),
            is_analyzed=_as_flag(row.get("analyzed", False)),
        )
        for _, row in samples.iterrows()
    ]


def load_hot_list(path: str | Path) -> frozenset[str]:
    """Load the hot list CSV (column ``Sample ID``).

    A missing file means no sample is hot-listed; it is logged, not raised.

    Raises
    ------
    InputValidationError
        If the file exists but has no ``Sample ID`` column.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Hot list %s not found; no samples are hot-listed", path)
        return frozenset()
    if path.stat().st_size == 0:
        return frozenset()
    df = pd.read_csv(path, dtype=str)
    if "Sample ID" not in df.columns:
        raise InputValidationError(
            f"Hot list {str(path)!r} has no 'Sample ID' column. Found: {df.columns.tolist()}"
        )
    ids = df["Sample ID"].dropna().str.strip()
    return frozenset(i for i in ids if i)


def load_cancellations(path: str | Path) -> frozenset[date]:
    """Load user-declared meeting cancellations (column ``Date``, ``YYYY-MM-DD``).

    A missing file means nothing is cancelled.

    Raises
    ------
    InputValidationError
        If the ``Date`` column is missing or a value is not a ``YYYY-MM-DD`` date.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Cancellations file %s not found; no meetings cancelled", path)
        return frozenset()
    if path.stat().st_size == 0:
        return frozenset()
    df = pd.read_csv(path, dtype=str)
    if "Date" not in df.columns:
        raise InputValidationError(
            f"Cancellations file {str(path)!r} has no 'Date' column. Found: {df.columns.tolist()}"
        )
    raw = df["Date"].dropna().str.strip()
    raw = raw[raw != ""]
    parsed = pd.to_datetime(raw, format="%Y-%m-%d", errors="coerce")
    bad = raw[parsed.isna()].tolist()
    if bad:
        raise InputValidationError(f"Unparseable cancellation date(s) in {str(path)!r}: {bad}")
    return frozenset(parsed.dt.date)
