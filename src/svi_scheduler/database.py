from __future__ import annotations

__all__ = [
    "derive_identifier",
    "build_database",
    "write_database",
    "load_database",
    "database_to_samples",
    "summarize_database",
]

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from svi_scheduler.config import DEFAULT_IDENTIFIER_CLASSES, IdentifierClass
from svi_scheduler.samples import SAMPLE_COLUMNS
from svi_scheduler.sources import latest_bam_date

logger = logging.getLogger(__name__)

# Columns the dashboard needs to decide whether a row is a real sample
_IDENTITY_COLUMNS = ["Sample ID", "Date Received", "MRN", "AGen ID"]

# Database column → canonical sample column
_SAMPLE_COLUMN_MAP = {
    "Sample ID": "sample_id",
    "proband": "proband",
    "Date Received": "date_received",
    "Identifier": "identifier",
    "report": "report",
    "geneyx_uploaded": "analyzed",
}


def derive_identifier(sample_id: object, classes: list[IdentifierClass] | None = None) -> str:
    """Return the identifier class name whose suffix ends *sample_id*.

    Classes are tried in order; a missing or unmatched ID gets the default
    (suffix-less) class.
    """
    classes = DEFAULT_IDENTIFIER_CLASSES if classes is None else classes
    if isinstance(sample_id, str):
        for cls in classes:
            if cls.suffix is not None and sample_id.endswith(cls.suffix):
                return cls.name
    return next(c.name for c in classes if c.suffix is None)


def build_database(
    dirs: pd.DataFrame,
    accession: pd.DataFrame,
    report_ids: Iterable[str],
    analyzed_ids: Iterable[str],
    classes: list[IdentifierClass] | None = None,
) -> pd.DataFrame:
    """Join sequencing directories with accessioning rows into the sample database.

    Parameters
    ----------
    dirs:
        Output of :func:`~svi_scheduler.sources.scan_sequencing_dirs`
        (``Sample``, ``SamplePath``, ``ID``).
    accession:
        Output of :func:`~svi_scheduler.accession.load_accession`.
    report_ids / analyzed_ids:
        Sample numbers that have a report deck / were uploaded for analysis.
    classes:
        Identifier-class registry used to derive ``Identifier``.

    Returns
    -------
    pd.DataFrame
        Full outer join on ``ID`` sorted by ``Date Received`` (newest first,
        missing dates last), with derived ``Identifier``, ``DataDate``,
        ``report`` and ``geneyx_uploaded`` columns. ``Sample`` and ``ID`` are
        dropped.
    """
    report_ids = frozenset(report_ids)
    analyzed_ids = frozenset(analyzed_ids)

    db = dirs.merge(accession, on="ID", how="outer")

    # Hand-typed cells can mix date formats with real Excel dates
    received = pd.to_datetime(db["Date Received"], format="mixed", errors="coerce")
    unparseable = db["Date Received"].notna() & received.isna()
    if unparseable.any():
        logger.warning(
            "Unparseable 'Date Received' for sample(s) %s; stored as missing",
            db.loc[unparseable, "Sample ID"].tolist(),
        )
    db["Date Received"] = received
    db = db.sort_values("Date Received", ascending=False, na_position="last", kind="stable")
    db = db.reset_index(drop=True)

    db["Identifier"] = db["Sample ID"].map(lambda sid: derive_identifier(sid, classes))
    db["DataDate"] = [
        latest_bam_date(Path(path) / sample) if pd.notna(path) and pd.notna(sample) else None
        for path, sample in zip(db["SamplePath"], db["Sample"])
    ]
    db["report"] = db["ID"].isin(report_ids).astype(int)
    db["geneyx_uploaded"] = db["ID"].isin(analyzed_ids).astype(int)

    logger.info(
        "Database: %d row(s), %d with sequencing data, %d reported",
        len(db), int(db["DataDate"].notna().sum()), int(db["report"].sum()),
    )
    return db.drop(columns=["Sample", "ID"])


def write_database(db: pd.DataFrame, path: str | Path) -> None:
    """Write the database CSV for the dashboard.

    The dashboard skips the first column, so a 1-based row index is written
    first. Missing values are written as ``NA`` and dates as ``YYYY-MM-DD``.
    """
    out = db.copy()
    out["Date Received"] = pd.to_datetime(out["Date Received"], errors="coerce").dt.strftime("%Y-%m-%d")
    out.index = range(1, len(out) + 1)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=True, na_rep="NA")


def load_database(path: str | Path) -> pd.DataFrame:
    """Read a database CSV written by :func:`write_database`.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    return pd.read_csv(
        path,
        index_col=0,
        dtype={"Sample ID": str, "MRN": str, "AGen ID": str, "Submitter ID/ Acc. No.": str},
        na_values=["NA"],
        keep_default_na=False,
    )


def database_to_samples(db: pd.DataFrame) -> pd.DataFrame:
    """Project the database onto the canonical sample columns used by the scheduler."""
    samples = db.rename(columns=_SAMPLE_COLUMN_MAP)
    for col in SAMPLE_COLUMNS:
        if col not in samples.columns:
            samples[col] = pd.NA
    return samples[SAMPLE_COLUMNS].reset_index(drop=True)


def _is_one(series: pd.Series) -> pd.Series:
    return (pd.to_numeric(series, errors="coerce") == 1).fillna(False).astype(bool)


def summarize_database(db: pd.DataFrame) -> tuple[dict[str, int], pd.DataFrame]:
    """Return the dashboard headline counts and per-identifier proband breakdown.

    Rows with no sample ID, received date, MRN or AGen ID are ignored.

    Returns
    -------
    tuple[dict[str, int], pd.DataFrame]
        Headline counts (``total_samples``, ``proband_count``,
        ``reported_count``, ``processed_count``) and a frame indexed by
        ``Identifier`` with ``Reported``, ``Analyzed`` (analysed but not
        reported) and ``Pending`` counts over probands.
    """
    present = [c for c in _IDENTITY_COLUMNS if c in db.columns]
    if present:
        db = db[db[present].notna().any(axis=1)]

    proband = _is_one(db["proband"])
    reported = _is_one(db["report"])
    analyzed = _is_one(db["geneyx_uploaded"]) | reported
    headline = {
        "total_samples": len(db),
        "proband_count": int(proband.sum()),
        "reported_count": int(reported.sum()),
        "processed_count": int(db["DataDate"].notna().sum()),
    }

    probands = pd.DataFrame({
        "Identifier": db.loc[proband, "Identifier"],
        "reported": reported[proband],
        "analyzed": analyzed[proband],
    })
    grouped = probands.groupby("Identifier", sort=True)
    breakdown = pd.DataFrame({
        "Reported": grouped["reported"].sum(),
        "Analyzed": grouped["analyzed"].sum() - grouped["reported"].sum(),
        "Pending": grouped.size() - grouped["analyzed"].sum(),
    }).astype(int)
    return headline, breakdown
