from __future__ import annotations

__all__ = [
    "extract_id",
    "scan_sequencing_dirs",
    "latest_bam_date",
    "parse_report_ids",
    "load_report_ids",
    "load_analyzed_ids",
]

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable

import pandas as pd

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"\d{4}")
# Report decks are named like "SVI-0042 ….pptx" or "SVI_0042_….pptx"
_REPORT_ID_RE = re.compile(r"(?<=SVI[-_])\d{4}")

_DIR_COLUMNS = ["Sample", "SamplePath", "ID"]


def extract_id(name: str) -> str | None:
    """Return the first four-digit run in *name* (the lab's sample number), or ``None``."""
    match = _ID_RE.search(str(name))
    return match.group() if match else None


def scan_sequencing_dirs(roots: Iterable[str | Path]) -> pd.DataFrame:
    """Return one row per sample directory found directly under each of *roots*.

    Columns: ``Sample`` (directory name), ``SamplePath`` (the root it was
    found in) and ``ID``. Roots that do not exist are skipped with a warning.
    """
    rows = []
    for root in roots:
        root = Path(root)
        if not root.is_dir():
            logger.warning("Directory does not exist: %s", root)
            continue
        subdirs = sorted(p for p in root.iterdir() if p.is_dir())
        if not subdirs:
            logger.info("No subdirectories found in: %s", root)
        for sub in subdirs:
            rows.append({"Sample": sub.name, "SamplePath": str(root), "ID": extract_id(sub.name)})

    if not rows:
        return pd.DataFrame(columns=_DIR_COLUMNS)
    return pd.DataFrame(rows, columns=_DIR_COLUMNS)


def latest_bam_date(sample_dir: str | Path) -> str | None:
    """Return the mtime (``YYYY-MM-DD``) of the newest ``*.sorted.bam`` in *sample_dir*.

    The date stands in for "sequencing data processed". Returns ``None``
    when the directory holds no sorted BAM.
    """
    bams = list(Path(sample_dir).glob("*.sorted.bam"))
    if not bams:
        return None
    newest = max(bam.stat().st_mtime for bam in bams)
    return datetime.fromtimestamp(newest).strftime("%Y-%m-%d")


def parse_report_ids(lines: Iterable[str]) -> frozenset[str]:
    """Collect the sample numbers of report decks from an ``rclone ls`` style listing."""
    ids: set[str] = set()
    for line in lines:
        ids.update(_REPORT_ID_RE.findall(line))
    return frozenset(ids)


def _read_lines(path: str | Path, what: str) -> list[str]:
    path = Path(path)
    if not path.exists():
        logger.warning("%s %s not found; treating as empty", what, path)
        return []
    return path.read_text().splitlines()


def load_report_ids(path: str | Path) -> frozenset[str]:
    """Read a saved report-deck listing and return its sample numbers."""
    return parse_report_ids(_read_lines(path, "Report listing"))


def load_analyzed_ids(path: str | Path) -> frozenset[str]:
    """Read the list of sample numbers uploaded for analysis (one per line)."""
    return frozenset(line.strip() for line in _read_lines(path, "Analyzed list") if line.strip())
