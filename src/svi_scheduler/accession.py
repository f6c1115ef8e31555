from __future__ import annotations

__all__ = ["PROBAND_COLORS", "ACCESSION_COLUMNS", "read_fill_colors", "load_accession"]

import logging
from pathlib import Path

import openpyxl
import pandas as pd

from svi_scheduler.samples import InputValidationError
from svi_scheduler.sources import extract_id

logger = logging.getLogger(__name__)

SAMPLE_ID_PREFIX = "MCW_SVI_"

# Accessioning staff colour the Sample ID cell: blue = proband, orange = relative
PROBAND_COLORS: dict[str, int] = {
    "FF00B0F0": 1,
    "FFFF9900": 0,
}

ACCESSION_COLUMNS = [
    "Sample ID",
    "proband",
    "Date Received",
    "MRN",
    "Submitter ID/ Acc. No.",
    "AGen ID",
    "Comments",
]


def read_fill_colors(path: str | Path) -> dict[str, str | None]:
    """Map every ``MCW_SVI_*`` cell value on the first sheet to its ARGB fill colour.

    Matching is case-insensitive on the prefix. Cells without a plain RGB
    fill (no fill, theme or indexed colours) map to ``None``. When a sample
    ID appears more than once, the first occurrence wins.
    """
    wb = openpyxl.load_workbook(path)
    try:
        ws = wb.worksheets[0]
        colors: dict[str, str | None] = {}
        for row in ws.iter_rows():
            for cell in row:
                value = cell.value
                if not isinstance(value, str) or not value.upper().startswith(SAMPLE_ID_PREFIX):
                    continue
                if value in colors:
                    continue
                color = cell.fill.fgColor if cell.fill is not None else None
                rgb = color.rgb if color is not None and color.type == "rgb" else None
                colors[value] = rgb if isinstance(rgb, str) else None
    finally:
        wb.close()
    return colors


def load_accession(path: str | Path) -> pd.DataFrame:
    """Load the accessioning workbook and derive proband status from cell colours.

    Returns one row per sheet row with :data:`ACCESSION_COLUMNS` plus ``ID``
    (the first four-digit run in ``Sample ID``). ``proband`` is 1, 0, or
    ``<NA>`` when the cell colour is neither of :data:`PROBAND_COLORS`.
    Optional columns absent from the sheet are added empty.

    Raises
    ------
    InputValidationError
        If the first sheet has no ``Sample ID`` column.
    FileNotFoundError
        If *path* does not exist.
    """
    df = pd.read_excel(path, sheet_name=0, engine="openpyxl")
    df.columns = [str(c).strip() for c in df.columns]
    if "Sample ID" not in df.columns:
        raise InputValidationError(
            f"Accessioning workbook {str(path)!r} has no 'Sample ID' column. "
            f"Found: {df.columns.tolist()}"
        )

    colors = read_fill_colors(path)
    fill = df["Sample ID"].map(colors)
    df["proband"] = fill.map(PROBAND_COLORS).astype("Int64")

    unknown = df.loc[df["Sample ID"].notna() & df["proband"].isna(), "Sample ID"]
    if not unknown.empty:
        logger.info("%d sample(s) have no recognised proband colour", len(unknown))

    for col in ACCESSION_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA
    df = df[ACCESSION_COLUMNS].copy()
    df["ID"] = df["Sample ID"].map(lambda v: extract_id(v) if isinstance(v, str) else None)
    return df
