from datetime import datetime

import pytest
from openpyxl import Workbook
from openpyxl.styles import PatternFill

from svi_scheduler.config import SchedulerConfig

BLUE = PatternFill(fill_type="solid", fgColor="FF00B0F0")
ORANGE = PatternFill(fill_type="solid", fgColor="FFFF9900")


# ---------------------------------------------------------------------------
# Shared accessioning workbook helper
# ---------------------------------------------------------------------------

def _write_accession_workbook(path) -> None:
    """Write a small accessioning workbook with colour-coded Sample ID cells.

    Rows:
      MCW_SVI_0001_UDD — 2025-03-01, blue (proband)
      MCW_SVI_0002_UIC — 2024-11-15, blue (proband)
      MCW_SVI_0003_UDD — 2025-01-10, orange (relative)
      MCW_SVI_0004     — 2023-05-05, blue (proband, Base)
      MCW_SVI_0005_UDD — 2025-04-01, no fill (unknown)
    """
    wb = Workbook()
    ws = wb.active
    ws.append(["Sample ID", "Date Received", "MRN", "Submitter ID/ Acc. No.", "AGen ID", "Comments"])
    rows = [
        ("MCW_SVI_0001_UDD", datetime(2025, 3, 1), "M001", "S001", "AG001", None, BLUE),
        ("MCW_SVI_0002_UIC", datetime(2024, 11, 15), "M002", "S002", "AG002", "rush", BLUE),
        ("MCW_SVI_0003_UDD", datetime(2025, 1, 10), "M003", "S003", "AG003", None, ORANGE),
        ("MCW_SVI_0004", datetime(2023, 5, 5), "M004", "S004", "AG004", None, BLUE),
        ("MCW_SVI_0005_UDD", datetime(2025, 4, 1), "M005", "S005", "AG005", None, None),
    ]
    for *values, fill in rows:
        ws.append(values)
        if fill is not None:
            ws.cell(row=ws.max_row, column=1).fill = fill
    wb.save(path)


# ---------------------------------------------------------------------------
# Filesystem-backed fake sources
# ---------------------------------------------------------------------------

@pytest.fixture
def accession_workbook(tmp_path):
    path = tmp_path / "accession.xlsx"
    _write_accession_workbook(path)
    return path


@pytest.fixture
def fake_sources(tmp_path, accession_workbook):
    """Create sequencing directories, a report listing and an analysed list.

    Layout:
      flowcell/0001_run  — has a sorted BAM (processed)
      flowcell/0003_run  — no BAM yet
      flowcell/0099_run  — not in the accessioning sheet
      reports.txt        — one deck for sample 0004
      analyzed.txt       — samples 0001 and 0004
    """
    flowcell = tmp_path / "flowcell"
    (flowcell / "0001_run").mkdir(parents=True)
    (flowcell / "0001_run" / "0001.sorted.bam").touch()
    (flowcell / "0003_run").mkdir()
    (flowcell / "0099_run").mkdir()

    (tmp_path / "reports.txt").write_text("   52341 SVI-0004 final report.pptx\n")
    (tmp_path / "analyzed.txt").write_text("0001\n0004\n")
    return tmp_path


@pytest.fixture
def source_config(fake_sources):
    """SchedulerConfig wired to fake_sources."""
    return SchedulerConfig(
        database_file=fake_sources / "public" / "svi_database.csv",
        schedule_file=fake_sources / "public" / "analysis_scheduler.csv",
        hotlist_file=fake_sources / "public" / "hotlist.csv",
        cancellations_file=fake_sources / "public" / "canceled_meetings.csv",
        sequencing_roots=[fake_sources / "flowcell", fake_sources / "missing_flowcell"],
        accession_file=fake_sources / "accession.xlsx",
        reports_listing=fake_sources / "reports.txt",
        analyzed_file=fake_sources / "analyzed.txt",
        reference_year=2025,
    )
