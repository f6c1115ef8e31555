"""Tests for samples.py — eligibility, validation and curated input files."""
from datetime import date

import pandas as pd
import pytest

from svi_scheduler.samples import (
    InputValidationError,
    SampleRecord,
    eligible_samples,
    load_cancellations,
    load_hot_list,
    records_from_frame,
    sample_number,
)


def make_frame(*rows: dict) -> pd.DataFrame:
    defaults = {"proband": 1, "report": 0, "analyzed": 0, "identifier": "UDD"}
    return pd.DataFrame(
        [{**defaults, **r} for r in rows],
        columns=["sample_id", "proband", "date_received", "identifier", "report", "analyzed"],
    )


# ---------------------------------------------------------------------------
# SampleRecord / sample_number
# ---------------------------------------------------------------------------


def test_record_year_and_eligibility():
    rec = SampleRecord("MCW_SVI_0001_UDD", True, date(2024, 3, 1), "UDD")
    assert rec.year_received == 2024
    assert rec.is_eligible


def test_reported_record_is_not_eligible():
    rec = SampleRecord("MCW_SVI_0001_UDD", True, date(2024, 3, 1), "UDD", is_reported=True)
    assert not rec.is_eligible


@pytest.mark.parametrize(
    "sample_id, expected",
    [
        ("MCW_SVI_0042_UDD", 42),
        ("MCW_SVI_1234", 1234),
        ("7_and_8", 7),
        ("EXTERNAL", None),
    ],
)
def test_sample_number(sample_id, expected):
    assert sample_number(sample_id) == expected


# ---------------------------------------------------------------------------
# eligible_samples
# ---------------------------------------------------------------------------


def test_filters_to_unreported_probands():
    frame = make_frame(
        {"sample_id": "A_0001", "date_received": "2025-01-01"},
        {"sample_id": "A_0002", "date_received": "2025-01-01", "report": 1},
        {"sample_id": "A_0003", "date_received": "2025-01-01", "proband": 0},
        {"sample_id": "A_0004", "date_received": "2025-01-01", "proband": None},
    )
    assert eligible_samples(frame)["sample_id"].tolist() == ["A_0001"]


def test_string_and_float_flags():
    frame = make_frame(
        {"sample_id": "A_0001", "date_received": "2025-01-01", "proband": "1", "report": "0"},
        {"sample_id": "A_0002", "date_received": "2025-01-01", "proband": 1.0, "report": 0.0},
        {"sample_id": "A_0003", "date_received": "2025-01-01", "proband": "true", "report": "yes"},
    )
    assert eligible_samples(frame)["sample_id"].tolist() == ["A_0001", "A_0002"]


def test_dates_become_date_objects():
    frame = make_frame({"sample_id": "A_0001", "date_received": "2025-03-04"})
    assert eligible_samples(frame).loc[0, "date_received"] == date(2025, 3, 4)


def test_mixed_iso_date_formats():
    frame = make_frame(
        {"sample_id": "A_0001", "date_received": "2025-03-01"},
        {"sample_id": "A_0002", "date_received": "2025-03-05T10:30:00"},
        {"sample_id": "A_0003", "date_received": "2025-03-07 08:15"},
    )
    assert eligible_samples(frame)["date_received"].tolist() == [
        date(2025, 3, 1),
        date(2025, 3, 5),
        date(2025, 3, 7),
    ]


def test_keeps_ingestion_order():
    frame = make_frame(
        {"sample_id": "A_0009", "date_received": "2025-01-01"},
        {"sample_id": "A_0001", "date_received": "2024-01-01"},
    )
    assert eligible_samples(frame)["sample_id"].tolist() == ["A_0009", "A_0001"]


def test_analyzed_flag_defaults_false_when_column_absent():
    frame = make_frame({"sample_id": "A_0001", "date_received": "2025-01-01"}).drop(columns="analyzed")
    assert not eligible_samples(frame).loc[0, "analyzed"]


def test_missing_required_column_raises():
    frame = make_frame({"sample_id": "A_0001", "date_received": "2025-01-01"}).drop(columns="report")
    with pytest.raises(InputValidationError, match="report"):
        eligible_samples(frame)


def test_blank_sample_id_raises():
    frame = make_frame({"sample_id": "  ", "date_received": "2025-01-01"})
    with pytest.raises(InputValidationError, match="no sample ID"):
        eligible_samples(frame)


def test_missing_date_raises_with_sample_id():
    frame = make_frame({"sample_id": "A_0001", "date_received": None})
    with pytest.raises(InputValidationError, match="A_0001"):
        eligible_samples(frame)


def test_bad_date_on_reported_row_is_ignored():
    frame = make_frame(
        {"sample_id": "A_0001", "date_received": "2025-01-01"},
        {"sample_id": "A_0002", "date_received": "not a date", "report": 1},
    )
    assert len(eligible_samples(frame)) == 1


def test_duplicate_ids_raise():
    frame = make_frame(
        {"sample_id": "A_0001", "date_received": "2025-01-01"},
        {"sample_id": "A_0001 ", "date_received": "2025-01-02"},
    )
    with pytest.raises(InputValidationError, match="Duplicate"):
        eligible_samples(frame)


def test_input_validation_error_is_value_error():
    assert issubclass(InputValidationError, ValueError)


def test_records_from_frame():
    frame = eligible_samples(make_frame(
        {"sample_id": "A_0001", "date_received": "2025-01-01", "analyzed": 1},
    ))
    (rec,) = records_from_frame(frame)
    assert rec == SampleRecord("A_0001", True, date(2025, 1, 1), "UDD", False, True)


# ---------------------------------------------------------------------------
# load_hot_list
# ---------------------------------------------------------------------------


def test_hot_list_missing_file_is_empty(tmp_path):
    assert load_hot_list(tmp_path / "hotlist.csv") == frozenset()


def test_hot_list_empty_file_is_empty(tmp_path):
    path = tmp_path / "hotlist.csv"
    path.write_text("")
    assert load_hot_list(path) == frozenset()


def test_hot_list_reads_ids(tmp_path):
    path = tmp_path / "hotlist.csv"
    path.write_text("Sample ID,Note\nMCW_SVI_0001_UDD,urgent\n MCW_SVI_0002 ,\n,\n")
    assert load_hot_list(path) == {"MCW_SVI_0001_UDD", "MCW_SVI_0002"}


def test_hot_list_header_only(tmp_path):
    path = tmp_path / "hotlist.csv"
    path.write_text("Sample ID\n")
    assert load_hot_list(path) == frozenset()


def test_hot_list_wrong_column_raises(tmp_path):
    path = tmp_path / "hotlist.csv"
    path.write_text("ID\nMCW_SVI_0001\n")
    with pytest.raises(InputValidationError, match="Sample ID"):
        load_hot_list(path)


# ---------------------------------------------------------------------------
# load_cancellations
# ---------------------------------------------------------------------------


def test_cancellations_missing_file_is_empty(tmp_path):
    assert load_cancellations(tmp_path / "canceled_meetings.csv") == frozenset()


def test_cancellations_reads_dates(tmp_path):
    path = tmp_path / "canceled_meetings.csv"
    path.write_text("Date\n2025-06-20\n2025-12-26\n")
    assert load_cancellations(path) == {date(2025, 6, 20), date(2025, 12, 26)}


def test_cancellations_header_only(tmp_path):
    path = tmp_path / "canceled_meetings.csv"
    path.write_text("Date\n")
    assert load_cancellations(path) == frozenset()


def test_cancellations_bad_date_raises(tmp_path):
    path = tmp_path / "canceled_meetings.csv"
    path.write_text("Date\n2025-06-20\n06/24/2025\n")
    with pytest.raises(InputValidationError, match="06/24/2025"):
        load_cancellations(path)


def test_cancellations_wrong_column_raises(tmp_path):
    path = tmp_path / "canceled_meetings.csv"
    path.write_text("When\n2025-06-20\n")
    with pytest.raises(InputValidationError, match="Date"):
        load_cancellations(path)
