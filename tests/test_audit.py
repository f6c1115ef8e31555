"""Tests for audit.py — AuditLogger and get_logger()."""
import json
from datetime import datetime
from pathlib import Path

import pytest

from svi_scheduler.audit import AuditLogger, get_logger
from svi_scheduler.config import SchedulerConfig


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "audit.jsonl"


@pytest.fixture
def audit(log_file):
    return AuditLogger(log_file)


# ---------------------------------------------------------------------------
# AuditLogger — file creation
# ---------------------------------------------------------------------------


def test_log_creates_file(audit, log_file):
    audit.log("scheduled", sample_id="MCW_SVI_0001_UDD", meeting_date="2025-06-20")
    assert log_file.exists()


def test_log_creates_parent_dirs(tmp_path):
    deep = tmp_path / "a" / "b" / "c" / "audit.jsonl"
    al = AuditLogger(deep)
    al.log("run_complete", detail="0 sample(s) scheduled")
    assert deep.exists()


# ---------------------------------------------------------------------------
# AuditLogger — JSONL structure
# ---------------------------------------------------------------------------


def test_log_entry_has_required_fields(audit, log_file):
    audit.log("scheduled", sample_id="MCW_SVI_0001_UDD", meeting_date="2025-06-20")
    entry = json.loads(log_file.read_text())
    for field in ("ts", "event", "sample_id", "meeting_date", "detail"):
        assert field in entry, f"Missing field: {field}"


def test_log_entry_values(audit, log_file):
    audit.log("scheduled", sample_id="MCW_SVI_0042_UDD", meeting_date="2025-06-24")
    entry = json.loads(log_file.read_text())
    assert entry["event"] == "scheduled"
    assert entry["sample_id"] == "MCW_SVI_0042_UDD"
    assert entry["meeting_date"] == "2025-06-24"


def test_run_level_event_has_empty_sample(audit, log_file):
    audit.log("error", detail="Requested 3 meeting date(s)")
    entry = json.loads(log_file.read_text())
    assert entry["sample_id"] == ""
    assert entry["detail"] == "Requested 3 meeting date(s)"


def test_log_entry_extra_kwargs(audit, log_file):
    audit.log("scheduled", sample_id="MCW_SVI_0001_UDD", priority_rank=3, reason="UDD 2025")
    entry = json.loads(log_file.read_text())
    assert entry["priority_rank"] == 3
    assert entry["reason"] == "UDD 2025"


def test_log_serializes_non_json_values(audit, log_file):
    audit.log("run_complete", output=Path("/srv/out.csv"))
    entry = json.loads(log_file.read_text())
    assert entry["output"] == "/srv/out.csv"


def test_unknown_event_raises(audit, log_file):
    with pytest.raises(ValueError, match="Unknown audit event"):
        audit.log("submitted")
    assert not log_file.exists()


def test_log_appends_multiple_entries(audit, log_file):
    audit.log("scheduled", sample_id="MCW_SVI_0001_UDD")
    audit.log("scheduled", sample_id="MCW_SVI_0002_UIC")
    entries = [json.loads(l) for l in log_file.read_text().splitlines()]
    assert [e["sample_id"] for e in entries] == ["MCW_SVI_0001_UDD", "MCW_SVI_0002_UIC"]


def test_log_entries_are_one_line_each(audit, log_file):
    audit.log("dry_run", detail="multi\nline detail")
    raw = log_file.read_text()
    assert raw.count("\n") == 1


def test_log_timestamp_is_iso_format(audit, log_file):
    audit.log("run_complete")
    entry = json.loads(log_file.read_text())
    datetime.fromisoformat(entry["ts"])


# ---------------------------------------------------------------------------
# get_logger
# ---------------------------------------------------------------------------


def test_get_logger_uses_log_file_when_set(tmp_path):
    log_path = tmp_path / "custom_audit.jsonl"
    al = get_logger(SchedulerConfig(log_file=log_path))
    assert isinstance(al, AuditLogger)
    assert al.log_file == log_path


def test_get_logger_defaults_to_schedule_dir(tmp_path):
    cfg = SchedulerConfig(schedule_file=tmp_path / "public" / "analysis_scheduler.csv")
    assert get_logger(cfg).log_file == tmp_path / "public" / "scheduler_audit.jsonl"
