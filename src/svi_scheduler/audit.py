"""audit.py — JSONL audit logger for svi_scheduler.

Every scheduled sample, completed run, and aborted run is appended as a
single JSON object (one line) to the audit log file. The file is created
(with parent directories) on the first write if it does not already exist.

Typical usage::

    from svi_scheduler.audit import get_logger

    audit = get_logger(config)
    audit.log("scheduled", sample_id="MCW_SVI_0042_UDD",
              meeting_date="2025-06-20", priority_rank=1)
"""
from __future__ import annotations

__all__ = ["AuditLogger", "get_logger"]

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from svi_scheduler.config import SchedulerConfig

logger = logging.getLogger(__name__)

#: Valid event names for the audit log.
AUDIT_EVENTS = frozenset({"scheduled", "run_complete", "dry_run", "error"})


class AuditLogger:
    """Appends structured JSON Lines entries to an audit log file.

    Parameters
    ----------
    log_file:
        Path to the JSONL audit file.  Parent directories are created
        automatically on the first write.
    """

    def __init__(self, log_file: Path) -> None:
        self.log_file = log_file

    def log(
        self,
        event: str,
        *,
        sample_id: str = "",
        meeting_date: str = "",
        detail: str = "",
        **extra: Any,
    ) -> None:
        """Append a single audit event as a JSON line.

        Parameters
        ----------
        event:
            One of ``scheduled``, ``run_complete``, ``dry_run``, ``error``.
        sample_id:
            Sample ID the event concerns; empty for run-level events.
        meeting_date:
            Assigned meeting date (``YYYY-MM-DD``) for ``scheduled`` events.
        detail:
            Free-text detail message.
        **extra:
            Any additional key-value pairs to include in the log entry
            (e.g. ``priority_rank``, ``reason``).

        Raises
        ------
        ValueError
            If *event* is not a known audit event.
        """
        if event not in AUDIT_EVENTS:
            raise ValueError(f"Unknown audit event {event!r}. Expected one of {sorted(AUDIT_EVENTS)}")

        entry: dict[str, Any] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "event": event,
            "sample_id": sample_id,
            "meeting_date": meeting_date,
            "detail": detail,
        }
        entry.update(extra)

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a") as fh:
            fh.write(json.dumps(entry, default=str) + "\n")

        logger.debug("audit %s: %s %s", event, sample_id, meeting_date)


def get_logger(config: SchedulerConfig) -> AuditLogger:
    """Return an :class:`AuditLogger` for *config*.

    Uses ``config.log_file`` when set; otherwise defaults to
    ``<schedule_file parent>/scheduler_audit.jsonl``.
    """
    if config.log_file is not None:
        log_file = config.log_file
    else:
        log_file = config.schedule_file.parent / "scheduler_audit.jsonl"
    return AuditLogger(log_file)
