from __future__ import annotations

__all__ = ["IdentifierClass", "DEFAULT_IDENTIFIER_CLASSES", "SchedulerConfig"]

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import yaml

#: Tier reserved for hot-list samples.
HOT_LIST_TIER = 0
#: Catch-all tier for samples that match no class rule.
FALLBACK_TIER = 999

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
HOLIDAY_CALENDARS = ("nyse", "federal", "none")


@dataclass
class IdentifierClass:
    """Declaration of a single sample identifier class."""

    name: str
    suffix: str | None  # Sample ID suffix, e.g. "_UDD"; None marks the default class
    tier: int
    by_year: bool = True
    label: str | None = None  # reason text for year-independent classes; defaults to name
    # by_year semantics:
    #   False → every sample of this class gets ``tier``
    #   True  → ``tier + (reference_year - year_received)`` inside the
    #           recent-year window; older or future years fall to FALLBACK_TIER

    def tier_range(self, year_window: int) -> range:
        """Return the tiers this class can assign."""
        width = year_window if self.by_year else 1
        return range(self.tier, self.tier + width)


DEFAULT_IDENTIFIER_CLASSES: list[IdentifierClass] = [
    IdentifierClass(name="UIC", suffix="_UIC", tier=1, by_year=False, label="Highest Priority: UIC"),
    IdentifierClass(name="UDD", suffix="_UDD", tier=2, by_year=True),
    IdentifierClass(name="Base", suffix=None, tier=102, by_year=True),
]


@dataclass
class SchedulerConfig:
    """All paths, priority rules, and calendar settings in one place."""

    # Output artifacts (read by the dashboard)
    database_file: Path = field(default_factory=lambda: Path("public/svi_database.csv"))
    schedule_file: Path = field(default_factory=lambda: Path("public/analysis_scheduler.csv"))
    # Every output is copied into each of these after a successful run
    publish_dirs: list[Path] = field(default_factory=list)

    # Per-run curated inputs
    hotlist_file: Path = field(default_factory=lambda: Path("public/hotlist.csv"))
    cancellations_file: Path = field(default_factory=lambda: Path("public/canceled_meetings.csv"))

    # Ingestion sources
    sequencing_roots: list[Path] = field(default_factory=list)
    accession_file: Path | None = None
    accession_remote: str | None = None  # rclone folder holding the accessioning workbook
    accession_name: str = "3335 Accessioning.xlsx"
    reports_remote: str | None = None  # rclone path listing the report decks
    reports_listing: Path | None = None  # saved `rclone ls` output, used when no remote is set
    analyzed_file: Path | None = None

    # Priority
    reference_year: int | None = None  # None → year of the run date
    year_window: int = 4
    identifier_classes: list[IdentifierClass] = field(
        default_factory=lambda: list(DEFAULT_IDENTIFIER_CLASSES)
    )

    # Meeting calendar
    meeting_weekdays: list[str] = field(default_factory=lambda: ["Tuesday", "Friday"])
    calendar_buffer: int = 40
    holiday_calendar: str = "nyse"
    holiday_years_ahead: int = 1
    slots_per_meeting: int = 1

    # JSONL audit log path. Defaults to <schedule_file parent>/scheduler_audit.jsonl at runtime.
    log_file: Path | None = None

    def __post_init__(self) -> None:
        """Validate the identifier-class registry and calendar settings.

        Raises
        ------
        ValueError
            If the registry does not contain exactly one default class, a
            class name repeats, a tier collides with the reserved hot-list or
            fallback tiers, two classes can assign the same tier, or a
            calendar setting is out of range.
        """
        if self.year_window < 1:
            raise ValueError(f"year_window must be at least 1, got {self.year_window}")

        names = [c.name for c in self.identifier_classes]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate identifier class name(s): {duplicates}")

        defaults = [c.name for c in self.identifier_classes if c.suffix is None]
        if len(defaults) != 1:
            raise ValueError(
                "Exactly one identifier class must have suffix=None (the default "
                f"class); found {len(defaults)}: {defaults}"
            )

        claimed: dict[int, str] = {}
        for cls in self.identifier_classes:
            for tier in cls.tier_range(self.year_window):
                if not HOT_LIST_TIER < tier < FALLBACK_TIER:
                    raise ValueError(
                        f"Identifier class {cls.name!r} assigns tier {tier}, outside "
                        f"the allowed range {HOT_LIST_TIER + 1}..{FALLBACK_TIER - 1}"
                    )
                if tier in claimed:
                    raise ValueError(
                        f"Identifier classes {claimed[tier]!r} and {cls.name!r} both "
                        f"assign tier {tier}"
                    )
                claimed[tier] = cls.name

        unknown = [d for d in self.meeting_weekdays if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown meeting weekday(s): {unknown}. Expected one of {list(WEEKDAYS)}")
        if len(self.meeting_weekdays) != 2 or len(set(self.meeting_weekdays)) != 2:
            raise ValueError(
                f"meeting_weekdays must name two distinct weekdays, got {self.meeting_weekdays}"
            )
        if self.calendar_buffer < 0:
            raise ValueError(f"calendar_buffer must be non-negative, got {self.calendar_buffer}")
        if self.slots_per_meeting < 1:
            raise ValueError(f"slots_per_meeting must be at least 1, got {self.slots_per_meeting}")
        if self.holiday_calendar not in HOLIDAY_CALENDARS:
            raise ValueError(
                f"Unknown holiday_calendar {self.holiday_calendar!r}. "
                f"Expected one of {list(HOLIDAY_CALENDARS)}"
            )

    @property
    def weekday_numbers(self) -> tuple[int, int]:
        """Meeting weekdays as ``date.weekday()`` numbers (Monday = 0)."""
        first, second = self.meeting_weekdays
        return WEEKDAYS.index(first), WEEKDAYS.index(second)

    def resolve_reference_year(self, today: date) -> int:
        """Return the configured reference year, or *today*'s year when unset."""
        return self.reference_year if self.reference_year is not None else today.year

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SchedulerConfig":
        """Load config from a YAML file, overriding defaults.

        Raises
        ------
        ValueError
            If the file contains invalid YAML syntax.
        FileNotFoundError
            If *path* does not exist.
        """
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

        path_fields = {
            "database_file", "schedule_file", "hotlist_file", "cancellations_file",
            "accession_file", "reports_listing", "analyzed_file", "log_file",
        }
        for key in path_fields:
            if data.get(key) is not None:
                data[key] = Path(data[key])

        for key in ("publish_dirs", "sequencing_roots"):
            if key in data:
                data[key] = [Path(p) for p in data[key] or []]

        if "identifier_classes" in data:
            data["identifier_classes"] = [IdentifierClass(**c) for c in data["identifier_classes"]]

        return cls(**data)
