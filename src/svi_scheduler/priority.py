from __future__ import annotations

__all__ = ["Classifier", "classify", "build_classifier", "prioritize"]

import logging
from typing import Callable, Iterable

import pandas as pd

from svi_scheduler.config import (
    DEFAULT_IDENTIFIER_CLASSES,
    FALLBACK_TIER,
    HOT_LIST_TIER,
    IdentifierClass,
    SchedulerConfig,
)
from svi_scheduler.samples import SampleRecord, records_from_frame, sample_number

logger = logging.getLogger(__name__)

HOT_LIST_REASON = "CRITICAL: Hot List"

# Type alias for a classifier function
Classifier = Callable[[SampleRecord], tuple[int, str]]


def classify(
    record: SampleRecord,
    hot_list: Iterable[str],
    *,
    reference_year: int,
    year_window: int = 4,
    classes: list[IdentifierClass] | None = None,
) -> tuple[int, str]:
    """Return ``(tier, reason)`` for a single sample.

    Rules are evaluated in order and the first match wins:

    1. Sample ID on the hot list → tier 0, ``"CRITICAL: Hot List"``.
    2. A year-independent class (``UIC``) → its tier and label.
    3. A by-year class (``UDD``, ``Base``) received within the last
       *year_window* years → ``tier + (reference_year - year_received)``
       with reason ``"<class> <year>"``.
    4. Anything else → tier 999 with reason ``"<identifier> <year>"``.

    The result depends only on the arguments.
    """
    if record.sample_id in hot_list:
        return HOT_LIST_TIER, HOT_LIST_REASON

    year = record.year_received
    for cls in DEFAULT_IDENTIFIER_CLASSES if classes is None else classes:
        if cls.name != record.identifier:
            continue
        if not cls.by_year:
            return cls.tier, cls.label or cls.name
        offset = reference_year - year
        if 0 <= offset < year_window:
            return cls.tier + offset, f"{cls.name} {year}"
        break

    return FALLBACK_TIER, f"{record.identifier} {year}"


def build_classifier(
    config: SchedulerConfig,
    hot_list: Iterable[str],
    reference_year: int,
) -> Classifier:
    """Bind *config*'s class registry, *hot_list* and *reference_year* into a classifier.

    The hot list is frozen on entry so later changes by the caller cannot
    affect a run in progress.
    """
    frozen = frozenset(hot_list)
    classes = list(config.identifier_classes)
    year_window = config.year_window

    def classifier(record: SampleRecord) -> tuple[int, str]:
        return classify(
            record,
            frozen,
            reference_year=reference_year,
            year_window=year_window,
            classes=classes,
        )

    classifier.__name__ = f"classify_{reference_year}"
    return classifier


def _number_key(sample_id: str) -> str:
    number = sample_number(sample_id)
    return "" if number is None else str(number)


def prioritize(samples: pd.DataFrame, classifier: Classifier) -> pd.DataFrame:
    """Classify and order eligible samples, then assign ``priority_rank``.

    *samples* must already be validated (see
    :func:`~svi_scheduler.samples.eligible_samples`); its row order is taken
    as ingestion order.

    Rows are sorted ascending by ``(priority_level, date_received,
    sample number)`` where *sample number* is the first run of digits in the
    sample ID. IDs without digits sort after numbered IDs with the same tier
    and date; any remaining tie keeps ingestion order. The sort is stable so
    the result is fully deterministic.

    Returns
    -------
    pd.DataFrame
        The input columns plus ``priority_level`` (int), ``reason_for_priority``
        (str) and ``priority_rank`` (dense, 1-based), in rank order.
    """
    columns = list(samples.columns) + ["priority_level", "priority_rank", "reason_for_priority"]
    if samples.empty:
        return pd.DataFrame(columns=columns)

    tiers: list[int] = []
    reasons: list[str] = []
    for record in records_from_frame(samples):
        tier, reason = classifier(record)
        if tier == FALLBACK_TIER:
            logger.info("%s matched no priority rule; assigned fallback tier (%s)", record.sample_id, reason)
        tiers.append(tier)
        reasons.append(reason)

    # Zero-padded digit strings sort like the numbers they spell, at any length
    digits = samples["sample_id"].map(_number_key)
    width = int(digits.str.len().max())
    ranked = samples.assign(
        priority_level=tiers,
        reason_for_priority=reasons,
        _number_missing=digits == "",
        _number=digits.str.zfill(width),
        _order=range(len(samples)),
    )
    ranked = ranked.sort_values(
        ["priority_level", "date_received", "_number_missing", "_number", "_order"],
        kind="stable",
    ).drop(columns=["_number_missing", "_number", "_order"])
    ranked = ranked.reset_index(drop=True)
    ranked["priority_rank"] = range(1, len(ranked) + 1)
    return ranked[columns].copy()
