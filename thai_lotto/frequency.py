from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional

import numpy as np

from thai_lotto.config import Settings
from thai_lotto.journal import PredictionJournal
from thai_lotto.db import DrawStore
from thai_lotto.models import (
    DigitType,
    FilterCriteria,
    FrequencyDistribution,
    FrequencyEntry,
    InvalidFieldError,
    PositionFrequency,
)
from thai_lotto.results import Err, ErrorKind, Ok, Result, insufficient

logger = logging.getLogger(__name__)


def _pct(count: int, total: int) -> float:
    return round(100.0 * count / total, 2) if total else 0.0


def frequency_distribution(field: DigitType, values: Iterable[str]) -> FrequencyDistribution:
    counts = Counter(v for v in values if v)
    total = sum(counts.values())
    # ties: lower value first
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    entries = [FrequencyEntry(value=v, count=c, percentage=_pct(c, total)) for v, c in ordered]
    return FrequencyDistribution(field=field, entries=entries, total_count=total)


def position_frequency(field: DigitType, values: Iterable[str]) -> PositionFrequency:
    width = field.width
    counts = [[0] * 10 for _ in range(width)]
    total = 0
    for v in values:
        if not v:
            continue
        padded = v.strip().zfill(width)
        if len(padded) != width or not padded.isdigit():
            logger.warning("[FREQ] Ignoring malformed %s value '%s'", field.value, v)
            continue
        for pos, ch in enumerate(padded):
            counts[pos][int(ch)] += 1
        total += 1
    percentages = [[_pct(c, total) for c in row] for row in counts]
    return PositionFrequency(field=field, counts=counts, percentages=percentages, total_count=total)


def summary_statistics(values: List[int]) -> dict:
    arr = np.array(values, dtype=int)
    return {
        "count": int(arr.size),
        "mean": round(float(arr.mean()), 2),
        "median": round(float(np.median(arr)), 2),
        # smallest value wins a tie
        "mode": int(np.bincount(arr).argmax()),
        "std_dev": round(float(arr.std()), 2),
        "min": int(arr.min()),
        "max": int(arr.max()),
        "range": int(arr.max() - arr.min()),
    }


def _validation(e: Exception) -> Err:
    return Err(ErrorKind.VALIDATION, str(e))


class FrequencyAnalyzer:
    def __init__(
        self,
        store: DrawStore,
        journal: Optional[PredictionJournal] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.journal = journal
        self.settings = settings or Settings()

    def _log(self, calculation_type: str, parameters: dict, summary: dict) -> None:
        if self.journal is not None:
            self.journal.log_analysis(calculation_type, parameters, summary)

    def compute_frequency(self, field, filters: Optional[FilterCriteria] = None) -> Result:
        try:
            field = DigitType.parse(field)
            if filters is not None:
                filters.validate()
        except ValueError as e:
            return _validation(e)
        rows = self.store.query_values(field, filters)
        dist = frequency_distribution(field, (v for _, v in rows))
        self._log(
            "digit_frequency",
            {"field": field.value, **(filters.to_dict() if filters else {})},
            {"total_count": dist.total_count, "distinct_values": len(dist.entries)},
        )
        return Ok(dist)

    def compute_position_frequency(self, field, filters: Optional[FilterCriteria] = None) -> Result:
        try:
            field = DigitType.parse(field)
            if filters is not None:
                filters.validate()
        except ValueError as e:
            return _validation(e)
        rows = self.store.query_values(field, filters)
        table = position_frequency(field, (v for _, v in rows))
        self._log(
            "position_frequency",
            {"field": field.value, **(filters.to_dict() if filters else {})},
            {"total_count": table.total_count},
        )
        return Ok(table)

    def _gated(self, field, filters: FilterCriteria, minimum: int, what: str) -> Result:
        res = self.compute_frequency(field, filters)
        if not res.ok:
            return res
        found = res.value.total_count
        if found < minimum:
            logger.debug("[FREQ] %s: %d entries below minimum %d", what, found, minimum)
            return insufficient(found, minimum, what)
        return res

    def by_day_of_week(self, field, day_name: str) -> Result:
        return self._gated(
            field,
            FilterCriteria(day_of_week=day_name, limit=200),
            self.settings.min_entries_day,
            f"day of week {day_name}",
        )

    def by_date(self, field, day: int) -> Result:
        return self._gated(
            field,
            FilterCriteria(date_day=day, limit=200),
            self.settings.min_entries_date,
            f"day of month {day}",
        )

    def by_month(self, field, month: int) -> Result:
        return self._gated(
            field,
            FilterCriteria(date_month=month, limit=100),
            self.settings.min_entries_month,
            f"month {month}",
        )

    def by_combined(self, field, day_name: str, day: int, month: int) -> Result:
        return self._gated(
            field,
            FilterCriteria(day_of_week=day_name, date_day=day, date_month=month, limit=100),
            self.settings.min_entries_combined,
            f"{day_name} {day}/{month}",
        )

    def summary_statistics(self, field, limit: int = 100) -> Result:
        try:
            field = DigitType.parse(field)
        except InvalidFieldError as e:
            return _validation(e)
        if limit < 1:
            return Err(ErrorKind.VALIDATION, "limit must be positive")
        values = [int(v) for _, v in self.store.recent_values(field, limit) if v.strip().isdigit()]
        if not values:
            return insufficient(0, 1, f"summary statistics of {field.value}")
        stats = summary_statistics(values)
        self._log("summary_statistics", {"field": field.value, "limit": limit}, stats)
        return Ok(stats)
