from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from thai_lotto.db import DrawStore
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import DigitType, Difference, InvalidFieldError, TrendResult, TrendRun
from thai_lotto.results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

MIN_MONOTONIC_STEPS = 3
STABLE_WINDOW = 4


def stable_threshold(field: DigitType) -> int:
    return 100 if field.width == 3 else 10


def monotonic_runs(values: List[int], dates: List[str]) -> List[TrendRun]:
    """Maximal runs of at least three same-sign steps. A zero step breaks a run."""
    signs = np.sign(np.diff(values)).astype(int).tolist() if len(values) > 1 else []
    runs: List[TrendRun] = []
    start = 0
    while start < len(signs):
        end = start
        while end + 1 < len(signs) and signs[end + 1] == signs[start]:
            end += 1
        steps = end - start + 1
        if signs[start] != 0 and steps >= MIN_MONOTONIC_STEPS:
            runs.append(
                TrendRun(
                    kind="increasing" if signs[start] > 0 else "decreasing",
                    start=start,
                    end=start + steps,
                    start_date=dates[start],
                    end_date=dates[start + steps],
                    values=values[start:start + steps + 1],
                )
            )
        start = end + 1
    return runs


def oscillating_runs(values: List[int], dates: List[str]) -> List[TrendRun]:
    diffs = np.diff(values).tolist() if len(values) > 1 else []
    runs = []
    for i in range(2, len(diffs)):
        d1, d2, d3 = diffs[i - 2], diffs[i - 1], diffs[i]
        if d1 * d2 < 0 and d2 * d3 < 0:
            runs.append(
                TrendRun(
                    kind="oscillating",
                    start=i - 2,
                    end=i + 1,
                    start_date=dates[i - 2],
                    end_date=dates[i + 1],
                    values=values[i - 2:i + 2],
                )
            )
    return runs


def stable_runs(values: List[int], dates: List[str], threshold: int) -> List[TrendRun]:
    runs = []
    for i in range(len(values) - STABLE_WINDOW + 1):
        window = values[i:i + STABLE_WINDOW]
        if max(window) - min(window) <= threshold:
            runs.append(
                TrendRun(
                    kind="stable",
                    start=i,
                    end=i + STABLE_WINDOW - 1,
                    start_date=dates[i],
                    end_date=dates[i + STABLE_WINDOW - 1],
                    values=window,
                )
            )
    return runs


def analyze_series(field: DigitType, values: List[int], dates: List[str]) -> TrendResult:
    differences = [
        Difference(
            from_date=dates[i - 1],
            to_date=dates[i],
            from_value=values[i - 1],
            to_value=values[i],
            difference=values[i] - values[i - 1],
        )
        for i in range(1, len(values))
    ]
    return TrendResult(
        field=field,
        trend_points=list(zip(dates, values)),
        differences=differences,
        monotonic=monotonic_runs(values, dates),
        oscillating=oscillating_runs(values, dates),
        stable=stable_runs(values, dates, stable_threshold(field)),
    )


class TrendAnalyzer:
    def __init__(self, store: DrawStore, journal: Optional[PredictionJournal] = None):
        self.store = store
        self.journal = journal

    def analyze_trend(self, field, lookback_period: int = 20) -> Result:
        try:
            field = DigitType.parse(field)
        except InvalidFieldError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        if lookback_period < 1:
            return Err(ErrorKind.VALIDATION, "lookback_period must be positive")

        rows = [(d, v.strip()) for d, v in reversed(self.store.recent_values(field, lookback_period))]
        rows = [(d, int(v)) for d, v in rows if v.isdigit()]
        result = analyze_series(field, [v for _, v in rows], [d for d, _ in rows])

        if self.journal is not None:
            self.journal.log_analysis(
                "trend_analysis",
                {"field": field.value, "lookback_period": lookback_period},
                {
                    "increasing_trends": sum(1 for r in result.monotonic if r.kind == "increasing"),
                    "decreasing_trends": sum(1 for r in result.monotonic if r.kind == "decreasing"),
                    "oscillating_trends": len(result.oscillating),
                    "stable_trends": len(result.stable),
                    "values_analyzed": len(rows),
                },
            )
        return Ok(result)
