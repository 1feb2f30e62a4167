from __future__ import annotations

import logging
from typing import Dict, List, Optional

from thai_lotto.db import DrawStore
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import DigitType, InvalidFieldError, PatternAnalysis, RecurringPattern
from thai_lotto.results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

MAX_PATTERN_LENGTH = 5
# pair scan is quadratic in the window
MAX_LOOKBACK = 200


def find_recurring_patterns(values: List[str], dates: List[str]) -> List[RecurringPattern]:
    """
    Repeated runs of 2..5 consecutive draws in a chronological sequence.

    A later window at j only counts when it starts after the anchor window ends
    (j >= i + k). Occurrences counts the repeats, so a pattern seen twice has 1.
    Ordered by occurrences descending, then by first discovery.
    """
    n = len(values)
    found: Dict[str, RecurringPattern] = {}
    max_k = min(MAX_PATTERN_LENGTH, n // 2)

    for k in range(2, max_k + 1):
        for i in range(n - k + 1):
            window = values[i:i + k]
            key = "-".join(window)
            for j in range(i + k, n - k + 1):
                if values[j:j + k] != window:
                    continue
                pat = found.get(key)
                if pat is None:
                    pat = found[key] = RecurringPattern(pattern=list(window), occurrences=0, first_index=i)
                pat.occurrences += 1
                pat.positions.append(j)
                pat.dates.append(dates[j])

    # sorted() is stable, so equal counts keep discovery order
    return sorted(found.values(), key=lambda p: -p.occurrences)


class PatternAnalyzer:
    def __init__(self, store: DrawStore, journal: Optional[PredictionJournal] = None):
        self.store = store
        self.journal = journal

    def find_recurring_patterns(self, field, lookback_period: int = 50) -> Result:
        try:
            field = DigitType.parse(field)
        except InvalidFieldError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        if lookback_period < 1:
            return Err(ErrorKind.VALIDATION, "lookback_period must be positive")
        if lookback_period > MAX_LOOKBACK:
            logger.info("[PATTERN] Lookback %d clamped to %d", lookback_period, MAX_LOOKBACK)
            lookback_period = MAX_LOOKBACK

        rows = list(reversed(self.store.recent_values(field, lookback_period)))
        dates = [d for d, _ in rows]
        values = [v.strip() for _, v in rows]
        patterns = find_recurring_patterns(values, dates)
        logger.debug("[PATTERN] %s: %d patterns in %d draws", field.value, len(patterns), len(values))

        if self.journal is not None:
            self.journal.log_analysis(
                "recurring_patterns",
                {"field": field.value, "lookback_period": lookback_period},
                {"patterns_found": len(patterns), "sequences_analyzed": len(values)},
            )
        return Ok(PatternAnalysis(field=field, lookback=lookback_period, total_draws=len(values), patterns=patterns))
