from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional

from thai_lotto.db import DrawStore
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import DigitType, FilterCriteria, PairEntry, PairFrequency
from thai_lotto.results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)


def pairs_of(value: str):
    v = value.strip()
    return [v[i:i + 2] for i in range(len(v) - 1)]


def pair_frequency(field: DigitType, values: Iterable[str]) -> PairFrequency:
    """
    Count every contiguous 2-character window of each value.
    Percentages are per draw, so they can add up to more than 100.
    """
    counts: Counter = Counter()
    records = 0
    for v in values:
        if not v or not v.strip():
            continue
        counts.update(pairs_of(v))
        records += 1
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    entries = [
        PairEntry(pair=p, count=c, percentage=round(100.0 * c / records, 2) if records else 0.0)
        for p, c in ordered
    ]
    return PairFrequency(field=field, pairs=entries, total_records=records)


class PairAnalyzer:
    def __init__(self, store: DrawStore, journal: Optional[PredictionJournal] = None):
        self.store = store
        self.journal = journal

    def compute_pair_frequency(self, field, filters: Optional[FilterCriteria] = None) -> Result:
        try:
            field = DigitType.parse(field)
            if filters is not None:
                filters.validate()
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        rows = self.store.query_values(field, filters)
        result = pair_frequency(field, (v for _, v in rows))
        if self.journal is not None:
            self.journal.log_analysis(
                "pair_frequency",
                {"field": field.value, **(filters.to_dict() if filters else {})},
                {"total_records": result.total_records, "distinct_pairs": len(result.pairs)},
            )
        return Ok(result)
