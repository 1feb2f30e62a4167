from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Callable, Dict, Optional

from thai_lotto.db import DrawStore
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import AccuracyRecord, AccuracyResult, DigitType, InvalidFieldError
from thai_lotto.parse import parse_iso_date
from thai_lotto.results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"weekly": 7, "monthly": 30, "yearly": 365, "all": None}


def accuracy_pct(correct: int, total: int) -> float:
    return round(100.0 * correct / total, 2) if total else 0.0


class AccuracyEvaluator:
    def __init__(
        self,
        store: DrawStore,
        journal: PredictionJournal,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.journal = journal
        self.clock = clock

    def evaluate_accuracy(self, draw_date) -> Result:
        """
        Mark every stored prediction for draw_date correct or incorrect against the
        actual result and append one accuracy record with the totals, as one write.
        Safe to re-run: flags are overwritten with the same values.
        """
        try:
            target = parse_iso_date(draw_date)
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))

        actual = self.store.get_draw(target)
        if actual is None:
            return Err(ErrorKind.NOT_FOUND, f"No results for date {target.isoformat()}")
        predictions = self.journal.get_predictions(target)
        if not predictions:
            return Err(ErrorKind.NOT_FOUND, f"No predictions for date {target.isoformat()}")

        tally: Dict[str, Dict[str, int]] = defaultdict(lambda: {"total": 0, "correct": 0})
        updates = []
        for p in predictions:
            hit = p.predicted_value == actual.value(p.digit_type)
            updates.append((p.id, hit))
            tally[p.digit_type.value]["total"] += 1
            tally[p.digit_type.value]["correct"] += int(hit)

        total = sum(t["total"] for t in tally.values())
        correct = sum(t["correct"] for t in tally.values())
        methods = {p.prediction_method for p in predictions}
        record = self.journal.record_evaluation(
            updates,
            AccuracyRecord(
                period_start=target,
                period_end=target,
                prediction_method=methods.pop() if len(methods) == 1 else "mixed",
                total_predictions=total,
                correct_predictions=correct,
                accuracy_percentage=accuracy_pct(correct, total),
            ),
        )
        logger.info("[ACCURACY] %s: %d/%d correct (%.2f%%)", target, correct, total, record.accuracy_percentage)
        return Ok(
            AccuracyResult(
                draw_date=target,
                total_predictions=total,
                correct_predictions=correct,
                accuracy=record.accuracy_percentage,
                by_digit_type=dict(tally),
                record=record,
            )
        )

    def get_accuracy_history(self, period: str = "all", today: Optional[date] = None) -> Result:
        if period not in PERIOD_DAYS:
            return Err(ErrorKind.VALIDATION, f"Unknown period '{period}'. Must be one of: {', '.join(PERIOD_DAYS)}")
        days = PERIOD_DAYS[period]
        since = None if days is None else (today or self.clock()) - timedelta(days=days)
        history = self.journal.accuracy_records(since=since)
        total = sum(r.total_predictions for r in history)
        correct = sum(r.correct_predictions for r in history)
        return Ok(
            {
                "period": period,
                "history": [r.to_dict() for r in history],
                "overall_accuracy": accuracy_pct(correct, total),
                "total_predictions": total,
                "total_correct": correct,
                "count": len(history),
            }
        )

    def get_accuracy_statistics(self) -> Result:
        rows = self.journal.evaluated_counts()
        for r in rows:
            r["accuracy"] = accuracy_pct(r["correct"], r["total"])
        total = sum(r["total"] for r in rows)
        correct = sum(r["correct"] for r in rows)
        return Ok(
            {
                "by_type_and_method": rows,
                "total_evaluated": total,
                "total_correct": correct,
                "overall_accuracy": accuracy_pct(correct, total),
            }
        )

    def get_digit_type_performance(self, digit_type) -> Result:
        try:
            dt = DigitType.parse(digit_type)
        except InvalidFieldError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        rows = self.journal.evaluated_counts(dt)
        total = sum(r["total"] for r in rows)
        correct = sum(r["correct"] for r in rows)
        by_method: Dict[str, Any] = {
            r["method"]: {"total": r["total"], "correct": r["correct"], "accuracy": accuracy_pct(r["correct"], r["total"])}
            for r in rows
        }
        return Ok(
            {
                "digit_type": dt.value,
                "total": total,
                "correct": correct,
                "accuracy": accuracy_pct(correct, total),
                "by_method": by_method,
                "recent": [p.to_dict() for p in self.journal.recent_evaluated(dt, 10)],
            }
        )
