"""
Prediction aggregation.

Each candidate value collects additive score contributions from the frequency
sub-analyses (day of week, day of month, month, combined), recurring patterns,
pair frequency, position frequency and trend runs. Scores are relative ranking
signals, not probabilities.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from thai_lotto.config import Settings
from thai_lotto.db import DrawStore
from thai_lotto.frequency import FrequencyAnalyzer
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import (
    AnalysisSummary,
    DigitType,
    FilterCriteria,
    InvalidFieldError,
    Prediction,
    PredictionResult,
    thai_day_name,
)
from thai_lotto.pairs import PairAnalyzer
from thai_lotto.parse import parse_iso_date
from thai_lotto.patterns import PatternAnalyzer
from thai_lotto.results import Err, ErrorKind, Ok, Result
from thai_lotto.trends import TrendAnalyzer

logger = logging.getLogger(__name__)

STATISTICAL = "statistical"
LEARNING = "learning"
ENSEMBLE = "ensemble"

FREQUENCY_TOP = 10
PATTERN_TOP = 5
LEARNING_BOOST = 1.2
LEARNING_SAMPLE = 50
MIN_ACCURACY_PERIODS = 3
RECENCY_DRAWS = 20

ENSEMBLE_WEIGHTS = {STATISTICAL: 0.50, LEARNING: 0.35, "recency": 0.15}

# analysis summary flag -> weight key
FLAG_TO_WEIGHT = {
    "day_analysis_used": "day_of_week",
    "date_analysis_used": "date",
    "month_analysis_used": "month",
    "combined_analysis_used": "combined",
    "pattern_analysis_used": "patterns",
    "pair_analysis_used": "pairs",
    "position_analysis_used": "position",
    "trend_analysis_used": "trend",
}

# sub-analysis name -> (summary flag, summary count field)
_FREQUENCY_PARTS = [
    ("day_of_week", "day_analysis_used", "day_pattern_count"),
    ("date", "date_analysis_used", "date_pattern_count"),
    ("month", "month_analysis_used", "month_pattern_count"),
    ("combined", "combined_analysis_used", "combined_pattern_count"),
]


def all_candidates(digit_type: DigitType) -> List[str]:
    width = digit_type.width
    return [str(i).zfill(width) for i in range(10 ** width)]


def score_candidates(
    digit_type: DigitType,
    analyses: Dict[str, Result],
    weights: Dict[str, float],
) -> Tuple[Dict[str, float], AnalysisSummary]:
    """Accumulate weighted contributions per candidate value. Missing or Err analyses add nothing."""
    scores: Dict[str, float] = defaultdict(float)
    summary = AnalysisSummary()

    for name, flag, count_field in _FREQUENCY_PARTS:
        res = analyses.get(name)
        if res is None or not res.ok:
            continue
        setattr(summary, flag, True)
        setattr(summary, count_field, res.value.total_count)
        for entry in res.value.top(FREQUENCY_TOP):
            scores[entry.value] += (entry.percentage / 100) * weights[name]

    res = analyses.get("patterns")
    if res is not None and res.ok:
        summary.pattern_analysis_used = True
        summary.pattern_count = len(res.value.patterns)
        # a pattern points at its last value as the likely successor
        for pat in res.value.patterns[:PATTERN_TOP]:
            scores[pat.pattern[-1]] += min(1.0, pat.occurrences / 10) * weights["patterns"]

    res = analyses.get("pairs")
    if res is not None and res.ok:
        summary.pair_analysis_used = True
        pair_scores = [(p.pair, (p.percentage / 100) * weights["pairs"]) for p in res.value.pairs if len(p.pair) == 2]
        for cand in all_candidates(digit_type):
            scores[cand] += sum(s for pair, s in pair_scores if pair in cand)

    res = analyses.get("position")
    if digit_type.width == 3 and res is not None and res.ok:
        summary.position_analysis_used = True
        pct = res.value.percentages
        for cand in all_candidates(digit_type):
            avg = sum(pct[pos][int(ch)] / 100 for pos, ch in enumerate(cand)) / len(cand)
            scores[cand] += avg * weights["position"]

    res = analyses.get("trend")
    if res is not None and res.ok:
        summary.trend_analysis_used = True
        for run in res.value.monotonic:
            value = str(run.values[-1]).zfill(digit_type.width)
            scores[value] += min(1.0, run.length / 5) * weights["trend"]

    return dict(scores), summary


def rank_scores(scores: Dict[str, float], top_n: int) -> List[Tuple[str, float]]:
    # ties resolve to the lower value so repeated runs agree
    return sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))[:top_n]


def adjust_weights(weights: Dict[str, float], success_rates: Dict[str, float]) -> Dict[str, float]:
    """Boost each method by (1 + rate/total_rate) and renormalise to sum to 1."""
    adjusted = dict(weights)
    total_rate = sum(success_rates.values())
    if total_rate <= 0:
        return adjusted
    for method, rate in success_rates.items():
        if method in adjusted:
            adjusted[method] *= 1 + rate / total_rate
    total = sum(adjusted.values())
    return {k: round(v / total, 6) for k, v in adjusted.items()}


def _rerank(predictions: List[Prediction], method: str, top_n: int) -> List[Prediction]:
    ordered = sorted(predictions, key=lambda p: (-p.confidence, p.predicted_value))[:top_n]
    return [
        Prediction(
            digit_type=p.digit_type,
            target_draw_date=p.target_draw_date,
            predicted_value=p.predicted_value,
            confidence=p.confidence,
            rank=i + 1,
            prediction_method=method,
        )
        for i, p in enumerate(ordered)
    ]


class PredictionAggregator:
    def __init__(
        self,
        store: DrawStore,
        journal: PredictionJournal,
        settings: Optional[Settings] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.journal = journal
        self.settings = settings or Settings()
        self.clock = clock
        self.frequency = FrequencyAnalyzer(store, journal, self.settings)
        self.pairs = PairAnalyzer(store, journal)
        self.patterns = PatternAnalyzer(store, journal)
        self.trends = TrendAnalyzer(store, journal)

    @staticmethod
    def _validate(digit_type, target_date) -> Result:
        try:
            dt = DigitType.parse(digit_type)
        except InvalidFieldError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        try:
            target = parse_iso_date(target_date)
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        return Ok((dt, target))

    def _run_analyses(self, digit_type: DigitType, target: date) -> Dict[str, Result]:
        s = self.settings
        day_name = thai_day_name(target)
        tasks: Dict[str, Callable[[], Result]] = {
            "day_of_week": lambda: self.frequency.by_day_of_week(digit_type, day_name),
            "date": lambda: self.frequency.by_date(digit_type, target.day),
            "month": lambda: self.frequency.by_month(digit_type, target.month),
            "combined": lambda: self.frequency.by_combined(digit_type, day_name, target.day, target.month),
            "patterns": lambda: self.patterns.find_recurring_patterns(digit_type, s.pattern_lookback),
            "pairs": lambda: self.pairs.compute_pair_frequency(digit_type, FilterCriteria(limit=s.pair_lookback)),
            "trend": lambda: self.trends.analyze_trend(digit_type, s.trend_lookback),
        }
        if digit_type.width == 3:
            tasks["position"] = lambda: self.frequency.compute_position_frequency(
                digit_type, FilterCriteria(limit=s.position_lookback)
            )

        if s.analysis_workers <= 1:
            return {name: fn() for name, fn in tasks.items()}

        results: Dict[str, Result] = {}
        with ThreadPoolExecutor(max_workers=s.analysis_workers) as executor:
            future_to_task = {executor.submit(fn): name for name, fn in tasks.items()}
            for future in as_completed(future_to_task):
                results[future_to_task[future]] = future.result()
        return results

    def generate_predictions(self, digit_type, target_date) -> Result:
        checked = self._validate(digit_type, target_date)
        if not checked.ok:
            return checked
        dt, target = checked.value

        analyses = self._run_analyses(dt, target)
        for name, res in analyses.items():
            if not res.ok:
                logger.debug("[PREDICT] %s sub-analysis unused: %s", name, res.message)

        scores, summary = score_candidates(dt, analyses, self.settings.weights)
        predictions = [
            Prediction(
                digit_type=dt,
                target_draw_date=target,
                predicted_value=value,
                confidence=round(score * 100, 2),
                rank=i + 1,
                prediction_method=STATISTICAL,
            )
            for i, (value, score) in enumerate(rank_scores(scores, self.settings.top_n))
        ]

        self.journal.replace_predictions(
            target,
            dt,
            STATISTICAL,
            predictions,
            analysis=(
                "prediction",
                {
                    "digit_type": dt.value,
                    "target_date": target.isoformat(),
                    "day_of_week": thai_day_name(target),
                    "date_day": target.day,
                    "date_month": target.month,
                },
                summary.to_dict(),
            ),
        )
        logger.info("[PREDICT] %s %s: %d predictions from %d candidates", dt.value, target, len(predictions), len(scores))
        return Ok(PredictionResult(digit_type=dt, target_date=target, method=STATISTICAL, predictions=predictions, summary=summary))

    def _method_success_rates(self, dt: DigitType, correct: List[Prediction]) -> Dict[str, float]:
        """How often each sub-analysis was in play for predictions that turned out correct."""
        correct_dates = {p.target_draw_date.isoformat() for p in correct}
        # newest summary per target date; regenerating a date must not count it twice
        latest: Dict[str, dict] = {}
        for row in self.journal.analysis_history("prediction", limit=None):
            params = row["parameters"]
            target = params.get("target_date")
            if params.get("digit_type") == dt.value and target in correct_dates:
                latest.setdefault(target, row["result_summary"])
        counts: Dict[str, int] = defaultdict(int)
        for summary in latest.values():
            for flag, used in summary.items():
                if used is True and flag in FLAG_TO_WEIGHT:
                    counts[FLAG_TO_WEIGHT[flag]] += 1
        return {method: n / len(correct) for method, n in counts.items()}

    def _learning_adjust(self, base: PredictionResult) -> Optional[PredictionResult]:
        since = self.clock() - timedelta(days=365)
        if len(self.journal.accuracy_records(since=since)) < MIN_ACCURACY_PERIODS:
            logger.info("[LEARN] Not enough accuracy history, using statistical predictions")
            return None
        correct = self.journal.correct_predictions(base.digit_type, limit=LEARNING_SAMPLE)
        if not correct:
            logger.info("[LEARN] No correct %s predictions yet, using statistical predictions", base.digit_type.value)
            return None

        weights = adjust_weights(self.settings.weights, self._method_success_rates(base.digit_type, correct))
        hits = {p.predicted_value for p in correct}
        boosted = [
            Prediction(
                digit_type=p.digit_type,
                target_draw_date=p.target_draw_date,
                predicted_value=p.predicted_value,
                confidence=round(p.confidence * LEARNING_BOOST, 2) if p.predicted_value in hits else p.confidence,
                rank=p.rank,
                prediction_method=LEARNING,
            )
            for p in base.predictions
        ]
        predictions = _rerank(boosted, LEARNING, self.settings.top_n)
        self.journal.replace_predictions(base.target_date, base.digit_type, LEARNING, predictions)
        return PredictionResult(
            digit_type=base.digit_type,
            target_date=base.target_date,
            method=LEARNING,
            predictions=predictions,
            summary=base.summary,
            adjusted_weights=weights,
        )

    def generate_learning_predictions(self, digit_type, target_date) -> Result:
        base = self.generate_predictions(digit_type, target_date)
        if not base.ok:
            return base
        learned = self._learning_adjust(base.value)
        return Ok(learned) if learned is not None else base

    def recency_predictions(self, dt: DigitType, target: date) -> List[Prediction]:
        """Distinct values of the latest draws, newest first, confidence 90 - 3*index."""
        seen: List[str] = []
        for _, value in self.store.recent_values(dt, RECENCY_DRAWS):
            value = value.strip()
            if value not in seen:
                seen.append(value)
        return [
            Prediction(dt, target, value, float(90 - 3 * i), i + 1, "recency")
            for i, value in enumerate(seen)
        ]

    def generate_ensemble_predictions(self, digit_type, target_date) -> Result:
        base = self.generate_predictions(digit_type, target_date)
        if not base.ok:
            return base
        stat = base.value
        learned = self._learning_adjust(stat)
        components = {
            STATISTICAL: stat.predictions,
            # without enough history the learning component mirrors the statistical one
            LEARNING: learned.predictions if learned is not None else stat.predictions,
            "recency": self.recency_predictions(stat.digit_type, stat.target_date),
        }

        combined: Dict[str, float] = defaultdict(float)
        for name, preds in components.items():
            for p in preds:
                combined[p.predicted_value] += p.confidence * ENSEMBLE_WEIGHTS[name]

        predictions = [
            Prediction(stat.digit_type, stat.target_date, value, round(score, 2), i + 1, ENSEMBLE)
            for i, (value, score) in enumerate(rank_scores(combined, self.settings.top_n))
        ]
        self.journal.replace_predictions(stat.target_date, stat.digit_type, ENSEMBLE, predictions)
        return Ok(
            PredictionResult(
                digit_type=stat.digit_type,
                target_date=stat.target_date,
                method=ENSEMBLE,
                predictions=predictions,
                summary=stat.summary,
                adjusted_weights=learned.adjusted_weights if learned is not None else None,
            )
        )

    def get_predictions(self, target_date, digit_type=None, method: Optional[str] = None) -> Result:
        try:
            target = parse_iso_date(target_date)
            dt = DigitType.parse(digit_type) if digit_type is not None else None
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        return Ok(self.journal.get_predictions(target, dt, method))

    def get_top_predictions(self, target_date, limit: int = 6) -> Result:
        try:
            target = parse_iso_date(target_date)
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        return Ok({dt.value: self.journal.top_predictions(target, dt, limit) for dt in DigitType})

    def get_prediction_history(
        self,
        digit_type=None,
        method: Optional[str] = None,
        status: Optional[str] = None,
        start_date=None,
        end_date=None,
        limit: int = 10,
        offset: int = 0,
    ) -> Result:
        try:
            history = self.journal.prediction_history(
                digit_type=DigitType.parse(digit_type) if digit_type is not None else None,
                method=method,
                status=status,
                start_date=parse_iso_date(start_date) if start_date else None,
                end_date=parse_iso_date(end_date) if end_date else None,
                limit=limit,
                offset=offset,
            )
        except ValueError as e:
            return Err(ErrorKind.VALIDATION, str(e))
        return Ok(history)
