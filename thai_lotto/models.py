from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Monday..Sunday, matching date.weekday()
THAI_DAY_NAMES = ["จันทร์", "อังคาร", "พุธ", "พฤหัสบดี", "ศุกร์", "เสาร์", "อาทิตย์"]


class InvalidFieldError(ValueError):
    """Raised when a field name is not one of the four DigitType values."""


class DigitType(str, Enum):
    FIRST_PRIZE_LAST3 = "first_prize_last3"
    LAST3F = "last3f"
    LAST3B = "last3b"
    LAST2 = "last2"

    @property
    def width(self) -> int:
        return 2 if self is DigitType.LAST2 else 3

    @classmethod
    def parse(cls, value: Any) -> "DigitType":
        if isinstance(value, DigitType):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(d.value for d in cls)
            raise InvalidFieldError(f"Invalid field '{value}'. Must be one of: {valid}") from None


def thai_day_name(d: date) -> str:
    return THAI_DAY_NAMES[d.weekday()]


def _check_digits(name: str, value: Optional[str], width: int) -> None:
    if value is None:
        return
    if len(value) != width or not value.isdigit():
        raise ValueError(f"{name} must be {width} decimal digits, got '{value}'")


@dataclass(frozen=True)
class DrawRecord:
    draw_date: date
    first_prize: str
    last3f: str
    last3b: str
    last2: str
    first_prize_last3: Optional[str] = None
    near1_1: Optional[str] = None
    near1_2: Optional[str] = None

    def __post_init__(self):
        for name in ("first_prize", "last3f", "last3b", "last2"):
            if getattr(self, name) is None:
                raise ValueError(f"{name} is required")
        _check_digits("first_prize", self.first_prize, 6)
        _check_digits("last3f", self.last3f, 3)
        _check_digits("last3b", self.last3b, 3)
        _check_digits("last2", self.last2, 2)
        _check_digits("near1_1", self.near1_1, 6)
        _check_digits("near1_2", self.near1_2, 6)
        if self.first_prize_last3 is None:
            object.__setattr__(self, "first_prize_last3", self.first_prize[-3:])
        _check_digits("first_prize_last3", self.first_prize_last3, 3)

    @property
    def day_of_week(self) -> str:
        return thai_day_name(self.draw_date)

    def value(self, digit_type: DigitType) -> Optional[str]:
        return getattr(self, DigitType.parse(digit_type).value)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["draw_date"] = self.draw_date.isoformat()
        d["day_of_week"] = self.day_of_week
        return d


@dataclass(frozen=True)
class FilterCriteria:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    day_of_week: Optional[str] = None
    date_day: Optional[int] = None
    date_month: Optional[int] = None
    limit: Optional[int] = None

    def validate(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must not be negative, got {self.limit}")

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for k, v in asdict(self).items():
            if v is None:
                continue
            out[k] = v.isoformat() if isinstance(v, date) else v
        return out


@dataclass(frozen=True)
class FrequencyEntry:
    value: str
    count: int
    percentage: float


@dataclass(frozen=True)
class FrequencyDistribution:
    field: DigitType
    entries: List[FrequencyEntry]
    total_count: int

    def top(self, n: int) -> List[FrequencyEntry]:
        return self.entries[:n]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.value,
            "total_count": self.total_count,
            "data": [asdict(e) for e in self.entries],
        }


@dataclass(frozen=True)
class PositionFrequency:
    field: DigitType
    # counts[position][digit]
    counts: List[List[int]]
    percentages: List[List[float]]
    total_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.value,
            "total_count": self.total_count,
            "positions": [
                {
                    "position": p,
                    "digits": [
                        {"digit": str(d), "count": self.counts[p][d], "percentage": self.percentages[p][d]}
                        for d in range(10)
                    ],
                }
                for p in range(len(self.counts))
            ],
        }


@dataclass(frozen=True)
class PairEntry:
    pair: str
    count: int
    percentage: float


@dataclass(frozen=True)
class PairFrequency:
    field: DigitType
    pairs: List[PairEntry]
    total_records: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.value,
            "total_records": self.total_records,
            "pairs": [asdict(p) for p in self.pairs],
        }


@dataclass
class RecurringPattern:
    pattern: List[str]
    occurrences: int
    first_index: int
    positions: List[int] = field(default_factory=list)
    dates: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return "-".join(self.pattern)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["key"] = self.key
        return d


@dataclass(frozen=True)
class PatternAnalysis:
    field: DigitType
    lookback: int
    total_draws: int
    patterns: List[RecurringPattern]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.value,
            "lookback": self.lookback,
            "total_draws": self.total_draws,
            "patterns": [p.to_dict() for p in self.patterns],
        }


@dataclass(frozen=True)
class Difference:
    from_date: str
    to_date: str
    from_value: int
    to_value: int
    difference: int


@dataclass(frozen=True)
class TrendRun:
    kind: str  # increasing | decreasing | oscillating | stable
    start: int
    end: int
    start_date: str
    end_date: str
    values: List[int]

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class TrendResult:
    field: DigitType
    trend_points: List[Tuple[str, int]]
    differences: List[Difference]
    monotonic: List[TrendRun]
    oscillating: List[TrendRun]
    stable: List[TrendRun]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.value,
            "trend_points": [{"date": d, "value": v} for d, v in self.trend_points],
            "differences": [asdict(d) for d in self.differences],
            "monotonic": [asdict(r) for r in self.monotonic],
            "oscillating": [asdict(r) for r in self.oscillating],
            "stable": [asdict(r) for r in self.stable],
        }


@dataclass
class Prediction:
    digit_type: DigitType
    target_draw_date: date
    predicted_value: str
    confidence: float
    rank: int
    prediction_method: str
    was_correct: Optional[bool] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "digit_type": self.digit_type.value,
            "target_draw_date": self.target_draw_date.isoformat(),
            "predicted_value": self.predicted_value,
            "confidence": self.confidence,
            "rank": self.rank,
            "prediction_method": self.prediction_method,
            "was_correct": self.was_correct,
        }


@dataclass(frozen=True)
class AccuracyRecord:
    period_start: date
    period_end: date
    prediction_method: str
    total_predictions: int
    correct_predictions: int
    accuracy_percentage: float
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["period_start"] = self.period_start.isoformat()
        d["period_end"] = self.period_end.isoformat()
        return d


@dataclass
class AnalysisSummary:
    day_analysis_used: bool = False
    date_analysis_used: bool = False
    month_analysis_used: bool = False
    combined_analysis_used: bool = False
    pattern_analysis_used: bool = False
    pair_analysis_used: bool = False
    position_analysis_used: bool = False
    trend_analysis_used: bool = False
    pattern_count: int = 0
    day_pattern_count: int = 0
    date_pattern_count: int = 0
    month_pattern_count: int = 0
    combined_pattern_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PredictionResult:
    digit_type: DigitType
    target_date: date
    method: str
    predictions: List[Prediction]
    summary: AnalysisSummary
    adjusted_weights: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "digit_type": self.digit_type.value,
            "target_date": self.target_date.isoformat(),
            "method": self.method,
            "predictions": [p.to_dict() for p in self.predictions],
            "analysis_summary": self.summary.to_dict(),
        }
        if self.adjusted_weights is not None:
            out["adjusted_weights"] = self.adjusted_weights
        return out


@dataclass(frozen=True)
class AccuracyResult:
    draw_date: date
    total_predictions: int
    correct_predictions: int
    accuracy: float
    # digit_type -> {"total": n, "correct": n}
    by_digit_type: Dict[str, Dict[str, int]]
    record: AccuracyRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            "draw_date": self.draw_date.isoformat(),
            "total_predictions": self.total_predictions,
            "correct_predictions": self.correct_predictions,
            "accuracy": self.accuracy,
            "by_digit_type": self.by_digit_type,
            "record": self.record.to_dict(),
        }
