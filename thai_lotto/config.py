from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


# Per-candidate score contributions, not a probability partition.
DEFAULT_WEIGHTS = {
    "day_of_week": 0.15,
    "date": 0.10,
    "month": 0.10,
    "combined": 0.25,
    "patterns": 0.15,
    "pairs": 0.15,
    "position": 0.05,
    "trend": 0.05,
}


@dataclass(frozen=True)
class Settings:
    db_path: str = "./data/thai_lotto.sqlite"
    log_level: str = "INFO"
    min_entries_day: int = 10
    min_entries_date: int = 10
    min_entries_month: int = 5
    min_entries_combined: int = 3
    pattern_lookback: int = 50
    trend_lookback: int = 20
    pair_lookback: int = 100
    position_lookback: int = 100
    top_n: int = 20
    analysis_workers: int = 4
    weights: dict = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            db_path=os.getenv("DB_PATH", "./data/thai_lotto.sqlite"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            min_entries_day=_int_env("MIN_ENTRIES_DAY", 10),
            min_entries_date=_int_env("MIN_ENTRIES_DATE", 10),
            min_entries_month=_int_env("MIN_ENTRIES_MONTH", 5),
            min_entries_combined=_int_env("MIN_ENTRIES_COMBINED", 3),
            pattern_lookback=_int_env("PATTERN_LOOKBACK", 50),
            trend_lookback=_int_env("TREND_LOOKBACK", 20),
            pair_lookback=_int_env("PAIR_LOOKBACK", 100),
            position_lookback=_int_env("POSITION_LOOKBACK", 100),
            top_n=_int_env("TOP_N", 20),
            analysis_workers=_int_env("ANALYSIS_WORKERS", 4),
        )


LOG_HANDLER_NAME = "thai_lotto"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if any(h.get_name() == LOG_HANDLER_NAME for h in root.handlers):
        root.setLevel(level.upper())
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    handler.set_name(LOG_HANDLER_NAME)
    root.addHandler(handler)
    root.setLevel(level.upper())
