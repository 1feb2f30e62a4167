from __future__ import annotations

import csv
import io
import logging
import re
from datetime import date
from typing import List, Optional, Tuple

from thai_lotto.models import DrawRecord

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CSV_COLUMNS = ["draw_date", "first_prize", "last3f", "last3b", "last2", "near1_1", "near1_2"]


def parse_iso_date(value) -> date:
    """Strict YYYY-MM-DD parse. Raises ValueError for anything else, including 2024-02-30."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM-DD")
    return date.fromisoformat(value.strip())


def normalize_digits(raw: Optional[str], width: int) -> Optional[str]:
    """Strip whitespace and zero-pad a digit string to `width`. Empty input gives None."""
    if raw is None:
        return None
    s = str(raw).strip().replace(" ", "")
    if not s:
        return None
    if not s.isdigit():
        raise ValueError(f"'{raw}' is not a decimal digit string")
    if len(s) > width:
        raise ValueError(f"'{raw}' is longer than {width} digits")
    return s.zfill(width)


def build_record(
    draw_date,
    first_prize,
    last3f,
    last3b,
    last2,
    near1_1=None,
    near1_2=None,
) -> DrawRecord:
    return DrawRecord(
        draw_date=parse_iso_date(draw_date),
        first_prize=normalize_digits(first_prize, 6),
        last3f=normalize_digits(last3f, 3),
        last3b=normalize_digits(last3b, 3),
        last2=normalize_digits(last2, 2),
        near1_1=normalize_digits(near1_1, 6),
        near1_2=normalize_digits(near1_2, 6),
    )


def parse_results_csv(csv_content: str) -> Tuple[List[DrawRecord], int]:
    """
    Parse draw results from CSV text.
    Expected format:
    draw_date,first_prize,last3f,last3b,last2,near1_1,near1_2
    2024-01-16,123456,123,456,78,123455,123457

    Returns (records, skipped_rows). near1_* columns are optional.
    """
    records: List[DrawRecord] = []
    skipped = 0
    lines = [ln for ln in csv_content.strip().splitlines() if ln.strip() and not ln.strip().startswith("#")]
    if not lines:
        return records, skipped

    # Skip header if present
    start = 1 if lines[0].strip().lower().startswith("draw") else 0

    for lineno, row in enumerate(csv.reader(io.StringIO("\n".join(lines[start:]))), start=start + 1):
        parts = [p.strip() for p in row]
        if len(parts) < 5:
            logger.warning("[CSV] Row %d skipped: expected at least 5 columns, got %d", lineno, len(parts))
            skipped += 1
            continue
        parts = (parts + [""] * len(CSV_COLUMNS))[: len(CSV_COLUMNS)]
        try:
            records.append(build_record(*[p or None for p in parts]))
        except (ValueError, TypeError) as e:
            logger.warning("[CSV] Row %d skipped: %s", lineno, e)
            skipped += 1

    return records, skipped
