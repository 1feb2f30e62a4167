from __future__ import annotations
from datetime import date
from typing import Any, Dict, Optional

from thai_lotto.models import thai_day_name

THAI_MONTHS = [
    "มกราคม", "กุมภาพันธ์", "มีนาคม", "เมษายน", "พฤษภาคม", "มิถุนายน",
    "กรกฎาคม", "สิงหาคม", "กันยายน", "ตุลาคม", "พฤศจิกายน", "ธันวาคม",
]


def next_draw_date(today: Optional[date] = None) -> date:
    """
    Draws happen on the 1st and 16th of every month.
    Before the 16th the next draw is the 16th, otherwise the 1st of next month.
    """
    today = today or date.today()
    if today.day < 16:
        return today.replace(day=16)
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


def thai_date(d: date) -> str:
    # Buddhist era
    return f"{d.day} {THAI_MONTHS[d.month - 1]} {d.year + 543}"


def get_next_draw_info(today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    nxt = next_draw_date(today)
    return {
        "next_draw_date": nxt.isoformat(),
        "day_of_week": thai_day_name(nxt),
        "thai_date": thai_date(nxt),
        "days_away": (nxt - today).days,
    }
