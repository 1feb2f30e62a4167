from __future__ import annotations

import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from thai_lotto.models import DigitType, DrawRecord, FilterCriteria

DRAW_COLUMNS = (
    "draw_date, day_of_week, first_prize, first_prize_last3, last3f, last3b, last2, near1_1, near1_2"
)


def connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def _filter_clause(filters: Optional[FilterCriteria]) -> Tuple[str, List[Any]]:
    if filters is None:
        return "", []
    where: List[str] = []
    params: List[Any] = []
    if filters.start_date is not None:
        where.append("draw_date >= ?")
        params.append(filters.start_date.isoformat())
    if filters.end_date is not None:
        where.append("draw_date <= ?")
        params.append(filters.end_date.isoformat())
    if filters.day_of_week is not None:
        where.append("day_of_week = ?")
        params.append(filters.day_of_week)
    if filters.date_day is not None:
        where.append("CAST(strftime('%d', draw_date) AS INTEGER) = ?")
        params.append(int(filters.date_day))
    if filters.date_month is not None:
        where.append("CAST(strftime('%m', draw_date) AS INTEGER) = ?")
        params.append(int(filters.date_month))
    return "".join(f" AND {w}" for w in where), params


def _row_to_record(row) -> DrawRecord:
    return DrawRecord(
        draw_date=date.fromisoformat(row[0]),
        first_prize=row[2],
        first_prize_last3=row[3],
        last3f=row[4],
        last3b=row[5],
        last2=row[6],
        near1_1=row[7],
        near1_2=row[8],
    )


class DrawStore:
    """Historical draws keyed by draw_date. Each call opens its own connection."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def connect(self) -> sqlite3.Connection:
        return connect(self.db_path)

    def init_db(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self.connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS lottery_results (
                    draw_date TEXT PRIMARY KEY,   -- ISO date
                    day_of_week TEXT NOT NULL,
                    first_prize TEXT NOT NULL,
                    first_prize_last3 TEXT,
                    last3f TEXT,
                    last3b TEXT,
                    last2 TEXT,
                    near1_1 TEXT,
                    near1_2 TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_results_day
                ON lottery_results(day_of_week, draw_date);
                """
            )
            conn.commit()
        finally:
            conn.close()

    def upsert_draw(self, record: DrawRecord) -> None:
        now = datetime.now().isoformat()
        conn = self.connect()
        try:
            conn.execute(
                f"""
                INSERT INTO lottery_results ({DRAW_COLUMNS}, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(draw_date) DO UPDATE SET
                    day_of_week = excluded.day_of_week,
                    first_prize = excluded.first_prize,
                    first_prize_last3 = excluded.first_prize_last3,
                    last3f = excluded.last3f,
                    last3b = excluded.last3b,
                    last2 = excluded.last2,
                    near1_1 = excluded.near1_1,
                    near1_2 = excluded.near1_2,
                    updated_at = excluded.updated_at
                """,
                (
                    record.draw_date.isoformat(),
                    record.day_of_week,
                    record.first_prize,
                    record.first_prize_last3,
                    record.last3f,
                    record.last3b,
                    record.last2,
                    record.near1_1,
                    record.near1_2,
                    now,
                    now,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_draw(self, draw_date: date) -> Optional[DrawRecord]:
        conn = self.connect()
        try:
            row = conn.execute(
                f"SELECT {DRAW_COLUMNS} FROM lottery_results WHERE draw_date = ?",
                (draw_date.isoformat(),),
            ).fetchone()
        finally:
            conn.close()
        return _row_to_record(row) if row else None

    def query_values(self, field: DigitType, filters: Optional[FilterCriteria] = None) -> List[Tuple[str, str]]:
        """
        (draw_date, value) pairs for the field, most recent first, nulls excluded.
        filters.limit caps the rows before any aggregation happens.
        """
        field = DigitType.parse(field)
        if filters is not None:
            filters.validate()
        clause, params = _filter_clause(filters)
        sql = (
            f"SELECT draw_date, {field.value} FROM lottery_results "
            f"WHERE {field.value} IS NOT NULL AND {field.value} != ''{clause} "
            "ORDER BY draw_date DESC"
        )
        if filters is not None and filters.limit is not None:
            sql += " LIMIT ?"
            params.append(int(filters.limit))
        conn = self.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [(r[0], r[1]) for r in rows]

    def recent_values(self, field: DigitType, n: int) -> List[Tuple[str, str]]:
        return self.query_values(field, FilterCriteria(limit=n))

    def recent_draws(self, limit: int = 50, offset: int = 0) -> List[DrawRecord]:
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must not be negative")
        conn = self.connect()
        try:
            rows = conn.execute(
                f"SELECT {DRAW_COLUMNS} FROM lottery_results ORDER BY draw_date DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_record(r) for r in rows]

    def count_draws(self) -> int:
        conn = self.connect()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM lottery_results").fetchone()
        finally:
            conn.close()
        return int(n)

    def latest_draw_date(self) -> Optional[date]:
        conn = self.connect()
        try:
            row = conn.execute("SELECT MAX(draw_date) FROM lottery_results").fetchone()
        finally:
            conn.close()
        return date.fromisoformat(row[0]) if row and row[0] else None

    def stats(self) -> Dict[str, Any]:
        latest = self.latest_draw_date()
        return {
            "total_draws": self.count_draws(),
            "latest_draw_date": latest.isoformat() if latest else None,
        }
