"""
Prediction journal.
Stores generated predictions, accuracy evaluations and the analysis-history audit log.
The learning adjustment reads the audit log back to see which analyses were in play
when a prediction turned out correct.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from thai_lotto.db import connect
from thai_lotto.models import AccuracyRecord, DigitType, Prediction

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS = (
    "id, digit_type, target_draw_date, predicted_value, confidence, rank, prediction_method, was_correct"
)

# One lock per database file: two journals on the same file must not interleave
# their delete/insert pairs.
_LOCKS: Dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(db_path: str) -> threading.Lock:
    key = str(Path(db_path).resolve())
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(key, threading.Lock())


def _row_to_prediction(row) -> Prediction:
    return Prediction(
        id=row[0],
        digit_type=DigitType(row[1]),
        target_draw_date=date.fromisoformat(row[2]),
        predicted_value=row[3],
        confidence=row[4],
        rank=row[5],
        prediction_method=row[6],
        was_correct=None if row[7] is None else bool(row[7]),
    )


def _row_to_accuracy(row) -> AccuracyRecord:
    return AccuracyRecord(
        id=row[0],
        period_start=date.fromisoformat(row[1]),
        period_end=date.fromisoformat(row[2]),
        prediction_method=row[3],
        total_predictions=row[4],
        correct_predictions=row[5],
        accuracy_percentage=row[6],
    )


def _insert_analysis(conn, calculation_type, parameters, result_summary, calculation_date=None) -> int:
    cur = conn.execute(
        """
        INSERT INTO statistical_history
        (calculation_type, parameters, result_summary, calculation_date)
        VALUES (?, ?, ?, ?)
        """,
        (
            calculation_type,
            json.dumps(parameters, ensure_ascii=False, default=str),
            json.dumps(result_summary, ensure_ascii=False, default=str),
            (calculation_date or datetime.now()).isoformat(),
        ),
    )
    return cur.lastrowid


def _insert_accuracy(conn, record: AccuracyRecord) -> int:
    cur = conn.execute(
        """
        INSERT INTO prediction_accuracy
        (period_start, period_end, prediction_method, total_predictions,
         correct_predictions, accuracy_percentage, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.period_start.isoformat(),
            record.period_end.isoformat(),
            record.prediction_method,
            record.total_predictions,
            record.correct_predictions,
            record.accuracy_percentage,
            datetime.now().isoformat(),
        ),
    )
    return cur.lastrowid


class PredictionJournal:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = _lock_for(db_path)

    def connect(self) -> sqlite3.Connection:
        return connect(self.db_path)

    def init_db(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self.connect()
        c = conn.cursor()
        try:
            c.execute("""
                CREATE TABLE IF NOT EXISTS predictions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    digit_type TEXT NOT NULL,
                    target_draw_date TEXT NOT NULL,
                    predicted_value TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    rank INTEGER NOT NULL,
                    prediction_method TEXT NOT NULL,
                    was_correct INTEGER,          -- NULL until evaluated
                    created_at TEXT NOT NULL
                )
            """)
            c.execute("""
                CREATE INDEX IF NOT EXISTS idx_predictions_key
                ON predictions(target_draw_date, digit_type, prediction_method)
            """)
            c.execute("""
                CREATE TABLE IF NOT EXISTS prediction_accuracy (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    period_start TEXT NOT NULL,
                    period_end TEXT NOT NULL,
                    prediction_method TEXT NOT NULL,
                    total_predictions INTEGER NOT NULL,
                    correct_predictions INTEGER NOT NULL,
                    accuracy_percentage REAL NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            c.execute("""
                CREATE TABLE IF NOT EXISTS statistical_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    calculation_type TEXT NOT NULL,
                    parameters TEXT NOT NULL,     -- JSON
                    result_summary TEXT NOT NULL, -- JSON
                    calculation_date TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    # ---- predictions ----

    def replace_predictions(
        self,
        target_date: date,
        digit_type: DigitType,
        method: str,
        predictions: List[Prediction],
        analysis: Optional[Tuple[str, Dict[str, Any], Dict[str, Any]]] = None,
    ) -> int:
        """
        Delete-then-insert for one (target_date, digit_type, method) key, atomically.
        analysis is an optional (calculation_type, parameters, result_summary) entry
        appended to the audit log inside the same transaction.
        """
        now = datetime.now().isoformat()
        key = (target_date.isoformat(), DigitType.parse(digit_type).value, method)
        with self._lock:
            conn = self.connect()
            try:
                with conn:
                    conn.execute(
                        """
                        DELETE FROM predictions
                        WHERE target_draw_date = ? AND digit_type = ? AND prediction_method = ?
                        """,
                        key,
                    )
                    conn.executemany(
                        """
                        INSERT INTO predictions
                        (digit_type, target_draw_date, predicted_value, confidence, rank,
                         prediction_method, was_correct, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, NULL, ?)
                        """,
                        [
                            (key[1], key[0], p.predicted_value, p.confidence, p.rank, method, now)
                            for p in predictions
                        ],
                    )
                    if analysis is not None:
                        _insert_analysis(conn, *analysis)
            finally:
                conn.close()
        logger.info("[JOURNAL] Stored %d %s predictions for %s %s", len(predictions), method, key[1], key[0])
        return len(predictions)

    def get_predictions(
        self,
        target_date: date,
        digit_type: Optional[DigitType] = None,
        method: Optional[str] = None,
    ) -> List[Prediction]:
        sql = f"SELECT {PREDICTION_COLUMNS} FROM predictions WHERE target_draw_date = ?"
        params: List[Any] = [target_date.isoformat()]
        if digit_type is not None:
            sql += " AND digit_type = ?"
            params.append(DigitType.parse(digit_type).value)
        if method is not None:
            sql += " AND prediction_method = ?"
            params.append(method)
        sql += " ORDER BY digit_type, prediction_method, rank"
        conn = self.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [_row_to_prediction(r) for r in rows]

    def top_predictions(self, target_date: date, digit_type: DigitType, limit: int = 6) -> List[Prediction]:
        conn = self.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {PREDICTION_COLUMNS} FROM predictions
                WHERE target_draw_date = ? AND digit_type = ?
                ORDER BY confidence DESC, rank ASC, id ASC
                LIMIT ?
                """,
                (target_date.isoformat(), DigitType.parse(digit_type).value, limit),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_prediction(r) for r in rows]

    def set_correctness(self, updates: List[tuple]) -> None:
        """updates: (prediction_id, was_correct) pairs. Re-running with the same values is a no-op."""
        conn = self.connect()
        try:
            with conn:
                conn.executemany(
                    "UPDATE predictions SET was_correct = ? WHERE id = ?",
                    [(1 if correct else 0, pid) for pid, correct in updates],
                )
        finally:
            conn.close()

    def correct_predictions(self, digit_type: DigitType, limit: int = 50) -> List[Prediction]:
        conn = self.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {PREDICTION_COLUMNS} FROM predictions
                WHERE digit_type = ? AND was_correct = 1
                ORDER BY target_draw_date DESC, id DESC
                LIMIT ?
                """,
                (DigitType.parse(digit_type).value, limit),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_prediction(r) for r in rows]

    def prediction_history(
        self,
        digit_type: Optional[DigitType] = None,
        method: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        where = ["1 = 1"]
        params: List[Any] = []
        if digit_type is not None:
            where.append("digit_type = ?")
            params.append(DigitType.parse(digit_type).value)
        if method is not None:
            where.append("prediction_method = ?")
            params.append(method)
        if status == "correct":
            where.append("was_correct = 1")
        elif status == "incorrect":
            where.append("was_correct = 0")
        elif status == "pending":
            where.append("was_correct IS NULL")
        elif status is not None:
            raise ValueError(f"Unknown status '{status}'")
        if start_date is not None:
            where.append("target_draw_date >= ?")
            params.append(start_date.isoformat())
        if end_date is not None:
            where.append("target_draw_date <= ?")
            params.append(end_date.isoformat())
        clause = " AND ".join(where)

        conn = self.connect()
        try:
            (total,) = conn.execute(f"SELECT COUNT(*) FROM predictions WHERE {clause}", params).fetchone()
            rows = conn.execute(
                f"""
                SELECT {PREDICTION_COLUMNS} FROM predictions WHERE {clause}
                ORDER BY target_draw_date DESC, digit_type, prediction_method, rank
                LIMIT ? OFFSET ?
                """,
                params + [limit, offset],
            ).fetchall()
        finally:
            conn.close()
        return {"total": total, "predictions": [_row_to_prediction(r) for r in rows]}

    def evaluated_counts(self, digit_type: Optional[DigitType] = None) -> List[Dict[str, Any]]:
        """Correct/total counts of evaluated predictions grouped by digit type and method."""
        sql = """
            SELECT digit_type, prediction_method, COUNT(*), SUM(was_correct)
            FROM predictions
            WHERE was_correct IS NOT NULL
        """
        params: List[Any] = []
        if digit_type is not None:
            sql += " AND digit_type = ?"
            params.append(DigitType.parse(digit_type).value)
        sql += " GROUP BY digit_type, prediction_method ORDER BY digit_type, prediction_method"
        conn = self.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [
            {"digit_type": r[0], "method": r[1], "total": r[2], "correct": r[3] or 0}
            for r in rows
        ]

    def recent_evaluated(self, digit_type: DigitType, limit: int = 10) -> List[Prediction]:
        conn = self.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {PREDICTION_COLUMNS} FROM predictions
                WHERE digit_type = ? AND was_correct IS NOT NULL
                ORDER BY target_draw_date DESC, rank
                LIMIT ?
                """,
                (DigitType.parse(digit_type).value, limit),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_prediction(r) for r in rows]

    # ---- accuracy records ----

    def add_accuracy_record(self, record: AccuracyRecord) -> AccuracyRecord:
        conn = self.connect()
        try:
            with conn:
                new_id = _insert_accuracy(conn, record)
        finally:
            conn.close()
        return replace(record, id=new_id)

    def record_evaluation(self, updates: List[tuple], record: AccuracyRecord) -> AccuracyRecord:
        """Write correctness flags and their accuracy record in one transaction; neither lands alone."""
        conn = self.connect()
        try:
            with conn:
                conn.executemany(
                    "UPDATE predictions SET was_correct = ? WHERE id = ?",
                    [(1 if correct else 0, pid) for pid, correct in updates],
                )
                new_id = _insert_accuracy(conn, record)
        finally:
            conn.close()
        return replace(record, id=new_id)

    def accuracy_records(self, since: Optional[date] = None) -> List[AccuracyRecord]:
        sql = """
            SELECT id, period_start, period_end, prediction_method, total_predictions,
                   correct_predictions, accuracy_percentage
            FROM prediction_accuracy
        """
        params: List[Any] = []
        if since is not None:
            sql += " WHERE period_end >= ?"
            params.append(since.isoformat())
        sql += " ORDER BY period_end ASC, id ASC"
        conn = self.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [_row_to_accuracy(r) for r in rows]

    # ---- analysis history ----

    def log_analysis(
        self,
        calculation_type: str,
        parameters: Dict[str, Any],
        result_summary: Dict[str, Any],
        calculation_date: Optional[datetime] = None,
    ) -> int:
        conn = self.connect()
        try:
            with conn:
                return _insert_analysis(conn, calculation_type, parameters, result_summary, calculation_date)
        finally:
            conn.close()

    def analysis_history(self, calculation_type: Optional[str] = None, limit: Optional[int] = 50) -> List[Dict[str, Any]]:
        """Newest first. limit=None reads the whole log."""
        sql = "SELECT id, calculation_type, parameters, result_summary, calculation_date FROM statistical_history"
        params: List[Any] = []
        if calculation_type is not None:
            sql += " WHERE calculation_type = ?"
            params.append(calculation_type)
        sql += " ORDER BY calculation_date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        conn = self.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [
            {
                "id": r[0],
                "calculation_type": r[1],
                "parameters": json.loads(r[2]),
                "result_summary": json.loads(r[3]),
                "calculation_date": r[4],
            }
            for r in rows
        ]
