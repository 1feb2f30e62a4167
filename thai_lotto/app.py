from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from thai_lotto.accuracy import AccuracyEvaluator
from thai_lotto.config import Settings, setup_logging
from thai_lotto.db import DrawStore
from thai_lotto.frequency import FrequencyAnalyzer
from thai_lotto.ingest import import_csv, process_new_results
from thai_lotto.journal import PredictionJournal
from thai_lotto.models import FilterCriteria
from thai_lotto.pairs import PairAnalyzer
from thai_lotto.parse import build_record, parse_iso_date
from thai_lotto.patterns import PatternAnalyzer
from thai_lotto.predictions import ENSEMBLE, LEARNING, STATISTICAL, PredictionAggregator
from thai_lotto.results import Err, ErrorKind
from thai_lotto.schedule import get_next_draw_info
from thai_lotto.trends import TrendAnalyzer

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_DATA: 422,
}


class DrawIn(BaseModel):
    draw_date: str
    first_prize: str
    last3f: str
    last3b: str
    last2: str
    near1_1: Optional[str] = None
    near1_2: Optional[str] = None


class CSVImportRequest(BaseModel):
    csv_content: str


class PredictionRequest(BaseModel):
    target_date: Optional[str] = None
    method: str = STATISTICAL


def _error(err: Err) -> JSONResponse:
    return JSONResponse(status_code=STATUS_CODES[err.kind], content=err.to_dict())


def _respond(result, render: Callable = lambda v: v.to_dict()):
    if not result.ok:
        return _error(result)
    return render(result.value)


def _filters(start_date, end_date, day_of_week, date_day, date_month, limit) -> FilterCriteria:
    return FilterCriteria(
        start_date=parse_iso_date(start_date) if start_date else None,
        end_date=parse_iso_date(end_date) if end_date else None,
        day_of_week=day_of_week,
        date_day=date_day,
        date_month=date_month,
        limit=limit,
    )


def create_app(settings: Optional[Settings] = None, clock: Callable[[], date] = date.today) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    store = DrawStore(settings.db_path)
    journal = PredictionJournal(settings.db_path)
    frequency = FrequencyAnalyzer(store, journal, settings)
    pairs = PairAnalyzer(store, journal)
    patterns = PatternAnalyzer(store, journal)
    trends = TrendAnalyzer(store, journal)
    aggregator = PredictionAggregator(store, journal, settings, clock=clock)
    evaluator = AccuracyEvaluator(store, journal, clock=clock)

    app = FastAPI(title="Thai Lotto Analysis")

    @app.on_event("startup")
    async def _startup():
        store.init_db()
        journal.init_db()
        logger.info("[STARTUP] Database ready at %s (%d draws)", settings.db_path, store.count_draws())

    @app.exception_handler(ValueError)
    async def _value_error(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"error": str(exc), "kind": ErrorKind.VALIDATION.value})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("[API ERROR] %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/api/health")
    def health():
        return {"ok": True, **store.stats()}

    # ---- draws ----

    @app.get("/api/draws")
    def list_draws(limit: int = 20, offset: int = 0):
        return {"draws": [d.to_dict() for d in store.recent_draws(limit, offset)], **store.stats()}

    @app.post("/api/draws")
    def add_draw(draw: DrawIn):
        record = build_record(**draw.model_dump())
        return process_new_results(record, store, aggregator, evaluator)

    @app.post("/api/draws/import")
    def import_draws(request: CSVImportRequest):
        summary = import_csv(request.csv_content, store)
        if not summary["imported"]:
            return JSONResponse(status_code=400, content={"error": "No valid draws parsed from CSV", **summary})
        return summary

    # ---- analysis ----

    @app.get("/api/frequency/{field}")
    def get_frequency(
        field: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        day_of_week: Optional[str] = None,
        date_day: Optional[int] = None,
        date_month: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        filters = _filters(start_date, end_date, day_of_week, date_day, date_month, limit)
        return _respond(frequency.compute_frequency(field, filters))

    @app.get("/api/positions/{field}")
    def get_positions(field: str, limit: Optional[int] = None):
        return _respond(frequency.compute_position_frequency(field, FilterCriteria(limit=limit)))

    @app.get("/api/pairs/{field}")
    def get_pairs(field: str, limit: Optional[int] = None):
        return _respond(pairs.compute_pair_frequency(field, FilterCriteria(limit=limit)))

    @app.get("/api/patterns/{field}")
    def get_patterns(field: str, lookback: int = settings.pattern_lookback):
        return _respond(patterns.find_recurring_patterns(field, lookback))

    @app.get("/api/trends/{field}")
    def get_trends(field: str, lookback: int = settings.trend_lookback):
        return _respond(trends.analyze_trend(field, lookback))

    @app.get("/api/summary/{field}")
    def get_summary(field: str, limit: int = 100):
        return _respond(frequency.summary_statistics(field, limit), render=lambda v: {"field": field, **v})

    @app.get("/api/analysis-history")
    def analysis_history(calculation_type: Optional[str] = None, limit: int = 50):
        return {"history": journal.analysis_history(calculation_type, limit)}

    # ---- predictions ----

    @app.post("/api/predictions/{digit_type}")
    def create_predictions(digit_type: str, request: PredictionRequest):
        target = request.target_date or get_next_draw_info(clock())["next_draw_date"]
        generators = {
            STATISTICAL: aggregator.generate_predictions,
            LEARNING: aggregator.generate_learning_predictions,
            ENSEMBLE: aggregator.generate_ensemble_predictions,
        }
        if request.method not in generators:
            return _error(Err(ErrorKind.VALIDATION, f"Unknown method '{request.method}'"))
        return _respond(generators[request.method](digit_type, target))

    @app.get("/api/predictions/history")
    def prediction_history(
        digit_type: Optional[str] = None,
        method: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ):
        res = aggregator.get_prediction_history(digit_type, method, status, start_date, end_date, limit, offset)
        return _respond(res, render=lambda v: {"total": v["total"], "predictions": [p.to_dict() for p in v["predictions"]]})

    @app.get("/api/predictions/{target_date}")
    def stored_predictions(target_date: str, digit_type: Optional[str] = None, method: Optional[str] = None):
        return _respond(
            aggregator.get_predictions(target_date, digit_type, method),
            render=lambda preds: {"target_date": target_date, "predictions": [p.to_dict() for p in preds]},
        )

    @app.get("/api/predictions/{target_date}/top")
    def top_predictions(target_date: str, limit: int = 6):
        return _respond(
            aggregator.get_top_predictions(target_date, limit),
            render=lambda by_type: {k: [p.to_dict() for p in v] for k, v in by_type.items()},
        )

    # ---- accuracy ----

    @app.get("/api/accuracy/history")
    def accuracy_history(period: str = "all"):
        return _respond(evaluator.get_accuracy_history(period), render=lambda v: v)

    @app.get("/api/accuracy/stats")
    def accuracy_stats():
        return _respond(evaluator.get_accuracy_statistics(), render=lambda v: v)

    @app.get("/api/accuracy/digit-type/{digit_type}")
    def digit_type_performance(digit_type: str):
        return _respond(evaluator.get_digit_type_performance(digit_type), render=lambda v: v)

    @app.post("/api/accuracy/{draw_date}")
    def evaluate(draw_date: str):
        return _respond(evaluator.evaluate_accuracy(draw_date))

    @app.get("/api/next-draw")
    def next_draw():
        return get_next_draw_info(clock())

    return app


app = create_app()
