"""
Result ingestion.
A new official result is stored, the predictions made for that draw are scored,
and fresh predictions are generated for the following draw.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from thai_lotto.accuracy import AccuracyEvaluator
from thai_lotto.db import DrawStore
from thai_lotto.models import DigitType, DrawRecord
from thai_lotto.parse import parse_results_csv
from thai_lotto.predictions import PredictionAggregator
from thai_lotto.schedule import next_draw_date

logger = logging.getLogger(__name__)


def process_new_results(
    record: DrawRecord,
    store: DrawStore,
    aggregator: PredictionAggregator,
    evaluator: AccuracyEvaluator,
) -> Dict[str, Any]:
    store.upsert_draw(record)
    logger.info("[INGEST] Stored result for %s", record.draw_date)

    evaluation = evaluator.evaluate_accuracy(record.draw_date)
    if evaluation.ok:
        accuracy = evaluation.value.to_dict()
    else:
        # first draws have nothing to score yet
        logger.info("[INGEST] Accuracy not evaluated for %s: %s", record.draw_date, evaluation.message)
        accuracy = evaluation.to_dict()

    target = next_draw_date(record.draw_date)
    generated = {}
    for dt in DigitType:
        res = aggregator.generate_predictions(dt, target)
        generated[dt.value] = len(res.value.predictions) if res.ok else res.to_dict()
    logger.info("[INGEST] Generated predictions for next draw %s", target)

    return {
        "status": "processed",
        "draw_date": record.draw_date.isoformat(),
        "accuracy": accuracy,
        "next_draw_date": target.isoformat(),
        "predictions_generated": generated,
    }


def import_csv(csv_content: str, store: DrawStore) -> Dict[str, Any]:
    """Bulk-load historical results. Does not evaluate or predict."""
    records, skipped = parse_results_csv(csv_content)
    for record in records:
        store.upsert_draw(record)
    logger.info("[INGEST] CSV import: %d rows stored, %d skipped", len(records), skipped)
    return {
        "imported": len(records),
        "skipped": skipped,
        "dates": [r.draw_date.isoformat() for r in records],
    }
