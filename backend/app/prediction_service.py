# backend/app/prediction_service.py
"""
Generate and persist flood predictions for a barangay.

A prediction made within the freshness window whose forecast has not ended is
returned as-is instead of inserting a duplicate. The check and the insert are
two separate statements with no lock: concurrent requests for the same
barangay can both pass the check and both insert.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from .aggregator import aggregate_readings
from .config import DEFAULT_MODEL_VERSION, READINGS_LOOKBACK_HOURS, READINGS_LIMIT, RECENT_POINTS
from .db_helpers import get_barangay, list_barangays, find_recent_prediction, get_recent_readings, insert_prediction
from .errors import NotFoundError
from .healthcheck import update_health
from .logging_setup import logger
from .prediction_generator import (
    DEFAULT_PREDICTION_RULES,
    RAINFALL_PARAM,
    WATER_LEVEL_PARAM,
    GenerationResult,
    PredictionRules,
    generate_prediction,
)


def generate_for_barangay(
    db: Session,
    barangay_id: str,
    forecast_hours: float = 24,
    model_version: str = DEFAULT_MODEL_VERSION,
    force_refresh: bool = False,
    rng=None,
    rules: PredictionRules = DEFAULT_PREDICTION_RULES,
    now: Optional[datetime] = None,
) -> GenerationResult:
    now = now or datetime.utcnow()
    barangay = get_barangay(db, barangay_id)
    if barangay is None:
        raise NotFoundError("Barangay", barangay_id)

    existing = None
    if not force_refresh:
        existing = find_recent_prediction(db, barangay_id, now - rules.freshness)

    lookback_start = now - timedelta(hours=READINGS_LOOKBACK_HOURS)
    readings = get_recent_readings(db, barangay_id, lookback_start, READINGS_LIMIT)
    window = aggregate_readings(
        readings,
        window_start=lookback_start,
        window_end=now,
        parameters=(RAINFALL_PARAM, WATER_LEVEL_PARAM),
        recent_points=RECENT_POINTS,
    )

    result = generate_prediction(
        barangay.flood_risk_level,
        window,
        forecast_hours,
        barangay_area_km2=barangay.area_km2,
        barangay_population=barangay.population,
        force_refresh=force_refresh,
        existing_recent_prediction=existing,
        rng=rng,
        rules=rules,
        now=now,
    )
    if not result.generated:
        logger.info(f"[prediction_service] Recent prediction id={existing.id} still fresh for {barangay_id}, skipping")
        return result

    values = dict(result.prediction)
    values.update(
        barangay_id=barangay_id,
        model_version=model_version,
        prediction_notes=f"Generated via API for {barangay.name} - {forecast_hours}h forecast",
        is_alert_sent=False,
        validation_status="pending",
    )
    record = insert_prediction(db, values)
    update_health("generator_run")
    logger.info(
        f"[prediction_service] Generated prediction for {barangay_id}: "
        f"p={record.flood_probability} risk={record.risk_level} alert={record.alert_level} "
        f"points={window.total_readings}"
    )
    return GenerationResult(prediction=record, generated=True)


def generate_for_all(
    db: Session,
    forecast_hours: float = 24,
    model_version: str = DEFAULT_MODEL_VERSION,
    force_refresh: bool = False,
    rng=None,
) -> List[GenerationResult]:
    results = []
    for barangay in list_barangays(db):
        results.append(generate_for_barangay(
            db, barangay.id,
            forecast_hours=forecast_hours,
            model_version=model_version,
            force_refresh=force_refresh,
            rng=rng,
        ))
    generated = sum(1 for r in results if r.generated)
    logger.info(f"[prediction_service] Done → Generated={generated}, Skipped={len(results) - generated}, Total={len(results)}")
    return results
