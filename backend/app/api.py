from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from .accuracy import compute_accuracy, validate_prediction
from .aggregator import (
    DEFAULT_PARAMETERS,
    DEFAULT_PERIOD,
    ENVIRONMENTAL_PARAMETERS,
    aggregate_readings,
    parse_parameters,
    resolve_period,
)
from .config import DEFAULT_MODEL_VERSION, EVALUATION_DAYS
from .db_helpers import (
    get_active_predictions,
    get_barangay,
    get_prediction_history,
    get_readings_for_barangay,
    get_recent_readings,
    query_predictions,
)
from .db_models import get_db
from .errors import InvalidForecastWindow, NotFoundError, UnknownParameterError, ValidationStatusError
from .logging_setup import logger
from .prediction_service import generate_for_barangay
from .prediction_summary import filter_by_threshold, highest_risk, latest_per_barangay, risk_summary, summarize_listing
from .schemas import (
    EnvironmentalReadingOut,
    FloodPredictionOut,
    GeneratePredictionRequest,
    GeneratePredictionResponse,
    ValidatePredictionRequest,
)

router = APIRouter()


def _out(prediction):
    return FloodPredictionOut.model_validate(prediction)


@router.get("/predictions")
def list_predictions(
    barangay_id: Optional[str] = None,
    risk_level: Optional[str] = None,
    model_version: str = DEFAULT_MODEL_VERSION,
    forecast_active: bool = True,
    limit: int = Query(20, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    now = datetime.utcnow()
    q = query_predictions(
        db,
        barangay_id=barangay_id,
        risk_level=risk_level,
        model_version=model_version,
        active_at=now if forecast_active else None,
    )
    total = q.count()
    rows = q.offset(offset).limit(limit).all()

    return {
        "predictions": [_out(p) for p in rows],
        "total": total,
        "summary": summarize_listing(rows, now),
        "pagination": {"limit": limit, "offset": offset, "has_more": total > offset + limit},
    }


@router.get("/predictions/current")
def current_predictions(risk_threshold: str = "moderate", db: Session = Depends(get_db)):
    """
    Latest active prediction per barangay, filtered by a forecast risk threshold.
    """
    now = datetime.utcnow()
    current = latest_per_barangay(get_active_predictions(db, now))
    summary = risk_summary(current)
    return {
        "timestamp": now,
        "current_predictions": [_out(p) for p in filter_by_threshold(current, risk_threshold)],
        "total_barangays": len(current),
        "risk_summary": summary,
        "highest_risk": highest_risk(summary),
    }


@router.get("/predictions/barangay/{barangay_id}")
def barangay_predictions(
    barangay_id: str,
    include_history: bool = True,
    history_days: int = Query(7, ge=1),
    include_environmental_data: bool = False,
    db: Session = Depends(get_db),
):
    barangay = get_barangay(db, barangay_id)
    if barangay is None:
        raise HTTPException(status_code=404, detail="Barangay not found")

    now = datetime.utcnow()
    active = query_predictions(db, barangay_id=barangay_id, active_at=now).first()

    history = []
    if include_history:
        history = get_prediction_history(db, barangay_id, now - timedelta(days=history_days), limit=50)

    environmental = None
    if include_environmental_data:
        readings = get_recent_readings(db, barangay_id, now - timedelta(hours=24), limit=24)
        environmental = [EnvironmentalReadingOut.model_validate(r) for r in readings]

    return {
        "barangay": {
            "id": barangay.id,
            "name": barangay.name,
            "center_lat": barangay.center_lat,
            "center_lng": barangay.center_lng,
            "population": barangay.population,
            "area_km2": barangay.area_km2,
            "flood_risk_level": barangay.flood_risk_level,
            "watershed_zone": barangay.watershed_zone,
        },
        "current_prediction": _out(active) if active else None,
        "prediction_history": [_out(p) for p in history],
        "environmental_data": environmental,
        "metadata": {
            "history_days": history_days if include_history else 0,
            "environmental_data_included": include_environmental_data,
            "total_historical_predictions": len(history),
        },
    }


@router.post("/predictions/generate", response_model=GeneratePredictionResponse)
def generate(payload: GeneratePredictionRequest, response: Response, db: Session = Depends(get_db)):
    try:
        result = generate_for_barangay(
            db,
            payload.barangay_id,
            forecast_hours=payload.forecast_hours,
            model_version=payload.model_version or DEFAULT_MODEL_VERSION,
            force_refresh=payload.force_refresh,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Barangay not found")
    except InvalidForecastWindow as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not result.generated:
        return {"message": "Recent prediction already exists", "prediction": _out(result.prediction), "generated": False}

    response.status_code = 201
    return {"message": "Prediction generated successfully", "prediction": _out(result.prediction), "generated": True}


@router.get("/predictions/accuracy")
def prediction_accuracy(
    model_version: str = DEFAULT_MODEL_VERSION,
    evaluation_period_days: int = Query(EVALUATION_DAYS, ge=1),
    barangay_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    report = compute_accuracy(db, model_version, evaluation_period_days, barangay_id)
    return report.to_dict()


@router.put("/predictions/{prediction_id}/validate")
def validate(prediction_id: int, payload: ValidatePredictionRequest, db: Session = Depends(get_db)):
    try:
        prediction = validate_prediction(
            db, prediction_id, payload.validation_status, payload.actual_outcome, payload.notes
        )
    except ValidationStatusError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid validation status", "allowed_values": e.allowed_values},
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Prediction not found")

    return {"message": "Prediction validation updated successfully", "prediction": _out(prediction)}


@router.get("/environmental-data/{barangay_id}")
def environmental_data(barangay_id: str, db: Session = Depends(get_db)):
    return [EnvironmentalReadingOut.model_validate(r) for r in get_readings_for_barangay(db, barangay_id)]


@router.get("/environmental-data/{barangay_id}/statistics")
def environmental_statistics(
    barangay_id: str,
    period: str = DEFAULT_PERIOD,
    parameters: str = ",".join(DEFAULT_PARAMETERS),
    db: Session = Depends(get_db),
):
    if get_barangay(db, barangay_id) is None:
        raise HTTPException(status_code=404, detail="Barangay not found")
    try:
        params = parse_parameters(parameters, ENVIRONMENTAL_PARAMETERS, DEFAULT_PARAMETERS)
    except UnknownParameterError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Unknown parameter", "unknown": e.unknown, "allowed_values": e.allowed_values},
        )

    period, start, end = resolve_period(period)
    readings = get_recent_readings(db, barangay_id, start)
    window = aggregate_readings(readings, start, end, params)
    logger.info(f"[api] statistics for {barangay_id} period={period} readings={window.total_readings}")

    return {
        "barangay_id": barangay_id,
        "period": period,
        "time_range": {"start": start, "end": end},
        "statistics": {k: v.to_dict() for k, v in window.parameters.items()},
        "total_readings": window.total_readings,
    }
