# backend/app/sensors_api.py
"""
Monitoring sensors and their readings.

Statistics only use readings that have been validated, summarised by the
same aggregator as the barangay environmental data.
"""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .aggregator import (
    DEFAULT_PERIOD,
    DEFAULT_SENSOR_PARAMETERS,
    SENSOR_PARAMETERS,
    aggregate_readings,
    parse_parameters,
    resolve_period,
)
from .db_helpers import get_barangay, get_barangays_by_id, get_sensor, latest_sensor_reading, query_sensor_readings, query_sensors
from .db_models import get_db
from .errors import UnknownParameterError
from .logging_setup import logger
from .schemas import BarangayOut, SensorOut, SensorReadingOut, SensorStatus, SensorType

router = APIRouter(prefix="/sensors")

RECENT_READINGS_PER_SENSOR = 10
READING_META_FIELDS = ("id", "timestamp", "data_quality", "is_validated")


def _parameters_or_400(raw: Optional[str], default):
    try:
        return parse_parameters(raw, SENSOR_PARAMETERS, default)
    except UnknownParameterError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Unknown parameter", "unknown": e.unknown, "allowed_values": e.allowed_values},
        )


def _sensor_payload(sensor, barangay=None, readings=None):
    body = SensorOut.model_validate(sensor).model_dump()
    body["barangay"] = BarangayOut.model_validate(barangay) if barangay else None
    if readings is not None:
        body["readings"] = [SensorReadingOut.model_validate(r) for r in readings]
    return body


@router.get("")
def list_sensors(
    status: Optional[SensorStatus] = None,
    sensor_type: Optional[SensorType] = None,
    barangay_id: Optional[str] = None,
    watershed_zone: Optional[str] = None,
    include_readings: bool = False,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    q = query_sensors(
        db,
        status=status.value if status else None,
        sensor_type=sensor_type.value if sensor_type else None,
        barangay_id=barangay_id,
        watershed_zone=watershed_zone,
    )
    total = q.count()
    sensors = q.offset(offset).limit(limit).all()
    barangays = get_barangays_by_id(db, (s.barangay_id for s in sensors))

    payload = []
    for s in sensors:
        readings = None
        if include_readings:
            readings = query_sensor_readings(db, s.id).limit(RECENT_READINGS_PER_SENSOR).all()
        payload.append(_sensor_payload(s, barangays.get(s.barangay_id), readings))

    return {
        "sensors": payload,
        "total": total,
        "pagination": {"limit": limit, "offset": offset, "has_more": total > offset + limit},
    }


@router.get("/readings/latest")
def latest_readings(
    watershed_zone: Optional[str] = None,
    barangay_id: Optional[str] = None,
    sensor_type: Optional[SensorType] = None,
    db: Session = Depends(get_db),
):
    """Newest reading of every active sensor, for the dashboard map."""
    sensors = query_sensors(
        db,
        status=SensorStatus.active.value,
        sensor_type=sensor_type.value if sensor_type else None,
        barangay_id=barangay_id,
        watershed_zone=watershed_zone,
    ).all()
    barangays = get_barangays_by_id(db, (s.barangay_id for s in sensors))

    rows = []
    for s in sensors:
        latest = latest_sensor_reading(db, s.id)
        barangay = barangays.get(s.barangay_id)
        rows.append({
            "sensor_id": s.id,
            "sensor_name": s.name,
            "sensor_type": s.sensor_type,
            "barangay": BarangayOut.model_validate(barangay) if barangay else None,
            "location": {"latitude": s.latitude, "longitude": s.longitude},
            "watershed_zone": s.watershed_zone,
            "river_section": s.river_section,
            "battery_level": s.battery_level,
            "status": s.status,
            "latest_reading": SensorReadingOut.model_validate(latest) if latest else None,
        })

    return {"timestamp": datetime.utcnow(), "sensors": rows, "total_sensors": len(rows)}


@router.get("/{sensor_id}")
def sensor_detail(sensor_id: str, include_readings_hours: int = Query(24, ge=1), db: Session = Depends(get_db)):
    sensor = get_sensor(db, sensor_id)
    if sensor is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    since = datetime.utcnow() - timedelta(hours=include_readings_hours)
    readings = query_sensor_readings(db, sensor_id, start=since).all()
    return _sensor_payload(sensor, get_barangay(db, sensor.barangay_id), readings)


@router.get("/{sensor_id}/readings")
def sensor_readings(
    sensor_id: str,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    parameters: str = "all",
    db: Session = Depends(get_db),
):
    if get_sensor(db, sensor_id) is None:
        raise HTTPException(status_code=404, detail="Sensor not found")

    fields = list(SENSOR_PARAMETERS) + ["wind_direction"]
    if parameters.strip() != "all":
        fields = _parameters_or_400(parameters, SENSOR_PARAMETERS)

    q = query_sensor_readings(db, sensor_id, start=start_time, end=end_time)
    total = q.count()
    rows = q.offset(offset).limit(limit).all()

    return {
        "sensor_id": sensor_id,
        "readings": [{f: getattr(r, f) for f in (*READING_META_FIELDS, *fields)} for r in rows],
        "total": total,
        "pagination": {"limit": limit, "offset": offset, "has_more": total > offset + limit},
        "parameters": "all" if parameters.strip() == "all" else fields,
    }


@router.get("/{sensor_id}/statistics")
def sensor_statistics(
    sensor_id: str,
    period: str = DEFAULT_PERIOD,
    parameters: str = ",".join(DEFAULT_SENSOR_PARAMETERS),
    db: Session = Depends(get_db),
):
    if get_sensor(db, sensor_id) is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    params = _parameters_or_400(parameters, DEFAULT_SENSOR_PARAMETERS)

    period, start, end = resolve_period(period)
    readings = query_sensor_readings(db, sensor_id, start=start, validated_only=True).all()
    window = aggregate_readings(readings, start, end, params)
    logger.info(f"[sensors_api] statistics for {sensor_id} period={period} readings={window.total_readings}")

    return {
        "sensor_id": sensor_id,
        "period": period,
        "time_range": {"start": start, "end": end},
        "statistics": {k: v.to_dict() for k, v in window.parameters.items()},
        "total_readings": window.total_readings,
    }
