# backend/app/db_helpers.py
from typing import Optional, Dict, Any, List
from datetime import datetime
from sqlalchemy.orm import Session
from .db_models import init_db, Barangay, EnvironmentalReading, FloodCharacteristics, FloodPrediction, Sensor, SensorReading
from .logging_setup import logger

def ensure_db():
    init_db()

def _commit(db: Session, what: str):
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"[db_helpers] {what} failed: {e}", exc_info=True)
        raise

# ---------- Barangays ----------
def get_barangay(db: Session, barangay_id: str) -> Optional[Barangay]:
    return db.get(Barangay, barangay_id)

def list_barangays(db: Session, status: Optional[str] = None, flood_risk_level: Optional[str] = None,
                   watershed_zone: Optional[str] = None) -> List[Barangay]:
    q = db.query(Barangay)
    if status:
        q = q.filter(Barangay.status == status)
    if flood_risk_level:
        q = q.filter(Barangay.flood_risk_level == flood_risk_level)
    if watershed_zone:
        q = q.filter(Barangay.watershed_zone == watershed_zone)
    return q.order_by(Barangay.id).all()

def get_barangays_by_id(db: Session, ids) -> Dict[str, Barangay]:
    ids = set(ids)
    if not ids:
        return {}
    return {b.id: b for b in db.query(Barangay).filter(Barangay.id.in_(ids)).all()}

# ---------- Sensors ----------
def query_sensors(
    db: Session,
    status: Optional[str] = None,
    sensor_type: Optional[str] = None,
    barangay_id: Optional[str] = None,
    watershed_zone: Optional[str] = None,
):
    q = db.query(Sensor)
    if status:
        q = q.filter(Sensor.status == status)
    if sensor_type:
        q = q.filter(Sensor.sensor_type == sensor_type)
    if barangay_id:
        q = q.filter(Sensor.barangay_id == barangay_id)
    if watershed_zone:
        q = q.filter(Sensor.watershed_zone == watershed_zone)
    return q.order_by(Sensor.name.asc(), Sensor.id.asc())

def get_sensor(db: Session, sensor_id: str) -> Optional[Sensor]:
    return db.get(Sensor, sensor_id)

def query_sensor_readings(db: Session, sensor_id: str, start: Optional[datetime] = None,
                          end: Optional[datetime] = None, validated_only: bool = False):
    """Newest first."""
    q = db.query(SensorReading).filter(SensorReading.sensor_id == sensor_id)
    if start is not None:
        q = q.filter(SensorReading.timestamp >= start)
    if end is not None:
        q = q.filter(SensorReading.timestamp <= end)
    if validated_only:
        q = q.filter(SensorReading.is_validated.is_(True))
    return q.order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())

def latest_sensor_reading(db: Session, sensor_id: str) -> Optional[SensorReading]:
    return query_sensor_readings(db, sensor_id).first()

# ---------- Environmental readings ----------
def get_recent_readings(db: Session, barangay_id: str, since: datetime, limit: Optional[int] = None) -> List[EnvironmentalReading]:
    """Newest first."""
    q = (
        db.query(EnvironmentalReading)
        .filter(EnvironmentalReading.barangay_id == barangay_id, EnvironmentalReading.timestamp >= since)
        .order_by(EnvironmentalReading.timestamp.desc())
    )
    if limit:
        q = q.limit(limit)
    return q.all()

def latest_environmental_reading(db: Session, barangay_id: str) -> Optional[EnvironmentalReading]:
    return (
        db.query(EnvironmentalReading)
        .filter(EnvironmentalReading.barangay_id == barangay_id)
        .order_by(EnvironmentalReading.timestamp.desc())
        .first()
    )

def get_readings_for_barangay(db: Session, barangay_id: str) -> List[EnvironmentalReading]:
    return (
        db.query(EnvironmentalReading)
        .filter(EnvironmentalReading.barangay_id == barangay_id)
        .order_by(EnvironmentalReading.timestamp.asc())
        .all()
    )

# ---------- Predictions ----------
def find_recent_prediction(db: Session, barangay_id: str, since: datetime) -> Optional[FloodPrediction]:
    return (
        db.query(FloodPrediction)
        .filter(FloodPrediction.barangay_id == barangay_id, FloodPrediction.prediction_timestamp >= since)
        .order_by(FloodPrediction.prediction_timestamp.desc(), FloodPrediction.id.desc())
        .first()
    )

def insert_prediction(db: Session, values: Dict[str, Any]) -> FloodPrediction:
    record = FloodPrediction(**values)
    db.add(record)
    _commit(db, f"insert_prediction for {values.get('barangay_id')}")
    db.refresh(record)
    logger.info(
        f"[db_helpers] Inserted prediction id={record.id} barangay_id={record.barangay_id} "
        f"risk_level={record.risk_level} alert_level={record.alert_level}"
    )
    return record

def get_prediction(db: Session, prediction_id: int) -> Optional[FloodPrediction]:
    return db.get(FloodPrediction, prediction_id)

def save(db: Session, record, what: str = "save"):
    _commit(db, what)
    db.refresh(record)
    return record

def query_predictions(
    db: Session,
    barangay_id: Optional[str] = None,
    risk_level: Optional[str] = None,
    model_version: Optional[str] = None,
    active_at: Optional[datetime] = None,
):
    q = db.query(FloodPrediction)
    if barangay_id:
        q = q.filter(FloodPrediction.barangay_id == barangay_id)
    if risk_level:
        q = q.filter(FloodPrediction.risk_level == risk_level)
    if model_version:
        q = q.filter(FloodPrediction.model_version == model_version)
    if active_at is not None:
        q = q.filter(FloodPrediction.forecast_end > active_at)
    return q.order_by(FloodPrediction.prediction_timestamp.desc(), FloodPrediction.id.desc())

def get_active_predictions(db: Session, now: datetime) -> List[FloodPrediction]:
    return (
        db.query(FloodPrediction)
        .filter(FloodPrediction.forecast_end > now)
        .order_by(FloodPrediction.barangay_id.asc(), FloodPrediction.prediction_timestamp.desc(), FloodPrediction.id.desc())
        .all()
    )

def get_prediction_history(db: Session, barangay_id: str, since: datetime, limit: int = 50) -> List[FloodPrediction]:
    return (
        db.query(FloodPrediction)
        .filter(FloodPrediction.barangay_id == barangay_id, FloodPrediction.prediction_timestamp >= since)
        .order_by(FloodPrediction.prediction_timestamp.desc(), FloodPrediction.id.desc())
        .limit(limit)
        .all()
    )

def list_evaluated_predictions(db: Session, model_version: str, since: datetime, barangay_id: Optional[str] = None) -> List[FloodPrediction]:
    q = db.query(FloodPrediction).filter(
        FloodPrediction.model_version == model_version,
        FloodPrediction.prediction_timestamp >= since,
        FloodPrediction.validation_status != "pending",
    )
    if barangay_id:
        q = q.filter(FloodPrediction.barangay_id == barangay_id)
    return q.order_by(FloodPrediction.prediction_timestamp.desc()).all()

# ---------- Flood characteristics ----------
def list_characteristics(db: Session, location: Optional[str] = None, risk_level: Optional[str] = None,
                         active_only: bool = False) -> List[FloodCharacteristics]:
    q = db.query(FloodCharacteristics)
    if location:
        q = q.filter(FloodCharacteristics.location == location)
    if risk_level:
        q = q.filter(FloodCharacteristics.flood_risk_level == risk_level)
    if active_only:
        q = q.filter(FloodCharacteristics.is_active.is_(True))
    return q.order_by(FloodCharacteristics.last_updated.desc()).all()

def get_active_characteristics(db: Session, location: str) -> Optional[FloodCharacteristics]:
    return (
        db.query(FloodCharacteristics)
        .filter(FloodCharacteristics.location == location, FloodCharacteristics.is_active.is_(True))
        .order_by(FloodCharacteristics.last_updated.desc())
        .first()
    )

def list_high_risk_characteristics(db: Session) -> List[FloodCharacteristics]:
    return (
        db.query(FloodCharacteristics)
        .filter(FloodCharacteristics.flood_risk_level.in_(("high", "extreme")),
                FloodCharacteristics.is_active.is_(True))
        .order_by(FloodCharacteristics.maximum_depth.desc())
        .all()
    )

def get_characteristics(db: Session, record_id: int) -> Optional[FloodCharacteristics]:
    return db.get(FloodCharacteristics, record_id)

def insert_characteristics(db: Session, values: Dict[str, Any]) -> FloodCharacteristics:
    record = FloodCharacteristics(**values)
    db.add(record)
    _commit(db, f"insert_characteristics for {values.get('location')}")
    db.refresh(record)
    logger.info(f"[db_helpers] Inserted flood characteristics id={record.id} location={record.location}")
    return record

def update_characteristics(db: Session, record: FloodCharacteristics, values: Dict[str, Any]) -> FloodCharacteristics:
    for key, value in values.items():
        setattr(record, key, value)
    record.last_updated = datetime.utcnow()
    return save(db, record, f"update_characteristics id={record.id}")

def delete_characteristics(db: Session, record: FloodCharacteristics):
    record_id = record.id
    db.delete(record)
    _commit(db, f"delete_characteristics id={record_id}")
    logger.info(f"[db_helpers] Deleted flood characteristics id={record_id}")
