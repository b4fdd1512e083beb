# backend/app/healthcheck.py
from fastapi import APIRouter, Depends
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session
from .config import HEALTH_FRESH_SEC
from .db_models import get_db, FloodPrediction
from .logging_setup import logger

router = APIRouter()

# Internal health state (updated by prediction_service / accuracy)
health_state = {
    "last_generated": None,   # ISO string or None
    "last_validated": None,   # ISO string or None
}

def _iso_to_dt(iso: str | None) -> datetime | None:
    if not iso:
        return None
    try:
        if iso.endswith("Z"):
            iso = iso[:-1]
        return datetime.fromisoformat(iso)
    except ValueError:
        return None

def _friendly_status(db_ok: bool, last_generated: str | None):
    """
    Returns tuple (status_str, details_dict).
    """
    now = datetime.utcnow()
    last_gen_dt = _iso_to_dt(last_generated)
    gen_age = (now - last_gen_dt).total_seconds() if last_gen_dt else None
    ok_gen = gen_age is not None and gen_age <= HEALTH_FRESH_SEC

    details = {"database_ok": db_ok, "generator_age_sec": gen_age}
    if db_ok and ok_gen:
        return "🟢 Healthy", details
    if db_ok:
        return "🟡 Degraded", details
    return "🔴 Inactive", details

@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Returns live backend status for dashboard/monitoring.
    """
    db_ok = True
    latest_in_db = None
    try:
        latest = db.query(func.max(FloodPrediction.prediction_timestamp)).scalar()
        if latest is not None:
            latest_in_db = latest.isoformat() + "Z"
    except Exception as e:
        db_ok = False
        logger.error(f"[healthcheck] database check failed: {e}")

    # prefer runtime state, fall back to the newest stored prediction
    last_generated = health_state.get("last_generated") or latest_in_db
    status_str, status_details = _friendly_status(db_ok, last_generated)

    return {
        "status": status_str,
        "status_details": status_details,
        "last_generated": last_generated,
        "last_validated": health_state.get("last_validated"),
    }

def update_health(event: str):
    """
    Events: "generator_run", "validation_run".
    """
    now = datetime.utcnow().isoformat() + "Z"
    if event == "generator_run":
        health_state["last_generated"] = now
    elif event == "validation_run":
        health_state["last_validated"] = now
    logger.info(f"[healthcheck] update: {event} -> {now}")
