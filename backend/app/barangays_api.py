from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .db_helpers import get_barangay, latest_environmental_reading, list_barangays, query_sensors
from .db_models import get_db
from .schemas import BarangayOut, BarangayRiskClass, EnvironmentalReadingOut, SensorOut

router = APIRouter(prefix="/barangays")


@router.get("", response_model=List[BarangayOut])
def list_all(
    status: Optional[str] = None,
    flood_risk_level: Optional[BarangayRiskClass] = None,
    watershed_zone: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return list_barangays(
        db,
        status=status,
        flood_risk_level=flood_risk_level.value if flood_risk_level else None,
        watershed_zone=watershed_zone,
    )


@router.get("/{barangay_id}")
def detail(barangay_id: str, db: Session = Depends(get_db)):
    """Barangay with its sensors and the newest environmental reading."""
    barangay = get_barangay(db, barangay_id)
    if barangay is None:
        raise HTTPException(status_code=404, detail="Barangay not found")
    latest = latest_environmental_reading(db, barangay_id)
    return {
        "barangay": BarangayOut.model_validate(barangay),
        "sensors": [SensorOut.model_validate(s) for s in query_sensors(db, barangay_id=barangay_id).all()],
        "latest_environmental_data": EnvironmentalReadingOut.model_validate(latest) if latest else None,
    }
