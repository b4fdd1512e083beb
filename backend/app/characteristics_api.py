from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .db_helpers import (
    delete_characteristics,
    get_active_characteristics,
    get_characteristics,
    insert_characteristics,
    list_characteristics,
    list_high_risk_characteristics,
    update_characteristics,
)
from .db_models import get_db
from .flood_risk import assess_characteristics, build_flood_summary
from .schemas import (
    FloodCharacteristicsCreate,
    FloodCharacteristicsOut,
    FloodCharacteristicsUpdate,
    RiskAssessmentOut,
    StaticRiskLevel,
)

router = APIRouter(prefix="/flood-characteristics")

# nullable text columns an update may set back to null
CLEARABLE_FIELDS = ("expert_analysis", "recommended_actions")


@router.get("", response_model=List[FloodCharacteristicsOut])
def list_all(
    location: Optional[str] = None,
    risk_level: Optional[StaticRiskLevel] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    return list_characteristics(
        db,
        location=location,
        risk_level=risk_level.value if risk_level else None,
        active_only=active_only,
    )


@router.get("/high-risk", response_model=List[FloodCharacteristicsOut])
def high_risk(db: Session = Depends(get_db)):
    """Active high/extreme records, deepest first."""
    return list_high_risk_characteristics(db)


@router.get("/location/{location}", response_model=FloodCharacteristicsOut)
def by_location(location: str, db: Session = Depends(get_db)):
    record = get_active_characteristics(db, location)
    if record is None:
        raise HTTPException(status_code=404, detail="Flood characteristics not found")
    return record


@router.get("/risk/{risk_level}", response_model=List[FloodCharacteristicsOut])
def by_risk_level(risk_level: StaticRiskLevel, db: Session = Depends(get_db)):
    return list_characteristics(db, risk_level=risk_level.value, active_only=True)


@router.get("/summary/{location}")
def summary(location: str, db: Session = Depends(get_db)):
    record = get_active_characteristics(db, location)
    if record is None:
        return {"hasData": False, "message": "No flood characteristics data available for this location"}
    return build_flood_summary(record)


@router.get("/{record_id}/assessment", response_model=RiskAssessmentOut)
def assessment(record_id: int, db: Session = Depends(get_db)):
    record = get_characteristics(db, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Flood characteristics not found")
    return assess_characteristics(record).to_dict()


@router.post("", response_model=FloodCharacteristicsOut, status_code=201)
def create(payload: FloodCharacteristicsCreate, db: Session = Depends(get_db)):
    values = payload.model_dump()
    values["flood_risk_level"] = payload.flood_risk_level.value
    return insert_characteristics(db, values)


@router.put("/{record_id}", response_model=FloodCharacteristicsOut)
def update(record_id: int, payload: FloodCharacteristicsUpdate, db: Session = Depends(get_db)):
    record = get_characteristics(db, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Flood characteristics not found")
    values = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in CLEARABLE_FIELDS
    }
    if "flood_risk_level" in values:
        values["flood_risk_level"] = payload.flood_risk_level.value
    return update_characteristics(db, record, values)


@router.delete("/{record_id}")
def delete(record_id: int, db: Session = Depends(get_db)):
    record = get_characteristics(db, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Flood characteristics not found")
    delete_characteristics(db, record)
    return {"message": "Flood characteristics deleted successfully"}
