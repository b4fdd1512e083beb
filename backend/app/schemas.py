from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StaticRiskLevel(str, Enum):
    """Flood-characteristics classification."""
    low = "low"
    moderate = "moderate"
    high = "high"
    extreme = "extreme"


class ForecastRiskLevel(str, Enum):
    """Flood-prediction classification."""
    low = "low"
    moderate = "moderate"
    high = "high"
    severe = "severe"
    extreme = "extreme"


class AlertLevel(str, Enum):
    watch = "watch"
    warning = "warning"
    emergency = "emergency"


class ValidationStatus(str, Enum):
    pending = "pending"
    validated = "validated"
    false_positive = "false_positive"
    false_negative = "false_negative"


# ---------- Predictions ----------
class FloodPredictionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    barangay_id: str
    prediction_timestamp: datetime
    forecast_start: datetime
    forecast_end: datetime
    flood_probability: float = Field(ge=0.0, le=1.0)
    risk_level: ForecastRiskLevel
    predicted_water_level: Optional[float]
    predicted_rainfall: Optional[float]
    affected_area_km2: Optional[float]
    population_at_risk: Optional[int]
    confidence_score: float = Field(ge=0.0, le=1.0)
    model_version: str
    input_features: Optional[Dict[str, Any]]
    prediction_notes: Optional[str]
    is_alert_sent: bool
    alert_level: Optional[AlertLevel]
    validation_status: ValidationStatus
    actual_outcome: Optional[Any] = None


class GeneratePredictionRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    barangay_id: str
    forecast_hours: int = Field(24, gt=0, le=168)
    model_version: Optional[str] = None
    force_refresh: bool = False


class GeneratePredictionResponse(BaseModel):
    message: str
    prediction: FloodPredictionOut
    generated: bool


class ValidatePredictionRequest(BaseModel):
    # optional plain str so missing or unknown statuses reach the domain check and its allowed list
    validation_status: Optional[str] = None
    actual_outcome: Optional[Any] = None
    notes: Optional[str] = None


# ---------- Flood characteristics ----------
class FloodCharacteristicsBase(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False, protected_namespaces=())

    location: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    maximum_depth: float = Field(ge=0)
    maximum_depth_uncertainty: float = Field(0.0, ge=0)
    peak_velocity: float = Field(ge=0)
    peak_velocity_uncertainty: float = Field(0.0, ge=0)
    arrival_time: float = Field(ge=0)
    arrival_time_uncertainty: float = Field(0.0, ge=0)
    inundation_area: float = Field(ge=0)
    inundation_area_uncertainty: float = Field(0.0, ge=0)
    flood_risk_level: StaticRiskLevel = StaticRiskLevel.low
    model_version: str = "v1.0"
    is_active: bool = True
    expert_analysis: Optional[str] = None
    recommended_actions: Optional[str] = None


class FloodCharacteristicsCreate(FloodCharacteristicsBase):
    pass


class FloodCharacteristicsUpdate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False, protected_namespaces=())

    location: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    maximum_depth: Optional[float] = Field(None, ge=0)
    maximum_depth_uncertainty: Optional[float] = Field(None, ge=0)
    peak_velocity: Optional[float] = Field(None, ge=0)
    peak_velocity_uncertainty: Optional[float] = Field(None, ge=0)
    arrival_time: Optional[float] = Field(None, ge=0)
    arrival_time_uncertainty: Optional[float] = Field(None, ge=0)
    inundation_area: Optional[float] = Field(None, ge=0)
    inundation_area_uncertainty: Optional[float] = Field(None, ge=0)
    flood_risk_level: Optional[StaticRiskLevel] = None
    model_version: Optional[str] = None
    is_active: Optional[bool] = None
    expert_analysis: Optional[str] = None
    recommended_actions: Optional[str] = None


class FloodCharacteristicsOut(FloodCharacteristicsBase):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    last_updated: datetime


class RiskAssessmentOut(BaseModel):
    score: int = Field(ge=0, le=8)
    factors: List[str]
    level: StaticRiskLevel


# ---------- Environmental data ----------
class EnvironmentalReadingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barangay_id: str
    timestamp: datetime
    rainfall_mm: Optional[float] = None
    water_level_m: Optional[float] = None
    temperature_c: Optional[float] = None
    humidity_percent: Optional[float] = None
    atmospheric_pressure: Optional[float] = None
    soil_moisture: Optional[float] = None
    wind_speed_mps: Optional[float] = None
    wind_direction: Optional[str] = None
    quality_flag: Optional[str] = None


# ---------- Barangays ----------
class BarangayRiskClass(str, Enum):
    """Static barangay classification used by the forecaster."""
    low = "low"
    moderate = "moderate"
    high = "high"
    very_high = "very_high"


class BarangayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    center_lat: float
    center_lng: float
    zoom_level: Optional[int] = None
    status: str
    geojson_file: Optional[str] = None
    population: Optional[int] = None
    area_km2: Optional[float] = None
    flood_risk_level: str
    watershed_zone: Optional[str] = None


# ---------- Sensors ----------
class SensorType(str, Enum):
    water_level = "water_level"
    rainfall = "rainfall"
    weather_station = "weather_station"
    flow_meter = "flow_meter"
    multi_parameter = "multi_parameter"


class SensorStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    maintenance = "maintenance"
    error = "error"


class SensorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    barangay_id: str
    sensor_type: str
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    status: str
    installation_date: Optional[datetime] = None
    last_maintenance: Optional[datetime] = None
    calibration_date: Optional[datetime] = None
    battery_level: Optional[float] = None
    transmission_interval: int
    watershed_zone: Optional[str] = None
    river_section: Optional[str] = None


class SensorReadingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sensor_id: str
    timestamp: datetime
    water_level: Optional[float] = None
    flow_velocity: Optional[float] = None
    flow_rate: Optional[float] = None
    water_temperature: Optional[float] = None
    turbidity: Optional[float] = None
    ph_level: Optional[float] = None
    dissolved_oxygen: Optional[float] = None
    rainfall: Optional[float] = None
    air_temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[str] = None
    atmospheric_pressure: Optional[float] = None
    visibility: Optional[float] = None
    uv_index: Optional[float] = None
    battery_voltage: Optional[float] = None
    signal_strength: Optional[float] = None
    data_quality: str
    is_validated: bool
    validation_notes: Optional[str] = None
