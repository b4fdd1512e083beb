# backend/app/db_models.py
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, JSON, Index, create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from datetime import datetime
import os

from .config import DATABASE_URL


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # in-memory sqlite must share one connection across threads
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    db_path = url.replace("sqlite:///", "", 1)
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


class Barangay(Base):
    __tablename__ = "barangays"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    center_lat = Column(Float, nullable=False)
    center_lng = Column(Float, nullable=False)
    zoom_level = Column(Integer, nullable=False, default=15)
    status = Column(String, nullable=False, default="active")
    geojson_file = Column(String)
    population = Column(Integer)
    area_km2 = Column(Float)
    # static classification: low / moderate / high / very_high
    flood_risk_level = Column(String, nullable=False, default="moderate", index=True)
    watershed_zone = Column(String)


class Sensor(Base):
    __tablename__ = "sensors"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    barangay_id = Column(String, nullable=False, index=True)
    # water_level / rainfall / weather_station / flow_meter / multi_parameter
    sensor_type = Column(String, nullable=False, default="multi_parameter", index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float)
    # active / inactive / maintenance / error
    status = Column(String, nullable=False, default="active", index=True)
    installation_date = Column(DateTime)
    last_maintenance = Column(DateTime)
    calibration_date = Column(DateTime)
    battery_level = Column(Float)
    transmission_interval = Column(Integer, nullable=False, default=300)
    watershed_zone = Column(String)
    river_section = Column(String)


class SensorReading(Base):
    __tablename__ = "sensor_readings"
    id = Column(Integer, primary_key=True, index=True)
    sensor_id = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    water_level = Column(Float)
    flow_velocity = Column(Float)
    flow_rate = Column(Float)
    water_temperature = Column(Float)
    turbidity = Column(Float)
    ph_level = Column(Float)
    dissolved_oxygen = Column(Float)
    rainfall = Column(Float)
    air_temperature = Column(Float)
    humidity = Column(Float)
    wind_speed = Column(Float)
    wind_direction = Column(String)
    atmospheric_pressure = Column(Float)
    visibility = Column(Float)
    uv_index = Column(Float)
    battery_voltage = Column(Float)
    signal_strength = Column(Float)
    # excellent / good / fair / poor
    data_quality = Column(String, nullable=False, default="good")
    is_validated = Column(Boolean, nullable=False, default=False, index=True)
    validation_notes = Column(Text)

    __table_args__ = (
        Index("ix_sensor_readings_sensor_time", "sensor_id", "timestamp"),
    )


class EnvironmentalReading(Base):
    __tablename__ = "environmental_data"
    id = Column(Integer, primary_key=True, index=True)
    barangay_id = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    rainfall_mm = Column(Float)
    water_level_m = Column(Float)
    temperature_c = Column(Float)
    humidity_percent = Column(Float)
    atmospheric_pressure = Column(Float)
    soil_moisture = Column(Float)
    wind_speed_mps = Column(Float)
    wind_direction = Column(String)
    quality_flag = Column(String, default="good")


class FloodCharacteristics(Base):
    __tablename__ = "flood_characteristics"
    id = Column(Integer, primary_key=True, index=True)
    location = Column(String, nullable=False, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    maximum_depth = Column(Float, nullable=False)
    maximum_depth_uncertainty = Column(Float, nullable=False, default=0.0)
    peak_velocity = Column(Float, nullable=False)
    peak_velocity_uncertainty = Column(Float, nullable=False, default=0.0)
    arrival_time = Column(Float, nullable=False)
    arrival_time_uncertainty = Column(Float, nullable=False, default=0.0)
    inundation_area = Column(Float, nullable=False)
    inundation_area_uncertainty = Column(Float, nullable=False, default=0.0)
    # static level: low / moderate / high / extreme
    flood_risk_level = Column(String, nullable=False, default="low", index=True)
    model_version = Column(String, nullable=False, default="v1.0")
    last_updated = Column(DateTime, nullable=False, default=datetime.utcnow)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    expert_analysis = Column(Text)
    recommended_actions = Column(Text)


class FloodPrediction(Base):
    __tablename__ = "flood_predictions"
    id = Column(Integer, primary_key=True, index=True)
    barangay_id = Column(String, nullable=False, index=True)
    prediction_timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    forecast_start = Column(DateTime, nullable=False)
    forecast_end = Column(DateTime, nullable=False)
    flood_probability = Column(Float, nullable=False)
    # forecast level: low / moderate / high / severe / extreme
    risk_level = Column(String, nullable=False, index=True)
    predicted_water_level = Column(Float)
    predicted_rainfall = Column(Float)
    affected_area_km2 = Column(Float)
    population_at_risk = Column(Integer)
    confidence_score = Column(Float, nullable=False, default=0.5)
    model_version = Column(String, nullable=False, default="1.0.0", index=True)
    input_features = Column(JSON)
    prediction_notes = Column(Text)
    is_alert_sent = Column(Boolean, nullable=False, default=False)
    alert_level = Column(String)
    validation_status = Column(String, nullable=False, default="pending", index=True)
    actual_outcome = Column(JSON)

    __table_args__ = (
        Index("ix_flood_predictions_forecast_window", "forecast_start", "forecast_end"),
    )


def init_db():
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
