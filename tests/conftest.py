"""Shared fixtures: in-memory SQLite, HTTP client and record factories."""

import os
import tempfile

# must be set before backend.app is imported
os.environ.setdefault("FLOODWATCH_DATABASE_URL", "sqlite://")
os.environ.setdefault("FLOODWATCH_LOG_DIR", tempfile.mkdtemp(prefix="floodwatch-logs-"))

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from backend.app.db_models import (
    Base,
    Barangay,
    EnvironmentalReading,
    FloodPrediction,
    Sensor,
    SensorReading,
    SessionLocal,
    engine,
)
from backend.app.healthcheck import health_state
from backend.app.main import app


class FixedRng:
    """Stands in for numpy's Generator: uniform() returns a fixed point of the range."""

    def __init__(self, fraction: float = 0.5):
        self.fraction = fraction

    def uniform(self, low, high):
        return low + (high - low) * self.fraction


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    health_state.update(last_generated=None, last_validated=None)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def rng():
    return FixedRng(0.5)


@pytest.fixture
def now():
    return datetime(2026, 10, 1, 12, 0, 0)


# ── Factories ────────────────────────────────────────────────────────────

def add_barangay(db, barangay_id="BRGY-001", name="Pacol", risk="low", area_km2=None, population=None):
    b = Barangay(
        id=barangay_id,
        name=name,
        center_lat=13.62,
        center_lng=123.19,
        flood_risk_level=risk,
        area_km2=area_km2,
        population=population,
    )
    db.add(b)
    db.commit()
    return b


def add_hourly_readings(db, barangay_id, end, hours, rainfall_mm=0.0, water_level_m=1.0):
    """One reading per hour, the newest at `end`."""
    for i in range(hours):
        db.add(EnvironmentalReading(
            barangay_id=barangay_id,
            timestamp=end - timedelta(hours=i),
            rainfall_mm=rainfall_mm,
            water_level_m=water_level_m,
            temperature_c=27.0,
            humidity_percent=80.0,
        ))
    db.commit()


def add_prediction(db, **overrides):
    ts = overrides.pop("prediction_timestamp", datetime.utcnow() - timedelta(days=1))
    values = dict(
        barangay_id="BRGY-001",
        prediction_timestamp=ts,
        forecast_start=ts,
        forecast_end=ts + timedelta(hours=24),
        flood_probability=0.3,
        risk_level="moderate",
        confidence_score=0.8,
        model_version="1.0.0-demo",
        validation_status="pending",
        is_alert_sent=False,
    )
    values.update(overrides)
    p = FloodPrediction(**values)
    db.add(p)
    db.commit()
    return p


def add_sensor(db, sensor_id="SN-001", barangay_id="BRGY-001", name="Pacol Bridge", **overrides):
    values = dict(
        id=sensor_id,
        name=name,
        barangay_id=barangay_id,
        sensor_type="multi_parameter",
        latitude=13.63,
        longitude=123.20,
        status="active",
    )
    values.update(overrides)
    s = Sensor(**values)
    db.add(s)
    db.commit()
    return s


def add_sensor_readings(db, sensor_id, end, hours, validated=True, **values):
    """One reading per hour, the newest at `end`."""
    for i in range(hours):
        db.add(SensorReading(
            sensor_id=sensor_id,
            timestamp=end - timedelta(hours=i),
            is_validated=validated,
            **values,
        ))
    db.commit()
