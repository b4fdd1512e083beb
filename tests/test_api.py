from datetime import datetime, timedelta

from conftest import add_barangay, add_hourly_readings, add_prediction


def _recent(hours_ago=1):
    return datetime.utcnow() - timedelta(hours=hours_ago)


CHARACTERISTICS = {
    "location": "Sabang",
    "latitude": 13.62,
    "longitude": 123.18,
    "maximum_depth": 2.4,
    "maximum_depth_uncertainty": 0.3,
    "peak_velocity": 2.5,
    "peak_velocity_uncertainty": 0.2,
    "arrival_time": 4.0,
    "arrival_time_uncertainty": 1.0,
    "inundation_area": 6.0,
    "inundation_area_uncertainty": 0.5,
    "flood_risk_level": "high",
    "expert_analysis": "Riverside lowland",
    "recommended_actions": "Evacuate early",
}


def test_root(client):
    assert client.get("/").json() == {"status": "floodwatch backend running"}


# ── Predictions ──────────────────────────────────────────────────────────

def test_generate_then_reuse(client, db):
    add_barangay(db, risk="high")
    add_hourly_readings(db, "BRGY-001", _recent(0), 12, rainfall_mm=1.0, water_level_m=2.2)

    first = client.post("/predictions/generate", json={"barangay_id": "BRGY-001", "forecast_hours": 12})
    assert first.status_code == 201
    body = first.json()
    assert body["generated"] is True
    assert body["prediction"]["flood_probability"] == 0.65
    assert body["prediction"]["risk_level"] == "severe"
    assert body["prediction"]["alert_level"] == "warning"
    assert body["prediction"]["validation_status"] == "pending"

    second = client.post("/predictions/generate", json={"barangay_id": "BRGY-001"})
    assert second.status_code == 200
    assert second.json()["generated"] is False
    assert second.json()["prediction"]["id"] == body["prediction"]["id"]

    forced = client.post("/predictions/generate", json={"barangay_id": "BRGY-001", "force_refresh": True})
    assert forced.status_code == 201
    assert forced.json()["prediction"]["id"] != body["prediction"]["id"]


def test_generate_unknown_barangay(client):
    resp = client.post("/predictions/generate", json={"barangay_id": "NOPE"})
    assert resp.status_code == 404


def test_generate_rejects_non_positive_horizon(client, db):
    add_barangay(db)
    resp = client.post("/predictions/generate", json={"barangay_id": "BRGY-001", "forecast_hours": 0})
    assert resp.status_code == 422


def test_listing_filters_and_summary(client, db):
    add_barangay(db, "BRGY-001")
    add_barangay(db, "BRGY-002", name="Sabang")
    add_prediction(db, prediction_timestamp=_recent(1), risk_level="severe", confidence_score=0.7)
    add_prediction(db, barangay_id="BRGY-002", prediction_timestamp=_recent(2), risk_level="low", confidence_score=0.9)
    add_prediction(db, prediction_timestamp=_recent(48), risk_level="extreme")  # forecast over

    body = client.get("/predictions").json()
    assert body["total"] == 2
    assert body["summary"]["high_risk_count"] == 1
    assert body["summary"]["average_confidence"] == 0.8
    assert body["summary"]["active_forecasts"] == 2
    assert body["pagination"] == {"limit": 20, "offset": 0, "has_more": False}

    assert client.get("/predictions", params={"forecast_active": False}).json()["total"] == 3
    only_b = client.get("/predictions", params={"barangay_id": "BRGY-002"}).json()
    assert [p["barangay_id"] for p in only_b["predictions"]] == ["BRGY-002"]
    paged = client.get("/predictions", params={"limit": 1}).json()
    assert paged["pagination"]["has_more"] is True


def test_current_predictions(client, db):
    add_barangay(db, "BRGY-001")
    add_barangay(db, "BRGY-002", name="Sabang")
    add_prediction(db, prediction_timestamp=_recent(1), risk_level="high")
    add_prediction(db, prediction_timestamp=_recent(3), risk_level="low")
    add_prediction(db, barangay_id="BRGY-002", prediction_timestamp=_recent(1), risk_level="low")

    body = client.get("/predictions/current").json()
    assert body["total_barangays"] == 2
    assert body["risk_summary"]["high"] == 1
    assert body["risk_summary"]["low"] == 1
    assert body["highest_risk"] == "low"
    assert [p["barangay_id"] for p in body["current_predictions"]] == ["BRGY-001"]


def test_barangay_detail(client, db):
    add_barangay(db, risk="moderate", population=3200)
    add_prediction(db, prediction_timestamp=_recent(1))
    add_hourly_readings(db, "BRGY-001", _recent(0), 3)

    body = client.get("/predictions/barangay/BRGY-001", params={"include_environmental_data": True}).json()
    assert body["barangay"]["population"] == 3200
    assert body["current_prediction"] is not None
    assert body["metadata"]["total_historical_predictions"] == 1
    assert len(body["environmental_data"]) == 3

    assert client.get("/predictions/barangay/NOPE").status_code == 404


def test_accuracy_endpoint(client, db):
    add_barangay(db)
    for status in ["validated"] * 3 + ["false_positive"]:
        add_prediction(db, validation_status=status)
    add_prediction(db)  # pending

    body = client.get("/predictions/accuracy").json()
    assert body["model_version"] == "1.0.0-demo"
    assert body["evaluation_period"]["days"] == 30
    assert body["metrics"]["total_predictions"] == 4
    assert body["metrics"]["accuracy"] == 0.75
    assert body["metrics"]["recall"] == 1.0
    assert body["barangay_filter"] == "all"


def test_validate_endpoint(client, db):
    add_barangay(db)
    pid = add_prediction(db).id

    resp = client.put(f"/predictions/{pid}/validate", json={
        "validation_status": "validated",
        "actual_outcome": {"max_depth_m": 0.8},
        "notes": "Confirmed by field team",
    })
    assert resp.status_code == 200
    prediction = resp.json()["prediction"]
    assert prediction["validation_status"] == "validated"
    assert prediction["actual_outcome"] == {"max_depth_m": 0.8}
    assert prediction["prediction_notes"] == "Confirmed by field team"


def test_validate_rejects_unknown_status(client, db):
    add_barangay(db)
    pid = add_prediction(db).id

    resp = client.put(f"/predictions/{pid}/validate", json={"validation_status": "maybe"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "error": "Invalid validation status",
        "allowed_values": ["validated", "false_positive", "false_negative"],
    }


def test_validate_missing_prediction(client):
    resp = client.put("/predictions/999/validate", json={"validation_status": "validated"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Prediction not found"


# ── Environmental data ───────────────────────────────────────────────────

def test_environmental_statistics(client, db):
    add_barangay(db)
    add_hourly_readings(db, "BRGY-001", _recent(0), 6, rainfall_mm=2.0, water_level_m=1.5)
    add_hourly_readings(db, "BRGY-001", _recent(30), 2, rainfall_mm=50.0, water_level_m=4.0)

    body = client.get("/environmental-data/BRGY-001/statistics", params={"parameters": "rainfall_mm,water_level_m"}).json()
    assert body["period"] == "24h"
    assert body["total_readings"] == 6
    assert body["statistics"]["rainfall_mm"]["count"] == 6
    assert body["statistics"]["rainfall_mm"]["sum"] == 12.0
    assert body["statistics"]["water_level_m"]["max"] == 1.5

    week = client.get("/environmental-data/BRGY-001/statistics", params={"period": "7d"}).json()
    assert week["total_readings"] == 8
    assert set(week["statistics"]) == {"rainfall_mm", "water_level_m", "temperature_c", "humidity_percent"}


def test_environmental_statistics_unknown_barangay(client):
    assert client.get("/environmental-data/NOPE/statistics").status_code == 404


def test_environmental_data_listing(client, db):
    add_barangay(db)
    add_hourly_readings(db, "BRGY-001", _recent(0), 4)
    rows = client.get("/environmental-data/BRGY-001").json()
    assert len(rows) == 4
    assert rows[0]["timestamp"] < rows[-1]["timestamp"]


# ── Flood characteristics ────────────────────────────────────────────────

def test_characteristics_crud(client):
    created = client.post("/flood-characteristics", json=CHARACTERISTICS)
    assert created.status_code == 201
    record_id = created.json()["id"]

    assert client.get("/flood-characteristics/location/Sabang").json()["id"] == record_id
    assert [r["id"] for r in client.get("/flood-characteristics/high-risk").json()] == [record_id]
    assert len(client.get("/flood-characteristics/risk/high").json()) == 1

    updated = client.put(f"/flood-characteristics/{record_id}", json={"maximum_depth": 0.5, "flood_risk_level": "low"})
    assert updated.status_code == 200
    assert updated.json()["maximum_depth"] == 0.5
    assert updated.json()["peak_velocity"] == 2.5
    assert client.get("/flood-characteristics/high-risk").json() == []

    assert client.delete(f"/flood-characteristics/{record_id}").status_code == 200
    assert client.get(f"/flood-characteristics/{record_id}/assessment").status_code == 404
    assert client.get("/flood-characteristics/location/Sabang").status_code == 404


def test_characteristics_rejects_negative_depth(client):
    resp = client.post("/flood-characteristics", json={**CHARACTERISTICS, "maximum_depth": -1.0})
    assert resp.status_code == 422


def test_characteristics_rejects_unknown_level(client):
    resp = client.get("/flood-characteristics/risk/severe")
    assert resp.status_code == 422


def test_assessment_and_summary(client):
    record_id = client.post("/flood-characteristics", json=CHARACTERISTICS).json()["id"]

    assessment = client.get(f"/flood-characteristics/{record_id}/assessment").json()
    assert assessment == {
        "score": 6,
        "factors": [
            "Very high water depth (>2m)",
            "High water velocity (2-3m/s)",
            "Moderate inundation area (5-10km²)",
        ],
        "level": "extreme",
    }

    summary = client.get("/flood-characteristics/summary/Sabang").json()
    assert summary["hasData"] is True
    assert summary["maximumDepth"] == {"value": 2.4, "uncertainty": 0.3, "unit": "m"}
    assert summary["riskAssessment"]["level"] == "extreme"

    assert client.get("/flood-characteristics/summary/Nowhere").json()["hasData"] is False


# ── Health ───────────────────────────────────────────────────────────────

def test_health_degraded_without_predictions(client):
    body = client.get("/health").json()
    assert body["status"] == "🟡 Degraded"
    assert body["status_details"]["database_ok"] is True
    assert body["last_generated"] is None


def test_health_healthy_after_generation(client, db):
    add_barangay(db)
    client.post("/predictions/generate", json={"barangay_id": "BRGY-001"})

    body = client.get("/health").json()
    assert body["status"] == "🟢 Healthy"
    assert body["last_generated"] is not None


def test_validate_without_status_lists_allowed_values(client, db):
    add_barangay(db)
    pid = add_prediction(db).id

    for body in ({"notes": "checked on site"}, {"validation_status": None}):
        resp = client.put(f"/predictions/{pid}/validate", json=body)
        assert resp.status_code == 400
        assert resp.json()["detail"]["allowed_values"] == ["validated", "false_positive", "false_negative"]


def test_environmental_statistics_rejects_non_numeric_fields(client, db):
    add_barangay(db)
    for parameters in ("timestamp", "rainfall_mm,wind_direction", "barangay_id"):
        resp = client.get("/environmental-data/BRGY-001/statistics", params={"parameters": parameters})
        assert resp.status_code == 400
        assert "rainfall_mm" in resp.json()["detail"]["allowed_values"]

    ok = client.get("/environmental-data/BRGY-001/statistics", params={"parameters": "soil_moisture"})
    assert ok.status_code == 200
    assert list(ok.json()["statistics"]) == ["soil_moisture"]


def test_characteristics_update_can_clear_text_fields(client):
    record_id = client.post("/flood-characteristics", json=CHARACTERISTICS).json()["id"]

    resp = client.put(f"/flood-characteristics/{record_id}", json={"expert_analysis": None, "maximum_depth": None})
    assert resp.status_code == 200
    body = resp.json()
    assert body["expert_analysis"] is None
    assert body["recommended_actions"] == "Evacuate early"
    assert body["maximum_depth"] == 2.4
