from datetime import datetime, timedelta

from conftest import add_barangay, add_hourly_readings, add_sensor, add_sensor_readings


def _recent(hours_ago=0):
    return datetime.utcnow() - timedelta(hours=hours_ago)


# ── Barangays ────────────────────────────────────────────────────────────

def test_list_barangays_with_filter(client, db):
    add_barangay(db, "BRGY-001", risk="low")
    add_barangay(db, "BRGY-002", name="Sabang", risk="very_high")

    assert [b["id"] for b in client.get("/barangays").json()] == ["BRGY-001", "BRGY-002"]
    only_high = client.get("/barangays", params={"flood_risk_level": "very_high"}).json()
    assert [b["name"] for b in only_high] == ["Sabang"]
    assert client.get("/barangays", params={"flood_risk_level": "severe"}).status_code == 422


def test_barangay_detail_lists_sensors_and_latest_reading(client, db):
    add_barangay(db, population=4100)
    add_sensor(db)
    add_hourly_readings(db, "BRGY-001", _recent(0), 3, water_level_m=1.7)

    body = client.get("/barangays/BRGY-001").json()
    assert body["barangay"]["population"] == 4100
    assert [s["id"] for s in body["sensors"]] == ["SN-001"]
    assert body["latest_environmental_data"]["water_level_m"] == 1.7


def test_barangay_detail_not_found(client):
    resp = client.get("/barangays/NOPE")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Barangay not found"


# ── Sensors ──────────────────────────────────────────────────────────────

def test_list_sensors_filters_and_pagination(client, db):
    add_barangay(db)
    add_sensor(db, "SN-001", name="Alpha gauge", sensor_type="water_level")
    add_sensor(db, "SN-002", name="Bravo station", sensor_type="weather_station")
    add_sensor(db, "SN-003", name="Charlie gauge", sensor_type="water_level", status="maintenance")

    body = client.get("/sensors").json()
    assert body["total"] == 3
    assert [s["name"] for s in body["sensors"]] == ["Alpha gauge", "Bravo station", "Charlie gauge"]
    assert body["sensors"][0]["barangay"]["id"] == "BRGY-001"

    gauges = client.get("/sensors", params={"sensor_type": "water_level", "status": "active"}).json()
    assert [s["id"] for s in gauges["sensors"]] == ["SN-001"]

    page = client.get("/sensors", params={"limit": 2}).json()
    assert page["pagination"] == {"limit": 2, "offset": 0, "has_more": True}


def test_list_sensors_with_recent_readings(client, db):
    add_barangay(db)
    add_sensor(db)
    add_sensor_readings(db, "SN-001", _recent(0), 15, water_level=1.2)

    sensor = client.get("/sensors", params={"include_readings": True}).json()["sensors"][0]
    assert len(sensor["readings"]) == 10


def test_latest_readings_only_for_active_sensors(client, db):
    add_barangay(db)
    add_sensor(db, "SN-001", name="Alpha")
    add_sensor(db, "SN-002", name="Bravo", status="inactive")
    add_sensor(db, "SN-003", name="Charlie")
    add_sensor_readings(db, "SN-001", _recent(0), 3, water_level=2.0)
    add_sensor_readings(db, "SN-001", _recent(5), 1, water_level=9.0)

    body = client.get("/sensors/readings/latest").json()
    assert body["total_sensors"] == 2
    alpha, charlie = body["sensors"]
    assert alpha["sensor_id"] == "SN-001"
    assert alpha["latest_reading"]["water_level"] == 2.0
    assert alpha["location"] == {"latitude": 13.63, "longitude": 123.20}
    assert charlie["latest_reading"] is None


def test_sensor_detail(client, db):
    add_barangay(db)
    add_sensor(db, river_section="Upper Bicol")
    add_sensor_readings(db, "SN-001", _recent(0), 30, rainfall=1.0)

    body = client.get("/sensors/SN-001", params={"include_readings_hours": 6}).json()
    assert body["river_section"] == "Upper Bicol"
    assert body["barangay"]["name"] == "Pacol"
    assert 6 <= len(body["readings"]) <= 7

    assert client.get("/sensors/NOPE").status_code == 404


def test_sensor_readings_time_filter_and_fields(client, db):
    add_barangay(db)
    add_sensor(db)
    end = datetime(2026, 9, 30, 12, 0, 0)
    add_sensor_readings(db, "SN-001", end, 10, water_level=1.5, rainfall=3.0)

    body = client.get("/sensors/SN-001/readings", params={
        "start_time": (end - timedelta(hours=3)).isoformat(),
        "end_time": end.isoformat(),
        "parameters": "water_level",
    }).json()
    assert body["total"] == 4
    assert body["parameters"] == ["water_level"]
    first = body["readings"][0]
    assert first["timestamp"].startswith("2026-09-30T12:00:00")
    assert set(first) == {"id", "timestamp", "data_quality", "is_validated", "water_level"}

    everything = client.get("/sensors/SN-001/readings", params={"limit": 5}).json()
    assert everything["parameters"] == "all"
    assert everything["pagination"]["has_more"] is True
    assert everything["readings"][0]["rainfall"] == 3.0


def test_sensor_readings_rejects_unknown_parameter(client, db):
    add_barangay(db)
    add_sensor(db)
    resp = client.get("/sensors/SN-001/readings", params={"parameters": "water_level,sensor_id"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["unknown"] == ["sensor_id"]


def test_sensor_statistics_use_validated_readings_only(client, db):
    add_barangay(db)
    add_sensor(db)
    add_sensor_readings(db, "SN-001", _recent(0), 4, water_level=2.0, rainfall=5.0)
    add_sensor_readings(db, "SN-001", _recent(0.5), 2, validated=False, water_level=8.0)

    body = client.get("/sensors/SN-001/statistics", params={"parameters": "water_level,rainfall"}).json()
    assert body["period"] == "24h"
    assert body["total_readings"] == 4
    assert body["statistics"]["water_level"]["max"] == 2.0
    assert body["statistics"]["rainfall"]["sum"] == 20.0
    assert body["statistics"]["rainfall"]["count"] == 4


def test_sensor_statistics_default_parameters_and_empty_window(client, db):
    add_barangay(db)
    add_sensor(db)

    body = client.get("/sensors/SN-001/statistics", params={"period": "1h"}).json()
    assert set(body["statistics"]) == {"water_level", "rainfall", "air_temperature"}
    assert body["statistics"]["water_level"]["count"] == 0
    assert body["statistics"]["water_level"]["average"] is None
    assert body["total_readings"] == 0


def test_sensor_statistics_errors(client, db):
    assert client.get("/sensors/NOPE/statistics").status_code == 404

    add_barangay(db)
    add_sensor(db)
    resp = client.get("/sensors/SN-001/statistics", params={"parameters": "timestamp"})
    assert resp.status_code == 400
    assert "water_level" in resp.json()["detail"]["allowed_values"]
