# backend/tests/test_energy.py
from __future__ import annotations

from datetime import date, datetime

from app.services.energy import record_reading, usage_between


def test_no_readings_means_no_usage(db, rooms):
    assert usage_between(db, room_id=rooms[0].id, start=date(2026, 10, 1), end=date(2026, 10, 3)) is None


def test_daily_usage_from_cumulative_readings(db, rooms):
    rid = rooms[0].id
    record_reading(db, room_id=rid, kwh=100.0, recorded_at=datetime(2026, 9, 30, 23, 0))
    record_reading(db, room_id=rid, kwh=104.0, recorded_at=datetime(2026, 10, 1, 8, 0))
    record_reading(db, room_id=rid, kwh=110.0, recorded_at=datetime(2026, 10, 1, 22, 0))
    record_reading(db, room_id=rid, kwh=115.5, recorded_at=datetime(2026, 10, 3, 21, 0))
    db.commit()

    usage = usage_between(db, room_id=rid, start=date(2026, 10, 1), end=date(2026, 10, 3))

    assert usage.labels == ["01/10", "02/10", "03/10"]
    assert usage.daily_kwh == [10.0, 0.0, 5.5]
    assert usage.total_kwh == 15.5


def test_usage_endpoint(client, host_headers, rooms):
    rid = rooms[0].id
    url = f"/api/energy/rooms/{rid}/usage"

    r = client.get(url, params={"start": "2026-10-01", "end": "2026-10-02"}, headers=host_headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "Phòng chưa có dữ liệu điện năng"}

    for kwh, at in ((50, "2026-10-01T07:00:00"), (58, "2026-10-02T07:00:00")):
        r = client.post(f"/api/energy/rooms/{rid}/readings", json={"kwh": kwh, "recorded_at": at}, headers=host_headers)
        assert r.status_code == 200

    r = client.get(url, params={"start": "2026-10-01", "end": "2026-10-02"}, headers=host_headers)
    assert r.json()["daily_kwh"] == [0.0, 8.0]

    r = client.get(url, params={"start": "2026-10-02", "end": "2026-10-01"}, headers=host_headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "Khoảng thời gian không hợp lệ"}
