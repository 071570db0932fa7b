"""Session Routes — operator entry/exit and owner payment over HTTP.

Invariants:
    - Entry/exit/mark-exited are operator-only; pay and pay-all owner-only
    - Money fields serialize as exact decimal strings
    - Domain errors keep their status codes: 409 occupied/settled, 404 unknown
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

OWNER_ID = "ana@example.com"


def _slot(plate: str, location: str) -> dict:
    return {"license_plate": plate, "location": location}


@pytest.fixture
async def ana_vehicle(registry):
    return await registry.register_vehicle(OWNER_ID, "ABC123", "Mazda", "Red")


async def test_entry_requires_operator(client, owner_headers):
    res = await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-23"), headers=owner_headers,
    )
    assert res.status_code == 403


async def test_entry_without_token(client):
    res = await client.post("/api/v1/sessions/entry", json=_slot("ABC123", "A-23"))
    assert res.status_code == 401


async def test_entry_creates_session(client, operator_headers, ana_vehicle):
    res = await client.post(
        "/api/v1/sessions/entry", json=_slot("abc123", "a-23"), headers=operator_headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "active"
    assert body["location"] == "A-23"
    assert body["owner_id"] == OWNER_ID
    assert body["vehicle_id"] == str(ana_vehicle.id)
    assert body["rate_per_hour"] == "6.00"
    assert body["cost"] == "0.00"
    assert body["duration"] == "0h 0m"


async def test_entry_occupied_slot_is_409(client, operator_headers):
    await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    res = await client.post(
        "/api/v1/sessions/entry", json=_slot("XYZ789", "A-23"), headers=operator_headers,
    )
    assert res.status_code == 409
    error = res.json()["error"]
    assert error["code"] == "SLOT_OCCUPIED"
    assert error["context"]["location"] == "A-23"


async def test_entry_blank_location_is_400(client, operator_headers):
    res = await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "  "), headers=operator_headers,
    )
    assert res.status_code == 400


async def test_exit_charges_elapsed_time(client, operator_headers, clock):
    await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    clock.advance(hours=5, minutes=42)
    res = await client.post(
        "/api/v1/sessions/exit", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "completed"
    assert body["amount_charged"] == "34.20"
    assert body["cost"] == "34.20"
    assert body["duration"] == "5h 42m"
    assert body["duration_minutes"] == 342


async def test_exit_unknown_is_404(client, operator_headers):
    res = await client.post(
        "/api/v1/sessions/exit", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    assert res.status_code == 404


async def test_list_active_sessions(client, operator_headers, clock):
    for plate, slot in [("AAA1", "A-1"), ("BBB2", "A-2"), ("CCC3", "A-3")]:
        await client.post(
            "/api/v1/sessions/entry", json=_slot(plate, slot), headers=operator_headers,
        )
        clock.advance(minutes=1)
    await client.post(
        "/api/v1/sessions/exit", json=_slot("BBB2", "A-2"), headers=operator_headers,
    )

    res = await client.get("/api/v1/sessions", headers=operator_headers)
    assert [s["license_plate"] for s in res.json()] == ["AAA1", "CCC3"]

    res = await client.get(
        "/api/v1/sessions", params={"active_only": "false"}, headers=operator_headers,
    )
    assert [s["license_plate"] for s in res.json()] == ["AAA1", "BBB2", "CCC3"]


async def test_my_sessions_only_lists_caller(
    client, operator_headers, owner_headers, other_owner_headers, ana_vehicle,
):
    await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-1"), headers=operator_headers,
    )
    mine = await client.get("/api/v1/sessions/mine", headers=owner_headers)
    theirs = await client.get("/api/v1/sessions/mine", headers=other_owner_headers)
    assert len(mine.json()) == 1
    assert theirs.json() == []


async def test_pay_active_session(
    client, operator_headers, owner_headers, clock, ana_vehicle,
):
    entry = await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-1"), headers=operator_headers,
    )
    clock.advance(minutes=90)
    res = await client.post(
        f"/api/v1/sessions/{entry.json()['id']}/pay", headers=owner_headers,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "completed"
    assert res.json()["amount_charged"] == "9.00"

    again = await client.post(
        f"/api/v1/sessions/{entry.json()['id']}/pay", headers=owner_headers,
    )
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_SETTLED"


async def test_pay_other_owners_session_is_404(
    client, operator_headers, other_owner_headers, ana_vehicle,
):
    entry = await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-1"), headers=operator_headers,
    )
    res = await client.post(
        f"/api/v1/sessions/{entry.json()['id']}/pay", headers=other_owner_headers,
    )
    assert res.status_code == 404


async def test_pay_unknown_session_is_404(client, owner_headers):
    res = await client.post(f"/api/v1/sessions/{uuid4()}/pay", headers=owner_headers)
    assert res.status_code == 404


async def test_pay_malformed_id_is_400(client, owner_headers):
    res = await client.post("/api/v1/sessions/not-a-uuid/pay", headers=owner_headers)
    assert res.status_code == 400


async def test_pay_all(client, operator_headers, owner_headers, clock, ana_vehicle):
    for slot in ("A-1", "A-2", "A-3"):
        await client.post(
            "/api/v1/sessions/entry", json=_slot("ABC123", slot), headers=operator_headers,
        )
    clock.advance(minutes=10)

    res = await client.post("/api/v1/sessions/pay-all", headers=owner_headers)
    assert res.status_code == 200
    body = res.json()
    assert len(body["settled"]) == 3
    assert body["failed"] == []
    assert body["total_settled"] == "3.00"

    empty = await client.post("/api/v1/sessions/pay-all", headers=owner_headers)
    assert empty.json()["settled"] == []


async def test_mark_exited(client, operator_headers, clock):
    entry = await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-1"), headers=operator_headers,
    )
    clock.advance(hours=1)
    res = await client.post(
        f"/api/v1/sessions/{entry.json()['id']}/mark-exited", headers=operator_headers,
    )
    assert res.status_code == 200
    assert res.json()["amount_charged"] == "6.00"

    again = await client.post(
        f"/api/v1/sessions/{entry.json()['id']}/mark-exited", headers=operator_headers,
    )
    assert again.status_code == 409


async def test_list_returns_every_active_session_by_default(client, ledger, operator_headers):
    for i in range(105):
        await ledger.record_entry(f"CAR{i}", f"A-{i}")

    res = await client.get("/api/v1/sessions", headers=operator_headers)
    assert len(res.json()) == 105

    page = await client.get(
        "/api/v1/sessions", params={"limit": 10, "offset": 100},
        headers=operator_headers,
    )
    assert [s["license_plate"] for s in page.json()] == [f"CAR{i}" for i in range(100, 105)]


async def test_timestamps_keep_utc_offset_after_reload(client, operator_headers, clock):
    await client.post(
        "/api/v1/sessions/entry", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    clock.advance(minutes=30)
    exited = await client.post(
        "/api/v1/sessions/exit", json=_slot("ABC123", "A-23"), headers=operator_headers,
    )
    listed = await client.get(
        "/api/v1/sessions", params={"active_only": "false"}, headers=operator_headers,
    )

    for body in (exited.json(), listed.json()[0]):
        for key in ("entry_time", "exit_time", "settled_at"):
            parsed = datetime.fromisoformat(body[key].replace("Z", "+00:00"))
            assert parsed.utcoffset() == timedelta(0)
