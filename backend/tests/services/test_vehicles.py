"""Vehicle routes — catalog reads, garage CRUD, default selection, session link.

Invariants:
    - Garage vehicles are private to their owner (403 for anyone else)
    - Exactly one default once a user owns a vehicle
    - A session started without a vehicle records the caller's default
"""

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


async def add_catalog_vehicle(client, brand="Nissan", model="Leaf") -> dict:
    res = await client.post(
        "/api/v1/admin/vehicles",
        json={"brand": brand, "model": model, "charger_type": "AC",
              "battery_capacity_kwh": 40, "max_charging_power_kw": 50},
        headers=ADMIN,
    )
    assert res.status_code == 201, res.text
    return res.json()


async def add_user_vehicle(client, user_id, **body) -> dict:
    res = await client.post(
        "/api/v1/user-vehicles", json=body, headers=as_user(user_id),
    )
    assert res.status_code == 201, res.text
    return res.json()


async def test_catalog_is_public(client):
    leaf = await add_catalog_vehicle(client)
    await add_catalog_vehicle(client, brand="BYD", model="Atto 3")

    listed = (await client.get("/api/v1/vehicles")).json()
    assert [v["brand"] for v in listed] == ["BYD", "Nissan"]

    res = await client.get(f"/api/v1/vehicles/{leaf['id']}")
    assert res.status_code == 200
    assert res.json()["model"] == "Leaf"


async def test_unknown_catalog_vehicle_404(client):
    res = await client.get("/api/v1/vehicles/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404


async def test_first_vehicle_becomes_default(client):
    leaf = await add_catalog_vehicle(client)
    first = await add_user_vehicle(client, "alice", vehicle_id=leaf["id"])
    second = await add_user_vehicle(client, "alice", nickname="Work van")

    assert first["is_default"] is True
    assert second["is_default"] is False

    garage = (await client.get(
        "/api/v1/user-vehicles", headers=as_user("alice"),
    )).json()
    assert [v["id"] for v in garage] == [first["id"], second["id"]]


async def test_vehicle_needs_catalog_entry_or_nickname(client):
    res = await client.post(
        "/api/v1/user-vehicles", json={"color": "red"}, headers=as_user("alice"),
    )
    assert res.status_code == 400


async def test_unknown_catalog_reference_rejected(client):
    res = await client.post(
        "/api/v1/user-vehicles",
        json={"vehicle_id": "00000000-0000-0000-0000-000000000000"},
        headers=as_user("alice"),
    )
    assert res.status_code == 400


async def test_set_default_moves_the_flag(client):
    first = await add_user_vehicle(client, "alice", nickname="Old")
    second = await add_user_vehicle(client, "alice", nickname="New")

    res = await client.post(
        f"/api/v1/user-vehicles/{second['id']}/default", headers=as_user("alice"),
    )
    assert res.status_code == 200
    assert res.json()["is_default"] is True

    garage = (await client.get(
        "/api/v1/user-vehicles", headers=as_user("alice"),
    )).json()
    defaults = [v["id"] for v in garage if v["is_default"]]
    assert defaults == [second["id"]]
    assert first["id"] in {v["id"] for v in garage}


async def test_update_and_delete_own_vehicle(client):
    vehicle = await add_user_vehicle(client, "alice", nickname="Blue car")
    url = f"/api/v1/user-vehicles/{vehicle['id']}"

    res = await client.patch(
        url, json={"license_plate": "AB-12-CD"}, headers=as_user("alice"),
    )
    assert res.status_code == 200
    assert res.json()["license_plate"] == "AB-12-CD"
    assert res.json()["nickname"] == "Blue car"

    assert (await client.delete(url, headers=as_user("alice"))).status_code == 204
    assert (await client.get(url, headers=as_user("alice"))).status_code == 404


async def test_other_users_vehicle_is_forbidden(client):
    vehicle = await add_user_vehicle(client, "alice", nickname="Mine")
    url = f"/api/v1/user-vehicles/{vehicle['id']}"

    assert (await client.get(url, headers=as_user("bob"))).status_code == 403
    res = await client.patch(url, json={"color": "green"}, headers=as_user("bob"))
    assert res.status_code == 403
    assert (await client.delete(url, headers=as_user("bob"))).status_code == 403
    res = await client.post(f"{url}/default", headers=as_user("bob"))
    assert res.status_code == 403


async def test_garage_requires_identity(client):
    assert (await client.get("/api/v1/user-vehicles")).status_code == 401


async def test_session_records_default_vehicle(client, make_station):
    station = await make_station()
    vehicle = await add_user_vehicle(client, "alice", nickname="Daily")

    res = await client.post(
        "/api/v1/charging-sessions/start",
        json={"station_id": station["id"]}, headers=as_user("alice"),
    )
    assert res.status_code == 201
    assert res.json()["user_vehicle_id"] == vehicle["id"]


async def test_custom_vehicle_name_skips_default(client, make_station):
    station = await make_station()
    await add_user_vehicle(client, "alice", nickname="Daily")

    res = await client.post(
        "/api/v1/charging-sessions/start",
        json={"station_id": station["id"], "custom_vehicle_name": "Rental"},
        headers=as_user("alice"),
    )
    assert res.status_code == 201
    assert res.json()["user_vehicle_id"] is None
    assert res.json()["custom_vehicle_name"] == "Rental"


async def test_session_with_someone_elses_vehicle_forbidden(client, make_station):
    station = await make_station()
    vehicle = await add_user_vehicle(client, "alice", nickname="Hers")

    res = await client.post(
        "/api/v1/charging-sessions/start",
        json={"station_id": station["id"], "user_vehicle_id": vehicle["id"]},
        headers=as_user("bob"),
    )
    assert res.status_code == 403
    view = (await client.get(f"/api/v1/stations/{station['id']}")).json()
    assert view["available_chargers"] == 2
