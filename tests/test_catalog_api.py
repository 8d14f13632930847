from database import Service

ROOM_TYPE = {
    "name": "Deluxe",
    "description": "King bed, sea view",
    "base_price": 180.0,
    "max_occupancy": 3,
    "amenities": "WiFi, Minibar",
}


def test_room_types_are_public(client, room_type, room):
    listing = client.get("/api/v1/room-types")
    assert listing.status_code == 200
    assert [rt["name"] for rt in listing.json()] == ["Standard"]

    detail = client.get(f"/api/v1/room-types/{room_type.id}").json()
    assert [r["room_number"] for r in detail["rooms"]] == ["101"]


def test_admin_creates_room_type_with_unique_name(client, admin_headers):
    created = client.post("/api/v1/room-types", headers=admin_headers, json=ROOM_TYPE)
    assert created.status_code == 201
    assert created.json()["room_type"]["base_price"] == 180.0

    duplicate = client.post("/api/v1/room-types", headers=admin_headers, json=ROOM_TYPE)
    assert duplicate.status_code == 422
    assert "name" in duplicate.json()["errors"]


def test_customer_cannot_create_room_type(client, customer_headers):
    assert client.post("/api/v1/room-types", headers=customer_headers, json=ROOM_TYPE).status_code == 403
    assert client.post("/api/v1/room-types", json=ROOM_TYPE).status_code == 401


def test_room_type_in_use_cannot_be_deleted(client, admin_headers, room_type, room):
    response = client.delete(f"/api/v1/room-types/{room_type.id}", headers=admin_headers)

    assert response.status_code == 400
    assert "rooms" in response.json()["message"]


def test_rooms_require_authentication(client, room, customer_headers):
    assert client.get("/api/v1/rooms").status_code == 401

    rooms = client.get("/api/v1/rooms", headers=customer_headers).json()
    assert rooms[0]["room_number"] == "101"
    assert rooms[0]["room_type"]["name"] == "Standard"


def test_room_filters(client, admin_headers, room, second_room):
    client.put(f"/api/v1/rooms/{second_room.id}", headers=admin_headers, json={"status": "maintenance"})

    available = client.get("/api/v1/rooms", headers=admin_headers, params={"status": "available"}).json()
    assert [r["room_number"] for r in available] == ["101"]


def test_room_number_is_unique_and_type_must_exist(client, admin_headers, room_type, room):
    duplicate = client.post("/api/v1/rooms", headers=admin_headers,
                            json={"room_number": "101", "room_type_id": room_type.id, "floor": 1})
    assert duplicate.status_code == 422
    assert "room_number" in duplicate.json()["errors"]

    unknown_type = client.post("/api/v1/rooms", headers=admin_headers,
                               json={"room_number": "201", "room_type_id": 999, "floor": 2})
    assert unknown_type.status_code == 404

    created = client.post("/api/v1/rooms", headers=admin_headers,
                          json={"room_number": "201", "room_type_id": room_type.id, "floor": 2})
    assert created.status_code == 201
    assert created.json()["room"]["status"] == "available"


def test_room_floor_must_be_positive(client, admin_headers, room_type):
    response = client.post("/api/v1/rooms", headers=admin_headers,
                           json={"room_number": "001", "room_type_id": room_type.id, "floor": 0})
    assert response.status_code == 422
    assert "floor" in response.json()["errors"]


def test_public_sees_only_active_services(client, db, admin_headers, service):
    db.add(Service(name="Old spa", description="Closed", price=60.0, category="spa", is_active=False))
    db.commit()
    hidden_id = db.query(Service).filter(Service.name == "Old spa").one().id

    public = client.get("/api/v1/services").json()
    assert [s["name"] for s in public] == ["Breakfast"]

    everything = client.get("/api/v1/services", headers=admin_headers).json()
    assert {s["name"] for s in everything} == {"Breakfast", "Old spa"}

    assert client.get(f"/api/v1/services/{hidden_id}").status_code == 404
    assert client.get(f"/api/v1/services/{hidden_id}", headers=admin_headers).status_code == 200


def test_service_category_filter(client, service):
    assert client.get("/api/v1/services", params={"category": "spa"}).json() == []
    assert len(client.get("/api/v1/services", params={"category": "food"}).json()) == 1


def test_admin_manages_services(client, admin_headers, customer_headers):
    payload = {"name": "Airport shuttle", "description": "One way", "price": 30.0, "category": "transport"}
    assert client.post("/api/v1/services", headers=customer_headers, json=payload).status_code == 403

    created = client.post("/api/v1/services", headers=admin_headers, json=payload)
    assert created.status_code == 201
    service_id = created.json()["service"]["id"]

    updated = client.put(f"/api/v1/services/{service_id}", headers=admin_headers, json={"is_active": False})
    assert updated.json()["service"]["is_active"] is False

    assert client.delete(f"/api/v1/services/{service_id}", headers=admin_headers).status_code == 200


def test_invalid_service_category_is_rejected(client, admin_headers):
    payload = {"name": "Gym", "description": "24h", "price": 0, "category": "fitness"}
    response = client.post("/api/v1/services", headers=admin_headers, json=payload)

    assert response.status_code == 422
    assert "category" in response.json()["errors"]
