import pytest

from storefront.models.addresses import Address


def address_payload(**overrides):
    payload = {
        "user_id": 7,
        "full_name": "Asha Rao",
        "mobile": "9876543210",
        "address_line_1": "12 Brigade Road",
        "postal_code": "560001",
    }
    payload.update(overrides)
    return payload


def default_ids(db, user_id=7):
    db.expire_all()
    return [row.id for row in db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True))]


def test_create_requires_core_fields(client):
    response = client.post("/api/address", json={"user_id": 7, "full_name": "Asha"})

    assert response.status_code == 400
    assert response.json()["message"] == "user_id, full_name, mobile, address_line_1 and postal_code are required"


def test_create_rejects_unknown_address_type(client):
    response = client.post("/api/address", json=address_payload(address_type="castle"))

    assert response.status_code == 400
    assert response.json()["message"] == "address_type must be home, office or other"


def test_create_fills_location_ids_from_postal_code(client, location_chain):
    response = client.post("/api/address", json=address_payload())

    assert response.status_code == 201
    data = response.json()["data"]
    for field in ("country_id", "state_id", "city_id", "pincode_id"):
        assert data[field] == location_chain[field]


def test_create_keeps_ids_when_client_sends_them(client, location_chain):
    response = client.post("/api/address", json=address_payload(city_id=location_chain["city_id"]))

    data = response.json()["data"]
    assert data["city_id"] == location_chain["city_id"]
    assert data["pincode_id"] is None


def test_unknown_postal_code_leaves_ids_empty(client):
    response = client.post("/api/address", json=address_payload(postal_code="110001"))

    assert response.status_code == 201
    assert response.json()["data"]["pincode_id"] is None


def test_new_default_address_replaces_previous_default(client, db):
    first = client.post("/api/address", json=address_payload(is_default=True)).json()["data"]
    second = client.post("/api/address", json=address_payload(is_default="true")).json()["data"]
    other_user = client.post("/api/address", json=address_payload(user_id=8, is_default=True)).json()["data"]

    assert default_ids(db) == [second["id"]]
    assert default_ids(db, user_id=8) == [other_user["id"]]
    assert first["id"] != second["id"]


def test_update_to_default_moves_flag(client, db):
    first = client.post("/api/address", json=address_payload(is_default=True)).json()["data"]
    second = client.post("/api/address", json=address_payload()).json()["data"]

    response = client.patch("/api/address", json={"id": second["id"], "is_default": True})

    assert response.status_code == 200
    assert response.json()["data"]["is_default"] is True
    assert default_ids(db) == [second["id"]]
    assert first["id"] not in default_ids(db)


def test_moving_default_address_to_another_user_keeps_one_default(client, db):
    kept = client.post("/api/address", json=address_payload(user_id=2, is_default=True)).json()["data"]
    moved = client.post("/api/address", json=address_payload(user_id=1, is_default=True)).json()["data"]

    response = client.patch(f"/api/address?id={moved['id']}", json={"user_id": 2})

    assert response.status_code == 200
    assert response.json()["data"]["is_default"] is True
    assert default_ids(db, user_id=2) == [moved["id"]]
    assert default_ids(db, user_id=1) == []
    assert kept["id"] not in default_ids(db, user_id=2)


def test_moving_plain_address_leaves_new_owner_default(client, db):
    kept = client.post("/api/address", json=address_payload(user_id=2, is_default=True)).json()["data"]
    moved = client.post("/api/address", json=address_payload(user_id=1)).json()["data"]

    client.patch(f"/api/address?id={moved['id']}", json={"user_id": 2})

    assert default_ids(db, user_id=2) == [kept["id"]]


def test_setting_default_twice_is_idempotent(client, db):
    address = client.post("/api/address", json=address_payload(is_default=True)).json()["data"]

    client.put(f"/api/address?id={address['id']}", json={"is_default": True})
    client.put(f"/api/address?id={address['id']}", json={"is_default": True})

    assert default_ids(db) == [address["id"]]


def test_unsetting_default_leaves_user_without_default(client, db):
    address = client.post("/api/address", json=address_payload(is_default=True)).json()["data"]

    client.patch("/api/address", json={"id": address["id"], "is_default": False})

    assert default_ids(db) == []


def test_user_addresses_list_default_first(client):
    older = client.post("/api/address", json=address_payload(is_default=True)).json()["data"]
    client.post("/api/address", json=address_payload(full_name="Second"))

    response = client.get("/api/address", params={"user_id": 7})

    data = response.json()["data"]
    assert len(data) == 2
    assert data[0]["id"] == older["id"]


def test_update_rejects_empty_required_field(client):
    address = client.post("/api/address", json=address_payload()).json()["data"]

    response = client.patch("/api/address", json={"id": address["id"], "full_name": "  "})

    assert response.status_code == 400
    assert response.json()["message"] == "full_name cannot be empty"


def test_delete_address(client):
    address = client.post("/api/address", json=address_payload()).json()["data"]

    response = client.request("DELETE", "/api/address", json={"id": address["id"]})

    assert response.status_code == 200
    assert client.get("/api/address", params={"id": address["id"]}).status_code == 404


@pytest.mark.parametrize("postal_code", [None, "5600", "56000a", "5600011"])
def test_resolve_rejects_malformed_postal_code(client, postal_code):
    response = client.get("/api/address/resolve", params={"postal_code": postal_code})

    assert response.status_code == 400
    assert response.json()["message"] == "Postal code must be a 6 digit number"


def test_resolve_unknown_postal_code(client, location_chain):
    response = client.get("/api/address/resolve", params={"postal_code": "110001"})

    assert response.status_code == 404
    assert response.json()["message"] == "Pincode not found."


def test_resolve_ignores_inactive_pincode(client, location_chain):
    client.patch("/api/locations/pincode", json={"id": location_chain["pincode_id"], "status": "inactive"})

    response = client.get("/api/address/resolve", params={"postal_code": "560001"})

    assert response.status_code == 404


def test_resolve_walks_the_hierarchy(client, location_chain):
    response = client.get("/api/address/resolve", params={"postal_code": " 560001 "})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pincode_id"] == location_chain["pincode_id"]
    assert data["country_id"] == location_chain["country_id"]
    assert data["city"] == "Bengaluru"
    assert data["state"] == "Karnataka"
    assert data["country"] == "India"
