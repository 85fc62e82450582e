def coupon_payload(**overrides):
    payload = {"code": " welcome10 ", "discount_type": "percentage", "discount_value": 10}
    payload.update(overrides)
    return payload


def test_coupon_code_is_stored_upper_case(client):
    response = client.post("/api/coupon", json=coupon_payload())

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "WELCOME10"
    assert data["used_count"] == 0
    assert data["status"] == "active"


def test_coupon_code_conflicts_case_insensitively(client):
    client.post("/api/coupon", json=coupon_payload())

    response = client.post("/api/coupon", json=coupon_payload(code="WELCOME10"))

    assert response.status_code == 409
    assert response.json()["message"] == "Coupon already exists with this code"


def test_coupon_requires_code_and_value(client):
    response = client.post("/api/coupon", json={"code": "SAVE"})

    assert response.status_code == 400
    assert response.json()["message"] == "Code and discount_value are required"


def test_coupon_rejects_unknown_discount_type(client):
    response = client.post("/api/coupon", json=coupon_payload(discount_type="bogo"))

    assert response.status_code == 400
    assert response.json()["message"] == "discount_type must be 'percentage' or 'fixed'"


def test_coupon_rejects_reversed_dates(client):
    response = client.post(
        "/api/coupon",
        json=coupon_payload(start_date="2026-02-01T00:00:00Z", end_date="2026-01-01T00:00:00Z"),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "start_date cannot be greater than end_date"


def test_coupon_rejects_unparseable_date(client):
    response = client.post("/api/coupon", json=coupon_payload(end_date="next tuesday"))

    assert response.status_code == 400
    assert response.json()["message"] == "end_date is invalid"


def test_coupon_partial_update_keeps_other_fields(client):
    coupon = client.post(
        "/api/coupon", json=coupon_payload(min_order_amount=500, end_date="2026-12-31T00:00:00Z")
    ).json()["data"]

    response = client.put(f"/api/coupon?id={coupon['id']}", json={"discount_value": 15})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["discount_value"] == 15
    assert data["min_order_amount"] == 500
    assert data["end_date"].startswith("2026-12-31")


def test_coupon_update_checks_window_against_stored_dates(client):
    coupon = client.post("/api/coupon", json=coupon_payload(end_date="2026-03-01T00:00:00Z")).json()["data"]

    response = client.patch("/api/coupon", json={"id": coupon["id"], "start_date": "2026-04-01T00:00:00Z"})

    assert response.status_code == 400
    assert response.json()["message"] == "start_date cannot be greater than end_date"


def test_coupon_update_code_conflict(client):
    client.post("/api/coupon", json=coupon_payload())
    other = client.post("/api/coupon", json=coupon_payload(code="FLAT50", discount_type="fixed")).json()["data"]

    response = client.patch("/api/coupon", json={"id": other["id"], "code": "welcome10"})

    assert response.status_code == 409
    assert response.json()["message"] == "Coupon code is already in use"


def test_coupon_delete(client):
    coupon = client.post("/api/coupon", json=coupon_payload()).json()["data"]

    assert client.delete("/api/coupon", params={"id": coupon["id"]}).status_code == 200
    assert client.get("/api/coupon", params={"id": coupon["id"]}).status_code == 404
    assert client.get("/api/coupon").json()["data"] == []


def test_gateway_requires_name(client):
    response = client.post("/api/payment", json={"app_id": "rzp_test_1"})

    assert response.status_code == 400
    assert response.json()["message"] == "name is required"


def test_gateway_active_only_listing(client):
    client.post("/api/payment", json={"name": "Razorpay", "app_id": "rzp_test_1", "secret_key": "s"})
    client.post("/api/payment", json={"name": "Paytm", "is_active": "false"})

    everything = client.get("/api/payment").json()["data"]
    active = client.get("/api/payment", params={"active_only": "true"}).json()["data"]

    assert len(everything) == 2
    assert [gateway["name"] for gateway in active] == ["Razorpay"]


def test_gateway_update_and_delete(client):
    gateway = client.post("/api/payment", json={"name": "Razorpay"}).json()["data"]

    updated = client.patch("/api/payment", params={"id": gateway["id"]}, json={"is_active": False, "app_id": "rzp_live"})
    missing_id = client.delete("/api/payment")
    deleted = client.delete("/api/payment", params={"id": gateway["id"]})

    assert updated.status_code == 200
    assert updated.json()["data"]["is_active"] is False
    assert updated.json()["data"]["app_id"] == "rzp_live"
    assert missing_id.status_code == 400
    assert missing_id.json()["message"] == "Valid payment gateway id is required"
    assert deleted.status_code == 200
