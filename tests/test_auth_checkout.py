import pytest

from storefront.core.security import hash_password, verify_password
from storefront.models.user import User
from storefront.services import checkout_service

PASSWORD = "secret123"


def register_and_login(client, email="asha@gmail.com"):
    client.post("/api/auth/register", json={"email": email, "password": PASSWORD, "name": "Asha"})
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.json()
    return response.json()


@pytest.fixture
def admin(db):
    user = User(email="admin@gmail.com", hashed_password=hash_password(PASSWORD), role="admin", status="not_block")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------- auth

def test_password_hashing_round_trip():
    hashed = hash_password(PASSWORD)

    assert hashed != PASSWORD
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("wrong-password", hashed)


def test_register_lowercases_email_and_rejects_duplicates(client, db):
    first = client.post("/api/auth/register", json={"email": " Asha@Gmail.com ", "password": PASSWORD})
    second = client.post("/api/auth/register", json={"email": "asha@gmail.com", "password": PASSWORD})

    assert first.status_code == 201
    assert first.json() == {"message": "Registration successful", "role": "user"}
    assert second.status_code == 409
    assert second.json()["message"] == "User already exists with this email"
    assert db.query(User).filter(User.email == "asha@gmail.com").one().role == "user"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"email": "asha@gmail.com"}, "Email and password are required"),
        ({"email": "not-an-email", "password": PASSWORD}, "Invalid email format"),
        ({"email": "asha@gmail.com", "password": "123"}, "Password must be at least 6 characters"),
    ],
)
def test_register_validation(client, payload, message):
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == message


def test_login_sets_session_cookies(client):
    body = register_and_login(client)

    assert body["message"] == "Login successful"
    assert body["role"] == "user"
    assert client.cookies.get("user_role") == "user"
    assert client.cookies.get("user_email") is not None


def test_login_with_wrong_password(client):
    client.post("/api/auth/register", json={"email": "asha@gmail.com", "password": PASSWORD})

    response = client.post("/api/auth/login", json={"email": "asha@gmail.com", "password": "wrong-one"})
    unknown = client.post("/api/auth/login", json={"email": "nobody@gmail.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"
    assert unknown.status_code == 401


def test_logout_clears_session(client):
    register_and_login(client)

    response = client.post("/api/auth/logout")
    checkout = client.post("/api/checkout/intent", json={})

    assert response.status_code == 200
    assert checkout.status_code == 401
    assert checkout.json()["message"] == "Please login to continue"


# ---------------------------------------------------------------- customers

def test_customer_list_requires_admin(client):
    anonymous = client.get("/api/users/customer-list")
    register_and_login(client)
    customer = client.get("/api/users/customer-list")

    assert anonymous.status_code == 401
    assert customer.status_code == 403
    assert customer.json()["message"] == "Access denied. Required role: admin"


def test_admin_blocks_customer(client, admin):
    customer = register_and_login(client)
    client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})

    listed = client.get("/api/users/customer-list").json()
    blocked = client.patch("/api/users/block-user", json={"userId": customer["id"], "status": "block"})
    blocked_list = client.get("/api/users/block-user").json()
    not_blocked = client.get("/api/users/customer-list", params={"status": "not_block"}).json()

    assert [user["email"] for user in listed["data"]] == ["asha@gmail.com"]
    assert blocked.status_code == 200
    assert blocked.json()["message"] == "Customer status updated successfully"
    assert [user["id"] for user in blocked_list["data"]] == [customer["id"]]
    assert not_blocked["data"] == []

    client.post("/api/auth/logout")
    login = client.post("/api/auth/login", json={"email": "asha@gmail.com", "password": PASSWORD})
    assert login.status_code == 403
    assert login.json()["message"] == "Your account is blocked. Contact support."


def test_block_user_validation(client, admin):
    client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})

    bad_status = client.patch("/api/users/block-user", json={"userId": 5, "status": "banned"})
    no_id = client.patch("/api/users/block-user", json={"status": "block"})
    unknown = client.patch("/api/users/block-user", json={"userId": 999, "status": "block"})
    admin_target = client.patch("/api/users/block-user", json={"userId": admin.id, "status": "block"})

    assert bad_status.json()["message"] == "Status must be 'block' or 'not_block'"
    assert no_id.json()["message"] == "Valid userId is required"
    assert unknown.status_code == 404
    assert admin_target.status_code == 404


# ---------------------------------------------------------------- staff accounts

def login_admin(client, admin):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})
    assert response.status_code == 200


def test_staff_accounts_require_admin(client):
    register_and_login(client)

    response = client.get("/api/users/user-role")

    assert response.status_code == 403


def test_admin_creates_staff_account(client, db, admin):
    login_admin(client, admin)

    response = client.post(
        "/api/users/user-role", json={"email": " Stock@Gmail.com ", "password": "stock123", "role": "warehouse"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["data"]["email"] == "stock@gmail.com"
    assert body["data"]["role"] == "warehouse"
    assert body["data"]["status"] == "not_block"
    stored = db.query(User).filter(User.email == "stock@gmail.com").one()
    assert verify_password("stock123", stored.hashed_password)


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"role": "sales"}, "Email and password are required"),
        ({"email": "not-an-email", "password": "stock123", "role": "sales"}, "Invalid email format"),
        ({"email": "s@gmail.com", "password": "123", "role": "sales"}, "Password must be at least 6 characters"),
        ({"email": "s@gmail.com", "password": "stock123", "role": "user"}, "Invalid role value"),
        ({"email": "s@gmail.com", "password": "stock123"}, "Invalid role value"),
        (
            {"email": "s@gmail.com", "password": "stock123", "role": "sales", "status": "gone"},
            "Status must be 'block' or 'not_block'",
        ),
    ],
)
def test_staff_create_validation(client, admin, payload, message):
    login_admin(client, admin)

    response = client.post("/api/users/user-role", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == message


def test_staff_create_rejects_existing_email(client, admin):
    login_admin(client, admin)

    response = client.post(
        "/api/users/user-role", json={"email": "admin@gmail.com", "password": "stock123", "role": "sales"}
    )

    assert response.status_code == 409
    assert response.json()["message"] == "User already exists with this email"


def test_staff_list_skips_customers_and_filters(client, admin):
    register_and_login(client)
    login_admin(client, admin)
    client.post("/api/users/user-role", json={"email": "sales@gmail.com", "password": "sales123", "role": "sales"})
    client.post(
        "/api/users/user-role",
        json={"email": "depot@gmail.com", "password": "depot123", "role": "warehouse", "status": "block"},
    )

    everyone = client.get("/api/users/user-role").json()
    sales = client.get("/api/users/user-role", params={"role": "sales"}).json()
    blocked = client.get("/api/users/user-role", params={"status": "block"}).json()
    searched = client.get("/api/users/user-role", params={"search": "depot"}).json()
    ignored_role = client.get("/api/users/user-role", params={"role": "user"}).json()

    assert everyone["message"] == "User role list fetched successfully"
    assert sorted(user["email"] for user in everyone["data"]) == ["admin@gmail.com", "depot@gmail.com", "sales@gmail.com"]
    assert [user["email"] for user in sales["data"]] == ["sales@gmail.com"]
    assert [user["email"] for user in blocked["data"]] == ["depot@gmail.com"]
    assert [user["email"] for user in searched["data"]] == ["depot@gmail.com"]
    assert ignored_role["pagination"]["totalItems"] == 3


def test_staff_get_by_id(client, admin):
    login_admin(client, admin)

    found = client.get("/api/users/user-role", params={"id": admin.id})
    missing = client.get("/api/users/user-role", params={"id": 999})

    assert found.json()["message"] == "User fetched successfully"
    assert found.json()["data"]["email"] == "admin@gmail.com"
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"


def test_staff_update(client, admin):
    login_admin(client, admin)
    staff = client.post(
        "/api/users/user-role", json={"email": "sales@gmail.com", "password": "sales123", "role": "sales"}
    ).json()["data"]

    no_id = client.patch("/api/users/user-role", json={"role": "warehouse"})
    unknown = client.patch("/api/users/user-role", params={"id": 999}, json={"role": "warehouse"})
    empty = client.patch("/api/users/user-role", json={"userId": staff["id"]})
    taken = client.put("/api/users/user-role", json={"id": staff["id"], "email": "admin@gmail.com"})
    bad_role = client.patch("/api/users/user-role", json={"id": staff["id"], "role": "owner"})
    updated = client.put(
        f"/api/users/user-role?id={staff['id']}",
        json={"role": "inventory_manager", "status": "block", "password": "fresh-pass"},
    )

    assert no_id.json()["message"] == "Valid user id is required"
    assert unknown.status_code == 404
    assert empty.json()["message"] == "At least one field is required to update"
    assert taken.status_code == 409
    assert taken.json()["message"] == "Email is already in use"
    assert bad_role.json()["message"] == "Invalid role value"
    assert updated.status_code == 200
    assert updated.json()["message"] == "User updated successfully"
    assert updated.json()["data"]["role"] == "inventory_manager"
    assert updated.json()["data"]["status"] == "block"


def test_staff_password_change_applies_to_login(client, admin):
    login_admin(client, admin)
    staff = client.post(
        "/api/users/user-role", json={"email": "sales@gmail.com", "password": "sales123", "role": "sales"}
    ).json()["data"]
    client.patch("/api/users/user-role", json={"id": staff["id"], "password": "fresh-pass"})
    client.post("/api/auth/logout")

    old = client.post("/api/auth/login", json={"email": "sales@gmail.com", "password": "sales123"})
    new = client.post("/api/auth/login", json={"email": "sales@gmail.com", "password": "fresh-pass"})

    assert old.status_code == 401
    assert new.status_code == 200


def test_staff_delete(client, db, admin):
    login_admin(client, admin)
    staff = client.post(
        "/api/users/user-role", json={"email": "sales@gmail.com", "password": "sales123", "role": "sales"}
    ).json()["data"]

    response = client.request("DELETE", "/api/users/user-role", json={"userId": staff["id"]})
    again = client.delete("/api/users/user-role", params={"id": staff["id"]})

    assert response.json()["message"] == "User deleted successfully"
    assert db.query(User).filter(User.email == "sales@gmail.com").count() == 0
    assert again.status_code == 404


# ---------------------------------------------------------------- pending customers

def test_pending_customers_lists_unblocked_customers_only(client, admin):
    first = register_and_login(client)
    second = register_and_login(client, email="ravi@gmail.com")
    login_admin(client, admin)
    client.patch("/api/users/block-user", json={"userId": second["id"], "status": "block"})

    response = client.get("/api/users/pending-customer-list")

    body = response.json()
    assert body["message"] == "Pending customer list fetched successfully"
    assert [user["id"] for user in body["data"]] == [first["id"]]


def test_pending_customer_update(client, admin):
    customer = register_and_login(client)
    other = register_and_login(client, email="ravi@gmail.com")
    login_admin(client, admin)

    no_id = client.patch("/api/users/pending-customer-list", json={"status": "block"})
    bad_status = client.patch("/api/users/pending-customer-list", json={"userId": customer["id"], "status": "x"})
    staff_target = client.patch("/api/users/pending-customer-list", json={"userId": admin.id, "status": "block"})
    empty = client.patch("/api/users/pending-customer-list", json={"userId": customer["id"]})
    taken = client.put(
        "/api/users/pending-customer-list", json={"userId": customer["id"], "email": "ravi@gmail.com"}
    )
    renamed = client.put(
        f"/api/users/pending-customer-list?userId={customer['id']}", json={"email": "asha.rao@gmail.com"}
    )
    blocked = client.patch("/api/users/pending-customer-list", json={"userId": other["id"], "status": "block"})
    blocked_again = client.patch(
        "/api/users/pending-customer-list", json={"userId": other["id"], "status": "not_block"}
    )

    assert no_id.json()["message"] == "Valid userId is required"
    assert bad_status.json()["message"] == "Status must be 'block' or 'not_block'"
    assert staff_target.status_code == 404
    assert staff_target.json()["message"] == "Pending customer not found"
    assert empty.json()["message"] == "At least one field is required to update"
    assert taken.status_code == 409
    assert taken.json()["message"] == "Email is already in use"
    assert renamed.json()["message"] == "Pending customer updated successfully"
    assert renamed.json()["data"]["email"] == "asha.rao@gmail.com"
    assert blocked.json()["data"]["status"] == "block"
    assert blocked_again.status_code == 404


def test_pending_customer_delete(client, db, admin):
    customer = register_and_login(client)
    login_admin(client, admin)

    missing = client.delete("/api/users/pending-customer-list", params={"userId": 999})
    response = client.delete("/api/users/pending-customer-list", params={"userId": customer["id"]})

    assert missing.status_code == 404
    assert response.json()["message"] == "Pending customer deleted successfully"
    assert db.query(User).filter(User.email == "asha@gmail.com").count() == 0


# ---------------------------------------------------------------- checkout

@pytest.fixture
def shop(client, location_chain, make_product):
    """A logged-in customer with an address, a product with a 3-pack, a gateway and shipping rates."""
    customer = register_and_login(client)
    product = make_product(qty_offers=[{"qty": 3, "price": 400, "label": "Pack of 3"}])
    address = client.post(
        "/api/address",
        json={
            "user_id": customer["id"],
            "full_name": "Asha Rao",
            "mobile": "9876543210",
            "address_line_1": "12 Brigade Road",
            "postal_code": "560001",
        },
    ).json()["data"]
    gateway = client.post(
        "/api/payment", json={"name": "Razorpay", "app_id": "rzp_test_key", "secret_key": "rzp_secret"}
    ).json()["data"]
    client.post(
        "/api/locations/shipping",
        json={"pincode_id": None, "min_amount": 0, "max_amount": 100000, "shipping_amount": 40},
    )
    client.post(
        "/api/locations/shipping",
        json={"pincode_id": location_chain["pincode_id"], "min_amount": 0, "max_amount": 5000, "shipping_amount": 60},
    )
    return {"customer": customer, "product": product, "address": address, "gateway": gateway}


def cart(shop, **overrides):
    payload = {
        "address_id": shop["address"]["id"],
        "payment_gateway_id": shop["gateway"]["id"],
        "items": [
            {"product_id": shop["product"]["id"], "count": 2},
            {"id": shop["product"]["id"], "offer_qty": 3},
        ],
    }
    payload.update(overrides)
    return payload


def test_checkout_requires_login(client):
    response = client.post("/api/checkout/intent", json={"items": []})

    assert response.status_code == 401


def test_checkout_intent_totals(client, shop):
    response = client.post("/api/checkout/intent", json=cart(shop))

    assert response.status_code == 200
    data = response.json()["data"]
    assert [line["line_total"] for line in data["items"]] == [900, 1200]
    assert data["items"][1]["quantity"] == 3
    assert data["subtotal"] == 2100
    assert data["discount"] == 0
    assert data["shipping"] == 60
    assert data["total"] == 2160
    assert data["payment_gateway"] == {"id": shop["gateway"]["id"], "name": "Razorpay", "app_id": "rzp_test_key"}
    assert data["coupon"] is None


def test_checkout_intent_applies_capped_coupon(client, shop):
    client.post(
        "/api/coupon",
        json={"code": "WELCOME10", "discount_type": "percentage", "discount_value": 10, "max_discount_amount": 150},
    )

    response = client.post("/api/checkout/intent", json=cart(shop, coupon_code="welcome10"))

    data = response.json()["data"]
    assert data["discount"] == 150
    assert data["total"] == 2100 - 150 + 60
    assert data["coupon"]["code"] == "WELCOME10"


def test_checkout_uses_global_rate_outside_pincode_band(client, shop):
    items = [{"product_id": shop["product"]["id"], "offer_qty": 3, "count": 5}]

    response = client.post("/api/checkout/intent", json=cart(shop, items=items))

    data = response.json()["data"]
    assert data["subtotal"] == 6000
    assert data["shipping"] == 40


@pytest.mark.parametrize(
    "coupon, message",
    [
        ({"status": "inactive"}, "Coupon is not active"),
        ({"start_date": "2999-01-01T00:00:00Z"}, "Coupon is not valid yet"),
        ({"end_date": "2000-01-01T00:00:00Z"}, "Coupon has expired"),
        ({"usage_limit": 1, "used_count": 1}, "Coupon usage limit reached"),
        ({"min_order_amount": 5000}, "Minimum order amount for this coupon is 5000"),
    ],
)
def test_checkout_rejects_unusable_coupon(client, shop, coupon, message):
    client.post("/api/coupon", json={"code": "SAVE", "discount_type": "fixed", "discount_value": 100, **coupon})

    response = client.post("/api/checkout/intent", json=cart(shop, coupon_code="SAVE"))

    assert response.status_code == 400
    assert response.json()["message"] == message


def test_checkout_rejects_unknown_coupon(client, shop):
    response = client.post("/api/checkout/intent", json=cart(shop, coupon_code="NOPE"))

    assert response.json()["message"] == "Invalid coupon code"


def test_checkout_intent_errors(client, shop, db):
    empty = client.post("/api/checkout/intent", json=cart(shop, items=[]))
    no_address = client.post("/api/checkout/intent", json=cart(shop, address_id=None))
    other_users_address = client.post("/api/checkout/intent", json=cart(shop, address_id=999))
    unknown_product = client.post("/api/checkout/intent", json=cart(shop, items=[{"product_id": 999}]))
    unknown_offer = client.post(
        "/api/checkout/intent", json=cart(shop, items=[{"product_id": shop["product"]["id"], "offer_qty": 7}])
    )
    bad_item = client.post("/api/checkout/intent", json=cart(shop, items=[{"count": 2}]))

    assert empty.json()["message"] == "Add product to cart before proceeding."
    assert no_address.json()["message"] == "Please select an address before proceeding."
    assert other_users_address.status_code == 400
    assert unknown_product.json()["message"] == "Product 999 is not available"
    assert unknown_offer.status_code == 400
    assert bad_item.json()["message"] == "Each cart item needs a valid product_id"


def test_checkout_without_active_gateway(client, shop):
    client.patch("/api/payment", params={"id": shop["gateway"]["id"]}, json={"is_active": False})

    response = client.post("/api/checkout/intent", json=cart(shop, payment_gateway_id=None))

    assert response.status_code == 400
    assert response.json()["message"] == "No active payment gateway available."


class FakeOrders:
    def __init__(self, calls, fail=False):
        self.calls = calls
        self.fail = fail

    def create(self, data):
        if self.fail:
            raise RuntimeError("gateway timeout")
        self.calls.append(data)
        return {"id": "order_test_1", "amount": data["amount"], "currency": data["currency"]}


def fake_razorpay(calls, fail=False):
    class FakeClient:
        def __init__(self, auth):
            calls.append(auth)
            self.order = FakeOrders(calls, fail)
    return FakeClient


def test_create_order_against_razorpay(client, shop, monkeypatch):
    calls = []
    monkeypatch.setattr(checkout_service.razorpay, "Client", fake_razorpay(calls))

    response = client.post("/api/checkout/create-order", json=cart(shop))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["order_id"] == "order_test_1"
    assert data["amount"] == 216000
    assert data["currency"] == "INR"
    assert data["key_id"] == "rzp_test_key"
    assert data["summary"]["total"] == 2160
    assert calls[0] == ("rzp_test_key", "rzp_secret")
    assert calls[1]["notes"]["user_id"] == str(shop["customer"]["id"])


def test_create_order_reports_gateway_failure(client, shop, monkeypatch):
    monkeypatch.setattr(checkout_service.razorpay, "Client", fake_razorpay([], fail=True))

    response = client.post("/api/checkout/create-order", json=cart(shop))

    assert response.status_code == 502
    assert response.json()["error"] == "PaymentGatewayError"


def test_create_order_needs_gateway_keys(client, shop):
    client.patch("/api/payment", params={"id": shop["gateway"]["id"]}, json={"secret_key": ""})

    response = client.post("/api/checkout/create-order", json=cart(shop))

    assert response.status_code == 400
    assert response.json()["message"] == "Payment gateway is not configured"
