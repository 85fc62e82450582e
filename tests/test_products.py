from types import SimpleNamespace

import pytest

from storefront.services.qty_offers import QtyOfferError, parse_qty_offers, quote_line


# ---------------------------------------------------------------- categories

def test_category_slug_is_unique(client, category):
    response = client.post("/api/products/product-category", json={"name": "Other", "slug": "IMMUNITY"})

    assert response.status_code == 409
    assert response.json()["message"] == "Category already exists with this slug"


def test_category_requires_name_and_slug(client):
    response = client.post("/api/products/product-category", json={"name": "Digestion"})

    assert response.status_code == 400
    assert response.json()["message"] == "Name and slug are required"


def test_category_in_use_cannot_be_deleted(client, category, make_product):
    make_product()

    response = client.delete("/api/products/product-category", params={"id": category["id"]})

    assert response.status_code == 409
    assert response.json()["message"] == "Category is used by 1 product(s)"
    assert client.get("/api/products/product-category", params={"id": category["id"]}).status_code == 200


def test_unused_category_is_deleted(client, category):
    response = client.request("DELETE", "/api/products/product-category", json={"id": category["id"]})

    assert response.status_code == 200
    assert response.json()["id"] == category["id"]


# ---------------------------------------------------------------- products

def test_create_product_normalizes_identity_fields(client, make_product):
    product = make_product(slug=" Ashwagandha-Capsules ", sku="ash-60", keywords="herbal, stress ,", hight="10cm")

    assert product["slug"] == "ashwagandha-capsules"
    assert product["sku"] == "ASH-60"
    assert product["keywords"] == ["herbal", "stress"]
    assert product["height"] == "10cm"
    assert product["qty_offers"] == []


def test_create_product_requires_existing_category(client):
    response = client.post(
        "/api/products/create-product",
        json={"name": "Tulsi Drops", "slug": "tulsi-drops", "sku": "TUL-1", "category_id": 99},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"


def test_create_product_requires_identity(client, category):
    response = client.post("/api/products/create-product", json={"name": "Tulsi Drops", "category_id": category["id"]})

    assert response.status_code == 400
    assert response.json()["message"] == "Name, slug, sku and valid category_id are required"


def test_negative_price_is_rejected(client, category):
    response = client.post(
        "/api/products/create-product",
        json={"name": "Tulsi", "slug": "tulsi", "sku": "T1", "category_id": category["id"], "prise": -1},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Prise must be 0 or greater"


def test_slug_and_sku_conflicts(client, category, make_product):
    make_product()

    same_slug = client.post(
        "/api/products/create-product",
        json={"name": "Copy", "slug": "ashwagandha-capsules", "sku": "OTHER", "category_id": category["id"]},
    )
    same_sku = client.post(
        "/api/products/create-product",
        json={"name": "Copy", "slug": "copy", "sku": "ASH-60", "category_id": category["id"]},
    )

    assert same_slug.status_code == 409
    assert same_slug.json()["message"] == "Product already exists with this slug"
    assert same_sku.status_code == 409
    assert same_sku.json()["message"] == "Product already exists with this sku"


def test_update_rejects_slug_of_other_product(client, make_product):
    make_product()
    other = make_product(name="Tulsi Drops", slug="tulsi-drops", sku="TUL-1")

    response = client.patch("/api/products/create-product", json={"id": other["id"], "slug": "ashwagandha-capsules"})

    assert response.status_code == 409
    assert response.json()["message"] == "Product slug is already in use"


@pytest.mark.parametrize(
    "qty_offers, message",
    [
        ("{not json", "qty_offers must be valid JSON"),
        ({"qty": 2, "price": 900, "label": "Pack of 2"}, "qty_offers must be an array"),
        ([{"qty": 0, "price": 900, "label": "Pack of 2"}], "Each qty_offers item needs qty, price and label"),
        ([{"qty": 2, "price": -5, "label": "Pack of 2"}], "Each qty_offers item needs qty, price and label"),
        ([{"qty": 2, "price": 900, "label": "  "}], "Each qty_offers item needs qty, price and label"),
        ([{"qty": 2, "price": 900, "label": "ok"}, "oops"], "Each qty_offers item needs qty, price and label"),
    ],
)
def test_invalid_qty_offers_are_rejected(client, category, qty_offers, message):
    response = client.post(
        "/api/products/create-product",
        json={
            "name": "Tulsi",
            "slug": "tulsi",
            "sku": "T1",
            "category_id": category["id"],
            "qty_offers": qty_offers,
        },
    )

    assert response.status_code == 400
    assert response.json()["message"] == message


def test_qty_offers_are_stored_normalized(client, make_product):
    offers = '[{"qty": "3.9", "price": "1200", "label": " Pack of 3 ", "label2": "Save 11%"}]'
    product = make_product(qty_offers=offers)

    fetched = client.get("/api/products/create-product", params={"id": product["id"]}).json()["data"]

    assert fetched["qty_offers"] == [{"qty": 3, "price": 1200, "label": "Pack of 3", "label2": "Save 11%"}]


def test_qty_offers_update_uses_same_rules(client, make_product):
    product = make_product()

    rejected = client.patch("/api/products/create-product", json={"id": product["id"], "qty_offers": [{"qty": 2}]})
    cleared = client.patch("/api/products/create-product", json={"id": product["id"], "qty_offers": ""})

    assert rejected.status_code == 400
    assert rejected.json()["message"] == "Each qty_offers item needs qty, price and label"
    assert cleared.status_code == 200
    assert cleared.json()["data"]["qty_offers"] == []


def test_parse_qty_offers_accepts_empty_string():
    assert parse_qty_offers("") == []
    with pytest.raises(QtyOfferError):
        parse_qty_offers(None)


def _product(**overrides):
    values = {
        "id": 1,
        "name": "Ashwagandha Capsules",
        "slug": "ashwagandha-capsules",
        "prise": 500,
        "offer_prise": 450,
        "qty_offers": [{"qty": 3, "price": 400, "label": "Pack of 3"}],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_quote_line_without_offer_uses_offer_price():
    line = quote_line(_product(), count=2)

    assert line["unit_price"] == 450
    assert line["quantity"] == 2
    assert line["line_total"] == 900
    assert line["discount_percent"] == 10
    assert line["label"] is None


def test_quote_line_with_pack_offer():
    line = quote_line(_product(), offer_qty=3, count=2)

    assert line["quantity"] == 6
    assert line["unit_price"] == 400
    assert line["line_total"] == 2400
    assert line["discount_percent"] == 20
    assert line["label"] == "Pack of 3"


def test_quote_line_falls_back_to_list_price():
    line = quote_line(_product(offer_prise=None))

    assert line["unit_price"] == 500
    assert line["discount_percent"] == 0


def test_quote_line_rejects_unknown_offer():
    with pytest.raises(QtyOfferError):
        quote_line(_product(), offer_qty=5)


# ---------------------------------------------------------------- inventory

def test_inventory_update_by_product_id(client, make_product):
    product = make_product()

    response = client.patch("/api/products/inventory", json={"product_id": product["id"], "qty": 40, "sold_qty": 60})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["qty"] == 40
    assert data["sold_qty"] == 60
    assert data["sku"] == "ASH-60"


def test_inventory_rejects_negative_stock(client, make_product):
    product = make_product()

    response = client.put("/api/products/inventory", json={"id": product["id"], "qty": -1})

    assert response.status_code == 400
    assert response.json()["message"] == "Qty must be 0 or greater"


def test_inventory_malformed_id_falls_back_to_product_id(client, make_product):
    product = make_product()

    response = client.patch(
        "/api/products/inventory", params={"id": "abc", "product_id": product["id"]}, json={"qty": 7}
    )

    assert response.status_code == 200
    assert response.json()["data"]["id"] == product["id"]
    assert response.json()["data"]["qty"] == 7


def test_inventory_for_unknown_product(client):
    response = client.patch("/api/products/inventory", json={"id": 42, "qty": 1})

    assert response.status_code == 404
    assert response.json()["message"] == "Inventory not found"


# ---------------------------------------------------------------- product page content

def test_product_details_one_per_product(client, make_product):
    product = make_product()
    payload = {
        "product_id": product["id"],
        "benefits": [{"img": "/uploads/a.png", "heading": "Calm", "paragraph": "Less stress"}, "junk"],
        "usage": {"heading": "Daily", "paragraph": "Two a day", "protip": ["With milk", ""]},
    }

    first = client.post("/api/products/product-detail", json=payload)
    second = client.post("/api/products/product-detail", json=payload)

    assert first.status_code == 201
    data = first.json()["data"]
    assert data["benefits"] == [{"img": "/uploads/a.png", "heading": "Calm", "paragraph": "Less stress"}]
    assert data["usage"] == [{"heading": "Daily", "paragraph": "Two a day", "protip": ["With milk"]}]
    assert second.status_code == 409
    assert second.json()["message"] == "Product details already exists for this product_id"


def test_product_details_require_existing_product(client):
    response = client.post("/api/products/product-detail", json={"product_id": 77})

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


def test_product_details_update_by_product_id(client, make_product):
    product = make_product()
    client.post("/api/products/product-detail", json={"product_id": product["id"]})

    response = client.patch(
        "/api/products/product-detail",
        params={"product_id": product["id"]},
        json={"img1": "/uploads/hero.png"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["img1"] == "/uploads/hero.png"


def test_faq_slug_must_match_product(client, make_product):
    product = make_product()

    mismatch = client.post(
        "/api/products/product-faq",
        json={"product_id": product["id"], "product_name": "tulsi-drops", "question": "Q?", "answer": "A."},
    )
    created = client.post(
        "/api/products/product-faq",
        json={"product_id": product["id"], "product_name": "Ashwagandha-Capsules", "question": "Q?", "answer": "A."},
    )

    assert mismatch.status_code == 400
    assert mismatch.json()["message"] == "product_name must match selected product slug"
    assert created.status_code == 201
    listed = client.get("/api/products/product-faq", params={"product_name": "ashwagandha-capsules"}).json()
    assert listed["pagination"]["totalItems"] == 1


def test_faq_requires_question_and_answer(client, make_product):
    product = make_product()

    response = client.post(
        "/api/products/product-faq",
        json={"product_id": product["id"], "product_name": product["slug"], "question": "Q?"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "question and answer are required"


def test_review_rating_range(client, make_product):
    product = make_product()
    payload = {"product_id": product["id"], "product_name": product["slug"], "name": "Ravi", "rating": 6}

    too_high = client.post("/api/products/product-review", json=payload)
    payload["rating"] = "4.5"
    created = client.post("/api/products/product-review", json=payload)

    assert too_high.status_code == 400
    assert too_high.json()["message"] == "rating must be between 0 and 5"
    assert created.status_code == 201
    assert created.json()["data"]["rating"] == 4.5
    assert created.json()["data"]["is_active"] is True


def test_review_list_filters_active(client, make_product):
    product = make_product()
    base = {"product_id": product["id"], "product_name": product["slug"], "rating": 5}
    client.post("/api/products/product-review", json={**base, "name": "Ravi"})
    hidden = client.post("/api/products/product-review", json={**base, "name": "Spam", "is_active": False}).json()

    active = client.get("/api/products/product-review", params={"is_active": "true"}).json()
    client.request("DELETE", "/api/products/product-review", json={"id": hidden["data"]["id"]})
    remaining = client.get("/api/products/product-review").json()

    assert [review["name"] for review in active["data"]] == ["Ravi"]
    assert remaining["pagination"]["totalItems"] == 1


# ---------------------------------------------------------------- storefront

def test_getproduct_returns_page_sections(client, category, make_product):
    product = make_product()
    client.post("/api/products/product-detail", json={"product_id": product["id"], "img1": "/uploads/hero.png"})

    response = client.get("/api/user/getproduct", params={"slug": "Ashwagandha-Capsules"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == product["id"]
    assert data["category"]["slug"] == category["slug"]
    assert data["details"]["img1"] == "/uploads/hero.png"


def test_getproduct_hides_inactive_products(client, make_product):
    make_product(status="inactive")

    missing_slug = client.get("/api/user/getproduct")
    inactive = client.get("/api/user/getproduct", params={"slug": "ashwagandha-capsules"})

    assert missing_slug.status_code == 400
    assert missing_slug.json()["message"] == "slug is required"
    assert inactive.status_code == 404
