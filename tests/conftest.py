import io
import os
import tempfile

# must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")
os.environ["STORAGE_BACKEND"] = "local"

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from main import app
from storefront.database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def location_chain(client):
    """India -> Karnataka -> Bengaluru -> 560001, returned as ids."""
    country = client.post("/api/locations/country", json={"name": "India", "iso_code": "IN"}).json()["data"]
    state = client.post(
        "/api/locations/state", json={"country_id": country["id"], "name": "Karnataka"}
    ).json()["data"]
    city = client.post("/api/locations/city", json={"state_id": state["id"], "name": "Bengaluru"}).json()["data"]
    pincode = client.post(
        "/api/locations/pincode", json={"city_id": city["id"], "pincode": "560001", "area_name": "MG Road"}
    ).json()["data"]
    return {
        "country_id": country["id"],
        "state_id": state["id"],
        "city_id": city["id"],
        "pincode_id": pincode["id"],
    }


@pytest.fixture
def category(client):
    response = client.post("/api/products/product-category", json={"name": "Immunity", "slug": "immunity"})
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def make_product(client, category):
    def _make(**overrides):
        payload = {
            "name": "Ashwagandha Capsules",
            "slug": "ashwagandha-capsules",
            "sku": "ash-60",
            "category_id": category["id"],
            "prise": 500,
            "offer_prise": 450,
            "qty": 100,
        }
        payload.update(overrides)
        response = client.post("/api/products/create-product", json=payload)
        assert response.status_code == 201, response.json()
        return response.json()["data"]
    return _make


XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def upload_sheet(client):
    """POST an in-memory workbook (header row + rows) to an import endpoint."""
    def _upload(url, headers, rows):
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(headers)
        for row in rows:
            sheet.append(row)
        output = io.BytesIO()
        workbook.save(output)
        return client.post(url, files={"file": ("sheet.xlsx", output.getvalue(), XLSX_TYPE)})
    return _upload
