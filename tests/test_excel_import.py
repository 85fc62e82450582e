from storefront.models.cities import City
from storefront.models.countries import Country


def test_country_import_reports_created_updated_and_failed_rows(client, db, upload_sheet):
    client.post("/api/locations/country", json={"name": "India", "phone_code": "+91"})

    response = upload_sheet(
        "/api/locations/country",
        ["Country Name", "ISO", "Phone Code", "Status"],
        [
            ["India", "IN", "+91", "inactive"],
            ["Nepal", "NP", "+977", "active"],
            ["", "XX", None, None],
            ["Bhutan", "BT", "+975", "whatever"],
        ],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Country excel imported successfully"
    assert body["data"] == {"totalRows": 4, "validRows": 3, "created": 2, "updated": 1, "failedRows": 1}
    assert body["errors"] == ["Row 4: country name is required"]

    india = db.query(Country).filter(Country.name == "India").one()
    bhutan = db.query(Country).filter(Country.name == "Bhutan").one()
    assert india.iso_code == "IN"
    assert india.status == "inactive"
    assert bhutan.status == "active"


def test_country_import_rejects_reused_iso_code(client, upload_sheet):
    client.post("/api/locations/country", json={"name": "India", "iso_code": "IN"})

    response = upload_sheet(
        "/api/locations/country",
        ["name", "iso_code"],
        [["Nepal", "NP"], ["Bharat", "IN"]],
    )

    body = response.json()
    assert response.status_code == 201
    assert body["data"]["created"] == 1
    assert body["errors"] == ['Row 3: iso_code "IN" already used']


def test_child_import_checks_parent_rows(client, db, location_chain, upload_sheet):
    state_id = location_chain["state_id"]

    response = upload_sheet(
        "/api/locations/city",
        ["state_id", "city"],
        [
            [state_id, "Mysuru"],
            [999, "Nowhere"],
            ["abc", "Broken"],
            [state_id, ""],
            [state_id, "Bengaluru"],
        ],
    )

    body = response.json()
    assert response.status_code == 201
    assert body["data"]["created"] + body["data"]["updated"] == 2
    assert body["data"]["failedRows"] == 3
    assert len(body["errors"]) == 3
    assert "Row 3: state_id 999 not found" in body["errors"]
    assert "Row 4: valid state_id is required" in body["errors"]
    assert "Row 5: city name is required" in body["errors"]
    assert db.query(City).filter(City.state_id == state_id).count() == 2


def test_rows_within_one_sheet_see_each_other(client, location_chain, upload_sheet):
    response = upload_sheet(
        "/api/locations/pincode",
        ["city_id", "pincode", "area_name"],
        [
            [location_chain["city_id"], "560002", "Shivajinagar"],
            [location_chain["city_id"], "560002", "Shivaji Nagar"],
        ],
    )

    assert response.json()["data"]["created"] == 1
    assert response.json()["data"]["updated"] == 1


def test_import_without_valid_rows_is_rejected(client, upload_sheet):
    response = upload_sheet("/api/locations/state", ["country_id", "name"], [[42, "Goa"], ["", "Kerala"]])

    body = response.json()
    assert response.status_code == 400
    assert body["message"] == "No valid rows found"
    assert body["data"]["failedRows"] == 2
    assert len(body["errors"]) == 2


def test_import_requires_file_field(client):
    response = client.post("/api/locations/country", files={"sheet": ("a.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert response.json()["message"] == "Excel file is required"


def test_import_rejects_unreadable_workbook(client):
    response = client.post(
        "/api/locations/country",
        files={"file": ("broken.xlsx", b"not a workbook", "application/octet-stream")},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Unable to read Excel file"


def test_import_rejects_sheet_without_data_rows(client, upload_sheet):
    response = upload_sheet("/api/locations/country", ["name"], [[None]])

    assert response.status_code == 400
    assert response.json()["message"] == "Excel sheet is empty"


def test_cells_outside_header_columns_are_ignored_and_logged(client, db, caplog, upload_sheet):
    caplog.set_level("WARNING", logger="storefront.services.excel_import")

    response = upload_sheet(
        "/api/locations/country",
        ["name", "iso_code"],
        [["Nepal", "NP", "stray"], ["Bhutan", "BT"]],
    )

    assert response.status_code == 201
    assert response.json()["data"]["created"] == 2
    assert db.query(Country).filter(Country.name == "Nepal").one().iso_code == "NP"
    assert "Row 2: ignoring 1 value(s) outside the header columns" in caplog.text
    assert "Row 3" not in caplog.text
