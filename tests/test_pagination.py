import pytest

from storefront.utils.pagination import build_pagination, resolve_page_params


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 10)),
        ("0", "-5", (1, 10)),
        ("abc", "2.5", (1, 10)),
        ("3", "250", (3, 100)),
        ("2", "100", (2, 100)),
    ],
)
def test_resolve_page_params(page, limit, expected):
    assert resolve_page_params(page, limit) == expected


def test_empty_result_still_has_one_page():
    assert build_pagination(1, 10, 0) == {
        "page": 1,
        "limit": 10,
        "totalItems": 0,
        "totalPages": 1,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


def test_page_flags():
    middle = build_pagination(2, 10, 25)

    assert middle["totalPages"] == 3
    assert middle["hasNextPage"] is True
    assert middle["hasPrevPage"] is True
    assert build_pagination(3, 10, 25)["hasNextPage"] is False


def test_list_endpoint_pages_newest_first(client):
    for index in range(12):
        client.post("/api/locations/country", json={"name": f"Country {index:02d}"})

    first = client.get("/api/locations/country", params={"limit": 5}).json()
    last = client.get("/api/locations/country", params={"page": 3, "limit": 5}).json()
    beyond = client.get("/api/locations/country", params={"page": 9, "limit": 5}).json()

    assert first["data"][0]["name"] == "Country 11"
    assert first["pagination"]["totalPages"] == 3
    assert len(last["data"]) == 2
    assert last["pagination"]["hasNextPage"] is False
    assert beyond["data"] == []
    assert beyond["pagination"]["hasPrevPage"] is True
