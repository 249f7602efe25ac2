"""Catalog routes: listing, search, create, update, toggle and delete."""

from unittest.mock import patch
from urllib.parse import quote

from bson import ObjectId
from pymongo.errors import PyMongoError


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

def test_empty_catalog_lists_nothing(client):
    response = client.get("/api/products")
    assert response.status_code == 200
    assert response.get_json() == []


def test_created_product_round_trips(client, create_product):
    created = create_product("Milk", 42)

    response = client.get(f"/api/products/{created['id']}")

    assert response.status_code == 200
    product = response.get_json()
    assert product["name"] == "Milk"
    assert product["price"] == 42
    assert product["available"] is True
    assert product["image"] is None
    assert product["created_at"].endswith("Z")


def test_products_are_listed_newest_first(client, create_product):
    first = create_product("A", 1)
    second = create_product("B", 2)

    names = [product["name"] for product in client.get("/api/products").get_json()]
    ids = [product["id"] for product in client.get("/api/products").get_json()]

    assert names == ["B", "A"]
    assert ids == [second["id"], first["id"]]


def test_search_is_case_insensitive_substring(client, create_product):
    create_product("Milk 500ml", 30)
    create_product("Bread", 25)

    response = client.get("/api/products/search/milk")

    assert response.status_code == 200
    assert [product["name"] for product in response.get_json()] == ["Milk 500ml"]


def test_search_results_are_newest_first(client, create_product):
    older = create_product("Milk 500ml", 30)
    create_product("Bread", 25)
    newer = create_product("Oat milk", 55)

    response = client.get("/api/products/search/MILK")

    assert [product["id"] for product in response.get_json()] == [
        newer["id"],
        older["id"],
    ]


def test_search_matches_text_literally(client, create_product):
    create_product("C++ Primer", 10)
    create_product("Cheese", 5)

    response = client.get(f"/api/products/search/{quote('c++', safe='')}")

    assert [product["name"] for product in response.get_json()] == ["C++ Primer"]


def test_unknown_product_is_not_found(client):
    response = client.get(f"/api/products/{ObjectId()}")
    assert response.status_code == 404
    assert response.get_json() == {"message": "Product not found"}


def test_malformed_product_id_is_not_found(client):
    response = client.get("/api/products/not-an-id")
    assert response.status_code == 404


def test_store_failure_on_list_is_internal(client):
    with patch(
        "storefront.products.list_product_documents",
        side_effect=PyMongoError("connection refused"),
    ):
        response = client.get("/api/products")

    assert response.status_code == 500
    assert response.get_json() == {"message": "Failed to fetch products"}


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json() == {"message": "Route not found"}


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_create_requires_token(client):
    response = client.post("/api/products", data={"name": "Milk", "price": "42"})
    assert response.status_code == 401


def test_create_rejects_bad_token(client):
    response = client.post(
        "/api/products",
        data={"name": "Milk", "price": "42"},
        headers={"Authorization": "Bearer forged.token.value"},
    )
    assert response.status_code == 403


def test_create_requires_name_and_price(client, auth_headers):
    response = client.post("/api/products", data={"price": "42"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json() == {"message": "Name and price are required"}

    response = client.post("/api/products", data={"name": "Milk"}, headers=auth_headers)
    assert response.status_code == 400


def test_create_rejects_invalid_prices(client, auth_headers):
    for raw_price in ("abc", "-1", "nan"):
        response = client.post(
            "/api/products",
            data={"name": "Milk", "price": raw_price},
            headers=auth_headers,
        )
        assert response.status_code == 400, raw_price


def test_create_accepts_json_and_zero_price(client, auth_headers):
    response = client.post(
        "/api/products", json={"name": "Sample", "price": 0}, headers=auth_headers
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["message"] == "Product added successfully"
    assert body["product"]["price"] == 0


def test_create_with_non_object_json_is_bad_request(client, auth_headers):
    response = client.post("/api/products", json=["x"], headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json() == {"message": "Name and price are required"}


def test_create_coerces_price_to_number(client, create_product):
    created = create_product("Butter", "12.499")
    assert created["price"] == 12.5


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

def test_update_changes_only_supplied_fields(client, auth_headers, create_product):
    created = create_product("Milk", 42)

    response = client.put(
        f"/api/products/{created['id']}",
        data={"price": "45"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    product = response.get_json()["product"]
    assert product["name"] == "Milk"
    assert product["price"] == 45
    assert product["available"] is True


def test_update_sets_availability(client, auth_headers, create_product):
    created = create_product("Milk", 42)

    response = client.put(
        f"/api/products/{created['id']}",
        data={"available": "false", "name": "Milk 1L"},
        headers=auth_headers,
    )

    product = response.get_json()["product"]
    assert product["available"] is False
    assert product["name"] == "Milk 1L"


def test_update_rejects_unparseable_availability(client, auth_headers, create_product):
    created = create_product("Milk", 42)

    response = client.put(
        f"/api/products/{created['id']}",
        data={"available": "maybe"},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_update_unknown_product(client, auth_headers):
    response = client.put(
        f"/api/products/{ObjectId()}", data={"name": "x"}, headers=auth_headers
    )
    assert response.status_code == 404


def test_update_requires_token(client, create_product):
    created = create_product("Milk", 42)
    response = client.put(f"/api/products/{created['id']}", data={"name": "x"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Toggle
# ---------------------------------------------------------------------------

def test_toggle_is_an_involution(client, auth_headers, create_product):
    created = create_product("Milk", 42)
    url = f"/api/products/{created['id']}/toggle"

    first = client.patch(url, headers=auth_headers)
    second = client.patch(url, headers=auth_headers)

    assert first.status_code == second.status_code == 200
    assert first.get_json()["product"]["available"] is False
    assert second.get_json()["product"]["available"] is True
    assert client.get(f"/api/products/{created['id']}").get_json()["available"] is True


def test_toggle_unknown_product(client, auth_headers):
    response = client.patch(f"/api/products/{ObjectId()}/toggle", headers=auth_headers)
    assert response.status_code == 404


def test_toggle_requires_token(client, create_product):
    created = create_product("Milk", 42)
    response = client.patch(f"/api/products/{created['id']}/toggle")
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def test_delete_removes_record(client, auth_headers, create_product, database):
    created = create_product("Milk", 42)

    response = client.delete(f"/api/products/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json() == {"message": "Product deleted successfully"}
    assert database.products.count_documents({}) == 0
    assert client.get(f"/api/products/{created['id']}").status_code == 404


def test_delete_unknown_product(client, auth_headers):
    response = client.delete(f"/api/products/{ObjectId()}", headers=auth_headers)
    assert response.status_code == 404


def test_delete_requires_token(client, create_product):
    created = create_product("Milk", 42)
    assert client.delete(f"/api/products/{created['id']}").status_code == 401
