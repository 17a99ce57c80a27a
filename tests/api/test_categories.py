# tests/api/test_categories.py

from httpx import AsyncClient


async def test_list_categories_with_product_count(client: AsyncClient, product_factory, category_factory):
    category_factory("Rings")
    product_factory()
    product_factory()

    response = await client.get("/api/categories")

    assert response.status_code == 200
    counts = {c["name"]: c["product_count"] for c in response.json()}
    assert counts == {"Rings": 0, "Watches": 2}
    assert [c["name"] for c in response.json()] == ["Rings", "Watches"]


async def test_create_category(client: AsyncClient, admin_auth_headers: dict, db_session):
    response = await client.post(
        "/api/categories",
        json={"name": "Fine Jewelry", "description": "<p>Handmade</p>"},
        headers=admin_auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["slug"] == "fine-jewelry"
    assert response.json()["description"] == "Handmade"

    duplicate = await client.post("/api/categories", json={"name": "Fine  Jewelry"}, headers=admin_auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "A category with this name already exists"

    too_short = await client.post("/api/categories", json={"name": "X"}, headers=admin_auth_headers)
    assert too_short.status_code == 400


async def test_update_category_regenerates_slug(client: AsyncClient, admin_auth_headers: dict, test_category):
    response = await client.patch(
        f"/api/categories/{test_category.id}",
        json={"name": "Luxury Watches"},
        headers=admin_auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["slug"] == "luxury-watches"

    fetched = await client.get(f"/api/categories/{test_category.id}")
    assert fetched.json()["name"] == "Luxury Watches"


async def test_delete_category_blocked_while_products_exist(
    client: AsyncClient, admin_auth_headers: dict, product_factory, test_category
):
    product_factory()

    response = await client.delete(f"/api/categories/{test_category.id}", headers=admin_auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == (
        "Cannot delete category with 1 products. Please move or delete products first."
    )


async def test_delete_empty_category(client: AsyncClient, admin_auth_headers: dict, category_factory):
    category = category_factory("Empty")

    response = await client.delete(f"/api/categories/{category.id}", headers=admin_auth_headers)
    assert response.status_code == 200

    missing = await client.get(f"/api/categories/{category.id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Category not found"
