# tests/api/test_sales.py

from datetime import timedelta

from httpx import AsyncClient

from storefront.db.session import utcnow


def _sale_payload(category_ids, **overrides):
    now = utcnow()
    payload = {
        "name": "Autumn Sale",
        "discount": 20,
        "startDate": (now - timedelta(hours=1)).isoformat(),
        "endDate": (now + timedelta(days=7)).isoformat(),
        "categoryIds": category_ids,
    }
    payload.update(overrides)
    return payload


async def test_create_sale_and_list_active(client: AsyncClient, admin_auth_headers: dict, test_category):
    response = await client.post("/api/sales", json=_sale_payload([test_category.id]), headers=admin_auth_headers)

    assert response.status_code == 201
    sale = response.json()
    assert sale["discount"] == 20
    assert [c["id"] for c in sale["categories"]] == [test_category.id]

    future = _sale_payload(
        [test_category.id],
        name="Winter Sale",
        startDate=(utcnow() + timedelta(days=30)).isoformat(),
        endDate=(utcnow() + timedelta(days=40)).isoformat(),
    )
    await client.post("/api/sales", json=future, headers=admin_auth_headers)

    active = await client.get("/api/sales/active")
    assert [s["name"] for s in active.json()] == ["Autumn Sale"]

    all_sales = await client.get("/api/sales")
    assert len(all_sales.json()) == 2

    fetched = await client.get(f"/api/sales/{sale['id']}")
    assert fetched.json()["name"] == "Autumn Sale"


async def test_create_sale_validation(client: AsyncClient, admin_auth_headers: dict, test_category):
    bad_discount = await client.post(
        "/api/sales", json=_sale_payload([test_category.id], discount=0), headers=admin_auth_headers
    )
    assert bad_discount.status_code == 400
    assert bad_discount.json()["error"] == "Discount must be a whole number between 1 and 100"

    no_categories = await client.post("/api/sales", json=_sale_payload([]), headers=admin_auth_headers)
    assert no_categories.status_code == 400

    unknown_category = await client.post("/api/sales", json=_sale_payload(["missing"]), headers=admin_auth_headers)
    assert unknown_category.status_code == 400
    assert unknown_category.json()["error"] == "One or more categories not found"

    bad_dates = await client.post(
        "/api/sales",
        json=_sale_payload([test_category.id], endDate=(utcnow() - timedelta(days=1)).isoformat()),
        headers=admin_auth_headers,
    )
    assert bad_dates.status_code == 400
    assert bad_dates.json()["error"] == "End date must be after start date"


async def test_create_sale_with_mixed_timezone_dates(client: AsyncClient, admin_auth_headers: dict, test_category):
    # Дата без смещения считается UTC
    created = await client.post(
        "/api/sales",
        json=_sale_payload([test_category.id], startDate="2026-01-01T00:00:00Z", endDate="2026-02-01T00:00:00"),
        headers=admin_auth_headers,
    )
    assert created.status_code == 201

    reversed_dates = await client.post(
        "/api/sales",
        json=_sale_payload([test_category.id], startDate="2026-02-01T00:00:00", endDate="2026-01-01T00:00:00+00:00"),
        headers=admin_auth_headers,
    )
    assert reversed_dates.status_code == 400
    assert reversed_dates.json()["error"] == "End date must be after start date"


async def test_update_sale_replaces_categories(
    client: AsyncClient, admin_auth_headers: dict, test_category, category_factory
):
    rings = category_factory("Rings")
    created = (await client.post(
        "/api/sales", json=_sale_payload([test_category.id]), headers=admin_auth_headers
    )).json()

    response = await client.patch(
        f"/api/sales/{created['id']}",
        json={"categoryIds": [rings.id], "discount": 35},
        headers=admin_auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["discount"] == 35
    assert [c["slug"] for c in response.json()["categories"]] == ["rings"]


async def test_delete_sale(client: AsyncClient, admin_auth_headers: dict, auth_headers: dict, test_category):
    created = (await client.post(
        "/api/sales", json=_sale_payload([test_category.id]), headers=admin_auth_headers
    )).json()

    forbidden = await client.delete(f"/api/sales/{created['id']}", headers=auth_headers)
    assert forbidden.status_code == 403

    response = await client.delete(f"/api/sales/{created['id']}", headers=admin_auth_headers)
    assert response.status_code == 200

    missing = await client.get(f"/api/sales/{created['id']}")
    assert missing.status_code == 404
