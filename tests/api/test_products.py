# tests/api/test_products.py

from datetime import timedelta

from httpx import AsyncClient

from storefront.db.session import utcnow
from storefront.models.cart import CartItem
from storefront.models.catalog import Product
from storefront.models.sale import Sale, SaleCategory


async def test_list_products_filtered_by_category(client: AsyncClient, product_factory, category_factory):
    rings = category_factory("Rings")
    product_factory(name="Gold Watch")
    product_factory(name="Silver Ring", category=rings)

    response = await client.get("/api/products", params={"category": "rings"})

    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Silver Ring"]
    assert response.json()[0]["category"]["name"] == "Rings"


async def test_product_discount_beats_category_sale(
    client: AsyncClient, product_factory, test_category, db_session
):
    now = utcnow()
    db_session.add(Sale(
        name="Autumn",
        discount=30,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
        category_links=[SaleCategory(category_id=test_category.id)],
    ))
    db_session.commit()
    on_sale = product_factory(name="Plain Watch", price="20.00")
    own_discount = product_factory(name="Promo Watch", price="20.00", discount_percent=10)

    plain = (await client.get(f"/api/products/{on_sale.id}")).json()
    promo = (await client.get(f"/api/products/by-slug/{own_discount.slug}")).json()

    assert plain["effective_discount"] == 30
    assert plain["sale_price"] == 14.0
    assert promo["effective_discount"] == 10
    assert promo["sale_price"] == 18.0


async def test_get_unknown_product(client: AsyncClient, db_session):
    response = await client.get("/api/products/unknown")

    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}


async def test_create_product_requires_admin(client: AsyncClient, auth_headers: dict, test_category):
    payload = {"name": "Watch", "price": 10, "categoryId": test_category.id}

    response = await client.post("/api/products", json=payload, headers=auth_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admin access required"}


async def test_create_and_update_product(client: AsyncClient, admin_auth_headers: dict, test_category):
    payload = {
        "name": "<b>Gold</b> Watch",
        "price": "199.999",
        "stock": 4,
        "categoryId": test_category.id,
        "description": "Classic",
    }

    response = await client.post("/api/products", json=payload, headers=admin_auth_headers)

    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "Gold Watch"
    assert created["slug"] == "gold-watch"
    assert created["price"] == 200.0

    duplicate = await client.post("/api/products", json=payload, headers=admin_auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "A product with this name already exists"

    response = await client.patch(
        f"/api/products/{created['id']}",
        json={"name": "Rose Gold Watch", "discountPercent": 15},
        headers=admin_auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "rose-gold-watch"
    assert response.json()["effective_discount"] == 15


async def test_create_product_validation_errors(client: AsyncClient, admin_auth_headers: dict, test_category):
    response = await client.post(
        "/api/products",
        json={"name": "Watch", "price": -5, "categoryId": test_category.id},
        headers=admin_auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Price cannot be negative"
    assert response.json()["details"]

    response = await client.post(
        "/api/products",
        json={"name": "Watch", "price": 5, "categoryId": "missing"},
        headers=admin_auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Category not found"

    response = await client.post(
        "/api/products",
        json={"name": "Watch", "price": 5, "categoryId": test_category.id, "discountPercent": 101},
        headers=admin_auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Discount must be a whole number between 0 and 100"


async def test_delete_product_blocked_by_orders(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory, db_session
):
    product = product_factory()
    order_factory(product)

    response = await client.delete(f"/api/products/{product.id}", headers=admin_auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == (
        "Cannot delete product: It is part of 1 order(s). Consider setting stock to 0 instead."
    )
    assert db_session.get(Product, product.id) is not None


async def test_delete_product_removes_cart_items(
    client: AsyncClient, admin_auth_headers: dict, auth_headers: dict, product_factory, db_session
):
    product = product_factory()
    await client.post("/api/cart", json={"productId": product.id}, headers=auth_headers)

    response = await client.delete(f"/api/products/{product.id}", headers=admin_auth_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(Product).count() == 0
    assert db_session.query(CartItem).count() == 0


async def test_product_images(client: AsyncClient, admin_auth_headers: dict, product_factory):
    product = product_factory()
    url = f"/api/products/{product.id}/images"

    first = await client.post(url, json={"url": "/img/a.jpg"}, headers=admin_auth_headers)
    second = await client.post(url, json={"url": "https://cdn.example.com/b.jpg", "alt": "B"}, headers=admin_auth_headers)
    assert first.status_code == 201
    assert [first.json()["position"], second.json()["position"]] == [0, 1]

    invalid = await client.post(url, json={"url": "ftp://x"}, headers=admin_auth_headers)
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid image URL"

    reordered = await client.put(
        url, json={"imageIds": [second.json()["id"], first.json()["id"]]}, headers=admin_auth_headers
    )
    assert reordered.status_code == 200
    assert [img["id"] for img in reordered.json()] == [second.json()["id"], first.json()["id"]]

    mismatch = await client.put(url, json={"imageIds": ["foreign"]}, headers=admin_auth_headers)
    assert mismatch.status_code == 400

    no_id = await client.delete(url, headers=admin_auth_headers)
    assert no_id.status_code == 400
    unknown = await client.delete(url, params={"imageId": "nope"}, headers=admin_auth_headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "Image not found"

    deleted = await client.delete(url, params={"imageId": first.json()["id"]}, headers=admin_auth_headers)
    assert deleted.status_code == 200
    listing = await client.get(url)
    assert [img["id"] for img in listing.json()] == [second.json()["id"]]


async def test_reorder_accepts_subset_of_product_images(
    client: AsyncClient, admin_auth_headers: dict, product_factory
):
    product = product_factory()
    url = f"/api/products/{product.id}/images"
    ids = [
        (await client.post(url, json={"url": f"/img/{name}.jpg"}, headers=admin_auth_headers)).json()["id"]
        for name in ("a", "b", "c")
    ]

    response = await client.put(url, json={"imageIds": [ids[2], ids[1]]}, headers=admin_auth_headers)

    assert response.status_code == 200
    positions = {img["id"]: img["position"] for img in response.json()}
    assert positions == {ids[0]: 0, ids[1]: 1, ids[2]: 0}

    foreign = await client.put(url, json={"imageIds": [ids[0], "foreign"]}, headers=admin_auth_headers)
    assert foreign.status_code == 400
    assert foreign.json()["error"] == "Image IDs do not match this product's images"
