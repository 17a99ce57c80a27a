# tests/api/admin/test_orders.py

from httpx import AsyncClient

from storefront.models.order import Order, OrderStatus, ShippingCarrier

RATES_RESPONSE = {
    "rates": [
        {"object_id": "rate_ups", "provider": "UPS", "amount": "7.10", "servicelevel": {"name": "Ground"},
         "estimated_days": 3, "messages": []},
        {"object_id": "rate_usps", "provider": "USPS", "amount": "8.25", "servicelevel": {"name": "Priority"},
         "estimated_days": 2, "messages": []},
        {"object_id": "rate_broken", "provider": "USPS", "amount": "1.00",
         "messages": [{"source": "error", "text": "bad"}]},
    ]
}


async def test_admin_routes_require_admin(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/admin/orders", headers=auth_headers)
    assert response.status_code == 403

    response = await client.get("/api/admin/orders")
    assert response.status_code == 401


async def test_admin_list_and_get_orders(client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory):
    order = order_factory(product_factory())

    listing = await client.get("/api/admin/orders", headers=admin_auth_headers)
    assert listing.status_code == 200
    assert [o["id"] for o in listing.json()] == [order.id]
    assert listing.json()[0]["guest_token"] == "guest-token-123"

    detail = await client.get(f"/api/admin/orders/{order.id}", headers=admin_auth_headers)
    assert detail.json()["customer_email"] == "guest@example.com"

    missing = await client.get("/api/admin/orders/unknown", headers=admin_auth_headers)
    assert missing.status_code == 404


async def test_admin_update_status(client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory):
    order = order_factory(product_factory(), status=OrderStatus.PENDING)

    response = await client.patch(
        f"/api/admin/orders/{order.id}", json={"status": "CANCELLED"}, headers=admin_auth_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    invalid = await client.patch(
        f"/api/admin/orders/{order.id}", json={"status": "LOST"}, headers=admin_auth_headers
    )
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid status"


async def test_ship_requires_processing_status(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory, mock_shippo_client
):
    order = order_factory(product_factory(), status=OrderStatus.PENDING)

    response = await client.post(f"/api/orders/{order.id}/ship", json={}, headers=admin_auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot ship order with status: PENDING"
    mock_shippo_client.create_shipment.assert_not_called()


async def test_ship_requires_shipping_address(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory, mock_shippo_client
):
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING)

    response = await client.post(f"/api/orders/{order.id}/ship", json={}, headers=admin_auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Order has no shipping address"


async def test_ship_buys_label_preferring_usps(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory,
    shipping_address, mock_shippo_client, mock_send_email, db_session, mocker
):
    mocker.patch("storefront.services.email.settings.RESEND_API_KEY", "re_test")
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING, shipping_address=shipping_address)
    # 1. Настраиваем ответы Shippo
    mock_shippo_client.create_shipment.return_value = RATES_RESPONSE
    mock_shippo_client.create_transaction.return_value = {
        "status": "SUCCESS",
        "tracking_number": "9400100000000000000000",
        "label_url": "https://shippo.example/label.pdf",
    }

    # 2. Делаем запрос
    response = await client.post(f"/api/orders/{order.id}/ship", json={}, headers=admin_auth_headers)

    # 3. Проверяем результат
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["carrier"] == "USPS"
    assert data["tracking_number"] == "9400100000000000000000"
    assert data["rate"] == 8.25
    assert data["tracking_url"].startswith("https://tools.usps.com/")
    mock_shippo_client.create_transaction.assert_called_once_with("rate_usps")

    db_session.expire_all()
    shipped = db_session.get(Order, order.id)
    assert shipped.status == OrderStatus.SHIPPED
    assert shipped.shipping_carrier == ShippingCarrier.USPS
    assert shipped.shipped_at is not None
    # Письмо об отправке ушло фоновой задачей
    mock_send_email.assert_called_once()
    assert "Your Order Has Shipped" in mock_send_email.call_args.args[0]["subject"]

    again = await client.post(f"/api/orders/{order.id}/ship", json={}, headers=admin_auth_headers)
    assert again.status_code == 400


async def test_ship_label_failure_returns_502(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory,
    shipping_address, mock_shippo_client, db_session
):
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING, shipping_address=shipping_address)
    mock_shippo_client.create_shipment.return_value = RATES_RESPONSE
    mock_shippo_client.create_transaction.return_value = {
        "status": "ERROR",
        "messages": [{"text": "Address not deliverable"}],
    }

    response = await client.post(
        f"/api/orders/{order.id}/ship", json={"preferredCarrier": "ups"}, headers=admin_auth_headers
    )

    assert response.status_code == 502
    assert response.json()["error"] == "Address not deliverable"
    db_session.expire_all()
    assert db_session.get(Order, order.id).status == OrderStatus.PROCESSING


async def test_manual_ship(client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory):
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING)

    missing = await client.patch(
        f"/api/orders/{order.id}/ship", json={"trackingNumber": "1Z999"}, headers=admin_auth_headers
    )
    assert missing.status_code == 400
    assert missing.json()["error"] == "Tracking number and carrier are required"

    bad_carrier = await client.patch(
        f"/api/orders/{order.id}/ship",
        json={"trackingNumber": "1Z999", "carrier": "PIGEON"},
        headers=admin_auth_headers,
    )
    assert bad_carrier.status_code == 400
    assert bad_carrier.json()["error"] == "Invalid shipping carrier"

    response = await client.patch(
        f"/api/orders/{order.id}/ship",
        json={"trackingNumber": "1Z999", "carrier": "UPS", "sendEmail": False},
        headers=admin_auth_headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "tracking_number": "1Z999",
        "carrier": "UPS",
        "tracking_url": "https://www.ups.com/track?tracknum=1Z999",
    }


async def test_deliver_requires_shipped_status(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory
):
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING)

    rejected = await client.post(f"/api/orders/{order.id}/deliver", json={}, headers=admin_auth_headers)
    assert rejected.status_code == 400
    assert rejected.json()["error"] == "Cannot mark as delivered - order status is: PROCESSING"

    await client.patch(
        f"/api/orders/{order.id}/ship",
        json={"trackingNumber": "1Z999", "carrier": "UPS", "sendEmail": False},
        headers=admin_auth_headers,
    )
    delivered = await client.post(
        f"/api/orders/{order.id}/deliver", json={"sendEmail": False}, headers=admin_auth_headers
    )
    assert delivered.status_code == 200
    assert delivered.json()["status"] == "DELIVERED"
    assert delivered.json()["delivered_at"] is not None


async def test_tracking_update_auto_ships_processing_order(
    client: AsyncClient, admin_auth_headers: dict, product_factory, order_factory
):
    order = order_factory(product_factory(), status=OrderStatus.PROCESSING)

    response = await client.patch(
        f"/api/orders/{order.id}/tracking",
        json={"trackingNumber": "774899", "shippingCarrier": "FEDEX"},
        headers=admin_auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "SHIPPED"
    assert data["shipped_at"] is not None
    assert data["carrier_name"] == "FedEx"

    invalid = await client.patch(
        f"/api/orders/{order.id}/tracking", json={"status": "LOST"}, headers=admin_auth_headers
    )
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid status"

    delivered = await client.patch(
        f"/api/orders/{order.id}/tracking", json={"status": "DELIVERED"}, headers=admin_auth_headers
    )
    assert delivered.json()["delivered_at"] is not None
