# tests/api/test_checkout.py

import pytest
import stripe
from httpx import AsyncClient

from storefront.models.order import Order, OrderStatus


@pytest.fixture
def mock_stripe_session(mocker):
    session = mocker.MagicMock()
    session.id = "cs_test_123"
    session.url = "https://checkout.stripe.com/c/pay/cs_test_123"
    return mocker.patch("storefront.services.checkout.stripe.checkout.Session.create", return_value=session)


async def test_guest_checkout_creates_pending_order(
    client: AsyncClient, product_factory, mock_stripe_session, db_session
):
    product = product_factory(name="Gold Watch", price="20.00", stock=5, discount_percent=10)
    payload = {
        "email": "Buyer@Example.com",
        "name": "<b>Ann</b>",
        "items": [{"id": product.id, "quantity": 2}],
    }

    response = await client.post("/api/checkout", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["sessionId"] == "cs_test_123"
    assert data["url"].startswith("https://checkout.stripe.com/")
    assert data["guestToken"]

    order = db_session.query(Order).one()
    assert order.status == OrderStatus.PENDING
    assert order.is_guest is True
    assert order.guest_token == data["guestToken"]
    assert order.customer_email == "buyer@example.com"
    assert order.customer_name == "Ann"
    assert order.stripe_session_id == "cs_test_123"
    assert float(order.total) == 36.0
    assert float(order.items[0].price) == 18.0

    # Параметры сессии Stripe
    kwargs = mock_stripe_session.call_args.kwargs
    line_item = kwargs["line_items"][0]
    assert line_item["quantity"] == 2
    assert line_item["price_data"]["unit_amount"] == 1800
    assert line_item["price_data"]["product_data"]["name"] == "Gold Watch (10% OFF)"
    assert kwargs["metadata"] == {
        "orderId": order.id,
        "userId": "",
        "isGuest": "true",
        "guestToken": order.guest_token,
    }
    assert kwargs["shipping_options"][0]["shipping_rate_data"]["fixed_amount"]["amount"] == 599
    assert kwargs["shipping_address_collection"] == {"allowed_countries": ["US"]}
    assert kwargs["billing_address_collection"] == "required"


async def test_free_shipping_above_threshold(client: AsyncClient, product_factory, mock_stripe_session):
    product = product_factory(price="60.00", stock=5)

    await client.post(
        "/api/checkout",
        json={"email": "buyer@example.com", "items": [{"id": product.id, "quantity": 1}]},
    )

    option = mock_stripe_session.call_args.kwargs["shipping_options"][0]["shipping_rate_data"]
    assert option["fixed_amount"]["amount"] == 0
    assert option["display_name"] == "Free Shipping"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"email": "not-an-email", "items": [{"id": "p1", "quantity": 1}]},
         "Valid email is required for guest checkout"),
        ({"email": "buyer@example.com", "items": []}, "Invalid cart items"),
        ({"email": "buyer@example.com", "items": [{"id": "p1", "quantity": 0}]}, "Invalid cart items"),
        ({"email": "buyer@example.com", "items": [{"id": "missing", "quantity": 1}]}, "Product not found: missing"),
    ],
)
async def test_guest_checkout_validation(client: AsyncClient, payload, message, mock_stripe_session):
    response = await client.post("/api/checkout", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == message
    mock_stripe_session.assert_not_called()


async def test_guest_checkout_without_body(client: AsyncClient, mock_stripe_session):
    response = await client.post("/api/checkout")

    assert response.status_code == 400
    assert response.json()["error"] == "Valid email is required for guest checkout"


async def test_checkout_insufficient_stock(client: AsyncClient, product_factory, mock_stripe_session, db_session):
    product = product_factory(name="Rare Ring", stock=1)

    response = await client.post(
        "/api/checkout",
        json={"email": "buyer@example.com", "items": [{"id": product.id, "quantity": 3}]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient stock for Rare Ring. Only 1 available."
    assert db_session.query(Order).count() == 0


async def test_authenticated_checkout_uses_db_cart(
    client: AsyncClient, auth_headers: dict, product_factory, mock_stripe_session, db_session
):
    empty = await client.post("/api/checkout", json={}, headers=auth_headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "Cart is empty"

    product = product_factory(price="25.00", stock=5)
    await client.post("/api/cart", json={"productId": product.id}, headers=auth_headers)

    # Тело не обязательно: товары берутся из корзины аккаунта
    response = await client.post("/api/checkout", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["guestToken"] is None
    order = db_session.query(Order).one()
    assert order.user_id == "user_customer"
    assert order.is_guest is False
    assert order.customer_email == "customer@example.com"
    assert mock_stripe_session.call_args.kwargs["metadata"]["isGuest"] == "false"


async def test_stripe_failure_cancels_order(client: AsyncClient, product_factory, mocker, db_session):
    mocker.patch(
        "storefront.services.checkout.stripe.checkout.Session.create",
        side_effect=stripe.StripeError("card network down"),
    )
    product = product_factory(stock=5)

    response = await client.post(
        "/api/checkout",
        json={"email": "buyer@example.com", "items": [{"id": product.id, "quantity": 1}]},
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create checkout session"
    assert db_session.query(Order).one().status == OrderStatus.CANCELLED
