# tests/unit/test_email.py

import pytest

from storefront.services import email as email_service


def _order_data(**overrides) -> email_service.OrderEmailData:
    data = {
        "order_id": "order_1234567890",
        "customer_email": "buyer@example.com",
        "customer_name": "<script>alert(1)</script>",
        "items": [email_service.EmailLineItem(
            name='Ring "Gold" & <b>Co</b>', quantity=2, price=12.5, image_url="javascript:alert(1)"
        )],
        "total": 25.0,
        "shipping_address": email_service.EmailAddress(
            name="Ann <i>Buyer</i>", line1="1 Market St", city="San Francisco",
            state="CA", postal_code="94105", country="US",
        ),
    }
    data.update(overrides)
    return email_service.OrderEmailData(**data)


@pytest.fixture
def resend_key(mocker):
    mocker.patch("storefront.services.email.settings.RESEND_API_KEY", "re_test")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/track", "https://example.com/track"),
        ("mailto:help@example.com", "mailto:help@example.com"),
        ("javascript:alert(1)", "#"),
        ("data:text/html;base64,xx", "#"),
        ("", "#"),
        (None, "#"),
    ],
)
def test_sanitize_url(url, expected):
    assert email_service.sanitize_url(url) == expected


def test_confirmation_email_escapes_customer_strings(resend_key, mock_send_email):
    assert email_service.send_order_confirmation_email(_order_data()) is True

    payload = mock_send_email.call_args.args[0]
    body = payload["html"]
    assert payload["to"] == ["buyer@example.com"]
    assert payload["subject"] == "Order Confirmed - #34567890"
    assert "<script>" not in body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
    assert "Ring &quot;Gold&quot; &amp; &lt;b&gt;Co&lt;/b&gt;" in body
    assert "Ann &lt;i&gt;Buyer&lt;/i&gt;" in body
    # Небезопасная ссылка на картинку заменена
    assert 'src="#"' in body
    assert "javascript:" not in body


def test_shipping_email_drops_unsafe_tracking_link(resend_key, mock_send_email):
    data = email_service.ShippingEmailData(
        **_order_data().model_dump(),
        tracking_number="<9400>",
        carrier="USPS",
        tracking_url="javascript:steal()",
    )

    email_service.send_shipping_notification_email(data)

    body = mock_send_email.call_args.args[0]["html"]
    assert 'href="#"' in body
    assert "&lt;9400&gt;" in body


def test_send_skipped_without_api_key(mocker, mock_send_email):
    mocker.patch("storefront.services.email.settings.RESEND_API_KEY", "")

    assert email_service.send_delivery_confirmation_email(_order_data()) is False
    mock_send_email.assert_not_called()


def test_send_failure_returns_false(resend_key, mocker):
    mocker.patch("storefront.services.email.resend.Emails.send", side_effect=RuntimeError("resend down"))

    assert email_service.send_order_confirmation_email(_order_data()) is False
