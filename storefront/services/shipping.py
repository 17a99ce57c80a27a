# storefront/services/shipping.py

import logging
from typing import List, Optional

import httpx
from fastapi import HTTPException, status
from pydantic import BaseModel

from storefront.clients.shippo import shippo_client
from storefront.core import locales
from storefront.core.config import settings
from storefront.models.order import ShippingCarrier
from storefront.schemas.order import Parcel
from storefront.services.tracking import tracking_url

logger = logging.getLogger(__name__)

DEFAULT_PARCEL = Parcel(length=10, width=8, height=4, weight=1)


class ShippingAddress(BaseModel):
    name: str
    street1: str
    street2: str = ""
    city: str
    state: str
    zip: str
    country: str = "US"
    phone: str = ""
    email: str = ""


class ShippingRate(BaseModel):
    id: str
    carrier: str
    service: str
    amount: float
    currency: str = "USD"
    estimated_days: int | None = None
    duration_terms: str | None = None


class LabelResult(BaseModel):
    tracking_number: str
    carrier: ShippingCarrier
    label_url: str | None = None
    tracking_url: str | None = None
    estimated_delivery: str | None = None
    rate: float | None = None


def sender_address() -> dict:
    return {
        "name": settings.BUSINESS_NAME,
        "street1": settings.BUSINESS_ADDRESS_LINE1,
        "street2": settings.BUSINESS_ADDRESS_LINE2,
        "city": settings.BUSINESS_CITY,
        "state": settings.BUSINESS_STATE,
        "zip": settings.BUSINESS_ZIP,
        "country": settings.BUSINESS_COUNTRY,
        "phone": settings.BUSINESS_PHONE,
        "email": settings.BUSINESS_EMAIL,
    }


def map_carrier(provider: str) -> ShippingCarrier:
    """Строка перевозчика Shippo -> наш enum (по вхождению подстроки)."""
    provider = provider.lower()
    if "usps" in provider:
        return ShippingCarrier.USPS
    if "ups" in provider:
        return ShippingCarrier.UPS
    if "fedex" in provider:
        return ShippingCarrier.FEDEX
    if "dhl" in provider:
        return ShippingCarrier.DHL
    return ShippingCarrier.OTHER


def address_from_order(shipping_data: dict | None, customer_name: str | None, customer_email: str) -> Optional[ShippingAddress]:
    """Адрес получателя из данных доставки Stripe, сохраненных в заказе."""
    if not shipping_data or not shipping_data.get("address"):
        return None
    address = shipping_data["address"]
    return ShippingAddress(
        name=shipping_data.get("name") or customer_name or "Customer",
        street1=address.get("line1") or "",
        street2=address.get("line2") or "",
        city=address.get("city") or "",
        state=address.get("state") or "",
        zip=address.get("postal_code") or "",
        country=address.get("country") or "US",
        email=customer_email,
    )


def _parcel_payload(parcel: Parcel) -> dict:
    return {
        "length": str(parcel.length),
        "width": str(parcel.width),
        "height": str(parcel.height),
        "distance_unit": parcel.distance_unit,
        "weight": str(parcel.weight),
        "mass_unit": parcel.mass_unit,
    }


async def get_shipping_rates(to_address: ShippingAddress, parcel: Parcel = DEFAULT_PARCEL) -> List[ShippingRate]:
    """Тарифы для отправления без ошибок, отсортированные по цене."""
    shipment = await shippo_client.create_shipment(sender_address(), to_address.model_dump(), _parcel_payload(parcel))

    rates = []
    for rate in shipment.get("rates") or []:
        if not rate.get("amount"):
            continue
        if any(message.get("source") == "error" for message in rate.get("messages") or []):
            continue
        rates.append(ShippingRate(
            id=rate["object_id"],
            carrier=rate.get("provider") or "Unknown",
            service=(rate.get("servicelevel") or {}).get("name") or "Standard",
            amount=float(rate["amount"]),
            currency=rate.get("currency") or "USD",
            estimated_days=rate.get("estimated_days"),
            duration_terms=rate.get("duration_terms"),
        ))
    return sorted(rates, key=lambda r: r.amount)


def _narrow_by_carrier(rates: List[ShippingRate], preferred_carrier: str | None) -> List[ShippingRate]:
    # Без явного выбора предпочитаем USPS: он доступен без регистрации аккаунта перевозчика
    wanted = (preferred_carrier or "usps").lower()
    preferred = [r for r in rates if wanted in r.carrier.lower()]
    return preferred or rates


async def create_shipping_label(
    to_address: ShippingAddress,
    parcel: Parcel | None = None,
    preferred_carrier: str | None = None,
) -> LabelResult:
    """
    Покупает этикетку по самому дешевому подходящему тарифу.
    Тарифы перебираются по порядку, пока одна из покупок не пройдет успешно.
    При неудаче выбрасывает HTTPException 502 с сообщением провайдера.
    """
    try:
        rates = await get_shipping_rates(to_address, parcel or DEFAULT_PARCEL)
    except httpx.HTTPError as e:
        logger.error(f"Failed to get shipping rates: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=locales.ERROR_LABEL_FAILED)

    if not rates:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="No shipping rates available")

    last_error = ""
    for rate in _narrow_by_carrier(rates, preferred_carrier):
        try:
            transaction = await shippo_client.create_transaction(rate.id)
        except httpx.HTTPError as e:
            last_error = str(e) or locales.ERROR_LABEL_FAILED
            continue

        if transaction.get("status") == "SUCCESS":
            carrier = map_carrier(rate.carrier)
            tracking_number = transaction.get("tracking_number") or ""
            if rate.estimated_days:
                estimated = f"{rate.estimated_days} business days"
            else:
                estimated = rate.duration_terms
            logger.info(f"Label purchased: {carrier.value} {tracking_number} for ${rate.amount:.2f}")
            return LabelResult(
                tracking_number=tracking_number,
                carrier=carrier,
                label_url=transaction.get("label_url"),
                tracking_url=tracking_url(carrier, tracking_number),
                estimated_delivery=estimated,
                rate=rate.amount,
            )

        messages = [m.get("text") for m in transaction.get("messages") or [] if m.get("text")]
        last_error = ", ".join(messages) or "Label creation failed"
        logger.warning(f"Label purchase failed for rate {rate.id} ({rate.carrier}): {last_error}")

    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=last_error or "No rates could be used to create a label",
    )
